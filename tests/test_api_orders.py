"""Tests for the order HTTP API."""

from conftest import coupon_data, order_item, place_order, product_data, run


def order_payload(product_id: int, quantity: int = 1, coupon_code: str | None = None) -> dict:
    return {
        "orderItems": [
            {"productId": product_id, "selectedColor": 3, "selectedSize": "260", "quantity": quantity, "unitPrice": 100000},
        ],
        "shippingInfo": {
            "receiver": "Kim",
            "emailReceived": "kim@example.com",
            "phoneNumberReceived": "010-0000-0000",
            "address": "Suwon",
        },
        "paymentMethod": 1,
        "productsFees": 100000 * quantity,
        "shippingFees": 0,
        "totalPrice": 100000 * quantity,
        "couponCode": coupon_code,
    }


class TestCreateOrderApi:
    def test_create(self, api_client, user_headers, product_service):
        product = run(product_service.create_product(product_data()))
        response = api_client.post("/order/create-order", json=order_payload(product.productId, 2), headers=user_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["orderCode"].startswith("DH_")
        assert data["orderStatus"] == 1
        assert data["userId"] == 1
        assert data["orderItems"][0]["quantity"] == 2

    def test_insufficient_stock(self, api_client, user_headers, product_service):
        product = run(product_service.create_product(product_data()))
        response = api_client.post("/order/create-order", json=order_payload(product.productId, 6), headers=user_headers)
        assert response.status_code == 409
        body = response.json()
        assert body["status"] == 0
        assert body["code"] == "ERR-ORDER-INSUFFICIENT-STOCK"

    def test_empty_cart(self, api_client, user_headers):
        payload = {**order_payload(1), "orderItems": []}
        response = api_client.post("/order/create-order", json=payload, headers=user_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "ERR-ORDER-EMPTY-CART"

    def test_coupon_errors(self, api_client, user_headers, product_service, coupon_service):
        product = run(product_service.create_product(product_data()))
        response = api_client.post(
            "/order/create-order",
            json=order_payload(product.productId, coupon_code="NOPE"),
            headers=user_headers,
        )
        assert response.status_code == 404
        assert response.json()["code"] == "ERR-COUPON-NOT-FOUND"

        run(coupon_service.create_coupon(coupon_data("ONCE", couponQuantity=1)))
        response = api_client.post(
            "/order/create-order",
            json=order_payload(product.productId, coupon_code="ONCE"),
            headers=user_headers,
        )
        assert response.status_code == 201
        response = api_client.post(
            "/order/create-order",
            json=order_payload(product.productId, coupon_code="ONCE"),
            headers=user_headers,
        )
        assert response.status_code == 409
        assert response.json()["code"] == "ERR-COUPON-EXHAUSTED"

    def test_requires_login(self, api_client, product_service):
        product = run(product_service.create_product(product_data()))
        response = api_client.post("/order/create-order", json=order_payload(product.productId))
        assert response.status_code == 401


class TestUserOrdersApi:
    def test_list_and_cancel(self, api_client, user_headers, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        order = place_order(order_service, 1, [order_item(product.productId)])
        place_order(order_service, 2, [order_item(product.productId)])

        response = api_client.get("/order/get-user-orders", headers=user_headers)
        assert [item["orderCode"] for item in response.json()["data"]] == [order.orderCode]

        response = api_client.post(f"/order/{order.orderCode}/cancel-order", headers=user_headers)
        assert response.status_code == 200

        response = api_client.post(f"/order/{order.orderCode}/cancel-order", headers=user_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "ERR-ORDER-ALREADY-CANCELLED"

    def test_cancel_unknown_order(self, api_client, user_headers):
        response = api_client.post("/order/DH_AAAAAAAA/cancel-order", headers=user_headers)
        assert response.status_code == 404


class TestAdminOrdersApi:
    def test_list_requires_admin(self, api_client, user_headers):
        response = api_client.get("/order/get-all-orders", headers=user_headers)
        assert response.status_code == 403

    def test_list_filters(self, api_client, admin_headers, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        first = place_order(order_service, 1, [order_item(product.productId)])
        place_order(order_service, 2, [order_item(product.productId)])
        run(order_service.cancel_order(first.orderCode, 1))

        response = api_client.get("/order/get-all-orders", headers=admin_headers)
        data = response.json()["data"]
        assert data["total"] == 2

        response = api_client.get("/order/get-all-orders", params={"orderStatus": 4}, headers=admin_headers)
        data = response.json()["data"]
        assert [item["orderCode"] for item in data["items"]] == [first.orderCode]

    def test_update_status(self, api_client, admin_headers, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        order = place_order(order_service, 1, [order_item(product.productId)])

        response = api_client.put(
            "/order/update-status",
            json={"orderCodes": [order.orderCode, "DH_UNKNOWN0"], "newStatus": 2},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["updatedCount"] == 1
        assert data["rejected"] == [{"orderCode": "DH_UNKNOWN0", "currentStatus": None}]

        response = api_client.put(
            "/order/update-status",
            json={"orderCodes": [order.orderCode], "newStatus": 9},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_details(self, api_client, admin_headers, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        order = place_order(order_service, 1, [order_item(product.productId)])

        response = api_client.get(f"/order/get-details-order/{order.orderCode}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["orderItems"][0]["productName"] == "Runner"

        response = api_client.get("/order/get-details-order/DH_AAAAAAAA", headers=admin_headers)
        assert response.status_code == 404

    def test_dashboard_stats(self, api_client, admin_headers, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        place_order(order_service, 1, [order_item(product.productId, quantity=2)])

        response = api_client.get("/order/get-dashboard-stats", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["monthlyOrders"]["total"] == 1
        assert data["pendingOrders"] == {"waitingConfirm": 1, "processing": 0, "total": 1}
        assert data["topSellingProducts"][0]["productName"] == "Runner"
        assert data["topSellingProducts"][0]["percentage"] == 100.0
