"""Tests for the order status machine, bulk status updates and dashboard statistics."""

from datetime import datetime

import pytest

from conftest import coupon_data, order_item, place_order, product_data, run
from libs.common import KST_TIMEZONE, ValidationError, now_kst
from libs.schemas import OrderStatus, ProductBasicColor, ProductType
from services.shop.app.core.OrderService import (
    OrderError,
    OrderService,
    _percentage_change,
    can_transition,
    validate_transition,
)


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current,new_status",
        [
            (OrderStatus.WAITING_CONFIRM, OrderStatus.PROCESSING),
            (OrderStatus.WAITING_CONFIRM, OrderStatus.CANCEL),
            (OrderStatus.PROCESSING, OrderStatus.DELIVERED),
            (OrderStatus.PROCESSING, OrderStatus.WAITING_CONFIRM),
            (OrderStatus.PROCESSING, OrderStatus.CANCEL),
        ],
    )
    def test_allowed(self, current, new_status):
        assert can_transition(current, new_status)
        validate_transition(current, new_status)

    @pytest.mark.parametrize(
        "current,new_status",
        [
            (OrderStatus.WAITING_CONFIRM, OrderStatus.DELIVERED),
            (OrderStatus.WAITING_CONFIRM, OrderStatus.WAITING_CONFIRM),
            (OrderStatus.DELIVERED, OrderStatus.CANCEL),
            (OrderStatus.DELIVERED, OrderStatus.PROCESSING),
            (OrderStatus.CANCEL, OrderStatus.WAITING_CONFIRM),
            (OrderStatus.CANCEL, OrderStatus.CANCEL),
        ],
    )
    def test_rejected(self, current, new_status):
        assert not can_transition(current, new_status)
        with pytest.raises(OrderError) as exc_info:
            validate_transition(current, new_status)
        assert exc_info.value.code == OrderError.INVALID_TRANSITION


class TestBulkStatusUpdate:
    def test_partial_success(self, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        waiting = place_order(order_service, 1, [order_item(product.productId)])
        delivered = place_order(order_service, 1, [order_item(product.productId)])
        run(order_service.update_statuses([delivered.orderCode], OrderStatus.PROCESSING))
        run(order_service.update_statuses([delivered.orderCode], OrderStatus.DELIVERED))

        result = run(
            order_service.update_statuses(
                [waiting.orderCode, delivered.orderCode, "DH_UNKNOWN0"],
                OrderStatus.PROCESSING,
            )
        )
        assert result["updatedCount"] == 1
        assert {"orderCode": delivered.orderCode, "currentStatus": int(OrderStatus.DELIVERED)} in result["rejected"]
        assert {"orderCode": "DH_UNKNOWN0", "currentStatus": None} in result["rejected"]
        assert run(order_service.get_order_detail(waiting.orderCode)).orderStatus == OrderStatus.PROCESSING

    def test_processing_back_to_waiting(self, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        order = place_order(order_service, 1, [order_item(product.productId)])
        run(order_service.update_statuses([order.orderCode], OrderStatus.PROCESSING))
        result = run(order_service.update_statuses([order.orderCode], OrderStatus.WAITING_CONFIRM))
        assert result == {"updatedCount": 1, "rejected": []}

    def test_duplicate_codes_counted_once(self, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        order = place_order(order_service, 1, [order_item(product.productId)])
        result = run(order_service.update_statuses([order.orderCode, order.orderCode], OrderStatus.PROCESSING))
        assert result["updatedCount"] == 1

    def test_admin_cancel_restores_stock_and_coupons(
        self, product_service, product_repository, coupon_service, coupon_repository, order_service
    ):
        product = run(product_service.create_product(product_data()))
        run(coupon_service.create_coupon(coupon_data("SHARED")))
        first = place_order(order_service, 1, [order_item(product.productId, quantity=2)], coupon_code="SHARED")
        second = place_order(
            order_service,
            2,
            [order_item(product.productId, color=ProductBasicColor.BLUE, quantity=1)],
            coupon_code="SHARED",
        )
        run(order_service.update_statuses([second.orderCode], OrderStatus.PROCESSING))
        assert run(coupon_repository.find_coupon_by_code("SHARED")).usedQuantity == 2

        result = run(order_service.update_statuses([first.orderCode, second.orderCode], OrderStatus.CANCEL))
        assert result["updatedCount"] == 2

        stored = run(product_repository.find_product_by_id(product.productId))
        assert stored.find_color(ProductBasicColor.RED).quantity == 5
        assert stored.find_color(ProductBasicColor.BLUE).quantity == 3
        assert stored.stockQuantity == 8
        assert run(coupon_repository.find_coupon_by_code("SHARED")).usedQuantity == 0

    def test_cancelled_order_cannot_be_reopened(self, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        order = place_order(order_service, 1, [order_item(product.productId)])
        run(order_service.cancel_order(order.orderCode, 1))

        result = run(order_service.update_statuses([order.orderCode], OrderStatus.WAITING_CONFIRM))
        assert result["updatedCount"] == 0
        assert result["rejected"] == [{"orderCode": order.orderCode, "currentStatus": int(OrderStatus.CANCEL)}]

    def test_empty_code_list(self, order_service):
        with pytest.raises(ValidationError):
            run(order_service.update_statuses([], OrderStatus.PROCESSING))

    def test_unknown_status_value(self, order_service):
        with pytest.raises(ValidationError):
            run(order_service.update_statuses(["DH_AAAAAAAA"], 9))

    def test_no_order_found(self, order_service):
        with pytest.raises(OrderError) as exc_info:
            run(order_service.update_statuses(["DH_AAAAAAAA"], OrderStatus.PROCESSING))
        assert exc_info.value.code == OrderError.NOT_FOUND


class TestPercentageChange:
    def test_growth(self):
        assert _percentage_change(150, 100) == 50.0

    def test_decline(self):
        assert _percentage_change(50, 200) == -75.0

    def test_no_previous_value(self):
        assert _percentage_change(10, 0) == 100.0


class StaticSoldItemsRepository:
    """대시보드 집계용 고정 데이터 저장소"""

    def __init__(self, sold_items):
        self.sold_items = sold_items

    async def count_orders_between(self, start, end):
        return 4 if start.month == 3 else 2

    async def sum_revenue_between(self, start, end):
        return 300_000.0 if start.month == 3 else 200_000.0

    async def count_orders_by_status(self, order_status):
        return {OrderStatus.WAITING_CONFIRM: 3, OrderStatus.PROCESSING: 1}.get(order_status, 0)

    async def find_sold_items(self):
        return self.sold_items


def sold(year, product_id, name, product_type, quantity, unit_price):
    return {
        "created_at": datetime(year, 3, 10, tzinfo=KST_TIMEZONE),
        "product_id": product_id,
        "product_name": name,
        "product_type": product_type,
        "quantity": quantity,
        "unit_price": unit_price,
    }


class TestDashboardStats:
    def test_aggregation(self):
        repository = StaticSoldItemsRepository(
            [
                sold(2025, 1, "Runner", ProductType.SHOES, 2, 100_000),
                sold(2026, 1, "Runner", ProductType.SHOES, 3, 100_000),
                sold(2026, 2, "Tee", ProductType.T_SHIRT, 1, 30_000),
            ]
        )
        service = OrderService(repository, product_repository=None, coupon_service=None)
        stats = run(service.get_dashboard_stats(now=datetime(2026, 3, 15, 12, 0, tzinfo=KST_TIMEZONE)))

        assert stats["monthlyOrders"] == {"total": 4, "percentageChange": 100.0}
        assert stats["salesPerformance"] == {"totalRevenue": 300_000.0, "percentageChange": 50.0}
        assert stats["pendingOrders"] == {"waitingConfirm": 3, "processing": 1, "total": 4}
        assert stats["productTypeRevenueByYear"] == [
            {"year": 2025, "data": [{"productType": "신발", "revenue": 200_000}]},
            {
                "year": 2026,
                "data": [
                    {"productType": "신발", "revenue": 300_000},
                    {"productType": "상의", "revenue": 30_000},
                ],
            },
        ]
        top = stats["topSellingProducts"]
        assert [entry["productId"] for entry in top] == [1, 2]
        assert top[0]["totalQuantitySold"] == 3
        assert top[0]["percentage"] == 75.0

    def test_cancelled_orders_excluded(self, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        kept = place_order(order_service, 1, [order_item(product.productId, quantity=2)])
        cancelled = place_order(order_service, 2, [order_item(product.productId, quantity=1)])
        run(order_service.cancel_order(cancelled.orderCode, 2))

        stats = run(order_service.get_dashboard_stats())
        assert stats["monthlyOrders"]["total"] == 2
        assert stats["salesPerformance"]["totalRevenue"] == kept.totalPrice
        assert stats["todayRevenue"] == kept.totalPrice
        assert stats["pendingOrders"]["waitingConfirm"] == 1
        assert stats["topSellingProducts"][0]["totalQuantitySold"] == 2
        year = now_kst().year
        assert stats["productTypeRevenueByYear"] == [
            {"year": year, "data": [{"productType": "신발", "revenue": 200_000}]}
        ]
