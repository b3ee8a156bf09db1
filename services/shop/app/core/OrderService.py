"""
주문 관련 비즈니스 로직을 처리하는 서비스
주문 생성/취소/상태 변경 시 재고와 쿠폰 사용 수량을 함께 관리합니다.
"""
import logging
import secrets
import string
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Protocol

from fastapi_pagination import Page

from libs.common import ConflictError, NotFoundError, ShopError, ValidationError, now_kst
from libs.schemas import Order, OrderItem, OrderPayment, OrderStatus, Product, ProductType

logger = logging.getLogger(__name__)

ORDER_CODE_PREFIX = "DH_"
ORDER_CODE_LENGTH = 8
ORDER_CODE_ALPHABET = string.ascii_uppercase + string.digits

# 현재 상태 -> 변경 가능한 상태
TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.WAITING_CONFIRM: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCEL}),
    OrderStatus.PROCESSING: frozenset(
        {OrderStatus.DELIVERED, OrderStatus.WAITING_CONFIRM, OrderStatus.CANCEL}
    ),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCEL: frozenset(),
}

PRODUCT_TYPE_NAMES = {
    ProductType.SHOES: "신발",
    ProductType.T_SHIRT: "상의",
    ProductType.SHORTS: "하의",
    ProductType.SKIRT: "치마",
    ProductType.ACCESSORY: "액세서리",
}


class OrderError(ShopError):
    """주문 처리 실패"""

    EMPTY_CART = "ERR-ORDER-EMPTY-CART"
    PRODUCT_NOT_FOUND = "ERR-ORDER-PRODUCT-NOT-FOUND"
    COLOR_NOT_FOUND = "ERR-ORDER-COLOR-NOT-FOUND"
    INSUFFICIENT_STOCK = "ERR-ORDER-INSUFFICIENT-STOCK"
    NOT_FOUND = "ERR-ORDER-NOT-FOUND"
    NOT_CANCELLABLE = "ERR-ORDER-NOT-CANCELLABLE"
    ALREADY_CANCELLED = "ERR-ORDER-ALREADY-CANCELLED"
    INVALID_TRANSITION = "ERR-ORDER-INVALID-TRANSITION"

    _STATUS_CODES = {
        EMPTY_CART: 400,
        PRODUCT_NOT_FOUND: 404,
        COLOR_NOT_FOUND: 400,
        INSUFFICIENT_STOCK: 409,
        NOT_FOUND: 404,
        NOT_CANCELLABLE: 400,
        ALREADY_CANCELLED: 409,
        INVALID_TRANSITION: 400,
    }

    def __init__(self, reason: str, message: str, data=None):
        super().__init__(message, code=reason, data=data)
        self.reason = reason
        self.status_code = self._STATUS_CODES[reason]


def can_transition(current: OrderStatus, new_status: OrderStatus) -> bool:
    return new_status in TRANSITIONS[OrderStatus(current)]


def validate_transition(current: OrderStatus, new_status: OrderStatus) -> None:
    """
    주문 상태 변경이 가능한지 확인합니다.

    Raises:
        OrderError: 변경할 수 없는 상태인 경우 (같은 상태로의 변경 포함)
    """
    if not can_transition(current, new_status):
        raise OrderError(
            OrderError.INVALID_TRANSITION,
            "변경할 수 없는 주문 상태입니다.",
            data={"currentStatus": int(current), "newStatus": int(new_status)},
        )


def generate_order_code() -> str:
    """DH_ + 대문자/숫자 8자리 주문 코드"""
    return ORDER_CODE_PREFIX + "".join(secrets.choice(ORDER_CODE_ALPHABET) for _ in range(ORDER_CODE_LENGTH))


def _percentage_change(current: float, previous: float) -> float:
    if previous > 0:
        return round((current - previous) / previous * 100, 2)
    return 100.0


def _month_start(value: datetime) -> datetime:
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _next_month_start(value: datetime) -> datetime:
    start = _month_start(value)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


class OrderRepositoryPort(Protocol):
    """주문 Repository 인터페이스"""

    async def place_order(self, order: dict, items: list[OrderItem]) -> Order:
        ...

    async def cancel_order(self, order: Order) -> bool:
        ...

    async def transition_orders(
        self,
        orders: list[Order],
        new_status: OrderStatus,
    ) -> tuple[list[str], list[str]]:
        ...

    async def exists_order_code(self, order_code: str) -> bool:
        ...

    async def find_order_by_code(self, order_code: str, user_id: int | None = None) -> Order | None:
        ...

    async def find_orders_by_codes(self, order_codes: list[str]) -> list[Order]:
        ...

    async def find_orders_by_user(self, user_id: int) -> list[Order]:
        ...

    async def find_orders(
        self,
        order_status: OrderStatus | None,
        payment_method: int | None,
        search: str | None,
        page: int,
        size: int,
    ) -> tuple[list[Order], int]:
        ...

    async def count_orders_between(self, start: datetime, end: datetime) -> int:
        ...

    async def sum_revenue_between(self, start: datetime, end: datetime) -> float:
        ...

    async def count_orders_by_status(self, order_status: OrderStatus) -> int:
        ...

    async def find_sold_items(self) -> list[dict]:
        ...


class ProductLookupPort(Protocol):
    """주문 검증에 필요한 상품 조회 인터페이스"""

    async def find_products_by_ids(self, product_ids: list[int]) -> list[Product]:
        ...


class CouponValidatorPort(Protocol):
    async def validate_and_apply(self, coupon_code: str, user_id: int | None, now: datetime | None = None):
        ...


class OrderService:
    """주문 서비스"""

    MAX_ORDER_CODE_ATTEMPTS = 3

    def __init__(
        self,
        order_repository: OrderRepositoryPort,
        product_repository: ProductLookupPort,
        coupon_service: CouponValidatorPort,
    ):
        self.order_repository = order_repository
        self.product_repository = product_repository
        self.coupon_service = coupon_service

    async def _new_order_code(self) -> str:
        while True:
            order_code = generate_order_code()
            if not await self.order_repository.exists_order_code(order_code):
                return order_code

    async def _validate_items(self, items: list[OrderItem]) -> None:
        """상품, 색상, 재고를 확인합니다. 같은 상품/색상 항목은 수량을 합산해 확인합니다."""
        products = await self.product_repository.find_products_by_ids(sorted({item.productId for item in items}))
        products_by_id = {product.productId: product for product in products}

        requested: Counter = Counter()
        for item in items:
            product = products_by_id.get(item.productId)
            if product is None:
                raise OrderError(
                    OrderError.PRODUCT_NOT_FOUND,
                    "존재하지 않는 상품입니다.",
                    data={"productId": item.productId},
                )
            color = product.find_color(item.selectedColor)
            if color is None:
                raise OrderError(
                    OrderError.COLOR_NOT_FOUND,
                    f"{product.productName} 상품에 선택한 색상이 없습니다.",
                    data={"productId": item.productId, "selectedColor": int(item.selectedColor)},
                )
            requested[(item.productId, int(item.selectedColor))] += item.quantity
            if color.quantity < requested[(item.productId, int(item.selectedColor))]:
                raise OrderError(
                    OrderError.INSUFFICIENT_STOCK,
                    f"{product.productName} ({color.name}) 상품의 재고가 부족합니다.",
                    data={"productId": item.productId, "selectedColor": int(item.selectedColor)},
                )

    async def create_order(
        self,
        user_id: int,
        items: list[OrderItem],
        shipping_info,
        payment_method: OrderPayment,
        products_fees: float,
        shipping_fees: float,
        total_price: float,
        discount_value: float | None = None,
        coupon_code: str | None = None,
    ) -> Order:
        """
        주문을 생성합니다.

        Args:
            user_id: 주문자 ID
            items: 주문 항목 (단가는 전달된 값으로 고정)
            shipping_info: 배송 정보
            payment_method: 결제 방식
            products_fees: 상품 금액 합계
            shipping_fees: 배송비
            total_price: 최종 결제 금액
            discount_value: 할인 금액
            coupon_code: 적용할 쿠폰 코드

        Returns:
            생성된 주문 (WaitingConfirm 상태)

        Raises:
            OrderError: 빈 장바구니, 상품/색상 없음, 재고 부족
            CouponError: 쿠폰 검증 실패
        """
        if not items:
            raise OrderError(OrderError.EMPTY_CART, "장바구니에 상품이 없습니다.")

        if coupon_code:
            await self.coupon_service.validate_and_apply(coupon_code, user_id)

        await self._validate_items(items)

        order = {
            "userId": user_id,
            "shippingInfo": shipping_info,
            "paymentMethod": payment_method,
            "productsFees": products_fees,
            "shippingFees": shipping_fees,
            "discountValue": discount_value,
            "totalPrice": total_price,
            "couponCode": coupon_code or None,
        }

        attempt = 0
        while True:
            attempt += 1
            order["orderCode"] = await self._new_order_code()
            try:
                created = await self.order_repository.place_order(order, items)
                break
            except ConflictError as e:
                # 코드 확인 이후 다른 요청이 같은 코드를 사용한 경우
                if e.code != "ERR-ORDER-CODE-DUPLICATE" or attempt >= self.MAX_ORDER_CODE_ATTEMPTS:
                    raise
                logger.warning("Order code collision, retrying: code=%s", order["orderCode"])

        logger.info(
            "Order created: code=%s user_id=%s items=%d total=%s coupon=%s",
            created.orderCode,
            user_id,
            len(items),
            total_price,
            coupon_code,
        )
        return created

    async def cancel_order(self, order_code: str, user_id: int) -> Order:
        """
        사용자가 본인의 주문을 취소합니다. 확인 대기 상태에서만 취소할 수 있습니다.

        Raises:
            OrderError: 주문 없음, 이미 취소됨, 취소 불가 상태
        """
        order = await self.order_repository.find_order_by_code(order_code, user_id=user_id)
        if order is None:
            raise OrderError(OrderError.NOT_FOUND, "주문을 찾을 수 없습니다.")
        if order.orderStatus == OrderStatus.CANCEL:
            raise OrderError(OrderError.ALREADY_CANCELLED, "이미 취소된 주문입니다.")
        if order.orderStatus != OrderStatus.WAITING_CONFIRM:
            raise OrderError(OrderError.NOT_CANCELLABLE, "확인 대기 중인 주문만 취소할 수 있습니다.")

        if not await self.order_repository.cancel_order(order):
            # 조회 이후 다른 요청이 상태를 변경함
            current = await self.order_repository.find_order_by_code(order_code, user_id=user_id)
            if current is not None and current.orderStatus == OrderStatus.CANCEL:
                raise OrderError(OrderError.ALREADY_CANCELLED, "이미 취소된 주문입니다.")
            raise OrderError(OrderError.NOT_CANCELLABLE, "확인 대기 중인 주문만 취소할 수 있습니다.")

        logger.info("Order cancelled: code=%s user_id=%s", order_code, user_id)
        return order.model_copy(update={"orderStatus": OrderStatus.CANCEL})

    async def update_statuses(self, order_codes: list[str], new_status: int) -> dict:
        """
        여러 주문의 상태를 일괄 변경합니다.

        변경할 수 없는 주문과 존재하지 않는 코드는 rejected로 반환하며
        나머지 주문의 변경은 계속 진행합니다.

        Returns:
            {"updatedCount": int, "rejected": [{"orderCode", "currentStatus"}]}

        Raises:
            ValidationError: 주문 코드 목록이 비었거나 상태 값이 잘못된 경우
            OrderError: 주문을 하나도 찾지 못한 경우
        """
        if not order_codes:
            raise ValidationError("주문 코드 목록은 비어 있을 수 없습니다.")
        try:
            new_status = OrderStatus(new_status)
        except ValueError as e:
            raise ValidationError("올바르지 않은 주문 상태입니다.") from e

        unique_codes = list(dict.fromkeys(order_codes))
        orders = await self.order_repository.find_orders_by_codes(unique_codes)
        if not orders:
            raise OrderError(OrderError.NOT_FOUND, "해당 코드의 주문을 찾을 수 없습니다.")

        found = {order.orderCode: order for order in orders}
        rejected: list[dict] = []
        movable: list[Order] = []
        for order_code in unique_codes:
            order = found.get(order_code)
            if order is None:
                rejected.append({"orderCode": order_code, "currentStatus": None})
            elif not can_transition(order.orderStatus, new_status):
                rejected.append({"orderCode": order_code, "currentStatus": int(order.orderStatus)})
            else:
                movable.append(order)

        updated, skipped = await self.order_repository.transition_orders(movable, new_status)
        if skipped:
            latest = {order.orderCode: order for order in await self.order_repository.find_orders_by_codes(skipped)}
            for order_code in skipped:
                current = latest.get(order_code)
                rejected.append(
                    {
                        "orderCode": order_code,
                        "currentStatus": int(current.orderStatus) if current is not None else None,
                    }
                )

        if rejected:
            logger.warning(
                "Order status update rejected: new_status=%s codes=%s",
                new_status.name,
                [item["orderCode"] for item in rejected],
            )
        logger.info("Order status updated: new_status=%s count=%d", new_status.name, len(updated))
        return {"updatedCount": len(updated), "rejected": rejected}

    async def get_user_orders(self, user_id: int) -> list[Order]:
        return await self.order_repository.find_orders_by_user(user_id)

    async def get_orders(
        self,
        order_status: OrderStatus | None,
        payment_method: OrderPayment | None,
        search: str | None,
        page: int,
        size: int,
    ) -> Page[Order]:
        """관리자용 주문 목록 (페이징)"""
        orders, total = await self.order_repository.find_orders(order_status, payment_method, search, page, size)
        return Page(
            items=orders,
            total=total,
            page=page,
            size=size,
            pages=(total + size - 1) // size if size > 0 else 0,
        )

    async def get_order_detail(self, order_code: str) -> Order:
        order = await self.order_repository.find_order_by_code(order_code)
        if order is None:
            raise OrderError(OrderError.NOT_FOUND, "주문을 찾을 수 없습니다.")
        return order

    async def get_dashboard_stats(self, now: datetime | None = None) -> dict:
        """
        관리자 대시보드 통계를 계산합니다. 매출에는 취소된 주문을 포함하지 않습니다.
        """
        now = now or now_kst()
        month_start = _month_start(now)
        next_month_start = _next_month_start(now)
        last_month_start = _month_start(month_start - timedelta(days=1))
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        tomorrow_start = today_start + timedelta(days=1)

        monthly_orders = await self.order_repository.count_orders_between(month_start, next_month_start)
        last_month_orders = await self.order_repository.count_orders_between(last_month_start, month_start)
        monthly_revenue = await self.order_repository.sum_revenue_between(month_start, next_month_start)
        last_month_revenue = await self.order_repository.sum_revenue_between(last_month_start, month_start)
        today_revenue = await self.order_repository.sum_revenue_between(today_start, tomorrow_start)
        waiting_confirm = await self.order_repository.count_orders_by_status(OrderStatus.WAITING_CONFIRM)
        processing = await self.order_repository.count_orders_by_status(OrderStatus.PROCESSING)

        sold_items = await self.order_repository.find_sold_items()

        # 연도별 상품 종류 매출
        revenue_by_year: dict[int, dict[int, float]] = defaultdict(lambda: defaultdict(float))
        for item in sold_items:
            if item["product_type"] is None:
                continue
            revenue_by_year[item["created_at"].year][item["product_type"]] += item["quantity"] * item["unit_price"]
        product_type_revenue_by_year = [
            {
                "year": year,
                "data": [
                    {
                        "productType": PRODUCT_TYPE_NAMES.get(product_type, "기타"),
                        "revenue": round(revenue),
                    }
                    for product_type, revenue in sorted(revenue_by_year[year].items())
                ],
            }
            for year in sorted(revenue_by_year)
        ]

        # 올해 판매 수량 상위 5개 상품
        totals: dict[int, dict] = {}
        for item in sold_items:
            if item["created_at"].year != now.year or item["product_name"] is None:
                continue
            entry = totals.setdefault(
                item["product_id"],
                {"productId": item["product_id"], "productName": item["product_name"], "quantity": 0, "revenue": 0.0},
            )
            entry["quantity"] += item["quantity"]
            entry["revenue"] += item["quantity"] * item["unit_price"]
        top_products = sorted(totals.values(), key=lambda entry: (-entry["quantity"], entry["productId"]))[:5]
        top_quantity = sum(entry["quantity"] for entry in top_products)
        top_selling_products = [
            {
                "productId": entry["productId"],
                "productName": entry["productName"],
                "totalQuantitySold": entry["quantity"],
                "totalRevenue": round(entry["revenue"]),
                "percentage": round(entry["quantity"] / top_quantity * 100, 2) if top_quantity else 0.0,
            }
            for entry in top_products
        ]

        return {
            "monthlyOrders": {
                "total": monthly_orders,
                "percentageChange": _percentage_change(monthly_orders, last_month_orders),
            },
            "salesPerformance": {
                "totalRevenue": monthly_revenue,
                "percentageChange": _percentage_change(monthly_revenue, last_month_revenue),
            },
            "todayRevenue": today_revenue,
            "pendingOrders": {
                "waitingConfirm": waiting_confirm,
                "processing": processing,
                "total": waiting_confirm + processing,
            },
            "productTypeRevenueByYear": product_type_revenue_by_year,
            "topSellingProducts": top_selling_products,
        }
