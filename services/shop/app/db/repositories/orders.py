"""
주문 관련 Repository 구현
주문 생성/취소/상태 변경은 재고, 쿠폰 사용 수량과 함께 하나의 트랜잭션으로 처리합니다.
"""
from collections import Counter
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from libs.common import ConflictError, ensure_kst, now_kst, to_db_datetime
from libs.schemas import Order, OrderItem, OrderStatus, ShippingInfo
from services.shop.app.core.CouponService import CouponError
from services.shop.app.core.OrderService import OrderError
from services.shop.app.db.repositories.base import _SQLRepositoryBase, expanding_text

_ORDER_COLUMNS = """
    o.order_id,
    o.order_code,
    o.user_id,
    o.products_fees,
    o.shipping_fees,
    o.discount_value,
    o.total_price,
    o.coupon_code,
    o.receiver,
    o.email_received,
    o.phone_number_received,
    o.address,
    o.note,
    o.payment_method,
    o.order_status,
    o.created_at,
    o.updated_at
"""


def _to_orders(session, rows: Iterable[Any]) -> list[Order]:
    rows = list(rows)
    items: dict[int, list[OrderItem]] = {}
    if rows:
        item_rows = session.execute(
            expanding_text(
                """
                SELECT
                    i.order_id,
                    i.product_id,
                    i.selected_color,
                    i.selected_size,
                    i.quantity,
                    i.unit_price,
                    p.product_name
                FROM order_items i
                LEFT JOIN products p ON i.product_id = p.product_id
                WHERE i.order_id IN :order_ids
                ORDER BY i.order_item_id
                """,
                "order_ids",
            ),
            {"order_ids": [row["order_id"] for row in rows]},
        ).mappings().all()
        for item in item_rows:
            items.setdefault(item["order_id"], []).append(
                OrderItem(
                    productId=item["product_id"],
                    selectedColor=item["selected_color"],
                    selectedSize=item["selected_size"],
                    quantity=item["quantity"],
                    unitPrice=item["unit_price"],
                    productName=item["product_name"],
                )
            )

    return [
        Order(
            orderId=row["order_id"],
            orderCode=row["order_code"],
            userId=row["user_id"],
            orderItems=items.get(row["order_id"], []),
            shippingInfo=ShippingInfo(
                receiver=row["receiver"],
                emailReceived=row["email_received"],
                phoneNumberReceived=row["phone_number_received"],
                address=row["address"],
                note=row["note"],
            ),
            paymentMethod=row["payment_method"],
            productsFees=row["products_fees"],
            shippingFees=row["shipping_fees"],
            discountValue=row["discount_value"],
            totalPrice=row["total_price"],
            couponCode=row["coupon_code"],
            orderStatus=row["order_status"],
            createdAt=ensure_kst(row["created_at"]),
            updatedAt=ensure_kst(row["updated_at"]),
        )
        for row in rows
    ]


def _item_quantities(items: Iterable[OrderItem]) -> Counter:
    """(상품 ID, 색상)별 수량 합계"""
    quantities: Counter = Counter()
    for item in items:
        quantities[(item.productId, int(item.selectedColor))] += item.quantity
    return quantities


class SQLAlchemyOrderRepository(_SQLRepositoryBase):
    """SQLAlchemy를 사용한 주문 Repository 구현"""

    # 트랜잭션 내부 단계

    def _insert_order(self, session, order: dict, items: list[OrderItem], now: datetime) -> int:
        shipping: ShippingInfo = order["shippingInfo"]
        try:
            result = session.execute(
                text(
                    """
                    INSERT INTO orders (
                        order_code, user_id, products_fees, shipping_fees, discount_value,
                        total_price, coupon_code, receiver, email_received,
                        phone_number_received, address, note, payment_method,
                        order_status, created_at, updated_at
                    ) VALUES (
                        :order_code, :user_id, :products_fees, :shipping_fees, :discount_value,
                        :total_price, :coupon_code, :receiver, :email_received,
                        :phone_number_received, :address, :note, :payment_method,
                        :order_status, :created_at, :updated_at
                    )
                    """
                ),
                {
                    "order_code": order["orderCode"],
                    "user_id": order["userId"],
                    "products_fees": order["productsFees"],
                    "shipping_fees": order["shippingFees"],
                    "discount_value": order.get("discountValue"),
                    "total_price": order["totalPrice"],
                    "coupon_code": order.get("couponCode"),
                    "receiver": shipping.receiver,
                    "email_received": shipping.emailReceived,
                    "phone_number_received": shipping.phoneNumberReceived,
                    "address": shipping.address,
                    "note": shipping.note,
                    "payment_method": int(order["paymentMethod"]),
                    "order_status": int(OrderStatus.WAITING_CONFIRM),
                    "created_at": now,
                    "updated_at": now,
                },
            )
        except IntegrityError as e:
            raise ConflictError("이미 사용 중인 주문 코드입니다.", code="ERR-ORDER-CODE-DUPLICATE") from e

        order_id = result.lastrowid
        for item in items:
            session.execute(
                text(
                    """
                    INSERT INTO order_items (
                        order_id, product_id, selected_color, selected_size, quantity, unit_price
                    ) VALUES (
                        :order_id, :product_id, :selected_color, :selected_size, :quantity, :unit_price
                    )
                    """
                ),
                {
                    "order_id": order_id,
                    "product_id": item.productId,
                    "selected_color": int(item.selectedColor),
                    "selected_size": item.selectedSize,
                    "quantity": item.quantity,
                    "unit_price": item.unitPrice,
                },
            )
        return order_id

    def _decrease_stock(self, session, product_id: int, color: int, quantity: int) -> None:
        """재고가 충분한 경우에만 색상 재고를 차감하고 판매 수량을 늘립니다."""
        result = session.execute(
            text(
                """
                UPDATE product_colors
                SET quantity = quantity - :quantity,
                    sale = sale + :quantity
                WHERE product_id = :product_id
                  AND color_value = :color
                  AND quantity >= :quantity
                """
            ),
            {"product_id": product_id, "color": color, "quantity": quantity},
        )
        if result.rowcount == 0:
            raise OrderError(
                OrderError.INSUFFICIENT_STOCK,
                "재고가 부족한 상품이 있습니다.",
                data={"productId": product_id, "selectedColor": color},
            )
        session.execute(
            text(
                """
                UPDATE products
                SET stock_quantity = stock_quantity - :quantity,
                    sale_quantity = sale_quantity + :quantity
                WHERE product_id = :product_id
                """
            ),
            {"product_id": product_id, "quantity": quantity},
        )

    def _restore_stock(self, session, product_id: int, color: int, quantity: int) -> None:
        """취소된 수량만큼 재고를 되돌립니다. 판매 수량은 0 아래로 내려가지 않습니다."""
        session.execute(
            text(
                """
                UPDATE product_colors
                SET quantity = quantity + :quantity,
                    sale = CASE WHEN sale >= :quantity THEN sale - :quantity ELSE 0 END
                WHERE product_id = :product_id
                  AND color_value = :color
                """
            ),
            {"product_id": product_id, "color": color, "quantity": quantity},
        )
        session.execute(
            text(
                """
                UPDATE products
                SET stock_quantity = stock_quantity + :quantity,
                    sale_quantity = CASE WHEN sale_quantity >= :quantity
                                         THEN sale_quantity - :quantity ELSE 0 END
                WHERE product_id = :product_id
                """
            ),
            {"product_id": product_id, "quantity": quantity},
        )

    def _increase_coupon_usage(self, session, coupon_code: str) -> None:
        """사용 가능 수량이 남아 있는 경우에만 쿠폰 사용 수량을 1 늘립니다."""
        result = session.execute(
            text(
                """
                UPDATE coupons
                SET used_quantity = used_quantity + 1
                WHERE coupon_code = :coupon_code
                  AND used_quantity < coupon_quantity
                """
            ),
            {"coupon_code": coupon_code},
        )
        if result.rowcount == 0:
            raise CouponError(CouponError.EXHAUSTED)

    def _has_coupon_order(
        self,
        session,
        user_id: int,
        coupon_code: str,
        exclude_order_id: int | None = None,
    ) -> bool:
        """사용자가 해당 쿠폰으로 주문한 취소되지 않은 주문이 있는지 확인합니다."""
        conditions = [
            "user_id = :user_id",
            "coupon_code = :coupon_code",
            "order_status <> :cancel",
        ]
        params: dict[str, Any] = {
            "user_id": user_id,
            "coupon_code": coupon_code,
            "cancel": int(OrderStatus.CANCEL),
        }
        if exclude_order_id is not None:
            conditions.append("order_id <> :order_id")
            params["order_id"] = exclude_order_id
        row = session.execute(
            text(f"SELECT 1 FROM orders WHERE {' AND '.join(conditions)} LIMIT 1"),
            params,
        ).first()
        return row is not None

    def _decrease_coupon_usage(self, session, coupon_code: str, count: int) -> None:
        session.execute(
            text(
                """
                UPDATE coupons
                SET used_quantity = CASE WHEN used_quantity >= :count
                                         THEN used_quantity - :count ELSE 0 END
                WHERE coupon_code = :coupon_code
                """
            ),
            {"coupon_code": coupon_code, "count": count},
        )

    def _change_status(self, session, order_id: int, expected: OrderStatus, new_status: OrderStatus) -> bool:
        """읽었던 상태 그대로인 경우에만 주문 상태를 변경합니다."""
        result = session.execute(
            text(
                """
                UPDATE orders
                SET order_status = :new_status, updated_at = :updated_at
                WHERE order_id = :order_id
                  AND order_status = :expected
                """
            ),
            {
                "order_id": order_id,
                "expected": int(expected),
                "new_status": int(new_status),
                "updated_at": to_db_datetime(now_kst()),
            },
        )
        return result.rowcount > 0

    def _select_order(self, session, order_id: int) -> Order:
        row = session.execute(
            text(f"SELECT {_ORDER_COLUMNS} FROM orders o WHERE o.order_id = :order_id"),
            {"order_id": order_id},
        ).mappings().first()
        return _to_orders(session, [row])[0]

    # 쓰기

    async def place_order(self, order: dict, items: list[OrderItem]) -> Order:
        """
        주문을 저장하고 재고와 쿠폰 사용 수량을 반영합니다.

        주문 저장, 색상별 재고 차감, 쿠폰 사용 수량 증가는 하나의 트랜잭션에서
        실행되며 어느 단계에서든 실패하면 전체가 롤백됩니다.

        Args:
            order: 주문 정보 (orderCode, userId, shippingInfo, paymentMethod, 금액, couponCode)
            items: 주문 항목

        Returns:
            저장된 주문

        Raises:
            OrderError: 재고 부족 (INSUFFICIENT_STOCK)
            CouponError: 쿠폰 소진 (EXHAUSTED), 같은 사용자의 중복 사용 (ALREADY_USED)
            ConflictError: 주문 코드 중복
        """
        def _place():
            now = to_db_datetime(now_kst())
            with self._session_factory() as session:
                order_id = self._insert_order(session, order, items, now)
                for (product_id, color), quantity in sorted(_item_quantities(items).items()):
                    self._decrease_stock(session, product_id, color, quantity)
                if order.get("couponCode"):
                    self._increase_coupon_usage(session, order["couponCode"])
                    # 쿠폰 행 갱신 이후에 확인 (동시에 저장된 같은 사용자의 주문 포함)
                    if self._has_coupon_order(
                        session, order["userId"], order["couponCode"], exclude_order_id=order_id
                    ):
                        raise CouponError(CouponError.ALREADY_USED)
                session.commit()
                return self._select_order(session, order_id)

        return await self._run_in_thread(_place)

    async def cancel_order(self, order: Order) -> bool:
        """
        주문을 취소하고 재고와 쿠폰 사용 수량을 되돌립니다.

        주문 상태가 조회 시점의 상태에서 바뀌었다면 아무것도 변경하지 않고 False를 반환합니다.
        """
        def _cancel():
            with self._session_factory() as session:
                if not self._change_status(session, order.orderId, order.orderStatus, OrderStatus.CANCEL):
                    session.rollback()
                    return False
                for (product_id, color), quantity in sorted(_item_quantities(order.orderItems).items()):
                    self._restore_stock(session, product_id, color, quantity)
                if order.couponCode:
                    self._decrease_coupon_usage(session, order.couponCode, 1)
                session.commit()
                return True

        return await self._run_in_thread(_cancel)

    async def transition_orders(
        self,
        orders: list[Order],
        new_status: OrderStatus,
    ) -> tuple[list[str], list[str]]:
        """
        여러 주문의 상태를 변경합니다.

        각 주문은 조회 시점의 상태를 조건으로 변경하며, 그 사이 상태가 바뀐 주문은 건너뜁니다.
        취소로 변경되는 주문은 재고를 되돌리고, 쿠폰 사용 수량은 쿠폰 코드별로 합산하여 차감합니다.

        Returns:
            (변경된 주문 코드 목록, 상태가 바뀌어 건너뛴 주문 코드 목록) 튜플
        """
        def _transition():
            updated: list[str] = []
            skipped: list[str] = []
            coupon_counts: Counter = Counter()
            with self._session_factory() as session:
                for order in orders:
                    if not self._change_status(session, order.orderId, order.orderStatus, new_status):
                        skipped.append(order.orderCode)
                        continue
                    updated.append(order.orderCode)
                    if new_status == OrderStatus.CANCEL:
                        for (product_id, color), quantity in sorted(_item_quantities(order.orderItems).items()):
                            self._restore_stock(session, product_id, color, quantity)
                        if order.couponCode:
                            coupon_counts[order.couponCode] += 1
                for coupon_code, count in sorted(coupon_counts.items()):
                    self._decrease_coupon_usage(session, coupon_code, count)
                session.commit()
            return (updated, skipped)

        return await self._run_in_thread(_transition)

    # 조회

    async def exists_order_code(self, order_code: str) -> bool:
        def _query():
            with self._session_factory() as session:
                row = session.execute(
                    text("SELECT 1 FROM orders WHERE order_code = :order_code"),
                    {"order_code": order_code},
                ).first()
                return row is not None

        return await self._run_in_thread(_query)

    async def find_order_by_code(self, order_code: str, user_id: int | None = None) -> Order | None:
        """주문 코드로 주문을 조회합니다. user_id가 주어지면 본인 주문만 조회합니다."""
        def _query():
            conditions = ["o.order_code = :order_code"]
            params: dict[str, Any] = {"order_code": order_code}
            if user_id is not None:
                conditions.append("o.user_id = :user_id")
                params["user_id"] = user_id
            with self._session_factory() as session:
                row = session.execute(
                    text(f"SELECT {_ORDER_COLUMNS} FROM orders o WHERE {' AND '.join(conditions)}"),
                    params,
                ).mappings().first()
                if row is None:
                    return None
                return _to_orders(session, [row])[0]

        return await self._run_in_thread(_query)

    async def find_orders_by_codes(self, order_codes: list[str]) -> list[Order]:
        if not order_codes:
            return []

        def _query():
            with self._session_factory() as session:
                rows = session.execute(
                    expanding_text(
                        f"""
                        SELECT {_ORDER_COLUMNS}
                        FROM orders o
                        WHERE o.order_code IN :order_codes
                        ORDER BY o.order_id
                        """,
                        "order_codes",
                    ),
                    {"order_codes": list(order_codes)},
                ).mappings().all()
                return _to_orders(session, rows)

        return await self._run_in_thread(_query)

    async def find_orders_by_user(self, user_id: int) -> list[Order]:
        def _query():
            with self._session_factory() as session:
                rows = session.execute(
                    text(
                        f"""
                        SELECT {_ORDER_COLUMNS}
                        FROM orders o
                        WHERE o.user_id = :user_id
                        ORDER BY o.created_at DESC, o.order_id DESC
                        """
                    ),
                    {"user_id": user_id},
                ).mappings().all()
                return _to_orders(session, rows)

        return await self._run_in_thread(_query)

    async def find_orders(
        self,
        order_status: OrderStatus | None,
        payment_method: int | None,
        search: str | None,
        page: int,
        size: int,
    ) -> tuple[list[Order], int]:
        """
        관리자용 주문 목록을 최신순으로 조회합니다 (페이징 지원).

        Returns:
            (주문 목록, 전체 개수) 튜플
        """
        def _query():
            conditions = ["1 = 1"]
            params: dict[str, Any] = {"limit": size, "offset": (page - 1) * size}
            if order_status is not None:
                conditions.append("o.order_status = :order_status")
                params["order_status"] = int(order_status)
            if payment_method is not None:
                conditions.append("o.payment_method = :payment_method")
                params["payment_method"] = int(payment_method)
            if search:
                conditions.append("UPPER(o.order_code) LIKE :pattern")
                params["pattern"] = f"%{search.upper()}%"
            where = " AND ".join(conditions)

            with self._session_factory() as session:
                total = session.execute(
                    text(f"SELECT COUNT(*) FROM orders o WHERE {where}"),
                    params,
                ).scalar_one()
                rows = session.execute(
                    text(
                        f"""
                        SELECT {_ORDER_COLUMNS}
                        FROM orders o
                        WHERE {where}
                        ORDER BY o.created_at DESC, o.order_id DESC
                        LIMIT :limit OFFSET :offset
                        """
                    ),
                    params,
                ).mappings().all()
                return (_to_orders(session, rows), total)

        return await self._run_in_thread(_query)

    async def has_active_order_with_coupon(self, user_id: int, coupon_code: str) -> bool:
        """사용자가 해당 쿠폰으로 주문한 취소되지 않은 주문이 있는지 확인합니다."""
        def _query():
            with self._session_factory() as session:
                return self._has_coupon_order(session, user_id, coupon_code)

        return await self._run_in_thread(_query)

    # 대시보드

    async def count_orders_between(self, start: datetime, end: datetime) -> int:
        def _query():
            with self._session_factory() as session:
                return session.execute(
                    text("SELECT COUNT(*) FROM orders WHERE created_at >= :start AND created_at < :end"),
                    {"start": to_db_datetime(start), "end": to_db_datetime(end)},
                ).scalar_one()

        return await self._run_in_thread(_query)

    async def sum_revenue_between(self, start: datetime, end: datetime) -> float:
        """기간 내 취소되지 않은 주문의 결제 금액 합계"""
        def _query():
            with self._session_factory() as session:
                total = session.execute(
                    text(
                        """
                        SELECT COALESCE(SUM(total_price), 0)
                        FROM orders
                        WHERE created_at >= :start
                          AND created_at < :end
                          AND order_status <> :cancel
                        """
                    ),
                    {
                        "start": to_db_datetime(start),
                        "end": to_db_datetime(end),
                        "cancel": int(OrderStatus.CANCEL),
                    },
                ).scalar_one()
                return float(total or 0)

        return await self._run_in_thread(_query)

    async def count_orders_by_status(self, order_status: OrderStatus) -> int:
        def _query():
            with self._session_factory() as session:
                return session.execute(
                    text("SELECT COUNT(*) FROM orders WHERE order_status = :order_status"),
                    {"order_status": int(order_status)},
                ).scalar_one()

        return await self._run_in_thread(_query)

    async def find_sold_items(self) -> list[dict]:
        """
        취소되지 않은 주문의 판매 항목을 조회합니다.
        연도별/상품별 집계는 DB 방언에 의존하지 않도록 서비스에서 처리합니다.

        Returns:
            created_at, product_id, product_name, product_type, quantity, unit_price 딕셔너리 목록
        """
        def _query():
            with self._session_factory() as session:
                rows = session.execute(
                    text(
                        """
                        SELECT
                            o.created_at,
                            i.product_id,
                            p.product_name,
                            p.product_type,
                            i.quantity,
                            i.unit_price
                        FROM order_items i
                        INNER JOIN orders o ON i.order_id = o.order_id
                        LEFT JOIN products p ON i.product_id = p.product_id
                        WHERE o.order_status <> :cancel
                        """
                    ),
                    {"cancel": int(OrderStatus.CANCEL)},
                ).mappings().all()
                return [{**row, "created_at": ensure_kst(row["created_at"])} for row in rows]

        return await self._run_in_thread(_query)
