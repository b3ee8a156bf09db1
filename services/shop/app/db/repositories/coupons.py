"""
쿠폰 관련 Repository 구현
"""
from datetime import datetime
from typing import Any

from sqlalchemy import text

from libs.common import ensure_kst, now_kst, to_db_datetime
from libs.schemas import Coupon, CouponStatus
from services.shop.app.db.repositories.base import _SQLRepositoryBase

_COUPON_COLUMNS = """
    coupon_id,
    coupon_code,
    value_type,
    value,
    max_value,
    coupon_status,
    start_date,
    end_date,
    coupon_quantity,
    used_quantity,
    created_at,
    updated_at
"""


def _to_coupon(row) -> Coupon:
    return Coupon(
        couponId=row["coupon_id"],
        couponCode=row["coupon_code"],
        valueType=row["value_type"],
        value=row["value"],
        maxValue=row["max_value"],
        couponStatus=row["coupon_status"],
        startDate=ensure_kst(row["start_date"]),
        endDate=ensure_kst(row["end_date"]),
        couponQuantity=row["coupon_quantity"],
        usedQuantity=row["used_quantity"],
        createdAt=ensure_kst(row["created_at"]),
        updatedAt=ensure_kst(row["updated_at"]),
    )


def _select_by_code(session, coupon_code: str):
    return session.execute(
        text(f"SELECT {_COUPON_COLUMNS} FROM coupons WHERE coupon_code = :coupon_code"),
        {"coupon_code": coupon_code},
    ).mappings().first()


class SQLAlchemyCouponRepository(_SQLRepositoryBase):
    """SQLAlchemy를 사용한 쿠폰 Repository 구현"""

    async def find_coupon_by_code(self, coupon_code: str) -> Coupon | None:
        def _query():
            with self._session_factory() as session:
                row = _select_by_code(session, coupon_code)
                return _to_coupon(row) if row is not None else None

        return await self._run_in_thread(_query)

    async def find_coupons(
        self,
        search: str | None,
        coupon_status: CouponStatus | None,
        page: int,
        size: int,
    ) -> tuple[list[Coupon], int]:
        """
        쿠폰 목록을 최신순으로 조회합니다 (페이징 지원).

        Args:
            search: 쿠폰 코드 검색어
            coupon_status: 저장된 상태 필터
            page: 페이지 번호 (1부터 시작)
            size: 페이지 크기

        Returns:
            (쿠폰 목록, 전체 개수) 튜플
        """
        def _query():
            conditions = ["1 = 1"]
            params: dict[str, Any] = {"limit": size, "offset": (page - 1) * size}
            if search:
                conditions.append("LOWER(coupon_code) LIKE :pattern")
                params["pattern"] = f"%{search.lower()}%"
            if coupon_status is not None:
                conditions.append("coupon_status = :coupon_status")
                params["coupon_status"] = int(coupon_status)
            where = " AND ".join(conditions)

            with self._session_factory() as session:
                total = session.execute(
                    text(f"SELECT COUNT(*) FROM coupons WHERE {where}"),
                    params,
                ).scalar_one()
                rows = session.execute(
                    text(
                        f"""
                        SELECT {_COUPON_COLUMNS}
                        FROM coupons
                        WHERE {where}
                        ORDER BY created_at DESC, coupon_id DESC
                        LIMIT :limit OFFSET :offset
                        """
                    ),
                    params,
                ).mappings().all()
                return ([_to_coupon(row) for row in rows], total)

        return await self._run_in_thread(_query)

    async def create_coupon(self, data: dict) -> Coupon | None:
        """
        쿠폰을 생성합니다.

        Returns:
            생성된 쿠폰. 같은 코드의 쿠폰이 이미 있으면 None
        """
        def _create():
            now = to_db_datetime(now_kst())
            with self._session_factory() as session:
                if _select_by_code(session, data["couponCode"]) is not None:
                    return None
                session.execute(
                    text(
                        """
                        INSERT INTO coupons (
                            coupon_code, value_type, value, max_value, coupon_status,
                            start_date, end_date, coupon_quantity, used_quantity,
                            created_at, updated_at
                        ) VALUES (
                            :coupon_code, :value_type, :value, :max_value, :coupon_status,
                            :start_date, :end_date, :coupon_quantity, 0,
                            :created_at, :updated_at
                        )
                        """
                    ),
                    {
                        "coupon_code": data["couponCode"],
                        "value_type": int(data["valueType"]),
                        "value": data["value"],
                        "max_value": data.get("maxValue"),
                        "coupon_status": int(data["couponStatus"]),
                        "start_date": to_db_datetime(data["startDate"]),
                        "end_date": to_db_datetime(data["endDate"]),
                        "coupon_quantity": data["couponQuantity"],
                        "created_at": now,
                        "updated_at": now,
                    },
                )
                session.commit()
                return _to_coupon(_select_by_code(session, data["couponCode"]))

        return await self._run_in_thread(_create)

    async def update_coupon(self, coupon_code: str, data: dict) -> Coupon | None:
        """
        쿠폰을 수정합니다. `data`에는 수정 후의 전체 값이 들어 있어야 합니다.
        사용 수량은 주문 처리에서만 변경되므로 여기서는 건드리지 않습니다.
        """
        def _update():
            with self._session_factory() as session:
                result = session.execute(
                    text(
                        """
                        UPDATE coupons
                        SET value_type = :value_type,
                            value = :value,
                            max_value = :max_value,
                            coupon_status = :coupon_status,
                            start_date = :start_date,
                            end_date = :end_date,
                            coupon_quantity = :coupon_quantity,
                            updated_at = :updated_at
                        WHERE coupon_code = :coupon_code
                        """
                    ),
                    {
                        "coupon_code": coupon_code,
                        "value_type": int(data["valueType"]),
                        "value": data["value"],
                        "max_value": data.get("maxValue"),
                        "coupon_status": int(data["couponStatus"]),
                        "start_date": to_db_datetime(data["startDate"]),
                        "end_date": to_db_datetime(data["endDate"]),
                        "coupon_quantity": data["couponQuantity"],
                        "updated_at": to_db_datetime(now_kst()),
                    },
                )
                if result.rowcount == 0:
                    return None
                session.commit()
                return _to_coupon(_select_by_code(session, coupon_code))

        return await self._run_in_thread(_update)

    async def delete_coupon(self, coupon_code: str) -> bool:
        def _delete():
            with self._session_factory() as session:
                result = session.execute(
                    text("DELETE FROM coupons WHERE coupon_code = :coupon_code"),
                    {"coupon_code": coupon_code},
                )
                session.commit()
                return result.rowcount > 0

        return await self._run_in_thread(_delete)

    async def mark_out_of_used(self, coupon_code: str) -> bool:
        """소진된 쿠폰의 저장 상태를 OutOfUsed로 변경합니다."""
        def _update():
            with self._session_factory() as session:
                result = session.execute(
                    text(
                        """
                        UPDATE coupons
                        SET coupon_status = :out_of_used, updated_at = :updated_at
                        WHERE coupon_code = :coupon_code
                          AND coupon_status <> :out_of_used
                          AND used_quantity >= coupon_quantity
                        """
                    ),
                    {
                        "coupon_code": coupon_code,
                        "out_of_used": int(CouponStatus.OUT_OF_USED),
                        "updated_at": to_db_datetime(now_kst()),
                    },
                )
                session.commit()
                return result.rowcount > 0

        return await self._run_in_thread(_update)

    async def expire_coupons(self, now: datetime) -> int:
        """
        종료 일시가 지난 쿠폰을 Expired로 변경합니다.

        Returns:
            변경된 쿠폰 수
        """
        def _update():
            db_now = to_db_datetime(now)
            with self._session_factory() as session:
                result = session.execute(
                    text(
                        """
                        UPDATE coupons
                        SET coupon_status = :expired, updated_at = :updated_at
                        WHERE end_date <= :now
                          AND coupon_status <> :expired
                        """
                    ),
                    {"expired": int(CouponStatus.EXPIRED), "now": db_now, "updated_at": db_now},
                )
                session.commit()
                return result.rowcount

        return await self._run_in_thread(_update)
