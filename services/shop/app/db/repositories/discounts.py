"""
할인 프로그램 관련 Repository 구현
"""
from datetime import datetime

from sqlalchemy import text

from libs.common import ensure_kst, now_kst, to_db_datetime
from libs.schemas import DiscountApplyType, DiscountProgram, DiscountStatus
from services.shop.app.db.repositories.base import _SQLRepositoryBase, expanding_text

_PROGRAM_COLUMNS = """
    program_id,
    program_name,
    discount_percentage,
    apply_type,
    apply_setting,
    status,
    start_date,
    end_date,
    created_at,
    updated_at
"""


def _to_programs(session, rows) -> list[DiscountProgram]:
    rows = list(rows)
    product_ids: dict[int, list[int]] = {}
    if rows:
        links = session.execute(
            expanding_text(
                """
                SELECT program_id, product_id
                FROM discount_program_products
                WHERE program_id IN :program_ids
                ORDER BY product_id
                """,
                "program_ids",
            ),
            {"program_ids": [row["program_id"] for row in rows]},
        ).mappings().all()
        for link in links:
            product_ids.setdefault(link["program_id"], []).append(link["product_id"])

    return [
        DiscountProgram(
            programId=row["program_id"],
            programName=row["program_name"],
            discountPercentage=row["discount_percentage"],
            applyType=row["apply_type"],
            productIds=product_ids.get(row["program_id"], []),
            applySetting=row["apply_setting"],
            status=row["status"],
            startDate=ensure_kst(row["start_date"]),
            endDate=ensure_kst(row["end_date"]),
            createdAt=ensure_kst(row["created_at"]),
            updatedAt=ensure_kst(row["updated_at"]),
        )
        for row in rows
    ]


def _select_by_id(session, program_id: int) -> DiscountProgram | None:
    row = session.execute(
        text(f"SELECT {_PROGRAM_COLUMNS} FROM discount_programs WHERE program_id = :program_id"),
        {"program_id": program_id},
    ).mappings().first()
    if row is None:
        return None
    return _to_programs(session, [row])[0]


def _replace_products(session, program_id: int, apply_type: int, product_ids: list[int]) -> None:
    session.execute(
        text("DELETE FROM discount_program_products WHERE program_id = :program_id"),
        {"program_id": program_id},
    )
    # 전체 상품 적용 프로그램은 상품 목록을 저장하지 않음
    if apply_type != DiscountApplyType.SPECIFIC_PRODUCTS:
        return
    for product_id in sorted(set(product_ids)):
        session.execute(
            text(
                """
                INSERT INTO discount_program_products (program_id, product_id)
                VALUES (:program_id, :product_id)
                """
            ),
            {"program_id": program_id, "product_id": product_id},
        )


class SQLAlchemyDiscountRepository(_SQLRepositoryBase):
    """SQLAlchemy를 사용한 할인 프로그램 Repository 구현"""

    async def find_program_by_id(self, program_id: int) -> DiscountProgram | None:
        def _query():
            with self._session_factory() as session:
                return _select_by_id(session, program_id)

        return await self._run_in_thread(_query)

    async def find_active_program(self, now: datetime) -> DiscountProgram | None:
        """
        현재 적용 중인 할인 프로그램을 조회합니다.

        저장된 상태가 Scheduled/Active이면서 기간 안에 있는 프로그램 중
        가장 최근에 생성된 프로그램을 반환합니다.
        """
        def _query():
            db_now = to_db_datetime(now)
            with self._session_factory() as session:
                row = session.execute(
                    text(
                        f"""
                        SELECT {_PROGRAM_COLUMNS}
                        FROM discount_programs
                        WHERE status IN (:scheduled, :active)
                          AND start_date <= :now
                          AND end_date > :now
                        ORDER BY created_at DESC, program_id DESC
                        LIMIT 1
                        """
                    ),
                    {
                        "scheduled": int(DiscountStatus.SCHEDULED),
                        "active": int(DiscountStatus.ACTIVE),
                        "now": db_now,
                    },
                ).mappings().first()
                if row is None:
                    return None
                return _to_programs(session, [row])[0]

        return await self._run_in_thread(_query)

    async def find_next_scheduled_program(self, now: datetime) -> DiscountProgram | None:
        """아직 시작하지 않은 예정 프로그램 중 가장 먼저 시작하는 프로그램을 조회합니다."""
        def _query():
            with self._session_factory() as session:
                row = session.execute(
                    text(
                        f"""
                        SELECT {_PROGRAM_COLUMNS}
                        FROM discount_programs
                        WHERE status = :scheduled
                          AND start_date > :now
                        ORDER BY start_date ASC, program_id ASC
                        LIMIT 1
                        """
                    ),
                    {"scheduled": int(DiscountStatus.SCHEDULED), "now": to_db_datetime(now)},
                ).mappings().first()
                if row is None:
                    return None
                return _to_programs(session, [row])[0]

        return await self._run_in_thread(_query)

    async def create_program(self, data: dict) -> DiscountProgram:
        def _create():
            now = to_db_datetime(now_kst())
            with self._session_factory() as session:
                result = session.execute(
                    text(
                        """
                        INSERT INTO discount_programs (
                            program_name, discount_percentage, apply_type, apply_setting,
                            status, start_date, end_date, created_at, updated_at
                        ) VALUES (
                            :program_name, :discount_percentage, :apply_type, :apply_setting,
                            :status, :start_date, :end_date, :created_at, :updated_at
                        )
                        """
                    ),
                    {
                        "program_name": data["programName"],
                        "discount_percentage": data["discountPercentage"],
                        "apply_type": int(data["applyType"]),
                        "apply_setting": int(data["applySetting"]),
                        "status": int(data["status"]),
                        "start_date": to_db_datetime(data["startDate"]),
                        "end_date": to_db_datetime(data["endDate"]),
                        "created_at": now,
                        "updated_at": now,
                    },
                )
                program_id = result.lastrowid
                _replace_products(session, program_id, int(data["applyType"]), data.get("productIds", []))
                session.commit()
                return _select_by_id(session, program_id)

        return await self._run_in_thread(_create)

    async def update_program(self, program_id: int, data: dict) -> DiscountProgram | None:
        """프로그램을 수정합니다. `data`에는 수정 후의 전체 값이 들어 있어야 합니다."""
        def _update():
            with self._session_factory() as session:
                result = session.execute(
                    text(
                        """
                        UPDATE discount_programs
                        SET program_name = :program_name,
                            discount_percentage = :discount_percentage,
                            apply_type = :apply_type,
                            apply_setting = :apply_setting,
                            status = :status,
                            start_date = :start_date,
                            end_date = :end_date,
                            updated_at = :updated_at
                        WHERE program_id = :program_id
                        """
                    ),
                    {
                        "program_id": program_id,
                        "program_name": data["programName"],
                        "discount_percentage": data["discountPercentage"],
                        "apply_type": int(data["applyType"]),
                        "apply_setting": int(data["applySetting"]),
                        "status": int(data["status"]),
                        "start_date": to_db_datetime(data["startDate"]),
                        "end_date": to_db_datetime(data["endDate"]),
                        "updated_at": to_db_datetime(now_kst()),
                    },
                )
                if result.rowcount == 0:
                    return None
                _replace_products(session, program_id, int(data["applyType"]), data.get("productIds", []))
                session.commit()
                return _select_by_id(session, program_id)

        return await self._run_in_thread(_update)

    async def cancel_program(self, program_id: int) -> bool:
        """프로그램을 Cancelled로 변경합니다. 이미 취소된 경우 False를 반환합니다."""
        def _cancel():
            with self._session_factory() as session:
                result = session.execute(
                    text(
                        """
                        UPDATE discount_programs
                        SET status = :cancelled, updated_at = :updated_at
                        WHERE program_id = :program_id
                          AND status <> :cancelled
                        """
                    ),
                    {
                        "program_id": program_id,
                        "cancelled": int(DiscountStatus.CANCELLED),
                        "updated_at": to_db_datetime(now_kst()),
                    },
                )
                session.commit()
                return result.rowcount > 0

        return await self._run_in_thread(_cancel)

    async def expire_programs(self, now: datetime) -> int:
        """
        종료 일시가 지난 프로그램을 Expired로 변경합니다.
        취소된 프로그램은 변경하지 않습니다.

        Returns:
            변경된 프로그램 수
        """
        def _update():
            db_now = to_db_datetime(now)
            with self._session_factory() as session:
                result = session.execute(
                    text(
                        """
                        UPDATE discount_programs
                        SET status = :expired, updated_at = :updated_at
                        WHERE end_date <= :now
                          AND status IN (:scheduled, :active)
                        """
                    ),
                    {
                        "expired": int(DiscountStatus.EXPIRED),
                        "scheduled": int(DiscountStatus.SCHEDULED),
                        "active": int(DiscountStatus.ACTIVE),
                        "now": db_now,
                        "updated_at": db_now,
                    },
                )
                session.commit()
                return result.rowcount

        return await self._run_in_thread(_update)
