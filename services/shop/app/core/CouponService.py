"""
쿠폰 관련 비즈니스 로직을 처리하는 서비스
"""
import logging
from datetime import datetime
from typing import Protocol

from fastapi_pagination import Page

from libs.common import ConflictError, NotFoundError, ShopError, ValidationError, ensure_kst, now_kst
from libs.schemas import Coupon, CouponStatus, CouponValueType

logger = logging.getLogger(__name__)


class CouponError(ShopError):
    """쿠폰 사용 검증 실패"""

    NOT_FOUND = "ERR-COUPON-NOT-FOUND"
    EXPIRED = "ERR-COUPON-EXPIRED"
    EXHAUSTED = "ERR-COUPON-EXHAUSTED"
    ALREADY_USED = "ERR-COUPON-ALREADY-USED"

    _STATUS_CODES = {
        NOT_FOUND: 404,
        EXPIRED: 400,
        EXHAUSTED: 409,
        ALREADY_USED: 409,
    }
    _MESSAGES = {
        NOT_FOUND: "존재하지 않는 쿠폰 코드입니다.",
        EXPIRED: "사용 기간이 만료된 쿠폰입니다.",
        EXHAUSTED: "사용 가능 수량이 모두 소진된 쿠폰입니다.",
        ALREADY_USED: "이미 사용한 쿠폰입니다.",
    }

    def __init__(self, reason: str, message: str | None = None):
        super().__init__(message or self._MESSAGES[reason], code=reason)
        self.reason = reason
        self.status_code = self._STATUS_CODES[reason]


def derive_coupon_status(coupon: Coupon, now: datetime) -> CouponStatus:
    """
    기간과 사용 수량으로 쿠폰 상태를 계산합니다.
    저장된 상태는 Expired인 경우에만 반영합니다.
    """
    if coupon.couponStatus == CouponStatus.EXPIRED or now > ensure_kst(coupon.endDate):
        return CouponStatus.EXPIRED
    if now < ensure_kst(coupon.startDate):
        return CouponStatus.SCHEDULE
    if coupon.usedQuantity >= coupon.couponQuantity:
        return CouponStatus.OUT_OF_USED
    return CouponStatus.ACTIVE


def calculate_discount(coupon: Coupon, amount: float) -> float:
    """
    주문 금액에 대한 쿠폰 할인 금액을 계산합니다.

    정액 할인은 주문 금액을 넘지 않고, 정률 할인은 maxValue가 있으면 그 값으로 제한합니다.
    """
    if amount <= 0:
        return 0.0
    if coupon.valueType == CouponValueType.FIXED_AMOUNT:
        return float(min(coupon.value, amount))
    discount = amount * coupon.value / 100
    if coupon.maxValue is not None:
        discount = min(discount, coupon.maxValue)
    return float(discount)


def _initial_status(start_date: datetime, end_date: datetime, now: datetime) -> CouponStatus:
    if ensure_kst(end_date) < now:
        return CouponStatus.EXPIRED
    if ensure_kst(start_date) > now:
        return CouponStatus.SCHEDULE
    return CouponStatus.ACTIVE


def _validate_values(data: dict) -> None:
    if ensure_kst(data["endDate"]) <= ensure_kst(data["startDate"]):
        raise ValidationError("종료 일시는 시작 일시 이후여야 합니다.")
    if data["valueType"] == CouponValueType.PERCENT and data["value"] > 100:
        raise ValidationError("정률 할인은 100%를 넘을 수 없습니다.")


class CouponRepositoryPort(Protocol):
    """쿠폰 Repository 인터페이스"""

    async def find_coupon_by_code(self, coupon_code: str) -> Coupon | None:
        ...

    async def find_coupons(
        self,
        search: str | None,
        coupon_status: CouponStatus | None,
        page: int,
        size: int,
    ) -> tuple[list[Coupon], int]:
        ...

    async def create_coupon(self, data: dict) -> Coupon | None:
        ...

    async def update_coupon(self, coupon_code: str, data: dict) -> Coupon | None:
        ...

    async def delete_coupon(self, coupon_code: str) -> bool:
        ...

    async def mark_out_of_used(self, coupon_code: str) -> bool:
        ...


class CouponUsagePort(Protocol):
    """쿠폰 사용 이력 조회 인터페이스 (주문 저장소)"""

    async def has_active_order_with_coupon(self, user_id: int, coupon_code: str) -> bool:
        ...


class CouponService:
    """쿠폰 서비스"""

    def __init__(self, coupon_repository: CouponRepositoryPort, usage_repository: CouponUsagePort):
        self.coupon_repository = coupon_repository
        self.usage_repository = usage_repository

    async def validate_and_apply(
        self,
        coupon_code: str,
        user_id: int | None,
        now: datetime | None = None,
    ) -> Coupon:
        """
        쿠폰을 사용할 수 있는지 검증합니다.

        Args:
            coupon_code: 쿠폰 코드
            user_id: 사용자 ID (없으면 사용 이력 확인 생략)
            now: 기준 시각 (기본값: 현재 KST)

        Returns:
            사용 가능한 쿠폰

        Raises:
            CouponError: 존재하지 않음, 기간 외, 소진, 이미 사용한 경우
        """
        now = ensure_kst(now) if now is not None else now_kst()
        coupon = await self.coupon_repository.find_coupon_by_code(coupon_code)
        if coupon is None:
            raise CouponError(CouponError.NOT_FOUND)

        if coupon.couponStatus == CouponStatus.EXPIRED:
            raise CouponError(CouponError.EXPIRED)
        if now < ensure_kst(coupon.startDate):
            raise CouponError(CouponError.EXPIRED, "아직 사용 기간이 시작되지 않은 쿠폰입니다.")
        if now > ensure_kst(coupon.endDate):
            raise CouponError(CouponError.EXPIRED)

        if coupon.usedQuantity >= coupon.couponQuantity:
            if coupon.couponStatus != CouponStatus.OUT_OF_USED:
                await self.coupon_repository.mark_out_of_used(coupon_code)
                logger.info("Coupon marked out of used: code=%s", coupon_code)
            raise CouponError(CouponError.EXHAUSTED)

        if user_id is not None and await self.usage_repository.has_active_order_with_coupon(user_id, coupon_code):
            raise CouponError(CouponError.ALREADY_USED)

        return coupon

    async def create_coupon(self, data: dict) -> Coupon:
        """
        쿠폰을 생성합니다. 시작 일시가 미래이면 Schedule 상태로 생성됩니다.

        Raises:
            ValidationError: 기간 또는 할인 값이 잘못된 경우
            ConflictError: 같은 코드의 쿠폰이 이미 있는 경우
        """
        _validate_values(data)
        data = {**data, "couponStatus": _initial_status(data["startDate"], data["endDate"], now_kst())}
        coupon = await self.coupon_repository.create_coupon(data)
        if coupon is None:
            raise ConflictError("이미 존재하는 쿠폰 코드입니다.", code="ERR-COUPON-DUPLICATE")
        logger.info("Coupon created: code=%s status=%s", coupon.couponCode, coupon.couponStatus.name)
        return coupon

    async def update_coupon(self, coupon_code: str, changes: dict) -> Coupon:
        """전달된 값만 수정하고 상태를 다시 계산합니다."""
        coupon = await self.coupon_repository.find_coupon_by_code(coupon_code)
        if coupon is None:
            raise NotFoundError("존재하지 않는 쿠폰 코드입니다.", code=CouponError.NOT_FOUND)

        data = coupon.model_dump()
        data.update({key: value for key, value in changes.items() if value is not None})
        _validate_values(data)
        data["couponStatus"] = _initial_status(data["startDate"], data["endDate"], now_kst())

        updated = await self.coupon_repository.update_coupon(coupon_code, data)
        if updated is None:
            raise NotFoundError("존재하지 않는 쿠폰 코드입니다.", code=CouponError.NOT_FOUND)
        logger.info("Coupon updated: code=%s status=%s", coupon_code, updated.couponStatus.name)
        return updated

    async def delete_coupon(self, coupon_code: str) -> None:
        if not await self.coupon_repository.delete_coupon(coupon_code):
            raise NotFoundError("존재하지 않는 쿠폰 코드입니다.", code=CouponError.NOT_FOUND)
        logger.info("Coupon deleted: code=%s", coupon_code)

    async def get_coupons(
        self,
        search: str | None,
        coupon_status: CouponStatus | None,
        page: int,
        size: int,
    ) -> Page[Coupon]:
        """
        쿠폰 목록을 조회합니다. 응답의 상태는 현재 시각 기준으로 다시 계산합니다.

        Args:
            search: 쿠폰 코드 검색어
            coupon_status: 상태 필터
            page: 페이지 번호 (1부터 시작)
            size: 페이지 크기

        Returns:
            페이징된 쿠폰 목록
        """
        coupons, total = await self.coupon_repository.find_coupons(search, coupon_status, page, size)
        now = now_kst()
        items = [
            coupon.model_copy(update={"couponStatus": derive_coupon_status(coupon, now)})
            for coupon in coupons
        ]
        return Page(
            items=items,
            total=total,
            page=page,
            size=size,
            pages=(total + size - 1) // size if size > 0 else 0,
        )
