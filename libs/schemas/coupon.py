from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field


class CouponValueType(IntEnum):
    FIXED_AMOUNT = 1
    PERCENT = 2


class CouponStatus(IntEnum):
    """
    쿠폰 상태 (조회용 캐시 값).
    실제 판단은 항상 기간과 사용 수량으로 다시 계산합니다.
    """
    ACTIVE = 1
    EXPIRED = 2
    SCHEDULE = 3
    OUT_OF_USED = 4


class Coupon(BaseModel):
    """
    쿠폰 엔티티 정의.
    """

    couponId: int = Field(..., description="쿠폰 고유 식별자")
    couponCode: str = Field(..., description="쿠폰 코드 (고유)")
    valueType: CouponValueType = Field(..., description="할인 방식 (정액/정률)")
    value: float = Field(..., description="할인 값")
    maxValue: float | None = Field(None, description="정률 할인 시 최대 할인 금액")
    couponStatus: CouponStatus = Field(..., description="저장된 쿠폰 상태")
    startDate: datetime = Field(..., description="사용 시작 일시")
    endDate: datetime = Field(..., description="사용 종료 일시")
    couponQuantity: int = Field(..., description="총 사용 가능 횟수")
    usedQuantity: int = Field(0, description="사용된 횟수")
    createdAt: datetime | None = Field(None, description="생성 일시")
    updatedAt: datetime | None = Field(None, description="수정 일시")

    model_config = ConfigDict(from_attributes=True)
