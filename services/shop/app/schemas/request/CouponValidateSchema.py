from pydantic import BaseModel, Field


class CouponValidateSchema(BaseModel):
    """쿠폰 사용 가능 여부 확인 요청 스키마"""
    couponCode: str = Field(..., min_length=1, description="쿠폰 코드")
    userId: int | None = Field(None, description="사용자 ID (있으면 사용 이력 확인)")
    orderAmount: float | None = Field(None, ge=0, description="주문 금액 (있으면 할인 금액 계산)")
