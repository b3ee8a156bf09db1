from pydantic import BaseModel, Field

from libs.schemas import Coupon


class CouponValidateResponse(BaseModel):
    """쿠폰 사용 가능 여부 확인 응답"""
    coupon: Coupon = Field(..., description="쿠폰 정보")
    discountAmount: float | None = Field(None, description="주문 금액 기준 할인 금액")
