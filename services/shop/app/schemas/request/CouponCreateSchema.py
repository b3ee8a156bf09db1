from datetime import datetime

from pydantic import BaseModel, Field

from libs.schemas import CouponValueType


class CouponCreateSchema(BaseModel):
    """쿠폰 생성 요청 스키마"""
    couponCode: str = Field(..., min_length=1, max_length=64, description="쿠폰 코드")
    discountType: CouponValueType = Field(..., description="할인 방식 (1: 정액, 2: 정률)")
    discountValue: float = Field(..., gt=0, description="할인 값")
    maxValue: float | None = Field(None, gt=0, description="정률 할인 시 최대 할인 금액")
    startDate: datetime = Field(..., description="사용 시작 일시")
    endDate: datetime = Field(..., description="사용 종료 일시")
    couponQuantity: int = Field(..., gt=0, description="총 사용 가능 횟수")

    def to_coupon_data(self) -> dict:
        return {
            "couponCode": self.couponCode,
            "valueType": self.discountType,
            "value": self.discountValue,
            "maxValue": self.maxValue,
            "startDate": self.startDate,
            "endDate": self.endDate,
            "couponQuantity": self.couponQuantity,
        }
