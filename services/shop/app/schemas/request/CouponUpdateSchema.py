from datetime import datetime

from pydantic import BaseModel, Field

from libs.schemas import CouponValueType


class CouponUpdateSchema(BaseModel):
    """쿠폰 수정 요청 스키마 (전달한 값만 수정)"""
    couponCode: str = Field(..., min_length=1, description="수정할 쿠폰 코드")
    discountType: CouponValueType | None = Field(None, description="할인 방식")
    discountValue: float | None = Field(None, gt=0, description="할인 값")
    maxValue: float | None = Field(None, gt=0, description="최대 할인 금액")
    startDate: datetime | None = Field(None, description="사용 시작 일시")
    endDate: datetime | None = Field(None, description="사용 종료 일시")
    couponQuantity: int | None = Field(None, gt=0, description="총 사용 가능 횟수")

    def to_changes(self) -> dict:
        return {
            "valueType": self.discountType,
            "value": self.discountValue,
            "maxValue": self.maxValue,
            "startDate": self.startDate,
            "endDate": self.endDate,
            "couponQuantity": self.couponQuantity,
        }
