from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from libs.schemas import ApplySetting, DiscountApplyType


class DiscountCreateSchema(BaseModel):
    """할인 프로그램 생성 요청 스키마"""
    programName: str = Field(..., min_length=1, description="프로그램명")
    discountPercentage: float = Field(..., gt=0, le=100, description="할인율 (%)")
    startDate: datetime = Field(..., description="시작 일시")
    endDate: datetime = Field(..., description="종료 일시")
    applyType: DiscountApplyType = Field(..., description="적용 대상")
    productIds: List[int] = Field(default_factory=list, description="적용 상품 ID")
    applySetting: ApplySetting = Field(..., description="적용 방식")
