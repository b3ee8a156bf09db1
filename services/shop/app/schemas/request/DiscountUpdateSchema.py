from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from libs.schemas import ApplySetting, DiscountApplyType


class DiscountUpdateSchema(BaseModel):
    """할인 프로그램 수정 요청 스키마 (전달한 값만 수정)"""
    programId: int = Field(..., description="프로그램 ID")
    programName: str | None = Field(None, min_length=1, description="프로그램명")
    discountPercentage: float | None = Field(None, gt=0, le=100, description="할인율 (%)")
    startDate: datetime | None = Field(None, description="시작 일시")
    endDate: datetime | None = Field(None, description="종료 일시")
    applyType: DiscountApplyType | None = Field(None, description="적용 대상")
    productIds: List[int] | None = Field(None, description="적용 상품 ID")
    applySetting: ApplySetting | None = Field(None, description="적용 방식")


class DiscountCancelSchema(BaseModel):
    """할인 프로그램 취소 요청 스키마"""
    programId: int = Field(..., description="프로그램 ID")
