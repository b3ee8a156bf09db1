from datetime import datetime
from enum import IntEnum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class DiscountApplyType(IntEnum):
    ALL_PRODUCTS = 1
    SPECIFIC_PRODUCTS = 2


class DiscountStatus(IntEnum):
    SCHEDULED = 1
    ACTIVE = 2
    EXPIRED = 3
    CANCELLED = 4


class ApplySetting(IntEnum):
    # 기존 판매가와 관계없이 할인가로 덮어씀
    ALWAYS_APPLY = 1
    # 할인가가 기존 판매가보다 낮을 때만 적용
    APPLY_WITH_CONDITION = 2


class DiscountProgram(BaseModel):
    """
    할인 프로그램 엔티티.
    동시에 하나의 프로그램만 활성화되는 것을 전제로 합니다 (저장소에서 강제하지 않음).
    """

    programId: int = Field(..., description="프로그램 고유 식별자")
    programName: str = Field(..., description="프로그램명")
    discountPercentage: float = Field(..., ge=0, description="할인율 (%)")
    applyType: DiscountApplyType = Field(..., description="적용 대상")
    productIds: List[int] = Field(default_factory=list, description="적용 상품 ID (특정 상품 적용 시)")
    applySetting: ApplySetting = Field(..., description="적용 방식")
    status: DiscountStatus = Field(..., description="저장된 프로그램 상태")
    startDate: datetime = Field(..., description="시작 일시")
    endDate: datetime = Field(..., description="종료 일시")
    createdAt: datetime | None = Field(None, description="생성 일시")
    updatedAt: datetime | None = Field(None, description="수정 일시")

    model_config = ConfigDict(from_attributes=True)
