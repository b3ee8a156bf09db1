from typing import List

from pydantic import BaseModel, Field


class RejectedOrder(BaseModel):
    """상태를 변경하지 못한 주문"""
    orderCode: str = Field(..., description="주문 코드")
    currentStatus: int | None = Field(None, description="현재 주문 상태 (주문이 없으면 null)")


class OrderStatusUpdateResponse(BaseModel):
    """주문 상태 일괄 변경 응답"""
    updatedCount: int = Field(..., description="변경된 주문 수")
    rejected: List[RejectedOrder] = Field(default_factory=list, description="변경하지 못한 주문")
