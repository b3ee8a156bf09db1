from typing import List

from pydantic import BaseModel, Field


class OrderStatusUpdateSchema(BaseModel):
    """주문 상태 일괄 변경 요청 스키마"""
    orderCodes: List[str] = Field(..., description="변경할 주문 코드 목록")
    newStatus: int = Field(..., description="변경할 주문 상태")
