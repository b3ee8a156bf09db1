from typing import List

from pydantic import BaseModel, Field

from libs.schemas import OrderPayment, ProductBasicColor, ShippingInfo


class OrderItemSchema(BaseModel):
    """주문 항목 입력"""
    productId: int = Field(..., description="상품 ID")
    selectedColor: ProductBasicColor = Field(..., description="선택한 색상")
    selectedSize: str | None = Field(None, description="선택한 사이즈")
    quantity: int = Field(..., gt=0, description="수량")
    unitPrice: float = Field(..., ge=0, description="단가")


class OrderCreateSchema(BaseModel):
    """주문 생성 요청 스키마"""
    orderItems: List[OrderItemSchema] = Field(..., description="주문 항목")
    shippingInfo: ShippingInfo = Field(..., description="배송 정보")
    paymentMethod: OrderPayment = Field(..., description="결제 방식")
    productsFees: float = Field(..., ge=0, description="상품 금액 합계")
    shippingFees: float = Field(0, ge=0, description="배송비")
    discountValue: float | None = Field(None, ge=0, description="할인 금액")
    totalPrice: float = Field(..., ge=0, description="최종 결제 금액")
    couponCode: str | None = Field(None, description="쿠폰 코드")
