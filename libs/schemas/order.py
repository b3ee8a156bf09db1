from datetime import datetime
from enum import IntEnum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from libs.schemas.product import ProductBasicColor


class OrderStatus(IntEnum):
    WAITING_CONFIRM = 1
    PROCESSING = 2
    DELIVERED = 3
    CANCEL = 4


class OrderPayment(IntEnum):
    COD = 1
    TRANSFER = 2


class ShippingInfo(BaseModel):
    """배송 정보"""

    receiver: str = Field(..., min_length=1, description="수령인")
    emailReceived: str = Field(..., min_length=1, description="수령인 이메일")
    phoneNumberReceived: str = Field(..., min_length=1, description="수령인 연락처")
    address: str = Field(..., min_length=1, description="배송 주소")
    note: str | None = Field(None, description="배송 메모")


class OrderItem(BaseModel):
    """
    주문 항목. 단가는 주문 시점의 값으로 고정됩니다.
    """

    productId: int = Field(..., description="상품 ID")
    selectedColor: ProductBasicColor = Field(..., description="선택한 색상")
    selectedSize: str | None = Field(None, description="선택한 사이즈")
    quantity: int = Field(..., gt=0, description="수량")
    unitPrice: float = Field(..., ge=0, description="주문 시점 단가")
    productName: str | None = Field(None, description="상품명 (조회 시 채움)")

    model_config = ConfigDict(from_attributes=True)


class Order(BaseModel):
    """
    주문 엔티티 정의.
    """

    orderId: int = Field(..., description="주문 고유 식별자")
    orderCode: str = Field(..., description="주문 코드 (DH_XXXXXXXX)")
    userId: int = Field(..., description="주문자 ID")
    orderItems: List[OrderItem] = Field(default_factory=list, description="주문 항목")
    shippingInfo: ShippingInfo = Field(..., description="배송 정보")
    paymentMethod: OrderPayment = Field(..., description="결제 방식")
    productsFees: float = Field(..., description="상품 금액 합계")
    shippingFees: float = Field(..., description="배송비")
    discountValue: float | None = Field(None, description="할인 금액")
    totalPrice: float = Field(..., description="최종 결제 금액")
    couponCode: str | None = Field(None, description="적용한 쿠폰 코드")
    orderStatus: OrderStatus = Field(..., description="주문 상태")
    createdAt: datetime | None = Field(None, description="주문 일시")
    updatedAt: datetime | None = Field(None, description="수정 일시")

    model_config = ConfigDict(from_attributes=True)
