from datetime import datetime
from enum import IntEnum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field


class ProductType(IntEnum):
    SHOES = 1
    T_SHIRT = 2
    SHORTS = 3
    SKIRT = 4
    ACCESSORY = 5


class SportType(IntEnum):
    JOGGING = 1
    TENNIS = 2
    CYCLING = 3
    FOOTBALL = 4
    TABLE_TENNIS = 5
    BADMINTON = 6
    BASKETBALL = 7
    VOLLEYBALL = 8
    SWIMMING = 9
    CAMPING = 10
    FITNESS = 11


class ProductGender(IntEnum):
    UNISEX = 1
    MALE = 2
    FEMALE = 3


class ProductVisibility(IntEnum):
    HIDDEN = 1
    VISIBILITY = 2


class ProductBasicColor(IntEnum):
    YELLOW = 1
    ORANGE = 2
    RED = 3
    PINK = 4
    PURPLE = 5
    BLUE = 6
    GREEN = 7
    BLACK = 8
    WHITE = 9


class ProductPriceRange(IntEnum):
    """목록 조회 시 사용하는 가격대 필터 값"""
    LESS_THAN_500K = 1
    FROM_500K_TO_1M = 2
    FROM_1M_TO_2M = 3
    FROM_2M_TO_5M = 4
    MORE_THAN_5M = 5


class ProductImage(BaseModel):
    """상품 이미지 파일 정보"""

    uid: str = Field(..., description="이미지 식별자")
    name: str = Field(..., description="파일명")
    url: str | None = Field(None, description="이미지 URL")
    type: str | None = Field(None, description="MIME 타입")
    cloudinaryData: dict[str, Any] | None = Field(None, description="업로드 메타데이터")


class ProductColor(BaseModel):
    """
    상품의 색상별 재고 단위.
    `quantity`는 판매 가능 재고, `sale`은 해당 색상의 누적 판매 수량입니다.
    """

    id: int = Field(..., description="색상 항목 식별자")
    name: str = Field(..., description="색상명")
    value: ProductBasicColor = Field(..., description="기본 색상 값")
    hex: str = Field(..., description="HEX 색상 코드")
    quantity: int = Field(..., ge=0, description="판매 가능 재고")
    sale: int = Field(0, description="누적 판매 수량")
    images: List[ProductImage] = Field(default_factory=list, description="색상별 이미지")

    model_config = ConfigDict(from_attributes=True)


class Product(BaseModel):
    """
    상품 엔티티.
    `stockQuantity`는 항상 색상별 `quantity`의 합과 같아야 합니다.
    """

    productId: int = Field(..., description="상품 고유 식별자")
    productName: str = Field(..., description="상품명")
    brandName: str | None = Field(None, description="브랜드명")
    description: str = Field(..., description="상품 요약 설명")
    productType: ProductType = Field(..., description="상품 종류")
    sportTypes: List[SportType] = Field(default_factory=list, description="관련 스포츠 종목")
    productGender: ProductGender = Field(..., description="대상 성별")
    productSizes: List[str] = Field(default_factory=list, description="사이즈 목록")
    productVisibility: ProductVisibility = Field(ProductVisibility.VISIBILITY, description="노출 여부")
    originalPrice: float = Field(..., ge=0, description="정가")
    salePrice: float | None = Field(None, ge=0, description="판매가 (없으면 수동 할인 없음)")
    productColors: List[ProductColor] = Field(default_factory=list, description="색상별 재고")
    primaryImage: ProductImage | None = Field(None, description="대표 이미지")
    stockQuantity: int = Field(0, description="전체 재고 (색상별 재고 합계)")
    saleQuantity: int = Field(0, description="누적 판매 수량")
    detailsDescription: str = Field("", description="상세 설명")
    detailsDescriptionId: str | None = Field(None, description="상세 설명 템플릿 ID")
    createdAt: datetime | None = Field(None, description="생성 일시")
    updatedAt: datetime | None = Field(None, description="수정 일시")

    model_config = ConfigDict(from_attributes=True)

    def find_color(self, color_value: int) -> ProductColor | None:
        """색상 값에 해당하는 재고 항목을 찾습니다."""
        for color in self.productColors:
            if color.value == color_value:
                return color
        return None

    @property
    def effective_price(self) -> float:
        """구매자에게 보여지는 가격"""
        return self.salePrice if self.salePrice is not None else self.originalPrice
