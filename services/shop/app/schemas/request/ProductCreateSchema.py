from typing import List

from pydantic import BaseModel, Field

from libs.schemas import (
    ProductBasicColor,
    ProductGender,
    ProductImage,
    ProductType,
    ProductVisibility,
    SportType,
)


class ProductColorSchema(BaseModel):
    """색상별 재고 입력"""
    id: int = Field(..., description="색상 항목 식별자")
    name: str = Field(..., min_length=1, description="색상명")
    value: ProductBasicColor = Field(..., description="기본 색상 값")
    hex: str = Field(..., min_length=1, description="HEX 색상 코드")
    quantity: int = Field(..., ge=0, description="판매 가능 재고")
    sale: int | None = Field(None, ge=0, description="누적 판매 수량 (수정 시 생략하면 기존 값 유지)")
    images: List[ProductImage] = Field(default_factory=list, description="색상별 이미지")


class ProductCreateSchema(BaseModel):
    """상품 생성 요청 스키마"""
    productName: str = Field(..., min_length=1, description="상품명")
    brandName: str | None = Field(None, description="브랜드명")
    description: str = Field(..., min_length=1, description="상품 요약 설명")
    productType: ProductType = Field(..., description="상품 종류")
    sportTypes: List[SportType] = Field(default_factory=list, description="관련 스포츠 종목")
    productGender: ProductGender = Field(..., description="대상 성별")
    productSizes: List[str] = Field(default_factory=list, description="사이즈 목록")
    productVisibility: ProductVisibility = Field(ProductVisibility.VISIBILITY, description="노출 여부")
    originalPrice: float = Field(..., ge=0, description="정가")
    salePrice: float | None = Field(None, ge=0, description="판매가")
    productColors: List[ProductColorSchema] = Field(..., min_length=1, description="색상별 재고")
    primaryImage: ProductImage | None = Field(None, description="대표 이미지")
    detailsDescription: str = Field("", description="상세 설명")
    detailsDescriptionId: str | None = Field(None, description="상세 설명 템플릿 ID")
