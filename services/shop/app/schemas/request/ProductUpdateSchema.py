from typing import List

from pydantic import BaseModel, Field

from libs.schemas import ProductGender, ProductImage, ProductType, ProductVisibility, SportType
from services.shop.app.schemas.request.ProductCreateSchema import ProductColorSchema


class ProductUpdateSchema(BaseModel):
    """상품 수정 요청 스키마 (전달한 값만 수정)"""
    productName: str | None = Field(None, min_length=1, description="상품명")
    brandName: str | None = Field(None, description="브랜드명")
    description: str | None = Field(None, min_length=1, description="상품 요약 설명")
    productType: ProductType | None = Field(None, description="상품 종류")
    sportTypes: List[SportType] | None = Field(None, description="관련 스포츠 종목")
    productGender: ProductGender | None = Field(None, description="대상 성별")
    productSizes: List[str] | None = Field(None, description="사이즈 목록")
    productVisibility: ProductVisibility | None = Field(None, description="노출 여부")
    originalPrice: float | None = Field(None, ge=0, description="정가")
    salePrice: float | None = Field(None, ge=0, description="판매가 (null이면 수동 할인 해제)")
    productColors: List[ProductColorSchema] | None = Field(None, min_length=1, description="색상별 재고")
    primaryImage: ProductImage | None = Field(None, description="대표 이미지")
    detailsDescription: str | None = Field(None, description="상세 설명")
    detailsDescriptionId: str | None = Field(None, description="상세 설명 템플릿 ID")
