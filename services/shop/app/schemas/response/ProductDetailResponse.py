from typing import List

from pydantic import BaseModel, Field

from libs.schemas import DiscountProgram, Product


class ProductDetailResponse(BaseModel):
    """상품 상세 응답"""
    product: Product = Field(..., description="상품 정보 (할인가 반영)")
    relatedProducts: List[Product] = Field(default_factory=list, description="같은 스포츠 종목의 관련 상품")


class TopSaleResponse(BaseModel):
    """할인 프로그램 대상 상품 응답"""
    topSaleProducts: List[Product] = Field(default_factory=list, description="할인 상품 (최대 6개)")
    currentProgramInfo: DiscountProgram | None = Field(None, description="현재 할인 프로그램")
