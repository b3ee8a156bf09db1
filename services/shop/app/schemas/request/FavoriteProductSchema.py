from pydantic import BaseModel, Field


class FavoriteProductSchema(BaseModel):
    """찜 추가/삭제 요청 스키마"""
    productId: int = Field(..., description="상품 ID")
