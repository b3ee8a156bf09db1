from services.shop.app.schemas.request.CouponCreateSchema import CouponCreateSchema
from services.shop.app.schemas.request.CouponUpdateSchema import CouponUpdateSchema
from services.shop.app.schemas.request.CouponValidateSchema import CouponValidateSchema
from services.shop.app.schemas.request.DiscountCreateSchema import DiscountCreateSchema
from services.shop.app.schemas.request.DiscountUpdateSchema import (
    DiscountCancelSchema,
    DiscountUpdateSchema,
)
from services.shop.app.schemas.request.FavoriteProductSchema import FavoriteProductSchema
from services.shop.app.schemas.request.OrderCreateSchema import OrderCreateSchema, OrderItemSchema
from services.shop.app.schemas.request.OrderStatusUpdateSchema import OrderStatusUpdateSchema
from services.shop.app.schemas.request.ProductCreateSchema import ProductColorSchema, ProductCreateSchema
from services.shop.app.schemas.request.ProductUpdateSchema import ProductUpdateSchema

__all__ = [
    "CouponCreateSchema",
    "CouponUpdateSchema",
    "CouponValidateSchema",
    "DiscountCancelSchema",
    "DiscountCreateSchema",
    "DiscountUpdateSchema",
    "FavoriteProductSchema",
    "OrderCreateSchema",
    "OrderItemSchema",
    "OrderStatusUpdateSchema",
    "ProductColorSchema",
    "ProductCreateSchema",
    "ProductUpdateSchema",
]
