from libs.schemas.coupon import Coupon, CouponStatus, CouponValueType
from libs.schemas.discount import ApplySetting, DiscountApplyType, DiscountProgram, DiscountStatus
from libs.schemas.order import Order, OrderItem, OrderPayment, OrderStatus, ShippingInfo
from libs.schemas.product import (
    Product,
    ProductBasicColor,
    ProductColor,
    ProductGender,
    ProductImage,
    ProductPriceRange,
    ProductType,
    ProductVisibility,
    SportType,
)

__all__ = [
    "Coupon",
    "CouponStatus",
    "CouponValueType",
    "ApplySetting",
    "DiscountApplyType",
    "DiscountProgram",
    "DiscountStatus",
    "Order",
    "OrderItem",
    "OrderPayment",
    "OrderStatus",
    "ShippingInfo",
    "Product",
    "ProductBasicColor",
    "ProductColor",
    "ProductGender",
    "ProductImage",
    "ProductPriceRange",
    "ProductType",
    "ProductVisibility",
    "SportType",
]
