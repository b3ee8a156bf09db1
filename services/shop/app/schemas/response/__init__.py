from services.shop.app.schemas.response.CouponValidateResponse import CouponValidateResponse
from services.shop.app.schemas.response.DashboardStatsResponse import (
    CountChange,
    DashboardStatsResponse,
    PendingOrders,
    ProductTypeRevenue,
    RevenueChange,
    TopSellingProduct,
    YearlyProductTypeRevenue,
)
from services.shop.app.schemas.response.OrderStatusUpdateResponse import (
    OrderStatusUpdateResponse,
    RejectedOrder,
)
from services.shop.app.schemas.response.ProductDetailResponse import (
    ProductDetailResponse,
    TopSaleResponse,
)

__all__ = [
    "CountChange",
    "CouponValidateResponse",
    "DashboardStatsResponse",
    "OrderStatusUpdateResponse",
    "PendingOrders",
    "ProductDetailResponse",
    "ProductTypeRevenue",
    "RejectedOrder",
    "RevenueChange",
    "TopSaleResponse",
    "TopSellingProduct",
    "YearlyProductTypeRevenue",
]
