from typing import List

from pydantic import BaseModel, Field


class CountChange(BaseModel):
    total: int = Field(..., description="이번 달 건수")
    percentageChange: float = Field(..., description="지난달 대비 증감률 (%)")


class RevenueChange(BaseModel):
    totalRevenue: float = Field(..., description="이번 달 매출")
    percentageChange: float = Field(..., description="지난달 대비 증감률 (%)")


class PendingOrders(BaseModel):
    waitingConfirm: int = Field(..., description="확인 대기 주문 수")
    processing: int = Field(..., description="처리 중 주문 수")
    total: int = Field(..., description="합계")


class ProductTypeRevenue(BaseModel):
    productType: str = Field(..., description="상품 종류명")
    revenue: float = Field(..., description="매출")


class YearlyProductTypeRevenue(BaseModel):
    year: int = Field(..., description="연도")
    data: List[ProductTypeRevenue] = Field(default_factory=list, description="상품 종류별 매출")


class TopSellingProduct(BaseModel):
    productId: int = Field(..., description="상품 ID")
    productName: str = Field(..., description="상품명")
    totalQuantitySold: int = Field(..., description="판매 수량")
    totalRevenue: float = Field(..., description="매출")
    percentage: float = Field(..., description="상위 상품 중 판매 수량 비율 (%)")


class DashboardStatsResponse(BaseModel):
    """관리자 대시보드 통계 응답"""
    monthlyOrders: CountChange
    salesPerformance: RevenueChange
    todayRevenue: float = Field(..., description="오늘 매출")
    pendingOrders: PendingOrders
    productTypeRevenueByYear: List[YearlyProductTypeRevenue] = Field(default_factory=list)
    topSellingProducts: List[TopSellingProduct] = Field(default_factory=list)
