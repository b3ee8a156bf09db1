from functools import lru_cache

from services.shop.app.core.CouponService import CouponService
from services.shop.app.core.DiscountService import DiscountService
from services.shop.app.core.ExpiryJobs import ExpiryJobs
from services.shop.app.core.OrderService import OrderService
from services.shop.app.core.ProductService import ProductService
from services.shop.app.db.connection import settings
from services.shop.app.db.repositories.coupons import SQLAlchemyCouponRepository
from services.shop.app.db.repositories.discounts import SQLAlchemyDiscountRepository
from services.shop.app.db.repositories.orders import SQLAlchemyOrderRepository
from services.shop.app.db.repositories.products import SQLAlchemyProductRepository


@lru_cache
def get_product_repository() -> SQLAlchemyProductRepository:
    """상품 Repository 의존성"""
    return SQLAlchemyProductRepository()


@lru_cache
def get_coupon_repository() -> SQLAlchemyCouponRepository:
    """쿠폰 Repository 의존성"""
    return SQLAlchemyCouponRepository()


@lru_cache
def get_discount_repository() -> SQLAlchemyDiscountRepository:
    """할인 프로그램 Repository 의존성"""
    return SQLAlchemyDiscountRepository()


@lru_cache
def get_order_repository() -> SQLAlchemyOrderRepository:
    """주문 Repository 의존성"""
    return SQLAlchemyOrderRepository()


@lru_cache
def get_discount_service() -> DiscountService:
    """할인 프로그램 서비스 의존성"""
    return DiscountService(discount_repository=get_discount_repository())


@lru_cache
def get_coupon_service() -> CouponService:
    """쿠폰 서비스 의존성"""
    return CouponService(
        coupon_repository=get_coupon_repository(),
        usage_repository=get_order_repository(),
    )


@lru_cache
def get_product_service() -> ProductService:
    """상품 서비스 의존성"""
    return ProductService(
        product_repository=get_product_repository(),
        discount_service=get_discount_service(),
    )


@lru_cache
def get_order_service() -> OrderService:
    """주문 서비스 의존성"""
    return OrderService(
        order_repository=get_order_repository(),
        product_repository=get_product_repository(),
        coupon_service=get_coupon_service(),
    )


@lru_cache
def get_expiry_jobs() -> ExpiryJobs:
    """만료 처리 작업 의존성"""
    return ExpiryJobs(
        coupon_repository=get_coupon_repository(),
        discount_repository=get_discount_repository(),
        coupon_interval_seconds=settings.COUPON_EXPIRY_INTERVAL_SECONDS,
        discount_interval_seconds=settings.DISCOUNT_EXPIRY_INTERVAL_SECONDS,
    )
