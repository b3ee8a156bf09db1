"""Pytest fixtures for shop service tests."""

import asyncio
import os
from datetime import timedelta

# 설정 모듈을 import 하기 전에 테스트용 환경 변수를 지정
os.environ["SHOP_DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["CREATE_TABLES"] = "false"
os.environ["JWT_SECRET_KEY"] = "shop-test-secret-key-with-enough-length"
os.environ["JWT_ALGORITHM"] = "HS256"

import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from libs.common import now_kst  # noqa: E402
from libs.schemas import (  # noqa: E402
    ApplySetting,
    CouponValueType,
    DiscountApplyType,
    OrderItem,
    OrderPayment,
    ProductBasicColor,
    ProductGender,
    ProductType,
    ShippingInfo,
    SportType,
)
from services.shop.app.core.CouponService import CouponService  # noqa: E402
from services.shop.app.core.DiscountService import DiscountService  # noqa: E402
from services.shop.app.core.ExpiryJobs import ExpiryJobs  # noqa: E402
from services.shop.app.core.OrderService import OrderService  # noqa: E402
from services.shop.app.core.ProductService import ProductService  # noqa: E402
from services.shop.app.db.repositories.coupons import SQLAlchemyCouponRepository  # noqa: E402
from services.shop.app.db.repositories.discounts import SQLAlchemyDiscountRepository  # noqa: E402
from services.shop.app.db.repositories.orders import SQLAlchemyOrderRepository  # noqa: E402
from services.shop.app.db.repositories.products import SQLAlchemyProductRepository  # noqa: E402
from services.shop.app.db.session import build_engine, make_session_scope  # noqa: E402
from services.shop.app.db.tables import create_tables  # noqa: E402


def run(coro):
    """테스트 함수에서 코루틴을 실행합니다."""
    return asyncio.run(coro)


@pytest.fixture
def session_factory(tmp_path):
    """테스트마다 새로 만든 SQLite 파일 DB를 사용하는 session_scope"""
    engine = build_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    create_tables(engine)
    yield make_session_scope(sessionmaker(bind=engine, autoflush=False, expire_on_commit=False))
    engine.dispose()


@pytest.fixture
def product_repository(session_factory):
    return SQLAlchemyProductRepository(session_factory)


@pytest.fixture
def coupon_repository(session_factory):
    return SQLAlchemyCouponRepository(session_factory)


@pytest.fixture
def discount_repository(session_factory):
    return SQLAlchemyDiscountRepository(session_factory)


@pytest.fixture
def order_repository(session_factory):
    return SQLAlchemyOrderRepository(session_factory)


@pytest.fixture
def discount_service(discount_repository):
    return DiscountService(discount_repository=discount_repository)


@pytest.fixture
def coupon_service(coupon_repository, order_repository):
    return CouponService(coupon_repository=coupon_repository, usage_repository=order_repository)


@pytest.fixture
def product_service(product_repository, discount_service):
    return ProductService(product_repository=product_repository, discount_service=discount_service)


@pytest.fixture
def order_service(order_repository, product_repository, coupon_service):
    return OrderService(
        order_repository=order_repository,
        product_repository=product_repository,
        coupon_service=coupon_service,
    )


@pytest.fixture
def expiry_jobs(coupon_repository, discount_repository):
    return ExpiryJobs(coupon_repository=coupon_repository, discount_repository=discount_repository)


# 데이터 생성 헬퍼


def product_data(**overrides) -> dict:
    """상품 생성 데이터 (기본: 빨강 5개, 파랑 3개)"""
    data = {
        "productName": "Runner",
        "brandName": "Dash",
        "description": "Light running shoes",
        "productType": ProductType.SHOES,
        "sportTypes": [SportType.JOGGING],
        "productGender": ProductGender.UNISEX,
        "productSizes": ["260", "270"],
        "originalPrice": 100_000,
        "salePrice": None,
        "productColors": [
            {"id": 1, "name": "Red", "value": ProductBasicColor.RED, "hex": "#FF0000", "quantity": 5},
            {"id": 2, "name": "Blue", "value": ProductBasicColor.BLUE, "hex": "#0000FF", "quantity": 3},
        ],
        "detailsDescription": "",
    }
    data.update(overrides)
    return data


def coupon_data(code: str = "WELCOME10", **overrides) -> dict:
    """현재 사용 가능한 정률 10% 쿠폰 데이터"""
    now = now_kst()
    data = {
        "couponCode": code,
        "valueType": CouponValueType.PERCENT,
        "value": 10,
        "maxValue": None,
        "startDate": now - timedelta(days=1),
        "endDate": now + timedelta(days=7),
        "couponQuantity": 5,
    }
    data.update(overrides)
    return data


def program_data(**overrides) -> dict:
    """현재 진행 중인 전체 상품 10% 할인 프로그램 데이터"""
    now = now_kst()
    data = {
        "programName": "Summer Sale",
        "discountPercentage": 10,
        "startDate": now - timedelta(days=1),
        "endDate": now + timedelta(days=7),
        "applyType": DiscountApplyType.ALL_PRODUCTS,
        "productIds": [],
        "applySetting": ApplySetting.ALWAYS_APPLY,
    }
    data.update(overrides)
    return data


def shipping_info() -> ShippingInfo:
    return ShippingInfo(
        receiver="Kim",
        emailReceived="kim@example.com",
        phoneNumberReceived="010-0000-0000",
        address="Suwon",
    )


def order_item(product_id: int, color=ProductBasicColor.RED, quantity: int = 1, unit_price: float = 100_000):
    return OrderItem(productId=product_id, selectedColor=color, quantity=quantity, unitPrice=unit_price)


def place_order(order_service, user_id: int, items: list, coupon_code: str | None = None):
    """쿠폰/배송 정보를 채워 주문을 생성합니다."""
    total = sum(item.quantity * item.unitPrice for item in items)
    return run(
        order_service.create_order(
            user_id=user_id,
            items=items,
            shipping_info=shipping_info(),
            payment_method=OrderPayment.COD,
            products_fees=total,
            shipping_fees=0,
            total_price=total,
            coupon_code=coupon_code,
        )
    )


def make_token(user_id: int, role: str = "user") -> str:
    return jwt.encode({"sub_id": user_id, "role": role}, os.environ["JWT_SECRET_KEY"], algorithm="HS256")


@pytest.fixture
def user_headers():
    return {"Authorization": f"Bearer {make_token(1)}"}


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token(99, role='admin')}"}


@pytest.fixture
def api_client(product_service, coupon_service, discount_service, order_service):
    """테스트 DB를 사용하는 서비스로 의존성을 교체한 TestClient"""
    from services.shop.app import dependencies
    from services.shop.app.main import app

    app.dependency_overrides[dependencies.get_product_service] = lambda: product_service
    app.dependency_overrides[dependencies.get_coupon_service] = lambda: coupon_service
    app.dependency_overrides[dependencies.get_discount_service] = lambda: discount_service
    app.dependency_overrides[dependencies.get_order_service] = lambda: order_service
    yield TestClient(app)
    app.dependency_overrides.clear()
