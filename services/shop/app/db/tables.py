"""
Shop 서비스 테이블 정의
Repository는 text() SQL을 사용하며, 이 정의는 개발/테스트 환경에서
스키마를 생성(create_all)하는 용도로 사용합니다.
"""
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("product_id", Integer, primary_key=True, autoincrement=True),
    Column("product_name", String(255), nullable=False, index=True),
    Column("brand_name", String(255)),
    Column("description", Text, nullable=False),
    Column("product_type", Integer, nullable=False),
    Column("sport_types", Text, nullable=False),  # JSON 배열
    Column("product_gender", Integer, nullable=False),
    Column("product_sizes", Text, nullable=False),  # JSON 배열
    Column("product_visibility", Integer, nullable=False),
    Column("original_price", Float, nullable=False),
    Column("sale_price", Float),
    Column("primary_image", Text),  # JSON 객체
    Column("stock_quantity", Integer, nullable=False, default=0),
    Column("sale_quantity", Integer, nullable=False, default=0),
    Column("details_description", Text, nullable=False),
    Column("details_description_id", String(64)),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

product_colors = Table(
    "product_colors",
    metadata,
    Column("product_id", Integer, ForeignKey("products.product_id", ondelete="CASCADE"), primary_key=True),
    Column("color_value", Integer, primary_key=True),
    Column("color_id", Integer, nullable=False),
    Column("name", String(64), nullable=False),
    Column("hex", String(16), nullable=False),
    Column("quantity", Integer, nullable=False, default=0),
    Column("sale", Integer, nullable=False, default=0),
    Column("images", Text, nullable=False),  # JSON 배열
)

coupons = Table(
    "coupons",
    metadata,
    Column("coupon_id", Integer, primary_key=True, autoincrement=True),
    Column("coupon_code", String(64), nullable=False, unique=True),
    Column("value_type", Integer, nullable=False),
    Column("value", Float, nullable=False),
    Column("max_value", Float),
    Column("coupon_status", Integer, nullable=False),
    Column("start_date", DateTime, nullable=False),
    Column("end_date", DateTime, nullable=False),
    Column("coupon_quantity", Integer, nullable=False),
    Column("used_quantity", Integer, nullable=False, default=0),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

discount_programs = Table(
    "discount_programs",
    metadata,
    Column("program_id", Integer, primary_key=True, autoincrement=True),
    Column("program_name", String(255), nullable=False, index=True),
    Column("discount_percentage", Float, nullable=False),
    Column("apply_type", Integer, nullable=False),
    Column("apply_setting", Integer, nullable=False),
    Column("status", Integer, nullable=False),
    Column("start_date", DateTime, nullable=False),
    Column("end_date", DateTime, nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

discount_program_products = Table(
    "discount_program_products",
    metadata,
    Column("program_id", Integer, ForeignKey("discount_programs.program_id", ondelete="CASCADE"), primary_key=True),
    Column("product_id", Integer, primary_key=True),
)

orders = Table(
    "orders",
    metadata,
    Column("order_id", Integer, primary_key=True, autoincrement=True),
    Column("order_code", String(16), nullable=False, unique=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("products_fees", Float, nullable=False),
    Column("shipping_fees", Float, nullable=False),
    Column("discount_value", Float),
    Column("total_price", Float, nullable=False),
    Column("coupon_code", String(64), index=True),
    Column("receiver", String(255), nullable=False),
    Column("email_received", String(255), nullable=False),
    Column("phone_number_received", String(32), nullable=False),
    Column("address", Text, nullable=False),
    Column("note", Text),
    Column("payment_method", Integer, nullable=False),
    Column("order_status", Integer, nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

order_items = Table(
    "order_items",
    metadata,
    Column("order_item_id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", Integer, ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", Integer, nullable=False),
    Column("selected_color", Integer, nullable=False),
    Column("selected_size", String(32)),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Float, nullable=False),
)

favorite_products = Table(
    "favorite_products",
    metadata,
    Column("user_id", Integer, nullable=False),
    Column("product_id", Integer, nullable=False),
    Column("created_at", DateTime, nullable=False),
    UniqueConstraint("user_id", "product_id", name="uq_favorite_user_product"),
)


def create_tables(engine) -> None:
    metadata.create_all(engine)
