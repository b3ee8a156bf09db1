"""
상품 관련 비즈니스 로직을 처리하는 서비스
모든 상품 조회 결과에는 현재 적용 중인 할인 프로그램 가격이 반영됩니다.
"""
import logging
from datetime import datetime
from typing import Protocol

from fastapi_pagination import Page

from libs.common import ConflictError, NotFoundError, ValidationError
from libs.schemas import DiscountApplyType, DiscountProgram, Product, ProductPriceRange, ProductVisibility
from services.shop.app.core.DiscountService import apply_overlay, apply_overlay_many

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 9
BEST_SELLER_LIMIT = 10
TOP_SALE_LIMIT = 6
RELATED_PRODUCTS_LIMIT = 10

# 가격대 필터 -> (최소, 최대) (경계값 포함)
PRICE_RANGES: dict[ProductPriceRange, tuple[float | None, float | None]] = {
    ProductPriceRange.LESS_THAN_500K: (None, 500_000),
    ProductPriceRange.FROM_500K_TO_1M: (500_000, 1_000_000),
    ProductPriceRange.FROM_1M_TO_2M: (1_000_000, 2_000_000),
    ProductPriceRange.FROM_2M_TO_5M: (2_000_000, 5_000_000),
    ProductPriceRange.MORE_THAN_5M: (5_000_000, None),
}

SORT_OPTIONS = ("price_asc", "price_desc", "name_asc", "name_desc")


def in_price_ranges(price: float, ranges: list[ProductPriceRange]) -> bool:
    for price_range in ranges:
        low, high = PRICE_RANGES[ProductPriceRange(price_range)]
        if (low is None or price >= low) and (high is None or price <= high):
            return True
    return False


def _to_page(items: list, total: int, page: int, size: int) -> Page:
    return Page(
        items=items,
        total=total,
        page=page,
        size=size,
        pages=(total + size - 1) // size if size > 0 else 0,
    )


class ProductRepositoryPort(Protocol):
    """상품 Repository 인터페이스"""

    async def find_product_by_id(self, product_id: int) -> Product | None:
        ...

    async def find_products_by_ids(self, product_ids: list[int]) -> list[Product]:
        ...

    async def find_visible_products(
        self,
        search: str | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> tuple[list[Product], int]:
        ...

    async def find_best_sellers(
        self,
        product_types: list[int] | None = None,
        product_genders: list[int] | None = None,
        limit: int = BEST_SELLER_LIMIT,
    ) -> list[Product]:
        ...

    async def find_related_products(self, product: Product, limit: int = RELATED_PRODUCTS_LIMIT) -> list[Product]:
        ...

    async def create_product(self, data: dict) -> Product:
        ...

    async def update_product(self, product_id: int, data: dict) -> Product | None:
        ...

    async def delete_product(self, product_id: int) -> bool:
        ...

    async def add_favorite(self, user_id: int, product_id: int) -> bool:
        ...

    async def remove_favorite(self, user_id: int, product_id: int) -> bool:
        ...

    async def find_favorite_products(self, user_id: int) -> list[Product]:
        ...


class ActiveProgramPort(Protocol):
    async def get_active_program(self, now: datetime | None = None) -> DiscountProgram | None:
        ...


class ProductService:
    """상품 서비스"""

    def __init__(self, product_repository: ProductRepositoryPort, discount_service: ActiveProgramPort):
        self.product_repository = product_repository
        self.discount_service = discount_service

    async def get_products(
        self,
        page: int = 1,
        size: int = DEFAULT_PAGE_SIZE,
        search: str | None = None,
        sort: str | None = None,
        product_types: list[int] | None = None,
        sport_types: list[int] | None = None,
        product_genders: list[int] | None = None,
        product_colors: list[int] | None = None,
        product_sizes: list[str] | None = None,
        price_ranges: list[ProductPriceRange] | None = None,
    ) -> Page[Product]:
        """
        노출 상품 목록을 조회합니다.

        가격대 필터와 가격 정렬은 할인 프로그램이 반영된 판매가 기준으로 처리합니다.
        정렬 값이 없으면 최신순입니다.

        Args:
            page: 페이지 번호 (1부터 시작)
            size: 페이지 크기
            search: 상품명 검색어
            sort: price_asc, price_desc, name_asc, name_desc
            product_types: 상품 종류 필터
            sport_types: 스포츠 종목 필터 (하나라도 일치)
            product_genders: 대상 성별 필터
            product_colors: 색상 필터 (하나라도 일치)
            product_sizes: 사이즈 필터 (하나라도 일치)
            price_ranges: 가격대 필터 (하나라도 일치)

        Returns:
            페이징된 상품 목록
        """
        if sort is not None and sort not in SORT_OPTIONS:
            raise ValidationError("지원하지 않는 정렬 방식입니다.")

        products, _ = await self.product_repository.find_visible_products(search=search)

        def _matches(product: Product) -> bool:
            if product_types and int(product.productType) not in product_types:
                return False
            if product_genders and int(product.productGender) not in product_genders:
                return False
            if sport_types and not {int(sport) for sport in product.sportTypes} & set(sport_types):
                return False
            if product_colors and not {int(color.value) for color in product.productColors} & set(product_colors):
                return False
            if product_sizes and not set(product.productSizes) & set(product_sizes):
                return False
            return True

        program = await self.discount_service.get_active_program()
        products = apply_overlay_many([product for product in products if _matches(product)], program)

        if price_ranges:
            products = [product for product in products if in_price_ranges(product.effective_price, price_ranges)]

        if sort in ("price_asc", "price_desc"):
            products.sort(key=lambda product: product.effective_price, reverse=sort == "price_desc")
        elif sort in ("name_asc", "name_desc"):
            products.sort(key=lambda product: product.productName.casefold(), reverse=sort == "name_desc")

        total = len(products)
        offset = (page - 1) * size
        return _to_page(products[offset:offset + size], total, page, size)

    async def get_product_details(self, product_id: int) -> dict:
        """
        상품 상세와 같은 스포츠 종목의 관련 상품을 조회합니다.

        Raises:
            NotFoundError: 상품이 없거나 숨김 상태인 경우
        """
        product = await self.product_repository.find_product_by_id(product_id)
        if product is None or product.productVisibility == ProductVisibility.HIDDEN:
            raise NotFoundError("존재하지 않거나 삭제된 상품입니다.", code="ERR-PRODUCT-NOT-FOUND")

        related = await self.product_repository.find_related_products(product, limit=RELATED_PRODUCTS_LIMIT)
        program = await self.discount_service.get_active_program()
        return {
            "product": apply_overlay(product, program),
            "relatedProducts": apply_overlay_many(related, program),
        }

    async def get_best_sellers(
        self,
        product_types: list[int] | None = None,
        product_genders: list[int] | None = None,
    ) -> list[Product]:
        products = await self.product_repository.find_best_sellers(
            product_types=product_types,
            product_genders=product_genders,
            limit=BEST_SELLER_LIMIT,
        )
        program = await self.discount_service.get_active_program()
        return apply_overlay_many(products, program)

    async def get_top_sale(self) -> dict:
        """현재 할인 프로그램 대상 상품 (최대 6개). 프로그램이 없으면 빈 목록입니다."""
        program = await self.discount_service.get_active_program()
        if program is None:
            return {"topSaleProducts": [], "currentProgramInfo": None}

        if program.applyType == DiscountApplyType.SPECIFIC_PRODUCTS:
            products = await self.product_repository.find_products_by_ids(program.productIds)
            products = [
                product for product in products
                if product.productVisibility == ProductVisibility.VISIBILITY
            ][:TOP_SALE_LIMIT]
        else:
            products, _ = await self.product_repository.find_visible_products(limit=TOP_SALE_LIMIT)

        return {
            "topSaleProducts": apply_overlay_many(products, program),
            "currentProgramInfo": program,
        }

    async def search_products(self, search: str | None, page: int, size: int) -> Page[Product]:
        offset = (page - 1) * size
        products, total = await self.product_repository.find_visible_products(
            search=search,
            offset=offset,
            limit=size,
        )
        program = await self.discount_service.get_active_program()
        return _to_page(apply_overlay_many(products, program), total, page, size)

    async def create_product(self, data: dict) -> Product:
        """상품을 생성합니다. 전체 재고는 색상별 재고의 합으로 계산합니다."""
        colors = data.get("productColors") or []
        data = {
            **data,
            "productColors": colors,
            "stockQuantity": sum(color["quantity"] for color in colors),
        }
        product = await self.product_repository.create_product(data)
        logger.info("Product created: id=%s stock=%s", product.productId, product.stockQuantity)
        return product

    async def update_product(self, product_id: int, changes: dict) -> Product:
        """
        전달된 값만 수정합니다.
        색상 재고가 바뀌면 전체 재고를 다시 계산하며, 기존 색상의 누적 판매 수량은 유지합니다.
        """
        product = await self.product_repository.find_product_by_id(product_id)
        if product is None:
            raise NotFoundError("존재하지 않는 상품입니다.", code="ERR-PRODUCT-NOT-FOUND")

        data = product.model_dump(exclude={"productColors"})
        data.update({key: value for key, value in changes.items() if value is not None and key != "productColors"})
        # salePrice는 명시적으로 null을 보내 수동 할인을 해제할 수 있음
        if "salePrice" in changes:
            data["salePrice"] = changes["salePrice"]

        if changes.get("productColors") is not None:
            colors = []
            for color in changes["productColors"]:
                existing = product.find_color(color["value"])
                if color.get("sale") is None:
                    color = {**color, "sale": existing.sale if existing is not None else 0}
                colors.append(color)
            data["productColors"] = colors
            data["stockQuantity"] = sum(color["quantity"] for color in colors)

        updated = await self.product_repository.update_product(product_id, data)
        if updated is None:
            raise NotFoundError("존재하지 않는 상품입니다.", code="ERR-PRODUCT-NOT-FOUND")
        logger.info("Product updated: id=%s stock=%s", product_id, updated.stockQuantity)
        return updated

    async def delete_product(self, product_id: int) -> None:
        if not await self.product_repository.delete_product(product_id):
            raise NotFoundError("존재하지 않는 상품입니다.", code="ERR-PRODUCT-NOT-FOUND")
        logger.info("Product deleted: id=%s", product_id)

    async def add_favorite(self, user_id: int, product_id: int) -> None:
        if await self.product_repository.find_product_by_id(product_id) is None:
            raise NotFoundError("존재하지 않는 상품입니다.", code="ERR-PRODUCT-NOT-FOUND")
        if not await self.product_repository.add_favorite(user_id, product_id):
            raise ConflictError("이미 찜한 상품입니다.", code="ERR-FAVORITE-DUPLICATE")

    async def remove_favorite(self, user_id: int, product_id: int) -> None:
        if not await self.product_repository.remove_favorite(user_id, product_id):
            raise NotFoundError("찜 목록에 없는 상품입니다.", code="ERR-FAVORITE-NOT-FOUND")

    async def get_favorite_products(self, user_id: int) -> list[Product]:
        products = await self.product_repository.find_favorite_products(user_id)
        program = await self.discount_service.get_active_program()
        return apply_overlay_many(products, program)
