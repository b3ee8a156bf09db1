from typing import List

from fastapi import APIRouter, Depends, Query, status

from libs.common import AdminUser, CurrentUser, success_response
from libs.schemas import ProductPriceRange

from services.shop.app.core.ProductService import DEFAULT_PAGE_SIZE, ProductService
from services.shop.app.dependencies import get_product_service
from services.shop.app.schemas.request import (
    FavoriteProductSchema,
    ProductCreateSchema,
    ProductUpdateSchema,
)
from services.shop.app.schemas.response import ProductDetailResponse, TopSaleResponse

# 상품 조회/관리 라우터
router = APIRouter(prefix="/product", tags=["Product"])


@router.get("/get-products")
async def get_products(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    search: str | None = None,
    sort: str | None = None,
    productType: List[int] | None = Query(None),
    sportTypes: List[int] | None = Query(None),
    productGender: List[int] | None = Query(None),
    productColors: List[int] | None = Query(None),
    productSizes: List[str] | None = Query(None),
    productPrice: List[ProductPriceRange] | None = Query(None),
    product_service: ProductService = Depends(get_product_service),
):
    """
    노출 상품 목록을 조회합니다. 할인 프로그램 가격이 반영됩니다.

    **Query Parameters:**
    - `page`, `limit`: 페이지 번호 / 크기 (기본값: 1 / 9)
    - `search`: 상품명 검색어
    - `sort`: `price_asc`, `price_desc`, `name_asc`, `name_desc` (기본값: 최신순)
    - `productType`, `sportTypes`, `productGender`, `productColors`, `productSizes`: 필터 (여러 번 지정 가능)
    - `productPrice`: 가격대 필터 (1: 50만 이하, 2: 50만~100만, 3: 100만~200만, 4: 200만~500만, 5: 500만 이상)

    **Response:**
    - HTTP 200 OK: 페이징된 상품 목록
    - HTTP 400 Bad Request: 지원하지 않는 정렬 방식
    """
    result = await product_service.get_products(
        page=page,
        size=limit,
        search=search,
        sort=sort,
        product_types=productType,
        sport_types=sportTypes,
        product_genders=productGender,
        product_colors=productColors,
        product_sizes=productSizes,
        price_ranges=productPrice,
    )
    return success_response("상품 목록을 조회했습니다.", data=result)


@router.get("/get-product-details/{productId}")
async def get_product_details(
    productId: int,
    product_service: ProductService = Depends(get_product_service),
):
    """
    상품 상세 정보와 관련 상품(같은 스포츠 종목, 최대 10개)을 조회합니다.

    **Response:**
    - HTTP 200 OK: 상품 상세
    - HTTP 404 Not Found: 상품이 없거나 숨김 상태
    """
    result = await product_service.get_product_details(productId)
    return success_response("상품 상세 정보를 조회했습니다.", data=ProductDetailResponse(**result))


@router.post("/create")
async def create_product(
    request: ProductCreateSchema,
    current_user: AdminUser,
    product_service: ProductService = Depends(get_product_service),
):
    """
    상품을 생성합니다. (관리자)

    **Headers:**
    - `Authorization`: Bearer {access_token} (필수, 관리자)

    **Response:**
    - HTTP 201 Created: 생성된 상품
    - HTTP 400 Bad Request: 입력값 오류
    """
    product = await product_service.create_product(request.model_dump())
    return success_response("상품을 생성했습니다.", data=product, status_code=status.HTTP_201_CREATED)


@router.put("/update/{id}")
async def update_product(
    id: int,
    request: ProductUpdateSchema,
    current_user: AdminUser,
    product_service: ProductService = Depends(get_product_service),
):
    """
    상품을 수정합니다. 전달한 값만 변경됩니다. (관리자)

    **Response:**
    - HTTP 200 OK: 수정된 상품
    - HTTP 404 Not Found: 상품 없음
    """
    product = await product_service.update_product(id, request.model_dump(exclude_unset=True))
    return success_response("상품을 수정했습니다.", data=product)


@router.delete("/delete/{id}")
async def delete_product(
    id: int,
    current_user: AdminUser,
    product_service: ProductService = Depends(get_product_service),
):
    """상품을 삭제합니다. (관리자)"""
    await product_service.delete_product(id)
    return success_response("상품을 삭제했습니다.")


@router.get("/get-best-seller")
async def get_best_seller(
    productType: List[int] | None = Query(None),
    productGender: List[int] | None = Query(None),
    product_service: ProductService = Depends(get_product_service),
):
    """누적 판매 수량 상위 10개 상품을 조회합니다."""
    products = await product_service.get_best_sellers(product_types=productType, product_genders=productGender)
    return success_response("인기 상품을 조회했습니다.", data=products)


@router.get("/get-top-sale")
async def get_top_sale(
    product_service: ProductService = Depends(get_product_service),
):
    """현재 할인 프로그램의 대상 상품(최대 6개)과 프로그램 정보를 조회합니다."""
    result = await product_service.get_top_sale()
    return success_response("할인 상품을 조회했습니다.", data=TopSaleResponse(**result))


@router.post("/get-by-search")
async def get_by_search(
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    product_service: ProductService = Depends(get_product_service),
):
    """상품명으로 검색합니다 (최신순, 페이징)."""
    result = await product_service.search_products(search, page, limit)
    return success_response("상품을 검색했습니다.", data=result)


@router.post("/add-favorite")
async def add_favorite(
    request: FavoriteProductSchema,
    current_user: CurrentUser,
    product_service: ProductService = Depends(get_product_service),
):
    """
    찜 목록에 상품을 추가합니다.

    **Response:**
    - HTTP 201 Created: 추가 완료
    - HTTP 404 Not Found: 상품 없음
    - HTTP 409 Conflict: 이미 찜한 상품
    """
    await product_service.add_favorite(current_user.user_id, request.productId)
    return success_response("찜 목록에 추가했습니다.", status_code=status.HTTP_201_CREATED)


@router.post("/remove-favorite")
async def remove_favorite(
    request: FavoriteProductSchema,
    current_user: CurrentUser,
    product_service: ProductService = Depends(get_product_service),
):
    """찜 목록에서 상품을 삭제합니다. 찜 목록에 없으면 404를 반환합니다."""
    await product_service.remove_favorite(current_user.user_id, request.productId)
    return success_response("찜 목록에서 삭제했습니다.")


@router.get("/get-favorite-products")
async def get_favorite_products(
    current_user: CurrentUser,
    product_service: ProductService = Depends(get_product_service),
):
    """로그인한 사용자의 찜 목록을 조회합니다."""
    products = await product_service.get_favorite_products(current_user.user_id)
    return success_response("찜 목록을 조회했습니다.", data=products)
