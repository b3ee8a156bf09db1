from fastapi import APIRouter, Depends, Query, status

from libs.common import AdminUser, CurrentUser, success_response
from libs.schemas import CouponStatus

from services.shop.app.core.CouponService import CouponService, calculate_discount
from services.shop.app.dependencies import get_coupon_service
from services.shop.app.schemas.request import (
    CouponCreateSchema,
    CouponUpdateSchema,
    CouponValidateSchema,
)
from services.shop.app.schemas.response import CouponValidateResponse

# 쿠폰 라우터
router = APIRouter(prefix="/coupon", tags=["Coupon"])


@router.post("/create-coupon")
async def create_coupon(
    request: CouponCreateSchema,
    current_user: AdminUser,
    coupon_service: CouponService = Depends(get_coupon_service),
):
    """
    쿠폰을 생성합니다. (관리자)

    시작 일시가 미래이면 Schedule, 아니면 Active 상태로 생성됩니다.

    **Response:**
    - HTTP 201 Created: 생성된 쿠폰
    - HTTP 400 Bad Request: 기간 또는 할인 값 오류
    - HTTP 409 Conflict: 이미 존재하는 쿠폰 코드
    """
    coupon = await coupon_service.create_coupon(request.to_coupon_data())
    return success_response("쿠폰을 생성했습니다.", data=coupon, status_code=status.HTTP_201_CREATED)


@router.get("/get-all-coupon")
async def get_all_coupon(
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(9, ge=1, le=100),
    search: str | None = None,
    couponStatus: CouponStatus | None = None,
    coupon_service: CouponService = Depends(get_coupon_service),
):
    """
    쿠폰 목록을 조회합니다.

    **Query Parameters:**
    - `search`: 쿠폰 코드 검색어
    - `couponStatus`: 상태 필터
    - `page`, `limit`: 페이지 번호 / 크기
    """
    result = await coupon_service.get_coupons(search, couponStatus, page, limit)
    return success_response("쿠폰 목록을 조회했습니다.", data=result)


@router.put("/update-coupon")
async def update_coupon(
    request: CouponUpdateSchema,
    current_user: AdminUser,
    coupon_service: CouponService = Depends(get_coupon_service),
):
    """쿠폰을 수정합니다. 전달한 값만 변경되며 상태는 다시 계산됩니다. (관리자)"""
    coupon = await coupon_service.update_coupon(request.couponCode, request.to_changes())
    return success_response("쿠폰을 수정했습니다.", data=coupon)


@router.delete("/delete-coupon/{couponCode}")
async def delete_coupon(
    couponCode: str,
    current_user: AdminUser,
    coupon_service: CouponService = Depends(get_coupon_service),
):
    """쿠폰을 삭제합니다. (관리자)"""
    await coupon_service.delete_coupon(couponCode)
    return success_response("쿠폰을 삭제했습니다.")


@router.post("/validate-coupon")
async def validate_coupon(
    request: CouponValidateSchema,
    coupon_service: CouponService = Depends(get_coupon_service),
):
    """
    쿠폰을 사용할 수 있는지 확인합니다.

    **Request Body:**
    - `couponCode`: 쿠폰 코드 (필수)
    - `userId`: 사용자 ID (있으면 이미 사용했는지 확인)
    - `orderAmount`: 주문 금액 (있으면 할인 금액을 함께 반환)

    **Response:**
    - HTTP 200 OK: 사용 가능
    - HTTP 400 Bad Request: 기간 외 (ERR-COUPON-EXPIRED)
    - HTTP 404 Not Found: 쿠폰 없음 (ERR-COUPON-NOT-FOUND)
    - HTTP 409 Conflict: 소진 (ERR-COUPON-EXHAUSTED), 이미 사용 (ERR-COUPON-ALREADY-USED)
    """
    coupon = await coupon_service.validate_and_apply(request.couponCode, request.userId)
    discount_amount = None
    if request.orderAmount is not None:
        discount_amount = calculate_discount(coupon, request.orderAmount)
    return success_response(
        "쿠폰을 적용했습니다.",
        data=CouponValidateResponse(coupon=coupon, discountAmount=discount_amount),
    )
