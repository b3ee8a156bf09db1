from fastapi import APIRouter, Depends, Query, status

from libs.common import AdminUser, CurrentUser, success_response
from libs.schemas import OrderItem, OrderPayment, OrderStatus

from services.shop.app.core.OrderService import OrderService
from services.shop.app.dependencies import get_order_service
from services.shop.app.schemas.request import OrderCreateSchema, OrderStatusUpdateSchema
from services.shop.app.schemas.response import DashboardStatsResponse, OrderStatusUpdateResponse

# 주문 라우터
router = APIRouter(prefix="/order", tags=["Order"])


@router.post("/create-order")
async def create_order(
    request: OrderCreateSchema,
    current_user: CurrentUser,
    order_service: OrderService = Depends(get_order_service),
):
    """
    주문을 생성합니다.

    **Headers:**
    - `Authorization`: Bearer {access_token} (필수)

    **Response:**
    - HTTP 201 Created: 생성된 주문 (확인 대기 상태)
    - HTTP 400 Bad Request: 빈 장바구니, 색상 없음, 쿠폰 기간 외
    - HTTP 404 Not Found: 상품 없음, 쿠폰 없음
    - HTTP 409 Conflict: 재고 부족, 쿠폰 소진, 이미 사용한 쿠폰
    """
    order = await order_service.create_order(
        user_id=current_user.user_id,
        items=[OrderItem(**item.model_dump()) for item in request.orderItems],
        shipping_info=request.shippingInfo,
        payment_method=request.paymentMethod,
        products_fees=request.productsFees,
        shipping_fees=request.shippingFees,
        total_price=request.totalPrice,
        discount_value=request.discountValue,
        coupon_code=request.couponCode,
    )
    return success_response("주문이 완료되었습니다.", data=order, status_code=status.HTTP_201_CREATED)


@router.get("/get-user-orders")
async def get_user_orders(
    current_user: CurrentUser,
    order_service: OrderService = Depends(get_order_service),
):
    """로그인한 사용자의 주문 내역을 최신순으로 조회합니다."""
    orders = await order_service.get_user_orders(current_user.user_id)
    return success_response("주문 내역을 조회했습니다.", data=orders)


@router.post("/{orderId}/cancel-order")
async def cancel_order(
    orderId: str,
    current_user: CurrentUser,
    order_service: OrderService = Depends(get_order_service),
):
    """
    본인의 주문을 취소합니다. 확인 대기 중인 주문만 취소할 수 있습니다.

    **Path Parameters:**
    - `orderId`: 주문 코드 (DH_XXXXXXXX)

    **Response:**
    - HTTP 200 OK: 취소 완료 (재고와 쿠폰 사용 수량 복원)
    - HTTP 400 Bad Request: 취소할 수 없는 상태
    - HTTP 404 Not Found: 주문 없음
    - HTTP 409 Conflict: 이미 취소된 주문
    """
    await order_service.cancel_order(orderId, current_user.user_id)
    return success_response("주문이 취소되었습니다.")


@router.get("/get-all-orders")
async def get_all_orders(
    current_user: AdminUser,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    orderStatus: OrderStatus | None = None,
    paymentMethod: OrderPayment | None = None,
    search: str | None = None,
    order_service: OrderService = Depends(get_order_service),
):
    """
    전체 주문 목록을 조회합니다. (관리자)

    **Query Parameters:**
    - `orderStatus`: 주문 상태 필터
    - `paymentMethod`: 결제 방식 필터
    - `search`: 주문 코드 검색어
    - `page`, `limit`: 페이지 번호 / 크기
    """
    result = await order_service.get_orders(orderStatus, paymentMethod, search, page, limit)
    return success_response("주문 목록을 조회했습니다.", data=result)


@router.put("/update-status")
async def update_status(
    request: OrderStatusUpdateSchema,
    current_user: AdminUser,
    order_service: OrderService = Depends(get_order_service),
):
    """
    여러 주문의 상태를 일괄 변경합니다. (관리자)

    변경할 수 없는 주문은 `rejected`에 담기며 나머지 주문은 정상적으로 변경됩니다.

    **Response:**
    - HTTP 200 OK: `updatedCount`, `rejected`
    - HTTP 400 Bad Request: 빈 목록 또는 잘못된 상태 값
    - HTTP 404 Not Found: 주문을 하나도 찾지 못함
    """
    result = await order_service.update_statuses(request.orderCodes, request.newStatus)
    return success_response(
        f"{result['updatedCount']}건의 주문 상태를 변경했습니다.",
        data=OrderStatusUpdateResponse(**result),
    )


@router.get("/get-details-order/{orderId}")
async def get_details_order(
    orderId: str,
    current_user: AdminUser,
    order_service: OrderService = Depends(get_order_service),
):
    """주문 코드로 주문 상세를 조회합니다. (관리자)"""
    order = await order_service.get_order_detail(orderId)
    return success_response("주문 상세 정보를 조회했습니다.", data=order)


@router.get("/get-dashboard-stats")
async def get_dashboard_stats(
    current_user: AdminUser,
    order_service: OrderService = Depends(get_order_service),
):
    """
    관리자 대시보드 통계를 조회합니다. (관리자)

    이번 달 주문 수/매출(지난달 대비), 오늘 매출, 처리 대기 주문 수,
    연도별 상품 종류 매출, 올해 판매 상위 5개 상품을 반환합니다.
    """
    stats = await order_service.get_dashboard_stats()
    return success_response("대시보드 통계를 조회했습니다.", data=DashboardStatsResponse(**stats))
