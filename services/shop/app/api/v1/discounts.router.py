from fastapi import APIRouter, Depends, status

from libs.common import AdminUser, success_response

from services.shop.app.core.DiscountService import DiscountService
from services.shop.app.dependencies import get_discount_service
from services.shop.app.schemas.request import (
    DiscountCancelSchema,
    DiscountCreateSchema,
    DiscountUpdateSchema,
)

# 할인 프로그램 라우터
router = APIRouter(prefix="/discount", tags=["Discount"])


@router.post("/create-discount")
async def create_discount(
    request: DiscountCreateSchema,
    current_user: AdminUser,
    discount_service: DiscountService = Depends(get_discount_service),
):
    """
    할인 프로그램을 생성합니다. (관리자)

    시작 일시가 미래이면 Scheduled, 아니면 Active 상태로 생성됩니다.
    `productIds`는 특정 상품 적용(applyType=2)일 때만 저장됩니다.
    """
    program = await discount_service.create_program(request.model_dump())
    return success_response("할인 프로그램을 생성했습니다.", data=program, status_code=status.HTTP_201_CREATED)


@router.get("/current-program")
async def current_program(
    discount_service: DiscountService = Depends(get_discount_service),
):
    """
    현재 적용 중인 할인 프로그램을 조회합니다.
    적용 중인 프로그램이 없으면 다음 예정 프로그램을, 그것도 없으면 null을 반환합니다.
    """
    program = await discount_service.get_current_program()
    if program is None:
        return success_response("현재 진행 중인 할인 프로그램이 없습니다.")
    return success_response("할인 프로그램을 조회했습니다.", data=program)


@router.put("/update-program")
async def update_program(
    request: DiscountUpdateSchema,
    current_user: AdminUser,
    discount_service: DiscountService = Depends(get_discount_service),
):
    """할인 프로그램을 수정합니다. 전달한 값만 변경되며 상태는 다시 계산됩니다. (관리자)"""
    changes = request.model_dump(exclude={"programId"})
    program = await discount_service.update_program(request.programId, changes)
    return success_response("할인 프로그램을 수정했습니다.", data=program)


@router.put("/cancel-program")
async def cancel_program(
    request: DiscountCancelSchema,
    current_user: AdminUser,
    discount_service: DiscountService = Depends(get_discount_service),
):
    """할인 프로그램을 취소합니다. 취소된 프로그램은 다시 적용되지 않습니다. (관리자)"""
    await discount_service.cancel_program(request.programId)
    return success_response("할인 프로그램을 취소했습니다.")
