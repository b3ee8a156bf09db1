"""
할인 프로그램 관련 비즈니스 로직을 처리하는 서비스
상품 가격 계산(apply_overlay)은 모든 상품 조회 경로에서 공통으로 사용합니다.
"""
import logging
from datetime import datetime
from typing import Iterable, Protocol

from libs.common import NotFoundError, StateError, ValidationError, ensure_kst, now_kst
from libs.schemas import ApplySetting, DiscountApplyType, DiscountProgram, DiscountStatus, Product

logger = logging.getLogger(__name__)


def apply_overlay(product: Product, program: DiscountProgram | None) -> Product:
    """
    할인 프로그램을 반영한 판매가를 계산합니다. 원본 상품은 변경하지 않습니다.

    - 프로그램이 없거나, 특정 상품 대상 프로그램에 포함되지 않은 상품은 그대로 반환
    - AlwaysApply: 할인가로 판매가를 덮어씀
    - ApplyWithCondition: 기존 판매가가 없거나 할인가가 더 낮을 때만 적용
    """
    if program is None:
        return product
    if program.applyType == DiscountApplyType.SPECIFIC_PRODUCTS and product.productId not in program.productIds:
        return product

    discounted = product.originalPrice - product.originalPrice * program.discountPercentage / 100
    if program.applySetting == ApplySetting.ALWAYS_APPLY:
        return product.model_copy(update={"salePrice": discounted})
    if product.salePrice is None or discounted < product.salePrice:
        return product.model_copy(update={"salePrice": discounted})
    return product


def apply_overlay_many(products: Iterable[Product], program: DiscountProgram | None) -> list[Product]:
    return [apply_overlay(product, program) for product in products]


def derive_program_status(start_date: datetime, end_date: datetime, now: datetime) -> DiscountStatus:
    """기간으로 프로그램 상태를 계산합니다 (취소 상태는 별도로 관리)."""
    if ensure_kst(end_date) <= now:
        return DiscountStatus.EXPIRED
    if ensure_kst(start_date) > now:
        return DiscountStatus.SCHEDULED
    return DiscountStatus.ACTIVE


def _validate_values(data: dict) -> None:
    if ensure_kst(data["endDate"]) <= ensure_kst(data["startDate"]):
        raise ValidationError("종료 일시는 시작 일시 이후여야 합니다.")
    if not 0 < data["discountPercentage"] <= 100:
        raise ValidationError("할인율은 0보다 크고 100 이하여야 합니다.")
    if data["applyType"] == DiscountApplyType.SPECIFIC_PRODUCTS and not data.get("productIds"):
        raise ValidationError("특정 상품 할인에는 적용 상품이 필요합니다.")


class DiscountRepositoryPort(Protocol):
    """할인 프로그램 Repository 인터페이스"""

    async def find_program_by_id(self, program_id: int) -> DiscountProgram | None:
        ...

    async def find_active_program(self, now: datetime) -> DiscountProgram | None:
        ...

    async def find_next_scheduled_program(self, now: datetime) -> DiscountProgram | None:
        ...

    async def create_program(self, data: dict) -> DiscountProgram:
        ...

    async def update_program(self, program_id: int, data: dict) -> DiscountProgram | None:
        ...

    async def cancel_program(self, program_id: int) -> bool:
        ...


class DiscountService:
    """할인 프로그램 서비스"""

    def __init__(self, discount_repository: DiscountRepositoryPort):
        self.discount_repository = discount_repository

    async def get_active_program(self, now: datetime | None = None) -> DiscountProgram | None:
        """현재 적용 중인 프로그램 (가장 최근에 생성된 프로그램 우선)"""
        return await self.discount_repository.find_active_program(now or now_kst())

    async def get_current_program(self) -> DiscountProgram | None:
        """적용 중인 프로그램, 없으면 다음 예정 프로그램을 반환합니다."""
        now = now_kst()
        program = await self.discount_repository.find_active_program(now)
        if program is None:
            program = await self.discount_repository.find_next_scheduled_program(now)
        return program

    async def create_program(self, data: dict) -> DiscountProgram:
        _validate_values(data)
        data = {
            **data,
            "productIds": data.get("productIds") or [],
            "status": derive_program_status(data["startDate"], data["endDate"], now_kst()),
        }
        program = await self.discount_repository.create_program(data)
        logger.info(
            "Discount program created: id=%s percentage=%s status=%s",
            program.programId,
            program.discountPercentage,
            program.status.name,
        )
        return program

    async def update_program(self, program_id: int, changes: dict) -> DiscountProgram:
        """
        전달된 값만 수정하고 상태를 다시 계산합니다.

        Raises:
            NotFoundError: 프로그램이 없는 경우
            StateError: 취소된 프로그램인 경우
        """
        program = await self.discount_repository.find_program_by_id(program_id)
        if program is None:
            raise NotFoundError("존재하지 않는 할인 프로그램입니다.", code="ERR-DISCOUNT-NOT-FOUND")
        if program.status == DiscountStatus.CANCELLED:
            raise StateError("취소된 할인 프로그램은 수정할 수 없습니다.", code="ERR-DISCOUNT-CANCELLED")

        data = program.model_dump()
        data.update({key: value for key, value in changes.items() if value is not None})
        _validate_values(data)
        data["status"] = derive_program_status(data["startDate"], data["endDate"], now_kst())

        updated = await self.discount_repository.update_program(program_id, data)
        if updated is None:
            raise NotFoundError("존재하지 않는 할인 프로그램입니다.", code="ERR-DISCOUNT-NOT-FOUND")
        logger.info("Discount program updated: id=%s status=%s", program_id, updated.status.name)
        return updated

    async def cancel_program(self, program_id: int) -> None:
        program = await self.discount_repository.find_program_by_id(program_id)
        if program is None:
            raise NotFoundError("존재하지 않는 할인 프로그램입니다.", code="ERR-DISCOUNT-NOT-FOUND")
        if not await self.discount_repository.cancel_program(program_id):
            raise StateError("이미 취소된 할인 프로그램입니다.", code="ERR-DISCOUNT-CANCELLED")
        logger.info("Discount program cancelled: id=%s", program_id)
