"""Tests for discount program price overlay and program lookup."""

from datetime import timedelta

import pytest

from conftest import product_data, program_data, run
from libs.common import NotFoundError, StateError, ValidationError, now_kst
from libs.schemas import (
    ApplySetting,
    DiscountApplyType,
    DiscountProgram,
    DiscountStatus,
    Product,
    ProductGender,
    ProductType,
)
from services.shop.app.core.DiscountService import apply_overlay, derive_program_status


def make_product(product_id: int = 1, original: float = 100_000, sale: float | None = None) -> Product:
    return Product(
        productId=product_id,
        productName="Runner",
        description="Light running shoes",
        productType=ProductType.SHOES,
        productGender=ProductGender.UNISEX,
        originalPrice=original,
        salePrice=sale,
    )


def make_program(
    percentage: float = 10,
    setting: ApplySetting = ApplySetting.ALWAYS_APPLY,
    apply_type: DiscountApplyType = DiscountApplyType.ALL_PRODUCTS,
    product_ids: list[int] | None = None,
) -> DiscountProgram:
    now = now_kst()
    return DiscountProgram(
        programId=1,
        programName="Summer Sale",
        discountPercentage=percentage,
        applyType=apply_type,
        productIds=product_ids or [],
        applySetting=setting,
        status=DiscountStatus.ACTIVE,
        startDate=now - timedelta(days=1),
        endDate=now + timedelta(days=1),
    )


class TestApplyOverlay:
    def test_no_program_keeps_price(self):
        product = make_product(sale=80_000)
        assert apply_overlay(product, None).salePrice == 80_000

    def test_always_apply_overrides_lower_manual_price(self):
        product = make_product(sale=50_000)
        result = apply_overlay(product, make_program(setting=ApplySetting.ALWAYS_APPLY))
        assert result.salePrice == 90_000
        assert result.effective_price == 90_000

    def test_conditional_keeps_lower_manual_price(self):
        product = make_product(sale=50_000)
        result = apply_overlay(product, make_program(setting=ApplySetting.APPLY_WITH_CONDITION))
        assert result.salePrice == 50_000

    def test_conditional_applies_when_discount_is_lower(self):
        product = make_product(sale=95_000)
        result = apply_overlay(product, make_program(setting=ApplySetting.APPLY_WITH_CONDITION))
        assert result.salePrice == 90_000

    def test_conditional_applies_without_manual_price(self):
        product = make_product(sale=None)
        result = apply_overlay(product, make_program(setting=ApplySetting.APPLY_WITH_CONDITION))
        assert result.salePrice == 90_000

    @pytest.mark.parametrize("sale", [None, 50_000, 90_000, 95_000])
    def test_conditional_never_raises_price_when_recomputed(self, sale):
        program = make_program(percentage=10, setting=ApplySetting.APPLY_WITH_CONDITION)
        product = make_product(sale=sale)
        previous = product.effective_price
        for _ in range(5):
            product = apply_overlay(product, program)
            assert product.effective_price <= previous
            previous = product.effective_price
        expected = 90_000 if sale is None else min(sale, 90_000)
        assert product.salePrice == expected

    def test_specific_program_skips_other_products(self):
        program = make_program(apply_type=DiscountApplyType.SPECIFIC_PRODUCTS, product_ids=[2])
        assert apply_overlay(make_product(product_id=1), program).salePrice is None
        assert apply_overlay(make_product(product_id=2), program).salePrice == 90_000

    def test_original_product_is_not_modified(self):
        product = make_product(sale=None)
        apply_overlay(product, make_program())
        assert product.salePrice is None
        assert product.effective_price == 100_000


class TestProgramStatus:
    def test_status_from_period(self):
        now = now_kst()
        assert derive_program_status(now + timedelta(hours=1), now + timedelta(days=1), now) == DiscountStatus.SCHEDULED
        assert derive_program_status(now - timedelta(hours=1), now + timedelta(days=1), now) == DiscountStatus.ACTIVE
        assert derive_program_status(now - timedelta(days=2), now, now) == DiscountStatus.EXPIRED


class TestDiscountService:
    def test_create_sets_status(self, discount_service):
        active = run(discount_service.create_program(program_data()))
        scheduled = run(
            discount_service.create_program(
                program_data(startDate=now_kst() + timedelta(days=1), endDate=now_kst() + timedelta(days=3))
            )
        )
        assert active.status == DiscountStatus.ACTIVE
        assert scheduled.status == DiscountStatus.SCHEDULED

    def test_invalid_period_rejected(self, discount_service):
        now = now_kst()
        with pytest.raises(ValidationError):
            run(discount_service.create_program(program_data(startDate=now, endDate=now - timedelta(days=1))))

    def test_specific_program_requires_products(self, discount_service):
        with pytest.raises(ValidationError):
            run(discount_service.create_program(program_data(applyType=DiscountApplyType.SPECIFIC_PRODUCTS)))

    def test_product_ids_ignored_for_all_products(self, discount_service):
        program = run(discount_service.create_program(program_data(productIds=[1, 2])))
        assert program.productIds == []

    def test_latest_created_program_wins(self, discount_service):
        run(discount_service.create_program(program_data(programName="First", discountPercentage=10)))
        run(discount_service.create_program(program_data(programName="Second", discountPercentage=30)))
        active = run(discount_service.get_active_program())
        assert active.programName == "Second"

    def test_cancelled_program_is_not_active(self, discount_service):
        program = run(discount_service.create_program(program_data()))
        run(discount_service.cancel_program(program.programId))
        assert run(discount_service.get_active_program()) is None

    def test_cancel_twice_rejected(self, discount_service):
        program = run(discount_service.create_program(program_data()))
        run(discount_service.cancel_program(program.programId))
        with pytest.raises(StateError):
            run(discount_service.cancel_program(program.programId))

    def test_update_cancelled_program_rejected(self, discount_service):
        program = run(discount_service.create_program(program_data()))
        run(discount_service.cancel_program(program.programId))
        with pytest.raises(StateError):
            run(discount_service.update_program(program.programId, {"discountPercentage": 20}))

    def test_update_missing_program(self, discount_service):
        with pytest.raises(NotFoundError):
            run(discount_service.update_program(999, {"discountPercentage": 20}))

    def test_update_recomputes_status(self, discount_service):
        program = run(discount_service.create_program(program_data()))
        updated = run(
            discount_service.update_program(
                program.programId,
                {"startDate": now_kst() + timedelta(days=1), "endDate": now_kst() + timedelta(days=2)},
            )
        )
        assert updated.status == DiscountStatus.SCHEDULED

    def test_current_program_falls_back_to_next_scheduled(self, discount_service):
        assert run(discount_service.get_current_program()) is None
        run(
            discount_service.create_program(
                program_data(
                    programName="Upcoming",
                    startDate=now_kst() + timedelta(days=1),
                    endDate=now_kst() + timedelta(days=3),
                )
            )
        )
        current = run(discount_service.get_current_program())
        assert current.programName == "Upcoming"


class TestOverlayOnCatalog:
    def test_listing_reflects_active_program(self, product_service, discount_service):
        product = run(product_service.create_product(product_data(salePrice=95_000)))
        run(discount_service.create_program(program_data(applySetting=ApplySetting.APPLY_WITH_CONDITION)))

        page = run(product_service.get_products())
        assert page.items[0].productId == product.productId
        assert page.items[0].salePrice == 90_000

    def test_stored_price_unchanged(self, product_service, product_repository, discount_service):
        product = run(product_service.create_product(product_data()))
        run(discount_service.create_program(program_data()))

        run(product_service.get_products())
        stored = run(product_repository.find_product_by_id(product.productId))
        assert stored.salePrice is None
