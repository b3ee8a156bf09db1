"""Tests for coupon validation, administration and discount calculation."""

from datetime import timedelta

import pytest

from conftest import coupon_data, order_item, place_order, product_data, run
from libs.common import ConflictError, NotFoundError, ValidationError, now_kst
from libs.schemas import Coupon, CouponStatus, CouponValueType
from services.shop.app.core.CouponService import CouponError, calculate_discount, derive_coupon_status


def make_coupon(value_type=CouponValueType.PERCENT, value=10, max_value=None, used=0, quantity=5) -> Coupon:
    now = now_kst()
    return Coupon(
        couponId=1,
        couponCode="TEST",
        valueType=value_type,
        value=value,
        maxValue=max_value,
        couponStatus=CouponStatus.ACTIVE,
        startDate=now - timedelta(days=1),
        endDate=now + timedelta(days=1),
        couponQuantity=quantity,
        usedQuantity=used,
    )


class TestCalculateDiscount:
    def test_percent(self):
        assert calculate_discount(make_coupon(value=10), 200_000) == 20_000

    def test_percent_capped_by_max_value(self):
        assert calculate_discount(make_coupon(value=50, max_value=30_000), 200_000) == 30_000

    def test_fixed_amount_not_above_order_amount(self):
        coupon = make_coupon(value_type=CouponValueType.FIXED_AMOUNT, value=50_000)
        assert calculate_discount(coupon, 80_000) == 50_000
        assert calculate_discount(coupon, 30_000) == 30_000

    def test_zero_amount(self):
        assert calculate_discount(make_coupon(), 0) == 0


class TestDeriveStatus:
    def test_active(self):
        assert derive_coupon_status(make_coupon(), now_kst()) == CouponStatus.ACTIVE

    def test_exhausted(self):
        assert derive_coupon_status(make_coupon(used=5, quantity=5), now_kst()) == CouponStatus.OUT_OF_USED

    def test_not_started(self):
        coupon = make_coupon()
        assert derive_coupon_status(coupon, coupon.startDate - timedelta(hours=1)) == CouponStatus.SCHEDULE

    def test_last_instant_still_active(self):
        coupon = make_coupon()
        assert derive_coupon_status(coupon, coupon.endDate) == CouponStatus.ACTIVE

    def test_past_end(self):
        coupon = make_coupon()
        assert derive_coupon_status(coupon, coupon.endDate + timedelta(microseconds=1)) == CouponStatus.EXPIRED


class TestValidateAndApply:
    def test_valid_coupon(self, coupon_service):
        run(coupon_service.create_coupon(coupon_data("SAVE10")))
        coupon = run(coupon_service.validate_and_apply("SAVE10", user_id=1))
        assert coupon.couponCode == "SAVE10"

    def test_unknown_code(self, coupon_service):
        with pytest.raises(CouponError) as exc_info:
            run(coupon_service.validate_and_apply("NOPE", user_id=1))
        assert exc_info.value.code == CouponError.NOT_FOUND
        assert exc_info.value.status_code == 404

    def test_not_started(self, coupon_service):
        now = now_kst()
        run(coupon_service.create_coupon(coupon_data("LATER", startDate=now + timedelta(days=1), endDate=now + timedelta(days=2))))
        with pytest.raises(CouponError) as exc_info:
            run(coupon_service.validate_and_apply("LATER", user_id=1))
        assert exc_info.value.code == CouponError.EXPIRED
        assert exc_info.value.status_code == 400

    def test_past_end(self, coupon_service):
        now = now_kst()
        run(coupon_service.create_coupon(coupon_data("OLD", startDate=now - timedelta(days=5), endDate=now - timedelta(days=1))))
        with pytest.raises(CouponError) as exc_info:
            run(coupon_service.validate_and_apply("OLD", user_id=1))
        assert exc_info.value.code == CouponError.EXPIRED

    def test_valid_until_end_date_inclusive(self, coupon_service):
        coupon = run(coupon_service.create_coupon(coupon_data("EDGE")))
        assert run(coupon_service.validate_and_apply("EDGE", user_id=1, now=coupon.endDate)).couponCode == "EDGE"

        with pytest.raises(CouponError) as exc_info:
            run(coupon_service.validate_and_apply("EDGE", user_id=1, now=coupon.endDate + timedelta(microseconds=1)))
        assert exc_info.value.code == CouponError.EXPIRED

    def test_exhausted_marks_out_of_used(self, coupon_service, coupon_repository, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        run(coupon_service.create_coupon(coupon_data("ONCE", couponQuantity=1)))
        place_order(order_service, 1, [order_item(product.productId)], coupon_code="ONCE")

        with pytest.raises(CouponError) as exc_info:
            run(coupon_service.validate_and_apply("ONCE", user_id=2))
        assert exc_info.value.code == CouponError.EXHAUSTED
        assert exc_info.value.status_code == 409

        stored = run(coupon_repository.find_coupon_by_code("ONCE"))
        assert stored.couponStatus == CouponStatus.OUT_OF_USED

    def test_already_used_until_cancelled(self, coupon_service, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        run(coupon_service.create_coupon(coupon_data("REPEAT")))
        order = place_order(order_service, 1, [order_item(product.productId)], coupon_code="REPEAT")

        with pytest.raises(CouponError) as exc_info:
            run(coupon_service.validate_and_apply("REPEAT", user_id=1))
        assert exc_info.value.code == CouponError.ALREADY_USED

        # 다른 사용자는 사용 가능
        run(coupon_service.validate_and_apply("REPEAT", user_id=2))

        run(order_service.cancel_order(order.orderCode, 1))
        run(coupon_service.validate_and_apply("REPEAT", user_id=1))

    def test_anonymous_validation_skips_usage_check(self, coupon_service, product_service, order_service):
        product = run(product_service.create_product(product_data()))
        run(coupon_service.create_coupon(coupon_data("ANON")))
        place_order(order_service, 1, [order_item(product.productId)], coupon_code="ANON")
        assert run(coupon_service.validate_and_apply("ANON", user_id=None)).couponCode == "ANON"


class TestCouponAdministration:
    def test_create_active_and_scheduled(self, coupon_service):
        now = now_kst()
        active = run(coupon_service.create_coupon(coupon_data("NOW")))
        scheduled = run(
            coupon_service.create_coupon(coupon_data("SOON", startDate=now + timedelta(days=1), endDate=now + timedelta(days=2)))
        )
        assert active.couponStatus == CouponStatus.ACTIVE
        assert scheduled.couponStatus == CouponStatus.SCHEDULE
        assert active.usedQuantity == 0

    def test_duplicate_code(self, coupon_service):
        run(coupon_service.create_coupon(coupon_data("DUP")))
        with pytest.raises(ConflictError):
            run(coupon_service.create_coupon(coupon_data("DUP")))

    def test_invalid_period(self, coupon_service):
        now = now_kst()
        with pytest.raises(ValidationError):
            run(coupon_service.create_coupon(coupon_data("BAD", startDate=now, endDate=now - timedelta(hours=1))))

    def test_percent_above_100(self, coupon_service):
        with pytest.raises(ValidationError):
            run(coupon_service.create_coupon(coupon_data("BAD", value=150)))

    def test_update_merges_changes(self, coupon_service):
        run(coupon_service.create_coupon(coupon_data("EDIT", value=10)))
        updated = run(
            coupon_service.update_coupon(
                "EDIT",
                {"value": 20, "maxValue": None, "startDate": now_kst() + timedelta(days=1), "endDate": now_kst() + timedelta(days=3)},
            )
        )
        assert updated.value == 20
        assert updated.couponQuantity == 5
        assert updated.couponStatus == CouponStatus.SCHEDULE

    def test_update_missing(self, coupon_service):
        with pytest.raises(NotFoundError):
            run(coupon_service.update_coupon("MISSING", {"value": 20}))

    def test_delete(self, coupon_service, coupon_repository):
        run(coupon_service.create_coupon(coupon_data("GONE")))
        run(coupon_service.delete_coupon("GONE"))
        assert run(coupon_repository.find_coupon_by_code("GONE")) is None
        with pytest.raises(NotFoundError):
            run(coupon_service.delete_coupon("GONE"))

    def test_list_with_search_and_paging(self, coupon_service):
        for code in ("SPRING1", "SPRING2", "SPRING3", "WINTER1"):
            run(coupon_service.create_coupon(coupon_data(code)))

        page = run(coupon_service.get_coupons("spring", None, page=1, size=2))
        assert page.total == 3
        assert page.pages == 2
        assert len(page.items) == 2
        assert all(coupon.couponCode.startswith("SPRING") for coupon in page.items)
