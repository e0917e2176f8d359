"""
金额计算
"""
from datetime import date, time
from decimal import Decimal

import pytest

from app.services import availability, pricing


class TestDuration:
    def test_hours_between_times(self):
        assert pricing.calculate_duration(time(13, 0), time(16, 0)) == Decimal("3.00")

    def test_half_hours(self):
        assert pricing.calculate_duration(time(13, 0), time(14, 30)) == Decimal("1.50")

    def test_overnight(self):
        assert pricing.calculate_duration(time(22, 0), time(2, 0)) == Decimal("4.00")

    def test_overnight_within_same_hour(self):
        assert pricing.calculate_duration(time(10, 30), time(10, 0)) == Decimal("23.50")
        a, b = availability.normalize_interval(time(10, 30), time(10, 0))
        assert Decimal(b - a) / 60 == pricing.calculate_duration(time(10, 30), time(10, 0))

    def test_nights(self):
        assert pricing.calculate_nights(date(2030, 1, 1), date(2030, 1, 31)) == 30


class TestRoomSubtotal:
    def test_hourly_price_times_duration(self):
        assert pricing.room_subtotal(Decimal("50000"), Decimal("3")) == Decimal("150000.00")

    def test_monthly_price_is_flat(self):
        assert pricing.room_subtotal(Decimal("1500000"), 30, pricing.DURATION_MONTHS) == Decimal("1500000.00")

    def test_nightly_price_times_nights(self):
        assert pricing.room_subtotal(Decimal("200000"), 3, pricing.DURATION_DAYS) == Decimal("600000.00")

    def test_no_variant(self):
        assert pricing.room_subtotal(None, 3) == pricing.ZERO


class TestDiscount:
    def test_percentage_on_room(self):
        discount = pricing.calculate_discount(
            Decimal("150000"), Decimal("30000"), pricing.DISCOUNT_PERCENTAGE, 10, pricing.DISCOUNT_ON_ROOM
        )
        assert discount == Decimal("15000.00")

    def test_amount_on_products(self):
        discount = pricing.calculate_discount(
            Decimal("150000"), Decimal("30000"), pricing.DISCOUNT_AMOUNT, 5000, pricing.DISCOUNT_ON_PRODUCTS
        )
        assert discount == Decimal("5000.00")

    def test_amount_is_clamped_to_target(self):
        discount = pricing.calculate_discount(
            Decimal("150000"), Decimal("30000"), pricing.DISCOUNT_AMOUNT, 50000, pricing.DISCOUNT_ON_PRODUCTS
        )
        assert discount == Decimal("30000.00")

    def test_no_discount_type(self):
        assert pricing.calculate_discount(Decimal("100"), Decimal("0"), None, 10, None) == pricing.ZERO


class TestQuote:
    def test_grand_total(self):
        breakdown = pricing.quote_booking(
            variant_price=Decimal("50000"), duration=Decimal("3"),
            products=[(Decimal("15000"), 2)],
            discount_type=pricing.DISCOUNT_PERCENTAGE, discount_value=10,
            discount_applies_to=pricing.DISCOUNT_ON_ROOM,
        )
        assert breakdown.room_subtotal == Decimal("150000.00")
        assert breakdown.products_subtotal == Decimal("30000.00")
        assert breakdown.discount == Decimal("15000.00")
        assert breakdown.grand_total == Decimal("165000.00")

    def test_ota_uses_manual_price(self):
        breakdown = pricing.quote_booking(
            variant_price=Decimal("50000"), duration=Decimal("3"),
            booking_type=pricing.BOOKING_TYPE_OTA, manual_price=Decimal("175000"),
        )
        assert breakdown.room_subtotal == Decimal("175000.00")
        assert breakdown.grand_total == Decimal("175000.00")


class TestPayments:
    def test_single_payment_autofills_grand_total(self):
        assert pricing.autofill_payments(Decimal("150000"), None, None, False) == (Decimal("150000.00"), None)

    def test_explicit_price_is_kept(self):
        price, price_2 = pricing.autofill_payments(Decimal("150000"), Decimal("100000"), None, False)
        assert price == Decimal("100000.00")
        assert price_2 is None

    def test_dual_payment_second_is_remainder(self):
        price, price_2 = pricing.autofill_payments(Decimal("200000"), Decimal("120000"), None, True)
        assert price == Decimal("120000.00")
        assert price_2 == Decimal("80000.00")

    def test_ota_price_is_not_autofilled(self):
        price, _ = pricing.autofill_payments(Decimal("150000"), None, None, False, pricing.BOOKING_TYPE_OTA)
        assert price is None

    def test_reconcile_underpayment(self):
        result = pricing.reconcile_payment(Decimal("200000"), Decimal("120000"), Decimal("50000"), True)
        assert result.total_paid == Decimal("170000.00")
        assert result.difference == Decimal("-30000.00")
        assert result.is_underpayment
        assert not result.is_overpayment

    def test_second_payment_ignored_without_dual(self):
        result = pricing.reconcile_payment(Decimal("100000"), Decimal("100000"), Decimal("50000"), False)
        assert not result.is_different

    def test_payment_status(self):
        assert pricing.payment_status(Decimal("100000"), Decimal("100000")) == pricing.PAYMENT_PAID
        assert pricing.payment_status(Decimal("100000"), Decimal("60000")) == pricing.PAYMENT_UNPAID


class TestPriceFormat:
    def test_format_thousands(self):
        assert pricing.format_price(12500000) == "12.500.000"
        assert pricing.format_price(Decimal("150000.00")) == "150.000"

    def test_parse(self):
        assert pricing.parse_price("12.500.000") == 12500000
        assert pricing.parse_price("") == 0


class TestVariantVisibility:
    # 2030-01-14 是周一，2030-01-19 是周六
    @pytest.mark.parametrize("visibility, days, day, expected", [
        ("all", None, date(2030, 1, 19), True),
        ("weekdays", None, date(2030, 1, 14), True),
        ("weekdays", None, date(2030, 1, 19), False),
        ("weekends", None, date(2030, 1, 19), True),
        ("specific_days", [1, 3], date(2030, 1, 14), True),
        ("specific_days", [1, 3], date(2030, 1, 19), False),
    ])
    def test_visible_on(self, visibility, days, day, expected):
        assert pricing.variant_visible_on(visibility, days, day) is expected

    def test_js_weekday_sunday_is_zero(self):
        assert pricing.js_weekday(date(2030, 1, 20)) == 0


class TestDurationUnits:
    def test_add_months_clamps_to_month_end(self):
        assert pricing.add_months(date(2030, 1, 31), 1) == date(2030, 2, 28)

    def test_booking_end_date(self):
        assert pricing.booking_end_date(date(2030, 1, 15), pricing.DURATION_WEEKS, 2) == date(2030, 1, 29)
        assert pricing.booking_end_date(date(2030, 1, 15), pricing.DURATION_MONTHS, 1) == date(2030, 2, 15)

    def test_end_time_after(self):
        assert pricing.end_time_after(time(22, 0), Decimal("3")) == time(1, 0)
