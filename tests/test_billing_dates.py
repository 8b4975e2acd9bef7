"""Tests for billing-date arithmetic and monthly normalization."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from cadence.models.subscription import SubscriptionFrequency
from cadence.services.billing_dates import (
    add_months,
    advance_billing_date,
    monthly_equivalent,
    round_cents,
)


class TestAddMonths:
    def test_simple(self):
        assert add_months(datetime(2025, 1, 15, tzinfo=UTC), 1) == datetime(
            2025, 2, 15, tzinfo=UTC
        )

    def test_clamps_to_end_of_month(self):
        assert add_months(datetime(2025, 1, 31, tzinfo=UTC), 1) == datetime(
            2025, 2, 28, tzinfo=UTC
        )

    def test_leap_year(self):
        assert add_months(datetime(2024, 1, 31, tzinfo=UTC), 1) == datetime(
            2024, 2, 29, tzinfo=UTC
        )

    def test_year_rollover(self):
        assert add_months(datetime(2025, 11, 15, tzinfo=UTC), 3) == datetime(
            2026, 2, 15, tzinfo=UTC
        )

    def test_negative_months(self):
        assert add_months(datetime(2025, 1, 15, tzinfo=UTC), -1) == datetime(
            2024, 12, 15, tzinfo=UTC
        )

    def test_preserves_time(self):
        result = add_months(datetime(2025, 3, 10, 14, 30, tzinfo=UTC), 12)
        assert result == datetime(2026, 3, 10, 14, 30, tzinfo=UTC)


class TestAdvanceBillingDate:
    start = datetime(2025, 1, 31, 9, 0, tzinfo=UTC)

    @pytest.mark.parametrize(
        ("frequency", "interval", "expected"),
        [
            (SubscriptionFrequency.WEEKLY, 1, datetime(2025, 2, 7, 9, 0, tzinfo=UTC)),
            (SubscriptionFrequency.WEEKLY, 2, datetime(2025, 2, 14, 9, 0, tzinfo=UTC)),
            (SubscriptionFrequency.BIWEEKLY, 1, datetime(2025, 2, 14, 9, 0, tzinfo=UTC)),
            (SubscriptionFrequency.MONTHLY, 1, datetime(2025, 2, 28, 9, 0, tzinfo=UTC)),
            (SubscriptionFrequency.MONTHLY, 3, datetime(2025, 4, 30, 9, 0, tzinfo=UTC)),
            (SubscriptionFrequency.BIMONTHLY, 1, datetime(2025, 3, 31, 9, 0, tzinfo=UTC)),
            (SubscriptionFrequency.QUARTERLY, 1, datetime(2025, 4, 30, 9, 0, tzinfo=UTC)),
            (SubscriptionFrequency.SEMIANNUALLY, 1, datetime(2025, 7, 31, 9, 0, tzinfo=UTC)),
            (SubscriptionFrequency.ANNUALLY, 1, datetime(2026, 1, 31, 9, 0, tzinfo=UTC)),
        ],
    )
    def test_frequencies(self, frequency, interval, expected):
        assert advance_billing_date(self.start, frequency.value, interval) == expected

    def test_unknown_frequency_advances_one_month(self):
        result = advance_billing_date(self.start, "fortnightly", 5)
        assert result == datetime(2025, 2, 28, 9, 0, tzinfo=UTC)


class TestMonthlyEquivalent:
    def test_weekly(self):
        assert monthly_equivalent(700, 0, 1, "weekly", 1) == Decimal("3031.00")

    def test_biweekly(self):
        assert monthly_equivalent(1000, 0, 1, "biweekly", 1) == Decimal("2170.00")

    def test_monthly_with_discount_and_quantity(self):
        assert monthly_equivalent(2000, 500, 2, "monthly", 1) == Decimal(3000)

    def test_quarterly(self):
        assert monthly_equivalent(3000, 0, 1, "quarterly", 1) == Decimal(1000)

    def test_interval_divides(self):
        assert monthly_equivalent(2000, 0, 1, "monthly", 2) == Decimal(1000)

    def test_annual_is_unrounded(self):
        assert monthly_equivalent(1000, 0, 1, "annually", 1) == Decimal(1000) / Decimal(12)

    def test_unknown_frequency_counts_as_monthly(self):
        assert monthly_equivalent(1500, 0, 1, "daily", 1) == Decimal(1500)

    def test_zero_interval_treated_as_one(self):
        assert monthly_equivalent(1500, 0, 1, "monthly", 0) == Decimal(1500)


class TestRoundCents:
    def test_half_up(self):
        assert round_cents(Decimal("2.5")) == 3

    def test_below_half(self):
        assert round_cents(Decimal("83.33")) == 83
