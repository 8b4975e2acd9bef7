"""Billing-date arithmetic and monthly normalization per subscription frequency."""

import calendar as cal
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from cadence.models.subscription import SubscriptionFrequency

# Frequency -> (unit, amount) for one billing period
FREQUENCY_DURATIONS: dict[str, tuple[str, int]] = {
    SubscriptionFrequency.WEEKLY.value: ("days", 7),
    SubscriptionFrequency.BIWEEKLY.value: ("days", 14),
    SubscriptionFrequency.MONTHLY.value: ("months", 1),
    SubscriptionFrequency.BIMONTHLY.value: ("months", 2),
    SubscriptionFrequency.QUARTERLY.value: ("months", 3),
    SubscriptionFrequency.SEMIANNUALLY.value: ("months", 6),
    SubscriptionFrequency.ANNUALLY.value: ("months", 12),
}

# Frequency -> (multiplier, divisor) converting one period's amount to a month.
# Weekly cadences use the flat 4.33 / 2.17 weeks-per-month approximation.
MONTHLY_FACTORS: dict[str, tuple[Decimal, Decimal]] = {
    SubscriptionFrequency.WEEKLY.value: (Decimal("4.33"), Decimal(1)),
    SubscriptionFrequency.BIWEEKLY.value: (Decimal("2.17"), Decimal(1)),
    SubscriptionFrequency.MONTHLY.value: (Decimal(1), Decimal(1)),
    SubscriptionFrequency.BIMONTHLY.value: (Decimal(1), Decimal(2)),
    SubscriptionFrequency.QUARTERLY.value: (Decimal(1), Decimal(3)),
    SubscriptionFrequency.SEMIANNUALLY.value: (Decimal(1), Decimal(6)),
    SubscriptionFrequency.ANNUALLY.value: (Decimal(1), Decimal(12)),
}


def add_months(dt: datetime, months: int) -> datetime:
    """Add months to a datetime, clamping to last day of month."""
    month = dt.month - 1 + months
    year = dt.year + month // 12
    month = month % 12 + 1
    max_day = cal.monthrange(year, month)[1]
    day = min(dt.day, max_day)
    return dt.replace(year=year, month=month, day=day)


def advance_billing_date(start: datetime, frequency: str, interval: int = 1) -> datetime:
    """Return ``start`` moved forward by ``interval`` billing periods.

    Unrecognized frequencies advance by exactly one month, regardless of
    ``interval``.
    """
    duration = FREQUENCY_DURATIONS.get(frequency)
    if duration is None:
        return add_months(start, 1)
    unit, amount = duration
    if unit == "days":
        return start + timedelta(days=amount * interval)
    return add_months(start, amount * interval)


def monthly_equivalent(
    price_cents: int,
    discount_cents: int,
    quantity: int,
    frequency: str,
    interval: int,
) -> Decimal:
    """Unrounded monthly-equivalent revenue of one subscription, in cents.

    ``(price - discount) * quantity`` is scaled by the frequency factor and
    divided by the frequency interval. Unknown frequencies count as monthly.
    """
    multiplier, divisor = MONTHLY_FACTORS.get(frequency, (Decimal(1), Decimal(1)))
    net = Decimal(price_cents - discount_cents) * Decimal(quantity)
    return net * multiplier / divisor / Decimal(max(interval, 1))


def round_cents(amount: Decimal) -> int:
    """Round a cent amount half-up to a whole cent."""
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
