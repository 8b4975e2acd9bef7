"""Integrity checks run by the validation engine.

Each check is a read-only function ``(db, organization_id, context)`` that
returns how many rows it flagged and one finding per issue to record. The
engine runs ``CHECKS`` in order; adding a check means appending to it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import and_
from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from cadence.models.customer import Customer
from cadence.models.product import Product
from cadence.models.subscription import Subscription, SubscriptionStatus
from cadence.models.subscription_order import OrderStatus, SubscriptionOrder
from cadence.models.validation import IssueType, Severity


@dataclass
class CheckContext:
    now: datetime
    max_pause_days: int


@dataclass
class Finding:
    subscription_id: UUID
    description: str


@dataclass
class CheckResult:
    examined: int = 0
    findings: list[Finding] = field(default_factory=list)


@dataclass(frozen=True)
class Check:
    issue_type: IssueType
    severity: Severity
    suggested_fix: str
    run: Callable[[Session, UUID, CheckContext], CheckResult]


def _result(findings: list[Finding]) -> CheckResult:
    return CheckResult(examined=len(findings), findings=findings)


def check_orphaned(db: Session, organization_id: UUID, context: CheckContext) -> CheckResult:
    rows = (
        db.query(Subscription.id, Subscription.customer_id)
        .outerjoin(
            Customer,
            and_(
                Customer.id == Subscription.customer_id,
                Customer.organization_id == Subscription.organization_id,
            ),
        )
        .filter(Subscription.organization_id == organization_id, Customer.id.is_(None))
        .all()
    )
    return _result(
        [
            Finding(sub_id, f"Subscription references non-existent customer: {customer_id}")
            for sub_id, customer_id in rows
        ]
    )


def check_missing_product(
    db: Session, organization_id: UUID, context: CheckContext
) -> CheckResult:
    rows = (
        db.query(Subscription.id, Subscription.product_id)
        .outerjoin(
            Product,
            and_(
                Product.id == Subscription.product_id,
                Product.organization_id == Subscription.organization_id,
            ),
        )
        .filter(
            Subscription.organization_id == organization_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
            Product.id.is_(None),
        )
        .all()
    )
    return _result(
        [
            Finding(sub_id, f"Active subscription references non-existent product: {product_id}")
            for sub_id, product_id in rows
        ]
    )


def check_missing_billing_date(
    db: Session, organization_id: UUID, context: CheckContext
) -> CheckResult:
    rows = (
        db.query(Subscription.id)
        .filter(
            Subscription.organization_id == organization_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
            Subscription.next_billing_date.is_(None),
        )
        .all()
    )
    return _result(
        [Finding(sub_id, "Active subscription has no next billing date") for (sub_id,) in rows]
    )


def check_cancelled_with_pending_orders(
    db: Session, organization_id: UUID, context: CheckContext
) -> CheckResult:
    rows = (
        db.query(Subscription.id, sa_func.count(SubscriptionOrder.id))
        .join(SubscriptionOrder, SubscriptionOrder.subscription_id == Subscription.id)
        .filter(
            Subscription.organization_id == organization_id,
            Subscription.status == SubscriptionStatus.CANCELLED.value,
            SubscriptionOrder.status == OrderStatus.SCHEDULED.value,
        )
        .group_by(Subscription.id)
        .all()
    )
    return _result(
        [
            Finding(sub_id, f"Cancelled subscription has {pending} pending orders")
            for sub_id, pending in rows
        ]
    )


def check_paused_too_long(
    db: Session, organization_id: UUID, context: CheckContext
) -> CheckResult:
    cutoff = context.now - timedelta(days=context.max_pause_days)
    rows = (
        db.query(Subscription.id)
        .filter(
            Subscription.organization_id == organization_id,
            Subscription.status == SubscriptionStatus.PAUSED.value,
            Subscription.paused_at.isnot(None),
            Subscription.paused_at < cutoff,
        )
        .all()
    )
    return _result(
        [
            Finding(
                sub_id, f"Subscription paused beyond max duration ({context.max_pause_days} days)"
            )
            for (sub_id,) in rows
        ]
    )


def check_payment_expiring(
    db: Session, organization_id: UUID, context: CheckContext
) -> CheckResult:
    """Cards already expired or expiring by the end of next calendar month."""
    if context.now.month == 12:
        horizon = (context.now.year + 1, 1)
    else:
        horizon = (context.now.year, context.now.month + 1)

    rows = (
        db.query(
            Subscription.id,
            Subscription.payment_method_exp_month,
            Subscription.payment_method_exp_year,
        )
        .filter(
            Subscription.organization_id == organization_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
            Subscription.payment_method_exp_month.isnot(None),
            Subscription.payment_method_exp_year.isnot(None),
        )
        .all()
    )
    return _result(
        [
            Finding(sub_id, f"Payment method expires {month}/{year}")
            for sub_id, month, year in rows
            if (year, month) <= horizon
        ]
    )


def check_duplicates(db: Session, organization_id: UUID, context: CheckContext) -> CheckResult:
    """One finding per (customer, product) pair with several active subscriptions.

    The finding is attached to the newest subscription of the group and
    names the others.
    """
    active = (
        db.query(Subscription.id, Subscription.customer_id, Subscription.product_id)
        .filter(
            Subscription.organization_id == organization_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
        )
        .order_by(Subscription.created_at.desc(), Subscription.id)
        .all()
    )
    groups: dict[tuple[str, str], list[UUID]] = {}
    for sub_id, customer_id, product_id in active:
        groups.setdefault((customer_id, product_id), []).append(sub_id)

    findings = []
    for ids in groups.values():
        if len(ids) < 2:
            continue
        newest, others = ids[0], ids[1:]
        findings.append(
            Finding(
                newest,
                f"Customer has {len(ids)} active subscriptions for same product "
                f"(also: {', '.join(str(i) for i in others)})",
            )
        )
    return _result(findings)


def check_sync_errors(db: Session, organization_id: UUID, context: CheckContext) -> CheckResult:
    rows = (
        db.query(Subscription.id, Subscription.sync_error)
        .filter(
            Subscription.organization_id == organization_id,
            Subscription.sync_error.isnot(None),
        )
        .all()
    )
    return _result([Finding(sub_id, f"Sync error: {error}") for sub_id, error in rows])


def check_invalid_frequency(
    db: Session, organization_id: UUID, context: CheckContext
) -> CheckResult:
    rows = (
        db.query(Subscription.id, Subscription.frequency_interval)
        .filter(
            Subscription.organization_id == organization_id,
            (Subscription.frequency_interval < 1) | (Subscription.frequency_interval > 12),
        )
        .all()
    )
    return _result(
        [Finding(sub_id, f"Invalid frequency interval: {interval}") for sub_id, interval in rows]
    )


def check_invalid_amount(
    db: Session, organization_id: UUID, context: CheckContext
) -> CheckResult:
    rows = (
        db.query(Subscription.id, Subscription.price_cents, Subscription.discount_cents)
        .filter(
            Subscription.organization_id == organization_id,
            (Subscription.price_cents < 0)
            | (Subscription.discount_cents < 0)
            | (Subscription.discount_cents > Subscription.price_cents),
        )
        .all()
    )
    return _result(
        [
            Finding(sub_id, f"Invalid pricing: price={price}, discount={discount}")
            for sub_id, price, discount in rows
        ]
    )


CHECKS: list[Check] = [
    Check(
        IssueType.ORPHANED_SUBSCRIPTION,
        Severity.ERROR,
        "Link to valid customer or archive subscription",
        check_orphaned,
    ),
    Check(
        IssueType.MISSING_PRODUCT,
        Severity.ERROR,
        "Update product reference or cancel subscription",
        check_missing_product,
    ),
    Check(
        IssueType.MISSING_BILLING_DATE,
        Severity.ERROR,
        "Calculate and set next billing date based on frequency",
        check_missing_billing_date,
    ),
    Check(
        IssueType.CANCELLED_WITH_PENDING_ORDERS,
        Severity.WARNING,
        "Cancel or skip pending orders",
        check_cancelled_with_pending_orders,
    ),
    Check(
        IssueType.PAUSED_TOO_LONG,
        Severity.WARNING,
        "Resume or cancel subscription",
        check_paused_too_long,
    ),
    Check(
        IssueType.PAYMENT_EXPIRING,
        Severity.WARNING,
        "Send payment update reminder to customer",
        check_payment_expiring,
    ),
    Check(
        IssueType.DUPLICATE_SUBSCRIPTION,
        Severity.WARNING,
        "Merge or cancel duplicate subscriptions",
        check_duplicates,
    ),
    Check(
        IssueType.SYNC_ERROR,
        Severity.ERROR,
        "Retry sync or investigate provider issue",
        check_sync_errors,
    ),
    Check(
        IssueType.INVALID_FREQUENCY,
        Severity.ERROR,
        "Set frequency interval to valid range (1-12)",
        check_invalid_frequency,
    ),
    Check(
        IssueType.INVALID_AMOUNT,
        Severity.ERROR,
        "Correct pricing values",
        check_invalid_amount,
    ),
]
