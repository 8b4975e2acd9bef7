"""Tests for SubscriptionService: lifecycle mutations, activity, settings and MRR."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from cadence.models.shared import ensure_utc
from cadence.models.subscription_order import SubscriptionOrder
from cadence.repositories.organization_repository import OrganizationRepository
from cadence.schemas.subscription import Actor, SubscriptionFilters
from cadence.schemas.subscription_settings import SubscriptionSettingsUpdate
from cadence.services.activity_service import resolve_actor
from cadence.services.subscription_service import SubscriptionService
from tests.conftest import DEFAULT_ORG_ID


@pytest.fixture
def service(db_session):
    return SubscriptionService(db_session)


def _order(db_session, sub, scheduled_at, status="scheduled"):
    order = SubscriptionOrder(
        organization_id=DEFAULT_ORG_ID,
        subscription_id=sub.id,
        scheduled_at=scheduled_at,
        amount_cents=sub.price_cents,
        status=status,
    )
    db_session.add(order)
    db_session.commit()
    return order


class TestResolveActor:
    def test_none_is_system(self):
        assert resolve_actor(None) == ("system", None, None)

    def test_id_without_type_is_admin(self):
        assert resolve_actor(Actor(actor_id="u1", actor_name="Ann")) == ("admin", "u1", "Ann")

    def test_no_id_is_system(self):
        assert resolve_actor(Actor(actor_name="cron")) == ("system", None, "cron")

    def test_explicit_type_wins(self):
        actor = Actor(actor_type="customer", actor_id="cust_1")
        assert resolve_actor(actor) == ("customer", "cust_1", None)


class TestPause:
    def test_pause(self, service, make_subscription):
        sub = make_subscription()
        resume_at = datetime(2030, 1, 1, tzinfo=UTC)

        affected = service.pause(sub.id, DEFAULT_ORG_ID, "Vacation", resume_at)

        assert affected == 1
        assert sub.status == "paused"
        assert sub.pause_reason == "Vacation"
        assert sub.paused_at is not None
        assert ensure_utc(sub.auto_resume_at) == resume_at

    def test_pause_logs_activity(self, service, make_subscription):
        sub = make_subscription()

        service.pause(sub.id, DEFAULT_ORG_ID, "Vacation", actor=Actor(actor_id="admin_7"))

        [activity] = service.get_subscription_activity(sub.id, DEFAULT_ORG_ID)
        assert activity.activity_type == "paused"
        assert activity.description == "Subscription paused: Vacation"
        assert activity.actor_type == "admin"
        assert activity.actor_id == "admin_7"
        assert activity.metadata_ == {"reason": "Vacation", "resume_date": None}

    def test_pause_again_restamps(self, service, make_subscription):
        sub = make_subscription()
        service.pause(sub.id, DEFAULT_ORG_ID, "first")
        first = sub.paused_at

        service.pause(sub.id, DEFAULT_ORG_ID, "second")

        assert sub.pause_reason == "second"
        assert sub.paused_at >= first
        assert len(service.get_subscription_activity(sub.id, DEFAULT_ORG_ID)) == 2

    def test_other_tenant_affects_nothing_but_logs(self, service, make_subscription, db_session):
        sub = make_subscription()
        other = OrganizationRepository(db_session).create("Other")

        affected = service.pause(sub.id, other.id, "wrong tenant")

        assert affected == 0
        assert sub.status == "active"
        assert len(service.get_subscription_activity(sub.id, other.id)) == 1
        assert service.get_subscription_activity(sub.id, DEFAULT_ORG_ID) == []


class TestResume:
    def test_resume_paused(self, service, make_subscription):
        sub = make_subscription()
        service.pause(sub.id, DEFAULT_ORG_ID, "Vacation", datetime(2030, 1, 1, tzinfo=UTC))

        assert service.resume(sub.id, DEFAULT_ORG_ID) == 1

        assert sub.status == "active"
        assert sub.pause_reason is None
        assert sub.paused_at is None
        assert sub.auto_resume_at is None
        activity = service.get_subscription_activity(sub.id, DEFAULT_ORG_ID)[0]
        assert activity.activity_type == "resumed"
        assert activity.actor_type == "system"
        assert activity.metadata_ == {"previous_status": "paused"}

    def test_resume_cancelled_reactivates(self, service, make_subscription):
        sub = make_subscription()
        service.cancel(sub.id, DEFAULT_ORG_ID, "Too expensive")

        assert service.resume(sub.id, DEFAULT_ORG_ID) == 1

        assert sub.status == "active"
        assert sub.cancel_reason is None
        assert sub.cancelled_at is None
        activity = service.get_subscription_activity(sub.id, DEFAULT_ORG_ID)[0]
        assert activity.metadata_ == {"previous_status": "cancelled"}

    def test_resume_active_is_noop_transition(self, service, make_subscription):
        sub = make_subscription()
        assert service.resume(sub.id, DEFAULT_ORG_ID) == 1
        assert sub.status == "active"


class TestCancel:
    def test_cancel(self, service, make_subscription):
        sub = make_subscription()

        assert service.cancel(sub.id, DEFAULT_ORG_ID, "Too expensive") == 1

        assert sub.status == "cancelled"
        assert sub.cancel_reason == "Too expensive"
        assert sub.cancelled_at is not None
        activity = service.get_subscription_activity(sub.id, DEFAULT_ORG_ID)[0]
        assert activity.description == "Subscription cancelled: Too expensive"

    def test_cancel_clears_pause(self, service, make_subscription):
        sub = make_subscription()
        service.pause(sub.id, DEFAULT_ORG_ID, "Vacation", datetime(2030, 1, 1, tzinfo=UTC))

        service.cancel(sub.id, DEFAULT_ORG_ID, "Moving")

        assert sub.status == "cancelled"
        assert sub.pause_reason is None
        assert sub.paused_at is None
        assert sub.auto_resume_at is None


class TestSkipNextOrder:
    def test_skips_earliest_and_ties(self, service, make_subscription, db_session):
        sub = make_subscription()
        soon = datetime(2030, 1, 1, tzinfo=UTC)
        tied_a = _order(db_session, sub, soon)
        tied_b = _order(db_session, sub, soon)
        later = _order(db_session, sub, soon + timedelta(days=30))
        earlier_done = _order(db_session, sub, soon - timedelta(days=30), status="billed")

        assert service.skip_next_order(sub.id, DEFAULT_ORG_ID) == 1

        assert sub.skipped_orders == 1
        db_session.expire_all()
        assert tied_a.status == "skipped"
        assert tied_b.status == "skipped"
        assert later.status == "scheduled"
        assert earlier_done.status == "billed"
        activity = service.get_subscription_activity(sub.id, DEFAULT_ORG_ID)[0]
        assert activity.activity_type == "order_skipped"
        assert activity.metadata_ == {"orders_skipped": 2}

    def test_skip_without_orders_still_counts(self, service, make_subscription):
        sub = make_subscription()

        service.skip_next_order(sub.id, DEFAULT_ORG_ID)
        service.skip_next_order(sub.id, DEFAULT_ORG_ID)

        assert sub.skipped_orders == 2
        activity = service.get_subscription_activity(sub.id, DEFAULT_ORG_ID)[0]
        assert activity.metadata_ == {"orders_skipped": 0}

    def test_orders_listed_newest_first(self, service, make_subscription, db_session):
        sub = make_subscription()
        first = datetime(2030, 1, 1, tzinfo=UTC)
        _order(db_session, sub, first)
        _order(db_session, sub, first + timedelta(days=30))

        orders = service.get_subscription_orders(sub.id, DEFAULT_ORG_ID)

        assert [ensure_utc(o.scheduled_at) for o in orders] == [
            first + timedelta(days=30),
            first,
        ]


class TestFrequencyAndQuantity:
    def test_update_frequency_keeps_billing_date(self, service, make_subscription):
        next_billing = datetime(2030, 1, 15, tzinfo=UTC)
        sub = make_subscription(next_billing_date=next_billing)

        assert service.update_frequency(sub.id, DEFAULT_ORG_ID, "weekly", 2) == 1

        assert sub.frequency == "weekly"
        assert sub.frequency_interval == 2
        assert ensure_utc(sub.next_billing_date) == next_billing
        activity = service.get_subscription_activity(sub.id, DEFAULT_ORG_ID)[0]
        assert activity.description == "Frequency changed to weekly (every 2)"

    def test_update_quantity(self, service, make_subscription):
        sub = make_subscription()

        assert service.update_quantity(sub.id, DEFAULT_ORG_ID, 3) == 1

        assert sub.quantity == 3
        activity = service.get_subscription_activity(sub.id, DEFAULT_ORG_ID)[0]
        assert activity.metadata_ == {"quantity": 3}


class TestActivityTrail:
    def test_newest_first(self, service, make_subscription):
        sub = make_subscription()
        service.pause(sub.id, DEFAULT_ORG_ID, "a")
        service.resume(sub.id, DEFAULT_ORG_ID)
        service.update_quantity(sub.id, DEFAULT_ORG_ID, 2)

        types = [a.activity_type for a in service.get_subscription_activity(sub.id, DEFAULT_ORG_ID)]
        assert types == ["quantity_changed", "resumed", "paused"]

    def test_log_activity_directly(self, service, make_subscription):
        sub = make_subscription()

        entry = service.log_activity(
            sub.id, DEFAULT_ORG_ID, "note", "Called customer", metadata={"channel": "phone"}
        )

        assert entry.id is not None
        assert entry.actor_type == "system"
        assert entry.metadata_ == {"channel": "phone"}


class TestSettings:
    def test_defaults_before_any_write(self, service):
        settings = service.get_settings(DEFAULT_ORG_ID)
        assert settings.max_pause_days == 90
        assert settings.default_pause_days == 30
        assert settings.allow_customer_cancel is True
        assert service.settings_repo.get(DEFAULT_ORG_ID) is None

    def test_update_creates_and_patches(self, service):
        updated = service.update_settings(
            DEFAULT_ORG_ID, SubscriptionSettingsUpdate(max_pause_days=60)
        )
        assert updated.max_pause_days == 60
        assert updated.max_skips_per_year == 4

        updated = service.update_settings(
            DEFAULT_ORG_ID, SubscriptionSettingsUpdate(allow_skip_orders=False)
        )
        assert updated.max_pause_days == 60
        assert updated.allow_skip_orders is False
        assert service.get_settings(DEFAULT_ORG_ID).allow_skip_orders is False

    def test_settings_are_per_tenant(self, service, db_session):
        other = OrganizationRepository(db_session).create("Other")
        service.update_settings(other.id, SubscriptionSettingsUpdate(max_pause_days=10))

        assert service.get_settings(DEFAULT_ORG_ID).max_pause_days == 90
        assert service.get_settings(other.id).max_pause_days == 10


class TestAggregates:
    def test_status_counts(self, service, make_subscription):
        make_subscription()
        make_subscription()
        make_subscription(status="paused")
        make_subscription(status="cancelled")

        counts = service.get_status_counts(DEFAULT_ORG_ID)

        assert counts == {
            "active": 2,
            "paused": 1,
            "cancelled": 1,
            "expired": 0,
            "pending": 0,
            "all": 4,
        }

    def test_mrr_weekly(self, service, make_subscription):
        make_subscription(price_cents=700, frequency="weekly")
        assert service.get_mrr(DEFAULT_ORG_ID) == 3031

    def test_mrr_discount_and_quantity(self, service, make_subscription):
        make_subscription(price_cents=2000, discount_cents=500, quantity=2)
        assert service.get_mrr(DEFAULT_ORG_ID) == 3000

    def test_mrr_sums_before_rounding(self, service, make_subscription):
        # 1000 / 12 = 83.33 each; three of them sum to 250 exactly
        for _ in range(3):
            make_subscription(price_cents=1000, frequency="annually")
        assert service.get_mrr(DEFAULT_ORG_ID) == 250

    def test_mrr_ignores_inactive(self, service, make_subscription):
        make_subscription(status="paused")
        make_subscription(status="cancelled")
        assert service.get_mrr(DEFAULT_ORG_ID) == 0


class TestListSubscriptions:
    def _seed(self, make_subscription):
        base = datetime(2030, 1, 1, tzinfo=UTC)
        make_subscription(
            customer_email="alice@example.com",
            product_title="Coffee",
            created_at=base,
        )
        make_subscription(
            customer_email="bob@example.com",
            product_title="Tea",
            frequency="weekly",
            status="paused",
            created_at=base + timedelta(days=1),
        )
        make_subscription(
            customer_email="carol@example.com",
            product_title="Coffee Beans",
            created_at=base + timedelta(days=2),
        )

    def test_default_order_newest_first(self, service, make_subscription):
        self._seed(make_subscription)

        items, total = service.list_subscriptions(DEFAULT_ORG_ID, SubscriptionFilters())

        assert total == 3
        assert [s.customer_email for s in items] == [
            "carol@example.com",
            "bob@example.com",
            "alice@example.com",
        ]

    def test_filters(self, service, make_subscription):
        self._seed(make_subscription)

        items, total = service.list_subscriptions(
            DEFAULT_ORG_ID, SubscriptionFilters(status="paused")
        )
        assert total == 1 and items[0].customer_email == "bob@example.com"

        items, _ = service.list_subscriptions(
            DEFAULT_ORG_ID, SubscriptionFilters(frequency="weekly")
        )
        assert [s.product_title for s in items] == ["Tea"]

        items, total = service.list_subscriptions(
            DEFAULT_ORG_ID, SubscriptionFilters(search="coffee")
        )
        assert total == 2

    def test_unknown_status_is_ignored(self, service, make_subscription):
        self._seed(make_subscription)
        _, total = service.list_subscriptions(DEFAULT_ORG_ID, SubscriptionFilters(status="bogus"))
        assert total == 3

    def test_sort_whitelist_and_fallback(self, service, make_subscription):
        self._seed(make_subscription)

        items, _ = service.list_subscriptions(
            DEFAULT_ORG_ID, SubscriptionFilters(sort="customer_email", dir="asc")
        )
        assert items[0].customer_email == "alice@example.com"

        items, _ = service.list_subscriptions(
            DEFAULT_ORG_ID, SubscriptionFilters(sort="price_cents; drop table", dir="sideways")
        )
        assert items[0].customer_email == "carol@example.com"

    def test_paging_clamped(self, service, make_subscription):
        self._seed(make_subscription)

        items, total = service.list_subscriptions(
            DEFAULT_ORG_ID, SubscriptionFilters(limit=0, offset=-5)
        )

        assert total == 3
        assert len(items) == 1
        assert items[0].customer_email == "carol@example.com"

    def test_tenant_isolation(self, service, make_subscription):
        self._seed(make_subscription)
        items, total = service.list_subscriptions(uuid.uuid4(), SubscriptionFilters())
        assert items == [] and total == 0
