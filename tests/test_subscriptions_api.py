"""API tests for subscription and subscription settings endpoints."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from cadence.main import app
from cadence.models.subscription_order import SubscriptionOrder
from cadence.repositories.organization_repository import OrganizationRepository
from tests.conftest import DEFAULT_ORG_ID


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def sub(make_subscription):
    return make_subscription(customer_email="ada@example.com", price_cents=3000)


def _add_order(db_session, sub, days, status="scheduled"):
    order = SubscriptionOrder(
        organization_id=DEFAULT_ORG_ID,
        subscription_id=sub.id,
        scheduled_at=datetime.now(UTC) + timedelta(days=days),
        amount_cents=sub.price_cents,
        status=status,
    )
    db_session.add(order)
    db_session.commit()
    return order


class TestListSubscriptions:
    def test_list_with_total_header(self, client, make_subscription):
        for _ in range(3):
            make_subscription()

        response = client.get("/v1/subscriptions/", params={"limit": 2})

        assert response.status_code == 200
        assert len(response.json()) == 2
        assert response.headers["X-Total-Count"] == "3"

    def test_filter_by_status(self, client, make_subscription):
        make_subscription(status="paused")
        make_subscription()

        data = client.get("/v1/subscriptions/", params={"status": "paused"}).json()

        assert [s["status"] for s in data] == ["paused"]

    def test_search(self, client, sub, make_subscription):
        make_subscription()

        data = client.get("/v1/subscriptions/", params={"search": "ada@"}).json()

        assert [s["id"] for s in data] == [str(sub.id)]

    def test_unknown_sort_falls_back(self, client, sub):
        response = client.get("/v1/subscriptions/", params={"sort": "drop table", "dir": "up"})

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_scoped_to_organization_header(self, client, sub, db_session):
        other = OrganizationRepository(db_session).create("Other")

        response = client.get(
            "/v1/subscriptions/", headers={"X-Organization-Id": str(other.id)}
        )

        assert response.status_code == 200
        assert response.json() == []
        assert response.headers["X-Total-Count"] == "0"

    def test_invalid_organization_header(self, client):
        response = client.get("/v1/subscriptions/", headers={"X-Organization-Id": "nope"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid X-Organization-Id header"


class TestAggregates:
    def test_status_counts(self, client, make_subscription):
        make_subscription()
        make_subscription()
        make_subscription(status="cancelled")

        data = client.get("/v1/subscriptions/status_counts").json()

        assert data == {
            "active": 2,
            "paused": 0,
            "cancelled": 1,
            "expired": 0,
            "pending": 0,
            "all": 3,
        }

    def test_mrr(self, client, make_subscription):
        make_subscription(price_cents=3000)
        make_subscription(price_cents=1000, frequency="weekly")
        make_subscription(price_cents=9999, status="paused")

        data = client.get("/v1/subscriptions/mrr").json()

        # 3000 + 1000 * 4.33
        assert data == {"mrr_cents": 7330}


class TestGetSubscription:
    def test_get(self, client, sub):
        response = client.get(f"/v1/subscriptions/{sub.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["customer_email"] == "ada@example.com"
        assert data["price_cents"] == 3000
        assert data["status"] == "active"

    def test_get_not_found(self, client):
        response = client.get(f"/v1/subscriptions/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"] == "Subscription not found"

    def test_get_other_tenant_not_found(self, client, sub, db_session):
        other = OrganizationRepository(db_session).create("Other")

        response = client.get(
            f"/v1/subscriptions/{sub.id}", headers={"X-Organization-Id": str(other.id)}
        )

        assert response.status_code == 404

    def test_orders(self, client, sub, db_session):
        _add_order(db_session, sub, 3)
        _add_order(db_session, sub, 10)

        data = client.get(f"/v1/subscriptions/{sub.id}/orders").json()

        assert len(data) == 2
        assert data[0]["scheduled_at"] > data[1]["scheduled_at"]

    def test_orders_not_found(self, client):
        assert client.get(f"/v1/subscriptions/{uuid.uuid4()}/orders").status_code == 404

    def test_save_attempts_empty(self, client, sub):
        response = client.get(f"/v1/subscriptions/{sub.id}/save_attempts")

        assert response.status_code == 200
        assert response.json() == []


class TestLifecycleEndpoints:
    def test_pause(self, client, sub, db_session):
        resume = (datetime.now(UTC) + timedelta(days=14)).isoformat()

        response = client.post(
            f"/v1/subscriptions/{sub.id}/pause",
            json={"reason": "Vacation", "resume_date": resume},
        )

        assert response.status_code == 200
        assert response.json() == {"subscription_id": str(sub.id), "affected": 1}
        db_session.refresh(sub)
        assert sub.status == "paused"
        assert sub.pause_reason == "Vacation"
        assert sub.auto_resume_at is not None

    def test_pause_requires_reason(self, client, sub):
        response = client.post(f"/v1/subscriptions/{sub.id}/pause", json={"reason": ""})

        assert response.status_code == 422

    def test_pause_not_found(self, client):
        response = client.post(
            f"/v1/subscriptions/{uuid.uuid4()}/pause", json={"reason": "Vacation"}
        )

        assert response.status_code == 404

    def test_resume_without_body(self, client, sub, db_session):
        client.post(f"/v1/subscriptions/{sub.id}/pause", json={"reason": "Vacation"})

        response = client.post(f"/v1/subscriptions/{sub.id}/resume")

        assert response.status_code == 200
        assert response.json()["affected"] == 1
        db_session.refresh(sub)
        assert sub.status == "active"
        assert sub.paused_at is None

    def test_cancel_with_admin_actor(self, client, sub, db_session):
        response = client.post(
            f"/v1/subscriptions/{sub.id}/cancel",
            json={
                "reason": "Customer request",
                "actor": {"actor_id": "admin_1", "actor_name": "Grace"},
            },
        )

        assert response.status_code == 200
        db_session.refresh(sub)
        assert sub.status == "cancelled"
        assert sub.cancel_reason == "Customer request"

        [activity] = client.get(f"/v1/subscriptions/{sub.id}/activity").json()
        assert activity["activity_type"] == "cancelled"
        assert activity["actor_type"] == "admin"
        assert activity["actor_id"] == "admin_1"
        assert activity["metadata_"] == {"reason": "Customer request"}

    def test_skip(self, client, sub, db_session):
        first = _add_order(db_session, sub, 3)
        later = _add_order(db_session, sub, 30)

        response = client.post(f"/v1/subscriptions/{sub.id}/skip", json={})

        assert response.status_code == 200
        db_session.expire_all()
        assert sub.skipped_orders == 1
        assert first.status == "skipped"
        assert later.status == "scheduled"

    def test_update_frequency(self, client, sub, db_session):
        response = client.put(
            f"/v1/subscriptions/{sub.id}/frequency",
            json={"frequency": "bimonthly", "interval": 2},
        )

        assert response.status_code == 200
        db_session.refresh(sub)
        assert sub.frequency == "bimonthly"
        assert sub.frequency_interval == 2

    def test_update_frequency_invalid(self, client, sub):
        response = client.put(
            f"/v1/subscriptions/{sub.id}/frequency", json={"frequency": "hourly"}
        )

        assert response.status_code == 422

    def test_update_frequency_interval_bounds(self, client, sub):
        response = client.put(
            f"/v1/subscriptions/{sub.id}/frequency",
            json={"frequency": "monthly", "interval": 13},
        )

        assert response.status_code == 422

    def test_update_quantity(self, client, sub, db_session):
        response = client.put(f"/v1/subscriptions/{sub.id}/quantity", json={"quantity": 3})

        assert response.status_code == 200
        db_session.refresh(sub)
        assert sub.quantity == 3

    def test_update_quantity_zero_rejected(self, client, sub):
        response = client.put(f"/v1/subscriptions/{sub.id}/quantity", json={"quantity": 0})

        assert response.status_code == 422

    def test_activity_newest_first(self, client, sub):
        client.post(f"/v1/subscriptions/{sub.id}/pause", json={"reason": "Vacation"})
        client.post(f"/v1/subscriptions/{sub.id}/resume")

        data = client.get(f"/v1/subscriptions/{sub.id}/activity").json()

        assert [a["activity_type"] for a in data] == ["resumed", "paused"]
        assert data[0]["actor_type"] == "system"
        assert data[0]["metadata_"] == {"previous_status": "paused"}


class TestSettingsEndpoints:
    def test_defaults(self, client):
        response = client.get("/v1/subscription_settings/")

        assert response.status_code == 200
        data = response.json()
        assert data["default_pause_days"] == 30
        assert data["max_pause_days"] == 90
        assert data["allow_customer_cancel"] is True

    def test_partial_update(self, client):
        response = client.patch(
            "/v1/subscription_settings/",
            json={"max_skips_per_year": 2, "allow_customer_pause": False},
        )

        assert response.status_code == 200
        data = client.get("/v1/subscription_settings/").json()
        assert data["max_skips_per_year"] == 2
        assert data["allow_customer_pause"] is False
        assert data["default_pause_days"] == 30

    def test_update_rejects_invalid_values(self, client):
        response = client.patch("/v1/subscription_settings/", json={"max_pause_days": 0})

        assert response.status_code == 422

    def test_settings_per_tenant(self, client, db_session):
        other = OrganizationRepository(db_session).create("Other")
        client.patch(
            "/v1/subscription_settings/",
            json={"default_pause_days": 7},
            headers={"X-Organization-Id": str(other.id)},
        )

        assert client.get("/v1/subscription_settings/").json()["default_pause_days"] == 30
