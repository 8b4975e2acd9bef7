"""API tests for validation runs, issues and fixes."""

import uuid

import pytest
from fastapi.testclient import TestClient

from cadence.main import app
from cadence.models.customer import Customer
from tests.conftest import DEFAULT_ORG_ID


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def sync_failed(db_session, make_subscription):
    """Expired subscription whose only problem is a sync error."""
    sub = make_subscription(status="expired", sync_error="provider timeout")
    db_session.add(Customer(id=sub.customer_id, organization_id=DEFAULT_ORG_ID, name="C"))
    db_session.commit()
    return sub


@pytest.fixture
def orphaned(make_subscription):
    """Expired subscription with no customer row."""
    return make_subscription(status="expired")


def _run(client, **body):
    response = client.post("/v1/validations/", json=body or None)
    assert response.status_code == 201
    return response.json()


class TestRunValidation:
    def test_run_without_body(self, client, sync_failed):
        run = _run(client)

        assert run["status"] == "completed"
        assert run["run_type"] == "manual"
        assert run["issues_found"] == 1
        assert run["issues_fixed"] == 0
        assert [r["issue_type"] for r in run["results"]] == ["sync_error"]

    def test_run_by_and_type(self, client):
        run = _run(client, run_by="ops@example.com", run_type="scheduled")

        assert run["run_by"] == "ops@example.com"
        assert run["run_type"] == "scheduled"
        assert run["issues_found"] == 0

    def test_invalid_run_type(self, client):
        response = client.post("/v1/validations/", json={"run_type": "hourly"})

        assert response.status_code == 422

    def test_history_and_get(self, client):
        first = _run(client)
        second = _run(client)

        history = client.get("/v1/validations/").json()
        assert [r["id"] for r in history] == [second["id"], first["id"]]

        fetched = client.get(f"/v1/validations/{first['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["id"] == first["id"]

    def test_get_unknown_run(self, client):
        response = client.get(f"/v1/validations/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"] == "Validation run not found"

    def test_issues_of_run(self, client, sync_failed):
        run = _run(client)

        [issue] = client.get(f"/v1/validations/{run['id']}/issues").json()

        assert issue["issue_type"] == "sync_error"
        assert issue["severity"] == "error"
        assert issue["subscription_id"] == str(sync_failed.id)
        assert issue["description"] == "Sync error: provider timeout"
        assert issue["is_fixed"] is False

    def test_issues_of_unknown_run(self, client):
        assert client.get(f"/v1/validations/{uuid.uuid4()}/issues").status_code == 404


class TestIssueFixes:
    def test_mark_fixed(self, client, orphaned):
        run = _run(client)
        [issue] = client.get(f"/v1/validations/{run['id']}/issues").json()

        response = client.post(
            f"/v1/validations/issues/{issue['id']}/fix", json={"fixed_by": "grace"}
        )

        assert response.status_code == 200
        assert response.json()["is_fixed"] is True
        assert response.json()["fixed_by"] == "grace"
        assert client.get("/v1/validations/issues/open").json() == []
        assert client.get(f"/v1/validations/{run['id']}").json()["issues_fixed"] == 1

    def test_mark_fixed_unknown(self, client):
        response = client.post(
            f"/v1/validations/issues/{uuid.uuid4()}/fix", json={"fixed_by": "grace"}
        )

        assert response.status_code == 404

    def test_mark_fixed_requires_fixed_by(self, client, orphaned):
        run = _run(client)
        [issue] = client.get(f"/v1/validations/{run['id']}/issues").json()

        response = client.post(f"/v1/validations/issues/{issue['id']}/fix", json={})

        assert response.status_code == 422

    def test_auto_fix_mixed_batch(self, client, sync_failed, orphaned, db_session):
        run = _run(client)
        issues = {i["issue_type"]: i for i in client.get("/v1/validations/issues/open").json()}
        assert set(issues) == {"sync_error", "orphaned_subscription"}

        response = client.post(
            "/v1/validations/issues/auto_fix",
            json={
                "issue_ids": [
                    issues["sync_error"]["id"],
                    issues["orphaned_subscription"]["id"],
                ]
            },
        )

        assert response.status_code == 200
        result = response.json()
        assert result["fixed"] == 1
        assert result["failed"] == 1
        assert result["errors"] == [
            "Issue type orphaned_subscription cannot be auto-fixed"
        ]

        db_session.refresh(sync_failed)
        assert sync_failed.sync_error is None
        open_issues = client.get("/v1/validations/issues/open").json()
        assert [i["issue_type"] for i in open_issues] == ["orphaned_subscription"]
        assert client.get(f"/v1/validations/{run['id']}").json()["issues_fixed"] == 1

    def test_auto_fix_requires_ids(self, client):
        response = client.post("/v1/validations/issues/auto_fix", json={"issue_ids": []})

        assert response.status_code == 422


class TestSummary:
    def test_empty(self, client):
        assert client.get("/v1/validations/summary").json() == {
            "last_run_at": None,
            "last_run_status": None,
            "open_issues": 0,
            "errors": 0,
            "warnings": 0,
            "info": 0,
        }

    def test_after_run(self, client, sync_failed, orphaned):
        _run(client)

        summary = client.get("/v1/validations/summary").json()

        assert summary["last_run_status"] == "completed"
        assert summary["last_run_at"] is not None
        assert summary["open_issues"] == 2
        assert summary["errors"] == 2
        assert summary["warnings"] == 0
