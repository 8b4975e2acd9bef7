"""Tests for selling plans: price calculation, service and API."""

import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from cadence.main import app
from cadence.models.selling_plan import DiscountType
from cadence.schemas.selling_plan import SellingPlanCreate, SellingPlanUpdate
from cadence.services.selling_plan_service import (
    SellingPlanService,
    calculate_discounted_price,
)
from tests.conftest import DEFAULT_ORG_ID


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def service(db_session):
    return SellingPlanService(db_session)


def _plan(**overrides) -> SellingPlanCreate:
    values = {
        "name": "Monthly 10% off",
        "billing_frequency": "monthly",
        "discount_type": "percentage",
        "discount_value": Decimal("10"),
        "product_ids": ["prod_coffee"],
    }
    values.update(overrides)
    return SellingPlanCreate(**values)


class TestCalculateDiscountedPrice:
    def test_percentage(self):
        assert calculate_discounted_price(1000, DiscountType.PERCENTAGE, 10) == 900

    def test_percentage_rounds_half_up(self):
        # 999 * 0.85 = 849.15
        assert calculate_discounted_price(999, "percentage", Decimal("15")) == 849
        # 1005 * 0.5 = 502.5
        assert calculate_discounted_price(1005, "percentage", 50) == 503

    def test_percentage_over_100_floors_at_zero(self):
        assert calculate_discounted_price(1000, "percentage", 150) == 0

    def test_negative_percentage_does_not_raise_price(self):
        assert calculate_discounted_price(1000, "percentage", -20) == 1000

    def test_fixed(self):
        assert calculate_discounted_price(1000, DiscountType.FIXED, 250) == 750

    def test_fixed_larger_than_price(self):
        assert calculate_discounted_price(1000, "fixed", 1500) == 0

    def test_price_replaces(self):
        assert calculate_discounted_price(1000, DiscountType.PRICE_OVERRIDE, 500) == 500

    def test_no_discount(self):
        assert calculate_discounted_price(1000, None, None) == 1000
        assert calculate_discounted_price(1000, "percentage", None) == 1000

    def test_unknown_discount_type(self):
        with pytest.raises(ValueError):
            calculate_discounted_price(1000, "bogus", 10)


class TestSellingPlanService:
    def test_create_and_get(self, service):
        plan = service.create_selling_plan(_plan(), DEFAULT_ORG_ID)

        assert plan.id is not None
        assert plan.billing_frequency == "monthly"
        assert plan.discount_type == "percentage"
        assert plan.is_active is True
        assert service.get_selling_plan(plan.id, DEFAULT_ORG_ID).name == "Monthly 10% off"

    def test_create_requires_value_with_type(self, service):
        with pytest.raises(ValueError, match="discount_value is required"):
            service.create_selling_plan(_plan(discount_value=None), DEFAULT_ORG_ID)

    def test_get_other_org_returns_none(self, service):
        plan = service.create_selling_plan(_plan(), DEFAULT_ORG_ID)
        assert service.get_selling_plan(plan.id, uuid.uuid4()) is None

    def test_list_active_only(self, service):
        service.create_selling_plan(_plan(name="A"), DEFAULT_ORG_ID)
        inactive = service.create_selling_plan(_plan(name="B", is_active=False), DEFAULT_ORG_ID)

        assert [p.name for p in service.list_selling_plans(DEFAULT_ORG_ID)] == ["A", "B"]
        active = service.list_selling_plans(DEFAULT_ORG_ID, active_only=True)
        assert inactive.id not in [p.id for p in active]

    def test_update_partial(self, service):
        plan = service.create_selling_plan(_plan(), DEFAULT_ORG_ID)

        updated = service.update_selling_plan(
            plan.id, SellingPlanUpdate(discount_value=Decimal("20")), DEFAULT_ORG_ID
        )

        assert updated.discount_value == Decimal("20")
        assert updated.name == "Monthly 10% off"
        assert updated.discount_type == "percentage"

    def test_update_missing(self, service):
        assert (
            service.update_selling_plan(uuid.uuid4(), SellingPlanUpdate(name="x"), DEFAULT_ORG_ID)
            is None
        )

    def test_delete(self, service):
        plan = service.create_selling_plan(_plan(), DEFAULT_ORG_ID)

        assert service.delete_selling_plan(plan.id, DEFAULT_ORG_ID) is True
        assert service.get_selling_plan(plan.id, DEFAULT_ORG_ID) is None
        assert service.delete_selling_plan(plan.id, DEFAULT_ORG_ID) is False

    def test_toggle(self, service):
        plan = service.create_selling_plan(_plan(), DEFAULT_ORG_ID)

        assert service.toggle_selling_plan(plan.id, DEFAULT_ORG_ID).is_active is False
        assert service.toggle_selling_plan(plan.id, DEFAULT_ORG_ID).is_active is True

    def test_plans_for_product(self, service):
        service.create_selling_plan(_plan(name="Coffee"), DEFAULT_ORG_ID)
        service.create_selling_plan(
            _plan(name="Tea", product_ids=["prod_tea"]), DEFAULT_ORG_ID
        )
        service.create_selling_plan(
            _plan(name="Coffee off", is_active=False), DEFAULT_ORG_ID
        )

        plans = service.get_selling_plans_for_product("prod_coffee", DEFAULT_ORG_ID)
        assert [p.name for p in plans] == ["Coffee"]

    def test_price_for_plan(self, service):
        plan = service.create_selling_plan(_plan(), DEFAULT_ORG_ID)
        assert service.price_for_plan(plan, 2500) == 2250


class TestSellingPlansAPI:
    def test_create_and_list(self, client):
        response = client.post(
            "/v1/selling_plans/",
            json={
                "name": "Quarterly",
                "billing_frequency": "quarterly",
                "discount_type": "fixed",
                "discount_value": "300",
            },
        )
        assert response.status_code == 201
        assert response.json()["billing_frequency"] == "quarterly"

        listed = client.get("/v1/selling_plans/")
        assert listed.status_code == 200
        assert [p["name"] for p in listed.json()] == ["Quarterly"]

    def test_create_without_value(self, client):
        response = client.post(
            "/v1/selling_plans/",
            json={"name": "Bad", "billing_frequency": "monthly", "discount_type": "fixed"},
        )
        assert response.status_code == 400

    def test_create_invalid_frequency(self, client):
        response = client.post(
            "/v1/selling_plans/", json={"name": "Bad", "billing_frequency": "daily"}
        )
        assert response.status_code == 422

    def test_price_preview(self, client):
        response = client.post(
            "/v1/selling_plans/price_preview",
            json={"price_cents": 1000, "discount_type": "percentage", "discount_value": "10"},
        )
        assert response.status_code == 200
        assert response.json() == {"price_cents": 1000, "discounted_price_cents": 900}

    def test_plan_price(self, client, service):
        plan = service.create_selling_plan(
            _plan(discount_type="price", discount_value=Decimal("500")), DEFAULT_ORG_ID
        )
        response = client.get(f"/v1/selling_plans/{plan.id}/price", params={"price_cents": 1000})
        assert response.status_code == 200
        assert response.json()["discounted_price_cents"] == 500

    def test_for_product(self, client, service):
        service.create_selling_plan(_plan(), DEFAULT_ORG_ID)
        response = client.get("/v1/selling_plans/for_product/prod_coffee")
        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_not_found(self, client):
        missing = uuid.uuid4()
        assert client.get(f"/v1/selling_plans/{missing}").status_code == 404
        assert client.patch(f"/v1/selling_plans/{missing}", json={}).status_code == 404
        assert client.delete(f"/v1/selling_plans/{missing}").status_code == 404
        assert client.post(f"/v1/selling_plans/{missing}/toggle").status_code == 404

    def test_update_toggle_delete(self, client, service):
        plan = service.create_selling_plan(_plan(), DEFAULT_ORG_ID)

        patched = client.patch(f"/v1/selling_plans/{plan.id}", json={"name": "Renamed"})
        assert patched.json()["name"] == "Renamed"

        toggled = client.post(f"/v1/selling_plans/{plan.id}/toggle")
        assert toggled.json()["is_active"] is False

        assert client.delete(f"/v1/selling_plans/{plan.id}").status_code == 204
