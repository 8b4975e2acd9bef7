"""Tests for the OpenAPI export script."""

import json

import pytest

from scripts.export_openapi import iter_refs, main, reachable_schemas, select_surface


def _ref(name):
    return {"$ref": f"#/components/schemas/{name}"}


@pytest.fixture
def document():
    return {
        "openapi": "3.1.0",
        "info": {"title": "cadence", "version": "0.1.0"},
        "paths": {
            "/v1/portal/subscriptions": {"get": {"responses": {"200": _ref("Sub")}}},
            "/v1/save_flows/": {"get": {"responses": {"200": _ref("Flow")}}},
        },
        "components": {
            "schemas": {
                "Sub": {"properties": {"actor": _ref("Actor")}},
                "Actor": {"type": "object"},
                "Flow": {"properties": {"offers": {"items": _ref("Offer")}}},
                "Offer": {"type": "object"},
            }
        },
    }


class TestIterRefs:
    def test_nested_dicts_and_lists(self):
        node = {"a": [_ref("A"), {"b": _ref("B")}], "c": "#/components/schemas/NotARef"}
        assert sorted(iter_refs(node)) == ["A", "B"]

    def test_ignores_foreign_refs(self):
        assert list(iter_refs({"$ref": "#/components/responses/NotFound"})) == []

    def test_scalars(self):
        assert list(iter_refs("plain")) == []
        assert list(iter_refs(42)) == []


class TestReachableSchemas:
    def test_transitive(self):
        schemas = {
            "A": {"properties": {"b": _ref("B")}},
            "B": {"properties": {"c": _ref("C")}},
            "C": {"type": "string"},
            "D": {"type": "integer"},
        }
        assert list(reachable_schemas(_ref("A"), schemas)) == ["A", "B", "C"]

    def test_missing_schema_skipped(self):
        schemas = {"A": {"properties": {"b": _ref("Missing")}}}
        assert list(reachable_schemas(_ref("A"), schemas)) == ["A"]

    def test_cycle(self):
        schemas = {
            "A": {"properties": {"b": _ref("B")}},
            "B": {"properties": {"a": _ref("A")}},
        }
        assert list(reachable_schemas(_ref("A"), schemas)) == ["A", "B"]


class TestSelectSurface:
    def test_all_is_unchanged(self, document):
        assert select_surface(document, "all") is document

    def test_portal(self, document):
        portal = select_surface(document, "portal")

        assert list(portal["paths"]) == ["/v1/portal/subscriptions"]
        assert list(portal["components"]["schemas"]) == ["Actor", "Sub"]
        assert portal["security"] == [{"PortalToken": []}]
        assert portal["components"]["securitySchemes"]["PortalToken"]["in"] == "query"
        assert portal["info"] == {"title": "cadence portal", "version": "0.1.0"}

    def test_admin(self, document):
        admin = select_surface(document, "admin")

        assert list(admin["paths"]) == ["/v1/save_flows/"]
        assert list(admin["components"]["schemas"]) == ["Flow", "Offer"]
        assert "security" not in admin


class TestMain:
    def test_portal_export_of_real_app(self, capsys):
        assert main(["--surface", "portal"]) == 0

        exported = json.loads(capsys.readouterr().out)
        assert exported["paths"]
        assert all(path.startswith("/v1/portal") for path in exported["paths"])
        assert "/v1/portal/subscriptions/{subscription_id}/cancel_intent" in exported["paths"]
        assert "SubscriptionResponse" in exported["components"]["schemas"]
        assert "SaveFlowCreate" not in exported["components"]["schemas"]

    def test_admin_export_of_real_app(self, capsys):
        main(["--surface", "admin", "--indent", "0"])

        exported = json.loads(capsys.readouterr().out)
        assert "/v1/subscriptions/{subscription_id}/pause" in exported["paths"]
        assert not any(path.startswith("/v1/portal") for path in exported["paths"])

    def test_rejects_unknown_surface(self):
        with pytest.raises(SystemExit):
            main(["--surface", "internal"])
