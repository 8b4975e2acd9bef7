"""Tests for session helpers."""

from unittest.mock import MagicMock, patch

import pytest

from cadence.core import database as db_module
from cadence.core.database import with_tenant
from cadence.models.organization import Organization
from tests.conftest import DEFAULT_ORG_ID


class TestWithTenant:
    def test_session_tagged_with_organization(self):
        def fn(db):
            org = db.query(Organization).filter(Organization.id == db.info["organization_id"]).one()
            return org.id

        assert with_tenant(DEFAULT_ORG_ID, fn) == DEFAULT_ORG_ID

    def test_session_closed_after_success(self):
        mock_db = MagicMock()
        mock_db.info = {}

        with patch.object(db_module, "SessionLocal", return_value=mock_db):
            result = with_tenant(DEFAULT_ORG_ID, lambda db: db.info["organization_id"])

        assert result == DEFAULT_ORG_ID
        mock_db.close.assert_called_once()

    def test_session_closed_on_error(self):
        mock_db = MagicMock()
        mock_db.info = {}

        def boom(db):
            raise RuntimeError("query failed")

        with (
            patch.object(db_module, "SessionLocal", return_value=mock_db),
            pytest.raises(RuntimeError, match="query failed"),
        ):
            with_tenant(DEFAULT_ORG_ID, boom)

        mock_db.close.assert_called_once()
