from uuid import UUID

import jwt
from fastapi import HTTPException, Query, Request

from cadence.models.shared import DEFAULT_ORGANIZATION_ID
from cadence.services.portal_service import PortalService


def get_current_organization(request: Request) -> UUID:
    """Resolve the tenant for an admin request.

    The admin UI selects the tenant with the ``X-Organization-Id`` header.
    Without the header, requests fall back to the default organization.
    """
    org_id_header = request.headers.get("X-Organization-Id")
    if not org_id_header:
        return DEFAULT_ORGANIZATION_ID
    try:
        return UUID(org_id_header)
    except ValueError:
        raise HTTPException(
            status_code=400, detail="Invalid X-Organization-Id header"
        ) from None


def get_portal_customer(token: str = Query(...)) -> tuple[str, UUID]:
    """Validate a portal JWT token and return (customer_id, organization_id)."""
    try:
        return PortalService.verify_portal_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Portal token has expired") from None
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid portal token") from None
