from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt

from cadence.core.config import settings


class PortalService:
    """Issues and verifies customer portal tokens."""

    @staticmethod
    def generate_token(customer_id: str, organization_id: UUID) -> str:
        """Generate a portal JWT token valid for PORTAL_TOKEN_TTL_HOURS."""
        payload = {
            "customer_id": customer_id,
            "organization_id": str(organization_id),
            "type": "portal",
            "exp": datetime.now(UTC) + timedelta(hours=settings.PORTAL_TOKEN_TTL_HOURS),
        }
        return jwt.encode(payload, settings.PORTAL_JWT_SECRET, algorithm="HS256")

    @staticmethod
    def generate_portal_url(customer_id: str, organization_id: UUID) -> str:
        token = PortalService.generate_token(customer_id, organization_id)
        return f"https://{settings.APP_DOMAIN}/account/subscriptions?token={token}"

    @staticmethod
    def verify_portal_token(token: str) -> tuple[str, UUID]:
        """Decode and validate a portal JWT token.

        Returns (customer_id, organization_id).
        Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError on failure.
        """
        payload = jwt.decode(token, settings.PORTAL_JWT_SECRET, algorithms=["HS256"])
        if payload.get("type") != "portal":
            raise jwt.InvalidTokenError("Invalid token type")
        return str(payload["customer_id"]), UUID(payload["organization_id"])
