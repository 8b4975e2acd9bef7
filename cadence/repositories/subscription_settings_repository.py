from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cadence.core.field_updates import build_updates
from cadence.models.subscription_settings import (
    SETTINGS_DEFAULTS,
    SETTINGS_ROW_ID,
    SubscriptionSettings,
)
from cadence.schemas.subscription_settings import SubscriptionSettingsUpdate

SETTINGS_FIELD_MAP = {
    "primary_provider": SubscriptionSettings.primary_provider,
    "billing_provider": SubscriptionSettings.billing_provider,
    "default_pause_days": SubscriptionSettings.default_pause_days,
    "max_pause_days": SubscriptionSettings.max_pause_days,
    "auto_resume_after_pause": SubscriptionSettings.auto_resume_after_pause,
    "max_skips_per_year": SubscriptionSettings.max_skips_per_year,
    "cancellation_grace_days": SubscriptionSettings.cancellation_grace_days,
    "renewal_reminder_days": SubscriptionSettings.renewal_reminder_days,
    "payment_retry_attempts": SubscriptionSettings.payment_retry_attempts,
    "payment_retry_interval_hours": SubscriptionSettings.payment_retry_interval_hours,
    "allow_customer_cancel": SubscriptionSettings.allow_customer_cancel,
    "allow_customer_pause": SubscriptionSettings.allow_customer_pause,
    "allow_frequency_changes": SubscriptionSettings.allow_frequency_changes,
    "allow_quantity_changes": SubscriptionSettings.allow_quantity_changes,
    "allow_skip_orders": SubscriptionSettings.allow_skip_orders,
    "shopify_sync_enabled": SubscriptionSettings.shopify_sync_enabled,
    "shopify_webhook_url": SubscriptionSettings.shopify_webhook_url,
}


class SubscriptionSettingsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, organization_id: UUID) -> SubscriptionSettings | None:
        return (
            self.db.query(SubscriptionSettings)
            .filter(
                SubscriptionSettings.id == SETTINGS_ROW_ID,
                SubscriptionSettings.organization_id == organization_id,
            )
            .first()
        )

    def get_or_default(self, organization_id: UUID) -> SubscriptionSettings:
        """Stored settings, or an unsaved row holding the defaults."""
        settings = self.get(organization_id)
        if settings is not None:
            return settings
        return SubscriptionSettings(
            id=SETTINGS_ROW_ID, organization_id=organization_id, **SETTINGS_DEFAULTS
        )

    def get_or_create(self, organization_id: UUID) -> SubscriptionSettings:
        settings = self.get(organization_id)
        if settings is not None:
            return settings
        settings = SubscriptionSettings(
            id=SETTINGS_ROW_ID, organization_id=organization_id, **SETTINGS_DEFAULTS
        )
        self.db.add(settings)
        try:
            self.db.commit()
        except IntegrityError:
            # Another writer inserted the row first
            self.db.rollback()
            existing = self.get(organization_id)
            if existing is None:
                raise
            return existing
        self.db.refresh(settings)
        return settings

    def update(
        self, organization_id: UUID, data: SubscriptionSettingsUpdate
    ) -> SubscriptionSettings:
        settings = self.get_or_create(organization_id)
        updates = build_updates(data, SETTINGS_FIELD_MAP)
        if not updates:
            return settings
        self.db.query(SubscriptionSettings).filter(
            SubscriptionSettings.id == SETTINGS_ROW_ID,
            SubscriptionSettings.organization_id == organization_id,
        ).update(updates, synchronize_session=False)
        self.db.commit()
        self.db.refresh(settings)
        return settings

    def get_all_stored(self) -> list[SubscriptionSettings]:
        return self.db.query(SubscriptionSettings).all()
