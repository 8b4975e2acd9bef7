"""create subscriptions, orders, activity and settings tables

Revision ID: b2d4f6a8c0e2
Revises: a1c3e5f7b9d1
Create Date: 2026-10-19 09:10:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "b2d4f6a8c0e2"
down_revision = "a1c3e5f7b9d1"
branch_labels = None
depends_on = None


def _now() -> sa.TextClause:
    return sa.text("(CURRENT_TIMESTAMP)")


def _org_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(
        ["organization_id"], ["organizations.id"], ondelete="RESTRICT"
    )


def upgrade() -> None:
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("provider", sa.String(length=20), nullable=False),
        sa.Column("provider_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("shopify_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("customer_id", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=True),
        sa.Column("product_id", sa.String(length=255), nullable=False),
        sa.Column("variant_id", sa.String(length=255), nullable=True),
        sa.Column("product_title", sa.String(length=255), nullable=False),
        sa.Column("variant_title", sa.String(length=255), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("discount_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("discount_type", sa.String(length=20), nullable=True),
        sa.Column("discount_code", sa.String(length=255), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("frequency", sa.String(length=20), nullable=False, server_default="monthly"),
        sa.Column("frequency_interval", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("pause_reason", sa.Text(), nullable=True),
        sa.Column("cancel_reason", sa.Text(), nullable=True),
        sa.Column("paused_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("auto_resume_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_billing_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_billing_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("billing_anchor_day", sa.Integer(), nullable=True),
        sa.Column("payment_method_id", sa.String(length=255), nullable=True),
        sa.Column("payment_method_last4", sa.String(length=4), nullable=True),
        sa.Column("payment_method_brand", sa.String(length=50), nullable=True),
        sa.Column("payment_method_exp_month", sa.Integer(), nullable=True),
        sa.Column("payment_method_exp_year", sa.Integer(), nullable=True),
        sa.Column("shipping_address", sa.JSON(), nullable=True),
        sa.Column("total_orders", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_spent_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("skipped_orders", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("selling_plan_id", sa.String(length=255), nullable=True),
        sa.Column("selling_plan_name", sa.String(length=255), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_error", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        _org_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in (
        "organization_id",
        "provider",
        "provider_subscription_id",
        "customer_id",
        "customer_email",
        "product_id",
        "status",
        "next_billing_date",
        "selling_plan_id",
        "created_at",
    ):
        op.create_index(op.f(f"ix_subscriptions_{column}"), "subscriptions", [column])

    op.create_table(
        "subscription_orders",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("subscription_id", sa.String(length=36), nullable=False),
        sa.Column("order_id", sa.String(length=255), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("billed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="scheduled"),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        _org_fk(),
        sa.ForeignKeyConstraint(["subscription_id"], ["subscriptions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("organization_id", "subscription_id", "scheduled_at", "status"):
        op.create_index(op.f(f"ix_subscription_orders_{column}"), "subscription_orders", [column])

    op.create_table(
        "subscription_activity",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("subscription_id", sa.String(length=36), nullable=False),
        sa.Column("activity_type", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("actor_type", sa.String(length=20), nullable=False, server_default="system"),
        sa.Column("actor_id", sa.String(length=255), nullable=True),
        sa.Column("actor_name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        _org_fk(),
        sa.ForeignKeyConstraint(["subscription_id"], ["subscriptions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("organization_id", "subscription_id", "activity_type", "created_at"):
        op.create_index(
            op.f(f"ix_subscription_activity_{column}"), "subscription_activity", [column]
        )

    op.create_table(
        "subscription_settings",
        sa.Column("id", sa.String(length=20), nullable=False, server_default="default"),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("primary_provider", sa.String(length=20), nullable=False, server_default="custom"),
        sa.Column("billing_provider", sa.String(length=20), nullable=True),
        sa.Column("default_pause_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("max_pause_days", sa.Integer(), nullable=False, server_default="90"),
        sa.Column(
            "auto_resume_after_pause", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("max_skips_per_year", sa.Integer(), nullable=False, server_default="4"),
        sa.Column("cancellation_grace_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("renewal_reminder_days", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("payment_retry_attempts", sa.Integer(), nullable=False, server_default="3"),
        sa.Column(
            "payment_retry_interval_hours", sa.Integer(), nullable=False, server_default="24"
        ),
        sa.Column("allow_customer_cancel", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("allow_customer_pause", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "allow_frequency_changes", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("allow_quantity_changes", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("allow_skip_orders", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("shopify_sync_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("shopify_webhook_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        _org_fk(),
        sa.PrimaryKeyConstraint("id", "organization_id"),
    )


def downgrade() -> None:
    op.drop_table("subscription_settings")
    for column in ("organization_id", "subscription_id", "activity_type", "created_at"):
        op.drop_index(
            op.f(f"ix_subscription_activity_{column}"), table_name="subscription_activity"
        )
    op.drop_table("subscription_activity")
    for column in ("organization_id", "subscription_id", "scheduled_at", "status"):
        op.drop_index(
            op.f(f"ix_subscription_orders_{column}"), table_name="subscription_orders"
        )
    op.drop_table("subscription_orders")
    for column in (
        "organization_id",
        "provider",
        "provider_subscription_id",
        "customer_id",
        "customer_email",
        "product_id",
        "status",
        "next_billing_date",
        "selling_plan_id",
        "created_at",
    ):
        op.drop_index(op.f(f"ix_subscriptions_{column}"), table_name="subscriptions")
    op.drop_table("subscriptions")
