"""create save flow, validation and selling plan tables

Revision ID: c3e5a7b9d1f3
Revises: b2d4f6a8c0e2
Create Date: 2026-10-19 09:20:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "c3e5a7b9d1f3"
down_revision = "b2d4f6a8c0e2"
branch_labels = None
depends_on = None


def _now() -> sa.TextClause:
    return sa.text("(CURRENT_TIMESTAMP)")


def _org_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(
        ["organization_id"], ["organizations.id"], ondelete="RESTRICT"
    )


def _subscription_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(
        ["subscription_id"], ["subscriptions.id"], ondelete="CASCADE"
    )


INDEXES = {
    "subscription_save_flows": ["organization_id", "is_enabled"],
    "subscription_save_attempts": ["organization_id", "subscription_id", "flow_id"],
    "subscription_validations": ["organization_id", "run_at"],
    "subscription_validation_issues": [
        "organization_id",
        "validation_id",
        "subscription_id",
        "issue_type",
        "is_fixed",
    ],
    "subscription_selling_plans": ["organization_id", "is_active"],
}


def upgrade() -> None:
    op.create_table(
        "subscription_save_flows",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "flow_type", sa.String(length=20), nullable=False, server_default="cancellation"
        ),
        sa.Column("trigger_conditions", sa.JSON(), nullable=False),
        sa.Column("steps", sa.JSON(), nullable=False),
        sa.Column("offers", sa.JSON(), nullable=False),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_triggered", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_saved", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("revenue_saved_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        _org_fk(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "subscription_save_attempts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("subscription_id", sa.String(length=36), nullable=False),
        sa.Column("flow_id", sa.String(length=36), nullable=False),
        sa.Column("steps_completed", sa.JSON(), nullable=False),
        sa.Column("offer_presented", sa.String(length=100), nullable=True),
        sa.Column("offer_accepted", sa.String(length=100), nullable=True),
        sa.Column("outcome", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("cancel_reason", sa.Text(), nullable=True),
        sa.Column("revenue_saved_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        _org_fk(),
        _subscription_fk(),
        sa.ForeignKeyConstraint(
            ["flow_id"], ["subscription_save_flows.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "subscription_validations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("run_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        sa.Column("run_by", sa.String(length=255), nullable=True),
        sa.Column("run_type", sa.String(length=20), nullable=False, server_default="manual"),
        sa.Column("total_checked", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("issues_found", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("issues_fixed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("results", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="running"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        _org_fk(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "subscription_validation_issues",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("validation_id", sa.String(length=36), nullable=False),
        sa.Column("subscription_id", sa.String(length=36), nullable=False),
        sa.Column("issue_type", sa.String(length=50), nullable=False),
        sa.Column("severity", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("suggested_fix", sa.Text(), nullable=True),
        sa.Column("is_fixed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fixed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("fixed_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        _org_fk(),
        _subscription_fk(),
        sa.ForeignKeyConstraint(
            ["validation_id"], ["subscription_validations.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "subscription_selling_plans",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("shopify_selling_plan_id", sa.String(length=255), nullable=True),
        sa.Column("shopify_selling_plan_group_id", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("billing_frequency", sa.String(length=20), nullable=False),
        sa.Column("billing_interval", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("delivery_frequency", sa.String(length=20), nullable=True),
        sa.Column("delivery_interval", sa.Integer(), nullable=True),
        sa.Column("discount_type", sa.String(length=20), nullable=True),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("trial_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_cycles", sa.Integer(), nullable=True),
        sa.Column("max_cycles", sa.Integer(), nullable=True),
        sa.Column("product_ids", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_now(), nullable=True),
        _org_fk(),
        sa.PrimaryKeyConstraint("id"),
    )

    for table, columns in INDEXES.items():
        for column in columns:
            op.create_index(op.f(f"ix_{table}_{column}"), table, [column])


def downgrade() -> None:
    for table, columns in INDEXES.items():
        for column in columns:
            op.drop_index(op.f(f"ix_{table}_{column}"), table_name=table)
    op.drop_table("subscription_selling_plans")
    op.drop_table("subscription_validation_issues")
    op.drop_table("subscription_validations")
    op.drop_table("subscription_save_attempts")
    op.drop_table("subscription_save_flows")
