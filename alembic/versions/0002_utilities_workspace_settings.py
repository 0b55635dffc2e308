"""Utility accounts and workspace settings

Revision ID: 0002_utilities_workspace_settings
Revises: 0001_baseline
Create Date: 2026-10-19

Adds estate utility accounts (optionally tied to a property) and the
per-user workspace settings row that carries firm details and billing
defaults.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_utilities_workspace_settings'
down_revision: Union[str, Sequence[str], None] = '0001_baseline'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "estate_utility_accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "estate_id", sa.Uuid(), sa.ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey("estate_properties.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("provider_name", sa.String(160), nullable=False),
        sa.Column("utility_type", sa.String(20), nullable=False),
        sa.Column("account_number", sa.String(80), nullable=True),
        sa.Column("phone", sa.String(25), nullable=True),
        sa.Column("website", sa.String(2000), nullable=True),
        sa.Column("balance_due_cents", sa.Integer(), nullable=False),
        sa.Column("last_payment_cents", sa.Integer(), nullable=True),
        sa.Column("last_payment_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("balance_due_cents >= 0", name="ck_utility_balance_nonnegative"),
        sa.CheckConstraint(
            "last_payment_cents IS NULL OR last_payment_cents >= 0",
            name="ck_utility_last_payment_nonnegative",
        ),
    )
    op.create_index(
        "idx_estate_utilities_estate_property",
        "estate_utility_accounts",
        ["estate_id", "property_id"],
    )

    op.create_table(
        "workspace_settings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("firm_name", sa.String(200), nullable=True),
        sa.Column("firm_address_line1", sa.String(255), nullable=True),
        sa.Column("firm_address_line2", sa.String(255), nullable=True),
        sa.Column("firm_city", sa.String(100), nullable=True),
        sa.Column("firm_state", sa.String(50), nullable=True),
        sa.Column("firm_postal_code", sa.String(20), nullable=True),
        sa.Column("firm_country", sa.String(100), nullable=True),
        sa.Column("logo_url", sa.String(2000), nullable=True),
        sa.Column("default_hourly_rate_cents", sa.Integer(), nullable=True),
        sa.Column("default_invoice_terms", sa.String(20), nullable=False),
        sa.Column("default_currency", sa.String(3), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", name="uq_workspace_settings_user_id"),
        sa.CheckConstraint(
            "default_hourly_rate_cents IS NULL OR default_hourly_rate_cents >= 0",
            name="ck_workspace_hourly_rate_nonnegative",
        ),
    )


def downgrade() -> None:
    op.drop_table("workspace_settings")
    op.drop_index("idx_estate_utilities_estate_property", table_name="estate_utility_accounts")
    op.drop_table("estate_utility_accounts")
