"""Baseline migration - accounts, estates and estate records

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Creates every table: users, estates with membership/invites/activity, the
document/contact/note/task records and the financial records.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _estate_fk() -> sa.Column:
    return sa.Column(
        "estate_id", sa.Uuid(), sa.ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )


def _owner_fk() -> sa.Column:
    return sa.Column(
        "owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("token_version", sa.Integer(), nullable=False),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(255), nullable=True),
        sa.Column("subscription_status", sa.String(30), nullable=False),
        sa.Column("subscription_plan_id", sa.String(30), nullable=True),
        sa.Column("subscription_current_period_end", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ==========================================================================
    # Estates, membership, invites, activity
    # ==========================================================================
    op.create_table(
        "estates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.Column("case_number", sa.String(100), nullable=True),
        sa.Column("court_county", sa.String(100), nullable=True),
        sa.Column("court_state", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("decedent_name", sa.String(200), nullable=True),
        sa.Column("decedent_date_of_death", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("readiness_plan", sa.JSON(), nullable=True),
        sa.Column("readiness_plan_meta", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_estates_owner_created", "estates", ["owner_id", "created_at"])

    op.create_table(
        "estate_collaborators",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("estate_id", "user_id", name="uq_estate_collaborator"),
    )
    op.create_index("idx_estate_collaborators_user", "estate_collaborators", ["user_id"])

    op.create_table(
        "estate_invites",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("token", sa.String(64), nullable=False, unique=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column(
            "created_by_user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "accepted_by_user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_estate_invites_estate_status", "estate_invites", ["estate_id", "status"])
    op.create_index("idx_estate_invites_email", "estate_invites", ["estate_id", "email"])

    op.create_table(
        "estate_events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        sa.Column(
            "actor_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("summary", sa.String(240), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_estate_events_estate_created", "estate_events", ["estate_id", "created_at"])
    op.create_index("idx_estate_events_estate_type", "estate_events", ["estate_id", "type"])

    # ==========================================================================
    # Records
    # ==========================================================================
    op.create_table(
        "estate_documents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        _owner_fk(),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("subject", sa.String(30), nullable=False),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("url", sa.String(2000), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_sensitive", sa.Boolean(), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.Column("file_type", sa.String(100), nullable=True),
        sa.Column("file_size_bytes", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "idx_estate_documents_estate_created", "estate_documents", ["estate_id", "created_at"]
    )
    op.create_index(
        "idx_estate_documents_estate_subject", "estate_documents", ["estate_id", "subject"]
    )

    op.create_table(
        "estate_contacts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        _owner_fk(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("relationship", sa.String(100), nullable=True),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address_line1", sa.String(255), nullable=True),
        sa.Column("address_line2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(50), nullable=True),
        sa.Column("postal_code", sa.String(20), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_estate_contacts_estate_name", "estate_contacts", ["estate_id", "name"])

    op.create_table(
        "estate_notes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        _owner_fk(),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("pinned", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_estate_notes_estate_created", "estate_notes", ["estate_id", "created_at"])

    # ==========================================================================
    # Finances
    # ==========================================================================
    op.create_table(
        "estate_properties",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        _owner_fk(),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("address_line1", sa.String(255), nullable=True),
        sa.Column("address_line2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(50), nullable=True),
        sa.Column("postal_code", sa.String(20), nullable=True),
        sa.Column("property_type", sa.String(20), nullable=False),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Float(), nullable=True),
        sa.Column("square_feet", sa.Integer(), nullable=True),
        sa.Column("estimated_value_cents", sa.Integer(), nullable=True),
        sa.Column("monthly_rent_target_cents", sa.Integer(), nullable=True),
        sa.Column("is_rented", sa.Boolean(), nullable=False),
        sa.Column("is_sold", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_estate_properties_estate", "estate_properties", ["estate_id"])

    op.create_table(
        "estate_invoices",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        _owner_fk(),
        sa.Column("invoice_number", sa.String(30), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("line_items", sa.JSON(), nullable=False),
        sa.Column("subtotal_cents", sa.Integer(), nullable=False),
        sa.Column("tax_rate", sa.Float(), nullable=False),
        sa.Column("tax_cents", sa.Integer(), nullable=False),
        sa.Column("total_cents", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("estate_id", "invoice_number", name="uq_invoice_number_per_estate"),
    )
    op.create_index("idx_estate_invoices_estate_issue", "estate_invoices", ["estate_id", "issue_date"])

    op.create_table(
        "estate_tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        _owner_fk(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "related_document_id",
            sa.Uuid(),
            sa.ForeignKey("estate_documents.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "related_invoice_id",
            sa.Uuid(),
            sa.ForeignKey("estate_invoices.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("idx_estate_tasks_estate_status", "estate_tasks", ["estate_id", "status"])
    op.create_index("idx_estate_tasks_estate_due", "estate_tasks", ["estate_id", "due_date"])

    op.create_table(
        "estate_expenses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        _owner_fk(),
        sa.Column("incurred_on", sa.Date(), nullable=False),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("payee", sa.String(200), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_paid", sa.Boolean(), nullable=False),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey("estate_properties.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "document_id",
            sa.Uuid(),
            sa.ForeignKey("estate_documents.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint("amount_cents >= 0", name="ck_expense_amount_nonnegative"),
    )
    op.create_index("idx_estate_expenses_estate_date", "estate_expenses", ["estate_id", "incurred_on"])

    op.create_table(
        "estate_rent_payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        _owner_fk(),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey("estate_properties.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("tenant_name", sa.String(200), nullable=True),
        sa.Column("period_month", sa.Integer(), nullable=False),
        sa.Column("period_year", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("method", sa.String(50), nullable=True),
        sa.Column("reference", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_late", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("period_month BETWEEN 1 AND 12", name="ck_rent_period_month"),
        sa.CheckConstraint("amount_cents >= 0", name="ck_rent_amount_nonnegative"),
    )
    op.create_index(
        "idx_estate_rent_estate_period",
        "estate_rent_payments",
        ["estate_id", "period_year", "period_month"],
    )

    op.create_table(
        "estate_time_entries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _estate_fk(),
        _owner_fk(),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("minutes", sa.Integer(), nullable=False),
        sa.Column("hourly_rate_cents", sa.Integer(), nullable=True),
        sa.Column("billable", sa.Boolean(), nullable=False),
        sa.Column("billed", sa.Boolean(), nullable=False),
        sa.Column("billed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "invoice_id",
            sa.Uuid(),
            sa.ForeignKey("estate_invoices.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("minutes > 0", name="ck_time_minutes_positive"),
    )
    op.create_index("idx_estate_time_estate_date", "estate_time_entries", ["estate_id", "entry_date"])


def downgrade() -> None:
    """Drop all tables (children first)."""
    for table in (
        "estate_time_entries",
        "estate_rent_payments",
        "estate_expenses",
        "estate_tasks",
        "estate_invoices",
        "estate_properties",
        "estate_notes",
        "estate_contacts",
        "estate_documents",
        "estate_events",
        "estate_invites",
        "estate_collaborators",
        "estates",
        "users",
    ):
        op.drop_table(table)
