"""Financial models: expenses, invoices, properties, rent, utilities and time.

All money is stored as integer cents.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from legatepro.db.base import Base, TimestampMixin
from legatepro.db.enums import ExpenseCategory, InvoiceStatus, PropertyType, UtilityType


class Expense(TimestampMixin, Base):
    __tablename__ = "estate_expenses"
    __table_args__ = (
        Index("idx_estate_expenses_estate_date", "estate_id", "incurred_on"),
        CheckConstraint("amount_cents >= 0", name="ck_expense_amount_nonnegative"),
    )

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    incurred_on: Mapped[date] = mapped_column(Date, nullable=False)
    category: Mapped[str] = mapped_column(
        String(30), default=ExpenseCategory.OTHER.value, nullable=False
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    payee: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    property_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("estate_properties.id", ondelete="SET NULL"), nullable=True
    )
    document_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("estate_documents.id", ondelete="SET NULL"), nullable=True
    )


class Invoice(TimestampMixin, Base):
    """
    Fee invoice issued by the personal representative.

    ``line_items`` is a JSON list of
    ``{type, label, quantity, rate_cents, amount_cents}``; totals are derived
    from it on every write.
    """

    __tablename__ = "estate_invoices"
    __table_args__ = (
        UniqueConstraint("estate_id", "invoice_number", name="uq_invoice_number_per_estate"),
        Index("idx_estate_invoices_estate_issue", "estate_id", "issue_date"),
    )

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    invoice_number: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=InvoiceStatus.DRAFT.value, nullable=False
    )
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    line_items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    subtotal_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tax_rate: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    tax_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class EstateProperty(TimestampMixin, Base):
    """Real property held by the estate."""

    __tablename__ = "estate_properties"
    __table_args__ = (Index("idx_estate_properties_estate", "estate_id"),)

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    address_line1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address_line2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    property_type: Mapped[str] = mapped_column(
        String(20), default=PropertyType.OTHER.value, nullable=False
    )
    bedrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[float | None] = mapped_column(Float, nullable=True)
    square_feet: Mapped[int | None] = mapped_column(Integer, nullable=True)
    estimated_value_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    monthly_rent_target_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_rented: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_sold: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class RentPayment(TimestampMixin, Base):
    __tablename__ = "estate_rent_payments"
    __table_args__ = (
        Index("idx_estate_rent_estate_period", "estate_id", "period_year", "period_month"),
        CheckConstraint("period_month BETWEEN 1 AND 12", name="ck_rent_period_month"),
        CheckConstraint("amount_cents >= 0", name="ck_rent_amount_nonnegative"),
    )

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    property_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("estate_properties.id", ondelete="SET NULL"), nullable=True
    )
    tenant_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    period_month: Mapped[int] = mapped_column(Integer, nullable=False)
    period_year: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_late: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def period_label(self) -> str:
        return f"{self.period_year:04d}-{self.period_month:02d}"


class UtilityAccount(TimestampMixin, Base):
    """
    Utility service on the estate (electric, water, ...).

    Optionally tied to one of the estate's properties; deleting the property
    keeps the account and clears the link.
    """

    __tablename__ = "estate_utility_accounts"
    __table_args__ = (
        Index("idx_estate_utilities_estate_property", "estate_id", "property_id"),
        CheckConstraint("balance_due_cents >= 0", name="ck_utility_balance_nonnegative"),
        CheckConstraint(
            "last_payment_cents IS NULL OR last_payment_cents >= 0",
            name="ck_utility_last_payment_nonnegative",
        ),
    )

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    property_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("estate_properties.id", ondelete="SET NULL"), nullable=True
    )
    provider_name: Mapped[str] = mapped_column(String(160), nullable=False)
    utility_type: Mapped[str] = mapped_column(
        String(20), default=UtilityType.OTHER.value, nullable=False
    )
    account_number: Mapped[str | None] = mapped_column(String(80), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(25), nullable=True)
    website: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    balance_due_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_payment_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class TimeEntry(TimestampMixin, Base):
    """Time spent administering the estate, billable to the estate."""

    __tablename__ = "estate_time_entries"
    __table_args__ = (
        Index("idx_estate_time_estate_date", "estate_id", "entry_date"),
        CheckConstraint("minutes > 0", name="ck_time_minutes_positive"),
    )

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    hourly_rate_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    billable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    billed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    billed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    invoice_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("estate_invoices.id", ondelete="SET NULL"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def value_cents(self) -> int:
        if not self.hourly_rate_cents:
            return 0
        return round(self.minutes * self.hourly_rate_cents / 60)
