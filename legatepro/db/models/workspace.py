"""Per-user workspace settings: firm letterhead and billing defaults."""

from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from legatepro.db.base import Base, TimestampMixin
from legatepro.db.enums import InvoiceTerms


class WorkspaceSettings(TimestampMixin, Base):
    """
    One row per user, created lazily on first read.

    The estate owner's row supplies the defaults for that estate's invoices
    (currency, payment terms) and time entries (hourly rate).
    """

    __tablename__ = "workspace_settings"
    __table_args__ = (
        CheckConstraint(
            "default_hourly_rate_cents IS NULL OR default_hourly_rate_cents >= 0",
            name="ck_workspace_hourly_rate_nonnegative",
        ),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    firm_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    firm_address_line1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    firm_address_line2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    firm_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    firm_state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    firm_postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    firm_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    default_hourly_rate_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    default_invoice_terms: Mapped[str] = mapped_column(
        String(20), default=InvoiceTerms.NET_30.value, nullable=False
    )
    default_currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
