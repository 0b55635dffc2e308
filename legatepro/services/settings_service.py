"""Workspace settings service - firm details and billing defaults per user.

Settings rows are created on first read. Invoices and time entries on an
estate take their defaults from the estate owner's settings; an owner who
never opened settings gets the column defaults (USD, NET_30, no rate).
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from legatepro.db.enums import InvoiceTerms
from legatepro.db.models import WorkspaceSettings
from legatepro.schemas.settings import WorkspaceSettingsUpdate

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"
DEFAULT_TERMS = InvoiceTerms.NET_30

# Cannot be set back to null
_REQUIRED_FIELDS = ("default_invoice_terms", "default_currency")


@dataclass(frozen=True)
class BillingDefaults:
    currency: str = DEFAULT_CURRENCY
    terms: InvoiceTerms = DEFAULT_TERMS
    hourly_rate_cents: int | None = None

    def due_date_for(self, issue_date: date) -> date:
        return issue_date + timedelta(days=self.terms.days)


def get_settings(db: Session, user_id: UUID) -> WorkspaceSettings | None:
    return db.query(WorkspaceSettings).filter(WorkspaceSettings.user_id == user_id).first()


def get_or_create_settings(db: Session, user_id: UUID) -> WorkspaceSettings:
    """Return the user's settings, creating the default row on first use."""
    settings = get_settings(db, user_id)
    if settings:
        return settings

    settings = WorkspaceSettings(
        user_id=user_id,
        default_invoice_terms=DEFAULT_TERMS.value,
        default_currency=DEFAULT_CURRENCY,
    )
    db.add(settings)
    try:
        db.commit()
    except IntegrityError:
        # Created by a concurrent request
        db.rollback()
        return get_settings(db, user_id)
    db.refresh(settings)
    logger.info("Workspace settings created", extra={"user_id": str(user_id)})
    return settings


def update_settings(
    db: Session, settings: WorkspaceSettings, data: WorkspaceSettingsUpdate
) -> list[str]:
    """
    Apply a partial update.

    Returns:
        Names of fields whose value actually changed
    """
    changed: list[str] = []
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in _REQUIRED_FIELDS and value is None:
            continue
        if isinstance(value, InvoiceTerms):
            value = value.value
        if isinstance(value, str) and field.startswith(("firm_", "logo_")):
            value = value.strip() or None
        if getattr(settings, field) != value:
            setattr(settings, field, value)
            changed.append(field)
    if changed:
        db.commit()
        db.refresh(settings)
    return changed


def billing_defaults(db: Session, user_id: UUID) -> BillingDefaults:
    """Defaults for invoices and time entries billed under ``user_id``."""
    settings = get_settings(db, user_id)
    if not settings:
        return BillingDefaults()
    return BillingDefaults(
        currency=settings.default_currency or DEFAULT_CURRENCY,
        terms=InvoiceTerms(settings.default_invoice_terms or DEFAULT_TERMS.value),
        hourly_rate_cents=settings.default_hourly_rate_cents,
    )
