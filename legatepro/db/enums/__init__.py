"""Enum definitions for application constants."""

from legatepro.db.enums.billing import PlanId, SubscriptionStatus
from legatepro.db.enums.estates import (
    COLLABORATOR_ROLES,
    ROLE_RANK,
    EstateRole,
    EstateStatus,
    InviteStatus,
)
from legatepro.db.enums.events import (
    EVENT_TYPE_ALIASES,
    EstateEventType,
    normalize_event_type,
)
from legatepro.db.enums.records import (
    INVOICE_TRANSITIONS,
    ContactRole,
    DocumentSubject,
    ExpenseCategory,
    InvoiceStatus,
    InvoiceTerms,
    LineItemType,
    PropertyType,
    TaskStatus,
    UtilityType,
)

__all__ = [
    "COLLABORATOR_ROLES",
    "ROLE_RANK",
    "EVENT_TYPE_ALIASES",
    "INVOICE_TRANSITIONS",
    "ContactRole",
    "DocumentSubject",
    "EstateEventType",
    "EstateRole",
    "EstateStatus",
    "ExpenseCategory",
    "InviteStatus",
    "InvoiceStatus",
    "InvoiceTerms",
    "LineItemType",
    "PlanId",
    "PropertyType",
    "SubscriptionStatus",
    "TaskStatus",
    "UtilityType",
    "normalize_event_type",
]
