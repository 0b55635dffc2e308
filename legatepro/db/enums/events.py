"""Estate activity event types."""

from enum import Enum


class EstateEventType(str, Enum):
    """Canonical event types recorded on an estate's activity timeline."""

    ESTATE_CREATED = "ESTATE_CREATED"
    ESTATE_UPDATED = "ESTATE_UPDATED"
    ESTATE_DELETED = "ESTATE_DELETED"

    INVOICE_CREATED = "INVOICE_CREATED"
    INVOICE_UPDATED = "INVOICE_UPDATED"
    INVOICE_STATUS_CHANGED = "INVOICE_STATUS_CHANGED"
    INVOICE_DELETED = "INVOICE_DELETED"

    DOCUMENT_CREATED = "DOCUMENT_CREATED"
    DOCUMENT_UPDATED = "DOCUMENT_UPDATED"
    DOCUMENT_DELETED = "DOCUMENT_DELETED"

    NOTE_CREATED = "NOTE_CREATED"
    NOTE_UPDATED = "NOTE_UPDATED"
    NOTE_PINNED = "NOTE_PINNED"
    NOTE_UNPINNED = "NOTE_UNPINNED"
    NOTE_DELETED = "NOTE_DELETED"

    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_COMPLETED = "TASK_COMPLETED"
    TASK_REOPENED = "TASK_REOPENED"
    TASK_DELETED = "TASK_DELETED"

    EXPENSE_CREATED = "EXPENSE_CREATED"
    EXPENSE_UPDATED = "EXPENSE_UPDATED"
    EXPENSE_DELETED = "EXPENSE_DELETED"

    PROPERTY_CREATED = "PROPERTY_CREATED"
    PROPERTY_UPDATED = "PROPERTY_UPDATED"
    PROPERTY_DELETED = "PROPERTY_DELETED"

    RENT_RECORDED = "RENT_RECORDED"
    RENT_UPDATED = "RENT_UPDATED"
    RENT_DELETED = "RENT_DELETED"

    UTILITY_CREATED = "UTILITY_CREATED"
    UTILITY_UPDATED = "UTILITY_UPDATED"
    UTILITY_DELETED = "UTILITY_DELETED"

    TIME_LOGGED = "TIME_LOGGED"

    CONTACT_LINKED = "CONTACT_LINKED"
    CONTACT_UPDATED = "CONTACT_UPDATED"
    CONTACT_UNLINKED = "CONTACT_UNLINKED"

    COLLABORATOR_ADDED = "COLLABORATOR_ADDED"
    COLLABORATOR_ROLE_CHANGED = "COLLABORATOR_ROLE_CHANGED"
    COLLABORATOR_REMOVED = "COLLABORATOR_REMOVED"

    COLLABORATOR_INVITE_SENT = "COLLABORATOR_INVITE_SENT"
    COLLABORATOR_INVITE_REVOKED = "COLLABORATOR_INVITE_REVOKED"
    COLLABORATOR_INVITE_ACCEPTED = "COLLABORATOR_INVITE_ACCEPTED"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


# Legacy/alternate spellings accepted on write and stored canonically
EVENT_TYPE_ALIASES: dict[str, EstateEventType] = {
    "DOCUMENT_ADDED": EstateEventType.DOCUMENT_CREATED,
    "DOCUMENT_REMOVED": EstateEventType.DOCUMENT_DELETED,
    "DOCUMENT_UPSERTED": EstateEventType.DOCUMENT_UPDATED,
    "NOTE_EDITED": EstateEventType.NOTE_UPDATED,
    "NOTE_ARCHIVED": EstateEventType.NOTE_DELETED,
    "TASK_DONE": EstateEventType.TASK_COMPLETED,
    "TASK_UNDONE": EstateEventType.TASK_REOPENED,
    "INVOICE_SENT": EstateEventType.INVOICE_STATUS_CHANGED,
    "INVOICE_PAID": EstateEventType.INVOICE_STATUS_CHANGED,
    "INVOICE_VOID": EstateEventType.INVOICE_STATUS_CHANGED,
    "CONTACT_ADDED": EstateEventType.CONTACT_LINKED,
    "CONTACT_REMOVED": EstateEventType.CONTACT_UNLINKED,
}


def normalize_event_type(value: "str | EstateEventType") -> EstateEventType:
    """Map any accepted spelling to its canonical type (unknown -> ESTATE_UPDATED)."""
    if isinstance(value, EstateEventType):
        return value
    raw = (value or "").strip().upper()
    if EstateEventType.has_value(raw):
        return EstateEventType(raw)
    return EVENT_TYPE_ALIASES.get(raw, EstateEventType.ESTATE_UPDATED)
