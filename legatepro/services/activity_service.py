"""Activity logging service - estate timeline events.

Events are written after the primary change has been committed. A failure to
record one is logged and rolled back; it never surfaces to the caller.
"""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from legatepro.core.structured_logging import build_log_context
from legatepro.db.enums import EstateEventType, normalize_event_type
from legatepro.db.models import EstateEvent

logger = logging.getLogger(__name__)

SUMMARY_MAX = 240
DETAIL_MAX = 4000
DEFAULT_LIMIT = 25
MAX_LIMIT = 100


def _truncate(value: str | None, limit: int) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value[:limit] if len(value) > limit else value


def record_event(
    db: Session,
    estate_id: UUID,
    actor_id: UUID | None,
    event_type: EstateEventType | str,
    summary: str,
    detail: str | None = None,
    meta: dict[str, Any] | None = None,
) -> EstateEvent | None:
    """
    Append an event to an estate's timeline and commit it.

    Args:
        db: Database session (primary work must already be committed)
        estate_id: Estate the event belongs to
        actor_id: User who performed the action (None for system)
        event_type: Canonical type or an accepted alias
        summary: One-line description (truncated to 240 chars)
        detail: Optional longer text (truncated to 4000 chars)
        meta: Type-specific JSON details

    Returns:
        The stored event, or None when it could not be written
    """
    canonical = normalize_event_type(event_type)
    event = EstateEvent(
        estate_id=estate_id,
        actor_id=actor_id,
        type=canonical.value,
        summary=_truncate(summary, SUMMARY_MAX) or canonical.value,
        detail=_truncate(detail, DETAIL_MAX),
        meta=_json_safe(meta) if meta else None,
    )
    try:
        db.add(event)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning(
            "Failed to record estate event %s",
            canonical.value,
            extra=build_log_context(
                user_id=str(actor_id) if actor_id else None, estate_id=str(estate_id)
            ),
            exc_info=True,
        )
        return None
    return event


def _json_safe(meta: dict[str, Any]) -> dict[str, Any]:
    """Stringify values JSON columns cannot hold (UUIDs, dates, enums)."""
    safe: dict[str, Any] = {}
    for key, value in meta.items():
        if isinstance(value, dict):
            safe[key] = _json_safe(value)
        elif isinstance(value, (list, tuple)):
            safe[key] = [v if isinstance(v, (str, int, float, bool)) or v is None else str(v) for v in value]
        elif isinstance(value, (str, int, float, bool)) or value is None:
            safe[key] = value
        elif hasattr(value, "value"):
            safe[key] = value.value
        else:
            safe[key] = str(value)
    return safe


def list_events(
    db: Session,
    estate_id: UUID,
    *,
    types: list[str] | None = None,
    limit: int = DEFAULT_LIMIT,
    cursor: datetime | None = None,
) -> tuple[list[EstateEvent], datetime | None]:
    """
    List events newest first with createdAt cursor pagination.

    Returns:
        (events, next_cursor) where next_cursor is the created_at of the last
        row returned (exclusive bound for the next page), or None when empty.
    """
    limit = max(1, min(MAX_LIMIT, limit))
    query = select(EstateEvent).where(EstateEvent.estate_id == estate_id)
    if types:
        canonical = sorted({normalize_event_type(t).value for t in types})
        query = query.where(EstateEvent.type.in_(canonical))
    if cursor:
        query = query.where(EstateEvent.created_at < cursor)
    query = query.order_by(EstateEvent.created_at.desc(), EstateEvent.id.desc()).limit(limit)

    events = list(db.scalars(query).all())
    next_cursor = events[-1].created_at if events else None
    return events, next_cursor


# Alias
log_event = record_event
