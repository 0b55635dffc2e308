"""Estate workspace, membership and activity models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from legatepro.db.base import Base, TimestampMixin
from legatepro.db.enums import EstateStatus, InviteStatus
from legatepro.db.types import utcnow

if TYPE_CHECKING:
    from legatepro.db.models import (
        Contact,
        EstateDocument,
        EstateNote,
        EstateProperty,
        EstateTask,
        Expense,
        Invoice,
        RentPayment,
        TimeEntry,
        User,
    )


_CHILD_CASCADE = "all, delete-orphan"


class Estate(TimestampMixin, Base):
    """
    A deceased person's affairs under administration.

    Scopes every other record. The owner has implicit OWNER access and is never
    stored as a collaborator row.
    """

    __tablename__ = "estates"
    __table_args__ = (Index("idx_estates_owner_created", "owner_id", "created_at"),)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    case_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    court_county: Mapped[str | None] = mapped_column(String(100), nullable=True)
    court_state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=EstateStatus.OPEN.value, nullable=False
    )
    decedent_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    decedent_date_of_death: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Cached readiness plan and its cache key/metadata
    readiness_plan: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    readiness_plan_meta: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    owner: Mapped["User"] = relationship()
    collaborators: Mapped[list["EstateCollaborator"]] = relationship(
        back_populates="estate", cascade=_CHILD_CASCADE
    )
    invites: Mapped[list["EstateInvite"]] = relationship(cascade=_CHILD_CASCADE)
    events: Mapped[list["EstateEvent"]] = relationship(cascade=_CHILD_CASCADE)
    documents: Mapped[list["EstateDocument"]] = relationship(cascade=_CHILD_CASCADE)
    contacts: Mapped[list["Contact"]] = relationship(cascade=_CHILD_CASCADE)
    estate_notes: Mapped[list["EstateNote"]] = relationship(cascade=_CHILD_CASCADE)
    tasks: Mapped[list["EstateTask"]] = relationship(cascade=_CHILD_CASCADE)
    expenses: Mapped[list["Expense"]] = relationship(cascade=_CHILD_CASCADE)
    invoices: Mapped[list["Invoice"]] = relationship(cascade=_CHILD_CASCADE)
    properties: Mapped[list["EstateProperty"]] = relationship(cascade=_CHILD_CASCADE)
    rent_payments: Mapped[list["RentPayment"]] = relationship(cascade=_CHILD_CASCADE)
    time_entries: Mapped[list["TimeEntry"]] = relationship(cascade=_CHILD_CASCADE)


class EstateCollaborator(Base):
    """A non-owner member of an estate with EDITOR or VIEWER role."""

    __tablename__ = "estate_collaborators"
    __table_args__ = (
        UniqueConstraint("estate_id", "user_id", name="uq_estate_collaborator"),
        Index("idx_estate_collaborators_user", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    added_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    estate: Mapped[Estate] = relationship(back_populates="collaborators")
    user: Mapped["User"] = relationship()


class EstateInvite(TimestampMixin, Base):
    """Emailed invitation to join an estate; accepted via its token."""

    __tablename__ = "estate_invites"
    __table_args__ = (
        Index("idx_estate_invites_estate_status", "estate_id", "status"),
        Index("idx_estate_invites_email", "estate_id", "email"),
    )

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=InviteStatus.PENDING.value, nullable=False
    )
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    accepted_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    accepted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(nullable=True)


class EstateEvent(Base):
    """
    Activity timeline entry for an estate.

    Written best-effort; a failed write never blocks the operation it describes.
    """

    __tablename__ = "estate_events"
    __table_args__ = (
        Index("idx_estate_events_estate_created", "estate_id", "created_at"),
        Index("idx_estate_events_estate_type", "estate_id", "type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    actor_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    summary: Mapped[str] = mapped_column(String(240), nullable=False)
    detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
