"""Estate-scoped record models: documents, contacts, notes, tasks."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from legatepro.db.base import Base, TimestampMixin
from legatepro.db.enums import ContactRole, DocumentSubject, TaskStatus


class EstateDocument(TimestampMixin, Base):
    """
    Document index entry. Stores where a document lives, never its bytes.

    Sensitive entries are only visible to members who can view sensitive data.
    """

    __tablename__ = "estate_documents"
    __table_args__ = (
        Index("idx_estate_documents_estate_created", "estate_id", "created_at"),
        Index("idx_estate_documents_estate_subject", "estate_id", "subject"),
    )

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    subject: Mapped[str] = mapped_column(
        String(30), default=DocumentSubject.OTHER.value, nullable=False
    )
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_sensitive: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    file_size_bytes: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Contact(TimestampMixin, Base):
    """Person or organization involved in the estate."""

    __tablename__ = "estate_contacts"
    __table_args__ = (Index("idx_estate_contacts_estate_name", "estate_id", "name"),)

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    relationship: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(
        String(30), default=ContactRole.OTHER.value, nullable=False
    )
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address_line1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address_line2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class EstateNote(TimestampMixin, Base):
    """Free-text note. Pinned notes sort first."""

    __tablename__ = "estate_notes"
    __table_args__ = (Index("idx_estate_notes_estate_created", "estate_id", "created_at"),)

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class EstateTask(TimestampMixin, Base):
    """Status-tracked to-do item. ``completed_at`` is set while status is DONE."""

    __tablename__ = "estate_tasks"
    __table_args__ = (
        Index("idx_estate_tasks_estate_status", "estate_id", "status"),
        Index("idx_estate_tasks_estate_due", "estate_id", "due_date"),
    )

    estate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("estates.id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=TaskStatus.NOT_STARTED.value, nullable=False
    )
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    related_document_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("estate_documents.id", ondelete="SET NULL"), nullable=True
    )
    related_invoice_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("estate_invoices.id", ondelete="SET NULL"), nullable=True
    )

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE.value
