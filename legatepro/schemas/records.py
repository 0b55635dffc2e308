"""Pydantic schemas for documents, contacts, notes and tasks."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from legatepro.db.enums import ContactRole, DocumentSubject, TaskStatus

MAX_TAGS = 25
MAX_TAG_LENGTH = 50


def clean_tags(value) -> list[str]:
    """Keep trimmed, non-empty, unique string tags (order preserved)."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("tags must be a list of strings")
    seen: dict[str, None] = {}
    for tag in value:
        if not isinstance(tag, str):
            continue
        tag = tag.strip()[:MAX_TAG_LENGTH]
        if tag:
            seen.setdefault(tag, None)
    return list(seen)[:MAX_TAGS]


# =============================================================================
# Documents
# =============================================================================

class DocumentCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=200)
    subject: DocumentSubject = DocumentSubject.OTHER
    location: str | None = Field(None, max_length=500)
    url: str | None = Field(None, max_length=2000)
    tags: list[str] = Field(default_factory=list)
    notes: str | None = Field(None, max_length=10_000)
    is_sensitive: bool = False
    file_name: str | None = Field(None, max_length=255)
    file_type: str | None = Field(None, max_length=100)
    file_size_bytes: int | None = Field(None, ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v):
        return clean_tags(v)

    @field_validator("label")
    @classmethod
    def label_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("label is required")
        return v


class DocumentUpdate(BaseModel):
    """Whitelisted document fields (partial)."""
    label: str | None = Field(None, min_length=1, max_length=200)
    subject: DocumentSubject | None = None
    location: str | None = Field(None, max_length=500)
    url: str | None = Field(None, max_length=2000)
    tags: list[str] | None = None
    notes: str | None = Field(None, max_length=10_000)
    is_sensitive: bool | None = None
    file_name: str | None = Field(None, max_length=255)
    file_type: str | None = Field(None, max_length=100)
    file_size_bytes: int | None = Field(None, ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v):
        return None if v is None else clean_tags(v)


class DocumentRead(BaseModel):
    id: UUID
    estate_id: UUID
    owner_id: UUID | None
    label: str
    subject: DocumentSubject
    location: str | None
    url: str | None
    tags: list[str]
    notes: str | None
    is_sensitive: bool
    file_name: str | None
    file_type: str | None
    file_size_bytes: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Contacts
# =============================================================================

class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    relationship: str | None = Field(None, max_length=100)
    role: ContactRole = ContactRole.OTHER
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address_line1: str | None = Field(None, max_length=255)
    address_line2: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=50)
    postal_code: str | None = Field(None, max_length=20)
    country: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=10_000)
    is_primary: bool = False

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v


class ContactUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    relationship: str | None = Field(None, max_length=100)
    role: ContactRole | None = None
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address_line1: str | None = Field(None, max_length=255)
    address_line2: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=50)
    postal_code: str | None = Field(None, max_length=20)
    country: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=10_000)
    is_primary: bool | None = None


class ContactRead(BaseModel):
    id: UUID
    estate_id: UUID
    name: str
    relationship: str | None
    role: ContactRole
    email: str | None
    phone: str | None
    address_line1: str | None
    address_line2: str | None
    city: str | None
    state: str | None
    postal_code: str | None
    country: str | None
    notes: str | None
    is_primary: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Notes
# =============================================================================

class NoteCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)
    pinned: bool = False


class NoteUpdate(BaseModel):
    body: str | None = Field(None, min_length=1, max_length=5000)
    pinned: bool | None = None


class NoteRead(BaseModel):
    id: UUID
    estate_id: UUID
    owner_id: UUID | None
    body: str
    pinned: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Tasks
# =============================================================================

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    status: TaskStatus = TaskStatus.NOT_STARTED
    due_date: date | None = None
    related_document_id: UUID | None = None
    related_invoice_id: UUID | None = None

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title is required")
        return v

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class TaskUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    status: TaskStatus | None = None
    due_date: date | None = None
    related_document_id: UUID | None = None
    related_invoice_id: UUID | None = None

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class TaskRead(BaseModel):
    id: UUID
    estate_id: UUID
    owner_id: UUID | None
    title: str
    description: str | None
    status: TaskStatus
    due_date: date | None
    completed_at: datetime | None
    related_document_id: UUID | None
    related_invoice_id: UUID | None
    is_overdue: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
