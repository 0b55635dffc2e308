"""Pydantic schemas for estates, collaborators and invites."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from legatepro.db.enums import EstateRole, EstateStatus, InviteStatus


class EstateCreate(BaseModel):
    """Request to open an estate."""
    display_name: str = Field(..., min_length=1, max_length=200)
    case_number: str | None = Field(None, max_length=100)
    court_county: str | None = Field(None, max_length=100)
    court_state: str | None = Field(None, max_length=50)
    status: EstateStatus = EstateStatus.OPEN
    decedent_name: str | None = Field(None, max_length=200)
    decedent_date_of_death: date | None = None
    notes: str | None = Field(None, max_length=10_000)

    @field_validator("display_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("display_name is required")
        return v


class EstateUpdate(BaseModel):
    """Request to update an estate (partial)."""
    display_name: str | None = Field(None, min_length=1, max_length=200)
    case_number: str | None = Field(None, max_length=100)
    court_county: str | None = Field(None, max_length=100)
    court_state: str | None = Field(None, max_length=50)
    status: EstateStatus | None = None
    decedent_name: str | None = Field(None, max_length=200)
    decedent_date_of_death: date | None = None
    notes: str | None = Field(None, max_length=10_000)


class EstateRead(BaseModel):
    """Full estate response."""
    id: UUID
    owner_id: UUID
    display_name: str
    case_number: str | None
    court_county: str | None
    court_state: str | None
    status: EstateStatus
    decedent_name: str | None
    decedent_date_of_death: date | None
    notes: str | None
    role: EstateRole | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EstateCompact(BaseModel):
    """Estate row for pickers and nav lists."""
    id: UUID
    display_name: str
    status: EstateStatus
    case_number: str | None
    decedent_name: str | None
    role: EstateRole | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Collaborators
# =============================================================================

class CollaboratorAdd(BaseModel):
    user_id: UUID
    role: EstateRole = EstateRole.VIEWER

    @field_validator("role")
    @classmethod
    def not_owner(cls, v: EstateRole) -> EstateRole:
        if v == EstateRole.OWNER:
            raise ValueError("role must be EDITOR or VIEWER")
        return v


class CollaboratorRoleUpdate(BaseModel):
    role: EstateRole

    @field_validator("role")
    @classmethod
    def not_owner(cls, v: EstateRole) -> EstateRole:
        if v == EstateRole.OWNER:
            raise ValueError("role must be EDITOR or VIEWER")
        return v


class CollaboratorRead(BaseModel):
    user_id: UUID
    role: EstateRole
    added_at: datetime
    email: str | None = None
    name: str | None = None


class CollaboratorList(BaseModel):
    owner_id: UUID
    collaborators: list[CollaboratorRead]


# =============================================================================
# Invites
# =============================================================================

class InviteCreate(BaseModel):
    email: EmailStr
    role: EstateRole = EstateRole.VIEWER

    @field_validator("role")
    @classmethod
    def not_owner(cls, v: EstateRole) -> EstateRole:
        if v == EstateRole.OWNER:
            raise ValueError("role must be EDITOR or VIEWER")
        return v


class InviteRead(BaseModel):
    id: UUID
    email: str
    role: EstateRole
    status: InviteStatus
    token: str
    expires_at: datetime
    accepted_at: datetime | None
    revoked_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class InviteSent(BaseModel):
    invite_url: str
    token: str
    email: str
    role: EstateRole
    status: InviteStatus
    expires_at: datetime
    reused: bool = False


class InviteAccepted(BaseModel):
    estate_id: UUID
    role: EstateRole
