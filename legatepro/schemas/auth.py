"""Pydantic schemas for authentication."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Credentials sign-up."""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=200)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    name: str | None = Field(None, max_length=200)


class RegisterResponse(BaseModel):
    id: UUID
    email: str


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=200)


class UserRead(BaseModel):
    """Public view of the signed-in user."""
    id: UUID
    email: str
    first_name: str | None
    last_name: str | None
    name: str | None
    display_name: str
    subscription_status: str
    subscription_plan_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class MeResponse(BaseModel):
    user: UserRead
    entitlements: dict
