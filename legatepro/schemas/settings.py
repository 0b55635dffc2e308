"""Pydantic schemas for workspace settings."""

from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from legatepro.db.enums import InvoiceTerms


class WorkspaceSettingsRead(BaseModel):
    user_id: UUID
    firm_name: str | None
    firm_address_line1: str | None
    firm_address_line2: str | None
    firm_city: str | None
    firm_state: str | None
    firm_postal_code: str | None
    firm_country: str | None
    logo_url: str | None
    default_hourly_rate_cents: int | None
    default_invoice_terms: InvoiceTerms
    default_currency: str

    model_config = {"from_attributes": True}


class WorkspaceSettingsUpdate(BaseModel):
    """
    Partial update. Firm fields and the hourly rate may be cleared with null;
    terms and currency always keep a value.
    """

    firm_name: str | None = Field(None, max_length=200)
    firm_address_line1: str | None = Field(None, max_length=255)
    firm_address_line2: str | None = Field(None, max_length=255)
    firm_city: str | None = Field(None, max_length=100)
    firm_state: str | None = Field(None, max_length=50)
    firm_postal_code: str | None = Field(None, max_length=20)
    firm_country: str | None = Field(None, max_length=100)
    logo_url: str | None = Field(None, max_length=2000)
    default_hourly_rate_cents: int | None = Field(None, ge=0)
    default_invoice_terms: InvoiceTerms | None = None
    default_currency: str | None = Field(None, min_length=3, max_length=3)

    @field_validator("default_invoice_terms", mode="before")
    @classmethod
    def upper_terms(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("default_currency")
    @classmethod
    def upper_currency(cls, v: str | None) -> str | None:
        return v.upper() if v else v
