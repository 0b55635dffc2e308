"""Pydantic schemas for expenses, invoices, properties, rent, utilities and time entries.

Money fields are integer cents. Amounts that are not numbers fail validation
(400) rather than being coerced to zero.
"""

import math
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, StrictBool, field_validator

from legatepro.db.enums import (
    ExpenseCategory,
    InvoiceStatus,
    LineItemType,
    PropertyType,
    UtilityType,
)


def _upper(v):
    return v.strip().upper() if isinstance(v, str) else v


def _strict_cents(v):
    """Accept ints, integral floats and digit strings; reject anything else."""
    if v is None:
        return v
    if isinstance(v, bool):
        raise ValueError("amount must be a number")
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        v = v.strip()
        if v.lstrip("-").isdigit():
            return int(v)
        try:
            v = float(v)
        except ValueError:
            raise ValueError("amount must be a number")
    if isinstance(v, float):
        if not math.isfinite(v):
            raise ValueError("amount must be a number")
        if not v.is_integer():
            raise ValueError("amount must be a whole number of cents")
        return int(v)
    raise ValueError("amount must be a number")


# =============================================================================
# Expenses
# =============================================================================

class ExpenseCreate(BaseModel):
    incurred_on: date
    category: ExpenseCategory = ExpenseCategory.OTHER
    description: str = Field(..., min_length=1, max_length=500)
    amount_cents: int = Field(..., ge=0)
    payee: str | None = Field(None, max_length=200)
    notes: str | None = Field(None, max_length=10_000)
    is_paid: bool = True
    property_id: UUID | None = None
    document_id: UUID | None = None

    @field_validator("amount_cents", mode="before")
    @classmethod
    def numeric_amount(cls, v):
        return _strict_cents(v)

    @field_validator("category", mode="before")
    @classmethod
    def upper_category(cls, v):
        return _upper(v)

    @field_validator("description")
    @classmethod
    def description_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description is required")
        return v


class ExpenseUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""
    incurred_on: date | None = None
    category: ExpenseCategory | None = None
    description: str | None = Field(None, min_length=1, max_length=500)
    amount_cents: int | None = Field(None, ge=0)
    payee: str | None = Field(None, max_length=200)
    notes: str | None = Field(None, max_length=10_000)
    is_paid: bool | None = None
    property_id: UUID | None = None
    document_id: UUID | None = None

    @field_validator("amount_cents", mode="before")
    @classmethod
    def numeric_amount(cls, v):
        return _strict_cents(v)

    @field_validator("category", mode="before")
    @classmethod
    def upper_category(cls, v):
        return _upper(v)


class ExpenseRead(BaseModel):
    id: UUID
    estate_id: UUID
    owner_id: UUID | None
    incurred_on: date
    category: ExpenseCategory
    description: str
    amount_cents: int
    payee: str | None
    notes: str | None
    is_paid: bool
    property_id: UUID | None
    document_id: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ExpenseList(BaseModel):
    items: list[ExpenseRead]
    total_cents: int


# =============================================================================
# Invoices
# =============================================================================

class LineItemIn(BaseModel):
    type: LineItemType = LineItemType.ADJUSTMENT
    label: str = Field(..., min_length=1, max_length=300)
    quantity: float = Field(1, ge=0)
    rate_cents: int = 0
    amount_cents: int | None = None

    @field_validator("type", mode="before")
    @classmethod
    def upper_type(cls, v):
        return _upper(v)

    @field_validator("rate_cents", "amount_cents", mode="before")
    @classmethod
    def numeric_cents(cls, v):
        return _strict_cents(v)


class LineItem(BaseModel):
    type: LineItemType
    label: str
    quantity: float
    rate_cents: int
    amount_cents: int


class InvoiceCreate(BaseModel):
    issue_date: date | None = None
    due_date: date | None = None
    notes: str | None = Field(None, max_length=10_000)
    currency: str | None = Field(None, min_length=3, max_length=3)
    line_items: list[LineItemIn] = Field(default_factory=list, max_length=200)
    tax_rate: float = Field(0, ge=0, le=100)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str | None) -> str | None:
        return v.upper() if v else v


class InvoiceUpdate(BaseModel):
    issue_date: date | None = None
    due_date: date | None = None
    notes: str | None = Field(None, max_length=10_000)
    currency: str | None = Field(None, min_length=3, max_length=3)
    line_items: list[LineItemIn] | None = Field(None, max_length=200)
    tax_rate: float | None = Field(None, ge=0, le=100)


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        return _upper(v)


class InvoiceRead(BaseModel):
    id: UUID
    estate_id: UUID
    owner_id: UUID | None
    invoice_number: str
    status: InvoiceStatus
    issue_date: date
    due_date: date | None
    paid_at: datetime | None
    notes: str | None
    currency: str
    line_items: list[LineItem]
    subtotal_cents: int
    tax_rate: float
    tax_cents: int
    total_cents: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Properties
# =============================================================================

class PropertyCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=200)
    address_line1: str | None = Field(None, max_length=255)
    address_line2: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=50)
    postal_code: str | None = Field(None, max_length=20)
    property_type: PropertyType = PropertyType.OTHER
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: float | None = Field(None, ge=0)
    square_feet: int | None = Field(None, ge=0)
    estimated_value_cents: int | None = Field(None, ge=0)
    monthly_rent_target_cents: int | None = Field(None, ge=0)
    is_rented: bool = False
    is_sold: bool = False
    notes: str | None = Field(None, max_length=10_000)

    @field_validator("label")
    @classmethod
    def label_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("label is required")
        return v

    @field_validator("property_type", mode="before")
    @classmethod
    def lower_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class PropertyUpdate(BaseModel):
    label: str | None = Field(None, min_length=1, max_length=200)
    address_line1: str | None = Field(None, max_length=255)
    address_line2: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=50)
    postal_code: str | None = Field(None, max_length=20)
    property_type: PropertyType | None = None
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: float | None = Field(None, ge=0)
    square_feet: int | None = Field(None, ge=0)
    estimated_value_cents: int | None = Field(None, ge=0)
    monthly_rent_target_cents: int | None = Field(None, ge=0)
    is_rented: bool | None = None
    is_sold: bool | None = None
    notes: str | None = Field(None, max_length=10_000)

    @field_validator("property_type", mode="before")
    @classmethod
    def lower_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class PropertyRead(BaseModel):
    id: UUID
    estate_id: UUID
    owner_id: UUID | None
    label: str
    address_line1: str | None
    address_line2: str | None
    city: str | None
    state: str | None
    postal_code: str | None
    property_type: PropertyType
    bedrooms: int | None
    bathrooms: float | None
    square_feet: int | None
    estimated_value_cents: int | None
    monthly_rent_target_cents: int | None
    is_rented: bool
    is_sold: bool
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Rent
# =============================================================================

class RentCreate(BaseModel):
    property_id: UUID | None = None
    tenant_name: str | None = Field(None, max_length=200)
    period_month: int = Field(..., ge=1, le=12)
    period_year: int = Field(..., ge=1900, le=2200)
    amount_cents: int = Field(..., ge=0)
    payment_date: date
    method: str | None = Field(None, max_length=50)
    reference: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=10_000)
    is_late: bool = False

    @field_validator("amount_cents", mode="before")
    @classmethod
    def numeric_amount(cls, v):
        return _strict_cents(v)


class RentUpdate(BaseModel):
    property_id: UUID | None = None
    tenant_name: str | None = Field(None, max_length=200)
    period_month: int | None = Field(None, ge=1, le=12)
    period_year: int | None = Field(None, ge=1900, le=2200)
    amount_cents: int | None = Field(None, ge=0)
    payment_date: date | None = None
    method: str | None = Field(None, max_length=50)
    reference: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=10_000)
    is_late: bool | None = None

    @field_validator("amount_cents", mode="before")
    @classmethod
    def numeric_amount(cls, v):
        return _strict_cents(v)


class RentRead(BaseModel):
    id: UUID
    estate_id: UUID
    owner_id: UUID | None
    property_id: UUID | None
    tenant_name: str | None
    period_month: int
    period_year: int
    period_label: str
    amount_cents: int
    payment_date: date
    method: str | None
    reference: str | None
    notes: str | None
    is_late: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Utility accounts
# =============================================================================

def _http_url(v):
    if v is None:
        return v
    v = v.strip()
    if not v:
        return None
    if not v.lower().startswith(("http://", "https://")):
        raise ValueError("website must start with http:// or https://")
    return v


class UtilityCreate(BaseModel):
    provider_name: str = Field(..., min_length=1, max_length=160)
    utility_type: UtilityType = UtilityType.OTHER
    property_id: UUID | None = None
    account_number: str | None = Field(None, max_length=80)
    phone: str | None = Field(None, max_length=25)
    website: str | None = Field(None, max_length=2000)
    balance_due_cents: int = Field(0, ge=0)
    last_payment_cents: int | None = Field(None, ge=0)
    last_payment_date: date | None = None
    notes: str | None = Field(None, max_length=4000)

    @field_validator("provider_name")
    @classmethod
    def provider_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("provider_name is required")
        return v

    @field_validator("utility_type", mode="before")
    @classmethod
    def lower_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("website")
    @classmethod
    def website_scheme(cls, v):
        return _http_url(v)

    @field_validator("balance_due_cents", "last_payment_cents", mode="before")
    @classmethod
    def numeric_cents(cls, v):
        return _strict_cents(v)


class UtilityUpdate(BaseModel):
    provider_name: str | None = Field(None, min_length=1, max_length=160)
    utility_type: UtilityType | None = None
    property_id: UUID | None = None
    account_number: str | None = Field(None, max_length=80)
    phone: str | None = Field(None, max_length=25)
    website: str | None = Field(None, max_length=2000)
    balance_due_cents: int | None = Field(None, ge=0)
    last_payment_cents: int | None = Field(None, ge=0)
    last_payment_date: date | None = None
    notes: str | None = Field(None, max_length=4000)

    @field_validator("utility_type", mode="before")
    @classmethod
    def lower_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("website")
    @classmethod
    def website_scheme(cls, v):
        return _http_url(v)

    @field_validator("balance_due_cents", "last_payment_cents", mode="before")
    @classmethod
    def numeric_cents(cls, v):
        return _strict_cents(v)


class UtilityRead(BaseModel):
    id: UUID
    estate_id: UUID
    owner_id: UUID | None
    property_id: UUID | None
    provider_name: str
    utility_type: UtilityType
    account_number: str | None
    phone: str | None
    website: str | None
    balance_due_cents: int
    last_payment_cents: int | None
    last_payment_date: date | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Time entries
# =============================================================================

class TimeEntryCreate(BaseModel):
    entry_date: date
    description: str = Field(..., min_length=1, max_length=500)
    minutes: int = Field(..., gt=0, le=24 * 60)
    hourly_rate_cents: int | None = Field(None, ge=0)
    billable: bool = True
    notes: str | None = Field(None, max_length=10_000)

    @field_validator("description")
    @classmethod
    def description_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description is required")
        return v


class TimeEntryUpdate(BaseModel):
    entry_date: date | None = None
    description: str | None = Field(None, min_length=1, max_length=500)
    minutes: int | None = Field(None, gt=0, le=24 * 60)
    hourly_rate_cents: int | None = Field(None, ge=0)
    billable: bool | None = None
    notes: str | None = Field(None, max_length=10_000)


class TimeEntryBilled(BaseModel):
    billed: StrictBool


class TimeEntryRead(BaseModel):
    id: UUID
    estate_id: UUID
    owner_id: UUID | None
    entry_date: date
    description: str
    minutes: int
    hourly_rate_cents: int | None
    billable: bool
    billed: bool
    billed_at: datetime | None
    invoice_id: UUID | None
    notes: str | None
    value_cents: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TimeSummary(BaseModel):
    total_entries: int
    total_hours: float
    billable_hours: float
    non_billable_hours: float
    billed_hours: float
    unbilled_billable_hours: float
    unbilled_value_cents: int
