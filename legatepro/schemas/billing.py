"""Pydantic schemas for billing."""

from datetime import datetime

from pydantic import BaseModel, Field


class PlanInfo(BaseModel):
    id: str
    name: str
    price_monthly_cents: int
    currency: str = "usd"
    interval: str | None = None
    features: list[str]
    is_current: bool = False


class CustomerInfo(BaseModel):
    stripe_customer_id: str | None
    email: str


class SubscriptionInfo(BaseModel):
    plan_id: str
    status: str
    stripe_subscription_id: str | None
    current_period_end: datetime | None


class BillingOverview(BaseModel):
    customer: CustomerInfo
    subscription: SubscriptionInfo
    plans: list[PlanInfo]
    entitlements: dict


class CheckoutRequest(BaseModel):
    plan_id: str = Field(..., min_length=1, max_length=50)


class RedirectUrl(BaseModel):
    url: str
