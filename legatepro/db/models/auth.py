"""User account model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from legatepro.db.base import Base, TimestampMixin
from legatepro.db.enums import SubscriptionStatus


class User(TimestampMixin, Base):
    """
    Account holder. Authenticates with email + password.

    Billing state mirrors Stripe and is written by the webhook handler; plan
    entitlements are always derived from it (never stored separately).
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Bumped on logout to revoke outstanding session tokens
    token_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Stripe
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subscription_status: Mapped[str] = mapped_column(
        String(30), default=SubscriptionStatus.FREE.value, nullable=False
    )
    subscription_plan_id: Mapped[str | None] = mapped_column(String(30), nullable=True)
    subscription_current_period_end: Mapped[datetime | None] = mapped_column(nullable=True)

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.email
