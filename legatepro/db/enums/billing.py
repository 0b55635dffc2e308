"""Subscription plan enums."""

from enum import Enum


class PlanId(str, Enum):
    FREE = "free"
    PRO = "pro"


class SubscriptionStatus(str, Enum):
    """Subscription states as reported by Stripe (plus our own ``free``)."""

    FREE = "free"
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    UNPAID = "unpaid"

    @classmethod
    def normalize(cls, value: str | None) -> "SubscriptionStatus":
        raw = (value or "").strip().lower()
        if raw in cls._value2member_map_:
            return cls(raw)
        return cls.FREE
