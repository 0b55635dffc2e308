"""Billing service - plan catalogue and subscription state kept in sync with Stripe.

Stripe is the source of truth. The user row mirrors the customer id,
subscription id, plan and status, written only by the webhook handler (and the
customer id by checkout/portal). Entitlements are derived from that mirror.
"""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from legatepro.core.config import settings
from legatepro.db.enums import PlanId, SubscriptionStatus
from legatepro.db.models import User
from legatepro.services.entitlements import get_entitlements

logger = logging.getLogger(__name__)


PLANS: dict[PlanId, dict[str, Any]] = {
    PlanId.FREE: {
        "name": "Starter",
        "price_monthly_cents": 0,
        "currency": "usd",
        "interval": None,
        "features": [
            "1 estate",
            "Documents, tasks, notes and contacts",
            "Expense and rent tracking",
        ],
    },
    PlanId.PRO: {
        "name": "Pro Personal Representative",
        "price_monthly_cents": 1900,
        "currency": "usd",
        "interval": "month",
        "features": [
            "Up to 50 estates",
            "Invite collaborators",
            "Exports and advanced reports",
        ],
    },
}

HANDLED_EVENTS = (
    "checkout.session.completed",
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "invoice.payment_failed",
)


def parse_paid_plan(plan_id: str | None) -> PlanId | None:
    """A plan that can be bought through checkout, or None."""
    raw = (plan_id or "").strip().lower()
    if raw == PlanId.PRO.value:
        return PlanId.PRO
    return None


def price_id_for(plan: PlanId) -> str | None:
    if plan == PlanId.PRO:
        return settings.STRIPE_PRICE_PRO_MONTHLY or None
    return None


def plan_for_price(price_id: str | None) -> PlanId:
    """Map a Stripe price back to our plan; unknown prices are free."""
    if price_id and price_id == settings.STRIPE_PRICE_PRO_MONTHLY:
        return PlanId.PRO
    return PlanId.FREE


def list_plans(current: PlanId | None = None) -> list[dict[str, Any]]:
    return [
        {"id": plan.value, **meta, "features": list(meta["features"]), "is_current": plan == current}
        for plan, meta in PLANS.items()
    ]


def billing_overview(user: User) -> dict[str, Any]:
    """Snapshot for the billing page: customer, subscription, plans, entitlements."""
    ent = get_entitlements(user)
    return {
        "customer": {
            "stripe_customer_id": user.stripe_customer_id,
            "email": user.email,
        },
        "subscription": {
            "plan_id": ent.plan.value,
            "status": ent.status.value,
            "stripe_subscription_id": user.stripe_subscription_id,
            "current_period_end": user.subscription_current_period_end,
        },
        "plans": list_plans(ent.plan),
        "entitlements": ent.to_dict(),
    }


def is_valid_customer_id(value: str | None) -> bool:
    return bool(value and value.startswith("cus_") and value[4:].isalnum())


# =============================================================================
# Webhook events
# =============================================================================

def _object_id(value: Any) -> str | None:
    """Stripe expands some references into objects; accept either form."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        return value.get("id")
    return None


def find_user_for_object(db: Session, obj: dict[str, Any]) -> User | None:
    """
    Resolve the account an event belongs to.

    Checks, in order: ``metadata.user_id`` (set on checkout sessions and
    customers), ``client_reference_id``, then the stored customer id.
    """
    metadata = obj.get("metadata") or {}
    candidates = (
        metadata.get("user_id"),
        metadata.get("userId"),
        obj.get("client_reference_id"),
    )
    for raw_id in candidates:
        user_id = _as_uuid(raw_id)
        user = db.get(User, user_id) if user_id else None
        if user:
            return user

    customer_id = _object_id(obj.get("customer"))
    if customer_id:
        return db.scalars(select(User).where(User.stripe_customer_id == customer_id)).first()
    return None


def _as_uuid(raw: Any) -> UUID | None:
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        return None


def _period_end(subscription: dict[str, Any]) -> datetime | None:
    # Newer API versions moved the period onto subscription items
    ts = subscription.get("current_period_end")
    if ts is None:
        items = (subscription.get("items") or {}).get("data") or []
        ts = items[0].get("current_period_end") if items else None
    if not ts:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc)


def apply_subscription(db: Session, user: User, subscription: dict[str, Any], *, deleted: bool = False) -> None:
    """Mirror a Stripe subscription onto the user."""
    items = (subscription.get("items") or {}).get("data") or []
    price_id = _object_id(items[0].get("price")) if items else None
    plan = plan_for_price(price_id)

    status = SubscriptionStatus.normalize(subscription.get("status"))
    if deleted:
        status = SubscriptionStatus.CANCELED
        plan = PlanId.FREE
    elif status == SubscriptionStatus.TRIALING:
        status = SubscriptionStatus.ACTIVE

    user.subscription_plan_id = plan.value
    if plan == PlanId.FREE and status != SubscriptionStatus.CANCELED:
        user.subscription_status = SubscriptionStatus.FREE.value
    else:
        user.subscription_status = status.value
    user.stripe_subscription_id = subscription.get("id") or user.stripe_subscription_id
    user.subscription_current_period_end = _period_end(subscription)

    customer_id = _object_id(subscription.get("customer"))
    if customer_id:
        user.stripe_customer_id = customer_id
    db.commit()


def handle_event(db: Session, event: dict[str, Any]) -> bool:
    """
    Apply a verified Stripe event.

    Returns:
        True when the event changed a user, False when it was ignored
    """
    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}

    if event_type not in HANDLED_EVENTS:
        logger.info("Ignoring Stripe event %s", event_type)
        return False

    user = find_user_for_object(db, obj)
    if not user:
        logger.warning("Stripe event %s has no matching user", event_type)
        return False

    if event_type == "checkout.session.completed":
        changed = False
        customer_id = _object_id(obj.get("customer"))
        if customer_id and not user.stripe_customer_id:
            user.stripe_customer_id = customer_id
            changed = True
        subscription_id = _object_id(obj.get("subscription"))
        if subscription_id and not user.stripe_subscription_id:
            user.stripe_subscription_id = subscription_id
            changed = True
        if changed:
            db.commit()
        return changed

    if event_type.startswith("customer.subscription."):
        apply_subscription(db, user, obj, deleted=event_type.endswith(".deleted"))
        return True

    # invoice.payment_failed
    user.subscription_status = SubscriptionStatus.PAST_DUE.value
    subscription_id = _object_id(obj.get("subscription"))
    if subscription_id:
        user.stripe_subscription_id = subscription_id
    db.commit()
    return True
