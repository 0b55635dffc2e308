"""Stripe integration - customers, Checkout, the billing portal and webhook verification."""

import json
import logging
from typing import Any

import stripe
from sqlalchemy.orm import Session

from legatepro.core.config import settings
from legatepro.db.enums import PlanId
from legatepro.db.models import User
from legatepro.services import billing_service

logger = logging.getLogger(__name__)


class BillingNotConfigured(Exception):
    """Stripe keys or prices are missing from the environment."""


class BillingNotReady(Exception):
    """The stored customer id cannot be used with Stripe."""


class InvalidWebhook(ValueError):
    """Webhook payload or signature failed verification."""


def _configure() -> None:
    if not settings.billing_enabled:
        raise BillingNotConfigured("Billing is not configured")
    stripe.api_key = settings.STRIPE_SECRET_KEY


def billing_page_url(query: str = "") -> str:
    return f"{settings.app_base_url}/app/billing{query}"


def _create_customer(db: Session, user: User) -> str:
    customer = stripe.Customer.create(
        email=user.email,
        name=user.display_name,
        metadata={"user_id": str(user.id)},
    )
    user.stripe_customer_id = customer.id
    db.commit()
    logger.info("Created Stripe customer", extra={"user_id": str(user.id)})
    return customer.id


def ensure_customer(db: Session, user: User) -> str:
    """
    Return the user's Stripe customer id, creating the customer if missing.

    Raises:
        BillingNotConfigured: No Stripe secret key
        BillingNotReady: Stored id is not a ``cus_`` id
    """
    _configure()
    customer_id = user.stripe_customer_id or _create_customer(db, user)
    if not billing_service.is_valid_customer_id(customer_id):
        raise BillingNotReady("Billing is not configured for this user.")
    return customer_id


def create_checkout_session(db: Session, user: User, plan: PlanId) -> str:
    """Start a subscription Checkout Session and return its hosted URL."""
    _configure()
    price_id = billing_service.price_id_for(plan)
    if not price_id:
        raise BillingNotConfigured(f"No Stripe price configured for plan {plan.value}")

    customer_id = ensure_customer(db, user)
    metadata = {"user_id": str(user.id), "plan_id": plan.value}
    session = stripe.checkout.Session.create(
        mode="subscription",
        customer=customer_id,
        client_reference_id=str(user.id),
        line_items=[{"price": price_id, "quantity": 1}],
        allow_promotion_codes=True,
        success_url=billing_page_url("?success=1"),
        cancel_url=billing_page_url("?canceled=1"),
        metadata=metadata,
        subscription_data={"metadata": metadata},
    )
    return session.url


def _is_missing_customer(exc: stripe.StripeError) -> bool:
    return "no such customer" in str(exc).lower()


def create_portal_session(db: Session, user: User) -> str:
    """
    Open a billing portal session and return its URL.

    A stored customer that no longer exists in Stripe (e.g. after a test-mode
    reset) is recreated once and the call retried.
    """
    customer_id = ensure_customer(db, user)
    return_url = billing_page_url()
    try:
        portal = stripe.billing_portal.Session.create(customer=customer_id, return_url=return_url)
    except stripe.InvalidRequestError as e:
        if not _is_missing_customer(e):
            raise
        logger.warning(
            "Stripe customer missing, recreating", extra={"user_id": str(user.id)}
        )
        customer_id = _create_customer(db, user)
        portal = stripe.billing_portal.Session.create(customer=customer_id, return_url=return_url)
    return portal.url


def construct_event(payload: bytes, signature: str | None) -> dict[str, Any]:
    """
    Verify a webhook against ``STRIPE_WEBHOOK_SECRET`` and return the event.

    Raises:
        BillingNotConfigured: No webhook secret
        InvalidWebhook: Missing/invalid signature or malformed payload
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise BillingNotConfigured("Stripe webhook secret is not configured")
    if not signature:
        raise InvalidWebhook("Missing stripe-signature header")
    try:
        stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except stripe.SignatureVerificationError:
        raise InvalidWebhook("Invalid signature")
    except ValueError:
        raise InvalidWebhook("Invalid payload")
    # Verified; work on the plain JSON rather than the SDK object
    return json.loads(payload)
