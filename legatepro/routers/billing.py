"""Billing router - subscription checkout, the Stripe customer portal and Stripe webhooks."""

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from legatepro.core.deps import get_current_user, get_db, require_csrf_header
from legatepro.core.rate_limit import BILLING_LIMIT, limiter
from legatepro.core.responses import ok
from legatepro.core.structured_logging import build_log_context
from legatepro.db.models import User
from legatepro.schemas.billing import BillingOverview, CheckoutRequest, RedirectUrl
from legatepro.services import billing_service, stripe_service
from legatepro.services.stripe_service import BillingNotConfigured, BillingNotReady, InvalidWebhook

logger = logging.getLogger(__name__)

router = APIRouter()


def _billing_errors(exc: Exception, user: User, action: str) -> HTTPException:
    """Translate Stripe-side failures into API errors."""
    if isinstance(exc, BillingNotConfigured):
        return HTTPException(status_code=503, detail="Billing is not configured")
    if isinstance(exc, BillingNotReady):
        return HTTPException(
            status_code=409,
            detail={"error": str(exc), "code": "BILLING_NOT_READY"},
        )
    logger.error(
        "Stripe %s failed: %s",
        action,
        exc,
        extra=build_log_context(user_id=str(user.id)),
    )
    return HTTPException(status_code=502, detail=f"Unable to {action}")


@router.get("")
def get_billing(user: User = Depends(get_current_user)):
    """Customer, subscription, available plans and current entitlements."""
    return ok(BillingOverview(**billing_service.billing_overview(user)))


@router.post("", dependencies=[Depends(require_csrf_header)])
@limiter.limit(BILLING_LIMIT)
def start_checkout(
    request: Request,
    data: CheckoutRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a Stripe Checkout Session for a paid plan and return its URL."""
    plan = billing_service.parse_paid_plan(data.plan_id)
    if plan is None:
        raise HTTPException(status_code=400, detail="Invalid plan")

    try:
        url = stripe_service.create_checkout_session(db, user, plan)
    except (BillingNotConfigured, BillingNotReady, stripe.StripeError) as e:
        raise _billing_errors(e, user, "start checkout")
    return ok(RedirectUrl(url=url))


@router.post("/portal", dependencies=[Depends(require_csrf_header)])
@limiter.limit(BILLING_LIMIT)
def open_portal(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Open the Stripe customer portal for managing the subscription."""
    try:
        url = stripe_service.create_portal_session(db, user)
    except (BillingNotConfigured, BillingNotReady, stripe.StripeError) as e:
        raise _billing_errors(e, user, "open customer portal")
    return ok(RedirectUrl(url=url))


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Receive Stripe events.

    Security:
    - Verifies the Stripe-Signature header against STRIPE_WEBHOOK_SECRET
    - No session or CSRF header; Stripe calls this directly

    Unknown event types are acknowledged so Stripe stops retrying them.
    """
    payload = await request.body()
    try:
        event = stripe_service.construct_event(payload, request.headers.get("stripe-signature"))
    except BillingNotConfigured:
        raise HTTPException(status_code=503, detail="Billing is not configured")
    except InvalidWebhook as e:
        logger.warning("Stripe webhook rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    handled = billing_service.handle_event(db, event)
    return ok({"received": True, "handled": handled})
