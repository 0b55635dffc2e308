"""Tests for billing: overview, checkout, portal and Stripe webhooks."""

import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from legatepro.core.config import settings
from legatepro.db.models import User
from legatepro.services import billing_service
from tests.conftest import make_user

PRO_PRICE = "price_pro_monthly_test"
WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture
def stripe_configured(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setattr(settings, "STRIPE_PRICE_PRO_MONTHLY", PRO_PRICE)
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)


@pytest.fixture
def stripe_unconfigured(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "")
    monkeypatch.setattr(settings, "STRIPE_PRICE_PRO_MONTHLY", "")
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "")


def _signed(payload: dict, secret: str = WEBHOOK_SECRET) -> tuple[bytes, str]:
    body = json.dumps(payload).encode()
    ts = int(time.time())
    signature = hmac.new(
        secret.encode(), f"{ts}.{body.decode()}".encode(), hashlib.sha256
    ).hexdigest()
    return body, f"t={ts},v1={signature}"


def _subscription_event(event_type: str, user: User, status: str = "active", price: str = PRO_PRICE) -> dict:
    return {
        "id": "evt_1",
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": "sub_123",
                "object": "subscription",
                "customer": "cus_ABC123",
                "status": status,
                "metadata": {"user_id": str(user.id)},
                "current_period_end": 1767225600,
                "items": {"data": [{"price": {"id": price}}]},
            }
        },
    }


# =============================================================================
# Overview and checkout
# =============================================================================

@pytest.mark.asyncio
async def test_billing_overview(client_for, free_user):
    async with client_for(free_user) as c:
        response = await c.get("/api/billing")
    assert response.status_code == 200
    data = response.json()["data"]
    plans = {p["id"]: p for p in data["plans"]}
    assert plans["free"]["name"] == "Starter"
    assert plans["free"]["price_monthly_cents"] == 0
    assert plans["free"]["is_current"] is True
    assert plans["pro"]["price_monthly_cents"] == 1900
    assert data["subscription"]["plan_id"] == "free"
    assert data["entitlements"]["is_pro"] is False


@pytest.mark.asyncio
async def test_checkout_rejects_unknown_plan(client_for, free_user, stripe_configured):
    async with client_for(free_user) as c:
        response = await c.post("/api/billing", json={"plan_id": "enterprise"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid plan"


@pytest.mark.asyncio
async def test_checkout_without_stripe_is_503(client_for, free_user, stripe_unconfigured):
    async with client_for(free_user) as c:
        response = await c.post("/api/billing", json={"plan_id": "pro"})
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_checkout_creates_customer_and_session(
    client_for, free_user, db, stripe_configured, monkeypatch
):
    calls = {}

    def create_customer(**kwargs):
        calls["customer"] = kwargs
        return SimpleNamespace(id="cus_NEW123")

    def create_session(**kwargs):
        calls["session"] = kwargs
        return SimpleNamespace(url="https://checkout.stripe.test/c/pay_123")

    monkeypatch.setattr(stripe.Customer, "create", create_customer)
    monkeypatch.setattr(stripe.checkout.Session, "create", create_session)

    async with client_for(free_user) as c:
        response = await c.post("/api/billing", json={"plan_id": " PRO "})

    assert response.status_code == 200
    assert response.json()["data"] == {"url": "https://checkout.stripe.test/c/pay_123"}
    assert calls["customer"]["metadata"] == {"user_id": str(free_user.id)}
    assert calls["session"]["customer"] == "cus_NEW123"
    assert calls["session"]["client_reference_id"] == str(free_user.id)
    assert calls["session"]["line_items"] == [{"price": PRO_PRICE, "quantity": 1}]
    assert calls["session"]["success_url"].endswith("/app/billing?success=1")

    db.refresh(free_user)
    assert free_user.stripe_customer_id == "cus_NEW123"


@pytest.mark.asyncio
async def test_checkout_with_bad_customer_id_is_409(client_for, db, stripe_configured):
    user = make_user(db, "legacy", stripe_customer_id="legacy-customer")
    async with client_for(user) as c:
        response = await c.post("/api/billing", json={"plan_id": "pro"})
    assert response.status_code == 409
    assert response.json()["code"] == "BILLING_NOT_READY"


@pytest.mark.asyncio
async def test_stripe_error_is_502(client_for, db, stripe_configured, monkeypatch):
    user = make_user(db, "payer", stripe_customer_id="cus_EXISTING1")

    def fail(**kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.checkout.Session, "create", fail)
    async with client_for(user) as c:
        response = await c.post("/api/billing", json={"plan_id": "pro"})
    assert response.status_code == 502
    assert response.json()["error"] == "Unable to start checkout"


@pytest.mark.asyncio
async def test_portal_recreates_missing_customer(client_for, db, stripe_configured, monkeypatch):
    user = make_user(db, "portal", stripe_customer_id="cus_GONE1")
    portal_customers = []

    def create_portal(**kwargs):
        portal_customers.append(kwargs["customer"])
        if kwargs["customer"] == "cus_GONE1":
            raise stripe.InvalidRequestError("No such customer: 'cus_GONE1'", "customer")
        return SimpleNamespace(url="https://billing.stripe.test/p/session")

    monkeypatch.setattr(stripe.billing_portal.Session, "create", create_portal)
    monkeypatch.setattr(stripe.Customer, "create", lambda **kwargs: SimpleNamespace(id="cus_FRESH1"))

    async with client_for(user) as c:
        response = await c.post("/api/billing/portal")

    assert response.status_code == 200
    assert response.json()["data"]["url"] == "https://billing.stripe.test/p/session"
    assert portal_customers == ["cus_GONE1", "cus_FRESH1"]


# =============================================================================
# Webhooks
# =============================================================================

@pytest.mark.asyncio
async def test_webhook_without_secret_is_503(client, db, stripe_unconfigured):
    response = await client.post(
        "/api/billing/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=x"}
    )
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_webhook_rejects_bad_signature(client, db, free_user, stripe_configured):
    body, _ = _signed(_subscription_event("customer.subscription.updated", free_user))
    _, forged = _signed({"other": True}, secret="whsec_wrong")

    bad = await client.post(
        "/api/billing/webhook", content=body, headers={"stripe-signature": forged}
    )
    missing = await client.post("/api/billing/webhook", content=body)

    assert bad.status_code == 400
    assert missing.status_code == 400
    db.refresh(free_user)
    assert free_user.subscription_plan_id != "pro"


@pytest.mark.asyncio
async def test_webhook_subscription_lifecycle(client, db, free_user, stripe_configured):
    body, signature = _signed(
        _subscription_event("customer.subscription.updated", free_user, status="trialing")
    )
    response = await client.post(
        "/api/billing/webhook", content=body, headers={"stripe-signature": signature}
    )
    assert response.status_code == 200
    assert response.json()["data"] == {"received": True, "handled": True}

    db.refresh(free_user)
    assert free_user.subscription_plan_id == "pro"
    assert free_user.subscription_status == "active"
    assert free_user.stripe_subscription_id == "sub_123"
    assert free_user.stripe_customer_id == "cus_ABC123"
    assert free_user.subscription_current_period_end is not None

    body, signature = _signed(_subscription_event("customer.subscription.deleted", free_user))
    response = await client.post(
        "/api/billing/webhook", content=body, headers={"stripe-signature": signature}
    )
    assert response.status_code == 200

    db.refresh(free_user)
    assert free_user.subscription_plan_id == "free"
    assert free_user.subscription_status == "canceled"


@pytest.mark.asyncio
async def test_webhook_ignores_unknown_events(client, db, stripe_configured):
    body, signature = _signed({"id": "evt_2", "type": "customer.created", "data": {"object": {}}})
    response = await client.post(
        "/api/billing/webhook", content=body, headers={"stripe-signature": signature}
    )
    assert response.status_code == 200
    assert response.json()["data"] == {"received": True, "handled": False}


def test_payment_failed_marks_past_due(db):
    user = make_user(
        db, "card", stripe_customer_id="cus_CARD1", subscription_plan_id="pro", subscription_status="active"
    )
    event = {
        "type": "invoice.payment_failed",
        "data": {"object": {"customer": "cus_CARD1", "subscription": "sub_9"}},
    }
    assert billing_service.handle_event(db, event) is True
    db.refresh(user)
    assert user.subscription_status == "past_due"
    assert user.stripe_subscription_id == "sub_9"


def test_checkout_completed_links_customer(db):
    user = make_user(db, "buyer")
    event = {
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "client_reference_id": str(user.id),
                "customer": "cus_BUYER1",
                "subscription": "sub_B",
            }
        },
    }
    assert billing_service.handle_event(db, event) is True
    db.refresh(user)
    assert user.stripe_customer_id == "cus_BUYER1"
    assert user.stripe_subscription_id == "sub_B"


def test_unknown_price_is_free(db, stripe_configured):
    user = make_user(db, "odd")
    obj = _subscription_event("customer.subscription.updated", user, price="price_other")
    billing_service.apply_subscription(db, user, obj["data"]["object"])
    db.refresh(user)
    assert user.subscription_plan_id == "free"
    assert user.subscription_status == "free"
