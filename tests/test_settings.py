"""Tests for workspace settings and the billing defaults they supply."""

from datetime import date

import pytest
from httpx import AsyncClient

from legatepro.db.enums import InvoiceTerms
from legatepro.db.models import WorkspaceSettings
from legatepro.services import settings_service
from tests.conftest import estate_url


@pytest.mark.asyncio
async def test_first_read_creates_default_settings(client_for, owner, db):
    assert settings_service.get_settings(db, owner.id) is None

    async with client_for(owner) as c:
        first = await c.get("/api/settings")
        second = await c.get("/api/settings")

    assert first.status_code == 200
    data = first.json()["data"]
    assert data["user_id"] == str(owner.id)
    assert data["default_invoice_terms"] == "NET_30"
    assert data["default_currency"] == "USD"
    assert data["default_hourly_rate_cents"] is None
    assert data["firm_name"] is None
    assert second.json()["data"] == data
    assert db.query(WorkspaceSettings).filter(WorkspaceSettings.user_id == owner.id).count() == 1


@pytest.mark.asyncio
async def test_settings_partial_update(client_for, owner, editor):
    async with client_for(owner) as c:
        patched = await c.patch(
            "/api/settings",
            json={
                "firm_name": "  Doe & Partners  ",
                "default_invoice_terms": "net_15",
                "default_currency": "eur",
                "default_hourly_rate_cents": 25000,
            },
        )
        cleared = await c.patch(
            "/api/settings",
            json={"firm_name": "", "default_invoice_terms": None, "default_currency": None},
        )

    assert patched.status_code == 200
    body = patched.json()["data"]
    assert body["settings"]["firm_name"] == "Doe & Partners"
    assert body["settings"]["default_invoice_terms"] == "NET_15"
    assert body["settings"]["default_currency"] == "EUR"
    assert sorted(body["changed_fields"]) == [
        "default_currency",
        "default_hourly_rate_cents",
        "default_invoice_terms",
        "firm_name",
    ]

    # Terms and currency keep their values; firm fields may be cleared
    after = cleared.json()["data"]
    assert after["changed_fields"] == ["firm_name"]
    assert after["settings"]["firm_name"] is None
    assert after["settings"]["default_invoice_terms"] == "NET_15"
    assert after["settings"]["default_currency"] == "EUR"

    # Settings are per user
    async with client_for(editor) as c:
        theirs = await c.get("/api/settings")
    assert theirs.json()["data"]["default_currency"] == "USD"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"default_invoice_terms": "NET_90"},
        {"default_currency": "EURO"},
        {"default_hourly_rate_cents": -1},
    ],
)
async def test_settings_rejects_invalid_values(client_for, owner, payload):
    async with client_for(owner) as c:
        response = await c.patch("/api/settings", json=payload)
    assert response.status_code == 400
    assert response.json()["ok"] is False


@pytest.mark.asyncio
async def test_settings_require_session_and_csrf(client: AsyncClient, client_for, owner):
    anonymous = await client.get("/api/settings")
    async with client_for(owner, csrf=False) as c:
        no_csrf = await c.patch("/api/settings", json={"firm_name": "Doe LLP"})

    assert anonymous.status_code == 401
    assert no_csrf.status_code == 403


@pytest.mark.asyncio
async def test_invoice_defaults_come_from_estate_owner(client_for, estate, owner, editor):
    async with client_for(owner) as c:
        await c.patch(
            "/api/settings", json={"default_invoice_terms": "NET_15", "default_currency": "cad"}
        )
    # The editor's own settings do not apply to the owner's estate
    async with client_for(editor) as c:
        await c.patch("/api/settings", json={"default_invoice_terms": "NET_60"})
        defaulted = await c.post(estate_url(estate, "/invoices"), json={"issue_date": "2024-03-01"})
        explicit = await c.post(
            estate_url(estate, "/invoices"),
            json={"issue_date": "2024-03-01", "due_date": "2024-03-05", "currency": "usd"},
        )

    assert defaulted.status_code == 201
    assert defaulted.json()["data"]["currency"] == "CAD"
    assert defaulted.json()["data"]["due_date"] == "2024-03-16"
    assert explicit.json()["data"]["currency"] == "USD"
    assert explicit.json()["data"]["due_date"] == "2024-03-05"


@pytest.mark.asyncio
async def test_invoice_defaults_without_settings(client_for, estate, editor):
    async with client_for(editor) as c:
        response = await c.post(estate_url(estate, "/invoices"), json={"issue_date": "2024-01-31"})

    assert response.json()["data"]["currency"] == "USD"
    assert response.json()["data"]["due_date"] == "2024-03-01"


@pytest.mark.asyncio
async def test_time_entry_takes_default_rate(client_for, estate, owner, editor):
    async with client_for(owner) as c:
        await c.patch("/api/settings", json={"default_hourly_rate_cents": 17500})

    async with client_for(editor) as c:
        defaulted = await c.post(
            estate_url(estate, "/time"),
            json={"entry_date": "2024-02-01", "description": "Court hearing", "minutes": 90},
        )
        explicit = await c.post(
            estate_url(estate, "/time"),
            json={
                "entry_date": "2024-02-02",
                "description": "Inventory",
                "minutes": 30,
                "hourly_rate_cents": 5000,
            },
        )

    assert defaulted.status_code == 201
    assert defaulted.json()["data"]["hourly_rate_cents"] == 17500
    assert explicit.json()["data"]["hourly_rate_cents"] == 5000


def test_due_date_follows_terms():
    issued = date(2024, 12, 20)
    on_receipt = settings_service.BillingDefaults(terms=InvoiceTerms.DUE_ON_RECEIPT)
    net_45 = settings_service.BillingDefaults(terms=InvoiceTerms.NET_45)
    assert on_receipt.due_date_for(issued) == issued
    assert net_45.due_date_for(issued) == date(2025, 2, 3)
