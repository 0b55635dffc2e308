"""Tests for the readiness score and the readiness plan."""

import json
import logging
from datetime import timedelta

import httpx
import pytest

from legatepro.core.config import settings
from legatepro.db.models import Contact
from legatepro.db.types import utcnow
from legatepro.services import readiness_plan_service, readiness_service
from legatepro.services.ai_provider import OpenAIProvider
from tests.conftest import estate_url


@pytest.fixture(autouse=True)
def no_ai(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")


def test_score_documents_counts_required_subjects():
    score, raw, signals = readiness_service.score_documents({"LEGAL": 2, "BANKING": 1, "OTHER": 4})
    assert score == 20
    assert raw["total_documents"] == 7
    assert raw["missing_document_subjects"] == ["PROPERTY"]
    assert [s["key"] for s in signals] == ["missing_property_documents"]


@pytest.mark.parametrize(
    "counts,expected_score,risk",
    [
        ({"total": 4, "completed": 4, "incomplete": 0, "overdue": 0}, 25, None),
        ({"total": 4, "completed": 3, "incomplete": 1, "overdue": 1}, 14, "medium"),
        ({"total": 4, "completed": 1, "incomplete": 3, "overdue": 3}, 0, "high"),
    ],
)
def test_score_tasks(counts, expected_score, risk):
    score, raw, missing, at_risk = readiness_service.score_tasks(counts)
    assert score == expected_score
    assert missing == []
    if risk is None:
        assert at_risk == []
    else:
        assert at_risk[0]["key"] == "tasksOverdue"
        assert at_risk[0]["severity"] == risk
        assert at_risk[0]["count"] == counts["overdue"]


def test_score_tasks_without_tasks():
    score, raw, missing, at_risk = readiness_service.score_tasks(
        {"total": 0, "completed": 0, "incomplete": 0, "overdue": 0}
    )
    assert score == 0
    assert [s["key"] for s in missing] == ["no_tasks"]


@pytest.mark.asyncio
async def test_empty_estate_readiness(client_for, estate, viewer):
    async with client_for(viewer) as c:
        response = await c.get(estate_url(estate, "/readiness"))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["score"] == 15
    assert data["breakdown"]["properties"] == {"score": 15, "max": 15}
    assert data["breakdown"]["documents"] == {"score": 0, "max": 30}
    missing = {s["key"]: s["severity"] for s in data["signals"]["missing"]}
    assert missing == {
        "missing_legal_documents": "high",
        "missing_banking_documents": "medium",
        "missing_property_documents": "medium",
        "no_tasks": "medium",
        "no_contacts": "high",
        "no_finances": "medium",
    }
    assert data["signals"]["at_risk"] == []


def test_heuristic_plan_orders_by_severity(db, estate):
    readiness = readiness_service.compute_readiness(db, estate.id)
    plan = readiness_plan_service.build_heuristic_plan(str(estate.id), readiness)

    assert plan["generator"] == "heuristic-v1"
    ids = [s["id"] for s in plan["steps"]]
    assert len(ids) == readiness_plan_service.MAX_STEPS
    assert ids[:2] == ["missing_legal_documents:0", "no_contacts:1"]
    assert plan["steps"][0]["href"] == f"/app/estates/{estate.id}/documents#add-document"
    assert plan["steps"][1]["href"] == f"/app/estates/{estate.id}/contacts#add-contact"
    assert all(s["kind"] == "missing" for s in plan["steps"])


def test_heuristic_plan_without_signals_is_general():
    plan = readiness_plan_service.build_heuristic_plan(
        "abc", {"signals": {"missing": [], "at_risk": []}}
    )
    assert [s["id"] for s in plan["steps"]] == ["general:review-documents", "general:review-tasks"]
    assert all(s["severity"] == "low" for s in plan["steps"])


@pytest.mark.parametrize(
    "key,suffix",
    [
        ("missing_legal_documents", "/documents#add-document"),
        ("tasksOverdue", "/tasks"),
        ("no_tasks", "/tasks#add-task"),
        ("no_finances", "/invoices#add-invoice"),
        ("expenses_unpaid", "/invoices#add-expense"),
        ("something", "/documents"),
    ],
)
def test_step_href_for_signal(key, suffix):
    assert readiness_plan_service.step_href_for_signal("e1", key) == f"/app/estates/e1{suffix}"


def test_snapshot_hash_ignores_signal_order():
    a = {"missing": [{"key": "a", "label": "A"}, {"key": "b", "label": "B"}], "at_risk": []}
    b = {"missing": [{"key": "b", "label": "B"}, {"key": "a", "label": "A"}], "at_risk": []}
    assert readiness_plan_service.hash_snapshot(a) == readiness_plan_service.hash_snapshot(b)


@pytest.mark.asyncio
async def test_plan_is_cached_until_signals_change(client_for, estate, editor, db):
    async with client_for(editor) as c:
        first = (await c.get(estate_url(estate, "/readiness/plan"))).json()["data"]
        second = (await c.get(estate_url(estate, "/readiness/plan"))).json()["data"]

    assert first["generator"] == "heuristic-v1"
    assert second["generated_at"] == first["generated_at"]
    assert first["meta"]["input_hash"] == second["meta"]["input_hash"]

    db.add(Contact(estate_id=estate.id, name="Alex Attorney"))
    db.commit()

    async with client_for(editor) as c:
        third = (await c.get(estate_url(estate, "/readiness/plan"))).json()["data"]
    assert third["meta"]["input_hash"] != first["meta"]["input_hash"]
    assert "no_contacts:1" not in [s["id"] for s in third["steps"]]


@pytest.mark.asyncio
async def test_stale_plan_is_regenerated(db, estate):
    await readiness_plan_service.get_plan(db, estate)
    stale = dict(estate.readiness_plan)
    stale["generated_at"] = (
        utcnow() - timedelta(hours=settings.READINESS_PLAN_TTL_HOURS + 1)
    ).isoformat()
    estate.readiness_plan = stale
    db.commit()

    plan = await readiness_plan_service.get_plan(db, estate)
    assert plan["generated_at"] != stale["generated_at"]


@pytest.mark.asyncio
async def test_viewer_cannot_refresh_plan(client_for, estate, viewer, editor):
    async with client_for(viewer) as c:
        denied = await c.get(estate_url(estate, "/readiness/plan"), params={"refresh": "1"})
    assert denied.status_code == 403

    async with client_for(editor) as c:
        refreshed = await c.get(estate_url(estate, "/readiness/plan"), params={"refresh": "1"})
    assert refreshed.status_code == 200


def _provider(handler):
    return OpenAIProvider("sk-test", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_ai_plan_is_normalized(db, estate, monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["response_format"] == {"type": "json_object"}
        steps = {
            "steps": [
                {"title": "  Add the   will. ", "kind": "missing", "severity": "high"},
                {"title": "Call the bank", "kind": "bogus", "severity": "urgent", "count": 2},
                "not a step",
            ]
        }
        return httpx.Response(
            200, json={"choices": [{"message": {"content": json.dumps(steps)}}], "usage": {}}
        )

    monkeypatch.setattr(readiness_plan_service, "get_provider", lambda: _provider(handler))
    plan = await readiness_plan_service.get_plan(db, estate, refresh=True)

    assert plan["generator"] == "openai:gpt-4o-mini"
    assert [s["title"] for s in plan["steps"]] == ["Add the will", "Call the bank"]
    assert plan["steps"][0]["id"].startswith("ai:0:")
    assert plan["steps"][1]["kind"] == "general"
    assert plan["steps"][1]["severity"] == "medium"
    assert plan["steps"][1]["count"] == 2


@pytest.mark.asyncio
async def test_ai_failure_falls_back_to_heuristic(db, estate, monkeypatch, caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    monkeypatch.setattr(readiness_plan_service, "get_provider", lambda: _provider(handler))
    with caplog.at_level(logging.WARNING, logger="legatepro.services.ai_provider"):
        plan = await readiness_plan_service.get_plan(db, estate, refresh=True)
    assert plan["generator"] == "heuristic-v1"
    assert "HTTP 500" in caplog.text


@pytest.mark.asyncio
async def test_ai_non_json_falls_back_to_heuristic(db, estate, monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": [{"message": {"content": "Sure! Here"}}]})

    monkeypatch.setattr(readiness_plan_service, "get_provider", lambda: _provider(handler))
    plan = await readiness_plan_service.get_plan(db, estate, refresh=True)
    assert plan["generator"] == "heuristic-v1"
