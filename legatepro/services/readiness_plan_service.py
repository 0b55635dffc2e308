"""Readiness plan - a short, prioritized list of next steps for an estate.

Plans are cached on the estate. A cached plan is reused while it is younger
than READINESS_PLAN_TTL_HOURS and the readiness signals it was built from
have not changed (compared by a sha256 of the signal snapshot).

When an AI provider is configured the plan is drafted by the model; any
provider or parsing failure falls back to the deterministic heuristic.
"""

import hashlib
import json
import logging
import re
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import quote

import httpx
from sqlalchemy.orm import Session

from legatepro.core.config import settings
from legatepro.core.structured_logging import build_log_context
from legatepro.db.models import Estate
from legatepro.db.types import utcnow
from legatepro.services import readiness_service
from legatepro.services.ai_provider import AIProvider, ChatMessage, get_provider

logger = logging.getLogger(__name__)

HEURISTIC_GENERATOR = "heuristic-v1"
MAX_STEPS = 5
KINDS = ("missing", "risk", "general")
SEVERITIES = ("low", "medium", "high")
SEVERITY_RANK = {"high": 3, "medium": 2, "low": 1}

_MISSING_MARKERS = ("missing_", "_missing", "no_", "none_", "empty_", "requires_", "need_")

GENERAL_STEPS = (
    {
        "id": "general:review-documents",
        "title": "Review your document index",
        "details": "Confirm you have court letters, IDs, banking statements, and property docs recorded.",
        "signal": "documents",
    },
    {
        "id": "general:review-tasks",
        "title": "Confirm your next deadlines",
        "details": "Make sure key tasks are created and assigned: inventory, notices, and property security.",
        "signal": "tasks",
    },
)


# =============================================================================
# Normalization
# =============================================================================

def looks_missing_key(key: str) -> bool:
    k = key.lower()
    return k.startswith("missing") or any(marker in k for marker in _MISSING_MARKERS)


def step_href_for_signal(estate_id: str, signal_key: str) -> str:
    """Map a signal key to the estate page that resolves it."""
    key = signal_key.lower()
    base = f"/app/estates/{quote(str(estate_id), safe='')}"
    missing = looks_missing_key(key)

    if "document" in key or key.startswith("docs"):
        return f"{base}/documents#add-document" if missing else f"{base}/documents"
    if "task" in key:
        return f"{base}/tasks#add-task" if missing else f"{base}/tasks"
    if "property" in key or key.startswith("properties"):
        return f"{base}/properties#add-property" if missing else f"{base}/properties"
    if "contact" in key:
        return f"{base}/contacts#add-contact" if missing else f"{base}/contacts"
    if "expense" in key:
        return f"{base}/invoices#add-expense"
    if "invoice" in key or "finance" in key:
        return f"{base}/invoices#add-invoice" if missing else f"{base}/invoices"
    return f"{base}/documents#add-document" if missing else f"{base}/documents"


def normalize_title(value: Any) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        return "Next step"
    return re.sub(r"[\s.:;-]+$", "", re.sub(r"\s+", " ", text))


def normalize_details(value: Any) -> str | None:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        return None
    return re.sub(r"\n{3,}", "\n\n", re.sub(r"[ \t]+\n", "\n", text))


def normalize_step(estate_id: str, raw: Any, idx: int, id_prefix: str) -> dict[str, Any] | None:
    """Coerce one step from an untrusted source into a valid step, or drop it."""
    if not isinstance(raw, dict):
        return None
    title = normalize_title(raw.get("title"))
    href = raw.get("href")
    if not isinstance(href, str) or not href.strip():
        href = step_href_for_signal(estate_id, title)
    kind = raw.get("kind") if raw.get("kind") in KINDS else "general"
    severity = raw.get("severity") if raw.get("severity") in SEVERITIES else "medium"
    step_id = raw.get("id")
    if not isinstance(step_id, str) or not step_id.strip():
        digest = hashlib.sha1(title.encode("utf-8")).hexdigest()[:8]
        step_id = f"{id_prefix}:{idx}:{digest}"
    count = raw.get("count")

    step = {
        "id": step_id,
        "title": title,
        "details": normalize_details(raw.get("details")),
        "href": href,
        "kind": kind,
        "severity": severity,
    }
    if isinstance(count, int) and not isinstance(count, bool):
        step["count"] = count
    return step


# =============================================================================
# Snapshot / cache key
# =============================================================================

def snapshot_signals(readiness: dict[str, Any]) -> dict[str, list[dict[str, Any]]]:
    def pick(signal: dict[str, Any]) -> dict[str, Any]:
        picked = {
            "key": str(signal["key"]),
            "label": str(signal["label"]),
            "severity": signal.get("severity"),
        }
        if isinstance(signal.get("reason"), str):
            picked["reason"] = signal["reason"]
        if isinstance(signal.get("count"), int):
            picked["count"] = signal["count"]
        return picked

    signals = readiness.get("signals") or {}
    return {
        "missing": [pick(s) for s in signals.get("missing") or []],
        "at_risk": [pick(s) for s in signals.get("at_risk") or []],
    }


def hash_snapshot(snapshot: dict[str, list[dict[str, Any]]]) -> str:
    """Stable sha256 of the snapshot: signals sorted by key, keys sorted."""
    stable = {
        name: sorted(signals, key=lambda s: s["key"]) for name, signals in snapshot.items()
    }
    payload = json.dumps(stable, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


# =============================================================================
# Generators
# =============================================================================

def build_heuristic_plan(estate_id: str, readiness: dict[str, Any]) -> dict[str, Any]:
    """Deterministic plan: top signals by severity, count, kind then label."""
    signals = readiness.get("signals") or {}
    merged = [{**s, "kind": "missing"} for s in signals.get("missing") or []]
    merged += [{**s, "kind": "risk"} for s in signals.get("at_risk") or []]

    merged.sort(
        key=lambda s: (
            -SEVERITY_RANK.get(s.get("severity"), 0),
            -(s.get("count") or 0),
            0 if s["kind"] == "missing" else 1,
            str(s.get("label")),
        )
    )

    steps = []
    for idx, signal in enumerate(merged[:MAX_STEPS]):
        step = {
            "id": f"{signal['key']}:{idx}",
            "title": normalize_title(signal.get("label")),
            "details": normalize_details(signal.get("reason")),
            "href": step_href_for_signal(estate_id, signal["key"]),
            "kind": signal["kind"],
            "severity": signal.get("severity") or "medium",
        }
        if isinstance(signal.get("count"), int):
            step["count"] = signal["count"]
        steps.append(step)

    if not steps:
        for general in GENERAL_STEPS:
            steps.append(
                {
                    "id": general["id"],
                    "title": general["title"],
                    "details": general["details"],
                    "href": step_href_for_signal(estate_id, general["signal"]),
                    "kind": "general",
                    "severity": "low",
                }
            )

    return {
        "estate_id": estate_id,
        "generated_at": utcnow().isoformat(),
        "generator": HEURISTIC_GENERATOR,
        "steps": steps,
    }


SYSTEM_PROMPT = "\n".join(
    [
        "You are LegatePro Readiness Copilot.",
        "Your job: turn readiness signals into a short, prioritized plan the user can execute.",
        "Return STRICT JSON only. No markdown. No commentary.",
        "Rules:",
        "- Output must match the provided JSON schema exactly.",
        "- Steps must be actionable verbs (Add, Create, Review, Collect, Verify, Pay, Notify, etc.).",
        "- Keep titles short; details optional but helpful.",
        "- Use the provided hrefs; do NOT invent routes.",
        "- Prefer fixing HIGH severity first, then MEDIUM, then LOW.",
        "- If there are zero signals, return 2-3 general steps.",
    ]
)


def build_messages(estate: Estate, readiness: dict[str, Any]) -> list[ChatMessage]:
    estate_id = str(estate.id)
    base = f"/app/estates/{quote(estate_id, safe='')}"
    payload = {
        "estateId": estate_id,
        "estateLabel": estate.display_name,
        "score": max(0, min(100, round(readiness.get("score", 0)))),
        "maxSteps": MAX_STEPS,
        "estateBasePath": base,
        "signals": snapshot_signals(readiness),
        "hrefHints": {
            "documents": f"{base}/documents#add-document",
            "tasks": f"{base}/tasks#add-task",
            "properties": f"{base}/properties#add-property",
            "contacts": f"{base}/contacts#add-contact",
            "invoices": f"{base}/invoices#add-invoice",
            "expenses": f"{base}/invoices#add-expense",
        },
        "outputSchema": {
            "steps": [
                {
                    "id": "string",
                    "title": "string",
                    "details": "string (optional)",
                    "href": "string",
                    "kind": '"missing" | "risk" | "general"',
                    "severity": '"low" | "medium" | "high"',
                    "count": "number (optional)",
                }
            ]
        },
    }
    user_prompt = "\n".join(
        [
            f"Generate a readiness plan with up to {MAX_STEPS} steps.",
            "Return STRICT JSON that matches outputSchema.",
            "Do NOT include markdown.",
            "Do NOT include extra keys.",
            "Payload:",
            json.dumps(payload),
        ]
    )
    return [
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(role="user", content=user_prompt),
    ]


def parse_ai_plan(estate_id: str, text: str, model: str) -> dict[str, Any] | None:
    """Validate a model response; None when it is not a usable plan."""
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    if not isinstance(parsed, dict) or not isinstance(parsed.get("steps"), list):
        return None

    steps = []
    for idx, raw in enumerate(parsed["steps"]):
        step = normalize_step(estate_id, raw, idx, "ai")
        if step:
            steps.append(step)
    if not steps:
        return None
    return {
        "estate_id": estate_id,
        "generated_at": utcnow().isoformat(),
        "generator": f"openai:{model}",
        "steps": steps[:MAX_STEPS],
    }


async def generate_ai_plan(
    provider: AIProvider, estate: Estate, readiness: dict[str, Any]
) -> dict[str, Any] | None:
    try:
        response = await provider.chat(
            build_messages(estate, readiness),
            temperature=0.2,
            max_tokens=1200,
            json_mode=True,
        )
    except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError):
        logger.warning(
            "Readiness plan AI request failed; using heuristic",
            extra=build_log_context(estate_id=str(estate.id)),
            exc_info=True,
        )
        return None
    return parse_ai_plan(str(estate.id), response.content, response.model)


# =============================================================================
# Cache
# =============================================================================

def _parse_iso(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else None


def cached_plan_if_fresh(estate: Estate, now: datetime | None = None) -> dict[str, Any] | None:
    """The stored plan when it is well-formed and within the TTL."""
    plan = estate.readiness_plan
    if not isinstance(plan, dict) or not isinstance(plan.get("steps"), list):
        return None
    if not isinstance(plan.get("generator"), str):
        return None
    generated_at = _parse_iso(plan.get("generated_at"))
    if generated_at is None:
        return None
    now = now or utcnow()
    if now - generated_at > timedelta(hours=settings.READINESS_PLAN_TTL_HOURS):
        return None
    return plan


def normalize_cached_plan(estate_id: str, plan: dict[str, Any], meta: dict | None) -> dict[str, Any]:
    steps = [
        step
        for idx, raw in enumerate(plan.get("steps") or [])
        if (step := normalize_step(estate_id, raw, idx, "cached"))
    ]
    return {
        "estate_id": estate_id,
        "generated_at": plan["generated_at"],
        "generator": plan.get("generator") or "unknown",
        "steps": steps,
        "meta": meta,
    }


async def get_plan(db: Session, estate: Estate, *, refresh: bool = False) -> dict[str, Any]:
    """Return the estate's readiness plan, regenerating when stale or forced."""
    estate_id = str(estate.id)

    if not refresh:
        cached = cached_plan_if_fresh(estate)
        if cached is not None:
            meta = estate.readiness_plan_meta or {}
            cached_hash = meta.get("input_hash")
            if not cached_hash:
                return normalize_cached_plan(estate_id, cached, meta or None)
            readiness_now = readiness_service.compute_readiness(db, estate.id)
            if hash_snapshot(snapshot_signals(readiness_now)) == cached_hash:
                return normalize_cached_plan(estate_id, cached, meta)

    readiness = readiness_service.compute_readiness(db, estate.id)
    snapshot = snapshot_signals(readiness)
    input_hash = hash_snapshot(snapshot)

    plan = None
    provider = get_provider()
    if provider is not None:
        plan = await generate_ai_plan(provider, estate, readiness)
    if plan is None:
        plan = build_heuristic_plan(estate_id, readiness)

    meta = {"input_hash": input_hash, "signals": snapshot}
    estate.readiness_plan = plan
    estate.readiness_plan_meta = meta
    db.commit()
    logger.info(
        "Readiness plan generated by %s",
        plan["generator"],
        extra=build_log_context(estate_id=estate_id),
    )
    return {**plan, "meta": meta}
