"""Pydantic schemas for activity, readiness and readiness plans."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

Severity = Literal["low", "medium", "high"]


class EventRead(BaseModel):
    id: UUID
    estate_id: UUID
    actor_id: UUID | None
    type: str
    summary: str
    detail: str | None
    meta: dict | None
    created_at: datetime

    model_config = {"from_attributes": True}


class EventPage(BaseModel):
    events: list[EventRead]
    next_cursor: datetime | None


class ManualEventCreate(BaseModel):
    note: str = Field(..., min_length=1, max_length=4000)


# =============================================================================
# Readiness
# =============================================================================

class ReadinessSignal(BaseModel):
    key: str
    label: str
    reason: str | None = None
    severity: Severity
    count: int | None = None


class ReadinessSignals(BaseModel):
    missing: list[ReadinessSignal]
    at_risk: list[ReadinessSignal]


class SectionScore(BaseModel):
    score: int
    max: int


class ReadinessBreakdown(BaseModel):
    documents: SectionScore
    tasks: SectionScore
    properties: SectionScore
    contacts: SectionScore
    finances: SectionScore


class ReadinessResult(BaseModel):
    estate_id: UUID
    score: int
    breakdown: ReadinessBreakdown
    raw: dict
    signals: ReadinessSignals


class PlanStep(BaseModel):
    id: str
    title: str
    details: str | None = None
    href: str
    kind: Literal["missing", "risk", "general"]
    severity: Severity
    count: int | None = None


class ReadinessPlan(BaseModel):
    estate_id: UUID
    generated_at: datetime
    generator: str
    steps: list[PlanStep]
    meta: dict | None = None
