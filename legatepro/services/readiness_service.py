"""Estate readiness score.

A 0-100 score of how close an estate is to a complete court packet, split
into five sections:

    documents  30  LEGAL, BANKING and PROPERTY documents, 10 points each
    tasks      25  share of tasks done, minus 5 (any overdue) or 10 (3+ overdue)
    properties 15  always full; an estate need not hold property
    contacts   15  at least one contact
    finances   15  at least one invoice or expense

Each gap is reported as a signal (``missing`` or ``at_risk``) the readiness
plan turns into next steps.
"""

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from legatepro.db.enums import DocumentSubject
from legatepro.services import (
    contact_service,
    document_service,
    expense_service,
    invoice_service,
    property_service,
    task_service,
)

DOCUMENTS_MAX = 30
TASKS_MAX = 25
PROPERTIES_MAX = 15
CONTACTS_MAX = 15
FINANCES_MAX = 15
SCORE_MAX = 100

REQUIRED_DOCUMENT_SUBJECTS = (
    DocumentSubject.LEGAL,
    DocumentSubject.BANKING,
    DocumentSubject.PROPERTY,
)

DOCUMENT_SUBJECT_SIGNALS: dict[DocumentSubject, dict[str, str]] = {
    DocumentSubject.LEGAL: {
        "label": "Legal documents",
        "reason": "Will/trust, Letters of Authority/Administration, court orders, attorney filings",
        "severity": "high",
    },
    DocumentSubject.BANKING: {
        "label": "Banking information",
        "reason": "Account statements, beneficiary forms, bank correspondence, estate account setup docs",
        "severity": "medium",
    },
    DocumentSubject.PROPERTY: {
        "label": "Property ownership",
        "reason": "Deeds, titles, insurance, mortgage statements, tax bills, HOA docs",
        "severity": "medium",
    },
}


def _signal(key: str, label: str, severity: str, reason: str | None = None, count: int | None = 1) -> dict[str, Any]:
    signal: dict[str, Any] = {"key": key, "label": label, "severity": severity}
    if reason:
        signal["reason"] = reason
    if count is not None:
        signal["count"] = count
    return signal


# =============================================================================
# Sections
# =============================================================================

def score_documents(subject_counts: dict[str, int]) -> tuple[int, dict, list[dict]]:
    present = sorted(s for s, n in subject_counts.items() if n > 0)
    missing = [s for s in REQUIRED_DOCUMENT_SUBJECTS if s.value not in present]
    points_each = DOCUMENTS_MAX / len(REQUIRED_DOCUMENT_SUBJECTS)
    score = min(DOCUMENTS_MAX, round((len(REQUIRED_DOCUMENT_SUBJECTS) - len(missing)) * points_each))

    signals = []
    for subject in missing:
        meta = DOCUMENT_SUBJECT_SIGNALS[subject]
        signals.append(
            _signal(
                f"missing_{subject.value.lower()}_documents",
                f"Add {meta['label']}",
                meta["severity"],
                meta["reason"],
            )
        )

    raw = {
        "total_documents": sum(subject_counts.values()),
        "present_document_subjects": present,
        "missing_document_subjects": [s.value for s in missing],
    }
    return score, raw, signals


def score_tasks(counts: dict[str, int]) -> tuple[int, dict, list[dict], list[dict]]:
    raw = {
        "total_tasks": counts["total"],
        "completed_tasks": counts["completed"],
        "incomplete_tasks": counts["incomplete"],
        "overdue_tasks": counts["overdue"],
    }
    if counts["total"] == 0:
        missing = [
            _signal(
                "no_tasks",
                "Create your first tasks",
                "medium",
                "Start with inventory, notify banks, secure property, and track deadlines.",
            )
        ]
        return 0, raw, missing, []

    score = round(counts["completed"] / counts["total"] * TASKS_MAX)
    overdue = counts["overdue"]
    at_risk = []
    if overdue:
        score -= 10 if overdue >= 3 else 5
        label = "1 task is overdue" if overdue == 1 else f"{overdue} tasks are overdue"
        at_risk.append(
            _signal("tasksOverdue", label, "high" if overdue >= 3 else "medium", count=overdue)
        )
    return max(0, score), raw, [], at_risk


def score_contacts(total: int) -> tuple[int, list[dict]]:
    if total:
        return CONTACTS_MAX, []
    return 0, [
        _signal(
            "no_contacts",
            "Add key contacts",
            "high",
            "Add heirs, attorneys, banks, creditors, and vendors so you can link tasks and payments.",
        )
    ]


def score_finances(invoices: int, expenses: int) -> tuple[int, list[dict]]:
    if invoices + expenses:
        return FINANCES_MAX, []
    return 0, [
        _signal(
            "no_finances",
            "Add an invoice or expense",
            "medium",
            "Track bills, reimbursements, and estate payments so your final accounting is faster.",
        )
    ]


# =============================================================================
# Entry point
# =============================================================================

def compute_readiness(db: Session, estate_id: UUID, today: date | None = None) -> dict[str, Any]:
    """
    Score an estate's readiness.

    Returns:
        {estate_id, score, breakdown, raw, signals: {missing, at_risk}}
    """
    doc_score, doc_raw, doc_missing = score_documents(
        document_service.subject_counts(db, estate_id)
    )
    task_score, task_raw, task_missing, task_risk = score_tasks(
        task_service.task_counts(db, estate_id, today=today)
    )
    total_properties = property_service.count_properties(db, estate_id)
    total_contacts = contact_service.count_contacts(db, estate_id)
    contact_score, contact_missing = score_contacts(total_contacts)
    total_invoices = invoice_service.count_invoices(db, estate_id)
    total_expenses = expense_service.count_expenses(db, estate_id)
    finance_score, finance_missing = score_finances(total_invoices, total_expenses)

    breakdown = {
        "documents": {"score": doc_score, "max": DOCUMENTS_MAX},
        "tasks": {"score": task_score, "max": TASKS_MAX},
        "properties": {"score": PROPERTIES_MAX, "max": PROPERTIES_MAX},
        "contacts": {"score": contact_score, "max": CONTACTS_MAX},
        "finances": {"score": finance_score, "max": FINANCES_MAX},
    }
    total = min(SCORE_MAX, sum(section["score"] for section in breakdown.values()))

    return {
        "estate_id": estate_id,
        "score": total,
        "breakdown": breakdown,
        "raw": {
            **doc_raw,
            **task_raw,
            "total_properties": total_properties,
            "total_contacts": total_contacts,
            "total_invoices": total_invoices,
            "total_expenses": total_expenses,
        },
        "signals": {
            "missing": doc_missing + task_missing + contact_missing + finance_missing,
            "at_risk": task_risk,
        },
    }
