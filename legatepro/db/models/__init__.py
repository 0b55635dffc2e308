"""SQLAlchemy ORM models."""

from legatepro.db.models.auth import User
from legatepro.db.models.estates import (
    Estate,
    EstateCollaborator,
    EstateEvent,
    EstateInvite,
)
from legatepro.db.models.finances import (
    EstateProperty,
    Expense,
    Invoice,
    RentPayment,
    TimeEntry,
    UtilityAccount,
)
from legatepro.db.models.records import (
    Contact,
    EstateDocument,
    EstateNote,
    EstateTask,
)
from legatepro.db.models.workspace import WorkspaceSettings

__all__ = [
    "Contact",
    "Estate",
    "EstateCollaborator",
    "EstateDocument",
    "EstateEvent",
    "EstateInvite",
    "EstateNote",
    "EstateProperty",
    "EstateTask",
    "Expense",
    "Invoice",
    "RentPayment",
    "TimeEntry",
    "User",
    "UtilityAccount",
    "WorkspaceSettings",
]
