"""Enums for estate-scoped records."""

from enum import Enum


class DocumentSubject(str, Enum):
    """Category a document index entry is filed under."""

    LEGAL = "LEGAL"
    BANKING = "BANKING"
    PROPERTY = "PROPERTY"
    INSURANCE = "INSURANCE"
    TAX = "TAX"
    IDENTIFICATION = "IDENTIFICATION"
    MEDICAL = "MEDICAL"
    CORRESPONDENCE = "CORRESPONDENCE"
    OTHER = "OTHER"


class ContactRole(str, Enum):
    EXECUTOR = "EXECUTOR"
    ADMINISTRATOR = "ADMINISTRATOR"
    HEIR = "HEIR"
    BENEFICIARY = "BENEFICIARY"
    ATTORNEY = "ATTORNEY"
    ACCOUNTANT = "ACCOUNTANT"
    CREDITOR = "CREDITOR"
    VENDOR = "VENDOR"
    OTHER = "OTHER"


class TaskStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class ExpenseCategory(str, Enum):
    FUNERAL = "FUNERAL"
    PROBATE = "PROBATE"
    PROPERTY = "PROPERTY"
    UTILITIES = "UTILITIES"
    TAXES = "TAXES"
    MAINTENANCE = "MAINTENANCE"
    INSURANCE = "INSURANCE"
    LEGAL = "LEGAL"
    ACCOUNTING = "ACCOUNTING"
    REPAIRS = "REPAIRS"
    COURT_FEES = "COURT_FEES"
    OTHER = "OTHER"


class InvoiceStatus(str, Enum):
    """
    Invoice lifecycle.

    DRAFT -> SENT | VOID
    SENT -> PAID | OVERDUE | VOID
    OVERDUE -> PAID | VOID
    PAID, VOID are terminal.
    """

    DRAFT = "DRAFT"
    SENT = "SENT"
    OVERDUE = "OVERDUE"
    PAID = "PAID"
    VOID = "VOID"


INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.VOID}),
    InvoiceStatus.SENT: frozenset(
        {InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.VOID}
    ),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.VOID}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.VOID: frozenset(),
}


class LineItemType(str, Enum):
    TIME = "TIME"
    EXPENSE = "EXPENSE"
    ADJUSTMENT = "ADJUSTMENT"


class PropertyType(str, Enum):
    SINGLE_FAMILY = "single_family"
    MULTI_FAMILY = "multi_family"
    CONDO = "condo"
    LAND = "land"
    OTHER = "other"


class UtilityType(str, Enum):
    ELECTRIC = "electric"
    GAS = "gas"
    WATER = "water"
    SEWER = "sewer"
    TRASH = "trash"
    INTERNET = "internet"
    CABLE = "cable"
    SECURITY = "security"
    OTHER = "other"


class InvoiceTerms(str, Enum):
    """Payment terms; an invoice without a due date is due this many days after issue."""

    DUE_ON_RECEIPT = "DUE_ON_RECEIPT"
    NET_15 = "NET_15"
    NET_30 = "NET_30"
    NET_45 = "NET_45"
    NET_60 = "NET_60"

    @property
    def days(self) -> int:
        if self is InvoiceTerms.DUE_ON_RECEIPT:
            return 0
        return int(self.value.split("_")[1])
