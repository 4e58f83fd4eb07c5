"""Ledger domain module."""

from .enums import (
    InvoiceType,
    PartyType,
    InvoiceStatus,
    PaymentType,
    PaymentMethod,
    PaymentStatus,
    ExpenseStatus,
)
from .exceptions import (
    LedgerError,
    ValidationError,
    NotFoundError,
    InvalidStateError,
)

__all__ = [
    "InvoiceType",
    "PartyType",
    "InvoiceStatus",
    "PaymentType",
    "PaymentMethod",
    "PaymentStatus",
    "ExpenseStatus",
    "LedgerError",
    "ValidationError",
    "NotFoundError",
    "InvalidStateError",
]
