"""Database models."""

from .base import Base
from .ledger import (
    Invoice,
    InvoiceLine,
    Payment,
    PaymentAllocation,
    ExpenseCategory,
    Expense,
)

__all__ = [
    "Base",
    "Invoice",
    "InvoiceLine",
    "Payment",
    "PaymentAllocation",
    "ExpenseCategory",
    "Expense",
]
