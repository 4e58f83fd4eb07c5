"""Ledger models."""

from .invoice import Invoice, InvoiceLine
from .payment import Payment, PaymentAllocation
from .expense import ExpenseCategory, Expense

__all__ = [
    "Invoice",
    "InvoiceLine",
    "Payment",
    "PaymentAllocation",
    "ExpenseCategory",
    "Expense",
]
