"""Pydantic schemas for API requests and responses."""

from .invoices import (
    InvoiceLineCreate,
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceResponse,
    InvoiceDetailResponse,
    InvoiceListResponse,
    InvoiceStatsResponse,
)
from .payments import (
    AllocationCreate,
    PaymentCreate,
    PaymentResponse,
    PaymentListResponse,
    PartyBalanceResponse,
)
from .expenses import (
    ExpenseCategoryCreate,
    ExpenseCategoryResponse,
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseRejectRequest,
    ExpenseResponse,
    ExpenseListResponse,
)

__all__ = [
    "InvoiceLineCreate",
    "InvoiceCreate",
    "InvoiceUpdate",
    "InvoiceResponse",
    "InvoiceDetailResponse",
    "InvoiceListResponse",
    "InvoiceStatsResponse",
    "AllocationCreate",
    "PaymentCreate",
    "PaymentResponse",
    "PaymentListResponse",
    "PartyBalanceResponse",
    "ExpenseCategoryCreate",
    "ExpenseCategoryResponse",
    "ExpenseCreate",
    "ExpenseUpdate",
    "ExpenseRejectRequest",
    "ExpenseResponse",
    "ExpenseListResponse",
]
