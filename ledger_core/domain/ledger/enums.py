"""Ledger domain enums."""

from enum import Enum as PyEnum


class InvoiceType(str, PyEnum):
    """Direction of an invoice."""
    RECEIVABLE = "receivable"  # Customer owes the tenant
    PAYABLE = "payable"  # Tenant owes a supplier


class PartyType(str, PyEnum):
    """Counterparty kind."""
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class InvoiceStatus(str, PyEnum):
    """Invoice status. PAID is derived from allocation sums."""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"


class PaymentType(str, PyEnum):
    """Direction of a payment."""
    RECEIVED = "received"
    SENT = "sent"


class PaymentMethod(str, PyEnum):
    """How a payment was made."""
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    CASH = "cash"
    CARD = "card"
    ONLINE = "online"


class PaymentStatus(str, PyEnum):
    """Payment status."""
    CLEARED = "cleared"


class ExpenseStatus(str, PyEnum):
    """Expense approval status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


def party_type_for_invoice(invoice_type: InvoiceType) -> PartyType:
    """Receivables are owed by customers, payables to suppliers."""
    if InvoiceType(invoice_type) == InvoiceType.RECEIVABLE:
        return PartyType.CUSTOMER
    return PartyType.SUPPLIER


def party_type_for_payment(payment_type: PaymentType) -> PartyType:
    """Money is received from customers and sent to suppliers."""
    if PaymentType(payment_type) == PaymentType.RECEIVED:
        return PartyType.CUSTOMER
    return PartyType.SUPPLIER


def invoice_type_for_payment(payment_type: PaymentType) -> InvoiceType:
    """Invoice direction a payment is allowed to settle."""
    if PaymentType(payment_type) == PaymentType.RECEIVED:
        return InvoiceType.RECEIVABLE
    return InvoiceType.PAYABLE
