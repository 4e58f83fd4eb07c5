"""Read-only ledger queries: listings, single-document fetches and invoice stats."""

from datetime import date
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ledger_core.models.ledger import Expense, Invoice, Payment, PaymentAllocation
from ledger_core.domain.ledger.amounts import ZERO, to_money
from ledger_core.domain.ledger.enums import (
    ExpenseStatus,
    InvoiceStatus,
    InvoiceType,
    PaymentType,
)
from ledger_core.domain.ledger.invoice_service import fetch_invoice
from ledger_core.domain.ledger.payment_service import fetch_payment
from ledger_core.domain.ledger.pagination import Page, paginate
from ledger_core.domain.ledger.types import InvoiceStats


def list_invoices(
    db: Session,
    organization_id: UUID,
    invoice_type: Optional[InvoiceType] = None,
    status: Optional[InvoiceStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = 1,
    page_size: int = 50,
) -> Page[Invoice]:
    """List a tenant's invoices, newest invoice date first, with lines and allocations."""
    stmt = (
        select(Invoice)
        .options(selectinload(Invoice.lines), selectinload(Invoice.allocations))
        .where(Invoice.organization_id == organization_id)
    )

    if invoice_type:
        stmt = stmt.where(Invoice.invoice_type == InvoiceType(invoice_type))
    if status:
        stmt = stmt.where(Invoice.status == InvoiceStatus(status))
    if date_from:
        stmt = stmt.where(Invoice.invoice_date >= date_from)
    if date_to:
        stmt = stmt.where(Invoice.invoice_date <= date_to)

    stmt = stmt.order_by(Invoice.invoice_date.desc(), Invoice.created_at.desc())
    return paginate(db, stmt, page=page, page_size=page_size)


def get_invoice(db: Session, organization_id: UUID, invoice_id: UUID) -> Invoice:
    """
    Fetch one invoice with its lines and allocations.

    Raises:
        NotFoundError: If the invoice does not exist in the tenant
    """
    return fetch_invoice(db, organization_id, invoice_id)


def list_payments(
    db: Session,
    organization_id: UUID,
    payment_type: Optional[PaymentType] = None,
    page: int = 1,
    page_size: int = 50,
) -> Page[Payment]:
    """List a tenant's payments, newest payment date first, with allocations."""
    stmt = (
        select(Payment)
        .options(selectinload(Payment.allocations))
        .where(Payment.organization_id == organization_id)
    )

    if payment_type:
        stmt = stmt.where(Payment.payment_type == PaymentType(payment_type))

    stmt = stmt.order_by(Payment.payment_date.desc(), Payment.created_at.desc())
    return paginate(db, stmt, page=page, page_size=page_size)


def get_payment(db: Session, organization_id: UUID, payment_id: UUID) -> Payment:
    """
    Fetch one payment with its allocations.

    Raises:
        NotFoundError: If the payment does not exist in the tenant
    """
    return fetch_payment(db, organization_id, payment_id)


def list_expenses(
    db: Session,
    organization_id: UUID,
    status: Optional[ExpenseStatus] = None,
    category_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = 1,
    page_size: int = 50,
) -> Page[Expense]:
    """List a tenant's expenses, newest expense date first, with their category."""
    stmt = (
        select(Expense)
        .options(selectinload(Expense.category))
        .where(Expense.organization_id == organization_id)
    )

    if status:
        stmt = stmt.where(Expense.status == ExpenseStatus(status))
    if category_id:
        stmt = stmt.where(Expense.category_id == category_id)
    if date_from:
        stmt = stmt.where(Expense.expense_date >= date_from)
    if date_to:
        stmt = stmt.where(Expense.expense_date <= date_to)

    stmt = stmt.order_by(Expense.expense_date.desc(), Expense.created_at.desc())
    return paginate(db, stmt, page=page, page_size=page_size)


def get_invoice_stats(
    db: Session,
    organization_id: UUID,
    invoice_type: InvoiceType,
    as_of: Optional[date] = None,
) -> InvoiceStats:
    """
    Counters for the invoices dashboard.

    Unpaid and overdue amounts are net of partial allocations. An invoice is
    overdue when it is unpaid and its due date is before ``as_of`` (today by
    default). Zero-value invoices have nothing outstanding and are counted
    as settled whatever their status.
    """
    as_of = as_of or date.today()

    invoices = db.query(
        Invoice.id,
        Invoice.status,
        Invoice.total_amount,
        Invoice.due_date,
    ).filter(
        Invoice.organization_id == organization_id,
        Invoice.invoice_type == InvoiceType(invoice_type),
    ).all()

    paid_by_invoice: Dict[UUID, Decimal] = {}
    unpaid_ids = [inv.id for inv in invoices if inv.status != InvoiceStatus.PAID]
    if unpaid_ids:
        rows = db.query(
            PaymentAllocation.invoice_id,
            func.sum(PaymentAllocation.allocated_amount),
        ).filter(
            PaymentAllocation.invoice_id.in_(unpaid_ids)
        ).group_by(PaymentAllocation.invoice_id).all()
        paid_by_invoice = {invoice_id: to_money(total) for invoice_id, total in rows}

    stats = InvoiceStats(total_count=len(invoices))
    for inv in invoices:
        if inv.status == InvoiceStatus.DRAFT:
            stats.draft_count += 1
        if inv.status == InvoiceStatus.PAID or to_money(inv.total_amount) == ZERO:
            continue

        outstanding = max(ZERO, to_money(inv.total_amount) - paid_by_invoice.get(inv.id, ZERO))
        stats.unpaid_count += 1
        stats.total_unpaid_amount += outstanding

        if inv.due_date < as_of:
            stats.overdue_count += 1
            stats.total_overdue_amount += outstanding

    return stats
