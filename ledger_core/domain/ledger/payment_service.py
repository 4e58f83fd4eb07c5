"""Payment and allocation engine: recording money movements and settling invoices."""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List
from uuid import UUID, uuid4

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ledger_core.core.config import get_settings
from ledger_core.models.ledger import Invoice, Payment, PaymentAllocation
from ledger_core.domain.ledger.amounts import ZERO, to_money
from ledger_core.domain.ledger.enums import (
    InvoiceStatus,
    PartyType,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    invoice_type_for_payment,
    party_type_for_payment,
)
from ledger_core.domain.ledger.exceptions import NotFoundError, ValidationError
from ledger_core.domain.ledger.types import AllocationRequest, PartyRef

logger = structlog.get_logger()


def generate_payment_number(prefix: str | None = None) -> str:
    """
    Build a payment number such as ``PAY-20250115093012-3F9A1C``.

    Timestamp-derived for readability; the random suffix keeps numbers
    unique when payments are recorded in the same second.
    """
    prefix = prefix or get_settings().payment_number_prefix
    return f"{prefix}-{datetime.utcnow():%Y%m%d%H%M%S}-{uuid4().hex[:6].upper()}"


def allocated_total(db: Session, invoice_id: UUID) -> Decimal:
    """Sum of every allocation recorded against an invoice."""
    total = db.query(
        func.coalesce(func.sum(PaymentAllocation.allocated_amount), 0)
    ).filter(PaymentAllocation.invoice_id == invoice_id).scalar()
    return to_money(total)


def _validate_allocations(
    amount: Decimal,
    allocations: List[AllocationRequest],
) -> None:
    seen = set()
    for alloc in allocations:
        if alloc.amount is None or to_money(alloc.amount) <= 0:
            raise ValidationError(
                f"Allocation to invoice {alloc.invoice_id} must be positive",
                invoice_id=str(alloc.invoice_id),
            )
        if alloc.invoice_id in seen:
            raise ValidationError(
                f"Invoice {alloc.invoice_id} is allocated more than once",
                invoice_id=str(alloc.invoice_id),
            )
        seen.add(alloc.invoice_id)

    allocated = sum((to_money(a.amount) for a in allocations), ZERO)
    if allocated > amount:
        raise ValidationError(
            f"Allocations total {allocated} exceeds payment amount {amount}",
            allocated=str(allocated),
            amount=str(amount),
        )


def _lock_invoices(
    db: Session,
    organization_id: UUID,
    payment_type: PaymentType,
    party: PartyRef,
    invoice_ids: List[UUID],
) -> Dict[UUID, Invoice]:
    """
    Lock and check every invoice a payment will settle.

    Rows are locked in id order so two payments touching the same invoices
    cannot deadlock.
    """
    if not invoice_ids:
        return {}

    invoices = (
        db.query(Invoice)
        .filter(
            Invoice.id.in_(invoice_ids),
            Invoice.organization_id == organization_id,
        )
        .order_by(Invoice.id)
        .with_for_update()
        .populate_existing()
        .all()
    )
    by_id = {invoice.id: invoice for invoice in invoices}

    expected_type = invoice_type_for_payment(payment_type)
    for invoice_id in invoice_ids:
        invoice = by_id.get(invoice_id)
        if invoice is None:
            # Missing and cross-tenant invoices look the same from here
            raise ValidationError(
                f"Invoice {invoice_id} does not belong to this organization",
                invoice_id=str(invoice_id),
            )
        if invoice.invoice_type != expected_type:
            raise ValidationError(
                f"A {payment_type.value} payment cannot settle "
                f"{invoice.invoice_type.value} invoice {invoice_id}",
                invoice_id=str(invoice_id),
            )
        if invoice.party_id != party.party_id:
            raise ValidationError(
                f"Invoice {invoice_id} belongs to a different {party.party_type.value}",
                invoice_id=str(invoice_id),
            )
        if invoice.status != InvoiceStatus.SENT:
            raise ValidationError(
                f"Invoice {invoice_id} is {invoice.status.value} and cannot receive payments",
                invoice_id=str(invoice_id),
                status=invoice.status.value,
            )

    return by_id


def _settle_invoice(db: Session, invoice: Invoice) -> None:
    """
    Recompute an invoice's paid state from its allocations.

    Must run after the new allocations are flushed and while the invoice
    row is locked. Over-allocation raises and aborts the whole payment.
    """
    paid = allocated_total(db, invoice.id)
    total = to_money(invoice.total_amount)

    if paid > total:
        raise ValidationError(
            f"Allocations against invoice {invoice.id} would total {paid}, "
            f"exceeding its amount {total}",
            invoice_id=str(invoice.id),
            allocated=str(paid),
            total_amount=str(total),
        )

    if paid >= total:
        invoice.status = InvoiceStatus.PAID
        logger.info(
            "Invoice settled",
            invoice_id=str(invoice.id),
            total_amount=str(total),
        )


def record_payment(
    db: Session,
    organization_id: UUID,
    payment_type: PaymentType,
    party_id: UUID,
    amount: Decimal,
    payment_date: date,
    payment_method: PaymentMethod,
    allocations: Iterable[AllocationRequest] = (),
    reference_number: str | None = None,
    bank_account_id: UUID | None = None,
    notes: str | None = None,
    actor_id: UUID | None = None,
) -> Payment:
    """
    Record a payment and apply it to one or more invoices.

    Payment, allocations and invoice status changes commit together or not
    at all. Each allocated invoice is locked, its allocation sum re-read
    after the new rows are flushed, and the invoice marked PAID once the sum
    reaches its total.

    Args:
        db: Database session
        organization_id: Tenant UUID
        payment_type: RECEIVED (from a customer) or SENT (to a supplier)
        party_id: Customer or supplier id, per payment_type
        amount: Positive payment amount
        payment_date: Date the money moved
        payment_method: How the money moved
        allocations: Invoice/amount pairs; may be empty for a prepayment
        reference_number: Optional external reference (check no., txn id)
        bank_account_id: Optional bank account reference
        notes: Optional free text
        actor_id: User recording the payment

    Returns:
        The created Payment with its allocations loaded

    Raises:
        ValidationError: On a non-positive amount, malformed or duplicate
            allocations, over-allocation of the payment or of an invoice, or
            an invoice outside the tenant, direction, or counterparty
    """
    payment_type = PaymentType(payment_type)
    payment_method = PaymentMethod(payment_method)
    amount = to_money(amount)
    allocations = list(allocations)

    if amount <= 0:
        raise ValidationError("Payment amount must be positive", field="amount")

    _validate_allocations(amount, allocations)

    party = PartyRef(party_type_for_payment(payment_type), party_id)

    try:
        invoices = _lock_invoices(
            db,
            organization_id,
            payment_type,
            party,
            [a.invoice_id for a in allocations],
        )

        payment = Payment(
            organization_id=organization_id,
            payment_type=payment_type,
            party_type=party.party_type,
            **party.column_values(),
            payment_number=generate_payment_number(),
            payment_date=payment_date,
            amount=amount,
            payment_method=payment_method,
            reference_number=reference_number,
            bank_account_id=bank_account_id,
            status=PaymentStatus.CLEARED,
            notes=notes,
            created_by=actor_id,
            updated_by=actor_id,
        )
        db.add(payment)
        db.flush()  # Get the ID

        for alloc in allocations:
            db.add(PaymentAllocation(
                payment_id=payment.id,
                invoice_id=alloc.invoice_id,
                allocated_amount=to_money(alloc.amount),
                created_by=actor_id,
                updated_by=actor_id,
            ))
        db.flush()

        for alloc in allocations:
            invoice = invoices[alloc.invoice_id]
            _settle_invoice(db, invoice)
            invoice.updated_by = actor_id

        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ValidationError(f"Payment could not be saved: {e.orig}") from e
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Payment recorded",
        payment_id=str(payment.id),
        payment_number=payment.payment_number,
        organization_id=str(organization_id),
        payment_type=payment_type.value,
        amount=str(amount),
        allocation_count=len(allocations),
    )

    return fetch_payment(db, organization_id, payment.id)


def fetch_payment(db: Session, organization_id: UUID, payment_id: UUID) -> Payment:
    """
    Load a payment with its allocations.

    Raises:
        NotFoundError: If the payment does not exist in the tenant
    """
    payment = (
        db.query(Payment)
        .options(selectinload(Payment.allocations))
        .filter(
            Payment.id == payment_id,
            Payment.organization_id == organization_id,
        )
        .populate_existing()
        .first()
    )
    if not payment:
        raise NotFoundError("Payment", payment_id)
    return payment


def get_party_balance(
    db: Session,
    organization_id: UUID,
    party_id: UUID,
    party_type: PartyType,
    net_allocations: bool = True,
) -> Decimal:
    """
    Amount still open for a customer or supplier.

    Sums ``total_amount`` over the party's invoices that are not PAID. With
    ``net_allocations`` (the default) partial allocations on those invoices
    are subtracted, giving the cash still outstanding. With
    ``net_allocations=False`` the result is the outstanding document total,
    which overstates the balance when invoices are partly paid.
    """
    party_type = PartyType(party_type)
    party_column = Invoice.customer_id if party_type == PartyType.CUSTOMER else Invoice.supplier_id

    open_invoices = db.query(Invoice.id, Invoice.total_amount).filter(
        Invoice.organization_id == organization_id,
        Invoice.party_type == party_type,
        party_column == party_id,
        Invoice.status != InvoiceStatus.PAID,
    ).all()

    document_total = sum((to_money(row.total_amount) for row in open_invoices), ZERO)
    if not net_allocations or not open_invoices:
        return document_total

    allocated = db.query(
        func.coalesce(func.sum(PaymentAllocation.allocated_amount), 0)
    ).filter(
        PaymentAllocation.invoice_id.in_([row.id for row in open_invoices])
    ).scalar()

    return document_total - to_money(allocated)
