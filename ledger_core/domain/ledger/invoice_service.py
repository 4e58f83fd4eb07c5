"""Invoice engine: draft creation, draft edits and issuing."""

from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, NoReturn
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ledger_core.core.config import get_settings
from ledger_core.models.ledger import Invoice, InvoiceLine
from ledger_core.domain.ledger.amounts import ComputedInvoice, compute_invoice
from ledger_core.domain.ledger.enums import (
    InvoiceStatus,
    InvoiceType,
    party_type_for_invoice,
)
from ledger_core.domain.ledger.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ledger_core.domain.ledger.types import InvoiceHeader, LineItem, PartyRef

logger = structlog.get_logger()


def _validate_header(header: InvoiceHeader) -> InvoiceHeader:
    """Check the header and fill in the configured default currency."""
    currency = header.currency or get_settings().default_currency
    if not header.invoice_number or not header.invoice_number.strip():
        raise ValidationError("Invoice number is required", field="invoice_number")
    if header.due_date < header.invoice_date:
        raise ValidationError(
            "Due date cannot be before the invoice date",
            field="due_date",
        )
    if not currency or len(currency) != 3:
        raise ValidationError("Currency must be a 3-letter ISO code", field="currency")
    return replace(header, currency=currency.upper())


def _ensure_unique_number(
    db: Session,
    organization_id: UUID,
    invoice_number: str,
    exclude_id: UUID | None = None,
) -> None:
    query = db.query(Invoice.id).filter(
        Invoice.organization_id == organization_id,
        Invoice.invoice_number == invoice_number,
    )
    if exclude_id is not None:
        query = query.filter(Invoice.id != exclude_id)

    if query.first():
        raise ValidationError(
            f"Invoice number {invoice_number} is already in use",
            field="invoice_number",
        )


def _build_lines(
    invoice_id: UUID,
    computed: ComputedInvoice,
    actor_id: UUID | None,
) -> List[InvoiceLine]:
    return [
        InvoiceLine(
            invoice_id=invoice_id,
            line_number=line.line_number,
            account_id=line.item.account_id,
            description=line.item.description.strip(),
            quantity=line.item.quantity,
            unit_price=line.item.unit_price,
            tax_rate=line.item.tax_rate or 0,
            tax_amount=line.tax_amount,
            total_amount=line.total_amount,
            created_by=actor_id,
            updated_by=actor_id,
        )
        for line in computed.lines
    ]


def _raise_missing_or_wrong_state(
    db: Session,
    organization_id: UUID,
    invoice_id: UUID,
    expected: InvoiceStatus,
) -> NoReturn:
    """Explain why a conditional update on an invoice matched no rows."""
    current = db.query(Invoice.status).filter(
        Invoice.id == invoice_id,
        Invoice.organization_id == organization_id,
    ).scalar()

    if current is None:
        raise NotFoundError("Invoice", invoice_id)
    raise InvalidStateError("Invoice", invoice_id, current=current, expected=expected)


def fetch_invoice(db: Session, organization_id: UUID, invoice_id: UUID) -> Invoice:
    """
    Load an invoice with its lines and allocations.

    Always refreshes from the database, so it is safe to call right after a
    bulk UPDATE on the same row.

    Raises:
        NotFoundError: If the invoice does not exist in the tenant
    """
    invoice = (
        db.query(Invoice)
        .options(selectinload(Invoice.lines), selectinload(Invoice.allocations))
        .filter(
            Invoice.id == invoice_id,
            Invoice.organization_id == organization_id,
        )
        .populate_existing()
        .first()
    )
    if not invoice:
        raise NotFoundError("Invoice", invoice_id)
    return invoice


def create_invoice(
    db: Session,
    organization_id: UUID,
    invoice_type: InvoiceType,
    party_id: UUID,
    header: InvoiceHeader,
    lines: Iterable[LineItem],
    actor_id: UUID | None = None,
) -> Invoice:
    """
    Create a draft invoice with its lines in one transaction.

    Args:
        db: Database session
        organization_id: Tenant UUID
        invoice_type: RECEIVABLE (customer owes) or PAYABLE (owed to supplier)
        party_id: Customer id for receivables, supplier id for payables
        header: Number, dates, currency and notes
        lines: Line items; may be empty for a zero-value invoice
        actor_id: User performing the change, stamped on every row

    Returns:
        The created Invoice in DRAFT status, lines loaded

    Raises:
        ValidationError: On malformed lines or header, or a duplicate number
    """
    invoice_type = InvoiceType(invoice_type)
    header = _validate_header(header)
    computed = compute_invoice(lines)
    party = PartyRef(party_type_for_invoice(invoice_type), party_id)

    try:
        _ensure_unique_number(db, organization_id, header.invoice_number)

        invoice = Invoice(
            organization_id=organization_id,
            invoice_type=invoice_type,
            party_type=party.party_type,
            **party.column_values(),
            invoice_number=header.invoice_number,
            invoice_date=header.invoice_date,
            due_date=header.due_date,
            currency=header.currency,
            total_amount=computed.total_amount,
            tax_amount=computed.tax_amount,
            net_amount=computed.net_amount,
            status=InvoiceStatus.DRAFT,
            notes=header.notes,
            created_by=actor_id,
            updated_by=actor_id,
        )
        db.add(invoice)
        db.flush()  # Get the ID

        db.add_all(_build_lines(invoice.id, computed, actor_id))
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ValidationError(f"Invoice could not be saved: {e.orig}") from e
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Invoice created",
        invoice_id=str(invoice.id),
        organization_id=str(organization_id),
        invoice_type=invoice_type.value,
        total_amount=str(computed.total_amount),
        line_count=len(computed.lines),
    )

    return fetch_invoice(db, organization_id, invoice.id)


def update_invoice(
    db: Session,
    organization_id: UUID,
    invoice_id: UUID,
    header: InvoiceHeader,
    lines: Iterable[LineItem],
    party_id: UUID | None = None,
    actor_id: UUID | None = None,
) -> Invoice:
    """
    Replace a draft invoice's header and full line set.

    The header is written with a conditional UPDATE on ``status = draft``;
    existing lines are deleted and the new set inserted in the same
    transaction, so header totals always match the stored lines.

    Args:
        db: Database session
        organization_id: Tenant UUID
        invoice_id: Invoice to update
        header: New header values
        lines: New line set (replaces every existing line)
        party_id: Optional new counterparty of the same party type
        actor_id: User performing the change

    Returns:
        The updated Invoice, lines loaded

    Raises:
        NotFoundError: If the invoice does not exist in the tenant
        InvalidStateError: If the invoice is no longer a draft
        ValidationError: On malformed lines or header, or a duplicate number
    """
    header = _validate_header(header)
    computed = compute_invoice(lines)

    values = {
        Invoice.invoice_number: header.invoice_number,
        Invoice.invoice_date: header.invoice_date,
        Invoice.due_date: header.due_date,
        Invoice.currency: header.currency,
        Invoice.notes: header.notes,
        Invoice.total_amount: computed.total_amount,
        Invoice.tax_amount: computed.tax_amount,
        Invoice.net_amount: computed.net_amount,
        Invoice.updated_by: actor_id,
    }

    try:
        if party_id is not None:
            invoice_type = db.query(Invoice.invoice_type).filter(
                Invoice.id == invoice_id,
                Invoice.organization_id == organization_id,
            ).scalar()
            if invoice_type is None:
                raise NotFoundError("Invoice", invoice_id)
            party = PartyRef(party_type_for_invoice(invoice_type), party_id)
            for column, value in party.column_values().items():
                values[getattr(Invoice, column)] = value

        updated = db.query(Invoice).filter(
            Invoice.id == invoice_id,
            Invoice.organization_id == organization_id,
            Invoice.status == InvoiceStatus.DRAFT,
        ).update(values, synchronize_session=False)

        if updated == 0:
            _raise_missing_or_wrong_state(db, organization_id, invoice_id, InvoiceStatus.DRAFT)

        _ensure_unique_number(db, organization_id, header.invoice_number, exclude_id=invoice_id)

        db.query(InvoiceLine).filter(
            InvoiceLine.invoice_id == invoice_id
        ).delete(synchronize_session=False)

        db.add_all(_build_lines(invoice_id, computed, actor_id))
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ValidationError(f"Invoice could not be saved: {e.orig}") from e
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Invoice updated",
        invoice_id=str(invoice_id),
        organization_id=str(organization_id),
        total_amount=str(computed.total_amount),
        line_count=len(computed.lines),
    )

    return fetch_invoice(db, organization_id, invoice_id)


def approve_invoice(
    db: Session,
    organization_id: UUID,
    invoice_id: UUID,
    actor_id: UUID | None = None,
) -> Invoice:
    """
    Issue a draft invoice (draft -> sent).

    Raises:
        NotFoundError: If the invoice does not exist in the tenant
        InvalidStateError: If the invoice is not a draft
    """
    try:
        updated = db.query(Invoice).filter(
            Invoice.id == invoice_id,
            Invoice.organization_id == organization_id,
            Invoice.status == InvoiceStatus.DRAFT,
        ).update(
            {
                Invoice.status: InvoiceStatus.SENT,
                Invoice.sent_at: datetime.utcnow(),
                Invoice.updated_by: actor_id,
            },
            synchronize_session=False,
        )

        if updated == 0:
            _raise_missing_or_wrong_state(db, organization_id, invoice_id, InvoiceStatus.DRAFT)

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Invoice issued", invoice_id=str(invoice_id), organization_id=str(organization_id))

    return fetch_invoice(db, organization_id, invoice_id)
