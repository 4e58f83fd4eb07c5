"""Tests for invoice creation, draft edits and issuing."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from conftest import make_header, make_line
from ledger_core.domain.ledger.amounts import compute_invoice, to_money
from ledger_core.domain.ledger.enums import InvoiceStatus, InvoiceType, PartyType
from ledger_core.domain.ledger.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ledger_core.domain.ledger.invoice_service import (
    approve_invoice,
    create_invoice,
    fetch_invoice,
    update_invoice,
)
from ledger_core.domain.ledger.types import InvoiceHeader
from ledger_core.models.ledger import Invoice, InvoiceLine
from ledger_core.schemas.invoices import InvoiceCreate


def _assert_totals_match_lines(invoice: Invoice):
    assert invoice.total_amount == sum(line.total_amount for line in invoice.lines)
    assert invoice.tax_amount == sum(line.tax_amount for line in invoice.lines)
    assert invoice.net_amount == invoice.total_amount - invoice.tax_amount


def test_simple_receivable(db: Session, tenant_id: UUID, customer_id: UUID, revenue_account_id: UUID, actor_id: UUID):
    """2 x 50.00 at 10% tax gives 110 / 10 / 100 in draft."""
    invoice = create_invoice(
        db,
        tenant_id,
        invoice_type=InvoiceType.RECEIVABLE,
        party_id=customer_id,
        header=make_header("INV-100"),
        lines=[make_line(revenue_account_id, "50.00", quantity="2", tax_rate="10")],
        actor_id=actor_id,
    )

    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.total_amount == Decimal("110.00")
    assert invoice.tax_amount == Decimal("10.00")
    assert invoice.net_amount == Decimal("100.00")
    assert invoice.party_type == PartyType.CUSTOMER
    assert invoice.customer_id == customer_id
    assert invoice.supplier_id is None
    assert invoice.created_by == actor_id
    assert len(invoice.lines) == 1
    assert invoice.lines[0].line_number == 1
    _assert_totals_match_lines(invoice)

    issued = approve_invoice(db, tenant_id, invoice.id, actor_id=actor_id)
    assert issued.status == InvoiceStatus.SENT
    assert issued.sent_at is not None


def test_payable_invoice_uses_supplier(db: Session, tenant_id: UUID, supplier_id: UUID, revenue_account_id: UUID):
    invoice = create_invoice(
        db,
        tenant_id,
        invoice_type=InvoiceType.PAYABLE,
        party_id=supplier_id,
        header=make_header("BILL-001"),
        lines=[make_line(revenue_account_id, "75.50")],
    )

    assert invoice.party_type == PartyType.SUPPLIER
    assert invoice.supplier_id == supplier_id
    assert invoice.customer_id is None
    assert invoice.party_id == supplier_id


def test_rounding_is_per_line(revenue_account_id: UUID):
    """Header totals are sums of the already-rounded lines."""
    computed = compute_invoice([
        make_line(revenue_account_id, "0.33", quantity="1", tax_rate="7.5"),
        make_line(revenue_account_id, "0.33", quantity="1", tax_rate="7.5"),
        make_line(revenue_account_id, "10.005", quantity="1"),
    ])

    # 0.33 * 7.5% = 0.02475 -> 0.02 per line
    assert [line.tax_amount for line in computed.lines] == [Decimal("0.02"), Decimal("0.02"), Decimal("0.00")]
    assert computed.lines[2].total_amount == Decimal("10.01")
    assert computed.tax_amount == Decimal("0.04")
    assert computed.total_amount == Decimal("10.71")
    assert computed.net_amount == Decimal("10.67")


def test_stored_line_inputs_reproduce_amounts(db: Session, tenant_id: UUID, customer_id: UUID, revenue_account_id: UUID):
    """Inputs are stored at column scale and recomputing from them gives the stored amounts."""
    invoice = create_invoice(
        db,
        tenant_id,
        invoice_type=InvoiceType.RECEIVABLE,
        party_id=customer_id,
        header=make_header("INV-SCALE"),
        lines=[make_line(revenue_account_id, "0.125", quantity="3", tax_rate="12.345")],
    )

    line = fetch_invoice(db, tenant_id, invoice.id).lines[0]
    assert line.quantity == Decimal("3.0000")
    assert line.unit_price == Decimal("0.13")
    assert line.tax_rate == Decimal("12.35")
    assert line.tax_amount == Decimal("0.05")
    assert line.total_amount == Decimal("0.44")

    gross = line.quantity * line.unit_price
    assert to_money(gross * line.tax_rate / Decimal(100)) == line.tax_amount
    assert to_money(gross) + line.tax_amount == line.total_amount


def test_empty_invoice_is_zero_value(db: Session, tenant_id: UUID, customer_id: UUID):
    invoice = create_invoice(
        db,
        tenant_id,
        invoice_type=InvoiceType.RECEIVABLE,
        party_id=customer_id,
        header=make_header("INV-EMPTY"),
        lines=[],
    )

    assert invoice.total_amount == Decimal("0.00")
    assert invoice.lines == []


def test_invalid_line_persists_nothing(db: Session, tenant_id: UUID, customer_id: UUID, revenue_account_id: UUID):
    with pytest.raises(ValidationError) as exc_info:
        create_invoice(
            db,
            tenant_id,
            invoice_type=InvoiceType.RECEIVABLE,
            party_id=customer_id,
            header=make_header("INV-BAD"),
            lines=[
                make_line(revenue_account_id, "10.00"),
                make_line(revenue_account_id, "10.00", quantity="0"),
            ],
        )

    assert exc_info.value.details["line_number"] == 2
    assert db.query(Invoice).count() == 0
    assert db.query(InvoiceLine).count() == 0


def test_due_date_before_invoice_date_rejected(db: Session, tenant_id: UUID, customer_id: UUID, revenue_account_id: UUID):
    header = make_header("INV-DATES")
    header.due_date = date(2025, 1, 1)

    with pytest.raises(ValidationError):
        create_invoice(
            db,
            tenant_id,
            invoice_type=InvoiceType.RECEIVABLE,
            party_id=customer_id,
            header=header,
            lines=[make_line(revenue_account_id, "10.00")],
        )


def test_duplicate_number_rejected_within_tenant_only(
    db: Session,
    tenant_id: UUID,
    other_tenant_id: UUID,
    customer_id: UUID,
    revenue_account_id: UUID,
):
    for org in (tenant_id, other_tenant_id):
        create_invoice(
            db,
            org,
            invoice_type=InvoiceType.RECEIVABLE,
            party_id=customer_id,
            header=make_header("INV-DUP"),
            lines=[make_line(revenue_account_id, "10.00")],
        )

    with pytest.raises(ValidationError):
        create_invoice(
            db,
            tenant_id,
            invoice_type=InvoiceType.RECEIVABLE,
            party_id=customer_id,
            header=make_header("INV-DUP"),
            lines=[make_line(revenue_account_id, "20.00")],
        )

    assert db.query(Invoice).filter(Invoice.organization_id == tenant_id).count() == 1


def test_update_replaces_full_line_set(db: Session, tenant_id: UUID, customer_id: UUID, revenue_account_id: UUID, actor_id: UUID):
    invoice = create_invoice(
        db,
        tenant_id,
        invoice_type=InvoiceType.RECEIVABLE,
        party_id=customer_id,
        header=make_header("INV-200"),
        lines=[
            make_line(revenue_account_id, "100.00", description="Design"),
            make_line(revenue_account_id, "50.00", description="Build"),
        ],
    )
    old_line_ids = {line.id for line in invoice.lines}

    updated = update_invoice(
        db,
        tenant_id,
        invoice.id,
        header=make_header("INV-200"),
        lines=[make_line(revenue_account_id, "30.00", quantity="3", tax_rate="20", description="Support")],
        actor_id=actor_id,
    )

    assert [line.description for line in updated.lines] == ["Support"]
    assert not old_line_ids & {line.id for line in updated.lines}
    assert updated.total_amount == Decimal("108.00")
    assert updated.updated_by == actor_id
    assert db.query(InvoiceLine).filter(InvoiceLine.invoice_id == invoice.id).count() == 1
    _assert_totals_match_lines(updated)


def test_failed_update_leaves_old_lines(db: Session, tenant_id: UUID, customer_id: UUID, revenue_account_id: UUID):
    invoice = create_invoice(
        db,
        tenant_id,
        invoice_type=InvoiceType.RECEIVABLE,
        party_id=customer_id,
        header=make_header("INV-300"),
        lines=[make_line(revenue_account_id, "40.00")],
    )

    with pytest.raises(ValidationError):
        update_invoice(
            db,
            tenant_id,
            invoice.id,
            header=make_header("INV-300"),
            lines=[make_line(revenue_account_id, "-5.00")],
        )

    reloaded = fetch_invoice(db, tenant_id, invoice.id)
    assert reloaded.total_amount == Decimal("40.00")
    assert [line.unit_price for line in reloaded.lines] == [Decimal("40.00")]


def test_update_can_change_party(db: Session, tenant_id: UUID, customer_id: UUID, revenue_account_id: UUID):
    invoice = create_invoice(
        db,
        tenant_id,
        invoice_type=InvoiceType.RECEIVABLE,
        party_id=customer_id,
        header=make_header("INV-350"),
        lines=[make_line(revenue_account_id, "40.00")],
    )
    new_customer = uuid4()

    updated = update_invoice(
        db,
        tenant_id,
        invoice.id,
        header=make_header("INV-350"),
        lines=[make_line(revenue_account_id, "40.00")],
        party_id=new_customer,
    )

    assert updated.customer_id == new_customer
    assert updated.supplier_id is None


def test_update_of_sent_invoice_fails(db: Session, tenant_id: UUID, issue_invoice, revenue_account_id: UUID):
    invoice = issue_invoice("100.00")

    with pytest.raises(InvalidStateError) as exc_info:
        update_invoice(
            db,
            tenant_id,
            invoice.id,
            header=make_header(invoice.invoice_number),
            lines=[make_line(revenue_account_id, "1.00")],
        )

    assert exc_info.value.current == InvoiceStatus.SENT
    reloaded = fetch_invoice(db, tenant_id, invoice.id)
    assert reloaded.total_amount == Decimal("100.00")
    assert len(reloaded.lines) == 1


def test_approve_twice_fails(db: Session, tenant_id: UUID, issue_invoice):
    invoice = issue_invoice("100.00")

    with pytest.raises(InvalidStateError):
        approve_invoice(db, tenant_id, invoice.id)


def test_missing_invoice_is_not_found(db: Session, tenant_id: UUID, revenue_account_id: UUID):
    missing_id = uuid4()

    with pytest.raises(NotFoundError):
        approve_invoice(db, tenant_id, missing_id)

    with pytest.raises(NotFoundError):
        update_invoice(
            db,
            tenant_id,
            missing_id,
            header=make_header("INV-404"),
            lines=[make_line(revenue_account_id, "1.00")],
        )


def test_other_tenant_cannot_see_invoice(db: Session, other_tenant_id: UUID, issue_invoice):
    invoice = issue_invoice("100.00")

    with pytest.raises(NotFoundError):
        fetch_invoice(db, other_tenant_id, invoice.id)

    with pytest.raises(NotFoundError):
        approve_invoice(db, other_tenant_id, invoice.id)


def test_update_of_sent_invoice_reports_state_before_number_clash(
    db: Session,
    tenant_id: UUID,
    issue_invoice,
    revenue_account_id: UUID,
):
    sent = issue_invoice("100.00")
    other = issue_invoice("50.00")

    with pytest.raises(InvalidStateError):
        update_invoice(
            db,
            tenant_id,
            sent.id,
            header=make_header(other.invoice_number),
            lines=[make_line(revenue_account_id, "1.00")],
        )

    with pytest.raises(NotFoundError):
        update_invoice(
            db,
            tenant_id,
            uuid4(),
            header=make_header(other.invoice_number),
            lines=[make_line(revenue_account_id, "1.00")],
        )

    assert fetch_invoice(db, tenant_id, sent.id).invoice_number == sent.invoice_number


def test_missing_currency_uses_configured_default(
    db: Session,
    tenant_id: UUID,
    customer_id: UUID,
    revenue_account_id: UUID,
    euro_default,
):
    header = InvoiceHeader(
        invoice_number="INV-EUR",
        invoice_date=date(2025, 1, 15),
        due_date=date(2025, 2, 14),
    )
    invoice = create_invoice(
        db,
        tenant_id,
        invoice_type=InvoiceType.RECEIVABLE,
        party_id=customer_id,
        header=header,
        lines=[make_line(revenue_account_id, "10.00")],
    )

    assert euro_default.default_currency == "EUR"
    assert invoice.currency == "EUR"

    payload = InvoiceCreate(
        invoice_type=InvoiceType.RECEIVABLE,
        party_id=customer_id,
        invoice_number="INV-EUR-2",
        invoice_date=date(2025, 1, 15),
        due_date=date(2025, 2, 14),
    )
    assert payload.to_header().currency is None

    from_payload = create_invoice(
        db,
        tenant_id,
        invoice_type=payload.invoice_type,
        party_id=payload.party_id,
        header=payload.to_header(),
        lines=payload.to_line_items(),
    )
    assert from_payload.currency == "EUR"
