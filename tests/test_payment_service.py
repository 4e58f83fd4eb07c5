"""Tests for payment recording, allocation and invoice settlement."""

import threading
import pytest
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from ledger_core.domain.ledger.enums import (
    InvoiceStatus,
    InvoiceType,
    PartyType,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
)
from ledger_core.domain.ledger.exceptions import ValidationError
from ledger_core.domain.ledger.invoice_service import fetch_invoice
from ledger_core.domain.ledger.payment_service import (
    allocated_total,
    generate_payment_number,
    get_party_balance,
    record_payment,
)
from ledger_core.domain.ledger.types import AllocationRequest
from ledger_core.models.ledger import Payment, PaymentAllocation


def _receive(db: Session, tenant_id: UUID, customer_id: UUID, amount: str, allocations, actor_id=None):
    return record_payment(
        db,
        tenant_id,
        payment_type=PaymentType.RECEIVED,
        party_id=customer_id,
        amount=Decimal(amount),
        payment_date=date(2025, 2, 1),
        payment_method=PaymentMethod.BANK_TRANSFER,
        allocations=[AllocationRequest(invoice_id=i, amount=Decimal(a)) for i, a in allocations],
        actor_id=actor_id,
    )


def test_payment_number_format():
    number = generate_payment_number("PAY")
    prefix, stamp, suffix = number.split("-")
    assert prefix == "PAY"
    assert len(stamp) == 14 and stamp.isdigit()
    assert len(suffix) == 6


def test_full_payment_marks_invoice_paid(db: Session, tenant_id: UUID, customer_id: UUID, actor_id: UUID, issue_invoice):
    invoice = issue_invoice("110.00")

    payment = _receive(db, tenant_id, customer_id, "110.00", [(invoice.id, "110.00")], actor_id=actor_id)

    assert payment.status == PaymentStatus.CLEARED
    assert payment.party_type == PartyType.CUSTOMER
    assert payment.customer_id == customer_id
    assert payment.payment_number.startswith("PAY-")
    assert len(payment.allocations) == 1
    assert payment.allocations[0].allocated_amount == Decimal("110.00")
    assert fetch_invoice(db, tenant_id, invoice.id).status == InvoiceStatus.PAID


def test_partial_payment_keeps_invoice_sent(db: Session, tenant_id: UUID, customer_id: UUID, issue_invoice):
    invoice = issue_invoice("110.00")

    _receive(db, tenant_id, customer_id, "50.00", [(invoice.id, "50.00")])

    assert fetch_invoice(db, tenant_id, invoice.id).status == InvoiceStatus.SENT
    assert allocated_total(db, invoice.id) == Decimal("50.00")

    _receive(db, tenant_id, customer_id, "60.00", [(invoice.id, "60.00")])

    assert fetch_invoice(db, tenant_id, invoice.id).status == InvoiceStatus.PAID


def test_one_payment_settles_several_invoices(db: Session, tenant_id: UUID, customer_id: UUID, issue_invoice):
    first = issue_invoice("40.00")
    second = issue_invoice("100.00")

    payment = _receive(db, tenant_id, customer_id, "100.00", [(first.id, "40.00"), (second.id, "60.00")])

    assert {a.invoice_id for a in payment.allocations} == {first.id, second.id}
    assert fetch_invoice(db, tenant_id, first.id).status == InvoiceStatus.PAID
    assert fetch_invoice(db, tenant_id, second.id).status == InvoiceStatus.SENT


def test_unallocated_prepayment(db: Session, tenant_id: UUID, customer_id: UUID):
    payment = _receive(db, tenant_id, customer_id, "25.00", [])

    assert payment.allocations == []
    assert db.query(Payment).count() == 1


def test_invoice_over_allocation_rolls_back(db: Session, tenant_id: UUID, customer_id: UUID, issue_invoice):
    invoice = issue_invoice("100.00")
    _receive(db, tenant_id, customer_id, "80.00", [(invoice.id, "80.00")])

    with pytest.raises(ValidationError):
        _receive(db, tenant_id, customer_id, "50.00", [(invoice.id, "50.00")])

    assert db.query(Payment).count() == 1
    assert db.query(PaymentAllocation).count() == 1
    assert allocated_total(db, invoice.id) == Decimal("80.00")
    assert fetch_invoice(db, tenant_id, invoice.id).status == InvoiceStatus.SENT


def test_allocations_cannot_exceed_payment(db: Session, tenant_id: UUID, customer_id: UUID, issue_invoice):
    first = issue_invoice("100.00")
    second = issue_invoice("100.00")

    with pytest.raises(ValidationError):
        _receive(db, tenant_id, customer_id, "100.00", [(first.id, "60.00"), (second.id, "60.00")])

    assert db.query(Payment).count() == 0


def test_duplicate_invoice_in_allocations_rejected(db: Session, tenant_id: UUID, customer_id: UUID, issue_invoice):
    invoice = issue_invoice("100.00")

    with pytest.raises(ValidationError):
        _receive(db, tenant_id, customer_id, "100.00", [(invoice.id, "50.00"), (invoice.id, "50.00")])


def test_non_positive_amount_rejected(db: Session, tenant_id: UUID, customer_id: UUID):
    with pytest.raises(ValidationError):
        _receive(db, tenant_id, customer_id, "0.00", [])


def test_cross_tenant_invoice_rejected(
    db: Session,
    tenant_id: UUID,
    other_tenant_id: UUID,
    customer_id: UUID,
    issue_invoice,
):
    foreign = issue_invoice("100.00", organization_id=other_tenant_id)

    with pytest.raises(ValidationError):
        _receive(db, tenant_id, customer_id, "100.00", [(foreign.id, "100.00")])

    assert db.query(Payment).count() == 0
    assert fetch_invoice(db, other_tenant_id, foreign.id).status == InvoiceStatus.SENT


def test_wrong_direction_rejected(db: Session, tenant_id: UUID, supplier_id: UUID, issue_invoice):
    bill = issue_invoice("100.00", invoice_type=InvoiceType.PAYABLE, party_id=supplier_id)

    with pytest.raises(ValidationError):
        _receive(db, tenant_id, supplier_id, "100.00", [(bill.id, "100.00")])


def test_other_party_invoice_rejected(db: Session, tenant_id: UUID, issue_invoice):
    invoice = issue_invoice("100.00")

    with pytest.raises(ValidationError):
        _receive(db, tenant_id, uuid4(), "100.00", [(invoice.id, "100.00")])


def test_paid_invoice_cannot_receive_more(db: Session, tenant_id: UUID, customer_id: UUID, issue_invoice):
    invoice = issue_invoice("10.00")
    _receive(db, tenant_id, customer_id, "10.00", [(invoice.id, "10.00")])

    with pytest.raises(ValidationError):
        _receive(db, tenant_id, customer_id, "1.00", [(invoice.id, "1.00")])


def test_supplier_payment_settles_payable(db: Session, tenant_id: UUID, supplier_id: UUID, issue_invoice):
    bill = issue_invoice("250.00", invoice_type=InvoiceType.PAYABLE, party_id=supplier_id)

    payment = record_payment(
        db,
        tenant_id,
        payment_type=PaymentType.SENT,
        party_id=supplier_id,
        amount=Decimal("250.00"),
        payment_date=date(2025, 2, 1),
        payment_method=PaymentMethod.CHECK,
        allocations=[AllocationRequest(invoice_id=bill.id, amount=Decimal("250.00"))],
        reference_number="CHK-1042",
    )

    assert payment.supplier_id == supplier_id
    assert payment.reference_number == "CHK-1042"
    assert fetch_invoice(db, tenant_id, bill.id).status == InvoiceStatus.PAID


def test_concurrent_partial_payments_settle_invoice(
    session_factory,
    db: Session,
    tenant_id: UUID,
    customer_id: UUID,
    issue_invoice,
):
    """60 and 40 recorded at the same time against 100 end PAID."""
    invoice = issue_invoice("100.00")
    barrier = threading.Barrier(2)
    errors = []

    def pay(amount: str):
        session = session_factory()
        try:
            barrier.wait()
            _receive(session, tenant_id, customer_id, amount, [(invoice.id, amount)])
        except Exception as e:  # surfaced through the assertion below
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=pay, args=(amount,)) for amount in ("60.00", "40.00")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert allocated_total(db, invoice.id) == Decimal("100.00")
    assert fetch_invoice(db, tenant_id, invoice.id).status == InvoiceStatus.PAID


def test_party_balance_nets_partial_allocations(db: Session, tenant_id: UUID, customer_id: UUID, issue_invoice):
    first = issue_invoice("100.00")
    issue_invoice("50.00")
    paid = issue_invoice("30.00")
    _receive(db, tenant_id, customer_id, "40.00", [(first.id, "40.00")])
    _receive(db, tenant_id, customer_id, "30.00", [(paid.id, "30.00")])

    netted = get_party_balance(db, tenant_id, customer_id, PartyType.CUSTOMER)
    gross = get_party_balance(db, tenant_id, customer_id, PartyType.CUSTOMER, net_allocations=False)

    assert netted == Decimal("110.00")
    assert gross == Decimal("150.00")


def test_party_balance_is_tenant_scoped(db: Session, tenant_id: UUID, other_tenant_id: UUID, customer_id: UUID, issue_invoice):
    issue_invoice("100.00", organization_id=other_tenant_id)

    assert get_party_balance(db, tenant_id, customer_id, PartyType.CUSTOMER) == Decimal("0.00")
    assert get_party_balance(db, other_tenant_id, customer_id, PartyType.CUSTOMER) == Decimal("100.00")
