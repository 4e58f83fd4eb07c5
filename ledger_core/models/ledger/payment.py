"""Unified payment and allocation models (received and sent)."""

from datetime import date
from decimal import Decimal
from uuid import uuid4, UUID
from sqlalchemy import String, Date, ForeignKey, Numeric, Text, CheckConstraint, Index, UniqueConstraint
from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy.dialects.postgresql import UUID as PGUUID

from ledger_core.models.base import Base, AuditMixin, enum_column
from ledger_core.domain.ledger.enums import PaymentType, PartyType, PaymentMethod, PaymentStatus


class Payment(AuditMixin, Base):
    """A single money movement. The amount never changes after creation."""
    
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("organization_id", "payment_number", name="uq_payments_org_number"),
        CheckConstraint("amount > 0", name="check_payment_amount_positive"),
        CheckConstraint(
            "(customer_id IS NULL) <> (supplier_id IS NULL)",
            name="check_payment_single_party",
        ),
        Index("idx_payments_org_type_date", "organization_id", "payment_type", "payment_date"),
    )
    
    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    
    payment_type: Mapped[PaymentType] = mapped_column(enum_column(PaymentType), nullable=False)
    party_type: Mapped[PartyType] = mapped_column(enum_column(PartyType), nullable=False)
    customer_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    supplier_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    
    payment_number: Mapped[str] = mapped_column(String(100), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    
    payment_method: Mapped[PaymentMethod] = mapped_column(enum_column(PaymentMethod, length=50), nullable=False)
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bank_account_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    
    status: Mapped[PaymentStatus] = mapped_column(
        enum_column(PaymentStatus),
        default=PaymentStatus.CLEARED,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    
    # Relationships
    allocations: Mapped[list["PaymentAllocation"]] = relationship(
        "PaymentAllocation",
        back_populates="payment",
        cascade="all, delete-orphan",
    )

    @property
    def party_id(self) -> UUID | None:
        return self.customer_id if self.party_type == PartyType.CUSTOMER else self.supplier_id


class PaymentAllocation(AuditMixin, Base):
    """Portion of a payment applied to one invoice."""
    
    __tablename__ = "payment_allocations"
    __table_args__ = (
        UniqueConstraint("payment_id", "invoice_id", name="uq_payment_allocations_payment_invoice"),
        CheckConstraint("allocated_amount > 0", name="check_allocation_amount_positive"),
    )
    
    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    payment_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("payments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invoice_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    allocated_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    
    payment: Mapped["Payment"] = relationship("Payment", back_populates="allocations")
    invoice: Mapped["Invoice"] = relationship("Invoice")
