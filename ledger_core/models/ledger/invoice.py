"""Unified invoice models (receivables and payables)."""

from datetime import datetime, date
from decimal import Decimal
from uuid import uuid4, UUID
from sqlalchemy import String, Date, DateTime, ForeignKey, Integer, Numeric, Text, CheckConstraint, Index, UniqueConstraint
from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy.dialects.postgresql import UUID as PGUUID

from ledger_core.models.base import Base, AuditMixin, enum_column
from ledger_core.domain.ledger.enums import InvoiceType, PartyType, InvoiceStatus


class Invoice(AuditMixin, Base):
    """Invoice header. Totals are always derived from the line set."""
    
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("organization_id", "invoice_number", name="uq_invoices_org_number"),
        CheckConstraint(
            "(customer_id IS NULL) <> (supplier_id IS NULL)",
            name="check_invoice_single_party",
        ),
        Index("idx_invoices_org_type_date", "organization_id", "invoice_type", "invoice_date"),
        Index("idx_invoices_customer", "customer_id"),
        Index("idx_invoices_supplier", "supplier_id"),
    )
    
    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    
    invoice_type: Mapped[InvoiceType] = mapped_column(enum_column(InvoiceType), nullable=False)
    party_type: Mapped[PartyType] = mapped_column(enum_column(PartyType), nullable=False)
    customer_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    supplier_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    
    invoice_number: Mapped[str] = mapped_column(String(100), nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        enum_column(InvoiceStatus),
        default=InvoiceStatus.DRAFT,
        nullable=False,
        index=True,
    )
    
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"), nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    
    sent_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    
    # Relationships
    lines: Mapped[list["InvoiceLine"]] = relationship(
        "InvoiceLine",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLine.line_number",
    )
    allocations: Mapped[list["PaymentAllocation"]] = relationship(
        "PaymentAllocation",
        viewonly=True,
    )

    @property
    def party_id(self) -> UUID | None:
        return self.customer_id if self.party_type == PartyType.CUSTOMER else self.supplier_id


class InvoiceLine(AuditMixin, Base):
    """Invoice line. Owned by its invoice and replaced as a set."""
    
    __tablename__ = "invoice_lines"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_invoice_line_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="check_invoice_line_unit_price_non_negative"),
    )
    
    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    invoice_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    account_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    
    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="lines")
