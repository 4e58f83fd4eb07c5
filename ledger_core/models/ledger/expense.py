"""Expense and expense category models."""

from datetime import datetime, date
from decimal import Decimal
from uuid import uuid4, UUID
from sqlalchemy import String, Date, DateTime, ForeignKey, Numeric, Text, Boolean, CheckConstraint, Index
from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy.dialects.postgresql import UUID as PGUUID

from ledger_core.models.base import Base, AuditMixin, enum_column
from ledger_core.domain.ledger.enums import ExpenseStatus


class ExpenseCategory(AuditMixin, Base):
    """Grouping for expenses, optionally linked to a GL account."""
    
    __tablename__ = "expense_categories"
    
    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    gl_account_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Expense(AuditMixin, Base):
    """Discretionary spend moving through pending -> approved/rejected -> paid."""
    
    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("amount > 0", name="check_expense_amount_positive"),
        Index("idx_expenses_org_status", "organization_id", "status"),
        Index("idx_expenses_org_date", "organization_id", "expense_date"),
    )
    
    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    
    category_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("expense_categories.id", ondelete="RESTRICT"),
        nullable=False,
    )
    employee_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    user_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    receipt_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    
    status: Mapped[ExpenseStatus] = mapped_column(
        enum_column(ExpenseStatus),
        default=ExpenseStatus.PENDING,
        nullable=False,
    )
    
    # Set by whoever approved or rejected the expense
    approved_by: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    
    category: Mapped["ExpenseCategory"] = relationship("ExpenseCategory")
