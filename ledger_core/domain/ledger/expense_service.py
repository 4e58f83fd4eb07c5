"""Expense approval workflow: pending -> approved | rejected, approved -> paid."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, NoReturn, Optional
from uuid import UUID

import structlog
from sqlalchemy.orm import Session, selectinload

from ledger_core.core.config import get_settings
from ledger_core.models.ledger import Expense, ExpenseCategory
from ledger_core.domain.ledger.amounts import to_money
from ledger_core.domain.ledger.enums import ExpenseStatus
from ledger_core.domain.ledger.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ledger_core.domain.ledger.types import ExpenseChanges

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def create_expense_category(
    db: Session,
    organization_id: UUID,
    name: str,
    description: str | None = None,
    gl_account_id: UUID | None = None,
    actor_id: UUID | None = None,
) -> ExpenseCategory:
    """Create an expense category, optionally linked to a GL account."""
    if not name or not name.strip():
        raise ValidationError("Category name is required", field="name")

    category = ExpenseCategory(
        organization_id=organization_id,
        name=name.strip(),
        description=description,
        gl_account_id=gl_account_id,
        is_active=True,
        created_by=actor_id,
        updated_by=actor_id,
    )
    try:
        db.add(category)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Expense category created",
        category_id=str(category.id),
        organization_id=str(organization_id),
    )
    return category


def list_expense_categories(
    db: Session,
    organization_id: UUID,
    include_inactive: bool = False,
) -> List[ExpenseCategory]:
    query = db.query(ExpenseCategory).filter(ExpenseCategory.organization_id == organization_id)
    if not include_inactive:
        query = query.filter(ExpenseCategory.is_active == True)  # noqa: E712
    return query.order_by(ExpenseCategory.name).all()


def _require_active_category(db: Session, organization_id: UUID, category_id: UUID) -> None:
    category = db.query(ExpenseCategory).filter(
        ExpenseCategory.id == category_id,
        ExpenseCategory.organization_id == organization_id,
    ).first()

    if not category:
        raise ValidationError(
            f"Expense category {category_id} does not belong to this organization",
            field="category_id",
        )
    if not category.is_active:
        raise ValidationError(
            f"Expense category {category_id} is inactive",
            field="category_id",
        )


def _validate_amount(amount: Decimal) -> Decimal:
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError("Expense amount must be positive", field="amount")
    return amount


def _validate_currency(currency: str | None) -> str:
    currency = currency or get_settings().default_currency
    if not currency or len(currency) != 3:
        raise ValidationError("Currency must be a 3-letter ISO code", field="currency")
    return currency.upper()


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------

def fetch_expense(db: Session, organization_id: UUID, expense_id: UUID) -> Expense:
    """
    Load an expense with its category, refreshed from the database.

    Raises:
        NotFoundError: If the expense does not exist in the tenant
    """
    expense = (
        db.query(Expense)
        .options(selectinload(Expense.category))
        .filter(
            Expense.id == expense_id,
            Expense.organization_id == organization_id,
        )
        .populate_existing()
        .first()
    )
    if not expense:
        raise NotFoundError("Expense", expense_id)
    return expense


def create_expense(
    db: Session,
    organization_id: UUID,
    category_id: UUID,
    amount: Decimal,
    currency: str | None,
    expense_date: date,
    description: str,
    employee_id: UUID | None = None,
    user_id: UUID | None = None,
    receipt_url: str | None = None,
    actor_id: UUID | None = None,
) -> Expense:
    """
    Create a PENDING expense.

    A missing ``currency`` falls back to the configured default currency.

    Raises:
        ValidationError: On a non-positive amount, a bad currency, a missing
            description, or a category outside the tenant or inactive
    """
    amount = _validate_amount(amount)
    currency = _validate_currency(currency)
    if not description or not description.strip():
        raise ValidationError("Description is required", field="description")

    try:
        _require_active_category(db, organization_id, category_id)

        expense = Expense(
            organization_id=organization_id,
            category_id=category_id,
            amount=amount,
            currency=currency,
            expense_date=expense_date,
            description=description.strip(),
            employee_id=employee_id,
            user_id=user_id,
            receipt_url=receipt_url,
            status=ExpenseStatus.PENDING,
            created_by=actor_id,
            updated_by=actor_id,
        )
        db.add(expense)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Expense created",
        expense_id=str(expense.id),
        organization_id=str(organization_id),
        amount=str(amount),
    )

    return fetch_expense(db, organization_id, expense.id)


def _raise_missing_or_wrong_state(
    db: Session,
    organization_id: UUID,
    expense_id: UUID,
    expected: ExpenseStatus,
) -> NoReturn:
    """Explain why a conditional update on an expense matched no rows."""
    current = db.query(Expense.status).filter(
        Expense.id == expense_id,
        Expense.organization_id == organization_id,
    ).scalar()

    if current is None:
        raise NotFoundError("Expense", expense_id)
    raise InvalidStateError("Expense", expense_id, current=current, expected=expected)


def _transition(
    db: Session,
    organization_id: UUID,
    expense_id: UUID,
    expected: ExpenseStatus,
    values: Dict[Any, Any],
    check: Optional[Callable[[], None]] = None,
) -> Expense:
    """
    Apply ``values`` to an expense only if its status is ``expected``.

    A single conditional UPDATE: of two concurrent callers, exactly one
    matches the row. ``check`` runs after the state guard and before the
    commit, so a wrong-state expense is reported as such even when the new
    values are also invalid.
    """
    try:
        updated = db.query(Expense).filter(
            Expense.id == expense_id,
            Expense.organization_id == organization_id,
            Expense.status == expected,
        ).update(values, synchronize_session=False)

        if updated == 0:
            _raise_missing_or_wrong_state(db, organization_id, expense_id, expected)

        if check is not None:
            check()

        db.commit()
    except Exception:
        db.rollback()
        raise

    return fetch_expense(db, organization_id, expense_id)


def update_expense(
    db: Session,
    organization_id: UUID,
    expense_id: UUID,
    changes: ExpenseChanges,
    actor_id: UUID | None = None,
) -> Expense:
    """
    Edit a PENDING expense. Fields left as ``None`` are not touched.

    Raises:
        NotFoundError: If the expense does not exist in the tenant
        InvalidStateError: If the expense is no longer pending
        ValidationError: On invalid new values
    """
    values: Dict[Any, Any] = {}
    for name, value in changes.as_values().items():
        if name == "amount":
            value = _validate_amount(value)
        elif name == "currency":
            value = _validate_currency(value)
        elif name == "description":
            if not value.strip():
                raise ValidationError("Description is required", field="description")
            value = value.strip()
        values[getattr(Expense, name)] = value

    check = None
    if changes.category_id is not None:
        def check():
            _require_active_category(db, organization_id, changes.category_id)

    values[Expense.updated_by] = actor_id

    expense = _transition(db, organization_id, expense_id, ExpenseStatus.PENDING, values, check=check)

    logger.info(
        "Expense updated",
        expense_id=str(expense_id),
        organization_id=str(organization_id),
        fields=sorted(changes.as_values()),
    )
    return expense


def approve_expense(
    db: Session,
    organization_id: UUID,
    expense_id: UUID,
    actor_id: UUID,
) -> Expense:
    """
    Approve a PENDING expense, recording who approved it and when.

    Raises:
        NotFoundError: If the expense does not exist in the tenant
        InvalidStateError: If the expense is not pending
    """
    expense = _transition(
        db,
        organization_id,
        expense_id,
        ExpenseStatus.PENDING,
        {
            Expense.status: ExpenseStatus.APPROVED,
            Expense.approved_by: actor_id,
            Expense.approved_at: datetime.utcnow(),
            Expense.updated_by: actor_id,
        },
    )
    logger.info("Expense approved", expense_id=str(expense_id), approved_by=str(actor_id))
    return expense


def reject_expense(
    db: Session,
    organization_id: UUID,
    expense_id: UUID,
    actor_id: UUID,
    reason: str | None = None,
) -> Expense:
    """
    Reject a PENDING expense.

    ``approved_by`` / ``approved_at`` record whoever acted on the expense,
    whether they approved or rejected it.

    Raises:
        NotFoundError: If the expense does not exist in the tenant
        InvalidStateError: If the expense is not pending
    """
    expense = _transition(
        db,
        organization_id,
        expense_id,
        ExpenseStatus.PENDING,
        {
            Expense.status: ExpenseStatus.REJECTED,
            Expense.approved_by: actor_id,
            Expense.approved_at: datetime.utcnow(),
            Expense.rejection_reason: reason,
            Expense.updated_by: actor_id,
        },
    )
    logger.info("Expense rejected", expense_id=str(expense_id), rejected_by=str(actor_id))
    return expense


def pay_expense(
    db: Session,
    organization_id: UUID,
    expense_id: UUID,
    actor_id: UUID | None = None,
) -> Expense:
    """
    Mark an APPROVED expense as paid.

    Raises:
        NotFoundError: If the expense does not exist in the tenant
        InvalidStateError: If the expense is not approved
    """
    expense = _transition(
        db,
        organization_id,
        expense_id,
        ExpenseStatus.APPROVED,
        {
            Expense.status: ExpenseStatus.PAID,
            Expense.paid_at: datetime.utcnow(),
            Expense.updated_by: actor_id,
        },
    )
    logger.info("Expense paid", expense_id=str(expense_id), amount=str(expense.amount))
    return expense
