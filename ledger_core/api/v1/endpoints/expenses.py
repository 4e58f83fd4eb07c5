"""Expense and expense category API endpoints."""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from ledger_core.api.deps import RequestContext, get_request_context, require_user
from ledger_core.api.errors import to_http_exception
from ledger_core.core.config import get_settings
from ledger_core.db.dependencies import get_db
from ledger_core.domain.ledger.enums import ExpenseStatus
from ledger_core.domain.ledger.exceptions import LedgerError
from ledger_core.domain.ledger.expense_service import (
    approve_expense,
    create_expense,
    create_expense_category,
    list_expense_categories,
    pay_expense,
    reject_expense,
    update_expense,
)
from ledger_core.domain.ledger.reporting_service import list_expenses
from ledger_core.schemas.expenses import (
    ExpenseCategoryCreate,
    ExpenseCategoryResponse,
    ExpenseCreate,
    ExpenseListResponse,
    ExpenseRejectRequest,
    ExpenseResponse,
    ExpenseUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Categories
# ============================================================================

@router.get("/expense-categories", response_model=List[ExpenseCategoryResponse])
def list_categories_endpoint(
    include_inactive: bool = False,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> List[ExpenseCategoryResponse]:
    categories = list_expense_categories(db, context.organization_id, include_inactive=include_inactive)
    return [ExpenseCategoryResponse.model_validate(c) for c in categories]


@router.post(
    "/expense-categories",
    response_model=ExpenseCategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_category_endpoint(
    category_data: ExpenseCategoryCreate,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ExpenseCategoryResponse:
    try:
        category = create_expense_category(
            db,
            context.organization_id,
            name=category_data.name,
            description=category_data.description,
            gl_account_id=category_data.gl_account_id,
            actor_id=context.user_id,
        )
    except LedgerError as e:
        raise to_http_exception(e)
    return ExpenseCategoryResponse.model_validate(category)


# ============================================================================
# Expenses
# ============================================================================

@router.get("/expenses", response_model=ExpenseListResponse)
def list_expenses_endpoint(
    expense_status: Optional[ExpenseStatus] = Query(None, alias="status"),
    category_id: Optional[UUID] = None,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ExpenseListResponse:
    """List expenses with filters and pagination."""
    result = list_expenses(
        db,
        context.organization_id,
        status=expense_status,
        category_id=category_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=get_settings().clamp_page_size(page_size),
    )
    return ExpenseListResponse(
        items=[ExpenseResponse.model_validate(e) for e in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.post("/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_expense_endpoint(
    expense_data: ExpenseCreate,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ExpenseResponse:
    """Submit an expense. It starts in PENDING status."""
    try:
        expense = create_expense(
            db,
            context.organization_id,
            category_id=expense_data.category_id,
            amount=expense_data.amount,
            currency=expense_data.currency,
            expense_date=expense_data.expense_date,
            description=expense_data.description,
            employee_id=expense_data.employee_id,
            user_id=context.user_id,
            receipt_url=expense_data.receipt_url,
            actor_id=context.user_id,
        )
    except LedgerError as e:
        logger.warning(f"Rejected expense: {e.message}")
        raise to_http_exception(e)

    logger.info(f"Created expense {expense.id} for {expense.amount} {expense.currency}")
    return ExpenseResponse.model_validate(expense)


@router.put("/expenses/{expense_id}", response_model=ExpenseResponse)
def update_expense_endpoint(
    expense_id: UUID,
    expense_data: ExpenseUpdate,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ExpenseResponse:
    """Edit a pending expense."""
    try:
        expense = update_expense(
            db,
            context.organization_id,
            expense_id,
            expense_data.to_changes(),
            actor_id=context.user_id,
        )
    except LedgerError as e:
        raise to_http_exception(e)
    return ExpenseResponse.model_validate(expense)


@router.post("/expenses/{expense_id}/approve", response_model=ExpenseResponse)
def approve_expense_endpoint(
    expense_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ExpenseResponse:
    actor_id = require_user(context)
    try:
        expense = approve_expense(db, context.organization_id, expense_id, actor_id)
    except LedgerError as e:
        logger.warning(f"Rejected approval of expense {expense_id}: {e.message}")
        raise to_http_exception(e)

    logger.info(f"Expense {expense_id} approved by {actor_id}")
    return ExpenseResponse.model_validate(expense)


@router.post("/expenses/{expense_id}/reject", response_model=ExpenseResponse)
def reject_expense_endpoint(
    expense_id: UUID,
    reject_data: Optional[ExpenseRejectRequest] = Body(None),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ExpenseResponse:
    actor_id = require_user(context)
    try:
        expense = reject_expense(
            db,
            context.organization_id,
            expense_id,
            actor_id,
            reason=reject_data.reason if reject_data else None,
        )
    except LedgerError as e:
        logger.warning(f"Rejected rejection of expense {expense_id}: {e.message}")
        raise to_http_exception(e)

    logger.info(f"Expense {expense_id} rejected by {actor_id}")
    return ExpenseResponse.model_validate(expense)


@router.post("/expenses/{expense_id}/pay", response_model=ExpenseResponse)
def pay_expense_endpoint(
    expense_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ExpenseResponse:
    """Mark an approved expense as paid."""
    try:
        expense = pay_expense(db, context.organization_id, expense_id, actor_id=context.user_id)
    except LedgerError as e:
        raise to_http_exception(e)

    logger.info(f"Expense {expense_id} paid")
    return ExpenseResponse.model_validate(expense)
