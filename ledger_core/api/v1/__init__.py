from fastapi import APIRouter

from .endpoints import invoices, payments, expenses

api_router = APIRouter()

api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
api_router.include_router(payments.router, tags=["payments"])
api_router.include_router(expenses.router, tags=["expenses"])
