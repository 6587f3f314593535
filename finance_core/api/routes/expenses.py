"""
Expense API Routes

Record, list and summarize expenses.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from ...models import ExpenseFilter, ExpenseStatus, Pagination
from ...service import FinancialTrackingService
from ..dependencies import get_service

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("", status_code=201)
def create_expense(
    payload: dict[str, Any] = Body(...),
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    return service.create_expense(payload).to_dict()


@router.get("")
def list_expenses(
    tenant_id: str = Query(...),
    category: str | None = Query(None),
    status: ExpenseStatus | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    created_by: str | None = Query(None),
    is_recurring: bool | None = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    """List expenses with filters and pagination, newest first."""
    filters = ExpenseFilter(
        tenant_id=tenant_id,
        category=category,
        status=status,
        start_date=start_date,
        end_date=end_date,
        created_by=created_by,
        is_recurring=is_recurring,
    )
    return service.get_expenses(filters, Pagination(page=page, limit=limit)).to_dict()


@router.get("/statistics")
def expense_statistics(
    tenant_id: str = Query(...),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    return service.get_expense_statistics(tenant_id, start_date, end_date).to_dict()
