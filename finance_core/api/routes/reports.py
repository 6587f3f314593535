"""
Report API Routes

Profit and loss statement and the financial dashboard.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from ...service import FinancialTrackingService
from ..dependencies import get_service

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/profit-and-loss")
def profit_and_loss(
    tenant_id: str = Query(...),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    return service.get_profit_and_loss(tenant_id, start_date, end_date).to_dict()


@router.get("/dashboard")
def financial_dashboard(
    tenant_id: str = Query(...),
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    """Current-month KPIs, year-to-date trends and recent transactions."""
    return service.get_financial_dashboard(tenant_id).to_dict()
