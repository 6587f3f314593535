"""
Discount API Routes

Create, list and apply discounts.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel

from ...models import ApplicableTo, DiscountFilter, Pagination
from ...service import FinancialTrackingService
from ..dependencies import get_service

router = APIRouter(prefix="/discounts", tags=["discounts"])


class ApplyDiscountRequest(BaseModel):
    """Amount to discount and the item it is for."""

    amount: Decimal | None = None
    applicable_item_id: str | None = None


@router.post("", status_code=201)
def create_discount(
    payload: dict[str, Any] = Body(...),
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    return service.create_discount(payload).to_dict()


@router.get("")
def list_discounts(
    tenant_id: str = Query(...),
    is_active: bool | None = Query(None),
    applicable_to: ApplicableTo | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    """List a tenant's discounts with filters and pagination."""
    filters = DiscountFilter(
        tenant_id=tenant_id,
        is_active=is_active,
        applicable_to=applicable_to,
        start_date=start_date,
        end_date=end_date,
    )
    return service.get_discounts(filters, Pagination(page=page, limit=limit)).to_dict()


@router.post("/{discount_id}/apply")
def apply_discount(
    discount_id: str,
    request: ApplyDiscountRequest,
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    """Apply a discount to an amount, consuming one redemption."""
    result = service.apply_discount(discount_id, request.amount, request.applicable_item_id)
    return result.to_dict()
