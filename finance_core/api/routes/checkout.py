"""
Checkout API Routes

Forward price computation at checkout and invoice tax breakdowns.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ...models import ItemKind
from ...service import FinancialTrackingService
from ..dependencies import get_service

router = APIRouter(tags=["checkout"])


class CheckoutRequest(BaseModel):
    """Checkout pricing request."""

    tenant_id: str
    item_kind: ItemKind
    base_price: Decimal
    quantity: Decimal = Decimal("1")
    discount_id: str | None = None
    applicable_item_id: str | None = None
    is_taxable: bool = True


@router.post("/checkout/price")
def price_checkout(
    request: CheckoutRequest,
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    """Price a checkout; only the returned total should be persisted."""
    breakdown = service.price_checkout(
        request.base_price,
        request.quantity,
        request.tenant_id,
        request.item_kind,
        discount_id=request.discount_id,
        applicable_item_id=request.applicable_item_id,
        is_taxable=request.is_taxable,
    )
    return breakdown.to_dict()


@router.get("/invoices/breakdown")
def invoice_breakdown(
    total: Decimal = Query(..., description="Stored tax-inclusive total"),
    tenant_id: str = Query(...),
    item_kind: ItemKind = Query(...),
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    """Reconstruct tax lines from a stored transaction total."""
    return service.reconcile_invoice(total, tenant_id, item_kind).to_dict()
