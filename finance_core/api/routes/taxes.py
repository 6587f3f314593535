"""
Tax Rule API Routes

Manage the tax schedule used by checkout pricing and invoices.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from ...models import TaxAppliesTo
from ...service import FinancialTrackingService
from ..dependencies import get_service

router = APIRouter(prefix="/tax-rules", tags=["tax-rules"])


@router.post("", status_code=201)
def create_tax_rule(
    payload: dict[str, Any] = Body(...),
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    return service.create_tax_rule(payload).to_dict()


@router.get("")
def list_tax_rules(
    tenant_id: str = Query(...),
    active: bool | None = Query(None),
    applies_to: TaxAppliesTo | None = Query(None),
    service: FinancialTrackingService = Depends(get_service),
) -> list[dict]:
    """Tenant and platform-wide rules in schedule order."""
    return [rule.to_dict() for rule in service.get_tax_rules(tenant_id, active, applies_to)]


@router.get("/{rule_id}")
def get_tax_rule(
    rule_id: str,
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    return service.get_tax_rule(rule_id).to_dict()


@router.patch("/{rule_id}")
def update_tax_rule(
    rule_id: str,
    payload: dict[str, Any] = Body(...),
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    return service.update_tax_rule(rule_id, payload).to_dict()


@router.delete("/{rule_id}")
def delete_tax_rule(
    rule_id: str,
    service: FinancialTrackingService = Depends(get_service),
) -> dict:
    service.delete_tax_rule(rule_id)
    return {"deleted": True, "id": rule_id}
