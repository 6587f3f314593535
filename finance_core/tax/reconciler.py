"""
Backward Tax Reconciler Module

Recovers the subtotal and per-rule tax lines from a stored tax-inclusive
total when an invoice is rendered. Only the final total is persisted at
checkout, so the breakdown is re-derived from it and the tenant's current
tax schedule.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from ..config import FinanceConfig
from ..errors import ReconciliationMismatchError, ValidationError
from ..models import ItemKind, TaxRule
from ..money import ZERO, HUNDRED, percent_of, round_money, to_decimal
from .schedule import TaxSchedule

logger = logging.getLogger(__name__)


@dataclass
class TaxLine:
    """Reconciled amount for one tax rule."""

    rule: TaxRule
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule.id,
            "name": self.rule.name,
            "rate": float(self.rule.rate),
            "amount": float(self.amount),
        }


@dataclass
class TaxBreakdown:
    """Invoice breakdown re-derived from a tax-inclusive total."""

    subtotal: Decimal
    total_tax: Decimal
    total: Decimal
    total_rate: Decimal = ZERO
    lines: list[TaxLine] = field(default_factory=list)
    mismatch: ReconciliationMismatchError | None = None

    @property
    def is_consistent(self) -> bool:
        return self.mismatch is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": float(self.subtotal),
            "per_rule": [line.to_dict() for line in self.lines],
            "total_tax": float(self.total_tax),
            "total_rate": float(self.total_rate),
            "total": float(self.total),
            "mismatch": self.mismatch.to_dict() if self.mismatch else None,
        }


class BackwardTaxReconciler:
    """Reconstructs tax lines from a stored total."""

    def __init__(self, schedule: TaxSchedule, config: FinanceConfig | None = None):
        self.schedule = schedule
        self.config = config or FinanceConfig()

    def _reconcilable_rules(self, tenant_id: str, item_kind: ItemKind | str) -> list[TaxRule]:
        """Applicable rules minus the service fee."""
        return [
            rule for rule in self.schedule.resolve_applicable(tenant_id, item_kind)
            if not rule.is_service_fee(self.config.service_fee_marker)
        ]

    def reconcile(
        self,
        tax_inclusive_total: Decimal | float | str,
        tenant_id: str,
        item_kind: ItemKind | str,
    ) -> TaxBreakdown:
        """Recover subtotal and per-rule tax amounts.

        The service-fee rule is not treated as a reconciled tax line, so the
        recovered subtotal of a checkout that carried a service fee includes
        that fee.

        Args:
            tax_inclusive_total: Stored transaction amount
            tenant_id: Tenant identifier
            item_kind: Kind of item the transaction was for

        Returns:
            TaxBreakdown. A breakdown that does not add up within tolerance
            is still returned, with ``mismatch`` set.
        """
        try:
            total = to_decimal(tax_inclusive_total)
        except InvalidOperation:
            raise ValidationError(
                "Tax-inclusive total must be numeric",
                field="tax_inclusive_total",
            ) from None

        quantum = self.config.minor_unit
        tolerance = self.config.reconciliation_tolerance

        rules = self._reconcilable_rules(tenant_id, item_kind)
        total_rate = sum((rule.rate for rule in rules), ZERO)

        if not rules:
            return TaxBreakdown(subtotal=total, total_tax=ZERO, total=total)

        subtotal = round_money(total / (1 + total_rate / HUNDRED), quantum)
        total_tax = round_money(total - subtotal, quantum)

        lines = [
            TaxLine(rule=rule, amount=round_money(percent_of(subtotal, rule.rate), quantum))
            for rule in rules
        ]
        lines_total = sum((line.amount for line in lines), ZERO)

        breakdown = TaxBreakdown(
            subtotal=subtotal,
            total_tax=total_tax,
            total=total,
            total_rate=total_rate,
            lines=lines,
        )

        lines_drift = abs(lines_total - total_tax)
        total_drift = abs(subtotal + total_tax - total)
        if lines_drift >= tolerance or total_drift >= tolerance:
            # The per-line amounts are what gets displayed, so they win
            breakdown.total_tax = lines_total
            breakdown.mismatch = ReconciliationMismatchError(
                "Reconciled tax lines do not add up to the stored total",
                total=str(total),
                subtotal=str(subtotal),
                computed_tax=str(total_tax),
                lines_tax=str(lines_total),
            )
            logger.warning(
                "Reconciliation mismatch for tenant=%s total=%s: lines=%s computed=%s",
                tenant_id, total, lines_total, total_tax,
            )

        return breakdown
