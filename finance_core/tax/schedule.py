"""
Tax Schedule Module

Resolves the active tax rules that apply to a tenant and item kind.
"""

import dataclasses
import logging
from decimal import InvalidOperation

from ..errors import ValidationError
from ..models import ItemKind, TaxRule
from ..money import to_decimal
from ..repository.base import FinanceRepository

logger = logging.getLogger(__name__)


def parse_item_kind(item_kind: ItemKind | str) -> ItemKind:
    """Coerce an item kind given as a string.

    Raises:
        ValidationError: If the kind is unknown
    """
    if isinstance(item_kind, ItemKind):
        return item_kind
    try:
        return ItemKind(item_kind)
    except ValueError:
        raise ValidationError(
            f"Unknown item kind: {item_kind}",
            field="item_kind",
            allowed=[k.value for k in ItemKind],
        ) from None


def normalize_rate(rule: TaxRule) -> TaxRule | None:
    """Return a copy of the rule with a Decimal rate, or None if the rate is unusable.

    Non-numeric and negative rates make the rule unusable. The stored
    rule is never modified.
    """
    try:
        rate = to_decimal(rule.rate)
    except (InvalidOperation, ValueError, TypeError):
        logger.debug("Skipping tax rule %s with unusable rate %r", rule.id, rule.rate)
        return None
    if not rate.is_finite() or rate < 0:
        logger.debug("Skipping tax rule %s with invalid rate %s", rule.id, rate)
        return None
    return dataclasses.replace(rule, rate=rate)


class TaxSchedule:
    """Read-only view over the tax rules stored for each tenant."""

    def __init__(self, repository: FinanceRepository):
        self.repository = repository

    def resolve_applicable(self, tenant_id: str, item_kind: ItemKind | str) -> list[TaxRule]:
        """Return every active rule applying to the tenant and item kind.

        A rule applies when it is active, covers the item kind (or
        ``both``), and is either platform-wide or scoped to the tenant.
        Rules with an unusable rate are dropped and the rest come back with
        Decimal rates. The repository order is preserved, so equal inputs
        give equal output.

        Args:
            tenant_id: Tenant identifier
            item_kind: facility, inventory_item, transaction or booking

        Returns:
            List of applicable TaxRule
        """
        kind = parse_item_kind(item_kind)

        rules = []
        for rule in self.repository.find_tax_rules(tenant_id):
            if not (rule.active and rule.covers(kind) and rule.visible_to(tenant_id)):
                continue
            normalized = normalize_rate(rule)
            if normalized is not None:
                rules.append(normalized)

        logger.debug(
            "Resolved %d tax rules for tenant=%s kind=%s: %s",
            len(rules), tenant_id, kind.value, [r.name for r in rules],
        )
        return rules
