"""
Forward Pricing Engine Module

Computes subtotal -> discount -> service fee -> tax -> total at checkout.
Only the resulting total is persisted as the transaction amount.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation

from ..config import FinanceConfig
from ..discount.evaluator import DiscountEvaluation, DiscountEvaluator, Purchase
from ..errors import ValidationError
from ..models import Discount, ItemKind, TaxRule
from ..money import ZERO, percent_of, round_money, to_decimal
from ..tax.schedule import TaxSchedule

logger = logging.getLogger(__name__)


@dataclass
class PriceBreakdown:
    """Checkout price computation result."""

    subtotal_pre_discount: Decimal
    subtotal: Decimal
    service_fee: Decimal
    service_fee_rate: Decimal
    tax: Decimal
    total_other_rate: Decimal
    total: Decimal
    discount_amount: Decimal = ZERO
    service_rule: TaxRule | None = None
    applied_taxes: list[TaxRule] = field(default_factory=list)
    discount: DiscountEvaluation | None = None

    @property
    def taxable_base(self) -> Decimal:
        return self.subtotal + self.service_fee

    def to_dict(self) -> dict:
        return {
            "subtotal_pre_discount": float(self.subtotal_pre_discount),
            "discount_amount": float(self.discount_amount),
            "subtotal": float(self.subtotal),
            "service_fee": float(self.service_fee),
            "service_fee_rate": float(self.service_fee_rate),
            "tax": float(self.tax),
            "total_other_rate": float(self.total_other_rate),
            "applied_taxes": [rule.to_dict() for rule in self.applied_taxes],
            "total": float(self.total),
        }


class ForwardPricingEngine:
    """Prices a checkout from a known base price."""

    def __init__(
        self,
        schedule: TaxSchedule,
        evaluator: DiscountEvaluator,
        config: FinanceConfig | None = None,
    ):
        self.schedule = schedule
        self.evaluator = evaluator
        self.config = config or FinanceConfig()

    def split_service_rule(self, rules: list[TaxRule]) -> tuple[TaxRule | None, list[TaxRule]]:
        """Separate the first service-fee rule from the remaining rules."""
        marker = self.config.service_fee_marker
        for index, rule in enumerate(rules):
            if rule.is_service_fee(marker):
                return rule, rules[:index] + rules[index + 1:]
        return None, list(rules)

    def price_checkout(
        self,
        base_price: Decimal | float | str,
        quantity_or_days: Decimal | int | str,
        tenant_id: str,
        item_kind: ItemKind | str,
        discount: Discount | None = None,
        applicable_item_id: str | None = None,
        now: datetime | None = None,
        is_taxable: bool = True,
    ) -> PriceBreakdown:
        """Compute the checkout price breakdown.

        Service fee and tax are each rounded half-up to the minor unit;
        the (possibly discounted) subtotal is left unrounded. Tax is levied
        on subtotal plus service fee.

        Args:
            base_price: Unit or daily price
            quantity_or_days: Quantity, or number of days for rentals
            tenant_id: Tenant whose tax schedule applies
            item_kind: Kind of item being bought
            discount: Optional discount, redeemed when the checkout prices
            applicable_item_id: Item the discount is checked against
            now: Evaluation time for the discount date window
            is_taxable: False skips service fee and tax entirely

        Returns:
            PriceBreakdown

        Raises:
            ValidationError: On non-numeric or negative inputs
            FinanceError: Any discount failure, before anything is redeemed
        """
        try:
            price = to_decimal(base_price)
            quantity = to_decimal(quantity_or_days)
        except InvalidOperation:
            raise ValidationError("Base price and quantity must be numeric") from None
        if price < 0 or quantity < 0:
            raise ValidationError(
                "Base price and quantity cannot be negative",
                base_price=str(price),
                quantity=str(quantity),
            )

        # Resolve taxes first so a bad item kind never costs a redemption
        if is_taxable:
            rules = self.schedule.resolve_applicable(tenant_id, item_kind)
        else:
            rules = []

        quantum = self.config.minor_unit
        subtotal_pre_discount = price * quantity

        evaluation = None
        subtotal = subtotal_pre_discount
        if discount is not None:
            purchase = Purchase(
                amount=subtotal_pre_discount,
                applicable_item_id=applicable_item_id,
                now=now or datetime.now(),
            )
            evaluation = self.evaluator.evaluate(discount, purchase)
            subtotal = evaluation.final_amount

        service_rule, other_rules = self.split_service_rule(rules)

        service_fee_rate = service_rule.rate if service_rule else ZERO
        service_fee = round_money(percent_of(subtotal, service_fee_rate), quantum)

        taxable_base = subtotal + service_fee
        total_other_rate = sum((rule.rate for rule in other_rules), ZERO)
        tax = round_money(percent_of(taxable_base, total_other_rate), quantum)

        total = subtotal + service_fee + tax

        logger.debug(
            "Priced checkout tenant=%s kind=%s subtotal=%s fee=%s tax=%s total=%s",
            tenant_id, item_kind, subtotal, service_fee, tax, total,
        )

        return PriceBreakdown(
            subtotal_pre_discount=subtotal_pre_discount,
            subtotal=subtotal,
            service_fee=service_fee,
            service_fee_rate=service_fee_rate,
            tax=tax,
            total_other_rate=total_other_rate,
            total=total,
            discount_amount=evaluation.discount_amount if evaluation else ZERO,
            service_rule=service_rule,
            applied_taxes=other_rules,
            discount=evaluation,
        )
