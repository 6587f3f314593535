"""
Discount Evaluator Module

Validates a discount against a candidate purchase, computes the discount
amount, and redeems it through the ledger as the very last step.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation

from ..errors import (
    ApplicabilityError,
    DateRangeError,
    InactiveError,
    MinimumAmountError,
    UsageLimitExceededError,
    ValidationError,
)
from ..models import ApplicableTo, Discount, DiscountKind, naive_utc
from ..money import ZERO, percent_of, to_decimal
from .ledger import DiscountLedger

logger = logging.getLogger(__name__)


@dataclass
class Purchase:
    """Candidate purchase a discount is evaluated against."""

    amount: Decimal
    applicable_item_id: str | None = None
    now: datetime = field(default_factory=datetime.now)


@dataclass
class DiscountEvaluation:
    """Result of a successful evaluation."""

    discount_id: str
    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal

    def to_dict(self) -> dict:
        return {
            "discount_id": self.discount_id,
            "original_amount": float(self.original_amount),
            "discount_amount": float(self.discount_amount),
            "final_amount": float(self.final_amount),
        }


class DiscountEvaluator:
    """Applies discount rules to purchase amounts."""

    def __init__(self, ledger: DiscountLedger):
        self.ledger = ledger

    def check_eligibility(self, discount: Discount, purchase: Purchase) -> None:
        """Run the rule checks in order, failing on the first one that trips.

        Raises:
            InactiveError, DateRangeError, UsageLimitExceededError,
            MinimumAmountError, ApplicabilityError
        """
        if not discount.is_active:
            raise InactiveError("Discount is not active", discount_id=discount.id)

        now = naive_utc(purchase.now)
        if now < naive_utc(discount.start_date) or now > naive_utc(discount.end_date):
            raise DateRangeError(
                "Discount is not valid for current date",
                discount_id=discount.id,
                start_date=discount.start_date.isoformat(),
                end_date=discount.end_date.isoformat(),
            )

        # Cheap pre-check; the ledger write is authoritative
        if discount.is_exhausted:
            raise UsageLimitExceededError(
                "Discount usage limit exceeded",
                discount_id=discount.id,
                usage_limit=discount.usage_limit,
            )

        if discount.minimum_amount is not None and purchase.amount < discount.minimum_amount:
            raise MinimumAmountError(
                f"Minimum amount of {discount.minimum_amount} required for this discount",
                discount_id=discount.id,
                minimum_amount=str(discount.minimum_amount),
            )

        if (
            discount.applicable_to != ApplicableTo.ALL
            and purchase.applicable_item_id is not None
            and purchase.applicable_item_id not in (discount.applicable_items or [])
        ):
            raise ApplicabilityError(
                "Discount does not apply to this item",
                discount_id=discount.id,
                item_id=purchase.applicable_item_id,
            )

    def compute_amount(self, discount: Discount, amount: Decimal) -> Decimal:
        """Raw discount clamped to the maximum discount and to the amount itself."""
        if discount.kind == DiscountKind.PERCENTAGE:
            discount_amount = percent_of(amount, discount.value)
        else:
            discount_amount = discount.value

        if discount.maximum_discount is not None:
            discount_amount = min(discount_amount, discount.maximum_discount)

        return max(ZERO, min(discount_amount, amount))

    def evaluate(self, discount: Discount, purchase: Purchase) -> DiscountEvaluation:
        """Validate, compute and redeem a discount.

        Nothing is persisted unless every check passes; the ledger increment
        is the only side effect and happens after the amounts are final.

        Args:
            discount: Discount to apply
            purchase: Purchase descriptor

        Returns:
            DiscountEvaluation

        Raises:
            FinanceError subclass describing the first failed rule
        """
        try:
            amount = to_decimal(purchase.amount)
        except InvalidOperation:
            raise ValidationError("Purchase amount must be numeric", field="amount") from None
        if amount < 0:
            raise ValidationError("Purchase amount cannot be negative", field="amount")
        purchase.amount = amount

        self.check_eligibility(discount, purchase)

        discount_amount = self.compute_amount(discount, amount)
        final_amount = amount - discount_amount

        redemption = self.ledger.try_redeem(discount.id)
        if not redemption.ok:
            # Lost the race to a concurrent redemption after the pre-check
            raise UsageLimitExceededError(
                "Discount usage limit exceeded",
                discount_id=discount.id,
                usage_limit=discount.usage_limit,
            )

        return DiscountEvaluation(
            discount_id=discount.id,
            original_amount=amount,
            discount_amount=discount_amount,
            final_amount=final_amount,
        )
