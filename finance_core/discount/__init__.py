"""
Discount Module

Discount validation, amount computation, and usage-capped redemption.
"""

from .ledger import DiscountLedger, RedemptionResult
from .evaluator import DiscountEvaluator, DiscountEvaluation, Purchase

__all__ = [
    # Ledger
    "DiscountLedger",
    "RedemptionResult",
    # Evaluator
    "DiscountEvaluator",
    "DiscountEvaluation",
    "Purchase",
]
