"""
Discount Ledger Module

Durable redemption counter enforcing each discount's usage limit.
"""

import logging
from dataclasses import dataclass

from ..errors import ErrorKind
from ..repository.base import FinanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedemptionResult:
    """Outcome of a redemption attempt."""

    ok: bool
    discount_id: str
    reason: ErrorKind | None = None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "discount_id": self.discount_id,
            "reason": self.reason.value if self.reason else None,
        }


class DiscountLedger:
    """Records redemptions against a discount's usage limit.

    The check and the increment happen in one conditional write inside the
    repository, which is what keeps concurrent redemptions under the limit.
    """

    def __init__(self, repository: FinanceRepository):
        self.repository = repository

    def try_redeem(self, discount_id: str) -> RedemptionResult:
        """Consume one redemption if the usage limit allows it.

        Args:
            discount_id: Discount identifier

        Returns:
            RedemptionResult; ``reason`` is USAGE_LIMIT_EXCEEDED when refused
        """
        if self.repository.conditional_increment_used_count(discount_id):
            logger.info("Redeemed discount %s", discount_id)
            return RedemptionResult(ok=True, discount_id=discount_id)

        logger.warning("Redemption refused for discount %s: usage limit reached", discount_id)
        return RedemptionResult(
            ok=False,
            discount_id=discount_id,
            reason=ErrorKind.USAGE_LIMIT_EXCEEDED,
        )
