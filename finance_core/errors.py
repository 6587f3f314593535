"""
Error Taxonomy

Typed failures raised by the financial core. Every error carries an
``ErrorKind`` so callers can branch on the failure instead of parsing
messages.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Kinds of business failures."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    DATE_RANGE = "date_range"
    USAGE_LIMIT_EXCEEDED = "usage_limit_exceeded"
    MINIMUM_AMOUNT = "minimum_amount"
    APPLICABILITY = "applicability"
    RECONCILIATION_MISMATCH = "reconciliation_mismatch"


class FinanceError(Exception):
    """Base class for all financial core errors."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {
            "error": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(FinanceError):
    """Missing or malformed input."""
    kind = ErrorKind.VALIDATION


class NotFoundError(FinanceError):
    """Referenced record does not exist."""
    kind = ErrorKind.NOT_FOUND


class InactiveError(FinanceError):
    kind = ErrorKind.INACTIVE


class DateRangeError(FinanceError):
    kind = ErrorKind.DATE_RANGE


class UsageLimitExceededError(FinanceError):
    """Discount has no redemptions left.

    Raised both by the evaluator's pre-check and when the ledger refuses
    the increment after losing a race to a concurrent redemption.
    """
    kind = ErrorKind.USAGE_LIMIT_EXCEEDED


class MinimumAmountError(FinanceError):
    kind = ErrorKind.MINIMUM_AMOUNT


class ApplicabilityError(FinanceError):
    kind = ErrorKind.APPLICABILITY


class ReconciliationMismatchError(FinanceError):
    """Reconciled lines do not add up to the stored total.

    Never raised by the reconciler; attached to the breakdown and logged.
    """
    kind = ErrorKind.RECONCILIATION_MISMATCH
