"""
Tax Module

Resolves tenant tax schedules and reconstructs tax breakdowns from
stored tax-inclusive totals.
"""

from .schedule import TaxSchedule, normalize_rate, parse_item_kind
from .reconciler import (
    BackwardTaxReconciler,
    TaxBreakdown,
    TaxLine,
)

__all__ = [
    # Schedule
    "TaxSchedule",
    "normalize_rate",
    "parse_item_kind",
    # Reconciliation
    "BackwardTaxReconciler",
    "TaxBreakdown",
    "TaxLine",
]
