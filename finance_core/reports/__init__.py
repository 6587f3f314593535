"""
Reports Module

Expense statistics, profit and loss, and dashboard aggregation.
"""

from .aggregation import (
    AggregationReporter,
    CategoryTotal,
    DashboardSummary,
    ExpenseStatistics,
    MonthlyAmount,
    ProfitAndLoss,
    RevenueBreakdown,
)

__all__ = [
    "AggregationReporter",
    "CategoryTotal",
    "DashboardSummary",
    "ExpenseStatistics",
    "MonthlyAmount",
    "ProfitAndLoss",
    "RevenueBreakdown",
]
