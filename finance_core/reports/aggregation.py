"""
Aggregation Reporter Module

Summarizes already-fetched expense and revenue records into category
breakdowns, monthly trends, profit and loss, and the financial dashboard.
Malformed records are skipped rather than failing the whole report.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from ..config import FinanceConfig
from ..models import ExpenseStatus, TransactionType, naive_utc
from ..money import ZERO, ratio_percent, round_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass
class CategoryTotal:
    """Accumulated amount for one category."""

    category: str
    count: int = 0
    amount: Decimal = ZERO
    percentage: float = 0.0

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "count": self.count,
            "amount": float(self.amount),
            "percentage": self.percentage,
        }


@dataclass
class MonthlyAmount:
    month: str  # YYYY-MM
    amount: Decimal

    def to_dict(self) -> dict:
        return {"month": self.month, "amount": float(self.amount)}


@dataclass
class ExpenseStatistics:
    """Expense statistics over a set of approved expenses."""

    count: int
    total_amount: Decimal
    average_amount: Decimal
    by_category: dict[str, CategoryTotal] = field(default_factory=dict)
    monthly_trend: list[MonthlyAmount] = field(default_factory=list)
    top_categories: list[CategoryTotal] = field(default_factory=list)
    skipped: int = 0

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total_amount": float(self.total_amount),
            "average_amount": float(self.average_amount),
            "by_category": {
                name: {"count": c.count, "amount": float(c.amount)}
                for name, c in self.by_category.items()
            },
            "monthly_trend": [m.to_dict() for m in self.monthly_trend],
            "top_categories": [c.to_dict() for c in self.top_categories],
        }


@dataclass
class RevenueBreakdown:
    total: Decimal = ZERO
    bookings: Decimal = ZERO
    rentals: Decimal = ZERO
    other: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "total": float(self.total),
            "bookings": float(self.bookings),
            "rentals": float(self.rentals),
            "other": float(self.other),
        }


@dataclass
class ProfitAndLoss:
    """Profit and loss statement for a period."""

    revenue: RevenueBreakdown
    expense_total: Decimal
    expense_by_category: dict[str, Decimal]
    gross_profit: Decimal
    net_profit: Decimal
    margin: float
    period_start: datetime | None = None
    period_end: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "revenue": self.revenue.to_dict(),
            "expenses": {
                "total": float(self.expense_total),
                "categories": {k: float(v) for k, v in self.expense_by_category.items()},
            },
            "profit": {
                "gross": float(self.gross_profit),
                "net": float(self.net_profit),
                "margin": self.margin,
            },
            "period": {
                "start": self.period_start.isoformat() if self.period_start else None,
                "end": self.period_end.isoformat() if self.period_end else None,
            },
        }


@dataclass
class DashboardSummary:
    """Current-month and year-to-date financial overview."""

    period: str  # YYYY-MM of the current month
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: float
    year_to_date: ProfitAndLoss
    monthly_revenue: list[MonthlyAmount] = field(default_factory=list)
    monthly_expenses: list[MonthlyAmount] = field(default_factory=list)
    top_expense_categories: list[CategoryTotal] = field(default_factory=list)
    recent_transactions: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "total_revenue": float(self.total_revenue),
            "total_expenses": float(self.total_expenses),
            "net_profit": float(self.net_profit),
            "profit_margin": self.profit_margin,
            "year_to_date": self.year_to_date.to_dict(),
            "monthly_revenue": [m.to_dict() for m in self.monthly_revenue],
            "monthly_expenses": [m.to_dict() for m in self.monthly_expenses],
            "top_expense_categories": [c.to_dict() for c in self.top_expense_categories],
            "recent_transactions": [
                t.to_dict() if hasattr(t, "to_dict") else t for t in self.recent_transactions
            ],
        }


# ==================== Record Normalization ====================

def _field(record: Any, name: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _as_datetime(value: Any) -> datetime | None:
    """Naive UTC datetime for a datetime, date or ISO string, else None."""
    if isinstance(value, datetime):
        return naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            return naive_utc(datetime.fromisoformat(value))
        except ValueError:
            return None
    return None


def _as_amount(value: Any) -> Decimal | None:
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


@dataclass
class _ExpenseRow:
    category: str
    amount: Decimal
    date: datetime


@dataclass
class _RevenueRow:
    category: str
    amount: Decimal
    created_at: datetime


def _normalize_expense(record: Any) -> _ExpenseRow | None:
    """Return the fields used for reporting, or None for an unusable record."""
    category = _field(record, "category")
    amount = _as_amount(_field(record, "amount"))
    when = _as_datetime(_field(record, "date"))
    if not category or amount is None or when is None:
        return None
    return _ExpenseRow(category=str(category), amount=amount, date=when)


def _normalize_revenue(record: Any) -> _RevenueRow | None:
    amount = _as_amount(_field(record, "amount"))
    when = _as_datetime(_field(record, "created_at"))
    if amount is None or when is None:
        return None
    return _RevenueRow(category=str(_field(record, "category") or "other"), amount=amount, created_at=when)


def _counts_as_expense(record: Any) -> bool:
    """Approved and not soft-deleted."""
    if _field(record, "is_deleted", False):
        return False
    return _enum_value(_field(record, "status")) == ExpenseStatus.APPROVED.value


def _counts_as_revenue(record: Any) -> bool:
    if _field(record, "is_deleted", False):
        return False
    return _enum_value(_field(record, "type")) == TransactionType.INCOME.value


class AggregationReporter:
    """Builds expense, profit-and-loss and dashboard reports."""

    def __init__(self, config: FinanceConfig | None = None):
        self.config = config or FinanceConfig()

    def _approved_expenses(self, expenses: Iterable[Any]) -> tuple[list[_ExpenseRow], int]:
        rows = []
        skipped = 0
        for record in expenses:
            if not _counts_as_expense(record):
                continue
            row = _normalize_expense(record)
            if row is None:
                logger.debug("Skipping malformed expense record %r", _field(record, "id"))
                skipped += 1
                continue
            rows.append(row)
        if skipped:
            logger.warning("Skipped %d malformed expense records", skipped)
        return rows, skipped

    def _income_records(self, records: Iterable[Any]) -> list[_RevenueRow]:
        rows = []
        skipped = 0
        for record in records:
            if not _counts_as_revenue(record):
                continue
            row = _normalize_revenue(record)
            if row is None:
                logger.debug("Skipping malformed revenue record %r", _field(record, "id"))
                skipped += 1
                continue
            rows.append(row)
        if skipped:
            logger.warning("Skipped %d malformed revenue records", skipped)
        return rows

    @staticmethod
    def _monthly(pairs: Iterable[tuple[datetime, Decimal]]) -> list[MonthlyAmount]:
        buckets: dict[str, Decimal] = {}
        for when, amount in pairs:
            month = when.strftime("%Y-%m")
            buckets[month] = buckets.get(month, ZERO) + amount
        return [MonthlyAmount(month=m, amount=buckets[m]) for m in sorted(buckets)]

    def expense_statistics(self, expenses: Iterable[Any]) -> ExpenseStatistics:
        """Summarize approved expenses.

        Args:
            expenses: Expense records or mappings with category/amount/date/status

        Returns:
            ExpenseStatistics
        """
        rows, skipped = self._approved_expenses(expenses)

        total = sum((row.amount for row in rows), ZERO)
        count = len(rows)
        average = round_money(total / count, self.config.minor_unit) if count else ZERO

        by_category: dict[str, CategoryTotal] = {}
        for row in rows:
            entry = by_category.setdefault(row.category, CategoryTotal(category=row.category))
            entry.count += 1
            entry.amount += row.amount

        ranked = sorted(by_category.values(), key=lambda c: (-c.amount, c.category))
        top_categories = [
            CategoryTotal(
                category=c.category,
                count=c.count,
                amount=c.amount,
                percentage=ratio_percent(c.amount, total),
            )
            for c in ranked[:self.config.top_categories]
        ]

        return ExpenseStatistics(
            count=count,
            total_amount=total,
            average_amount=average,
            by_category=by_category,
            monthly_trend=self._monthly((row.date, row.amount) for row in rows),
            top_categories=top_categories,
            skipped=skipped,
        )

    def profit_and_loss(
        self,
        revenue_records: Iterable[Any],
        expenses: Iterable[Any],
        period_start: datetime | None = None,
        period_end: datetime | None = None,
    ) -> ProfitAndLoss:
        """Build a profit and loss statement.

        Revenue is every ``income`` record, split into bookings, rentals and
        other by category. Margin is 0 when there is no revenue.
        """
        booking_categories = set(self.config.booking_categories)
        rental_categories = set(self.config.rental_categories)

        revenue = RevenueBreakdown()
        for row in self._income_records(revenue_records):
            revenue.total += row.amount
            if row.category in booking_categories:
                revenue.bookings += row.amount
            elif row.category in rental_categories:
                revenue.rentals += row.amount
            else:
                revenue.other += row.amount

        expense_rows, _ = self._approved_expenses(expenses)
        expense_total = sum((row.amount for row in expense_rows), ZERO)
        expense_by_category: dict[str, Decimal] = {}
        for row in expense_rows:
            expense_by_category[row.category] = expense_by_category.get(row.category, ZERO) + row.amount

        gross_profit = revenue.total - expense_total
        net_profit = gross_profit

        return ProfitAndLoss(
            revenue=revenue,
            expense_total=expense_total,
            expense_by_category=expense_by_category,
            gross_profit=gross_profit,
            net_profit=net_profit,
            margin=ratio_percent(net_profit, revenue.total),
            period_start=period_start,
            period_end=period_end,
        )

    def dashboard_summary(
        self,
        revenue_records: Iterable[Any],
        expenses: Iterable[Any],
        today: date | None = None,
    ) -> DashboardSummary:
        """Compose the current-month and year-to-date dashboard.

        Args:
            revenue_records: Revenue records for at least the current year
            expenses: Expenses for at least the current year
            today: Reference date (default: today)

        Returns:
            DashboardSummary
        """
        today = today or date.today()
        month_start = datetime(today.year, today.month, 1)
        year_start = datetime(today.year, 1, 1)

        revenue_records = list(revenue_records)
        expenses = list(expenses)

        def since(records: list, date_field: str, start: datetime) -> list:
            selected = []
            for record in records:
                when = _as_datetime(_field(record, date_field))
                if when is not None and when >= start:
                    selected.append(record)
            return selected

        month_revenue = since(revenue_records, "created_at", month_start)
        month_expenses = since(expenses, "date", month_start)
        ytd_revenue = since(revenue_records, "created_at", year_start)
        ytd_expenses = since(expenses, "date", year_start)

        current = self.profit_and_loss(month_revenue, month_expenses, period_start=month_start)
        year_to_date = self.profit_and_loss(ytd_revenue, ytd_expenses, period_start=year_start)

        ytd_stats = self.expense_statistics(ytd_expenses)
        month_stats = self.expense_statistics(month_expenses)

        return DashboardSummary(
            period=month_start.strftime("%Y-%m"),
            total_revenue=current.revenue.total,
            total_expenses=current.expense_total,
            net_profit=current.net_profit,
            profit_margin=current.margin,
            year_to_date=year_to_date,
            monthly_revenue=self._monthly(
                (row.created_at, row.amount) for row in self._income_records(ytd_revenue)
            ),
            monthly_expenses=ytd_stats.monthly_trend,
            top_expense_categories=month_stats.top_categories,
        )
