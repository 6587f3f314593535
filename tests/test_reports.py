"""
Tests for Aggregation Reporter

Tests for expense statistics, profit and loss, and the dashboard summary.
"""

import logging
from datetime import date, datetime
from decimal import Decimal

import pytest

from finance_core.config import FinanceConfig
from finance_core.reports import AggregationReporter


@pytest.fixture
def reporter():
    return AggregationReporter(FinanceConfig())


class TestExpenseStatistics:
    """Tests for expense statistics."""

    def test_only_approved_live_expenses_count(self, reporter, sample_expenses):
        stats = reporter.expense_statistics(sample_expenses)

        assert stats.count == 4
        assert stats.total_amount == Decimal("1750.00")
        assert stats.average_amount == Decimal("437.50")
        assert "marketing" not in stats.by_category

    def test_category_breakdown(self, reporter, sample_expenses):
        stats = reporter.expense_statistics(sample_expenses)

        assert stats.by_category["utilities"].count == 2
        assert stats.by_category["utilities"].amount == Decimal("399.50")
        assert sum(c.amount for c in stats.by_category.values()) == stats.total_amount

    def test_monthly_trend_is_chronological(self, reporter, sample_expenses):
        stats = reporter.expense_statistics(sample_expenses)

        assert [(m.month, m.amount) for m in stats.monthly_trend] == [
            ("2025-04", Decimal("300.00")),
            ("2025-05", Decimal("150.50")),
            ("2025-06", Decimal("1299.50")),
        ]
        assert sum(m.amount for m in stats.monthly_trend) == stats.total_amount

    def test_top_categories_ranked_by_amount(self, reporter, sample_expenses):
        stats = reporter.expense_statistics(sample_expenses)

        assert [c.category for c in stats.top_categories] == ["salaries", "utilities", "maintenance"]
        assert stats.top_categories[0].percentage == pytest.approx(68.5714, rel=1e-4)
        assert sum(c.percentage for c in stats.top_categories) == pytest.approx(100.0)

    def test_top_categories_limited_by_config(self, sample_expenses):
        reporter = AggregationReporter(FinanceConfig(top_categories=1))

        stats = reporter.expense_statistics(sample_expenses)

        assert [c.category for c in stats.top_categories] == ["salaries"]

    def test_empty_input(self, reporter):
        stats = reporter.expense_statistics([])

        assert stats.count == 0
        assert stats.total_amount == Decimal("0")
        assert stats.average_amount == Decimal("0")
        assert stats.top_categories == []
        assert stats.monthly_trend == []

    def test_mapping_records_are_accepted(self, reporter):
        records = [
            {"category": "fuel", "amount": "45.25", "date": "2025-02-14T10:00:00", "status": "approved"},
            {"category": "fuel", "amount": 54.75, "date": date(2025, 2, 20), "status": "approved"},
        ]

        stats = reporter.expense_statistics(records)

        assert stats.total_amount == Decimal("100.00")
        assert stats.monthly_trend[0].month == "2025-02"

    def test_malformed_records_are_skipped(self, reporter, sample_expenses, caplog):
        records = list(sample_expenses) + [
            {"category": "fuel", "amount": "lots", "date": "2025-06-01", "status": "approved"},
            {"category": "fuel", "amount": "10", "date": "not a date", "status": "approved"},
            {"category": "", "amount": "10", "date": "2025-06-01", "status": "approved"},
            {"category": "fuel", "amount": "-5", "date": "2025-06-01", "status": "approved"},
        ]

        with caplog.at_level(logging.WARNING):
            stats = reporter.expense_statistics(records)

        assert stats.count == 4
        assert stats.skipped == 4
        assert "Skipped 4 malformed expense records" in caplog.text

    def test_to_dict(self, reporter, sample_expenses):
        data = reporter.expense_statistics(sample_expenses).to_dict()

        assert data["total_amount"] == 1750.0
        assert data["by_category"]["salaries"] == {"count": 1, "amount": 1200.0}
        assert data["top_categories"][0]["category"] == "salaries"


class TestProfitAndLoss:
    """Tests for the profit and loss statement."""

    def test_revenue_breakdown(self, reporter, sample_revenue, sample_expenses):
        pnl = reporter.profit_and_loss(sample_revenue, sample_expenses)

        assert pnl.revenue.total == Decimal("2000.00")
        assert pnl.revenue.bookings == Decimal("1707.50")
        assert pnl.revenue.rentals == Decimal("250.00")
        assert pnl.revenue.other == Decimal("42.50")

    def test_profit_and_margin(self, reporter, sample_revenue, sample_expenses):
        pnl = reporter.profit_and_loss(sample_revenue, sample_expenses)

        assert pnl.expense_total == Decimal("1750.00")
        assert pnl.gross_profit == Decimal("250.00")
        assert pnl.net_profit == Decimal("250.00")
        assert pnl.margin == pytest.approx(12.5)

    def test_margin_is_zero_without_revenue(self, reporter, sample_expenses):
        pnl = reporter.profit_and_loss([], sample_expenses)

        assert pnl.net_profit == Decimal("-1750.00")
        assert pnl.margin == 0.0

    def test_expense_categories(self, reporter, sample_revenue, sample_expenses):
        pnl = reporter.profit_and_loss(sample_revenue, sample_expenses)

        assert pnl.expense_by_category == {
            "utilities": Decimal("399.50"),
            "maintenance": Decimal("150.50"),
            "salaries": Decimal("1200.00"),
        }

    def test_to_dict(self, reporter, sample_revenue, sample_expenses):
        start = datetime(2025, 1, 1)
        data = reporter.profit_and_loss(sample_revenue, sample_expenses, period_start=start).to_dict()

        assert data["profit"]["net"] == 250.0
        assert data["revenue"]["rentals"] == 250.0
        assert data["period"] == {"start": "2025-01-01T00:00:00", "end": None}


class TestDashboardSummary:
    """Tests for the dashboard summary."""

    @pytest.fixture
    def summary(self, reporter, sample_revenue, sample_expenses):
        return reporter.dashboard_summary(sample_revenue, sample_expenses, today=date(2025, 6, 15))

    def test_current_month_figures(self, summary):
        assert summary.period == "2025-06"
        assert summary.total_revenue == Decimal("1500.00")
        assert summary.total_expenses == Decimal("1299.50")
        assert summary.net_profit == Decimal("200.50")
        assert summary.profit_margin == pytest.approx(13.3667, rel=1e-4)

    def test_year_to_date(self, summary):
        assert summary.year_to_date.revenue.total == Decimal("2000.00")
        assert summary.year_to_date.expense_total == Decimal("1750.00")

    def test_monthly_series(self, summary):
        assert [(m.month, m.amount) for m in summary.monthly_revenue] == [
            ("2025-03", Decimal("500.00")),
            ("2025-06", Decimal("1500.00")),
        ]
        assert [m.month for m in summary.monthly_expenses] == ["2025-04", "2025-05", "2025-06"]

    def test_top_expense_categories_for_month(self, summary):
        assert [c.category for c in summary.top_expense_categories] == ["salaries", "utilities"]

    def test_previous_year_is_excluded(self, reporter, sample_revenue, sample_expenses):
        summary = reporter.dashboard_summary(sample_revenue, sample_expenses, today=date(2026, 1, 10))

        assert summary.total_revenue == Decimal("0")
        assert summary.year_to_date.revenue.total == Decimal("0")
        assert summary.monthly_revenue == []


class TestTimezoneAwareRecords:
    """Offset-bearing dates are read as UTC and mix with naive ones."""

    def test_dashboard_with_aware_expense_date(self, reporter):
        records = [
            {"category": "x", "amount": "10", "date": "2025-06-02T00:00:00+00:00", "status": "approved"},
        ]

        summary = reporter.dashboard_summary([], records, today=date(2025, 6, 15))

        assert summary.total_expenses == Decimal("10")
        assert summary.year_to_date.expense_total == Decimal("10")

    def test_zulu_suffix_and_naive_dates_together(self, reporter, sample_expenses):
        records = list(sample_expenses) + [
            {"category": "fuel", "amount": "20", "date": "2025-06-30T23:30:00-02:00", "status": "approved"},
            {"category": "fuel", "amount": "30", "date": "2025-06-14T08:00:00Z", "status": "approved"},
        ]

        stats = reporter.expense_statistics(records)

        assert stats.skipped == 0
        assert stats.count == 6
        assert [(m.month, m.amount) for m in stats.monthly_trend][-2:] == [
            ("2025-06", Decimal("1329.50")),
            ("2025-07", Decimal("20")),
        ]
