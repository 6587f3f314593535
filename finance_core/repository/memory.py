"""
In-Memory Repository Module

Thread-safe store used by tests and by callers embedding the core
without a database.
"""

import copy
import logging
import threading

from ..models import (
    Discount,
    DiscountFilter,
    Expense,
    ExpenseFilter,
    Pagination,
    RevenueRecord,
    TaxRule,
    TransactionFilter,
)
from .base import FinanceRepository

logger = logging.getLogger(__name__)


def _paginate(items: list, page: Pagination | None) -> list:
    if page is None:
        return items
    return items[page.offset:page.offset + page.limit]


class InMemoryRepository(FinanceRepository):
    """Dictionary-backed repository.

    Records are copied on the way in and out, so callers never hold a
    reference into the store.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._discounts: dict[str, Discount] = {}
        self._expenses: dict[str, Expense] = {}
        self._transactions: dict[str, RevenueRecord] = {}
        self._tax_rules: dict[str, TaxRule] = {}

    # ==================== Discounts ====================

    def find_discount_by_id(self, discount_id: str) -> Discount | None:
        with self._lock:
            discount = self._discounts.get(discount_id)
            return copy.deepcopy(discount) if discount else None

    def conditional_increment_used_count(self, discount_id: str) -> bool:
        with self._lock:
            discount = self._discounts.get(discount_id)
            if discount is None or discount.is_deleted:
                return False
            if discount.usage_limit is not None and discount.used_count >= discount.usage_limit:
                return False
            discount.used_count += 1
            return True

    def find_discounts(
        self,
        filters: DiscountFilter,
        page: Pagination | None = None,
    ) -> tuple[list[Discount], int]:
        with self._lock:
            matching = [d for d in self._discounts.values() if filters.matches(d)]
            matching.sort(key=lambda d: d.created_at, reverse=True)
            return copy.deepcopy(_paginate(matching, page)), len(matching)

    def save_discount(self, discount: Discount) -> Discount:
        with self._lock:
            self._discounts[discount.id] = copy.deepcopy(discount)
        return discount

    # ==================== Expenses ====================

    def find_expenses(
        self,
        filters: ExpenseFilter,
        page: Pagination | None = None,
    ) -> tuple[list[Expense], int]:
        with self._lock:
            matching = [e for e in self._expenses.values() if filters.matches(e)]
            matching.sort(key=lambda e: e.date, reverse=True)
            return copy.deepcopy(_paginate(matching, page)), len(matching)

    def save_expense(self, expense: Expense) -> Expense:
        with self._lock:
            self._expenses[expense.id] = copy.deepcopy(expense)
        return expense

    # ==================== Transactions ====================

    def find_transactions(self, filters: TransactionFilter) -> list[RevenueRecord]:
        with self._lock:
            matching = [t for t in self._transactions.values() if filters.matches(t)]
            matching.sort(key=lambda t: t.created_at, reverse=True)
            return copy.deepcopy(matching)

    def save_transaction(self, record: RevenueRecord) -> RevenueRecord:
        with self._lock:
            self._transactions[record.id] = copy.deepcopy(record)
        return record

    # ==================== Tax Rules ====================

    def find_tax_rules(self, tenant_id: str) -> list[TaxRule]:
        with self._lock:
            return [
                copy.deepcopy(rule)
                for rule in self._tax_rules.values()
                if rule.is_super_admin_tax or rule.tenant_id == tenant_id
            ]

    def find_tax_rule_by_id(self, rule_id: str) -> TaxRule | None:
        with self._lock:
            rule = self._tax_rules.get(rule_id)
            return copy.deepcopy(rule) if rule else None

    def save_tax_rule(self, rule: TaxRule) -> TaxRule:
        # Reassigning an existing key keeps its insertion position
        with self._lock:
            self._tax_rules[rule.id] = copy.deepcopy(rule)
        return rule

    def delete_tax_rule(self, rule_id: str) -> bool:
        with self._lock:
            return self._tax_rules.pop(rule_id, None) is not None
