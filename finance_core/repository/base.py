"""
Base Repository Module

Abstract storage interface. The core never defines a schema; it only
relies on the semantics of these operations.
"""

from abc import ABC, abstractmethod

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


class FinanceRepository(ABC):
    """Persistence collaborator for discounts, expenses, transactions and tax rules."""

    @abstractmethod
    def find_discount_by_id(self, discount_id: str) -> Discount | None:
        """Return the discount, including soft-deleted ones, or None."""
        pass

    @abstractmethod
    def conditional_increment_used_count(self, discount_id: str) -> bool:
        """Atomically increment ``used_count`` if the usage limit allows it.

        Must be a single conditional write at the storage layer
        ("increment where used_count < usage_limit"), never a read
        followed by an unconditional write.

        Returns:
            True if a redemption was recorded
        """
        pass

    @abstractmethod
    def find_discounts(
        self,
        filters: DiscountFilter,
        page: Pagination | None = None,
    ) -> tuple[list[Discount], int]:
        """Return (discounts newest first, total matching count)."""
        pass

    @abstractmethod
    def save_discount(self, discount: Discount) -> Discount:
        pass

    @abstractmethod
    def find_expenses(
        self,
        filters: ExpenseFilter,
        page: Pagination | None = None,
    ) -> tuple[list[Expense], int]:
        """Return (expenses by date descending, total matching count).

        Without a page every matching expense is returned.
        """
        pass

    @abstractmethod
    def save_expense(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    def find_transactions(self, filters: TransactionFilter) -> list[RevenueRecord]:
        """Return matching transactions, newest first."""
        pass

    @abstractmethod
    def save_transaction(self, record: RevenueRecord) -> RevenueRecord:
        """Store a finalized transaction; ``amount`` is the tax-inclusive total."""
        pass

    @abstractmethod
    def find_tax_rules(self, tenant_id: str) -> list[TaxRule]:
        """Return the tenant's tax rules plus platform-wide ones, in a stable order."""
        pass

    @abstractmethod
    def find_tax_rule_by_id(self, rule_id: str) -> TaxRule | None:
        pass

    @abstractmethod
    def save_tax_rule(self, rule: TaxRule) -> TaxRule:
        """Insert or replace a tax rule.

        A replaced rule keeps its position in the stable order.
        """
        pass

    @abstractmethod
    def delete_tax_rule(self, rule_id: str) -> bool:
        """Remove a tax rule. Returns False if it did not exist."""
        pass
