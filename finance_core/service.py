"""
Financial Tracking Service

Operations consumed by the web application's controllers: expenses,
discounts, checkout pricing, invoice reconciliation, and reports.
Every operation returns a plain result object or raises a FinanceError.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .config import FinanceConfig
from .discount.evaluator import DiscountEvaluator, Purchase
from .discount.ledger import DiscountLedger
from .errors import NotFoundError, ValidationError
from .models import (
    Discount,
    DiscountFilter,
    Expense,
    ExpenseFilter,
    ExpenseStatus,
    ItemKind,
    Page,
    Pagination,
    TaxAppliesTo,
    TaxRule,
    TransactionFilter,
    TransactionType,
    naive_utc,
)
from .money import to_decimal
from .pricing.forward_engine import ForwardPricingEngine, PriceBreakdown
from .reports.aggregation import (
    AggregationReporter,
    DashboardSummary,
    ExpenseStatistics,
    ProfitAndLoss,
)
from .repository.base import FinanceRepository
from .schemas import DiscountCreate, ExpenseCreate, TaxRuleCreate
from .tax.reconciler import BackwardTaxReconciler, TaxBreakdown
from .tax.schedule import TaxSchedule

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1)


@dataclass
class AppliedDiscount:
    """Outcome of applying a discount to an amount."""

    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    discount: Discount

    def to_dict(self) -> dict:
        return {
            "original_amount": float(self.original_amount),
            "discount_amount": float(self.discount_amount),
            "final_amount": float(self.final_amount),
            "discount": self.discount.to_dict(),
        }


def _parse(schema: type[BaseModel], data: Any) -> Any:
    """Validate a payload, converting pydantic errors into ValidationError."""
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError(f"Invalid {schema.__name__} payload", errors=errors) from None


def _require_tenant(tenant_id: str | None) -> str:
    if not tenant_id:
        raise ValidationError("Tenant id is required", field="tenant_id")
    return tenant_id


class FinancialTrackingService:
    """Facade wiring the financial core components to a repository."""

    def __init__(
        self,
        repository: FinanceRepository,
        config: FinanceConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the service.

        Args:
            repository: Storage collaborator
            config: Finance configuration (defaults when omitted)
            clock: Source of the current time
        """
        self.repository = repository
        self.config = config or FinanceConfig()
        self.clock = clock

        self.schedule = TaxSchedule(repository)
        self.ledger = DiscountLedger(repository)
        self.evaluator = DiscountEvaluator(self.ledger)
        self.pricing = ForwardPricingEngine(self.schedule, self.evaluator, self.config)
        self.reconciler = BackwardTaxReconciler(self.schedule, self.config)
        self.reporter = AggregationReporter(self.config)

    def _now(self) -> datetime:
        return naive_utc(self.clock())

    def _pagination(self, pagination: Pagination | None) -> Pagination:
        if pagination is None:
            return Pagination(page=1, limit=self.config.default_page_limit)
        if pagination.page < 1 or pagination.limit < 1:
            raise ValidationError(
                "Page and limit must be positive",
                page=pagination.page,
                limit=pagination.limit,
            )
        return Pagination(page=pagination.page, limit=min(pagination.limit, self.config.max_page_limit))

    def _load_discount(self, discount_id: str) -> Discount:
        discount = self.repository.find_discount_by_id(discount_id)
        if discount is None or discount.is_deleted:
            raise NotFoundError("Discount not found", discount_id=discount_id)
        return discount

    # ==================== Expenses ====================

    def create_expense(self, data: dict | ExpenseCreate) -> Expense:
        """Validate and store a new expense."""
        payload = data if isinstance(data, ExpenseCreate) else _parse(ExpenseCreate, data)
        expense = self.repository.save_expense(payload.to_expense())
        logger.info("Created expense %s (%s %s) for tenant %s",
                    expense.id, expense.category, expense.amount, expense.tenant_id)
        return expense

    def get_expenses(
        self,
        filters: ExpenseFilter,
        pagination: Pagination | None = None,
    ) -> Page[Expense]:
        """List non-deleted expenses, newest first."""
        _require_tenant(filters.tenant_id)
        page = self._pagination(pagination)
        items, total = self.repository.find_expenses(filters, page)
        return Page(items=items, total=total, current_page=page.page, limit=page.limit)

    def get_expense_statistics(
        self,
        tenant_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> ExpenseStatistics:
        """Statistics over the tenant's approved expenses in the date range."""
        _require_tenant(tenant_id)
        expenses, _ = self.repository.find_expenses(ExpenseFilter(
            tenant_id=tenant_id,
            status=ExpenseStatus.APPROVED,
            start_date=start_date,
            end_date=end_date,
        ))
        return self.reporter.expense_statistics(expenses)

    # ==================== Discounts ====================

    def create_discount(self, data: dict | DiscountCreate) -> Discount:
        """Validate and store a new discount with no redemptions."""
        payload = data if isinstance(data, DiscountCreate) else _parse(DiscountCreate, data)
        discount = payload.to_discount()
        discount.used_count = 0
        discount.created_at = self._now()
        self.repository.save_discount(discount)
        logger.info("Created discount %s '%s' for tenant %s",
                    discount.id, discount.name, discount.tenant_id)
        return discount

    def get_discounts(
        self,
        filters: DiscountFilter,
        pagination: Pagination | None = None,
    ) -> Page[Discount]:
        _require_tenant(filters.tenant_id)
        page = self._pagination(pagination)
        items, total = self.repository.find_discounts(filters, page)
        return Page(items=items, total=total, current_page=page.page, limit=page.limit)

    def apply_discount(
        self,
        discount_id: str | None,
        amount: Decimal | float | str | None,
        applicable_item_id: str | None = None,
    ) -> AppliedDiscount:
        """Apply a discount to an amount, consuming one redemption.

        Raises:
            ValidationError: Missing discount id or amount, or negative amount
            NotFoundError: Unknown or deleted discount
            FinanceError: Any failed discount rule, including a lost race
                for the last redemption
        """
        if not discount_id:
            raise ValidationError("Discount id is required", field="discount_id")
        if amount is None:
            raise ValidationError("Amount is required", field="amount")
        try:
            amount = to_decimal(amount)
        except InvalidOperation:
            raise ValidationError("Amount must be numeric", field="amount") from None
        if amount < 0:
            raise ValidationError("Amount cannot be negative", field="amount")

        discount = self._load_discount(discount_id)
        evaluation = self.evaluator.evaluate(
            discount,
            Purchase(amount=amount, applicable_item_id=applicable_item_id, now=self._now()),
        )

        return AppliedDiscount(
            original_amount=evaluation.original_amount,
            discount_amount=evaluation.discount_amount,
            final_amount=evaluation.final_amount,
            discount=self.repository.find_discount_by_id(discount_id) or discount,
        )

    # ==================== Tax Rules ====================

    def create_tax_rule(self, data: dict | TaxRuleCreate) -> TaxRule:
        """Validate and store a tenant or platform-wide tax rule."""
        payload = data if isinstance(data, TaxRuleCreate) else _parse(TaxRuleCreate, data)
        rule = self.repository.save_tax_rule(payload.to_tax_rule())
        logger.info("Created tax rule %s '%s' (%s%%) for tenant %s",
                    rule.id, rule.name, rule.rate, rule.tenant_id or "<platform>")
        return rule

    def get_tax_rules(
        self,
        tenant_id: str,
        active: bool | None = None,
        applies_to: TaxAppliesTo | None = None,
    ) -> list[TaxRule]:
        """Tax rules visible to the tenant, including platform-wide ones."""
        _require_tenant(tenant_id)
        return [
            rule for rule in self.repository.find_tax_rules(tenant_id)
            if (active is None or rule.active == active)
            and (applies_to is None or rule.applies_to == applies_to)
        ]

    def get_tax_rule(self, rule_id: str) -> TaxRule:
        rule = self.repository.find_tax_rule_by_id(rule_id)
        if rule is None:
            raise NotFoundError("Tax rule not found", rule_id=rule_id)
        return rule

    def update_tax_rule(self, rule_id: str, data: dict) -> TaxRule:
        """Apply a partial update; the merged rule is validated like a new one."""
        current = self.get_tax_rule(rule_id)
        merged = {
            "name": current.name,
            "rate": current.rate,
            "applies_to": current.applies_to,
            "tenant_id": current.tenant_id,
            "is_super_admin_tax": current.is_super_admin_tax,
            "active": current.active,
            "category": current.category,
        }
        merged.update(data)
        rule = self.repository.save_tax_rule(_parse(TaxRuleCreate, merged).to_tax_rule(rule_id))
        logger.info("Updated tax rule %s", rule_id)
        return rule

    def delete_tax_rule(self, rule_id: str) -> None:
        if not self.repository.delete_tax_rule(rule_id):
            raise NotFoundError("Tax rule not found", rule_id=rule_id)
        logger.info("Deleted tax rule %s", rule_id)

    # ==================== Checkout & Invoices ====================

    def price_checkout(
        self,
        base_price: Decimal | float | str,
        quantity_or_days: Decimal | int | str,
        tenant_id: str,
        item_kind: ItemKind | str,
        discount_id: str | None = None,
        applicable_item_id: str | None = None,
        is_taxable: bool = True,
    ) -> PriceBreakdown:
        """Price a checkout, redeeming the discount when one is given."""
        _require_tenant(tenant_id)
        discount = self._load_discount(discount_id) if discount_id else None
        return self.pricing.price_checkout(
            base_price,
            quantity_or_days,
            tenant_id,
            item_kind,
            discount=discount,
            applicable_item_id=applicable_item_id,
            now=self._now(),
            is_taxable=is_taxable,
        )

    def reconcile_invoice(
        self,
        stored_total: Decimal | float | str,
        tenant_id: str,
        item_kind: ItemKind | str,
    ) -> TaxBreakdown:
        """Breakdown of a stored tax-inclusive total for invoice display."""
        _require_tenant(tenant_id)
        return self.reconciler.reconcile(stored_total, tenant_id, item_kind)

    # ==================== Reports ====================

    def get_profit_and_loss(
        self,
        tenant_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> ProfitAndLoss:
        _require_tenant(tenant_id)
        revenue = self.repository.find_transactions(TransactionFilter(
            tenant_id=tenant_id,
            type=TransactionType.INCOME,
            start_date=start_date,
            end_date=end_date,
        ))
        expenses, _ = self.repository.find_expenses(ExpenseFilter(
            tenant_id=tenant_id,
            status=ExpenseStatus.APPROVED,
            start_date=start_date,
            end_date=end_date,
        ))
        return self.reporter.profit_and_loss(
            revenue,
            expenses,
            period_start=naive_utc(start_date) or EPOCH,
            period_end=naive_utc(end_date) or self._now(),
        )

    def get_financial_dashboard(self, tenant_id: str) -> DashboardSummary:
        """Current-month figures, year-to-date trends and recent transactions."""
        _require_tenant(tenant_id)
        now = self._now()
        year_start = datetime(now.year, 1, 1)

        revenue = self.repository.find_transactions(TransactionFilter(
            tenant_id=tenant_id,
            type=TransactionType.INCOME,
            start_date=year_start,
        ))
        expenses, _ = self.repository.find_expenses(ExpenseFilter(
            tenant_id=tenant_id,
            status=ExpenseStatus.APPROVED,
            start_date=year_start,
        ))

        summary = self.reporter.dashboard_summary(revenue, expenses, today=now.date())
        recent = self.repository.find_transactions(TransactionFilter(tenant_id=tenant_id))
        summary.recent_transactions = recent[:self.config.recent_transactions]
        return summary
