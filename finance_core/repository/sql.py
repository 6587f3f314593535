"""
SQL Repository Module

SQLAlchemy implementation of the finance repository. Works against
PostgreSQL (psycopg) and SQLite.
"""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.engine import Engine

from ..database import (
    discounts,
    expenses,
    get_db_context,
    get_session_factory,
    tax_rules,
    transactions,
)
from ..models import (
    ApplicableTo,
    Discount,
    DiscountFilter,
    DiscountKind,
    Expense,
    ExpenseFilter,
    ExpenseStatus,
    Pagination,
    RevenueRecord,
    TaxAppliesTo,
    TaxCategory,
    TaxRule,
    TransactionFilter,
    TransactionType,
)
from .base import FinanceRepository

logger = logging.getLogger(__name__)


def _optional_decimal(value: Any) -> Decimal | None:
    return Decimal(str(value)) if value is not None else None


def _row_to_discount(row: Any) -> Discount:
    return Discount(
        id=row.id,
        tenant_id=row.tenant_id,
        name=row.name,
        description=row.description,
        kind=DiscountKind(row.kind),
        value=Decimal(str(row.value)),
        minimum_amount=_optional_decimal(row.minimum_amount),
        maximum_discount=_optional_decimal(row.maximum_discount),
        applicable_to=ApplicableTo(row.applicable_to),
        applicable_items=list(row.applicable_items or []),
        start_date=row.start_date,
        end_date=row.end_date,
        usage_limit=row.usage_limit,
        used_count=row.used_count,
        is_active=row.is_active,
        is_deleted=row.is_deleted,
        created_by=row.created_by,
        created_at=row.created_at,
    )


def _row_to_expense(row: Any) -> Expense:
    return Expense(
        id=row.id,
        tenant_id=row.tenant_id,
        category=row.category,
        subcategory=row.subcategory,
        description=row.description,
        amount=Decimal(str(row.amount)),
        currency=row.currency,
        date=row.date,
        status=ExpenseStatus(row.status),
        payment_method=row.payment_method,
        vendor=row.vendor,
        tags=list(row.tags or []),
        notes=row.notes,
        is_recurring=row.is_recurring,
        recurring_frequency=row.recurring_frequency,
        recurring_end_date=row.recurring_end_date,
        created_by=row.created_by,
        approved_by=row.approved_by,
        is_deleted=row.is_deleted,
        created_at=row.created_at,
    )


def _row_to_transaction(row: Any) -> RevenueRecord:
    return RevenueRecord(
        id=row.id,
        tenant_id=row.tenant_id,
        type=TransactionType(row.type),
        category=row.category,
        amount=Decimal(str(row.amount)),
        description=row.description,
        is_deleted=row.is_deleted,
        created_at=row.created_at,
    )


def _row_to_tax_rule(row: Any) -> TaxRule:
    return TaxRule(
        id=row.id,
        tenant_id=row.tenant_id,
        name=row.name,
        rate=Decimal(str(row.rate)),
        applies_to=TaxAppliesTo(row.applies_to),
        is_super_admin_tax=row.is_super_admin_tax,
        active=row.active,
        category=TaxCategory(row.category) if row.category else None,
    )


class SqlRepository(FinanceRepository):
    """Repository backed by a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        """Initialize the repository.

        Args:
            engine: Engine whose database holds the finance tables
        """
        self.engine = engine
        self.session_factory = get_session_factory(engine)

    # ==================== Discounts ====================

    def find_discount_by_id(self, discount_id: str) -> Discount | None:
        with get_db_context(self.session_factory) as db:
            row = db.execute(
                select(discounts).where(discounts.c.id == discount_id)
            ).first()
            return _row_to_discount(row) if row else None

    def conditional_increment_used_count(self, discount_id: str) -> bool:
        statement = (
            update(discounts)
            .where(
                discounts.c.id == discount_id,
                discounts.c.is_deleted.is_(False),
                or_(
                    discounts.c.usage_limit.is_(None),
                    discounts.c.used_count < discounts.c.usage_limit,
                ),
            )
            .values(used_count=discounts.c.used_count + 1)
        )

        with get_db_context(self.session_factory) as db:
            result = db.execute(statement)
            db.commit()
            return result.rowcount == 1

    def find_discounts(
        self,
        filters: DiscountFilter,
        page: Pagination | None = None,
    ) -> tuple[list[Discount], int]:
        conditions = [
            discounts.c.tenant_id == filters.tenant_id,
            discounts.c.is_deleted.is_(False),
        ]
        if filters.is_active is not None:
            conditions.append(discounts.c.is_active.is_(filters.is_active))
        if filters.applicable_to is not None:
            conditions.append(discounts.c.applicable_to == filters.applicable_to.value)
        if filters.start_date is not None:
            conditions.append(discounts.c.start_date >= filters.start_date)
        if filters.end_date is not None:
            conditions.append(discounts.c.start_date <= filters.end_date)

        query = select(discounts).where(and_(*conditions)).order_by(discounts.c.created_at.desc())
        if page is not None:
            query = query.offset(page.offset).limit(page.limit)

        with get_db_context(self.session_factory) as db:
            rows = db.execute(query).fetchall()
            total = db.execute(
                select(func.count()).select_from(discounts).where(and_(*conditions))
            ).scalar_one()

        return [_row_to_discount(row) for row in rows], total

    def save_discount(self, discount: Discount) -> Discount:
        data = {
            "id": discount.id,
            "tenant_id": discount.tenant_id,
            "name": discount.name,
            "description": discount.description,
            "kind": discount.kind.value,
            "value": discount.value,
            "minimum_amount": discount.minimum_amount,
            "maximum_discount": discount.maximum_discount,
            "applicable_to": discount.applicable_to.value,
            "applicable_items": list(discount.applicable_items),
            "start_date": discount.start_date,
            "end_date": discount.end_date,
            "usage_limit": discount.usage_limit,
            "used_count": discount.used_count,
            "is_active": discount.is_active,
            "is_deleted": discount.is_deleted,
            "created_by": discount.created_by,
            "created_at": discount.created_at,
        }
        with get_db_context(self.session_factory) as db:
            db.execute(discounts.insert().values(**data))
            db.commit()
        logger.debug("Stored discount %s", discount.id)
        return discount

    # ==================== Expenses ====================

    def find_expenses(
        self,
        filters: ExpenseFilter,
        page: Pagination | None = None,
    ) -> tuple[list[Expense], int]:
        conditions = [
            expenses.c.tenant_id == filters.tenant_id,
            expenses.c.is_deleted.is_(False),
        ]
        if filters.category is not None:
            conditions.append(expenses.c.category == filters.category)
        if filters.status is not None:
            conditions.append(expenses.c.status == filters.status.value)
        if filters.start_date is not None:
            conditions.append(expenses.c.date >= filters.start_date)
        if filters.end_date is not None:
            conditions.append(expenses.c.date <= filters.end_date)
        if filters.created_by is not None:
            conditions.append(expenses.c.created_by == filters.created_by)
        if filters.is_recurring is not None:
            conditions.append(expenses.c.is_recurring.is_(filters.is_recurring))

        query = select(expenses).where(and_(*conditions)).order_by(expenses.c.date.desc())
        if page is not None:
            query = query.offset(page.offset).limit(page.limit)

        with get_db_context(self.session_factory) as db:
            rows = db.execute(query).fetchall()
            total = db.execute(
                select(func.count()).select_from(expenses).where(and_(*conditions))
            ).scalar_one()

        return [_row_to_expense(row) for row in rows], total

    def save_expense(self, expense: Expense) -> Expense:
        data = {
            "id": expense.id,
            "tenant_id": expense.tenant_id,
            "category": expense.category,
            "subcategory": expense.subcategory,
            "description": expense.description,
            "amount": expense.amount,
            "currency": expense.currency,
            "date": expense.date,
            "status": expense.status.value,
            "payment_method": expense.payment_method,
            "vendor": expense.vendor,
            "tags": list(expense.tags),
            "notes": expense.notes,
            "is_recurring": expense.is_recurring,
            "recurring_frequency": expense.recurring_frequency,
            "recurring_end_date": expense.recurring_end_date,
            "created_by": expense.created_by,
            "approved_by": expense.approved_by,
            "is_deleted": expense.is_deleted,
            "created_at": expense.created_at,
        }
        with get_db_context(self.session_factory) as db:
            db.execute(expenses.insert().values(**data))
            db.commit()
        return expense

    # ==================== Transactions ====================

    def find_transactions(self, filters: TransactionFilter) -> list[RevenueRecord]:
        conditions = [
            transactions.c.tenant_id == filters.tenant_id,
            transactions.c.is_deleted.is_(False),
        ]
        if filters.type is not None:
            conditions.append(transactions.c.type == filters.type.value)
        if filters.start_date is not None:
            conditions.append(transactions.c.created_at >= filters.start_date)
        if filters.end_date is not None:
            conditions.append(transactions.c.created_at <= filters.end_date)

        query = (
            select(transactions)
            .where(and_(*conditions))
            .order_by(transactions.c.created_at.desc())
        )
        with get_db_context(self.session_factory) as db:
            rows = db.execute(query).fetchall()

        return [_row_to_transaction(row) for row in rows]

    def save_transaction(self, record: RevenueRecord) -> RevenueRecord:
        with get_db_context(self.session_factory) as db:
            db.execute(transactions.insert().values(
                id=record.id,
                tenant_id=record.tenant_id,
                type=record.type.value,
                category=record.category,
                amount=record.amount,
                description=record.description,
                is_deleted=record.is_deleted,
                created_at=record.created_at,
            ))
            db.commit()
        return record

    # ==================== Tax Rules ====================

    def find_tax_rules(self, tenant_id: str) -> list[TaxRule]:
        query = (
            select(tax_rules)
            .where(or_(tax_rules.c.is_super_admin_tax.is_(True), tax_rules.c.tenant_id == tenant_id))
            .order_by(tax_rules.c.position, tax_rules.c.id)
        )
        with get_db_context(self.session_factory) as db:
            rows = db.execute(query).fetchall()

        return [_row_to_tax_rule(row) for row in rows]

    def find_tax_rule_by_id(self, rule_id: str) -> TaxRule | None:
        with get_db_context(self.session_factory) as db:
            row = db.execute(select(tax_rules).where(tax_rules.c.id == rule_id)).first()
            return _row_to_tax_rule(row) if row else None

    def save_tax_rule(self, rule: TaxRule) -> TaxRule:
        data = {
            "tenant_id": rule.tenant_id,
            "name": rule.name,
            "rate": rule.rate,
            "applies_to": rule.applies_to.value,
            "is_super_admin_tax": rule.is_super_admin_tax,
            "active": rule.active,
            "category": rule.category.value if rule.category else None,
        }
        with get_db_context(self.session_factory) as db:
            updated = db.execute(
                update(tax_rules).where(tax_rules.c.id == rule.id).values(**data)
            )
            if updated.rowcount == 0:
                position = db.execute(
                    select(func.coalesce(func.max(tax_rules.c.position), 0))
                ).scalar_one() + 1
                db.execute(tax_rules.insert().values(id=rule.id, position=position, **data))
            db.commit()
        return rule

    def delete_tax_rule(self, rule_id: str) -> bool:
        with get_db_context(self.session_factory) as db:
            result = db.execute(delete(tax_rules).where(tax_rules.c.id == rule_id))
            db.commit()
            return result.rowcount == 1
