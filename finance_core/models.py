"""
Financial Data Model

Records consumed and produced by the financial core: discounts, tax
rules, expenses, revenue records, and the typed query filters used to
fetch them.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import uuid4


def new_id() -> str:
    return uuid4().hex


def naive_utc(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC; naive values pass through.

    Every datetime the core stores or compares is naive UTC, so values
    parsed from ISO strings with an offset or ``Z`` are normalised here.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class DiscountKind(str, Enum):
    """How a discount value is interpreted."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ApplicableTo(str, Enum):
    """Purchase scope a discount targets."""
    ALL = "all"
    FACILITY = "facility"
    INVENTORY_ITEM = "inventory_item"
    BOOKING = "booking"


class ItemKind(str, Enum):
    """Kind of item being priced or invoiced."""
    FACILITY = "facility"
    INVENTORY_ITEM = "inventory_item"
    TRANSACTION = "transaction"
    BOOKING = "booking"


class TaxAppliesTo(str, Enum):
    FACILITY = "facility"
    INVENTORY_ITEM = "inventory_item"
    TRANSACTION = "transaction"
    BOOKING = "booking"
    BOTH = "both"


class TaxCategory(str, Enum):
    """Explicit role of a tax rule in the price computation."""
    SERVICE_FEE = "service_fee"
    TAX = "tax"


class ExpenseStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    REFUND = "refund"
    PAYOUT = "payout"


@dataclass
class Discount:
    """Tenant-scoped price reduction rule."""

    tenant_id: str
    name: str
    kind: DiscountKind
    value: Decimal
    start_date: datetime
    end_date: datetime
    id: str = field(default_factory=new_id)
    description: str | None = None
    minimum_amount: Decimal | None = None
    maximum_discount: Decimal | None = None
    applicable_to: ApplicableTo = ApplicableTo.ALL
    applicable_items: list[str] = field(default_factory=list)
    usage_limit: int | None = None
    used_count: int = 0
    is_active: bool = True
    is_deleted: bool = False
    created_by: str | None = None
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        self.start_date = naive_utc(self.start_date)
        self.end_date = naive_utc(self.end_date)
        self.created_at = naive_utc(self.created_at)

    @property
    def is_exhausted(self) -> bool:
        """Whether the usage limit has been reached."""
        return self.usage_limit is not None and self.used_count >= self.usage_limit

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "description": self.description,
            "kind": self.kind.value,
            "value": float(self.value),
            "minimum_amount": float(self.minimum_amount) if self.minimum_amount is not None else None,
            "maximum_discount": float(self.maximum_discount) if self.maximum_discount is not None else None,
            "applicable_to": self.applicable_to.value,
            "applicable_items": list(self.applicable_items),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "usage_limit": self.usage_limit,
            "used_count": self.used_count,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class TaxRule:
    """Flat percentage rate scoped to a tenant or to the whole platform."""

    name: str
    rate: Decimal
    applies_to: TaxAppliesTo
    id: str = field(default_factory=new_id)
    tenant_id: str | None = None
    is_super_admin_tax: bool = False
    active: bool = True
    category: TaxCategory | None = None

    def is_service_fee(self, marker: str = "service") -> bool:
        """Whether this rule is the platform's service-fee line.

        An explicit category wins; legacy rules without one are matched on
        their display name.
        """
        if self.category is not None:
            return self.category == TaxCategory.SERVICE_FEE
        return marker.lower() in self.name.lower()

    def covers(self, item_kind: ItemKind) -> bool:
        """Whether the rule applies to the given item kind."""
        return self.applies_to == TaxAppliesTo.BOTH or self.applies_to.value == item_kind.value

    def visible_to(self, tenant_id: str) -> bool:
        return self.is_super_admin_tax or self.tenant_id == tenant_id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rate": float(self.rate),
            "applies_to": self.applies_to.value,
            "tenant_id": self.tenant_id,
            "is_super_admin_tax": self.is_super_admin_tax,
            "active": self.active,
            "category": self.category.value if self.category else None,
        }


@dataclass
class Expense:
    """Operating expense recorded by a tenant."""

    tenant_id: str
    category: str
    description: str
    amount: Decimal
    date: datetime
    id: str = field(default_factory=new_id)
    subcategory: str | None = None
    currency: str = "GHS"
    status: ExpenseStatus = ExpenseStatus.PENDING
    payment_method: str | None = None
    vendor: str | None = None
    tags: list[str] = field(default_factory=list)
    notes: str | None = None
    is_recurring: bool = False
    recurring_frequency: str | None = None  # daily, weekly, monthly, yearly
    recurring_end_date: datetime | None = None
    created_by: str | None = None
    approved_by: str | None = None
    is_deleted: bool = False
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        self.date = naive_utc(self.date)
        self.recurring_end_date = naive_utc(self.recurring_end_date)
        self.created_at = naive_utc(self.created_at)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "category": self.category,
            "subcategory": self.subcategory,
            "description": self.description,
            "amount": float(self.amount),
            "currency": self.currency,
            "date": self.date.isoformat(),
            "status": self.status.value,
            "payment_method": self.payment_method,
            "vendor": self.vendor,
            "tags": list(self.tags),
            "notes": self.notes,
            "is_recurring": self.is_recurring,
            "recurring_frequency": self.recurring_frequency,
            "recurring_end_date": self.recurring_end_date.isoformat() if self.recurring_end_date else None,
            "created_by": self.created_by,
            "approved_by": self.approved_by,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class RevenueRecord:
    """Ledger transaction; ``amount`` is the final tax-inclusive value."""

    tenant_id: str
    type: TransactionType
    category: str
    amount: Decimal
    created_at: datetime
    id: str = field(default_factory=new_id)
    description: str | None = None
    is_deleted: bool = False

    def __post_init__(self):
        self.created_at = naive_utc(self.created_at)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "type": self.type.value,
            "category": self.category,
            "amount": float(self.amount),
            "description": self.description,
            "created_at": self.created_at.isoformat(),
        }


# ==================== Query Filters ====================

@dataclass
class ExpenseFilter:
    """Expense query; ``None`` means the field is not filtered on."""

    tenant_id: str
    category: str | None = None
    status: ExpenseStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    created_by: str | None = None
    is_recurring: bool | None = None

    def __post_init__(self):
        self.start_date = naive_utc(self.start_date)
        self.end_date = naive_utc(self.end_date)

    def matches(self, expense: Expense) -> bool:
        if expense.is_deleted or expense.tenant_id != self.tenant_id:
            return False
        if self.category is not None and expense.category != self.category:
            return False
        if self.status is not None and expense.status != self.status:
            return False
        if self.start_date is not None and expense.date < self.start_date:
            return False
        if self.end_date is not None and expense.date > self.end_date:
            return False
        if self.created_by is not None and expense.created_by != self.created_by:
            return False
        if self.is_recurring is not None and expense.is_recurring != self.is_recurring:
            return False
        return True


@dataclass
class DiscountFilter:
    """Discount query; date bounds apply to the discount's start date."""

    tenant_id: str
    is_active: bool | None = None
    applicable_to: ApplicableTo | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def __post_init__(self):
        self.start_date = naive_utc(self.start_date)
        self.end_date = naive_utc(self.end_date)

    def matches(self, discount: Discount) -> bool:
        if discount.is_deleted or discount.tenant_id != self.tenant_id:
            return False
        if self.is_active is not None and discount.is_active != self.is_active:
            return False
        if self.applicable_to is not None and discount.applicable_to != self.applicable_to:
            return False
        if self.start_date is not None and discount.start_date < self.start_date:
            return False
        if self.end_date is not None and discount.start_date > self.end_date:
            return False
        return True


@dataclass
class TransactionFilter:
    tenant_id: str
    type: TransactionType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def __post_init__(self):
        self.start_date = naive_utc(self.start_date)
        self.end_date = naive_utc(self.end_date)

    def matches(self, record: RevenueRecord) -> bool:
        if record.is_deleted or record.tenant_id != self.tenant_id:
            return False
        if self.type is not None and record.type != self.type:
            return False
        if self.start_date is not None and record.created_at < self.start_date:
            return False
        if self.end_date is not None and record.created_at > self.end_date:
            return False
        return True


@dataclass
class Pagination:
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a filtered listing."""

    items: list[T]
    total: int
    current_page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit > 0 else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "total_pages": self.total_pages,
            "current_page": self.current_page,
            "limit": self.limit,
        }
