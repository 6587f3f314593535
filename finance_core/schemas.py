"""
Input Schemas

Pydantic models validating create payloads before they become records.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from .models import (
    ApplicableTo,
    Discount,
    DiscountKind,
    Expense,
    ExpenseStatus,
    TaxAppliesTo,
    TaxCategory,
    TaxRule,
    naive_utc,
)

NonNegativeDecimal = Annotated[Decimal, Field(ge=0, max_digits=14, decimal_places=2)]
RequiredText = Annotated[str, Field(min_length=1)]
# Offsets are converted to UTC and dropped
UtcDatetime = Annotated[datetime, AfterValidator(naive_utc)]


class DiscountCreate(BaseModel):
    """Payload for creating a discount."""

    model_config = ConfigDict(str_strip_whitespace=True)

    tenant_id: RequiredText
    name: RequiredText
    description: str | None = None
    kind: DiscountKind
    value: NonNegativeDecimal
    minimum_amount: NonNegativeDecimal | None = None
    maximum_discount: NonNegativeDecimal | None = None
    applicable_to: ApplicableTo = ApplicableTo.ALL
    applicable_items: list[str] = Field(default_factory=list)
    start_date: UtcDatetime
    end_date: UtcDatetime
    usage_limit: Annotated[int, Field(ge=1)] | None = None
    is_active: bool = True
    created_by: str | None = None

    @model_validator(mode="after")
    def check_rules(self) -> "DiscountCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        if self.kind == DiscountKind.PERCENTAGE and self.value > 100:
            raise ValueError("Percentage discount must be between 0 and 100")
        return self

    def to_discount(self) -> Discount:
        return Discount(**self.model_dump())


class ExpenseCreate(BaseModel):
    """Payload for recording an expense."""

    model_config = ConfigDict(str_strip_whitespace=True)

    tenant_id: RequiredText
    category: RequiredText
    subcategory: str | None = None
    description: RequiredText
    amount: NonNegativeDecimal
    currency: Annotated[str, Field(min_length=3, max_length=3)] = "GHS"
    date: UtcDatetime
    status: ExpenseStatus = ExpenseStatus.PENDING
    payment_method: Literal["cash", "paystack", "mobile_money", "bank_transfer", "cheque"] | None = None
    vendor: str | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    is_recurring: bool = False
    recurring_frequency: Literal["daily", "weekly", "monthly", "yearly"] | None = None
    recurring_end_date: UtcDatetime | None = None
    created_by: str | None = None
    approved_by: str | None = None

    @model_validator(mode="after")
    def check_recurrence(self) -> "ExpenseCreate":
        if self.recurring_end_date and self.recurring_end_date < self.date:
            raise ValueError("recurring_end_date must not be before date")
        return self

    def to_expense(self) -> Expense:
        return Expense(**self.model_dump())


class TaxRuleCreate(BaseModel):
    """Payload for creating or replacing a tax rule."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: RequiredText
    rate: Annotated[Decimal, Field(ge=0, le=100, max_digits=7, decimal_places=4)]
    applies_to: TaxAppliesTo
    tenant_id: str | None = None
    is_super_admin_tax: bool = False
    active: bool = True
    category: TaxCategory | None = None

    @model_validator(mode="after")
    def check_scope(self) -> "TaxRuleCreate":
        if not self.is_super_admin_tax and not self.tenant_id:
            raise ValueError("tenant_id is required unless the tax is platform-wide")
        return self

    def to_tax_rule(self, rule_id: str | None = None) -> TaxRule:
        data = self.model_dump()
        if rule_id is not None:
            data["id"] = rule_id
        return TaxRule(**data)
