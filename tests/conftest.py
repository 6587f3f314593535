"""
Pytest configuration and fixtures for the financial core tests.
"""

import os
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

from finance_core.models import (
    ApplicableTo,
    Discount,
    DiscountKind,
    Expense,
    ExpenseStatus,
    RevenueRecord,
    TaxAppliesTo,
    TaxCategory,
    TaxRule,
    TransactionType,
)
from finance_core.repository.memory import InMemoryRepository
from finance_core.service import FinancialTrackingService

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

TENANT = "tenant-accra"
OTHER_TENANT = "tenant-kumasi"
NOW = datetime(2025, 6, 15, 12, 0, 0)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def config_dir() -> Path:
    """Return the config directory path."""
    return PROJECT_ROOT / "config"


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def repository() -> InMemoryRepository:
    """Empty in-memory repository."""
    return InMemoryRepository()


@pytest.fixture
def tax_rules() -> list[TaxRule]:
    """Service charge and VAT for the tenant, plus rules that must not apply."""
    return [
        TaxRule(
            id="tax-service",
            name="Service Charge",
            rate=Decimal("5"),
            applies_to=TaxAppliesTo.BOTH,
            tenant_id=TENANT,
        ),
        TaxRule(
            id="tax-vat",
            name="VAT",
            rate=Decimal("15"),
            applies_to=TaxAppliesTo.FACILITY,
            tenant_id=TENANT,
        ),
        TaxRule(
            id="tax-inactive",
            name="Tourism Levy",
            rate=Decimal("1"),
            applies_to=TaxAppliesTo.BOTH,
            tenant_id=TENANT,
            active=False,
        ),
        TaxRule(
            id="tax-other-tenant",
            name="City Levy",
            rate=Decimal("3"),
            applies_to=TaxAppliesTo.BOTH,
            tenant_id=OTHER_TENANT,
        ),
        TaxRule(
            id="tax-rental",
            name="Rental Levy",
            rate=Decimal("2.5"),
            applies_to=TaxAppliesTo.INVENTORY_ITEM,
            tenant_id=TENANT,
        ),
    ]


@pytest.fixture
def seeded_repository(repository: InMemoryRepository, tax_rules: list[TaxRule]) -> InMemoryRepository:
    """Repository holding the tenant's tax schedule."""
    for rule in tax_rules:
        repository.save_tax_rule(rule)
    return repository


@pytest.fixture
def make_discount():
    """Factory for discounts valid around NOW."""
    def factory(**overrides) -> Discount:
        data = {
            "tenant_id": TENANT,
            "name": "Early Bird",
            "kind": DiscountKind.PERCENTAGE,
            "value": Decimal("10"),
            "start_date": NOW - timedelta(days=10),
            "end_date": NOW + timedelta(days=10),
            "applicable_to": ApplicableTo.ALL,
        }
        data.update(overrides)
        return Discount(**data)

    return factory


@pytest.fixture
def sample_expenses() -> list[Expense]:
    """Approved, pending and deleted expenses across several months."""
    return [
        Expense(
            tenant_id=TENANT,
            category="utilities",
            description="Electricity",
            amount=Decimal("300.00"),
            date=datetime(2025, 4, 3),
            status=ExpenseStatus.APPROVED,
        ),
        Expense(
            tenant_id=TENANT,
            category="maintenance",
            description="Pool cleaning",
            amount=Decimal("150.50"),
            date=datetime(2025, 5, 20),
            status=ExpenseStatus.APPROVED,
        ),
        Expense(
            tenant_id=TENANT,
            category="utilities",
            description="Water",
            amount=Decimal("99.50"),
            date=datetime(2025, 6, 2),
            status=ExpenseStatus.APPROVED,
        ),
        Expense(
            tenant_id=TENANT,
            category="salaries",
            description="Groundskeeper",
            amount=Decimal("1200.00"),
            date=datetime(2025, 6, 10),
            status=ExpenseStatus.APPROVED,
        ),
        Expense(
            tenant_id=TENANT,
            category="marketing",
            description="Flyers",
            amount=Decimal("80.00"),
            date=datetime(2025, 6, 11),
            status=ExpenseStatus.PENDING,
        ),
        Expense(
            tenant_id=TENANT,
            category="marketing",
            description="Billboard (deleted)",
            amount=Decimal("900.00"),
            date=datetime(2025, 6, 12),
            status=ExpenseStatus.APPROVED,
            is_deleted=True,
        ),
    ]


@pytest.fixture
def sample_revenue() -> list[RevenueRecord]:
    """Income and non-income transactions."""
    return [
        RevenueRecord(
            tenant_id=TENANT,
            type=TransactionType.INCOME,
            category="facility",
            amount=Decimal("1207.50"),
            created_at=datetime(2025, 6, 5, 9, 30),
        ),
        RevenueRecord(
            tenant_id=TENANT,
            type=TransactionType.INCOME,
            category="inventory_item",
            amount=Decimal("250.00"),
            created_at=datetime(2025, 6, 8, 14, 0),
        ),
        RevenueRecord(
            tenant_id=TENANT,
            type=TransactionType.INCOME,
            category="booking",
            amount=Decimal("500.00"),
            created_at=datetime(2025, 3, 1, 10, 0),
        ),
        RevenueRecord(
            tenant_id=TENANT,
            type=TransactionType.INCOME,
            category="subscription",
            amount=Decimal("42.50"),
            created_at=datetime(2025, 6, 9, 8, 0),
        ),
        RevenueRecord(
            tenant_id=TENANT,
            type=TransactionType.REFUND,
            category="facility",
            amount=Decimal("100.00"),
            created_at=datetime(2025, 6, 10, 8, 0),
        ),
    ]


@pytest.fixture
def service(seeded_repository: InMemoryRepository) -> FinancialTrackingService:
    """Service over the seeded repository with a fixed clock."""
    return FinancialTrackingService(seeded_repository, clock=lambda: NOW)


# Environment setup for tests
@pytest.fixture(autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
    yield
