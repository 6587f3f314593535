"""
Tests for Tax Module

Tests for tax schedule resolution and backward tax reconciliation.
"""

import logging
from decimal import Decimal

import pytest

from finance_core.errors import ErrorKind, ValidationError
from finance_core.models import ItemKind, TaxAppliesTo, TaxCategory, TaxRule
from finance_core.repository.memory import InMemoryRepository
from finance_core.tax import BackwardTaxReconciler, TaxSchedule, normalize_rate

from .conftest import OTHER_TENANT, TENANT


class TestTaxSchedule:
    """Tests for tax schedule resolution."""

    @pytest.fixture
    def schedule(self, seeded_repository):
        return TaxSchedule(seeded_repository)

    def test_resolves_facility_rules(self, schedule):
        """Facility checkout picks up 'both' and 'facility' rules."""
        rules = schedule.resolve_applicable(TENANT, ItemKind.FACILITY)

        assert [r.id for r in rules] == ["tax-service", "tax-vat"]

    def test_resolves_inventory_rules(self, schedule):
        rules = schedule.resolve_applicable(TENANT, ItemKind.INVENTORY_ITEM)

        assert [r.id for r in rules] == ["tax-service", "tax-rental"]

    def test_transaction_kind_only_gets_both_rules(self, schedule):
        rules = schedule.resolve_applicable(TENANT, "transaction")

        assert [r.id for r in rules] == ["tax-service"]

    def test_excludes_inactive_and_foreign_rules(self, schedule):
        """Inactive rules and other tenants' rules never apply."""
        ids = {r.id for r in schedule.resolve_applicable(TENANT, ItemKind.BOOKING)}

        assert "tax-inactive" not in ids
        assert "tax-other-tenant" not in ids

    def test_global_rule_applies_to_every_tenant(self, seeded_repository):
        seeded_repository.save_tax_rule(TaxRule(
            id="tax-global",
            name="Platform Levy",
            rate=Decimal("1"),
            applies_to=TaxAppliesTo.BOTH,
            is_super_admin_tax=True,
        ))
        schedule = TaxSchedule(seeded_repository)

        assert "tax-global" in {r.id for r in schedule.resolve_applicable(TENANT, "facility")}
        assert "tax-global" in {r.id for r in schedule.resolve_applicable(OTHER_TENANT, "facility")}

    def test_same_inputs_same_rules(self, schedule):
        first = schedule.resolve_applicable(TENANT, ItemKind.FACILITY)
        second = schedule.resolve_applicable(TENANT, ItemKind.FACILITY)

        assert [r.id for r in first] == [r.id for r in second]

    def test_unknown_item_kind(self, schedule):
        with pytest.raises(ValidationError) as exc_info:
            schedule.resolve_applicable(TENANT, "spaceship")

        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert exc_info.value.details["field"] == "item_kind"


class TestServiceFeeDetection:
    """Tests for identifying the service-fee rule."""

    def test_name_marker_is_case_insensitive(self):
        rule = TaxRule(name="SERVICE Charge", rate=Decimal("5"), applies_to=TaxAppliesTo.BOTH)

        assert rule.is_service_fee() is True

    def test_explicit_category_wins_over_name(self):
        commission = TaxRule(
            name="Platform Commission",
            rate=Decimal("5"),
            applies_to=TaxAppliesTo.BOTH,
            category=TaxCategory.SERVICE_FEE,
        )
        service_tax = TaxRule(
            name="Service Tax",
            rate=Decimal("2"),
            applies_to=TaxAppliesTo.BOTH,
            category=TaxCategory.TAX,
        )

        assert commission.is_service_fee() is True
        assert service_tax.is_service_fee() is False


class TestBackwardTaxReconciler:
    """Tests for recovering a breakdown from a tax-inclusive total."""

    @pytest.fixture
    def reconciler(self, seeded_repository):
        return BackwardTaxReconciler(TaxSchedule(seeded_repository))

    def test_vat_only_reconciliation(self, reconciler):
        """Service charge is excluded, so the subtotal includes the fee."""
        result = reconciler.reconcile(Decimal("1207.5"), TENANT, ItemKind.FACILITY)

        assert result.subtotal == Decimal("1050.00")
        assert result.total_tax == Decimal("157.50")
        assert result.total == Decimal("1207.5")
        assert [line.rule.id for line in result.lines] == ["tax-vat"]
        assert result.lines[0].amount == Decimal("157.50")
        assert result.is_consistent

    def test_no_applicable_rules(self, reconciler):
        """With only a service rule there is nothing to reconcile."""
        result = reconciler.reconcile("480.00", TENANT, ItemKind.TRANSACTION)

        assert result.subtotal == Decimal("480.00")
        assert result.total_tax == Decimal("0")
        assert result.lines == []
        assert result.total == Decimal("480.00")

    def test_subtotal_plus_tax_matches_total(self, reconciler):
        result = reconciler.reconcile("2469.99", TENANT, ItemKind.FACILITY)

        assert abs(result.subtotal + result.total_tax - Decimal("2469.99")) < Decimal("0.01")

    def test_line_rounding_mismatch_prefers_line_sum(self, caplog):
        """Per-line rounding drift is reported and the line sum wins."""
        repository = InMemoryRepository()
        for rule_id, name in [("levy-a", "Levy A"), ("levy-b", "Levy B")]:
            repository.save_tax_rule(TaxRule(
                id=rule_id,
                name=name,
                rate=Decimal("5"),
                applies_to=TaxAppliesTo.BOOKING,
                tenant_id=TENANT,
            ))
        reconciler = BackwardTaxReconciler(TaxSchedule(repository))

        with caplog.at_level(logging.WARNING):
            result = reconciler.reconcile(Decimal("100"), TENANT, ItemKind.BOOKING)

        assert result.subtotal == Decimal("90.91")
        assert [line.amount for line in result.lines] == [Decimal("4.55"), Decimal("4.55")]
        assert result.total_tax == Decimal("9.10")
        assert result.mismatch is not None
        assert result.mismatch.kind == ErrorKind.RECONCILIATION_MISMATCH
        assert "Reconciliation mismatch" in caplog.text

    def test_categorised_service_fee_is_excluded(self):
        repository = InMemoryRepository()
        repository.save_tax_rule(TaxRule(
            name="Platform Commission",
            rate=Decimal("10"),
            applies_to=TaxAppliesTo.BOTH,
            tenant_id=TENANT,
            category=TaxCategory.SERVICE_FEE,
        ))
        repository.save_tax_rule(TaxRule(
            name="NHIL",
            rate=Decimal("2.5"),
            applies_to=TaxAppliesTo.BOTH,
            tenant_id=TENANT,
            category=TaxCategory.TAX,
        ))
        reconciler = BackwardTaxReconciler(TaxSchedule(repository))

        result = reconciler.reconcile(Decimal("205.00"), TENANT, "booking")

        assert result.subtotal == Decimal("200.00")
        assert result.total_tax == Decimal("5.00")
        assert [line.rule.name for line in result.lines] == ["NHIL"]

    def test_non_numeric_total(self, reconciler):
        with pytest.raises(ValidationError):
            reconciler.reconcile("twelve", TENANT, ItemKind.FACILITY)

    def test_to_dict(self, reconciler):
        data = reconciler.reconcile(Decimal("1207.5"), TENANT, ItemKind.FACILITY).to_dict()

        assert data["subtotal"] == 1050.0
        assert data["total_tax"] == 157.5
        assert data["per_rule"][0]["name"] == "VAT"
        assert data["mismatch"] is None


class TestRateNormalization:
    """Rates are coerced to Decimal once, without touching stored rules."""

    @pytest.fixture
    def stored_rules(self):
        return [
            TaxRule(id="vat-float", name="VAT", rate=15.0, applies_to=TaxAppliesTo.BOTH, tenant_id=TENANT),
            TaxRule(id="levy-text", name="Levy", rate="2.5", applies_to=TaxAppliesTo.BOTH, tenant_id=TENANT),
            TaxRule(id="bad-rate", name="Broken", rate="n/a", applies_to=TaxAppliesTo.BOTH, tenant_id=TENANT),
            TaxRule(id="negative", name="Rebate", rate=Decimal("-3"), applies_to=TaxAppliesTo.BOTH, tenant_id=TENANT),
        ]

    @pytest.fixture
    def schedule(self, repository, stored_rules, monkeypatch):
        monkeypatch.setattr(repository, "find_tax_rules", lambda tenant_id: stored_rules)
        return TaxSchedule(repository)

    def test_unusable_rates_are_dropped(self, schedule):
        rules = schedule.resolve_applicable(TENANT, ItemKind.BOOKING)

        assert [r.id for r in rules] == ["vat-float", "levy-text"]
        assert [r.rate for r in rules] == [Decimal("15.0"), Decimal("2.5")]

    def test_stored_rules_are_not_modified(self, schedule, stored_rules):
        BackwardTaxReconciler(schedule).reconcile("117.50", TENANT, ItemKind.BOOKING)

        assert stored_rules[0].rate == 15.0
        assert isinstance(stored_rules[0].rate, float)
        assert stored_rules[1].rate == "2.5"

    def test_normalize_rate(self):
        rule = TaxRule(name="VAT", rate=12.5, applies_to=TaxAppliesTo.BOTH)

        normalized = normalize_rate(rule)

        assert normalized.rate == Decimal("12.5")
        assert normalized is not rule
        assert normalize_rate(TaxRule(name="x", rate=None, applies_to=TaxAppliesTo.BOTH)) is None
