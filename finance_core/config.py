"""
Configuration Module

Loads the financial core settings from ``finance_config.yaml`` with
built-in defaults when the file is absent.
"""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE = "finance_config.yaml"

DEFAULT_CONFIG_DIR = Path(__file__).parent.parent / "config"


@dataclass
class FinanceConfig:
    """Runtime settings for the financial core."""

    currency_code: str = "GHS"
    minor_unit: Decimal = Decimal("0.01")
    reconciliation_tolerance: Decimal = Decimal("0.01")
    service_fee_marker: str = "service"
    top_categories: int = 5
    recent_transactions: int = 10
    default_page_limit: int = 10
    max_page_limit: int = 100
    booking_categories: list[str] = field(default_factory=lambda: ["facility", "booking"])
    rental_categories: list[str] = field(default_factory=lambda: ["inventory_item", "rental"])

    @classmethod
    def from_dict(cls, data: dict) -> "FinanceConfig":
        """Build a config from the parsed YAML document."""
        defaults = cls()
        currency = data.get("currency", {}) or {}
        reconciliation = data.get("reconciliation", {}) or {}
        tax = data.get("tax", {}) or {}
        reports = data.get("reports", {}) or {}
        pagination = data.get("pagination", {}) or {}
        revenue = data.get("revenue", {}) or {}

        return cls(
            currency_code=currency.get("code", defaults.currency_code),
            minor_unit=Decimal(str(currency.get("minor_unit", defaults.minor_unit))),
            reconciliation_tolerance=Decimal(
                str(reconciliation.get("tolerance", defaults.reconciliation_tolerance))
            ),
            service_fee_marker=str(tax.get("service_fee_marker", defaults.service_fee_marker)),
            top_categories=int(reports.get("top_categories", defaults.top_categories)),
            recent_transactions=int(reports.get("recent_transactions", defaults.recent_transactions)),
            default_page_limit=int(pagination.get("default_limit", defaults.default_page_limit)),
            max_page_limit=int(pagination.get("max_limit", defaults.max_page_limit)),
            booking_categories=list(revenue.get("booking_categories", defaults.booking_categories)),
            rental_categories=list(revenue.get("rental_categories", defaults.rental_categories)),
        )


def load_config(config_dir: Path | str | None = None) -> FinanceConfig:
    """Load configuration from YAML.

    Args:
        config_dir: Directory holding finance_config.yaml. Falls back to
            ``FINANCE_CONFIG_DIR`` and then to the repository ``config`` dir.

    Returns:
        FinanceConfig
    """
    if config_dir is None:
        config_dir = os.getenv("FINANCE_CONFIG_DIR") or DEFAULT_CONFIG_DIR

    config_file = Path(config_dir) / CONFIG_FILE
    if not config_file.exists():
        logger.debug("No %s in %s, using defaults", CONFIG_FILE, config_dir)
        return FinanceConfig()

    with open(config_file) as f:
        data = yaml.safe_load(f) or {}

    return FinanceConfig.from_dict(data)
