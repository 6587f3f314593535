"""
Financial Computation Core

Discount evaluation and redemption, tax-schedule resolution, checkout
pricing, invoice tax reconciliation, and expense/revenue reporting for
the facility-booking platform.
"""

from .config import FinanceConfig, load_config
from .errors import ErrorKind, FinanceError
from .service import AppliedDiscount, FinancialTrackingService

__version__ = "1.0.0"

__all__ = [
    "AppliedDiscount",
    "ErrorKind",
    "FinanceConfig",
    "FinanceError",
    "FinancialTrackingService",
    "load_config",
]
