"""
API Routes Package

Contains all route modules for the finance API.
"""

from .checkout import router as checkout_router
from .discounts import router as discounts_router
from .expenses import router as expenses_router
from .reports import router as reports_router
from .taxes import router as taxes_router

__all__ = [
    "checkout_router",
    "discounts_router",
    "expenses_router",
    "reports_router",
    "taxes_router",
]
