"""
Repository Module

Storage interface consumed by the financial core and its in-memory and
SQL implementations.
"""

from .base import FinanceRepository
from .memory import InMemoryRepository
from .sql import SqlRepository

__all__ = [
    "FinanceRepository",
    "InMemoryRepository",
    "SqlRepository",
]
