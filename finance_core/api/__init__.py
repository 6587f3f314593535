"""
Finance API Package

FastAPI adapter exposing the financial core to the web application.
"""

from .main import app

__all__ = ["app"]
