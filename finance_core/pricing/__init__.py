"""
Pricing Module

Checkout-time computation of subtotal, discount, service fee, tax and total.
"""

from .forward_engine import ForwardPricingEngine, PriceBreakdown

__all__ = [
    "ForwardPricingEngine",
    "PriceBreakdown",
]
