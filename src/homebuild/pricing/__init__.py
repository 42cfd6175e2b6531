"""Pricing calculator exports."""

from .calculator import DEFAULT_TAX_POLICY, compute_pricing, price_selections

__all__ = ["DEFAULT_TAX_POLICY", "compute_pricing", "price_selections"]
