"""Pricing domain exceptions.

Raised by the pricing engine when its inputs are unusable.  Missing or
undeliverable products are *not* exceptions: those lines are dropped and
reported in ``OrderSummary.dropped`` (see ``DropReason``).
"""

from __future__ import annotations


class InvalidCartLine(Exception):
    """A cart line has no product reference or a non-positive quantity."""


class InvalidProductData(Exception):
    """A product snapshot violates a data-integrity rule.

    Negative price, negative stock or a GST rate outside 0–100 are upstream
    catalog failures; pricing refuses to produce a total from them.
    """


class ConfigurationMissing(Exception):
    """Delivery-fee configuration was not supplied to the engine."""
