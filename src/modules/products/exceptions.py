from __future__ import annotations


class ProductNotFound(Exception):
    """No live, active product has the requested id."""
