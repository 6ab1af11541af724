"""
Detail Tools

Uncached full-record lookups: product, recipe with ingredients,
audit-logged person details, movements, kitchen orders and client orders.
"""

from .details import (
    DetailTools,
    ProductDetailArgs,
    RecipeDetailArgs,
    PersonDetailArgs,
    MovementArgs,
    KitchenOrdersArgs,
    ClientOrdersArgs,
    DEFAULT_PURPOSE,
    DEFAULT_UNIT,
    PII_FIELDS,
    margin,
    stock_status,
)

__all__ = [
    "DetailTools",
    "ProductDetailArgs",
    "RecipeDetailArgs",
    "PersonDetailArgs",
    "MovementArgs",
    "KitchenOrdersArgs",
    "ClientOrdersArgs",
    "DEFAULT_PURPOSE",
    "DEFAULT_UNIT",
    "PII_FIELDS",
    "margin",
    "stock_status",
]
