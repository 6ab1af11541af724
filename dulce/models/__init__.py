"""
Domain models: store entities, projection rows and shared enums.

Usage:
    from dulce.models import Product, decode_documents, project_products_index

    products = decode_documents(Product, documents)
    rows = project_products_index(products)
"""

from .enums import (
    ResourceId,
    MovementType,
    DeliveryType,
    ShipmentStatus,
    KitchenOrderStatus,
    PersonType,
)
from .entities import (
    Entity,
    Product,
    Recipe,
    RecipeSection,
    RecipeProduct,
    RecipeNested,
    Person,
    Phone,
    Address,
    Category,
    Measure,
    Movement,
    MovementItem,
    Delivery,
    decode_document,
    decode_documents,
)
from .projections import (
    RECENT_WINDOW,
    ProductIndexProjection,
    RecipeIndexProjection,
    PersonIndexProjection,
    CategoryIndexProjection,
    MeasureIndexProjection,
    MovementAggregateProjection,
    ClientRecentProjection,
    project_products_index,
    project_recipes_index,
    project_persons_index,
    project_categories_index,
    project_measures_index,
    filter_recent,
    window_start,
    aggregate_movements,
    aggregate_client_purchases,
)

__all__ = [
    # Enums
    "ResourceId",
    "MovementType",
    "DeliveryType",
    "ShipmentStatus",
    "KitchenOrderStatus",
    "PersonType",
    # Entities
    "Entity",
    "Product",
    "Recipe",
    "RecipeSection",
    "RecipeProduct",
    "RecipeNested",
    "Person",
    "Phone",
    "Address",
    "Category",
    "Measure",
    "Movement",
    "MovementItem",
    "Delivery",
    "decode_document",
    "decode_documents",
    # Projections
    "RECENT_WINDOW",
    "ProductIndexProjection",
    "RecipeIndexProjection",
    "PersonIndexProjection",
    "CategoryIndexProjection",
    "MeasureIndexProjection",
    "MovementAggregateProjection",
    "ClientRecentProjection",
    "project_products_index",
    "project_recipes_index",
    "project_persons_index",
    "project_categories_index",
    "project_measures_index",
    "filter_recent",
    "window_start",
    "aggregate_movements",
    "aggregate_client_purchases",
]
