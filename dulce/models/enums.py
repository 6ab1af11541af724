"""
Shared enums.

Values match the strings stored in the document store and the resource
identifiers exposed to callers.
"""

import enum


class ResourceId(str, enum.Enum):
    """Stable identifiers of the cacheable read views."""
    PRODUCTS_INDEX = "products#index"
    RECIPES_INDEX = "recipes#index"
    PERSONS_INDEX = "persons#index"
    CATEGORIES_INDEX = "categories#index"
    MEASURES_INDEX = "measures#index"
    MOVEMENTS_LAST_30D = "movements#last-30d"
    CLIENTS_RECENT = "clients#recent"
    VERSION_MANIFEST = "version-manifest"


class MovementType(str, enum.Enum):
    PURCHASE = "PURCHASE"
    SALE = "SALE"


class DeliveryType(str, enum.Enum):
    SHIPMENT = "SHIPMENT"
    PICKUP = "PICKUP"


class ShipmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    DELIVERED = "DELIVERED"
    CANCELED = "CANCELED"


class KitchenOrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PREPARING = "PREPARING"
    READY = "READY"
    CANCELED = "CANCELED"
    DONE = "DONE"


class PersonType(str, enum.Enum):
    CLIENT = "CLIENT"
    PROVIDER = "PROVIDER"
