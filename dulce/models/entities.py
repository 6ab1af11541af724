"""
Entity Schemas

Typed views of the raw documents in each collection. Documents are
decoded here, at the store boundary, so nothing downstream deals with
missing keys or wrong types: optional fields take defaults (stored nulls
included) and documents that cannot be decoded are skipped with a warning.

Field names follow the store's camelCase on input (aliases) and are
snake_case in Python.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from dulce.models.enums import (
    DeliveryType,
    KitchenOrderStatus,
    MovementType,
    ShipmentStatus,
)
from dulce.utils.dates import to_datetime


logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Entity")


class StoreModel(BaseModel):
    """Base for stored objects, top-level or nested."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _null_is_missing(cls, data: Any) -> Any:
        # A stored null falls back to the field default
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Entity(StoreModel):
    """Base for all store entities."""

    id: str


# =============================================================================
# CATALOG ENTITIES
# =============================================================================

class Measure(Entity):
    name: str = ""
    unit: str = ""


class Category(Entity):
    name: str = ""


class Product(Entity):
    name: str
    quantity: float = 0
    minimum_quantity: float = 0
    cost: float = 0
    sale_price: float = 0
    measure: Optional[str] = None


class RecipeProduct(StoreModel):
    product_id: str
    quantity: float = 0


class RecipeSection(StoreModel):
    id: str = ""
    name: str = ""
    products: List[RecipeProduct] = Field(default_factory=list)


class RecipeNested(StoreModel):
    recipe_id: str
    quantity: float = 0


class Recipe(Entity):
    name: str
    cost: float = 0
    on_sale: bool = False
    on_sale_query: bool = False
    customizable: bool = False
    sale_price: float = 0
    suggested_price: float = 0
    profit_percentage: float = 0
    unit: float = 1
    images: List[str] = Field(default_factory=list)
    description: str = ""
    detail: str = ""
    categories: List[str] = Field(default_factory=list)
    sections: List[RecipeSection] = Field(default_factory=list)
    recipes: List[RecipeNested] = Field(default_factory=list)


# =============================================================================
# PERSONS
# =============================================================================

class Phone(StoreModel):
    phone_number_prefix: str = ""
    phone_number_suffix: str = ""


class Address(StoreModel):
    id: str = ""
    label: str = ""
    formatted_address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class Person(Entity):
    """
    A client or provider. Phones and addresses are PII and must never
    reach an index projection.
    """
    name: str = ""
    last_name: str = ""
    type: str = "CLIENT"
    phones: List[Phone] = Field(default_factory=list)
    addresses: List[str] = Field(default_factory=list)

    @field_validator("phones", mode="before")
    @classmethod
    def _loose_phones(cls, value: Any) -> List[Any]:
        """Plain strings become a suffix-only phone; other shapes are dropped."""
        if not isinstance(value, list):
            return []
        phones = []
        for item in value:
            if isinstance(item, str):
                phones.append({"phoneNumberSuffix": item})
            elif isinstance(item, (dict, Phone)):
                phones.append(item)
        return phones

    @field_validator("addresses", mode="before")
    @classmethod
    def _loose_addresses(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.last_name}".strip()


# =============================================================================
# MOVEMENTS
# =============================================================================

class MovementItem(StoreModel):
    collection: str = ""
    collection_id: str = ""
    custom_name: Optional[str] = None
    cost: float = 0
    quantity: float = 0


class ShipmentDetails(StoreModel):
    address_id: str = ""
    formatted_address: str = ""
    lat: float = 0
    lng: float = 0
    cost: float = 0
    calculated_cost: float = 0


class Delivery(StoreModel):
    type: DeliveryType
    date: Optional[datetime] = None
    status: ShipmentStatus = ShipmentStatus.PENDING
    shipment: Optional[ShipmentDetails] = None

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Optional[datetime]:
        return None if value is None else to_datetime(value)


class Movement(Entity):
    type: Optional[MovementType] = None
    person_id: str = ""
    movement_date: datetime
    total_amount: float = 0
    items: List[MovementItem] = Field(default_factory=list)
    delivery: Optional[Delivery] = None
    delta: Dict[str, float] = Field(default_factory=dict)
    applied_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    detail: str = ""
    kitchen_order_status: Optional[KitchenOrderStatus] = None
    reference_images: List[str] = Field(default_factory=list)
    is_stock: Optional[bool] = None

    @field_validator("movement_date", mode="before")
    @classmethod
    def _coerce_movement_date(cls, value: Any) -> datetime:
        if value is None:
            raise ValueError("movementDate is required")
        return to_datetime(value)

    @field_validator("applied_at", "created_at", mode="before")
    @classmethod
    def _coerce_optional_dates(cls, value: Any) -> Optional[datetime]:
        return None if value is None else to_datetime(value)

    @field_validator("type", mode="before")
    @classmethod
    def _unknown_type_is_none(cls, value: Any) -> Optional[str]:
        if isinstance(value, MovementType):
            return value.value
        if isinstance(value, str) and value.upper() in MovementType.__members__:
            return value.upper()
        # Unknown or missing types aggregate under "unknown"
        return None


# =============================================================================
# DECODING
# =============================================================================

def decode_document(model: Type[E], doc_id: str, data: Dict[str, Any]) -> E:
    """Decode one raw document. Raises pydantic's ValidationError."""
    return model.model_validate({**data, "id": doc_id})


def decode_documents(model: Type[E], documents: Iterable[Any]) -> List[E]:
    """
    Decode a batch of raw documents, skipping malformed ones.

    Each document must expose `id` and `data` (see dulce.store.Document).
    """
    decoded: List[E] = []
    skipped = 0

    for doc in documents:
        try:
            decoded.append(decode_document(model, doc.id, doc.data))
        except PydanticValidationError as e:
            skipped += 1
            logger.warning(
                f"Skipping malformed {model.__name__} document {doc.id}: "
                f"{e.error_count()} validation error(s)"
            )

    if skipped:
        logger.warning(f"Decoded {len(decoded)} {model.__name__} documents, skipped {skipped}")

    return decoded
