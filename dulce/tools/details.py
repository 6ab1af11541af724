"""
Detail Tools

Full-record lookups that sit beside the cached indexes. Indexes stay
compact; when a caller needs one product, one recipe with its
ingredients, or one person's contact data, it asks a tool.

Movement lookups cover one movement, a client's sale orders and the
kitchen orders nested under movements.

Tools are not cached. Reading a person's full record is PII access and
is audit logged.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from dulce.audit.logger import AuditLogger
from dulce.errors import (
    DulceError,
    ErrorCode,
    InternalError,
    NotFoundError,
    create_error_response,
    error_response_from,
)
from dulce.models.entities import (
    E,
    Address,
    Measure,
    Movement,
    Person,
    Product,
    Recipe,
    decode_document,
    decode_documents,
)
from dulce.models.enums import KitchenOrderStatus, MovementType
from dulce.models.projections import round_amount
from dulce.store.base import Document, DocumentStore
from dulce.utils.dates import to_iso_string


logger = logging.getLogger(__name__)

DEFAULT_UNIT = "units"
DEFAULT_PURPOSE = "Business operations - customer service"
PII_REQUESTER = "mcp-client"
PII_FIELDS = ["name", "lastName", "phones", "addresses"]

DEFAULT_KITCHEN_ORDERS_LIMIT = 50
DEFAULT_CLIENT_ORDERS_LIMIT = 10
MAX_CLIENT_ORDERS_LIMIT = 50
KITCHEN_ORDER_DATE_FIELDS = ("createdAt", "updatedAt")


# =============================================================================
# ARGUMENTS
# =============================================================================

class ToolArgs(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


class ProductDetailArgs(ToolArgs):
    product_id: str = Field(min_length=1)


class RecipeDetailArgs(ToolArgs):
    recipe_id: str = Field(min_length=1)


class PersonDetailArgs(ToolArgs):
    person_id: str = Field(min_length=1)
    purpose: str = DEFAULT_PURPOSE


class MovementArgs(ToolArgs):
    movement_id: str = Field(min_length=1)


class KitchenOrdersArgs(ToolArgs):
    """Without a movement id, kitchen orders of every movement are listed."""
    movement_id: Optional[str] = None
    status: Optional[KitchenOrderStatus] = None
    limit: int = Field(default=DEFAULT_KITCHEN_ORDERS_LIMIT, ge=1)

    @field_validator("movement_id", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value


class ClientOrdersArgs(ToolArgs):
    client_id: str = Field(min_length=1)
    limit: int = Field(default=DEFAULT_CLIENT_ORDERS_LIMIT, ge=1, le=MAX_CLIENT_ORDERS_LIMIT)


def stock_status(quantity: float, minimum_quantity: float) -> Dict[str, Any]:
    """Low when at or below the minimum. Percentage is None without a minimum."""
    percentage = None
    if minimum_quantity > 0:
        percentage = round(quantity / minimum_quantity * 100)
    return {
        "status": "LOW" if quantity <= minimum_quantity else "OK",
        "percentOfMinimum": percentage,
    }


def margin(cost: float, sale_price: float) -> Dict[str, Any]:
    profit = sale_price - cost
    return {
        "profit": round_amount(profit),
        "profitPercentage": round_amount(profit / cost * 100) if cost > 0 else 0,
    }


class DetailTools:
    """
    Detail lookups over the document store.

    Usage:
        tools = DetailTools(store, AuditLogger(sink))
        result = await tools.run("get_product_detail", {"productId": "p1"})
    """

    def __init__(self, store: DocumentStore, audit_logger: AuditLogger):
        self.store = store
        self.audit_logger = audit_logger
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
            "get_product_detail": self.get_product_detail,
            "get_recipe_detail": self.get_recipe_detail,
            "get_person_details": self.get_person_details,
            "get_movement": self.get_movement,
            "get_kitchen_orders": self.get_kitchen_orders,
            "get_client_orders": self.get_client_orders,
        }

    @property
    def names(self) -> List[str]:
        return sorted(self._handlers)

    async def run(self, name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Dispatch a tool by name.

        Never raises: validation, lookup and unexpected failures come back
        as error payloads (see dulce.errors.create_error_response).
        """
        path = f"tools/{name}"
        handler = self._handlers.get(name)
        if handler is None:
            return create_error_response(
                ErrorCode.NOT_FOUND, f'Tool "{name}" not found', path=path,
            )

        try:
            return await handler(args or {})
        except PydanticValidationError as e:
            message = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'args'}: {err['msg']}"
                for err in e.errors()
            )
            return create_error_response(ErrorCode.VALIDATION, message, path=path)
        except DulceError as e:
            return error_response_from(e, path)
        except Exception as e:
            logger.exception(f"Tool {name} failed")
            return create_error_response(ErrorCode.INTERNAL, "Internal server error", e, path)

    # =========================================================================
    # Lookups
    # =========================================================================

    async def _require(self, collection: str, entity: str, doc_id: str) -> Document:
        doc = await self.store.get(collection, doc_id)
        if doc is None:
            raise NotFoundError(entity, doc_id)
        return doc

    async def _get_many(self, collection: str, ids: List[str]) -> Dict[str, Document]:
        """Fetch documents concurrently; absent ids are left out."""
        docs = await asyncio.gather(*(self.store.get(collection, doc_id) for doc_id in ids))
        return {doc.id: doc for doc in docs if doc is not None}

    @staticmethod
    def _decode(model: Type[E], doc: Document, entity: str) -> E:
        """Decode a stored document; a malformed one is a server-side failure."""
        try:
            return decode_document(model, doc.id, doc.data)
        except PydanticValidationError as e:
            raise InternalError(
                f"Stored {entity} {doc.id} is malformed",
                details={"entity": entity, "id": doc.id},
            ) from e

    # =========================================================================
    # Tools
    # =========================================================================

    async def get_product_detail(self, args: Dict[str, Any]) -> Dict[str, Any]:
        params = ProductDetailArgs.model_validate(args)
        doc = await self._require("products", "product", params.product_id)
        product = self._decode(Product, doc, "product")

        measure: Optional[Measure] = None
        if product.measure:
            measure_doc = await self.store.get("measures", product.measure)
            if measure_doc is not None:
                measure = self._decode(Measure, measure_doc, "measure")

        return {
            "id": product.id,
            "name": product.name,
            "unit": measure.unit if measure and measure.unit else DEFAULT_UNIT,
            "measure": measure.model_dump(by_alias=True) if measure else None,
            "quantity": product.quantity,
            "minimumQuantity": product.minimum_quantity,
            "stock": stock_status(product.quantity, product.minimum_quantity),
            "cost": round_amount(product.cost),
            "salePrice": round_amount(product.sale_price),
            "margin": margin(product.cost, product.sale_price),
            "inventoryValue": {
                "totalCost": round_amount(product.cost * product.quantity),
                "totalSaleValue": round_amount(product.sale_price * product.quantity),
            },
        }

    async def get_recipe_detail(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """
        Recipe with ingredients resolved to product names and units.

        Products, then their measures, then nested recipes are each fetched
        concurrently. Ingredients and nested recipes that no longer exist
        are kept and flagged as unknown.
        """
        params = RecipeDetailArgs.model_validate(args)
        doc = await self._require("recipes", "recipe", params.recipe_id)
        recipe = self._decode(Recipe, doc, "recipe")

        product_ids = sorted({
            item.product_id for section in recipe.sections for item in section.products
        })
        products = {
            p.id: p
            for p in decode_documents(Product, (await self._get_many("products", product_ids)).values())
        }

        measure_ids = sorted({p.measure for p in products.values() if p.measure})
        measures = {
            m.id: m
            for m in decode_documents(Measure, (await self._get_many("measures", measure_ids)).values())
        }

        nested_ids = sorted({n.recipe_id for n in recipe.recipes})
        nested = {
            r.id: r
            for r in decode_documents(Recipe, (await self._get_many("recipes", nested_ids)).values())
        }

        unknown_products: List[str] = []
        sections = []
        for section in recipe.sections:
            ingredients = []
            for item in section.products:
                product = products.get(item.product_id)
                if product is None:
                    unknown_products.append(item.product_id)
                    ingredients.append({
                        "productId": item.product_id,
                        "name": None,
                        "quantity": item.quantity,
                        "unit": None,
                        "unknown": True,
                    })
                    continue
                measure = measures.get(product.measure) if product.measure else None
                ingredients.append({
                    "productId": product.id,
                    "name": product.name,
                    "quantity": item.quantity,
                    "unit": measure.unit if measure and measure.unit else DEFAULT_UNIT,
                    "unknown": False,
                })
            sections.append({"id": section.id, "name": section.name, "ingredients": ingredients})

        nested_recipes = []
        unknown_recipes: List[str] = []
        for n in recipe.recipes:
            sub = nested.get(n.recipe_id)
            if sub is None:
                unknown_recipes.append(n.recipe_id)
            nested_recipes.append({
                "recipeId": n.recipe_id,
                "name": sub.name if sub else None,
                "quantity": n.quantity,
                "unknown": sub is None,
            })

        if unknown_products or unknown_recipes:
            logger.warning(
                f"Recipe {recipe.id} references {len(unknown_products)} unknown product(s) "
                f"and {len(unknown_recipes)} unknown recipe(s)"
            )

        return {
            "id": recipe.id,
            "name": recipe.name,
            "cost": round_amount(recipe.cost),
            "salePrice": round_amount(recipe.sale_price),
            "suggestedPrice": round_amount(recipe.suggested_price),
            "profitPercentage": recipe.profit_percentage,
            "onSale": recipe.on_sale,
            "description": recipe.description,
            "categories": sorted(recipe.categories),
            "sections": sections,
            "nestedRecipes": nested_recipes,
            "unknownProducts": sorted(set(unknown_products)),
            "unknownRecipes": sorted(set(unknown_recipes)),
        }

    async def get_person_details(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Full person record including phones and addresses. Audit logged."""
        params = PersonDetailArgs.model_validate(args)
        doc = await self._require("persons", "person", params.person_id)
        person = self._decode(Person, doc, "person")

        address_docs = await self.store.subcollection("persons", person.id, "addresses")
        addresses = [
            Address.model_validate({**d.data, "id": d.id}).model_dump(by_alias=True)
            for d in address_docs
        ]

        await self.audit_logger.log_pii_access(
            action="READ_PERSON_PII",
            resource_type="person",
            resource_id=person.id,
            accessed_fields=list(PII_FIELDS),
            requester=PII_REQUESTER,
            purpose=params.purpose,
        )

        return {
            "id": person.id,
            "name": person.name,
            "lastName": person.last_name,
            "type": person.type,
            "phones": [p.model_dump(by_alias=True) for p in person.phones],
            "addresses": addresses,
            "_audit": {
                "accessedAt": datetime.now(timezone.utc).isoformat(),
                "purpose": params.purpose,
            },
        }

    async def get_movement(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """One movement by id. Its kitchen orders come from get_kitchen_orders."""
        params = MovementArgs.model_validate(args)
        doc = await self._require("movements", "movement", params.movement_id)
        movement = self._decode(Movement, doc, "movement")
        return movement.model_dump(mode="json", by_alias=True)

    async def get_kitchen_orders(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """
        Kitchen orders of one movement, or of every movement.

        Subcollections are read concurrently. Orders are listed by movement
        id, then order id, and cut to the limit after the status filter.
        """
        params = KitchenOrdersArgs.model_validate(args)

        if params.movement_id:
            movement_ids = [params.movement_id]
        else:
            movement_ids = sorted(doc.id for doc in await self.store.query("movements"))

        batches = await asyncio.gather(*(
            self.store.subcollection("movements", movement_id, "kitchenOrders")
            for movement_id in movement_ids
        ))

        orders: List[Dict[str, Any]] = []
        for movement_id, docs in zip(movement_ids, batches):
            for doc in sorted(docs, key=lambda d: d.id):
                if params.status and str(doc.data.get("status", "")).upper() != params.status.value:
                    continue
                orders.append(kitchen_order_row(movement_id, doc))

        orders = orders[:params.limit]
        return {
            "movementId": params.movement_id,
            "status": params.status.value if params.status else None,
            "count": len(orders),
            "kitchenOrders": orders,
        }

    async def get_client_orders(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """A client's sales, most recent first."""
        params = ClientOrdersArgs.model_validate(args)
        docs = await self.store.query("movements", filters=[("personId", "==", params.client_id)])

        sales = sorted(
            (m for m in decode_documents(Movement, docs) if m.type is MovementType.SALE),
            key=lambda m: (m.movement_date, m.id),
            reverse=True,
        )
        orders = [client_order_row(m) for m in sales[:params.limit]]

        return {
            "clientId": params.client_id,
            "count": len(orders),
            "orders": orders,
        }


def kitchen_order_row(movement_id: str, doc: Document) -> Dict[str, Any]:
    row = {**doc.data, "id": doc.id, "movementId": movement_id}
    for name in KITCHEN_ORDER_DATE_FIELDS:
        if row.get(name) is not None:
            row[name] = to_iso_string(row[name])
    return row


def client_order_row(movement: Movement) -> Dict[str, Any]:
    delivery = movement.delivery
    return {
        "id": movement.id,
        "movementDate": to_iso_string(movement.movement_date),
        "totalAmount": round_amount(movement.total_amount),
        "itemCount": len(movement.items),
        "kitchenOrderStatus": movement.kitchen_order_status.value if movement.kitchen_order_status else None,
        "deliveryType": delivery.type.value if delivery else None,
        "deliveryStatus": delivery.status.value if delivery else None,
    }
