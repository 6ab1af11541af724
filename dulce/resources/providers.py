"""
Resource Providers

Concrete providers: the store query each resource is scoped to, and
the projection/aggregation applied to the result.
"""

import asyncio
import logging
from typing import Any, Dict, List

from dulce.models.entities import (
    Category,
    Measure,
    Movement,
    Person,
    Product,
    Recipe,
    decode_documents,
)
from dulce.models.enums import MovementType, ResourceId
from dulce.models.projections import (
    aggregate_client_purchases,
    aggregate_movements,
    filter_recent,
    project_categories_index,
    project_measures_index,
    project_persons_index,
    project_products_index,
    project_recipes_index,
    window_start,
)
from dulce.resources.base import ResourceProvider


logger = logging.getLogger(__name__)

INDEX_LIMIT = 100
MOVEMENTS_LIMIT = 500


class ProductsIndexProvider(ResourceProvider):
    """Compact product list: stock, cost, price, low-stock flag."""

    resource_id = ResourceId.PRODUCTS_INDEX

    async def compute(self) -> List[Dict[str, Any]]:
        docs = await self.store.query("products", limit=INDEX_LIMIT)
        return project_products_index(decode_documents(Product, docs))


class RecipesIndexProvider(ResourceProvider):
    """Compact recipe list. Full recipes are served by the detail tool."""

    resource_id = ResourceId.RECIPES_INDEX

    async def compute(self) -> List[Dict[str, Any]]:
        docs = await self.store.query("recipes", limit=INDEX_LIMIT)
        return project_recipes_index(decode_documents(Recipe, docs))


class PersonsIndexProvider(ResourceProvider):
    """Redacted person list: no phones, no addresses."""

    resource_id = ResourceId.PERSONS_INDEX

    async def compute(self) -> List[Dict[str, Any]]:
        docs = await self.store.query("persons", limit=INDEX_LIMIT)
        return project_persons_index(decode_documents(Person, docs))


class CategoriesIndexProvider(ResourceProvider):
    resource_id = ResourceId.CATEGORIES_INDEX

    async def compute(self) -> List[Dict[str, Any]]:
        docs = await self.store.query("categories")
        return project_categories_index(decode_documents(Category, docs))


class MeasuresIndexProvider(ResourceProvider):
    resource_id = ResourceId.MEASURES_INDEX

    async def compute(self) -> List[Dict[str, Any]]:
        docs = await self.store.query("measures")
        return project_measures_index(decode_documents(Measure, docs))


class MovementsLast30DProvider(ResourceProvider):
    """Movements of the last 30 days aggregated by (date, type)."""

    resource_id = ResourceId.MOVEMENTS_LAST_30D

    async def compute(self) -> List[Dict[str, Any]]:
        now = self.now()
        docs = await self.store.query(
            "movements",
            filters=[("movementDate", ">=", window_start(now))],
            order_by="movementDate",
            descending=True,
            limit=MOVEMENTS_LIMIT,
        )
        movements = filter_recent(decode_documents(Movement, docs), now)
        return aggregate_movements(movements)


class ClientsRecentProvider(ResourceProvider):
    """
    Clients with sales in the last 30 days.

    Person lookups run concurrently; the rollup is built only after all
    of them have completed.
    """

    resource_id = ResourceId.CLIENTS_RECENT

    async def compute(self) -> List[Dict[str, Any]]:
        now = self.now()
        docs = await self.store.query(
            "movements",
            filters=[
                ("type", "==", MovementType.SALE.value),
                ("movementDate", ">=", window_start(now)),
            ],
        )
        movements = filter_recent(decode_documents(Movement, docs), now)

        person_ids = sorted({m.person_id for m in movements if m.person_id})
        person_docs = await asyncio.gather(
            *(self.store.get("persons", person_id) for person_id in person_ids)
        )
        persons = {
            p.id: p
            for p in decode_documents(Person, [d for d in person_docs if d is not None])
        }

        missing = len(person_ids) - len(persons)
        if missing:
            logger.warning(f"{missing} client(s) referenced by movements not found in persons")

        return aggregate_client_purchases(persons, movements)


PROVIDER_CLASSES = (
    ProductsIndexProvider,
    RecipesIndexProvider,
    PersonsIndexProvider,
    CategoriesIndexProvider,
    MeasuresIndexProvider,
    MovementsLast30DProvider,
    ClientsRecentProvider,
)
