"""
Pytest Configuration and Shared Fixtures

Provides a controllable clock, a seeded in-memory document store and
isolated cache/registry instances for all test modules.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from dulce.audit.logger import AuditLogger, MemoryAuditSink
from dulce.cache.config import CacheConfig
from dulce.cache.manager import CacheManager
from dulce.resources.registry import ResourceRegistry
from dulce.store.memory import InMemoryDocumentStore
from dulce.tools.details import DetailTools


NOW = datetime(2026, 10, 15, 12, 0, 0, tzinfo=timezone.utc)
URI_PREFIX = "mcp://estacion-dulce/"


class FakeClock:
    """Manually advanced clock. time() feeds the cache, now() the providers."""

    def __init__(self, start: datetime = NOW):
        self._now = start

    def time(self) -> float:
        return self._now.timestamp()

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now = self._now + timedelta(seconds=seconds)


# ============================================================================
# Sample Data
# ============================================================================

def sample_collections() -> Dict[str, Dict[str, Dict[str, Any]]]:
    """A small shop: a few products, recipes, people and recent movements."""
    return {
        "measures": {
            "m1": {"name": "Kilogram", "unit": "kg"},
            "m2": {"name": "gram", "unit": "g"},
        },
        "categories": {
            "c1": {"name": "Tortas"},
            "c2": {"name": "alfajores"},
        },
        "products": {
            "p2": {
                "name": "Sugar", "quantity": 10, "minimumQuantity": 3,
                "cost": 1.0, "salePrice": 1.8, "measure": "m2",
            },
            "p1": {
                "name": "Flour", "quantity": 2, "minimumQuantity": 5,
                "cost": 1.5, "salePrice": 2.0, "measure": "m1",
            },
            "p3": {
                "name": "Vanilla", "quantity": 4, "minimumQuantity": 0,
                "cost": 0, "salePrice": 3.0,
            },
        },
        "recipes": {
            "r1": {
                "name": "Torta de chocolate",
                "cost": 12.3456, "salePrice": 30, "onSale": True,
                "profitPercentage": 143, "images": ["torta.jpg"],
                "categories": ["c2", "c1"],
                "sections": [{
                    "id": "s1",
                    "name": "Masa",
                    "products": [
                        {"productId": "p1", "quantity": 0.5},
                        {"productId": "p-missing", "quantity": 1},
                        {"productId": "p3", "quantity": 2},
                    ],
                }],
                "recipes": [{"recipeId": "r2", "quantity": 2}],
            },
            "r2": {"name": "Dulce de leche", "cost": 3, "salePrice": 6},
        },
        "persons": {
            "per1": {
                "name": "Ana", "lastName": "Pérez", "type": "CLIENT",
                "phones": [{"phoneNumberPrefix": "+54", "phoneNumberSuffix": "1155550000"}],
                "addresses": ["a1"],
            },
            "per2": {"name": "Proveedor SA", "type": "PROVIDER"},
            "per3": {"name": "Luis", "lastName": "Gómez", "type": "CLIENT"},
        },
        "persons/per1/addresses": {
            "a1": {"label": "Casa", "formattedAddress": "Calle Falsa 123", "latitude": -34.6, "longitude": -58.4},
        },
        "movements": {
            "mv1": {
                "type": "SALE", "personId": "per1", "movementDate": "2026-10-14T10:00:00Z",
                "totalAmount": 100, "kitchenOrderStatus": "PREPARING",
                "delivery": {"type": "SHIPMENT", "status": "IN_PROGRESS", "date": "2026-10-16T15:00:00Z"},
                "items": [{"collection": "recipes", "collectionId": "r1", "cost": 60, "quantity": 1},
                          {"collection": "recipes", "collectionId": "r2", "cost": 40, "quantity": 2}],
            },
            "mv2": {
                "type": "SALE", "personId": "per1", "movementDate": "2026-10-10T09:00:00Z",
                "totalAmount": 50.5,
                "items": [{"collection": "recipes", "collectionId": "r2", "quantity": 1}],
            },
            "mv3": {
                "type": "SALE", "personId": "per3", "movementDate": "2026-10-14T18:00:00Z",
                "totalAmount": 20,
                "items": [{"collection": "products", "collectionId": "p2", "quantity": 1}],
            },
            "mv4": {
                "type": "PURCHASE", "personId": "per2", "movementDate": "2026-10-14T08:00:00Z",
                "totalAmount": 300,
                "items": [{"collection": "products", "collectionId": "p1", "quantity": 10},
                          {"collection": "products", "collectionId": "p2", "quantity": 10},
                          {"collection": "products", "collectionId": "p3", "quantity": 1}],
            },
            "mv5": {
                "type": "SALE", "personId": "per1", "movementDate": "2026-08-01T12:00:00Z",
                "totalAmount": 999,
                "items": [{"collection": "recipes", "collectionId": "r1", "quantity": 9}],
            },
            "mv6": {
                "type": "RETURN", "personId": "per3", "movementDate": "2026-10-12T00:00:00Z",
                "totalAmount": 5, "items": [],
            },
            "mv7": {
                "type": "SALE", "personId": "ghost", "movementDate": "2026-10-13T15:00:00Z",
                "totalAmount": 10,
                "items": [{"collection": "recipes", "collectionId": "r2", "quantity": 1}],
            },
        },
        "movements/mv1/kitchenOrders": {
            "k2": {"status": "READY", "recipeId": "r2", "createdAt": 1760529600000},
            "k1": {"status": "preparing", "recipeId": "r1", "createdAt": "2026-10-14T10:05:00Z"},
        },
        "movements/mv3/kitchenOrders": {
            "k3": {"status": "PENDING", "productId": "p2", "updatedAt": None},
        },
    }


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_config() -> CacheConfig:
    """Explicit config so tests never depend on CACHE_* environment variables."""
    return CacheConfig(
        enabled=True,
        entry_size_warning_bytes=400 * 1024,
        payload_size_warning_bytes=512 * 1024,
        slow_computation_ms=1000,
    )


@pytest.fixture
def cache(cache_config, clock) -> CacheManager:
    return CacheManager(config=cache_config, clock=clock.time)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(sample_collections())


@pytest.fixture
def registry(store, cache, cache_config, clock) -> ResourceRegistry:
    return ResourceRegistry(
        store,
        cache=cache,
        config=cache_config,
        uri_prefix=URI_PREFIX,
        now=clock.now,
    )


@pytest.fixture
def audit_sink() -> MemoryAuditSink:
    return MemoryAuditSink()


@pytest.fixture
def detail_tools(store, audit_sink) -> DetailTools:
    return DetailTools(store, AuditLogger(audit_sink))
