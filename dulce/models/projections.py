"""
Projections and Aggregations

Pure transforms from decoded entities to compact read views.

Every view ends with a deterministic sort so unchanged underlying data
always serializes to the same bytes; an unstable order would change the
ETag on every recomputation and defeat conditional reads.

Index projections keep only the fields needed for listing. The person
index is a data-minimization contract: phones and addresses never
appear in it, whatever the source document holds.
"""

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from dulce.models.entities import (
    Category,
    Measure,
    Movement,
    Person,
    Product,
    Recipe,
)
from dulce.models.enums import MovementType, PersonType


RECENT_WINDOW = timedelta(days=30)
PRICE_DECIMALS = 2


class Projection(BaseModel):
    """Base for projection rows: frozen, camelCase on the wire, no extras."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def round_amount(value: float) -> float:
    return round(value, PRICE_DECIMALS)


def _rows(projections: Iterable[Projection]) -> List[Dict[str, Any]]:
    return [p.to_row() for p in projections]


# =============================================================================
# INDEX PROJECTIONS
# =============================================================================

class ProductIndexProjection(Projection):
    id: str
    name: str
    quantity: float
    minimum_quantity: float
    cost: float
    sale_price: float
    is_low_stock: bool


class RecipeIndexProjection(Projection):
    id: str
    name: str
    cost: float
    sale_price: float
    on_sale: bool
    unit: float
    profit_percentage: float
    has_images: bool
    categories: List[str]


class PersonIndexProjection(Projection):
    id: str
    display_name: str
    tags: List[str]


class CategoryIndexProjection(Projection):
    id: str
    name: str


class MeasureIndexProjection(Projection):
    id: str
    name: str
    unit: str


def to_product_index(product: Product) -> ProductIndexProjection:
    return ProductIndexProjection(
        id=product.id,
        name=product.name,
        quantity=product.quantity,
        minimum_quantity=product.minimum_quantity,
        cost=product.cost,
        sale_price=product.sale_price,
        is_low_stock=product.quantity <= product.minimum_quantity,
    )


def to_recipe_index(recipe: Recipe) -> RecipeIndexProjection:
    return RecipeIndexProjection(
        id=recipe.id,
        name=recipe.name,
        cost=recipe.cost,
        sale_price=recipe.sale_price,
        on_sale=recipe.on_sale,
        unit=recipe.unit,
        profit_percentage=recipe.profit_percentage,
        has_images=len(recipe.images) > 0,
        categories=sorted(recipe.categories),
    )


def to_person_index(person: Person) -> PersonIndexProjection:
    """Redacted person: id, display name and type tag only."""
    return PersonIndexProjection(
        id=person.id,
        display_name=person.display_name,
        tags=[person.type] if person.type else [],
    )


def project_products_index(products: Iterable[Product]) -> List[Dict[str, Any]]:
    """Product index rows sorted by id."""
    return _rows(sorted((to_product_index(p) for p in products), key=lambda p: p.id))


def project_recipes_index(recipes: Iterable[Recipe]) -> List[Dict[str, Any]]:
    """Recipe index rows sorted by id."""
    return _rows(sorted((to_recipe_index(r) for r in recipes), key=lambda r: r.id))


def project_persons_index(persons: Iterable[Person]) -> List[Dict[str, Any]]:
    """Redacted person index rows sorted by id."""
    return _rows(sorted((to_person_index(p) for p in persons), key=lambda p: p.id))


def project_categories_index(categories: Iterable[Category]) -> List[Dict[str, Any]]:
    """Category rows sorted by name, then id."""
    rows = (CategoryIndexProjection(id=c.id, name=c.name) for c in categories)
    return _rows(sorted(rows, key=lambda c: (c.name.casefold(), c.id)))


def project_measures_index(measures: Iterable[Measure]) -> List[Dict[str, Any]]:
    """Measure rows sorted by name, then id."""
    rows = (MeasureIndexProjection(id=m.id, name=m.name, unit=m.unit) for m in measures)
    return _rows(sorted(rows, key=lambda m: (m.name.casefold(), m.id)))


# =============================================================================
# AGGREGATIONS
# =============================================================================

class MovementAggregateProjection(Projection):
    date: str
    type: str
    qty: int
    total: float


class ClientRecentProjection(Projection):
    id: str
    display_name: str
    type: str
    last_purchase: str
    purchase_count: int
    total_spent: float


def window_start(now: Optional[datetime] = None, window: timedelta = RECENT_WINDOW) -> datetime:
    """Start of the trailing window ending at `now`."""
    now = now or datetime.now(timezone.utc)
    return now - window


def filter_recent(
    movements: Iterable[Movement],
    now: Optional[datetime] = None,
    window: timedelta = RECENT_WINDOW,
) -> List[Movement]:
    """Movements dated within the trailing window."""
    start = window_start(now, window)
    return [m for m in movements if m.movement_date >= start]


def aggregate_movements(movements: Iterable[Movement]) -> List[Dict[str, Any]]:
    """
    Group movements by (calendar date, type).

    qty counts line items, total sums movement amounts. Rows are most
    recent first, ties broken by type.
    """
    groups: Dict[tuple, Dict[str, float]] = defaultdict(lambda: {"qty": 0, "total": 0.0})

    for movement in movements:
        day = movement.movement_date.astimezone(timezone.utc).date().isoformat()
        kind = movement.type.value if movement.type else "unknown"
        group = groups[(day, kind)]
        group["qty"] += len(movement.items)
        group["total"] += movement.total_amount

    rows = [
        MovementAggregateProjection(
            date=day,
            type=kind,
            qty=int(group["qty"]),
            total=round_amount(group["total"]),
        )
        for (day, kind), group in groups.items()
    ]
    rows.sort(key=lambda r: r.type)
    rows.sort(key=lambda r: r.date, reverse=True)
    return _rows(rows)


def aggregate_client_purchases(
    persons: Dict[str, Person],
    movements: Iterable[Movement],
) -> List[Dict[str, Any]]:
    """
    Roll up sales per client.

    Only SALE movements with a known person count. Rows are ordered by
    last purchase (most recent first), ties broken by person id.
    """
    stats: Dict[str, Dict[str, Any]] = {}

    for movement in movements:
        if not movement.person_id or movement.type is not MovementType.SALE:
            continue

        entry = stats.setdefault(
            movement.person_id,
            {"last": movement.movement_date, "count": 0, "spent": 0.0},
        )
        if movement.movement_date > entry["last"]:
            entry["last"] = movement.movement_date
        entry["count"] += 1
        entry["spent"] += movement.total_amount

    rows = []
    for person_id, entry in stats.items():
        person = persons.get(person_id)
        if person is None:
            continue
        rows.append(
            ClientRecentProjection(
                id=person_id,
                display_name=person.display_name,
                type=person.type or PersonType.CLIENT.value,
                last_purchase=entry["last"].astimezone(timezone.utc).date().isoformat(),
                purchase_count=entry["count"],
                total_spent=round_amount(entry["spent"]),
            )
        )

    rows.sort(key=lambda r: r.id)
    rows.sort(key=lambda r: r.last_purchase, reverse=True)
    return _rows(rows)
