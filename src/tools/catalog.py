"""
Inventory catalog of rentable watercraft.

In production, this reads the item master table of the shop's data store.
The in-memory catalog mirrors the shop's current fleet and prices (CHF).
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable, Optional

from src.exceptions import DataFetchError
from src.schemas.inventory_schema import ItemDefinition

logger = logging.getLogger(__name__)

ITEM_CATALOG: list[dict] = [
    {"id": "small-raft", "name": "Small Raft", "unit_price": "140", "total_inventory": 4},
    {"id": "medium-raft", "name": "Medium Raft", "unit_price": "200", "total_inventory": 3},
    {"id": "large-raft", "name": "Large Raft", "unit_price": "250", "total_inventory": 2},
    {"id": "sup", "name": "SUP", "unit_price": "50", "total_inventory": 5},
    {"id": "kanu", "name": "Kanu", "unit_price": "90", "total_inventory": 4},
]


class CatalogReader(ABC):
    @abstractmethod
    async def list_items(self) -> list[ItemDefinition]:
        """Return every rentable item type. Raises DataFetchError on failure."""
        raise NotImplementedError


class InMemoryCatalog(CatalogReader):
    """Catalog backed by a list held in memory."""

    def __init__(self, items: Optional[Iterable[ItemDefinition]] = None) -> None:
        if items is None:
            items = default_items()
        self._items: list[ItemDefinition] = list(items)
        self.fail_with: Optional[str] = None

    async def list_items(self) -> list[ItemDefinition]:
        if self.fail_with is not None:
            logger.warning("Catalog read failed: %s", self.fail_with)
            raise DataFetchError(self.fail_with)
        return list(self._items)


def default_items() -> list[ItemDefinition]:
    """Build ItemDefinitions from the built-in fleet table."""
    return [
        ItemDefinition(
            id=entry["id"],
            name=entry["name"],
            unit_price=Decimal(entry["unit_price"]),
            total_inventory=entry["total_inventory"],
        )
        for entry in ITEM_CATALOG
    ]
