"""Catalog and availability data models."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class StockLevel(str, Enum):
    """Coarse remaining-stock band shown next to each item."""
    UNAVAILABLE = "unavailable"
    LOW = "low"
    LIMITED = "limited"
    PLENTY = "plenty"


class ItemDefinition(BaseModel):
    """A rentable item type and its total owned stock."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    unit_price: Decimal = Field(ge=0)
    total_inventory: int = Field(ge=0)


class AvailabilityRow(BaseModel):
    """Remaining stock of one catalog item on one date."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    unit_price: Decimal
    total_inventory: int
    booked_so_far: int = 0
    remaining: int = 0
    stock_level: StockLevel = StockLevel.UNAVAILABLE
