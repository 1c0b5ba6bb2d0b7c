"""
Optional address lookup.

In production, this would call a place-autocomplete service. The booking
core never depends on it: manually typed address text is always accepted.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class PlaceSuggestion(BaseModel):
    """A place returned by the lookup service."""
    formatted_address: Optional[str] = None
    name: Optional[str] = None


class AddressLookup(ABC):
    @abstractmethod
    def lookup(self, text: str) -> Optional[PlaceSuggestion]:
        """Return the best place matching free text, or None."""
        raise NotImplementedError


class AddressLookupError(Exception):
    """Raised by an AddressLookup when the service cannot be reached."""


class StaticAddressLookup(AddressLookup):
    """Lookup over a fixed table of known places, keyed by lowercase prefix."""

    def __init__(self, places: Optional[dict[str, PlaceSuggestion]] = None) -> None:
        self._places = {key.lower(): value for key, value in (places or {}).items()}

    def lookup(self, text: str) -> Optional[PlaceSuggestion]:
        needle = text.strip().lower()
        if not needle:
            return None
        for key, place in self._places.items():
            if key.startswith(needle) or needle.startswith(key):
                return place
        return None


def resolve_address(text: str, lookup: Optional[AddressLookup] = None) -> str:
    """Return the lookup's formatted address for text, falling back to the typed text."""
    typed = text.strip()
    if lookup is None or not typed:
        return typed
    try:
        place = lookup.lookup(typed)
    except AddressLookupError as exc:
        logger.warning("Address lookup unavailable, keeping typed address: %s", exc)
        return typed
    if place is None:
        return typed
    if place.formatted_address:
        return place.formatted_address
    if place.name:
        return place.name
    return typed
