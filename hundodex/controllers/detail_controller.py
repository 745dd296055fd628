"""Single-entry view controller with prev/next navigation."""

import logging
from dataclasses import dataclass

import httpx

from hundodex.models.entry import CatalogEntry
from hundodex.models.failure import EntryNotFoundError
from hundodex.services.catalog import CatalogLoader

logger = logging.getLogger(__name__)


def previous_id(entry_id: int) -> int:
    """Previous entry id, never below 1."""
    return max(1, entry_id - 1)


def next_id(entry_id: int) -> int:
    """Next entry id. Not bounded by the catalog size."""
    return entry_id + 1


def parse_entry_id(raw: str) -> int | None:
    """Parse a route parameter, None if it is not a positive integer."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value >= 1 else None


@dataclass
class DetailState:
    """What the detail view shows."""

    entry_id: int = 0
    entry: CatalogEntry | None = None
    is_loading: bool = False
    not_found: bool = False
    error: str | None = None


class DetailController:
    """Resolves one catalog entry for the detail view."""

    def __init__(self, catalog: CatalogLoader) -> None:
        self.catalog = catalog
        self.state = DetailState()

    async def load_entry(self, entry_id: int) -> DetailState:
        """
        Resolve an entry.

        A missing entry or a failed fetch ends loading with no entry; it
        never raises.
        """
        self.state = DetailState(entry_id=entry_id, is_loading=True)
        try:
            entry = await self.catalog.load_by_id(entry_id)
        except EntryNotFoundError as e:
            logger.info("Entry %d not found", entry_id)
            self.state = DetailState(entry_id=entry_id, not_found=True, error=e.message)
        except httpx.HTTPError as e:
            logger.error("Error loading entry %d: %s", entry_id, e)
            self.state = DetailState(entry_id=entry_id, error=str(e))
        else:
            self.state = DetailState(entry_id=entry_id, entry=entry)
        return self.state

    async def load_route(self, raw_id: str) -> DetailState:
        """Resolve an entry from a route parameter."""
        entry_id = parse_entry_id(raw_id)
        if entry_id is None:
            self.state = DetailState(not_found=True, error=f"Invalid entry id: {raw_id}")
            return self.state
        return await self.load_entry(entry_id)

    def previous_id(self) -> int:
        return previous_id(self.state.entry_id)

    def next_id(self) -> int:
        return next_id(self.state.entry_id)
