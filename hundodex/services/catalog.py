"""
Catalog loader service.

Loads the full creature catalog once and caches it in memory. Two sources:

- FileCatalogLoader: one consolidated JSON document (path or URL)
- RemoteCatalogLoader: PokeAPI, one request per entry plus its species
  record for the evolution chain

A failed load degrades to an empty catalog and is not cached, so the next
call retries.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from typing import Any

import httpx

from hundodex.config import Settings, settings
from hundodex.models.entry import CatalogEntry
from hundodex.models.failure import EntryNotFoundError
from hundodex.parsers.catalog_file import parse_catalog_document
from hundodex.parsers.pokeapi import parse_pokemon

logger = logging.getLogger(__name__)

USER_AGENT = "Hundodex/1.0"

# Errors that mean "the feed could not be read", as opposed to programming errors
FETCH_ERRORS = (httpx.HTTPError, OSError, ValueError, KeyError, TypeError)


class CatalogLoader(ABC):
    """Caches the catalog after the first successful load."""

    def __init__(self) -> None:
        self._entries: list[CatalogEntry] | None = None
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._entries is not None

    async def load_all(self) -> list[CatalogEntry]:
        """
        Load the whole catalog, sorted ascending by id.

        Returns the cached list after the first success. On failure logs
        and returns an empty list without caching it.
        """
        if self._entries is not None:
            return self._entries

        async with self._lock:
            if self._entries is not None:
                return self._entries

            try:
                entries = await self._fetch_all()
            except FETCH_ERRORS as e:
                logger.error("Failed to load catalog: %s", e)
                return []

            self._entries = sorted(entries, key=lambda entry: entry.id)
            logger.info("Loaded %d catalog entries", len(self._entries))
            return self._entries

    async def load_by_id(self, entry_id: int) -> CatalogEntry:
        """
        Get one catalog entry.

        Raises:
            EntryNotFoundError: If the id is not in the catalog
        """
        if self._entries is not None:
            return _find(self._entries, entry_id)
        return await self._fetch_one(entry_id)

    def clear_cache(self) -> None:
        self._entries = None

    @abstractmethod
    async def _fetch_all(self) -> list[CatalogEntry]: ...

    @abstractmethod
    async def _fetch_one(self, entry_id: int) -> CatalogEntry: ...


def _find(entries: list[CatalogEntry], entry_id: int) -> CatalogEntry:
    for entry in entries:
        if entry.id == entry_id:
            return entry
    raise EntryNotFoundError(entry_id)


class FileCatalogLoader(CatalogLoader):
    """
    Reads the catalog from one JSON document.

    The source is a filesystem path or an http(s) URL.
    """

    def __init__(
        self,
        source: str | Path | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__()
        self.source = str(source if source is not None else settings.catalog_path)
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self._client = client

    def _is_remote(self) -> bool:
        return self.source.startswith(("http://", "https://"))

    async def _read_document(self) -> Any:
        if not self._is_remote():
            with open(self.source, encoding="utf-8") as f:
                return json.load(f)

        if self._client is not None:
            response = await self._client.get(self.source)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.source)
        response.raise_for_status()
        return response.json()

    async def _fetch_all(self) -> list[CatalogEntry]:
        document = await self._read_document()
        return parse_catalog_document(document)

    async def _fetch_one(self, entry_id: int) -> CatalogEntry:
        entries = await self.load_all()
        return _find(entries, entry_id)


class RemoteCatalogLoader(CatalogLoader):
    """
    Fetches the catalog from PokeAPI.

    Ids 1..max_id are fetched in fixed-size batches. Requests within a batch
    run concurrently; batches run one after another to bound in-flight
    requests. Nothing is published until every batch has completed.
    """

    def __init__(
        self,
        base_url: str | None = None,
        max_id: int | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__()
        self.base_url = (base_url or settings.pokeapi_url).rstrip("/")
        self.max_id = max_id if max_id is not None else settings.catalog_max_id
        self.batch_size = batch_size if batch_size is not None else settings.catalog_batch_size
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self._client = client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        ) as client:
            yield client

    def batches(self) -> list[range]:
        """Split 1..max_id into ranges of at most batch_size ids."""
        return [
            range(start, min(start + self.batch_size, self.max_id + 1))
            for start in range(1, self.max_id + 1, self.batch_size)
        ]

    async def _get_json(self, client: httpx.AsyncClient, url: str) -> dict[str, Any]:
        response = await client.get(url)
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        return data

    async def _fetch_with_chain(
        self, client: httpx.AsyncClient, entry_id: int
    ) -> tuple[dict[str, Any], str | None]:
        pokemon = await self._get_json(client, f"{self.base_url}/pokemon/{entry_id}")
        species = await self._get_json(client, pokemon["species"]["url"])
        chain = species.get("evolution_chain") or {}
        return pokemon, chain.get("url")

    async def _fetch_batch(
        self, client: httpx.AsyncClient, batch: range
    ) -> list[tuple[dict[str, Any], str | None]]:
        """Fetch one batch concurrently; the first failure cancels the rest."""
        tasks = [asyncio.create_task(self._fetch_with_chain(client, i)) for i in batch]
        try:
            return await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _fetch_all(self) -> list[CatalogEntry]:
        results: list[tuple[dict[str, Any], str | None]] = []
        async with self._session() as client:
            for batch in self.batches():
                logger.debug("Fetching catalog ids %d-%d", batch.start, batch.stop - 1)
                results.extend(await self._fetch_batch(client, batch))

        # Family ids follow first-seen order of distinct chain URLs
        family_ids: dict[str, int] = {}
        entries: list[CatalogEntry] = []
        for pokemon, chain_url in results:
            family_id = None
            if chain_url:
                family_id = family_ids.setdefault(chain_url, len(family_ids) + 1)
            entries.append(parse_pokemon(pokemon, chain_url=chain_url, family_id=family_id))
        return entries

    async def _fetch_one(self, entry_id: int) -> CatalogEntry:
        """Fetch a single entry directly; family info is not resolved."""
        async with self._session() as client:
            response = await client.get(f"{self.base_url}/pokemon/{entry_id}")
            if response.status_code == httpx.codes.NOT_FOUND:
                raise EntryNotFoundError(entry_id)
            response.raise_for_status()
            return parse_pokemon(response.json())


def create_catalog_loader(config: Settings | None = None) -> CatalogLoader:
    """Build the loader selected by config.catalog_source."""
    config = config or settings
    if config.catalog_source == "remote":
        return RemoteCatalogLoader(
            base_url=config.pokeapi_url,
            max_id=config.catalog_max_id,
            batch_size=config.catalog_batch_size,
            timeout=config.http_timeout,
        )
    return FileCatalogLoader(source=config.catalog_path, timeout=config.http_timeout)


@lru_cache(maxsize=1)
def get_catalog_loader() -> CatalogLoader:
    """
    Process-wide catalog loader.

    Cached so every caller shares one in-memory catalog.
    """
    return create_catalog_loader()
