"""Tests for catalog API endpoints."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from hundodex.main import app
from hundodex.models.entry import CatalogEntry
from hundodex.models.failure import EntryNotFoundError
from hundodex.services.catalog import CatalogLoader, get_catalog_loader


class StubCatalog(CatalogLoader):
    def __init__(self, entries: list[CatalogEntry], fail: bool = False) -> None:
        super().__init__()
        self._source = entries
        self._fail = fail

    async def _fetch_all(self) -> list[CatalogEntry]:
        if self._fail:
            raise httpx.ConnectError("feed offline")
        return list(self._source)

    async def _fetch_one(self, entry_id: int) -> CatalogEntry:
        if self._fail:
            raise httpx.ConnectError("feed offline")
        for entry in self._source:
            if entry.id == entry_id:
                return entry
        raise EntryNotFoundError(entry_id)


@pytest.fixture
async def make_client():
    clients: list[AsyncClient] = []

    async def factory(catalog: CatalogLoader) -> AsyncClient:
        app.dependency_overrides[get_catalog_loader] = lambda: catalog
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


@pytest.fixture
async def client(make_client, sample_entries: list[CatalogEntry]) -> AsyncClient:
    return await make_client(StubCatalog(sample_entries))


class TestListCatalog:
    async def test_lists_all_sorted_by_id(self, client: AsyncClient) -> None:
        response = await client.get("/catalog")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 7
        assert [e["id"] for e in data["entries"]] == [1, 2, 4, 25, 99, 100, 172]

    async def test_families_grouped(self, client: AsyncClient) -> None:
        response = await client.get("/catalog")

        families = response.json()["families"]
        assert families[0] == {
            "family_id": 1,
            "representative_name": "Bulbasaur",
            "member_ids": [1, 2],
        }
        assert [f["family_id"] for f in families] == [1, 2, 10, 99, 100]

    async def test_search(self, client: AsyncClient) -> None:
        response = await client.get("/catalog", params={"search": "99"})

        data = response.json()
        assert [e["id"] for e in data["entries"]] == [99]
        assert data["search"] == "99"

    async def test_sort(self, client: AsyncClient) -> None:
        response = await client.get("/catalog", params={"sort": "max_cp"})

        assert response.json()["entries"][0]["id"] == 172

    async def test_invalid_sort(self, client: AsyncClient) -> None:
        response = await client.get("/catalog", params={"sort": "weight"})

        assert response.status_code == 400
        assert "Invalid sort key" in response.json()["detail"]

    async def test_type_colors_included(self, client: AsyncClient) -> None:
        response = await client.get("/catalog", params={"search": "Charmander"})

        (entry,) = response.json()["entries"]
        assert entry["type_colors"] == {"fire": "#F08030"}

    async def test_unavailable_feed_gives_empty_listing(self, make_client) -> None:
        client = await make_client(StubCatalog([], fail=True))

        response = await client.get("/catalog")

        assert response.status_code == 200
        assert response.json()["entries"] == []


class TestGetEntry:
    async def test_get_entry(self, client: AsyncClient) -> None:
        response = await client.get("/catalog/25")

        assert response.status_code == 200
        data = response.json()
        assert data["entry"]["name"] == "Pikachu"
        assert data["previous_id"] == 24
        assert data["next_id"] == 26

    async def test_previous_clamped(self, client: AsyncClient) -> None:
        response = await client.get("/catalog/1")

        assert response.json()["previous_id"] == 1

    async def test_unknown_entry(self, client: AsyncClient) -> None:
        response = await client.get("/catalog/2000")

        assert response.status_code == 404
        failure = response.json()["failure"]
        assert failure["kind"] == "not_found"

    async def test_feed_error(self, make_client) -> None:
        client = await make_client(StubCatalog([], fail=True))

        response = await client.get("/catalog/3")

        assert response.status_code == 502
        assert response.json()["failure"]["kind"] == "transient_fetch"


async def test_type_color_endpoint(client: AsyncClient) -> None:
    response = await client.get("/catalog/types/Grass/color")

    assert response.json() == {"type": "Grass", "color": "#78C850"}
