"""Tests for the checklist view controller."""

import asyncio

import pytest
from conftest import FakeIdentityProvider, MemoryRowStore

from hundodex.controllers.list_controller import (
    ListController,
    ViewState,
    filter_entries,
    sort_entries,
)
from hundodex.models.entry import CatalogEntry
from hundodex.models.session import Session
from hundodex.services.annotation_store import AnnotationStore
from hundodex.services.auth import AuthSessionManager
from hundodex.services.catalog import CatalogLoader


class StaticCatalog(CatalogLoader):
    def __init__(self, entries: list[CatalogEntry]) -> None:
        super().__init__()
        self._source = entries

    async def _fetch_all(self) -> list[CatalogEntry]:
        return list(self._source)

    async def _fetch_one(self, entry_id: int) -> CatalogEntry:
        raise NotImplementedError


class GatedCatalog(StaticCatalog):
    """Holds load_all until the test sets the gate."""

    def __init__(self, entries: list[CatalogEntry]) -> None:
        super().__init__(entries)
        self.gate = asyncio.Event()

    async def _fetch_all(self) -> list[CatalogEntry]:
        await self.gate.wait()
        return await super()._fetch_all()


def seed(rows: MemoryRowStore, user_id: str, entry_id: int, flag_a=False, flag_b=False) -> None:
    rows.rows.append(
        {
            "id": rows.next_id,
            "pokemon_number": entry_id,
            "user_id": user_id,
            "iv_100": flag_a,
            "shiny_iv_100": flag_b,
            "dynamax_best_iv": 0,
        }
    )
    rows.next_id += 1


@pytest.fixture
async def auth(fake_provider: FakeIdentityProvider) -> AuthSessionManager:
    manager = AuthSessionManager(fake_provider)
    await manager.start()
    return manager


@pytest.fixture
async def controller(
    sample_entries: list[CatalogEntry], memory_rows: MemoryRowStore, auth: AuthSessionManager
) -> ListController:
    controller = ListController(StaticCatalog(sample_entries), AnnotationStore(memory_rows), auth)
    await controller.start()
    return controller


async def sign_in(
    provider: FakeIdentityProvider, controller: ListController, user_id: str
) -> None:
    provider.push(Session(user_id=user_id, access_token="t"))
    assert controller.pending_annotations is not None
    await controller.pending_annotations


class TestFilterAndSort:
    def test_search_by_id_fragment(self, sample_entries: list[CatalogEntry]) -> None:
        assert [e.id for e in filter_entries(sample_entries, "99")] == [99]

    def test_search_by_name_case_insensitive(self, sample_entries: list[CatalogEntry]) -> None:
        assert [e.name for e in filter_entries(sample_entries, "PIKA")] == ["Pikachu"]

    def test_empty_search_matches_all(self, sample_entries: list[CatalogEntry]) -> None:
        assert len(filter_entries(sample_entries, "")) == len(sample_entries)

    def test_ties_fall_back_to_id(self, entry_factory) -> None:
        entries = [
            entry_factory(30, max_cp=500),
            entry_factory(10, max_cp=500),
            entry_factory(20, max_cp=100),
        ]

        assert [e.id for e in sort_entries(entries, "max_cp")] == [20, 10, 30]

    def test_missing_values_sort_first(self, entry_factory) -> None:
        entries = [entry_factory(1, max_cp=10), entry_factory(2, max_cp=None)]

        assert [e.id for e in sort_entries(entries, "max_cp")] == [2, 1]

    def test_sort_by_name(self, sample_entries: list[CatalogEntry]) -> None:
        names = [e.name for e in sort_entries(sample_entries, "name")]

        assert names == sorted(names, key=str.lower)

    def test_invalid_sort_key(self, sample_entries: list[CatalogEntry]) -> None:
        with pytest.raises(ValueError, match="Invalid sort key"):
            sort_entries(sample_entries, "weight")


class TestLoading:
    async def test_starts_idle(
        self, sample_entries: list[CatalogEntry], memory_rows: MemoryRowStore, auth
    ) -> None:
        controller = ListController(
            StaticCatalog(sample_entries), AnnotationStore(memory_rows), auth
        )

        assert controller.state is ViewState.IDLE

    async def test_load_reaches_ready(self, controller: ListController) -> None:
        assert controller.state is ViewState.READY
        assert [e.id for e in controller.filtered_entries] == [1, 2, 4, 25, 99, 100, 172]
        assert [f.family_id for f in controller.families] == [1, 2, 10, 99, 100]

    async def test_states_observed_in_order(
        self, sample_entries: list[CatalogEntry], memory_rows: MemoryRowStore, auth
    ) -> None:
        controller = ListController(
            StaticCatalog(sample_entries), AnnotationStore(memory_rows), auth
        )
        states: list[ViewState] = []
        controller.subscribe(lambda c: states.append(c.state))

        await controller.start()

        assert states == [ViewState.LOADING, ViewState.READY]

    async def test_empty_catalog_still_ready(
        self, memory_rows: MemoryRowStore, auth: AuthSessionManager
    ) -> None:
        controller = ListController(StaticCatalog([]), AnnotationStore(memory_rows), auth)

        await controller.start()

        assert controller.state is ViewState.READY
        assert controller.families == []

    async def test_sign_in_during_load_stays_loading(
        self,
        sample_entries: list[CatalogEntry],
        memory_rows: MemoryRowStore,
        fake_provider: FakeIdentityProvider,
        auth: AuthSessionManager,
    ) -> None:
        """No READY is published until the catalog itself has arrived."""
        seed(memory_rows, "u1", 25, flag_a=True)
        catalog = GatedCatalog(sample_entries)
        controller = ListController(catalog, AnnotationStore(memory_rows), auth)
        states: list[tuple[ViewState, int]] = []
        controller.subscribe(lambda c: states.append((c.state, len(c.filtered_entries))))

        start = asyncio.create_task(controller.start())
        await asyncio.sleep(0)
        assert controller.state is ViewState.LOADING

        await sign_in(fake_provider, controller, "u1")
        controller.set_search_term("pika")

        assert controller.state is ViewState.LOADING
        assert controller.flag_a == {25}
        assert all(state is ViewState.LOADING for state, _ in states)

        catalog.gate.set()
        await start

        assert states[-1] == (ViewState.READY, 1)
        assert [s for s, _ in states].count(ViewState.READY) == 1

    async def test_search_regroups(self, controller: ListController) -> None:
        controller.set_search_term("99")

        assert controller.state is ViewState.READY
        assert [e.id for e in controller.filtered_entries] == [99]
        assert [f.member_ids() for f in controller.families] == [[99]]

    async def test_sort_change(self, controller: ListController) -> None:
        controller.set_sort_key("max_cp")

        assert controller.filtered_entries[0].id == 172

    async def test_invalid_sort_change_keeps_key(self, controller: ListController) -> None:
        with pytest.raises(ValueError):
            controller.set_sort_key("weight")

        assert controller.sort_key == "id"


class TestAuthTransitions:
    async def test_sign_in_loads_flags(
        self,
        controller: ListController,
        fake_provider: FakeIdentityProvider,
        memory_rows: MemoryRowStore,
    ) -> None:
        seed(memory_rows, "u1", 3, flag_a=True)
        seed(memory_rows, "u1", 7, flag_a=True, flag_b=True)
        seed(memory_rows, "u2", 9, flag_a=True)

        await sign_in(fake_provider, controller, "u1")

        assert controller.flag_a == {3, 7}
        assert controller.flag_b == {7}
        assert controller.state is ViewState.READY

    async def test_sign_out_clears_flags(
        self,
        controller: ListController,
        fake_provider: FakeIdentityProvider,
        memory_rows: MemoryRowStore,
    ) -> None:
        seed(memory_rows, "u1", 3, flag_a=True)
        seed(memory_rows, "u1", 7, flag_a=True)
        await sign_in(fake_provider, controller, "u1")

        fake_provider.push(Session())

        assert controller.flag_a == set()
        assert controller.flag_b == set()

    async def test_switching_users_replaces_flags(
        self,
        controller: ListController,
        fake_provider: FakeIdentityProvider,
        memory_rows: MemoryRowStore,
    ) -> None:
        seed(memory_rows, "u1", 3, flag_a=True)
        seed(memory_rows, "u2", 9, flag_b=True)

        await sign_in(fake_provider, controller, "u1")
        await sign_in(fake_provider, controller, "u2")

        assert controller.flag_a == set()
        assert controller.flag_b == {9}

    async def test_stale_response_discarded(
        self,
        controller: ListController,
        fake_provider: FakeIdentityProvider,
        memory_rows: MemoryRowStore,
    ) -> None:
        """A slow fetch for a previous user never overwrites the current user's flags."""
        seed(memory_rows, "u1", 3, flag_a=True)
        seed(memory_rows, "u2", 9, flag_a=True)
        memory_rows.query_gate = asyncio.Event()

        fake_provider.push(Session(user_id="u1"))
        u1_fetch = controller.pending_annotations
        fake_provider.push(Session())
        fake_provider.push(Session(user_id="u2"))
        u2_fetch = controller.pending_annotations

        memory_rows.query_gate.set()
        assert u1_fetch is not None and u2_fetch is not None
        assert await u1_fetch is False
        assert await u2_fetch is True
        assert controller.flag_a == {9}

    async def test_fetch_failure_leaves_empty_flags(
        self,
        controller: ListController,
        fake_provider: FakeIdentityProvider,
        memory_rows: MemoryRowStore,
    ) -> None:
        memory_rows.fail_with = OSError("offline")

        await sign_in(fake_provider, controller, "u1")

        assert controller.flag_a == set()
        assert controller.state is ViewState.READY


class TestToggles:
    async def test_toggle_without_user_is_noop(
        self, controller: ListController, memory_rows: MemoryRowStore
    ) -> None:
        result = await controller.toggle_flag_a(25)

        assert result is None
        assert controller.flag_a == set()
        assert memory_rows.calls == []

    async def test_toggle_writes_both_flags(
        self,
        controller: ListController,
        fake_provider: FakeIdentityProvider,
        memory_rows: MemoryRowStore,
    ) -> None:
        seed(memory_rows, "u1", 25, flag_b=True)
        await sign_in(fake_provider, controller, "u1")

        result = await controller.toggle_flag_a(25)

        assert result is not None and result.ok
        assert controller.is_flag_a(25)
        (row,) = [r for r in memory_rows.rows if r["pokemon_number"] == 25]
        assert row["iv_100"] is True
        assert row["shiny_iv_100"] is True

    async def test_toggle_twice_restores(
        self,
        controller: ListController,
        fake_provider: FakeIdentityProvider,
        memory_rows: MemoryRowStore,
    ) -> None:
        await sign_in(fake_provider, controller, "u1")

        await controller.toggle_flag_b(4)
        await controller.toggle_flag_b(4)

        assert not controller.is_flag_b(4)
        assert memory_rows.rows[0]["shiny_iv_100"] is False

    async def test_toggle_keeps_aux_value(
        self,
        controller: ListController,
        fake_provider: FakeIdentityProvider,
        memory_rows: MemoryRowStore,
    ) -> None:
        seed(memory_rows, "u1", 25, flag_a=True)
        memory_rows.rows[0]["dynamax_best_iv"] = 2
        await sign_in(fake_provider, controller, "u1")

        await controller.toggle_flag_b(25)

        assert memory_rows.rows[0]["dynamax_best_iv"] == 2

    async def test_failed_write_is_not_rolled_back(
        self,
        controller: ListController,
        fake_provider: FakeIdentityProvider,
        memory_rows: MemoryRowStore,
    ) -> None:
        await sign_in(fake_provider, controller, "u1")
        memory_rows.fail_with = OSError("offline")

        result = await controller.toggle_flag_a(25)

        assert result is not None and not result.ok
        assert controller.is_flag_a(25)
        assert controller.unsynced_ids == {25}

        memory_rows.fail_with = None
        await controller.toggle_flag_b(25)

        assert controller.unsynced_ids == set()

    async def test_toggle_notifies_before_write(
        self,
        controller: ListController,
        fake_provider: FakeIdentityProvider,
        memory_rows: MemoryRowStore,
    ) -> None:
        await sign_in(fake_provider, controller, "u1")
        seen: list[tuple[bool, int]] = []
        controller.subscribe(lambda c: seen.append((c.is_flag_a(1), len(memory_rows.calls))))

        await controller.toggle_flag_a(1)

        assert seen[0][0] is True
        assert seen[0][1] == len(memory_rows.calls) - 2


class TestImageLoading:
    async def test_image_markers(self, controller: ListController) -> None:
        controller.begin_image_load(25)
        assert controller.is_image_loading(25)

        controller.finish_image_load(25)
        assert not controller.is_image_loading(25)

    async def test_finish_unknown_is_harmless(self, controller: ListController) -> None:
        controller.finish_image_load(404)

        assert controller.image_loading == set()
