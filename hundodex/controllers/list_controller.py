"""
Checklist view controller.

Owns the list view's state: the catalog, the search/sort-derived entry and
family lists, the signed-in user's flag sets, and image loading markers.
Subscribers are called after every state change; there is no reactive
framework, each trigger recomputes what it affects explicitly.

State flow: IDLE -> LOADING -> READY. Only load_catalog leaves LOADING.
Once READY, it is re-entered on every search or sort change and on every
auth transition; the same triggers during a load only notify subscribers.

Flag sets follow the session:
- signing in replaces both sets wholesale with the fetched projection
- signing out clears both sets immediately
- a fetch is tagged with the user it was issued for and its result is
  dropped if that user is no longer signed in when it arrives

Toggles are optimistic. The set flips at once, then both flags for that
entry are written together as one upsert. A failed write is not rolled
back; the entry is kept in unsynced_ids until a later write succeeds.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from enum import Enum

from hundodex.models.entry import CatalogEntry
from hundodex.models.failure import OperationResult
from hundodex.models.family import Family
from hundodex.models.session import Session
from hundodex.services.annotation_store import AnnotationStore, project_to_flag_sets
from hundodex.services.auth import AuthSessionManager
from hundodex.services.catalog import CatalogLoader
from hundodex.services.families import group_by_family

logger = logging.getLogger(__name__)


class ViewState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


def _none_first(value: int | None) -> int:
    return value if value is not None else -1


SORT_KEYS: dict[str, Callable[[CatalogEntry], tuple[object, ...]]] = {
    "id": lambda e: (e.id,),
    "name": lambda e: (e.name.lower(), e.id),
    "max_cp": lambda e: (_none_first(e.max_cp), e.id),
    "generation": lambda e: (_none_first(e.generation), e.id),
}


def filter_entries(entries: Iterable[CatalogEntry], search_term: str) -> list[CatalogEntry]:
    """
    Case-insensitive substring match on name or on the id as a string.

    An empty term matches everything.
    """
    term = search_term.lower()
    if not term:
        return list(entries)
    return [e for e in entries if term in e.name.lower() or term in str(e.id)]


def sort_entries(entries: Iterable[CatalogEntry], sort_key: str = "id") -> list[CatalogEntry]:
    """
    Sort entries ascending by sort_key; ties fall back to ascending id.

    Raises:
        ValueError: If sort_key is not one of SORT_KEYS
    """
    if sort_key not in SORT_KEYS:
        raise ValueError(f"Invalid sort key: {sort_key}. Must be one of {sorted(SORT_KEYS)}")
    return sorted(entries, key=SORT_KEYS[sort_key])


ListListener = Callable[["ListController"], None]


class ListController:
    """State machine behind the checklist view."""

    def __init__(
        self,
        catalog: CatalogLoader,
        store: AnnotationStore,
        auth: AuthSessionManager,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.auth = auth

        self.state = ViewState.IDLE
        self.entries: list[CatalogEntry] = []
        self.filtered_entries: list[CatalogEntry] = []
        self.families: list[Family] = []
        self.search_term = ""
        self.sort_key = "id"

        self.flag_a: set[int] = set()
        self.flag_b: set[int] = set()
        self.aux_values: dict[int, int] = {}
        self.image_loading: set[int] = set()
        self.unsynced_ids: set[int] = set()

        self._listeners: list[ListListener] = []
        self._active_user_id: str | None = None
        self._annotation_task: asyncio.Task[bool] | None = None
        self._unsubscribe_auth: Callable[[], None] | None = None

    # --- Subscriptions ---

    def subscribe(self, callback: ListListener) -> Callable[[], None]:
        """Get notified after every state change. Returns an unsubscribe callable."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # --- Lifecycle ---

    async def start(self) -> None:
        """Follow auth changes and load the catalog."""
        if self._unsubscribe_auth is None:
            self._unsubscribe_auth = self.auth.subscribe(self._on_session_change)
            self._on_session_change(self.auth.session)
        await self.load_catalog()

    def close(self) -> None:
        if self._unsubscribe_auth is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None

    @property
    def pending_annotations(self) -> asyncio.Task[bool] | None:
        """The most recently issued annotation fetch, if any."""
        return self._annotation_task

    async def load_catalog(self) -> None:
        """Load the catalog; loading always ends in READY."""
        self.state = ViewState.LOADING
        self._notify()
        try:
            self.entries = await self.catalog.load_all()
        finally:
            self._enter_ready()

    # --- Derived lists ---

    def set_search_term(self, search_term: str) -> None:
        self.search_term = search_term
        self._refresh()

    def set_sort_key(self, sort_key: str) -> None:
        if sort_key not in SORT_KEYS:
            raise ValueError(f"Invalid sort key: {sort_key}. Must be one of {sorted(SORT_KEYS)}")
        self.sort_key = sort_key
        self._refresh()

    def _recompute(self) -> None:
        self.filtered_entries = sort_entries(
            filter_entries(self.entries, self.search_term), self.sort_key
        )
        self.families = group_by_family(self.filtered_entries)

    def _enter_ready(self) -> None:
        self._recompute()
        self.state = ViewState.READY
        self._notify()

    def _refresh(self) -> None:
        """Re-enter READY once the catalog is in; while loading only publish the change."""
        if self.state is ViewState.READY:
            self._enter_ready()
        else:
            self._notify()

    # --- Auth transitions ---

    def _on_session_change(self, session: Session) -> None:
        user_id = session.user_id
        if user_id == self._active_user_id:
            return

        self._active_user_id = user_id
        self._clear_flags()
        if user_id is not None:
            self._annotation_task = asyncio.create_task(self.load_annotations(user_id))
        self._refresh()

    def _clear_flags(self) -> None:
        self.flag_a = set()
        self.flag_b = set()
        self.aux_values = {}
        self.unsynced_ids = set()

    async def load_annotations(self, user_id: str) -> bool:
        """
        Fetch a user's annotations and replace both flag sets.

        Returns False if the response was discarded because user_id is no
        longer the signed-in user.
        """
        rows = await self.store.fetch_all(user_id)

        if self.auth.current_user_id() != user_id:
            logger.debug("Discarding stale annotations for %s", user_id)
            return False

        flags = project_to_flag_sets(rows)
        self.flag_a = flags.flag_a
        self.flag_b = flags.flag_b
        self.aux_values = {row.entry_id: row.aux_value for row in rows}
        self.unsynced_ids = set()
        self._refresh()
        return True

    # --- Toggles ---

    def is_flag_a(self, entry_id: int) -> bool:
        return entry_id in self.flag_a

    def is_flag_b(self, entry_id: int) -> bool:
        return entry_id in self.flag_b

    async def toggle_flag_a(self, entry_id: int) -> OperationResult | None:
        return await self._toggle(self.flag_a, entry_id)

    async def toggle_flag_b(self, entry_id: int) -> OperationResult | None:
        return await self._toggle(self.flag_b, entry_id)

    async def _toggle(self, flags: set[int], entry_id: int) -> OperationResult | None:
        """
        Flip one flag and persist both.

        Returns None without doing anything when no user is signed in.
        """
        user_id = self.auth.current_user_id()
        if user_id is None:
            return None

        if entry_id in flags:
            flags.discard(entry_id)
        else:
            flags.add(entry_id)
        self._notify()

        result = await self.store.upsert(
            entry_id,
            user_id,
            flag_a=entry_id in self.flag_a,
            flag_b=entry_id in self.flag_b,
            aux_value=self.aux_values.get(entry_id, 0),
        )

        if self.auth.current_user_id() != user_id:
            return result

        if result.ok:
            self.unsynced_ids.discard(entry_id)
        else:
            logger.warning("Progress for entry %d not saved: %s", entry_id, result.reason)
            self.unsynced_ids.add(entry_id)
            self._notify()
        return result

    # --- Image loading ---

    def begin_image_load(self, entry_id: int) -> None:
        self.image_loading.add(entry_id)
        self._notify()

    def finish_image_load(self, entry_id: int) -> None:
        self.image_loading.discard(entry_id)
        self._notify()

    def is_image_loading(self, entry_id: int) -> bool:
        return entry_id in self.image_loading
