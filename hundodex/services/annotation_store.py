"""
User annotation store.

Reads and writes per-user progress rows through the row store and derives
the two flag sets the checklist view works from.

Upserts are read-then-write and therefore not atomic at the store level.
Within one process they are serialized per (entry_id, user_id) so two
quick toggles of the same entry cannot race into a duplicate insert or a
lost update. A conflict coming from another process still surfaces as a
PERSISTENCE_CONFLICT result.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hundodex.config import SAVED_USER_DATA_TABLE
from hundodex.db.row_store import RowStore
from hundodex.models.annotation import FlagSets, UserAnnotation
from hundodex.models.failure import FailureKind, OperationResult, PersistenceConflictError

logger = logging.getLogger(__name__)

STORE_ERRORS = (SQLAlchemyError, OSError)


def row_to_annotation(row: Mapping[str, Any]) -> UserAnnotation:
    """Convert a saved_user_data row to a domain model."""
    return UserAnnotation(
        row_id=row.get("id"),
        entry_id=int(row["pokemon_number"]),
        user_id=str(row["user_id"]),
        flag_a=bool(row.get("iv_100")),
        flag_b=bool(row.get("shiny_iv_100")),
        aux_value=int(row.get("dynamax_best_iv") or 0),
    )


def project_to_flag_sets(rows: Iterable[UserAnnotation]) -> FlagSets:
    """
    Split annotation rows into flag A and flag B entry id sets.

    Each row adds its entry id to zero, one, or both sets.
    """
    flags = FlagSets()
    for row in rows:
        if row.flag_a:
            flags.flag_a.add(row.entry_id)
        if row.flag_b:
            flags.flag_b.add(row.entry_id)
    return flags


class AnnotationStore:
    """Per-user annotation rows keyed by (entry_id, user_id)."""

    def __init__(self, rows: RowStore, table: str = SAVED_USER_DATA_TABLE) -> None:
        self.rows = rows
        self.table = table
        self._locks: dict[tuple[int, str], asyncio.Lock] = {}
        self._lock_users: dict[tuple[int, str], int] = {}

    @asynccontextmanager
    async def _serialized(self, entry_id: int, user_id: str) -> AsyncIterator[None]:
        """Hold the lock for one key; the lock is dropped once no caller holds or awaits it."""
        key = (entry_id, user_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def fetch_all(self, user_id: str) -> list[UserAnnotation]:
        """
        Get every annotation row for a user.

        Store failures are logged and yield an empty list.
        """
        try:
            rows = await self.rows.query(self.table, {"user_id": user_id})
        except STORE_ERRORS as e:
            logger.error("Error fetching annotations for %s: %s", user_id, e)
            return []
        return [row_to_annotation(row) for row in rows]

    async def get_flag_sets(self, user_id: str) -> FlagSets:
        return project_to_flag_sets(await self.fetch_all(user_id))

    async def upsert(
        self,
        entry_id: int,
        user_id: str,
        flag_a: bool,
        flag_b: bool,
        aux_value: int = 0,
    ) -> OperationResult:
        """
        Insert or update the row for (entry_id, user_id).

        If a row exists its flags and aux value are updated in place,
        otherwise a new row is inserted with all fields.
        """
        key = {"pokemon_number": entry_id, "user_id": user_id}
        patch = {"iv_100": flag_a, "shiny_iv_100": flag_b, "dynamax_best_iv": aux_value}

        async with self._serialized(entry_id, user_id):
            try:
                existing = await self.rows.query(self.table, key)
                if existing:
                    await self.rows.update(self.table, {"id": existing[0]["id"]}, patch)
                else:
                    await self.rows.insert(self.table, {**key, **patch})
            except IntegrityError as e:
                logger.warning("Conflicting write for entry %d user %s: %s", entry_id, user_id, e)
                return PersistenceConflictError(entry_id, user_id, detail=str(e)).to_result()
            except STORE_ERRORS as e:
                logger.error("Error saving entry %d for %s: %s", entry_id, user_id, e)
                return OperationResult.error(
                    FailureKind.PERSISTENCE,
                    "Could not save progress",
                    detail=str(e),
                )

        return OperationResult.success()

    async def delete_row(self, entry_id: int, user_id: str) -> OperationResult:
        """Delete the row for (entry_id, user_id), if any."""
        async with self._serialized(entry_id, user_id):
            try:
                deleted = await self.rows.delete(
                    self.table, {"pokemon_number": entry_id, "user_id": user_id}
                )
            except STORE_ERRORS as e:
                logger.error("Error deleting entry %d for %s: %s", entry_id, user_id, e)
                return OperationResult.error(
                    FailureKind.PERSISTENCE,
                    "Could not delete progress",
                    detail=str(e),
                )

        logger.debug("Deleted %d rows for entry %d user %s", deleted, entry_id, user_id)
        return OperationResult.success()
