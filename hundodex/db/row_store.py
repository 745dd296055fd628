"""
Row store capability.

A minimal table-addressed store: query, insert, update, delete, each
selecting rows by equality filters on one or more columns. Every call
runs in its own transaction.
"""

from collections.abc import Mapping
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hundodex.db.operations import delete_rows, insert_row, query_rows, update_rows


class RowStore(Protocol):
    """Row-based persistence addressed by table name and equality filters."""

    async def query(self, table: str, filters: Mapping[str, Any]) -> list[dict[str, Any]]: ...

    async def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]: ...

    async def update(
        self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]
    ) -> int: ...

    async def delete(self, table: str, filters: Mapping[str, Any]) -> int: ...


class SqlRowStore:
    """RowStore backed by the SQLAlchemy async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def query(self, table: str, filters: Mapping[str, Any]) -> list[dict[str, Any]]:
        async with self.session_factory() as session:
            return await query_rows(session, table, filters)

    async def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        async with self.session_factory() as session, session.begin():
            return await insert_row(session, table, row)

    async def update(
        self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]
    ) -> int:
        async with self.session_factory() as session, session.begin():
            return await update_rows(session, table, filters, patch)

    async def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        async with self.session_factory() as session, session.begin():
            return await delete_rows(session, table, filters)
