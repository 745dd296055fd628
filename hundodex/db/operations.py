"""
Database CRUD operations.

Table-addressed row operations (the row store capability) plus the
account and session queries used by the identity provider.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hundodex.models.db import AuthSessionDB, Base, UserAccountDB

# --- Row Operations ---


def get_table(table_name: str) -> Table:
    """
    Look up a mapped table by name.

    Raises KeyError for unknown tables.
    """
    return Base.metadata.tables[table_name]


def _where(table: Table, filters: Mapping[str, Any]) -> list[Any]:
    if not filters:
        raise ValueError("Row filters cannot be empty")
    return [table.c[column] == value for column, value in filters.items()]


async def query_rows(
    session: AsyncSession, table_name: str, filters: Mapping[str, Any]
) -> list[dict[str, Any]]:
    """Get all rows whose columns equal the filter values."""
    table = get_table(table_name)
    result = await session.execute(
        select(table).where(*_where(table, filters)).order_by(*table.primary_key.columns)
    )
    return [dict(row) for row in result.mappings().all()]


async def insert_row(
    session: AsyncSession, table_name: str, row: Mapping[str, Any]
) -> dict[str, Any]:
    """
    Insert one row and return it with server-assigned values.

    Raises IntegrityError on unique constraint violations.
    """
    table = get_table(table_name)
    result = await session.execute(insert(table).values(**row).returning(*table.columns))
    return dict(result.mappings().one())


async def update_rows(
    session: AsyncSession,
    table_name: str,
    filters: Mapping[str, Any],
    patch: Mapping[str, Any],
) -> int:
    """
    Apply a patch to all rows matching the filters.

    Returns the number of updated rows.
    """
    table = get_table(table_name)
    result = await session.execute(
        update(table).where(*_where(table, filters)).values(**patch)
    )
    # rowcount is available on UPDATE results; type stubs incomplete for async
    return int(result.rowcount)  # type: ignore[attr-defined]


async def delete_rows(
    session: AsyncSession, table_name: str, filters: Mapping[str, Any]
) -> int:
    """
    Delete all rows matching the filters.

    Returns the number of deleted rows.
    """
    table = get_table(table_name)
    result = await session.execute(delete(table).where(*_where(table, filters)))
    return int(result.rowcount)  # type: ignore[attr-defined]


# --- Account Operations ---


async def get_account_by_email(session: AsyncSession, email: str) -> UserAccountDB | None:
    """Get an account by email, or None."""
    result = await session.execute(select(UserAccountDB).where(UserAccountDB.email == email))
    return result.scalar_one_or_none()


async def create_account(
    session: AsyncSession,
    user_id: str,
    email: str,
    password_hash: str,
    salt: str,
) -> UserAccountDB:
    """
    Create a new account.

    Raises IntegrityError if the email is already registered.
    """
    account = UserAccountDB(id=user_id, email=email, password_hash=password_hash, salt=salt)
    session.add(account)
    await session.flush()
    return account


async def create_auth_session(session: AsyncSession, token: str, user_id: str) -> AuthSessionDB:
    auth_session = AuthSessionDB(token=token, user_id=user_id)
    session.add(auth_session)
    await session.flush()
    return auth_session


async def get_auth_session(session: AsyncSession, token: str) -> AuthSessionDB | None:
    return await session.get(AuthSessionDB, token)


async def delete_auth_session(session: AsyncSession, token: str) -> bool:
    """
    Delete a session by token.

    Returns True if deleted, False if not found.
    """
    auth_session = await get_auth_session(session, token)
    if not auth_session:
        return False

    await session.delete(auth_session)
    return True
