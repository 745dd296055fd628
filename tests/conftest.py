import asyncio
from collections.abc import Callable, Mapping
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hundodex.db.row_store import SqlRowStore
from hundodex.models.db import Base
from hundodex.models.entry import BaseStats, CatalogEntry
from hundodex.models.failure import AuthError
from hundodex.models.session import Session
from hundodex.services.identity import DatabaseIdentityProvider


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def row_store(session_factory) -> SqlRowStore:
    return SqlRowStore(session_factory)


@pytest.fixture
def api_identity(session_factory) -> DatabaseIdentityProvider:
    """Identity provider for API tests, on the in-memory database."""
    provider = DatabaseIdentityProvider(session_factory)
    provider.password_iterations = 1_000
    return provider


def make_entry(
    entry_id: int,
    name: str | None = None,
    family_id: int | None = None,
    types: tuple[str, ...] = ("normal",),
    max_cp: int | None = None,
    generation: int | None = 1,
) -> CatalogEntry:
    return CatalogEntry(
        id=entry_id,
        name=name or f"Entry{entry_id}",
        image_url=f"https://img.example.com/{entry_id}.png",
        types=types,
        base_stats=BaseStats(hp=50, attack=50, defense=50),
        max_cp=max_cp,
        generation=generation,
        family_id=family_id,
    )


@pytest.fixture
def sample_entries() -> list[CatalogEntry]:
    """A small catalog with three families and one entry of unknown lineage."""
    return [
        make_entry(1, "Bulbasaur", family_id=1, types=("grass", "poison"), max_cp=1275),
        make_entry(2, "Ivysaur", family_id=1, types=("grass", "poison"), max_cp=1943),
        make_entry(4, "Charmander", family_id=2, types=("fire",), max_cp=1171),
        make_entry(25, "Pikachu", family_id=10, types=("electric",), max_cp=1015),
        make_entry(172, "Pichu", family_id=10, types=("electric",), max_cp=266, generation=2),
        make_entry(99, "Kuranimedol", family_id=None, types=("water",), max_cp=2536),
        make_entry(100, "Swampotamus", family_id=None, types=("electric",), max_cp=1150),
    ]


class FakeIdentityProvider:
    """Identity provider whose pushes and restore result are driven by the test."""

    def __init__(self, restored: Session | None = None) -> None:
        self.restored = restored
        self.restore_gate: asyncio.Event | None = None
        self.restore_error: Exception | None = None
        self.accounts: dict[str, str] = {}
        self._listeners: list[Callable[[Session], None]] = []
        self.sign_out_calls = 0

    def on_session_change(self, callback: Callable[[Session], None]) -> Callable[[], None]:
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def push(self, session: Session) -> None:
        for listener in list(self._listeners):
            listener(session)

    async def restore_session(self) -> Session | None:
        if self.restore_gate is not None:
            await self.restore_gate.wait()
        if self.restore_error is not None:
            raise self.restore_error
        return self.restored

    async def sign_up(self, email: str, password: str) -> Session:
        if email in self.accounts:
            raise AuthError("User already registered")
        self.accounts[email] = password
        session = Session(user_id=f"user-{email}", access_token="token")
        self.push(session)
        return session

    async def sign_in(self, email: str, password: str) -> Session:
        if self.accounts.get(email) != password:
            raise AuthError("Invalid login credentials")
        session = Session(user_id=f"user-{email}", access_token="token")
        self.push(session)
        return session

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        self.push(Session())


@pytest.fixture
def fake_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


class MemoryRowStore:
    """
    Dict-backed row store.

    Set query_gate to hold queries until the test releases them, or
    fail_with to make every call raise.
    """

    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []
        self.next_id = 1
        self.query_gate: asyncio.Event | None = None
        self.fail_with: Exception | None = None
        self.calls: list[str] = []

    def _check(self, call: str) -> None:
        self.calls.append(call)
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def _matches(row: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
        return all(row.get(k) == v for k, v in filters.items())

    async def query(self, table: str, filters: Mapping[str, Any]) -> list[dict[str, Any]]:
        self._check("query")
        if self.query_gate is not None:
            await self.query_gate.wait()
        # Yield so concurrent callers can interleave
        await asyncio.sleep(0)
        return [dict(r) for r in self.rows if self._matches(r, filters)]

    async def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        self._check("insert")
        await asyncio.sleep(0)
        stored = {"id": self.next_id, **row}
        self.next_id += 1
        self.rows.append(stored)
        return dict(stored)

    async def update(
        self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]
    ) -> int:
        self._check("update")
        await asyncio.sleep(0)
        matched = [r for r in self.rows if self._matches(r, filters)]
        for r in matched:
            r.update(patch)
        return len(matched)

    async def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        self._check("delete")
        before = len(self.rows)
        self.rows = [r for r in self.rows if not self._matches(r, filters)]
        return before - len(self.rows)


@pytest.fixture
def memory_rows() -> MemoryRowStore:
    return MemoryRowStore()


@pytest.fixture
def entry_factory() -> Callable[..., CatalogEntry]:
    return make_entry
