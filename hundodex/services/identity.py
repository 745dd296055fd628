"""
Identity provider.

The provider owns accounts and sessions. Clients see it through a small
capability surface: restore a persisted session, subscribe to session
changes, and sign up / in / out.

DatabaseIdentityProvider keeps accounts and session tokens in the
database and persists the signed-in token to a local file so the next
process can restore it.
"""

import hashlib
import hmac
import json
import logging
import secrets
import uuid
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hundodex.config import settings
from hundodex.db.database import async_session_factory
from hundodex.db.operations import (
    create_account,
    create_auth_session,
    delete_auth_session,
    get_account_by_email,
    get_auth_session,
)
from hundodex.models.failure import AuthError
from hundodex.models.session import Session

logger = logging.getLogger(__name__)

SessionListener = Callable[[Session], None]

MIN_PASSWORD_LENGTH = 6


class IdentityProvider(Protocol):
    """Capability surface of the identity provider."""

    async def restore_session(self) -> Session | None: ...

    def on_session_change(self, callback: SessionListener) -> Callable[[], None]: ...

    async def sign_up(self, email: str, password: str) -> Session: ...

    async def sign_in(self, email: str, password: str) -> Session: ...

    async def sign_out(self) -> None: ...


def hash_password(password: str, salt: str, iterations: int) -> str:
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
    return digest.hex()


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class DatabaseIdentityProvider:
    """
    Identity provider backed by the user_accounts and auth_sessions tables.

    Raises AuthError for rejected credentials. Every successful sign-in,
    sign-up, or sign-out pushes the new Session to subscribers.
    """

    password_iterations = 200_000

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        session_file: Path | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.session_file = session_file
        self._listeners: list[SessionListener] = []
        self._current = Session()

    # --- Subscriptions ---

    def on_session_change(self, callback: SessionListener) -> Callable[[], None]:
        """Subscribe to session changes. Returns an unsubscribe callable."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _emit(self, session: Session) -> None:
        self._current = session
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                logger.exception("Session listener failed")

    # --- Persisted token ---

    def _read_token(self) -> str | None:
        if self.session_file is None or not self.session_file.exists():
            return None
        try:
            data = json.loads(self.session_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.session_file, e)
            return None
        token = data.get("access_token") if isinstance(data, dict) else None
        return token if isinstance(token, str) else None

    def _write_token(self, session: Session) -> None:
        if self.session_file is None:
            return
        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        self.session_file.write_text(
            json.dumps({"access_token": session.access_token, "user_id": session.user_id}),
            encoding="utf-8",
        )

    def _clear_token(self) -> None:
        if self.session_file is not None:
            self.session_file.unlink(missing_ok=True)

    # --- Capability ---

    async def restore_session(self) -> Session | None:
        """Return the persisted session if its token is still valid."""
        token = self._read_token()
        if token is None:
            return None

        user_id = await self.user_for_token(token)
        if user_id is None:
            self._clear_token()
            return None

        session = Session(user_id=user_id, access_token=token)
        self._current = session
        return session

    async def user_for_token(self, token: str) -> str | None:
        """User id behind a live session token, None if unknown or revoked."""
        async with self.session_factory() as db:
            auth_session = await get_auth_session(db, token)
        return auth_session.user_id if auth_session is not None else None

    async def revoke_token(self, token: str) -> bool:
        async with self.session_factory() as db, db.begin():
            return await delete_auth_session(db, token)

    async def sign_up(self, email: str, password: str) -> Session:
        """Register a new account and sign it in."""
        email = _normalize_email(email)
        if "@" not in email:
            raise AuthError("Enter a valid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        salt = secrets.token_hex(16)
        try:
            async with self.session_factory() as db, db.begin():
                account = await create_account(
                    db,
                    user_id=str(uuid.uuid4()),
                    email=email,
                    password_hash=hash_password(password, salt, self.password_iterations),
                    salt=salt,
                )
                user_id = account.id
        except IntegrityError as e:
            raise AuthError("User already registered", detail=str(e)) from e

        logger.info("Registered account %s", user_id)
        return await self._start_session(user_id)

    async def sign_in(self, email: str, password: str) -> Session:
        """Verify credentials and start a session."""
        async with self.session_factory() as db:
            account = await get_account_by_email(db, _normalize_email(email))

        if account is None:
            raise AuthError("Invalid login credentials")

        candidate = hash_password(password, account.salt, self.password_iterations)
        if not hmac.compare_digest(candidate, account.password_hash):
            raise AuthError("Invalid login credentials")

        return await self._start_session(account.id)

    async def sign_out(self) -> None:
        """End the current session, if any."""
        token = self._current.access_token or self._read_token()
        if token is not None:
            await self.revoke_token(token)
        self._clear_token()
        self._emit(Session())

    async def _start_session(self, user_id: str) -> Session:
        token = secrets.token_hex(32)
        async with self.session_factory() as db, db.begin():
            await create_auth_session(db, token, user_id)

        session = Session(user_id=user_id, access_token=token)
        self._write_token(session)
        self._emit(session)
        return session


@lru_cache(maxsize=1)
def get_identity_provider() -> DatabaseIdentityProvider:
    """Process-wide provider persisting its token to settings.session_file."""
    return DatabaseIdentityProvider(async_session_factory, Path(settings.session_file))
