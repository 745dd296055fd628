"""
Auth session manager.

Wraps an identity provider and keeps one session cell the rest of the
client reads from. Two sources write to the cell: the one-off restore
attempt made by start(), and the provider's session-change pushes. They
are not ordered against each other; whichever lands last wins.
"""

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError

from hundodex.models.failure import AuthError, FailureKind, OperationResult
from hundodex.models.session import Session
from hundodex.services.identity import IdentityProvider, SessionListener

logger = logging.getLogger(__name__)

PROVIDER_ERRORS = (SQLAlchemyError, OSError)


class AuthSessionManager:
    """Current-user state plus sign-up, sign-in, and sign-out."""

    def __init__(self, provider: IdentityProvider) -> None:
        self._provider = provider
        self._session = Session(is_loading=True)
        self._listeners: list[SessionListener] = []
        self._unsubscribe_provider: Callable[[], None] | None = None
        self._restore_task: asyncio.Task[None] | None = None

    # --- State ---

    @property
    def session(self) -> Session:
        return self._session

    @property
    def is_loading(self) -> bool:
        return self._session.is_loading

    def current_user_id(self) -> str | None:
        return self._session.user_id

    def is_authenticated(self) -> bool:
        return self._session.user_id is not None

    def subscribe(self, callback: SessionListener) -> Callable[[], None]:
        """Get notified after every session write. Returns an unsubscribe callable."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _apply(self, session: Session) -> None:
        self._session = session
        for listener in list(self._listeners):
            listener(session)

    # --- Lifecycle ---

    def start(self) -> asyncio.Task[None]:
        """
        Subscribe to provider pushes and begin restoring the session.

        Must be called from a running event loop. Returns the restore task.
        """
        if self._unsubscribe_provider is None:
            self._unsubscribe_provider = self._provider.on_session_change(self._on_provider_change)
        if self._restore_task is None:
            self._restore_task = asyncio.create_task(self.restore())
        return self._restore_task

    def close(self) -> None:
        if self._unsubscribe_provider is not None:
            self._unsubscribe_provider()
            self._unsubscribe_provider = None

    async def restore(self) -> None:
        """
        Restore the provider's persisted session.

        Loading always ends, even if the provider fails.
        """
        try:
            restored = await self._provider.restore_session()
        except PROVIDER_ERRORS as e:
            logger.error("Error initializing auth: %s", e)
            self._apply(dataclasses.replace(self._session, is_loading=False))
            return

        self._apply(restored if restored is not None else Session())

    def _on_provider_change(self, session: Session) -> None:
        self._apply(dataclasses.replace(session, is_loading=False))

    # --- Operations ---

    async def sign_up(self, email: str, password: str) -> OperationResult:
        return await self._call("sign up", self._provider.sign_up(email, password))

    async def sign_in(self, email: str, password: str) -> OperationResult:
        return await self._call("sign in", self._provider.sign_in(email, password))

    async def sign_out(self) -> OperationResult:
        return await self._call("sign out", self._provider.sign_out())

    async def _call(self, action: str, operation: Awaitable[object]) -> OperationResult:
        try:
            await operation
        except AuthError as e:
            logger.info("Could not %s: %s", action, e.message)
            return e.to_result()
        except PROVIDER_ERRORS as e:
            logger.error("Identity provider failed during %s: %s", action, e)
            return OperationResult.error(
                FailureKind.AUTH,
                f"Could not {action} right now, please try again",
                detail=str(e),
            )
        return OperationResult.success()
