"""
Failure classification.

Every failure the system can report falls into one of a few kinds:

- NOT_FOUND: requested entry id is absent from the catalog (terminal)
- TRANSIENT_FETCH: catalog or annotation fetch failed (degrades to empty)
- AUTH: sign-in/up/out failed (surfaced as a message)
- PERSISTENCE_CONFLICT: duplicate composite key on insert
- PERSISTENCE: any other row store failure

Asynchronous failures are caught where the operation was issued and turned
into either a logged no-op or an OperationResult. KnownError subclasses are
reserved for failures a caller is expected to handle (the HTTP layer maps
them to status codes).
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    TRANSIENT_FETCH = "transient_fetch"
    AUTH = "auth"
    PERSISTENCE_CONFLICT = "persistence_conflict"
    PERSISTENCE = "persistence"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )


class OperationResult(BaseModel):
    """
    Outcome of a mutation against an external collaborator.

    Either ok, or not ok with a failure explaining why.
    """

    ok: bool
    failure: FailureDetail | None = None

    @classmethod
    def success(cls) -> "OperationResult":
        return cls(ok=True)

    @classmethod
    def error(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
    ) -> "OperationResult":
        return cls(ok=False, failure=FailureDetail(kind=kind, message=message, detail=detail))

    @property
    def reason(self) -> str | None:
        """User-visible failure message, None on success."""
        return self.failure.message if self.failure else None


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        return FailureDetail(kind=self.kind, message=self.message, detail=self.detail)

    def to_result(self) -> OperationResult:
        return OperationResult(ok=False, failure=self.to_detail())


class EntryNotFoundError(KnownError):
    """Requested catalog entry does not exist."""

    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"No catalog entry with id {entry_id}",
            status_code=404,
        )


class AuthError(KnownError):
    """Identity provider rejected a sign-up, sign-in, or sign-out."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.AUTH,
            message=message,
            detail=detail,
            status_code=401,
        )


class AccessDeniedError(KnownError):
    """Signed-in user asked for another user's data."""

    def __init__(self, message: str = "Not allowed to access another user's progress"):
        super().__init__(kind=FailureKind.AUTH, message=message, status_code=403)


class InvalidInputError(KnownError):
    """Request value outside the accepted domain."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=message,
            detail=detail,
            status_code=400,
        )


class PersistenceConflictError(KnownError):
    """A second row was written for an existing (entry_id, user_id) key."""

    def __init__(self, entry_id: int, user_id: str, detail: str | None = None):
        self.entry_id = entry_id
        self.user_id = user_id
        super().__init__(
            kind=FailureKind.PERSISTENCE_CONFLICT,
            message=f"Conflicting write for entry {entry_id}",
            detail=detail,
            status_code=409,
        )
