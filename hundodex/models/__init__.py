from hundodex.models.annotation import FlagSets, UserAnnotation
from hundodex.models.entry import BaseStats, CatalogEntry
from hundodex.models.failure import (
    AccessDeniedError,
    AuthError,
    EntryNotFoundError,
    FailureDetail,
    FailureKind,
    InvalidInputError,
    KnownError,
    OperationResult,
    PersistenceConflictError,
)
from hundodex.models.family import Family
from hundodex.models.session import Session

__all__ = [
    "AccessDeniedError",
    "AuthError",
    "BaseStats",
    "CatalogEntry",
    "EntryNotFoundError",
    "FailureDetail",
    "FailureKind",
    "Family",
    "FlagSets",
    "InvalidInputError",
    "KnownError",
    "OperationResult",
    "PersistenceConflictError",
    "Session",
    "UserAnnotation",
]
