"""
Annotation API endpoints.

Reads and writes a user's per-entry progress flags. Every route needs
that user's bearer token.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from hundodex.api.auth import authorized_user_id
from hundodex.db.database import async_session_factory
from hundodex.db.row_store import SqlRowStore
from hundodex.models.annotation import UserAnnotation
from hundodex.models.failure import FailureKind, InvalidInputError, OperationResult
from hundodex.services.annotation_store import AnnotationStore, project_to_flag_sets

router = APIRouter(prefix="/annotations", tags=["annotations"])


@lru_cache(maxsize=1)
def get_annotation_store() -> AnnotationStore:
    """Process-wide store so per-key write ordering holds across requests."""
    return AnnotationStore(SqlRowStore(async_session_factory))


class AnnotationResponse(BaseModel):
    """One stored annotation row."""

    row_id: int | None = None
    entry_id: int
    flag_a: bool
    flag_b: bool
    aux_value: int

    @classmethod
    def from_annotation(cls, annotation: UserAnnotation) -> "AnnotationResponse":
        return cls(
            row_id=annotation.row_id,
            entry_id=annotation.entry_id,
            flag_a=annotation.flag_a,
            flag_b=annotation.flag_b,
            aux_value=annotation.aux_value,
        )


class UserAnnotationsResponse(BaseModel):
    """All of a user's annotations plus the projected flag sets."""

    user_id: str
    annotations: list[AnnotationResponse] = Field(default_factory=list)
    flag_a: list[int] = Field(
        default_factory=list,
        description="Entry ids marked 100IV, ascending",
    )
    flag_b: list[int] = Field(
        default_factory=list,
        description="Entry ids marked Shiny 100IV, ascending",
    )


class AnnotationUpdateRequest(BaseModel):
    """Both flags for one entry, written together."""

    flag_a: bool = Field(..., description="100IV caught")
    flag_b: bool = Field(..., description="Shiny 100IV caught")
    aux_value: int = Field(default=0, ge=0, description="Best Dynamax IV")


class MutationResponse(BaseModel):
    user_id: str
    entry_id: int
    ok: bool


def _raise_for_failure(result: OperationResult) -> None:
    if result.ok or result.failure is None:
        return
    status_code = (
        status.HTTP_409_CONFLICT
        if result.failure.kind is FailureKind.PERSISTENCE_CONFLICT
        else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    raise HTTPException(status_code=status_code, detail=result.failure.message)


@router.get("/{user_id}", response_model=UserAnnotationsResponse)
async def get_user_annotations(
    user_id: Annotated[str, Depends(authorized_user_id)],
    store: Annotated[AnnotationStore, Depends(get_annotation_store)],
) -> UserAnnotationsResponse:
    """
    Get a user's annotation rows and flag sets.

    A store failure yields an empty result rather than an error.
    """
    rows = await store.fetch_all(user_id)
    flags = project_to_flag_sets(rows)

    return UserAnnotationsResponse(
        user_id=user_id,
        annotations=[AnnotationResponse.from_annotation(row) for row in rows],
        flag_a=sorted(flags.flag_a),
        flag_b=sorted(flags.flag_b),
    )


@router.put("/{user_id}/{entry_id}", response_model=MutationResponse)
async def upsert_user_annotation(
    user_id: Annotated[str, Depends(authorized_user_id)],
    entry_id: int,
    request: AnnotationUpdateRequest,
    store: Annotated[AnnotationStore, Depends(get_annotation_store)],
) -> MutationResponse:
    """Create or update the row for (entry_id, user_id)."""
    if entry_id < 1:
        raise InvalidInputError("Entry id must be positive", detail=f"entry_id={entry_id}")

    result = await store.upsert(
        entry_id,
        user_id,
        flag_a=request.flag_a,
        flag_b=request.flag_b,
        aux_value=request.aux_value,
    )
    _raise_for_failure(result)
    return MutationResponse(user_id=user_id, entry_id=entry_id, ok=True)


@router.delete("/{user_id}/{entry_id}", response_model=MutationResponse)
async def delete_user_annotation(
    user_id: Annotated[str, Depends(authorized_user_id)],
    entry_id: int,
    store: Annotated[AnnotationStore, Depends(get_annotation_store)],
) -> MutationResponse:
    """Delete the row for (entry_id, user_id). Deleting a missing row is not an error."""
    result = await store.delete_row(entry_id, user_id)
    _raise_for_failure(result)
    return MutationResponse(user_id=user_id, entry_id=entry_id, ok=True)
