"""
Liveness and readiness checks.

Ready means the progress database answers. The catalog state is reported
alongside but never fails the check, since an unloaded catalog retries on
the next request.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hundodex.db.database import get_session
from hundodex.services.catalog import CatalogLoader, get_catalog_loader

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    database: str | None = None
    catalog: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Process is up. Checks nothing else."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    loader: Annotated[CatalogLoader, Depends(get_catalog_loader)],
) -> HealthResponse:
    catalog = "loaded" if loader.is_loaded else "not loaded"
    try:
        await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected", catalog=catalog)
    return HealthResponse(status="ready", database="connected", catalog=catalog)
