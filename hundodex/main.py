import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hundodex.api import annotations_router, auth_router, catalog_router, health_router
from hundodex.config import settings
from hundodex.db.database import init_db
from hundodex.models.failure import FailureDetail, FailureKind, KnownError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("hundodex"),
    lifespan=lifespan,
)

app.include_router(annotations_router)
app.include_router(auth_router)
app.include_router(catalog_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"failure": exc.to_detail().model_dump(mode="json")},
    )


@app.exception_handler(httpx.HTTPError)
async def upstream_error_handler(_request: Request, exc: httpx.HTTPError) -> JSONResponse:
    logger.error("Catalog feed request failed: %s", exc)
    failure = FailureDetail(
        kind=FailureKind.TRANSIENT_FETCH,
        message="The catalog feed is unavailable, please try again later",
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"failure": failure.model_dump(mode="json")},
    )
