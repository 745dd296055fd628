from hundodex.api.annotations import router as annotations_router
from hundodex.api.auth import router as auth_router
from hundodex.api.catalog import router as catalog_router
from hundodex.api.health import router as health_router

__all__ = [
    "annotations_router",
    "auth_router",
    "catalog_router",
    "health_router",
]
