"""
Hundodex services.

Catalog loading, family grouping, identity, and annotation persistence.
"""

from hundodex.services.annotation_store import (
    AnnotationStore,
    project_to_flag_sets,
    row_to_annotation,
)
from hundodex.services.auth import AuthSessionManager
from hundodex.services.catalog import (
    CatalogLoader,
    FileCatalogLoader,
    RemoteCatalogLoader,
    create_catalog_loader,
    get_catalog_loader,
)
from hundodex.services.families import family_key, group_by_family
from hundodex.services.identity import (
    DatabaseIdentityProvider,
    IdentityProvider,
    get_identity_provider,
)
from hundodex.services.type_colors import DEFAULT_TYPE_COLOR, TYPE_COLORS, get_type_color

__all__ = [
    "DEFAULT_TYPE_COLOR",
    "TYPE_COLORS",
    "AnnotationStore",
    "AuthSessionManager",
    "CatalogLoader",
    "DatabaseIdentityProvider",
    "FileCatalogLoader",
    "IdentityProvider",
    "RemoteCatalogLoader",
    "create_catalog_loader",
    "family_key",
    "get_catalog_loader",
    "get_identity_provider",
    "get_type_color",
    "group_by_family",
    "project_to_flag_sets",
    "row_to_annotation",
]
