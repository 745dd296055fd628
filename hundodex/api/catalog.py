"""
Catalog API endpoints.

Lists the catalog (searchable, sortable, grouped into families) and
resolves single entries for the detail view.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from hundodex.controllers.detail_controller import next_id, previous_id
from hundodex.controllers.list_controller import SORT_KEYS, filter_entries, sort_entries
from hundodex.models.entry import CatalogEntry
from hundodex.models.family import Family
from hundodex.services.catalog import CatalogLoader, get_catalog_loader
from hundodex.services.families import group_by_family
from hundodex.services.type_colors import get_type_color

router = APIRouter(prefix="/catalog", tags=["catalog"])


class EntryResponse(BaseModel):
    """One catalog entry."""

    id: int
    name: str
    image_url: str
    types: list[str] = Field(default_factory=list)
    type_colors: dict[str, str] = Field(
        default_factory=dict,
        description="Display color for each type label",
    )
    base_stats: dict[str, int] = Field(default_factory=dict)
    max_cp: int | None = None
    generation: int | None = None
    lineage_chain_id: int | None = None
    family_id: int | None = None

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "EntryResponse":
        return cls(
            id=entry.id,
            name=entry.name,
            image_url=entry.image_url,
            types=list(entry.types),
            type_colors={t: get_type_color(t) for t in entry.types},
            base_stats={
                "hp": entry.base_stats.hp,
                "attack": entry.base_stats.attack,
                "defense": entry.base_stats.defense,
            },
            max_cp=entry.max_cp,
            generation=entry.generation,
            lineage_chain_id=entry.lineage_chain_id,
            family_id=entry.family_id,
        )


class FamilyResponse(BaseModel):
    """A family of entries, members ascending by id."""

    family_id: int
    representative_name: str
    member_ids: list[int]

    @classmethod
    def from_family(cls, family: Family) -> "FamilyResponse":
        return cls(
            family_id=family.family_id,
            representative_name=family.representative_name,
            member_ids=family.member_ids(),
        )


class CatalogResponse(BaseModel):
    """Filtered catalog listing."""

    search: str = ""
    sort: str = "id"
    total: int = 0
    entries: list[EntryResponse] = Field(default_factory=list)
    families: list[FamilyResponse] = Field(default_factory=list)


class EntryDetailResponse(BaseModel):
    """Entry detail with navigation ids."""

    entry: EntryResponse
    previous_id: int
    next_id: int


class TypeColorResponse(BaseModel):
    type: str
    color: str


@router.get("", response_model=CatalogResponse)
async def list_catalog(
    loader: Annotated[CatalogLoader, Depends(get_catalog_loader)],
    search: Annotated[str, Query(description="Substring of the name or id")] = "",
    sort: Annotated[str, Query(description="Sort key: id, name, max_cp, generation")] = "id",
) -> CatalogResponse:
    """
    List catalog entries and their families.

    An unavailable catalog yields an empty listing rather than an error.
    """
    if sort not in SORT_KEYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid sort key '{sort}'. Must be one of {sorted(SORT_KEYS)}",
        )

    entries = await loader.load_all()
    filtered = sort_entries(filter_entries(entries, search), sort)
    families = group_by_family(filtered)

    return CatalogResponse(
        search=search,
        sort=sort,
        total=len(filtered),
        entries=[EntryResponse.from_entry(e) for e in filtered],
        families=[FamilyResponse.from_family(f) for f in families],
    )


@router.get("/types/{type_label}/color", response_model=TypeColorResponse)
async def type_color(type_label: str) -> TypeColorResponse:
    return TypeColorResponse(type=type_label, color=get_type_color(type_label))


@router.get(
    "/{entry_id}",
    response_model=EntryDetailResponse,
    responses={404: {"description": "No catalog entry with this id"}},
)
async def get_entry(
    entry_id: int,
    loader: Annotated[CatalogLoader, Depends(get_catalog_loader)],
) -> EntryDetailResponse:
    """
    Get one entry with previous/next ids.

    Unknown ids raise EntryNotFoundError, which the app maps to 404.
    """
    entry = await loader.load_by_id(entry_id)
    return EntryDetailResponse(
        entry=EntryResponse.from_entry(entry),
        previous_id=previous_id(entry_id),
        next_id=next_id(entry_id),
    )
