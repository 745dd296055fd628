"""
Consolidated catalog document parser.

The local catalog is one JSON document listing every entry with the same
field shape the remote loader produces. Upstream data is not guaranteed to
be well-formed, so field normalization happens here, once, at ingestion.
"""

import logging
from typing import Any

from hundodex.config import SPRITE_FALLBACK_URL
from hundodex.models.entry import BaseStats, CatalogEntry
from hundodex.parsers.pokeapi import calculate_max_cp, get_generation

logger = logging.getLogger(__name__)


def normalize_types(value: Any) -> tuple[str, ...]:
    """
    Coerce a raw types field to a tuple of labels.

    A bare string becomes a one-element tuple; anything that is not a
    list or tuple becomes empty.
    """
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list | tuple):
        return tuple(str(t) for t in value)
    return ()


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _pick(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def parse_catalog_entry(raw: dict[str, Any]) -> CatalogEntry | None:
    """
    Build a CatalogEntry from one document record.

    Accepts camelCase keys (imageUrl/sprite, baseStats, maxCP,
    evolutionChainId, familyId) or their snake_case equivalents.
    Missing max CP, generation, and image URL are derived the same way
    the remote loader derives them.

    Returns:
        CatalogEntry, or None if the record has no usable id
    """
    entry_id = _optional_int(raw.get("id"))
    if entry_id is None or entry_id < 1:
        return None

    stats_raw = _pick(raw, "baseStats", "base_stats")
    if not isinstance(stats_raw, dict):
        stats_raw = {}
    stats = BaseStats(
        hp=_optional_int(stats_raw.get("hp")) or 0,
        attack=_optional_int(stats_raw.get("attack")) or 0,
        defense=_optional_int(stats_raw.get("defense")) or 0,
    )

    # Derived fields are filled in when the document leaves them out
    max_cp = _optional_int(_pick(raw, "maxCP", "max_cp"))
    if max_cp is None and stats_raw:
        max_cp = calculate_max_cp(stats.attack, stats.defense, stats.hp)
    generation = _optional_int(raw.get("generation"))
    if generation is None:
        generation = get_generation(entry_id)

    return CatalogEntry(
        id=entry_id,
        name=str(raw.get("name") or ""),
        image_url=str(_pick(raw, "imageUrl", "image_url", "sprite") or "")
        or SPRITE_FALLBACK_URL.format(id=entry_id),
        types=normalize_types(raw.get("types")),
        base_stats=stats,
        max_cp=max_cp,
        generation=generation,
        lineage_chain_id=_optional_int(
            _pick(raw, "evolutionChainId", "lineage_chain_id", "lineageChainId")
        ),
        family_id=_optional_int(_pick(raw, "familyId", "family_id")),
    )


def parse_catalog_document(document: Any) -> list[CatalogEntry]:
    """
    Parse a whole catalog document.

    The document is either a list of records or an object with the list
    under "entries". Records without a usable id are skipped.
    """
    if isinstance(document, dict):
        records = document.get("entries", [])
    else:
        records = document

    if not isinstance(records, list):
        logger.warning("Catalog document has no entry list, got %s", type(records).__name__)
        return []

    entries: list[CatalogEntry] = []
    skipped = 0
    for raw in records:
        entry = parse_catalog_entry(raw) if isinstance(raw, dict) else None
        if entry is None:
            skipped += 1
            continue
        entries.append(entry)

    if skipped:
        logger.warning("Skipped %d malformed catalog records", skipped)

    return entries
