"""
PokeAPI record parser.

Turns /pokemon/{id} documents into CatalogEntry records and holds the
derived-field math (max CP, generation, sprite fallback).

API docs: https://pokeapi.co/docs/v2
"""

import math
import re
from typing import Any

from hundodex.config import (
    CP_MULTIPLIER,
    GENERATION_BREAKPOINTS,
    LAST_GENERATION,
    MIN_CP,
    SPRITE_FALLBACK_URL,
)
from hundodex.models.entry import BaseStats, CatalogEntry

_TRAILING_ID = re.compile(r"/(\d+)/?$")


def calculate_max_cp(attack: int, defense: int, hp: int) -> int:
    """
    Max CP at the level cap (simplified formula, IVs ignored).

    Always at least MIN_CP.
    """
    base_cp = math.floor(
        attack * math.sqrt(defense) * math.sqrt(hp) * CP_MULTIPLIER * CP_MULTIPLIER / 10
    )
    return max(MIN_CP, base_cp)


def get_generation(entry_id: int) -> int:
    """Generation number for a national dex id."""
    for generation, upper in enumerate(GENERATION_BREAKPOINTS, start=1):
        if entry_id <= upper:
            return generation
    return LAST_GENERATION


def extract_chain_id(url: str) -> int:
    """
    Pull the numeric id off the end of an evolution chain URL.

    Returns 0 when the URL has no trailing id.
    """
    match = _TRAILING_ID.search(url)
    return int(match.group(1)) if match else 0


def capitalize_first(name: str) -> str:
    return name[:1].upper() + name[1:]


def resolve_image_url(data: dict[str, Any]) -> str:
    """
    Pick the best available image for an entry.

    Order: official artwork, default sprite, then a URL built from the id.
    The first non-empty candidate wins.
    """
    sprites = data.get("sprites") or {}
    other = sprites.get("other") or {}
    artwork = other.get("official-artwork") or {}

    candidates = (
        artwork.get("front_default"),
        sprites.get("front_default"),
        SPRITE_FALLBACK_URL.format(id=data["id"]),
    )
    for candidate in candidates:
        if candidate:
            return str(candidate)
    return SPRITE_FALLBACK_URL.format(id=data["id"])


def _base_stat(data: dict[str, Any], stat_name: str) -> int:
    for stat in data.get("stats", []):
        if stat.get("stat", {}).get("name") == stat_name:
            return int(stat.get("base_stat") or 0)
    return 0


def parse_pokemon(
    data: dict[str, Any],
    chain_url: str | None = None,
    family_id: int | None = None,
) -> CatalogEntry:
    """
    Build a CatalogEntry from a /pokemon/{id} document.

    Args:
        data: Raw PokeAPI pokemon document
        chain_url: Evolution chain URL from the species document, if fetched
        family_id: Family id assigned by the loader, if known

    Returns:
        CatalogEntry with derived max CP and generation
    """
    stats = BaseStats(
        hp=_base_stat(data, "hp"),
        attack=_base_stat(data, "attack"),
        defense=_base_stat(data, "defense"),
    )
    entry_id = int(data["id"])

    return CatalogEntry(
        id=entry_id,
        name=capitalize_first(str(data.get("name", ""))),
        image_url=resolve_image_url(data),
        types=tuple(t["type"]["name"] for t in data.get("types", [])),
        base_stats=stats,
        max_cp=calculate_max_cp(stats.attack, stats.defense, stats.hp),
        generation=get_generation(entry_id),
        lineage_chain_id=extract_chain_id(chain_url) if chain_url else None,
        family_id=family_id,
    )
