from hundodex.parsers.catalog_file import (
    normalize_types,
    parse_catalog_document,
    parse_catalog_entry,
)
from hundodex.parsers.pokeapi import (
    calculate_max_cp,
    extract_chain_id,
    get_generation,
    parse_pokemon,
    resolve_image_url,
)

__all__ = [
    "calculate_max_cp",
    "extract_chain_id",
    "get_generation",
    "normalize_types",
    "parse_catalog_document",
    "parse_catalog_entry",
    "parse_pokemon",
    "resolve_image_url",
]
