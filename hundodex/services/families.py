"""
Family grouping.

Partitions a catalog listing into evolution families. Output depends only
on the set of entries, never on the order they arrive in.
"""

from collections.abc import Iterable

from hundodex.models.entry import CatalogEntry
from hundodex.models.family import Family


def family_key(entry: CatalogEntry) -> int:
    """Family id if known, otherwise the entry's own id."""
    return entry.family_id if entry.family_id is not None else entry.id


def group_by_family(entries: Iterable[CatalogEntry]) -> list[Family]:
    """
    Group entries into families.

    Members are sorted ascending by id, and families ascending by their
    lowest member id. Entries without a family id form singleton families
    keyed by their own id.
    """
    grouped: dict[int, list[CatalogEntry]] = {}
    for entry in entries:
        grouped.setdefault(family_key(entry), []).append(entry)

    families = [
        Family(family_id=key, members=tuple(sorted(members, key=lambda e: e.id)))
        for key, members in grouped.items()
    ]
    # Grouping-dict order follows input order; re-sort so output is order-independent
    families.sort(key=lambda f: (f.lowest_id, f.family_id))
    return families
