from dataclasses import dataclass

from hundodex.models.entry import CatalogEntry


@dataclass(frozen=True, slots=True)
class Family:
    """
    Entries sharing an evolution lineage.

    Derived on every filter change, never persisted.
    Members are sorted ascending by id.
    """

    family_id: int
    members: tuple[CatalogEntry, ...]

    @property
    def representative_name(self) -> str:
        """Name of the lowest-id member."""
        return self.members[0].name

    @property
    def lowest_id(self) -> int:
        return self.members[0].id

    def member_ids(self) -> list[int]:
        return [member.id for member in self.members]
