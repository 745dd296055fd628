from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class UserAnnotation:
    """
    A user's progress flags for one catalog entry.

    Natural key is (entry_id, user_id); at most one row exists per key.

    Attributes:
        row_id: Server-assigned row id (None before insert)
        entry_id: Catalog entry id
        flag_a: "100IV" caught
        flag_b: "Shiny 100IV" caught
        aux_value: Best Dynamax IV recorded for the entry
        user_id: Owner of the row
    """

    entry_id: int
    user_id: str
    flag_a: bool = False
    flag_b: bool = False
    aux_value: int = 0
    row_id: int | None = None


@dataclass
class FlagSets:
    """Client-side projection of a user's annotation rows."""

    flag_a: set[int] = field(default_factory=set)
    flag_b: set[int] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not self.flag_a and not self.flag_b
