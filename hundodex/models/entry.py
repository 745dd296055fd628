from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BaseStats:
    """Base stats used for the max CP calculation."""

    hp: int = 0
    attack: int = 0
    defense: int = 0


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """
    One creature in the catalog.

    Created once when the catalog is loaded and never mutated afterwards.

    Attributes:
        id: National dex number (unique, stable, >= 1)
        name: Display name, first letter capitalised
        image_url: Artwork or sprite URL
        types: Ordered type labels (e.g., ("grass", "poison"))
        base_stats: hp / attack / defense base stats
        max_cp: Max combat power at the level cap, if known
        generation: Generation number 1-9, if known
        lineage_chain_id: Evolution chain id from the catalog feed
        family_id: Family this entry belongs to, if known
    """

    id: int
    name: str
    image_url: str
    types: tuple[str, ...] = ()
    base_stats: BaseStats = BaseStats()
    max_cp: int | None = None
    generation: int | None = None
    lineage_chain_id: int | None = None
    family_id: int | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize to the consolidated catalog document shape."""
        return {
            "id": self.id,
            "name": self.name,
            "imageUrl": self.image_url,
            "types": list(self.types),
            "baseStats": {
                "hp": self.base_stats.hp,
                "attack": self.base_stats.attack,
                "defense": self.base_stats.defense,
            },
            "maxCP": self.max_cp,
            "generation": self.generation,
            "evolutionChainId": self.lineage_chain_id,
            "familyId": self.family_id,
        }
