from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="HUNDODEX_")

    app_name: str = "Hundodex"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/hundodex"

    # "file" reads one consolidated document, "remote" walks PokeAPI entry by entry
    catalog_source: Literal["file", "remote"] = "file"
    catalog_path: str = str(Path(__file__).parent.parent / "data" / "catalog.json")

    pokeapi_url: str = "https://pokeapi.co/api/v2"
    catalog_max_id: int = 1025
    catalog_batch_size: int = 100
    http_timeout: float = 30.0

    # Where the identity provider persists the signed-in session token
    session_file: str = str(Path.home() / ".hundodex" / "session.json")


settings = Settings()


# =============================================================================
# CATALOG CONSTANTS
# =============================================================================

# Combat-power multiplier at the level 50 cap
CP_MULTIPLIER = 0.79030001

# Floor applied to every computed max CP
MIN_CP = 10

# Upper id bound (inclusive) of each generation, in order
GENERATION_BREAKPOINTS = (151, 251, 386, 493, 649, 721, 809, 905)
LAST_GENERATION = 9

SPRITE_FALLBACK_URL = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/{id}.png"
)


# =============================================================================
# ANNOTATION STORE
# =============================================================================

SAVED_USER_DATA_TABLE = "saved_user_data"
