"""Type label to display color lookup."""

DEFAULT_TYPE_COLOR = "#68A090"

TYPE_COLORS: dict[str, str] = {
    "normal": "#A8A878",
    "fire": "#F08030",
    "water": "#6890F0",
    "electric": "#F8D030",
    "grass": "#78C850",
    "ice": "#98D8D8",
    "fighting": "#C03028",
    "poison": "#A040A0",
    "ground": "#E0C068",
    "flying": "#A890F0",
    "psychic": "#F85888",
    "bug": "#A8B820",
    "rock": "#B8A038",
    "ghost": "#705898",
    "dragon": "#7038F8",
    "dark": "#705848",
    "steel": "#B8B8D0",
    "fairy": "#EE99AC",
}


def get_type_color(type_label: str) -> str:
    """
    Get the hex display color for a type label.

    Case-insensitive. Unknown labels get DEFAULT_TYPE_COLOR.
    """
    return TYPE_COLORS.get(type_label.lower(), DEFAULT_TYPE_COLOR)
