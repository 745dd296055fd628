from hundodex.controllers.detail_controller import (
    DetailController,
    DetailState,
    next_id,
    parse_entry_id,
    previous_id,
)
from hundodex.controllers.list_controller import (
    SORT_KEYS,
    ListController,
    ViewState,
    filter_entries,
    sort_entries,
)

__all__ = [
    "SORT_KEYS",
    "DetailController",
    "DetailState",
    "ListController",
    "ViewState",
    "filter_entries",
    "next_id",
    "parse_entry_id",
    "previous_id",
    "sort_entries",
]
