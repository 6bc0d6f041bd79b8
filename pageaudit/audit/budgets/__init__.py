"""Budget configuration loading and path-based selection."""

from .loader import (
    ENV_BUDGETS_PATH,
    ENV_THROTTLING_METHOD,
    load_budgets,
    load_settings,
    parse_budgets,
    validate_budgets,
)
from .selector import path_matches, select_budget, url_path

__all__ = [
    "ENV_BUDGETS_PATH",
    "ENV_THROTTLING_METHOD",
    "load_budgets",
    "load_settings",
    "parse_budgets",
    "validate_budgets",
    "path_matches",
    "select_budget",
    "url_path",
]
