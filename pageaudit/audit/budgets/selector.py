"""Budget selection by URL path.

A budget's ``path`` is matched against the audited page's path (plus query
string):

* ``/blog`` - prefix match
* ``/blog$`` - exact match
* ``/blog/*.html`` - prefix before ``*``, rest must contain the part after it
* ``/blog/*.html$`` - prefix before ``*``, rest must end with the part after it

When several budgets match, the last one declared wins.
"""

import logging
from typing import Optional, Sequence
from urllib.parse import urlparse

from ..models.budget import Budget


logger = logging.getLogger(__name__)


def url_path(url: str) -> str:
    """Path and query of a URL, as budgets see it."""
    parsed = urlparse(url)
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return path


def path_matches(page_path: str, pattern: str) -> bool:
    """Check whether ``page_path`` falls under the budget path ``pattern``."""
    has_wildcard = '*' in pattern
    has_dollar_sign = pattern.endswith('$')

    if not has_wildcard and not has_dollar_sign:
        return page_path.startswith(pattern)

    if not has_wildcard:
        return page_path == pattern[:-1]

    before_wildcard, after_wildcard = pattern.split('*', 1)
    if not page_path.startswith(before_wildcard):
        return False
    remainder = page_path[len(before_wildcard):]
    if has_dollar_sign:
        return remainder.endswith(after_wildcard[:-1])
    return after_wildcard in remainder


def select_budget(budgets: Optional[Sequence[Budget]], page_path: str) -> Optional[Budget]:
    """Pick the budget that applies to ``page_path``.

    Later entries override earlier ones, so the last matching budget in
    declaration order is returned. Returns None when budgets are disabled,
    empty, or none matches.
    """
    if not budgets:
        return None

    selected = None
    for index, budget in enumerate(budgets):
        if path_matches(page_path, budget.path):
            selected = budget
            logger.debug(f"Budget #{index} ({budget.path}) matches {page_path}")

    if selected is None:
        logger.debug(f"No budget matches {page_path}")
    return selected
