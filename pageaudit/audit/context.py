"""Run context threaded through every audit of one page analysis."""

from dataclasses import dataclass, field
from typing import Optional

from .computed.cache import ComputedCache
from .models.budget import Settings


@dataclass
class RunContext:
    """Settings and computed-artifact cache for a single run.

    A new context (and so a new cache) is created for every run; nothing in
    it is shared between page analyses.
    """

    settings: Settings = field(default_factory=Settings)
    computed_cache: ComputedCache = field(default_factory=ComputedCache)
    run_id: Optional[str] = None
