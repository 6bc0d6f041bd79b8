"""Per-run memoization of computed artifacts.

Every derived value (network records, processed trace, each metric) is
computed at most once per run and shared by all audits of that run. The
cache stores one ``asyncio.Future`` per key: the first caller creates it and
starts the computation as its own task, and every caller (the first one
included) awaits the same future. Failures are stored like results, so a
failing computation is never retried within the run. Aborting the cache
rejects the pending futures and cancels their tasks.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Hashable, Iterable, Optional, Tuple

from ..errors import ComputationAbortedError


logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cache activity counters for one run."""
    hits: int = 0
    misses: int = 0
    failures: int = 0
    aborted: int = 0

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served from an existing entry."""
        total_requests = self.hits + self.misses
        if total_requests == 0:
            return 0.0
        return self.hits / total_requests


@dataclass
class CacheEntry:
    """A single cache entry: the shared outcome, the task computing it and
    the inputs it was keyed on."""
    key: Hashable
    future: asyncio.Future
    keep_alive: Tuple[Any, ...] = ()
    task: Optional[asyncio.Task] = None

    @property
    def is_pending(self) -> bool:
        return not self.future.done()


class ComputedCache:
    """Single-flight store mapping artifact keys to shared computations.

    Concurrent requests for the same key attach to the first request's
    future; distinct keys compute fully concurrently. Once a run is aborted,
    pending and future computations reject with ``ComputationAbortedError``.
    """

    def __init__(self):
        self._entries: Dict[Hashable, CacheEntry] = {}
        self.stats = CacheStats()
        self._aborted_reason: Optional[str] = None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    @property
    def is_aborted(self) -> bool:
        return self._aborted_reason is not None

    async def get_or_compute(
        self,
        key: Hashable,
        compute_fn: Callable[[], Awaitable[Any]],
        keep_alive: Iterable[Any] = ()
    ) -> Any:
        """Return the value for ``key``, computing it on first request.

        Args:
            key: Hashable identity of the artifact and its inputs
            compute_fn: Zero-argument callable returning an awaitable
            keep_alive: Objects referenced by the key that must outlive it

        Raises:
            Whatever ``compute_fn`` raised for this key, to every caller.
            ComputationAbortedError: If the computation was aborted.
        """
        entry = self._entries.get(key)
        if entry is not None:
            self.stats.hits += 1
            logger.debug(f"Computed cache hit for {key!r} (pending={entry.is_pending})")
            return await asyncio.shield(entry.future)

        # No suspension point between the lookup and the insert, so a second
        # request for the same key always finds this entry.
        loop = asyncio.get_running_loop()
        entry = CacheEntry(key=key, future=loop.create_future(), keep_alive=tuple(keep_alive))
        self._entries[key] = entry
        self.stats.misses += 1
        logger.debug(f"Computed cache miss for {key!r}")

        if self._aborted_reason is not None:
            self._reject(entry, self._aborted_reason)
            return await asyncio.shield(entry.future)

        entry.task = asyncio.ensure_future(self._drive(entry, compute_fn))
        try:
            return await asyncio.shield(entry.future)
        except asyncio.CancelledError:
            # The requester that started the computation gave up: the key
            # stays failed for this run.
            if entry.is_pending:
                self._reject(entry, "computation cancelled")
                entry.task.cancel()
            raise

    async def _drive(self, entry: CacheEntry, compute_fn: Callable[[], Awaitable[Any]]) -> None:
        """Run the computation and publish its outcome on the entry."""
        try:
            value = await compute_fn()
        except asyncio.CancelledError:
            self._reject(entry, "computation cancelled")
            raise
        except Exception as e:
            self.stats.failures += 1
            logger.debug(f"Computation of {entry.key!r} failed: {e}")
            if not entry.future.done():
                entry.future.set_exception(e)
        else:
            if not entry.future.done():
                entry.future.set_result(value)

    def _reject(self, entry: CacheEntry, reason: str) -> None:
        if entry.future.done():
            return
        entry.future.set_exception(ComputationAbortedError(entry.key, reason))
        # Mark the exception retrieved; waiters still receive it through shield.
        entry.future.exception()
        self.stats.aborted += 1

    def abort(self, reason: str = "run aborted") -> int:
        """Reject every pending computation and cancel its task. Later
        requests are rejected too.

        Returns:
            Number of pending computations that were rejected
        """
        self._aborted_reason = reason
        rejected = 0
        for entry in self._entries.values():
            if entry.is_pending:
                self._reject(entry, reason)
                rejected += 1
            if entry.task is not None and not entry.task.done():
                entry.task.cancel()

        if rejected:
            logger.info(f"Aborted {rejected} pending computations: {reason}")
        return rejected


def _identity(value: Any) -> Hashable:
    """Key component for an input: value for simple scalars, identity otherwise."""
    if value is None or isinstance(value, (str, int, float, bool, Enum)):
        return value
    return (type(value).__name__, id(value))


class ComputedArtifact(ABC):
    """A value derived from artifacts, memoized in the run's computed cache.

    Subclasses set ``name`` and implement ``compute``; consumers call
    ``request``, which keys the computation on the identity of its inputs.
    """

    name: str = ""

    @classmethod
    def cache_key(cls, inputs: Tuple[Any, ...]) -> Hashable:
        return (cls.name or cls.__name__,) + tuple(_identity(i) for i in inputs)

    @classmethod
    async def request(cls, *inputs: Any, context) -> Any:
        """Get the artifact for ``inputs`` through ``context.computed_cache``."""
        return await context.computed_cache.get_or_compute(
            cls.cache_key(inputs),
            lambda: cls.compute(*inputs, context=context),
            keep_alive=inputs
        )

    @classmethod
    @abstractmethod
    async def compute(cls, *inputs: Any, context) -> Any:
        """Compute the artifact from scratch."""
        ...
