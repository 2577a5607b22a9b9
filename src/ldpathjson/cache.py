"""In-memory cache of retrieved RDF documents.

Entries have no TTL: the indexing pipeline is the authority on staleness
and invalidates a resource whenever it learns the resource changed.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from rdflib import Graph

from ldpathjson.proxy_map import split_fragment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached document and the time it was fetched."""

    identifier: str
    graph: Graph
    fetched_at: float


class GraphCache:
    """Thread-safe identifier → :class:`rdflib.Graph` cache.

    Keys are identifiers with any fragment removed, so ``doc#a`` and
    ``doc#b`` share the entry of ``doc``.
    """

    def __init__(self) -> None:
        self._store: dict[str, CacheEntry] = {}
        # key -> marker of the fetch allowed to store its result
        self._pending: dict[str, object] = {}
        self._lock = threading.Lock()

    def entry(self, identifier: str) -> CacheEntry | None:
        """Return the cache entry for *identifier*, if any."""
        key, _ = split_fragment(identifier)
        with self._lock:
            return self._store.get(key)

    def invalidate(self, identifier: str) -> None:
        """Drop any entry for *identifier*; absent keys are ignored."""
        key, _ = split_fragment(identifier)
        with self._lock:
            removed = self._store.pop(key, None)
            self._pending.pop(key, None)
        if removed is not None:
            logger.debug("Invalidated cached graph for %s", key)

    def get_or_fetch(
        self,
        identifier: str,
        fetch_address: str,
        fetcher: Callable[[str], Graph],
    ) -> Graph:
        """Return the cached graph for *identifier* or fetch and store it.

        Exceptions raised by *fetcher* propagate and nothing is cached.
        A fetch overtaken by :meth:`invalidate` (or by a newer fetch of the
        same key) returns its graph without storing it, so an invalidation
        is never undone by a read that started before it.
        """
        cached = self.entry(identifier)
        if cached is not None:
            logger.debug("Cache hit for %s", cached.identifier)
            return cached.graph

        key, _ = split_fragment(identifier)
        logger.debug("Cache miss for %s, fetching %s", key, fetch_address)
        marker = object()
        with self._lock:
            self._pending[key] = marker
        try:
            graph = fetcher(fetch_address)
        except BaseException:
            with self._lock:
                if self._pending.get(key) is marker:
                    del self._pending[key]
            raise

        with self._lock:
            if self._pending.get(key) is marker:
                del self._pending[key]
                self._store[key] = CacheEntry(
                    identifier=key, graph=graph, fetched_at=time.time(),
                )
            else:
                logger.debug("Not caching %s, invalidated during fetch", key)
        return graph

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._store.clear()
            self._pending.clear()

    def __contains__(self, identifier: str) -> bool:
        return self.entry(identifier) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
