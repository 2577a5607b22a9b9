"""Rewrite map from external resource identifiers to internal fetch addresses.

The repository is reachable on an "internal" container-based URL that
differs from the "external" URL used in RDF subjects. While a request is
being processed, the identifier of its resource is mapped to the address
actually holding its RDF (the resource itself, or its ``describedby``
description). Links reached during query evaluation that were never mapped
fall back to a base-URL rewrite from the external to the internal
repository URL.

An instance is shared by every worker in the process. :meth:`mapping`
serializes the put/query/remove span per identifier and always removes
the entry on exit.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from urllib.parse import urlsplit, urlunsplit

from ldpathjson.errors import MalformedIdentifier

logger = logging.getLogger(__name__)


def split_fragment(identifier: str) -> tuple[str, str]:
    """Split *identifier* into ``(document URI, "#fragment")``.

    The fragment part keeps its leading ``#`` and is ``""`` when absent.
    """
    if "#" not in identifier:
        return identifier, ""
    index = identifier.index("#")
    return identifier[:index], identifier[index:]


def validate_identifier(identifier: str) -> str:
    """Return *identifier* if it is an absolute HTTP(S) URI.

    Raises
    ------
    MalformedIdentifier
        For anything else (missing scheme or host, unsupported scheme).
    """
    if not identifier:
        raise MalformedIdentifier("Empty resource identifier")
    try:
        parts = urlsplit(identifier)
    except ValueError as exc:
        raise MalformedIdentifier(f"Malformed URL: {identifier}") from exc
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise MalformedIdentifier(f"Malformed URL: {identifier}")
    return identifier


def _rebase(uri: str, from_base: str, to_base: str) -> str | None:
    """Move *uri* from under *from_base* to under *to_base*.

    Path and query are preserved; returns ``None`` when *uri* is not
    under *from_base*.
    """
    base = from_base.rstrip("/")
    if uri != base and not uri.startswith((base + "/", base + "?", base + "#")):
        return None
    source = urlsplit(uri)
    target = urlsplit(to_base)
    from_path = urlsplit(from_base).path.rstrip("/")
    to_path = target.path.rstrip("/")
    path = to_path + source.path[len(from_path):]
    return urlunsplit(
        (target.scheme, target.netloc, path, source.query, source.fragment),
    )


class _KeyLock:
    """A per-identifier lock and the number of workers using it."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class ProxyRewriteMap:
    """Process-wide identifier → fetch address map.

    Parameters
    ----------
    internal_base:
        Internal (container) base URL of the repository.
    external_base:
        External base URL under which repository identifiers are minted.
        Unmapped identifiers are only rebased when both bases are set.
    """

    def __init__(
        self,
        internal_base: str | None = None,
        external_base: str | None = None,
    ) -> None:
        self.internal_base = internal_base
        self.external_base = external_base
        self._entries: dict[str, str] = {}
        self._entries_lock = threading.Lock()
        self._key_locks: dict[str, _KeyLock] = {}
        self._key_locks_lock = threading.Lock()

    # ── Entry access ─────────────────────────────────────────────────

    def put(self, identifier: str, address: str) -> None:
        """Map *identifier* (fragment stripped) to *address*."""
        key, _ = split_fragment(identifier)
        logger.debug("Adding %s to proxy map with value of %s", key, address)
        with self._entries_lock:
            self._entries[key] = address

    def remove(self, identifier: str) -> None:
        """Drop the mapping for *identifier*; missing keys are ignored."""
        key, _ = split_fragment(identifier)
        logger.debug("Removing %s from proxy map", key)
        with self._entries_lock:
            self._entries.pop(key, None)

    def get(self, identifier: str) -> str | None:
        """Mapped address for *identifier*, without any fallback."""
        key, _ = split_fragment(identifier)
        with self._entries_lock:
            return self._entries.get(key)

    def __contains__(self, identifier: str) -> bool:
        return self.get(identifier) is not None

    def __len__(self) -> int:
        with self._entries_lock:
            return len(self._entries)

    # ── Lookup used by the fetch layer ───────────────────────────────

    def resolve_for_fetch(self, identifier: str) -> str:
        """Address to contact when retrieving *identifier*.

        A mapped address gets the original fragment re-appended. Unmapped
        identifiers under the external base are rewritten onto the
        internal base; anything else is returned unchanged.
        """
        key, fragment = split_fragment(identifier)
        address = self.get(key)
        if address is not None:
            logger.debug("Returning %s for %s", address + fragment, identifier)
            return address + fragment

        logger.debug("%s not found in proxy map", identifier)
        validate_identifier(identifier)

        internal = self._to_internal(identifier)
        if internal is None:
            logger.debug(
                "%s does not match the external base, returning it unchanged",
                identifier,
            )
            return identifier

        logger.debug("Returning modified URL of: %s", internal)
        return internal

    def _to_internal(self, identifier: str) -> str | None:
        if not (self.internal_base and self.external_base):
            return None
        return _rebase(identifier, self.external_base, self.internal_base)

    def to_internal(self, identifier: str) -> str:
        """Rewrite an external identifier onto the internal base."""
        return self._to_internal(identifier) or identifier

    def external_form(self, address: str) -> str:
        """Rewrite an internal address onto the external base."""
        if not (self.internal_base and self.external_base):
            return address
        return _rebase(address, self.internal_base, self.external_base) or address

    # ── Request scoping ──────────────────────────────────────────────

    @contextmanager
    def mapping(self, identifier: str, address: str) -> Iterator[str]:
        """Hold *identifier* → *address* for the duration of the block.

        Other workers using the same identifier wait until the block
        exits. The entry is removed on every exit path, including
        exceptions.
        """
        key, _ = split_fragment(identifier)
        key_lock = self._acquire_key_lock(key)
        try:
            with key_lock.lock:
                self.put(key, address)
                try:
                    yield address
                finally:
                    self.remove(key)
        finally:
            self._release_key_lock(key, key_lock)

    def _acquire_key_lock(self, key: str) -> _KeyLock:
        with self._key_locks_lock:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = _KeyLock()
            key_lock.users += 1
            return key_lock

    def _release_key_lock(self, key: str, key_lock: _KeyLock) -> None:
        # the lock lives only while some worker holds or waits for it
        with self._key_locks_lock:
            key_lock.users -= 1
            if key_lock.users == 0:
                del self._key_locks[key]
