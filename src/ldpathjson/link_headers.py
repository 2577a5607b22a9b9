"""HTTP ``Link`` header parsing (RFC 8288).

Link header syntax varies between servers, so parsing is lenient: an entry
that cannot be parsed is logged and skipped without failing the batch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from requests.utils import parse_header_links

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkRelation:
    """A single ``(rel, uri)`` pair taken from a Link header."""

    rel: str
    uri: str


def _parse_value(value: str) -> list[LinkRelation]:
    stripped = value.strip()
    if not stripped.startswith("<") or ">" not in stripped:
        raise ValueError("link target must be enclosed in angle brackets")

    relations = []
    for link in parse_header_links(stripped):
        uri = link.get("url", "")
        rel = link.get("rel", "")
        if not uri or not rel:
            raise ValueError(f"link without target or rel: {link!r}")
        # rel may hold several space-separated relation types
        for name in rel.split():
            relations.append(LinkRelation(rel=name.lower(), uri=uri))
    return relations


class LinkHeaders:
    """Parsed set of link relations, kept in header order."""

    def __init__(self, values: Iterable[str]) -> None:
        self.relations: list[LinkRelation] = []
        for value in values:
            try:
                self.relations.extend(_parse_value(str(value)))
            except ValueError as exc:
                logger.warning("Skipping malformed Link header %r: %s", value, exc)

    @classmethod
    def from_headers(
        cls,
        headers: Mapping[str, Any] | Iterable[tuple[str, Any]],
    ) -> LinkHeaders:
        """Build from response headers, picking out ``Link`` entries.

        Accepts a mapping (a ``requests`` response's ``headers``, where
        repeated headers are already comma-joined) or a sequence of
        ``(name, value)`` pairs.
        """
        items = headers.items() if isinstance(headers, Mapping) else headers
        values: list[str] = []
        for name, value in items:
            if name.lower() != "link":
                continue
            if isinstance(value, (list, tuple)):
                values.extend(str(v) for v in value)
            else:
                values.append(str(value))
        return cls(values)

    def uri_for_rel(self, rel: str) -> str | None:
        """First target URI whose relation equals *rel*, or ``None``."""
        rel = rel.lower()
        for relation in self.relations:
            if relation.rel == rel:
                return relation.uri
        return None

    def contains(self, rel: str, uri: str) -> bool:
        """Whether a link with relation *rel* has a target containing *uri*."""
        rel = rel.lower()
        return any(
            r.rel == rel and uri in r.uri for r in self.relations
        )

    def __len__(self) -> int:
        return len(self.relations)

    def __iter__(self):
        return iter(self.relations)
