"""Decide which address holds the RDF for a repository resource.

Non-RDF resources (binaries) carry no triples themselves; their metadata
lives at the address named by a ``describedby`` link. The resolver probes
the resource and, for non-RDF sources, substitutes that address.
Resolution is best effort: when the probe fails the internal address is
used unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from ldpathjson.client import probe
from ldpathjson.config import NON_RDF_SOURCE_URI
from ldpathjson.errors import ProbeFailure
from ldpathjson.link_headers import LinkHeaders

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Outcome of address resolution.

    ``redirected`` is true when *address* is a ``describedby`` target
    rather than the probed address itself.
    """

    address: str
    redirected: bool = False

    @classmethod
    def direct(cls, address: str) -> Resolution:
        return cls(address=address, redirected=False)

    @classmethod
    def redirected_to(cls, address: str) -> Resolution:
        return cls(address=address, redirected=True)


def description_address(links: LinkHeaders) -> str | None:
    """``describedby`` target when *links* mark a non-RDF source."""
    described_by = links.uri_for_rel("describedby")
    non_rdf_source = links.contains("type", NON_RDF_SOURCE_URI)
    if non_rdf_source and described_by is not None:
        return described_by
    return None


class AddressResolver:
    """Resolve internal addresses to the address of their RDF.

    Parameters
    ----------
    timeout:
        Probe timeout in seconds.
    session:
        Optional ``requests`` session to probe with.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self._session = session

    def resolve(
        self, identifier: str, internal_address: str, token: str | None,
    ) -> Resolution:
        """Return the address to hand to the graph fetch layer.

        *identifier* is the external identifier of the resource and is
        only used for logging; *internal_address* is what gets probed.
        """
        if not internal_address:
            raise ValueError("internal_address is required")

        try:
            response = probe(
                internal_address,
                token,
                timeout=self.timeout,
                session=self._session,
            )
        except ProbeFailure as exc:
            logger.error("%s (resource %s)", exc, identifier)
            return Resolution.direct(internal_address)

        links = LinkHeaders.from_headers(response.headers)
        described_by = description_address(links)
        if described_by is not None:
            logger.debug(
                "For non-RDF resource %s (%s), using 'describedby' URI %s",
                identifier, internal_address, described_by,
            )
            return Resolution.redirected_to(described_by)

        logger.debug(
            "Using %s as the linked data address of %s", internal_address, identifier,
        )
        return Resolution.direct(internal_address)
