"""Linked-data HTTP client for repository documents.

Handles:
- Forwarded-host headers so the repository mints external URIs
- Content negotiation for RDF serializations
- Parsing the response body into an RDFLib graph
- HEAD probes used for address resolution

Usage:
    from ldpathjson.client import LinkedDataClient

    client = LinkedDataClient(token="...", resource_uri="http://localhost:8080/rest/abc")
    graph = client.fetch("http://repository:8080/rest/abc")
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

import requests
from rdflib import Graph

from ldpathjson.errors import ProbeFailure, RetrievalFailure
from ldpathjson.proxy_map import split_fragment

logger = logging.getLogger(__name__)

USER_AGENT = "ldpathjson/1.0 (linked data client)"


class MimeTypes:
    """RDF media types accepted from the repository."""

    TURTLE = "text/turtle"
    N3 = "text/n3"
    NTRIPLES = "application/n-triples"
    RDFXML = "application/rdf+xml"
    JSONLD = "application/ld+json"

    ACCEPT = f"{TURTLE}, {RDFXML};q=0.9, {JSONLD};q=0.8, {NTRIPLES};q=0.7, {N3};q=0.6"

    # media type -> rdflib parser name
    FORMATS = {
        TURTLE: "turtle",
        N3: "n3",
        NTRIPLES: "nt",
        "text/plain": "nt",
        RDFXML: "xml",
        "application/xml": "xml",
        JSONLD: "json-ld",
    }


# HTML markers that indicate an error page instead of RDF
HTML_MARKERS = ("<!DOCTYPE html", "<html", "<HTML", "<!doctype html")


def forwarded_headers(resource_uri: str) -> dict[str, str]:
    """``X-Forwarded-Host``/``-Proto`` for the externally visible *resource_uri*.

    An explicit port is appended to the host, since the repository does
    not honour ``X-Forwarded-Port``.
    """
    parts = urlsplit(resource_uri)
    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return {
        "X-Forwarded-Host": host,
        "X-Forwarded-Proto": parts.scheme,
    }


def rdf_format(content_type: str | None) -> str:
    """rdflib parser name for a ``Content-Type`` value (default turtle)."""
    if not content_type:
        return "turtle"
    media_type = content_type.split(";", 1)[0].strip().lower()
    return MimeTypes.FORMATS.get(media_type, "turtle")


class LinkedDataClient:
    """Fetch RDF documents from the repository.

    Attributes:
        token: Bearer token attached to every request
        resource_uri: External URI of the resource being processed; its
            host and scheme become the forwarded headers
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        token: str | None = None,
        resource_uri: str | None = None,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.token = token
        self.resource_uri = resource_uri
        self.timeout = timeout
        self._session = session or requests.Session()

        self._session.headers["User-Agent"] = USER_AGENT
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"
        if resource_uri:
            self._session.headers.update(forwarded_headers(resource_uri))

        if logger.isEnabledFor(logging.DEBUG):
            for name, value in self._session.headers.items():
                logger.debug("HTTP client header: %s: %s", name, value)

    def fetch(self, address: str) -> Graph:
        """GET *address* and parse the body into a graph.

        The address is used as the base URI for relative references.

        Raises:
            RetrievalFailure: On transport errors, non-success status,
                HTML error pages, or unparsable bodies.
        """
        document, _ = split_fragment(address)
        logger.debug("Fetching %s", document)
        try:
            response = self._session.get(
                document,
                headers={"Accept": MimeTypes.ACCEPT},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else 0
            raise RetrievalFailure(document, f"HTTP {status}") from exc
        except requests.exceptions.RequestException as exc:
            raise RetrievalFailure(document, str(exc)) from exc

        body = response.text
        if body.lstrip().startswith(HTML_MARKERS):
            raise RetrievalFailure(document, "received HTML instead of RDF")

        fmt = rdf_format(response.headers.get("Content-Type"))
        graph = Graph()
        if body.strip():
            try:
                graph.parse(data=body, format=fmt, publicID=document)
            except Exception as exc:
                logger.error("Failed to parse %s as %s: %s", document, fmt, exc)
                raise RetrievalFailure(document, f"unparsable {fmt} body") from exc

        logger.debug("Retrieved %d triples from %s", len(graph), document)
        return graph

    def close(self) -> None:
        self._session.close()


def probe(
    address: str,
    token: str | None,
    *,
    timeout: float = 10.0,
    session: requests.Session | None = None,
) -> requests.Response:
    """Send a HEAD request to *address* carrying only the bearer token.

    No forwarded headers are sent, so link targets in the response stay on
    the internal address.

    Raises:
        ProbeFailure: On any transport-level error.
    """
    headers = {"User-Agent": USER_AGENT}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    http = session or requests.Session()
    try:
        response = http.head(
            address, headers=headers, timeout=timeout, allow_redirects=True,
        )
    except requests.exceptions.RequestException as exc:
        raise ProbeFailure(f"I/O error retrieving HEAD {address}: {exc}") from exc
    finally:
        if session is None:
            http.close()

    logger.debug("Got: %s for HEAD %s", response.status_code, address)
    if logger.isEnabledFor(logging.DEBUG):
        for name, value in response.headers.items():
            logger.debug("Response header: %s: %s", name, value)
    return response
