"""Message processors for the indexing pipeline.

Each processor takes a :class:`Message` (headers, body, properties) and
updates it in place. :class:`LdpathProcessor` converts the RDF of a
repository resource into JSON using an LDPath program. For non-RDF
resources (such as a PDF binary) the RDF is read from the address given by
the resource's ``describedby`` link.

The repository is expected to be reachable on an "internal"
container-based URL which is separate from the "external" URL used in
resource identifiers.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

import requests
from pydantic import BaseModel, Field

from ldpathjson.auth import ADMIN_ROLE, BearerToken, TokenIssuer
from ldpathjson.cache import GraphCache
from ldpathjson.client import LinkedDataClient
from ldpathjson.config import Config
from ldpathjson.errors import MissingHeaderError
from ldpathjson.executor import QueryExecutor
from ldpathjson.ldpath import Program, parse_program
from ldpathjson.link_headers import LinkHeaders
from ldpathjson.projector import project
from ldpathjson.proxy_map import ProxyRewriteMap, validate_identifier
from ldpathjson.resolver import AddressResolver, Resolution

logger = logging.getLogger(__name__)

USERNAME_HEADER = "CamelFcrepoUser"
RESOURCE_URI_HEADER = "CamelFcrepoUri"
CONTAINER_URI_HEADER = "CamelHttpUri"
DESCRIBED_BY_HEADER = "DescribedBy"
CHARSET_PROPERTY = "CamelCharsetName"
TO_ENDPOINT_PROPERTY = "CamelToEndpoint"
EXCEPTION_CAUGHT_PROPERTY = "CamelExceptionCaught"


class Message(BaseModel):
    """A pipeline message."""

    headers: dict[str, Any] = Field(default_factory=dict)
    body: Any = ""
    properties: dict[str, Any] = Field(default_factory=dict)

    def header(self, name: str, default: Any = None) -> Any:
        return self.headers.get(name, default)


def _required_header(message: Message, name: str) -> str:
    value = message.header(name)
    if not value:
        raise MissingHeaderError(f"Message has no {name} header")
    return str(value)


class AddBearerAuthorizationProcessor:
    """Add an ``Authorization: Bearer`` header for the message's user."""

    SUBJECT = "camel"

    def __init__(self, token_issuer: TokenIssuer, ttl: timedelta = timedelta(hours=1)) -> None:
        self.token_issuer = token_issuer
        self.ttl = ttl

    def process(self, message: Message) -> Message:
        issuer = _required_header(message, USERNAME_HEADER)
        token = self.token_issuer.issue(self.SUBJECT, issuer, self.ttl, ADMIN_ROLE)
        message.headers["Authorization"] = token.authorization_header()
        return message


class DescriptionUriProcessor:
    """Copy the first ``describedby`` link target into the ``DescribedBy`` header."""

    def process(self, message: Message) -> Message:
        incoming = message.header("Link") or []
        if isinstance(incoming, str):
            incoming = [incoming]
        for value in incoming:
            logger.debug("Incoming Link header: %s", value)

        described_by = LinkHeaders(incoming).uri_for_rel("describedby")
        if described_by is not None:
            message.headers[DESCRIBED_BY_HEADER] = described_by
        return message


class DeadLetterProcessor:
    """Record the failing endpoint and exception message as headers."""

    def process(self, message: Message) -> Message:
        message.headers["CamelLastEndpointUri"] = message.properties.get(TO_ENDPOINT_PROPERTY)
        cause = message.properties.get(EXCEPTION_CAUGHT_PROPERTY)
        message.headers["CamelExceptionMessage"] = str(cause) if cause is not None else None
        return message


class LdpathProcessor:
    """Convert the RDF of a repository resource into JSON with LDPath.

    Parameters
    ----------
    query:
        LDPath program text; parsed immediately.
    token_issuer:
        Mints the bearer token for repository requests.
    proxy_map:
        Shared identifier → fetch address map.
    cache:
        Shared document cache; a private one is created when omitted.
    resolver:
        Address resolver; a default one is created when omitted.
    fetch_timeout:
        Timeout in seconds for document retrieval.
    session_factory:
        Callable returning the ``requests`` session used for retrieval.
    """

    SUBJECT = "camel-ldpath"

    def __init__(
        self,
        query: str,
        token_issuer: TokenIssuer,
        proxy_map: ProxyRewriteMap,
        cache: GraphCache | None = None,
        resolver: AddressResolver | None = None,
        *,
        token_ttl: timedelta = timedelta(hours=1),
        fetch_timeout: float = 30.0,
        session_factory=None,
    ) -> None:
        self.token_issuer = token_issuer
        self.proxy_map = proxy_map
        self.cache = cache if cache is not None else GraphCache()
        self.resolver = resolver or AddressResolver()
        self.token_ttl = token_ttl
        self.fetch_timeout = fetch_timeout
        self.session_factory = session_factory or requests.Session
        self.query = query

    @classmethod
    def from_config(
        cls,
        config: type[Config] = Config,
        query: str | None = None,
        cache: GraphCache | None = None,
        proxy_map: ProxyRewriteMap | None = None,
    ) -> LdpathProcessor:
        """Build a processor from a :class:`~ldpathjson.config.Config` class."""
        if proxy_map is None:
            proxy_map = ProxyRewriteMap(
                config.repo_internal_url(), config.repo_external_url(),
            )
        return cls(
            query=query if query is not None else config.load_program(),
            token_issuer=TokenIssuer(config.JWT_SECRET, config.JWT_ALGORITHM),
            proxy_map=proxy_map,
            cache=cache,
            resolver=AddressResolver(timeout=config.PROBE_TIMEOUT),
            token_ttl=timedelta(seconds=config.TOKEN_TTL_SECONDS),
            fetch_timeout=config.FETCH_TIMEOUT,
        )

    @property
    def query(self) -> str:
        """The LDPath program text."""
        return self._query

    @query.setter
    def query(self, query: str) -> None:
        self._program: Program = parse_program(query)
        self._query = query

    def process(self, message: Message) -> Message:
        """Replace the message body with the JSON result for its resource."""
        issuer = _required_header(message, USERNAME_HEADER)
        resource_uri = validate_identifier(_required_header(message, RESOURCE_URI_HEADER))
        container_uri = message.header(CONTAINER_URI_HEADER) or self.proxy_map.to_internal(
            resource_uri,
        )

        token = self.get_auth_token(issuer)
        resolution = self.get_linked_data_resource_url(token, resource_uri, container_uri)

        logger.debug("Sending request to %s for %s", resolution.address, resource_uri)
        logger.debug("LDPath query: %s", self._query)
        client = LinkedDataClient(
            token.token,
            resource_uri,
            timeout=self.fetch_timeout,
            session=self.session_factory(),
        )
        executor = QueryExecutor(self.proxy_map, self.cache, client.fetch)
        try:
            with self.proxy_map.mapping(resource_uri, resolution.address):
                # the message announces a change, so any cached copy is stale
                self.cache.invalidate(resource_uri)
                result = executor.execute(resource_uri, self._program)
        finally:
            client.close()

        json_result = project(result)

        # Downstream indexing mangles non-Latin-1 text unless UTF-8 is explicit.
        message.properties[CHARSET_PROPERTY] = "UTF-8"
        message.body = json_result
        message.headers["Content-Type"] = "application/json"
        return message

    def get_auth_token(self, issuer: str) -> BearerToken:
        """Mint the bearer token used for every repository request."""
        return self.token_issuer.issue(self.SUBJECT, issuer, self.token_ttl, ADMIN_ROLE)

    def get_linked_data_resource_url(
        self, token: BearerToken, resource_uri: str, container_uri: str,
    ) -> Resolution:
        """Address of the RDF for *resource_uri*, probed at *container_uri*.

        For non-RDF resources this is the ``describedby`` target.
        """
        return self.resolver.resolve(resource_uri, container_uri, token.token)
