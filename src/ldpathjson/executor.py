"""Run LDPath programs against repository resources.

Documents are dereferenced lazily as the evaluator navigates: each URI is
mapped to a fetch address through the :class:`~ldpathjson.proxy_map.ProxyRewriteMap`,
retrieved through the :class:`~ldpathjson.cache.GraphCache`, and merged into
a per-execution working graph. Triples whose subject is the retrieval
address (for instance a ``describedby`` description) are re-subjected to the
logical identifier so that paths anchored on the resource still match.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from rdflib import Graph, URIRef
from rdflib.term import Node

from ldpathjson.cache import GraphCache
from ldpathjson.errors import EmptyResultError, MalformedIdentifier, RetrievalFailure
from ldpathjson.ldpath import GraphBackend, Program, QueryResult, evaluate_program, parse_program
from ldpathjson.proxy_map import ProxyRewriteMap, split_fragment, validate_identifier

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Graph]


class RepositoryBackend(GraphBackend):
    """Evaluator backend that loads documents on first access.

    Failures loading the root document propagate; failures on any other
    linked resource are logged and the resource is treated as empty.
    """

    def __init__(
        self,
        root: str,
        proxy_map: ProxyRewriteMap,
        cache: GraphCache,
        fetcher: Fetcher,
    ) -> None:
        super().__init__(Graph())
        self.root, _ = split_fragment(root)
        self.proxy_map = proxy_map
        self.cache = cache
        self.fetcher = fetcher
        self._loaded: set[str] = set()

    def load(self, resource: Node) -> None:
        """Merge the document holding *resource* into the working graph."""
        if not isinstance(resource, URIRef):
            return
        document, _ = split_fragment(str(resource))
        if not document.startswith(("http://", "https://")) or document in self._loaded:
            return
        self._loaded.add(document)

        try:
            address = self.proxy_map.resolve_for_fetch(document)
            graph = self.cache.get_or_fetch(document, address, self.fetcher)
        except (RetrievalFailure, MalformedIdentifier) as exc:
            if document == self.root:
                raise
            logger.warning("Skipping linked resource %s: %s", document, exc)
            return

        self._merge(document, address, graph)

    def _merge(self, document: str, address: str, graph: Graph) -> None:
        retrieval, _ = split_fragment(address)
        subject = URIRef(document)
        aliases = {
            URIRef(retrieval),
            URIRef(self.proxy_map.external_form(retrieval)),
        }
        aliases.discard(subject)

        rewritten = 0
        for s, p, o in graph:
            if s in aliases:
                s = subject
                rewritten += 1
            self.graph.add((s, p, o))
        if rewritten:
            logger.debug(
                "Re-subjected %d statements from %s to %s", rewritten, retrieval, document,
            )

    def objects(self, subject: Node, predicate: URIRef) -> Iterable[Node]:
        self.load(subject)
        return super().objects(subject, predicate)

    def subjects(self, predicate: URIRef, obj: Node) -> Iterable[Node]:
        self.load(obj)
        return super().subjects(predicate, obj)

    def outgoing(self, subject: Node) -> Iterable[Node]:
        self.load(subject)
        return super().outgoing(subject)


class QueryExecutor:
    """Evaluate LDPath programs for repository resources.

    Parameters
    ----------
    proxy_map:
        Shared identifier → fetch address map.
    cache:
        Shared document cache.
    fetcher:
        Callable retrieving and parsing one document address, usually
        :meth:`ldpathjson.client.LinkedDataClient.fetch`.
    """

    def __init__(
        self,
        proxy_map: ProxyRewriteMap,
        cache: GraphCache,
        fetcher: Fetcher,
    ) -> None:
        self.proxy_map = proxy_map
        self.cache = cache
        self.fetcher = fetcher

    def execute(self, identifier: str, program: str | Program) -> QueryResult:
        """Evaluate *program* with *identifier* as the context resource.

        Raises
        ------
        MalformedIdentifier
            If *identifier* is not an absolute HTTP(S) URI.
        QueryParseError
            If *program* is text that does not parse.
        RetrievalFailure
            If the document of *identifier* cannot be retrieved.
        EmptyResultError
            If evaluation produced no fields at all.
        """
        validate_identifier(identifier)
        if not isinstance(program, Program):
            program = parse_program(program)

        context = URIRef(identifier)
        backend = RepositoryBackend(identifier, self.proxy_map, self.cache, self.fetcher)
        backend.load(context)

        result = evaluate_program(program, context, backend)
        if not result:
            raise EmptyResultError(f"LDPath program produced no result for {identifier}")
        if not any(result.values()):
            logger.warning(
                "Every field is empty for %s; the program may not match this resource",
                identifier,
            )
        return result
