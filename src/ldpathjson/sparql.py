"""Run a SPARQL query over the RDF/XML body of a message.

Runtime bindings come from message headers:

* ``CamelSparqlQueryBinding-Literal-<name>`` binds ``?name`` to a literal
* ``CamelSparqlQueryBinding-URI-<name>`` binds ``?name`` to a URI

SELECT results are written in a SPARQL results format (``json``, ``xml``,
``csv``, ``txt`` or ``csvWithoutHeader``); CONSTRUCT results in any RDF
serialization known to rdflib.
"""

from __future__ import annotations

import logging
import re

from rdflib import Graph, Literal, URIRef
from rdflib.plugin import PluginException
from rdflib.plugins.sparql import prepareQuery
from rdflib.term import Node

from ldpathjson.processors import RESOURCE_URI_HEADER, Message

logger = logging.getLogger(__name__)

CSV_WITHOUT_HEADER = "csvWithoutHeader"

_LITERAL_BINDING = re.compile(r"^CamelSparqlQueryBinding-Literal-(.+)$")
_URI_BINDING = re.compile(r"^CamelSparqlQueryBinding-URI-(.+)$")
_VARIABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SELECT_FORMATS = ("json", "xml", "csv", "txt")


class SparqlQueryProcessor:
    """Replace the message body with the result of a SPARQL query."""

    def __init__(self, query: str, results_format_name: str = "json") -> None:
        self.query = query
        self.results_format_name = results_format_name

    def process(self, message: Message) -> Message:
        message.body = self.execute_query(message)
        return message

    def parse_bindings(self, message: Message) -> dict[str, Node]:
        """Initial bindings declared in the message headers."""
        bindings: dict[str, Node] = {}
        logger.debug("Checking headers for binding definitions")
        for key, value in message.headers.items():
            literal = _LITERAL_BINDING.match(key)
            uri = _URI_BINDING.match(key)
            if literal:
                name = self._binding_name(literal.group(1))
                logger.debug('Binding ?%s to literal: "%s"', name, value)
                bindings[name] = Literal(str(value))
            elif uri:
                name = self._binding_name(uri.group(1))
                logger.debug("Binding ?%s to URI %s", name, value)
                bindings[name] = URIRef(str(value))
        return bindings

    @staticmethod
    def _binding_name(name: str) -> str:
        if not _VARIABLE_NAME.match(name):
            raise ValueError(f"Invalid SPARQL variable name in binding header: {name!r}")
        return name

    def execute_query(self, message: Message) -> str:
        """Evaluate the query over the message body.

        Raises
        ------
        ValueError
            For queries other than SELECT/CONSTRUCT and for unknown
            result formats.
        """
        logger.debug(
            "Executing query: %s, resultsFormatName: %s",
            self.query, self.results_format_name,
        )
        model = Graph()
        body = message.body or ""
        if body:
            model.parse(
                data=body,
                format="xml",
                publicID=message.header(RESOURCE_URI_HEADER),
            )
        logger.debug("Read message body into model (%d triples)", len(model))

        bindings = self.parse_bindings(message)
        prepared = prepareQuery(self.query)
        kind = prepared.algebra.name

        if kind == "SelectQuery":
            logger.debug("Executing SELECT query")
            return self._format_select(model.query(prepared, initBindings=bindings))
        if kind == "ConstructQuery":
            logger.debug("Executing CONSTRUCT query")
            results = model.query(prepared, initBindings=bindings)
            try:
                return results.graph.serialize(format=self.results_format_name)
            except PluginException as exc:
                logger.error("Unknown resultsFormatName: %s", self.results_format_name)
                raise ValueError(
                    f"Unknown resultsFormatName: {self.results_format_name}",
                ) from exc

        logger.error("Only SELECT and CONSTRUCT queries are allowed as values of query")
        raise ValueError("Only SELECT and CONSTRUCT queries are allowed as values of query")

    def _format_select(self, results) -> str:
        name = (self.results_format_name or "").strip()
        if name.lower() == CSV_WITHOUT_HEADER.lower():
            csv_text = results.serialize(format="csv").decode("utf-8")
            return "".join(csv_text.splitlines(keepends=True)[1:])
        if name.lower() in SELECT_FORMATS:
            return results.serialize(format=name.lower()).decode("utf-8")

        logger.error("Unknown resultsFormatName: %s", self.results_format_name)
        raise ValueError(f"Unknown resultsFormatName: {self.results_format_name}")
