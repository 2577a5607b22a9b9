"""Tests for the SPARQL processor."""

from __future__ import annotations

import json

import pytest
from rdflib import Graph, Literal, URIRef

from helpers import RESOURCE_URI, read_test_file
from ldpathjson.processors import RESOURCE_URI_HEADER, Message
from ldpathjson.sparql import SparqlQueryProcessor

TITLES = read_test_file("titles.rq")
BY_ID = """
PREFIX dcterms: <http://purl.org/dc/terms/>
SELECT ?title WHERE { ?s dcterms:identifier ?id ; dcterms:title ?title }
"""
CONSTRUCT = """
PREFIX dcterms: <http://purl.org/dc/terms/>
CONSTRUCT { ?s dcterms:title ?title } WHERE { ?s dcterms:title ?title }
"""


def rdf_message(**headers) -> Message:
    return Message(headers=headers, body=read_test_file("resource.rdf"))


def titles_of(body: str) -> list[str]:
    data = json.loads(body)
    return [row["title"]["value"] for row in data["results"]["bindings"]]


class TestSelect:
    def test_json_results(self):
        message = SparqlQueryProcessor(TITLES).process(rdf_message())
        assert titles_of(message.body) == ["A Thing", "Another Thing"]

    def test_csv_results(self):
        body = SparqlQueryProcessor(TITLES, "csv").process(rdf_message()).body
        assert body.splitlines() == ["title", "A Thing", "Another Thing"]

    def test_csv_without_header(self):
        body = SparqlQueryProcessor(TITLES, "csvWithoutHeader").process(rdf_message()).body
        assert body.splitlines() == ["A Thing", "Another Thing"]

    def test_xml_results(self):
        body = SparqlQueryProcessor(TITLES, "xml").process(rdf_message()).body
        assert "<sparql" in body
        assert "Another Thing" in body

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown resultsFormatName"):
            SparqlQueryProcessor(TITLES, "yaml").process(rdf_message())

    def test_literal_binding(self):
        message = rdf_message(**{"CamelSparqlQueryBinding-Literal-id": "def"})
        body = SparqlQueryProcessor(BY_ID).process(message).body
        assert titles_of(body) == ["Another Thing"]

    def test_uri_binding(self):
        query = """
        PREFIX dcterms: <http://purl.org/dc/terms/>
        SELECT ?title WHERE { ?s dcterms:title ?title }
        """
        message = rdf_message(**{"CamelSparqlQueryBinding-URI-s": RESOURCE_URI})
        body = SparqlQueryProcessor(query).process(message).body
        assert titles_of(body) == ["A Thing"]

    def test_invalid_binding_name(self):
        message = rdf_message(**{"CamelSparqlQueryBinding-Literal-not valid": "x"})
        with pytest.raises(ValueError, match="Invalid SPARQL variable name"):
            SparqlQueryProcessor(BY_ID).process(message)

    def test_empty_body(self):
        body = SparqlQueryProcessor(TITLES).process(Message()).body
        assert titles_of(body) == []


class TestConstruct:
    def test_turtle(self):
        body = SparqlQueryProcessor(CONSTRUCT, "turtle").process(rdf_message()).body
        graph = Graph().parse(data=body, format="turtle")
        assert (
            URIRef(RESOURCE_URI),
            URIRef("http://purl.org/dc/terms/title"),
            Literal("A Thing"),
        ) in graph

    def test_unknown_serialization(self):
        with pytest.raises(ValueError):
            SparqlQueryProcessor(CONSTRUCT, "no-such-format").process(rdf_message())


def test_relative_uris_use_resource_header():
    body = """<?xml version="1.0"?>
<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"
         xmlns:dcterms="http://purl.org/dc/terms/">
  <rdf:Description rdf:about="">
    <dcterms:title>Relative</dcterms:title>
  </rdf:Description>
</rdf:RDF>"""
    query = "SELECT ?s WHERE { ?s ?p ?o }"
    message = Message(headers={RESOURCE_URI_HEADER: RESOURCE_URI}, body=body)
    data = json.loads(SparqlQueryProcessor(query).process(message).body)
    assert data["results"]["bindings"][0]["s"]["value"] == RESOURCE_URI


def test_ask_is_rejected():
    with pytest.raises(ValueError, match="Only SELECT and CONSTRUCT"):
        SparqlQueryProcessor("ASK { ?s ?p ?o }").process(rdf_message())
