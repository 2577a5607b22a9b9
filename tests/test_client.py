"""Tests for the linked-data HTTP client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests
from rdflib import Literal, URIRef

from helpers import CONTAINER_URI, RESOURCE_URI, mock_response, mock_session, read_test_file
from ldpathjson.client import (
    USER_AGENT,
    LinkedDataClient,
    MimeTypes,
    forwarded_headers,
    probe,
    rdf_format,
)
from ldpathjson.errors import ProbeFailure, RetrievalFailure

DCTERMS_TITLE = URIRef("http://purl.org/dc/terms/title")


class TestHeaders:
    def test_forwarded_headers_with_port(self):
        assert forwarded_headers("http://localhost:8080/rest/abc") == {
            "X-Forwarded-Host": "localhost:8080",
            "X-Forwarded-Proto": "http",
        }

    def test_forwarded_headers_without_port(self):
        assert forwarded_headers("https://example.org/rest/abc") == {
            "X-Forwarded-Host": "example.org",
            "X-Forwarded-Proto": "https",
        }

    def test_session_headers(self):
        session = mock_session()
        LinkedDataClient("tok", RESOURCE_URI, session=session)
        assert session.headers["Authorization"] == "Bearer tok"
        assert session.headers["X-Forwarded-Host"] == "localhost:8080"
        assert session.headers["User-Agent"] == USER_AGENT

    def test_no_token_no_authorization(self):
        session = mock_session()
        LinkedDataClient(session=session)
        assert "Authorization" not in session.headers


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("text/turtle; charset=utf-8", "turtle"),
        ("application/rdf+xml", "xml"),
        ("application/ld+json", "json-ld"),
        ("application/n-triples", "nt"),
        (None, "turtle"),
        ("application/octet-stream", "turtle"),
    ],
)
def test_rdf_format(content_type, expected):
    assert rdf_format(content_type) == expected


class TestFetch:
    def test_parses_turtle(self):
        session = mock_session({CONTAINER_URI: read_test_file("resource.ttl")})
        graph = LinkedDataClient("tok", RESOURCE_URI, session=session).fetch(CONTAINER_URI)
        assert (URIRef(RESOURCE_URI), DCTERMS_TITLE, Literal("A Thing", lang="en")) in graph
        _, kwargs = session.get.call_args
        assert kwargs["headers"]["Accept"] == MimeTypes.ACCEPT

    def test_fragment_not_sent(self):
        session = mock_session({CONTAINER_URI: read_test_file("resource.ttl")})
        LinkedDataClient(session=session).fetch(f"{CONTAINER_URI}#part")
        args, _ = session.get.call_args
        assert args[0] == CONTAINER_URI

    def test_relative_references_use_address(self):
        session = mock_session({CONTAINER_URI: '<> <http://purl.org/dc/terms/title> "x" .'})
        graph = LinkedDataClient(session=session).fetch(CONTAINER_URI)
        assert (URIRef(CONTAINER_URI), DCTERMS_TITLE, Literal("x")) in graph

    def test_http_error(self):
        with pytest.raises(RetrievalFailure, match="HTTP 404"):
            LinkedDataClient(session=mock_session()).fetch(CONTAINER_URI)

    def test_transport_error(self):
        session = mock_session()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(RetrievalFailure, match="refused"):
            LinkedDataClient(session=session).fetch(CONTAINER_URI)

    def test_html_body(self):
        session = mock_session()
        session.get.side_effect = None
        session.get.return_value = mock_response("<!DOCTYPE html><html></html>")
        with pytest.raises(RetrievalFailure, match="HTML"):
            LinkedDataClient(session=session).fetch(CONTAINER_URI)

    def test_unparsable_body(self):
        session = mock_session({CONTAINER_URI: "this is { not turtle"})
        with pytest.raises(RetrievalFailure, match="unparsable"):
            LinkedDataClient(session=session).fetch(CONTAINER_URI)

    def test_empty_body(self):
        session = mock_session({CONTAINER_URI: ""})
        assert len(LinkedDataClient(session=session).fetch(CONTAINER_URI)) == 0


class TestProbe:
    def test_head_with_token_only(self):
        session = MagicMock()
        session.head.return_value = mock_response(headers={})
        probe(CONTAINER_URI, "tok", session=session)
        args, kwargs = session.head.call_args
        assert args[0] == CONTAINER_URI
        assert kwargs["headers"]["Authorization"] == "Bearer tok"
        assert "X-Forwarded-Host" not in kwargs["headers"]
        assert kwargs["allow_redirects"] is True
        session.close.assert_not_called()

    def test_transport_error(self):
        session = MagicMock()
        session.head.side_effect = requests.exceptions.Timeout("slow")
        with pytest.raises(ProbeFailure):
            probe(CONTAINER_URI, "tok", session=session)
