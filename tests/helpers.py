"""Test helpers shared across test modules."""

from __future__ import annotations

import os
from unittest.mock import MagicMock

import requests
from rdflib import Graph

TEST_DATA_DIR = os.path.join(os.path.dirname(__file__), "test_data")

INTERNAL_BASE = "http://repository:8080/rest"
EXTERNAL_BASE = "http://localhost:8080/rest"
RESOURCE_URI = f"{EXTERNAL_BASE}/abc"
CONTAINER_URI = f"{INTERNAL_BASE}/abc"


def read_test_file(name: str) -> str:
    """Contents of a file under ``tests/test_data``."""
    with open(os.path.join(TEST_DATA_DIR, name), encoding="utf-8") as f:
        return f.read()


def load_graph(name: str) -> Graph:
    graph = Graph()
    graph.parse(os.path.join(TEST_DATA_DIR, name), format="turtle")
    return graph


def mock_response(text: str = "", status_code: int = 200, headers=None):
    """A ``requests.Response`` stand-in."""
    response = MagicMock()
    response.ok = 200 <= status_code < 300
    response.status_code = status_code
    response.text = text
    response.headers = headers if headers is not None else {"Content-Type": "text/turtle"}
    response.raise_for_status = MagicMock()
    return response


def mock_session(pages: dict[str, str] | None = None):
    """A session whose GET serves turtle documents from *pages* by URL.

    Unknown URLs get a 404.
    """
    session = MagicMock()
    session.headers = {}

    def get(url, **kwargs):
        if pages is None or url not in pages:
            response = mock_response(status_code=404)
            response.raise_for_status.side_effect = requests.exceptions.HTTPError(
                response=response,
            )
            return response
        return mock_response(pages[url])

    session.get.side_effect = get
    return session
