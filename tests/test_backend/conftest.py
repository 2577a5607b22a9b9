"""Fixtures for backend tests."""

from __future__ import annotations

import pytest

from ldpathjson.backend.app import create_app
from ldpathjson.config import TestConfig


@pytest.fixture()
def app():
    """Create a test Flask application."""
    application = create_app(TestConfig)
    yield application


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def graph_cache(app):
    """The application's shared graph cache."""
    return app.config["GRAPH_CACHE"]
