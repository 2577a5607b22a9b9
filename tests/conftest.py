"""Shared fixtures for ldpathjson tests."""

from __future__ import annotations

import pytest

from helpers import EXTERNAL_BASE, INTERNAL_BASE, load_graph
from ldpathjson.cache import GraphCache
from ldpathjson.proxy_map import ProxyRewriteMap


@pytest.fixture
def proxy_map():
    """Proxy map with the default internal/external bases."""
    return ProxyRewriteMap(INTERNAL_BASE, EXTERNAL_BASE)


@pytest.fixture
def cache():
    return GraphCache()


@pytest.fixture
def resource_graph():
    return load_graph("resource.ttl")
