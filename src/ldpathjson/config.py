"""Configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_REPO_INTERNAL_URL = "http://repository:8080/rest"
DEFAULT_REPO_EXTERNAL_URL = "http://localhost:8080/rest"

# Link header target identifying resources without an RDF representation
NON_RDF_SOURCE_URI = "http://www.w3.org/ns/ldp#NonRDFSource"


def _env_url(name: str, default: str) -> str:
    value = os.getenv(name)
    if not value:
        logger.warning(
            "%s environment variable not set. Using default of '%s'",
            name, default,
        )
        return default
    return value


class Config:
    """Default configuration for the processors, CLI and HTTP backend."""

    DEBUG = os.getenv("FLASK_DEBUG", "0") == "1"

    # Repository base URLs; read lazily so the fallback warning is logged
    # by whoever actually needs them.
    REPO_INTERNAL_URL = os.getenv("REPO_INTERNAL_URL", "")
    REPO_EXTERNAL_URL = os.getenv("REPO_EXTERNAL_URL", "")

    # Token signing
    JWT_SECRET = os.getenv("JWT_SECRET", "")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    TOKEN_TTL_SECONDS = int(os.getenv("TOKEN_TTL_SECONDS", "3600"))

    # Outbound HTTP timeouts in seconds
    PROBE_TIMEOUT = float(os.getenv("PROBE_TIMEOUT", "10"))
    FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "30"))

    # Path to the LDPath program used by the HTTP backend
    LDPATH_PROGRAM = os.getenv("LDPATH_PROGRAM", "")

    # SPARQL processor defaults
    SPARQL_QUERY = os.getenv("SPARQL_QUERY", "")
    SPARQL_RESULTS_FORMAT = os.getenv("SPARQL_RESULTS_FORMAT", "json")

    @classmethod
    def repo_internal_url(cls) -> str:
        """Internal (container-reachable) repository base URL."""
        if cls.REPO_INTERNAL_URL:
            return cls.REPO_INTERNAL_URL
        return _env_url("REPO_INTERNAL_URL", DEFAULT_REPO_INTERNAL_URL)

    @classmethod
    def repo_external_url(cls) -> str:
        """Externally visible repository base URL."""
        if cls.REPO_EXTERNAL_URL:
            return cls.REPO_EXTERNAL_URL
        return _env_url("REPO_EXTERNAL_URL", DEFAULT_REPO_EXTERNAL_URL)

    @classmethod
    def load_program(cls) -> str:
        """Read the configured LDPath program, or return ``""``."""
        if not cls.LDPATH_PROGRAM:
            return ""
        with open(cls.LDPATH_PROGRAM, encoding="utf-8") as f:
            return f.read()


class TestConfig(Config):
    """Configuration overrides for testing."""

    TESTING = True
    DEBUG = False
    REPO_INTERNAL_URL = "http://repository:8080/rest"
    REPO_EXTERNAL_URL = "http://localhost:8080/rest"
    JWT_SECRET = "test-secret"
    PROBE_TIMEOUT = 1.0
    FETCH_TIMEOUT = 1.0
    LDPATH_PROGRAM = ""
