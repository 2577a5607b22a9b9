"""Exception hierarchy shared by the resolution and query pipeline."""

from __future__ import annotations


class LdpathJsonError(Exception):
    """Base exception for ldpathjson errors."""

    pass


class ConfigurationError(LdpathJsonError):
    """Raised when required configuration is missing or invalid."""

    pass


class MissingHeaderError(LdpathJsonError):
    """Raised when an inbound message lacks a required header."""

    pass


class MalformedIdentifier(LdpathJsonError):
    """Raised when a resource identifier is not an absolute HTTP(S) URI."""

    pass


class ProbeFailure(LdpathJsonError):
    """Raised when the metadata probe cannot reach the repository."""

    pass


class RetrievalFailure(LdpathJsonError):
    """Raised when an RDF document cannot be fetched or parsed."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"Failed to retrieve {address}: {reason}")
        self.address = address
        self.reason = reason


class QueryParseError(LdpathJsonError):
    """Raised when an LDPath program cannot be parsed."""

    def __init__(self, message: str, position: int | None = None) -> None:
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message)
        self.position = position


class QueryExecutionError(LdpathJsonError):
    """Raised when program evaluation produces an unusable result."""

    pass


class EmptyResultError(QueryExecutionError):
    """Raised when a program yields no fields at all for a resource."""

    pass


class SerializationError(LdpathJsonError):
    """Raised when a query result cannot be represented as JSON."""

    pass
