"""Serialize query results to JSON."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from ldpathjson.errors import SerializationError


def project(result: Mapping[str, Iterable[Any]]) -> str:
    """Render *result* as a compact JSON object of arrays.

    Keys keep the order in which they were emitted. Non-ASCII text is
    written as-is, so the output must be transported as UTF-8.
    """
    try:
        payload = {str(key): list(values) for key, values in result.items()}
        return json.dumps(
            payload, ensure_ascii=False, allow_nan=False, separators=(",", ":"),
        )
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Query result is not JSON serializable: {exc}") from exc
