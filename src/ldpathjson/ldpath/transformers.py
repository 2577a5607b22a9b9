"""Field value transformers (``:: xsd:type``).

Each transformer turns an RDF node into a JSON-representable Python value
and raises ``ValueError`` when the node cannot be converted; such values
are dropped from the field.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

from rdflib import XSD
from rdflib.term import Node, URIRef


def to_string(node: Node) -> str:
    return str(node)


def to_int(node: Node) -> int:
    text = str(node).strip()
    try:
        return int(text)
    except ValueError:
        # "3.0" style lexical forms
        number = float(text)
        if not number.is_integer():
            raise
        return int(number)


def to_float(node: Node) -> float:
    number = float(str(node).strip())
    # INF, -INF and NaN are valid xsd:double but have no JSON form
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {number}")
    return number


def to_bool(node: Node) -> bool:
    text = str(node).strip().lower()
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    raise ValueError(f"not a boolean: {text!r}")


TRANSFORMERS: dict[URIRef, Callable[[Node], Any]] = {
    XSD.string: to_string,
    XSD.anyURI: to_string,
    XSD.int: to_int,
    XSD.integer: to_int,
    XSD.long: to_int,
    XSD.short: to_int,
    XSD.byte: to_int,
    XSD.float: to_float,
    XSD.double: to_float,
    XSD.decimal: to_float,
    XSD.boolean: to_bool,
    # lexical forms of these are already ISO 8601
    XSD.date: to_string,
    XSD.dateTime: to_string,
    XSD.time: to_string,
}


def get_transformer(datatype: URIRef | None) -> Callable[[Node], Any]:
    """Transformer for *datatype*; lexical string when ``None``.

    Raises
    ------
    KeyError
        For datatypes without a registered transformer.
    """
    if datatype is None:
        return to_string
    return TRANSFORMERS[datatype]
