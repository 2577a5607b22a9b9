"""Evaluate parsed LDPath programs against an RDF data backend.

The evaluator only reads data through a backend object exposing
``objects(subject, predicate)``, ``subjects(predicate, obj)`` and
``outgoing(subject)``. :class:`GraphBackend` serves a plain in-memory
graph; the query executor supplies a backend that dereferences resources
on demand.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from rdflib import RDF, XSD, Graph, Literal, URIRef
from rdflib.term import Node

from ldpathjson.errors import QueryExecutionError
from ldpathjson.ldpath.model import (
    AndTest,
    FunctionSelector,
    IntersectionSelector,
    IsATest,
    IsTest,
    LangTest,
    NodeTest,
    NotTest,
    OrTest,
    PathSelector,
    PathTest,
    Program,
    PropertySelector,
    RecursiveSelector,
    ReversePropertySelector,
    Selector,
    SelfSelector,
    StringConstantSelector,
    TestingSelector,
    TypeTest,
    UnionSelector,
    WildcardSelector,
)
from ldpathjson.ldpath.transformers import get_transformer

logger = logging.getLogger(__name__)


class Backend(Protocol):
    def objects(self, subject: Node, predicate: URIRef) -> Iterable[Node]: ...

    def subjects(self, predicate: URIRef, obj: Node) -> Iterable[Node]: ...

    def outgoing(self, subject: Node) -> Iterable[Node]: ...


class GraphBackend:
    """Backend over a single, fully loaded :class:`rdflib.Graph`."""

    def __init__(self, graph: Graph) -> None:
        self.graph = graph

    def objects(self, subject: Node, predicate: URIRef) -> Iterable[Node]:
        if isinstance(subject, Literal):
            return []
        return list(self.graph.objects(subject, predicate))

    def subjects(self, predicate: URIRef, obj: Node) -> Iterable[Node]:
        return list(self.graph.subjects(predicate, obj))

    def outgoing(self, subject: Node) -> Iterable[Node]:
        if isinstance(subject, Literal):
            return []
        return [o for _, o in self.graph.predicate_objects(subject)]


QueryResult = dict[str, list[Any]]


def _unique(nodes: Iterable[Node]) -> list[Node]:
    seen: set[Node] = set()
    result = []
    for node in nodes:
        if node not in seen:
            seen.add(node)
            result.append(node)
    return result


# ── Functions ─────────────────────────────────────────────────────


def _fn_concat(args: list[list[Node]]) -> list[Node]:
    text = "".join(str(node) for values in args for node in values)
    return [Literal(text)]


def _fn_first(args: list[list[Node]]) -> list[Node]:
    for values in args:
        if values:
            return [values[0]]
    return []


def _fn_last(args: list[list[Node]]) -> list[Node]:
    for values in reversed(args):
        if values:
            return [values[-1]]
    return []


def _fn_count(args: list[list[Node]]) -> list[Node]:
    return [Literal(sum(len(values) for values in args), datatype=XSD.integer)]


def _fn_str(args: list[list[Node]]) -> list[Node]:
    return [Literal(str(node)) for values in args for node in values]


def _fn_lower(args: list[list[Node]]) -> list[Node]:
    return [Literal(str(node).lower()) for values in args for node in values]


def _fn_upper(args: list[list[Node]]) -> list[Node]:
    return [Literal(str(node).upper()) for values in args for node in values]


FUNCTIONS: dict[str, Callable[[list[list[Node]]], list[Node]]] = {
    "concat": _fn_concat,
    "first": _fn_first,
    "last": _fn_last,
    "count": _fn_count,
    "str": _fn_str,
    "lower": _fn_lower,
    "upper": _fn_upper,
}


# ── Evaluation ────────────────────────────────────────────────────


class Evaluator:
    """Evaluate selectors and tests for context nodes."""

    def __init__(self, backend: Backend) -> None:
        self.backend = backend

    def select(self, selector: Selector, context: Node) -> list[Node]:
        """Nodes reached from *context* through *selector*, in order."""
        if isinstance(selector, SelfSelector):
            return [context]
        if isinstance(selector, PropertySelector):
            return _unique(self.backend.objects(context, selector.property))
        if isinstance(selector, ReversePropertySelector):
            return _unique(self.backend.subjects(selector.property, context))
        if isinstance(selector, WildcardSelector):
            return _unique(self.backend.outgoing(context))
        if isinstance(selector, PathSelector):
            return _unique(
                node
                for intermediate in self.select(selector.left, context)
                for node in self.select(selector.right, intermediate)
            )
        if isinstance(selector, UnionSelector):
            return _unique(
                self.select(selector.left, context)
                + self.select(selector.right, context),
            )
        if isinstance(selector, IntersectionSelector):
            right = set(self.select(selector.right, context))
            return [n for n in self.select(selector.left, context) if n in right]
        if isinstance(selector, TestingSelector):
            return [
                n for n in self.select(selector.selector, context)
                if self.test(selector.test, n)
            ]
        if isinstance(selector, RecursiveSelector):
            return self._select_recursive(selector, context)
        if isinstance(selector, StringConstantSelector):
            return [Literal(selector.value)]
        if isinstance(selector, FunctionSelector):
            return self._call(selector, context)
        raise QueryExecutionError(f"Unsupported selector {selector!r}")

    def _select_recursive(self, selector: RecursiveSelector, context: Node) -> list[Node]:
        result: list[Node] = [context] if selector.min_depth == 0 else []
        seen = {context}
        frontier = [context]
        depth = 0
        while frontier and (selector.max_depth is None or depth < selector.max_depth):
            depth += 1
            reached = []
            for node in frontier:
                for target in self.select(selector.selector, node):
                    if target in seen:
                        continue
                    seen.add(target)
                    reached.append(target)
                    if depth >= selector.min_depth:
                        result.append(target)
            frontier = reached
        return result

    def _call(self, selector: FunctionSelector, context: Node) -> list[Node]:
        function = FUNCTIONS.get(selector.name)
        if function is None:
            raise QueryExecutionError(f"Unknown function fn:{selector.name}")
        args = [self.select(arg, context) for arg in selector.args]
        return function(args)

    def test(self, test: NodeTest, node: Node) -> bool:
        """Whether *node* satisfies *test*."""
        if isinstance(test, LangTest):
            if not isinstance(node, Literal):
                return False
            lang = (node.language or "none").lower()
            return lang == test.lang
        if isinstance(test, TypeTest):
            if not isinstance(node, Literal):
                return False
            datatype = node.datatype
            if datatype is None and node.language is None:
                datatype = XSD.string
            return datatype == test.datatype
        if isinstance(test, IsTest):
            return any(
                _same_value(candidate, test.value)
                for candidate in self.select(test.path, node)
            )
        if isinstance(test, IsATest):
            return test.type in self.backend.objects(node, RDF.type)
        if isinstance(test, PathTest):
            return bool(self.select(test.path, node))
        if isinstance(test, NotTest):
            return not self.test(test.test, node)
        if isinstance(test, AndTest):
            return self.test(test.left, node) and self.test(test.right, node)
        if isinstance(test, OrTest):
            return self.test(test.left, node) or self.test(test.right, node)
        raise QueryExecutionError(f"Unsupported test {test!r}")


def _same_value(candidate: Node, value: Node) -> bool:
    if isinstance(value, Literal) and value.language is None and value.datatype is None:
        # a bare string matches any literal with the same lexical form
        return isinstance(candidate, Literal) and str(candidate) == str(value)
    return candidate == value


def transform_values(field_name: str, nodes: list[Node], transformer) -> list[Any]:
    values: list[Any] = []
    for node in nodes:
        try:
            value = transformer(node)
        except (TypeError, ValueError) as exc:
            logger.debug("Dropping value %r of field %s: %s", node, field_name, exc)
            continue
        if value not in values:
            values.append(value)
    return values


def matches_filter(program: Program, context: Node, backend: Backend) -> bool:
    """Whether *context* passes the program's ``@filter`` (if any)."""
    if program.filter is None:
        return True
    return Evaluator(backend).test(program.filter, context)


def evaluate_program(program: Program, context: Node, backend: Backend) -> QueryResult:
    """Evaluate every field of *program* for *context*.

    Returns a dict in field order mapping each field name to its values
    in evaluation order. A context rejected by ``@filter`` yields every
    field with an empty list.
    """
    if not matches_filter(program, context, backend):
        logger.debug("%s rejected by program filter", context)
        return {f.name: [] for f in program.fields}

    evaluator = Evaluator(backend)
    result: QueryResult = {}
    for mapping in program.fields:
        nodes = evaluator.select(mapping.selector, context)
        transformer = get_transformer(mapping.transformer)
        result[mapping.name] = transform_values(mapping.name, nodes, transformer)
        logger.debug("LDPath result: Key: %s Value: %s", mapping.name, result[mapping.name])
    return result
