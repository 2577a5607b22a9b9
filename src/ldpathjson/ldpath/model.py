"""Syntax tree for parsed LDPath programs."""

from __future__ import annotations

from dataclasses import dataclass, field

from rdflib.term import Node, URIRef

# ── Selectors ─────────────────────────────────────────────────────


class Selector:
    """Base class of all path selectors."""


@dataclass(frozen=True)
class SelfSelector(Selector):
    """``.``: the context resource itself."""


@dataclass(frozen=True)
class WildcardSelector(Selector):
    """``*``: every object reachable through any property."""


@dataclass(frozen=True)
class PropertySelector(Selector):
    """Objects of ``context property ?o``."""

    property: URIRef


@dataclass(frozen=True)
class ReversePropertySelector(Selector):
    """``^property``: subjects of ``?s property context``."""

    property: URIRef


@dataclass(frozen=True)
class PathSelector(Selector):
    """``left / right``."""

    left: Selector
    right: Selector


@dataclass(frozen=True)
class UnionSelector(Selector):
    """``left | right``."""

    left: Selector
    right: Selector


@dataclass(frozen=True)
class IntersectionSelector(Selector):
    """``left & right``."""

    left: Selector
    right: Selector


@dataclass(frozen=True)
class TestingSelector(Selector):
    """``selector[test]``."""

    selector: Selector
    test: NodeTest


@dataclass(frozen=True)
class RecursiveSelector(Selector):
    """``(selector)*``, ``(selector)+`` or ``(selector){min,max}``.

    ``max_depth`` of ``None`` means unbounded.
    """

    selector: Selector
    min_depth: int = 0
    max_depth: int | None = None


@dataclass(frozen=True)
class StringConstantSelector(Selector):
    """A quoted string; always yields that literal."""

    value: str


@dataclass(frozen=True)
class FunctionSelector(Selector):
    """``fn:name(arg, ...)``."""

    name: str
    args: tuple[Selector, ...] = ()


# ── Node tests ────────────────────────────────────────────────────


class NodeTest:
    """Base class of tests usable inside ``[...]``."""


@dataclass(frozen=True)
class LangTest(NodeTest):
    """``@lang``; ``@none`` matches literals without a language tag."""

    lang: str


@dataclass(frozen=True)
class TypeTest(NodeTest):
    """``^^datatype``."""

    datatype: URIRef


@dataclass(frozen=True)
class IsTest(NodeTest):
    """``path is value``; the path defaults to ``.``."""

    path: Selector
    value: Node


@dataclass(frozen=True)
class IsATest(NodeTest):
    """``is-a type``."""

    type: URIRef


@dataclass(frozen=True)
class PathTest(NodeTest):
    """``path``: true when the path yields at least one node."""

    path: Selector


@dataclass(frozen=True)
class NotTest(NodeTest):
    test: NodeTest


@dataclass(frozen=True)
class AndTest(NodeTest):
    left: NodeTest
    right: NodeTest


@dataclass(frozen=True)
class OrTest(NodeTest):
    left: NodeTest
    right: NodeTest


# ── Program ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class FieldMapping:
    """``name = selector :: transformer(config) ;``."""

    name: str
    selector: Selector
    transformer: URIRef | None = None
    config: dict[str, str] = field(default_factory=dict, hash=False)


@dataclass
class Program:
    """A parsed LDPath program."""

    namespaces: dict[str, str] = field(default_factory=dict)
    filter: NodeTest | None = None
    boost: Selector | None = None
    graphs: list[URIRef] = field(default_factory=list)
    fields: list[FieldMapping] = field(default_factory=list)

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]
