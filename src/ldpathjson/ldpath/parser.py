"""Recursive-descent parser for LDPath programs.

Supported syntax::

    @prefix dc : <http://purl.org/dc/elements/1.1/> ;
    @filter rdf:type is fedora:Resource ;
    title = dc:title[@en] :: xsd:string ;
    creator = dc:creator / foaf:name | ^dcterms:hasPart / dc:title ;
    ancestors = (fedora:hasParent)+ :: xsd:anyURI ;
    label = fn:concat(dc:title, " (", dc:date, ")") ;
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from rdflib import Literal, URIRef
from rdflib.term import Node

from ldpathjson.errors import QueryParseError
from ldpathjson.ldpath.model import (
    AndTest,
    FieldMapping,
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
from ldpathjson.ldpath.transformers import TRANSFORMERS

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACES: dict[str, str] = {
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
    "xsd": "http://www.w3.org/2001/XMLSchema#",
    "owl": "http://www.w3.org/2002/07/owl#",
    "skos": "http://www.w3.org/2004/02/skos/core#",
    "dc": "http://purl.org/dc/elements/1.1/",
    "dcterms": "http://purl.org/dc/terms/",
    "foaf": "http://xmlns.com/foaf/0.1/",
    "ldp": "http://www.w3.org/ns/ldp#",
    "fedora": "http://fedora.info/definitions/v4/repository#",
    "pcdm": "http://pcdm.org/models#",
    "schema": "http://schema.org/",
    "fn": "http://www.newmedialab.at/lmf/functions/1.0/",
}

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<comment>/\*.*?\*/|\#[^\n]*)
    |(?P<iri><[^<>"{}|^`\\\s]*>)
    |(?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    |(?P<directive>@[A-Za-z][A-Za-z0-9\-]*)
    |(?P<number>\d+)
    |(?P<name>[A-Za-z_][A-Za-z0-9_\-]*(?::(?:[A-Za-z0-9_\-]+(?:\.[A-Za-z0-9_\-]+)*)?)?)
    |(?P<op>::|\^\^|[=;/|&^\[\](){},*+.!:])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "'": "'", "\\": "\\"}


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    pos: int


def tokenize(text: str) -> list[Token]:
    """Split *text* into tokens, dropping whitespace and comments."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise QueryParseError(f"Unexpected character {text[pos]!r}", pos)
        kind = match.lastgroup or ""
        if kind not in ("ws", "comment"):
            tokens.append(Token(kind, match.group(), pos))
        pos = match.end()
    tokens.append(Token("eof", "", len(text)))
    return tokens


def _unquote(raw: str) -> str:
    body = raw[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


class Parser:
    """Parse one program text into a :class:`Program`."""

    def __init__(self, text: str, namespaces: dict[str, str] | None = None) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0
        self.namespaces = dict(DEFAULT_NAMESPACES)
        if namespaces:
            self.namespaces.update(namespaces)

    # ── Token helpers ────────────────────────────────────────────────

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def peek(self, offset: int = 1) -> Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.current
        if token.kind != "eof":
            self.index += 1
        return token

    def at(self, value: str) -> bool:
        return self.current.kind in ("op", "name", "directive") and self.current.value == value

    def expect(self, value: str) -> Token:
        if not self.at(value):
            self.error(f"Expected {value!r}")
        return self.advance()

    def error(self, message: str) -> None:
        token = self.current
        found = token.value or "end of program"
        raise QueryParseError(f"{message}, found {found!r}", token.pos)

    # ── Program ──────────────────────────────────────────────────────

    def parse(self) -> Program:
        program = Program()
        while self.current.kind == "directive" and self.current.value in (
            "@prefix", "@filter", "@boost", "@graph",
        ):
            directive = self.advance().value
            if directive == "@prefix":
                self._parse_prefix()
            elif directive == "@filter":
                program.filter = self.parse_test()
            elif directive == "@boost":
                program.boost = self.parse_selector()
            else:
                program.graphs.append(self.parse_uri())
                while self.at(","):
                    self.advance()
                    program.graphs.append(self.parse_uri())
            self.expect(";")

        while self.current.kind != "eof":
            program.fields.append(self._parse_field())

        program.namespaces = dict(self.namespaces)
        return program

    def _parse_prefix(self) -> None:
        token = self.advance()
        if token.kind != "name":
            raise QueryParseError("Expected prefix name after @prefix", token.pos)
        prefix = token.value.rstrip(":")
        if ":" in prefix:
            raise QueryParseError(f"Invalid prefix name {token.value!r}", token.pos)
        if not token.value.endswith(":"):
            self.expect(":")
        iri = self.current
        if iri.kind != "iri":
            self.error("Expected namespace IRI")
        self.advance()
        self.namespaces[prefix] = iri.value[1:-1]

    def _parse_field(self) -> FieldMapping:
        token = self.advance()
        if token.kind == "string":
            name = _unquote(token.value)
        elif token.kind == "name" and ":" not in token.value:
            name = token.value
        else:
            raise QueryParseError(f"Expected field name, found {token.value!r}", token.pos)

        self.expect("=")
        selector = self.parse_selector()

        transformer = None
        config: dict[str, str] = {}
        if self.at("::"):
            self.advance()
            type_token = self.current
            transformer = self.parse_uri()
            if transformer not in TRANSFORMERS:
                raise QueryParseError(
                    f"Unknown transformer {type_token.value!r}", type_token.pos,
                )
            if self.at("("):
                config = self._parse_field_config()

        self.expect(";")
        return FieldMapping(name, selector, transformer, config)

    def _parse_field_config(self) -> dict[str, str]:
        self.expect("(")
        config: dict[str, str] = {}
        while not self.at(")"):
            key = self.advance()
            if key.kind != "name":
                raise QueryParseError("Expected field option name", key.pos)
            self.expect("=")
            value = self.advance()
            if value.kind != "string":
                raise QueryParseError("Expected quoted option value", value.pos)
            config[key.value] = _unquote(value.value)
            if not self.at(","):
                break
            self.advance()
        self.expect(")")
        return config

    # ── URIs and values ──────────────────────────────────────────────

    def expand(self, token: Token) -> URIRef:
        if token.kind == "iri":
            return URIRef(token.value[1:-1])
        if token.kind == "name" and ":" in token.value:
            prefix, local = token.value.split(":", 1)
            if prefix not in self.namespaces:
                raise QueryParseError(f"Undefined prefix {prefix!r}", token.pos)
            return URIRef(self.namespaces[prefix] + local)
        raise QueryParseError(f"Expected IRI or prefixed name, found {token.value!r}", token.pos)

    def parse_uri(self) -> URIRef:
        return self.expand(self.advance())

    def parse_value(self) -> Node:
        token = self.current
        if token.kind == "string":
            self.advance()
            lexical = _unquote(token.value)
            if self.current.kind == "directive":
                return Literal(lexical, lang=self.advance().value[1:])
            if self.at("^^"):
                self.advance()
                return Literal(lexical, datatype=self.parse_uri())
            return Literal(lexical)
        if token.kind == "number":
            self.advance()
            return Literal(token.value)
        return self.parse_uri()

    # ── Selectors ────────────────────────────────────────────────────

    def parse_selector(self) -> Selector:
        left = self._parse_intersection()
        while self.at("|"):
            self.advance()
            left = UnionSelector(left, self._parse_intersection())
        return left

    def _parse_intersection(self) -> Selector:
        left = self.parse_path()
        while self.at("&"):
            self.advance()
            left = IntersectionSelector(left, self.parse_path())
        return left

    def parse_path(self) -> Selector:
        left = self._parse_step()
        while self.at("/"):
            self.advance()
            left = PathSelector(left, self._parse_step())
        return left

    def _parse_step(self) -> Selector:
        selector, grouped = self._parse_atom()
        while True:
            if self.at("["):
                self.advance()
                test = self.parse_test()
                self.expect("]")
                selector = TestingSelector(selector, test)
            elif grouped and self.at("*"):
                self.advance()
                selector = RecursiveSelector(selector, 0, None)
            elif grouped and self.at("+"):
                self.advance()
                selector = RecursiveSelector(selector, 1, None)
            elif grouped and self.at("{"):
                selector = self._parse_repetition(selector)
            else:
                return selector
            grouped = False

    def _parse_repetition(self, selector: Selector) -> Selector:
        self.expect("{")
        min_depth = 0
        max_depth: int | None = None
        if self.current.kind == "number":
            min_depth = int(self.advance().value)
            max_depth = min_depth
        if self.at(","):
            self.advance()
            max_depth = None
            if self.current.kind == "number":
                max_depth = int(self.advance().value)
        self.expect("}")
        if max_depth is not None and max_depth < min_depth:
            self.error("Invalid repetition bounds")
        return RecursiveSelector(selector, min_depth, max_depth)

    def _parse_atom(self) -> tuple[Selector, bool]:
        token = self.current
        if self.at("."):
            self.advance()
            return SelfSelector(), False
        if self.at("*"):
            self.advance()
            return WildcardSelector(), False
        if self.at("^"):
            self.advance()
            return ReversePropertySelector(self.parse_uri()), False
        if self.at("("):
            self.advance()
            inner = self.parse_selector()
            self.expect(")")
            return inner, True
        if token.kind == "string":
            self.advance()
            return StringConstantSelector(_unquote(token.value)), False
        if token.kind == "name" and self.peek().kind == "op" and self.peek().value == "(":
            return self._parse_function(), False
        if token.kind in ("iri", "name"):
            return PropertySelector(self.parse_uri()), False
        self.error("Expected path selector")
        raise AssertionError("unreachable")

    def _parse_function(self) -> Selector:
        token = self.advance()
        name = token.value.split(":", 1)[-1]
        self.expect("(")
        args: list[Selector] = []
        while not self.at(")"):
            args.append(self.parse_selector())
            if not self.at(","):
                break
            self.advance()
        self.expect(")")
        return FunctionSelector(name, tuple(args))

    # ── Tests ────────────────────────────────────────────────────────

    def parse_test(self) -> NodeTest:
        left = self._parse_and_test()
        while self.at("|"):
            self.advance()
            left = OrTest(left, self._parse_and_test())
        return left

    def _parse_and_test(self) -> NodeTest:
        left = self._parse_unary_test()
        while self.at("&"):
            self.advance()
            left = AndTest(left, self._parse_unary_test())
        return left

    def _parse_unary_test(self) -> NodeTest:
        if self.at("!"):
            self.advance()
            return NotTest(self._parse_unary_test())
        if self.at("("):
            self.advance()
            test = self.parse_test()
            self.expect(")")
            return test
        if self.current.kind == "directive":
            return LangTest(self.advance().value[1:].lower())
        if self.at("^^"):
            self.advance()
            return TypeTest(self.parse_uri())
        if self.at("is"):
            self.advance()
            return IsTest(SelfSelector(), self.parse_value())
        if self.at("is-a"):
            self.advance()
            return IsATest(self.parse_uri())

        path = self.parse_path()
        if self.at("is"):
            self.advance()
            return IsTest(path, self.parse_value())
        return PathTest(path)


def parse_program(text: str, namespaces: dict[str, str] | None = None) -> Program:
    """Parse an LDPath program.

    Parameters
    ----------
    text:
        Program source.
    namespaces:
        Extra prefix mappings available without ``@prefix`` declarations.

    Raises
    ------
    QueryParseError
        On any syntax error, undefined prefix, or unknown transformer.
    """
    if not text or not text.strip():
        raise QueryParseError("Empty LDPath program")
    program = Parser(text, namespaces).parse()
    if not program.fields:
        raise QueryParseError("LDPath program defines no fields")
    logger.debug(
        "Parsed LDPath program with fields %s", ", ".join(program.field_names()),
    )
    return program
