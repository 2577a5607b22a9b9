"""Tests for the LDPath program parser."""

from __future__ import annotations

import pytest
from rdflib import RDF, XSD, Literal, URIRef

from helpers import read_test_file
from ldpathjson.errors import QueryParseError
from ldpathjson.ldpath import parse_program
from ldpathjson.ldpath.model import (
    FunctionSelector,
    IntersectionSelector,
    IsATest,
    IsTest,
    LangTest,
    NotTest,
    PathSelector,
    PropertySelector,
    RecursiveSelector,
    ReversePropertySelector,
    SelfSelector,
    StringConstantSelector,
    TestingSelector,
    TypeTest,
    UnionSelector,
    WildcardSelector,
)

DCTERMS = "http://purl.org/dc/terms/"


def only_selector(text: str):
    program = parse_program(text)
    assert len(program.fields) == 1
    return program.fields[0].selector


class TestProgramStructure:
    def test_simple_program(self):
        program = parse_program(read_test_file("simpleProgram.ldpath"))
        field = program.fields[0]
        assert field.name == "id"
        assert field.selector == SelfSelector()
        assert field.transformer == XSD.string

    def test_complex_program_fields_in_order(self):
        program = parse_program(read_test_file("complexProgram.ldpath"))
        assert program.field_names() == [
            "id",
            "title",
            "title_ja",
            "type",
            "created",
            "pages",
            "member_titles",
            "component",
        ]
        assert program.namespaces["ex"] == "http://example.org/"

    def test_prefix_without_space(self):
        program = parse_program("@prefix ex: <http://example.org/> ; v = ex:p ;")
        assert program.fields[0].selector == PropertySelector(URIRef("http://example.org/p"))

    def test_quoted_field_name(self):
        program = parse_program('"dc title" = dc:title ;')
        assert program.fields[0].name == "dc title"

    def test_filter_directive(self):
        program = parse_program("@filter rdf:type is pcdm:Object ; id = . ;")
        assert program.filter == IsTest(
            PropertySelector(RDF.type), URIRef("http://pcdm.org/models#Object"),
        )

    def test_field_config(self):
        program = parse_program('title = dc:title :: xsd:string(multiValued="false") ;')
        assert program.fields[0].config == {"multiValued": "false"}

    def test_comments_are_ignored(self):
        program = parse_program("# line comment\n/* block\ncomment */ id = . ;")
        assert program.field_names() == ["id"]

    def test_extra_namespaces(self):
        program = parse_program("v = my:p ;", namespaces={"my": "http://my.example/"})
        assert program.fields[0].selector == PropertySelector(URIRef("http://my.example/p"))


class TestSelectors:
    def test_path(self):
        assert only_selector("v = pcdm:hasMember / dcterms:title ;") == PathSelector(
            PropertySelector(URIRef("http://pcdm.org/models#hasMember")),
            PropertySelector(URIRef(DCTERMS + "title")),
        )

    def test_union_binds_looser_than_path(self):
        selector = only_selector("v = dc:title | dcterms:hasPart / dc:title ;")
        assert isinstance(selector, UnionSelector)
        assert isinstance(selector.right, PathSelector)

    def test_intersection(self):
        assert isinstance(only_selector("v = dc:subject & dcterms:subject ;"), IntersectionSelector)

    def test_reverse_property(self):
        assert only_selector("v = ^dcterms:isPartOf ;") == ReversePropertySelector(
            URIRef(DCTERMS + "isPartOf"),
        )

    def test_wildcard_and_iri(self):
        assert only_selector("v = * ;") == WildcardSelector()
        assert only_selector("v = <http://example.org/p> ;") == PropertySelector(
            URIRef("http://example.org/p"),
        )

    def test_language_filter(self):
        assert only_selector("v = dcterms:title[@en] ;") == TestingSelector(
            PropertySelector(URIRef(DCTERMS + "title")), LangTest("en"),
        )

    def test_type_and_negation_filters(self):
        selector = only_selector("v = dcterms:title[!^^xsd:string] ;")
        assert selector.test == NotTest(TypeTest(XSD.string))

    def test_is_a_filter(self):
        selector = only_selector("v = pcdm:hasMember[is-a pcdm:Object] ;")
        assert selector.test == IsATest(URIRef("http://pcdm.org/models#Object"))

    def test_is_literal_with_language(self):
        selector = only_selector('v = pcdm:hasMember[dcterms:title is "x"@en] ;')
        assert selector.test.value == Literal("x", lang="en")

    @pytest.mark.parametrize(
        ("text", "bounds"),
        [
            ("v = (pcdm:hasMember)* ;", (0, None)),
            ("v = (pcdm:hasMember)+ ;", (1, None)),
            ("v = (pcdm:hasMember){2} ;", (2, 2)),
            ("v = (pcdm:hasMember){1,3} ;", (1, 3)),
            ("v = (pcdm:hasMember){2,} ;", (2, None)),
        ],
    )
    def test_recursion(self, text, bounds):
        selector = only_selector(text)
        assert isinstance(selector, RecursiveSelector)
        assert (selector.min_depth, selector.max_depth) == bounds

    def test_function(self):
        selector = only_selector(
            'v = fn:concat(dcterms:identifier, "-", <http://example.org/n>) ;',
        )
        assert selector == FunctionSelector(
            "concat",
            (
                PropertySelector(URIRef(DCTERMS + "identifier")),
                StringConstantSelector("-"),
                PropertySelector(URIRef("http://example.org/n")),
            ),
        )


class TestErrors:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "@prefix ex : <http://example.org/> ;",
            "id = ;",
            "id = . ",
            "id = undefined:p ;",
            "id = . :: xsd:unknownType ;",
            "id = (dc:title ;",
            "id = $ ;",
            "v = (dc:title){3,1} ;",
        ],
    )
    def test_invalid_programs(self, text):
        with pytest.raises(QueryParseError):
            parse_program(text)

    def test_error_reports_offset(self):
        with pytest.raises(QueryParseError) as excinfo:
            parse_program("id = undefined:p ;")
        assert excinfo.value.position == 5
        assert "at offset 5" in str(excinfo.value)
