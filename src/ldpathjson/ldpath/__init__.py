"""LDPath interpreter.

- parser: ``parse_program`` turns program text into a :class:`Program`
- evaluator: ``evaluate_program`` runs a program for one context resource
- transformers: ``:: xsd:type`` value conversions
"""

from .evaluator import Evaluator, GraphBackend, QueryResult, evaluate_program, matches_filter
from .model import FieldMapping, Program
from .parser import DEFAULT_NAMESPACES, parse_program

__all__ = [
    "DEFAULT_NAMESPACES",
    "Evaluator",
    "FieldMapping",
    "GraphBackend",
    "Program",
    "QueryResult",
    "evaluate_program",
    "matches_filter",
    "parse_program",
]
