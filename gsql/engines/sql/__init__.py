"""
Query engine for gsql: placeholder substitution, dispatch, prepared statements.

Exports: substitute, find_placeholders, QueryDispatcher, PendingQuery, Outcome,
OutcomeKind, PreparedRegistry and the positional parameter types.
"""

from .dispatcher import Outcome, OutcomeKind, PendingQuery, QueryDispatcher
from .params import Boolean, Null, Number, ParamValue, Text, to_param
from .registry import FIRST_INDEX, PreparedRegistry
from .template_engine import find_placeholders, substitute

__all__ = [
    "substitute",
    "find_placeholders",
    "QueryDispatcher",
    "PendingQuery",
    "Outcome",
    "OutcomeKind",
    "PreparedRegistry",
    "FIRST_INDEX",
    "ParamValue",
    "Number",
    "Text",
    "Boolean",
    "Null",
    "to_param",
]
