"""
gsql: templated SQL queries and indexed prepared statements over an
asynchronous MySQL connection.
"""

from gsql.client import Gsql, initialize
from gsql.core.errors import GsqlConnectionError, GsqlError
from gsql.engines.sql import (
    Boolean,
    Null,
    Number,
    Outcome,
    OutcomeKind,
    PendingQuery,
    Text,
)

__all__ = [
    "Gsql",
    "initialize",
    "GsqlError",
    "GsqlConnectionError",
    "PendingQuery",
    "Outcome",
    "OutcomeKind",
    "Number",
    "Text",
    "Boolean",
    "Null",
]
