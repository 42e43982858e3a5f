"""
gsql facade: templated queries and indexed prepared statements over one MySQL
connection.

    db = Gsql.initialize("localhost", "game", "user", "secret")
    db.query("SELECT * FROM players WHERE name = '{{name}}'", on_done, {"name": nick})
    idx = db.prepare("INSERT INTO kills VALUES (?, ?)")
    db.execute(idx, on_done, [victim_id, weapon])

Callbacks receive ``(ok, reason[, rows])`` with reason one of "success",
"aborted" or "error". Both query() and execute() must be called from code
running on an asyncio event loop; they return a PendingQuery that may also be
awaited for its Outcome.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from gsql.core import diagnostics
from gsql.core.config import settings
from gsql.core.driver import Connection
from gsql.core.errors import GsqlConnectionError, GsqlError
from gsql.engines.sql import (
    FIRST_INDEX,
    PendingQuery,
    PreparedRegistry,
    QueryDispatcher,
    find_placeholders,
    substitute,
)
from gsql.engines.sql.dispatcher import Callback

_log = logging.getLogger(__name__)


def _on_connection_error(message: str) -> None:
    diagnostics.log("new", message)
    raise GsqlConnectionError(
        "A fatal error happened while connecting to the database, please check your logs for more information!"
    )


class Gsql:
    """One connection, its in-flight queries and its prepared statement table."""

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self.dispatcher = QueryDispatcher()
        self.prepared = PreparedRegistry(connection, self.dispatcher)

    @classmethod
    def initialize(
        cls,
        host: str,
        name: str,
        user: str,
        password: str | None = None,
        port: int | None = None,
    ) -> "Gsql":
        """Create the log file if needed and connect. Raises GsqlConnectionError on failure."""
        diagnostics.ensure_log_file()
        conn = Connection(host, name, user, password, port or settings.DB_DEFAULT_PORT)
        conn.on_error = _on_connection_error
        conn.connect()
        return cls(conn)

    @property
    def affected_rows(self) -> int | None:
        """Affected rows of the most recently completed successful operation."""
        return self.dispatcher.last_affected_rows

    @property
    def queries(self) -> list[PendingQuery]:
        """Operations started and still waiting for their outcome."""
        return self.dispatcher.pending

    def query(
        self,
        template: str,
        callback: Callback,
        parameters: Mapping[str, Any] | None = None,
    ) -> PendingQuery:
        try:
            sql = substitute(template, parameters, self.connection.escape)
        except GsqlError as e:
            diagnostics.log("query", str(e))
            raise
        if "{{" in template:
            self._warn_unresolved(template, parameters or {})
        return self.dispatcher.dispatch(self.connection, sql, callback)

    def _warn_unresolved(self, template: str, parameters: Mapping[str, Any]) -> None:
        # scan the template, never the substituted SQL that holds caller data
        try:
            names = sorted(set(find_placeholders(template)) - {str(k) for k in parameters})
        except ValueError as e:
            _log.debug("Could not scan template for placeholders: %s", e)
            return
        if names:
            _log.warning("Query left placeholders unresolved: %s", ", ".join(names))

    def prepare(self, sql: str) -> int:
        return self.prepared.allocate(sql)

    def delete(self, index: int | None = FIRST_INDEX) -> bool:
        return self.prepared.retire(index)

    def execute(
        self,
        index: int,
        callback: Callback,
        parameters: Sequence[Any] | None = None,
    ) -> PendingQuery:
        return self.prepared.execute(index, callback, parameters)

    def close(self) -> None:
        self.connection.close()


def initialize(
    host: str,
    name: str,
    user: str,
    password: str | None = None,
    port: int | None = None,
) -> Gsql:
    return Gsql.initialize(host, name, user, password, port)
