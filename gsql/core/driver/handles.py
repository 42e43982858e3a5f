"""
Query and prepared-statement handles.

A handle exposes three hook slots (on_success, on_aborted, on_error) that must
be set before start(). Exactly one hook fires per start(), on the event loop.
"""

import asyncio
import functools
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from gsql.core.errors import GsqlError

if TYPE_CHECKING:
    from .connect import Connection

_log = logging.getLogger(__name__)


def error_message(exc: BaseException) -> str:
    # pymysql errors carry (code, message) in args
    if len(exc.args) == 2 and isinstance(exc.args[0], int):
        return f"{exc.args[0]}: {exc.args[1]}"
    return str(exc) or type(exc).__name__


class _Handle:
    def __init__(self, connection: "Connection", sql: str) -> None:
        self.connection = connection
        self.sql = sql
        self.on_success: Callable[[Any, list[dict[str, Any]]], Any] | None = None
        self.on_aborted: Callable[[Any], Any] | None = None
        self.on_error: Callable[[Any, str], Any] | None = None
        self._future: asyncio.Future | None = None
        self._affected_rows: int | None = None

    def _params(self) -> tuple[Any, ...] | None:
        return None

    def _statement(self) -> str:
        return self.sql

    @property
    def running(self) -> bool:
        return self._future is not None and not self._future.done()

    def start(self) -> None:
        self._affected_rows = None
        # hooks are fixed per run; re-registering affects only later runs
        hooks = (self.on_success, self.on_aborted, self.on_error)
        fut = self.connection.submit(self._statement(), self._params())
        self._future = fut
        fut.add_done_callback(functools.partial(self._complete, hooks))

    def abort(self) -> bool:
        """Cancel the running operation; on_aborted fires if it had not finished."""
        if not self.running:
            return False
        return self._future.cancel()

    def affected_rows(self) -> int | None:
        """Rows affected by the last completed run; None until one completes."""
        return self._affected_rows

    def _complete(self, hooks: tuple, fut: asyncio.Future) -> None:
        on_success, on_aborted, on_error = hooks
        if fut.cancelled():
            if on_aborted is not None:
                on_aborted(self)
            return
        exc = fut.exception()
        if exc is not None:
            _log.debug("Statement failed: %s. SQL: %s", exc, self.sql)
            if on_error is not None:
                on_error(self, error_message(exc))
            return
        rows, affected = fut.result()
        self._affected_rows = affected
        if on_success is not None:
            on_success(self, rows)


class QueryHandle(_Handle):
    """One-shot query; starting it twice is an error."""

    def start(self) -> None:
        if self._future is not None:
            raise GsqlError("query handle was already started")
        super().start()


class PreparedHandle(_Handle):
    """
    Statement with ``?`` positional markers, bound 1-based and re-executable.

    Bindings are applied client side by pymysql's escaping. ``?`` inside string
    literals is not distinguished from a marker.
    """

    def __init__(self, connection: "Connection", sql: str) -> None:
        super().__init__(connection, sql)
        self._bound: dict[int, Any] = {}
        self._closed = False
        # pymysql formats with %, so literal percents are doubled first
        self._compiled = sql.replace("%", "%%").replace("?", "%s")

    @property
    def closed(self) -> bool:
        return self._closed

    def _bind(self, pos: int, value: Any) -> None:
        if self._closed:
            raise GsqlError("prepared statement is closed")
        if not isinstance(pos, int) or isinstance(pos, bool) or pos < 1:
            raise GsqlError(f"invalid parameter position: {pos!r}")
        self._bound[pos] = value

    def set_number(self, pos: int, value: int | float) -> None:
        self._bind(pos, value)

    def set_string(self, pos: int, value: str) -> None:
        self._bind(pos, value)

    def set_bool(self, pos: int, value: bool) -> None:
        self._bind(pos, bool(value))

    def set_null(self, pos: int) -> None:
        self._bind(pos, None)

    def clear_parameters(self) -> None:
        self._bound.clear()

    def _statement(self) -> str:
        return self._compiled

    def _params(self) -> tuple[Any, ...]:
        positions = sorted(self._bound)
        if positions != list(range(1, len(positions) + 1)):
            raise GsqlError(f"bound positions must be 1..n without gaps, got {positions}")
        return tuple(self._bound[pos] for pos in positions)

    def start(self) -> None:
        if self._closed:
            raise GsqlError("prepared statement is closed")
        super().start()

    def close(self) -> None:
        self._bound.clear()
        self._closed = True
