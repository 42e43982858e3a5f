"""
Dispatch of query and prepared-statement handles.

A ``PendingQuery`` wraps one started handle. It installs the three outcome
hooks before the handle starts, turns whichever hook fires into an
``Outcome``, and calls the caller's callback exactly once:

- success -> callback(True, "success", rows)
- aborted -> callback(False, "aborted")
- error   -> callback(False, "error"); the driver text goes to the log only
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from gsql.core import diagnostics
from gsql.core.errors import GsqlError

_log = logging.getLogger(__name__)

Callback = Callable[..., Any]


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    ABORTED = "aborted"
    ERROR = "error"


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    rows: list[dict[str, Any]] = field(default_factory=list)
    message: str | None = None
    affected_rows: int | None = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


def require_callback(component: str, callback: Any) -> None:
    if not callable(callback):
        diagnostics.log(component, "Argument 'callback' must be callable.")
        raise GsqlError(f"An error occurred in {component}: 'callback' is not callable")


class PendingQuery:
    """
    One in-flight operation. Awaiting it yields its ``Outcome``; cancelling
    the await aborts the underlying handle.
    """

    def __init__(
        self,
        handle: Any,
        callback: Callback,
        *,
        component: str = "query",
        on_settled: Callable[["PendingQuery"], Any] | None = None,
    ) -> None:
        self.handle = handle
        self.connection = handle.connection
        self.sql = handle.sql
        self.callback = callback
        self.component = component
        self.outcome: Outcome | None = None
        self._on_settled = on_settled
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._future.add_done_callback(self._abort_if_cancelled)

    def __await__(self):
        return self._future.__await__()

    @property
    def done(self) -> bool:
        return self.outcome is not None

    def attach(self) -> None:
        self.handle.on_success = self._on_success
        self.handle.on_aborted = self._on_aborted
        self.handle.on_error = self._on_error

    def _abort_if_cancelled(self, fut: asyncio.Future) -> None:
        if fut.cancelled() and self.outcome is None:
            self.handle.abort()

    def _on_success(self, handle: Any, rows: list[dict[str, Any]]) -> None:
        self._settle(
            Outcome(OutcomeKind.SUCCESS, rows=rows, affected_rows=handle.affected_rows()),
            True,
            "success",
            rows,
        )

    def _on_aborted(self, handle: Any) -> None:
        self._settle(Outcome(OutcomeKind.ABORTED), False, "aborted")

    def _on_error(self, handle: Any, message: str) -> None:
        if self.outcome is None:
            diagnostics.log(self.component, message)
        self._settle(Outcome(OutcomeKind.ERROR, message=message), False, "error")

    def _settle(self, outcome: Outcome, *args: Any) -> None:
        if self.outcome is not None:
            _log.warning("Ignoring second outcome %s for %s", outcome.kind.value, self.sql)
            return
        self.outcome = outcome
        if not self._future.done():
            self._future.set_result(outcome)
        try:
            self.callback(*args)
        finally:
            if self._on_settled is not None:
                self._on_settled(self)


class QueryDispatcher:
    """
    Starts handles and keeps their PendingQuery alive until an outcome arrives.

    ``last_affected_rows`` is taken from the most recently completed
    successful operation, never from one still in flight.
    """

    def __init__(self) -> None:
        self.pending: list[PendingQuery] = []
        self.last_affected_rows: int | None = None

    def dispatch(self, connection: Any, sql: str, callback: Callback) -> PendingQuery:
        require_callback("query", callback)
        _log.debug("Dispatching query: %s", sql)
        return self.start(connection.query(sql), callback, component="query")

    def start(self, handle: Any, callback: Callback, *, component: str) -> PendingQuery:
        pending = PendingQuery(handle, callback, component=component, on_settled=self._settled)
        pending.attach()
        self.pending.append(pending)
        try:
            handle.start()
        except BaseException:
            self.pending.remove(pending)
            raise
        return pending

    def _settled(self, pending: PendingQuery) -> None:
        if pending.outcome is not None and pending.outcome.ok:
            self.last_affected_rows = pending.outcome.affected_rows
        if pending in self.pending:
            self.pending.remove(pending)
