"""
Prepared statement registry.

Handles live in an append-only arena addressed by 1-based index. Retiring a
handle leaves a tombstone in its slot; indices are never reused or compacted,
so an index held by a caller always names the same statement or nothing.
"""

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from gsql.core import diagnostics
from gsql.core.errors import GsqlError

from .dispatcher import Callback, PendingQuery, QueryDispatcher, require_callback
from .params import ParamValue, to_param

_log = logging.getLogger(__name__)

FIRST_INDEX = 1


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class PreparedRegistry:
    """Owns the PreparedHandle instances created through one connection."""

    def __init__(self, connection: Any, dispatcher: QueryDispatcher) -> None:
        self._connection = connection
        self._dispatcher = dispatcher
        self._slots: list[Any | None] = []

    def __len__(self) -> int:
        """Number of live (not retired) handles."""
        return sum(1 for h in self._slots if h is not None)

    def __contains__(self, index: object) -> bool:
        return self._get(index) is not None

    def indices(self) -> Iterator[int]:
        """Live indices in allocation order."""
        for i, handle in enumerate(self._slots, start=FIRST_INDEX):
            if handle is not None:
                yield i

    def _get(self, index: object) -> Any | None:
        if not _is_index(index) or index < FIRST_INDEX:
            return None
        pos = index - FIRST_INDEX
        if pos >= len(self._slots):
            return None
        return self._slots[pos]

    def allocate(self, sql: str) -> int:
        if sql is None:
            diagnostics.log("prepare", "Argument 'sql' is missing.")
            raise GsqlError("An error occurred when preparing a query!")
        if not isinstance(sql, str):
            diagnostics.log("prepare", f"Incorrect type of 'sql': {type(sql).__name__}.")
            raise GsqlError("An error occurred when preparing a query!")
        handle = self._connection.prepare(sql)
        self._slots.append(handle)
        index = len(self._slots) - 1 + FIRST_INDEX
        _log.debug("Prepared statement %d: %s", index, sql)
        return index

    def retire(self, index: int | None = FIRST_INDEX) -> bool:
        if index is None:
            index = FIRST_INDEX
        if not _is_index(index):
            diagnostics.log("delete", "Invalid type of 'index'. It must be an integer.")
            raise GsqlError("An error occurred while trying to delete a prepared query!")
        handle = self._get(index)
        if handle is None:
            diagnostics.log(
                "delete",
                f"Invalid 'index'. Deletion of prepared query number {index} failed: "
                "prepared query doesn't exist.",
            )
            raise GsqlError(
                "An error occurred while trying to delete a prepared query! See logs for more information"
            )
        handle.close()
        self._slots[index - FIRST_INDEX] = None
        _log.debug("Retired prepared statement %d", index)
        return True

    def lookup(self, index: int) -> Any:
        """Live handle at *index*; logs and raises GsqlError otherwise."""
        handle = self._get(index)
        if handle is None:
            diagnostics.log("execute", f"Invalid 'index'. Prepared query number {index!r} doesn't exist.")
            raise GsqlError("An error occurred while executing a prepared query! See logs for more information")
        return handle

    def execute(
        self,
        index: int,
        callback: Callback,
        parameters: Sequence[Any] | None = None,
    ) -> PendingQuery:
        """
        Bind *parameters* positionally (1-based, iteration order) and run the
        statement at *index*. The handle stays allocated afterwards.

        Callers must not execute the same index again before its callback fired.
        """
        handle = self.lookup(index)
        require_callback("execute", callback)
        if parameters is None:
            parameters = ()
        if isinstance(parameters, (str, bytes, Mapping)) or not isinstance(parameters, Sequence):
            diagnostics.log(
                "execute",
                f"Incorrect type of 'parameters': {type(parameters).__name__}. It must be a sequence.",
            )
            raise GsqlError(
                "An error occurred while preparing the query. See the logs for more information!"
            )
        values: list[ParamValue] = []
        for pos, value in enumerate(parameters, start=1):
            try:
                values.append(to_param(value))
            except TypeError:
                diagnostics.log(
                    "execute",
                    f"Invalid type of parameter (position: {pos}, type: {type(value).__name__}, value: {value!r})",
                )
                raise GsqlError(
                    "An error occurred while preparing the query. See the logs for more information!"
                ) from None
        handle.clear_parameters()
        for pos, value in enumerate(values, start=1):
            value.bind(handle, pos)
        return self._dispatcher.start(handle, callback, component="execute")
