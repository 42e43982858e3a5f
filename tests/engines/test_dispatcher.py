"""Unit tests for engines.sql.dispatcher: PendingQuery outcomes and callbacks."""

import asyncio
from pathlib import Path

import pytest

from gsql.core.errors import GsqlError
from gsql.engines.sql import OutcomeKind, QueryDispatcher
from tests.utils.driver import FakeConnection, Recorder


def _run(coro) -> object:
    return asyncio.run(coro)


def test_success_invokes_callback_with_rows() -> None:
    async def run() -> None:
        conn, cb, d = FakeConnection(), Recorder(), QueryDispatcher()
        p = d.dispatch(conn, "SELECT 1", cb)
        conn.queries[0].succeed([{"n": 1}], affected=1)
        assert cb.calls == [(True, "success", [{"n": 1}])]
        outcome = await p
        assert outcome.kind is OutcomeKind.SUCCESS
        assert outcome.ok
        assert outcome.rows == [{"n": 1}]
        assert outcome.affected_rows == 1

    _run(run())


def test_aborted_has_no_rows_argument() -> None:
    async def run() -> None:
        conn, cb, d = FakeConnection(), Recorder(), QueryDispatcher()
        p = d.dispatch(conn, "SELECT 1", cb)
        conn.queries[0].abort()
        assert cb.calls == [(False, "aborted")]
        assert (await p).kind is OutcomeKind.ABORTED

    _run(run())


def test_error_logs_message_and_hides_it_from_callback(log_file: Path) -> None:
    async def run() -> None:
        conn, cb, d = FakeConnection(), Recorder(), QueryDispatcher()
        p = d.dispatch(conn, "SELEC 1", cb)
        conn.queries[0].fail("1064: syntax error near 'SELEC'")
        assert cb.calls == [(False, "error")]
        outcome = await p
        assert outcome.kind is OutcomeKind.ERROR
        assert outcome.message == "1064: syntax error near 'SELEC'"

    _run(run())
    assert log_file.read_text() == "[gsql][query] : 1064: syntax error near 'SELEC'\n"


@pytest.mark.parametrize("first", ["succeed", "abort", "fail"])
def test_exactly_one_callback(first: str) -> None:
    async def run() -> None:
        conn, cb, d = FakeConnection(), Recorder(), QueryDispatcher()
        d.dispatch(conn, "SELECT 1", cb)
        h = conn.queries[0]
        fire = {"succeed": lambda: h.succeed([]), "abort": h.abort, "fail": lambda: h.fail("x")}
        fire[first]()
        for name in ("succeed", "abort", "fail"):
            fire[name]()
        assert len(cb.calls) == 1

    _run(run())


def test_handlers_registered_before_start() -> None:
    async def run() -> None:
        conn, d = FakeConnection(), QueryDispatcher()
        d.dispatch(conn, "SELECT 1", Recorder())
        h = conn.queries[0]
        assert h.start_count == 1
        assert all(hook is not None for hook in h.hooks_at_start[0])

    _run(run())


def test_pending_kept_until_settled() -> None:
    async def run() -> None:
        conn, d = FakeConnection(), QueryDispatcher()
        p1 = d.dispatch(conn, "SELECT 1", Recorder())
        p2 = d.dispatch(conn, "SELECT 2", Recorder())
        assert d.pending == [p1, p2]
        conn.queries[1].succeed([], affected=4)
        assert d.pending == [p1]
        assert d.last_affected_rows == 4
        conn.queries[0].fail("x")
        assert d.pending == []
        assert d.last_affected_rows == 4

    _run(run())


def test_last_affected_rows_unknown_while_in_flight() -> None:
    async def run() -> None:
        conn, d = FakeConnection(), QueryDispatcher()
        d.dispatch(conn, "UPDATE t SET a = 1", Recorder())
        assert d.last_affected_rows is None

    _run(run())


def test_cancelling_await_aborts_handle() -> None:
    async def run() -> None:
        conn, cb, d = FakeConnection(), Recorder(), QueryDispatcher()
        p = d.dispatch(conn, "SELECT SLEEP(10)", cb)
        task = asyncio.ensure_future(_await(p))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert cb.calls == [(False, "aborted")]
        assert p.outcome is not None and p.outcome.kind is OutcomeKind.ABORTED

    async def _await(p):
        return await p

    _run(run())


def test_non_callable_callback_rejected(log_file: Path) -> None:
    async def run() -> None:
        conn, d = FakeConnection(), QueryDispatcher()
        with pytest.raises(GsqlError):
            d.dispatch(conn, "SELECT 1", None)  # type: ignore[arg-type]
        assert conn.queries == []

    _run(run())
    assert "[gsql][query] : Argument 'callback' must be callable." in log_file.read_text()


def test_start_failure_is_not_kept_pending() -> None:
    async def run() -> None:
        conn, d = FakeConnection(), QueryDispatcher()
        h = conn.query("SELECT 1")

        def boom() -> None:
            raise RuntimeError("closed")

        h.start = boom  # type: ignore[method-assign]
        with pytest.raises(RuntimeError):
            d.start(h, Recorder(), component="query")
        assert d.pending == []

    _run(run())
