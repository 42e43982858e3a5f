"""
Single MySQL connection used by every gsql query and prepared statement.

Uses pymysql. All statements share one dedicated worker thread so the
connection never sees two statements at once.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any

import pymysql

from gsql.core.config import settings
from gsql.core.errors import GsqlConnectionError

from .handles import PreparedHandle, QueryHandle, error_message

_log = logging.getLogger(__name__)


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts. Statements without a result set give []."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]


def run_statement(
    conn: Any, sql: str, params: Sequence[Any] | None = None
) -> tuple[list[dict[str, Any]], int]:
    """Execute one statement on *conn*; return (rows, affected row count)."""
    with conn.cursor() as cur:
        if params is None:
            cur.execute(sql)
        else:
            cur.execute(sql, params)
        rows = cursor_to_dicts(cur)
        return rows, cur.rowcount if cur.rowcount is not None else 0


class Connection:
    """
    One MySQL connection plus the worker thread that runs its statements.

    on_error(message) is called when connect() fails; if the hook returns
    normally GsqlConnectionError is raised anyway.
    """

    def __init__(
        self,
        host: str,
        database: str,
        user: str,
        password: str | None = None,
        port: int | None = None,
    ) -> None:
        self.host = host
        self.database = database
        self.user = user
        self.password = password if password is not None else ""
        self.port = int(port or settings.DB_DEFAULT_PORT)
        self.on_error: Callable[[str], Any] | None = None
        self._conn: Any = None
        self._executor: ThreadPoolExecutor | None = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def connect(self) -> "Connection":
        for name, val in [("host", self.host), ("database", self.database), ("user", self.user)]:
            if val is None:
                raise GsqlConnectionError(f"connection must provide {name}")
        try:
            self._conn = pymysql.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.database,
                charset=settings.DB_CHARSET,
                connect_timeout=settings.DB_CONNECT_TIMEOUT,
                autocommit=settings.DB_AUTOCOMMIT,
            )
        except pymysql.Error as e:
            _log.error("MySQL connect to %s:%s failed: %s", self.host, self.port, e)
            if self.on_error is not None:
                self.on_error(error_message(e))
            raise GsqlConnectionError(f"Database connection failed: {e}") from e
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="gsql")
        _log.debug("Connected to %s:%s/%s", self.host, self.port, self.database)
        return self

    def _require_open(self) -> Any:
        if self._conn is None:
            raise GsqlConnectionError("connection is not open")
        return self._conn

    def escape(self, value: Any) -> str:
        """
        Escape *value* for textual substitution. Strings are escaped but not
        quoted; the template supplies the quotes. None -> NULL, bool -> 1/0.
        """
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        return self._require_open().escape_string(str(value))

    def query(self, sql: str) -> QueryHandle:
        return QueryHandle(self, sql)

    def prepare(self, sql: str) -> PreparedHandle:
        return PreparedHandle(self, sql)

    def submit(self, sql: str, params: Sequence[Any] | None = None) -> asyncio.Future:
        """Schedule *sql* on the worker thread; must be called from a running event loop."""
        conn = self._require_open()
        loop = asyncio.get_running_loop()
        return loop.run_in_executor(self._executor, run_statement, conn, sql, params)

    def close(self) -> None:
        """Close after already queued statements have run."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        executor, self._executor = self._executor, None
        if executor is None:
            conn.close()
            return
        executor.submit(conn.close)
        executor.shutdown(wait=False)


def connect(
    host: str,
    database: str,
    user: str,
    password: str | None = None,
    port: int | None = None,
    *,
    on_error: Callable[[str], Any] | None = None,
) -> Connection:
    """Open a Connection; *on_error* is installed before the connect attempt."""
    conn = Connection(host, database, user, password, port)
    conn.on_error = on_error
    return conn.connect()
