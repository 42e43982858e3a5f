"""
MySQL connection handle for gsql.

pymysql does the wire work; statements run on a single worker thread and their
outcome hooks fire back on the asyncio event loop.
"""

from .connect import Connection, connect, cursor_to_dicts
from .handles import PreparedHandle, QueryHandle

__all__ = [
    "Connection",
    "connect",
    "cursor_to_dicts",
    "QueryHandle",
    "PreparedHandle",
]
