"""
Diagnostics sink: append-only error log file.

Every failure path writes one line ``[gsql][<component>] : <message>`` to the
file named by ``settings.LOG_FILE``. The file is never read back by gsql.
"""

import logging
from pathlib import Path

from gsql.core.config import settings

_log = logging.getLogger(__name__)

_PREFIX = "gsql"


def log_path() -> Path:
    return Path(settings.LOG_FILE)


def ensure_log_file() -> Path:
    """Create the log file empty if it does not exist yet. Never truncates."""
    path = log_path()
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
    return path


def format_record(component: str, message: str) -> str:
    return f"[{_PREFIX}][{component}] : {message}"


def log(component: str, message: str) -> None:
    """Append one record for *component* and mirror it to the logging tree."""
    record = format_record(component, str(message))
    path = ensure_log_file()
    with path.open("a", encoding="utf-8") as fh:
        fh.write(record + "\n")
    _log.error(record)
