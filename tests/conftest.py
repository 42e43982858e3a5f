from pathlib import Path

import pytest

from gsql.core.config import settings


@pytest.fixture(autouse=True)
def log_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the diagnostics sink at a per-test file."""
    path = tmp_path / "gsql_logs.txt"
    monkeypatch.setattr(settings, "LOG_FILE", str(path))
    return path
