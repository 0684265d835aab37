"""Pytest configuration for test isolation.

Settings read ``BUDGET_FILE_PATH`` and ``BUDGET_DB_PATH`` from the
environment. A developer shell that exports them would point tests at real
data, so both are cleared for every test.
"""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BUDGET_FILE_PATH", raising=False)
    monkeypatch.delenv("BUDGET_DB_PATH", raising=False)
