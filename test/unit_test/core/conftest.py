from __future__ import annotations

import os

import pytest

_SETTINGS_PREFIXES = ("DWH_", "MSSQL_")


@pytest.fixture(autouse=True)
def _isolated_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of settings assertions."""
    for key in list(os.environ):
        if key.startswith(_SETTINGS_PREFIXES) or key == "DATABASE_URL":
            monkeypatch.delenv(key, raising=False)
