from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep AMPLINT_* settings and stray .env files out of every test."""
    for name in (
        "AMPLINT_STRICT",
        "AMPLINT_IGNORE_RULES",
        "AMPLINT_SCHEMA_PATH",
        "AMPLINT_ALLOWED_SCHEMES",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AMPLINT_LOAD_DOTENV", "0")
