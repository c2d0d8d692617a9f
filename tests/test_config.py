"""Unit tests for amplint.config."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from amplint.config import LintConfig, _bool_value
from amplint.includes import DEFAULT_SCHEMES


class TestFromEnv:
    def test_defaults(self) -> None:
        cfg = LintConfig.from_env()
        assert cfg == LintConfig()
        assert cfg.allowed_schemes == DEFAULT_SCHEMES

    def test_values(self, monkeypatch, tmp_path: Path) -> None:
        schema = tmp_path / "schema.json"
        schema.write_text("{}")
        monkeypatch.setenv("AMPLINT_STRICT", "yes")
        monkeypatch.setenv("AMPLINT_IGNORE_RULES", "empty-body, version-type,")
        monkeypatch.setenv("AMPLINT_SCHEMA_PATH", str(schema))
        monkeypatch.setenv("AMPLINT_ALLOWED_SCHEMES", "HTTPS,ssh")
        cfg = LintConfig.from_env()
        assert cfg.strict is True
        assert cfg.ignore_rules == ("empty-body", "version-type")
        assert cfg.schema_path == str(schema)
        assert cfg.allowed_schemes == ("https", "ssh")

    def test_invalid_schema_path_falls_back(self, monkeypatch, caplog, tmp_path: Path) -> None:
        monkeypatch.setenv("AMPLINT_SCHEMA_PATH", str(tmp_path / "missing.json"))
        with caplog.at_level(logging.WARNING, logger="amplint.config"):
            cfg = LintConfig.from_env()
        assert cfg.schema_path is None
        assert "AMPLINT_SCHEMA_PATH" in caplog.text

    def test_invalid_strict_warns(self, monkeypatch, caplog) -> None:
        monkeypatch.setenv("AMPLINT_STRICT", "maybe")
        with caplog.at_level(logging.WARNING, logger="amplint.config"):
            cfg = LintConfig.from_env()
        assert cfg.strict is False
        assert "AMPLINT_STRICT='maybe'" in caplog.text

    @pytest.mark.parametrize("text", ["{not json", '{"type": 12}'])
    def test_unusable_schema_falls_back(
        self, monkeypatch, caplog, tmp_path: Path, text: str
    ) -> None:
        schema = tmp_path / "schema.json"
        schema.write_text(text)
        monkeypatch.setenv("AMPLINT_SCHEMA_PATH", str(schema))
        with caplog.at_level(logging.WARNING, logger="amplint.config"):
            cfg = LintConfig.from_env()
        assert cfg.schema_path is None
        assert "using bundled schema" in caplog.text

    def test_dotenv_loaded_when_enabled(self, monkeypatch, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("AMPLINT_STRICT=1\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("AMPLINT_STRICT", "0")
        monkeypatch.setenv("AMPLINT_LOAD_DOTENV", "1")
        assert LintConfig.from_env().strict is True

    def test_dotenv_skipped_when_disabled(self, monkeypatch, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("AMPLINT_STRICT=1\n")
        monkeypatch.chdir(tmp_path)
        assert LintConfig.from_env().strict is False


class TestMerged:
    def test_cli_overrides(self) -> None:
        base = LintConfig(ignore_rules=("empty-body",))
        merged = base.merged(strict=True, ignore_rules=["version-type", "empty-body"], schema_path="s.json")
        assert merged.strict is True
        assert merged.ignore_rules == ("empty-body", "version-type")
        assert merged.schema_path == "s.json"
        assert base.strict is False

    def test_none_keeps_values(self) -> None:
        base = LintConfig(strict=True, schema_path="a.json")
        assert base.merged() == base


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, True),
        (None, False),
        ("on", True),
        (" Yes ", True),
        ("0", False),
        ("Off", False),
        ("nope", None),
    ],
)
def test_bool_value(value, expected) -> None:
    assert _bool_value(value) is expected
