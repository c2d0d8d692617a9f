"""Tests for amplint.error_report — crash reports for internal errors."""

from __future__ import annotations

import json
from unittest import mock

import pytest

from amplint import __version__, cli
from amplint.config import LintConfig
from amplint.error_report import (
    EXIT_INTERNAL,
    CrashReport,
    build_crash_report,
    render_crash_report,
)


def _raise_key_error() -> None:
    {}["bundle"]


def _crash(**kwargs) -> CrashReport:
    try:
        _raise_key_error()
    except KeyError as exc:
        return build_crash_report(exc, command="check", **kwargs)
    raise AssertionError("unreachable")


class TestBuildCrashReport:
    def test_records_run_context(self) -> None:
        config = LintConfig(strict=True, ignore_rules=("empty-body",))
        report = _crash(targets=["examples/canvas-dev", "bundle.md"], config=config)
        assert report.command == "check"
        assert report.error == "KeyError: 'bundle'"
        assert report.targets == ("examples/canvas-dev", "bundle.md")
        assert report.config == {
            "strict": True,
            "ignore_rules": ["empty-body"],
            "schema_path": None,
            "allowed_schemes": ["https", "http", "ssh", "file"],
        }
        assert report.amplint_version == __version__
        assert report.exit_code == EXIT_INTERNAL

    def test_location_is_innermost_frame(self) -> None:
        report = _crash()
        assert report.location is not None
        assert report.location.endswith("in _raise_key_error")
        assert "test_error_report.py:" in report.location

    def test_exception_never_raised(self) -> None:
        report = build_crash_report(RuntimeError("detached"), command="show")
        assert report.location is None
        assert report.traceback is None
        assert report.config is None
        assert report.targets == ()

    def test_internal_exit_code_differs_from_lint_results(self) -> None:
        assert EXIT_INTERNAL not in (cli.EXIT_OK, cli.EXIT_FAILED, cli.EXIT_USAGE)


class TestRenderCrashReport:
    def test_text(self) -> None:
        text = render_crash_report(_crash(targets=["."], config=LintConfig()))
        lines = text.splitlines()
        assert lines[0] == "amplint: internal error while running 'check'"
        assert "  error:   KeyError: 'bundle'" in lines
        assert "  targets: ." in lines
        assert (
            "  config:  strict=no ignore=- schema=bundled schemes=https,http,ssh,file"
            in lines
        )
        assert "Re-run with --verbose" in lines[-1]
        assert "Traceback" not in text

    def test_verbose_includes_traceback(self) -> None:
        text = render_crash_report(_crash(), verbose=True)
        assert "Traceback (most recent call last)" in text
        assert "--verbose" not in text

    def test_config_line_lists_overrides(self) -> None:
        config = LintConfig(
            ignore_rules=("empty-body", "version-type"), schema_path="s.json"
        )
        text = render_crash_report(_crash(config=config))
        assert "ignore=empty-body,version-type schema=s.json" in text

    def test_config_omitted_when_unknown(self) -> None:
        assert "config:" not in render_crash_report(_crash())

    def test_json(self) -> None:
        data = json.loads(render_crash_report(_crash(targets=["a"]), as_json=True))
        assert data["targets"] == ["a"]
        assert data["exit_code"] == EXIT_INTERNAL
        assert data["error"] == "KeyError: 'bundle'"

    def test_immutability(self) -> None:
        with pytest.raises(AttributeError):
            _crash().command = "changed"  # type: ignore[misc]


def test_main_passes_through_system_exit() -> None:
    with pytest.raises(SystemExit) as exc_info:
        with mock.patch.object(cli, "lint_paths", side_effect=SystemExit(3)):
            cli.main(["check", "."])
    assert exc_info.value.code == 3
