"""Crash report for bugs inside ``amplint`` itself.

Lint findings are normal output and exit with 1.  An exception that escapes
a command handler is a defect in the tool, so it gets its own exit code (3)
and a report that records what was being linted and with which settings::

    amplint: internal error while running 'check'
      error:   KeyError: 'bundle'
      at:      amplint/lint.py:241 in lint_manifest
      targets: examples/canvas-dev
      config:  strict=no ignore=- schema=bundled schemes=https,http,ssh,file
      amplint 0.1.0, Python 3.12.1
    This is a bug in amplint, not a lint failure. Re-run with --verbose for the traceback.
"""

from __future__ import annotations

import dataclasses
import json
import platform
import traceback
from typing import Any, Dict, Iterable, Optional

from amplint import __version__
from amplint.config import LintConfig

EXIT_INTERNAL = 3


@dataclasses.dataclass(frozen=True)
class CrashReport:
    command: str
    error: str
    location: Optional[str]
    targets: tuple[str, ...]
    config: Optional[Dict[str, Any]]
    traceback: Optional[str]
    amplint_version: str
    python_version: str
    exit_code: int = EXIT_INTERNAL

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["targets"] = list(self.targets)
        return data


def _innermost_frame(exc: BaseException) -> Optional[str]:
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return None
    frame = frames[-1]
    return f"{frame.filename}:{frame.lineno} in {frame.name}"


def _config_dict(config: LintConfig) -> Dict[str, Any]:
    return {
        "strict": config.strict,
        "ignore_rules": list(config.ignore_rules),
        "schema_path": config.schema_path,
        "allowed_schemes": list(config.allowed_schemes),
    }


def build_crash_report(
    exc: BaseException,
    *,
    command: str,
    targets: Iterable[str] = (),
    config: Optional[LintConfig] = None,
) -> CrashReport:
    """Capture *exc* together with the files and settings of the failed run.

    *config* is ``None`` when the failure happened before settings were read.
    """
    tb = None
    if exc.__traceback__ is not None:
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return CrashReport(
        command=command,
        error=f"{type(exc).__qualname__}: {exc}",
        location=_innermost_frame(exc),
        targets=tuple(str(t) for t in targets),
        config=_config_dict(config) if config is not None else None,
        traceback=tb,
        amplint_version=__version__,
        python_version=platform.python_version(),
    )


def _config_line(config: Dict[str, Any]) -> str:
    return " ".join(
        [
            f"strict={'yes' if config['strict'] else 'no'}",
            f"ignore={','.join(config['ignore_rules']) or '-'}",
            f"schema={config['schema_path'] or 'bundled'}",
            f"schemes={','.join(config['allowed_schemes'])}",
        ]
    )


def render_crash_report(
    report: CrashReport, *, verbose: bool = False, as_json: bool = False
) -> str:
    """Format *report* for stderr; the traceback is only shown when *verbose*."""
    if as_json:
        return json.dumps(report.to_dict(), indent=2, sort_keys=True)

    lines = [
        f"amplint: internal error while running '{report.command}'",
        f"  error:   {report.error}",
    ]
    if report.location:
        lines.append(f"  at:      {report.location}")
    if report.targets:
        lines.append(f"  targets: {' '.join(report.targets)}")
    if report.config is not None:
        lines.append(f"  config:  {_config_line(report.config)}")
    lines.append(f"  amplint {report.amplint_version}, Python {report.python_version}")
    if verbose and report.traceback:
        lines.extend(["", report.traceback.rstrip(), ""])
        lines.append("This is a bug in amplint, not a lint failure.")
    else:
        lines.append(
            "This is a bug in amplint, not a lint failure. "
            "Re-run with --verbose for the traceback."
        )
    return "\n".join(lines)
