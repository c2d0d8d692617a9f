"""Lint rules for Amplifier artifacts and the report model they produce.

Every rule turns file contents into :class:`Finding` objects; expected
failures (syntax errors, schema violations, unreadable files) never raise
out of this module, so one bad file does not stop a run.  Only problems with
the invocation itself raise: a missing path argument or an unusable schema.

Usage::

    from amplint.lint import lint_paths

    report = lint_paths(["."])
    for finding in report.findings:
        print(finding.path, finding.rule, finding.message)
    raise SystemExit(report.exit_code())
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from jsonschema import Draft202012Validator

from amplint.config import LintConfig
from amplint.discovery import Artifact, ArtifactKind, discover
from amplint.documents import RecipeError, RecipeSyntaxError, load_recipe, load_skill
from amplint.frontmatter import FrontMatterError
from amplint.includes import IncludeFormatError, include_uri, parse_include
from amplint.manifest import (
    ManifestParseError,
    ManifestValidationError,
    load_validator,
    read_manifest_data,
    schema_errors,
)
from amplint.paths import check_write_dir, find_duplicate_write_dirs

LOG = logging.getLogger("amplint.lint")

RULES: dict[str, str] = {
    "parse": "YAML/JSON/front matter parses",
    "schema": "manifest required keys and types",
    "include-format": "include matches git+<url>@<ref>#subdirectory=<path>",
    "include-duplicate": "include listed more than once",
    "write-dir": "allowed_write_dirs entry is a well-formed path",
    "write-dir-duplicate": "allowed_write_dirs entries normalize to the same path",
    "version-type": "bundle.version written as a number instead of a string",
    "empty-body": "skill document has no Markdown body",
    "recipe-structure": "recipe mapping and steps shape",
}


# ---------------------------------------------------------------------------
# Report model
# ---------------------------------------------------------------------------


class Severity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Finding:
    path: str
    rule: str
    severity: Severity
    message: str
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "line": self.line,
            "rule": self.rule,
            "severity": self.severity.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class LintReport:
    """Aggregate result of linting a set of artifacts."""

    findings: tuple[Finding, ...] = ()
    checked: tuple[Artifact, ...] = ()

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.severity is Severity.WARNING]

    def passed(self, strict: bool = False) -> bool:
        if self.errors:
            return False
        return not (strict and self.warnings)

    def exit_code(self, strict: bool = False) -> int:
        return 0 if self.passed(strict) else 1

    def to_dict(self, strict: bool = False) -> dict[str, Any]:
        return {
            "passed": self.passed(strict),
            "strict": strict,
            "checked": [
                {"path": str(a.path), "kind": a.kind.value} for a in self.checked
            ],
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "findings": [f.to_dict() for f in self.findings],
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error(path: Path, rule: str, message: str, line: int | None = None) -> Finding:
    return Finding(str(path), rule, Severity.ERROR, message, line)


def _warning(path: Path, rule: str, message: str, line: int | None = None) -> Finding:
    return Finding(str(path), rule, Severity.WARNING, message, line)


def _read_lines(path: Path) -> list[str]:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read().splitlines()
    except (OSError, UnicodeDecodeError):
        return []


def _line_of(lines: Sequence[str], needle: str, start: int = 0) -> int | None:
    """1-based line of the first occurrence of *needle* at or after *start*."""
    if not needle:
        return None
    for idx in range(start, len(lines)):
        if needle in lines[idx]:
            return idx + 1
    return None


def _key_line(
    lines: Sequence[str], key: str, start: int = 0, *, flow: bool = False
) -> int | None:
    """1-based line of a YAML or JSON mapping key at or after *start*.

    With *flow* the key may also follow ``{`` or ``,`` inside a flow mapping.
    """
    prefix = r"(?:^|[{,])\s*" if flow else r"^\s*"
    pattern = re.compile(rf'{prefix}"?{re.escape(key)}"?\s*:')
    for idx in range(start, len(lines)):
        if pattern.search(lines[idx]):
            return idx + 1
    return None


# ---------------------------------------------------------------------------
# Manifest rules
# ---------------------------------------------------------------------------


def _check_includes(
    path: Path, includes: list[Any], lines: Sequence[str], config: LintConfig
) -> list[Finding]:
    findings: list[Finding] = []
    seen: set[str] = set()
    for idx, entry in enumerate(includes):
        uri = include_uri(entry)
        if uri is None:
            # shape errors are reported by the schema rule
            continue
        line = _line_of(lines, uri)
        try:
            parse_include(uri, allowed_schemes=config.allowed_schemes)
        except IncludeFormatError as exc:
            findings.append(
                _error(
                    path,
                    "include-format",
                    f"includes[{idx}]: {exc.reason}: {uri}",
                    line,
                )
            )
        if uri in seen:
            findings.append(
                _warning(
                    path,
                    "include-duplicate",
                    f"includes[{idx}]: duplicate include {uri}",
                    line,
                )
            )
        seen.add(uri)
    return findings


def _check_write_dirs(
    path: Path, dirs: list[Any], lines: Sequence[str]
) -> list[Finding]:
    findings: list[Finding] = []
    for idx, entry in enumerate(dirs):
        if not isinstance(entry, str):
            continue
        line = _line_of(lines, entry.strip()) if entry.strip() else None
        for problem in check_write_dir(entry):
            findings.append(
                _error(
                    path,
                    "write-dir",
                    f"config.allowed_write_dirs[{idx}]: {problem}: {entry!r}",
                    line,
                )
            )
    for dup in find_duplicate_write_dirs(dirs):
        findings.append(
            _warning(
                path,
                "write-dir-duplicate",
                f"config.allowed_write_dirs: {dup!r} duplicates an earlier entry",
                _line_of(lines, dup.strip()),
            )
        )
    return findings


def lint_manifest(
    path: str | Path,
    config: LintConfig,
    validator: Optional[Draft202012Validator] = None,
) -> list[Finding]:
    """Lint a bundle manifest: parse, schema, includes and write directories.

    *validator* is the preloaded manifest schema; when omitted it is loaded
    from ``config.schema_path`` and an unusable schema becomes a finding.
    """
    file_path = Path(path)
    try:
        data, _body = read_manifest_data(file_path)
    except ManifestParseError as exc:
        return [_error(file_path, "parse", exc.errors[0], exc.line)]
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        LOG.warning("Could not read manifest %s: %s", file_path, exc)
        return [_error(file_path, "parse", str(exc))]

    findings: list[Finding] = []
    try:
        for message in schema_errors(data, config.schema_path, validator=validator):
            findings.append(_error(file_path, "schema", message))
    except ManifestValidationError as exc:
        findings.extend(_error(file_path, "schema", m) for m in exc.errors)

    if not isinstance(data, dict):
        return findings

    lines = _read_lines(file_path)

    bundle = data.get("bundle")
    if isinstance(bundle, dict):
        version = bundle.get("version")
        if isinstance(version, (int, float)) and not isinstance(version, bool):
            bundle_line = _key_line(lines, "bundle")
            findings.append(
                _warning(
                    file_path,
                    "version-type",
                    f"bundle.version {version!r} is a number; quote it to keep it a string",
                    _key_line(
                        lines, "version", start=(bundle_line or 1) - 1, flow=True
                    ),
                )
            )

    includes = data.get("includes")
    if isinstance(includes, list):
        findings.extend(_check_includes(file_path, includes, lines, config))

    cfg = data.get("config")
    if isinstance(cfg, dict) and isinstance(cfg.get("allowed_write_dirs"), list):
        findings.extend(_check_write_dirs(file_path, cfg["allowed_write_dirs"], lines))

    return findings


# ---------------------------------------------------------------------------
# Skill and recipe rules
# ---------------------------------------------------------------------------


def lint_skill(path: str | Path, config: LintConfig) -> list[Finding]:
    file_path = Path(path)
    try:
        skill = load_skill(file_path)
    except FrontMatterError as exc:
        return [_error(file_path, "parse", exc.message, exc.line)]
    except (OSError, UnicodeDecodeError) as exc:
        LOG.warning("Could not read skill %s: %s", file_path, exc)
        return [_error(file_path, "parse", str(exc))]

    if not skill.body.strip():
        return [_warning(file_path, "empty-body", "skill document has no Markdown body")]
    return []


def lint_recipe(path: str | Path, config: LintConfig) -> list[Finding]:
    file_path = Path(path)
    try:
        load_recipe(file_path)
    except RecipeSyntaxError as exc:
        return [_error(file_path, "parse", exc.message, exc.line)]
    except RecipeError as exc:
        return [_error(file_path, "recipe-structure", exc.message, exc.line)]
    except (OSError, UnicodeDecodeError) as exc:
        LOG.warning("Could not read recipe %s: %s", file_path, exc)
        return [_error(file_path, "parse", str(exc))]
    return []


_LINTERS = {
    ArtifactKind.MANIFEST: lint_manifest,
    ArtifactKind.SKILL: lint_skill,
    ArtifactKind.RECIPE: lint_recipe,
}


def lint_artifact(
    artifact: Artifact,
    config: LintConfig,
    validator: Optional[Draft202012Validator] = None,
) -> list[Finding]:
    LOG.debug("Linting %s %s", artifact.kind.value, artifact.path)
    if artifact.kind is ArtifactKind.MANIFEST:
        return lint_manifest(artifact.path, config, validator)
    return _LINTERS[artifact.kind](artifact.path, config)


def lint_paths(
    paths: Iterable[str | Path], config: LintConfig | None = None
) -> LintReport:
    """Discover and lint every artifact under *paths*.

    The manifest schema is loaded once per run. Raises ``FileNotFoundError``
    for a path argument that does not exist and ``SchemaLoadError`` when
    manifests were found but the configured schema is unusable; problems in
    the linted files themselves always become findings.
    """
    config = config or LintConfig()
    artifacts = discover(paths)
    validator = None
    if any(a.kind is ArtifactKind.MANIFEST for a in artifacts):
        validator = load_validator(config.schema_path)
    ignored = set(config.ignore_rules)
    findings: list[Finding] = []
    for artifact in artifacts:
        for finding in lint_artifact(artifact, config, validator):
            if finding.rule in ignored:
                continue
            findings.append(finding)
    return LintReport(findings=tuple(findings), checked=tuple(artifacts))
