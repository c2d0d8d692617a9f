"""Bundle manifest loader — parses and validates Amplifier bundle manifests.

Loads a bundle manifest (``bundle.md`` with YAML front matter, or a plain
``.yaml``/``.yml``/``.json`` document) into an immutable in-memory model and
validates it against the JSON Schema shipped in
``amplint/schemas/bundle-schema.json``.

Usage::

    from amplint.manifest import load_manifest

    manifest = load_manifest("bundle.md")
    for source in manifest.include_sources():
        print(source.repo_name, source.ref)
    manifest.allows_write("~/dev/canvas/frontend/src")
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from amplint.frontmatter import FrontMatterError, split_front_matter
from amplint.includes import (
    DEFAULT_SCHEMES,
    IncludeFormatError,
    IncludeSource,
    include_uri,
    parse_include,
)
from amplint.paths import is_within

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "bundle-schema.json"

MANIFEST_SUFFIXES = (".md", ".yaml", ".yml", ".json")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ManifestValidationError(Exception):
    """Raised when a bundle manifest fails schema or structural validation.

    Attributes:
        errors: List of individual validation error messages.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        bullet_list = "\n  - ".join(errors)
        super().__init__(
            f"Bundle manifest validation failed with {len(errors)} error(s):\n  - {bullet_list}"
        )


class ManifestParseError(ManifestValidationError):
    """Raised when the manifest text is not valid YAML/JSON or lacks front matter.

    Attributes:
        line: 1-based line of the syntax error, when known.
    """

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        super().__init__([message])


class SchemaLoadError(ManifestValidationError):
    """Raised when the manifest JSON Schema is missing, not JSON, or not a valid schema."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__([message])


# ---------------------------------------------------------------------------
# Data classes — frozen / immutable after construction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BundleInfo:
    """The ``bundle`` block: identity of the manifest."""

    name: str
    version: str
    description: str = ""


@dataclass(frozen=True)
class WorkspaceContext:
    """Free-text metadata passed through to the agent's context window."""

    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str, default: str = "") -> str:
        return self.values.get(key, default)

    def __bool__(self) -> bool:
        return bool(self.values)


@dataclass(frozen=True)
class BundleConfig:
    """The ``config`` block."""

    allowed_write_dirs: tuple[str, ...] = ()
    workspace_context: WorkspaceContext = field(default_factory=WorkspaceContext)
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IncludeRef:
    """One ``includes`` entry; ``source`` is ``None`` when it did not parse."""

    raw: str
    source: IncludeSource | None
    error: str = ""

    @property
    def valid(self) -> bool:
        return self.source is not None


@dataclass(frozen=True)
class BundleManifest:
    """Immutable in-memory representation of a parsed bundle manifest."""

    bundle: BundleInfo
    config: BundleConfig
    includes: tuple[IncludeRef, ...] = ()
    body: str = ""
    path: Path | None = None

    @property
    def name(self) -> str:
        return self.bundle.name

    @property
    def version(self) -> str:
        return self.bundle.version

    def include_sources(self) -> list[IncludeSource]:
        return [ref.source for ref in self.includes if ref.source is not None]

    def invalid_includes(self) -> list[IncludeRef]:
        return [ref for ref in self.includes if ref.source is None]

    def allows_write(self, path: str | Path) -> bool:
        """True when *path* is one of, or beneath one of, ``allowed_write_dirs``."""
        target = str(path)
        return any(is_within(target, root) for root in self.config.allowed_write_dirs)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def _yaml_error_line(exc: yaml.YAMLError) -> int | None:
    mark = getattr(exc, "problem_mark", None)
    if mark is None:
        return None
    return mark.line + 1


def read_manifest_data(path: str | Path) -> tuple[Any, str]:
    """Read the raw manifest mapping and Markdown body from *path*.

    The returned data is not validated. Raises ``FileNotFoundError``,
    ``ValueError`` (unsupported suffix) or ``ManifestParseError``.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Manifest file not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix not in MANIFEST_SUFFIXES:
        raise ValueError(
            f"Unsupported manifest format '{suffix}'. Use .md, .yaml, .yml, or .json."
        )

    with open(file_path, encoding="utf-8") as f:
        text = f.read()

    if suffix == ".md":
        try:
            data, body = split_front_matter(text)
        except FrontMatterError as exc:
            raise ManifestParseError(exc.message, line=exc.line) from exc
        if data is None:
            raise ManifestParseError("Markdown manifest has no YAML front matter", line=1)
        return data, body

    if suffix == ".json":
        try:
            return json.loads(text), ""
        except json.JSONDecodeError as exc:
            raise ManifestParseError(f"Invalid JSON: {exc.msg}", line=exc.lineno) from exc

    try:
        return yaml.safe_load(text), ""
    except yaml.YAMLError as exc:
        problem = getattr(exc, "problem", None) or str(exc)
        raise ManifestParseError(
            f"Invalid YAML: {problem}", line=_yaml_error_line(exc)
        ) from exc


# ---------------------------------------------------------------------------
# Schema validation
# ---------------------------------------------------------------------------


def load_schema(schema_path: str | Path | None = None) -> dict[str, Any]:
    """Load the manifest JSON Schema (bundled default when *schema_path* is None).

    Raises ``SchemaLoadError`` when the file is missing or is not JSON.
    """
    path = Path(schema_path) if schema_path is not None else DEFAULT_SCHEMA_PATH
    if not path.exists():
        raise SchemaLoadError(f"Schema file not found: {path}")
    with open(path, encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as exc:
            raise SchemaLoadError(
                f"Schema file {path} is not valid JSON: {exc.msg} (line {exc.lineno})"
            ) from exc


def load_validator(schema_path: str | Path | None = None) -> Draft202012Validator:
    """Load the schema and check it against the Draft 2020-12 meta-schema."""
    schema = load_schema(schema_path)
    try:
        Draft202012Validator.check_schema(schema)
    except SchemaError as exc:
        where = schema_path if schema_path is not None else DEFAULT_SCHEMA_PATH
        raise SchemaLoadError(
            f"Schema file {where} is not a valid schema: {exc.message}"
        ) from exc
    return Draft202012Validator(schema)


def schema_errors(
    data: Any,
    schema_path: str | Path | None = None,
    *,
    validator: Draft202012Validator | None = None,
) -> list[str]:
    """Return ``[dotted.path] message`` strings for every schema violation.

    A preloaded *validator* skips reading the schema file again.
    """
    if validator is None:
        validator = load_validator(schema_path)
    errors: list[str] = []
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        path = ".".join(str(p) for p in error.absolute_path) or "(root)"
        errors.append(f"[{path}] {error.message}")
    return errors


# ---------------------------------------------------------------------------
# Internal parsing helpers
# ---------------------------------------------------------------------------


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_workspace_context(raw: Any) -> WorkspaceContext:
    if raw is None:
        return WorkspaceContext()
    if isinstance(raw, str):
        return WorkspaceContext(values={"summary": raw})
    return WorkspaceContext(values={str(k): _scalar_text(v) for k, v in raw.items()})


def _parse_config(raw: dict[str, Any]) -> BundleConfig:
    known = {"allowed_write_dirs", "workspace_context"}
    return BundleConfig(
        allowed_write_dirs=tuple(raw.get("allowed_write_dirs") or ()),
        workspace_context=_parse_workspace_context(raw.get("workspace_context")),
        extra={k: v for k, v in raw.items() if k not in known},
    )


def _parse_include_ref(entry: Any, allowed_schemes: Iterable[str]) -> IncludeRef:
    uri = include_uri(entry)
    if uri is None:
        return IncludeRef(raw=str(entry), source=None, error="unrecognized include entry")
    try:
        return IncludeRef(
            raw=uri, source=parse_include(uri, allowed_schemes=allowed_schemes)
        )
    except IncludeFormatError as exc:
        return IncludeRef(raw=uri, source=None, error=exc.reason)


def _parse_bundle_info(raw: dict[str, Any]) -> BundleInfo:
    return BundleInfo(
        name=raw["name"],
        version=str(raw["version"]),
        description=raw.get("description", "") or "",
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_manifest(
    data: Any,
    *,
    body: str = "",
    path: str | Path | None = None,
    schema_path: str | Path | None = None,
    allowed_schemes: Iterable[str] = DEFAULT_SCHEMES,
) -> BundleManifest:
    """Validate an already-parsed manifest mapping and build the typed model.

    Raises ``ManifestValidationError`` when the schema check fails.
    """
    errors = schema_errors(data, schema_path)
    if errors:
        raise ManifestValidationError(errors)

    schemes = tuple(allowed_schemes)
    return BundleManifest(
        bundle=_parse_bundle_info(data["bundle"]),
        config=_parse_config(data["config"]),
        includes=tuple(_parse_include_ref(e, schemes) for e in data["includes"]),
        body=body,
        path=Path(path) if path is not None else None,
    )


def load_manifest(
    path: str | Path,
    *,
    schema_path: str | Path | None = None,
    allowed_schemes: Iterable[str] = DEFAULT_SCHEMES,
) -> BundleManifest:
    """Load a bundle manifest from a Markdown, YAML or JSON file.

    Parameters
    ----------
    path:
        Path to the manifest (``.md`` with front matter, ``.yaml``, ``.yml``,
        or ``.json``).
    schema_path:
        Optional path to the JSON Schema file.  When ``None`` the bundled
        schema is used.
    allowed_schemes:
        URL schemes accepted in ``includes`` entries.

    Returns
    -------
    BundleManifest
        Fully parsed, validated, immutable manifest model.  Include strings
        that do not follow the addressing scheme are kept with
        ``source=None``; use ``invalid_includes()`` to inspect them.

    Raises
    ------
    ManifestParseError
        If the file is not valid YAML/JSON or a Markdown file has no front matter.
    ManifestValidationError
        If the manifest fails schema validation.
    FileNotFoundError
        If *path* does not exist.
    """
    data, body = read_manifest_data(path)
    return parse_manifest(
        data,
        body=body,
        path=path,
        schema_path=schema_path,
        allowed_schemes=allowed_schemes,
    )
