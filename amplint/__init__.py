"""amplint — structural checks for Amplifier bundles, skills and recipes."""

from .lint import Finding, LintReport, Severity, lint_paths
from .manifest import (
    BundleManifest,
    ManifestParseError,
    ManifestValidationError,
    SchemaLoadError,
    load_manifest,
)

__all__ = [
    "BundleManifest",
    "Finding",
    "LintReport",
    "ManifestParseError",
    "ManifestValidationError",
    "SchemaLoadError",
    "Severity",
    "lint_paths",
    "load_manifest",
]

__version__ = "0.1.0"
