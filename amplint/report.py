"""Text and JSON rendering for lint reports and manifest summaries."""

from __future__ import annotations

import json
from typing import IO

from amplint.lint import LintReport
from amplint.manifest import BundleManifest


def _emit(text: str, file: IO[str] | None) -> str:
    if file is not None:
        print(text, file=file)
    return text


def render_text(
    report: LintReport, *, file: IO[str] | None = None, strict: bool = False
) -> str:
    """Render one ``path:line: severity [rule] message`` line per finding plus a summary."""
    lines: list[str] = []
    for f in report.findings:
        location = f"{f.path}:{f.line}" if f.line is not None else f.path
        lines.append(f"{location}: {f.severity.value} [{f.rule}] {f.message}")

    n_err = len(report.errors)
    n_warn = len(report.warnings)
    n_files = len(report.checked)
    if report.passed(strict):
        summary = f"PASS: {n_files} file(s) checked"
        if n_warn:
            summary += f", {n_warn} warning(s)"
    else:
        summary = f"FAIL: {n_err} error(s), {n_warn} warning(s) in {n_files} file(s)"
        if strict and not n_err:
            summary += " (strict: warnings are failures)"
    if lines:
        lines.append("")
    lines.append(summary)
    return _emit("\n".join(lines), file)


def render_json(
    report: LintReport, *, file: IO[str] | None = None, strict: bool = False
) -> str:
    text = json.dumps(report.to_dict(strict), indent=2, sort_keys=True)
    return _emit(text, file)


def manifest_to_dict(manifest: BundleManifest) -> dict:
    return {
        "name": manifest.name,
        "version": manifest.version,
        "description": manifest.bundle.description,
        "path": str(manifest.path) if manifest.path is not None else None,
        "allowed_write_dirs": list(manifest.config.allowed_write_dirs),
        "workspace_context": dict(manifest.config.workspace_context.values),
        "includes": [include_to_dict(ref) for ref in manifest.includes],
    }


def include_to_dict(ref) -> dict:
    source = ref.source
    return {
        "raw": ref.raw,
        "valid": source is not None,
        "url": source.url if source else None,
        "ref": source.ref if source else None,
        "subdirectory": source.subdirectory if source else None,
        "repo": source.repo_name if source else None,
        "error": ref.error or None,
    }


def render_includes(manifest: BundleManifest) -> str:
    if not manifest.includes:
        return "No includes."
    lines: list[str] = []
    for idx, ref in enumerate(manifest.includes):
        if ref.source is None:
            lines.append(f"[{idx}] INVALID {ref.raw}")
            lines.append(f"      {ref.error}")
            continue
        src = ref.source
        lines.append(f"[{idx}] {src.repo_name}@{src.ref}")
        lines.append(f"      url:          {src.url}")
        lines.append(f"      subdirectory: {src.subdirectory}")
    return "\n".join(lines)


def render_manifest_summary(manifest: BundleManifest) -> str:
    """Human overview of a bundle manifest."""
    lines = [
        f"Bundle:      {manifest.name}",
        f"Version:     {manifest.version}",
    ]
    if manifest.bundle.description:
        lines.append(f"Description: {manifest.bundle.description}")

    lines.append("")
    lines.append("Allowed write dirs:")
    if manifest.config.allowed_write_dirs:
        lines.extend(f"  - {d}" for d in manifest.config.allowed_write_dirs)
    else:
        lines.append("  (none)")

    context = manifest.config.workspace_context
    if context:
        lines.append("")
        lines.append("Workspace context:")
        width = max(len(k) for k in context.values)
        for key, value in context.values.items():
            lines.append(f"  {key.ljust(width)}  {value}")

    lines.append("")
    lines.append(f"Includes ({len(manifest.includes)}):")
    for ref in manifest.includes:
        marker = "ok" if ref.valid else "INVALID"
        lines.append(f"  - [{marker}] {ref.raw}")
    return "\n".join(lines)
