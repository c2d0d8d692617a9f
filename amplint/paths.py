"""Checks for ``config.allowed_write_dirs`` entries."""

from __future__ import annotations

import os
import posixpath
import re
from typing import Any, Iterable

_CONTROL = re.compile(r"[\x00-\x1f\x7f]")
_DRIVE = re.compile(r"^[A-Za-z]:")


def check_write_dir(path: Any) -> list[str]:
    """Return the problems with *path*; an empty list means well-formed."""
    if not isinstance(path, str):
        return [f"expected a string path, got {type(path).__name__}"]
    if not path.strip():
        return ["path is empty"]

    problems: list[str] = []
    if path != path.strip():
        problems.append("path has leading or trailing whitespace")
    if "\x00" in path:
        problems.append("path contains a NUL byte")
    elif _CONTROL.search(path):
        problems.append("path contains control characters")
    if _DRIVE.match(path) or "\\" in path:
        problems.append("path must use POSIX separators (no drive letters or '\\')")
    if ".." in path.split("/"):
        problems.append("path must not contain '..' segments")
    return problems


def normalize_write_dir(path: str) -> str:
    expanded = os.path.expanduser(path.strip())
    return posixpath.normpath(expanded)


def find_duplicate_write_dirs(paths: Iterable[Any]) -> list[str]:
    """Return entries that normalize to the same path as an earlier entry."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for path in paths:
        if check_write_dir(path):
            continue
        key = normalize_write_dir(path)
        if key in seen:
            duplicates.append(path)
        else:
            seen.add(key)
    return duplicates


def is_within(path: str, root: str) -> bool:
    """True when *path* equals *root* or lies beneath it (after normalizing)."""
    target = normalize_write_dir(path)
    base = normalize_write_dir(root)
    if target == base:
        return True
    prefix = base if base.endswith("/") else base + "/"
    return target.startswith(prefix)
