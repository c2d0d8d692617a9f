"""Locate bundle manifests, skills and recipes under a set of paths."""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

LOG = logging.getLogger("amplint.discovery")

MANIFEST_NAMES = ("bundle.md", "bundle.yaml", "bundle.yml", "bundle.json")
MANIFEST_DIRS = ("bundles", "behaviors")
SKILL_DIRS = ("skills",)
RECIPE_DIRS = ("recipes",)
SKIP_DIRS = frozenset({".git", "node_modules", "__pycache__", ".venv", "venv"})

_YAML = (".yaml", ".yml")


class ArtifactKind(str, enum.Enum):
    MANIFEST = "manifest"
    SKILL = "skill"
    RECIPE = "recipe"


@dataclass(frozen=True, order=True)
class Artifact:
    path: Path
    kind: ArtifactKind


def classify(path: str | Path) -> ArtifactKind | None:
    """Return the artifact kind for *path* by naming convention, or ``None``."""
    p = Path(path)
    name = p.name.lower()
    suffix = p.suffix.lower()
    parents = {part.lower() for part in p.parent.parts}

    if name in MANIFEST_NAMES:
        return ArtifactKind.MANIFEST
    if parents.intersection(RECIPE_DIRS) and suffix in _YAML:
        return ArtifactKind.RECIPE
    if parents.intersection(SKILL_DIRS) and suffix == ".md":
        return ArtifactKind.SKILL
    if (
        parents.intersection(MANIFEST_DIRS)
        and suffix in (".md",) + _YAML
        and name != "readme.md"
    ):
        return ArtifactKind.MANIFEST
    return None


def _walk(root: Path) -> Iterable[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        kept = []
        for d in sorted(dirnames):
            if d in SKIP_DIRS or d.startswith("."):
                LOG.debug("Skipping directory %s", os.path.join(dirpath, d))
                continue
            kept.append(d)
        dirnames[:] = kept
        for filename in sorted(filenames):
            yield Path(dirpath) / filename


def _scan_relative(candidate: Path, root: Path) -> Path:
    """*candidate* relative to *root*, prefixed with the root's own name.

    Directories above the scanned root never take part in classification,
    so ``check .`` and ``check /abs/repo`` agree.
    """
    return Path(root.resolve().name) / candidate.relative_to(root)


def discover(paths: Iterable[str | Path]) -> list[Artifact]:
    """Collect artifacts from files and directories.

    Walked files are classified by their path below the scanned directory
    (including that directory's name, so ``check skills/`` works). Explicit
    file arguments are always linted; a file that does not match a naming
    convention is treated as a manifest when it is Markdown or YAML.
    Missing paths raise ``FileNotFoundError``.
    """
    found: set[Artifact] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for candidate in _walk(path):
                kind = classify(_scan_relative(candidate, path))
                if kind is not None:
                    found.add(Artifact(path=candidate, kind=kind))
        elif path.is_file():
            kind = classify(path)
            if kind is None and path.suffix.lower() in (".md", ".json") + _YAML:
                kind = ArtifactKind.MANIFEST
            if kind is None:
                LOG.debug("Ignoring unrecognized file %s", path)
                continue
            found.add(Artifact(path=path, kind=kind))
        else:
            raise FileNotFoundError(f"Path not found: {path}")
    return sorted(found)
