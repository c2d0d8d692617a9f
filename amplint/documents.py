"""Skill and recipe document loaders.

Skills are free-form Markdown, optionally opened by a YAML front matter
block (``name``, ``description``). Recipes are YAML mappings with an
optional ``steps`` list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from amplint.frontmatter import split_front_matter


class RecipeError(Exception):
    """Raised when a recipe document is malformed.

    Attributes:
        line: 1-based line of a YAML syntax error, when known.
    """

    def __init__(self, message: str, line: int | None = None) -> None:
        self.message = message
        self.line = line
        super().__init__(message)


class RecipeSyntaxError(RecipeError):
    """Raised when a recipe file is not valid YAML."""


@dataclass(frozen=True)
class SkillDocument:
    path: Path
    front_matter: dict[str, Any] = field(default_factory=dict)
    body: str = ""

    @property
    def name(self) -> str:
        name = self.front_matter.get("name")
        if name:
            return str(name)
        if self.path.name.upper() == "SKILL.MD":
            return self.path.parent.name
        return self.path.stem

    @property
    def description(self) -> str:
        return str(self.front_matter.get("description") or "")


@dataclass(frozen=True)
class RecipeDocument:
    path: Path
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return str(self.data.get("name") or self.path.stem)

    @property
    def steps(self) -> tuple[dict[str, Any], ...]:
        return tuple(self.data.get("steps") or ())


def load_skill(path: str | Path) -> SkillDocument:
    """Load a skill document. Raises ``FrontMatterError`` on a malformed block."""
    file_path = Path(path)
    with open(file_path, encoding="utf-8") as f:
        text = f.read()
    front_matter, body = split_front_matter(text)
    return SkillDocument(path=file_path, front_matter=front_matter or {}, body=body)


def _check_steps(steps: Any) -> None:
    if not isinstance(steps, list):
        raise RecipeError(f"'steps' must be a list, got {type(steps).__name__}")
    seen: set[str] = set()
    for idx, step in enumerate(steps):
        if not isinstance(step, dict):
            raise RecipeError(
                f"step {idx} must be a mapping, got {type(step).__name__}"
            )
        step_id = step.get("id")
        if step_id is None:
            continue
        if str(step_id) in seen:
            raise RecipeError(f"duplicate step id '{step_id}'")
        seen.add(str(step_id))


def load_recipe(path: str | Path) -> RecipeDocument:
    """Load a recipe declaration. Raises ``RecipeError`` when malformed."""
    file_path = Path(path)
    with open(file_path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            mark = getattr(exc, "problem_mark", None)
            problem = getattr(exc, "problem", None) or str(exc)
            raise RecipeSyntaxError(
                f"Invalid YAML: {problem}",
                line=mark.line + 1 if mark is not None else None,
            ) from exc

    if not isinstance(data, dict):
        raise RecipeError(
            f"Recipe must be a mapping, got {type(data).__name__}"
        )
    if "steps" in data:
        _check_steps(data["steps"])
    return RecipeDocument(path=file_path, data=data)
