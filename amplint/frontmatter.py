"""YAML front matter splitter for Markdown artifacts.

Bundle manifests written as ``bundle.md`` and most skill documents carry a
YAML block delimited by ``---`` lines at the top of the file::

    ---
    bundle:
      name: canvas-dev
    ---
    # Instructions ...

Usage::

    from amplint.frontmatter import split_front_matter

    data, body = split_front_matter(text)
"""

from __future__ import annotations

from typing import Any

import yaml

_OPEN = "---"
_CLOSE = ("---", "...")


class FrontMatterError(Exception):
    """Raised when a front matter block is present but malformed.

    Attributes:
        line: 1-based line number in the source file, when known.
    """

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        self.message = message
        where = f" (line {line})" if line is not None else ""
        super().__init__(f"{message}{where}")


def split_front_matter(text: str) -> tuple[dict[str, Any] | None, str]:
    """Split *text* into ``(front_matter, body)``.

    Returns ``(None, text)`` when the document does not open with ``---``.
    An empty block yields ``{}``.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n").rstrip() != _OPEN:
        return None, text

    end = None
    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r\n").rstrip() in _CLOSE:
            end = idx
            break
    if end is None:
        raise FrontMatterError("Unterminated front matter block", line=1)

    raw = "".join(lines[1:end])
    body = "".join(lines[end + 1 :])
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        line = None
        mark = getattr(exc, "problem_mark", None)
        if mark is not None:
            # +2: one for 1-based numbering, one for the opening delimiter
            line = mark.line + 2
        problem = getattr(exc, "problem", None) or str(exc)
        raise FrontMatterError(
            f"Invalid YAML in front matter: {problem}", line=line
        ) from exc

    if data is None:
        return {}, body
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"Front matter must be a mapping, got {type(data).__name__}", line=2
        )
    return data, body
