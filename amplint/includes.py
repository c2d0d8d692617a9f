"""Parser for bundle include references.

Bundle manifests compose other bundles through ``includes`` entries that use
a pip-style VCS address::

    git+https://github.com/microsoft/amplifier-foundation@main#subdirectory=bundles/foundation.yaml

The string is only parsed and checked here; fetching and merging the
referenced bundle is the job of the Amplifier loader.

Usage::

    from amplint.includes import parse_include

    source = parse_include(entry)
    print(source.repo_name, source.ref, source.subdirectory)
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Any, Iterable
from urllib.parse import urlsplit

PREFIX = "git+"
FRAGMENT_KEY = "subdirectory"
DEFAULT_SCHEMES: tuple[str, ...] = ("https", "http", "ssh", "file")

_WHITESPACE = re.compile(r"\s")


class IncludeFormatError(ValueError):
    """Raised when an include string does not follow the addressing scheme."""

    def __init__(self, uri: str, reason: str) -> None:
        self.uri = uri
        self.reason = reason
        super().__init__(f"Invalid include '{uri}': {reason}")


@dataclass(frozen=True)
class IncludeSource:
    """A parsed ``git+<url>@<ref>#subdirectory=<path>`` reference."""

    url: str
    ref: str
    subdirectory: str

    @property
    def scheme(self) -> str:
        return urlsplit(self.url).scheme

    @property
    def host(self) -> str:
        return urlsplit(self.url).hostname or ""

    @property
    def repo_name(self) -> str:
        """Last path component of the repository URL without ``.git``."""
        path = urlsplit(self.url).path.rstrip("/")
        name = path.rsplit("/", 1)[-1]
        if name.endswith(".git"):
            name = name[: -len(".git")]
        return name

    def format(self) -> str:
        return f"{PREFIX}{self.url}@{self.ref}#{FRAGMENT_KEY}={self.subdirectory}"

    def __str__(self) -> str:
        return self.format()


def _check_subdirectory(uri: str, subdirectory: str) -> None:
    if not subdirectory:
        raise IncludeFormatError(uri, "empty subdirectory")
    if subdirectory.startswith("/"):
        raise IncludeFormatError(uri, "subdirectory must be relative")
    if ".." in subdirectory.split("/"):
        raise IncludeFormatError(uri, "subdirectory must not contain '..'")
    if posixpath.normpath(subdirectory) in (".", ""):
        raise IncludeFormatError(uri, "subdirectory must name a path")


def parse_include(
    uri: str, *, allowed_schemes: Iterable[str] = DEFAULT_SCHEMES
) -> IncludeSource:
    """Parse an include string.

    Raises ``IncludeFormatError`` naming the first defect found.
    """
    if not isinstance(uri, str):
        raise IncludeFormatError(str(uri), f"expected a string, got {type(uri).__name__}")
    if not uri:
        raise IncludeFormatError(uri, "empty include")
    if _WHITESPACE.search(uri):
        raise IncludeFormatError(uri, "whitespace is not allowed")
    if not uri.startswith(PREFIX):
        raise IncludeFormatError(uri, f"missing '{PREFIX}' prefix")

    rest = uri[len(PREFIX) :]
    if "#" not in rest:
        raise IncludeFormatError(uri, f"missing '#{FRAGMENT_KEY}=<path>' fragment")
    location, fragment = rest.split("#", 1)

    key, sep, subdirectory = fragment.partition("=")
    if key != FRAGMENT_KEY or not sep:
        raise IncludeFormatError(
            uri, f"fragment must be '{FRAGMENT_KEY}=<path>', got '{fragment}'"
        )
    _check_subdirectory(uri, subdirectory)

    if "@" not in location:
        raise IncludeFormatError(uri, "missing '@<ref>'")
    url, ref = location.rsplit("@", 1)
    if not ref:
        raise IncludeFormatError(uri, "empty ref after '@'")

    parts = urlsplit(url)
    # 'ssh://git@host/org/repo' without a ref splits at the user separator,
    # leaving a URL with no host path.
    if "://" not in url or not parts.path.strip("/"):
        raise IncludeFormatError(uri, "missing '@<ref>' or repository path")
    # file:///srv/git/repo has an empty netloc
    if not parts.netloc and parts.scheme.lower() != "file":
        raise IncludeFormatError(uri, "missing host in repository URL")

    schemes = tuple(s.lower() for s in allowed_schemes)
    if parts.scheme.lower() not in schemes:
        raise IncludeFormatError(
            uri,
            f"unsupported URL scheme '{parts.scheme}' "
            f"(allowed: {', '.join(schemes)})",
        )

    return IncludeSource(url=url, ref=ref, subdirectory=subdirectory)


def is_valid_include(
    uri: str, *, allowed_schemes: Iterable[str] = DEFAULT_SCHEMES
) -> bool:
    try:
        parse_include(uri, allowed_schemes=allowed_schemes)
    except IncludeFormatError:
        return False
    return True


def include_uri(entry: Any) -> str | None:
    """Pull the URI out of a raw ``includes`` entry.

    Entries are either a bare string or a mapping with a ``bundle`` key.
    """
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        value = entry.get("bundle")
        if isinstance(value, str):
            return value
    return None
