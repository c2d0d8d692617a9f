"""Linter configuration read from the environment.

Settings come from ``AMPLINT_*`` environment variables.  A ``.env`` file in
the working directory is loaded first (values there override the process
environment) unless ``AMPLINT_LOAD_DOTENV=0``.  CLI flags are applied on top
with :meth:`LintConfig.merged`.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from typing import Any, Iterable, Optional

from dotenv import find_dotenv, load_dotenv

from amplint.includes import DEFAULT_SCHEMES
from amplint.manifest import SchemaLoadError, load_validator

LOG = logging.getLogger("amplint.config")

TRUTHY = ("1", "true", "yes", "y", "on")
FALSY = ("0", "false", "no", "n", "off", "")


def _bool_value(value: Any) -> Optional[bool]:
    """Coerce a setting to bool, or ``None`` when it is not recognised.

    Accepts ``bool``, ``None`` (false), and the strings in ``TRUTHY`` and
    ``FALSY`` in any case.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in TRUTHY:
        return True
    if text in FALSY:
        return False
    return None


def _env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean variable; invalid values are logged and replaced by *default*."""
    raw = os.getenv(name)
    if raw is None:
        return default
    value = _bool_value(raw)
    if value is None:
        LOG.warning(
            "Invalid %s=%r (expected 1/0, true/false, yes/no or on/off); using %s",
            name,
            raw,
            "1" if default else "0",
        )
        return default
    return value


def _csv(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _load_dotenv_file() -> None:
    if not _env_bool("AMPLINT_LOAD_DOTENV", default=True):
        return
    env_file = find_dotenv(".env", usecwd=True)
    if env_file:
        LOG.debug("Loading environment from %s", env_file)
        load_dotenv(env_file, override=True)


@dataclasses.dataclass(frozen=True)
class LintConfig:
    strict: bool = False
    ignore_rules: tuple[str, ...] = ()
    schema_path: Optional[str] = None
    allowed_schemes: tuple[str, ...] = DEFAULT_SCHEMES

    @staticmethod
    def from_env() -> "LintConfig":
        _load_dotenv_file()

        schema_path = os.getenv("AMPLINT_SCHEMA_PATH") or None
        if schema_path and not os.path.isfile(schema_path):
            LOG.warning(
                "Invalid AMPLINT_SCHEMA_PATH=%r (not a file); using bundled schema",
                schema_path,
            )
            schema_path = None
        elif schema_path:
            try:
                load_validator(schema_path)
            except SchemaLoadError as exc:
                LOG.warning(
                    "Invalid AMPLINT_SCHEMA_PATH=%r (%s); using bundled schema",
                    schema_path,
                    exc.message,
                )
                schema_path = None

        schemes = tuple(s.lower() for s in _csv(os.getenv("AMPLINT_ALLOWED_SCHEMES")))
        if not schemes:
            schemes = DEFAULT_SCHEMES

        return LintConfig(
            strict=_env_bool("AMPLINT_STRICT"),
            ignore_rules=_csv(os.getenv("AMPLINT_IGNORE_RULES")),
            schema_path=schema_path,
            allowed_schemes=schemes,
        )

    def merged(
        self,
        *,
        strict: Optional[bool] = None,
        ignore_rules: Iterable[str] = (),
        schema_path: Optional[str] = None,
    ) -> "LintConfig":
        """Return a copy with CLI overrides applied; ``None`` keeps the current value."""
        ignored = tuple(dict.fromkeys(tuple(self.ignore_rules) + tuple(ignore_rules)))
        return dataclasses.replace(
            self,
            strict=self.strict if strict is None else strict,
            ignore_rules=ignored,
            schema_path=schema_path if schema_path is not None else self.schema_path,
        )
