"""Command-line interface for amplint.

Exit codes: 0 success, 1 lint or validation failures, 2 usage errors and
files or schemas that cannot be found or loaded, 3 internal errors.

Usage::

    amplint check .                    # lint every artifact under the repo
    amplint check bundle.md --strict   # warnings fail the run
    amplint includes bundle.md --json  # parsed include references
    amplint show bundle.md             # manifest overview
    amplint rules                      # list rule ids
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Callable, Dict, List, Optional

from amplint.config import LintConfig
from amplint.error_report import build_crash_report, render_crash_report
from amplint.lint import RULES, lint_paths
from amplint.manifest import (
    BundleManifest,
    ManifestValidationError,
    SchemaLoadError,
    load_manifest,
)
from amplint.report import (
    include_to_dict,
    manifest_to_dict,
    render_includes,
    render_json,
    render_manifest_summary,
    render_text,
)

LOG = logging.getLogger("amplint.cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _load_for_display(path: str, config: LintConfig) -> Optional[BundleManifest]:
    """Load a manifest for ``includes``/``show``; print the problem and return None on failure."""
    try:
        return load_manifest(
            path,
            schema_path=config.schema_path,
            allowed_schemes=config.allowed_schemes,
        )
    except FileNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
    except SchemaLoadError as exc:
        print(f"ERROR: {exc.message}", file=sys.stderr)
    except ManifestValidationError as exc:
        print(f"ERROR: {path}: {exc}", file=sys.stderr)
    return None


def _config_for(args: argparse.Namespace) -> LintConfig:
    """Environment settings with this invocation's flags applied."""
    return LintConfig.from_env().merged(
        strict=True if getattr(args, "strict", False) else None,
        ignore_rules=getattr(args, "ignore", None) or (),
        schema_path=getattr(args, "schema", None),
    )


def _targets(args: argparse.Namespace) -> List[str]:
    if args.command == "check":
        return list(args.paths or ["."])
    manifest = getattr(args, "manifest", None)
    return [manifest] if manifest else []


def _cli_check(args: argparse.Namespace, config: LintConfig) -> int:
    unknown = [r for r in config.ignore_rules if r not in RULES]
    if unknown:
        LOG.warning("Ignoring unknown rule id(s): %s", ", ".join(unknown))

    try:
        report = lint_paths(args.paths or ["."], config)
    except FileNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except SchemaLoadError as exc:
        print(f"ERROR: {exc.message}", file=sys.stderr)
        return EXIT_USAGE

    if args.json:
        render_json(report, file=sys.stdout, strict=config.strict)
    else:
        render_text(report, file=sys.stdout, strict=config.strict)
    return report.exit_code(config.strict)


def _cli_includes(args: argparse.Namespace, config: LintConfig) -> int:
    manifest = _load_for_display(args.manifest, config)
    if manifest is None:
        return EXIT_USAGE
    if args.json:
        rows = [include_to_dict(ref) for ref in manifest.includes]
        print(json.dumps(rows, indent=2, sort_keys=True))
    else:
        print(render_includes(manifest))
    return EXIT_FAILED if manifest.invalid_includes() else EXIT_OK


def _cli_show(args: argparse.Namespace, config: LintConfig) -> int:
    manifest = _load_for_display(args.manifest, config)
    if manifest is None:
        return EXIT_USAGE
    if args.json:
        print(json.dumps(manifest_to_dict(manifest), indent=2, sort_keys=True))
    else:
        print(render_manifest_summary(manifest))
    return EXIT_OK


def _cli_rules(args: argparse.Namespace, config: LintConfig) -> int:
    if args.json:
        print(json.dumps(RULES, indent=2, sort_keys=True))
        return EXIT_OK
    width = max(len(rule) for rule in RULES)
    for rule, description in RULES.items():
        print(f"{rule.ljust(width)}  {description}")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amplint",
        description="Validate Amplifier bundle manifests, skills and recipes",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Show debug logging"
    )
    sub = parser.add_subparsers(dest="command")

    check = sub.add_parser("check", help="Lint files and directories")
    check.add_argument("paths", nargs="*", help="Files or directories (default: .)")
    check.add_argument("--json", action="store_true", help="Output JSON")
    check.add_argument(
        "--strict", action="store_true", help="Treat warnings as failures"
    )
    check.add_argument(
        "--ignore",
        action="append",
        metavar="RULE",
        help="Rule id to skip (repeatable)",
    )
    check.add_argument("--schema", help="Path to an alternative manifest JSON Schema")

    includes = sub.add_parser("includes", help="List a manifest's include references")
    includes.add_argument("manifest")
    includes.add_argument("--json", action="store_true", help="Output JSON")

    show = sub.add_parser("show", help="Summarize a bundle manifest")
    show.add_argument("manifest")
    show.add_argument("--json", action="store_true", help="Output JSON")

    rules = sub.add_parser("rules", help="List lint rule ids")
    rules.add_argument("--json", action="store_true", help="Output JSON")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s"
    )
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.getLogger("amplint").setLevel(logging.DEBUG)
    if not args.command:
        parser.print_help(sys.stderr)
        return EXIT_USAGE

    handlers: Dict[str, Callable[[argparse.Namespace, LintConfig], int]] = {
        "check": _cli_check,
        "includes": _cli_includes,
        "show": _cli_show,
        "rules": _cli_rules,
    }
    handler = handlers[args.command]
    config: Optional[LintConfig] = None
    try:
        config = _config_for(args)
        return handler(args, config)
    except Exception as exc:
        LOG.error("Unhandled error in command '%s': %s", args.command, exc)
        LOG.debug("Unhandled error details", exc_info=True)
        report = build_crash_report(
            exc, command=args.command, targets=_targets(args), config=config
        )
        print(
            render_crash_report(
                report,
                verbose=args.verbose,
                as_json=getattr(args, "json", False),
            ),
            file=sys.stderr,
        )
        return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
