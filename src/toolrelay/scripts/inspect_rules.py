"""CLI helper to inspect redirection rules and preview line diffs."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from ..ai.tools.errors import ConfigurationError
from ..ai.tools.registry import CapabilityRegistry, load_rules
from ..editor.diff import compute_line_diff, diff_stats, render_diff
from ..utils.file_io import read_text_file
from ..utils.logging import setup_logging

LOGGER = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="toolrelay-rules",
        description="Inspect tool redirection rules and line diffs.",
    )
    parser.add_argument("--debug", action="store_true", help="Log debug output to stderr and the log file.")
    parser.add_argument("--log-dir", type=Path, help="Directory for toolrelay.log (default: ~/.toolrelay/logs).")
    commands = parser.add_subparsers(dest="command", required=True)

    rules = commands.add_parser("rules", help="Print the redirection rule table.")
    rules.add_argument("--config", type=Path, help="YAML rule file. Defaults to the built-in table.")

    diff = commands.add_parser("diff", help="Print the line diff between two files.")
    diff.add_argument("original", type=Path)
    diff.add_argument("proposed", type=Path)

    args = parser.parse_args(argv)
    if args.debug:
        setup_logging(logging.DEBUG, log_dir=args.log_dir, force=True)
    if args.command == "rules":
        return _print_rules(args.config)
    return _print_diff(args.original, args.proposed)


def _print_rules(config: Path | None) -> int:
    try:
        registry = load_rules(config) if config else CapabilityRegistry.with_defaults()
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    LOGGER.debug("Loaded %d rule(s) from %s", len(registry), config or "built-in defaults")

    print(f"{'source':<16} {'backend':<12} {'operation':<18} family")
    for rule in registry:
        print(
            f"{rule.source_tool:<16} {rule.target_backend_kind:<12} "
            f"{rule.target_operation:<18} {rule.transform.value}"
        )
    return 0


def _print_diff(original: Path, proposed: Path) -> int:
    try:
        before = _read_lines(original)
        after = _read_lines(proposed)
    except OSError as exc:
        print(f"Unable to read input: {exc}", file=sys.stderr)
        return 1

    ops = compute_line_diff(before, after)
    for line in render_diff(ops, before):
        print(line)
    print(diff_stats(ops).summary())
    return 0


def _read_lines(path: Path) -> list[str]:
    text = read_text_file(path).text
    lines = text.split("\n")
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
