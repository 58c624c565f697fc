# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from unisync.app import diff_backups, merge_backups
from unisync.config import configure_logging
from unisync.domain.reconciliation import Action

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from unisync.domain.reconciliation import DetectionReport

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile UniData backups")
    subparsers = parser.add_subparsers(dest="command", required=True)

    diff = subparsers.add_parser("diff", help="List differences between two backups")
    diff.add_argument("local", help="Path to the local backup JSON")
    diff.add_argument("external", help="Path to the incoming backup JSON")

    merge = subparsers.add_parser("merge", help="Merge an incoming backup into a local one")
    merge.add_argument("local", help="Path to the local backup JSON")
    merge.add_argument("external", help="Path to the incoming backup JSON")
    merge.add_argument(
        "-o",
        "--output",
        required=True,
        help="Where to write the merged backup",
    )
    merge.add_argument(
        "--override",
        action="append",
        default=[],
        metavar="KEY=ACTION",
        help="Replace the default action of one diff item (repeatable)",
    )
    merge.add_argument(
        "--mode",
        choices=("items", "tree"),
        default="items",
        help="Apply per-item actions or the selection tree (default: %(default)s)",
    )
    merge.add_argument(
        "--deselect",
        action="append",
        default=[],
        metavar="NODE_ID",
        help="Uncheck a selection tree node and its descendants (tree mode, repeatable)",
    )

    return parser.parse_args(list(argv))


def _parse_overrides(values: Sequence[str]) -> dict[str, Action]:
    overrides: dict[str, Action] = {}
    for value in values:
        key, separator, action = value.rpartition("=")
        if not separator or not key:
            raise ValueError(f"Invalid override (expected KEY=ACTION): {value}")
        try:
            overrides[key.strip()] = Action(action.strip())
        except ValueError as exc:
            choices = ", ".join(str(member) for member in Action)
            raise ValueError(f"Invalid action {action!r} (choose from {choices})") from exc
    return overrides


def _print_report(report: DetectionReport) -> None:
    for item in report.items():
        print(f"{item.status:<10} {item.action:<14} {item.key}  {item.display_label}: {item.message}")
    for issue in report.issues:
        print(f"skipped    {issue}")
    if report.is_empty:
        print("No differences found")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    overrides: dict[str, Action] = {}
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "merge":
            overrides = _parse_overrides(parsed_args.override)
            if parsed_args.mode == "items" and parsed_args.deselect:
                raise ValueError("--deselect requires --mode tree")  # noqa: TRY301
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "diff":
            _print_report(diff_backups(parsed_args.local, parsed_args.external))
        elif parsed_args.command == "merge":
            result = merge_backups(
                parsed_args.local,
                parsed_args.external,
                parsed_args.output,
                overrides=overrides,
                deselect=parsed_args.deselect,
                mode=parsed_args.mode,
            )
            if result.dangling:
                print(f"{len(result.dangling)} dangling reference(s) left in {parsed_args.output}")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
