"""Command-line front end for tree-mirror."""

import argparse
import json
import sys
from pathlib import Path

from . import __version__
from .config import load_config
from .config_loader import ensure_config
from .errors import ConfigurationError, RootNotFoundError
from .logger import setup_logging
from .sync.diff import diff_roots
from .sync.engine import EXIT_ROOT_NOT_FOUND, MirrorEngine
from .sync.reporter import (
    diff_to_json,
    format_diff,
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)


def _stderr_print(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tree-mirror",
        description="Make a destination directory tree mirror a source tree.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Copy new entries and remove orphans, roots from config.yml
  tree-mirror sync

  # Recopy everything, e-mail the result and eject the backup disk
  tree-mirror sync --resync-all --notify --eject

  # Preview without changing anything
  tree-mirror sync --dry-run --reference /data --difference /mnt/offsite/data

  # Show which paths differ between two trees
  tree-mirror diff /data /mnt/offsite/data
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"tree-mirror version {__version__}",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sync = sub.add_parser("sync", help="Run one mirror pass")
    sync.add_argument(
        "--resync-all",
        action="store_true",
        help="Recopy entries that already exist in the destination",
    )
    sync.add_argument(
        "--notify",
        action="store_true",
        help="Send start and completion e-mail notifications",
    )
    sync.add_argument(
        "--eject",
        action="store_true",
        help="Eject the destination volume when done",
    )
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Show planned copies and deletions without applying them",
    )
    sync.add_argument(
        "--reference",
        help="Source tree (overrides TREE_MIRROR_REFERENCE_ROOT and config files)",
    )
    sync.add_argument(
        "--difference",
        help="Destination tree (overrides TREE_MIRROR_DIFFERENCE_ROOT and config files)",
    )
    sync.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Keep copying after a failure instead of stopping",
    )
    sync.add_argument("--config", help="Path to a config.yml")
    sync.add_argument("--log-file", help="Also write diagnostics to this file")
    sync.add_argument(
        "--scheduled",
        action="store_true",
        help="Log to file only (for cron/systemd runs)",
    )
    sync.add_argument("--debug", action="store_true", help="Debug logging")
    sync.add_argument(
        "--json", action="store_true", help="Print the report as JSON"
    )

    diff = sub.add_parser("diff", help="Compare two trees by relative path")
    diff.add_argument("reference", help="Source tree")
    diff.add_argument("difference", help="Destination tree")
    diff.add_argument(
        "--include-equal",
        action="store_true",
        help="Also list paths present in both trees",
    )
    diff.add_argument(
        "--json", action="store_true", help="Print records as JSON"
    )
    diff.add_argument("--debug", action="store_true", help="Debug logging")

    init = sub.add_parser("init-config", help="Write a starter config.yml")
    init.add_argument(
        "path",
        nargs="?",
        help="Target file (default: ./.tree_mirror/config.yml)",
    )

    return parser


def _cmd_sync(args: argparse.Namespace) -> int:
    overrides = {
        "reference_root": args.reference,
        "difference_root": args.difference,
    }
    if args.continue_on_error:
        overrides["abort_on_error"] = False

    try:
        config = load_config(
            overrides,
            config_file=Path(args.config) if args.config else None,
        )
    except ConfigurationError as e:
        _stderr_print(f"ERROR: Configuration error: {e}")
        return EXIT_ROOT_NOT_FOUND

    setup_logging(
        mode="scheduled" if args.scheduled else "cli",
        debug=args.debug,
        log_file=args.log_file or config.logging.file,
        level=config.logging.level,
    )

    report = MirrorEngine(config).run(
        resync_all=args.resync_all,
        notify=args.notify,
        eject_disk=args.eject,
        dry_run=args.dry_run,
    )

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    elif report.dry_run:
        print(format_dry_run_preview(report))
    else:
        print(format_sync_report(report))
    return report.exit_status


def _cmd_diff(args: argparse.Namespace) -> int:
    setup_logging(mode="cli", debug=args.debug)
    try:
        records = diff_roots(
            args.reference, args.difference, include_equal=args.include_equal
        )
    except RootNotFoundError as e:
        _stderr_print(f"ERROR: {e}")
        return EXIT_ROOT_NOT_FOUND

    if args.json:
        print(json.dumps(diff_to_json(records), indent=2))
    else:
        print(format_diff(records))
    return 0


def _cmd_init_config(args: argparse.Namespace) -> int:
    path = ensure_config(Path(args.path) if args.path else None)
    print(path)
    return 0


_COMMANDS = {
    "sync": _cmd_sync,
    "diff": _cmd_diff,
    "init-config": _cmd_init_config,
}


def main(argv: list[str] | None = None) -> int:
    """Parse *argv* and run the selected command, returning its status."""
    args = build_parser().parse_args(argv)
    return _COMMANDS[args.command](args)


def run() -> None:
    """Console-script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        _stderr_print("\nInterrupted.")
        sys.exit(130)


if __name__ == "__main__":
    run()
