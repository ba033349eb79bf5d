"""Mirror report formatting functions.

Provides human-readable and machine-readable output for mirror runs:

- ``format_sync_report`` -- full post-run summary.
- ``format_dry_run_preview`` -- planned copies and deletions.
- ``format_diff`` -- diff records grouped by side indicator.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from .diff import partition
from .models import Side

if TYPE_CHECKING:
    from .models import DiffRecord, MirrorReport

_SIDE_LABELS = {
    Side.ONLY_IN_REFERENCE: "Only in reference",
    Side.ONLY_IN_DIFFERENCE: "Only in difference",
    Side.BOTH: "In both",
}

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_sync_report(report: MirrorReport) -> str:
    """Format a complete mirror report as human-readable text.

    Sections are only included when they have something to say.

    Args:
        report: The completed mirror report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    lines.append(
        f"Mirror report: {report.reference_root} -> {report.difference_root}"
    )
    lines.append(f"Mode: {report.mode.value}")
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    if report.error:
        lines.append(f"ABORTED: {report.error}")
        lines.append(f"Exit status: {report.exit_status}")
        return "\n".join(lines)

    sync = report.sync
    removed = report.reap.removed if report.reap is not None else 0
    lines.append(
        f"Copied {sync.completed_count} files, "
        f"created {sync.directories_created} directories, "
        f"{sync.failed_count} failed, {removed} orphans removed"
    )
    lines.append("")

    if sync.failure is not None:
        lines.append("Copy failure:")
        lines.append(f"  {sync.failure.detail}")
        if sync.halted:
            lines.append(
                f"  Copy phase halted after {len(sync.attempted)} item(s)"
            )
        lines.append("")

    if report.reap is not None and report.reap.errors:
        lines.append("Could not delete:")
        for outcome in report.reap.errors:
            lines.append(f"  {outcome.relative_path}: {outcome.error}")
        lines.append("")

    if report.skipped:
        lines.append("Skipped while indexing:")
        for path, reason in sorted(report.skipped.items()):
            lines.append(f"  {path}: {reason}")
        lines.append("")

    if report.log_file:
        lines.append(f"Log: {report.log_file}")
    lines.append(f"Exit status: {report.exit_status}")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: MirrorReport) -> str:
    """Format the planned actions of a dry-run report.

    Args:
        report: A dry-run report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append("DRY RUN -- No changes will be made")
    lines.append(f"{report.reference_root} -> {report.difference_root}")
    lines.append(f"Mode: {report.mode.value}")
    lines.append("")

    if report.error:
        lines.append(f"ABORTED: {report.error}")
        return "\n".join(lines)

    if report.planned_copies:
        lines.append(f"[COPY] {len(report.planned_copies)}")
        for path in report.planned_copies:
            lines.append(f"  {path}")
        lines.append("")

    if report.planned_deletes:
        lines.append(f"[DELETE] {len(report.planned_deletes)}")
        for path in report.planned_deletes:
            lines.append(f"  {path}")
        lines.append("")

    if not report.planned_copies and not report.planned_deletes:
        lines.append("No changes needed.")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Diff listing
# ------------------------------------------------------------------


def format_diff(records: Iterable[DiffRecord]) -> str:
    """List diff records grouped by side indicator.

    Directories are shown with a trailing ``/``.
    """
    lines: list[str] = []
    for side, group in partition(records).items():
        if not group:
            continue
        lines.append(f"{_SIDE_LABELS[side]} ({len(group)}):")
        for record in sorted(group, key=lambda r: r.relative_path):
            suffix = "/" if record.is_dir else ""
            lines.append(f"  {record.relative_path}{suffix}")
        lines.append("")
    if not lines:
        return "No entries."
    return "\n".join(lines).rstrip()


def diff_to_json(records: Iterable[DiffRecord]) -> list[dict]:
    """Convert diff records to plain dicts for JSON output."""
    return [
        {
            "relative_path": r.relative_path,
            "kind": r.kind.value,
            "side": r.side.value,
        }
        for r in records
    ]


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: MirrorReport) -> dict:
    """Convert a mirror report to a structured dict for JSON serialisation.

    Args:
        report: The mirror report.

    Returns:
        Dict with run info, counts and failure details.
    """
    sync = report.sync
    data: dict = {
        "reference_root": report.reference_root,
        "difference_root": report.difference_root,
        "mode": report.mode.value,
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "exit_status": report.exit_status,
        "diff": {side.value: n for side, n in report.diff_counts.items()},
        "counts": {
            "completed": sync.completed_count,
            "failed": sync.failed_count,
            "directories_created": sync.directories_created,
            "orphans_removed": (
                report.reap.removed if report.reap is not None else 0
            ),
        },
        "halted": sync.halted,
        "failure": sync.failure.detail if sync.failure else None,
        "skipped": dict(report.skipped),
        "log_file": report.log_file,
    }
    if report.error:
        data["error"] = report.error
    if report.dry_run:
        data["planned_copies"] = list(report.planned_copies)
        data["planned_deletes"] = list(report.planned_deletes)
    return data
