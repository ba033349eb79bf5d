"""Pydantic models for the mirror engine.

Defines the core data contracts used across all sync modules:

- ``EntryKind``: File or directory.
- ``Side``: Which root(s) a relative path was seen in.
- ``SyncMode``: Incremental copy or full resync.
- ``FsEntry``: One indexed filesystem entry.
- ``DiffRecord``: Classification of one relative path.
- ``CopyFailure``: Diagnostic for the single retained copy failure.
- ``SyncResult``: Outcome of the copy phase.
- ``ReapOutcome`` / ``ReapResult``: Outcome of the orphan delete phase.
- ``MirrorReport``: Aggregate results for a full run.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel


class EntryKind(str, Enum):
    """Kind of filesystem entry."""

    FILE = "file"
    DIRECTORY = "directory"


class Side(str, Enum):
    """Side indicator for a relative path."""

    ONLY_IN_REFERENCE = "only_in_reference"
    ONLY_IN_DIFFERENCE = "only_in_difference"
    BOTH = "both"


class SyncMode(str, Enum):
    """Copy-set selection mode."""

    INCREMENTAL = "incremental"
    RESYNC_ALL = "resync_all"


class ReapStatus(str, Enum):
    """Per-item outcome of orphan reaping."""

    DELETED = "deleted"
    KEPT_NON_EMPTY = "kept_non_empty"
    ERROR = "error"


class FsEntry(BaseModel):
    """A single entry found while indexing a root.

    Attributes:
        relative_path: Path relative to the root, ``/``-separated.
        kind: File or directory.
        absolute_path: Full path on disk.
        size: Size in bytes (files only).
    """

    relative_path: str
    kind: EntryKind
    absolute_path: Path
    size: int | None = None

    model_config = {"frozen": True}

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY


class DiffRecord(BaseModel):
    """Classification of one relative path across both roots.

    Attributes:
        relative_path: Path relative to either root.
        kind: Entry kind.  For ``BOTH`` records this is the reference
            entry's kind.
        side: Which root(s) contain the path.
        reference_path: Full path under the reference root, if present.
        difference_path: Full path under the difference root, if present.
    """

    relative_path: str
    kind: EntryKind
    side: Side
    reference_path: Path | None = None
    difference_path: Path | None = None

    model_config = {"frozen": True}

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    @property
    def depth(self) -> int:
        return self.relative_path.count("/")


class CopyFailure(BaseModel):
    """The single copy failure retained for a run.

    Attributes:
        relative_path: Path that failed to copy.
        error_class: ``"io"`` for capacity/I/O failures, ``"generic"``
            otherwise.
        message: Error text.
        source_size: Size of the source entry in bytes, when known.
        free_space: Free bytes on the destination volume, when known.
    """

    relative_path: str
    error_class: str
    message: str
    source_size: int | None = None
    free_space: int | None = None

    model_config = {"frozen": True}

    @property
    def detail(self) -> str:
        """One-line human-readable description of the failure."""
        text = f"{self.relative_path}: {self.message}"
        if self.error_class == "io":
            text += (
                f" (source size: {_fmt_bytes(self.source_size)},"
                f" destination free space: {_fmt_bytes(self.free_space)})"
            )
        return text


class SyncResult(BaseModel):
    """Outcome of the copy phase.

    Attributes:
        completed_count: Files copied successfully.
        failed_count: Entries (files or directories) that failed.
        directories_created: Missing destination directories created.
        failure: First failure captured, if any.
        attempted: Relative paths attempted, in order.
        halted: True if the copy loop stopped early.
    """

    completed_count: int = 0
    failed_count: int = 0
    directories_created: int = 0
    failure: CopyFailure | None = None
    attempted: list[str] = []
    halted: bool = False

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return self.failed_count == 0


class ReapOutcome(BaseModel):
    """Result of handling one orphan."""

    relative_path: str
    kind: EntryKind
    status: ReapStatus
    error: str | None = None

    model_config = {"frozen": True}


class ReapResult(BaseModel):
    """Aggregate outcome of the orphan delete phase.

    Attributes:
        submitted: Number of orphan records handed to the reaper.
        outcomes: Per-item outcomes in processing order.
    """

    submitted: int = 0
    outcomes: list[ReapOutcome] = []

    model_config = {"frozen": True}

    @property
    def errors(self) -> list[ReapOutcome]:
        return [o for o in self.outcomes if o.status == ReapStatus.ERROR]

    @property
    def removed(self) -> int | str:
        """Submitted count, or ``"<n> with errors"`` if anything failed.

        Directories kept because they were not empty are counted as
        removed.
        """
        if self.errors:
            return f"{self.submitted} with errors"
        return self.submitted


class MirrorReport(BaseModel):
    """Aggregate report for a full mirror run.

    Attributes:
        reference_root: Source tree.
        difference_root: Destination tree.
        mode: Copy-set selection mode.
        dry_run: Whether this was a dry-run (no changes applied).
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
        diff_counts: Number of records per side indicator.
        planned_copies: Relative paths selected for copy (dry runs).
        planned_deletes: Relative paths selected for deletion (dry runs).
        sync: Copy-phase result.
        reap: Delete-phase result, ``None`` for dry runs and aborts.
        skipped: Entries skipped during indexing, path to reason.
        log_file: Per-run action log path, if one was written.
        error: Fatal error text when the run aborted.
        exit_status: Process exit status for the run.
    """

    reference_root: str
    difference_root: str
    mode: SyncMode = SyncMode.INCREMENTAL
    dry_run: bool = False
    started_at: str
    completed_at: str | None = None
    diff_counts: dict[Side, int] = {}
    planned_copies: list[str] = []
    planned_deletes: list[str] = []
    sync: SyncResult = SyncResult()
    reap: ReapResult | None = None
    skipped: dict[str, str] = {}
    log_file: str | None = None
    error: str | None = None
    exit_status: int = 0

    model_config = {"frozen": True}

    def summary(self) -> str:
        """Format a short human-readable summary of the run.

        Returns:
            Multi-line summary string with counts.
        """
        removed = self.reap.removed if self.reap is not None else 0
        lines = [
            f"Mirror {self.reference_root} -> {self.difference_root}"
            + (" (dry run)" if self.dry_run else ""),
            f"  Completed: {self.sync.completed_count}",
            f"  Failed:    {self.sync.failed_count}",
            f"  Orphans:   {removed}",
        ]
        if self.sync.failure is not None:
            lines.append(f"  Failure:   {self.sync.failure.detail}")
        return "\n".join(lines)


def _fmt_bytes(value: int | None) -> str:
    if value is None:
        return "unknown"
    size = float(value)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if size < 1024 or unit == "TiB":
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{value} B"
