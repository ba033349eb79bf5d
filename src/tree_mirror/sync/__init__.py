"""One-way directory mirroring engine.

Public API for making a destination tree match a source tree by relative
path layout.

Architecture
------------
A run indexes both roots, diffs them by relative path only (no content or
timestamp comparison), copies what the mode selects and deletes what
exists only in the destination.  Copy failures are fail-fast; delete
failures are absorbed into the result.

Modules:

- ``indexer``    -- ``PathIndexer``: root directory to relative-path index.
- ``diff``       -- ``RelativeDiffEngine``: partition paths by side.
- ``reconciler`` -- ``ReconciliationOrchestrator``: the copy phase.
- ``reaper``     -- ``OrphanReaper``: the delete phase.
- ``action_log`` -- ``SyncLog``: per-run text log of actions.
- ``engine``     -- ``MirrorEngine``: orchestrates a full run.
- ``models``     -- ``FsEntry``, ``DiffRecord``, ``SyncResult``,
  ``ReapResult``, ``MirrorReport``: core data contracts.
- ``reporter``   -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from tree_mirror.config import load_config
    from tree_mirror.sync import (
        MirrorEngine,
        format_dry_run_preview,
        format_sync_report,
    )

    config = load_config({"reference_root": "/data",
                          "difference_root": "/mnt/offsite/data"})
    engine = MirrorEngine(config)

    preview = engine.run(dry_run=True)
    print(format_dry_run_preview(preview))

    report = engine.run(resync_all=False, notify=True)
    print(format_sync_report(report))
"""

from .action_log import LogAction, SyncLog
from .diff import RelativeDiffEngine, diff_roots, partition
from .engine import MirrorEngine, run_sync
from .indexer import PathIndexer
from .models import (
    CopyFailure,
    DiffRecord,
    EntryKind,
    FsEntry,
    MirrorReport,
    ReapOutcome,
    ReapResult,
    ReapStatus,
    Side,
    SyncMode,
    SyncResult,
)
from .reaper import OrphanReaper, reap_orphans
from .reconciler import ReconciliationOrchestrator, select_sync_set
from .reporter import (
    diff_to_json,
    format_diff,
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)

__all__ = [
    "CopyFailure",
    "DiffRecord",
    "EntryKind",
    "FsEntry",
    "LogAction",
    "MirrorEngine",
    "MirrorReport",
    "OrphanReaper",
    "PathIndexer",
    "ReapOutcome",
    "ReapResult",
    "ReapStatus",
    "ReconciliationOrchestrator",
    "RelativeDiffEngine",
    "Side",
    "SyncLog",
    "SyncMode",
    "SyncResult",
    "diff_roots",
    "diff_to_json",
    "format_diff",
    "format_dry_run_preview",
    "format_sync_report",
    "partition",
    "reap_orphans",
    "report_to_json",
    "run_sync",
    "select_sync_set",
]
