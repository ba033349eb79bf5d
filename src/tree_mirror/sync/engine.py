"""Core engine that runs one complete mirror pass.

The ``MirrorEngine`` ties together indexer, diff engine, orchestrator,
reaper, action log, notifier and ejector.  It:

1. Validates both roots.  A missing root aborts the run before anything
   is indexed, after a ``directory_not_found`` notification.
2. Indexes both roots and diffs them by relative path.
3. Opens the per-run action log and writes its header.
4. Sends the ``sync_started`` notification.
5. Copies the sync set selected by the mode (fail-fast by default).
6. Reaps difference-only entries, best effort, even after a halted copy.
7. Sends one completion notification: ``io_exception`` if the copy phase
   stopped on an I/O-class failure, ``sync_completed`` otherwise.
8. Optionally ejects the destination volume.
9. Builds and returns a ``MirrorReport``.

Execution is single-threaded and assumes exclusive access to the
difference root for the duration of the run.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from tree_mirror import __version__
from tree_mirror.config import validate_config
from tree_mirror.config_schema import UnifiedConfig
from tree_mirror.errors import RootNotFoundError
from tree_mirror.file_handler import validate_root
from tree_mirror.notifications import (
    DIRECTORY_NOT_FOUND,
    IO_EXCEPTION,
    SYNC_COMPLETED,
    SYNC_STARTED,
    NullNotifier,
    create_notifier,
)
from tree_mirror.sync.action_log import SyncLog, render_log_path
from tree_mirror.sync.diff import RelativeDiffEngine, partition
from tree_mirror.sync.indexer import PathIndexer
from tree_mirror.sync.models import (
    FsEntry,
    MirrorReport,
    Side,
    SyncMode,
    SyncResult,
)
from tree_mirror.sync.reaper import OrphanReaper, deletion_order
from tree_mirror.sync.reconciler import (
    ReconciliationOrchestrator,
    select_sync_set,
)
from tree_mirror.volume import VolumeEjector

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_COPY_FAILED = 1
EXIT_ROOT_NOT_FOUND = 2
EXIT_EJECT_FAILED = 3


class MirrorEngine:
    """Run one mirror pass for a configuration.

    Args:
        config: Resolved configuration, shared by every collaborator.
        notifier: Object with ``send(template_name, **context)``.  Defaults
            to an SMTP notifier built from ``config.notification``.
        ejector: Object with ``eject(path) -> bool``.  Defaults to a
            ``VolumeEjector`` built from ``config.eject``.
        hostname: Host name for logs and notifications.
        clock: Callable returning the current local time (for tests).
    """

    def __init__(
        self,
        config: UnifiedConfig,
        notifier=None,
        ejector=None,
        hostname: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        validate_config(config)
        self.config = config
        self.notifier = notifier
        self.ejector = ejector
        self.hostname = hostname or socket.gethostname()
        self.clock = clock

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(
        self,
        resync_all: bool = False,
        notify: bool = False,
        eject_disk: bool = False,
        dry_run: bool = False,
    ) -> MirrorReport:
        """Execute a full mirror pass.

        Args:
            resync_all: Recopy entries present on both sides as well.
            notify: Send start/completion notifications.
            eject_disk: Eject the destination volume afterwards.
            dry_run: Compute the plan but change nothing.

        Returns:
            A ``MirrorReport`` summarising what was (or would be) done.
        """
        started = self.clock()
        mode = SyncMode.RESYNC_ALL if resync_all else SyncMode.INCREMENTAL
        mirror = self.config.mirror
        notifier = self._notifier(notify and not dry_run)
        context = {
            "hostname": self.hostname,
            "reference_root": mirror.reference_root,
            "difference_root": mirror.difference_root,
            "timestamp": started.strftime("%Y-%m-%d %H:%M:%S"),
        }
        base = {
            "reference_root": str(mirror.reference_root),
            "difference_root": str(mirror.difference_root),
            "mode": mode,
            "dry_run": dry_run,
            "started_at": started.astimezone().isoformat(),
        }

        # Step 1-2: Validate roots and index.  Nothing is touched if
        # either root is missing.
        indexer = PathIndexer()
        skipped: dict[str, str] = {}
        try:
            reference_root = validate_root(mirror.reference_root)
            difference_root = validate_root(mirror.difference_root)
            reference_index = self._index(indexer, reference_root, skipped)
            difference_index = self._index(indexer, difference_root, skipped)
        except RootNotFoundError as exc:
            logger.error("Aborting mirror: %s", exc)
            notifier.send(
                DIRECTORY_NOT_FOUND, missing_root=exc.path, **context
            )
            return MirrorReport(
                **base,
                completed_at=self.clock().astimezone().isoformat(),
                error=str(exc),
                exit_status=EXIT_ROOT_NOT_FOUND,
            )

        records = RelativeDiffEngine().diff(
            reference_index, difference_index, include_equal=resync_all
        )
        groups = partition(records)
        orphans = groups[Side.ONLY_IN_DIFFERENCE]
        diff_counts = {side: len(group) for side, group in groups.items()}
        logger.info(
            "Diff: %d only in reference, %d only in difference, %d both",
            diff_counts[Side.ONLY_IN_REFERENCE],
            diff_counts[Side.ONLY_IN_DIFFERENCE],
            diff_counts[Side.BOTH],
        )

        if dry_run:
            return MirrorReport(
                **base,
                completed_at=self.clock().astimezone().isoformat(),
                diff_counts=diff_counts,
                planned_copies=[
                    r.relative_path for r in select_sync_set(records, mode)
                ],
                planned_deletes=[
                    r.relative_path for r in deletion_order(orphans)
                ],
                skipped=skipped,
            )

        # Step 3: Action log
        log_path = render_log_path(
            mirror.log_path_template, self.hostname, started
        )
        sync_log = SyncLog(log_path, clock=self.clock)
        sync_log.write_header(
            __version__,
            self.hostname,
            len(reference_index),
            reference_root,
            difference_root,
        )

        # Step 4: Start notification
        notifier.send(SYNC_STARTED, item_count=len(reference_index), **context)

        # Step 5: Copy
        result = ReconciliationOrchestrator(
            sync_log, abort_on_error=mirror.abort_on_error
        ).reconcile(records, mode, reference_root, difference_root)

        # Step 6: Reap
        reap = OrphanReaper(sync_log).reap(orphans)

        exit_status = EXIT_OK if result.success else EXIT_COPY_FAILED

        # Step 7: Completion notification
        self._send_completion(
            notifier, context, result, reap.removed, sync_log.path
        )

        # Step 8: Eject
        if eject_disk:
            if not self._ejector().eject(difference_root):
                logger.error("Could not eject %s", difference_root)
                if exit_status == EXIT_OK:
                    exit_status = EXIT_EJECT_FAILED

        report = MirrorReport(
            **base,
            completed_at=self.clock().astimezone().isoformat(),
            diff_counts=diff_counts,
            sync=result,
            reap=reap,
            skipped=skipped,
            log_file=str(sync_log.path) if sync_log.path else None,
            exit_status=exit_status,
        )
        logger.info("%s", report.summary())
        return report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _index(
        indexer: PathIndexer, root: Path, skipped: dict[str, str]
    ) -> dict[str, FsEntry]:
        index = indexer.index(root)
        for rel_path, reason in indexer.skipped.items():
            skipped[str(root / rel_path)] = reason
        return index

    def _notifier(self, enabled: bool):
        if not enabled:
            return NullNotifier()
        if self.notifier is not None:
            return self.notifier
        return create_notifier(self.config.notification)

    def _ejector(self):
        if self.ejector is not None:
            return self.ejector
        return VolumeEjector(
            self.config.eject.command, timeout=self.config.eject.timeout
        )

    def _send_completion(
        self,
        notifier,
        context: dict,
        result: SyncResult,
        removed: int | str,
        log_file: Path | None,
    ) -> None:
        failure = result.failure
        template = SYNC_COMPLETED
        if failure is not None and failure.error_class == "io":
            template = IO_EXCEPTION
        notifier.send(
            template,
            completed=result.completed_count,
            failed=result.failed_count,
            orphans=removed,
            failure_detail=failure.detail if failure is not None else "",
            log_file=log_file or "(none)",
            **context,
        )


def run_sync(
    config: UnifiedConfig,
    resync_all: bool = False,
    notify: bool = False,
    eject_disk: bool = False,
) -> int:
    """Run one mirror pass and return its exit status."""
    report = MirrorEngine(config).run(
        resync_all=resync_all, notify=notify, eject_disk=eject_disk
    )
    return report.exit_status
