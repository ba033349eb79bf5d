"""Copy phase of a mirror run.

The ``ReconciliationOrchestrator`` selects which diff records to copy
based on the sync mode, then applies them shallow-to-deep so a directory's
mirrored destination always exists before anything beneath it is copied.
File copies also create missing parents on demand.

Copy failures are fail-fast by default: the first failure is captured
with diagnostics and the rest of the copy loop is abandoned.  A failure
mid-run is usually an exhausted destination volume, which would recur for
every remaining item.  ``abort_on_error=False`` keeps going instead; only
the first failure's detail is retained either way.
"""

from __future__ import annotations

import errno
import logging
from collections.abc import Iterable
from pathlib import Path

from tree_mirror.errors import CopyError, CopyGenericError, CopyIoError
from tree_mirror.file_handler import (
    copy_file,
    free_space,
    make_directory,
    source_size,
    translate_path,
)
from tree_mirror.sync.action_log import LogAction, SyncLog
from tree_mirror.sync.models import (
    CopyFailure,
    DiffRecord,
    Side,
    SyncMode,
    SyncResult,
)

logger = logging.getLogger(__name__)

_SYNC_SIDES: dict[SyncMode, frozenset[Side]] = {
    SyncMode.INCREMENTAL: frozenset({Side.ONLY_IN_REFERENCE}),
    SyncMode.RESYNC_ALL: frozenset({Side.ONLY_IN_REFERENCE, Side.BOTH}),
}


def select_sync_set(
    records: Iterable[DiffRecord], mode: SyncMode
) -> list[DiffRecord]:
    """Return the records to copy for *mode*, ordered shallow-to-deep.

    ``ONLY_IN_DIFFERENCE`` records are never selected; they belong to the
    orphan reaper.
    """
    sides = _SYNC_SIDES[mode]
    selected = [r for r in records if r.side in sides]
    selected.sort(key=lambda r: (r.depth, r.relative_path))
    return selected


class ReconciliationOrchestrator:
    """Apply the copy set of a diff to the difference root.

    Args:
        sync_log: Action log receiving a ``Copied`` line per file.
        abort_on_error: Stop at the first copy failure (default).
    """

    def __init__(
        self,
        sync_log: SyncLog | None = None,
        abort_on_error: bool = True,
    ) -> None:
        self.sync_log = sync_log or SyncLog(None)
        self.abort_on_error = abort_on_error

    def reconcile(
        self,
        records: Iterable[DiffRecord],
        mode: SyncMode,
        reference_root: Path,
        difference_root: Path,
    ) -> SyncResult:
        """Copy the selected records from *reference_root*.

        Args:
            records: Diff records for the two roots.
            mode: ``INCREMENTAL`` copies reference-only paths,
                ``RESYNC_ALL`` also recopies paths present on both sides.
            reference_root: Source tree.
            difference_root: Destination tree.

        Returns:
            A ``SyncResult`` with counts and at most one failure.
        """
        completed = 0
        failed = 0
        created = 0
        failure: CopyFailure | None = None
        attempted: list[str] = []
        halted = False

        sync_set = select_sync_set(records, mode)
        logger.info(
            "Copy phase: %d item(s) selected (mode=%s)",
            len(sync_set),
            mode.value,
        )

        for record in sync_set:
            attempted.append(record.relative_path)
            try:
                if record.is_dir:
                    if self._create_directory(record, difference_root):
                        created += 1
                else:
                    self._copy_file(
                        record, reference_root, difference_root
                    )
                    completed += 1
            except CopyError as exc:
                failed += 1
                logger.error("Copy failed: %s", exc)
                if failure is None:
                    failure = _to_failure(exc)
                if self.abort_on_error:
                    halted = True
                    logger.error(
                        "Halting copy phase after %d of %d item(s)",
                        len(attempted),
                        len(sync_set),
                    )
                    break

        return SyncResult(
            completed_count=completed,
            failed_count=failed,
            directories_created=created,
            failure=failure,
            attempted=attempted,
            halted=halted,
        )

    # ------------------------------------------------------------------
    # Per-record actions
    # ------------------------------------------------------------------

    def _create_directory(
        self, record: DiffRecord, difference_root: Path
    ) -> bool:
        destination = translate_path(record.relative_path, difference_root)
        try:
            created = make_directory(destination)
        except OSError as exc:
            raise CopyIoError(
                record.relative_path,
                exc.strerror or str(exc),
                source_size=source_size(record.reference_path),
                free_space=free_space(destination),
            ) from exc
        if created:
            logger.debug("Created directory %s", destination)
        return created

    def _copy_file(
        self,
        record: DiffRecord,
        reference_root: Path,
        difference_root: Path,
    ) -> None:
        source = record.reference_path or translate_path(
            record.relative_path, reference_root
        )
        destination = translate_path(record.relative_path, difference_root)
        try:
            if destination.is_dir() and not destination.is_symlink():
                raise IsADirectoryError(
                    errno.EISDIR,
                    "Destination is a directory",
                    str(destination),
                )
            copy_file(source, destination)
        except OSError as exc:
            raise CopyIoError(
                record.relative_path,
                exc.strerror or str(exc),
                source_size=source_size(source),
                free_space=free_space(destination),
            ) from exc
        except Exception as exc:
            raise CopyGenericError(record.relative_path, str(exc)) from exc
        self.sync_log.record(LogAction.COPIED, destination)


def _to_failure(exc: CopyError) -> CopyFailure:
    if isinstance(exc, CopyIoError):
        return CopyFailure(
            relative_path=exc.relative_path,
            error_class="io",
            message=exc.message,
            source_size=exc.source_size,
            free_space=exc.free_space,
        )
    return CopyFailure(
        relative_path=exc.relative_path,
        error_class="generic",
        message=exc.message,
    )
