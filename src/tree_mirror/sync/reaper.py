"""Delete phase of a mirror run.

Removes entries that exist only in the difference root.  Files go first,
then directories deepest-first, so a directory is only considered once
the orphans beneath it are gone.  A directory is removed only if it is
empty at that point (an OS metadata file does not count); a directory
that still holds retained entries is left in place, which is not an
error.

Failures are per-item: each one is logged as ``Could not delete`` and the
loop moves on.  Housekeeping failures must never block the rest of the
cleanup.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tree_mirror.errors import DeleteError
from tree_mirror.file_handler import remove_empty_directory, remove_file
from tree_mirror.sync.action_log import LogAction, SyncLog
from tree_mirror.sync.models import (
    DiffRecord,
    ReapOutcome,
    ReapResult,
    ReapStatus,
    Side,
)

logger = logging.getLogger(__name__)


def deletion_order(records: Iterable[DiffRecord]) -> list[DiffRecord]:
    """Order orphans so files precede directories, children before parents."""
    return sorted(
        records,
        key=lambda r: (r.is_dir, -r.depth if r.is_dir else 0, r.relative_path),
    )


class OrphanReaper:
    """Remove difference-only entries.

    Args:
        sync_log: Action log receiving ``Deleted`` / ``Could not delete``
            lines.
    """

    def __init__(self, sync_log: SyncLog | None = None) -> None:
        self.sync_log = sync_log or SyncLog(None)

    def reap(self, records: Iterable[DiffRecord]) -> ReapResult:
        """Delete orphaned files and now-empty orphaned directories.

        Args:
            records: ``ONLY_IN_DIFFERENCE`` diff records.  Records with any
                other side indicator are ignored.

        Returns:
            A ``ReapResult`` with one outcome per processed record.
        """
        orphans: list[DiffRecord] = []
        for record in records:
            if record.side != Side.ONLY_IN_DIFFERENCE:
                logger.warning(
                    "Ignoring non-orphan record %s (%s)",
                    record.relative_path,
                    record.side.value,
                )
                continue
            orphans.append(record)

        logger.info("Delete phase: %d orphan(s)", len(orphans))
        outcomes = [self._reap_one(r) for r in deletion_order(orphans)]
        return ReapResult(submitted=len(orphans), outcomes=outcomes)

    def _reap_one(self, record: DiffRecord) -> ReapOutcome:
        path = record.difference_path
        try:
            if path is None:
                raise DeleteError(
                    record.relative_path, "no difference-side path"
                )
            try:
                if record.is_dir:
                    if not remove_empty_directory(path):
                        logger.debug("Keeping non-empty directory %s", path)
                        return ReapOutcome(
                            relative_path=record.relative_path,
                            kind=record.kind,
                            status=ReapStatus.KEPT_NON_EMPTY,
                        )
                else:
                    remove_file(path)
            except OSError as exc:
                raise DeleteError(
                    record.relative_path, exc.strerror or str(exc)
                ) from exc
        except DeleteError as exc:
            self.sync_log.record(
                LogAction.COULD_NOT_DELETE, path or record.relative_path
            )
            logger.debug("%s", exc)
            return ReapOutcome(
                relative_path=record.relative_path,
                kind=record.kind,
                status=ReapStatus.ERROR,
                error=str(exc),
            )

        self.sync_log.record(LogAction.DELETED, path)
        return ReapOutcome(
            relative_path=record.relative_path,
            kind=record.kind,
            status=ReapStatus.DELETED,
        )


def reap_orphans(
    records: Iterable[DiffRecord], sync_log: SyncLog | None = None
) -> ReapResult:
    """Convenience wrapper around ``OrphanReaper.reap``."""
    return OrphanReaper(sync_log).reap(records)
