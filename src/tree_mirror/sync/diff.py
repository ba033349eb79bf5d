"""Relative-path diff between a reference index and a difference index.

Matching is existence-by-relative-path only: no content, size or
modification-time comparison is made.  Kind is also ignored, so a file in
the reference and a directory in the difference at the same relative path
count as matched.  Such pairs are logged at DEBUG level but otherwise left
alone, since callers rely on the current behaviour.

The diff runs in two linear passes over the indices:

1. Walk the difference index.  Each path found in a working copy of the
   reference index is consumed from it (and reported as ``BOTH`` when
   ``include_equal`` is set); each path not found is ``ONLY_IN_DIFFERENCE``.
2. Whatever is left in the working copy is ``ONLY_IN_REFERENCE``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping

from tree_mirror.sync.indexer import PathIndexer
from tree_mirror.sync.models import DiffRecord, FsEntry, Side

logger = logging.getLogger(__name__)


class RelativeDiffEngine:
    """Partition relative paths into reference-only, difference-only, both."""

    def diff(
        self,
        reference_index: Mapping[str, FsEntry],
        difference_index: Mapping[str, FsEntry],
        include_equal: bool = False,
    ) -> list[DiffRecord]:
        """Compare two indices by relative path.

        Args:
            reference_index: Index of the authoritative (source) tree.
            difference_index: Index of the tree being made to match.
            include_equal: Also emit ``BOTH`` records for matched paths.

        Returns:
            Diff records.  Difference-side records come first in
            difference-index order, followed by the unmatched reference
            entries in reference-index order.
        """
        unmatched = dict(reference_index)
        records: list[DiffRecord] = []

        for rel_path, diff_entry in difference_index.items():
            ref_entry = unmatched.pop(rel_path, None)
            if ref_entry is None:
                records.append(
                    DiffRecord(
                        relative_path=rel_path,
                        kind=diff_entry.kind,
                        side=Side.ONLY_IN_DIFFERENCE,
                        difference_path=diff_entry.absolute_path,
                    )
                )
                continue

            if ref_entry.kind != diff_entry.kind:
                logger.debug(
                    "Kind mismatch treated as match at %s (%s vs %s)",
                    rel_path,
                    ref_entry.kind.value,
                    diff_entry.kind.value,
                )
            if include_equal:
                records.append(
                    DiffRecord(
                        relative_path=rel_path,
                        kind=ref_entry.kind,
                        side=Side.BOTH,
                        reference_path=ref_entry.absolute_path,
                        difference_path=diff_entry.absolute_path,
                    )
                )

        for rel_path, ref_entry in unmatched.items():
            records.append(
                DiffRecord(
                    relative_path=rel_path,
                    kind=ref_entry.kind,
                    side=Side.ONLY_IN_REFERENCE,
                    reference_path=ref_entry.absolute_path,
                )
            )

        return records


def partition(
    records: Iterable[DiffRecord],
) -> dict[Side, list[DiffRecord]]:
    """Group records by side indicator.

    Every side is present in the result, possibly with an empty list.
    """
    groups: dict[Side, list[DiffRecord]] = {side: [] for side in Side}
    for record in records:
        groups[record.side].append(record)
    return groups


def diff_roots(
    reference_root: str | os.PathLike[str],
    difference_root: str | os.PathLike[str],
    include_equal: bool = False,
) -> list[DiffRecord]:
    """Index both roots and diff them.  Read-only.

    Raises:
        PathNotFoundError: If either root is missing.
    """
    indexer = PathIndexer()
    reference_index = indexer.index(reference_root)
    difference_index = indexer.index(difference_root)
    return RelativeDiffEngine().diff(
        reference_index, difference_index, include_equal=include_equal
    )
