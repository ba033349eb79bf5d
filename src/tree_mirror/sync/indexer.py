"""Recursive enumeration of a root directory into a relative-path index.

The index is a plain ``dict`` keyed by ``/``-separated relative path, so
traversal order has no effect on the result.  Symlinks are recorded as
file entries and never followed.

Entries that cannot be read (permission denied, vanished mid-walk) are
skipped: each one is logged as a warning and recorded in
``PathIndexer.skipped`` rather than aborting the whole pass.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from tree_mirror.errors import TraversalError
from tree_mirror.file_handler import validate_index_root
from tree_mirror.sync.models import EntryKind, FsEntry

logger = logging.getLogger(__name__)


class PathIndexer:
    """Index a directory tree by relative path.

    After each call to :meth:`index`, ``skipped`` maps the relative path
    of every unreadable entry to the reason it was skipped.
    """

    def __init__(self) -> None:
        self.skipped: dict[str, str] = {}

    def index(self, root: str | os.PathLike[str]) -> dict[str, FsEntry]:
        """Enumerate every descendant of *root*.

        Args:
            root: Directory to index.

        Returns:
            Mapping of relative path to ``FsEntry``.  Empty directories are
            included; *root* itself is not.

        Raises:
            PathNotFoundError: If *root* is missing or not a directory.
        """
        root_path = validate_index_root(Path(root))
        self.skipped = {}
        entries: dict[str, FsEntry] = {}

        stack: list[tuple[Path, str]] = [(root_path, "")]
        while stack:
            directory, prefix = stack.pop()
            try:
                with os.scandir(directory) as it:
                    children = list(it)
            except OSError as exc:
                self._skip(prefix.rstrip("/") or ".", exc)
                continue

            for child in children:
                rel_path = f"{prefix}{child.name}"
                try:
                    is_dir = child.is_dir(follow_symlinks=False)
                    size = None if is_dir else child.stat(
                        follow_symlinks=False
                    ).st_size
                except OSError as exc:
                    self._skip(rel_path, exc)
                    continue

                entries[rel_path] = FsEntry(
                    relative_path=rel_path,
                    kind=EntryKind.DIRECTORY if is_dir else EntryKind.FILE,
                    absolute_path=Path(child.path),
                    size=size,
                )
                if is_dir:
                    stack.append((Path(child.path), rel_path + "/"))

        logger.debug(
            "Indexed %d entries under %s (%d skipped)",
            len(entries),
            root_path,
            len(self.skipped),
        )
        return entries

    def _skip(self, rel_path: str, exc: OSError) -> None:
        error = TraversalError(rel_path, exc.strerror or str(exc))
        logger.warning("Skipping unreadable entry %s", error)
        self.skipped[rel_path] = str(error)
