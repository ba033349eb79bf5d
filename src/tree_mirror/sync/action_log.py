"""Per-run append-only action log.

Each run writes one text file: a header block describing the run followed
by one tab-separated line per action::

    [2026-10-18 02:00:01]:	Copied	/mnt/backup/photos/a.jpg
    [2026-10-18 02:00:05]:	Deleted	/mnt/backup/old.txt
    [2026-10-18 02:00:05]:	Could not delete	/mnt/backup/locked.db

The log file path comes from a template with ``{hostname}`` and
``{timestamp}`` placeholders.  Every line is also emitted through the
module logger so interactive runs show progress on the console.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

LINE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
FILENAME_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class LogAction(str, Enum):
    """Action verbs written to the log."""

    COPIED = "Copied"
    DELETED = "Deleted"
    COULD_NOT_DELETE = "Could not delete"


def render_log_path(
    template: str, hostname: str, timestamp: datetime
) -> Path:
    """Fill the ``{hostname}`` and ``{timestamp}`` placeholders.

    Args:
        template: Path template, ``~`` is expanded.
        hostname: Host name of the machine running the sync.
        timestamp: Run start time.

    Returns:
        The rendered log path.
    """
    rendered = template.format(
        hostname=hostname,
        timestamp=timestamp.strftime(FILENAME_TIMESTAMP_FORMAT),
    )
    return Path(rendered).expanduser()


class SyncLog:
    """Append action lines to a per-run log file.

    Args:
        path: Log file path.  ``None`` disables the file and only emits
            through the module logger.
        clock: Callable returning the current time (for tests).
    """

    def __init__(
        self,
        path: Path | None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.path = path
        self._clock = clock

    def write_header(
        self,
        version: str,
        hostname: str,
        item_count: int,
        reference_root: Path,
        difference_root: Path,
    ) -> None:
        """Write the header block describing this run."""
        now = self._clock().strftime(LINE_TIMESTAMP_FORMAT)
        lines = [
            f"tree-mirror {version}",
            f"Started:    {now}",
            f"Host:       {hostname}",
            f"Items:      {item_count}",
            f"Reference:  {reference_root}",
            f"Difference: {difference_root}",
            "-" * 72,
        ]
        self._append(lines)

    def record(self, action: LogAction, path: Path | str) -> None:
        """Append one action line."""
        now = self._clock().strftime(LINE_TIMESTAMP_FORMAT)
        line = f"[{now}]:\t{action.value}\t{path}"
        if action == LogAction.COULD_NOT_DELETE:
            logger.warning("%s %s", action.value, path)
        else:
            logger.info("%s %s", action.value, path)
        self._append([line])

    def _append(self, lines: list[str]) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as fh:
                for line in lines:
                    fh.write(line + "\n")
        except OSError as exc:
            # Stop writing rather than fail the run over its own log.
            logger.error("Cannot write action log %s: %s", self.path, exc)
            self.path = None
