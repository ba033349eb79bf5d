"""Destination volume identity and ejection.

The destination volume is identified by the mount point that holds the
difference root.  Ejecting runs an external utility against that mount
point; any failure is logged and reported as ``False`` so the caller can
decide on an exit status.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

_DEFAULT_COMMANDS: dict[str, list[str]] = {
    "darwin": ["diskutil", "eject", "{mount_point}"],
    "linux": ["eject", "{mount_point}"],
}


def find_mount_point(path: str | os.PathLike[str]) -> Path:
    """Return the mount point of the filesystem containing *path*."""
    current = Path(path).expanduser().resolve()
    while not os.path.ismount(current):
        if current.parent == current:
            break
        current = current.parent
    return current


def default_eject_command(platform: str | None = None) -> list[str] | None:
    """Return the eject argv template for *platform* (default: this one)."""
    platform = platform or sys.platform
    for prefix, command in _DEFAULT_COMMANDS.items():
        if platform.startswith(prefix):
            return list(command)
    return None


class VolumeEjector:
    """Eject the volume holding a path.

    Args:
        command: argv template with a ``{mount_point}`` placeholder.
            ``None`` uses the platform default.
        timeout: Seconds to wait for the utility.
    """

    def __init__(
        self, command: list[str] | None = None, timeout: float = 60.0
    ) -> None:
        self.command = command or default_eject_command()
        self.timeout = timeout

    def eject(self, path: str | os.PathLike[str]) -> bool:
        """Eject the volume holding *path*.

        Returns:
            ``True`` if the utility exited with status 0.
        """
        if not self.command:
            logger.error(
                "No eject command configured for platform %s", sys.platform
            )
            return False

        mount_point = find_mount_point(path)
        if mount_point == Path(mount_point.anchor):
            logger.error(
                "Refusing to eject %s: destination is on the root volume",
                mount_point,
            )
            return False

        try:
            argv = [
                arg.format(mount_point=mount_point) for arg in self.command
            ]
        except (KeyError, IndexError, AttributeError, ValueError) as exc:
            logger.error(
                "Eject command %s has a bad placeholder: %r", self.command, exc
            )
            return False

        logger.info("Ejecting %s: %s", mount_point, " ".join(argv))
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, OSError) as exc:
            logger.error("Eject of %s failed: %s", mount_point, exc)
            return False

        if result.returncode != 0:
            logger.error(
                "Eject of %s failed (exit %d): %s",
                mount_point,
                result.returncode,
                (result.stderr or result.stdout).strip(),
            )
            return False
        return True
