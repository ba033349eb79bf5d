"""Exception hierarchy for tree_mirror.

Fatal errors (configuration, missing roots) stop a run before any diff is
computed.  Copy errors stop only the copy loop.  Delete and notification
errors are absorbed by their callers and never raised out of a run.
"""

from __future__ import annotations


class TreeMirrorError(Exception):
    """Base class for all tree_mirror errors."""


class ConfigurationError(TreeMirrorError):
    """Configuration is missing or invalid."""


class RootNotFoundError(TreeMirrorError):
    """A reference or difference root does not exist."""

    def __init__(self, path, message: str | None = None) -> None:
        self.path = path
        super().__init__(message or f"Directory not found: {path}")


class PathNotFoundError(RootNotFoundError):
    """Path handed to the indexer is missing or not a directory."""


class TraversalError(TreeMirrorError):
    """An entry could not be read while indexing a root."""

    def __init__(self, relative_path: str, message: str) -> None:
        self.relative_path = relative_path
        super().__init__(f"{relative_path}: {message}")


class CopyError(TreeMirrorError):
    """Base class for copy-phase failures."""

    def __init__(self, relative_path: str, message: str) -> None:
        self.relative_path = relative_path
        self.message = message
        super().__init__(f"{relative_path}: {message}")


class CopyIoError(CopyError):
    """Capacity or I/O class copy failure.

    Carries size and free-space diagnostics since the usual cause is an
    exhausted destination volume.
    """

    def __init__(
        self,
        relative_path: str,
        message: str,
        source_size: int | None = None,
        free_space: int | None = None,
    ) -> None:
        self.source_size = source_size
        self.free_space = free_space
        super().__init__(relative_path, message)


class CopyGenericError(CopyError):
    """Any copy failure outside the I/O class."""


class DeleteError(TreeMirrorError):
    """An orphan could not be removed from the difference root."""

    def __init__(self, relative_path: str, message: str) -> None:
        self.relative_path = relative_path
        super().__init__(f"Could not delete {relative_path}: {message}")


class NotificationError(TreeMirrorError):
    """A notification could not be delivered."""
