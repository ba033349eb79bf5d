"""File handler module: root validation, copy, directory creation, diagnostics.

Provides the filesystem primitives used by the mirror engine.  All
functions are synchronous and raise ``OSError`` (or a tree_mirror error)
on failure; callers decide whether a failure is fatal.
"""

import logging
import os
import shutil
from pathlib import Path

from tree_mirror.errors import PathNotFoundError, RootNotFoundError

logger = logging.getLogger(__name__)

# Metadata file ignored when deciding whether a directory is empty.
OS_METADATA_FILENAME = ".DS_Store"

# =============================================================================
# Path Validation
# =============================================================================


def validate_root(path_str: str | os.PathLike[str]) -> Path:
    """Validate and resolve a mirror root.

    Args:
        path_str: Path to an existing directory.

    Returns:
        Resolved Path object.

    Raises:
        RootNotFoundError: If the path does not exist or is not a directory.
    """
    path = Path(path_str).expanduser()
    if not path.is_dir():
        raise RootNotFoundError(path)
    return path.resolve()


def validate_index_root(path: Path) -> Path:
    """Validate a path handed to the indexer.

    Raises:
        PathNotFoundError: If the path does not exist or is not a directory.
    """
    if not path.exists():
        raise PathNotFoundError(path)
    if not path.is_dir():
        raise PathNotFoundError(path, f"Path is not a directory: {path}")
    return path


def translate_path(
    relative_path: str, destination_root: Path
) -> Path:
    """Map a ``/``-separated relative path onto *destination_root*."""
    return destination_root.joinpath(*relative_path.split("/"))


# =============================================================================
# Copy / Create
# =============================================================================


def copy_file(source: Path, destination: Path) -> int:
    """Copy *source* to *destination*, overwriting any existing file.

    Parent directories are created as needed.  Metadata (timestamps,
    permission bits) is copied along with the content.  Symlinks are
    copied as links, never followed, and an existing destination link is
    replaced rather than written through.

    Args:
        source: File or symlink to copy.
        destination: Target path.

    Returns:
        Number of bytes copied (the link itself for a symlink).
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    if destination.is_symlink() or (
        source.is_symlink() and destination.exists()
    ):
        destination.unlink()
    shutil.copy2(source, destination, follow_symlinks=False)
    return destination.lstat().st_size


def make_directory(destination: Path) -> bool:
    """Create *destination* (and parents) if it is missing.

    Returns:
        ``True`` if the directory was created, ``False`` if it existed.
    """
    if destination.is_dir():
        return False
    destination.mkdir(parents=True, exist_ok=False)
    return True


# =============================================================================
# Delete
# =============================================================================


def is_effectively_empty(directory: Path) -> bool:
    """Return ``True`` if *directory* holds nothing but OS metadata."""
    with os.scandir(directory) as it:
        for entry in it:
            if entry.name != OS_METADATA_FILENAME:
                return False
    return True


def remove_empty_directory(directory: Path) -> bool:
    """Remove *directory* if it is effectively empty.

    A lone OS metadata file is removed along with the directory.

    Returns:
        ``True`` if removed, ``False`` if left in place because it still
        holds entries.
    """
    if not is_effectively_empty(directory):
        return False
    metadata = directory / OS_METADATA_FILENAME
    if metadata.exists():
        metadata.unlink()
    directory.rmdir()
    return True


def remove_file(path: Path) -> None:
    """Delete a file or symlink."""
    path.unlink()


# =============================================================================
# Diagnostics
# =============================================================================


def source_size(path: Path | None) -> int | None:
    """Return the size of *path* in bytes, or ``None`` if unavailable.

    Directories report the total size of the files beneath them.
    """
    if path is None:
        return None
    try:
        if path.is_dir():
            total = 0
            for dirpath, _dirnames, filenames in os.walk(path):
                for name in filenames:
                    try:
                        total += os.lstat(os.path.join(dirpath, name)).st_size
                    except OSError:
                        continue
            return total
        return path.lstat().st_size
    except OSError as exc:
        logger.debug("Could not size %s: %s", path, exc)
        return None


def free_space(path: Path) -> int | None:
    """Return free bytes on the volume holding *path*.

    Walks up to the nearest existing ancestor so the query works for
    destinations that have not been created yet.
    """
    ancestor = path
    while not ancestor.exists():
        if ancestor.parent == ancestor:
            return None
        ancestor = ancestor.parent
    try:
        return shutil.disk_usage(ancestor).free
    except OSError as exc:
        logger.debug("Could not query free space for %s: %s", ancestor, exc)
        return None
