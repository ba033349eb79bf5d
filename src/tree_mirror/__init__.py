"""One-way directory-tree mirroring for offsite backup replication."""

__version__ = "1.0.0"
