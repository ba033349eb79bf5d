"""Shared pytest fixtures for tree-mirror tests."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from tree_mirror.config_schema import MirrorConfig, UnifiedConfig

FIXED_NOW = datetime(2026, 10, 18, 2, 0, 0)


def make_tree(root: Path, structure: dict) -> None:
    """Recursively create a directory structure.

    A dict value is a directory, a str is file content, ``None`` an empty
    file.
    """
    root.mkdir(parents=True, exist_ok=True)
    for name, content in structure.items():
        path = root / name
        if isinstance(content, dict):
            make_tree(path, content)
        else:
            path.write_text(content or "", encoding="utf-8")


def tree_paths(root: Path) -> set[str]:
    """Return every relative path under *root*, ``/``-separated."""
    return {p.relative_to(root).as_posix() for p in root.rglob("*")}


class FakeNotifier:
    """Records notifications instead of sending them."""

    def __init__(self, result: bool = True) -> None:
        self.sent: list[tuple[str, dict]] = []
        self.result = result

    def send(self, template_name: str, **context) -> bool:
        self.sent.append((template_name, context))
        return self.result

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.sent]


class FakeEjector:
    """Records eject requests."""

    def __init__(self, result: bool = True) -> None:
        self.calls: list[Path] = []
        self.result = result

    def eject(self, path) -> bool:
        self.calls.append(Path(path))
        return self.result


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path_factory):
    """Keep host env vars and config files out of every test."""
    for key in (
        "TREE_MIRROR_CONFIG",
        "TREE_MIRROR_REFERENCE_ROOT",
        "TREE_MIRROR_DIFFERENCE_ROOT",
        "TREE_MIRROR_LOG_PATH",
        "TREE_MIRROR_ABORT_ON_ERROR",
        "LOG_LEVEL",
        "LOG_FILE",
    ):
        monkeypatch.delenv(key, raising=False)
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def roots(tmp_path):
    """Return ``(reference_root, difference_root)`` under tmp_path."""
    reference = tmp_path / "reference"
    difference = tmp_path / "difference"
    reference.mkdir()
    difference.mkdir()
    return reference, difference


@pytest.fixture
def mirror_config(tmp_path, roots):
    """Factory for a ``UnifiedConfig`` pointing at the test roots."""

    def _make(**overrides) -> UnifiedConfig:
        reference, difference = roots
        values = {
            "reference_root": str(reference),
            "difference_root": str(difference),
            "log_path_template": str(
                tmp_path / "logs" / "{hostname}-{timestamp}.log"
            ),
        }
        values.update(overrides)
        return UnifiedConfig(mirror=MirrorConfig(**values))

    return _make
