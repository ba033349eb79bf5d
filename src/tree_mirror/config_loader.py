"""
Hierarchical configuration loader for tree_mirror.

Finds YAML config files by convention, merges them with "project wins"
semantics and expands ``${VAR}`` references from the environment.

Usage:
    from tree_mirror.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TREE_MIRROR_CONFIG"

# ---------------------------------------------------------------------------
# 1. Env var interpolation
# ---------------------------------------------------------------------------

# ${NAME} or ${NAME:-fallback}
_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")


def interpolate_env_vars(value: Any) -> Any:
    """Expand ``${VAR}`` and ``${VAR:-default}`` in every string of *value*.

    *value* may be a scalar or a nested dict/list as produced by YAML.  An
    unset or empty VAR yields *default*, or ``""`` without one.  A ``${``
    with no closing brace is left as is.
    """
    if isinstance(value, dict):
        return {key: interpolate_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    if not isinstance(value, str):
        return value
    return _ENV_REF.sub(
        lambda m: os.environ.get(m["name"]) or m["fallback"] or "", value
    )


# ---------------------------------------------------------------------------
# 2. Reading a single file
# ---------------------------------------------------------------------------


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse one YAML config file.

    Returns an empty dict for an empty file or one whose root is not a
    mapping.  YAML syntax errors propagate as ``yaml.YAMLError``.
    """
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring %s: top level is a %s, not a mapping",
            path,
            type(data).__name__,
        )
        return {}
    return data


# ---------------------------------------------------------------------------
# 3. Convention-based file discovery
# ---------------------------------------------------------------------------


def discover_config_files(explicit: Path | None = None) -> list[Path]:
    """Return existing config file paths in precedence order (highest first).

    Search order:
        1. *explicit* (the ``--config`` CLI option), if given
        2. ``TREE_MIRROR_CONFIG`` env var
        3. ``.tree_mirror/config.yml`` in CWD (project-level)
        4. ``~/.config/tree_mirror/config.yml`` (XDG global)

    Only paths that exist on disk are returned.
    """
    candidates: list[Path] = []

    if explicit is not None:
        candidates.append(Path(explicit).expanduser().resolve())

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    candidates.append(Path.cwd() / ".tree_mirror" / "config.yml")
    candidates.append(
        Path.home() / ".config" / "tree_mirror" / "config.yml"
    )

    return [p for p in candidates if p.exists()]


# ---------------------------------------------------------------------------
# 3a. Config bootstrapping
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# tree-mirror configuration
#
# Roots can also be set via environment variables:
#   TREE_MIRROR_REFERENCE_ROOT, TREE_MIRROR_DIFFERENCE_ROOT
#
# mirror:
#   reference_root: /data
#   difference_root: /mnt/offsite/data
#   log_path_template: ~/.tree_mirror/logs/{hostname}-{timestamp}.log
#   abort_on_error: true
#
# notification:
#   sender_email: backup@example.com
#   recipient_address: admin@example.com
#   smtp_server: smtp.example.com
#   sender_port: 465
#   use_ssl: true
#   credential_secret: ${TREE_MIRROR_SMTP_PASSWORD}
#
# eject:
#   command: ["udisksctl", "power-off", "--block-device", "/dev/sdb"]
#
# logging:
#   level: INFO
#   file: null
"""


def ensure_config(target: Path | None = None) -> Path:
    """Ensure a config file exists, creating a commented starter if needed.

    Args:
        target: Explicit path to create.  Defaults to
            ``CWD / .tree_mirror / config.yml``.

    Returns:
        Path to the config file (existing or newly created).
    """
    existing = discover_config_files()
    if existing and target is None:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    config_path = target or Path.cwd() / ".tree_mirror" / "config.yml"
    if config_path.exists():
        return config_path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)
    return config_path


# ---------------------------------------------------------------------------
# 4. Hierarchical merge
# ---------------------------------------------------------------------------


def load_hierarchical_config(
    explicit: Path | None = None,
) -> dict[str, Any]:
    """Load and merge all discovered config files.

    The highest-precedence file owns each top-level section it defines;
    sections are replaced whole, never deep-merged.  Env var references
    are expanded once the merge is done.

    Returns an empty dict when no config files exist (zero-config).
    """
    sections: dict[str, Any] = {}
    for path in reversed(discover_config_files(explicit)):
        logger.debug("Loading config: %s", path)
        sections.update(read_config_file(path))

    if not sections:
        logger.debug("No config values found, using zero-config defaults")
    return interpolate_env_vars(sections)
