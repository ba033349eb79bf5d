"""Configuration resolution for a mirror run.

Reads settings from CLI args, environment variables, .env files and YAML
config files, and produces one immutable ``UnifiedConfig`` that is passed
by reference to every collaborator of the run.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    TREE_MIRROR_REFERENCE_ROOT: Source tree (required unless set elsewhere)
    TREE_MIRROR_DIFFERENCE_ROOT: Destination tree (required unless set elsewhere)
    TREE_MIRROR_LOG_PATH: Per-run log path template (optional)
    TREE_MIRROR_ABORT_ON_ERROR: Stop copying at the first failure (optional, default: true)
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .config_loader import load_hierarchical_config
from .config_schema import MirrorConfig, UnifiedConfig, build_config
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_ENV_FIELDS = {
    "reference_root": "TREE_MIRROR_REFERENCE_ROOT",
    "difference_root": "TREE_MIRROR_DIFFERENCE_ROOT",
    "log_path_template": "TREE_MIRROR_LOG_PATH",
}


def get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def apply_overrides(
    unified: UnifiedConfig,
    overrides: dict[str, Any] | None = None,
) -> UnifiedConfig:
    """Layer env vars and CLI overrides onto the ``mirror`` section.

    Recognised override keys: ``reference_root``, ``difference_root``,
    ``log_path_template``, ``abort_on_error``.

    Raises:
        ConfigurationError: If the merged section fails validation.
    """
    overrides = overrides or {}
    mirror = unified.mirror.model_dump()

    for field, env_key in _ENV_FIELDS.items():
        env_val = os.getenv(env_key)
        if env_val:
            mirror[field] = env_val
    env_abort = get_bool_env("TREE_MIRROR_ABORT_ON_ERROR")
    if env_abort is not None:
        mirror["abort_on_error"] = env_abort

    for field in (*_ENV_FIELDS, "abort_on_error"):
        value = overrides.get(field)
        if value is not None:
            mirror[field] = str(value) if isinstance(value, Path) else value

    try:
        merged = MirrorConfig.model_validate(mirror)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid mirror settings: {exc}") from exc

    return unified.model_copy(update={"mirror": merged})


def validate_config(config: UnifiedConfig) -> None:
    """Check that a run can start with *config*.

    Raises:
        ConfigurationError: If either root is unset.
    """
    if not config.mirror.reference_root:
        raise ConfigurationError(
            "Reference root not set. Set TREE_MIRROR_REFERENCE_ROOT, "
            "pass --reference, or add 'mirror.reference_root' to config.yml."
        )
    if not config.mirror.difference_root:
        raise ConfigurationError(
            "Difference root not set. Set TREE_MIRROR_DIFFERENCE_ROOT, "
            "pass --difference, or add 'mirror.difference_root' to config.yml."
        )
    if config.notification.smtp_server and not config.notification.is_configured:
        logger.warning(
            "SMTP server configured without sender/recipient; "
            "notifications will be skipped"
        )


def load_config(
    overrides: dict[str, Any] | None = None,
    config_file: Path | None = None,
) -> UnifiedConfig:
    """Load configuration with unified precedence.

    Args:
        overrides: CLI values (see ``apply_overrides``).  ``None`` values
            are ignored.
        config_file: Explicit YAML file, highest precedence among files.

    Returns:
        Validated ``UnifiedConfig``.

    Raises:
        ConfigurationError: If any source is malformed or a root is
            missing after checking all sources.
    """
    # .env first so ${VAR} interpolation in YAML can see its values.
    load_dotenv(find_dotenv(usecwd=True))

    try:
        raw = load_hierarchical_config(config_file)
        unified = build_config(raw)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        # pydantic.ValidationError is a ValueError subclass.
        raise ConfigurationError(f"Could not load configuration: {exc}") from exc

    config = apply_overrides(unified, overrides)
    validate_config(config)
    logger.debug(
        "Configuration: reference=%s difference=%s",
        config.mirror.reference_root,
        config.mirror.difference_root,
    )
    return config
