"""Unified configuration schema for tree_mirror.

Defines Pydantic models for the unified config structure with dedicated
sections for the mirror roots, e-mail notification, volume ejection and
logging.

Usage:
    from tree_mirror.config_loader import load_hierarchical_config
    from tree_mirror.config_schema import UnifiedConfig, build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, field_validator

from .validators import (
    validate_eject_command,
    validate_email_address,
    validate_log_path_template,
)

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH_TEMPLATE = (
    "~/.tree_mirror/logs/{hostname}-{timestamp}.log"
)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class MirrorConfig(BaseModel):
    """Reference/difference roots and run policy.

    Roots are optional here so env vars and CLI args can supply them at
    runtime; ``config.load_config()`` enforces that both end up set.
    """

    reference_root: str | None = Field(
        default=None, description="Authoritative tree to mirror from"
    )
    difference_root: str | None = Field(
        default=None, description="Tree made to match the reference"
    )
    log_path_template: str = Field(
        default=DEFAULT_LOG_PATH_TEMPLATE,
        description="Per-run log path with {hostname} and {timestamp}",
    )
    abort_on_error: bool = Field(
        default=True,
        description="Stop the copy phase at the first failure",
    )

    model_config = {"frozen": True}

    @field_validator("log_path_template")
    @classmethod
    def _check_template(cls, value: str) -> str:
        ok, message = validate_log_path_template(value)
        if not ok:
            raise ValueError(message)
        return value


class MessageTemplate(BaseModel):
    """Subject and body of one notification.

    Both are ``str.format`` templates.  Available fields: ``hostname``,
    ``reference_root``, ``difference_root``, ``missing_root``,
    ``item_count``, ``completed``, ``failed``, ``orphans``,
    ``failure_detail``, ``log_file``, ``timestamp``.
    """

    subject: str
    body: str

    model_config = {"frozen": True}


class NotificationTemplates(BaseModel):
    """Templates for each notification the engine can send."""

    directory_not_found: MessageTemplate = MessageTemplate(
        subject="[tree-mirror] {hostname}: directory not found",
        body=(
            "Mirror aborted on {hostname} at {timestamp}.\n"
            "Directory not found: {missing_root}\n"
        ),
    )
    sync_started: MessageTemplate = MessageTemplate(
        subject="[tree-mirror] {hostname}: sync started",
        body=(
            "Mirroring {reference_root} -> {difference_root}\n"
            "Items in reference: {item_count}\n"
        ),
    )
    sync_completed: MessageTemplate = MessageTemplate(
        subject="[tree-mirror] {hostname}: sync completed",
        body=(
            "Mirror {reference_root} -> {difference_root} finished.\n"
            "Completed: {completed}\n"
            "Failed: {failed}\n"
            "Orphans removed: {orphans}\n"
            "{failure_detail}\n"
            "Log: {log_file}\n"
        ),
    )
    io_exception: MessageTemplate = MessageTemplate(
        subject="[tree-mirror] {hostname}: I/O error during copy",
        body=(
            "The copy phase stopped on {hostname}.\n"
            "{failure_detail}\n"
        ),
    )

    model_config = {"frozen": True}


class NotificationConfig(BaseModel):
    """SMTP delivery settings.

    ``credential_secret`` is normally supplied through ``${VAR}``
    interpolation rather than stored in the file.
    """

    sender_email: str | None = Field(default=None)
    recipient_address: str | None = Field(default=None)
    smtp_server: str | None = Field(default=None)
    sender_port: int = Field(default=465, ge=1, le=65535)
    use_ssl: bool = Field(default=True)
    credential_secret: str | None = Field(default=None)
    timeout: float = Field(default=30.0, gt=0)
    templates: NotificationTemplates = Field(
        default_factory=NotificationTemplates
    )

    model_config = {"frozen": True}

    @field_validator("sender_email", "recipient_address")
    @classmethod
    def _check_address(cls, value: str | None) -> str | None:
        if value is None:
            return value
        ok, message = validate_email_address(value)
        if not ok:
            raise ValueError(message)
        return value

    @property
    def is_configured(self) -> bool:
        """True when enough is set to attempt delivery."""
        return bool(
            self.sender_email and self.recipient_address and self.smtp_server
        )


class EjectConfig(BaseModel):
    """External disk-eject utility.

    ``command`` is an argv list; ``{mount_point}`` is replaced with the
    destination volume's mount point.  ``None`` picks a platform default.
    """

    command: list[str] | None = Field(default=None)
    timeout: float = Field(default=60.0, gt=0)

    model_config = {"frozen": True}

    @field_validator("command")
    @classmethod
    def _check_command(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        ok, message = validate_eject_command(value)
        if not ok:
            raise ValueError(message)
        return value


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``UnifiedConfig()`` (zero-config) is always valid.
    """

    mirror: MirrorConfig = Field(default_factory=MirrorConfig)
    notification: NotificationConfig = Field(
        default_factory=NotificationConfig
    )
    eject: EjectConfig = Field(default_factory=EjectConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get their defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
