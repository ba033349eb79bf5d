import json
import logging
import os
import sys

DEFAULT_SCHEDULED_LOG = "~/.tree_mirror/tree-mirror.log"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured debug output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(debug_format: str, with_name: bool) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATEFMT)
    if with_name:
        fmt = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
    else:
        fmt = "[%(asctime)s] [%(levelname)s] %(message)s"
    return logging.Formatter(fmt, datefmt=_DATEFMT)


def setup_logging(
    mode: str = "cli",
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure logging based on execution mode.

    Args:
        mode: "cli" logs to stderr (plus log_file if given); "scheduled"
              logs to a file only, for unattended cron/systemd runs.
        debug: If True, overrides every other level setting with DEBUG.
        log_file: Custom log file path (overrides LOG_FILE env var).
        debug_format: "text" (default) or "json" for structured output.
        level: Level from the config file, used when LOG_LEVEL is unset.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Default: INFO.
        LOG_FILE: Log file path for scheduled mode.
                  Default: ~/.tree_mirror/tree-mirror.log
    """
    level_name = os.getenv("LOG_LEVEL") or level or "INFO"

    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, level_name.upper(), logging.INFO)

    handlers: list[logging.Handler] = []

    if mode == "scheduled":
        final_log_file = os.path.expanduser(
            log_file or os.getenv("LOG_FILE", DEFAULT_SCHEDULED_LOG)
        )
        os.makedirs(os.path.dirname(final_log_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(final_log_file, mode="a")
        file_handler.setFormatter(_make_formatter(debug_format, True))
        handlers.append(file_handler)
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(_make_formatter(debug_format, False))
        handlers.append(stderr_handler)

        if log_file:
            file_handler = logging.FileHandler(
                os.path.expanduser(log_file), mode="a"
            )
            file_handler.setFormatter(_make_formatter(debug_format, True))
            handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,
    )
