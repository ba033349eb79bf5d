"""Tests for logger.py: setup_logging() and JsonFormatter.

Covers:
- CLI mode logging (stderr handler, optional file handler)
- Scheduled mode logging (file handler only)
- Level precedence: debug flag, LOG_LEVEL env var, config level
- JSON formatter output

Strategy: Mock logging.basicConfig to verify setup_logging passes correct args,
since pytest's log capture plugin interferes with actual basicConfig calls.
"""

import json
import logging
import sys
from pathlib import Path
from unittest.mock import patch

from tree_mirror.logger import JsonFormatter, setup_logging


def _close(handlers):
    for h in handlers:
        if isinstance(h, logging.FileHandler):
            h.close()


# ---------------------------------------------------------------------------
# setup_logging tests
# ---------------------------------------------------------------------------


class TestSetupLogging:
    """Tests for setup_logging()."""

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_cli_mode_logs_to_stderr(self, mock_basic):
        """CLI mode passes StreamHandler(stderr) to basicConfig."""
        setup_logging(mode="cli")

        mock_basic.assert_called_once()
        handlers = mock_basic.call_args[1]["handlers"]
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_cli_mode_with_log_file(self, mock_basic, tmp_path):
        """CLI mode with log_file creates both stderr and file handlers."""
        setup_logging(mode="cli", log_file=str(tmp_path / "cli.log"))

        handlers = mock_basic.call_args[1]["handlers"]
        file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
        assert len(handlers) == 2
        assert len(file_handlers) == 1
        _close(handlers)

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_scheduled_mode_logs_to_file_only(self, mock_basic, tmp_path):
        """Scheduled mode writes to the given file and nowhere else."""
        log_file = tmp_path / "nested" / "scheduled.log"
        setup_logging(mode="scheduled", log_file=str(log_file))

        handlers = mock_basic.call_args[1]["handlers"]
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.FileHandler)
        assert handlers[0].baseFilename == str(log_file)
        assert log_file.parent.is_dir()
        _close(handlers)

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_scheduled_mode_env_log_file(self, mock_basic, tmp_path, monkeypatch):
        """Scheduled mode falls back to the LOG_FILE env var."""
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("LOG_FILE", str(log_file))
        setup_logging(mode="scheduled")

        handlers = mock_basic.call_args[1]["handlers"]
        assert handlers[0].baseFilename == str(log_file)
        _close(handlers)

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_scheduled_mode_default_log_file(self, mock_basic):
        """Without LOG_FILE, scheduled mode logs under the home directory."""
        setup_logging(mode="scheduled")

        handlers = mock_basic.call_args[1]["handlers"]
        expected = Path.home() / ".tree_mirror" / "tree-mirror.log"
        assert handlers[0].baseFilename == str(expected)
        _close(handlers)

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_debug_overrides_level(self, mock_basic):
        """debug=True passes DEBUG level to basicConfig."""
        setup_logging(mode="cli", debug=True)

        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_env_log_level_honored(self, mock_basic, monkeypatch):
        """LOG_LEVEL env var is reflected in basicConfig level."""
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli")

        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_env_beats_config_level(self, mock_basic, monkeypatch):
        """LOG_LEVEL env var overrides the config file level."""
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli", level="DEBUG")

        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_config_level_used(self, mock_basic):
        """Config level applies when LOG_LEVEL is unset."""
        setup_logging(mode="cli", level="warning")

        assert mock_basic.call_args[1]["level"] == logging.WARNING

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_debug_beats_env(self, mock_basic, monkeypatch):
        """debug=True overrides LOG_LEVEL env var."""
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli", debug=True)

        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_default_level_is_info(self, mock_basic):
        """Default level is INFO."""
        setup_logging(mode="cli")

        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_unknown_level_falls_back_to_info(self, mock_basic):
        setup_logging(mode="cli", level="LOUD")

        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("tree_mirror.logger.logging.basicConfig")
    def test_json_format_uses_json_formatter(self, mock_basic):
        """debug_format='json' sets JsonFormatter on handlers."""
        setup_logging(mode="cli", debug_format="json")

        handlers = mock_basic.call_args[1]["handlers"]
        assert all(isinstance(h.formatter, JsonFormatter) for h in handlers)


# ---------------------------------------------------------------------------
# JsonFormatter tests
# ---------------------------------------------------------------------------


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_output(self):
        """Formatted output is valid JSON with required keys."""
        formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        record = logging.LogRecord(
            name="tree_mirror.sync.reaper",
            level=logging.WARNING,
            pathname="reaper.py",
            lineno=1,
            msg="Could not delete %s",
            args=("/dst/locked.db",),
            exc_info=None,
        )

        data = json.loads(formatter.format(record))

        assert "ts" in data
        assert data["level"] == "WARNING"
        assert data["logger"] == "tree_mirror.sync.reaper"
        assert data["msg"] == "Could not delete /dst/locked.db"
        assert "exc" not in data

    def test_includes_exception(self):
        """Exception info is included in 'exc' key."""
        formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")

        try:
            raise OSError("disk full")
        except OSError:
            exc_info = sys.exc_info()

        record = logging.LogRecord(
            name="test",
            level=logging.ERROR,
            pathname="test.py",
            lineno=1,
            msg="Copy failed",
            args=(),
            exc_info=exc_info,
        )

        data = json.loads(formatter.format(record))

        assert "OSError: disk full" in data["exc"]
