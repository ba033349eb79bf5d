"""Tests for hierarchical config loading in tree_mirror.config_loader."""

from pathlib import Path

import pytest
import yaml

from tree_mirror.config_loader import (
    discover_config_files,
    ensure_config,
    interpolate_env_vars,
    load_hierarchical_config,
    read_config_file,
)

# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    """Tests for ${VAR} and ${VAR:-default} substitution."""

    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("BACKUP_DISK", "/mnt/offsite")
        assert interpolate_env_vars("${BACKUP_DISK}/data") == "/mnt/offsite/data"

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ:-/data}") == "/data"

    def test_default_ignored_when_set(self, monkeypatch):
        monkeypatch.setenv("SMTP_PORT", "587")
        assert interpolate_env_vars("${SMTP_PORT:-465}") == "587"

    def test_empty_env_var_uses_default(self, monkeypatch):
        monkeypatch.setenv("EMPTY_VAR", "")
        assert interpolate_env_vars("${EMPTY_VAR:-fallback}") == "fallback"

    def test_literal_dollar_brace_no_closing(self):
        # No closing brace, left untouched
        assert interpolate_env_vars("${NO_CLOSE") == "${NO_CLOSE"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("SMTP_PASSWORD", "hunter2")
        data = {
            "notification": {"credential_secret": "${SMTP_PASSWORD}", "port": 465},
            "eject": {"command": ["eject", "${SMTP_PASSWORD}"]},
        }
        assert interpolate_env_vars(data) == {
            "notification": {"credential_secret": "hunter2", "port": 465},
            "eject": {"command": ["eject", "hunter2"]},
        }

    def test_non_string_values_untouched(self):
        data = {"count": 42, "enabled": True, "items": [1, 2, 3]}
        assert interpolate_env_vars(data) == data


# -------------------------------------------------------------------------
# Reading a single file
# -------------------------------------------------------------------------


class TestReadConfigFile:
    def test_mapping(self, tmp_path):
        cfg = tmp_path / "config.yml"
        cfg.write_text("mirror:\n  reference_root: /data\n")

        assert read_config_file(cfg) == {"mirror": {"reference_root": "/data"}}

    def test_empty_file(self, tmp_path):
        cfg = tmp_path / "config.yml"
        cfg.write_text("")

        assert read_config_file(cfg) == {}

    def test_non_mapping_root_ignored(self, tmp_path, caplog):
        cfg = tmp_path / "config.yml"
        cfg.write_text("- just\n- a list\n")

        assert read_config_file(cfg) == {}
        assert "not a mapping" in caplog.text

    def test_python_tags_rejected(self, tmp_path):
        cfg = tmp_path / "config.yml"
        cfg.write_text("x: !!python/object/apply:os.getcwd []\n")

        with pytest.raises(yaml.constructor.ConstructorError):
            read_config_file(cfg)


# -------------------------------------------------------------------------
# Convention-based file discovery
# -------------------------------------------------------------------------


class TestDiscoverConfigFiles:
    """Tests for discover_config_files() precedence and filtering."""

    def _project(self, root):
        path = root / ".tree_mirror" / "config.yml"
        path.parent.mkdir(parents=True)
        path.write_text("mirror: {}\n")
        return path

    def _global(self, home):
        path = home / ".config" / "tree_mirror" / "config.yml"
        path.parent.mkdir(parents=True)
        path.write_text("mirror: {}\n")
        return path

    def test_explicit_first(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        self._project(tmp_path)
        explicit = tmp_path / "explicit.yml"
        explicit.write_text("x: 1\n")

        result = discover_config_files(explicit)

        assert result[0] == explicit.resolve()

    def test_env_var_before_project(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        project = self._project(tmp_path)
        custom = tmp_path / "custom.yml"
        custom.write_text("custom: true\n")
        monkeypatch.setenv("TREE_MIRROR_CONFIG", str(custom))

        result = discover_config_files()

        assert result == [custom.resolve(), project]

    def test_project_before_global(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        project = self._project(tmp_path)
        global_cfg = self._global(Path.home())

        result = discover_config_files()

        assert result == [project, global_cfg]

    def test_missing_files_excluded(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("TREE_MIRROR_CONFIG", str(tmp_path / "nope.yml"))

        assert discover_config_files(tmp_path / "also-nope.yml") == []


# -------------------------------------------------------------------------
# Hierarchical merge
# -------------------------------------------------------------------------


class TestLoadHierarchicalConfig:
    """Tests for load_hierarchical_config() merge semantics."""

    def test_zero_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_hierarchical_config() == {}

    def test_project_wins_per_top_level_key(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        global_cfg = Path.home() / ".config" / "tree_mirror" / "config.yml"
        global_cfg.parent.mkdir(parents=True)
        global_cfg.write_text(
            "mirror:\n"
            "  reference_root: /global/src\n"
            "  difference_root: /global/dst\n"
            "logging:\n"
            "  level: DEBUG\n"
        )
        project = tmp_path / ".tree_mirror" / "config.yml"
        project.parent.mkdir()
        project.write_text("mirror:\n  reference_root: /project/src\n")

        result = load_hierarchical_config()

        # Top-level keys are replaced whole, not deep-merged.
        assert result["mirror"] == {"reference_root": "/project/src"}
        assert result["logging"] == {"level": "DEBUG"}

    def test_interpolation_after_merge(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("OFFSITE", "/mnt/offsite")
        cfg = tmp_path / "config.yml"
        cfg.write_text("mirror:\n  difference_root: ${OFFSITE}/data\n")

        result = load_hierarchical_config(cfg)

        assert result["mirror"]["difference_root"] == "/mnt/offsite/data"

    def test_non_dict_root_skipped(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        cfg = tmp_path / "config.yml"
        cfg.write_text("- just\n- a list\n")

        assert load_hierarchical_config(cfg) == {}

    def test_malformed_yaml_raises(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        cfg = tmp_path / "config.yml"
        cfg.write_text("mirror: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            load_hierarchical_config(cfg)


# -------------------------------------------------------------------------
# Starter config
# -------------------------------------------------------------------------


class TestEnsureConfig:
    def test_creates_starter_in_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        path = ensure_config()

        assert path == tmp_path / ".tree_mirror" / "config.yml"
        assert "reference_root" in path.read_text()
        # Everything is commented out, so it loads as an empty config.
        assert load_hierarchical_config() == {}

    def test_existing_config_returned(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        existing = tmp_path / ".tree_mirror" / "config.yml"
        existing.parent.mkdir()
        existing.write_text("mirror: {}\n")

        assert ensure_config() == existing
        assert existing.read_text() == "mirror: {}\n"

    def test_explicit_target(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        target = tmp_path / "etc" / "mirror.yml"

        assert ensure_config(target) == target
        assert target.exists()
