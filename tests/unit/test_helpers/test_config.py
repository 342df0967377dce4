"""
Unit tests for configuration loading.

Covers file loading, DOCKUP_* environment overrides and validation.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from dockup.helpers.config import (
    DockupConfig,
    RemoteConfig,
    RetentionConfig,
    apply_env_overrides,
)
from dockup.helpers.constants import DEFAULT_CONFIG_PATHS
from dockup.helpers.errors import ConfigError


# =============================================================================
# Defaults and validation
# =============================================================================


@pytest.mark.unit
class TestDefaults:
    """Tests for default values and model validation."""

    def test_defaults(self):
        config = DockupConfig()
        assert config.blacklist == frozenset()
        assert config.helper_image == "alpine:3.20"
        assert config.operation_timeout == 3600
        assert config.retention == RetentionConfig(hourly=24, daily=7, weekly=4)
        assert config.remote.enabled is False

    def test_blacklist_from_string(self):
        config = DockupConfig(blacklist="db, secrets  cache")
        assert config.blacklist == frozenset({"db", "secrets", "cache"})

    def test_frozen(self):
        config = DockupConfig()
        with pytest.raises(Exception):
            config.helper_image = "busybox"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            DockupConfig(operation_timeout=0)

    def test_negative_keep_count_rejected(self):
        with pytest.raises(ValueError):
            RetentionConfig(daily=-1)

    def test_keep_count_lookup(self):
        retention = RetentionConfig(hourly=1, daily=2, weekly=3)
        assert retention.keep_count("hourly") == 1
        assert retention.keep_count("daily") == 2
        assert retention.keep_count("weekly") == 3
        assert retention.keep_count("default") is None

    def test_paths_expanded(self):
        config = DockupConfig(failure_hook="~/hook.sh", log_file="")
        assert config.failure_hook == Path.home() / "hook.sh"
        assert config.log_file is None


@pytest.mark.unit
class TestRemoteConfig:
    """Tests for RemoteConfig validation."""

    def test_host_and_path(self):
        remote = RemoteConfig(enabled=True, destination="backup@nas.local:/srv/backups")
        assert remote.host == "backup@nas.local"
        assert remote.path == "/srv/backups"

    def test_enabled_requires_destination(self):
        with pytest.raises(ValueError, match="destination required"):
            RemoteConfig(enabled=True)

    def test_destination_format(self):
        with pytest.raises(ValueError, match="user@host:/path"):
            RemoteConfig(destination="nas.local/srv")

    def test_disabled_without_destination(self):
        assert RemoteConfig().host == ""


# =============================================================================
# Loading
# =============================================================================


@pytest.mark.unit
class TestLoad:
    """Tests for DockupConfig.load()."""

    def test_load_file(self, tmp_config):
        config = DockupConfig.load(tmp_config, environ={})
        assert config.blacklist == frozenset({"db"})
        assert config.helper_image == "busybox:1.36"
        assert config.operation_timeout == 120
        assert config.retention.daily == 5

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            DockupConfig.load(tmp_path / "missing.json", environ={})

    def test_missing_default_file_uses_defaults(self, tmp_path):
        with patch.dict(DEFAULT_CONFIG_PATHS, {"root": tmp_path / "none.json", "user": tmp_path / "none.json"}):
            config = DockupConfig.load(environ={})
        assert config == DockupConfig()

    def test_invalid_json(self, tmp_path):
        bad = tmp_path / "config.json"
        bad.write_text("{blacklist: }")
        with pytest.raises(ConfigError, match="Cannot read configuration"):
            DockupConfig.load(bad, environ={})

    def test_not_an_object(self, tmp_path):
        bad = tmp_path / "config.json"
        bad.write_text(json.dumps(["db"]))
        with pytest.raises(ConfigError, match="JSON object"):
            DockupConfig.load(bad, environ={})

    def test_invalid_value(self, tmp_path):
        bad = tmp_path / "config.json"
        bad.write_text(json.dumps({"operation_timeout": -5}))
        with pytest.raises(ConfigError, match="Invalid configuration"):
            DockupConfig.load(bad, environ={})

    def test_default_path_root(self, mock_root):
        assert DockupConfig.get_default_path() == DEFAULT_CONFIG_PATHS["root"]

    def test_default_path_user(self, mock_non_root):
        assert DockupConfig.get_default_path() == DEFAULT_CONFIG_PATHS["user"]


# =============================================================================
# Environment overrides
# =============================================================================


@pytest.mark.unit
class TestEnvOverrides:
    """Tests for DOCKUP_* environment variables."""

    def test_env_overrides_file(self, tmp_config):
        environ = {
            "DOCKUP_BLACKLIST": "cache,queue",
            "DOCKUP_HELPER_IMAGE": "alpine:edge",
            "DOCKUP_TIMEOUT": "90",
            "DOCKUP_KEEP_DAILY": "14",
        }
        config = DockupConfig.load(tmp_config, environ=environ)

        assert config.blacklist == frozenset({"cache", "queue"})
        assert config.helper_image == "alpine:edge"
        assert config.operation_timeout == 90
        assert config.retention.daily == 14
        assert config.retention.hourly == 12

    def test_empty_blacklist_clears_file_value(self, tmp_config):
        config = DockupConfig.load(tmp_config, environ={"DOCKUP_BLACKLIST": ""})
        assert config.blacklist == frozenset()

    def test_remote_from_env(self, tmp_path):
        environ = {
            "DOCKUP_REMOTE_ENABLED": "yes",
            "DOCKUP_REMOTE_KEY_FILE": str(tmp_path / "key"),
            "DOCKUP_REMOTE_DESTINATION": "backup@nas:/srv/backups",
        }
        with patch.dict(DEFAULT_CONFIG_PATHS, {"root": tmp_path / "none.json", "user": tmp_path / "none.json"}):
            config = DockupConfig.load(environ=environ)

        assert config.remote.enabled is True
        assert config.remote.key_file == tmp_path / "key"
        assert config.remote.host == "backup@nas"

    def test_bad_boolean(self):
        with pytest.raises(ConfigError, match="DOCKUP_REMOTE_ENABLED must be a boolean"):
            apply_env_overrides({}, {"DOCKUP_REMOTE_ENABLED": "maybe"})

    def test_bad_keep_count(self, tmp_config):
        with pytest.raises(ConfigError):
            DockupConfig.load(tmp_config, environ={"DOCKUP_KEEP_HOURLY": "lots"})

    def test_unrelated_env_ignored(self):
        data = {"helper_image": "busybox"}
        assert apply_env_overrides(data, {"HOME": "/root", "DOCKER_HOST": "unix:///x"}) == data

    def test_input_not_mutated(self):
        data = {"retention": {"daily": 3}}
        apply_env_overrides(data, {"DOCKUP_KEEP_DAILY": "9"})
        assert data == {"retention": {"daily": 3}}
