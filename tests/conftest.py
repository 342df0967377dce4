"""
Shared pytest fixtures for dockup tests.

Provides common fixtures for mocking the Docker runtime, configuration and
container inspect data.
"""

import json
from unittest.mock import Mock, patch

import pytest
from typer.testing import CliRunner

from dockup.cores.runtime_client import RuntimeClient
from dockup.helpers.config import DockupConfig


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "integration: tests running real tar/cp binaries")


@pytest.fixture
def cli_runner():
    """Typer CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove DOCKUP_* variables from the environment."""
    import os
    for key in list(os.environ):
        if key.startswith("DOCKUP_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def config():
    """Default configuration with an empty blacklist."""
    return DockupConfig()


@pytest.fixture
def blacklist_config():
    """Configuration blacklisting the db container and the secrets volume."""
    return DockupConfig(blacklist=["db", "secrets"])


@pytest.fixture
def tmp_config(tmp_path):
    """Create a temporary dockup config file."""
    config_content = {
        "blacklist": ["db"],
        "helper_image": "busybox:1.36",
        "operation_timeout": 120,
        "retention": {"hourly": 12, "daily": 5, "weekly": 2},
        "remote": {"enabled": False},
    }
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(config_content, indent=2))
    return config_file


@pytest.fixture
def mock_root():
    """Mock os.geteuid() to return 0 (root)."""
    with patch("os.geteuid", return_value=0):
        yield


@pytest.fixture
def mock_non_root():
    """Mock os.geteuid() to return non-zero (not root)."""
    with patch("os.geteuid", return_value=1000):
        yield


@pytest.fixture
def mock_runtime():
    """RuntimeClient double: every volume and image exists."""
    runtime = Mock(spec=RuntimeClient)
    runtime.volume_exists.return_value = True
    runtime.image_exists.return_value = True
    runtime.list_container_names.return_value = []
    runtime.create_container.return_value = "c0ffee" * 10
    return runtime


@pytest.fixture
def bind_dir(tmp_path):
    """Host directory used as a bind mount source."""
    path = tmp_path / "host" / "site-data"
    path.mkdir(parents=True)
    (path / "index.html").write_text("<h1>hi</h1>")
    return path


@pytest.fixture
def inspect_data(bind_dir, tmp_path):
    """Docker inspect record of a container named web."""
    socket_file = tmp_path / "host" / "docker.sock"
    socket_file.write_text("")
    return {
        "Id": "abc123",
        "Name": "/web",
        "State": {"Running": True, "Status": "running"},
        "Config": {
            "Image": "nginx:1.27",
            "Env": ["NGINX_HOST=example.org", "PATH=/usr/bin:/bin"],
            "Labels": {"app": "web", "tier": "frontend"},
        },
        "HostConfig": {
            "PortBindings": {
                "80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8080"}],
                "443/tcp": [{"HostIp": "", "HostPort": "8443"}],
            },
        },
        "Mounts": [
            {
                "Type": "volume",
                "Name": "web-data",
                "Source": "/var/lib/docker/volumes/web-data/_data",
                "Destination": "/data",
                "RW": True,
            },
            {
                "Type": "bind",
                "Source": str(bind_dir),
                "Destination": "/usr/share/nginx/html",
                "RW": False,
            },
            {
                "Type": "bind",
                "Source": str(socket_file),
                "Destination": "/var/run/docker.sock",
                "RW": True,
            },
        ],
    }
