"""Shared fixtures for SimSSH tests."""

import pytest

from simssh import ai_interface
from simssh.command_handler import MockSystem
from simssh.config import reload_config
from simssh.session import SSHConnection, connect


@pytest.fixture(autouse=True)
def clean_config(monkeypatch, tmp_path):
    """Fresh config per test, with profiles kept in a temp dir."""
    for key in (
        "SIMSSH_USERNAME",
        "SIMSSH_HOME",
        "SIMSSH_HOSTNAME",
        "SIMSSH_LLM_MODEL",
        "SIMSSH_LOG_LEVEL",
        "SIMSSH_LOG_FILE",
        "SIMSSH_METRICS_ENABLED",
        "SIMSSH_UI_PORT",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("SIMSSH_PROFILES_PATH", str(tmp_path / "profiles.json"))
    monkeypatch.setenv("SIMSSH_CONNECT_DELAY", "0")
    reload_config()
    ai_interface.reset_connection_state()
    yield
    ai_interface.reset_connection_state()
    reload_config()


@pytest.fixture
def system():
    """A fresh mock system starting in /home/user."""
    return MockSystem()


@pytest.fixture
def session():
    """A connected shell session."""
    return connect(SSHConnection(host="10.0.0.5", username="user"), delay=0)
