"""Shared fixtures for ghctx tests."""

from pathlib import Path

import pytest


@pytest.fixture
def home(tmp_path, monkeypatch) -> Path:
    """Point HOME and XDG_CONFIG_HOME at a temporary directory."""
    home_dir = tmp_path / "home"
    (home_dir / ".ssh").mkdir(parents=True)
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home_dir / ".config"))
    monkeypatch.delenv("GHCTX_SSH_CONFIG", raising=False)
    return home_dir


@pytest.fixture
def ssh_config_file(home) -> Path:
    """Path to the SSH config inside the temporary home (not created)."""
    return home / ".ssh" / "config"


@pytest.fixture
def write_config(ssh_config_file):
    """Write text to the temporary SSH config and return its path."""

    def _write(text: str) -> Path:
        ssh_config_file.write_text(text)
        return ssh_config_file

    return _write
