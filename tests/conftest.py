"""Shared fixtures that keep every test inside a temporary home directory."""

from __future__ import annotations

from pathlib import Path

import pytest

import gitswitch.core.cipher_store as cipher_store_module
import gitswitch.utils.logging as logging_module


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Redirect the home and config directories into the pytest sandbox."""

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.delenv("GITSWITCH_KEY", raising=False)
    return home


@pytest.fixture(autouse=True)
def fresh_cipher_singleton(monkeypatch):
    """Each test starts with a new process-wide cipher store."""

    monkeypatch.setattr(cipher_store_module, "cipher_store_singleton", None)


@pytest.fixture(autouse=True)
def fresh_logging_singleton(monkeypatch):
    """Log handlers are rebuilt against the sandboxed log directory."""

    monkeypatch.setattr(logging_module, "logging_manager_singleton", None)
