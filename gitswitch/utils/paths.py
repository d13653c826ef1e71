"""Helpers for computing and preparing on-disk paths used by the
git profile switcher."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Tuple

CONFIG_DIR_NAME = "git-profile-switcher"
PROFILES_FILE_NAME = "profiles.json"
SETTINGS_FILE_NAME = "settings.yaml"
BACKUP_DIR_NAME = "backups"
LOG_DIR_NAME = "logs"


def config_root() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / CONFIG_DIR_NAME


def profiles_file() -> Path:
    return config_root() / PROFILES_FILE_NAME


def settings_file() -> Path:
    return config_root() / SETTINGS_FILE_NAME


def backup_dir() -> Path:
    return config_root() / BACKUP_DIR_NAME


def log_dir() -> Path:
    return config_root() / LOG_DIR_NAME


def git_config_path() -> Path:
    """Location of the global git configuration that profiles are applied to."""
    return Path.home() / ".gitconfig"


def ensure_directories() -> Tuple[Path, Path]:
    """Ensure configuration and log directories exist before use."""
    root = config_root()
    logs = log_dir()
    root.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)
    return root, logs


def expand_path(path: str | os.PathLike[str]) -> Path:
    """Expand environment variables and user references in ``path``."""
    return Path(os.path.expandvars(os.path.expanduser(os.fspath(path)))).resolve()
