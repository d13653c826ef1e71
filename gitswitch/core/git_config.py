"""Reading and safely replacing the global git configuration."""

from __future__ import annotations

from pathlib import Path

from ..utils import paths
from .errors import IoError
from .safe_writer import SafeConfigWriter, UpdateOutcome, UpdatePolicy


def read_git_config(path: Path | None = None) -> str:
    """Return the current git config text, or an empty string if there is none."""
    target = path or paths.git_config_path()
    try:
        return target.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except (OSError, UnicodeDecodeError) as exc:
        raise IoError(f"Failed to read {target}: {exc}") from exc


def update_git_config(
    config_text: str,
    policy: UpdatePolicy | None = None,
    path: Path | None = None,
) -> UpdateOutcome:
    """Apply ``config_text`` to the git config, backing up the old file per ``policy``."""
    target = path or paths.git_config_path()
    return SafeConfigWriter(policy).apply(target, config_text)


def describe_outcome(outcome: UpdateOutcome) -> str:
    if outcome.changed:
        return "Git config updated successfully"
    return "Git config is already up to date"
