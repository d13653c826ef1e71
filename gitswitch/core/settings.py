"""Application settings stored in YAML."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from ..utils import paths
from ..utils.logging import get_logger
from .errors import FormatError, IoError
from .safe_writer import SafeConfigWriter, UpdatePolicy

logger = get_logger("settings")


@dataclass
class AppSettings:
    backup_enabled: bool = True
    backup_dir: Path = field(default_factory=paths.backup_dir)
    keep_previous: bool = True
    atomic_write: bool = False
    encrypt_ssh_key_paths: bool = True

    def to_policy(self) -> UpdatePolicy:
        return UpdatePolicy(
            backup_enabled=self.backup_enabled,
            backup_dir=self.backup_dir,
            keep_previous=self.keep_previous,
            atomic_write=self.atomic_write,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["backup_dir"] = str(self.backup_dir)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        defaults = cls()
        raw_dir = data.get("backup_dir")
        return cls(
            backup_enabled=bool(data.get("backup_enabled", defaults.backup_enabled)),
            backup_dir=paths.expand_path(raw_dir) if raw_dir else defaults.backup_dir,
            keep_previous=bool(data.get("keep_previous", defaults.keep_previous)),
            atomic_write=bool(data.get("atomic_write", defaults.atomic_write)),
            encrypt_ssh_key_paths=bool(
                data.get("encrypt_ssh_key_paths", defaults.encrypt_ssh_key_paths)
            ),
        )


class SettingsStore:
    """Load and save :class:`AppSettings` from the settings file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path else paths.settings_file()

    def load(self) -> AppSettings:
        if not self.path.exists():
            return AppSettings()
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise FormatError(f"Failed to parse settings {self.path}: {exc}") from exc
        except OSError as exc:
            raise IoError(f"Failed to read settings {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise FormatError(f"Settings file {self.path} must contain a mapping")
        return AppSettings.from_dict(data)

    def save(self, settings: AppSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = yaml.safe_dump(settings.to_dict(), sort_keys=False)
        writer = SafeConfigWriter(UpdatePolicy(backup_enabled=False, atomic_write=True))
        writer.apply(self.path, text)
        logger.info("Saved settings to %s", self.path)
