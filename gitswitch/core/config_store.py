"""Persistence of git profiles in the profiles file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable

from ..utils import paths
from ..utils.logging import get_logger
from .cipher_store import CipherStore, get_cipher_store
from .errors import FormatError, IoError
from .profile import GitProfile, ProfileList
from .safe_writer import SafeConfigWriter, UpdateOutcome, UpdatePolicy

logger = get_logger("config_store")


class ProfileStore:
    """Handles persistence of profiles, sealing SSH key paths on disk."""

    def __init__(
        self,
        path: Path | None = None,
        cipher: CipherStore | None = None,
        encrypt_ssh_key_paths: bool = True,
    ) -> None:
        self.path = Path(path) if path else paths.profiles_file()
        self.cipher = cipher or get_cipher_store()
        self.encrypt_ssh_key_paths = encrypt_ssh_key_paths
        self._writer = SafeConfigWriter(UpdatePolicy(backup_enabled=False, atomic_write=True))

    def load_profiles(self) -> ProfileList:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise FormatError(f"Failed to deserialize profiles: {exc}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise IoError(f"Failed to read profiles: {exc}") from exc
        if not isinstance(data, list):
            raise FormatError("Profiles file must contain a JSON list")

        profiles = []
        for raw in data:
            if not isinstance(raw, dict):
                raise FormatError(f"Invalid profile entry {raw!r}: expected a JSON object")
            try:
                profile = GitProfile.from_dict(raw)
            except (KeyError, TypeError, ValueError) as exc:
                raise FormatError(f"Invalid profile entry {raw!r}: {exc}") from exc
            if profile.ssh_key_path and self.encrypt_ssh_key_paths:
                profile.ssh_key_path = self._open_ssh_key_path(profile.id, profile.ssh_key_path)
            profiles.append(profile)
        return profiles

    def save_profiles(self, profiles: Iterable[GitProfile]) -> UpdateOutcome:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = [self._serialize_profile(profile) for profile in profiles]
        outcome = self._writer.apply(self.path, json.dumps(data, indent=2))
        logger.info("Saved %d profiles to %s", len(data), self.path)
        return outcome

    def _serialize_profile(self, profile: GitProfile) -> Dict[str, Any]:
        payload = profile.to_dict()
        if profile.ssh_key_path and self.encrypt_ssh_key_paths:
            payload["ssh_key_path"] = self.cipher.encrypt(profile.ssh_key_path)
        return payload

    def _open_ssh_key_path(self, profile_id: str, sealed: str) -> str:
        try:
            return self.cipher.decrypt(sealed)
        except FormatError:
            # Written before encryption was enabled; sealed again on the next save.
            logger.warning("Profile %s has a plaintext SSH key path", profile_id)
            return sealed
