"""High-level manager orchestrating profiles and the git config they activate."""

from __future__ import annotations

import os
import shlex
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List

from ..utils.logging import get_logger
from .config_store import ProfileStore
from .errors import ProfileError
from .git_config import update_git_config
from .profile import GitProfile
from .safe_writer import UpdateOutcome
from .settings import AppSettings

logger = get_logger("manager")


def _gitconfig_quote(value: str) -> str:
    """Wrap ``value`` in gitconfig double quotes, escaping backslashes and quotes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_config(profile: GitProfile) -> str:
    """Build a minimal gitconfig for profiles that carry no config text of their own."""
    lines = [
        "[user]",
        f"\tname = {profile.name}",
        f"\temail = {profile.email}",
    ]
    if profile.ssh_key_path:
        key_path = shlex.quote(os.path.expanduser(profile.ssh_key_path))
        command = f"ssh -i {key_path} -o IdentitiesOnly=yes"
        lines += ["[core]", f"\tsshCommand = {_gitconfig_quote(command)}"]
    return "\n".join(lines) + "\n"


class ProfileManager:
    """Coordinates profile persistence and git config activation."""

    def __init__(
        self,
        store: ProfileStore | None = None,
        settings: AppSettings | None = None,
        git_config_path: Path | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings or AppSettings()
        self.store = store or ProfileStore(
            encrypt_ssh_key_paths=self.settings.encrypt_ssh_key_paths
        )
        self.git_config_path = git_config_path
        self._clock = clock
        self.profiles: List[GitProfile] = self.store.load_profiles()

    def list_profiles(self) -> Iterable[GitProfile]:
        return list(self.profiles)

    def get(self, profile_id: str) -> GitProfile:
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        raise ProfileError(f"Profile {profile_id} not found")

    def active_profile(self) -> GitProfile | None:
        return next((p for p in self.profiles if p.is_active), None)

    def add_profile(self, profile: GitProfile) -> None:
        if any(p.id == profile.id for p in self.profiles):
            raise ProfileError(f"Profile {profile.id} already exists")
        self.profiles.append(profile)
        self.store.save_profiles(self.profiles)
        logger.info("Added profile %s", profile.id)

    def update_profile(self, profile: GitProfile) -> None:
        for index, existing in enumerate(self.profiles):
            if existing.id == profile.id:
                self.profiles[index] = profile
                self.store.save_profiles(self.profiles)
                logger.info("Updated profile %s", profile.id)
                return
        raise ProfileError(f"Profile {profile.id} not found")

    def delete_profile(self, profile_id: str) -> None:
        profile = self.get(profile_id)
        self.profiles.remove(profile)
        self.store.save_profiles(self.profiles)
        logger.info("Deleted profile %s", profile_id)

    def activate(self, profile_id: str) -> UpdateOutcome:
        """Write the profile's config to git and make it the only active profile.

        The git config is updated first; profile state is only persisted once
        that succeeded.
        """
        profile = self.get(profile_id)
        config_text = profile.config_text or render_config(profile)
        outcome = update_git_config(
            config_text, self.settings.to_policy(), path=self.git_config_path
        )
        now = self._clock()
        for candidate in self.profiles:
            candidate.is_active = candidate.id == profile_id
            if candidate.is_active:
                candidate.last_used = now
        self.store.save_profiles(self.profiles)
        logger.info("Activated profile %s (%s)", profile_id, outcome.status.value)
        return outcome
