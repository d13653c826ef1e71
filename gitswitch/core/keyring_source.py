"""Key material storage helper using python-keyring."""

from __future__ import annotations

import os

import keyring
from keyring.errors import KeyringError, NoKeyringError, PasswordDeleteError

from ..utils.logging import get_logger

LOGGER = get_logger("keyring")
SERVICE_NAME = "git-profile-switcher"
ACCOUNT_NAME = "encryption-key"
KEY_ENV_VAR = "GITSWITCH_KEY"


class KeyringKeySource:
    """Error tolerant access to the key material kept in the OS keyring."""

    def __init__(self, service: str = SERVICE_NAME, account: str = ACCOUNT_NAME) -> None:
        self.service = service
        self.account = account
        self._available = True
        try:
            keyring.get_keyring()
        except Exception as exc:
            LOGGER.warning("Keyring backend unavailable: %s", exc)
            self._available = False

    def is_available(self) -> bool:
        return self._available

    def load(self) -> str | None:
        """Return key material from ``GITSWITCH_KEY`` or the keyring, if any."""
        from_env = os.environ.get(KEY_ENV_VAR)
        if from_env:
            return from_env
        if not self._available:
            return None
        try:
            return keyring.get_password(self.service, self.account)
        except (NoKeyringError, KeyringError) as exc:
            LOGGER.error("Failed to read key material: %s", exc)
            return None

    def save(self, material: str) -> bool:
        if not self._available:
            return False
        try:
            keyring.set_password(self.service, self.account, material)
            return True
        except (NoKeyringError, KeyringError) as exc:
            LOGGER.error("Failed to save key material: %s", exc)
            return False

    def delete(self) -> bool:
        if not self._available:
            return False
        try:
            keyring.delete_password(self.service, self.account)
            return True
        except (PasswordDeleteError, NoKeyringError, KeyringError) as exc:
            LOGGER.error("Failed to delete key material: %s", exc)
            return False
