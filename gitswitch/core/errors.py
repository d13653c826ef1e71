"""Exception hierarchy shared by the cipher store, the safe writer and the
profile layer. Every error carries a descriptive message and is chained to
the library exception that caused it."""

from __future__ import annotations


class GitSwitchError(Exception):
    """Base class for all errors raised by this package."""


class IoError(GitSwitchError):
    """A filesystem read, write, create or copy failed."""


class EncodingError(GitSwitchError):
    """Base64 or UTF-8 conversion failed."""


class FormatError(GitSwitchError):
    """Structured text (envelope JSON, settings, profiles) is malformed."""


class CryptoError(GitSwitchError):
    """AEAD encryption, decryption or authentication failed."""


class BackupError(GitSwitchError):
    """Creating the backup directory or copying the backup failed."""


class LockError(GitSwitchError):
    """The shared key lock could not be acquired."""


class ProfileError(GitSwitchError):
    """A profile lookup or mutation was rejected."""
