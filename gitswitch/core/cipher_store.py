"""Authenticated encryption of strings and files for at-rest secrets.

Payloads are sealed with AES-256-GCM under a single 32 byte key and
serialised as a small JSON envelope::

    {"nonce": "<base64, 12 bytes>", "ciphertext": "<base64, ciphertext + tag>"}

Both fields use standard base64 with padding. The nonce travels with the
ciphertext, so decryption needs nothing but the envelope and the live key.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Final, Iterator

from cryptography.exceptions import InternalError, InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..utils.logging import get_logger
from .errors import CryptoError, EncodingError, FormatError, IoError, LockError

logger = get_logger("cipher_store")

KEY_SIZE: Final[int] = 32
NONCE_SIZE: Final[int] = 12
DEFAULT_LOCK_TIMEOUT: Final[float] = 5.0


def derive_key(material: str) -> bytes:
    """Turn key material into exactly ``KEY_SIZE`` bytes.

    The UTF-8 bytes of ``material`` are truncated to the first 32 bytes or
    right-padded with NUL bytes. Truncation may split a multi-byte character,
    in which case :meth:`CipherStore.get_key` can no longer read it back.
    """
    try:
        raw = material.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingError(f"Key material is not encodable as UTF-8: {exc}") from exc
    return raw[:KEY_SIZE].ljust(KEY_SIZE, b"\x00")


class CipherStore:
    """Holds the live symmetric key and seals/opens envelopes with it.

    The key starts as 32 zero bytes and is replaced wholesale by
    :meth:`set_key`. Every access to it goes through an internal lock, so a
    replacement is never observed half-applied by a concurrent encrypt or
    decrypt.
    """

    def __init__(self, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout
        self._key: bytes = bytes(KEY_SIZE)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise LockError(
                f"Could not acquire the key lock within {self._lock_timeout:.1f}s"
            )
        try:
            yield
        finally:
            self._lock.release()

    def _current_key(self) -> bytes:
        with self._locked():
            return self._key

    # ------------------------------------------------------------------
    # Key management
    # ------------------------------------------------------------------

    def set_key(self, material: str) -> None:
        """Replace the live key. Envelopes sealed under the old key stop opening."""
        key = derive_key(material)
        with self._locked():
            self._key = key
        logger.info("Encryption key replaced")

    def get_key(self) -> str:
        """Return the raw key bytes read as UTF-8, NUL padding included."""
        key = self._current_key()
        try:
            return key.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(f"Key bytes are not valid UTF-8: {exc}") from exc

    # ------------------------------------------------------------------
    # Strings
    # ------------------------------------------------------------------

    def encrypt(self, plaintext: str) -> str:
        try:
            data = plaintext.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EncodingError(f"Plaintext is not encodable as UTF-8: {exc}") from exc

        key = self._current_key()
        nonce = os.urandom(NONCE_SIZE)
        try:
            ciphertext = AESGCM(key).encrypt(nonce, data, None)
        except (InternalError, OverflowError, ValueError) as exc:
            raise CryptoError(f"Encryption failed: {exc}") from exc

        envelope = {
            "nonce": base64.b64encode(nonce).decode("ascii"),
            "ciphertext": base64.b64encode(ciphertext).decode("ascii"),
        }
        return json.dumps(envelope)

    def decrypt(self, envelope_json: str) -> str:
        fields = _parse_envelope(envelope_json)
        nonce = _b64decode(fields["nonce"], "nonce")
        ciphertext = _b64decode(fields["ciphertext"], "ciphertext")
        if len(nonce) != NONCE_SIZE:
            raise FormatError(
                f"Envelope nonce must be {NONCE_SIZE} bytes, got {len(nonce)}"
            )

        key = self._current_key()
        try:
            plaintext = AESGCM(key).decrypt(nonce, ciphertext, None)
        except (InvalidTag, ValueError) as exc:
            # Wrong key, wrong nonce and tampered data all surface as InvalidTag.
            raise CryptoError("Decryption failed: envelope could not be authenticated") from exc

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(f"Decrypted data is not valid UTF-8: {exc}") from exc

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def write_encrypted_file(self, path: str | os.PathLike[str], content: str) -> None:
        """Encrypt ``content`` and write the envelope text to ``path``.

        This is a plain write; pair it with
        :class:`~gitswitch.core.safe_writer.SafeConfigWriter` when the
        previous file must survive a failed write.
        """
        envelope = self.encrypt(content)
        target = Path(path)
        try:
            target.write_text(envelope, encoding="utf-8")
        except OSError as exc:
            raise IoError(f"Failed to write encrypted file {target}: {exc}") from exc
        logger.debug("Wrote encrypted file %s", target)

    def read_encrypted_file(self, path: str | os.PathLike[str]) -> str:
        source = Path(path)
        try:
            envelope = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise IoError(f"Failed to read encrypted file {source}: {exc}") from exc
        return self.decrypt(envelope)


def _parse_envelope(envelope_json: str) -> Dict[str, str]:
    try:
        payload = json.loads(envelope_json)
    except (RecursionError, TypeError, ValueError) as exc:
        raise FormatError(f"Failed to parse encrypted data: {exc}") from exc
    if not isinstance(payload, dict):
        raise FormatError("Encrypted data must be a JSON object")
    for field in ("nonce", "ciphertext"):
        if not isinstance(payload.get(field), str):
            raise FormatError(f"Encrypted data is missing string field '{field}'")
    return payload


def _b64decode(value: str, field: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EncodingError(f"Failed to decode {field}: {exc}") from exc


cipher_store_singleton: CipherStore | None = None


def get_cipher_store() -> CipherStore:
    """Return the process-wide store shared by callers that do not inject one."""
    global cipher_store_singleton
    if cipher_store_singleton is None:
        cipher_store_singleton = CipherStore()
    return cipher_store_singleton
