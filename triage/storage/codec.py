"""
Pluggable encoding of persisted blobs.

Base64Codec is a reversible encoding and provides NO confidentiality: any
process that can read the data directory can read every patient record.
It exists for compatibility with stores written by earlier versions.
FernetCipher is the real encryption option and is selected automatically
when a store passphrase is configured.
"""

import base64
import binascii
import logging
from typing import Protocol

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from triage.errors import DecodeError


logger = logging.getLogger(__name__)


class Cipher(Protocol):
    """Reversible transform applied to every persisted blob."""

    name: str

    def encode(self, data: bytes) -> bytes:
        ...

    def decode(self, blob: bytes) -> bytes:
        """Raise DecodeError when the blob cannot be decoded."""
        ...


class Base64Codec:
    """
    Plain base64 encoding. Not a security control.

    Logs a warning on construction so the gap stays visible in every
    deployment that relies on it.
    """

    name = "base64"

    def __init__(self, warn: bool = True):
        if warn:
            logger.warning(
                "Persisted data is base64-encoded, not encrypted. "
                "Configure a store passphrase to enable encryption."
            )

    def encode(self, data: bytes) -> bytes:
        return base64.b64encode(data)

    def decode(self, blob: bytes) -> bytes:
        try:
            return base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Invalid base64 blob: {e}") from e


class FernetCipher:
    """Authenticated symmetric encryption (Fernet) with a PBKDF2-derived key."""

    name = "fernet"

    def __init__(
        self,
        passphrase: str,
        salt: bytes = b"triage-assist-store",
        iterations: int = 200_000,
    ):
        if not passphrase:
            raise ValueError("FernetCipher requires a non-empty passphrase")

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=iterations,
        )
        key = base64.urlsafe_b64encode(kdf.derive(passphrase.encode()))
        self._fernet = Fernet(key)

    def encode(self, data: bytes) -> bytes:
        return self._fernet.encrypt(data)

    def decode(self, blob: bytes) -> bytes:
        try:
            return self._fernet.decrypt(blob)
        except InvalidToken as e:
            raise DecodeError("Blob could not be decrypted with the configured key") from e


def cipher_for(passphrase: str = "") -> Cipher:
    """Pick the cipher for a store: Fernet when a passphrase is set."""
    if passphrase:
        return FernetCipher(passphrase)
    return Base64Codec()
