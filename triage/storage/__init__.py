"""
Local persistence.

Named collections encoded through a pluggable cipher and saved one blob
per key.
"""

from triage.storage.codec import Base64Codec, Cipher, FernetCipher, cipher_for
from triage.storage.store import SCHEMA_VERSION, PersistentStore, StoreKey

__all__ = [
    "Base64Codec",
    "Cipher",
    "FernetCipher",
    "PersistentStore",
    "SCHEMA_VERSION",
    "StoreKey",
    "cipher_for",
]
