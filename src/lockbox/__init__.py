"""
Lockbox: local-first encrypted password keychain.

A keychain derives its key from a master password, stores domain to
password records under AES-256-GCM with per-record HMAC tags, and
serializes to a JSON representation plus a checksum that must be kept
somewhere the representation's attacker cannot reach.
"""

__version__ = "1.0.0"

from .exceptions import (
    AuthenticationError,
    CryptoError,
    DecryptionError,
    EncryptionError,
    IntegrityError,
    KeychainClosedError,
    KeychainError,
    KeyDerivationError,
    LockboxError,
    MalformedRepresentationError,
    ServiceError,
    StateNotFoundError,
    StorageError,
    VaultExistsError,
)
from .keychain import DumpResult, Keychain
from .service import VaultService

__all__ = [
    "Keychain",
    "DumpResult",
    "VaultService",
    # Errors
    "LockboxError",
    "CryptoError",
    "KeyDerivationError",
    "EncryptionError",
    "DecryptionError",
    "IntegrityError",
    "KeychainError",
    "MalformedRepresentationError",
    "KeychainClosedError",
    "StorageError",
    "StateNotFoundError",
    "ServiceError",
    "VaultExistsError",
    "AuthenticationError",
]
