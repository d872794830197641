"""Keychain store and its serialized form."""

from ..exceptions import KeychainClosedError, KeychainError, MalformedRepresentationError
from .models import DumpResult, EncryptedData, Record, SerializedState
from .store import CANARY_ID, Keychain, domain_identifier

__all__ = [
    "Keychain",
    "domain_identifier",
    "CANARY_ID",
    "DumpResult",
    "EncryptedData",
    "Record",
    "SerializedState",
    "KeychainError",
    "KeychainClosedError",
    "MalformedRepresentationError",
]
