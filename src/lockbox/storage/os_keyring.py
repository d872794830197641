"""Checksum storage in the operating system credential store."""

import keyring
from keyring.errors import KeyringError, PasswordDeleteError
import structlog

from ..exceptions import StateNotFoundError, StorageError
from .base import ChecksumStore, validate_name

logger = structlog.get_logger(__name__)


class KeyringChecksumStore(ChecksumStore):
    """Checksum store backed by ``keyring``.

    Uses Windows Credential Manager, macOS Keychain or the Secret Service
    on Linux, whichever ``keyring`` selects. The keyring user name is the
    vault name.
    """

    def __init__(self, service: str = "lockbox"):
        self.service = service

    def put_checksum(self, name: str, checksum: str) -> None:
        try:
            keyring.set_password(self.service, validate_name(name), checksum)
        except KeyringError as e:
            raise StorageError(f"Failed to store checksum: {e}") from e
        logger.debug("checksum_stored", vault=name, service=self.service)

    def get_checksum(self, name: str) -> str:
        try:
            checksum = keyring.get_password(self.service, validate_name(name))
        except KeyringError as e:
            raise StorageError(f"Failed to retrieve checksum: {e}") from e
        if checksum is None:
            raise StateNotFoundError(f"No checksum stored for {name!r}")
        return checksum

    def delete_checksum(self, name: str) -> bool:
        try:
            keyring.delete_password(self.service, validate_name(name))
        except PasswordDeleteError:
            # Already deleted or doesn't exist
            return False
        except KeyringError as e:
            raise StorageError(f"Failed to delete checksum: {e}") from e
        return True
