"""Base interfaces for persisting serialized keychains."""

import re
from abc import ABC, abstractmethod

from ..exceptions import StateNotFoundError, StorageError

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")


def validate_name(name: str) -> str:
    """Check that a vault name is safe to use as a file name or keyring user.

    Raises:
        StorageError: If the name is empty, too long or has other characters
            than letters, digits, ``_``, ``.`` and ``-``.
    """
    if not isinstance(name, str) or not _NAME_PATTERN.fullmatch(name):
        raise StorageError(f"Invalid vault name: {name!r}")
    return name


class StateStore(ABC):
    """Storage backend for keychain representations.

    The representation is opaque text. Backends must return exactly the
    text they were given, since the checksum covers every byte of it.
    """

    @abstractmethod
    def write_state(self, name: str, representation: str) -> None:
        """Store or replace the representation for a vault.

        Raises:
            StorageError: If storage fails.
        """

    @abstractmethod
    def read_state(self, name: str) -> str:
        """Return the stored representation.

        Raises:
            StateNotFoundError: If no state exists under ``name``.
            StorageError: If retrieval fails.
        """

    @abstractmethod
    def delete_state(self, name: str) -> bool:
        """Delete a representation.

        Returns:
            True if something was deleted.
        """

    @abstractmethod
    def list_states(self) -> list[str]:
        """List stored vault names in sorted order."""

    def exists(self, name: str) -> bool:
        try:
            self.read_state(name)
        except StateNotFoundError:
            return False
        return True


class ChecksumStore(ABC):
    """Trusted storage for the checksum over each representation.

    Rollback protection depends on this store being out of reach of
    whoever can rewrite the representation.
    """

    @abstractmethod
    def put_checksum(self, name: str, checksum: str) -> None:
        """Store or replace a checksum.

        Raises:
            StorageError: If storage fails.
        """

    @abstractmethod
    def get_checksum(self, name: str) -> str:
        """Return a stored checksum.

        Raises:
            StateNotFoundError: If no checksum exists under ``name``.
            StorageError: If retrieval fails.
        """

    @abstractmethod
    def delete_checksum(self, name: str) -> bool:
        """Delete a checksum.

        Returns:
            True if something was deleted.
        """
