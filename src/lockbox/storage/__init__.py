"""Persistence backends for serialized keychains."""

from typing import Optional

import structlog

from ..config import LockboxSettings
from ..exceptions import StateNotFoundError, StorageError
from .base import ChecksumStore, StateStore, validate_name
from .files import FileChecksumStore, FileStateStore
from .memory import MemoryChecksumStore, MemoryStateStore
from .os_keyring import KeyringChecksumStore

logger = structlog.get_logger(__name__)


def get_state_store(settings: Optional[LockboxSettings] = None) -> StateStore:
    """Get the representation store for the configured state directory."""
    settings = settings or LockboxSettings.from_env()
    return FileStateStore(settings.state_dir)


def get_checksum_store(settings: Optional[LockboxSettings] = None) -> ChecksumStore:
    """Get the checksum store selected by ``checksum_backend``.

    Args:
        settings: Optional settings; read from the environment if None.

    Returns:
        ChecksumStore: Backend instance.

    Raises:
        ValueError: If the backend name is unknown.
    """
    settings = settings or LockboxSettings.from_env()
    backend = settings.checksum_backend
    if backend == "keyring":
        return KeyringChecksumStore(settings.keyring_service)
    elif backend == "file":
        if settings.checksum_dir is None:
            # Same tree as the vault files, so it cannot detect a rollback of both
            logger.warning(
                "checksum_dir_defaulted",
                checksum_dir=str(settings.resolved_checksum_dir),
                hint="set LOCKBOX_CHECKSUM_DIR outside the state directory",
            )
        return FileChecksumStore(settings.resolved_checksum_dir)
    elif backend == "memory":
        return MemoryChecksumStore()
    else:
        raise ValueError(f"Unsupported checksum backend: {backend}")


__all__ = [
    "StateStore",
    "ChecksumStore",
    "FileStateStore",
    "FileChecksumStore",
    "KeyringChecksumStore",
    "MemoryStateStore",
    "MemoryChecksumStore",
    "StorageError",
    "StateNotFoundError",
    "get_state_store",
    "get_checksum_store",
    "validate_name",
]
