"""File system storage for keychain representations and checksums."""

import os
from pathlib import Path

import structlog

from ..exceptions import StateNotFoundError, StorageError
from ..security import ensure_secure_directory, write_secure_text
from .base import ChecksumStore, StateStore, validate_name

logger = structlog.get_logger(__name__)


class _FileMap:
    """One UTF-8 file per name inside a private directory."""

    def __init__(self, root: Path, suffix: str):
        self.suffix = suffix
        try:
            self.root = ensure_secure_directory(Path(root))
        except OSError as e:
            raise StorageError(f"Failed to create storage directory: {e}") from e

    def path(self, name: str) -> Path:
        return self.root / f"{validate_name(name)}{self.suffix}"

    def write(self, name: str, text: str) -> None:
        path = self.path(name)
        try:
            write_secure_text(path, text)
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}") from e

    def read(self, name: str) -> str:
        path = self.path(name)
        try:
            # newline="" keeps the text byte-for-byte as written
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError:
            raise StateNotFoundError(f"Nothing stored for {name!r}") from None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {path.name}: {e}") from e

    def delete(self, name: str) -> bool:
        try:
            os.unlink(self.path(name))
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {name!r}: {e}") from e
        return True

    def names(self) -> list[str]:
        return sorted(
            p.name[: -len(self.suffix)]
            for p in self.root.glob(f"*{self.suffix}")
            if p.is_file() and not p.name.startswith(".")
        )


class FileStateStore(StateStore):
    """Stores each representation as ``<root>/<name>.json``.

    The directory is created with mode 0700 and files are written
    atomically with mode 0600.
    """

    def __init__(self, root: Path):
        self._files = _FileMap(root, ".json")

    @property
    def root(self) -> Path:
        return self._files.root

    def write_state(self, name: str, representation: str) -> None:
        self._files.write(name, representation)
        logger.info("state_written", vault=name, size=len(representation))

    def read_state(self, name: str) -> str:
        return self._files.read(name)

    def delete_state(self, name: str) -> bool:
        deleted = self._files.delete(name)
        if deleted:
            logger.info("state_deleted", vault=name)
        return deleted

    def list_states(self) -> list[str]:
        return self._files.names()


class FileChecksumStore(ChecksumStore):
    """Stores checksums as ``<root>/<name>.sum``.

    Only meaningful when ``root`` lives somewhere an attacker who can write
    the state directory cannot, such as a separately mounted volume.
    """

    def __init__(self, root: Path):
        self._files = _FileMap(root, ".sum")

    @property
    def root(self) -> Path:
        return self._files.root

    def put_checksum(self, name: str, checksum: str) -> None:
        self._files.write(name, checksum)

    def get_checksum(self, name: str) -> str:
        return self._files.read(name)

    def delete_checksum(self, name: str) -> bool:
        return self._files.delete(name)
