"""In-process storage backends."""

from ..exceptions import StateNotFoundError
from .base import ChecksumStore, StateStore, validate_name


class MemoryStateStore(StateStore):
    """Keeps representations in a dictionary for the life of the process."""

    def __init__(self):
        self._states: dict[str, str] = {}

    def write_state(self, name: str, representation: str) -> None:
        self._states[validate_name(name)] = representation

    def read_state(self, name: str) -> str:
        try:
            return self._states[validate_name(name)]
        except KeyError:
            raise StateNotFoundError(f"No state stored for {name!r}") from None

    def delete_state(self, name: str) -> bool:
        return self._states.pop(validate_name(name), None) is not None

    def list_states(self) -> list[str]:
        return sorted(self._states)


class MemoryChecksumStore(ChecksumStore):
    """Keeps checksums in a dictionary for the life of the process."""

    def __init__(self):
        self._checksums: dict[str, str] = {}

    def put_checksum(self, name: str, checksum: str) -> None:
        self._checksums[validate_name(name)] = checksum

    def get_checksum(self, name: str) -> str:
        try:
            return self._checksums[validate_name(name)]
        except KeyError:
            raise StateNotFoundError(f"No checksum stored for {name!r}") from None

    def delete_checksum(self, name: str) -> bool:
        return self._checksums.pop(validate_name(name), None) is not None
