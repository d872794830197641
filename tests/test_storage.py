"""Tests for state and checksum storage backends."""

import os
import platform
from pathlib import Path
from unittest.mock import patch

import pytest
from keyring.errors import KeyringError, PasswordDeleteError
from structlog.testing import capture_logs

from lockbox.config import LockboxSettings
from lockbox.storage import (
    ChecksumStore,
    FileChecksumStore,
    FileStateStore,
    KeyringChecksumStore,
    MemoryChecksumStore,
    MemoryStateStore,
    StateNotFoundError,
    StateStore,
    StorageError,
    get_checksum_store,
    get_state_store,
    validate_name,
)

REPRESENTATION = '{"kvs":{},"salt":"c2FsdHNhbHRzYWx0c2FsdA=="}'


@pytest.fixture(params=["file", "memory"])
def state_store(request, tmp_path) -> StateStore:
    """Each state store implementation."""
    if request.param == "file":
        return FileStateStore(tmp_path / "states")
    return MemoryStateStore()


@pytest.fixture(params=["file", "memory"])
def checksum_store(request, tmp_path) -> ChecksumStore:
    """Each local checksum store implementation."""
    if request.param == "file":
        return FileChecksumStore(tmp_path / "checksums")
    return MemoryChecksumStore()


@pytest.mark.parametrize("name", ["personal", "work-2024", "a.b_c", "X"])
def test_validate_name_accepts(name):
    """Test valid vault names."""
    assert validate_name(name) == name


@pytest.mark.parametrize(
    "name", ["", ".hidden", "../escape", "a/b", "a b", "x" * 129, None, "naïve"]
)
def test_validate_name_rejects(name):
    """Test invalid vault names."""
    with pytest.raises(StorageError):
        validate_name(name)


def test_write_and_read_state(state_store: StateStore):
    """Test storing and retrieving a representation."""
    state_store.write_state("personal", REPRESENTATION)
    assert state_store.read_state("personal") == REPRESENTATION
    assert state_store.exists("personal")


def test_state_is_returned_exactly(state_store: StateStore):
    """Test that line endings and trailing whitespace survive."""
    text = REPRESENTATION + "\r\n  "
    state_store.write_state("personal", text)
    assert state_store.read_state("personal") == text


def test_overwrite_state(state_store: StateStore):
    """Test replacing a representation."""
    state_store.write_state("personal", "first")
    state_store.write_state("personal", "second")
    assert state_store.read_state("personal") == "second"


def test_state_not_found(state_store: StateStore):
    """Test reading a missing representation."""
    with pytest.raises(StateNotFoundError):
        state_store.read_state("missing")
    assert not state_store.exists("missing")


def test_delete_state(state_store: StateStore):
    """Test deleting a representation."""
    state_store.write_state("personal", REPRESENTATION)
    assert state_store.delete_state("personal") is True
    assert state_store.delete_state("personal") is False
    with pytest.raises(StateNotFoundError):
        state_store.read_state("personal")


def test_list_states(state_store: StateStore):
    """Test listing vault names."""
    assert state_store.list_states() == []
    for name in ("work", "personal", "archive"):
        state_store.write_state(name, REPRESENTATION)
    assert state_store.list_states() == ["archive", "personal", "work"]


def test_state_store_rejects_bad_names(state_store: StateStore):
    """Test that path-like names never reach the backend."""
    with pytest.raises(StorageError):
        state_store.write_state("../escape", REPRESENTATION)


def test_checksum_round_trip(checksum_store: ChecksumStore):
    """Test storing, reading and deleting checksums."""
    checksum_store.put_checksum("personal", "abc=")
    assert checksum_store.get_checksum("personal") == "abc="

    checksum_store.put_checksum("personal", "def=")
    assert checksum_store.get_checksum("personal") == "def="

    assert checksum_store.delete_checksum("personal") is True
    assert checksum_store.delete_checksum("personal") is False
    with pytest.raises(StateNotFoundError):
        checksum_store.get_checksum("personal")


def test_file_store_permissions(tmp_path: Path):
    """Test secure file permissions."""
    if platform.system() == "Windows":
        pytest.skip("Permission tests not applicable on Windows")

    store = FileStateStore(tmp_path / "states")
    store.write_state("personal", REPRESENTATION)

    assert oct(os.stat(store.root).st_mode).endswith("700")
    assert oct(os.stat(store.root / "personal.json").st_mode).endswith("600")


def test_file_store_leaves_no_temp_files(tmp_path: Path):
    """Test that atomic writes clean up after themselves."""
    store = FileStateStore(tmp_path / "states")
    store.write_state("personal", "first")
    store.write_state("personal", "second")
    assert sorted(p.name for p in store.root.iterdir()) == ["personal.json"]


def test_file_stores_keep_separate_files(tmp_path: Path):
    """Test that checksum files never show up as vaults."""
    states = FileStateStore(tmp_path)
    checksums = FileChecksumStore(tmp_path)
    states.write_state("personal", REPRESENTATION)
    checksums.put_checksum("personal", "abc=")

    assert states.list_states() == ["personal"]
    assert states.read_state("personal") == REPRESENTATION
    assert checksums.get_checksum("personal") == "abc="


class TestKeyringChecksumStore:
    """Tests for the keyring-backed checksum store."""

    @pytest.fixture
    def mock_keyring(self):
        """Replace the keyring module with a dictionary."""
        entries = {}

        def set_password(service, user, secret):
            entries[(service, user)] = secret

        def get_password(service, user):
            return entries.get((service, user))

        def delete_password(service, user):
            if entries.pop((service, user), None) is None:
                raise PasswordDeleteError("not found")

        with patch("lockbox.storage.os_keyring.keyring") as mock:
            mock.set_password.side_effect = set_password
            mock.get_password.side_effect = get_password
            mock.delete_password.side_effect = delete_password
            mock.entries = entries
            yield mock

    def test_round_trip(self, mock_keyring):
        """Test storing and reading a checksum."""
        store = KeyringChecksumStore("lockbox-test")
        store.put_checksum("personal", "abc=")

        assert mock_keyring.entries == {("lockbox-test", "personal"): "abc="}
        assert store.get_checksum("personal") == "abc="

    def test_missing(self, mock_keyring):
        """Test reading a missing checksum."""
        with pytest.raises(StateNotFoundError):
            KeyringChecksumStore().get_checksum("personal")

    def test_delete(self, mock_keyring):
        """Test deleting a checksum."""
        store = KeyringChecksumStore()
        store.put_checksum("personal", "abc=")
        assert store.delete_checksum("personal") is True
        assert store.delete_checksum("personal") is False

    def test_backend_failure(self, mock_keyring):
        """Test that keyring errors become storage errors."""
        mock_keyring.set_password.side_effect = KeyringError("locked")
        mock_keyring.get_password.side_effect = KeyringError("locked")
        store = KeyringChecksumStore()

        with pytest.raises(StorageError):
            store.put_checksum("personal", "abc=")
        with pytest.raises(StorageError):
            store.get_checksum("personal")


def test_store_factories(tmp_path: Path):
    """Test backend selection from settings."""
    settings = LockboxSettings(state_dir=tmp_path, checksum_backend="file")
    assert isinstance(get_state_store(settings), FileStateStore)

    checksums = get_checksum_store(settings)
    assert isinstance(checksums, FileChecksumStore)
    assert checksums.root == (tmp_path / "checksums").resolve()

    memory = settings.model_copy(update={"checksum_backend": "memory"})
    assert isinstance(get_checksum_store(memory), MemoryChecksumStore)

    keyring_settings = settings.model_copy(update={"checksum_backend": "keyring"})
    store = get_checksum_store(keyring_settings)
    assert isinstance(store, KeyringChecksumStore)
    assert store.service == "lockbox"


def test_file_checksum_dir_fallback_warns(tmp_path: Path):
    """Test that keeping checksums beside the vaults is flagged."""
    settings = LockboxSettings(state_dir=tmp_path, checksum_backend="file")
    with capture_logs() as logs:
        get_checksum_store(settings)
    warnings = [e for e in logs if e["event"] == "checksum_dir_defaulted"]
    assert len(warnings) == 1
    assert warnings[0]["log_level"] == "warning"

    separate = settings.model_copy(update={"checksum_dir": tmp_path / "elsewhere"})
    with capture_logs() as logs:
        store = get_checksum_store(separate)
    assert store.root == (tmp_path / "elsewhere").resolve()
    assert not [e for e in logs if e["event"] == "checksum_dir_defaulted"]
