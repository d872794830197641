"""Tests for settings loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from lockbox.config import LockboxSettings, default_state_dir


def test_defaults():
    """Test default settings."""
    settings = LockboxSettings.from_env({})
    assert settings.state_dir == default_state_dir()
    assert settings.checksum_backend == "keyring"
    assert settings.keyring_service == "lockbox"
    assert settings.iterations == 100_000
    assert settings.log_level == "INFO"
    assert settings.log_dir is None
    assert settings.resolved_checksum_dir == default_state_dir() / "checksums"


def test_from_env(tmp_path: Path):
    """Test reading every variable."""
    env = {
        "LOCKBOX_STATE_DIR": str(tmp_path / "state"),
        "LOCKBOX_CHECKSUM_BACKEND": "file",
        "LOCKBOX_CHECKSUM_DIR": str(tmp_path / "sums"),
        "LOCKBOX_KEYRING_SERVICE": "lockbox-test",
        "LOCKBOX_PBKDF2_ITERATIONS": "250000",
        "LOCKBOX_LOG_LEVEL": "debug",
        "LOCKBOX_LOG_DIR": str(tmp_path / "logs"),
    }
    settings = LockboxSettings.from_env(env)
    assert settings.state_dir == tmp_path / "state"
    assert settings.checksum_backend == "file"
    assert settings.resolved_checksum_dir == tmp_path / "sums"
    assert settings.keyring_service == "lockbox-test"
    assert settings.iterations == 250_000
    assert settings.log_level == "DEBUG"
    assert settings.log_dir == tmp_path / "logs"


def test_from_os_environ(monkeypatch, tmp_path: Path):
    """Test that os.environ is read by default."""
    monkeypatch.setenv("LOCKBOX_STATE_DIR", str(tmp_path))
    assert LockboxSettings.from_env().state_dir == tmp_path


def test_empty_values_use_defaults():
    """Test that empty variables are ignored."""
    settings = LockboxSettings.from_env({"LOCKBOX_LOG_LEVEL": ""})
    assert settings.log_level == "INFO"


@pytest.mark.parametrize(
    "env",
    [
        {"LOCKBOX_PBKDF2_ITERATIONS": "1000"},
        {"LOCKBOX_PBKDF2_ITERATIONS": "many"},
        {"LOCKBOX_CHECKSUM_BACKEND": "cloud"},
        {"LOCKBOX_LOG_LEVEL": "LOUD"},
    ],
)
def test_invalid_values(env):
    """Test validation of environment values."""
    with pytest.raises(ValidationError):
        LockboxSettings.from_env(env)
