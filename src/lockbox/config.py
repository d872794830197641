"""
Lockbox configuration.

Reads settings from environment variables:
    LOCKBOX_STATE_DIR = <directory holding vault representations>
    LOCKBOX_CHECKSUM_BACKEND = keyring | file | memory
    LOCKBOX_CHECKSUM_DIR = <directory for the file checksum backend>
    LOCKBOX_KEYRING_SERVICE = <keyring service name>
    LOCKBOX_PBKDF2_ITERATIONS = <integer, at least 100000>
    LOCKBOX_LOG_LEVEL = DEBUG | INFO | WARNING | ERROR
    LOCKBOX_LOG_DIR = <directory for the rotating log file>
"""

import os
import platform
from pathlib import Path
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from .crypto.keys import MIN_ITERATIONS, PBKDF2_ITERATIONS

ENV_VARS = {
    "state_dir": "LOCKBOX_STATE_DIR",
    "checksum_backend": "LOCKBOX_CHECKSUM_BACKEND",
    "checksum_dir": "LOCKBOX_CHECKSUM_DIR",
    "keyring_service": "LOCKBOX_KEYRING_SERVICE",
    "iterations": "LOCKBOX_PBKDF2_ITERATIONS",
    "log_level": "LOCKBOX_LOG_LEVEL",
    "log_dir": "LOCKBOX_LOG_DIR",
}
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def default_state_dir() -> Path:
    """Get platform-specific default directory for vault files."""
    system = platform.system().lower()
    if system == "windows":
        return Path.home() / "AppData/Local/Lockbox"
    elif system == "darwin":
        return Path.home() / "Library/Application Support/Lockbox"
    else:  # Linux and others
        return Path.home() / ".local/share/lockbox"


class LockboxSettings(BaseModel):
    """Validated lockbox settings."""

    state_dir: Path = Field(default_factory=default_state_dir)
    checksum_backend: Literal["keyring", "file", "memory"] = "keyring"
    checksum_dir: Optional[Path] = None
    keyring_service: str = Field(default="lockbox", min_length=1)
    iterations: int = Field(default=PBKDF2_ITERATIONS, ge=MIN_ITERATIONS)
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @property
    def resolved_checksum_dir(self) -> Path:
        """Directory for the file checksum backend."""
        return self.checksum_dir or self.state_dir / "checksums"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LockboxSettings":
        """Create settings from ``LOCKBOX_*`` environment variables.

        Unset variables fall back to the field defaults.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Raises:
            pydantic.ValidationError: If a value is invalid.
        """
        if environ is None:
            environ = os.environ
        values = {
            field: environ[name]
            for field, name in ENV_VARS.items()
            if environ.get(name)
        }
        return cls(**values)
