"""
Platform-aware helpers for creating private files and directories.

Platform-specific security notes:
- POSIX: Uses file mode bits (0600 for files, 0700 for dirs)
- Windows: Mode bits are mostly ignored; files inherit the ACL of the
  per-user profile directory, and a warning is logged once per path
"""

import logging
import os
import sys
import tempfile
from pathlib import Path

# Configure logging
logger = logging.getLogger(__name__)

FILE_MODE = 0o600
DIR_MODE = 0o700


def ensure_secure_directory(path: Path) -> Path:
    """
    Create a directory readable only by the current user.

    Args:
        path: Directory to create

    Returns:
        The resolved directory path

    Raises:
        OSError: If the directory cannot be created
    """
    path = Path(path)
    os.makedirs(path, mode=DIR_MODE, exist_ok=True)
    if sys.platform != "win32":
        os.chmod(path, DIR_MODE)
    return path.resolve()


def write_secure_text(path: Path, text: str) -> None:
    """
    Atomically replace ``path`` with ``text`` using owner-only permissions.

    The data is written to a temporary file in the same directory, flushed
    to disk and renamed over the target, so readers never see a partial file.

    Args:
        path: Destination file
        text: Contents to write (UTF-8)

    Raises:
        OSError: If writing or renaming fails
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        ensure_secure_permissions(Path(tmp_name))
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def ensure_secure_permissions(path: Path) -> None:
    """
    Restrict an existing file to its owner, logging instead of failing.

    Args:
        path: File to restrict
    """
    if sys.platform == "win32":
        logger.warning("Owner-only permissions are not enforced on Windows: %s", path)
        return
    try:
        os.chmod(path, FILE_MODE)
    except (OSError, PermissionError) as e:
        logger.warning(f"Could not set secure permissions: {e}")
