"""Master password key derivation."""

from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
import structlog

from ..exceptions import KeyDerivationError, KeychainClosedError
from .encoding import get_random_bytes, string_to_bytes
from .memory import secure_zero_memory

logger = structlog.get_logger(__name__)

PBKDF2_ITERATIONS = 100_000
MIN_ITERATIONS = 100_000
SALT_LENGTH = 16
KEY_LENGTH = 32

# HKDF info strings keep the cipher and tag keys independent
ENCRYPTION_INFO = b"lockbox/record-encryption/v1"
TAGGING_INFO = b"lockbox/record-tag/v1"


def generate_salt(length: int = SALT_LENGTH) -> bytes:
    """Generate a fresh random salt."""
    return get_random_bytes(length)


def _expand(master: bytes, info: bytes) -> bytearray:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=None,
        info=info,
    )
    return bytearray(hkdf.derive(master))


class MasterSecret:
    """Key material derived from the master password.

    Holds two independent 256-bit subkeys, one for AES-GCM and one for
    HMAC tags. The buffers are zeroed by :meth:`clear`, which also runs when
    the object is garbage collected.
    """

    __slots__ = ("_encryption_key", "_tagging_key", "_cleared")

    def __init__(self, master: bytes):
        if len(master) != KEY_LENGTH:
            raise KeyDerivationError(
                f"Master secret must be {KEY_LENGTH} bytes, got {len(master)}"
            )
        self._encryption_key = _expand(master, ENCRYPTION_INFO)
        self._tagging_key = _expand(master, TAGGING_INFO)
        self._cleared = False

    @property
    def encryption_key(self) -> bytes:
        """AES-256-GCM key."""
        self._check()
        return bytes(self._encryption_key)

    @property
    def tagging_key(self) -> bytes:
        """HMAC-SHA256 key."""
        self._check()
        return bytes(self._tagging_key)

    @property
    def cleared(self) -> bool:
        return self._cleared

    def _check(self) -> None:
        if self._cleared:
            raise KeychainClosedError("Master secret has been cleared")

    def clear(self) -> None:
        """Zero the key buffers."""
        if not self._cleared:
            secure_zero_memory(self._encryption_key)
            secure_zero_memory(self._tagging_key)
            self._cleared = True
            logger.debug("cleared_master_secret")

    def __del__(self) -> None:
        # Partially constructed instances have no buffers to clear
        if getattr(self, "_cleared", True) is False:
            self.clear()

    def __repr__(self) -> str:
        state = "cleared" if self._cleared else "active"
        return f"<MasterSecret {state}>"


def derive_key(
    password: str,
    salt: bytes,
    iterations: Optional[int] = None,
) -> MasterSecret:
    """Derive the master secret from a password using PBKDF2-HMAC-SHA256.

    The same password, salt and iteration count always produce the same
    secret. A wrong password is therefore only noticed later, when record
    tags or ciphertexts fail to verify.

    Args:
        password: The master password.
        salt: Random salt stored alongside the keychain.
        iterations: PBKDF2 iteration count (default: 100,000).

    Returns:
        The derived MasterSecret.

    Raises:
        KeyDerivationError: If inputs are malformed or derivation fails.
    """
    if iterations is None:
        iterations = PBKDF2_ITERATIONS
    if not isinstance(password, str):
        raise KeyDerivationError(
            f"Password must be text, got {type(password).__name__}"
        )
    if not isinstance(salt, (bytes, bytearray)) or len(salt) == 0:
        raise KeyDerivationError("Salt must be a non-empty byte sequence")
    if isinstance(iterations, bool) or not isinstance(iterations, int):
        raise KeyDerivationError("Iteration count must be an integer")
    if iterations < MIN_ITERATIONS:
        raise KeyDerivationError(
            f"Iteration count {iterations} is below the minimum of {MIN_ITERATIONS}"
        )

    master = None
    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=bytes(salt),
            iterations=iterations,
        )
        master = bytearray(kdf.derive(string_to_bytes(password)))
        secret = MasterSecret(bytes(master))
    except (UnsupportedAlgorithm, ValueError, TypeError) as e:
        raise KeyDerivationError(f"Failed to derive key: {e}") from e
    finally:
        if master is not None:
            secure_zero_memory(master)

    logger.debug(
        "derived_key",
        method="pbkdf2-sha256",
        iterations=iterations,
        salt_size=len(salt),
    )
    return secret
