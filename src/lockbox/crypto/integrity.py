"""Keyed integrity tags and keyless digests."""

from cryptography.hazmat.primitives import hashes, hmac
import structlog

from ..exceptions import IntegrityError
from .encoding import encode_buffer, string_to_bytes
from .keys import MasterSecret
from .memory import compare_text

logger = structlog.get_logger(__name__)


def tag(secret: MasterSecret, data: str) -> str:
    """Compute a base64 HMAC-SHA256 tag over text.

    Args:
        secret: The master secret supplying the tagging key.
        data: The text to authenticate.

    Returns:
        The tag as base64 text.
    """
    h = hmac.HMAC(secret.tagging_key, hashes.SHA256())
    h.update(string_to_bytes(data))
    return encode_buffer(h.finalize())


def verify_tag(secret: MasterSecret, data: str, expected: str) -> None:
    """Recompute the tag over ``data`` and compare it with ``expected``.

    Raises:
        IntegrityError: If the tags differ.
    """
    if not isinstance(expected, str) or not compare_text(tag(secret, data), expected):
        logger.warning("tag_mismatch")
        raise IntegrityError("Integrity tag verification failed")


def digest(data: str) -> str:
    """Keyless base64 SHA-256 digest of text.

    Used for domain identifiers and for the checksum over a serialized
    keychain.
    """
    h = hashes.Hash(hashes.SHA256())
    h.update(string_to_bytes(data))
    return encode_buffer(h.finalize())


def verify_digest(data: str, expected: str) -> None:
    """Compare the digest of ``data`` with a trusted value.

    Raises:
        IntegrityError: If the digests differ.
    """
    if not isinstance(expected, str) or not compare_text(digest(data), expected):
        logger.warning("checksum_mismatch")
        raise IntegrityError("Checksum verification failed")
