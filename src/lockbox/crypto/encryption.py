"""Authenticated encryption of record values."""

import os
from typing import NamedTuple, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
import structlog

from ..exceptions import DecryptionError, EncryptionError
from .encoding import EncodingError, bytes_to_string, string_to_bytes
from .keys import MasterSecret

logger = structlog.get_logger(__name__)

NONCE_LENGTH = 12


class EncryptedValue(NamedTuple):
    """AES-GCM output: nonce plus ciphertext with the tag appended."""

    nonce: bytes
    ciphertext: bytes


def encrypt(
    secret: MasterSecret,
    plaintext: str,
    associated_data: Optional[bytes] = None,
) -> EncryptedValue:
    """Encrypt text using AES-256-GCM.

    A new 96-bit nonce is drawn from the OS CSPRNG on every call.

    Args:
        secret: The master secret.
        plaintext: The text to encrypt.
        associated_data: Optional data authenticated alongside the ciphertext.

    Returns:
        EncryptedValue of (nonce, ciphertext).

    Raises:
        EncryptionError: If encryption fails.
    """
    if not isinstance(plaintext, str):
        raise EncryptionError(
            f"Plaintext must be text, got {type(plaintext).__name__}"
        )
    try:
        nonce = os.urandom(NONCE_LENGTH)
        aesgcm = AESGCM(secret.encryption_key)
        data = string_to_bytes(plaintext)
        ciphertext = aesgcm.encrypt(nonce, data, associated_data)
    except (ValueError, TypeError, OverflowError) as e:
        raise EncryptionError(f"Failed to encrypt data: {e}") from e

    logger.debug(
        "encrypted_data",
        data_size=len(data),
        has_associated_data=associated_data is not None,
    )
    return EncryptedValue(nonce=nonce, ciphertext=ciphertext)


def decrypt(
    secret: MasterSecret,
    value: EncryptedValue,
    associated_data: Optional[bytes] = None,
) -> str:
    """Decrypt and authenticate an AES-256-GCM ciphertext.

    Args:
        secret: The master secret.
        value: The nonce and ciphertext produced by :func:`encrypt`.
        associated_data: The associated data passed at encryption time.

    Returns:
        The decrypted text.

    Raises:
        DecryptionError: If the tag does not verify (wrong key, corrupted
            ciphertext, wrong nonce or associated data) or the plaintext is
            not valid UTF-8.
    """
    nonce, ciphertext = value
    if len(nonce) != NONCE_LENGTH:
        raise DecryptionError(
            f"Nonce must be {NONCE_LENGTH} bytes, got {len(nonce)}"
        )
    try:
        aesgcm = AESGCM(secret.encryption_key)
        plaintext = aesgcm.decrypt(nonce, ciphertext, associated_data)
    except InvalidTag as e:
        logger.warning("decryption_failed", reason="invalid_tag")
        raise DecryptionError("Ciphertext failed authentication") from e
    except (ValueError, TypeError) as e:
        raise DecryptionError(f"Failed to decrypt data: {e}") from e

    try:
        return bytes_to_string(plaintext)
    except EncodingError as e:
        raise DecryptionError(str(e)) from e
