"""Conversions between text, raw bytes and base64 transport text."""

import base64
import binascii
import os


class EncodingError(ValueError):
    """Raised when base64 text cannot be decoded."""


def string_to_bytes(text: str) -> bytes:
    """Encode text as UTF-8 bytes."""
    return text.encode("utf-8")


def bytes_to_string(data: bytes) -> str:
    """Decode UTF-8 bytes back into text.

    Raises:
        EncodingError: If the bytes are not valid UTF-8.
    """
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(f"Invalid UTF-8 data: {e}") from e


def encode_buffer(data: bytes) -> str:
    """Encode bytes as standard base64 text.

    The result is safe to use as a JSON value or a mapping key.
    """
    return base64.b64encode(bytes(data)).decode("ascii")


def decode_buffer(text: str) -> bytes:
    """Decode standard base64 text.

    Args:
        text: Base64 text produced by :func:`encode_buffer`.

    Returns:
        The decoded bytes.

    Raises:
        EncodingError: If the text is not strictly valid base64.
    """
    if not isinstance(text, str):
        raise EncodingError(f"Expected base64 text, got {type(text).__name__}")
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise EncodingError(f"Invalid base64 data: {e}") from e


def get_random_bytes(length: int) -> bytes:
    """Return ``length`` bytes from the OS CSPRNG."""
    if length <= 0:
        raise ValueError("length must be positive")
    return os.urandom(length)
