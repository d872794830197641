"""Handling of sensitive byte buffers."""

import hmac


def secure_zero_memory(data: bytearray) -> None:
    """Overwrite a mutable buffer with zeros in place.

    Args:
        data: The buffer to clear. Immutable ``bytes`` cannot be cleared and
            are rejected.

    Raises:
        TypeError: If ``data`` is not a writable buffer.
    """
    if isinstance(data, bytes):
        raise TypeError("Cannot zero an immutable bytes object")
    view = memoryview(data).cast("B")
    if view.readonly:
        raise TypeError("Cannot zero a read-only buffer")
    view[:] = b"\x00" * len(view)
    view.release()


def compare_bytes(a: bytes, b: bytes) -> bool:
    """Compare two byte strings in constant time.

    Args:
        a: First byte string.
        b: Second byte string.

    Returns:
        True if the strings are equal, False otherwise.
    """
    return hmac.compare_digest(bytes(a), bytes(b))


def compare_text(a: str, b: str) -> bool:
    """Constant-time comparison for ASCII tag text."""
    return compare_bytes(a.encode("utf-8"), b.encode("utf-8"))
