"""Cryptographic primitives for the keychain."""

from ..exceptions import (
    DecryptionError,
    EncryptionError,
    IntegrityError,
    KeyDerivationError,
)
from .encoding import (
    EncodingError,
    bytes_to_string,
    decode_buffer,
    encode_buffer,
    get_random_bytes,
    string_to_bytes,
)
from .encryption import NONCE_LENGTH, EncryptedValue, decrypt, encrypt
from .integrity import digest, tag, verify_digest, verify_tag
from .keys import (
    PBKDF2_ITERATIONS,
    SALT_LENGTH,
    MasterSecret,
    derive_key,
    generate_salt,
)
from .memory import compare_bytes, compare_text, secure_zero_memory

__all__ = [
    # Encoding
    "string_to_bytes",
    "bytes_to_string",
    "encode_buffer",
    "decode_buffer",
    "get_random_bytes",
    "EncodingError",
    # Key derivation
    "derive_key",
    "generate_salt",
    "MasterSecret",
    "PBKDF2_ITERATIONS",
    "SALT_LENGTH",
    "KeyDerivationError",
    # Encryption
    "encrypt",
    "decrypt",
    "EncryptedValue",
    "NONCE_LENGTH",
    "EncryptionError",
    "DecryptionError",
    # Integrity
    "tag",
    "verify_tag",
    "digest",
    "verify_digest",
    "IntegrityError",
    # Memory
    "secure_zero_memory",
    "compare_bytes",
    "compare_text",
]
