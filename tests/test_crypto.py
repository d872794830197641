"""Tests for cryptographic utilities."""

import base64

import pytest

from lockbox.crypto import (
    NONCE_LENGTH,
    SALT_LENGTH,
    DecryptionError,
    EncodingError,
    EncryptedValue,
    EncryptionError,
    IntegrityError,
    KeyDerivationError,
    bytes_to_string,
    compare_bytes,
    decode_buffer,
    decrypt,
    derive_key,
    digest,
    encode_buffer,
    encrypt,
    generate_salt,
    get_random_bytes,
    secure_zero_memory,
    string_to_bytes,
    tag,
    verify_digest,
    verify_tag,
)
from lockbox.exceptions import KeychainClosedError


@pytest.fixture(scope="module")
def salt():
    return generate_salt()


@pytest.fixture(scope="module")
def secret(salt):
    """Derive one secret for the module; PBKDF2 is deliberately slow."""
    return derive_key("test-password", salt)


@pytest.fixture(scope="module")
def other_secret(salt):
    return derive_key("other-password", salt)


def test_string_bytes_conversion():
    """Test UTF-8 conversion in both directions."""
    assert string_to_bytes("pässword") == "pässword".encode("utf-8")
    assert bytes_to_string(b"\xc3\xa9t\xc3\xa9") == "été"

    with pytest.raises(EncodingError):
        bytes_to_string(b"\xff\xfe")


def test_buffer_encoding():
    """Test base64 transport encoding."""
    data = bytes(range(256))
    encoded = encode_buffer(data)
    assert encoded == base64.b64encode(data).decode()
    assert decode_buffer(encoded) == data


@pytest.mark.parametrize("text", ["not base64!", "abc", "é", None])
def test_decode_buffer_rejects_invalid(text):
    """Test that malformed base64 is rejected."""
    with pytest.raises(EncodingError):
        decode_buffer(text)


def test_random_bytes():
    """Test random byte generation."""
    a = get_random_bytes(16)
    b = get_random_bytes(16)
    assert len(a) == 16
    assert a != b

    with pytest.raises(ValueError):
        get_random_bytes(0)


def test_derive_key_is_deterministic(salt, secret):
    """Test that the same password and salt reproduce the same key."""
    again = derive_key("test-password", salt)
    assert again.encryption_key == secret.encryption_key
    assert again.tagging_key == secret.tagging_key
    assert len(secret.encryption_key) == 32


def test_derive_key_depends_on_password_and_salt(salt, secret, other_secret):
    """Test that password and salt both change the key."""
    assert other_secret.encryption_key != secret.encryption_key

    other_salt = derive_key("test-password", generate_salt())
    assert other_salt.encryption_key != secret.encryption_key


def test_subkeys_are_independent(secret):
    """Test that encryption and tagging keys differ."""
    assert secret.encryption_key != secret.tagging_key


def test_generate_salt_length():
    """Test default salt size."""
    assert len(generate_salt()) == SALT_LENGTH


@pytest.mark.parametrize(
    "password, salt_value, iterations",
    [
        (b"bytes-password", b"0123456789abcdef", None),
        (None, b"0123456789abcdef", None),
        ("password", b"", None),
        ("password", "not-bytes", None),
        ("password", b"0123456789abcdef", 1000),
        ("password", b"0123456789abcdef", "100000"),
    ],
)
def test_derive_key_rejects_malformed_input(password, salt_value, iterations):
    """Test key derivation input validation."""
    with pytest.raises(KeyDerivationError):
        derive_key(password, salt_value, iterations)


def test_master_secret_clear(salt):
    """Test that clearing the secret blocks further use."""
    secret = derive_key("test-password", salt)
    secret.clear()
    assert secret.cleared
    with pytest.raises(KeychainClosedError):
        secret.encryption_key
    # Clearing twice is harmless
    secret.clear()


def test_master_secret_repr_hides_key(secret):
    """Test that repr never shows key material."""
    assert repr(secret) == "<MasterSecret active>"


def test_encryption(secret):
    """Test encryption and decryption."""
    value = encrypt(secret, "test-data")
    assert isinstance(value, EncryptedValue)
    assert len(value.nonce) == NONCE_LENGTH
    assert b"test-data" not in value.ciphertext

    assert decrypt(secret, value) == "test-data"


def test_encryption_uses_fresh_nonce(secret):
    """Test that two encryptions of the same text differ."""
    first = encrypt(secret, "same")
    second = encrypt(secret, "same")
    assert first.nonce != second.nonce
    assert first.ciphertext != second.ciphertext


def test_encrypt_rejects_non_text(secret):
    """Test encryption input validation."""
    with pytest.raises(EncryptionError):
        encrypt(secret, b"bytes")


def test_decrypt_with_wrong_key(secret, other_secret):
    """Test that a different key fails authentication."""
    value = encrypt(secret, "test-data")
    with pytest.raises(DecryptionError):
        decrypt(other_secret, value)


def test_decrypt_tampered_ciphertext(secret):
    """Test that a flipped ciphertext bit fails authentication."""
    nonce, ciphertext = encrypt(secret, "test-data")
    tampered = bytes([ciphertext[0] ^ 0x01]) + ciphertext[1:]
    with pytest.raises(DecryptionError):
        decrypt(secret, EncryptedValue(nonce, tampered))


def test_decrypt_wrong_nonce(secret):
    """Test that the wrong nonce fails authentication."""
    _, ciphertext = encrypt(secret, "test-data")
    with pytest.raises(DecryptionError):
        decrypt(secret, EncryptedValue(get_random_bytes(NONCE_LENGTH), ciphertext))

    with pytest.raises(DecryptionError):
        decrypt(secret, EncryptedValue(b"short", ciphertext))


def test_decrypt_checks_associated_data(secret):
    """Test that associated data is bound to the ciphertext."""
    value = encrypt(secret, "test-data", b"record-a")
    assert decrypt(secret, value, b"record-a") == "test-data"
    with pytest.raises(DecryptionError):
        decrypt(secret, value, b"record-b")
    with pytest.raises(DecryptionError):
        decrypt(secret, value)


def test_tag_is_deterministic(secret, other_secret):
    """Test HMAC tags."""
    assert tag(secret, "data") == tag(secret, "data")
    assert tag(secret, "data") != tag(secret, "other")
    assert tag(secret, "data") != tag(other_secret, "data")
    assert len(decode_buffer(tag(secret, "data"))) == 32


def test_verify_tag(secret):
    """Test tag verification."""
    expected = tag(secret, "data")
    verify_tag(secret, "data", expected)

    with pytest.raises(IntegrityError):
        verify_tag(secret, "other", expected)
    with pytest.raises(IntegrityError):
        verify_tag(secret, "data", expected[:-2] + "AA")
    with pytest.raises(IntegrityError):
        verify_tag(secret, "data", None)


def test_digest():
    """Test keyless digests."""
    assert digest("www.stanford.edu") == digest("www.stanford.edu")
    assert digest("a.com") != digest("b.com")
    assert "stanford" not in digest("www.stanford.edu")

    verify_digest("payload", digest("payload"))
    with pytest.raises(IntegrityError):
        verify_digest("payload", digest("payload2"))


def test_secure_zero_memory():
    """Test secure memory zeroing."""
    data = bytearray(b"sensitive-data")
    secure_zero_memory(data)
    assert all(b == 0 for b in data)

    with pytest.raises(TypeError):
        secure_zero_memory(b"immutable")


def test_compare_bytes():
    """Test constant-time byte comparison."""
    a = b"test-data"
    b = b"test-data"
    c = b"different"

    assert compare_bytes(a, b)
    assert not compare_bytes(a, c)
    assert not compare_bytes(a, b"test-data-longer")
