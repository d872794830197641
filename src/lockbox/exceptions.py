"""Exception hierarchy shared by all lockbox components."""


class LockboxError(Exception):
    """Base exception for lockbox operations."""


class CryptoError(LockboxError):
    """Base exception for cryptographic primitives."""


class KeyDerivationError(CryptoError):
    """Raised when the master secret cannot be derived."""


class EncryptionError(CryptoError):
    """Raised when a value cannot be encrypted."""


class DecryptionError(EncryptionError):
    """Raised when a ciphertext fails authentication or cannot be decrypted."""


class IntegrityError(CryptoError):
    """Raised when a record tag or the state checksum does not verify."""


class KeychainError(LockboxError):
    """Base exception for keychain operations."""


class MalformedRepresentationError(KeychainError):
    """Raised when a serialized keychain cannot be parsed."""


class KeychainClosedError(KeychainError):
    """Raised when a closed keychain is used."""


class StorageError(LockboxError):
    """Base exception for state storage backends."""


class StateNotFoundError(StorageError):
    """Raised when a stored state or checksum does not exist."""


class ServiceError(LockboxError):
    """Base exception for vault service operations."""


class VaultExistsError(ServiceError):
    """Raised when creating a vault under a name already in use."""


class AuthenticationError(ServiceError):
    """Raised when a vault cannot be unlocked.

    The message never says whether the vault is unknown, the password is
    wrong or the stored state failed verification.
    """
