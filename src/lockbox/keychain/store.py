"""Encrypted domain to password keychain."""

from typing import Optional

from pydantic import ValidationError
import structlog

from ..crypto.encoding import EncodingError, decode_buffer, encode_buffer, string_to_bytes
from ..crypto.encryption import decrypt, encrypt
from ..crypto.integrity import digest, tag, verify_digest, verify_tag
from ..crypto.keys import PBKDF2_ITERATIONS, MasterSecret, derive_key, generate_salt
from ..exceptions import (
    DecryptionError,
    IntegrityError,
    KeychainClosedError,
    MalformedRepresentationError,
)
from .models import DumpResult, EncryptedData, Record, SerializedState

logger = structlog.get_logger(__name__)

# Not a valid base64 SHA-256 digest, so it never collides with a domain
CANARY_ID = "canary"
CANARY_VALUE = "lockbox-password-canary"


def domain_identifier(domain: str) -> str:
    """Deterministic one-way identifier for a domain name."""
    if not isinstance(domain, str):
        raise TypeError(f"Domain must be text, got {type(domain).__name__}")
    return digest(domain)


def _tagged_data(identifier: str, value: str) -> str:
    # base64 identifiers never contain ":"
    return f"{identifier}:{value}"


class Keychain:
    """Password keychain bound to one master secret.

    Create instances with :meth:`init` or :meth:`load`. Records are stored
    under the digest of their domain name, encrypted with AES-256-GCM using
    the identifier as associated data, and tagged with HMAC-SHA256 over the
    identifier and value.

    A keychain is not thread-safe; callers serialize access themselves.
    """

    def __init__(
        self,
        secret: MasterSecret,
        salt: bytes,
        records: Optional[dict[str, Record]] = None,
        iterations: int = PBKDF2_ITERATIONS,
    ):
        self._secret = secret
        self._salt = bytes(salt)
        self._records: dict[str, Record] = dict(records or {})
        self._iterations = iterations
        self._closed = False

    @classmethod
    def init(
        cls,
        password: str,
        *,
        canary: bool = False,
        iterations: int = PBKDF2_ITERATIONS,
    ) -> "Keychain":
        """Create an empty keychain protected by ``password``.

        Args:
            password: The master password.
            canary: Store a known record so a wrong password can be detected
                right after :meth:`load` via :meth:`verify_password`.
            iterations: PBKDF2 iteration count.

        Raises:
            KeyDerivationError: If the key cannot be derived.
        """
        salt = generate_salt()
        secret = derive_key(password, salt, iterations)
        keychain = cls(secret, salt, iterations=iterations)
        if canary:
            keychain._put(CANARY_ID, CANARY_VALUE)
        logger.info("keychain_initialized", canary=canary, iterations=iterations)
        return keychain

    @classmethod
    def load(
        cls,
        password: str,
        representation: str,
        trusted_checksum: str,
        *,
        iterations: int = PBKDF2_ITERATIONS,
    ) -> "Keychain":
        """Restore a keychain from the output of :meth:`dump`.

        The checksum is recomputed over the exact representation text and
        compared with ``trusted_checksum`` before any record is adopted. The
        checksum does not depend on the password, so a wrong password is not
        reported here; it surfaces as a DecryptionError or IntegrityError on
        the first :meth:`get`, or through :meth:`verify_password` when the
        keychain carries a canary.

        Args:
            password: The master password.
            representation: Serialized keychain text.
            trusted_checksum: Checksum kept in a trusted location.
            iterations: PBKDF2 iteration count used at creation.

        Raises:
            MalformedRepresentationError: If the text cannot be parsed.
            KeyDerivationError: If the key cannot be derived.
            IntegrityError: If the checksum does not match.
        """
        if not isinstance(representation, str) or not representation:
            raise MalformedRepresentationError("Representation is empty")
        try:
            state = SerializedState.model_validate_json(representation)
            salt = decode_buffer(state.salt)
        except (ValidationError, EncodingError) as e:
            raise MalformedRepresentationError(
                f"Invalid keychain representation: {e}"
            ) from e

        secret = derive_key(password, salt, iterations)
        try:
            verify_digest(representation, trusted_checksum)
        except IntegrityError:
            secret.clear()
            logger.error("keychain_checksum_mismatch", records=len(state.kvs))
            raise

        keychain = cls(secret, salt, state.kvs, iterations=iterations)
        logger.info("keychain_loaded", records=len(keychain))
        return keychain

    @property
    def salt(self) -> bytes:
        return self._salt

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_canary(self) -> bool:
        return CANARY_ID in self._records

    def _check_open(self) -> None:
        if self._closed:
            raise KeychainClosedError("Keychain is closed")

    def _put(self, identifier: str, value: str) -> None:
        encrypted = encrypt(self._secret, value, string_to_bytes(identifier))
        self._records[identifier] = Record(
            encrypted_data=EncryptedData.from_value(encrypted),
            hmac=tag(self._secret, _tagged_data(identifier, value)),
        )

    def _open(self, identifier: str, record: Record) -> str:
        try:
            encrypted = record.encrypted_data.to_value()
        except EncodingError as e:
            raise DecryptionError(f"Corrupted record: {e}") from e
        value = decrypt(self._secret, encrypted, string_to_bytes(identifier))
        verify_tag(self._secret, _tagged_data(identifier, value), record.hmac)
        return value

    def set(self, domain: str, value: str) -> None:
        """Store or overwrite the password for ``domain``.

        Raises:
            TypeError: If domain is not text.
            EncryptionError: If the value cannot be encrypted.
        """
        self._check_open()
        identifier = domain_identifier(domain)
        replaced = identifier in self._records
        self._put(identifier, value)
        logger.debug("record_set", record_id=identifier[:8], replaced=replaced)

    def get(self, domain: str) -> Optional[str]:
        """Return the password for ``domain``, or None if there is none.

        Raises:
            DecryptionError: If the ciphertext fails authentication.
            IntegrityError: If the record tag does not verify.
        """
        self._check_open()
        identifier = domain_identifier(domain)
        record = self._records.get(identifier)
        if record is None:
            return None
        return self._open(identifier, record)

    def remove(self, domain: str) -> bool:
        """Delete the record for ``domain``.

        Returns:
            True if a record existed, False otherwise.
        """
        self._check_open()
        identifier = domain_identifier(domain)
        if self._records.pop(identifier, None) is None:
            return False
        logger.debug("record_removed", record_id=identifier[:8])
        return True

    def verify_password(self) -> bool:
        """Check the master password against the canary record.

        Returns:
            False if the canary fails to decrypt or verify, True otherwise,
            including when the keychain has no canary.
        """
        self._check_open()
        record = self._records.get(CANARY_ID)
        if record is None:
            return True
        try:
            return self._open(CANARY_ID, record) == CANARY_VALUE
        except (DecryptionError, IntegrityError):
            logger.warning("canary_verification_failed")
            return False

    def verify_records(self) -> int:
        """Decrypt and verify every record, including the canary.

        Returns:
            The number of user records checked.

        Raises:
            DecryptionError: If a ciphertext fails authentication.
            IntegrityError: If a record tag does not verify.
        """
        self._check_open()
        for identifier, record in self._records.items():
            self._open(identifier, record)
        return len(self)

    def dump(self) -> DumpResult:
        """Serialize the keychain.

        Returns:
            DumpResult of (representation, checksum). The checksum is the
            SHA-256 digest of the exact representation text.
        """
        self._check_open()
        state = SerializedState(kvs=self._records, salt=encode_buffer(self._salt))
        representation = state.model_dump_json(by_alias=True)
        checksum = digest(representation)
        logger.debug("keychain_dumped", records=len(self))
        return DumpResult(representation=representation, checksum=checksum)

    def close(self) -> None:
        """Clear the master secret and drop all records."""
        if not self._closed:
            self._secret.clear()
            self._records.clear()
            self._closed = True

    def __enter__(self) -> "Keychain":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __len__(self) -> int:
        self._check_open()
        return sum(1 for identifier in self._records if identifier != CANARY_ID)

    def __contains__(self, domain: object) -> bool:
        self._check_open()
        if not isinstance(domain, str):
            return False
        return digest(domain) in self._records

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self)} records"
        return f"<Keychain {state}>"
