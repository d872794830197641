"""Named vaults persisted through a state store and a checksum store."""

from contextlib import suppress
from typing import Optional

from .audit import EventType, audit_event
from .crypto.keys import PBKDF2_ITERATIONS, derive_key, generate_salt
from .exceptions import (
    AuthenticationError,
    IntegrityError,
    KeyDerivationError,
    MalformedRepresentationError,
    StorageError,
    VaultExistsError,
)
from .keychain import Keychain
from .storage import ChecksumStore, StateStore, validate_name

AUTH_FAILED_MESSAGE = "invalid credentials"


class VaultService:
    """Creates, unlocks and saves keychains by name.

    Each vault is stored in two halves: the representation goes to
    ``states`` and its checksum to ``checksums``. Unlocking reads both, so
    rolling the representation back to an older snapshot fails unless the
    checksum store is rolled back too.

    Every keychain created here carries a password canary, which lets
    :meth:`login` reject a wrong password immediately.
    """

    def __init__(
        self,
        states: StateStore,
        checksums: ChecksumStore,
        iterations: int = PBKDF2_ITERATIONS,
    ):
        self.states = states
        self.checksums = checksums
        self.iterations = iterations

    def exists(self, name: str) -> bool:
        return self.states.exists(name)

    def list_vaults(self) -> list[str]:
        return self.states.list_states()

    def setup(self, name: str, password: str) -> Keychain:
        """Create and persist an empty vault.

        Args:
            name: Vault name.
            password: Master password.

        Returns:
            The new, unlocked keychain.

        Raises:
            VaultExistsError: If a vault with this name exists.
            KeyDerivationError: If the key cannot be derived.
            StorageError: If persisting fails.
        """
        validate_name(name)
        if self.exists(name):
            audit_event(
                event_type=EventType.VAULT_CREATE,
                user=name,
                success=False,
                details={"reason": "exists"},
            )
            raise VaultExistsError(f"Vault already exists: {name}")

        keychain = Keychain.init(password, canary=True, iterations=self.iterations)
        self.save(name, keychain)
        audit_event(event_type=EventType.VAULT_CREATE, user=name, success=True)
        return keychain

    def login(self, name: str, password: str) -> Keychain:
        """Unlock a stored vault.

        All failures raise the same AuthenticationError; the underlying
        reason only goes to the audit log. Failures that happen before key
        derivation still derive a throwaway key, so an unknown vault takes
        as long to reject as a wrong password.

        Raises:
            AuthenticationError: If the vault is unknown, the password is
                wrong or the stored state fails verification.
        """
        try:
            representation = self.states.read_state(name)
            checksum = self.checksums.get_checksum(name)
            keychain = Keychain.load(
                password, representation, checksum, iterations=self.iterations
            )
        except (
            StorageError,
            IntegrityError,
            MalformedRepresentationError,
            KeyDerivationError,
        ) as e:
            if isinstance(e, (StorageError, MalformedRepresentationError)):
                # These fail before key derivation; pay for it anyway
                self._derive_decoy_key(password)
            self._login_failed(name, type(e).__name__, e)
            raise AuthenticationError(AUTH_FAILED_MESSAGE) from None

        if not keychain.verify_password():
            keychain.close()
            self._login_failed(name, "wrong_password")
            raise AuthenticationError(AUTH_FAILED_MESSAGE)

        audit_event(event_type=EventType.VAULT_UNLOCK, user=name, success=True)
        return keychain

    def _derive_decoy_key(self, password: str) -> None:
        with suppress(KeyDerivationError):
            derive_key(password, generate_salt(), self.iterations).clear()

    def _login_failed(
        self, name: str, reason: str, error: Optional[Exception] = None
    ) -> None:
        event_type = (
            EventType.ERROR_INTEGRITY
            if isinstance(error, (IntegrityError, MalformedRepresentationError))
            else EventType.ERROR_AUTH
        )
        audit_event(
            event_type=event_type,
            user=name,
            success=False,
            details={"reason": reason},
            error=error,
        )

    def save(self, name: str, keychain: Keychain) -> None:
        """Persist a keychain under ``name``.

        The representation is written before the checksum. If the process
        stops in between, the vault fails verification on the next login
        rather than silently accepting stale data.

        Raises:
            StorageError: If either store fails.
        """
        validate_name(name)
        dumped = keychain.dump()
        self.states.write_state(name, dumped.representation)
        self.checksums.put_checksum(name, dumped.checksum)
        audit_event(
            event_type=EventType.VAULT_SAVE,
            user=name,
            success=True,
            details={"records": len(keychain)},
        )

    def delete(self, name: str) -> bool:
        """Delete both halves of a vault.

        Returns:
            True if the representation existed.
        """
        deleted = self.states.delete_state(name)
        self.checksums.delete_checksum(name)
        audit_event(
            event_type=EventType.VAULT_DELETE,
            user=name,
            success=deleted,
        )
        return deleted
