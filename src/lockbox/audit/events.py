"""Audit event type definitions."""

from enum import Enum


class EventType(str, Enum):
    """Audit event types."""

    # Vault lifecycle events
    VAULT_CREATE = "vault.create"
    VAULT_UNLOCK = "vault.unlock"
    VAULT_SAVE = "vault.save"
    VAULT_DELETE = "vault.delete"
    VAULT_VERIFY = "vault.verify"

    # Record events
    RECORD_READ = "record.read"
    RECORD_WRITE = "record.write"
    RECORD_DELETE = "record.delete"

    # Error events
    ERROR_AUTH = "error.auth"
    ERROR_INTEGRITY = "error.integrity"
    ERROR_STORAGE = "error.storage"
