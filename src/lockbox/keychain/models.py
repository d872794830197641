"""Serialized keychain layout."""

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..crypto.encoding import decode_buffer, encode_buffer
from ..crypto.encryption import NONCE_LENGTH, EncryptedValue


class EncryptedData(BaseModel):
    """Base64 nonce and ciphertext of one record."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    iv: str
    data: str

    @field_validator("iv")
    @classmethod
    def validate_iv(cls, v: str) -> str:
        """Nonce must decode to exactly 12 bytes."""
        if len(decode_buffer(v)) != NONCE_LENGTH:
            raise ValueError(f"iv must decode to {NONCE_LENGTH} bytes")
        return v

    @field_validator("data")
    @classmethod
    def validate_data(cls, v: str) -> str:
        """Ciphertext must be base64 and at least one GCM tag long."""
        if len(decode_buffer(v)) < 16:
            raise ValueError("data is shorter than an authentication tag")
        return v

    @classmethod
    def from_value(cls, value: EncryptedValue) -> "EncryptedData":
        return cls(iv=encode_buffer(value.nonce), data=encode_buffer(value.ciphertext))

    def to_value(self) -> EncryptedValue:
        return EncryptedValue(
            nonce=decode_buffer(self.iv), ciphertext=decode_buffer(self.data)
        )


class Record(BaseModel):
    """One stored credential, keyed externally by its domain identifier."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    encrypted_data: EncryptedData = Field(alias="encryptedData")
    hmac: str


class SerializedState(BaseModel):
    """Top-level JSON document produced by ``Keychain.dump``."""

    model_config = ConfigDict(extra="forbid")

    kvs: dict[str, Record]
    salt: str

    @field_validator("salt")
    @classmethod
    def validate_salt(cls, v: str) -> str:
        """Salt must be non-empty base64."""
        if not decode_buffer(v):
            raise ValueError("salt is empty")
        return v


class DumpResult(NamedTuple):
    """Serialized keychain text and the checksum over it.

    The checksum has to be stored somewhere an attacker cannot rewrite
    together with the representation, otherwise an old snapshot can be
    restored without detection.
    """

    representation: str
    checksum: str

    @property
    def repr(self) -> str:
        return self.representation
