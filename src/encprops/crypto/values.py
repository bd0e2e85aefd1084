"""Helpers for ``ENC(...)``-wrapped property values."""

from __future__ import annotations

from typing import Protocol

ENCRYPTED_VALUE_PREFIX = "ENC("
ENCRYPTED_VALUE_SUFFIX = ")"


class StringEncryptor(Protocol):
    """Anything that can encrypt and decrypt text."""

    def encrypt(self, message: str) -> str: ...

    def decrypt(self, encrypted_message: str) -> str: ...


def is_encrypted_value(value: str | None) -> bool:
    """Return ``True`` when *value* looks like ``ENC(...)``."""
    if value is None:
        return False
    trimmed = value.strip()
    return trimmed.startswith(ENCRYPTED_VALUE_PREFIX) and trimmed.endswith(ENCRYPTED_VALUE_SUFFIX)


def unwrap_encrypted_value(value: str) -> str:
    """Strip the ``ENC(`` / ``)`` markers, leaving the Base64 payload."""
    trimmed = value.strip()
    return trimmed[len(ENCRYPTED_VALUE_PREFIX):-len(ENCRYPTED_VALUE_SUFFIX)]


def decrypt_value(value: str, encryptor: StringEncryptor) -> str:
    """Decrypt an ``ENC(...)`` value.  Plain values are returned unchanged."""
    if not is_encrypted_value(value):
        return value
    return encryptor.decrypt(unwrap_encrypted_value(value))


def encrypt_value(value: str, encryptor: StringEncryptor) -> str:
    """Encrypt *value* and wrap the result as ``ENC(...)``."""
    return f"{ENCRYPTED_VALUE_PREFIX}{encryptor.encrypt(value)}{ENCRYPTED_VALUE_SUFFIX}"
