"""Exception hierarchy for encrypted property loading.

Everything raised on purpose by this package derives from
:class:`EncryptedPropertiesError`, so callers that bootstrap an application
can catch one type and abort startup.
"""

from __future__ import annotations


class EncryptedPropertiesError(Exception):
    """Base class for all errors raised by ``encprops``."""


class PropertySourceLoadError(EncryptedPropertiesError):
    """A mandatory property file could not be read."""

    def __init__(self, name: str, location: str) -> None:
        super().__init__(f"Cannot load property source '{name}' from {location}")
        self.name = name
        self.location = location


class MissingPropertyError(EncryptedPropertiesError, KeyError):
    """A required property is not defined in any property source."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Required property '{self.key}' not found"


class PlaceholderResolutionError(EncryptedPropertiesError):
    """A ``${...}`` placeholder is unresolvable or circular."""


class EncryptionError(EncryptedPropertiesError):
    """Base class for encryptor failures."""


class EncryptionInitializationError(EncryptionError):
    """The encryptor cannot be initialised (e.g. no password available)."""


class EncryptionOperationNotPossible(EncryptionError):
    """Encryption or decryption failed.

    Raised for wrong passwords, corrupted ciphertext and malformed input.
    The message intentionally never contains the offending value.
    """
