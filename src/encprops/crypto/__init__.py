"""Password-based encryption of individual property values."""

from encprops.crypto.pbe import (
    DEFAULT_ALGORITHM,
    SUPPORTED_ALGORITHMS,
    EnvironmentPBEConfig,
    PBEConfig,
    StandardPBEStringEncryptor,
)
from encprops.crypto.values import (
    StringEncryptor,
    decrypt_value,
    encrypt_value,
    is_encrypted_value,
)

__all__ = [
    "DEFAULT_ALGORITHM",
    "SUPPORTED_ALGORITHMS",
    "EnvironmentPBEConfig",
    "PBEConfig",
    "StandardPBEStringEncryptor",
    "StringEncryptor",
    "decrypt_value",
    "encrypt_value",
    "is_encrypted_value",
]
