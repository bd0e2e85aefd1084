"""Password-based string encryptor compatible with jasypt.

Values produced here can be decrypted by jasypt's ``StandardPBEStringEncryptor``
and vice versa, so property files shared with JVM deployments keep working.

Wire format (Base64 of)::

    salt (8 bytes) || DES/3DES-CBC ciphertext with PKCS#5 padding

Supported algorithms:

* ``PBEWithMD5AndTripleDES`` - SunJCE PBES1 key derivation for DESede: each
  salt half is digested together with the password ``iterations`` times; the
  32 resulting bytes form a 24-byte key and an 8-byte IV.  If both salt halves
  are identical the first half is shuffled the way SunJCE does it
  (``[a, b, c, d]`` becomes ``[d, a, b, d]``) before digesting.
* ``PBEWithMD5AndDES`` - PKCS#5 v1.5 PBKDF1-MD5; key is ``digest[:8]``, IV is
  ``digest[8:]``.

The block cipher itself comes from ``cryptography``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os
import secrets
import threading
from dataclasses import dataclass

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, modes

from encprops.errors import EncryptionInitializationError, EncryptionOperationNotPossible

_log = logging.getLogger(__name__)

PBE_WITH_MD5_AND_TRIPLE_DES = "PBEWithMD5AndTripleDES"
PBE_WITH_MD5_AND_DES = "PBEWithMD5AndDES"

SUPPORTED_ALGORITHMS: tuple[str, ...] = (PBE_WITH_MD5_AND_TRIPLE_DES, PBE_WITH_MD5_AND_DES)

DEFAULT_ALGORITHM = PBE_WITH_MD5_AND_TRIPLE_DES
DEFAULT_KEY_OBTENTION_ITERATIONS = 1000

_SALT_SIZE = 8
_BLOCK_SIZE_BITS = 64


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def _password_bytes(password: str) -> bytes:
    try:
        return password.encode("ascii")
    except UnicodeEncodeError as exc:
        raise EncryptionInitializationError("Password must contain ASCII characters only") from exc


def derive_des_key(password: bytes, salt: bytes, iterations: int) -> tuple[bytes, bytes]:
    """Return ``(key, iv)`` for ``PBEWithMD5AndDES``."""
    digest = hashlib.md5(password + salt).digest()
    for _ in range(iterations - 1):
        digest = hashlib.md5(digest).digest()
    return digest[:8], digest[8:16]


def derive_triple_des_key(password: bytes, salt: bytes, iterations: int) -> tuple[bytes, bytes]:
    """Return ``(key, iv)`` for ``PBEWithMD5AndTripleDES``."""
    salt = bytearray(salt)
    if salt[:4] == salt[4:8]:
        # Not a reversal: SunJCE writes the swapped byte to index 2 both times.
        for i in range(2):
            tmp = salt[i]
            salt[i] = salt[3 - i]
            salt[2] = tmp

    derived = b""
    for half in (bytes(salt[:4]), bytes(salt[4:8])):
        block = half
        for _ in range(iterations):
            block = hashlib.md5(block + password).digest()
        derived += block
    return derived[:24], derived[24:32]


def _des_cipher(key: bytes) -> TripleDES:
    # An 8-byte DES key repeated three times is single DES under EDE.
    return TripleDES(key * 3 if len(key) == 8 else key)


_KEY_DERIVATIONS = {
    PBE_WITH_MD5_AND_TRIPLE_DES: derive_triple_des_key,
    PBE_WITH_MD5_AND_DES: derive_des_key,
}


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@dataclass
class PBEConfig:
    """Static encryptor configuration."""

    algorithm: str = DEFAULT_ALGORITHM
    key_obtention_iterations: int = DEFAULT_KEY_OBTENTION_ITERATIONS
    password: str | None = None

    def get_password(self) -> str | None:
        return self.password


@dataclass
class EnvironmentPBEConfig(PBEConfig):
    """Config whose password is read from an environment variable.

    The variable is read once, when the config is created, mirroring the
    behaviour of the JVM tooling this format comes from.
    """

    password_env_name: str = ""

    def __post_init__(self) -> None:
        if self.password_env_name and self.password is None:
            self.password = os.environ.get(self.password_env_name)
            if self.password is None:
                _log.debug("Password env var %s is not set", self.password_env_name)


# ---------------------------------------------------------------------------
# Encryptor
# ---------------------------------------------------------------------------

class StandardPBEStringEncryptor:
    """Encrypts and decrypts strings with a password-based cipher.

    Initialisation is lazy: a missing password only fails on the first
    :meth:`encrypt` / :meth:`decrypt` call.  After that the encryptor is
    immutable and safe to share between threads.
    """

    def __init__(self, config: PBEConfig | None = None) -> None:
        self._config = config or PBEConfig()
        self._lock = threading.Lock()
        self._initialized = False
        self._password: bytes = b""

    @property
    def algorithm(self) -> str:
        return self._config.algorithm

    def set_config(self, config: PBEConfig) -> None:
        with self._lock:
            if self._initialized:
                raise EncryptionInitializationError("Encryptor already initialized")
            self._config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encrypt(self, message: str) -> str:
        """Encrypt *message* and return the Base64 text."""
        self._ensure_initialized()
        salt = secrets.token_bytes(_SALT_SIZE)
        key, iv = self._derive(salt)

        padder = padding.PKCS7(_BLOCK_SIZE_BITS).padder()
        padded = padder.update(message.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(_des_cipher(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return base64.b64encode(salt + ciphertext).decode("ascii")

    def decrypt(self, encrypted_message: str) -> str:
        """Decrypt Base64 *encrypted_message* and return the plaintext."""
        self._ensure_initialized()
        try:
            raw = base64.b64decode(encrypted_message.strip().encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise EncryptionOperationNotPossible("Encrypted message is not valid Base64") from exc

        if len(raw) <= _SALT_SIZE or (len(raw) - _SALT_SIZE) % (_BLOCK_SIZE_BITS // 8):
            raise EncryptionOperationNotPossible("Encrypted message has an invalid length")

        salt, ciphertext = raw[:_SALT_SIZE], raw[_SALT_SIZE:]
        key, iv = self._derive(salt)

        decryptor = Cipher(_des_cipher(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        try:
            unpadder = padding.PKCS7(_BLOCK_SIZE_BITS).unpadder()
            plain = unpadder.update(padded) + unpadder.finalize()
            return plain.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            # Wrong password and corrupted data are indistinguishable here.
            raise EncryptionOperationNotPossible("Decryption failed") from exc

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            config = self._config
            if config.algorithm not in _KEY_DERIVATIONS:
                raise EncryptionInitializationError(
                    f"Unsupported algorithm {config.algorithm!r}; "
                    f"expected one of {', '.join(SUPPORTED_ALGORITHMS)}"
                )
            if config.key_obtention_iterations < 1:
                raise EncryptionInitializationError("Key obtention iterations must be >= 1")
            password = config.get_password()
            if not password:
                raise EncryptionInitializationError("Password not set for Password Based Encryptor")
            self._password = _password_bytes(password)
            self._initialized = True

    def _derive(self, salt: bytes) -> tuple[bytes, bytes]:
        derive = _KEY_DERIVATIONS[self._config.algorithm]
        return derive(self._password, salt, self._config.key_obtention_iterations)
