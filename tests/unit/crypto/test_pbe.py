"""Tests for the password-based string encryptor."""

import base64
import hashlib

import pytest

from encprops.crypto.pbe import (
    PBE_WITH_MD5_AND_DES,
    PBE_WITH_MD5_AND_TRIPLE_DES,
    EnvironmentPBEConfig,
    PBEConfig,
    StandardPBEStringEncryptor,
    derive_des_key,
    derive_triple_des_key,
)
from encprops.errors import EncryptionInitializationError, EncryptionOperationNotPossible
from tests.helpers.resource_scaffold import PASSWORD, PASSWORD_ENV


def _encryptor(algorithm: str = PBE_WITH_MD5_AND_TRIPLE_DES, password: str = PASSWORD, **kw):
    return StandardPBEStringEncryptor(PBEConfig(algorithm=algorithm, password=password, **kw))


class TestKeyDerivation:
    def test_des_single_iteration_is_md5_of_password_and_salt(self):
        salt = bytes(range(8))
        digest = hashlib.md5(b"pw" + salt).digest()
        assert derive_des_key(b"pw", salt, 1) == (digest[:8], digest[8:])

    def test_des_iterations_rehash_digest(self):
        salt = bytes(range(8))
        digest = hashlib.md5(hashlib.md5(b"pw" + salt).digest()).digest()
        assert derive_des_key(b"pw", salt, 2) == (digest[:8], digest[8:])

    def test_triple_des_hashes_each_salt_half(self):
        salt = bytes(range(1, 9))
        first = hashlib.md5(salt[:4] + b"pw").digest()
        second = hashlib.md5(salt[4:] + b"pw").digest()

        key, iv = derive_triple_des_key(b"pw", salt, 1)

        assert key == first + second[:8]
        assert iv == second[8:]

    def test_triple_des_iterations_chain_digest_with_password(self):
        salt = bytes(range(1, 9))
        first = hashlib.md5(hashlib.md5(salt[:4] + b"pw").digest() + b"pw").digest()

        key, _ = derive_triple_des_key(b"pw", salt, 2)

        assert key[:16] == first

    def test_triple_des_equal_halves_shuffle_first_half(self):
        salt = b"\x01\x02\x03\x04\x01\x02\x03\x04"
        first = hashlib.md5(b"\x04\x01\x02\x04" + b"pw").digest()
        second = hashlib.md5(b"\x01\x02\x03\x04" + b"pw").digest()

        key, iv = derive_triple_des_key(b"pw", salt, 1)

        assert key == first + second[:8]
        assert iv == second[8:]

    def test_key_sizes(self):
        salt = bytes(8)
        assert [len(x) for x in derive_triple_des_key(b"pw", salt, 1000)] == [24, 8]
        assert [len(x) for x in derive_des_key(b"pw", salt, 1000)] == [8, 8]


class TestKnownAnswers:
    """Fixed tokens built with OpenSSL (md5 chain + des-ede3-cbc), 1000 iterations."""

    KAT_PASSWORD = "jasypt-kat-pass"

    @pytest.mark.parametrize(
        "algorithm, token",
        [
            (PBE_WITH_MD5_AND_TRIPLE_DES, "obLD1OX2BxhYLgVOfhbRKzaCKwHBGg6a"),
            # salt 11223344 11223344: first half digested as 44112244
            (PBE_WITH_MD5_AND_TRIPLE_DES, "ESIzRBEiM0Q/KAPhq5hWo2E/6qRoaRlS"),
            (PBE_WITH_MD5_AND_DES, "Dx4tPEtaaXh4cQmmxMBpc04dDm8ByfnK"),
        ],
    )
    def test_decrypts_fixed_token(self, algorithm, token):
        assert _encryptor(algorithm, password=self.KAT_PASSWORD).decrypt(token) == "s3cret-value"


class TestEncryptDecrypt:
    @pytest.mark.parametrize("algorithm", [PBE_WITH_MD5_AND_TRIPLE_DES, PBE_WITH_MD5_AND_DES])
    def test_decrypt_recovers_plaintext(self, algorithm):
        enc = _encryptor(algorithm)
        assert enc.decrypt(enc.encrypt("jdbc-password!")) == "jdbc-password!"

    @pytest.mark.filterwarnings("error::cryptography.utils.CryptographyDeprecationWarning")
    def test_des_uses_no_deprecated_key_size(self):
        enc = _encryptor(PBE_WITH_MD5_AND_DES)
        assert enc.decrypt(enc.encrypt("no warnings")) == "no warnings"

    def test_unicode_plaintext(self):
        enc = _encryptor()
        assert enc.decrypt(enc.encrypt("pässwörd €")) == "pässwörd €"

    def test_output_is_salt_plus_whole_blocks(self):
        raw = base64.b64decode(_encryptor().encrypt("hello"))
        # 8 bytes salt + "hello" padded to one 8-byte block
        assert len(raw) == 16

    def test_random_salt_makes_output_differ(self):
        enc = _encryptor()
        assert enc.encrypt("same") != enc.encrypt("same")

    def test_surrounding_whitespace_tolerated(self):
        enc = _encryptor()
        assert enc.decrypt(f"  {enc.encrypt('x')}\n") == "x"

    def test_separate_instances_share_format(self):
        token = _encryptor().encrypt("shared")
        assert _encryptor().decrypt(token) == "shared"

    def test_wrong_password_fails(self):
        token = _encryptor(password="right").encrypt("a fairly long secret value " * 4)
        with pytest.raises(EncryptionOperationNotPossible):
            _encryptor(password="wrong").decrypt(token)

    def test_invalid_base64(self):
        with pytest.raises(EncryptionOperationNotPossible, match="Base64"):
            _encryptor().decrypt("not*base64!")

    def test_too_short(self):
        with pytest.raises(EncryptionOperationNotPossible, match="length"):
            _encryptor().decrypt(base64.b64encode(bytes(8)).decode())

    def test_partial_block(self):
        with pytest.raises(EncryptionOperationNotPossible, match="length"):
            _encryptor().decrypt(base64.b64encode(bytes(13)).decode())


class TestInitialization:
    def test_missing_password_fails_lazily(self):
        enc = StandardPBEStringEncryptor(PBEConfig())
        with pytest.raises(EncryptionInitializationError, match="Password not set"):
            enc.decrypt("AAAAAAAAAAAAAAAAAAAAAA==")

    def test_non_ascii_password(self):
        with pytest.raises(EncryptionInitializationError, match="ASCII"):
            _encryptor(password="pässword").encrypt("x")

    def test_unsupported_algorithm(self):
        with pytest.raises(EncryptionInitializationError, match="Unsupported"):
            _encryptor(algorithm="PBEWithSHA1AndRC4_128").encrypt("x")

    def test_invalid_iterations(self):
        with pytest.raises(EncryptionInitializationError, match="iterations"):
            _encryptor(key_obtention_iterations=0).encrypt("x")

    def test_config_locked_after_first_use(self):
        enc = _encryptor()
        enc.encrypt("x")
        with pytest.raises(EncryptionInitializationError):
            enc.set_config(PBEConfig(password="other"))

    def test_set_config_before_use(self):
        enc = StandardPBEStringEncryptor()
        enc.set_config(PBEConfig(algorithm=PBE_WITH_MD5_AND_DES, password="pw"))
        assert enc.algorithm == PBE_WITH_MD5_AND_DES
        assert enc.decrypt(enc.encrypt("ok")) == "ok"


class TestEnvironmentPBEConfig:
    def test_password_read_from_env(self, password):
        config = EnvironmentPBEConfig(password_env_name=PASSWORD_ENV)
        assert config.get_password() == password

    def test_password_read_at_construction(self, monkeypatch):
        monkeypatch.setenv(PASSWORD_ENV, "early")
        config = EnvironmentPBEConfig(password_env_name=PASSWORD_ENV)
        monkeypatch.delenv(PASSWORD_ENV)
        assert config.get_password() == "early"

    def test_unset_env_gives_no_password(self, monkeypatch):
        monkeypatch.delenv(PASSWORD_ENV, raising=False)
        assert EnvironmentPBEConfig(password_env_name=PASSWORD_ENV).get_password() is None

    def test_explicit_password_wins(self, password):
        config = EnvironmentPBEConfig(password="explicit", password_env_name=PASSWORD_ENV)
        assert config.get_password() == "explicit"
