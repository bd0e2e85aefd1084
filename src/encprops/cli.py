"""``encprops`` command line tool.

Usage::

    encprops encrypt VALUE --password-env APP_KEY
    encprops decrypt 'ENC(...)' --password-env APP_KEY
    encprops check conf/application.properties --password-env APP_KEY
    encprops show --settings settings.json [--reveal]

Exit code: 0 on success, 1 when an operation fails, 2 on usage errors.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from encprops import __version__
from encprops.config.config_manager import load_settings
from encprops.core.environment import ApplicationContext, Environment
from encprops.core.initializer import ConfiguredPropertySourceInitializer
from encprops.core.properties import dump_properties
from encprops.core.property_sources import EncryptablePropertySource
from encprops.core.resources import FileSystemResource, load_properties
from encprops.crypto.pbe import (
    DEFAULT_ALGORITHM,
    DEFAULT_KEY_OBTENTION_ITERATIONS,
    SUPPORTED_ALGORITHMS,
    EnvironmentPBEConfig,
    StandardPBEStringEncryptor,
)
from encprops.crypto.values import (
    decrypt_value,
    encrypt_value,
    is_encrypted_value,
    unwrap_encrypted_value,
)
from encprops.errors import EncryptedPropertiesError
from encprops.log_config.logger import setup_logging

_log = logging.getLogger(__name__)

_MASK = "******"
_CHECK = "[OK]"
_CROSS = "[FAIL]"


def _encryptor_from_args(args: argparse.Namespace) -> StandardPBEStringEncryptor:
    return StandardPBEStringEncryptor(
        EnvironmentPBEConfig(
            algorithm=args.algorithm,
            key_obtention_iterations=args.iterations,
            password_env_name=args.password_env,
        )
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _cmd_encrypt(args: argparse.Namespace) -> int:
    print(encrypt_value(args.value, _encryptor_from_args(args)))
    return 0


def _cmd_decrypt(args: argparse.Namespace) -> int:
    value = args.value
    payload = unwrap_encrypted_value(value) if is_encrypted_value(value) else value
    print(_encryptor_from_args(args).decrypt(payload))
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    encryptor = _encryptor_from_args(args)
    failures = 0
    for file_name in args.files:
        print(file_name)
        try:
            properties = load_properties(FileSystemResource(file_name), args.encoding)
        except (OSError, ValueError) as exc:
            print(f"  {_CROSS} cannot read file: {exc}")
            failures += 1
            continue

        encrypted = {k: v for k, v in properties.items() if is_encrypted_value(v)}
        if not encrypted:
            print("  (no encrypted values)")
        for key, value in encrypted.items():
            try:
                decrypt_value(value, encryptor)
            except EncryptedPropertiesError as exc:
                print(f"  {_CROSS} {key}: {exc}")
                failures += 1
            else:
                print(f"  {_CHECK} {key}")

    return 1 if failures else 0


def _cmd_show(args: argparse.Namespace) -> int:
    settings = load_settings(args.settings)
    if args.log_level is None:
        setup_logging(settings.log_level, args.log_dir)
    context = ApplicationContext(Environment(include_system_environment=False))
    context.add_initializer(ConfiguredPropertySourceInitializer(settings))
    context.refresh()

    seen: set[str] = set()
    for source in context.environment.property_sources:
        effective: dict[str, str] = {}
        for key in source.keys():
            if key in seen:
                continue
            seen.add(key)
            if isinstance(source, EncryptablePropertySource) and is_encrypted_value(source.raw(key)):
                effective[key] = source.get(key) if args.reveal else _MASK
            else:
                effective[key] = source.get(key)
        if effective:
            print(dump_properties(effective, comments=[f" {source.name}"]), end="")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _add_encryptor_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--password-env",
        required=True,
        metavar="NAME",
        help="Environment variable holding the encryption password",
    )
    parser.add_argument(
        "--algorithm",
        choices=SUPPORTED_ALGORITHMS,
        default=DEFAULT_ALGORITHM,
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=DEFAULT_KEY_OBTENTION_ITERATIONS,
        help="Key obtention iterations (default: %(default)s)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="encprops",
        description="Encrypt, decrypt and inspect encrypted property files.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Default: WARNING, or the settings file value for show")
    parser.add_argument("--log-dir", default=None, help="Also write logs to this directory")
    sub = parser.add_subparsers(dest="command", required=True)

    p_encrypt = sub.add_parser("encrypt", help="Encrypt a value and print ENC(...)")
    p_encrypt.add_argument("value")
    _add_encryptor_options(p_encrypt)
    p_encrypt.set_defaults(func=_cmd_encrypt)

    p_decrypt = sub.add_parser("decrypt", help="Decrypt a value, with or without ENC(...)")
    p_decrypt.add_argument("value")
    _add_encryptor_options(p_decrypt)
    p_decrypt.set_defaults(func=_cmd_decrypt)

    p_check = sub.add_parser("check", help="Verify every encrypted value in property files")
    p_check.add_argument("files", nargs="+", type=Path)
    p_check.add_argument("--encoding", default="utf-8")
    _add_encryptor_options(p_check)
    p_check.set_defaults(func=_cmd_check)

    p_show = sub.add_parser("show", help="Print effective properties for a settings file")
    p_show.add_argument("--settings", type=Path, default=None)
    p_show.add_argument("--reveal", action="store_true", help="Print decrypted values")
    p_show.set_defaults(func=_cmd_show)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or "WARNING", args.log_dir)

    try:
        return args.func(args)
    except (EncryptedPropertiesError, FileNotFoundError, ValidationError, ValueError) as exc:
        _log.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
