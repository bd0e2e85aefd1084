"""Shared pytest fixtures for encprops tests."""

from __future__ import annotations

import logging
from typing import Callable

import pytest

from encprops.crypto.pbe import EnvironmentPBEConfig, StandardPBEStringEncryptor
from tests.helpers.resource_scaffold import PASSWORD, PASSWORD_ENV, create_resource_package


@pytest.fixture
def restore_root_logging():
    """Drop handlers installed by ``setup_logging`` after the test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if not type(handler).__module__.startswith("_pytest"):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def password(monkeypatch) -> str:
    """Export the test password under ``PASSWORD_ENV``."""
    monkeypatch.setenv(PASSWORD_ENV, PASSWORD)
    return PASSWORD


@pytest.fixture
def encryptor(password) -> StandardPBEStringEncryptor:
    """Default-algorithm encryptor keyed with the test password."""
    return StandardPBEStringEncryptor(EnvironmentPBEConfig(password_env_name=PASSWORD_ENV))


@pytest.fixture
def make_resources(tmp_path, monkeypatch) -> Callable[[dict], str]:
    """Factory creating a throwaway resource package; returns its name."""
    base_dir = tmp_path / "site"
    base_dir.mkdir()
    monkeypatch.syspath_prepend(str(base_dir))

    def _make(files: dict) -> str:
        return create_resource_package(base_dir, files)

    return _make


@pytest.fixture
def overrides_dir(tmp_path):
    """Empty directory for operator override files."""
    path = tmp_path / "etc" / "app"
    path.mkdir(parents=True)
    return path
