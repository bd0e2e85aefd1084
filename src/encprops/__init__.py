"""Encrypted property files for Python applications.

Loads ``.properties`` files shipped inside a package, overlays optional
operator overrides from a directory on disk, and decrypts ``ENC(...)``
values on read with a password taken from an environment variable.
"""

from encprops.core import (
    ApplicationContext,
    ConfiguredPropertySourceInitializer,
    Environment,
    PropertySourceInitializer,
)
from encprops.core.models import InitializerSettings

__all__ = [
    "ApplicationContext",
    "ConfiguredPropertySourceInitializer",
    "Environment",
    "InitializerSettings",
    "PropertySourceInitializer",
]

__version__ = "1.0.0"
