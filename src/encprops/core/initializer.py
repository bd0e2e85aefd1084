"""Property source initializer: registers decryption-aware sources at startup.

For every logical name, in order:

1. ``<resource_package>/<name>.properties`` is loaded (mandatory) and added
   first as source ``<name>``.
2. ``<overrides_directory>/<name>.properties`` is loaded if present and added
   first as source ``<name>Override``.

Each ``add_first`` pushes earlier registrations down, so for names
``[a, b]`` the final order is ``bOverride, b, aOverride, a, <existing>``:
later names beat earlier ones, overrides beat their base file, and all of
them beat sources that were present before (e.g. ``os.environ``).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from encprops.core.environment import ApplicationContext
from encprops.core.models.settings import SOURCE_NAME_PATTERN, InitializerSettings
from encprops.core.property_sources import EncryptablePropertySource
from encprops.core.resources import FileSystemResource, PackageResource, Resource, load_properties
from encprops.crypto.pbe import (
    DEFAULT_ALGORITHM,
    DEFAULT_KEY_OBTENTION_ITERATIONS,
    EnvironmentPBEConfig,
    StandardPBEStringEncryptor,
)
from encprops.errors import PropertySourceLoadError
from encprops.log_config.logger import ContextualLogger

_log = logging.getLogger(__name__)

PROPERTIES_EXTENSION = ".properties"


class ContextInitializer(ABC):
    """Callback that prepares an :class:`ApplicationContext` before use."""

    @abstractmethod
    def initialize(self, context: ApplicationContext) -> None:
        """Mutate *context* (typically its environment)."""


class PropertySourceInitializer(ContextInitializer):
    """Loads encryptable property files into the context environment.

    Subclasses supply the password variable, the names to load, and the
    locations.  The encryptor is built once, here; the password variable is
    read at construction but a missing password only surfaces when an
    encrypted value is actually read.
    """

    override_suffix = "Override"
    encoding = "utf-8"

    def __init__(self) -> None:
        config = EnvironmentPBEConfig(
            algorithm=self.algorithm(),
            key_obtention_iterations=self.key_obtention_iterations(),
            password_env_name=self.password_env_name(),
        )
        self._encryptor = StandardPBEStringEncryptor(config)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def password_env_name(self) -> str:
        """Name of the environment variable holding the password."""

    @abstractmethod
    def property_source_names(self) -> list[str]:
        """Logical names to load, lowest precedence first."""

    @abstractmethod
    def resource_package(self) -> str:
        """Importable package that ships the base ``.properties`` files."""

    def overrides_directory(self) -> Path | None:
        """Directory searched for override files; ``None`` disables overrides."""
        return None

    def algorithm(self) -> str:
        return DEFAULT_ALGORITHM

    def key_obtention_iterations(self) -> int:
        return DEFAULT_KEY_OBTENTION_ITERATIONS

    # ------------------------------------------------------------------
    # ContextInitializer
    # ------------------------------------------------------------------

    @property
    def encryptor(self) -> StandardPBEStringEncryptor:
        return self._encryptor

    def initialize(self, context: ApplicationContext) -> None:
        for name in self.property_source_names():
            self.add_property_source(context, name)

    def add_property_source(self, context: ApplicationContext, name: str) -> None:
        """Register the base source for *name* and its override, if any.

        Raises:
            ValueError: If *name* is not a plain file stem.
            PropertySourceLoadError: If the base file cannot be loaded.
        """
        if not SOURCE_NAME_PATTERN.fullmatch(name):
            raise ValueError(f"Invalid property source name: {name!r}")
        self._add_base_source(context, name)
        self._add_override_source(context, name)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _add_base_source(self, context: ApplicationContext, name: str) -> None:
        resource = PackageResource(self.resource_package(), name + PROPERTIES_EXTENSION)
        try:
            properties = load_properties(resource, self.encoding)
        except (OSError, ValueError) as exc:
            raise PropertySourceLoadError(name, resource.description) from exc
        self._add_encryptable_source(context, name, properties, resource)

    def _add_override_source(self, context: ApplicationContext, name: str) -> None:
        directory = self.overrides_directory()
        if directory is None:
            return

        resource = FileSystemResource(Path(directory) / (name + PROPERTIES_EXTENSION))
        if not resource.exists():
            _log.debug("No override for %s at %s", name, resource.description)
            return
        try:
            properties = load_properties(resource, self.encoding)
        except (OSError, ValueError) as exc:
            ContextualLogger(_log, source=name + self.override_suffix).warning(
                "Ignoring unreadable override %s: %s", resource.description, exc
            )
            return
        self._add_encryptable_source(context, name + self.override_suffix, properties, resource)

    def _add_encryptable_source(
        self,
        context: ApplicationContext,
        source_name: str,
        properties: dict[str, str],
        resource: Resource,
    ) -> None:
        source = EncryptablePropertySource(source_name, properties, self._encryptor)
        context.environment.property_sources.add_first(source)
        ContextualLogger(_log, source=source_name).debug(
            "%d keys from %s", len(properties), resource.description
        )
        _log.info("Encryptable properties added: %s", source_name)


class ConfiguredPropertySourceInitializer(PropertySourceInitializer):
    """:class:`PropertySourceInitializer` driven by :class:`InitializerSettings`."""

    def __init__(self, settings: InitializerSettings) -> None:
        self._settings = settings
        self.override_suffix = settings.override_suffix
        self.encoding = settings.encoding
        super().__init__()

    @property
    def settings(self) -> InitializerSettings:
        return self._settings

    def password_env_name(self) -> str:
        return self._settings.password_env_name

    def property_source_names(self) -> list[str]:
        return list(self._settings.property_source_names)

    def resource_package(self) -> str:
        return self._settings.resource_package

    def overrides_directory(self) -> Path | None:
        return self._settings.overrides_directory

    def algorithm(self) -> str:
        return self._settings.algorithm

    def key_obtention_iterations(self) -> int:
        return self._settings.key_obtention_iterations
