"""Named property sources and the ordered registry that holds them.

Lookup walks :class:`MutablePropertySources` front to back and the first
source containing a key wins, so ``add_first`` means "highest precedence".
"""

from __future__ import annotations

import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Iterator, Mapping

from encprops.crypto.values import StringEncryptor, decrypt_value

_log = logging.getLogger(__name__)

SYSTEM_ENVIRONMENT_SOURCE_NAME = "systemEnvironment"


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

class PropertySource(ABC):
    """A named set of key/value pairs."""

    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError("Property source name must be non-empty")
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    def contains(self, key: str) -> bool:
        """Return ``True`` if *key* is defined by this source."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value of *key*, or ``None`` if undefined."""

    @abstractmethod
    def keys(self) -> list[str]:
        """Return the keys this source defines."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"


class MapPropertySource(PropertySource):
    """Property source backed by a plain mapping."""

    def __init__(self, name: str, properties: Mapping[str, str]) -> None:
        super().__init__(name)
        self._properties = dict(properties)

    def contains(self, key: str) -> bool:
        return key in self._properties

    def get(self, key: str) -> str | None:
        return self._properties.get(key)

    def keys(self) -> list[str]:
        return list(self._properties)


class EnvironmentVariablesPropertySource(PropertySource):
    """Live view of ``os.environ``."""

    def __init__(self, name: str = SYSTEM_ENVIRONMENT_SOURCE_NAME) -> None:
        super().__init__(name)

    def contains(self, key: str) -> bool:
        return key in os.environ

    def get(self, key: str) -> str | None:
        return os.environ.get(key)

    def keys(self) -> list[str]:
        return list(os.environ)


class EncryptablePropertySource(MapPropertySource):
    """Map source whose ``ENC(...)`` values are decrypted on every read.

    Plaintext is never cached; the stored mapping keeps the encrypted text.
    """

    def __init__(
        self,
        name: str,
        properties: Mapping[str, str],
        encryptor: StringEncryptor,
    ) -> None:
        super().__init__(name, properties)
        self._encryptor = encryptor

    def get(self, key: str) -> str | None:
        value = super().get(key)
        if value is None:
            return None
        return decrypt_value(value, self._encryptor)

    def raw(self, key: str) -> str | None:
        """Return the stored value without decrypting it."""
        return super().get(key)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class MutablePropertySources:
    """Thread-safe, ordered collection of :class:`PropertySource` objects.

    Adding a source whose name is already present removes the old entry
    first, so names stay unique.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sources: list[PropertySource] = []

    # -- mutation --------------------------------------------------------

    def add_first(self, source: PropertySource) -> None:
        with self._lock:
            self._remove_if_present(source.name)
            self._sources.insert(0, source)

    def add_last(self, source: PropertySource) -> None:
        with self._lock:
            self._remove_if_present(source.name)
            self._sources.append(source)

    def add_before(self, relative_name: str, source: PropertySource) -> None:
        with self._lock:
            self._assert_not_self(relative_name, source)
            self._remove_if_present(source.name)
            self._sources.insert(self._index_of(relative_name), source)

    def add_after(self, relative_name: str, source: PropertySource) -> None:
        with self._lock:
            self._assert_not_self(relative_name, source)
            self._remove_if_present(source.name)
            self._sources.insert(self._index_of(relative_name) + 1, source)

    def replace(self, name: str, source: PropertySource) -> None:
        with self._lock:
            self._sources[self._index_of(name)] = source

    def remove(self, name: str) -> PropertySource | None:
        with self._lock:
            return self._remove_if_present(name)

    # -- queries ---------------------------------------------------------

    def get(self, name: str) -> PropertySource | None:
        with self._lock:
            for source in self._sources:
                if source.name == name:
                    return source
        return None

    def contains(self, name: str) -> bool:
        return self.get(name) is not None

    def names(self) -> list[str]:
        with self._lock:
            return [source.name for source in self._sources]

    def __iter__(self) -> Iterator[PropertySource]:
        with self._lock:
            snapshot = list(self._sources)
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.contains(name)

    # -- internals -------------------------------------------------------

    def _index_of(self, name: str) -> int:
        for index, source in enumerate(self._sources):
            if source.name == name:
                return index
        raise KeyError(f"Property source '{name}' does not exist")

    def _remove_if_present(self, name: str) -> PropertySource | None:
        for index, source in enumerate(self._sources):
            if source.name == name:
                _log.debug("Replacing property source %s", name)
                return self._sources.pop(index)
        return None

    @staticmethod
    def _assert_not_self(relative_name: str, source: PropertySource) -> None:
        if relative_name == source.name:
            raise ValueError(f"Property source '{relative_name}' cannot be added relative to itself")
