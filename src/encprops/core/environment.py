"""Configuration environment and application context.

The :class:`Environment` answers property lookups against an ordered set of
property sources.  The :class:`ApplicationContext` owns an environment and
runs the registered initializers before the application uses it.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from encprops.core.property_sources import (
    EnvironmentVariablesPropertySource,
    MutablePropertySources,
)
from encprops.errors import MissingPropertyError, PlaceholderResolutionError

if TYPE_CHECKING:
    from encprops.core.initializer import ContextInitializer

_log = logging.getLogger(__name__)

T = TypeVar("T")

_PLACEHOLDER = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")

_TRUE_VALUES = frozenset({"true", "on", "yes", "1"})
_FALSE_VALUES = frozenset({"false", "off", "no", "0"})


def _to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot convert {value!r} to bool")


_CONVERTERS: dict[type, Callable[[str], Any]] = {
    str: str,
    int: lambda v: int(v.strip()),
    float: lambda v: float(v.strip()),
    bool: _to_bool,
}


class Environment:
    """Property lookup over :class:`MutablePropertySources`.

    Args:
        include_system_environment: Register ``os.environ`` as the last
            (lowest precedence) source.
    """

    def __init__(self, include_system_environment: bool = True) -> None:
        self._property_sources = MutablePropertySources()
        if include_system_environment:
            self._property_sources.add_last(EnvironmentVariablesPropertySource())

    @property
    def property_sources(self) -> MutablePropertySources:
        return self._property_sources

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def contains_property(self, key: str) -> bool:
        return any(source.contains(key) for source in self._property_sources)

    def get_property(
        self,
        key: str,
        default: Any = None,
        target_type: type[T] = str,  # type: ignore[assignment]
    ) -> T | Any:
        """Return *key* converted to *target_type*, or *default*.

        ``${name}`` and ``${name:fallback}`` placeholders inside the value
        are resolved against this environment.

        Raises:
            PlaceholderResolutionError: On an unresolvable or circular
                placeholder.
            ValueError: If the value cannot be converted.
        """
        raw = self._lookup(key)
        if raw is None:
            return default
        resolved = self._resolve(raw, {key})
        return self._convert(key, resolved, target_type)

    def get_required_property(self, key: str, target_type: type[T] = str) -> T:  # type: ignore[assignment]
        """Like :meth:`get_property` but raise if *key* is undefined."""
        if not self.contains_property(key):
            raise MissingPropertyError(key)
        return self.get_property(key, target_type=target_type)

    def resolve_placeholders(self, text: str) -> str:
        """Resolve every ``${...}`` placeholder in *text*."""
        return self._resolve(text, set())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lookup(self, key: str) -> str | None:
        for source in self._property_sources:
            if source.contains(key):
                value = source.get(key)
                _log.debug("Found key %r in property source %s", key, source.name)
                return value
        return None

    def _resolve(self, text: str, visiting: set[str]) -> str:
        def replace(match: re.Match[str]) -> str:
            name, fallback = match.group(1).strip(), match.group(2)
            if name in visiting:
                raise PlaceholderResolutionError(f"Circular placeholder reference '{name}'")
            value = self._lookup(name)
            if value is None:
                if fallback is None:
                    raise PlaceholderResolutionError(f"Could not resolve placeholder '{name}'")
                return fallback
            return self._resolve(value, visiting | {name})

        return _PLACEHOLDER.sub(replace, text)

    @staticmethod
    def _convert(key: str, value: str, target_type: type) -> Any:
        converter = _CONVERTERS.get(target_type)
        if converter is None:
            raise TypeError(f"Unsupported target type {target_type.__name__} for property {key!r}")
        try:
            return converter(value)
        except ValueError as exc:
            raise ValueError(
                f"Property {key!r} cannot be converted to {target_type.__name__}"
            ) from exc


class ApplicationContext:
    """Holds the :class:`Environment` and runs initializers on refresh.

    Registering an initializer or calling :meth:`refresh` from inside a
    running initializer raises :class:`RuntimeError`.
    """

    def __init__(self, environment: Environment | None = None) -> None:
        self._environment = environment or Environment()
        self._initializers: list[ContextInitializer] = []
        self._lock = threading.Lock()
        self._refresh_lock = threading.RLock()
        self._refreshing = False
        self._refreshed = False

    @property
    def environment(self) -> Environment:
        return self._environment

    def get_environment(self) -> Environment:
        return self._environment

    @property
    def is_refreshed(self) -> bool:
        return self._refreshed

    def add_initializer(self, initializer: ContextInitializer) -> None:
        with self._lock:
            if self._refreshing:
                raise RuntimeError("Cannot add initializers during refresh()")
            if self._refreshed:
                raise RuntimeError("Cannot add initializers after refresh()")
            self._initializers.append(initializer)

    def refresh(self) -> None:
        """Run every registered initializer once, in registration order.

        Raises:
            RuntimeError: If called from inside a running initializer.
        """
        with self._refresh_lock:
            with self._lock:
                if self._refreshing:
                    raise RuntimeError("refresh() is already in progress")
                if self._refreshed:
                    _log.info("Context already refreshed - ignoring")
                    return
                self._refreshing = True
                initializers = list(self._initializers)
            try:
                for initializer in initializers:
                    _log.debug("Running initializer %s", type(initializer).__name__)
                    initializer.initialize(self)
                with self._lock:
                    self._refreshed = True
            finally:
                with self._lock:
                    self._refreshing = False
