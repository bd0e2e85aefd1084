"""Core services: properties codec, property sources, environment, initializer."""

from encprops.core.environment import ApplicationContext, Environment
from encprops.core.initializer import (
    ConfiguredPropertySourceInitializer,
    ContextInitializer,
    PropertySourceInitializer,
)
from encprops.core.property_sources import (
    EncryptablePropertySource,
    EnvironmentVariablesPropertySource,
    MapPropertySource,
    MutablePropertySources,
    PropertySource,
)

__all__ = [
    "ApplicationContext",
    "ConfiguredPropertySourceInitializer",
    "ContextInitializer",
    "EncryptablePropertySource",
    "Environment",
    "EnvironmentVariablesPropertySource",
    "MapPropertySource",
    "MutablePropertySources",
    "PropertySource",
    "PropertySourceInitializer",
]
