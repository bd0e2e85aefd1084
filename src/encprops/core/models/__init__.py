"""Pydantic models for initializer configuration."""
from encprops.core.models.settings import InitializerSettings

__all__ = ["InitializerSettings"]
