"""Configuration: JSON settings file with environment overrides."""

from encprops.config.config_manager import apply_env_overrides, load_settings

__all__ = ["load_settings", "apply_env_overrides"]
