"""Settings manager: load JSON → apply env overrides → validate → InitializerSettings."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from encprops.core.models.settings import InitializerSettings

_log = logging.getLogger(__name__)

SETTINGS_FILE_ENV = "ENCPROPS_SETTINGS_FILE"

# Environment variable → settings field mapping.  Values stay strings;
# Pydantic coerces them during validation.
_ENV_OVERRIDES: dict[str, str] = {
    "ENCPROPS_OVERRIDES_DIR": "overrides_directory",
    "ENCPROPS_PASSWORD_ENV": "password_env_name",
    "ENCPROPS_ALGORITHM": "algorithm",
    "ENCPROPS_ITERATIONS": "key_obtention_iterations",
    "ENCPROPS_LOG_LEVEL": "log_level",
}


def load_settings(settings_path: Path | str | None = None) -> InitializerSettings:
    """Load, override, and validate initializer settings.

    Args:
        settings_path: Path to a JSON settings file.  When *None*, falls back
            to the ``ENCPROPS_SETTINGS_FILE`` env-var.

    Returns:
        A fully-validated :class:`InitializerSettings` instance.

    Raises:
        FileNotFoundError: If no settings file can be found.
        pydantic.ValidationError: If the merged settings are invalid.
    """
    path = _resolve_settings_path(settings_path)
    _log.info("Loading settings from %s", path)

    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Settings root must be a JSON object: {path}")

    return apply_env_overrides(raw)


def apply_env_overrides(raw: dict) -> InitializerSettings:
    """Overlay ``ENCPROPS_*`` env vars on *raw* and validate the result."""
    merged = dict(raw)
    for env_key, field in _ENV_OVERRIDES.items():
        env_val = os.environ.get(env_key)
        if env_val is not None:
            merged[field] = env_val
            _log.debug("Env override: %s → %s = %r", env_key, field, env_val)

    return InitializerSettings(**merged)


def _resolve_settings_path(settings_path: Path | str | None) -> Path:
    if settings_path is not None:
        p = Path(settings_path)
    else:
        env = os.environ.get(SETTINGS_FILE_ENV)
        if not env:
            raise FileNotFoundError(
                f"No settings file given and {SETTINGS_FILE_ENV} is not set."
            )
        p = Path(env)
    if not p.is_file():
        raise FileNotFoundError(
            f"Settings file not found: {p}\n"
            f"Pass a valid path or set {SETTINGS_FILE_ENV}."
        )
    return p
