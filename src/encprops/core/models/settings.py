"""InitializerSettings Pydantic model."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SOURCE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class InitializerSettings(BaseModel):
    """Everything the property source initializer needs to know.

    ``property_source_names`` are logical names: ``application`` maps to
    ``<resource_package>/application.properties`` and, when present,
    ``<overrides_directory>/application.properties``.
    """

    model_config = ConfigDict(extra="forbid")

    password_env_name: str = Field(
        min_length=1, description="Env var holding the encryption password"
    )
    property_source_names: list[str] = Field(
        default_factory=lambda: ["application"],
        description="Logical property set names, lowest precedence first",
    )
    resource_package: str = Field(
        min_length=1, description="Importable package that ships the base .properties files"
    )
    overrides_directory: Path | None = Field(
        default=None, description="Directory searched for operator override files"
    )
    algorithm: Literal["PBEWithMD5AndTripleDES", "PBEWithMD5AndDES"] = Field(
        default="PBEWithMD5AndTripleDES"
    )
    key_obtention_iterations: int = Field(default=1000, ge=1)
    encoding: str = Field(default="utf-8", description="Text encoding of .properties files")
    override_suffix: str = Field(
        default="Override", min_length=1, description="Appended to the name of override sources"
    )
    log_level: str = Field(default="INFO", description="Root log level used by the CLI")

    @field_validator("property_source_names")
    @classmethod
    def _check_names(cls, names: list[str]) -> list[str]:
        for name in names:
            if not SOURCE_NAME_PATTERN.fullmatch(name):
                raise ValueError(f"Invalid property source name: {name!r}")
        if len(set(names)) != len(names):
            raise ValueError("property_source_names must be unique")
        return names
