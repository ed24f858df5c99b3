"""User settings.

This module provides the settings model and loader for ompsnap.
Settings are stored in ~/.config/ompsnap/settings.toml; a missing file
means defaults.
"""

import tomllib
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ompsnap.core.paths import DEFAULT_OMP_CONFIG, get_settings_path


class Settings(BaseModel):
    """Settings for talking to the OpenVAS manager.

    Attributes:
        omp_binary: omp client executable.
        omp_config: Connection profile used when ``-c`` is not given.
        timeout_seconds: Maximum time for one omp request (default: 300s).
        empty_trashcan: Empty the destination trashcan before an import.
    """

    model_config = ConfigDict(extra="forbid")

    omp_binary: Annotated[
        str,
        Field(min_length=1, description="omp client executable"),
    ] = "omp"
    omp_config: Annotated[
        Path,
        Field(description="Default omp connection profile"),
    ] = DEFAULT_OMP_CONFIG
    timeout_seconds: Annotated[
        int,
        Field(ge=10, le=3600, description="Timeout per request in seconds (10-3600)"),
    ] = 300
    empty_trashcan: Annotated[
        bool,
        Field(description="Empty the destination trashcan before importing"),
    ] = True


class SettingsError(Exception):
    """Base exception for settings errors."""


class SettingsParseError(SettingsError):
    """Raised when the settings file cannot be parsed."""


class SettingsValidationError(SettingsError):
    """Raised when the settings content is invalid."""


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        path: Path to the settings file. If None, uses the default path.

    Returns:
        Validated Settings; defaults if the file does not exist.

    Raises:
        SettingsParseError: If the TOML syntax is invalid.
        SettingsValidationError: If the content doesn't match the schema.
        SettingsError: If the file cannot be read.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        return Settings()

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise SettingsError(f"Failed to read settings: {e}") from e

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise SettingsValidationError(f"Invalid settings content: {e}") from e
