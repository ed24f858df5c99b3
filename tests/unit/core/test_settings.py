"""Unit tests for user settings."""

from pathlib import Path

import pytest
from ompsnap.core.paths import DEFAULT_OMP_CONFIG
from ompsnap.core.settings import (
    Settings,
    SettingsParseError,
    SettingsValidationError,
    load_settings,
)


class TestSettings:
    """Tests for the Settings model."""

    def test_defaults(self) -> None:
        """Defaults talk to the local omp client."""
        settings = Settings()
        assert settings.omp_binary == "omp"
        assert settings.omp_config == DEFAULT_OMP_CONFIG
        assert settings.timeout_seconds == 300
        assert settings.empty_trashcan is True

    def test_timeout_bounds(self) -> None:
        """Timeouts outside 10..3600 seconds are rejected."""
        with pytest.raises(ValueError):
            Settings(timeout_seconds=5)

    def test_unknown_keys_rejected(self) -> None:
        """Unknown settings are rejected."""
        with pytest.raises(ValueError):
            Settings(verbose=True)  # type: ignore[call-arg]


class TestLoadSettings:
    """Tests for load_settings."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """A missing settings file means defaults."""
        assert load_settings(tmp_path / "settings.toml") == Settings()

    def test_loads_values(self, tmp_path: Path) -> None:
        """Values are read from TOML."""
        path = tmp_path / "settings.toml"
        path.write_text('omp_binary = "/usr/local/bin/omp"\nempty_trashcan = false\n')

        settings = load_settings(path)

        assert settings.omp_binary == "/usr/local/bin/omp"
        assert settings.empty_trashcan is False

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises SettingsParseError."""
        path = tmp_path / "settings.toml"
        path.write_text("omp_binary = ")

        with pytest.raises(SettingsParseError, match="Invalid TOML"):
            load_settings(path)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Schema violations raise SettingsValidationError."""
        path = tmp_path / "settings.toml"
        path.write_text("timeout_seconds = 99999\n")

        with pytest.raises(SettingsValidationError, match="Invalid settings content"):
            load_settings(path)
