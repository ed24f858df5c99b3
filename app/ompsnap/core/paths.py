"""XDG-compliant path management for ompsnap.

XDG defaults:
- Config: ~/.config/ompsnap/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "ompsnap"

# Connection profile the omp client reads when nothing else is configured
DEFAULT_OMP_CONFIG = Path("/etc/openvas/omp.config")

# Extension of snapshot archives
ARCHIVE_SUFFIX = ".tgz"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/ompsnap/ (or XDG_CONFIG_HOME/ompsnap/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_settings_path() -> Path:
    """Get the settings file path.

    Returns:
        Path to ~/.config/ompsnap/settings.toml.
    """
    return get_config_dir() / "settings.toml"


def get_user_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/ompsnap/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def archive_path(name: str, base_dir: Path | None = None) -> Path:
    """Resolve the archive path for a snapshot name given on the command line.

    The archive suffix is appended when missing, so ``-f prod`` and
    ``-f prod.tgz`` refer to the same file.

    Args:
        name: Snapshot name or path as given by the user.
        base_dir: Directory relative names are resolved against.
            Defaults to the current working directory.

    Returns:
        Absolute path of the snapshot archive.
    """
    path = Path(name)
    if path.suffix != ARCHIVE_SUFFIX:
        path = path.with_name(path.name + ARCHIVE_SUFFIX)
    if not path.is_absolute():
        path = (base_dir or Path.cwd()) / path
    return path
