"""Console colors for ompsnap.

The bundled ``data/theme.toml`` defines every color. A ``theme.toml`` in the
user config directory may override any subset of them.
"""

import logging
import tomllib
from functools import cache
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from ompsnap.core.paths import get_user_theme_path

logger = logging.getLogger(__name__)

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def check_hex_color(field: str, value: object) -> str:
    """Validate a ``#RGB`` or ``#RRGGBB`` color.

    Raises:
        ValueError: Naming the field and the problem.
    """
    if not isinstance(value, str):
        raise ValueError(f"{field}: color must be a string")
    color = value.strip()
    if not color.startswith("#"):
        raise ValueError(f"{field}: color must start with '#'")
    if len(color) not in (4, 7):
        raise ValueError(f"{field}: color must be #RGB or #RRGGBB format")
    if not HEX_DIGITS.issuperset(color[1:]):
        raise ValueError(f"{field}: invalid hex color '{color}'")
    return color


class ThemeColors(BaseModel):
    """Colors used for progress, messages and import outcomes."""

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    created: str = "#c1ff62"
    skipped: str = "#0e8ac8"
    failed: str = "#f53263"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        return check_hex_color(info.field_name, v)


def get_bundled_theme_path() -> Path:
    """Return the path of the theme shipped in ``ompsnap.data``."""
    return resources.files("ompsnap.data").joinpath("theme.toml")  # type: ignore[return-value]


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Non-string values are dropped.

    Returns:
        Colors by name, or None if the file is missing or unusable.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    table = data.get("colors", {})
    if not isinstance(table, dict):
        logger.warning("Ignoring theme file %s: 'colors' is not a table", path)
        return None
    return {key: value for key, value in table.items() if isinstance(value, str)}


def load_theme() -> ThemeColors:
    """Merge user overrides over the bundled colors.

    An invalid merged theme falls back to the built-in defaults entirely.
    """
    colors = _load_toml_colors(Path(get_bundled_theme_path()))
    if colors is None:
        logger.error("Bundled theme is missing, the installation may be broken")
        colors = {}

    user_path = get_user_theme_path()
    overrides = _load_toml_colors(user_path)
    if overrides:
        logger.debug("Applying theme overrides from %s", user_path)
        colors = {**colors, **overrides}

    try:
        return ThemeColors(**colors)
    except ValidationError as e:
        logger.warning("Invalid theme, using default colors: %s", e)
        return ThemeColors()


# Rich style name -> (color field, extra attributes)
_STYLES: dict[str, tuple[str, str]] = {
    "text": ("text", ""),
    "muted": ("muted", ""),
    "dim": ("muted", ""),
    "header": ("header", ""),
    "bold_header": ("header", "bold"),
    "border": ("border", ""),
    "success": ("success", ""),
    "warning": ("warning", ""),
    "error": ("error", "bold"),
    "info": ("info", ""),
    "created": ("created", ""),
    "skipped": ("skipped", ""),
    "failed": ("failed", "bold"),
}


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme for a set of colors.

    Args:
        colors: Colors to use. Loaded with ``load_theme`` if None.
    """
    colors = colors or load_theme()
    return Theme(
        {
            style: f"{extra} {getattr(colors, field)}".strip()
            for style, (field, extra) in _STYLES.items()
        }
    )


@cache
def get_theme() -> Theme:
    """Return the Rich theme, loading it on first use."""
    return get_rich_theme()
