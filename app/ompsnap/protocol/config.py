"""OMP connection profile.

The ``omp`` client reads its connection settings from an INI file
(``/etc/openvas/omp.config`` by default)::

    [Connection]
    host=localhost
    port=9390
    username=admin
    password=secret

Files without a section header are read as if the keys were under
``[Connection]``.
"""

import configparser
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

SECTION = "Connection"


class ConnectionProfile(BaseModel):
    """Connection settings of the omp client.

    Attributes:
        host: Manager host name.
        port: Manager port.
        username: Login name.
        password: Login password.
    """

    model_config = ConfigDict(extra="ignore")

    host: Annotated[str, Field(description="Manager host name")] = "localhost"
    port: Annotated[int, Field(ge=1, le=65535, description="Manager port")] = 9390
    username: Annotated[str, Field(description="Login name")] = ""
    password: Annotated[SecretStr, Field(description="Login password")] = SecretStr("")


class ConnectionProfileError(Exception):
    """Raised when a connection profile cannot be read."""


def load_profile(path: Path) -> ConnectionProfile:
    """Load a connection profile.

    Args:
        path: Path to the omp.config file.

    Returns:
        Parsed ConnectionProfile.

    Raises:
        ConnectionProfileError: If the file is missing, unreadable or invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConnectionProfileError(f"Connection profile not found: {path}") from e
    except OSError as e:
        raise ConnectionProfileError(f"Failed to read connection profile: {e}") from e

    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read_string(text, source=str(path))
    except configparser.MissingSectionHeaderError:
        parser.read_string(f"[{SECTION}]\n{text}", source=str(path))
    except configparser.Error as e:
        raise ConnectionProfileError(f"Invalid connection profile {path}: {e}") from e

    values = dict(parser[SECTION]) if parser.has_section(SECTION) else {}
    try:
        return ConnectionProfile.model_validate(values)
    except ValidationError as e:
        raise ConnectionProfileError(f"Invalid connection profile {path}: {e}") from e
