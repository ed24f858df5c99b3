"""Shared types for the CLI."""

from enum import Enum

# File name that selects stdin/stdout instead of an archive file
STDIO = "-"


class ActionChoice(str, Enum):
    """What to do with the snapshot."""

    IMPORT = "import"
    EXPORT = "export"
