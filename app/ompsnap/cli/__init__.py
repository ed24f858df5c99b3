"""CLI package for ompsnap.

This package contains the Typer application.
"""

from ompsnap.cli.main import app

__all__ = ["app"]
