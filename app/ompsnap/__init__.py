"""ompsnap - snapshot and restore OpenVAS manager configuration over OMP."""

__version__ = "0.3.0"
