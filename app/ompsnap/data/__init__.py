"""Bundled data files for ompsnap."""
