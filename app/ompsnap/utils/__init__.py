"""Console and subprocess helpers for ompsnap."""
