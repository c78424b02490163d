"""
grid_errors.py

Error taxonomy for grid-to-graph construction.

- ConfigurationError: missing grid, zero offset, bad metric name, ...
- BoundsError: a vertex id failed to round-trip through the codec
- RangeError: coordinate / vertex-id arithmetic left the 64-bit range
"""

from __future__ import annotations


class GridGraphError(Exception):
    """Base class for every error raised while building a grid graph."""


class ConfigurationError(GridGraphError, ValueError):
    pass


class BoundsError(GridGraphError, IndexError):
    pass


class RangeError(GridGraphError, OverflowError):
    pass
