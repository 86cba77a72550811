"""Exception types raised by the stabilization engine."""

from __future__ import annotations


class InvalidSize(ValueError):
    """Raised when a system is requested with fewer than one node."""


class InvalidFaultCount(ValueError):
    """Raised when a negative number of transient faults is requested."""


class IndexOutOfRange(IndexError):
    """Raised when a selected node index falls outside ``[0, N)``."""


class MonotonicityViolation(RuntimeError):
    """Raised when a node's secondary value would decrease."""
