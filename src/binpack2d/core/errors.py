"""Exception hierarchy for the packing engine.

Capacity failure is never an exception: packers return the failed-placement
sentinel instead. The errors below signal bad input or a broken invariant.
"""


class PackingError(Exception):
    """Base class for all packing engine errors."""


class InvalidDimensionError(PackingError, ValueError):
    """A bin or item dimension (or a quantity) is out of range."""


class LayoutConsistencyError(PackingError, RuntimeError):
    """Internal layout bookkeeping reached a state that should be unreachable."""


class UnknownPackerError(PackingError, ValueError):
    """No packer is registered under the requested name."""
