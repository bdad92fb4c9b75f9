"""
Exception types raised while turning integrated states into ephemerides.

Every error derives from :class:`HodosError` and from the builtin
exception it most resembles, so ``except ValueError`` style handlers
written against plain numpy/scipy code keep working.
"""


class HodosError(Exception):
    """Base class for all errors raised by the hodos package."""


class LayoutInconsistencyError(HodosError, ValueError):
    """Segment sizes disagree with the flat state vector or the body count."""


class UnknownStateTypeError(HodosError, ValueError):
    """A propagation settings node reports a kind this layer cannot dispatch."""


class AmbiguousHybridCompositionError(HodosError, ValueError):
    """A hybrid entry produced no processor, or more than one."""


class NestedHybridError(HodosError, ValueError):
    """A hybrid settings node contains another hybrid node."""


class UndefinedSettingsError(HodosError, ValueError):
    """A hybrid settings node contains an undefined (None) entry."""


class BodyNotFoundError(HodosError, KeyError):
    """A body name is absent from the relevant body list or collection."""

    def __str__(self):
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class MissingEphemerisError(HodosError, RuntimeError):
    """The target body has no representation of the kind being installed."""


class WrongEphemerisTypeError(HodosError, TypeError):
    """The target body's representation cannot be reset with the new data."""


class UnsupportedOperationError(HodosError, NotImplementedError):
    """The requested reset is not available for this state kind."""


class FrameDependencyError(HodosError, ValueError):
    """Ephemeris origins form a cycle, so no safe update order exists."""


class InterpolationRangeError(HodosError, ValueError):
    """An interpolant was queried outside its tabulated time span."""
