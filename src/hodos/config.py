"""
Global Configuration for Hodos Package
======================================

This module provides package-wide configuration settings that users can modify
to control validation strictness, precision warnings and default plotting options.

Examples
--------
View current configuration:

>>> import hodos
>>> print(hodos.config)

Modify settings:

>>> hodos.config.STRICT_ROTATIONAL_RESET = True  # Fail on bad rotation models
>>> hodos.config.DEFAULT_PLOT_POINTS = 2000  # More detailed plots

Reset to defaults:

>>> hodos.config.reset()

Temporarily modify settings:

>>> with hodos.temp_config(WARN_ON_PRECISION_CAST=False):
...     # Silence precision warnings for this block only
...     reset_integrated_states(solution, processors, bodies)

Notes
-----
These settings affect package-wide behavior. Modifying them will impact
all subsequent operations until changed again or reset.
"""

from dataclasses import dataclass
from contextlib import contextmanager


@dataclass
class HodosConfig:
    """
    Global configuration for Hodos package.

    Attributes
    ----------
    STRICT_VALIDATION : bool
        If True, validation failures raise exceptions.
        If False, validation failures issue warnings.
        Default: True
    STRICT_ROTATIONAL_RESET : bool
        If True, resetting the rotational ephemeris of a body that has no
        compatible tabulated rotational ephemeris raises an exception, as
        the translational path always does. If False, a warning is issued
        and the body is skipped.
        Default: False
    WARN_ON_PRECISION_CAST : bool
        If True, a warning is issued whenever new states are cast to the
        precision of an existing ephemeris.
        Default: True
    EQUALITY_RTOL : float
        Relative tolerance for comparing arc boundary times.
        Default: 1e-12
    EQUALITY_ATOL : float
        Absolute tolerance for comparing arc boundary times.
        Default: 1e-9
    DEFAULT_PLOT_POINTS : int
        Default number of points for ephemeris plotting.
        Default: 1000
    DEFAULT_BODY_COLOR : str
        Default color for origin bodies in plots.
        Default: 'lightblue'
    DEFAULT_TRAJ_COLOR : str
        Default color for ephemeris lines in plots.
        Default: 'red'
    DEFAULT_BODY_OPACITY : float
        Default opacity for origin body spheres (0.0 to 1.0).
        Default: 0.6
    """

    # Validation behavior
    STRICT_VALIDATION: bool = True
    STRICT_ROTATIONAL_RESET: bool = False
    WARN_ON_PRECISION_CAST: bool = True

    # Numerical tolerance for arc boundaries
    EQUALITY_RTOL: float = 1e-12
    EQUALITY_ATOL: float = 1e-9

    # Plotting defaults
    DEFAULT_PLOT_POINTS: int = 1000
    DEFAULT_BODY_COLOR: str = 'lightblue'
    DEFAULT_TRAJ_COLOR: str = 'red'
    DEFAULT_TRAJ_COLOR_ADD: str = 'blue'
    DEFAULT_BODY_OPACITY: float = 0.6

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import hodos
        >>> hodos.config.STRICT_VALIDATION = False  # Modify
        >>> hodos.config.reset()  # Back to defaults
        >>> hodos.config.STRICT_VALIDATION
        True
        """
        defaults = HodosConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["HodosConfig:"]
        lines.append("  Behavior:")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        lines.append(f"    STRICT_ROTATIONAL_RESET = {self.STRICT_ROTATIONAL_RESET}")
        lines.append(f"    WARN_ON_PRECISION_CAST = {self.WARN_ON_PRECISION_CAST}")
        lines.append("  Numerical Tolerances:")
        lines.append(f"    EQUALITY_RTOL = {self.EQUALITY_RTOL}")
        lines.append(f"    EQUALITY_ATOL = {self.EQUALITY_ATOL}")
        lines.append("  Plotting:")
        lines.append(f"    DEFAULT_PLOT_POINTS = {self.DEFAULT_PLOT_POINTS}")
        lines.append(f"    DEFAULT_BODY_COLOR = '{self.DEFAULT_BODY_COLOR}'")
        lines.append(f"    DEFAULT_TRAJ_COLOR = '{self.DEFAULT_TRAJ_COLOR}'")
        lines.append(f"    DEFAULT_TRAJ_COLOR_ADD = '{self.DEFAULT_TRAJ_COLOR_ADD}'")
        lines.append(f"    DEFAULT_BODY_OPACITY = {self.DEFAULT_BODY_OPACITY}")
        return "\n".join(lines)


# Global configuration instance
config = HodosConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import hodos
    >>> with hodos.temp_config(STRICT_ROTATIONAL_RESET=True):
    ...     processor.process_integrated_states(solution, bodies)
    >>> # Original config restored here
    >>> hodos.config.STRICT_ROTATIONAL_RESET
    False

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    old_values = {}
    for key, value in kwargs.items():
        if not hasattr(config, key):
            raise AttributeError(
                f"HodosConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
