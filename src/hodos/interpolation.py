'''Continuous-time interpolation of tabulated states
Fixed-order Lagrange interpolation on a sliding stencil'''

import numpy as np
from typing import Dict, Optional, Union
from scipy.interpolate import BarycentricInterpolator

from .errors import InterpolationRangeError, LayoutInconsistencyError
from .solution import NumericalSolutionMap

# Number of samples in each local interpolating polynomial
LAGRANGE_ORDER = 6


class LagrangeInterpolator:
    """
    Piecewise Lagrange interpolation of a time-ordered sample sequence.

    For a query time in the interval ``[t_i, t_i+1]`` a polynomial through the
    ``order`` samples centred on that interval is evaluated (the stencil is
    shifted inwards near the ends of the table). Each local polynomial is
    built once, as a ``scipy.interpolate.BarycentricInterpolator``, and
    cached. Queries at a sample time return that sample exactly.

    Parameters
    ----------
    times : array_like
        Strictly increasing sample times, shape (n,)
    values : array_like
        Sample values, shape (n,) for scalar or (n, k) for vector data
    order : int, optional
        Stencil size (default: LAGRANGE_ORDER). If fewer samples are
        available, all samples are used.
    dtype : numpy dtype, optional
        Scalar precision of the values (default: inferred from ``values``)
    time_dtype : numpy dtype, optional
        Precision of the times (default: inferred from ``times``)

    Notes
    -----
    Polynomials are evaluated in double precision relative to the first
    sample of their stencil (both in time and value), then added back in
    the precision of the table, so long double tables keep their magnitude
    resolution.
    """

    def __init__(self, times, values, order: int = LAGRANGE_ORDER,
                 dtype=None, time_dtype=None):
        times = np.asarray(times)
        if time_dtype is None:
            time_dtype = times.dtype if np.issubdtype(times.dtype, np.floating) else np.float64
        times = times.astype(time_dtype, copy=True)

        values = np.asarray(values)
        if dtype is None:
            dtype = values.dtype if np.issubdtype(values.dtype, np.floating) else np.float64
        values = values.astype(dtype, copy=True)

        if times.ndim != 1:
            raise ValueError(f"Times must be one-dimensional, got shape {times.shape}")
        if values.ndim not in (1, 2) or values.shape[0] != times.shape[0]:
            raise ValueError(
                f"Values must have shape (n,) or (n, k) with n = {times.shape[0]}, "
                f"got {values.shape}"
            )
        if times.shape[0] < 2:
            raise ValueError(
                f"At least 2 samples are required for interpolation, got {times.shape[0]}"
            )
        if not np.all(np.diff(times) > 0):
            raise ValueError("Interpolation times must be strictly increasing")
        if not np.all(np.isfinite(values)):
            raise ValueError("Interpolation values contain NaN or Inf")
        if order < 2:
            raise ValueError(f"Interpolation order must be at least 2, got {order}")

        times.flags.writeable = False
        values.flags.writeable = False
        self._times = times
        self._values = values
        self._order = int(order)
        self._stencil_size = min(self._order, times.shape[0])
        self._stencils: Dict[int, BarycentricInterpolator] = {}

    # ========== PROPERTY ACCESS ==========
    @property
    def times(self) -> np.ndarray:
        return self._times

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def order(self) -> int:
        return self._order

    @property
    def dtype(self) -> np.dtype:
        """Scalar precision of the interpolated values."""
        return self._values.dtype

    @property
    def time_dtype(self) -> np.dtype:
        return self._times.dtype

    @property
    def is_scalar(self) -> bool:
        return self._values.ndim == 1

    @property
    def value_size(self) -> int:
        """Number of components per sample (1 for scalar data)."""
        return 1 if self.is_scalar else self._values.shape[1]

    @property
    def t0(self):
        return self._times[0]

    @property
    def tf(self):
        return self._times[-1]

    # ========== EVALUATION ==========
    def interpolate(self, t):
        """Value at a single time ``t``."""
        t = self._time_type(t)
        self._validate_time(t)

        index = int(np.searchsorted(self._times, t, side='right')) - 1
        if index >= 0 and self._times[index] == t:
            return self._copy_sample(index)

        start = self._stencil_start(index)
        polynomial = self._stencil(start)
        reference_value = self._values[start]
        offset = np.asarray(polynomial(float(t - self._times[start])))
        return reference_value + offset.astype(self.dtype)

    def __call__(self, t):
        """
        Evaluate at one or more times.

        Returns a scalar (or shape (k,) array) for scalar ``t`` and a
        shape (m,) (or (m, k)) array for array-like ``t``.
        """
        if np.ndim(t) == 0:
            return self.interpolate(t)
        times = np.asarray(t, dtype=self.time_dtype)
        return np.array([self.interpolate(single) for single in times], dtype=self.dtype)

    def astype(self, dtype=None, time_dtype=None) -> "LagrangeInterpolator":
        """Copy of this interpolator with values and/or times cast."""
        return LagrangeInterpolator(
            self._times, self._values, self._order,
            dtype=self.dtype if dtype is None else dtype,
            time_dtype=self.time_dtype if time_dtype is None else time_dtype,
        )

    def contains_time(self, t) -> bool:
        """Check if time is within the tabulated span."""
        return self.t0 <= t <= self.tf

    # ========== INTERNALS ==========
    def _time_type(self, t):
        return self.time_dtype.type(t)

    def _validate_time(self, t):
        """Validate that time is within the tabulated span."""
        if not np.isfinite(t) or not (self.t0 <= t <= self.tf):
            raise InterpolationRangeError(
                f"Time {t} outside interpolation bounds [{self.t0}, {self.tf}]"
            )

    def _copy_sample(self, index):
        sample = self._values[index]
        return sample.copy() if isinstance(sample, np.ndarray) else sample

    def _stencil_start(self, interval_index: int) -> int:
        n = self._times.shape[0]
        start = interval_index - (self._stencil_size // 2) + 1
        return min(max(start, 0), n - self._stencil_size)

    def _stencil(self, start: int) -> BarycentricInterpolator:
        polynomial = self._stencils.get(start)
        if polynomial is None:
            stop = start + self._stencil_size
            local_times = (self._times[start:stop] - self._times[start]).astype(np.float64)
            local_values = (self._values[start:stop] - self._values[start]).astype(np.float64)
            polynomial = BarycentricInterpolator(local_times, local_values, axis=0)
            self._stencils[start] = polynomial
        return polynomial

    def __repr__(self):
        kind = "scalar" if self.is_scalar else f"{self.value_size}-vector"
        return (f"LagrangeInterpolator({kind}, order={self._order}, "
                f"samples={self._times.shape[0]}, t=[{self.t0}, {self.tf}], "
                f"dtype={self.dtype})")


def _check_width(state_history: NumericalSolutionMap, width: int, label: str):
    if state_history.width != width:
        raise LayoutInconsistencyError(
            f"A {label} history must have {width} entries per sample, "
            f"got {state_history.width}"
        )


def create_state_interpolator(state_history: NumericalSolutionMap,
                              dtype=None, time_dtype=None) -> LagrangeInterpolator:
    """
    Continuous position and velocity from a 6-wide state history.

    Parameters
    ----------
    state_history : NumericalSolutionMap
        Cartesian states with respect to the required ephemeris origin
    """
    _check_width(state_history, 6, "translational state")
    return LagrangeInterpolator(state_history.times, state_history.states,
                                LAGRANGE_ORDER, dtype=dtype, time_dtype=time_dtype)


def create_rotational_state_interpolator(state_history: NumericalSolutionMap,
                                         dtype=None, time_dtype=None) -> LagrangeInterpolator:
    """Continuous rotational state from a 7-wide (quaternion, angular velocity) history."""
    _check_width(state_history, 7, "rotational state")
    return LagrangeInterpolator(state_history.times, state_history.states,
                                LAGRANGE_ORDER, dtype=dtype, time_dtype=time_dtype)


def create_scalar_interpolator(times, values: Union[np.ndarray, list],
                               dtype: Optional[type] = np.float64) -> LagrangeInterpolator:
    """Continuous scalar function of time (used for body masses)."""
    values = np.asarray(values)
    if values.ndim == 2 and values.shape[1] == 1:
        values = values[:, 0]
    if values.ndim != 1:
        raise LayoutInconsistencyError(
            f"Scalar interpolation requires one value per sample, got shape {values.shape}"
        )
    return LagrangeInterpolator(times, values, LAGRANGE_ORDER, dtype=dtype,
                                time_dtype=np.float64)
