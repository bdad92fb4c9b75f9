"""
Test suite for Lagrange interpolation of tabulated states.
"""

import numpy as np
import pytest
from hodos import LagrangeInterpolator, LAGRANGE_ORDER, NumericalSolutionMap
from hodos import InterpolationRangeError, LayoutInconsistencyError
from hodos.interpolation import (create_state_interpolator,
                                 create_rotational_state_interpolator,
                                 create_scalar_interpolator)
from conftest import circular_states


class TestExactness:
    """Interpolants reproduce their samples."""

    def test_vector_samples_reproduced(self):
        """Evaluating at every sample time returns the sample."""
        times = np.linspace(0.0, 10.0, 11)
        values = np.random.default_rng(1).normal(size=(11, 6))
        interpolator = LagrangeInterpolator(times, values)
        for t, value in zip(times, values):
            assert np.array_equal(interpolator(t), value)

    def test_scalar_samples_reproduced(self):
        """Scalar tables return scalars at sample times."""
        times = np.array([0.0, 1.0, 3.0, 7.0])
        values = np.array([4.0, -1.0, 2.5, 0.0])
        interpolator = LagrangeInterpolator(times, values)
        assert interpolator.is_scalar
        assert interpolator(3.0) == 2.5

    def test_returned_sample_is_copy(self):
        """Modifying a returned sample does not alter the table."""
        interpolator = LagrangeInterpolator([0.0, 1.0], [[1.0, 2.0], [3.0, 4.0]])
        value = interpolator(0.0)
        value[0] = 100.0
        assert interpolator(0.0)[0] == 1.0


class TestAccuracy:
    """Interpolation between samples."""

    def test_polynomial_reproduced(self):
        """Polynomials of degree below the order are exact everywhere."""
        times = np.linspace(0.0, 5.0, 12)
        values = 2.0 * times**5 - times**3 + 4.0
        interpolator = LagrangeInterpolator(times, values)
        t = np.linspace(0.0, 5.0, 57)
        assert np.allclose(interpolator(t), 2.0 * t**5 - t**3 + 4.0, rtol=1e-10, atol=1e-9)

    def test_smooth_function(self):
        """Smooth functions are interpolated to high accuracy."""
        times = np.linspace(0.0, 2.0 * np.pi, 41)
        interpolator = LagrangeInterpolator(times, np.sin(times))
        t = np.linspace(0.1, 6.2, 100)
        assert np.allclose(interpolator(t), np.sin(t), atol=1e-6)

    def test_orbit_positions(self):
        """Orbit states between samples match the analytical orbit."""
        times = np.linspace(0.0, 4000.0, 41)
        radius, rate = 1.496e11, 1.99e-7
        interpolator = create_state_interpolator(
            NumericalSolutionMap(times, circular_states(times, radius, rate)))
        t = 1234.5
        expected = circular_states([t], radius, rate)[0]
        assert np.allclose(interpolator(t), expected, rtol=1e-12, atol=1e-6)

    def test_fewer_samples_than_order(self):
        """With fewer samples than the order, all samples are used."""
        interpolator = LagrangeInterpolator([0.0, 1.0, 2.0], [0.0, 1.0, 4.0])
        assert interpolator(1.5) == pytest.approx(2.25)

    def test_default_order(self):
        """The fixed order is six."""
        assert LAGRANGE_ORDER == 6
        assert LagrangeInterpolator([0.0, 1.0], [0.0, 1.0]).order == 6


class TestBounds:
    """Queries outside the table."""

    def test_before_start(self):
        """Extrapolation before the first sample is refused."""
        interpolator = LagrangeInterpolator([0.0, 1.0, 2.0], [0.0, 1.0, 2.0])
        with pytest.raises(InterpolationRangeError, match="outside interpolation bounds"):
            interpolator(-0.5)

    def test_after_end(self):
        """Extrapolation after the last sample is refused."""
        interpolator = LagrangeInterpolator([0.0, 1.0, 2.0], [0.0, 1.0, 2.0])
        with pytest.raises(ValueError):
            interpolator(2.5)

    def test_contains_time(self):
        """contains_time reports the tabulated span."""
        interpolator = LagrangeInterpolator([0.0, 1.0, 2.0], [0.0, 1.0, 2.0])
        assert interpolator.contains_time(2.0)
        assert not interpolator.contains_time(2.1)


class TestValidation:
    """Invalid tables."""

    def test_non_increasing_times(self):
        """Times must be strictly increasing."""
        with pytest.raises(ValueError, match="strictly increasing"):
            LagrangeInterpolator([0.0, 2.0, 1.0], [0.0, 1.0, 2.0])

    def test_single_sample(self):
        """At least two samples are required."""
        with pytest.raises(ValueError, match="At least 2 samples"):
            LagrangeInterpolator([0.0], [1.0])

    def test_nan_values(self):
        """Non-finite values are rejected."""
        with pytest.raises(ValueError, match="NaN"):
            LagrangeInterpolator([0.0, 1.0], [0.0, np.nan])

    def test_wrong_history_width(self):
        """State interpolators require 6- or 7-wide histories."""
        history = NumericalSolutionMap([0.0, 1.0], np.zeros((2, 7)))
        with pytest.raises(LayoutInconsistencyError, match="6 entries"):
            create_state_interpolator(history)
        create_rotational_state_interpolator(history)

    def test_scalar_interpolator_shape(self):
        """Scalar interpolators accept (n, 1) columns and reject wider tables."""
        interpolator = create_scalar_interpolator([0.0, 1.0], np.array([[1.0], [2.0]]))
        assert interpolator(0.5) == pytest.approx(1.5)
        with pytest.raises(LayoutInconsistencyError):
            create_scalar_interpolator([0.0, 1.0], np.zeros((2, 2)))


class TestPrecision:
    """Value and time precision handling."""

    def test_astype(self):
        """astype casts values and times."""
        interpolator = LagrangeInterpolator([0.0, 1.0, 2.0], [[0.0], [1.0], [2.0]])
        cast = interpolator.astype(np.float32)
        assert cast.dtype == np.float32
        assert cast.time_dtype == np.float64
        assert cast(0.5).dtype == np.float32

    def test_integer_input_promoted(self):
        """Integer tables are stored in double precision."""
        interpolator = LagrangeInterpolator([0, 1, 2], [0, 1, 4])
        assert interpolator.dtype == np.float64
        assert interpolator.time_dtype == np.float64

    @pytest.mark.skipif(np.finfo(np.longdouble).eps >= np.finfo(np.float64).eps,
                        reason="long double is double precision on this platform")
    def test_long_double_keeps_resolution(self):
        """Long double tables keep sub-double resolution at large magnitude."""
        times = np.arange(8, dtype=np.longdouble)
        offset = np.longdouble(1e9)
        values = offset + np.longdouble(1e-6) * times
        interpolator = LagrangeInterpolator(times, values)
        assert interpolator.dtype == np.longdouble
        value = interpolator(np.longdouble(2.5))
        assert abs(value - (offset + np.longdouble(2.5e-6))) < np.longdouble(1e-9)
