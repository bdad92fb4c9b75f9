"""Shared fixtures: a small two-planet environment and matching integrated states."""

import numpy as np
import pytest

from hodos import (
    Body, BodyCollection, ConstantEphemeris, TabulatedEphemeris,
    MultiArcEphemeris, TabulatedRotationalEphemeris, config
)

EARTH_RADIUS = 1.496e11     # Orbit radius [m]
EARTH_RATE = 1.99e-7        # Mean motion [rad/s]
MARS_RADIUS = 2.279e11
MARS_RATE = 1.06e-7
MARS_PHASE = 0.7


def circular_states(times, radius, rate, phase=0.0):
    """Cartesian states on a circular orbit in the x-y plane."""
    angle = rate * np.asarray(times, dtype=float) + phase
    return np.column_stack([
        radius * np.cos(angle),
        radius * np.sin(angle),
        np.zeros_like(angle),
        -radius * rate * np.sin(angle),
        radius * rate * np.cos(angle),
        np.zeros_like(angle),
    ])


def spin_states(times, rate=1e-3):
    """Rotational states of a body spinning about its z axis (scalar-first quaternion)."""
    half_angle = 0.5 * rate * np.asarray(times, dtype=float)
    n = half_angle.shape[0]
    return np.column_stack([
        np.cos(half_angle),
        np.zeros(n),
        np.zeros(n),
        np.sin(half_angle),
        np.zeros(n),
        np.zeros(n),
        np.full(n, rate),
    ])


@pytest.fixture(autouse=True)
def reset_config():
    """Every test starts and ends with the default configuration."""
    config.reset()
    yield
    config.reset()


@pytest.fixture
def times():
    return np.linspace(0.0, 4000.0, 41)


@pytest.fixture
def earth_states(times):
    return circular_states(times, EARTH_RADIUS, EARTH_RATE)


@pytest.fixture
def mars_states(times):
    return circular_states(times, MARS_RADIUS, MARS_RATE, MARS_PHASE)


@pytest.fixture
def bodies():
    """Earth and Mars with empty tabulated ephemerides w.r.t. the SSB, and a fixed Sun."""
    return BodyCollection([
        Body('Sun', ConstantEphemeris(np.zeros(6))),
        Body('Earth', TabulatedEphemeris(), mass=5.97e24),
        Body('Mars', TabulatedEphemeris(), mass=6.42e23),
    ])


@pytest.fixture
def multi_arc_bodies():
    return BodyCollection([
        Body('Earth', MultiArcEphemeris()),
        Body('Mars', MultiArcEphemeris()),
    ])


@pytest.fixture
def spacecraft_bodies():
    """A spacecraft with rotational ephemeris and mass, orbiting a constant Earth."""
    return BodyCollection([
        Body('Earth', ConstantEphemeris(np.zeros(6))),
        Body('Vehicle', TabulatedEphemeris(reference_frame_origin='Earth'),
             rotational_ephemeris=TabulatedRotationalEphemeris(), mass=1000.0),
    ])
