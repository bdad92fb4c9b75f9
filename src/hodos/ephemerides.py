'''Continuous state representations installed on bodies
Translational ephemerides (constant, tabulated, multi-arc) and rotational ephemerides'''

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple, Union
from scipy.spatial.transform import Rotation

from .config import config
from .errors import InterpolationRangeError, MissingEphemerisError
from .interpolation import LagrangeInterpolator

DEFAULT_FRAME_ORIGIN = 'SSB'
DEFAULT_FRAME_ORIENTATION = 'ECLIPJ2000'


class Ephemeris(ABC):
    """
    Cartesian state of a body as a function of time.

    Attributes:
        reference_frame_origin: Name of the body (or point) the states are relative to
        reference_frame_orientation: Name of the frame orientation
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, reference_frame_origin: str = DEFAULT_FRAME_ORIGIN,
                 reference_frame_orientation: str = DEFAULT_FRAME_ORIENTATION):
        self._reference_frame_origin = reference_frame_origin
        self._reference_frame_orientation = reference_frame_orientation

    # ========== PROPERTY ACCESS ==========
    @property
    def reference_frame_origin(self) -> str:
        return self._reference_frame_origin

    @property
    def reference_frame_orientation(self) -> str:
        return self._reference_frame_orientation

    @property
    def time_bounds(self) -> Optional[Tuple[float, float]]:
        """Span over which the ephemeris is defined (None if unbounded)."""
        return None

    # ========== UTILITY METHODS ==========
    @abstractmethod
    def state_at(self, t) -> np.ndarray:
        """Cartesian state [x, y, z, vx, vy, vz] at time t."""

    def evaluate(self, times: Union[float, np.ndarray, list]) -> np.ndarray:
        """
        Evaluate at one or more times.

        Returns:
            State array of shape (6,) if times is scalar,
            Array of shape (n_times, 6) if times is array-like
        """
        if np.ndim(times) == 0:
            return self.state_at(times)
        return np.array([self.state_at(t) for t in np.asarray(times)])

    def get_times(self, n_points: int = 100) -> np.ndarray:
        """Generate uniform time array spanning the ephemeris."""
        if self.time_bounds is None:
            raise ValueError(
                f"{type(self).__name__} is not tabulated, provide times explicitly"
            )
        t0, tf = self.time_bounds
        return np.linspace(t0, tf, n_points)

    def to_dataframe(self,
                     times: Optional[np.ndarray] = None,
                     n_points: int = 1000) -> pd.DataFrame:
        """
        Export ephemeris to pandas DataFrame.

        Parameters:
            times: Specific times to evaluate. If None, uses uniform sampling.
            n_points: Number of uniform samples if times not provided (default: 1000)

        Returns:
            DataFrame with columns for time and state components
        """
        if times is None:
            times = self.get_times(n_points)
        else:
            times = np.asarray(times)
        states = self.evaluate(times)

        data = {
            'time': times,
            'x': states[:, 0],
            'y': states[:, 1],
            'z': states[:, 2],
            'vx': states[:, 3],
            'vy': states[:, 4],
            'vz': states[:, 5],
        }
        return pd.DataFrame(data)

    # ========== PLOTTING ==========
    def plot_3d(self, n_points: Optional[int] = None, times: Optional[np.ndarray] = None,
                show_origin: bool = True, origin_radius: float = 0.0,
                body_color: Optional[str] = None, traj_color: Optional[str] = None,
                body_opacity: Optional[float] = None, name: str = 'Ephemeris') -> go.Figure:
        """
        Create 3D plot of the ephemeris with an optional origin body.

        Parameters:
            n_points: Number of points to sample (default: config.DEFAULT_PLOT_POINTS)
            times: Specific times to sample (overrides n_points)
            show_origin: Whether to show a sphere at the frame origin (default: True)
            origin_radius: Radius of the origin sphere; a marker is drawn if 0
            body_color: Color of origin body (default: config.DEFAULT_BODY_COLOR)
            traj_color: Color of ephemeris line (default: config.DEFAULT_TRAJ_COLOR)
            body_opacity: Opacity of origin body (default: config.DEFAULT_BODY_OPACITY)
            name: Legend name of the ephemeris line

        Returns:
            Plotly Figure object
        """
        body_color = body_color or config.DEFAULT_BODY_COLOR
        traj_color = traj_color or config.DEFAULT_TRAJ_COLOR
        if body_opacity is None:
            body_opacity = config.DEFAULT_BODY_OPACITY

        fig = go.Figure()
        if show_origin:
            if origin_radius > 0:
                self._add_sphere_to_plot(fig, (0, 0, 0), origin_radius, body_color,
                                         body_opacity, self.reference_frame_origin)
            else:
                fig.add_trace(go.Scatter3d(
                    x=[0], y=[0], z=[0], mode='markers',
                    marker=dict(color=body_color, size=6),
                    name=self.reference_frame_origin,
                ))

        self.add_to_plot(fig, n_points=n_points, times=times, color=traj_color, name=name)

        fig.update_layout(
            scene=dict(
                xaxis_title='X [m]',
                yaxis_title='Y [m]',
                zaxis_title='Z [m]',
                aspectmode='data'
            ),
            title=f'Ephemeris w.r.t. {self.reference_frame_origin} '
                  f'({self.reference_frame_orientation})',
            showlegend=True
        )
        return fig

    def _add_sphere_to_plot(self, fig, center, radius, color, opacity, name):
        """Helper to add a sphere to the plot at specified center."""
        u = np.linspace(0, 2 * np.pi, 30)
        v = np.linspace(0, np.pi, 20)

        x = center[0] + radius * np.outer(np.cos(u), np.sin(v))
        y = center[1] + radius * np.outer(np.sin(u), np.sin(v))
        z = center[2] + radius * np.outer(np.ones(np.size(u)), np.cos(v))

        fig.add_trace(go.Surface(
            x=x, y=y, z=z,
            colorscale=[[0, color], [1, color]],
            showscale=False,
            opacity=opacity,
            name=name,
            hoverinfo='name'
        ))

    def add_to_plot(self, fig: go.Figure, n_points: Optional[int] = None,
                    times: Optional[np.ndarray] = None, color: Optional[str] = None,
                    name: Optional[str] = None, **kwargs) -> go.Figure:
        """
        Add this ephemeris to an existing Plotly figure.

        Parameters:
            fig: Existing Plotly Figure object
            n_points: Number of points to sample (default: config.DEFAULT_PLOT_POINTS)
            times: Specific times to sample (overrides n_points)
            color: Color of line (default: config.DEFAULT_TRAJ_COLOR_ADD)
            name: Legend name (default: 'Ephemeris N')
            **kwargs: Additional arguments passed to Scatter3d

        Returns:
            Updated Plotly Figure object (same object, modified in place)
        """
        if times is None:
            times = self.get_times(n_points or config.DEFAULT_PLOT_POINTS)
        positions = self.evaluate(np.asarray(times))[:, 0:3].astype(float)

        if name is None:
            n_existing = sum(1 for trace in fig.data if isinstance(trace, go.Scatter3d))
            name = f'Ephemeris {n_existing + 1}'

        fig.add_trace(go.Scatter3d(
            x=positions[:, 0],
            y=positions[:, 1],
            z=positions[:, 2],
            mode='lines',
            line=dict(color=color or config.DEFAULT_TRAJ_COLOR_ADD, width=3),
            name=name,
            hovertemplate='x: %{x:.1f}<br>y: %{y:.1f}<br>z: %{z:.1f}<extra></extra>',
            **kwargs
        ))
        return fig

    def __call__(self, t) -> np.ndarray:
        """Syntactic sugar for .state_at(t). Allows ephemeris(t) syntax."""
        return self.state_at(t)


class ConstantEphemeris(Ephemeris):
    """Ephemeris returning the same state at every time."""

    def __init__(self, state, reference_frame_origin: str = DEFAULT_FRAME_ORIGIN,
                 reference_frame_orientation: str = DEFAULT_FRAME_ORIENTATION):
        super().__init__(reference_frame_origin, reference_frame_orientation)
        state = np.asarray(state, dtype=float)
        if state.shape != (6,):
            raise ValueError(f"Constant state must have shape (6,), got {state.shape}")
        self._state = state.copy()
        self._state.flags.writeable = False

    def state_at(self, t) -> np.ndarray:
        return self._state.copy()

    def __repr__(self):
        return (f"ConstantEphemeris(origin={self.reference_frame_origin}, "
                f"state={self._state.tolist()})")


class TabulatedEphemeris(Ephemeris):
    """
    Ephemeris defined by an interpolator of tabulated Cartesian states.

    The ephemeris is tagged with the scalar and time precision of the
    interpolators it accepts, so that integration results produced at a
    different precision are cast before being installed.

    Parameters
    ----------
    interpolator : LagrangeInterpolator, optional
        6-vector interpolator; may be installed later with reset_interpolator
    scalar_type : numpy dtype, optional
        Precision of the states (default: np.float64)
    time_type : numpy dtype, optional
        Precision of the times (default: np.float64)
    """

    def __init__(self, interpolator: Optional[LagrangeInterpolator] = None,
                 reference_frame_origin: str = DEFAULT_FRAME_ORIGIN,
                 reference_frame_orientation: str = DEFAULT_FRAME_ORIENTATION,
                 scalar_type=np.float64, time_type=np.float64):
        super().__init__(reference_frame_origin, reference_frame_orientation)
        self._scalar_type = np.dtype(scalar_type)
        self._time_type = np.dtype(time_type)
        self._interpolator = None
        if interpolator is not None:
            self.reset_interpolator(interpolator)

    @property
    def scalar_type(self) -> np.dtype:
        return self._scalar_type

    @property
    def time_type(self) -> np.dtype:
        return self._time_type

    @property
    def interpolator(self) -> Optional[LagrangeInterpolator]:
        return self._interpolator

    @property
    def time_bounds(self) -> Optional[Tuple[float, float]]:
        if self._interpolator is None:
            return None
        return self._interpolator.t0, self._interpolator.tf

    def is_compatible(self, interpolator: LagrangeInterpolator) -> bool:
        """True if ``interpolator`` has this ephemeris' scalar and time precision."""
        return (interpolator.dtype == self._scalar_type
                and interpolator.time_dtype == self._time_type)

    def reset_interpolator(self, interpolator: LagrangeInterpolator) -> Optional[LagrangeInterpolator]:
        """
        Install a new interpolator, returning the one it replaces.

        Raises
        ------
        ValueError
            If the interpolator does not produce 6-vectors
        TypeError
            If the interpolator precision differs from the ephemeris precision
        """
        if interpolator.is_scalar or interpolator.value_size != 6:
            raise ValueError(
                f"Tabulated ephemeris requires a 6-vector interpolator, got {interpolator!r}"
            )
        if not self.is_compatible(interpolator):
            raise TypeError(
                f"Interpolator precision ({interpolator.dtype}, {interpolator.time_dtype}) "
                f"does not match ephemeris precision ({self._scalar_type}, {self._time_type})"
            )
        previous = self._interpolator
        self._interpolator = interpolator
        return previous

    def state_at(self, t) -> np.ndarray:
        if self._interpolator is None:
            raise MissingEphemerisError(
                "Tabulated ephemeris has no interpolator, cannot compute state"
            )
        return self._interpolator.interpolate(t)

    def __repr__(self):
        return (f"TabulatedEphemeris(origin={self.reference_frame_origin}, "
                f"bounds={self.time_bounds}, scalar_type={self._scalar_type})")


class MultiArcEphemeris(Ephemeris):
    """
    Ephemeris made of consecutive single-arc ephemerides.

    The arc used at time t is the last arc whose start time is not after t;
    times before the first arc start use the first arc.

    Parameters
    ----------
    single_arc_ephemerides : sequence of Ephemeris
        One ephemeris per arc
    arc_start_times : sequence of float
        Strictly increasing start time of each arc
    """

    def __init__(self, single_arc_ephemerides: Sequence[Ephemeris] = (),
                 arc_start_times: Sequence[float] = (),
                 reference_frame_origin: str = DEFAULT_FRAME_ORIGIN,
                 reference_frame_orientation: str = DEFAULT_FRAME_ORIENTATION,
                 scalar_type=np.float64, time_type=np.float64):
        super().__init__(reference_frame_origin, reference_frame_orientation)
        self._scalar_type = np.dtype(scalar_type)
        self._time_type = np.dtype(time_type)
        self._single_arc_ephemerides: Tuple[Ephemeris, ...] = ()
        self._arc_start_times = np.zeros(0)
        if len(single_arc_ephemerides) > 0 or len(arc_start_times) > 0:
            self.reset_single_arc_ephemerides(single_arc_ephemerides, arc_start_times)

    @property
    def scalar_type(self) -> np.dtype:
        return self._scalar_type

    @property
    def time_type(self) -> np.dtype:
        return self._time_type

    @property
    def single_arc_ephemerides(self) -> Tuple[Ephemeris, ...]:
        return self._single_arc_ephemerides

    @property
    def arc_start_times(self) -> List[float]:
        return self._arc_start_times.tolist()

    @property
    def number_of_arcs(self) -> int:
        return len(self._single_arc_ephemerides)

    @property
    def time_bounds(self) -> Optional[Tuple[float, float]]:
        if self.number_of_arcs == 0:
            return None
        last_bounds = self._single_arc_ephemerides[-1].time_bounds
        if last_bounds is None:
            return None
        return self._arc_start_times[0], last_bounds[1]

    def reset_single_arc_ephemerides(self, single_arc_ephemerides: Sequence[Ephemeris],
                                     arc_start_times: Sequence[float]):
        """
        Replace all arcs and their start times in one step.

        Returns
        -------
        tuple
            The replaced (ephemerides, arc start times)

        Raises
        ------
        ValueError
            If the two sequences differ in length, are empty, or the start
            times are not strictly increasing
        """
        single_arc_ephemerides = tuple(single_arc_ephemerides)
        arc_start_times = np.asarray(arc_start_times, dtype=self._time_type)
        if len(single_arc_ephemerides) != arc_start_times.shape[0]:
            raise ValueError(
                f"Got {len(single_arc_ephemerides)} arc ephemerides but "
                f"{arc_start_times.shape[0]} arc start times"
            )
        if len(single_arc_ephemerides) == 0:
            raise ValueError("A multi-arc ephemeris requires at least one arc")
        if not np.all(np.diff(arc_start_times) > 0):
            raise ValueError(
                f"Arc start times must be strictly increasing, got {arc_start_times.tolist()}"
            )

        previous = (self._single_arc_ephemerides, self.arc_start_times)
        self._single_arc_ephemerides = single_arc_ephemerides
        self._arc_start_times = arc_start_times
        self._arc_start_times.flags.writeable = False
        return previous

    def arc_index(self, t) -> int:
        """Index of the arc used at time t."""
        if self.number_of_arcs == 0:
            raise MissingEphemerisError("Multi-arc ephemeris has no arcs")
        index = int(np.searchsorted(self._arc_start_times, t, side='right')) - 1
        return max(index, 0)

    def state_at(self, t) -> np.ndarray:
        return self._single_arc_ephemerides[self.arc_index(t)].state_at(t)

    def __repr__(self):
        return (f"MultiArcEphemeris(origin={self.reference_frame_origin}, "
                f"arcs={self.number_of_arcs}, start_times={self.arc_start_times})")


"""
Rotational ephemerides. The rotational state is the quaternion from the
body-fixed frame to the base frame, scalar first, followed by the angular
velocity of the body expressed in the body-fixed frame.
"""
class RotationalEphemeris(ABC):
    """Orientation of a body-fixed frame as a function of time."""

    def __init__(self, base_frame_orientation: str = DEFAULT_FRAME_ORIENTATION,
                 target_frame_orientation: str = 'body_fixed'):
        self._base_frame_orientation = base_frame_orientation
        self._target_frame_orientation = target_frame_orientation

    @property
    def base_frame_orientation(self) -> str:
        return self._base_frame_orientation

    @property
    def target_frame_orientation(self) -> str:
        return self._target_frame_orientation

    @abstractmethod
    def rotational_state_at(self, t) -> np.ndarray:
        """Rotational state [q0, q1, q2, q3, wx, wy, wz] at time t."""

    def rotation_to_base_frame(self, t) -> Rotation:
        """Rotation from the body-fixed frame to the base frame at time t."""
        quaternion = np.asarray(self.rotational_state_at(t)[:4], dtype=float)
        norm = np.linalg.norm(quaternion)
        if norm == 0:
            raise ValueError(f"Quaternion at t = {t} has zero norm")
        # scipy expects scalar-last quaternions
        return Rotation.from_quat(quaternion[[1, 2, 3, 0]] / norm)

    def angular_velocity_in_body_frame(self, t) -> np.ndarray:
        return np.asarray(self.rotational_state_at(t)[4:])


class ConstantRotationalEphemeris(RotationalEphemeris):
    """Rotational ephemeris with a fixed rotational state."""

    def __init__(self, rotational_state,
                 base_frame_orientation: str = DEFAULT_FRAME_ORIENTATION,
                 target_frame_orientation: str = 'body_fixed'):
        super().__init__(base_frame_orientation, target_frame_orientation)
        rotational_state = np.asarray(rotational_state, dtype=float)
        if rotational_state.shape != (7,):
            raise ValueError(
                f"Rotational state must have shape (7,), got {rotational_state.shape}"
            )
        self._rotational_state = rotational_state.copy()
        self._rotational_state.flags.writeable = False

    def rotational_state_at(self, t) -> np.ndarray:
        return self._rotational_state.copy()


class TabulatedRotationalEphemeris(RotationalEphemeris):
    """Rotational ephemeris defined by an interpolator of 7-wide rotational states."""

    def __init__(self, interpolator: Optional[LagrangeInterpolator] = None,
                 base_frame_orientation: str = DEFAULT_FRAME_ORIENTATION,
                 target_frame_orientation: str = 'body_fixed',
                 scalar_type=np.float64, time_type=np.float64):
        super().__init__(base_frame_orientation, target_frame_orientation)
        self._scalar_type = np.dtype(scalar_type)
        self._time_type = np.dtype(time_type)
        self._interpolator = None
        if interpolator is not None:
            self.reset(interpolator)

    @property
    def scalar_type(self) -> np.dtype:
        return self._scalar_type

    @property
    def time_type(self) -> np.dtype:
        return self._time_type

    @property
    def interpolator(self) -> Optional[LagrangeInterpolator]:
        return self._interpolator

    def is_compatible(self, interpolator: LagrangeInterpolator) -> bool:
        return (interpolator.dtype == self._scalar_type
                and interpolator.time_dtype == self._time_type)

    def reset(self, interpolator: LagrangeInterpolator) -> Optional[LagrangeInterpolator]:
        """Install a new interpolator, returning the one it replaces."""
        if interpolator.is_scalar or interpolator.value_size != 7:
            raise ValueError(
                f"Tabulated rotational ephemeris requires a 7-vector interpolator, "
                f"got {interpolator!r}"
            )
        if not self.is_compatible(interpolator):
            raise TypeError(
                f"Interpolator precision ({interpolator.dtype}, {interpolator.time_dtype}) "
                f"does not match ephemeris precision ({self._scalar_type}, {self._time_type})"
            )
        previous = self._interpolator
        self._interpolator = interpolator
        return previous

    def rotational_state_at(self, t) -> np.ndarray:
        if self._interpolator is None:
            raise MissingEphemerisError(
                "Tabulated rotational ephemeris has no interpolator, cannot compute state"
            )
        try:
            return self._interpolator.interpolate(t)
        except InterpolationRangeError as error:
            raise InterpolationRangeError(f"Rotational ephemeris: {error}") from error

    def __repr__(self):
        bounds = None
        if self._interpolator is not None:
            bounds = (self._interpolator.t0, self._interpolator.tf)
        return (f"TabulatedRotationalEphemeris(base={self.base_frame_orientation}, "
                f"bounds={bounds}, scalar_type={self._scalar_type})")
