'''Numerical solutions of the equations of motion
NumericalSolutionMap, Arc and MultiArcSolution definitions'''

import numpy as np
import pandas as pd
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Union

from .config import config
from .errors import LayoutInconsistencyError


class NumericalSolutionMap(Mapping):
    """
    Time-ordered map from epoch to flat state vector.

    This is the output of a numerical integrator in its conventional form:
    per-body blocks concatenated in a fixed body order, each expressed with
    respect to that body's integration origin. The map is immutable.

    Parameters
    ----------
    times : array_like
        Strictly increasing epochs, shape (n,)
    states : array_like
        Flat state vectors, shape (n, width). A shape (n,) input is taken
        as a single-entry state.
    validate : bool, optional
        Check ordering and finiteness (default True)

    Examples
    --------
    >>> solution = NumericalSolutionMap([0.0, 10.0], [[1, 2, 3], [4, 5, 6]])
    >>> solution[10.0]
    array([4., 5., 6.])
    >>> solution.extract(1, 2).states
    array([[2., 3.],
           [5., 6.]])
    """

    # ========== CONSTRUCTION ==========
    def __init__(self, times, states, validate: bool = True):
        times = np.asarray(times)
        if not np.issubdtype(times.dtype, np.floating):
            times = times.astype(np.float64)
        states = np.asarray(states)
        if not np.issubdtype(states.dtype, np.floating):
            states = states.astype(np.float64)
        if states.ndim == 1:
            states = states.reshape(-1, 1)

        if validate:
            self._validate(times, states)

        # Store read-only copies (immutable, following the other data classes)
        self._times = times.copy()
        self._states = states.copy()
        self._times.flags.writeable = False
        self._states.flags.writeable = False

    @staticmethod
    def _validate(times: np.ndarray, states: np.ndarray):
        if times.ndim != 1:
            raise ValueError(f"Solution times must be one-dimensional, got shape {times.shape}")
        if times.shape[0] == 0:
            raise ValueError("Numerical solution is empty")
        if states.ndim != 2 or states.shape[0] != times.shape[0]:
            raise LayoutInconsistencyError(
                f"Expected one flat state per epoch ({times.shape[0]}), "
                f"got states of shape {states.shape}"
            )
        if not np.all(np.isfinite(times)):
            raise ValueError("Solution times contain NaN or Inf values")
        if not np.all(np.diff(times) > 0):
            raise ValueError("Solution times must be strictly increasing")
        if not np.all(np.isfinite(states)):
            bad = int(np.argwhere(~np.all(np.isfinite(states), axis=1))[0][0])
            raise ValueError(
                f"Solution contains NaN or Inf values at t = {times[bad]}"
            )

    @classmethod
    def from_dict(cls, solution: Dict, validate: bool = True) -> "NumericalSolutionMap":
        """
        Create from a mapping of epoch to flat state.

        Entries are sorted by epoch; all states must have the same length.
        """
        if len(solution) == 0:
            raise ValueError("Numerical solution is empty")
        times = sorted(solution.keys())
        rows = [np.asarray(solution[t]).ravel() for t in times]
        widths = {row.shape[0] for row in rows}
        if len(widths) != 1:
            raise LayoutInconsistencyError(
                f"All flat states of a solution must have the same length, "
                f"got lengths {sorted(widths)}"
            )
        return cls(np.array(times), np.vstack(rows), validate=validate)

    @classmethod
    def from_dense_output(cls, output, times) -> "NumericalSolutionMap":
        """
        Sample a continuous output object onto ``times``.

        Parameters
        ----------
        output : callable
            Dense output of an integrator, e.g. the ``c_output`` object
            returned by ``heyoka.taylor_adaptive.propagate_until(...,
            c_output=True)``. Called with an array of times, it must return
            an array of shape (len(times), width).
        times : array_like
            Epochs to sample at (strictly increasing)
        """
        times = np.asarray(times, dtype=float)  # Heyoka requires float input
        states = np.asarray(output(times))
        return cls(times, states)

    @classmethod
    def from_taylor_grid(cls, ta, grid) -> "NumericalSolutionMap":
        """
        Propagate a heyoka Taylor integrator over ``grid`` and collect the states.

        The integrator's current time must equal ``grid[0]``. The integrator
        is left at the final grid epoch.
        """
        grid = np.asarray(grid, dtype=float)  # Heyoka requires float input
        if grid.ndim != 1 or grid.shape[0] < 1:
            raise ValueError("Propagation grid must be a non-empty 1D array")
        if not np.isclose(ta.time, grid[0], rtol=config.EQUALITY_RTOL,
                          atol=config.EQUALITY_ATOL):
            raise ValueError(
                f"Integrator time ({ta.time}) does not match first grid epoch ({grid[0]})"
            )
        # Last entry of the returned tuple holds the states on the grid
        states = np.asarray(ta.propagate_grid(grid)[-1])
        if states.shape[0] != grid.shape[0]:
            raise ValueError(
                f"Integration stopped early: {states.shape[0]} of {grid.shape[0]} "
                f"grid states available (final time {ta.time})"
            )
        return cls(grid, states)

    # ========== PROPERTY ACCESS ==========
    @property
    def times(self) -> np.ndarray:
        return self._times

    @property
    def states(self) -> np.ndarray:
        return self._states

    @property
    def width(self) -> int:
        """Length of each flat state vector."""
        return self._states.shape[1]

    @property
    def t0(self):
        return self._times[0]

    @property
    def tf(self):
        return self._times[-1]

    @property
    def dtype(self) -> np.dtype:
        return self._states.dtype

    @property
    def time_dtype(self) -> np.dtype:
        return self._times.dtype

    # ========== MAPPING INTERFACE ==========
    def __getitem__(self, t) -> np.ndarray:
        t = self._times.dtype.type(t)
        index = int(np.searchsorted(self._times, t))
        if index < len(self) and self._times[index] == t:
            return self._states[index]
        raise KeyError(f"No integrated state stored at t = {t}")

    def __iter__(self) -> Iterator:
        return iter(self._times)

    def __len__(self) -> int:
        return self._times.shape[0]

    def items(self):
        return zip(self._times, self._states)

    def __eq__(self, other) -> bool:
        if not isinstance(other, NumericalSolutionMap):
            return NotImplemented
        return (np.array_equal(self._times, other._times)
                and np.array_equal(self._states, other._states))

    __hash__ = None

    # ========== UTILITY METHODS ==========
    def extract(self, start_index: int, size: int) -> "NumericalSolutionMap":
        """
        Sub-history of entries ``[start_index, start_index + size)`` at every epoch.

        Raises
        ------
        LayoutInconsistencyError
            If the requested block does not fit in the flat state
        """
        if start_index < 0 or size < 0 or start_index + size > self.width:
            raise LayoutInconsistencyError(
                f"Cannot extract entries [{start_index}, {start_index + size}) "
                f"from flat states of length {self.width}"
            )
        return NumericalSolutionMap(
            self._times, self._states[:, start_index:start_index + size], validate=False
        )

    def column(self, index: int) -> np.ndarray:
        """History of a single entry of the flat state."""
        if not 0 <= index < self.width:
            raise LayoutInconsistencyError(
                f"Entry {index} outside flat states of length {self.width}"
            )
        return self._states[:, index]

    def subtract(self, offset_function) -> "NumericalSolutionMap":
        """
        New history with ``offset_function(t)`` subtracted from the state at each epoch.
        """
        offsets = np.array([np.asarray(offset_function(t)) for t in self._times])
        if offsets.shape != self._states.shape:
            raise LayoutInconsistencyError(
                f"Offset function returned values of shape {offsets.shape[1:]}, "
                f"expected ({self.width},)"
            )
        return NumericalSolutionMap(
            self._times, (self._states - offsets).astype(self.dtype), validate=False
        )

    def to_dataframe(self, columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """
        Export solution to pandas DataFrame.

        Parameters:
            columns: Names of the state entries (default: 'x0', 'x1', ...)

        Returns:
            DataFrame with a 'time' column followed by one column per entry
        """
        if columns is None:
            columns = [f"x{i}" for i in range(self.width)]
        elif len(columns) != self.width:
            raise ValueError(f"Expected {self.width} column names, got {len(columns)}")
        data = {'time': self._times}
        for i, name in enumerate(columns):
            data[name] = self._states[:, i]
        return pd.DataFrame(data)

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        return (f"NumericalSolutionMap(samples={len(self)}, width={self.width}, "
                f"t=[{self.t0}, {self.tf}], dtype={self.dtype})")


@dataclass(frozen=True)
class Arc:
    """
    One contiguous time span of a multi-arc propagation.

    Attributes
    ----------
    start_time : float
        Nominal start epoch of the arc
    solution : NumericalSolutionMap
        Integrated states over the arc
    """
    start_time: float
    solution: NumericalSolutionMap

    def __post_init__(self):
        if not isinstance(self.solution, NumericalSolutionMap):
            raise TypeError(
                f"Arc solution must be a NumericalSolutionMap, got {type(self.solution).__name__}"
            )
        tolerance = config.EQUALITY_ATOL + config.EQUALITY_RTOL * abs(self.start_time)
        if self.solution.t0 < self.start_time - tolerance:
            raise ValueError(
                f"Arc starting at {self.start_time} has states from "
                f"t = {self.solution.t0}, before its start"
            )


class MultiArcSolution:
    """
    Strictly time-ordered sequence of arcs sharing one state layout.

    Examples
    --------
    >>> arcs = MultiArcSolution.from_lists([sol_a, sol_b], [0.0, 100.0])
    >>> arcs.arc_start_times
    [0.0, 100.0]
    """

    def __init__(self, arcs: Sequence[Arc]):
        arcs = tuple(arcs)
        if len(arcs) == 0:
            raise ValueError("A multi-arc solution requires at least one arc")
        for previous, current in zip(arcs[:-1], arcs[1:]):
            if not current.start_time > previous.start_time:
                raise ValueError(
                    f"Arc start times must be strictly increasing, got "
                    f"{previous.start_time} followed by {current.start_time}"
                )
        widths = {arc.solution.width for arc in arcs}
        if len(widths) != 1:
            raise LayoutInconsistencyError(
                f"All arcs must share one state layout, got widths {sorted(widths)}"
            )
        self._arcs = arcs

    @classmethod
    def from_lists(cls, solutions: Sequence[Union[NumericalSolutionMap, Dict]],
                   arc_start_times: Sequence[float]) -> "MultiArcSolution":
        """Pair per-arc solutions with their start times."""
        if len(solutions) != len(arc_start_times):
            raise LayoutInconsistencyError(
                f"Got {len(solutions)} arc solutions but {len(arc_start_times)} arc start times"
            )
        arcs = []
        for solution, start_time in zip(solutions, arc_start_times):
            if not isinstance(solution, NumericalSolutionMap):
                solution = NumericalSolutionMap.from_dict(solution)
            arcs.append(Arc(start_time, solution))
        return cls(arcs)

    @property
    def arcs(self) -> tuple:
        return self._arcs

    @property
    def arc_start_times(self) -> List[float]:
        return [arc.start_time for arc in self._arcs]

    @property
    def solutions(self) -> List[NumericalSolutionMap]:
        return [arc.solution for arc in self._arcs]

    @property
    def width(self) -> int:
        return self._arcs[0].solution.width

    def __iter__(self):
        return iter(self._arcs)

    def __len__(self) -> int:
        return len(self._arcs)

    def __getitem__(self, index) -> Arc:
        return self._arcs[index]

    def __repr__(self):
        return f"MultiArcSolution(arcs={len(self)}, start_times={self.arc_start_times})"
