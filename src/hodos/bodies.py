'''Environment model receiving the processed integration results
Body and BodyCollection definitions'''

import numpy as np
from collections.abc import Mapping
from typing import Callable, Iterator, Optional, Union

from .ephemerides import (DEFAULT_FRAME_ORIENTATION, DEFAULT_FRAME_ORIGIN,
                          Ephemeris, RotationalEphemeris)
from .errors import BodyNotFoundError, MissingEphemerisError


class Body:
    """
    A named body of the simulation environment.

    Holds the continuous representations other models query: a translational
    ephemeris, an optional rotational ephemeris and a mass (constant or a
    function of time). Integrated state processors replace these in place.

    Parameters
    ----------
    name : str
        Body identifier, unique within a BodyCollection
    ephemeris : Ephemeris, optional
        Translational ephemeris
    rotational_ephemeris : RotationalEphemeris, optional
        Orientation of the body-fixed frame
    mass : float or callable, optional
        Constant mass [kg] or function of time returning the mass
    """

    def __init__(
        self,
        name: str,
        ephemeris: Optional[Ephemeris] = None,
        rotational_ephemeris: Optional[RotationalEphemeris] = None,
        mass: Optional[Union[float, Callable]] = None
    ):
        if not isinstance(name, str) or not name:
            raise ValueError(f"Body name must be a non-empty string, got {name!r}")
        self._name = name
        self._ephemeris = ephemeris
        self._rotational_ephemeris = rotational_ephemeris
        self._mass_function = None
        if mass is not None:
            self.set_body_mass_function(mass)

        # Quantities derived from the ephemeris, refreshed on request
        self._ephemeris_time_bounds = None
        self._dependent_quantity_updates = 0
        self.update_constant_ephemeris_dependent_member_quantities()

    # ========== PROPERTY ACCESS ==========
    @property
    def name(self) -> str:
        return self._name

    @property
    def ephemeris(self) -> Optional[Ephemeris]:
        return self._ephemeris

    @ephemeris.setter
    def ephemeris(self, ephemeris: Optional[Ephemeris]):
        self._ephemeris = ephemeris

    @property
    def rotational_ephemeris(self) -> Optional[RotationalEphemeris]:
        return self._rotational_ephemeris

    @rotational_ephemeris.setter
    def rotational_ephemeris(self, rotational_ephemeris: Optional[RotationalEphemeris]):
        self._rotational_ephemeris = rotational_ephemeris

    @property
    def mass_function(self) -> Optional[Callable]:
        return self._mass_function

    @property
    def ephemeris_time_bounds(self):
        """Time span of the ephemeris when last refreshed (None if unbounded)."""
        return self._ephemeris_time_bounds

    @property
    def dependent_quantity_updates(self) -> int:
        """Number of times the ephemeris-dependent quantities were recomputed."""
        return self._dependent_quantity_updates

    # ========== ENVIRONMENT UPDATES ==========
    def set_body_mass_function(self, mass: Union[float, Callable]) -> Optional[Callable]:
        """
        Install a mass function (a constant is wrapped), returning the one it replaces.
        """
        if not callable(mass):
            constant_mass = float(mass)
            if constant_mass <= 0:
                raise ValueError(f"Mass must be positive, got {constant_mass}")
            mass = lambda t: constant_mass  # noqa: E731
        previous = self._mass_function
        self._mass_function = mass
        return previous

    def update_constant_ephemeris_dependent_member_quantities(self):
        """Refresh the quantities cached from the current ephemeris."""
        if self._ephemeris is None:
            self._ephemeris_time_bounds = None
        else:
            self._ephemeris_time_bounds = self._ephemeris.time_bounds
        self._dependent_quantity_updates += 1

    # ========== STATE QUERIES ==========
    def state_at(self, t) -> np.ndarray:
        """Cartesian state w.r.t. the ephemeris origin at time t."""
        if self._ephemeris is None:
            raise MissingEphemerisError(f"Body '{self._name}' has no ephemeris")
        return self._ephemeris.state_at(t)

    def body_mass(self, t) -> float:
        if self._mass_function is None:
            raise MissingEphemerisError(f"Body '{self._name}' has no mass function")
        return self._mass_function(t)

    def __repr__(self) -> str:
        ephemeris = type(self._ephemeris).__name__ if self._ephemeris else None
        return f"Body('{self._name}', ephemeris={ephemeris})"


class BodyCollection(Mapping):
    """
    Ordered, name-keyed collection of bodies.

    Parameters
    ----------
    bodies : iterable of Body, optional
        Initial bodies, in insertion order
    global_frame_origin : str, optional
        Root of all ephemeris origin chains (default: 'SSB')
    global_frame_orientation : str, optional
        Orientation shared by all ephemerides (default: 'ECLIPJ2000')

    Examples
    --------
    >>> bodies = BodyCollection([Body('Earth', ConstantEphemeris(np.zeros(6)))])
    >>> bodies['Earth'].name
    'Earth'
    """

    def __init__(self, bodies=(), global_frame_origin: str = DEFAULT_FRAME_ORIGIN,
                 global_frame_orientation: str = DEFAULT_FRAME_ORIENTATION):
        self._bodies = {}
        self._global_frame_origin = global_frame_origin
        self._global_frame_orientation = global_frame_orientation
        for body in bodies:
            self.add_body(body)

    @property
    def global_frame_origin(self) -> str:
        return self._global_frame_origin

    @property
    def global_frame_orientation(self) -> str:
        return self._global_frame_orientation

    def add_body(self, body: Body) -> Body:
        if not isinstance(body, Body):
            raise TypeError(f"Expected a Body, got {type(body).__name__}")
        if body.name in self._bodies:
            raise ValueError(f"Body '{body.name}' already exists in the collection")
        if body.name == self._global_frame_origin:
            raise ValueError(
                f"Body name '{body.name}' clashes with the global frame origin"
            )
        self._bodies[body.name] = body
        return body

    def update_dependent_quantities(self):
        """Recompute the ephemeris-dependent quantities of every body."""
        for body in self._bodies.values():
            body.update_constant_ephemeris_dependent_member_quantities()

    def __getitem__(self, name: str) -> Body:
        try:
            return self._bodies[name]
        except KeyError:
            raise BodyNotFoundError(
                f"Body '{name}' not found in body collection "
                f"(available: {list(self._bodies)})"
            ) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._bodies)

    def __len__(self) -> int:
        return len(self._bodies)

    def __repr__(self) -> str:
        return (f"BodyCollection(origin='{self._global_frame_origin}', "
                f"bodies={list(self._bodies)})")
