"""
Test suite for integrated state processors and their factory.

Tests cover:
- Processor construction and segment checks
- Processor factory over single and hybrid settings
- Drivers applying all processors
- Multi-arc support per kind
- End-to-end use with a heyoka integrator
"""

import numpy as np
import pytest
from hodos import (
    IntegratedStateType, TranslationalStateSettings, RotationalStateSettings,
    MassStateSettings, CustomStateSettings, HybridStateSettings, hybrid,
    TranslationalStateProcessor, RotationalStateProcessor, MassStateProcessor,
    create_integrated_state_processors, check_translational_states_feasibility,
    reset_integrated_states, reset_integrated_multi_arc_states,
    Body, BodyCollection, ConstantEphemeris, TabulatedEphemeris, MultiArcEphemeris,
    NumericalSolutionMap, build_state_layout,
    LayoutInconsistencyError, NestedHybridError, UndefinedSettingsError,
    AmbiguousHybridCompositionError, UnknownStateTypeError, BodyNotFoundError,
    MissingEphemerisError, UnsupportedOperationError
)
from conftest import circular_states, spin_states

TRANSLATIONAL = IntegratedStateType.TRANSLATIONAL
ROTATIONAL = IntegratedStateType.ROTATIONAL
MASS = IntegratedStateType.BODY_MASS


class TestProcessorConstruction:
    """Test processor creation."""

    def test_translational_segment(self):
        """Processors hold their segment."""
        processor = TranslationalStateProcessor(0, 12, ['Earth', 'Mars'], ['SSB', 'Earth'])
        assert processor.start_index_and_size == (0, 12)
        assert processor.bodies_to_integrate == ('Earth', 'Mars')
        assert processor.state_type == TRANSLATIONAL
        assert processor.update_order == ['Earth', 'Mars']

    def test_translational_size_mismatch(self):
        """Size must be six entries per body."""
        with pytest.raises(LayoutInconsistencyError):
            TranslationalStateProcessor(0, 10, ['Earth', 'Mars'], ['SSB', 'SSB'])

    def test_central_body_count(self):
        """Each body needs a central body."""
        with pytest.raises(LayoutInconsistencyError, match="central bodies"):
            TranslationalStateProcessor(0, 12, ['Earth', 'Mars'], ['SSB'])

    def test_invalid_update_order(self):
        """Update orders are validated at construction."""
        with pytest.raises(BodyNotFoundError):
            TranslationalStateProcessor(0, 12, ['Earth', 'Mars'], ['SSB', 'SSB'],
                                        update_order=['Earth', 'Venus'])

    def test_mass_size_mismatch(self):
        """Mass segments are one entry per body."""
        with pytest.raises(LayoutInconsistencyError):
            MassStateProcessor(0, 3, ['A', 'B'])

    def test_repr(self):
        """repr names class, segment and bodies."""
        processor = RotationalStateProcessor(6, 7, ['Vehicle'])
        assert repr(processor) == "RotationalStateProcessor(start_index=6, size=7, bodies=['Vehicle'])"


class TestMultiArcSupport:
    """Only translational processors support multi-arc reset."""

    def test_rotational_multi_arc_unsupported(self, spacecraft_bodies):
        """Rotational multi-arc reset raises UnsupportedOperationError."""
        processor = RotationalStateProcessor(0, 7, ['Vehicle'])
        with pytest.raises(UnsupportedOperationError, match="rotational"):
            processor.process_integrated_multi_arc_states([], [], spacecraft_bodies)

    def test_mass_multi_arc_unsupported(self, spacecraft_bodies):
        """Mass multi-arc reset raises UnsupportedOperationError."""
        processor = MassStateProcessor(0, 1, ['Vehicle'])
        with pytest.raises(UnsupportedOperationError, match="not yet supported"):
            processor.process_integrated_multi_arc_states([], [], spacecraft_bodies)

    def test_unsupported_is_not_implemented(self):
        """UnsupportedOperationError is a NotImplementedError."""
        assert issubclass(UnsupportedOperationError, NotImplementedError)

    def test_translational_multi_arc(self):
        """Translational processors install one arc per solution."""
        bodies = BodyCollection([Body('Vehicle', MultiArcEphemeris())])
        processor = TranslationalStateProcessor(0, 6, ['Vehicle'], ['SSB'])
        solutions = []
        for start in [0.0, 100.0, 200.0]:
            times = np.linspace(start, start + 100.0, 6)
            solutions.append({t: circular_states([t], 7e6, 1e-3)[0] for t in times})
        processor.process_integrated_multi_arc_states(solutions, [0.0, 100.0, 200.0], bodies)
        assert bodies['Vehicle'].ephemeris.number_of_arcs == 3


class TestFactory:
    """Test processor factory."""

    def test_single_translational(self, bodies):
        """Single settings produce one processor."""
        processors, size = create_integrated_state_processors(
            TranslationalStateSettings(['Earth', 'Mars'], ['SSB', 'Earth']), bodies)
        assert size == 12
        assert list(processors) == [TRANSLATIONAL]
        processor = processors[TRANSLATIONAL][0]
        assert processor.update_order == ['Earth', 'Mars']
        assert list(processor.translation_functions(bodies)) == ['Mars']

    def test_hybrid_translational_and_mass(self, bodies):
        """Translational (12) then mass (2) processors start at 0 and 12."""
        processors, size = create_integrated_state_processors(hybrid(
            TranslationalStateSettings(['Earth', 'Mars'], ['SSB', 'SSB']),
            MassStateSettings(['Earth', 'Mars'])), bodies)
        assert size == 14
        assert sum(len(entries) for entries in processors.values()) == 2
        assert processors[TRANSLATIONAL][0].start_index == 0
        assert processors[MASS][0].start_index == 12
        assert processors[MASS][0].size == 2

    def test_processor_start_matches_layout(self, spacecraft_bodies):
        """Processor offsets agree with the state layout."""
        settings = hybrid(
            TranslationalStateSettings(['Vehicle'], ['Earth']),
            CustomStateSettings(2),
            RotationalStateSettings(['Vehicle']),
            MassStateSettings(['Vehicle']))
        processors, size = create_integrated_state_processors(settings, spacecraft_bodies)
        layout = build_state_layout(settings)
        assert size == layout.size == 16
        starts = {segment.state_type: segment.start_index for segment in layout}
        for state_type, entries in processors.items():
            assert entries[0].start_index == starts[state_type]

    def test_repeated_kind(self, bodies):
        """Two entries of one kind give two processors of that kind."""
        processors, size = create_integrated_state_processors(hybrid(
            MassStateSettings(['Earth']), MassStateSettings(['Mars'])), bodies)
        assert [p.start_index for p in processors[MASS]] == [0, 1]
        assert size == 2

    def test_custom_only(self, bodies):
        """Custom settings produce no processor but report their size."""
        processors, size = create_integrated_state_processors(CustomStateSettings(5), bodies)
        assert processors == {}
        assert size == 5

    def test_start_index(self, bodies):
        """The factory honors a non-zero start index."""
        processors, size = create_integrated_state_processors(
            MassStateSettings(['Earth']), bodies, start_index=4)
        assert processors[MASS][0].start_index == 4
        assert size == 1

    def test_nested_hybrid(self, bodies):
        """Hybrid entries may not be hybrid."""
        with pytest.raises(NestedHybridError):
            create_integrated_state_processors(hybrid(
                MassStateSettings(['Earth']), hybrid(MassStateSettings(['Mars']))), bodies)

    def test_undefined_entry(self, bodies):
        """None entries are rejected."""
        with pytest.raises(UndefinedSettingsError, match="entry 1"):
            create_integrated_state_processors(
                HybridStateSettings((MassStateSettings(['Earth']), None)), bodies)
        with pytest.raises(UndefinedSettingsError):
            create_integrated_state_processors(None, bodies)

    def test_unknown_kind(self, bodies):
        """Settings of unknown kind are rejected."""
        class ThermalSettings:
            state_type = 'thermal'
            state_size = 1
        with pytest.raises(UnknownStateTypeError):
            create_integrated_state_processors(ThermalSettings(), bodies)

    def test_ambiguous_entry(self, bodies, monkeypatch):
        """An entry yielding no processor for a non-custom kind is ambiguous."""
        import hodos.factory as factory
        original = factory.create_integrated_state_processors

        def no_mass_processors(settings, bodies, start_index=0, frame_manager=None):
            if isinstance(settings, MassStateSettings):
                return {}, settings.state_size
            return original(settings, bodies, start_index, frame_manager)

        monkeypatch.setattr(factory, 'create_integrated_state_processors', no_mass_processors)
        with pytest.raises(AmbiguousHybridCompositionError, match="entry 0"):
            original(hybrid(MassStateSettings(['Earth'])), bodies)

    def test_unknown_body(self, bodies):
        """Bodies must exist before processors are created."""
        with pytest.raises(BodyNotFoundError, match="Venus"):
            create_integrated_state_processors(MassStateSettings(['Venus']), bodies)

    def test_inconsistent_settings(self, bodies):
        """Invalid settings abort processor creation."""
        with pytest.raises(LayoutInconsistencyError):
            create_integrated_state_processors(
                TranslationalStateSettings(['Earth', 'Mars'], ['SSB']), bodies)


class TestFeasibility:
    """Test translational feasibility checks."""

    def test_feasible(self, bodies):
        """Bodies with ephemerides pass."""
        check_translational_states_feasibility(bodies, ['Earth', 'Mars'])

    def test_missing_body(self, bodies):
        """Unknown bodies fail."""
        with pytest.raises(BodyNotFoundError):
            check_translational_states_feasibility(bodies, ['Venus'])

    def test_missing_ephemeris(self):
        """Bodies without ephemeris fail."""
        bodies = BodyCollection([Body('Rock')])
        with pytest.raises(MissingEphemerisError, match="Rock"):
            check_translational_states_feasibility(bodies, ['Rock'])


class TestDrivers:
    """Test applying all processors to a solution."""

    def test_hybrid_reset(self, spacecraft_bodies, times):
        """Translational, rotational and mass states are all installed."""
        settings = hybrid(
            TranslationalStateSettings(['Vehicle'], ['Earth']),
            RotationalStateSettings(['Vehicle']),
            MassStateSettings(['Vehicle']))
        processors, size = create_integrated_state_processors(settings, spacecraft_bodies)
        orbit = circular_states(times, 7e6, 1e-3)
        attitude = spin_states(times)
        masses = 1000.0 - 0.001 * times
        solution = NumericalSolutionMap(times, np.column_stack([orbit, attitude, masses]))

        reset_integrated_states(solution, processors, spacecraft_bodies, state_size=size)

        vehicle = spacecraft_bodies['Vehicle']
        assert np.array_equal(vehicle.state_at(times[9]), orbit[9])
        assert np.array_equal(vehicle.rotational_ephemeris.rotational_state_at(times[9]),
                              attitude[9])
        assert vehicle.body_mass(times[9]) == masses[9]

    def test_translation_reads_bodies_of_the_call(self, bodies, times,
                                                  earth_states, mars_states):
        """Processors built on one collection translate with the collection they reset."""
        processors, size = create_integrated_state_processors(
            TranslationalStateSettings(['Earth', 'Mars'], ['SSB', 'Earth']), bodies)
        other = BodyCollection([
            Body('Sun', ConstantEphemeris(np.zeros(6))),
            Body('Earth', TabulatedEphemeris()),
            Body('Mars', TabulatedEphemeris()),
        ])
        solution = NumericalSolutionMap(
            times, np.hstack([earth_states, mars_states - earth_states]))

        reset_integrated_states(solution, processors, other, size)

        assert np.allclose(other['Mars'].state_at(times[17]), mars_states[17],
                           rtol=1e-12, atol=1e-3)
        assert bodies['Earth'].ephemeris.interpolator is None
        assert bodies['Mars'].ephemeris.interpolator is None

    def test_dependent_quantities_updated_once(self, spacecraft_bodies, times):
        """Dependent quantities are refreshed once per call."""
        settings = hybrid(TranslationalStateSettings(['Vehicle'], ['Earth']),
                          MassStateSettings(['Vehicle']))
        processors, size = create_integrated_state_processors(settings, spacecraft_bodies)
        solution = NumericalSolutionMap(times, np.column_stack([
            circular_states(times, 7e6, 1e-3), np.full(len(times), 900.0)]))
        before = spacecraft_bodies['Earth'].dependent_quantity_updates
        reset_integrated_states(solution, processors, spacecraft_bodies, size)
        assert spacecraft_bodies['Earth'].dependent_quantity_updates == before + 1

    def test_state_size_mismatch(self, spacecraft_bodies, times):
        """The flat states must have the size reported by the factory."""
        processors, size = create_integrated_state_processors(
            MassStateSettings(['Vehicle']), spacecraft_bodies)
        solution = NumericalSolutionMap(times, np.ones((len(times), 2)))
        with pytest.raises(LayoutInconsistencyError, match="cover 1 entries"):
            reset_integrated_states(solution, processors, spacecraft_bodies, size)

    def test_dict_solution(self, spacecraft_bodies):
        """Plain {time: state} mappings are accepted."""
        processors, size = create_integrated_state_processors(
            MassStateSettings(['Vehicle']), spacecraft_bodies)
        reset_integrated_states({0.0: [10.0], 1.0: [9.0]}, processors, spacecraft_bodies, size)
        assert spacecraft_bodies['Vehicle'].body_mass(0.5) == pytest.approx(9.5)

    def test_multi_arc_driver(self):
        """Multi-arc driver resets every translational body."""
        bodies = BodyCollection([Body('Earth', ConstantEphemeris(np.zeros(6))),
                                 Body('Vehicle', MultiArcEphemeris(reference_frame_origin='Earth'))])
        processors, size = create_integrated_state_processors(
            TranslationalStateSettings(['Vehicle'], ['Earth']), bodies)
        solutions = [
            NumericalSolutionMap(np.linspace(s, s + 100.0, 6),
                                 circular_states(np.linspace(s, s + 100.0, 6), 7e6, 1e-3))
            for s in [0.0, 100.0, 200.0]
        ]
        reset_integrated_multi_arc_states(solutions, processors, bodies, [0.0, 100.0, 200.0], size)
        assert bodies['Vehicle'].ephemeris.arc_start_times == [0.0, 100.0, 200.0]

    def test_multi_arc_driver_rejects_mass(self, spacecraft_bodies, times):
        """Multi-arc driver fails for mass processors."""
        processors, size = create_integrated_state_processors(
            MassStateSettings(['Vehicle']), spacecraft_bodies)
        solutions = [NumericalSolutionMap(times, np.ones((len(times), 1)))]
        with pytest.raises(UnsupportedOperationError):
            reset_integrated_multi_arc_states(solutions, processors, spacecraft_bodies, [0.0])


class TestHeyokaEndToEnd:
    """Integrate a Keplerian orbit with heyoka and install it as an ephemeris."""

    def test_two_body_orbit(self):
        """Grid states of a heyoka integration are reproduced by the installed ephemeris."""
        hy = pytest.importorskip("heyoka")
        mu = 3.986004415e14
        x, y, z, vx, vy, vz = hy.make_vars("x", "y", "z", "vx", "vy", "vz")
        r = hy.sqrt(x**2 + y**2 + z**2)
        ta = hy.taylor_adaptive(
            sys=[(x, vx), (y, vy), (z, vz),
                 (vx, -mu * x / r**3), (vy, -mu * y / r**3), (vz, -mu * z / r**3)],
            state=[7.0e6, 0.0, 0.0, 0.0, 7546.05, 0.0],
        )
        grid = np.linspace(0.0, 600.0, 61)
        solution = NumericalSolutionMap.from_taylor_grid(ta, grid)

        bodies = BodyCollection([
            Body('Earth', ConstantEphemeris(np.zeros(6))),
            Body('Vehicle', TabulatedEphemeris(reference_frame_origin='Earth')),
        ])
        processors, size = create_integrated_state_processors(
            TranslationalStateSettings(['Vehicle'], ['Earth']), bodies)
        reset_integrated_states(solution, processors, bodies, size)

        vehicle = bodies['Vehicle']
        assert np.array_equal(vehicle.state_at(grid[30]), solution[grid[30]])
        radius = np.linalg.norm(vehicle.state_at(305.0)[:3])
        assert radius == pytest.approx(7.0e6, rel=1e-6)
