"""
Unit tests for the 1D, 2D and 3D Yee solvers.

Tests verify:
- Source injection signs and timing
- Medium initialization
- Run termination by end time, iteration count and stop event
- Energy conservation in a closed PEC cavity
- Reflection and transmission at a dielectric interface
- Reset, close and field access
"""

import io
import threading

import numpy as np
import pytest
from rich.console import Console

from yee_fdtd import FDTD1D, FDTD2D, FDTD3D, Border, GaussianPulse, create_solver
from yee_fdtd.constants import EPS0, MU0
from yee_fdtd.core.solver import print_interval

ABSORBING = Border.PEC | Border.CPML

# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def line(unit_wavelength):
    """Small 1D solver with unit spacing and an uninitialized medium."""
    return FDTD1D(domain_size=10.0, wavelength=unit_wavelength, dtype=np.float64)


@pytest.fixture
def plane(unit_wavelength):
    return FDTD2D(domain_size=(10.0, 10.0), wavelength=unit_wavelength, dtype=np.float64)


@pytest.fixture
def box(unit_wavelength):
    return FDTD3D(domain_size=(6.0, 6.0, 6.0), wavelength=unit_wavelength, dtype=np.float64)


def signed_peak(values):
    """Value with the largest magnitude, sign preserved."""
    return values[np.argmax(np.abs(values))]


# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    def test_factory(self, unit_wavelength):
        assert isinstance(create_solver(1, wavelength=unit_wavelength, domain_size=4.0), FDTD1D)
        assert isinstance(create_solver(2, wavelength=unit_wavelength, domain_size=4.0), FDTD2D)
        assert isinstance(create_solver(3, wavelength=unit_wavelength, domain_size=4.0), FDTD3D)
        with pytest.raises(ValueError, match="1, 2 or 3"):
            create_solver(4)

    def test_components(self, line, plane, box):
        assert set(line.fields) == {"ez", "hy"}
        assert set(plane.fields) == {"ez", "hx", "hy"}
        assert set(box.fields) == {"ex", "ey", "ez", "hx", "hy", "hz"}

    def test_default_precision_is_single(self, unit_wavelength):
        solver = FDTD1D(domain_size=4.0, wavelength=unit_wavelength)
        assert solver.ez.dtype == np.float32

    def test_integer_dtype_rejected(self, unit_wavelength):
        with pytest.raises(ValueError, match="floating point"):
            FDTD1D(domain_size=4.0, wavelength=unit_wavelength, dtype=np.int32)

    def test_default_courant(self, line, plane, box):
        assert line.courant == 1.0
        assert plane.courant == pytest.approx(1 / np.sqrt(3))
        assert box.courant == 0.5

    def test_unstable_courant_warns(self, unit_wavelength):
        with pytest.warns(UserWarning, match="too high"):
            FDTD3D(domain_size=4.0, courant=0.6, wavelength=unit_wavelength)

    @pytest.mark.parametrize(
        "cls,size,courant", [(FDTD1D, 4.0, 1.2), (FDTD2D, 4.0, 0.8), (FDTD3D, 4.0, 0.6)]
    )
    def test_unstable_courant_warning_points_at_caller(self, unit_wavelength, cls, size, courant):
        with pytest.warns(UserWarning, match="too high") as record:
            cls(domain_size=size, courant=courant, wavelength=unit_wavelength)
        assert record[0].filename == __file__

    def test_approximate_default_rejected_outside_2d(self, unit_wavelength):
        from yee_fdtd import ApproximateUpdate

        with pytest.raises(ValueError, match="not available for 3D"):
            FDTD3D(
                domain_size=4.0,
                wavelength=unit_wavelength,
                approximate=ApproximateUpdate("random_skip", 0.1),
            )

    def test_fields_exposed_as_attributes(self, plane):
        assert plane.ez is plane.fields["ez"]
        with pytest.raises(AttributeError):
            plane.ex

    def test_verbose_prints_spacing(self, unit_wavelength):
        buffer = io.StringIO()
        FDTD2D(
            domain_size=(4.0, 3.0),
            wavelength=unit_wavelength,
            verbose=True,
            console=Console(file=buffer, width=200),
        )
        assert "Dx 1.000000e+00 Dy 1.000000e+00 (4x3)" in buffer.getvalue()


# =============================================================================
# Medium
# =============================================================================


class TestMedium:
    def test_starts_uninitialized(self, line):
        assert not line.medium_initialized
        assert np.all(line.permittivity_inv == 0)

    def test_vacuum_default(self, line):
        line.initialize_medium()
        assert line.permittivity_inv == pytest.approx(np.full(10, 1 / EPS0))
        assert line.permeability_inv == pytest.approx(np.full(10, 1 / MU0))

    def test_per_cell_callback(self, line):
        line.initialize_medium(permittivity=lambda x, ctx: 4.0 if x >= 5 else 1.0)
        assert line.permittivity_inv[4] == pytest.approx(1 / EPS0)
        assert line.permittivity_inv[5] == pytest.approx(1 / (4 * EPS0))

    def test_row_major_order_and_context(self, unit_wavelength):
        solver = FDTD2D(domain_size=(2.0, 3.0), wavelength=unit_wavelength)
        calls = []

        def record(x, y, ctx):
            ctx.append((x, y))
            return 1.0

        solver.initialize_medium(permittivity=record, context=calls)
        assert calls == [(0.0, 0.0), (0.0, 1.0), (0.0, 2.0), (1.0, 0.0), (1.0, 1.0), (1.0, 2.0)]

    def test_vectorized_matches_per_cell(self, unit_wavelength):
        def slab(x, y, ctx):
            return np.where(y > 4, 2.25, 1.0)

        per_cell = FDTD2D(domain_size=(6.0, 8.0), wavelength=unit_wavelength)
        per_cell.initialize_medium(permittivity=lambda x, y, ctx: 2.25 if y > 4 else 1.0)
        vectorized = FDTD2D(domain_size=(6.0, 8.0), wavelength=unit_wavelength)
        vectorized.initialize_medium(permittivity=slab, vectorized=True)
        np.testing.assert_array_equal(per_cell.permittivity_inv, vectorized.permittivity_inv)

    def test_second_initialization_rejected(self, line):
        line.initialize_medium()
        with pytest.raises(RuntimeError, match="already"):
            line.initialize_medium()

    def test_non_positive_values_rejected(self, line):
        with pytest.raises(ValueError, match="positive"):
            line.initialize_medium(permeability=lambda x, ctx: 0.0)

    def test_material_is_read_only(self, line):
        line.initialize_medium()
        with pytest.raises(ValueError):
            line.permittivity_inv[0] = 1.0


# =============================================================================
# Sources
# =============================================================================


class TestSources:
    def test_pulse_peak(self):
        pulse = GaussianPulse(delay=3e-15, width=1e-15, amplitude=2.5)
        assert pulse(3e-15) == pytest.approx(2.5)
        assert pulse.value(4e-15) == pytest.approx(2.5 * np.exp(-1))

    def test_pulse_vectorized(self):
        pulse = GaussianPulse(delay=0.0, width=1.0)
        values = pulse.value(np.array([-1.0, 0.0, 1.0]))
        np.testing.assert_allclose(values, [np.exp(-1), 1.0, np.exp(-1)])

    def test_pulse_width_must_be_positive(self):
        with pytest.raises(ValueError):
            GaussianPulse(delay=0.0, width=0.0)

    def test_1d_electric_source_positive(self, line):
        line.add_source(GaussianPulse(0.0, line.dt, 2.5), cell=5)
        line.step()
        assert line.ez[5] == pytest.approx(2.5)
        assert np.count_nonzero(line.ez) == 1
        assert np.all(line.hy == 0)

    def test_2d_electric_source_negative(self, plane):
        plane.add_source(GaussianPulse(0.0, plane.dt, 2.5), cell=(5, 5))
        plane.step()
        assert plane.ez[5, 5] == pytest.approx(-2.5)

    def test_3d_electric_source_on_every_component(self, box):
        box.add_source(GaussianPulse(0.0, box.dt, 2.5), cell=(3, 3, 3))
        box.step()
        for name in ("ex", "ey", "ez"):
            assert box.fields[name][3, 3, 3] == pytest.approx(-2.5)

    def test_magnetic_source_positive(self, line):
        line.add_source(GaussianPulse(0.0, line.dt, 2.5), cell=5, kind="M")
        line.step()
        assert line.hy[5] == pytest.approx(2.5)
        assert np.all(line.ez == 0)

    def test_source_sampled_at_start_of_step(self, line):
        dt = line.dt
        line.add_source(GaussianPulse(dt, dt, 1.0), cell=5)
        line.step()
        assert line.ez[5] == pytest.approx(np.exp(-1))

    def test_position_is_snapped(self, line, plane):
        assert line.add_source(GaussianPulse(0.0, 1.0), 2.5) == (3,)
        assert plane.add_source(GaussianPulse(0.0, 1.0), (2.5, 7.9)) == (2, 7)

    def test_invalid_locations(self, plane):
        pulse = GaussianPulse(0.0, 1.0)
        with pytest.raises(ValueError):
            plane.add_source(pulse, (10.0, 1.0))
        with pytest.raises(ValueError):
            plane.add_source(pulse, (-1.0, 1.0))
        with pytest.raises(ValueError):
            plane.add_source(pulse, cell=(0, 10))
        with pytest.raises(ValueError, match="exactly one"):
            plane.add_source(pulse, (1.0, 1.0), cell=(1, 1))
        with pytest.raises(ValueError, match="exactly one"):
            plane.add_source(pulse)
        with pytest.raises(ValueError, match="kind"):
            plane.add_source(pulse, cell=(1, 1), kind="E")

    def test_sources_listed(self, plane):
        plane.add_source(GaussianPulse(0.0, 1.0), cell=(1, 1), kind="M")
        plane.add_source(GaussianPulse(0.0, 1.0), cell=(2, 2))
        assert [(s.kind, s.cell) for s in plane.sources] == [("J", (2, 2)), ("M", (1, 1))]


# =============================================================================
# Probes
# =============================================================================


class TestProbes:
    def test_records_after_each_step(self, line):
        line.add_source(GaussianPulse(0.0, line.dt, 1.0), cell=5)
        line.add_probe("src", 5)
        line.run(iterations=3)
        data = line.get_probe_data("src")["src"]
        assert len(data) == 3
        assert data[0] == pytest.approx(1.0)

    def test_invalid_probes(self, plane):
        plane.add_probe("a", (1, 1))
        with pytest.raises(ValueError, match="already exists"):
            plane.add_probe("a", (2, 2))
        with pytest.raises(ValueError, match="not defined"):
            plane.add_probe("b", (2, 2), component="hz")
        with pytest.raises(ValueError):
            plane.add_probe("c", (2, 20))
        with pytest.raises(KeyError):
            plane.get_probe_data("missing")


# =============================================================================
# Run Loop
# =============================================================================


class TestRun:
    def test_iteration_count(self, line):
        assert line.run(iterations=7) == 7
        assert line.step_count == 7
        assert line.time == pytest.approx(7 * line.dt)

    def test_end_time_takes_precedence(self, line):
        end = 10.5 * line.dt
        assert line.run(end_time=end, iterations=3) == 11
        assert line.time >= end

    def test_non_positive_end_time_uses_iterations(self, line):
        assert line.run(end_time=-1.0, iterations=4) == 4

    def test_end_time_is_absolute(self, line):
        line.run(iterations=5)
        assert line.run(end_time=8.5 * line.dt) == 4

    def test_requires_a_stop_criterion(self, line):
        with pytest.raises(ValueError):
            line.run()
        with pytest.raises(ValueError):
            line.run(iterations=-1)

    def test_stop_event(self, line):
        stop = threading.Event()

        def callback(step):
            if step == 4:
                stop.set()

        assert line.run(iterations=100, stop_event=stop, callback=callback) == 5

    def test_verbose_checkpoints(self, unit_wavelength):
        buffer = io.StringIO()
        solver = FDTD1D(
            domain_size=10.0,
            wavelength=unit_wavelength,
            console=Console(file=buffer, width=200),
        )
        solver.run(iterations=20, verbose=True)
        output = buffer.getvalue()
        assert "It will take 20 iterations" in output
        lines = [text for text in output.splitlines() if "% -- t=" in text]
        assert len(lines) == 10
        assert lines[0].startswith("10% -- t=")
        assert lines[-1].startswith("100% -- t=")
        assert "(2 iter in" in lines[-1]

    @pytest.mark.parametrize(
        "iterations,expected", [(5, 1), (10, 1), (15, 1), (20, 2), (400, 40), (1000, 100)]
    )
    def test_print_interval(self, iterations, expected):
        assert print_interval(iterations) == expected

    def test_deterministic(self, cavity_2d):
        results = []
        for _ in range(2):
            solver = cavity_2d(size=20, dtype=np.float32)
            solver.initialize_medium()
            solver.add_source(GaussianPulse(10 * solver.dt, 3 * solver.dt), cell=(10, 10))
            solver.run(iterations=50)
            results.append(solver.ez.copy())
        np.testing.assert_array_equal(results[0], results[1])

    def test_approximate_rejected_outside_2d(self, line):
        from yee_fdtd import ApproximateUpdate

        with pytest.raises(ValueError, match="not available for 1D"):
            line.run(iterations=1, approximate=ApproximateUpdate("random_skip", 0.1))


# =============================================================================
# Energy
# =============================================================================


class TestEnergy:
    def test_empty_domain_has_no_energy(self, cavity_2d):
        solver = cavity_2d(size=10)
        solver.initialize_medium()
        assert solver.compute_energy() == 0.0

    def test_report_requires_history(self, cavity_2d):
        solver = cavity_2d(size=10)
        with pytest.raises(ValueError, match="No energy history"):
            solver.energy_report()

    @pytest.mark.slow
    def test_pec_cavity_conserves_energy(self, cavity_2d):
        solver = cavity_2d(size=40)
        solver.initialize_medium()
        dt = solver.dt
        solver.add_source(GaussianPulse(20 * dt, 5 * dt), cell=(20, 20))
        solver.run(iterations=900, track_energy=True)

        history = {step: energy for step, _, energy in solver.get_energy_history()}
        early = np.mean([history[s] for s in range(100, 301)])
        late = np.mean([history[s] for s in range(700, 901)])
        assert early > 0
        assert 0.95 < late / early < 1.05

        report = solver.energy_report()
        assert report["n_samples"] == 901
        assert report["max_energy"] >= report["final_energy"]

    def test_3d_pec_cavity_conserves_energy(self, unit_wavelength):
        solver = FDTD3D(
            domain_size=16.0, courant=0.5, wavelength=unit_wavelength, dtype=np.float64
        )
        solver.initialize_medium()
        dt = solver.dt
        solver.add_source(GaussianPulse(20 * dt, 5 * dt), cell=(8, 8, 8))
        solver.run(iterations=600, track_energy=True)

        history = {step: energy for step, _, energy in solver.get_energy_history()}
        early = np.mean([history[s] for s in range(100, 251)])
        late = np.mean([history[s] for s in range(450, 601)])
        assert early > 0
        assert 0.95 < late / early < 1.05

    def test_drift_warning(self, unit_wavelength):
        solver = FDTD1D(
            domain_size=100.0,
            courant=0.9,
            wavelength=unit_wavelength,
            cpml_thickness=10,
            borders={"low": ABSORBING, "high": ABSORBING},
            warn_energy_drift=True,
        )
        solver.initialize_medium()
        dt = solver.dt
        solver.add_source(GaussianPulse(20 * dt, 5 * dt), cell=50)
        solver.run(iterations=60)
        with pytest.warns(UserWarning, match="Energy drift detected"):
            solver.run(iterations=200, track_energy=True)
        assert solver.energy_report()["conservation_status"] == "decaying"


# =============================================================================
# Dielectric Interface
# =============================================================================


class TestDielectricInterface:
    @pytest.mark.slow
    def test_fresnel_coefficients(self, unit_wavelength):
        """Normal incidence from vacuum onto eps_r = 4: r = -1/3, t = 2/3."""
        solver = FDTD1D(
            domain_size=400.0,
            courant=0.9,
            wavelength=unit_wavelength,
            cpml_thickness=20,
            borders={"low": ABSORBING, "high": ABSORBING},
            dtype=np.float64,
        )
        solver.initialize_medium(permittivity=lambda x, ctx: 4.0 if x >= 300 else 1.0)
        dt = solver.dt
        solver.add_source(GaussianPulse(60 * dt, 20 * dt), cell=150)
        solver.add_probe("front", 200)
        solver.add_probe("inside", 330)
        solver.run(iterations=460)

        front = solver.get_probe_data("front")["front"]
        inside = solver.get_probe_data("inside")["inside"]
        incident = signed_peak(front[:230])
        reflected = signed_peak(front[230:])
        transmitted = signed_peak(inside)

        assert reflected / incident == pytest.approx(-1 / 3, abs=0.03)
        assert transmitted / incident == pytest.approx(2 / 3, abs=0.05)


# =============================================================================
# Field Access and Lifecycle
# =============================================================================


class TestLifecycle:
    def test_get_field(self, plane):
        assert plane.get_field("ez") is plane.ez
        assert plane.get_field("EZ") is plane.ez
        assert plane.get_field("permittivity") is plane.permittivity_inv

    def test_get_field_undefined(self, plane):
        with pytest.raises(ValueError, match='Dump of "ex" not available for 2D fdtd'):
            plane.get_field("ex")

    def test_reset_replays_identically(self, unit_wavelength):
        solver = FDTD2D(
            domain_size=(30.0, 30.0),
            courant=0.5,
            wavelength=unit_wavelength,
            cpml_thickness=5,
            borders={face: ABSORBING for face in ("south", "north", "west", "east")},
            dtype=np.float64,
        )
        solver.initialize_medium()
        solver.add_source(GaussianPulse(10 * solver.dt, 3 * solver.dt), cell=(15, 15))
        solver.add_probe("p", (15, 20))
        solver.run(iterations=60)
        first = solver.ez.copy()

        solver.reset()
        assert solver.step_count == 0
        assert solver.time == 0.0
        assert np.all(solver.ez == 0)
        assert len(solver.get_probe_data("p")["p"]) == 0
        assert solver.medium_initialized
        assert all(np.all(psi == 0) for psi in solver.cpml.psi("hy", "south"))

        solver.run(iterations=60)
        np.testing.assert_array_equal(solver.ez, first)

    def test_close(self, plane):
        plane.close()
        assert plane.closed
        with pytest.raises(RuntimeError, match="closed"):
            plane.step()
        with pytest.raises(RuntimeError, match="closed"):
            plane.get_field("ez")
        plane.close()

    def test_context_manager(self, unit_wavelength):
        with FDTD1D(domain_size=4.0, wavelength=unit_wavelength) as solver:
            solver.step()
        assert solver.closed
