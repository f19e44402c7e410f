"""
Unit tests for the Yee grid specification.

Tests verify:
- Spacing and time step derivation
- Cell count rounding per dimensionality
- Stability warning
- Border flag resolution and CPML size guards
- Position snapping
"""

import math
import warnings

import pytest

from yee_fdtd import Border, YeeGrid
from yee_fdtd.constants import C0, EPS0, ETA0, MU0, default_courant, stability_limit

# =============================================================================
# Constants
# =============================================================================


class TestConstants:
    def test_speed_of_light_consistent(self):
        assert 1.0 / math.sqrt(MU0 * EPS0) == pytest.approx(C0, rel=1e-12)

    def test_free_space_impedance(self):
        assert ETA0 == pytest.approx(376.730313, rel=1e-6)

    def test_stability_limits(self):
        assert stability_limit(1) == 1.0
        assert stability_limit(2) == pytest.approx(1 / math.sqrt(2))
        assert stability_limit(3) == pytest.approx(1 / math.sqrt(3))

    def test_default_courant_numbers(self):
        assert default_courant(1) == 1.0
        assert default_courant(2) == pytest.approx(1 / math.sqrt(3))
        assert default_courant(3) == 0.5


# =============================================================================
# Discretisation
# =============================================================================


class TestDiscretisation:
    def test_spacing_is_twentieth_of_wavelength(self):
        grid = YeeGrid(domain_size=(1.5,), courant=0.5, wavelength=2.5)
        assert grid.dx == pytest.approx(0.125)
        assert grid.dx == grid.dy == grid.dz

    def test_time_step_from_courant(self):
        grid = YeeGrid(domain_size=(1.5, 1.5), courant=0.5, wavelength=2.5)
        assert grid.dt == pytest.approx(0.125 * 0.5 / C0)

    @pytest.mark.parametrize("dims", [1, 2, 3])
    def test_exact_multiple_gives_same_count(self, dims):
        grid = YeeGrid(domain_size=(1.5,) * dims, courant=0.5, wavelength=2.5)
        assert grid.shape == (12,) * dims
        assert grid.num_cells == 12**dims

    def test_1d_rounds_up(self):
        grid = YeeGrid(domain_size=(1.51,), courant=0.5, wavelength=2.5)
        assert grid.shape == (13,)

    def test_2d_rounds_down(self):
        grid = YeeGrid(domain_size=(1.51, 1.51), courant=0.5, wavelength=2.5)
        assert grid.shape == (12, 12)

    def test_3d_rounds_up(self):
        grid = YeeGrid(domain_size=(1.51, 1.5, 1.5), courant=0.5, wavelength=2.5)
        assert grid.shape == (13, 12, 12)

    def test_default_problem_size(self):
        grid = YeeGrid(domain_size=(1e-5, 1e-5), courant=0.5, wavelength=450e-9)
        assert grid.shape == (444, 444)

    def test_coordinates(self):
        grid = YeeGrid(domain_size=(1.5,), courant=0.5, wavelength=2.5)
        coords = grid.coordinates(0)
        assert coords[0] == 0.0
        assert coords[3] == pytest.approx(0.375)
        assert len(coords) == 12


# =============================================================================
# Validation
# =============================================================================


class TestValidation:
    def test_unstable_courant_warns(self):
        with pytest.warns(UserWarning, match="lesser or equal to 0.70711") as record:
            grid = YeeGrid(domain_size=(1.5, 1.5), courant=0.8, wavelength=2.5)
        assert not grid.stable
        assert record[0].filename == __file__

    def test_stable_courant_does_not_warn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            grid = YeeGrid(domain_size=(1.5,), courant=1.0, wavelength=2.5)
        assert grid.stable

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"domain_size": (0.0,)},
            {"domain_size": (1.5, -1.0)},
            {"domain_size": (1.5,) * 4},
            {"wavelength": 0.0},
            {"courant": 0.0},
            {"cpml_thickness": -1},
        ],
    )
    def test_invalid_parameters(self, kwargs):
        params = {"domain_size": (1.5,), "courant": 0.5, "wavelength": 2.5}
        params.update(kwargs)
        with pytest.raises(ValueError):
            YeeGrid(**params)

    def test_single_cell_axis_rejected(self):
        with pytest.raises(ValueError, match="at least 2"):
            YeeGrid(domain_size=(0.1,), courant=0.5, wavelength=2.5)

    def test_cpml_thickness_one_rejected(self):
        with pytest.raises(ValueError, match="thickness of 1"):
            YeeGrid(domain_size=(1.5,), courant=0.5, wavelength=2.5, cpml_thickness=1)

    def test_cpml_needs_room(self):
        # 12 cells cannot hold two 6-cell layers plus an interior cell
        with pytest.raises(ValueError, match="requires at least 13"):
            YeeGrid(
                domain_size=(1.5,),
                courant=0.5,
                wavelength=2.5,
                cpml_thickness=6,
                borders={"low": Border.CPML},
            )

    def test_cpml_room_only_checked_on_cpml_axes(self):
        grid = YeeGrid(
            domain_size=(1.5, 5.0),
            courant=0.5,
            wavelength=2.5,
            cpml_thickness=10,
            borders={"west": Border.PEC | Border.CPML},
        )
        assert grid.axis_has_cpml(1)
        assert not grid.axis_has_cpml(0)


# =============================================================================
# Borders
# =============================================================================


class TestBorders:
    def test_faces_default_to_pec(self):
        grid = YeeGrid(domain_size=(1.5, 1.5, 1.5), courant=0.5, wavelength=2.5)
        assert set(grid.face_flags) == {"bottom", "top", "left", "right", "front", "back"}
        assert all(flags == Border.PEC for flags in grid.face_flags.values())

    def test_combined_flags(self):
        grid = YeeGrid(
            domain_size=(1.5, 1.5),
            courant=0.5,
            wavelength=2.5,
            borders={"north": Border.PEC | Border.CPML, "east": Border.PMC},
        )
        north = grid.border("north")
        assert north & Border.PEC
        assert north & Border.CPML
        assert not north & Border.PMC
        assert grid.border("east") == Border.PMC

    def test_1d_aliases(self):
        grid = YeeGrid(
            domain_size=(1.5,),
            courant=0.5,
            wavelength=2.5,
            borders={"oneside": Border.PMC, "otherside": Border.NONE},
        )
        assert grid.border("low") == Border.PMC
        assert grid.border("high") == Border.NONE
        assert grid.border("oneside") == Border.PMC

    def test_unknown_face(self):
        with pytest.raises(ValueError, match="Unknown border face"):
            YeeGrid(
                domain_size=(1.5, 1.5),
                courant=0.5,
                wavelength=2.5,
                borders={"top": Border.PEC},
            )

    def test_faces_listing(self):
        grid = YeeGrid(domain_size=(1.5, 1.5), courant=0.5, wavelength=2.5)
        faces = {name: (axis, side) for name, axis, side, _ in grid.faces()}
        assert faces == {"south": (0, 0), "north": (0, 1), "west": (1, 0), "east": (1, 1)}


# =============================================================================
# Snapping
# =============================================================================


class TestSnap:
    def test_1d_ceiling(self):
        grid = YeeGrid(domain_size=(1.5,), courant=0.5, wavelength=2.5)
        assert grid.snap((0.3,)) == (3,)
        assert grid.snap((0.25,)) == (2,)

    def test_2d_floor(self):
        grid = YeeGrid(domain_size=(1.5, 1.5), courant=0.5, wavelength=2.5)
        assert grid.snap((0.3, 0.3)) == (2, 2)

    def test_3d_uses_each_axis(self):
        grid = YeeGrid(domain_size=(1.5, 1.5, 1.5), courant=0.5, wavelength=2.5)
        assert grid.snap((0.0, 0.125, 0.3)) == (0, 1, 3)

    def test_outside_rejected(self):
        grid = YeeGrid(domain_size=(1.5, 1.5), courant=0.5, wavelength=2.5)
        with pytest.raises(ValueError, match="outside"):
            grid.snap((1.5, 0.0))
        with pytest.raises(ValueError, match="outside"):
            grid.snap((-0.01, 0.0))

    def test_wrong_length_rejected(self):
        grid = YeeGrid(domain_size=(1.5, 1.5), courant=0.5, wavelength=2.5)
        with pytest.raises(ValueError, match="expected 2"):
            grid.snap((0.5,))
