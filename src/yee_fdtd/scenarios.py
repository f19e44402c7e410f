"""Preset simulation scenarios.

Each scenario builds a solver with a fixed border layout, a medium and a
set of sources, scaled to the requested domain size and time step.

Catalog:
    1D 0: Half air, half water. PEC / PMC walls, magnetic pulse at x = 0.
    2D 0: West air, east water slab. Electric pulse near the west wall.
    2D 1: High-permittivity block in air, line of electric pulses.
    2D 2: Free space with absorbing walls, centred electric pulse.
    3D 0: Half air, half water. Sheet of magnetic pulses.
    3D 1: High-permittivity cube in air. Sheet of magnetic pulses.

Example:
    >>> solver = build_scenario(2, 2, domain_size=(1e-5, 1e-5), cpml_thickness=20)
    >>> solver.run(iterations=400)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np

from yee_fdtd.core.grid import Border
from yee_fdtd.core.solver import FDTDSolver, create_solver
from yee_fdtd.core.waveforms import GaussianPulse

# Relative material values of the background medium (air)
AIR_PERMITTIVITY = 1.00058986
AIR_PERMEABILITY = 1.00000037
WATER_PERMITTIVITY_STATIC = 78.4
WATER_PERMITTIVITY_OPTICAL = 1.77
WATER_PERMEABILITY = 0.999992
HIGH_PERMITTIVITY = 1e9


@dataclass(frozen=True)
class Box:
    """Axis-aligned object embedded in a background medium.

    A point is outside when any coordinate is strictly below
    ``center - size / 2`` or strictly above ``center + size / 2``.
    """

    center: tuple[float, ...]
    size: tuple[float, ...]
    medium: float
    inside: float

    def __call__(self, *args: Any) -> np.ndarray:
        *coords, _context = args
        outside = np.zeros(np.shape(coords[0]), dtype=bool)
        for x, c, s in zip(coords, self.center, self.size):
            outside |= (x < c - s / 2.0) | (x > c + s / 2.0)
        return np.where(outside, self.medium, self.inside)


@dataclass(frozen=True)
class Scenario:
    name: str
    dimensions: int
    setup_id: int
    build: Callable[..., None]


def _half_and_half_1d(solver: FDTDSolver, size: tuple[float, ...]) -> None:
    switch = size[0] / 2.0
    solver.initialize_medium(
        permittivity=lambda x, ctx: np.where(x < switch, AIR_PERMITTIVITY, WATER_PERMITTIVITY_STATIC),
        permeability=lambda x, ctx: np.where(x < switch, AIR_PERMEABILITY, WATER_PERMEABILITY),
        vectorized=True,
    )
    dt = solver.dt
    solver.add_source(GaussianPulse(25 * dt, 3 * dt, 1e-2), (0.0,), kind="M")


def _air_water_2d(solver: FDTDSolver, size: tuple[float, ...]) -> None:
    lx, ly = size
    center = (lx / 2.0, 3.0 * ly / 4.0)
    dims = (2.0 * lx, ly / 2.0)
    solver.initialize_medium(
        permittivity=Box(center, dims, AIR_PERMITTIVITY, WATER_PERMITTIVITY_OPTICAL),
        permeability=Box(center, dims, AIR_PERMEABILITY, WATER_PERMEABILITY),
        vectorized=True,
    )
    dt = solver.dt
    solver.add_source(GaussianPulse(30 * dt, 15 * dt, 1000.0), (lx / 2.0, solver.grid.dy))


def _high_permittivity_2d(solver: FDTDSolver, size: tuple[float, ...]) -> None:
    lx, ly = size
    side = min(lx, ly) / 2.0
    center = (lx / 2.0, ly / 2.0)
    solver.initialize_medium(
        permittivity=Box(center, (side, side), AIR_PERMITTIVITY, HIGH_PERMITTIVITY),
        permeability=Box(center, (side, side), AIR_PERMEABILITY, 1.0),
        vectorized=True,
    )
    dt = solver.dt
    pulse = GaussianPulse(25 * dt, 3 * dt, 100.0)
    thickness = solver.grid.cpml_thickness
    for i in range(thickness, solver.shape[0] - thickness):
        solver.add_source(pulse, cell=(i, 1))


def _free_space_2d(solver: FDTDSolver, size: tuple[float, ...]) -> None:
    solver.initialize_medium()
    dt = solver.dt
    solver.add_source(GaussianPulse(30 * dt, 15 * dt, 1.0), (size[0] / 2.0, size[1] / 2.0))


def _sheet_sources_3d(solver: FDTDSolver) -> None:
    dt = solver.dt
    pulse = GaussianPulse(10 * dt, 5 * dt, 1e-2)
    depth = solver.grid.cpml_thickness + 2
    for j in range(solver.shape[1]):
        solver.add_source(pulse, cell=(depth, j, depth), kind="M")


def _air_water_3d(solver: FDTDSolver, size: tuple[float, ...]) -> None:
    lx, ly, lz = size
    center = (lx / 2.0, ly / 2.0, 3.0 * lz / 4.0)
    dims = (2.0 * lx, 2.0 * ly, ly / 2.0)
    solver.initialize_medium(
        permittivity=Box(center, dims, AIR_PERMITTIVITY, WATER_PERMITTIVITY_OPTICAL),
        permeability=Box(center, dims, AIR_PERMEABILITY, WATER_PERMEABILITY),
        vectorized=True,
    )
    _sheet_sources_3d(solver)


def _high_permittivity_3d(solver: FDTDSolver, size: tuple[float, ...]) -> None:
    lx, ly, lz = size
    center = (lx / 2.0, ly / 2.0, lz / 2.0)
    dims = (ly / 2.0,) * 3
    solver.initialize_medium(
        permittivity=Box(center, dims, AIR_PERMITTIVITY, HIGH_PERMITTIVITY),
        permeability=Box(center, dims, AIR_PERMEABILITY, 1.0),
        vectorized=True,
    )
    _sheet_sources_3d(solver)


_PEC_CPML = Border.PEC | Border.CPML

SCENARIOS: dict[tuple[int, int], tuple[Scenario, dict[str, Border]]] = {
    (1, 0): (
        Scenario("half_air_half_water_1D", 1, 0, _half_and_half_1d),
        {"low": Border.PEC, "high": Border.PMC},
    ),
    (2, 0): (
        Scenario("west_air_east_water_2D", 2, 0, _air_water_2d),
        {"south": _PEC_CPML, "north": _PEC_CPML, "east": Border.PEC, "west": Border.PEC},
    ),
    (2, 1): (
        Scenario("object_high_permittivity_2D", 2, 1, _high_permittivity_2d),
        {"south": _PEC_CPML, "north": _PEC_CPML, "east": Border.PEC, "west": Border.PEC},
    ),
    (2, 2): (
        Scenario("free_space_absorbing_border_2D", 2, 2, _free_space_2d),
        {"south": _PEC_CPML, "north": _PEC_CPML, "east": _PEC_CPML, "west": _PEC_CPML},
    ),
    (3, 0): (
        Scenario("half_air_half_water_3D", 3, 0, _air_water_3d),
        {face: Border.PEC for face in ("front", "back", "top", "bottom", "left", "right")},
    ),
    (3, 1): (
        Scenario("object_high_permittivity_3D", 3, 1, _high_permittivity_3d),
        {face: Border.PEC for face in ("front", "back", "top", "bottom", "left", "right")},
    ),
}


def list_scenarios(dimensions: int | None = None) -> list[Scenario]:
    """Available scenarios, optionally for one dimensionality."""
    return [
        scenario
        for (dims, _), (scenario, _) in sorted(SCENARIOS.items())
        if dimensions is None or dims == dimensions
    ]


def build_scenario(
    dimensions: int,
    setup_id: int = 0,
    domain_size: float | tuple[float, ...] = 1e-5,
    courant: float | None = None,
    wavelength: float = 450e-9,
    cpml_thickness: int = 20,
    **kwargs,
) -> FDTDSolver:
    """Build a solver populated with a preset medium and sources.

    Args:
        dimensions: 1, 2 or 3
        setup_id: Scenario number within the dimensionality
        domain_size: Physical size per axis in meters (scalar for all axes)
        courant: Courant number (default per dimensionality)
        wavelength: Smallest resolved wavelength in meters
        cpml_thickness: CPML thickness in cells
        **kwargs: Forwarded to the solver constructor (dtype, verbose, ...)

    Raises:
        ValueError: If no scenario exists for (dimensions, setup_id)
    """
    key = (dimensions, setup_id)
    if key not in SCENARIOS:
        raise ValueError(
            f"The input setup id {setup_id} does not map to any available "
            f"{dimensions}D setup"
        )
    scenario, borders = SCENARIOS[key]

    if np.isscalar(domain_size):
        domain_size = (float(domain_size),) * dimensions
    domain_size = tuple(domain_size)[:dimensions]

    solver = create_solver(
        dimensions,
        domain_size=domain_size,
        courant=courant,
        wavelength=wavelength,
        borders=borders,
        cpml_thickness=cpml_thickness,
        **kwargs,
    )
    scenario.build(solver, domain_size)
    return solver
