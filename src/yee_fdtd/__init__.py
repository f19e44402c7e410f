"""
Yee FDTD - electromagnetic finite-difference time-domain toolchain.

Main exports:
- FDTD1D, FDTD2D, FDTD3D: Yee-grid solvers for each dimensionality
- create_solver: Variant factory by dimensionality
- GaussianPulse: Source waveform for J and M sources
- Border: Face flags (PEC, PMC, CPML)
- CPML, ConductorWalls: Boundary handlers
- ApproximateUpdate: Experimental approximate 2D updates
- build_scenario: Preset media and source layouts
"""

# The core package must load before boundaries, which imports core.grid
from yee_fdtd.core.approximate import ApproximateUpdate
from yee_fdtd.core.grid import Border, YeeGrid
from yee_fdtd.core.solver import FDTDSolver, Probe, create_solver
from yee_fdtd.core.solver1d import FDTD1D
from yee_fdtd.core.solver2d import FDTD2D
from yee_fdtd.core.solver3d import FDTD3D
from yee_fdtd.core.waveforms import GaussianPulse
from yee_fdtd.boundaries import CPML, ConductorWalls, cpml_coefficients
from yee_fdtd.scenarios import build_scenario

# Submodules for more specific imports
from . import boundaries, constants, io, scenarios

__version__ = "0.1.0"

__all__ = [
    # Core solver
    "FDTDSolver",
    "FDTD1D",
    "FDTD2D",
    "FDTD3D",
    "create_solver",
    "GaussianPulse",
    "Probe",
    "YeeGrid",
    "Border",
    "ApproximateUpdate",
    # Boundaries
    "CPML",
    "ConductorWalls",
    "cpml_coefficients",
    # Scenarios
    "build_scenario",
    # Submodules
    "boundaries",
    "constants",
    "io",
    "scenarios",
]
