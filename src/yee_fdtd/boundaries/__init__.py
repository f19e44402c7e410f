"""Boundary conditions for Yee FDTD simulations."""

from yee_fdtd.boundaries.conductor import ConductorWalls
from yee_fdtd.boundaries.cpml import CPML, CPMLProfile, cpml_coefficients

__all__ = [
    "CPML",
    "CPMLProfile",
    "ConductorWalls",
    "cpml_coefficients",
]
