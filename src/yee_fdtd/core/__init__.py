"""Core FDTD solver components."""

from yee_fdtd.core.grid import FACES, Border, CurlTerm, YeeGrid
from yee_fdtd.core.approximate import ApproximateUpdate
from yee_fdtd.core.solver import FDTDSolver, Probe, Source, create_solver
from yee_fdtd.core.solver1d import FDTD1D
from yee_fdtd.core.solver2d import FDTD2D
from yee_fdtd.core.solver3d import FDTD3D
from yee_fdtd.core.waveforms import GaussianPulse

__all__ = [
    "FDTDSolver",
    "FDTD1D",
    "FDTD2D",
    "FDTD3D",
    "create_solver",
    "GaussianPulse",
    "Probe",
    "Source",
    "ApproximateUpdate",
    "YeeGrid",
    "Border",
    "CurlTerm",
    "FACES",
]
