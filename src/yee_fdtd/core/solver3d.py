"""Three-dimensional Yee solver (Ex, Ey, Ez, Hx, Hy, Hz).

Arrays are indexed [x][y][z]. Faces: ``bottom`` (x = 0), ``top``
(x = max), ``left`` (y = 0), ``right`` (y = max), ``front`` (z = 0),
``back`` (z = max).

Magnetic components are updated over [0, N - 1) on every axis with forward
differences of E, electric components over [1, N) with backward
differences of H:

    hx += dt/mu * (dEy/dz - dEz/dy)     ex += dt/eps * (dHz/dy - dHy/dz)
    hy += dt/mu * (dEz/dx - dEx/dz)     ey += dt/eps * (dHx/dz - dHz/dx)
    hz += dt/mu * (dEx/dy - dEy/dx)     ez += dt/eps * (dHy/dx - dHx/dy)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .grid import CurlTerm
from .solver import FDTDSolver

if TYPE_CHECKING:
    from .approximate import ApproximateUpdate

_H = (slice(None, -1),) * 3
_E = (slice(1, None),) * 3


class FDTD3D(FDTDSolver):
    """3D electromagnetic FDTD solver.

    Example:
        >>> solver = FDTD3D(domain_size=(2e-6, 2e-6, 2e-6), wavelength=450e-9)
        >>> solver.initialize_medium()
        >>> solver.add_source(GaussianPulse(10 * solver.dt, 5 * solver.dt, 1e-2),
        ...                   (1e-6, 1e-6, 1e-6), kind="M")
        >>> solver.run(iterations=100)
    """

    DIMENSIONS = 3
    ELECTRIC_COMPONENTS = ("ex", "ey", "ez")
    MAGNETIC_COMPONENTS = ("hx", "hy", "hz")
    MAGNETIC_TERMS = (
        CurlTerm("hx", "ey", 2, 1.0),
        CurlTerm("hx", "ez", 1, -1.0),
        CurlTerm("hy", "ez", 0, 1.0),
        CurlTerm("hy", "ex", 2, -1.0),
        CurlTerm("hz", "ex", 1, 1.0),
        CurlTerm("hz", "ey", 0, -1.0),
    )
    ELECTRIC_TERMS = (
        CurlTerm("ex", "hz", 1, 1.0),
        CurlTerm("ex", "hy", 2, -1.0),
        CurlTerm("ey", "hx", 2, 1.0),
        CurlTerm("ey", "hz", 0, -1.0),
        CurlTerm("ez", "hy", 0, 1.0),
        CurlTerm("ez", "hx", 1, -1.0),
    )

    def _update_magnetic(self, approximate: ApproximateUpdate | None) -> None:
        coeff = self.dt / self.grid.dx
        f = self.fields
        ex, ey, ez = f["ex"], f["ey"], f["ez"]
        mu_inv = coeff * self.permeability_inv[_H]

        f["hx"][_H] += mu_inv * (
            (ey[:-1, :-1, 1:] - ey[_H]) - (ez[:-1, 1:, :-1] - ez[_H])
        )
        f["hy"][_H] += mu_inv * (
            (ez[1:, :-1, :-1] - ez[_H]) - (ex[:-1, :-1, 1:] - ex[_H])
        )
        f["hz"][_H] += mu_inv * (
            (ex[:-1, 1:, :-1] - ex[_H]) - (ey[1:, :-1, :-1] - ey[_H])
        )

    def _update_electric(self, approximate: ApproximateUpdate | None) -> None:
        coeff = self.dt / self.grid.dx
        f = self.fields
        hx, hy, hz = f["hx"], f["hy"], f["hz"]
        eps_inv = coeff * self.permittivity_inv[_E]

        f["ex"][_E] += eps_inv * (
            (hz[_E] - hz[1:, :-1, 1:]) - (hy[_E] - hy[1:, 1:, :-1])
        )
        f["ey"][_E] += eps_inv * (
            (hx[_E] - hx[1:, 1:, :-1]) - (hz[_E] - hz[:-1, 1:, 1:])
        )
        f["ez"][_E] += eps_inv * (
            (hy[_E] - hy[:-1, 1:, 1:]) - (hx[_E] - hx[1:, :-1, 1:])
        )
