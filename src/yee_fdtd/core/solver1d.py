"""One-dimensional Yee solver (Ez, Hy).

Grid layout along x:
    ez[i] at node i
    hy[i] at i + 1/2, between ez[i] and ez[i + 1]

Updates:
    hy[i] += dt / (mu * dx) * (ez[i + 1] - ez[i])      for i < N - 1
    ez[i] += dt / (eps * dx) * (hy[i] - hy[i - 1])     for i >= 1
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .grid import CurlTerm
from .solver import FDTDSolver

if TYPE_CHECKING:
    from .approximate import ApproximateUpdate


class FDTD1D(FDTDSolver):
    """1D electromagnetic FDTD solver.

    Faces are ``low`` (x = 0) and ``high`` (x = max), also accepted as
    ``oneside`` and ``otherside``. J sources add their value with a
    positive sign.

    Example:
        >>> solver = FDTD1D(domain_size=1e-5, borders={"low": Border.PEC})
        >>> solver.initialize_medium(lambda x, ctx: 1.0 if x < 5e-6 else 78.4)
        >>> solver.add_source(GaussianPulse(25 * solver.dt, 3 * solver.dt, 1e-2), 0.0, kind="M")
        >>> solver.run(iterations=400)
    """

    DIMENSIONS = 1
    ELECTRIC_COMPONENTS = ("ez",)
    MAGNETIC_COMPONENTS = ("hy",)
    MAGNETIC_TERMS = (CurlTerm("hy", "ez", 0, 1.0),)
    ELECTRIC_TERMS = (CurlTerm("ez", "hy", 0, 1.0),)
    J_SOURCE_SIGN = 1.0

    def _update_magnetic(self, approximate: ApproximateUpdate | None) -> None:
        coeff = self.dt / self.grid.dx
        ez, hy = self.fields["ez"], self.fields["hy"]
        hy[:-1] += coeff * self.permeability_inv[:-1] * (ez[1:] - ez[:-1])

    def _update_electric(self, approximate: ApproximateUpdate | None) -> None:
        coeff = self.dt / self.grid.dx
        ez, hy = self.fields["ez"], self.fields["hy"]
        ez[1:] += coeff * self.permittivity_inv[1:] * (hy[1:] - hy[:-1])
