"""Two-dimensional Yee solver, TM polarisation (Ez, Hx, Hy).

Arrays are indexed [x][y]. Faces: ``south`` (x = 0), ``north`` (x = max),
``west`` (y = 0), ``east`` (y = max).

Updates (i, j over the interior stencil):
    hx[i, j] += dt / (mu * dy) * (ez[i, j] - ez[i, j + 1])
    hy[i, j] += dt / (mu * dx) * (ez[i + 1, j] - ez[i, j])
    ez[i, j] += dt / eps * ((hy[i, j] - hy[i - 1, j]) / dx
                            - (hx[i, j] - hx[i, j - 1]) / dy)

The optional ``ApproximateUpdate`` post-processes each component right
after its ordinary update; see ``yee_fdtd.core.approximate``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .grid import CurlTerm
from .solver import FDTDSolver

if TYPE_CHECKING:
    from .approximate import ApproximateUpdate


class FDTD2D(FDTDSolver):
    """2D electromagnetic FDTD solver.

    Accepts the FDTDSolver arguments, including a default ``approximate``
    update applied on every step that does not pass its own.

    Example:
        >>> from yee_fdtd import ApproximateUpdate
        >>> solver = FDTD2D(domain_size=(1e-5, 1e-5), cpml_thickness=20,
        ...                 borders={"south": Border.PEC | Border.CPML})
        >>> solver.run(iterations=10, approximate=ApproximateUpdate("interpolate", 0.05, seed=1))
    """

    DIMENSIONS = 2
    ELECTRIC_COMPONENTS = ("ez",)
    MAGNETIC_COMPONENTS = ("hx", "hy")
    MAGNETIC_TERMS = (
        CurlTerm("hx", "ez", 1, -1.0),
        CurlTerm("hy", "ez", 0, 1.0),
    )
    ELECTRIC_TERMS = (
        CurlTerm("ez", "hy", 0, 1.0),
        CurlTerm("ez", "hx", 1, -1.0),
    )
    SUPPORTS_APPROXIMATE = True

    def _update_magnetic(self, approximate: ApproximateUpdate | None) -> None:
        nx, ny = self.shape
        coeff = self.dt / self.grid.dx
        ez = self.fields["ez"]
        region = (slice(0, nx - 1), slice(0, ny - 1))
        mu_inv = self.permeability_inv[region]

        hx = self.fields["hx"]
        previous = hx[region].copy() if approximate is not None else None
        hx[region] += coeff * mu_inv * (ez[:-1, :-1] - ez[:-1, 1:])
        if approximate is not None:
            approximate.apply(hx, previous, region, self.grid.cpml_thickness)

        hy = self.fields["hy"]
        previous = hy[region].copy() if approximate is not None else None
        hy[region] += coeff * mu_inv * (ez[1:, :-1] - ez[:-1, :-1])
        if approximate is not None:
            approximate.apply(hy, previous, region, self.grid.cpml_thickness)

    def _update_electric(self, approximate: ApproximateUpdate | None) -> None:
        nx, ny = self.shape
        coeff = self.dt / self.grid.dx
        hx, hy, ez = self.fields["hx"], self.fields["hy"], self.fields["ez"]
        region = (slice(1, nx), slice(1, ny))

        previous = ez[region].copy() if approximate is not None else None
        ez[region] += (
            coeff
            * self.permittivity_inv[region]
            * ((hy[1:, 1:] - hy[:-1, 1:]) - (hx[1:, 1:] - hx[1:, :-1]))
        )
        if approximate is not None:
            approximate.apply(ez, previous, region, self.grid.cpml_thickness)
