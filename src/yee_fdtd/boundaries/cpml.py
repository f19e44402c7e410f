"""
Convolutional Perfectly Matched Layer (CPML) absorber.

The CPML replaces each spatial derivative inside the absorbing layer by the
derivative plus an auxiliary term ``psi`` obeying the recursion

    psi_new = b[d] * psi_old + c[d] * dF/du

where ``d`` is the distance from the interior interface and ``u`` the axis
normal to the face. The field is then corrected by
``sign * dt * material_inv * psi_new`` with the sign of the matching curl
term, so a single table of curl terms drives every face in 1D, 2D and 3D.

Coefficient profile (distance d, width W = thickness - 1, order p = 4):

    kappa(d) = 1 + (kappa_max - 1) * (d / W)**p
    sigma(d) = sigma_max * (d / W)**p
    alpha(d) = alpha_max * (1 - d / W)**p
    b(d) = exp(-dt * (sigma / (eps0 * kappa) + alpha / eps0))
    c(d) = sigma / (sigma * kappa + kappa**2 * alpha) * (b - 1)

with sigma_max = 0.8 * (p + 1) / (dx * eta0) and
alpha_max = 2 * pi * eps0 * dx * 0.1. Stored arrays are ordered from the
outer wall inward: index 0 is the cell adjacent to the physical boundary.

Example:
    >>> profile = cpml_coefficients(thickness=20, dt=grid.dt, spacing=grid.dx)
    >>> profile.b[0]  # exp(-4 * Sc) at the outer wall
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from yee_fdtd.constants import CPML_KAPPA_MAX, CPML_ORDER, EPS0, ETA0
from yee_fdtd.core.grid import Border, CurlTerm

if TYPE_CHECKING:
    from yee_fdtd.core.solver import FDTDSolver


@dataclass
class CPMLProfile:
    """Precomputed CPML coefficient vectors, outer wall first.

    Attributes:
        kappa, sigma, alpha: Profile values per layer cell
        b, c: Recursion coefficients per layer cell
    """

    kappa: NDArray[np.float64]
    sigma: NDArray[np.float64]
    alpha: NDArray[np.float64]
    b: NDArray[np.float64]
    c: NDArray[np.float64]

    @property
    def thickness(self) -> int:
        return len(self.b)


def cpml_coefficients(
    thickness: int,
    dt: float,
    spacing: float,
    order: int = CPML_ORDER,
    kappa_max: float = CPML_KAPPA_MAX,
) -> CPMLProfile:
    """Compute the CPML coefficient profile.

    Args:
        thickness: Layer thickness in cells (>= 2)
        dt: Time step in seconds
        spacing: Cell spacing in meters
        order: Polynomial taper order (default: 4)
        kappa_max: Maximum coordinate stretching (only 1.0 is supported)

    Returns:
        CPMLProfile with arrays ordered from the outer wall inward

    Raises:
        ValueError: If thickness < 2 or kappa_max != 1
    """
    if thickness < 2:
        raise ValueError(f"CPML thickness must be at least 2, got {thickness}")
    if kappa_max != 1.0:
        raise ValueError("Only kappa_max = 1 is supported")

    width = thickness - 1
    sigma_max = 0.8 * (order + 1) / (spacing * ETA0)
    alpha_max = 2.0 * math.pi * EPS0 * spacing * 0.1

    # Distance from the interface, then flipped so index 0 is the outer wall
    ratio = np.arange(thickness, dtype=np.float64) / width
    kappa = 1.0 + (kappa_max - 1.0) * ratio**order
    sigma = sigma_max * ratio**order
    alpha = alpha_max * (1.0 - ratio) ** order
    b = np.exp(-dt * (sigma / (EPS0 * kappa) + alpha / EPS0))
    c = sigma / (sigma * kappa + kappa**2 * alpha) * (b - 1.0)

    return CPMLProfile(
        kappa=kappa[::-1].copy(),
        sigma=sigma[::-1].copy(),
        alpha=alpha[::-1].copy(),
        b=b[::-1].copy(),
        c=c[::-1].copy(),
    )


@dataclass
class _LayerTerm:
    """Auxiliary state for one (curl term, face) pair."""

    term: CurlTerm
    face: str
    target_index: tuple[slice, ...]
    upper_index: tuple[slice, ...]
    lower_index: tuple[slice, ...]
    b: NDArray[np.floating]
    c: NDArray[np.floating]
    psi: NDArray[np.floating] = field(repr=False)


class CPML:
    """CPML absorber acting on every face flagged ``Border.CPML``.

    Auxiliary arrays are allocated per (field component, face) pair, shaped
    like a slab of ``thickness`` cells along the face normal spanning the
    update region on the other axes. Faces without the CPML flag, or a
    thickness of 0, get no state and no correction.

    Example:
        >>> cpml = CPML()
        >>> cpml.initialize(solver)
        >>> cpml.apply_magnetic(solver)
    """

    def __init__(self):
        self.profile: CPMLProfile | None = None
        self._magnetic: list[_LayerTerm] = []
        self._electric: list[_LayerTerm] = []
        self._initialized = False

    def initialize(self, solver: FDTDSolver) -> None:
        """Compute coefficients and allocate psi arrays for the solver grid."""
        grid = solver.grid
        self._magnetic = []
        self._electric = []
        thickness = grid.cpml_thickness
        if thickness > 0:
            self.profile = cpml_coefficients(thickness, grid.dt, grid.spacing)
            for name, axis, side, flags in grid.faces():
                if not flags & Border.CPML:
                    continue
                for term in solver.MAGNETIC_TERMS:
                    if term.axis == axis:
                        self._magnetic.append(
                            self._layer_term(solver, term, name, side, magnetic=True)
                        )
                for term in solver.ELECTRIC_TERMS:
                    if term.axis == axis:
                        self._electric.append(
                            self._layer_term(solver, term, name, side, magnetic=False)
                        )
        self._initialized = True

    def _layer_term(
        self,
        solver: FDTDSolver,
        term: CurlTerm,
        face: str,
        side: int,
        magnetic: bool,
    ) -> _LayerTerm:
        shape = solver.grid.shape
        n = shape[term.axis]
        t = solver.grid.cpml_thickness

        # Magnetic fields use forward differences over [0, n-1),
        # electric fields backward differences over [1, n)
        if magnetic:
            layer = slice(0, t) if side == 0 else slice(n - t - 1, n - 1)
            upper = slice(layer.start + 1, layer.stop + 1)
            lower = layer
            other = slice(None, -1)
        else:
            layer = slice(1, t + 1) if side == 0 else slice(n - t, n)
            upper = layer
            lower = slice(layer.start - 1, layer.stop - 1)
            other = slice(1, None)

        def index(along: slice) -> tuple[slice, ...]:
            return tuple(along if a == term.axis else other for a in range(len(shape)))

        b = self.profile.b if side == 0 else self.profile.b[::-1]
        c = self.profile.c if side == 0 else self.profile.c[::-1]
        broadcast = [1] * len(shape)
        broadcast[term.axis] = t
        dtype = solver.dtype

        target_index = index(layer)
        psi = np.zeros(solver.fields[term.target][target_index].shape, dtype=dtype)
        return _LayerTerm(
            term=term,
            face=face,
            target_index=target_index,
            upper_index=index(upper),
            lower_index=index(lower),
            b=b.reshape(broadcast).astype(dtype),
            c=c.reshape(broadcast).astype(dtype),
            psi=psi,
        )

    def _apply(
        self,
        solver: FDTDSolver,
        layers: list[_LayerTerm],
        material_inv: NDArray[np.floating],
    ) -> None:
        inv_du = 1.0 / solver.grid.spacing
        dt = solver.dt
        for layer in layers:
            source = solver.fields[layer.term.source]
            diff = source[layer.upper_index] - source[layer.lower_index]
            layer.psi *= layer.b
            layer.psi += layer.c * (diff * inv_du)
            target = solver.fields[layer.term.target]
            idx = layer.target_index
            target[idx] += (layer.term.sign * dt) * material_inv[idx] * layer.psi

    def apply_magnetic(self, solver: FDTDSolver) -> None:
        """Correct magnetic components inside CPML layers."""
        if self._initialized and self._magnetic:
            self._apply(solver, self._magnetic, solver.permeability_inv)

    def apply_electric(self, solver: FDTDSolver) -> None:
        """Correct electric components inside CPML layers."""
        if self._initialized and self._electric:
            self._apply(solver, self._electric, solver.permittivity_inv)

    def psi(self, field_name: str, face: str) -> list[NDArray[np.floating]]:
        """Auxiliary arrays attached to a field component on a face."""
        return [
            layer.psi
            for layer in self._magnetic + self._electric
            if layer.term.target == field_name and layer.face == face
        ]

    def reset(self) -> None:
        """Reset auxiliary arrays to zero."""
        for layer in self._magnetic + self._electric:
            layer.psi.fill(0)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def num_arrays(self) -> int:
        """Number of allocated auxiliary arrays."""
        return len(self._magnetic) + len(self._electric)
