"""
Grid specification for Yee-scheme FDTD simulation.

This module describes the computational domain shared by the 1D, 2D and 3D
solvers: spacing derived from the smallest resolved wavelength, the time step
derived from the Courant number, cell counts per axis, and the border
condition attached to each face of the domain.

Classes:
    Border: Flag set describing what happens at a domain face
    YeeGrid: Uniform staggered grid specification

Example:
    >>> from yee_fdtd.core.grid import Border, YeeGrid
    >>> grid = YeeGrid(
    ...     domain_size=(1e-5, 1e-5),
    ...     courant=0.5,
    ...     wavelength=450e-9,
    ...     cpml_thickness=20,
    ...     borders={"south": Border.PEC | Border.CPML},
    ... )
    >>> grid.shape
    (444, 444)

Rounding:
    Cell counts are derived from domain_size / spacing. One and three
    dimensional grids round up, two dimensional grids round down. Both agree
    whenever the domain is an exact multiple of the spacing.
"""

from __future__ import annotations

import enum
import math
import warnings
from collections.abc import Mapping
from dataclasses import InitVar, dataclass

import numpy as np
from numpy.typing import NDArray

from yee_fdtd.constants import C0, CELLS_PER_WAVELENGTH, stability_limit


class Border(enum.IntFlag):
    """Condition applied at one face of the domain.

    Flags combine: ``Border.PEC | Border.CPML`` absorbs inside the layer and
    then forces the tangential electric field to zero on the outer wall.
    """

    NONE = 0
    PEC = 1
    PMC = 2
    CPML = 4


# Face name -> (axis, side) with side 0 at index 0 and side 1 at the last index.
# 2D arrays are indexed [x][y], 3D arrays [x][y][z].
FACES: dict[int, dict[str, tuple[int, int]]] = {
    1: {"low": (0, 0), "high": (0, 1)},
    2: {"south": (0, 0), "north": (0, 1), "west": (1, 0), "east": (1, 1)},
    3: {
        "bottom": (0, 0),
        "top": (0, 1),
        "left": (1, 0),
        "right": (1, 1),
        "front": (2, 0),
        "back": (2, 1),
    },
}

FACE_ALIASES: dict[str, str] = {"oneside": "low", "otherside": "high"}

AXIS_NAMES = ("x", "y", "z")


def resolve_face(dimensions: int, name: str) -> str:
    """Return the canonical face name, raising ValueError if unknown."""
    canonical = FACE_ALIASES.get(name, name) if dimensions == 1 else name
    if canonical not in FACES[dimensions]:
        raise ValueError(
            f"Unknown border face '{name}' for a {dimensions}D grid. "
            f"Valid faces: {', '.join(FACES[dimensions])}"
        )
    return canonical


@dataclass
class YeeGrid:
    """Uniform Yee grid specification.

    Args:
        domain_size: Physical size of the domain per axis in meters. Its
            length selects the dimensionality (1, 2 or 3).
        courant: Courant number Sc. dt = dx * Sc / c.
        wavelength: Smallest wavelength to resolve in meters. The spacing
            is wavelength / 20 on every axis.
        cpml_thickness: CPML layer thickness in cells (0 disables CPML).
        borders: Mapping of face name to Border flags. Faces left out
            default to Border.PEC.
        warning_depth: Wrapper frames between the user call and YeeGrid(),
            so the stability warning points at the user call.

    Attributes:
        dimensions: Number of spatial dimensions
        dx, dy, dz: Cell spacing in meters (equal on all axes)
        dt: Time step in seconds
        shape: Cell count per axis

    Raises:
        ValueError: On non-positive sizes, an unknown face name, a CPML
            thickness of exactly 1, or an axis too small for its CPML layers.

    Warns:
        UserWarning: If the Courant number exceeds 1/sqrt(dimensions).
    """

    domain_size: tuple[float, ...]
    courant: float
    wavelength: float
    cpml_thickness: int = 0
    borders: Mapping[str, Border] | None = None
    # Frames between the user call and YeeGrid(), for the stability warning
    warning_depth: InitVar[int] = 0

    def __post_init__(self, warning_depth: int):
        self.domain_size = tuple(float(s) for s in self.domain_size)
        if len(self.domain_size) not in (1, 2, 3):
            raise ValueError(
                f"domain_size must have 1, 2 or 3 entries, got {len(self.domain_size)}"
            )
        if any(s <= 0 for s in self.domain_size):
            raise ValueError(f"Domain size must be positive, got {self.domain_size}")
        if self.wavelength <= 0:
            raise ValueError(f"Wavelength must be positive, got {self.wavelength}")
        if self.courant <= 0:
            raise ValueError(f"Courant number must be positive, got {self.courant}")
        if self.cpml_thickness < 0:
            raise ValueError(
                f"CPML thickness must be non-negative, got {self.cpml_thickness}"
            )
        if self.cpml_thickness == 1:
            # The taper is normalised by (thickness - 1)
            raise ValueError("CPML thickness of 1 cell is not supported, use 0 or >= 2")

        self.spacing = self.wavelength / CELLS_PER_WAVELENGTH
        self.dt = self.spacing * self.courant / C0

        round_cells = math.floor if self.dimensions == 2 else math.ceil
        self.shape = tuple(int(round_cells(s / self.spacing)) for s in self.domain_size)

        self._borders = {name: Border.PEC for name in FACES[self.dimensions]}
        for name, flags in (self.borders or {}).items():
            self._borders[resolve_face(self.dimensions, name)] = Border(flags)

        self._validate_shape()

        limit = stability_limit(self.dimensions)
        if self.courant > limit:
            warnings.warn(
                "The value of Sc is too high, the simulation may be unstable. "
                f"Please use a value lesser or equal to {limit:.5f}",
                UserWarning,
                stacklevel=3 + warning_depth,
            )

    def _validate_shape(self) -> None:
        for axis, n in enumerate(self.shape):
            if n < 2:
                raise ValueError(
                    f"Axis {AXIS_NAMES[axis]} has {n} cells, at least 2 are required"
                )
            if self.cpml_thickness > 0 and self.axis_has_cpml(axis):
                needed = 2 * self.cpml_thickness + 1
                if n < needed:
                    raise ValueError(
                        f"Axis {AXIS_NAMES[axis]} has {n} cells but CPML thickness "
                        f"{self.cpml_thickness} requires at least {needed}"
                    )

    @property
    def dimensions(self) -> int:
        """Number of spatial dimensions."""
        return len(self.domain_size)

    @property
    def dx(self) -> float:
        return self.spacing

    @property
    def dy(self) -> float:
        return self.spacing

    @property
    def dz(self) -> float:
        return self.spacing

    @property
    def num_cells(self) -> int:
        """Total number of cells."""
        return int(np.prod(self.shape))

    @property
    def stable(self) -> bool:
        """Whether the Courant number is within the stability bound."""
        return self.courant <= stability_limit(self.dimensions)

    @property
    def face_flags(self) -> dict[str, Border]:
        """Resolved border flags for every face."""
        return dict(self._borders)

    def border(self, face: str) -> Border:
        """Flags of a single face (aliases accepted)."""
        return self._borders[resolve_face(self.dimensions, face)]

    def faces(self) -> list[tuple[str, int, int, Border]]:
        """List of (name, axis, side, flags) for every face."""
        return [
            (name, axis, side, self._borders[name])
            for name, (axis, side) in FACES[self.dimensions].items()
        ]

    def axis_has_cpml(self, axis: int) -> bool:
        return any(
            flags & Border.CPML for _, a, _, flags in self.faces() if a == axis
        )

    def coordinates(self, axis: int) -> NDArray[np.float64]:
        """Physical coordinate of each cell index along an axis (i * spacing)."""
        return np.arange(self.shape[axis], dtype=np.float64) * self.spacing

    def physical_extent(self) -> tuple[float, ...]:
        """Size actually covered by the cells, per axis."""
        return tuple(n * self.spacing for n in self.shape)

    def snap(self, position: tuple[float, ...]) -> tuple[int, ...]:
        """Convert a physical position to a cell index.

        Args:
            position: Physical coordinates in meters, one per axis

        Returns:
            Cell index tuple

        Raises:
            ValueError: If the position has the wrong length or falls outside
                the grid.
        """
        if len(position) != self.dimensions:
            raise ValueError(
                f"Position {position} has {len(position)} coordinates, "
                f"expected {self.dimensions}"
            )
        round_index = math.floor if self.dimensions == 2 else math.ceil
        index = []
        for axis, p in enumerate(position):
            i = int(round_index(p / self.spacing))
            if p < 0 or i >= self.shape[axis]:
                raise ValueError(
                    f"Position {p:e} on axis {AXIS_NAMES[axis]} maps to cell {i}, "
                    f"outside of [0, {self.shape[axis] - 1}]"
                )
            index.append(i)
        return tuple(index)


@dataclass(frozen=True)
class CurlTerm:
    """One spatial derivative of the discrete curl operator.

    ``target`` is incremented by ``sign * d(source)/d(axis)`` scaled by
    ``dt`` and the inverse material coefficient of the target field.
    Magnetic targets use forward differences, electric targets backward
    differences.
    """

    target: str
    source: str
    axis: int
    sign: float
