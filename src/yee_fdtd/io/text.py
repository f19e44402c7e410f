"""Plain-text field export.

One cell per line: the physical coordinates of the cell (``i * dx``,
``j * dy``, ``k * dz``) followed by the value, space separated, in
``%e`` format. Cells are written in row-major order.

Example:
    >>> write_dump(solver, "gridData.dat", "ez")
    >>> data = load_dump("gridData.dat")
    >>> x, y, ez = data.T
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from yee_fdtd.core.solver import FDTDSolver

DUMPABLE_QUANTITIES: dict[str, str] = {
    "ex": "Electric field X directed components",
    "ey": "Electric field Y directed components",
    "ez": "Electric field Z directed components",
    "hx": "Magnetic field X directed components",
    "hy": "Magnetic field Y directed components",
    "hz": "Magnetic field Z directed components",
    "permittivity": "Multiplicative inverse of the permittivity",
    "permeability": "Multiplicative inverse of the permeability",
}


def dump_table(solver: FDTDSolver, quantity: str) -> NDArray[np.float64]:
    """Build the (cells, dimensions + 1) table written by ``write_dump``.

    Raises:
        ValueError: If the quantity is not defined for the solver
    """
    values = solver.get_field(quantity)
    axes = [solver.grid.coordinates(a) for a in range(solver.dimensions)]
    coords = np.meshgrid(*axes, indexing="ij")
    columns = [c.reshape(-1) for c in coords]
    columns.append(np.asarray(values, dtype=np.float64).reshape(-1))
    return np.column_stack(columns)


def write_dump(solver: FDTDSolver, path: str | Path, quantity: str = "ez") -> None:
    """Write one quantity of the solver to a text file.

    Args:
        solver: Solver to export
        path: Output file path
        quantity: One of DUMPABLE_QUANTITIES defined for the dimensionality

    Raises:
        ValueError: If the quantity is not defined for the solver
        OSError: If the file cannot be opened for writing
    """
    table = dump_table(solver, quantity)
    with open(path, "w") as f:
        np.savetxt(f, table, fmt="%e", delimiter=" ")


def load_dump(path: str | Path) -> NDArray[np.float64]:
    """Read a dump file back as a 2D array (one row per cell)."""
    return np.loadtxt(path, ndmin=2)
