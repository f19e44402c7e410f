"""Perfect electric and magnetic conductor walls.

A face flagged ``Border.PEC`` has its tangential electric components zeroed
on the outermost layer after every electric half-step. A face flagged
``Border.PMC`` has its tangential magnetic components zeroed after every
magnetic half-step. Because magnetic components sit half a cell inside the
last electric layer, the far (high index) PMC wall clears the last two
layers in 2D and 3D.

Enforcement runs after the ordinary update and the CPML correction of the
same half-step, so a face flagged ``PEC | CPML`` absorbs and then reflects
whatever reaches the wall.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from yee_fdtd.core.grid import Border

if TYPE_CHECKING:
    from yee_fdtd.core.solver import FDTDSolver

_COMPONENT_AXIS = {"x": 0, "y": 1, "z": 2}


def tangential(components: tuple[str, ...], axis: int) -> list[str]:
    """Field components tangential to a face whose normal is ``axis``."""
    return [name for name in components if _COMPONENT_AXIS[name[1]] != axis]


class ConductorWalls:
    """Border enforcer for PEC and PMC faces.

    Example:
        >>> walls = ConductorWalls()
        >>> walls.initialize(solver)
        >>> walls.apply_electric(solver)
    """

    def __init__(self):
        self._electric: list[tuple[str, tuple]] = []
        self._magnetic: list[tuple[str, tuple]] = []

    def initialize(self, solver: FDTDSolver) -> None:
        """Precompute the (component, index) pairs to clear on each half-step."""
        grid = solver.grid
        ndim = grid.dimensions
        self._electric = []
        self._magnetic = []

        for _, axis, side, flags in grid.faces():
            n = grid.shape[axis]
            if flags & Border.PEC:
                layer = 0 if side == 0 else n - 1
                for name in tangential(solver.ELECTRIC_COMPONENTS, axis):
                    self._electric.append((name, self._plane(ndim, axis, layer)))
            if flags & Border.PMC:
                if side == 0:
                    layers = [0]
                elif ndim == 1:
                    layers = [n - 1]
                else:
                    layers = [n - 2, n - 1]
                for name in tangential(solver.MAGNETIC_COMPONENTS, axis):
                    for layer in layers:
                        self._magnetic.append((name, self._plane(ndim, axis, layer)))

    @staticmethod
    def _plane(ndim: int, axis: int, layer: int) -> tuple:
        return tuple(layer if a == axis else slice(None) for a in range(ndim))

    def apply_magnetic(self, solver: FDTDSolver) -> None:
        """Zero tangential magnetic components on PMC faces."""
        for name, index in self._magnetic:
            solver.fields[name][index] = 0

    def apply_electric(self, solver: FDTDSolver) -> None:
        """Zero tangential electric components on PEC faces."""
        for name, index in self._electric:
            solver.fields[name][index] = 0

    def reset(self) -> None:
        """Reset boundary state (no-op, walls carry no state)."""
        pass
