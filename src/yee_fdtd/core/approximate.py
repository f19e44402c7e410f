"""Experimental approximate field updates for the 2D solver.

These modes deliberately perturb the numerical result to study how the
scheme tolerates skipped or approximated cell updates. They are never
enabled implicitly: an ``ApproximateUpdate`` must be passed to the solver
or to ``run``/``step``.

Modes:
    random_skip: Each interior cell keeps its previous value with
        probability ``fraction``. Cells within ``cpml_thickness + 1`` of a
        wall are always updated.
    sorted_skip: After the update, the ``ceil(count * fraction)`` cells with
        the smallest squared change are reverted to their previous value.
    interpolate: After the update, each interior cell is replaced with
        probability ``fraction`` by the mean of its four neighbours. The
        means are taken from the freshly updated array (Jacobi style).

Example:
    >>> approx = ApproximateUpdate("random_skip", fraction=0.1, seed=42)
    >>> solver.run(iterations=100, approximate=approx)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal

import numpy as np
from numpy.typing import NDArray

ApproximateMode = Literal["random_skip", "sorted_skip", "interpolate"]

APPROXIMATE_MODES: tuple[str, ...] = ("random_skip", "sorted_skip", "interpolate")


@dataclass
class ApproximateUpdate:
    """Configuration and random state for an approximate update mode.

    Args:
        mode: One of "random_skip", "sorted_skip", "interpolate"
        fraction: Probability (random modes) or share of cells (sorted mode)
            in [0, 1]
        seed: Seed for numpy.random.default_rng (None for fresh entropy)
    """

    mode: ApproximateMode
    fraction: float
    seed: int | None = None
    _rng: np.random.Generator = field(init=False, repr=False)

    def __post_init__(self):
        if self.mode not in APPROXIMATE_MODES:
            raise ValueError(
                f"Unknown approximate mode '{self.mode}'. "
                f"Valid modes: {', '.join(APPROXIMATE_MODES)}"
            )
        if not 0.0 <= self.fraction <= 1.0:
            raise ValueError(f"fraction must be in [0, 1], got {self.fraction}")
        self._rng = np.random.default_rng(self.seed)

    def reseed(self, seed: int | None = None) -> None:
        """Restart the random stream (uses the configured seed by default)."""
        self._rng = np.random.default_rng(self.seed if seed is None else seed)

    def apply(
        self,
        array: NDArray[np.floating],
        previous: NDArray[np.floating],
        region: tuple[slice, slice],
        cpml_thickness: int,
    ) -> None:
        """Post-process one freshly updated 2D component in place.

        Args:
            array: Full component array after the ordinary update
            previous: Copy of ``array[region]`` taken before the update
            region: Slices of the ordinary update region
            cpml_thickness: Width of the band near the walls left untouched
                by the random modes
        """
        if self.mode == "random_skip":
            self._random_skip(array, previous, region, cpml_thickness)
        elif self.mode == "sorted_skip":
            self._sorted_skip(array, previous, region)
        else:
            self._interpolate(array, cpml_thickness)

    def _random_skip(self, array, previous, region, thickness) -> None:
        nx, ny = array.shape
        # Strict bounds: T + 1 < i < n - T - 1
        lo_i, hi_i = thickness + 2, nx - thickness - 1
        lo_j, hi_j = thickness + 2, ny - thickness - 1
        if lo_i >= hi_i or lo_j >= hi_j:
            return
        skip = self._rng.random((hi_i - lo_i, hi_j - lo_j)) < self.fraction
        ri, rj = region
        old = previous[lo_i - ri.start : hi_i - ri.start, lo_j - rj.start : hi_j - rj.start]
        block = array[lo_i:hi_i, lo_j:hi_j]
        block[skip] = old[skip]

    def _sorted_skip(self, array, previous, region) -> None:
        updated = array[region]
        error = (previous.astype(np.float64) - updated) ** 2
        count = math.ceil(error.size * self.fraction)
        if count == 0:
            return
        order = np.argsort(error, axis=None, kind="stable")[:count]
        flat = updated.reshape(-1)
        flat[order] = previous.reshape(-1)[order]
        array[region] = flat.reshape(updated.shape)

    def _interpolate(self, array, thickness) -> None:
        nx, ny = array.shape
        lo_i, hi_i = thickness + 1, nx - thickness - 1
        lo_j, hi_j = thickness + 1, ny - thickness - 1
        if lo_i >= hi_i or lo_j >= hi_j:
            return
        mean = (
            array[lo_i - 1 : hi_i - 1, lo_j:hi_j]
            + array[lo_i + 1 : hi_i + 1, lo_j:hi_j]
            + array[lo_i:hi_i, lo_j - 1 : hi_j - 1]
            + array[lo_i:hi_i, lo_j + 1 : hi_j + 1]
        ) / 4.0
        replace = self._rng.random(mean.shape) < self.fraction
        block = array[lo_i:hi_i, lo_j:hi_j]
        block[replace] = mean[replace]
