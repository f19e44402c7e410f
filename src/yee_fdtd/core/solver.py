"""Electromagnetic Finite-Difference Time-Domain (FDTD) solver base.

This module implements the machinery shared by the 1D, 2D and 3D Yee-scheme
solvers: field and material storage, the medium initializer, J and M source
injection, probes, the leapfrog time-stepping driver, energy diagnostics and
field export. The dimension-specific stencils live in ``solver1d``,
``solver2d`` and ``solver3d``.

Physics:
    ∂H/∂t = -(1/μ) ∇ × E
    ∂E/∂t =  (1/ε) ∇ × H

Each iteration runs, in this order:
    H update -> M sources -> H CPML -> H borders ->
    E update -> J sources -> E CPML -> E borders -> time += dt

Stability: Sc = c·dt/dx ≤ 1/√D (D spatial dimensions)

Example:
    >>> from yee_fdtd import FDTD2D, Border, GaussianPulse
    >>> solver = FDTD2D(
    ...     domain_size=(1e-5, 1e-5),
    ...     cpml_thickness=20,
    ...     borders={face: Border.PEC | Border.CPML for face in
    ...              ("north", "south", "east", "west")},
    ... )
    >>> solver.initialize_medium()  # vacuum
    >>> dt = solver.dt
    >>> solver.add_source(GaussianPulse(30 * dt, 15 * dt, 1.0), (5e-6, 5e-6))
    >>> solver.run(iterations=400)
    >>> solver.dump("gridData.dat", "ez")

Energy Tracking Example:
    >>> solver.run(iterations=500, track_energy=True)
    >>> report = solver.energy_report()
    >>> print(f"Energy changed by {report['energy_change_percent']:.2f}%")
"""

from __future__ import annotations

import math
import threading
import time as time_module
import warnings
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Literal

import numpy as np
from numpy.typing import DTypeLike, NDArray

from yee_fdtd.boundaries import CPML, ConductorWalls
from yee_fdtd.constants import EPS0, MU0, default_courant

from .grid import AXIS_NAMES, Border, CurlTerm, YeeGrid
from .waveforms import GaussianPulse

if TYPE_CHECKING:
    from rich.console import Console

    from .approximate import ApproximateUpdate

MediumFunction = Callable[..., Any]

SourceKind = Literal["J", "M"]

MATERIAL_QUANTITIES: dict[str, str] = {
    "permittivity": "permittivity_inv",
    "permittivity_inv": "permittivity_inv",
    "permeability": "permeability_inv",
    "permeability_inv": "permeability_inv",
}


@dataclass
class Probe:
    """Field recording probe at a specific cell.

    Args:
        name: Identifier for this probe
        position: Cell index, one entry per axis
        component: Field component to record ("ez", "hy", ...)
    """

    name: str
    position: tuple[int, ...]
    component: str = "ez"
    data: list[float] = field(default_factory=list)

    def record(self, value: float) -> None:
        """Record a field sample."""
        self.data.append(value)

    def get_data(self) -> NDArray[np.floating]:
        """Get recorded data as numpy array."""
        return np.array(self.data, dtype=np.float64)

    def clear(self) -> None:
        """Clear recorded data."""
        self.data.clear()


@dataclass(frozen=True)
class Source:
    """A registered source: waveform, kind and resolved cell index."""

    pulse: GaussianPulse
    kind: SourceKind
    cell: tuple[int, ...]


def print_interval(num_iterations: int) -> int:
    """Iterations between verbose progress lines (about ten per run)."""
    if num_iterations < 10:
        return 1
    divide = 1
    while True:
        interval = math.ceil(num_iterations / divide)
        divide += 1
        if num_iterations / interval >= 10:
            return interval


class CheckpointReporter:
    """Prints roughly ten progress lines over a run.

    Each line reports percent complete, simulation time, time step, end
    time and the wall-clock duration of the preceding chunk.
    """

    def __init__(self, console: Console, num_iterations: int, dt: float, end_time: float):
        self.console = console
        self.dt = dt
        self.end_time = end_time
        self.interval = print_interval(num_iterations)
        self.increment = 100.0 / (num_iterations / self.interval) if num_iterations else 100.0
        self.percentage = self.increment
        self._chunk_start = time_module.perf_counter()

    def update(self, iteration: int, sim_time: float) -> None:
        if iteration % self.interval:
            return
        now = time_module.perf_counter()
        self.console.print(
            f"{self.percentage:.0f}% -- t={sim_time:e} dt={self.dt:e} "
            f"tend={self.end_time:e} ({self.interval} iter in "
            f"{now - self._chunk_start:.3f}s)",
            highlight=False,
        )
        self.percentage += self.increment
        self._chunk_start = now


class FDTDSolver(ABC):
    """Yee-grid electromagnetic FDTD solver, common to every dimensionality.

    Concrete variants (FDTD1D, FDTD2D, FDTD3D) declare their field
    components, their curl-term tables and implement the two half-step
    stencils. Everything else lives here.

    Args:
        domain_size: Physical size per axis in meters. A scalar is used for
            every axis (default: 1e-5).
        courant: Courant number Sc (default: 1 in 1D, 1/√3 in 2D, 1/2 in 3D)
        wavelength: Smallest resolved wavelength in meters; the spacing is
            wavelength / 20 (default: 450e-9)
        borders: Mapping face name -> Border flags (default: PEC everywhere)
        cpml_thickness: CPML thickness in cells, 0 disables CPML
        grid: Prebuilt YeeGrid. If provided, the parameters above are ignored.
        dtype: Field storage precision (default: np.float32)
        verbose: Print spacing and size at construction
        console: Rich console used for verbose output
        warn_energy_drift: Warn when energy changes significantly during a
            tracked run (default: False)
        energy_drift_threshold: Fractional threshold for the drift warning
        approximate: Default experimental approximate update applied on
            every step that does not pass its own (2D only, default: None)

    Attributes:
        fields: Mapping component name -> field array
        permittivity_inv, permeability_inv: Inverse absolute material values
        dt: Time step in seconds
        shape: Cell count per axis

    Raises:
        ValueError: On invalid grid parameters

    Warns:
        UserWarning: If the Courant number exceeds the stability bound
    """

    DIMENSIONS: ClassVar[int]
    ELECTRIC_COMPONENTS: ClassVar[tuple[str, ...]]
    MAGNETIC_COMPONENTS: ClassVar[tuple[str, ...]]
    MAGNETIC_TERMS: ClassVar[tuple[CurlTerm, ...]]
    ELECTRIC_TERMS: ClassVar[tuple[CurlTerm, ...]]
    # Sign applied to J sources when added to the electric field
    J_SOURCE_SIGN: ClassVar[float] = -1.0
    SUPPORTS_APPROXIMATE: ClassVar[bool] = False

    def __init__(
        self,
        domain_size: float | tuple[float, ...] = 1e-5,
        courant: float | None = None,
        wavelength: float = 450e-9,
        borders: dict[str, Border] | None = None,
        cpml_thickness: int = 0,
        grid: YeeGrid | None = None,
        dtype: DTypeLike = np.float32,
        verbose: bool = False,
        console: Console | None = None,
        warn_energy_drift: bool = False,
        energy_drift_threshold: float = 0.01,
        approximate: ApproximateUpdate | None = None,
    ):
        if grid is None:
            if np.isscalar(domain_size):
                domain_size = (float(domain_size),) * self.DIMENSIONS
            if courant is None:
                courant = default_courant(self.DIMENSIONS)
            grid = YeeGrid(
                domain_size=tuple(domain_size),
                courant=courant,
                wavelength=wavelength,
                cpml_thickness=cpml_thickness,
                borders=borders,
                warning_depth=1,
            )
        if grid.dimensions != self.DIMENSIONS:
            raise ValueError(
                f"{type(self).__name__} needs a {self.DIMENSIONS}D grid, "
                f"got {grid.dimensions}D"
            )

        self.dtype = np.dtype(dtype)
        if self.dtype.kind != "f":
            raise ValueError(f"dtype must be a floating point type, got {self.dtype}")

        self.approximate = None
        self.approximate = self._resolve_approximate(approximate)

        self._grid = grid
        self.shape = grid.shape
        self.dt = grid.dt
        self._console = console
        self._closed = False

        # Field arrays, zero-filled
        self.fields: dict[str, NDArray[np.floating]] = {}
        for name in self.ELECTRIC_COMPONENTS + self.MAGNETIC_COMPONENTS:
            self.fields[name] = np.zeros(self.shape, dtype=self.dtype)

        # Inverse material values, set once by initialize_medium()
        self.permittivity_inv = np.zeros(self.shape, dtype=self.dtype)
        self.permeability_inv = np.zeros(self.shape, dtype=self.dtype)
        self._medium_initialized = False

        # Sources and probes
        self._j_sources: list[Source] = []
        self._m_sources: list[Source] = []
        self._probes: dict[str, Probe] = {}

        # CPML must run before the conductor walls on each half-step
        self._boundaries: list = [CPML(), ConductorWalls()]
        for boundary in self._boundaries:
            boundary.initialize(self)

        # Simulation state
        self._step_count = 0
        self._time = 0.0

        # Energy tracking state
        self._warn_energy_drift = warn_energy_drift
        self._energy_drift_threshold = energy_drift_threshold
        self._energy_history: list[tuple[int, float, float]] = []
        self._track_energy = False
        self._energy_sample_interval = 1

        if verbose:
            self._print(self._describe())

    def __getattr__(self, name: str):
        # Field components are exposed as attributes (solver.ez, solver.hy, ...)
        fields = self.__dict__.get("fields")
        if fields is not None and name in fields:
            return fields[name]
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def grid(self) -> YeeGrid:
        """The grid specification used by this solver."""
        return self._grid

    @property
    def dimensions(self) -> int:
        return self.DIMENSIONS

    @property
    def time(self) -> float:
        """Current simulation time in seconds."""
        return self._time

    @property
    def time_step(self) -> float:
        """Time step in seconds (same as ``dt``)."""
        return self.dt

    @property
    def step_count(self) -> int:
        """Number of iterations completed."""
        return self._step_count

    @property
    def courant(self) -> float:
        return self._grid.courant

    @property
    def medium_initialized(self) -> bool:
        return self._medium_initialized

    @property
    def sources(self) -> list[Source]:
        """All registered sources, J first then M."""
        return self._j_sources + self._m_sources

    @property
    def cpml(self) -> CPML:
        return self._boundaries[0]

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Setup
    # =========================================================================

    def initialize_medium(
        self,
        permittivity: MediumFunction | None = None,
        permeability: MediumFunction | None = None,
        context: Any = None,
        vectorized: bool = False,
    ) -> None:
        """Fill the material arrays from relative permittivity/permeability.

        Each callback receives the physical coordinates of a cell (one
        argument per axis, ``i * dx``) followed by ``context`` and returns
        the relative value at that cell. It is called once per cell, in
        row-major order. ``None`` means vacuum (relative value 1).

        Args:
            permittivity: Relative permittivity callback
            permeability: Relative permeability callback
            context: Opaque object passed through to the callbacks
            vectorized: If True, each callback is called once with full
                coordinate arrays (``indexing="ij"``) and must return an
                array of the grid shape

        Raises:
            RuntimeError: If the medium was already initialized
        """
        self._check_open()
        if self._medium_initialized:
            raise RuntimeError("The medium has already been initialized")

        for fn, target, vacuum in (
            (permittivity, self.permittivity_inv, EPS0),
            (permeability, self.permeability_inv, MU0),
        ):
            relative = self._evaluate_medium(fn, context, vectorized)
            target[...] = 1.0 / (relative * vacuum)

        self.permittivity_inv.flags.writeable = False
        self.permeability_inv.flags.writeable = False
        self._medium_initialized = True

    def _evaluate_medium(
        self, fn: MediumFunction | None, context: Any, vectorized: bool
    ) -> NDArray[np.float64]:
        if fn is None:
            return np.ones(self.shape, dtype=np.float64)
        axes = [self._grid.coordinates(a) for a in range(self.DIMENSIONS)]
        if vectorized:
            coords = np.meshgrid(*axes, indexing="ij")
            values = np.broadcast_to(
                np.asarray(fn(*coords, context), dtype=np.float64), self.shape
            )
        else:
            values = np.empty(self.shape, dtype=np.float64)
            for index in np.ndindex(*self.shape):
                coords = [axes[a][i] for a, i in enumerate(index)]
                values[index] = fn(*coords, context)
        if np.any(values <= 0):
            raise ValueError("Relative permittivity and permeability must be positive")
        return values

    def add_source(
        self,
        source: GaussianPulse,
        position: float | tuple[float, ...] | None = None,
        kind: SourceKind = "J",
        cell: tuple[int, ...] | int | None = None,
    ) -> tuple[int, ...]:
        """Register a J (electric) or M (magnetic) source.

        The location is resolved once: either a physical ``position`` snapped
        to the grid (ceiling in 1D/3D, floor in 2D) or an explicit ``cell``
        index. J sources add ``J_SOURCE_SIGN * value`` to every electric
        component at the cell, M sources add ``value`` to every magnetic
        component.

        Args:
            source: Source waveform
            position: Physical position in meters
            kind: "J" (electric) or "M" (magnetic)
            cell: Cell index, used instead of position

        Returns:
            The resolved cell index

        Raises:
            ValueError: If the location is outside of the grid or the kind
                is unknown
        """
        self._check_open()
        if kind not in ("J", "M"):
            raise ValueError(f"Source kind must be 'J' or 'M', got '{kind}'")
        if (position is None) == (cell is None):
            raise ValueError("Provide exactly one of position or cell")

        if cell is not None:
            index = self._check_cell(cell)
        else:
            if np.isscalar(position):
                position = (float(position),)
            index = self._grid.snap(tuple(position))

        entry = Source(pulse=source, kind=kind, cell=index)
        if kind == "J":
            self._j_sources.append(entry)
        else:
            self._m_sources.append(entry)
        return index

    def add_probe(
        self, name: str, position: tuple[int, ...] | int, component: str = "ez"
    ) -> None:
        """Add a recording probe at a cell index.

        Args:
            name: Unique probe identifier
            position: Cell index
            component: Field component to record

        Raises:
            ValueError: On a duplicate name, unknown component or a position
                outside of the grid
        """
        if name in self._probes:
            raise ValueError(f"Probe '{name}' already exists")
        if component not in self.fields:
            raise ValueError(
                f"Component '{component}' is not defined for a {self.DIMENSIONS}D grid"
            )
        self._probes[name] = Probe(name, self._check_cell(position), component)

    def _check_cell(self, cell: tuple[int, ...] | int) -> tuple[int, ...]:
        if isinstance(cell, (int, np.integer)):
            cell = (int(cell),)
        cell = tuple(int(c) for c in cell)
        if len(cell) != self.DIMENSIONS:
            raise ValueError(f"Cell {cell} needs {self.DIMENSIONS} indices")
        for axis, (i, n) in enumerate(zip(cell, self.shape)):
            if not 0 <= i < n:
                raise ValueError(
                    f"Cell index {i} on axis {AXIS_NAMES[axis]} outside of [0, {n - 1}]"
                )
        return cell

    # =========================================================================
    # Time stepping
    # =========================================================================

    @abstractmethod
    def _update_magnetic(self, approximate: ApproximateUpdate | None) -> None:
        """Ordinary H half-step over the interior stencil."""

    @abstractmethod
    def _update_electric(self, approximate: ApproximateUpdate | None) -> None:
        """Ordinary E half-step over the interior stencil."""

    def _resolve_approximate(
        self, approximate: ApproximateUpdate | None
    ) -> ApproximateUpdate | None:
        if approximate is None:
            approximate = self.approximate
        if approximate is not None and not self.SUPPORTS_APPROXIMATE:
            raise ValueError(
                f"Approximate updates are not available for {self.DIMENSIONS}D grids"
            )
        return approximate

    def step(self, approximate: ApproximateUpdate | None = None) -> None:
        """Advance the simulation by one leapfrog iteration.

        Args:
            approximate: Experimental approximate update (2D only)
        """
        self._check_open()
        approximate = self._resolve_approximate(approximate)

        self._update_magnetic(approximate)
        self._inject(self._m_sources, self.MAGNETIC_COMPONENTS, 1.0)
        for boundary in self._boundaries:
            boundary.apply_magnetic(self)

        self._update_electric(approximate)
        self._inject(self._j_sources, self.ELECTRIC_COMPONENTS, self.J_SOURCE_SIGN)
        for boundary in self._boundaries:
            boundary.apply_electric(self)

        self._record_probes()

        self._step_count += 1
        self._time += self.dt

        if self._track_energy and self._step_count % self._energy_sample_interval == 0:
            self._energy_history.append((self._step_count, self._time, self.compute_energy()))

    def _inject(self, sources: list[Source], components: tuple[str, ...], sign: float) -> None:
        for src in sources:
            value = sign * src.pulse.value(self._time)
            for name in components:
                self.fields[name][src.cell] += value

    def _record_probes(self) -> None:
        for probe in self._probes.values():
            probe.record(float(self.fields[probe.component][probe.position]))

    def run(
        self,
        end_time: float | None = None,
        iterations: int | None = None,
        verbose: bool = False,
        progress: bool = False,
        stop_event: threading.Event | None = None,
        callback: Callable[[int], None] | None = None,
        track_energy: bool = False,
        energy_sample_interval: int = 1,
        output_file: str | Path | None = None,
        script_content: str | None = None,
        snapshot_interval: int | None = None,
        approximate: ApproximateUpdate | None = None,
    ) -> int:
        """Advance the simulation to an end time or by a number of iterations.

        With ``end_time`` (taking precedence when positive) the loop runs
        while ``time < end_time``. Otherwise exactly ``iterations`` steps are
        taken.

        Args:
            end_time: Absolute simulation time to reach, in seconds
            iterations: Number of iterations when no end time is given
            verbose: Print about ten progress checkpoints
            progress: Show a tqdm progress bar
            stop_event: Checked between iterations; the run stops once set
            callback: Called after each iteration with the 0-based step index
            track_energy: Record energy every ``energy_sample_interval`` steps
            energy_sample_interval: Energy sampling interval in steps
            output_file: Path to an HDF5 result file (optional)
            script_content: Source script stored in the HDF5 metadata
            snapshot_interval: Save field snapshots every N steps to HDF5
            approximate: Experimental approximate update (2D only)

        Returns:
            Number of iterations performed

        Raises:
            ValueError: If neither end_time nor iterations is given
        """
        self._check_open()
        approximate = self._resolve_approximate(approximate)

        if end_time is not None and end_time > 0:
            num_iterations = max(0, math.ceil((end_time - self._time) / self.dt))
            target_time = end_time

            def keep_going(done: int) -> bool:
                return self._time < target_time
        elif iterations is not None:
            if iterations < 0:
                raise ValueError(f"iterations must be non-negative, got {iterations}")
            num_iterations = int(iterations)
            target_time = self._time + num_iterations * self.dt

            def keep_going(done: int) -> bool:
                return done < num_iterations
        else:
            raise ValueError("Provide a positive end_time or a number of iterations")

        self._track_energy = track_energy
        self._energy_sample_interval = energy_sample_interval
        if track_energy and len(self._energy_history) == 0:
            self._energy_history.append((self._step_count, self._time, self.compute_energy()))

        reporter = None
        if verbose:
            self._print(f"It will take {num_iterations:.0f} iterations")
            reporter = CheckpointReporter(
                self._get_console(), num_iterations, self.dt, target_time
            )

        hdf5_writer = None
        if output_file:
            from yee_fdtd.io import HDF5ResultWriter

            hdf5_writer = HDF5ResultWriter(output_file, self, script_content)

        pbar = None
        if progress:
            from tqdm import tqdm

            pbar = tqdm(total=num_iterations, desc="FDTD simulation")

        start_time = time_module.time()
        done = 0
        try:
            while keep_going(done):
                if stop_event is not None and stop_event.is_set():
                    break
                self.step(approximate)
                done += 1

                if hdf5_writer:
                    save_snapshot = (
                        snapshot_interval is not None
                        and (self._step_count - 1) % snapshot_interval == 0
                    )
                    hdf5_writer.write_timestep(self._step_count - 1, save_snapshot)
                if callback:
                    callback(self._step_count - 1)
                if pbar is not None:
                    pbar.update(1)
                if reporter is not None:
                    reporter.update(done, self._time)

            if self._warn_energy_drift and len(self._energy_history) >= 2:
                report = self.energy_report()
                if abs(report["energy_change_percent"]) > self._energy_drift_threshold * 100:
                    warnings.warn(
                        f"Energy drift detected: {report['energy_change_percent']:.2f}% change "
                        f"(threshold: {self._energy_drift_threshold * 100:.1f}%). "
                        f"Status: {report['conservation_status']}",
                        UserWarning,
                        stacklevel=2,
                    )
        finally:
            if pbar is not None:
                pbar.close()
            if hdf5_writer:
                hdf5_writer.finalize(runtime=time_module.time() - start_time)

        return done

    # =========================================================================
    # Output
    # =========================================================================

    def get_field(self, quantity: str) -> NDArray[np.floating]:
        """Return the live array of a field component or material quantity.

        Args:
            quantity: "ex", "ey", "ez", "hx", "hy", "hz", "permittivity" or
                "permeability" (the latter two are the stored inverses)

        Raises:
            ValueError: If the quantity is not defined for this grid
        """
        self._check_open()
        key = quantity.lower()
        if key in self.fields:
            return self.fields[key]
        if key in MATERIAL_QUANTITIES:
            return getattr(self, MATERIAL_QUANTITIES[key])
        raise ValueError(
            f"Dump of \"{quantity}\" not available for {self.DIMENSIONS}D fdtd"
        )

    def dump(self, path: str | Path, quantity: str = "ez") -> None:
        """Write a quantity as plain text, one cell per line.

        Raises:
            ValueError: If the quantity is not defined for this grid
            OSError: If the file cannot be written
        """
        from yee_fdtd.io.text import write_dump

        write_dump(self, path, quantity)

    def get_probe_data(self, name: str | None = None) -> dict[str, NDArray[np.floating]]:
        """Get recorded probe data.

        Args:
            name: Specific probe name, or None for all probes

        Returns:
            Dict mapping probe names to time series
        """
        if name is not None:
            if name not in self._probes:
                raise KeyError(f"Probe '{name}' not found")
            return {name: self._probes[name].get_data()}
        return {name: probe.get_data() for name, probe in self._probes.items()}

    # =========================================================================
    # Energy diagnostics
    # =========================================================================

    def compute_energy(self) -> float:
        """Compute total electromagnetic energy in the domain.

        Energy = (1/2) * sum(ε|E|² + μ|H|²) * cell volume

        Cells whose material has not been initialized contribute nothing.

        Returns:
            Total energy in Joules (per unit length/area in 1D/2D)
        """
        volume = self._grid.spacing ** self.DIMENSIONS

        def weighted(components, inverse):
            inv = inverse.astype(np.float64)
            material = np.divide(1.0, inv, out=np.zeros_like(inv), where=inv != 0)
            return sum(
                float(np.sum(material * self.fields[name].astype(np.float64) ** 2))
                for name in components
            )

        e_energy = weighted(self.ELECTRIC_COMPONENTS, self.permittivity_inv)
        h_energy = weighted(self.MAGNETIC_COMPONENTS, self.permeability_inv)
        return 0.5 * (e_energy + h_energy) * volume

    def get_energy_history(self) -> list[tuple[int, float, float]]:
        """Get energy history recorded during simulation.

        Returns:
            List of (step, time, total_energy) tuples. Empty if tracking
            was not enabled during run().
        """
        return self._energy_history.copy()

    def energy_report(self) -> dict:
        """Generate energy conservation diagnostic report.

        Returns:
            Dict with keys:
            - initial_energy: Energy at first recorded step
            - final_energy: Energy at last recorded step
            - max_energy: Maximum energy observed
            - min_energy: Minimum energy observed
            - energy_change_percent: (final - initial) / initial * 100
            - conservation_status: "stable" | "growing" | "decaying"
            - n_samples: Number of energy samples recorded

        Raises:
            ValueError: If no energy history has been recorded
        """
        if not self._energy_history:
            raise ValueError(
                "No energy history recorded. Call run() with track_energy=True first."
            )

        energies = np.array([e for _, _, e in self._energy_history])
        initial_energy = energies[0]
        final_energy = energies[-1]

        if initial_energy == 0:
            energy_change_percent = 0.0 if final_energy == 0 else float("inf")
        else:
            energy_change_percent = (final_energy - initial_energy) / initial_energy * 100

        if abs(energy_change_percent) <= 1.0:
            status = "stable"
        elif energy_change_percent > 0:
            status = "growing"
        else:
            status = "decaying"

        return {
            "initial_energy": float(initial_energy),
            "final_energy": float(final_energy),
            "max_energy": float(np.max(energies)),
            "min_energy": float(np.min(energies)),
            "energy_change_percent": energy_change_percent,
            "conservation_status": status,
            "n_samples": len(self._energy_history),
        }

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def reset(self) -> None:
        """Reset fields, CPML state and the clock; medium and sources are kept."""
        self._check_open()
        for arr in self.fields.values():
            arr.fill(0)
        for boundary in self._boundaries:
            boundary.reset()
        self._step_count = 0
        self._time = 0.0
        self._energy_history.clear()
        self._track_energy = False
        for probe in self._probes.values():
            probe.clear()

    def close(self) -> None:
        """Release every array held by the solver at once."""
        if self._closed:
            return
        self.fields = {}
        self.permittivity_inv = None
        self.permeability_inv = None
        self._boundaries = []
        self._j_sources = []
        self._m_sources = []
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Solver has been closed")

    def _get_console(self) -> Console:
        if self._console is None:
            from rich.console import Console

            self._console = Console(stderr=True)
        return self._console

    def _print(self, message: str) -> None:
        self._get_console().print(message, highlight=False)

    def _describe(self) -> str:
        spacing = " ".join(
            f"D{AXIS_NAMES[a]} {self._grid.spacing:e}" for a in range(self.DIMENSIONS)
        )
        size = "x".join(f"{n:.0f}" for n in self.shape)
        return f"Dt {self.dt:e} {spacing} ({size})"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(shape={self.shape}, dt={self.dt:.3e}, "
            f"courant={self.courant:.4f}, cpml_thickness={self._grid.cpml_thickness})"
        )


def create_solver(dimensions: int, **kwargs) -> FDTDSolver:
    """Build the solver variant for a dimensionality.

    Args:
        dimensions: 1, 2 or 3
        **kwargs: Forwarded to the variant constructor

    Raises:
        ValueError: If the dimensionality is not 1, 2 or 3
    """
    from .solver1d import FDTD1D
    from .solver2d import FDTD2D
    from .solver3d import FDTD3D

    variants: dict[int, type[FDTDSolver]] = {1: FDTD1D, 2: FDTD2D, 3: FDTD3D}
    if dimensions not in variants:
        raise ValueError(f"dimensions must be 1, 2 or 3, got {dimensions}")
    return variants[dimensions](**kwargs)
