"""Progress display for FDTD runs.

Provides a rich terminal UI for the ``--progress`` mode of ``yee-fdtd``:
- Progress bar with percentage, elapsed time and ETA
- Computational throughput (Mcells/s)
- Memory usage
"""

import time
from typing import TYPE_CHECKING

import psutil
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from yee_fdtd.core.grid import AXIS_NAMES, Border

if TYPE_CHECKING:
    from yee_fdtd.core.solver import FDTDSolver


def format_time(seconds: float) -> str:
    """Format time duration for display.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like "1m 23s" or "2h 15m"
    """
    if seconds < 60:
        return f"{seconds:.0f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs:02d}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes:02d}m"


def format_bytes(num_bytes: float) -> str:
    """Format byte count for display, e.g. "1.5 GB"."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:.1f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} PB"


class SimulationProgress:
    """Live progress bar for a solver run.

    Example:
        >>> progress = SimulationProgress(console, solver, num_steps)
        >>> solver.run(iterations=num_steps, callback=progress.update)
        >>> progress.finish()
    """

    def __init__(
        self, console: Console, solver: "FDTDSolver", num_steps: int, update_interval: float = 0.1
    ):
        """Initialize progress display.

        Args:
            console: Rich console instance
            solver: FDTD solver instance
            num_steps: Total number of iterations
            update_interval: Minimum time between updates (seconds)
        """
        self.console = console
        self.num_cells = solver.grid.num_cells
        self.num_steps = num_steps
        self.update_interval = update_interval

        self.start_time = time.time()
        self.last_update = 0.0
        self.peak_memory = 0
        self._finished = False

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("•"),
            TimeRemainingColumn(),
            TextColumn("{task.fields[stats]}", style="dim"),
            console=console,
        )
        self.task = self.progress.add_task("Computing", total=num_steps, stats="")
        self.progress.start()

    def update(self, step: int):
        """Solver callback, rate limited to ``update_interval``.

        Args:
            step: Index of the iteration just completed (0-indexed)
        """
        current_time = time.time()
        if current_time - self.last_update < self.update_interval and step + 1 < self.num_steps:
            return

        elapsed = current_time - self.start_time
        steps_completed = step + 1
        if elapsed > 0:
            throughput_mcells = steps_completed * self.num_cells / elapsed / 1e6
        else:
            throughput_mcells = 0.0

        memory = psutil.Process().memory_info().rss
        self.peak_memory = max(self.peak_memory, memory)

        stats = (
            f"{throughput_mcells:.1f} Mcells/s | {format_bytes(memory)} "
            f"(peak {format_bytes(self.peak_memory)})"
        )
        self.progress.update(self.task, completed=steps_completed, stats=stats)
        self.last_update = current_time

    def finish(self):
        """Stop the live display (safe to call more than once)."""
        if self._finished:
            return
        self.progress.stop()
        self._finished = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finish()


def print_simulation_info(
    console: Console, solver: "FDTDSolver", scenario: str, num_steps: int, outputs: list[str]
):
    """Print simulation parameters before running.

    Args:
        console: Rich console instance
        solver: FDTD solver instance
        scenario: Scenario name
        num_steps: Expected number of iterations
        outputs: Output files that will be written
    """
    grid = solver.grid

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Scenario", f"{scenario} ({grid.dimensions}D)")
    shape_str = " × ".join(str(n) for n in grid.shape)
    table.add_row("Grid", f"{shape_str} ({grid.num_cells / 1e6:.2f}M cells)")
    table.add_row("Spacing", f"{grid.spacing:.3e} m")
    table.add_row("Timestep", f"{solver.dt:.3e} s (Sc = {grid.courant:.4f})")
    table.add_row("Duration", f"{num_steps} steps ({num_steps * solver.dt:.3e} s)")

    cpml_faces = [name for name, _, _, flags in grid.faces() if flags & Border.CPML]
    if cpml_faces:
        table.add_row("CPML", f"{grid.cpml_thickness} cells on {', '.join(cpml_faces)}")
    axes = [f"{AXIS_NAMES[a]}: {grid.domain_size[a]:.3e} m" for a in range(grid.dimensions)]
    table.add_row("Axes", ", ".join(axes))
    for output in outputs:
        table.add_row("Output", output)

    console.print(table)
    console.print()
