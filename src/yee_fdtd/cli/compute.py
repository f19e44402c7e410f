"""Command-line tool for running the preset FDTD scenarios.

The yee-fdtd CLI builds one of the preset scenarios, runs it to an end time
or for a number of iterations, reports the kernel time and optionally dumps
a field as text and/or streams results to HDF5.
"""

import json
import math
import sys
import time
from pathlib import Path

import click
from rich.console import Console

from yee_fdtd import __version__
from yee_fdtd.io.text import DUMPABLE_QUANTITIES
from yee_fdtd.scenarios import SCENARIOS, build_scenario

from .progress import SimulationProgress, format_time, print_simulation_info

console = Console()

DEFAULT_DUMP_FILE = "gridData.dat"


def _scenario_help() -> str:
    lines = []
    for (dims, setup_id), (scenario, _) in sorted(SCENARIOS.items()):
        lines.append(f"{dims}D {setup_id}: {scenario.name}")
    return "\n".join(lines)


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog="\b\nScenarios:\n" + _scenario_help(),
)
@click.option("-1", "--one-dimensional", "dimensions", flag_value=1, default=True, help="1D solver")
@click.option("-2", "--two-dimensional", "dimensions", flag_value=2, help="2D solver")
@click.option("-3", "--three-dimensional", "dimensions", flag_value=3, help="3D solver")
@click.option(
    "-s", "--setup", "setup_id", type=click.IntRange(min=0), default=0, show_default=True,
    help="Predefined scenario identifier",
)
@click.option(
    "-x", "--size-x", type=click.FloatRange(min=0, min_open=True), default=1e-5,
    show_default=True, help="Domain size along x in meters",
)
@click.option(
    "-y", "--size-y", type=click.FloatRange(min=0, min_open=True), default=1e-5,
    show_default=True, help="Domain size along y in meters",
)
@click.option(
    "-z", "--size-z", type=click.FloatRange(min=0, min_open=True), default=1e-5,
    show_default=True, help="Domain size along z in meters",
)
@click.option(
    "-o", "--output", is_flag=False, flag_value=DEFAULT_DUMP_FILE, default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"Dump a field as text after the run (default file: {DEFAULT_DUMP_FILE})",
)
@click.option(
    "--dump", "dump_quantity", type=click.Choice(sorted(DUMPABLE_QUANTITIES)), default="ez",
    show_default=True, help="Quantity written by --output",
)
@click.option(
    "-c", "--courant", type=click.FloatRange(min=0, min_open=True), default=None,
    help="Courant number (default: 1 in 1D, 1/sqrt(3) in 2D, 1/2 in 3D)",
)
@click.option(
    "-w", "--wavelength", type=click.FloatRange(min=0, min_open=True), default=450e-9,
    show_default=True, help="Smallest wavelength resolved by the grid in meters",
)
@click.option(
    "-a", "--cpml", "cpml_thickness", type=click.IntRange(min=0), default=20,
    show_default=True, help="Thickness of the absorbing layers in cells",
)
@click.option(
    "-t", "--end-time", type=float, default=None,
    help="Stop the simulation when this time is reached (takes precedence over -i)",
)
@click.option(
    "-i", "--iterations", type=click.IntRange(min=0), default=400, show_default=True,
    help="Number of iterations when no end time is given",
)
@click.option("-q", "--quiet", is_flag=True, help="Do not print progress from the main loop")
@click.option(
    "--hdf5", "hdf5_output", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Stream results to an HDF5 file",
)
@click.option(
    "--snapshot-interval", type=click.IntRange(min=1), default=None,
    help="Save every field component every N steps to HDF5 (increases file size)",
)
@click.option("--progress", "show_progress", is_flag=True, help="Show a live progress bar")
@click.version_option(version=__version__, prog_name="yee-fdtd")
@click.pass_context
def main(
    ctx: click.Context,
    dimensions: int,
    setup_id: int,
    size_x: float,
    size_y: float,
    size_z: float,
    output: Path | None,
    dump_quantity: str,
    courant: float | None,
    wavelength: float,
    cpml_thickness: int,
    end_time: float | None,
    iterations: int,
    quiet: bool,
    hdf5_output: Path | None,
    snapshot_interval: int | None,
    show_progress: bool,
):
    """Run a preset Maxwell FDTD scenario on a Yee grid.

    \b
    Example:
        yee-fdtd -2 -s 2 -x 5e-6 -y 5e-6 -a 10 -i 200 -o
    """
    ctx.exit(
        _run(
            dimensions=dimensions,
            setup_id=setup_id,
            domain_size=(size_x, size_y, size_z)[:dimensions],
            output=output,
            dump_quantity=dump_quantity,
            courant=courant,
            wavelength=wavelength,
            cpml_thickness=cpml_thickness,
            end_time=end_time,
            iterations=iterations,
            verbose=not quiet,
            hdf5_output=hdf5_output,
            snapshot_interval=snapshot_interval,
            show_progress=show_progress,
            invocation=json.dumps(ctx.params, sort_keys=True, default=str),
        )
    )


def _run(
    dimensions: int,
    setup_id: int,
    domain_size: tuple[float, ...],
    output: Path | None,
    dump_quantity: str,
    courant: float | None,
    wavelength: float,
    cpml_thickness: int,
    end_time: float | None,
    iterations: int,
    verbose: bool,
    hdf5_output: Path | None,
    snapshot_interval: int | None,
    show_progress: bool,
    invocation: str,
) -> int:
    try:
        solver = build_scenario(
            dimensions,
            setup_id,
            domain_size=domain_size,
            courant=courant,
            wavelength=wavelength,
            cpml_thickness=cpml_thickness,
            verbose=verbose,
            console=console,
        )
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1

    with solver:
        if output is not None:
            try:
                # Fail before the run if the quantity does not exist in this dimension
                solver.get_field(dump_quantity)
            except ValueError as e:
                console.print(f"[bold red]Error:[/bold red] {e}")
                return 1

        if end_time is not None and end_time > 0:
            num_steps = math.ceil(end_time / solver.dt)
        else:
            end_time = None
            num_steps = iterations

        scenario = SCENARIOS[(dimensions, setup_id)][0].name
        if verbose:
            outputs = [str(p) for p in (output, hdf5_output) if p is not None]
            print_simulation_info(console, solver, scenario, num_steps, outputs)

        progress = SimulationProgress(console, solver, num_steps) if show_progress else None
        start_time = time.perf_counter()
        try:
            solver.run(
                end_time=end_time,
                iterations=iterations,
                verbose=verbose and progress is None,
                callback=progress.update if progress is not None else None,
                output_file=hdf5_output,
                script_content=invocation,
                snapshot_interval=snapshot_interval,
            )
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            return 130
        except (OSError, ValueError) as e:
            console.print(f"\n[bold red]Simulation Error:[/bold red] {e}")
            return 1
        finally:
            if progress is not None:
                progress.finish()
        runtime = time.perf_counter() - start_time

        console.print(f"Kernel time {runtime:.4f}s", highlight=False)

        if output is not None:
            try:
                solver.dump(output, dump_quantity)
            except OSError as e:
                console.print(f"[bold red]Error:[/bold red] Cannot write {output}: {e}")
                return 1

        if verbose:
            console.print(
                f"[green]Done:[/green] {solver.step_count} iterations, "
                f"t = {solver.time:.3e} s ({format_time(runtime)})"
            )
            if output is not None:
                console.print(f"  {dump_quantity} written to {output}")
            if hdf5_output is not None and hdf5_output.exists():
                size = hdf5_output.stat().st_size
                console.print(f"  Results: {hdf5_output} ({size / 1e6:.1f} MB)")

    return 0


if __name__ == "__main__":
    sys.exit(main())
