"""HDF5 output format for FDTD simulation results.

This module provides a streaming writer and a reader for electromagnetic
FDTD results in an HDF5 layout holding:
- Grid and time-stepping parameters, border flags per face
- Source descriptions (kind, cell, waveform parameters)
- Probe time series, appended after every iteration
- Compressed field snapshots for every component
- Inverse material arrays and reproducibility metadata
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import h5py
import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from yee_fdtd.core.solver import FDTDSolver


class HDF5ResultWriter:
    """Streaming writer for FDTD simulation results.

    Example:
        >>> writer = HDF5ResultWriter("results.h5", solver, script_content)
        >>> for step in range(num_steps):
        ...     solver.step()
        ...     writer.write_timestep(step, save_snapshot=step % 10 == 0)
        >>> writer.finalize(runtime=12.3)
    """

    def __init__(
        self,
        filename: str | Path,
        solver: FDTDSolver,
        script_content: str | None = None,
        compression: str | None = "gzip",
        compression_level: int = 4,
    ):
        """Initialize HDF5 writer.

        Args:
            filename: Output file path
            solver: FDTD solver instance
            script_content: Source script or command line for reproducibility
            compression: Compression algorithm ('gzip', 'lzf', None)
            compression_level: Compression level (0-9 for gzip)
        """
        self.filename = Path(filename)
        self.solver = solver
        self.file = h5py.File(filename, "w")
        self.compression = compression
        self.compression_opts = compression_level if compression == "gzip" else None
        self._snapshot_steps: list[int] = []

        self._write_metadata(script_content)
        self._create_datasets()

    def _write_metadata(self, script_content: str | None):
        from yee_fdtd import __version__

        solver = self.solver
        grid = solver.grid

        meta = self.file.create_group("metadata")
        if script_content:
            meta.attrs["script_hash"] = hashlib.sha256(script_content.encode()).hexdigest()
            meta.attrs["script_content"] = script_content
        meta.attrs["created_at"] = datetime.now(timezone.utc).isoformat()
        meta.attrs["solver_version"] = __version__
        meta.attrs["dtype"] = str(solver.dtype)

        grid_group = self.file.create_group("grid")
        grid_group.attrs["dimensions"] = grid.dimensions
        grid_group.attrs["shape"] = list(grid.shape)
        grid_group.attrs["spacing"] = grid.spacing
        grid_group.attrs["domain_size"] = list(grid.domain_size)
        grid_group.attrs["extent"] = list(grid.physical_extent())
        grid_group.attrs["wavelength"] = grid.wavelength
        grid_group.attrs["cpml_thickness"] = grid.cpml_thickness
        borders = grid_group.create_group("borders")
        for name, flags in grid.face_flags.items():
            borders.attrs[name] = int(flags)

        sim_group = self.file.create_group("simulation")
        sim_group.attrs["timestep"] = solver.dt
        sim_group.attrs["courant"] = grid.courant
        sim_group.attrs["start_time"] = solver.time

        sources_group = self.file.create_group("sources")
        for i, source in enumerate(solver.sources):
            src = sources_group.create_group(f"source_{i}")
            src.attrs["kind"] = source.kind
            src.attrs["cell"] = list(source.cell)
            for key, value in source.pulse.to_dict().items():
                src.attrs[key] = value

    def _create_datasets(self):
        solver = self.solver

        self.file.create_group("fields")
        self._field_datasets: dict[str, h5py.Dataset] = {}

        probes_group = self.file.create_group("probes")
        for name, probe in solver._probes.items():
            dataset = probes_group.create_dataset(
                name,
                shape=(0,),
                maxshape=(None,),
                dtype=np.float64,
                chunks=True,
                compression=self.compression,
                compression_opts=self.compression_opts,
            )
            dataset.attrs["position"] = list(probe.position)
            dataset.attrs["component"] = probe.component

        materials_group = self.file.create_group("materials")
        for name in ("permittivity_inv", "permeability_inv"):
            materials_group.create_dataset(
                name,
                data=getattr(solver, name),
                compression=self.compression,
                compression_opts=self.compression_opts,
            )

    def write_timestep(self, step: int, save_snapshot: bool = False):
        """Write data for the current timestep.

        Args:
            step: Current timestep number
            save_snapshot: If True, save a snapshot of every field component
        """
        solver = self.solver

        probes_group = self.file["probes"]
        for name, probe in solver._probes.items():
            dataset = probes_group[name]
            if len(probe.data) > dataset.shape[0]:
                new = probe.get_data()[dataset.shape[0] :]
                start = dataset.shape[0]
                dataset.resize((len(probe.data),))
                dataset[start:] = new

        if save_snapshot:
            idx = len(self._snapshot_steps)
            for name, values in solver.fields.items():
                dataset = self._field_datasets.get(name)
                if dataset is None:
                    dataset = self.file["fields"].create_dataset(
                        name,
                        shape=(0,) + solver.shape,
                        maxshape=(None,) + solver.shape,
                        dtype=values.dtype,
                        chunks=(1,) + solver.shape,
                        compression=self.compression,
                        compression_opts=self.compression_opts,
                    )
                    self._field_datasets[name] = dataset
                dataset.resize((idx + 1,) + solver.shape)
                dataset[idx] = values
            self._snapshot_steps.append(step)

    def finalize(self, runtime: float | None = None, **extra_metadata):
        """Write final metadata and close file.

        Args:
            runtime: Total simulation runtime in seconds
            **extra_metadata: Additional metadata to store
        """
        if not self.file:
            return
        solver = self.solver

        sim_group = self.file["simulation"]
        sim_group.attrs["num_steps"] = solver.step_count
        sim_group.attrs["total_time"] = solver.time
        self.file["fields"].create_dataset(
            "snapshot_steps", data=np.array(self._snapshot_steps, dtype=np.int64)
        )

        if runtime is not None:
            self.file["metadata"].attrs["total_runtime_seconds"] = runtime
        for key, value in extra_metadata.items():
            self.file["metadata"].attrs[key] = value

        self.file.flush()
        self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finalize()


class HDF5ResultReader:
    """Reader for FDTD simulation results from HDF5 files.

    Example:
        >>> with HDF5ResultReader("results.h5") as reader:
        ...     metadata = reader.get_metadata()
        ...     trace = reader.load_probe("reflected")
        ...     ez = reader.load_timestep(3, "ez")
    """

    def __init__(self, filename: str | Path):
        self.filename = Path(filename)
        self.file = h5py.File(filename, "r")

    def get_metadata(self) -> dict[str, Any]:
        """Extract all simulation metadata.

        Returns:
            Dict with metadata, grid, simulation, sources and probes entries
        """
        metadata: dict[str, Any] = {}

        if "metadata" in self.file:
            metadata["metadata"] = dict(self.file["metadata"].attrs)

        if "grid" in self.file:
            grid = dict(self.file["grid"].attrs)
            if "grid/borders" in self.file:
                grid["borders"] = dict(self.file["grid/borders"].attrs)
            metadata["grid"] = grid

        if "simulation" in self.file:
            metadata["simulation"] = dict(self.file["simulation"].attrs)

        if "sources" in self.file:
            metadata["sources"] = [
                dict(self.file[f"sources/{name}"].attrs) for name in self.file["sources"]
            ]

        if "probes" in self.file:
            metadata["probes"] = {
                name: dict(self.file[f"probes/{name}"].attrs) for name in self.file["probes"]
            }

        return metadata

    def load_timestep(self, index: int, component: str = "ez") -> NDArray[np.floating]:
        """Load one field snapshot.

        Args:
            index: Snapshot index (see get_snapshot_steps for step numbers)
            component: Field component name

        Raises:
            ValueError: If no snapshot of the component is stored
        """
        key = f"fields/{component}"
        if key not in self.file:
            raise ValueError(f"No {component} field data in file")
        return self.file[key][index]

    def get_snapshot_steps(self) -> NDArray[np.int64]:
        """Step numbers at which snapshots were taken."""
        if "fields/snapshot_steps" not in self.file:
            return np.array([], dtype=np.int64)
        return self.file["fields/snapshot_steps"][:]

    def load_probe(self, probe_name: str) -> NDArray[np.floating]:
        """Load a probe time series.

        Raises:
            KeyError: If the probe is not stored in the file
        """
        if f"probes/{probe_name}" not in self.file:
            available = list(self.file["probes"].keys()) if "probes" in self.file else []
            raise KeyError(f"Probe '{probe_name}' not found. Available: {available}")
        return self.file[f"probes/{probe_name}"][:]

    def get_probe_names(self) -> list[str]:
        """Get list of available probe names."""
        if "probes" not in self.file:
            return []
        return list(self.file["probes"].keys())

    def get_num_snapshots(self) -> int:
        """Get number of saved field snapshots."""
        return len(self.get_snapshot_steps())

    def load_material(self, name: str = "permittivity_inv") -> NDArray[np.floating]:
        """Load an inverse material array."""
        return self.file[f"materials/{name}"][:]

    def close(self):
        """Close the HDF5 file."""
        if self.file:
            self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
