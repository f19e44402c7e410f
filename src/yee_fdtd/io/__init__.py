"""I/O and data management for FDTD results."""

from yee_fdtd.io.hdf5 import (
    HDF5ResultReader,
    HDF5ResultWriter,
)
from yee_fdtd.io.text import DUMPABLE_QUANTITIES, load_dump, write_dump

__all__ = [
    "HDF5ResultWriter",
    "HDF5ResultReader",
    "DUMPABLE_QUANTITIES",
    "write_dump",
    "load_dump",
]
