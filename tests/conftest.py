"""Pytest configuration for the yee-fdtd test suite.

Most physics tests use a wavelength of 20 m so that the cell spacing is
exactly 1 m, which keeps cell indices and physical positions identical.
"""

import numpy as np
import pytest

# wavelength / 20 cells per wavelength -> 1 m spacing
UNIT_WAVELENGTH = 20.0


@pytest.fixture
def unit_wavelength():
    return UNIT_WAVELENGTH


@pytest.fixture
def cavity_2d():
    """Factory for a vacuum 2D PEC cavity with unit spacing."""
    from yee_fdtd import FDTD2D

    def make(size=40, courant=0.5, dtype=np.float64, **kwargs):
        solver = FDTD2D(
            domain_size=(float(size), float(size)),
            courant=courant,
            wavelength=UNIT_WAVELENGTH,
            dtype=dtype,
            **kwargs,
        )
        return solver

    return make
