"""Physical constants and discretisation defaults.

The vacuum constants use the exact SI values the solver has always used,
so coefficient tables and time steps are reproducible bit for bit.
"""

from __future__ import annotations

import math

# Vacuum permeability (H/m)
MU0 = 4.0 * math.pi * 1e-7

# Vacuum permittivity (F/m), 1 / (mu0 * c^2) in closed form
EPS0 = 625000.0 / (22468879468420441.0 * math.pi)

# Speed of light in vacuum (m/s)
C0 = 299792458.0

# Free-space impedance (Ohm)
ETA0 = math.sqrt(MU0 / EPS0)

# Spatial resolution: cells per smallest resolved wavelength
CELLS_PER_WAVELENGTH = 20

# CPML profile parameters
CPML_ORDER = 4
CPML_KAPPA_MAX = 1.0


def stability_limit(dimensions: int) -> float:
    """Largest stable Courant number for a D-dimensional Yee grid."""
    return 1.0 / math.sqrt(dimensions)


def default_courant(dimensions: int) -> float:
    """Courant number used when the caller does not choose one.

    1D runs at the magic time step, 2D at 1/sqrt(3) and 3D at 1/sqrt(4).
    """
    return {1: 1.0, 2: 1.0 / math.sqrt(3.0), 3: 1.0 / math.sqrt(4.0)}[dimensions]
