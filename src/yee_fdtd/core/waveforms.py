"""Source waveforms for electromagnetic FDTD simulation.

Classes:
    GaussianPulse: Unmodulated Gaussian pulse used by J and M sources

Example:
    >>> from yee_fdtd import GaussianPulse
    >>> pulse = GaussianPulse(delay=30 * dt, width=15 * dt, amplitude=1.0)
    >>> pulse.value(30 * dt)
    1.0
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass(frozen=True)
class GaussianPulse:
    """Gaussian pulse ``amplitude * exp(-((t - delay) / width)**2)``.

    Args:
        delay: Time of the pulse peak in seconds
        width: Characteristic width in seconds (must be positive)
        amplitude: Peak value (default: 1.0)
    """

    delay: float
    width: float
    amplitude: float = 1.0

    def __post_init__(self):
        if self.width <= 0:
            raise ValueError(f"Pulse width must be positive, got {self.width}")

    def value(self, t: float | ArrayLike) -> float | NDArray[np.floating]:
        """Evaluate the pulse at time t (scalar or array)."""
        arg = (np.asarray(t, dtype=np.float64) - self.delay) / self.width
        result = self.amplitude * np.exp(-(arg**2))
        if np.ndim(result) == 0:
            return float(result)
        return result

    def __call__(self, t):
        return self.value(t)

    def to_dict(self) -> dict[str, float | str]:
        """Serialisable description, used for result metadata."""
        return {
            "type": "gaussian",
            "delay": self.delay,
            "width": self.width,
            "amplitude": self.amplitude,
        }
