from __future__ import annotations

import numpy as np

from .base import Component, require_ndims


def offset_slope_func(x, offset, x0, slope):
    """Module-level straight line y = offset + slope * (x - x0)."""
    return offset + slope * (x - x0)


class OffsetSlope(Component):
    """Straight line ``offset + slope * (x - x0)``.

    ``x0`` is the reference abscissa and is fixed by default, since it is
    degenerate with ``offset``.
    """

    def __init__(self, offset: float = 0.0, x0: float = 0.0, slope: float = 1.0):
        super().__init__()
        self.add_param("offset", offset)
        self.add_param("x0", x0, fixed=True)
        self.add_param("slope", slope)

    def prepare(self, domain) -> np.ndarray:
        require_ndims(self, domain, 1)
        return super().prepare(domain)

    def evaluate(self, buffer: np.ndarray, domain, offset, x0, slope) -> None:
        buffer[:] = offset_slope_func(domain.coords(), offset, x0, slope)
