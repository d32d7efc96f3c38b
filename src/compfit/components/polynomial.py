from __future__ import annotations

import numpy as np

from .base import Component, require_ndims


class Polynomial(Component):
    """Polynomial ``c1 + c2 x + c3 x^2 + ...`` with a vector parameter ``coeff``."""

    def __init__(self, *coeffs: float):
        super().__init__()
        if not coeffs:
            raise ValueError("Polynomial requires at least one coefficient.")
        self.add_params("coeff", coeffs)

    def prepare(self, domain) -> np.ndarray:
        require_ndims(self, domain, 1)
        return super().prepare(domain)

    def evaluate(self, buffer: np.ndarray, domain, *coeffs) -> None:
        x = domain.coords()
        buffer.fill(coeffs[0])
        for deg, c in enumerate(coeffs[1:], start=1):
            buffer += c * x**deg
