from __future__ import annotations

import numpy as np

from .base import Component, require_ndims


# --- Peak shapes -------------------------------------------------------------


def gaussian_func(x, norm, center, sigma):
    """Normalized Gaussian: integral over x equals ``norm``."""
    return (norm / (np.sqrt(2.0 * np.pi) * sigma)) * np.exp(
        -0.5 * ((x - center) / sigma) ** 2
    )


def lorentzian_func(x, norm, center, fwhm):
    """Lorentzian profile peaking at ``norm``, with full width ``fwhm``."""
    return norm / (1.0 + ((x - center) / (0.5 * fwhm)) ** 2)


class Gaussian(Component):
    """1-D normalized Gaussian.

    Parameters in the component
    ---------------------------
    norm   : integrated area
    center : peak position
    sigma  : width (> 0)
    """

    def __init__(self, norm: float = 1.0, center: float = 0.0, sigma: float = 1.0):
        super().__init__()
        self.add_param("norm", norm)
        self.add_param("center", center)
        self.add_param("sigma", sigma, low=np.finfo(float).tiny)

    def prepare(self, domain) -> np.ndarray:
        require_ndims(self, domain, 1)
        return super().prepare(domain)

    def evaluate(self, buffer: np.ndarray, domain, norm, center, sigma) -> None:
        buffer[:] = gaussian_func(domain.coords(), norm, center, sigma)


class Lorentzian(Component):
    """1-D Lorentzian with peak value ``norm`` and full width ``fwhm``."""

    def __init__(self, norm: float = 1.0, center: float = 0.0, fwhm: float = 1.0):
        super().__init__()
        self.add_param("norm", norm)
        self.add_param("center", center)
        self.add_param("fwhm", fwhm, low=np.finfo(float).tiny)

    def prepare(self, domain) -> np.ndarray:
        require_ndims(self, domain, 1)
        return super().prepare(domain)

    def evaluate(self, buffer: np.ndarray, domain, norm, center, fwhm) -> None:
        buffer[:] = lorentzian_func(domain.coords(), norm, center, fwhm)
