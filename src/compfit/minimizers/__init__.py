"""Minimizer implementations + registry."""

from __future__ import annotations

from typing import Any, Dict

from .common import Minimizer, MinimizerResult, Status
from .scipy_curve_fit import ScipyCurveFitMinimizer
from .scipy_differential_evolution import ScipyDifferentialEvolutionMinimizer
from .scipy_least_squares import ScipyLeastSquaresMinimizer

_MINIMIZERS: Dict[str, Minimizer] = {
    "scipy.least_squares": ScipyLeastSquaresMinimizer(),
    "scipy.curve_fit": ScipyCurveFitMinimizer(),
    "scipy.differential_evolution": ScipyDifferentialEvolutionMinimizer(),
}


def get_minimizer(name: Any) -> Minimizer:
    """Return a minimizer by name; objects with a ``minimize`` method pass through."""
    if not isinstance(name, str):
        if callable(getattr(name, "minimize", None)):
            return name
        raise TypeError("minimizer must be a name or an object with a minimize() method.")
    try:
        return _MINIMIZERS[name]
    except KeyError as e:
        raise ValueError(
            f"Unknown minimizer {name!r}. Available: {tuple(_MINIMIZERS.keys())}"
        ) from e


AVAILABLE_MINIMIZERS = tuple(_MINIMIZERS.keys())

__all__ = [
    "AVAILABLE_MINIMIZERS",
    "Minimizer",
    "MinimizerResult",
    "Status",
    "get_minimizer",
]
