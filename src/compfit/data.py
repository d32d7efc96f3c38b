from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError


@dataclass(frozen=True)
class Measures:
    """Empirical values with absolute 1-sigma uncertainties, one per domain point.

    A scalar uncertainty is broadcast to every value. Values are compared
    against a prediction in flattened (1-D) order.
    """

    values: np.ndarray
    uncertainties: np.ndarray
    label: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        v = np.asarray(self.values, dtype=float).reshape(-1)
        e = np.asarray(self.uncertainties, dtype=float)
        if e.shape == ():
            e = np.full(v.shape, float(e))
        else:
            e = e.reshape(-1)
        if e.shape != v.shape:
            raise ConfigurationError(
                f"uncertainties shape {e.shape} does not match values shape {v.shape}."
            )
        if not np.all(np.isfinite(e)) or np.any(e <= 0.0):
            raise ConfigurationError("uncertainties must be finite and strictly positive.")
        object.__setattr__(self, "values", v)
        object.__setattr__(self, "uncertainties", e)

    def __len__(self) -> int:
        return int(self.values.size)

    def flatten(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.values, self.uncertainties

    @staticmethod
    def from_param(
        param: Any,
        *,
        label: Optional[str] = None,
        meta: Optional[Mapping[str, Any]] = None,
    ) -> "Measures":
        """Build Measures from an object exposing ``.value`` and ``.uncertainty``.

        Handy for fits-of-fits, where best-fit values of an earlier fit become
        the data of a later one.
        """
        y = getattr(param, "value", None)
        yerr = getattr(param, "uncertainty", None)
        if y is None or yerr is None:
            raise TypeError("param must provide .value and .uncertainty")
        name = getattr(param, "name", None)
        if label is None and isinstance(name, str) and name:
            label = name
        return Measures(y, yerr, label=label, meta=dict(meta or {}))


def _is_values(obj: Any) -> bool:
    """True for an array or a flat sequence of numbers (not a list of datasets)."""
    if isinstance(obj, Measures):
        return False
    if isinstance(obj, (list, tuple)):
        return all(np.isscalar(v) for v in obj)
    return True


def as_measures_list(data: Any, nunits: int) -> Sequence[Measures]:
    """Normalize fit data into one Measures per prediction unit."""
    if isinstance(data, Measures):
        items = [data]
    elif isinstance(data, tuple) and len(data) == 2 and _is_values(data[0]):
        items = [Measures(data[0], data[1])]
    elif isinstance(data, (list, tuple)):
        items = [d if isinstance(d, Measures) else Measures(*d) for d in data]
    else:
        raise TypeError(
            "data must be a Measures, a (values, uncertainties) tuple, or a list of those."
        )
    if len(items) != nunits:
        raise ConfigurationError(
            f"Expected {nunits} dataset(s), one per prediction unit; got {len(items)}."
        )
    return items
