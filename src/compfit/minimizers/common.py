from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import numpy as np

Objective = Callable[[np.ndarray], np.ndarray]


class Status(str, Enum):
    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class MinimizerResult:
    """Normalized result returned by any minimizer."""

    values: np.ndarray  # best-fit free parameters, shape (P,)
    uncertainties: np.ndarray  # 1-sigma errors, NaN where unavailable
    status: Status = Status.OK
    message: str = ""
    cov: Optional[np.ndarray] = None  # free-parameter covariance, (P,P)
    stats: Dict[str, Any] = field(default_factory=dict)


class Minimizer(Protocol):
    """Minimizer protocol: least-squares minimization of a residual vector.

    ``objective`` maps free-parameter values to the residual vector
    ``(prediction - observed) / uncertainty``. Implementations must keep
    every trial point inside ``bounds``.
    """

    name: str

    def minimize(
        self,
        objective: Objective,
        p0: np.ndarray,
        bounds: Tuple[np.ndarray, np.ndarray],
        options: Dict[str, Any],
    ) -> MinimizerResult: ...


def errors_from_cov(cov: Optional[np.ndarray], npar: int) -> np.ndarray:
    if cov is None:
        return np.full(npar, np.nan)
    cov = np.asarray(cov, dtype=float)
    return np.sqrt(np.clip(np.diag(cov), 0.0, np.inf))


def cov_from_jacobian(jac: Optional[np.ndarray]) -> Optional[np.ndarray]:
    """Covariance ``(J^T J)^-1`` of residuals already scaled by their uncertainties."""
    if jac is None:
        return None
    J = np.asarray(jac, dtype=float)
    if J.ndim != 2 or J.size == 0:
        return None
    cov = np.linalg.pinv(J.T @ J)
    if not np.all(np.isfinite(cov)):
        return None
    return cov
