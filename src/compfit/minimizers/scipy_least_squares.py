from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np
from scipy.optimize import least_squares

from ..errors import CompfitError
from .common import MinimizerResult, Objective, Status, cov_from_jacobian, errors_from_cov


class ScipyLeastSquaresMinimizer:
    """Bounded Levenberg-Marquardt style fit via scipy.optimize.least_squares.

    Backend options:
    - method: "trf" (default when any bound is finite), "dogbox", or "lm"
      (default when all bounds are infinite)
    - max_nfev, ftol, xtol, gtol, x_scale, loss, diff_step: forwarded to scipy
    """

    name = "scipy.least_squares"

    def minimize(
        self,
        objective: Objective,
        p0: np.ndarray,
        bounds: Tuple[np.ndarray, np.ndarray],
        options: Dict[str, Any],
    ) -> MinimizerResult:
        lo, hi = bounds
        p0 = np.asarray(p0, dtype=float)
        bounded = bool(np.any(np.isfinite(lo)) or np.any(np.isfinite(hi)))
        method = str(options.get("method", "trf" if bounded else "lm"))

        kwargs: Dict[str, Any] = {}
        for k in ("max_nfev", "ftol", "xtol", "gtol", "x_scale", "loss", "diff_step"):
            if k in options:
                kwargs[k] = options[k]

        try:
            res = least_squares(
                objective,
                p0,
                bounds=(lo, hi) if method != "lm" else (-np.inf, np.inf),
                method=method,
                **kwargs,
            )
        except CompfitError:
            raise
        except (ValueError, RuntimeError, np.linalg.LinAlgError) as e:
            # Soft fail: return seed point.
            return MinimizerResult(
                values=p0,
                uncertainties=np.full(p0.shape, np.nan),
                status=Status.ERROR,
                message=str(e),
                stats={"minimizer": self.name, "error": str(e)},
            )

        cov = cov_from_jacobian(res.jac)
        return MinimizerResult(
            values=np.asarray(res.x, dtype=float),
            uncertainties=errors_from_cov(cov, p0.size),
            status=Status.OK if res.success else Status.ERROR,
            message=str(res.message),
            cov=cov,
            stats={
                "minimizer": self.name,
                "method": method,
                "nfev": int(res.nfev),
                "njev": int(res.njev or 0),
                "optimality": float(res.optimality),
            },
        )
