from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
from scipy.optimize import differential_evolution

from ..errors import CompfitError
from .common import MinimizerResult, Objective, Status, cov_from_jacobian, errors_from_cov


class ScipyDifferentialEvolutionMinimizer:
    name = "scipy.differential_evolution"

    def minimize(
        self,
        objective: Objective,
        p0: np.ndarray,
        bounds: Tuple[np.ndarray, np.ndarray],
        options: Dict[str, Any],
    ) -> MinimizerResult:
        """Minimize the sum of squared residuals with differential evolution.

        Notes:
        - Requires finite bounds for *all* free parameters.
        - The current parameter values seed the initial population
          (``x0``), so a good starting point is never lost.
        - Covariance comes from a central-difference Jacobian of the
          residuals at the optimum.

        Backend options (subset of scipy.optimize.differential_evolution):
        - maxiter (int, default: 50)
        - popsize (int, default: 15)
        - tol (float, default: 0.01)
        - strategy (str, default: "best1bin")
        - mutation, recombination, seed, polish, disp, init, atol, updating

        Covariance options:
        - cov_method: "numdiff" (default) or "none"
        - cov_step: relative step for numeric Jacobian (default: 1e-5)
        """
        p0 = np.asarray(p0, dtype=float)
        lo, hi = bounds
        lo = np.asarray(lo, dtype=float).reshape((-1,))
        hi = np.asarray(hi, dtype=float).reshape((-1,))

        de_bounds = []
        for j in range(p0.size):
            lo_j = float(lo[j])
            hi_j = float(hi[j])
            if not (np.isfinite(lo_j) and np.isfinite(hi_j)) or hi_j <= lo_j:
                return MinimizerResult(
                    values=p0,
                    uncertainties=np.full(p0.shape, np.nan),
                    status=Status.ERROR,
                    message="scipy.differential_evolution requires finite bounds "
                    "with low < high for all free parameters.",
                    stats={"minimizer": self.name},
                )
            de_bounds.append((lo_j, hi_j))

        def cost(theta_free: np.ndarray) -> float:
            r = objective(np.asarray(theta_free, dtype=float))
            if not np.all(np.isfinite(r)):
                return float("inf")
            return float(np.sum(r * r))

        de_kwargs: Dict[str, Any] = {}
        de_kwargs["maxiter"] = int(options.get("maxiter", 50))
        de_kwargs["popsize"] = int(options.get("popsize", 15))
        de_kwargs["tol"] = float(options.get("tol", 0.01))
        de_kwargs["strategy"] = str(options.get("strategy", "best1bin"))

        for k in (
            "mutation",
            "recombination",
            "seed",
            "polish",
            "disp",
            "init",
            "atol",
            "updating",
        ):
            if k in options:
                de_kwargs[k] = options[k]

        try:
            res = differential_evolution(cost, de_bounds, x0=p0, **de_kwargs)
        except CompfitError:
            raise
        except (ValueError, RuntimeError) as e:
            return MinimizerResult(
                values=p0,
                uncertainties=np.full(p0.shape, np.nan),
                status=Status.ERROR,
                message=str(e),
                stats={"minimizer": self.name, "error": str(e)},
            )
        theta = np.asarray(res.x, dtype=float)

        cov = None
        if str(options.get("cov_method", "numdiff")).lower() not in ("none", "off", "false"):
            jac = _numdiff_jacobian(
                objective, theta, (lo, hi), float(options.get("cov_step", 1e-5))
            )
            cov = cov_from_jacobian(jac)

        return MinimizerResult(
            values=theta,
            uncertainties=errors_from_cov(cov, theta.size),
            status=Status.OK if res.success else Status.ERROR,
            message=str(res.message),
            cov=cov,
            stats={
                "minimizer": self.name,
                "fun": float(res.fun),
                "nfev": int(getattr(res, "nfev", 0) or 0),
                "nit": int(getattr(res, "nit", 0) or 0),
            },
        )


def _numdiff_jacobian(
    residual: Objective,
    theta: np.ndarray,
    bounds: Tuple[np.ndarray, np.ndarray],
    step: float,
) -> Optional[np.ndarray]:
    """Central-difference Jacobian J_{i,j} = dr_i/dtheta_j, kept inside bounds."""
    npar = int(theta.shape[0])
    r0 = np.asarray(residual(theta), dtype=float)
    if r0.size == 0 or not np.all(np.isfinite(r0)):
        return None

    lo, hi = bounds
    J = np.empty((r0.size, npar), dtype=float)
    rel = 1e-5 if not np.isfinite(step) or step <= 0.0 else float(step)

    for j in range(npar):
        eps = rel * (abs(theta[j]) + 1.0)
        if np.isfinite(lo[j]):
            eps = min(eps, 0.5 * max(0.0, theta[j] - lo[j]))
        if np.isfinite(hi[j]):
            eps = min(eps, 0.5 * max(0.0, hi[j] - theta[j]))
        if not np.isfinite(eps) or eps <= 0.0:
            return None

        t_plus = theta.copy()
        t_minus = theta.copy()
        t_plus[j] += eps
        t_minus[j] -= eps
        r_plus = np.asarray(residual(t_plus), dtype=float)
        r_minus = np.asarray(residual(t_minus), dtype=float)
        if not (np.all(np.isfinite(r_plus)) and np.all(np.isfinite(r_minus))):
            return None
        J[:, j] = (r_plus - r_minus) / (2.0 * eps)
    # Leave the model evaluated at the optimum.
    residual(theta)
    return J
