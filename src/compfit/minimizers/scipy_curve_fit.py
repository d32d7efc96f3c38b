from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np
from scipy.optimize import curve_fit

from ..errors import CompfitError
from .common import MinimizerResult, Objective, Status, errors_from_cov


class ScipyCurveFitMinimizer:
    """General curve fit via scipy.optimize.curve_fit.

    The residual vector is fitted against zeros with unit absolute sigma, so
    the returned covariance is already in units of the data uncertainties.

    Backend options:
    - maxfev: maximum number of function evaluations
    - method: forwarded to curve_fit ("trf" when bounded by default)
    """

    name = "scipy.curve_fit"

    def minimize(
        self,
        objective: Objective,
        p0: np.ndarray,
        bounds: Tuple[np.ndarray, np.ndarray],
        options: Dict[str, Any],
    ) -> MinimizerResult:
        p0 = np.asarray(p0, dtype=float)
        r0 = np.asarray(objective(p0), dtype=float)
        xdata = np.arange(r0.size, dtype=float)
        ydata = np.zeros(r0.size)

        kwargs: Dict[str, Any] = {}
        maxfev = options.get("maxfev", None)
        if maxfev is not None:
            kwargs["maxfev"] = int(maxfev)
        if "method" in options:
            kwargs["method"] = options["method"]

        def f_wrapped(_x, *theta_free):
            return objective(np.asarray(theta_free, dtype=float))

        try:
            popt, pcov = curve_fit(
                f_wrapped,
                xdata,
                ydata,
                p0=p0,
                absolute_sigma=True,
                bounds=bounds,
                **kwargs,
            )
        except CompfitError:
            raise
        except (ValueError, TypeError, RuntimeError, np.linalg.LinAlgError) as e:
            # Soft fail: return seed point.
            return MinimizerResult(
                values=p0,
                uncertainties=np.full(p0.shape, np.nan),
                status=Status.ERROR,
                message=str(e),
                stats={"minimizer": self.name, "error": str(e)},
            )

        cov = None if pcov is None else np.asarray(pcov, dtype=float)
        if cov is not None and not np.all(np.isfinite(cov)):
            cov = None
        return MinimizerResult(
            values=np.asarray(popt, dtype=float),
            uncertainties=errors_from_cov(cov, p0.size),
            status=Status.OK,
            message="ok",
            cov=cov,
            stats={"minimizer": self.name},
        )
