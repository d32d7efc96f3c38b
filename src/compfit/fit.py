from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
from scipy.stats import chi2

from .data import as_measures_list
from .errors import ConfigurationError
from .minimizers import MinimizerResult, Status, get_minimizer
from .model import Model, Prediction
from .params import CompParamID, ParamID
from .results import BestFitComp, BestFitParam, BestFitResult

log = logging.getLogger(__name__)

__all__ = ["fit", "check_bounds"]


def check_bounds(model: Model) -> None:
    """Raise ConfigurationError if any parameter lies outside its own bounds."""
    bad = [
        f"{key}={par.value!r} not in [{par.low!r}, {par.high!r}]"
        for key, par in model.parameters().items()
        if not par.in_bounds()
    ]
    if bad:
        raise ConfigurationError("Parameter value(s) out of bounds: " + "; ".join(bad))


def fit(
    model: Model,
    data: Any,
    *,
    minimizer: Any = "scipy.least_squares",
    minimizer_options: Optional[Mapping[str, Any]] = None,
    unit: Optional[int] = None,
) -> BestFitResult:
    """Fit the free parameters of ``model`` to ``data`` by least squares.

    Parameters
    ----------
    model:
        The model to fit. Best-fit values are written back into its
        Parameters and the model is left evaluated at the optimum.
    data:
        One dataset per prediction unit, in unit order: a
        :class:`~compfit.data.Measures`, a ``(values, uncertainties)`` tuple, or
        a list of those. With ``unit=k`` a single dataset for unit ``k``.
    minimizer:
        A registered minimizer name (see ``AVAILABLE_MINIMIZERS``) or an
        object with a compatible ``minimize`` method.
    minimizer_options:
        Backend-specific options, forwarded as-is.
    unit:
        Restrict the fit to one prediction unit; the components of every
        other unit are held fixed for the duration of the fit.
    """
    t0 = time.perf_counter()
    mz = get_minimizer(minimizer)
    options = dict(minimizer_options or {})

    if len(model) == 0:
        raise ConfigurationError("Model has no prediction unit.")
    check_bounds(model)

    if unit is None:
        preds = list(model.predictions)
        return _fit(model, preds, data, mz, options, t0)

    target = model[unit]
    with model.hold_other_units(target.index):
        return _fit(model, [target], data, mz, options, t0)


def _fit(
    model: Model,
    preds: List[Prediction],
    data: Any,
    mz: Any,
    options: Dict[str, Any],
    t0: float,
) -> BestFitResult:
    model.evaluate()

    free = model.free_mask()
    free_idx = np.flatnonzero(free)
    if free_idx.size == 0:
        raise ConfigurationError("No free parameter to fit.")

    measures = as_measures_list(data, len(preds))
    spans: List[Tuple[Prediction, slice]] = []
    start = 0
    for pred, meas in zip(preds, measures):
        n = len(pred())
        if len(meas) != n:
            raise ConfigurationError(
                f"Dataset for prediction {pred.index} has {len(meas)} value(s); "
                f"the prediction has {n}."
            )
        spans.append((pred, slice(start, start + n)))
        start += n

    obs = np.concatenate([m.values for m in measures])
    unc = np.concatenate([m.uncertainties for m in measures])
    nobs = int(obs.size)
    resid = np.empty(nobs)

    def objective(theta: np.ndarray) -> np.ndarray:
        model.pvalues[free_idx] = theta
        model.quick_evaluate()
        for pred, sl in spans:
            resid[sl] = pred()
        np.subtract(resid, obs, out=resid)
        np.divide(resid, unc, out=resid)
        # Minimizers may keep earlier residuals around.
        return resid.copy()

    flat = model.flat_parameters()
    p0 = model.pvalues[free_idx].copy()
    lo = np.array([flat[i].low for i in free_idx], dtype=float)
    hi = np.array([flat[i].high for i in free_idx], dtype=float)
    mname = str(getattr(mz, "name", type(mz).__name__))

    log.info(
        "fitting %d free parameter(s) to %d observation(s) with %s",
        free_idx.size,
        nobs,
        mname,
    )
    try:
        mres: MinimizerResult = mz.minimize(objective, p0, (lo, hi), options)
        best = np.asarray(mres.values, dtype=float).reshape(-1)
        if best.shape != p0.shape:
            raise ValueError(
                f"Minimizer {mname!r} returned {best.size} value(s) "
                f"for {p0.size} free parameter(s)."
            )
    except BaseException:
        # Back to the stored Parameter values, away from the last trial point.
        model.evaluate()
        raise
    model.set_values(best, free_idx)
    final = objective(best)

    cost = float(np.sum(final * final))
    dof = nobs - int(free_idx.size)
    logprob = float(chi2.logsf(cost, dof)) if dof > 0 else float("nan")
    status = Status(mres.status)
    elapsed = time.perf_counter() - t0

    if status != Status.OK:
        log.warning("minimizer %s returned status %r: %s", mname, status.value, mres.message)
    log.info(
        "fit finished: status=%s cost=%.6g dof=%d elapsed=%.3gs",
        status.value,
        cost,
        dof,
        elapsed,
    )

    errs = np.full(len(flat), np.nan)
    errs[free_idx] = np.asarray(mres.uncertainties, dtype=float).reshape(-1)
    keys = model.keys
    params: Dict[CompParamID, BestFitParam] = {}
    for i, key in enumerate(keys):
        params[key] = BestFitParam(
            value=float(model.pvalues[i]),
            uncertainty=float(errs[i]),
            fixed=not bool(free[i]),
            patched=float(model.patched[i]),
        )

    grouped: List[Dict[str, Dict[ParamID, BestFitParam]]] = [
        {cname: {} for cname in pred.cevals} for pred in model.predictions
    ]
    for key, bp in params.items():
        grouped[key.unit - 1][key.cname][key.param] = bp

    return BestFitResult(
        predictions=tuple(
            {cname: BestFitComp(items) for cname, items in unit_items.items()}
            for unit_items in grouped
        ),
        params=params,
        nobs=nobs,
        dof=dof,
        cost=cost,
        status=status,
        logprob=logprob,
        elapsed=elapsed,
        minimizer=mname,
        message=str(mres.message),
        free_keys=tuple(keys[i] for i in free_idx),
        covariance=None if mres.cov is None else np.asarray(mres.cov, dtype=float),
        stats=dict(mres.stats),
    )
