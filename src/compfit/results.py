from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

import numpy as np
import uncertainties

from .minimizers import Status
from .params import CompParamID, ParamID
from .util import format_best_fit


@dataclass(frozen=True)
class BestFitParam:
    """Best-fit snapshot of one parameter."""

    value: float
    uncertainty: float  # NaN when fixed or unavailable
    fixed: bool  # excluded from the free set at fit time
    patched: float  # value seen by the component after patch functions

    @property
    def u(self):
        """Return an uncertainties ufloat (no correlations)."""
        return uncertainties.ufloat(self.value, self.uncertainty)

    def __float__(self) -> float:
        return self.value

    def format(self, precision: int = 2) -> str:
        return format_best_fit(
            self.value,
            self.uncertainty,
            fixed=self.fixed,
            patched=self.patched,
            precision=precision,
        )

    def __str__(self) -> str:
        return self.format()


Entry = Union[BestFitParam, Tuple[BestFitParam, ...]]


class BestFitComp(Mapping[str, Entry]):
    """Parameter-name -> BestFitParam mapping for one component.

    Vector parameters map to a tuple of BestFitParam in index order.
    Entries are also reachable as attributes (``comp.center.value``).
    """

    def __init__(self, items: Mapping[ParamID, BestFitParam]):
        out: Dict[str, Any] = {}
        for pid, bp in items.items():
            if pid.index == 0:
                out[pid.name] = bp
            else:
                out[pid.name] = out.get(pid.name, ()) + (bp,)
        self._items = out

    def __getitem__(self, name: str) -> Entry:
        return self._items[name]

    def __getattr__(self, name: str) -> Entry:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._items[name]
        except KeyError:
            raise AttributeError(f"No parameter named {name!r}") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"BestFitComp({', '.join(self._items)})"


@dataclass(frozen=True)
class BestFitResult:
    """Read-only outcome of :func:`compfit.fit`.

    ``predictions[u - 1][cname]`` is the :class:`BestFitComp` of component
    ``cname`` in unit ``u``; ``result[u]`` and ``result[cname]`` (single
    unit) are shortcuts.
    """

    predictions: Tuple[Dict[str, BestFitComp], ...]
    params: Dict[CompParamID, BestFitParam]
    nobs: int
    dof: int
    cost: float
    status: Status
    logprob: float
    elapsed: float
    minimizer: str = ""
    message: str = ""
    free_keys: Tuple[CompParamID, ...] = ()
    covariance: Optional[np.ndarray] = None  # over free_keys
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status == Status.OK

    @property
    def reduced_chi2(self) -> float:
        return self.cost / self.dof if self.dof > 0 else float("nan")

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, str):
            if len(self.predictions) != 1:
                raise KeyError(
                    f"Result has {len(self.predictions)} prediction units; index by unit first."
                )
            return self.predictions[0][key]
        if isinstance(key, CompParamID):
            return self.params[key]
        if not isinstance(key, (int, np.integer)) or not 1 <= key <= len(self.predictions):
            raise KeyError(f"No prediction unit {key!r}")
        return self.predictions[key - 1]

    def __len__(self) -> int:
        return len(self.predictions)

    def correlated(self) -> Dict[CompParamID, Any]:
        """Return correlated ufloats for the free parameters.

        Falls back to uncorrelated ufloats when no covariance is available.
        """
        vals = [self.params[k].value for k in self.free_keys]
        if self.covariance is None:
            return {k: self.params[k].u for k in self.free_keys}
        corr = uncertainties.correlated_values(vals, np.asarray(self.covariance))
        return dict(zip(self.free_keys, corr))

    def summary(self, precision: int = 2) -> str:
        """Return a human-readable summary string for the result."""
        lines = [
            f"BestFitResult(minimizer={self.minimizer!r}, status={self.status.value!r}, "
            f"elapsed={self.elapsed:.3g}s)",
            f"  nobs={self.nobs}  dof={self.dof}  cost={self.cost:.6g}  "
            f"logprob={self.logprob:.6g}",
        ]
        for key, bp in self.params.items():
            lines.append(f"  {str(key):>24s}: {bp.format(precision)}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"BestFitResult(status={self.status.value!r}, nobs={self.nobs}, "
            f"dof={self.dof}, cost={self.cost:.6g})"
        )
