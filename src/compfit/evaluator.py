from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, Tuple

import numpy as np

from .errors import ConfigurationError, NumericError
from .params import Parameter, ParamID

__all__ = ["CompEval", "ReducerEval"]


class CompEval:
    """A component bound to a domain, with a value-change cache.

    The component is deep-copied on construction so that evaluation state
    never aliases the caller's object. The output buffer is allocated once by
    ``prepare`` and then only ever mutated in place; reducers hold
    references to it.

    ``fixed`` is a nesting count: the component is frozen while it is > 0.
    """

    def __init__(self, comp: Any, domain: Any):
        comp = copy.deepcopy(comp)
        self.comp = comp
        self.domain = domain
        self.params: Dict[ParamID, Parameter] = comp.params()
        self.counter = 0
        self.lastvalues = np.full(len(self.params), np.nan)
        self.fixed = 0

        buffer = comp.prepare(domain)
        if not isinstance(buffer, np.ndarray) or buffer.dtype != np.float64:
            buffer = np.asarray(buffer, dtype=float)
        if buffer.ndim != 1:
            raise ConfigurationError(
                f"{type(comp).__name__}.prepare must return a 1-D buffer, "
                f"got shape {buffer.shape}."
            )
        self.buffer = buffer

    @property
    def frozen(self) -> bool:
        return self.fixed > 0

    def current_values(self) -> np.ndarray:
        return np.fromiter((p.value for p in self.params.values()), dtype=float,
                           count=len(self.params))

    def evaluate_cached(self, pvalues: np.ndarray) -> np.ndarray:
        """Evaluate the component unless ``pvalues`` equals the last values seen.

        Equality is exact element-wise float comparison.
        """
        if pvalues.shape != self.lastvalues.shape:
            raise ValueError(
                f"Expected {self.lastvalues.size} parameter value(s), got {pvalues.size}."
            )
        if self.counter > 0 and np.array_equal(self.lastvalues, pvalues):
            return self.buffer

        if np.any(np.isnan(pvalues)):
            names = [str(pid) for pid in self.params]
            raise NumericError(
                f"One or more parameter value(s) of {type(self.comp).__name__} are NaN: "
                + ", ".join(f"{n}={v}" for n, v in zip(names, pvalues))
            )
        self.lastvalues[:] = pvalues
        self.counter += 1
        self.comp.evaluate(self.buffer, self.domain, *pvalues.tolist())
        return self.buffer


class ReducerEval:
    """A reducer wired to an ordered, fixed list of source names.

    ``names`` is resolved once at registration. ``sources`` maps each name
    to the current buffer of that component/reducer and is refreshed by
    :meth:`rewire` whenever the owning prediction changes structure.
    """

    def __init__(self, reducer: Any, domain: Any, names: Tuple[str, ...],
                 buffers: Mapping[str, np.ndarray]):
        self.reducer = reducer
        self.domain = domain
        self.names = tuple(names)
        self.sources: Dict[str, np.ndarray] = {}
        self.rewire(buffers)
        size = int(reducer.output_size(self.sources, domain))
        self.buffer = np.full(size, np.nan)
        self.counter = 0

    def rewire(self, buffers: Mapping[str, np.ndarray]) -> None:
        missing = [n for n in self.names if n not in buffers]
        if missing:
            raise ConfigurationError(
                f"Reducer {type(self.reducer).__name__} refers to unknown name(s): {missing}"
            )
        self.sources = {n: buffers[n] for n in self.names}

    def update(self) -> np.ndarray:
        self.counter += 1
        self.reducer.evaluate(self.buffer, self.sources)
        return self.buffer
