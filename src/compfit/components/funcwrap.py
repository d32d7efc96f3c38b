from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

import numpy as np

from ..util import signature_params
from .base import Component


class FuncWrap(Component):
    """Wrap a plain function ``f(x, p1, p2, ...)`` as a component.

    ``x`` is the domain coordinate array for 1-D domains and the domain
    itself otherwise. The function must return an array with one value per
    domain point.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        *values: float,
        names: Optional[Sequence[str]] = None,
    ):
        super().__init__()
        if names is None:
            names = [n for n, _ in signature_params(func)]
        names = tuple(names)
        if len(values) != len(names):
            raise TypeError(
                f"{getattr(func, '__name__', 'func')} takes {len(names)} parameter(s) "
                f"{names}; got {len(values)} initial value(s)."
            )
        self._func = func
        for n, v in zip(names, values):
            self.add_param(n, v)

    @staticmethod
    def from_function(func: Callable[..., Any], **values: float) -> "FuncWrap":
        """Construct from a function signature.

        Numeric defaults in the signature are initial values; keyword
        arguments override them. Parameters with neither raise TypeError.
        """
        params = signature_params(func)
        unknown = set(values) - {n for n, _ in params}
        if unknown:
            raise TypeError(f"Unknown parameter(s): {sorted(unknown)}")
        names = []
        init = []
        missing = []
        for n, default in params:
            names.append(n)
            if n in values:
                init.append(float(values[n]))
            elif default is not None:
                init.append(default)
            else:
                missing.append(n)
        if missing:
            raise TypeError(f"Missing initial values for: {missing}")
        return FuncWrap(func, *init, names=names)

    def evaluate(self, buffer: np.ndarray, domain, *values) -> None:
        x = domain.coords() if getattr(domain, "ndims", 1) == 1 else domain
        buffer[:] = self._func(x, *values)
