from __future__ import annotations

from typing import Any, Dict, List

import numpy as np

from ..errors import ConfigurationError
from ..params import Parameter, ParamID, ParamSlots


class Component:
    """Base class for model components.

    A component declares its parameters in ``__init__`` through
    :meth:`add_param` / :meth:`add_params` and implements :meth:`evaluate`,
    which must fill ``buffer`` in place from the domain and the parameter
    values (passed positionally, in declaration order). Declared parameters
    are reachable as attributes, e.g. ``comp.center.value``.

    Non-parameter configuration should be set in ``__init__`` and treated as
    immutable afterwards.
    """

    def __init__(self) -> None:
        self._slots = ParamSlots()

    # ---- declaration ----
    def add_param(self, name: str, value: Any, **kwargs: Any) -> Parameter:
        """Declare a scalar parameter slot."""
        par = value if isinstance(value, Parameter) else Parameter(value, **kwargs)
        return self._slots.add(name, par)

    def add_params(self, name: str, values: Any) -> List[Parameter]:
        """Declare a vector parameter slot (ParamID indices 1..n)."""
        return self._slots.add_vector(name, values)

    def __getattr__(self, name: str) -> Any:
        # Only consulted when normal lookup fails; guard against recursion
        # while copy/pickle rebuild an instance without running __init__.
        if name.startswith("_"):
            raise AttributeError(name)
        slots = self.__dict__.get("_slots")
        if slots is not None and name in slots:
            return slots.get(name)
        raise AttributeError(
            f"{type(self).__name__!r} has no parameter or attribute {name!r}"
        )

    def __setattr__(self, name: str, value: Any) -> None:
        slots = self.__dict__.get("_slots")
        if slots is not None and name in slots:
            raise TypeError(
                f"{type(self).__name__}.{name} is a parameter slot; "
                f"assign to {name}.value (or its entries) instead."
            )
        object.__setattr__(self, name, value)

    def params(self) -> Dict[ParamID, Parameter]:
        """Ordered ``ParamID -> Parameter`` map of this component."""
        return self._slots.flatten()

    # ---- evaluation contract ----
    def prepare(self, domain: Any) -> np.ndarray:
        """Return the output buffer for ``domain``; called once at registration."""
        return np.full(len(domain), np.nan)

    def evaluate(self, buffer: np.ndarray, domain: Any, *values: float) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not implement evaluate()")

    def __repr__(self) -> str:
        inner = ", ".join(f"{pid}={par.value:g}" for pid, par in self.params().items())
        return f"{type(self).__name__}({inner})"


def require_ndims(comp: Component, domain: Any, ndims: int) -> None:
    if getattr(domain, "ndims", 1) != ndims:
        raise ConfigurationError(
            f"{type(comp).__name__} requires a {ndims}-D domain, "
            f"got {getattr(domain, 'ndims', '?')}-D."
        )
