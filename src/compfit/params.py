from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Union

import numpy as np


__all__ = [
    "Parameter",
    "ParamID",
    "CompParamID",
    "ParamSlots",
]


@dataclass
class Parameter:
    """A single scalar fit variable.

    ``step`` is an advisory hint for minimizers; it is stored but not used by
    the built-in backends.
    """

    value: float
    low: float = -np.inf
    high: float = np.inf
    step: float = np.nan
    fixed: bool = False

    def __post_init__(self) -> None:
        self.value = float(self.value)
        self.low = float(self.low)
        self.high = float(self.high)
        self.step = float(self.step)
        self.fixed = bool(self.fixed)

    def in_bounds(self) -> bool:
        return self.low <= self.value <= self.high

    def __float__(self) -> float:
        return self.value


@dataclass(frozen=True, order=True)
class ParamID:
    """Identifies a parameter within a component.

    ``index`` is 0 for scalar parameters and 1..n for the entries of a vector
    parameter, in declaration order.
    """

    name: str
    index: int = 0

    def __str__(self) -> str:
        if self.index == 0:
            return self.name
        return f"{self.name}[{self.index}]"


@dataclass(frozen=True)
class CompParamID:
    """Key of the global parameter map: unit index + component name + ParamID."""

    unit: int
    cname: str
    param: ParamID

    def __str__(self) -> str:
        return f"[{self.unit}].{self.cname}.{self.param}"


Slot = Union[Parameter, List[Parameter]]


class ParamSlots:
    """Ordered table of named parameter slots owned by a component.

    Components declare their parameters explicitly (scalar or vector slots)
    at construction time; the declaration order is the evaluation order of
    the parameter values passed to ``Component.evaluate``.
    """

    def __init__(self) -> None:
        self._slots: Dict[str, Slot] = {}

    def add(self, name: str, par: Any) -> Parameter:
        if name in self._slots:
            raise ValueError(f"Parameter slot {name!r} declared twice.")
        if not isinstance(par, Parameter):
            par = Parameter(par)
        self._slots[name] = par
        return par

    def add_vector(self, name: str, pars: Iterable[Any]) -> List[Parameter]:
        if name in self._slots:
            raise ValueError(f"Parameter slot {name!r} declared twice.")
        out = [p if isinstance(p, Parameter) else Parameter(p) for p in pars]
        self._slots[name] = out
        return out

    def get(self, name: str) -> Slot:
        return self._slots[name]

    def __contains__(self, name: object) -> bool:
        return name in self._slots

    def names(self) -> tuple:
        return tuple(self._slots.keys())

    def flatten(self) -> Dict[ParamID, Parameter]:
        """Return the ordered ``ParamID -> Parameter`` map."""
        out: Dict[ParamID, Parameter] = {}
        for name, slot in self._slots.items():
            if isinstance(slot, Parameter):
                out[ParamID(name)] = slot
            else:
                for i, par in enumerate(slot, start=1):
                    out[ParamID(name, i)] = par
        return out
