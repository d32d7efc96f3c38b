from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError

__all__ = ["Reducer", "SumReducer", "ProductReducer", "ExprReducer"]


class Reducer:
    """Base class for reducers.

    A reducer combines an ordered mapping of named source buffers into one
    output buffer. ``names=None`` means "slurp": the reducer is wired to every
    name registered so far, resolved once when the reducer is registered.
    Slurping includes earlier reducers only when ``slurp_reducers`` is True.
    """

    slurp_reducers = False

    def __init__(self, names: Optional[Sequence[str]] = None):
        self.names: Optional[Tuple[str, ...]] = None if names is None else tuple(names)

    @property
    def slurp(self) -> bool:
        return self.names is None

    def combine(self, args: Mapping[str, np.ndarray]) -> np.ndarray:
        raise NotImplementedError(f"{type(self).__name__} does not implement combine()")

    def output_size(self, args: Mapping[str, np.ndarray], domain: Any) -> int:
        return len(domain)

    def evaluate(self, buffer: np.ndarray, args: Mapping[str, np.ndarray]) -> None:
        out = np.asarray(self.combine(args), dtype=float)
        if out.shape != buffer.shape:
            raise ConfigurationError(
                f"{type(self).__name__} produced shape {out.shape}; "
                f"its buffer has shape {buffer.shape}."
            )
        buffer[:] = out

    def __repr__(self) -> str:
        names = "*" if self.names is None else ", ".join(self.names)
        return f"{type(self).__name__}({names})"


class SumReducer(Reducer):
    """Element-wise sum of the source buffers."""

    def evaluate(self, buffer: np.ndarray, args: Mapping[str, np.ndarray]) -> None:
        if len(args) == 1:
            buffer[:] = next(iter(args.values()))
            return
        buffer.fill(0.0)
        for arr in args.values():
            buffer += arr


class ProductReducer(Reducer):
    """Element-wise product of the source buffers."""

    def evaluate(self, buffer: np.ndarray, args: Mapping[str, np.ndarray]) -> None:
        if len(args) == 1:
            buffer[:] = next(iter(args.values()))
            return
        buffer.fill(1.0)
        for arr in args.values():
            buffer *= arr


class ExprReducer(Reducer):
    """Reducer computed by a user function of a ``name -> buffer`` mapping.

    The function receives a mapping restricted to ``names`` (or to
    every component/reducer registered so far when slurping) and returns a
    fresh array. The length of the first result fixes the buffer size.

    Example: ``ExprReducer(lambda m: m["a"] * m["scale"], names=["a", "scale"])``.
    """

    slurp_reducers = True

    def __init__(self, func: Callable[[Mapping[str, np.ndarray]], Any],
                 names: Optional[Sequence[str]] = None):
        super().__init__(names)
        self.func = func

    def combine(self, args: Mapping[str, np.ndarray]) -> np.ndarray:
        return np.atleast_1d(np.asarray(self.func(args), dtype=float))

    def output_size(self, args: Mapping[str, np.ndarray], domain: Any) -> int:
        return int(self.combine(args).size)
