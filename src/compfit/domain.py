from __future__ import annotations

from typing import Any, Tuple

import numpy as np


__all__ = ["Domain", "CartesianDomain"]


class Domain:
    """A list of points in N dimensions.

    ``Domain(x)`` is a 1-D domain; ``Domain(x, y)`` a 2-D domain whose i-th
    point is ``(x[i], y[i])``. All coordinate arrays must have equal length.
    """

    def __init__(self, *coords: Any):
        if not coords:
            raise ValueError("Domain requires at least one coordinate array.")
        arrs = tuple(np.asarray(c, dtype=float).reshape(-1) for c in coords)
        n = arrs[0].size
        if any(a.size != n for a in arrs):
            raise ValueError("All coordinate arrays must have the same length.")
        self._coords: Tuple[np.ndarray, ...] = arrs

    @property
    def ndims(self) -> int:
        return len(self._coords)

    def __len__(self) -> int:
        return int(self._coords[0].size)

    def coords(self, dim: int = 1) -> np.ndarray:
        """Coordinates along dimension ``dim`` (1-based), one per point."""
        if not 1 <= dim <= self.ndims:
            raise IndexError(f"Dimension {dim} out of range 1..{self.ndims}.")
        return self._coords[dim - 1]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(ndims={self.ndims}, length={len(self)})"


class CartesianDomain(Domain):
    """A regular grid built from one axis per dimension.

    Points are enumerated with the first axis varying fastest.
    """

    def __init__(self, *axes: Any):
        if not axes:
            raise ValueError("CartesianDomain requires at least one axis.")
        self._axes = tuple(np.asarray(a, dtype=float).reshape(-1) for a in axes)
        grids = np.meshgrid(*self._axes, indexing="ij")
        super().__init__(*[g.reshape(-1, order="F") for g in grids])

    def axis(self, dim: int = 1) -> np.ndarray:
        if not 1 <= dim <= self.ndims:
            raise IndexError(f"Dimension {dim} out of range 1..{self.ndims}.")
        return self._axes[dim - 1]

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(a.size for a in self._axes)
