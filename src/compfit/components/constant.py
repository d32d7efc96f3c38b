from __future__ import annotations

import numpy as np

from .base import Component


class Constant(Component):
    """A single constant value broadcast over the whole domain.

    Plain numbers registered in a prediction are wrapped into a Constant.
    """

    def __init__(self, value: float = 0.0, **kwargs):
        super().__init__()
        self.add_param("value", value, **kwargs)

    def evaluate(self, buffer: np.ndarray, domain, value: float) -> None:
        buffer.fill(value)
