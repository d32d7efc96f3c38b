"""Built-in components."""
from .base import Component
from .constant import Constant
from .funcwrap import FuncWrap
from .gaussian import Gaussian, Lorentzian
from .line import OffsetSlope
from .polynomial import Polynomial

__all__ = [
    "Component",
    "Constant",
    "FuncWrap",
    "Gaussian",
    "Lorentzian",
    "OffsetSlope",
    "Polynomial",
]
