"""compfit public API."""
import logging

from . import components
from .components import (
    Component,
    Constant,
    FuncWrap,
    Gaussian,
    Lorentzian,
    OffsetSlope,
    Polynomial,
)
from .data import Measures
from .domain import CartesianDomain, Domain
from .errors import CompfitError, ConfigurationError, NumericError
from .fit import fit
from .minimizers import AVAILABLE_MINIMIZERS, MinimizerResult, Status, get_minimizer
from .model import Model, PatchState, Prediction
from .params import CompParamID, Parameter, ParamID
from .reducers import ExprReducer, ProductReducer, Reducer, SumReducer
from .results import BestFitComp, BestFitParam, BestFitResult

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AVAILABLE_MINIMIZERS",
    "BestFitComp",
    "BestFitParam",
    "BestFitResult",
    "CartesianDomain",
    "CompParamID",
    "CompfitError",
    "Component",
    "ConfigurationError",
    "Constant",
    "Domain",
    "ExprReducer",
    "FuncWrap",
    "Gaussian",
    "Lorentzian",
    "Measures",
    "MinimizerResult",
    "Model",
    "NumericError",
    "OffsetSlope",
    "ParamID",
    "Parameter",
    "PatchState",
    "Polynomial",
    "Prediction",
    "ProductReducer",
    "Reducer",
    "Status",
    "SumReducer",
    "components",
    "fit",
    "get_minimizer",
]
