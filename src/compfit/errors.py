"""Exceptions raised by compfit."""

from __future__ import annotations

__all__ = ["CompfitError", "ConfigurationError", "NumericError"]


class CompfitError(Exception):
    """Base class for all compfit exceptions."""


class ConfigurationError(CompfitError, ValueError):
    """The model, its data or its parameters are set up inconsistently.

    Raised for duplicate names, dataset/prediction length mismatches, an empty
    free-parameter set, parameter values outside their bounds and unknown names
    referenced from a patch function.
    """


class NumericError(CompfitError, ValueError):
    """A NaN reached a parameter vector that is about to be evaluated."""
