import math

import pytest

from compfit import BestFitParam, BestFitResult, CompParamID, ParamID, Status
from compfit.util import format_best_fit, uncertainty_to_string


@pytest.mark.parametrize(
    "x, err, precision, expected",
    [
        (12.34567, 0.00123, 2, "12.3457(12)"),
        (12.34567, 0.00123, 1, "12.346(1)"),
        (-1.23456e-5, 1.234e-7, 1, "-1.23(1)e-5"),
        (0.0, 1e-4, 1, "0(1)e-4"),
        # rounding the error up adds a digit
        (3.14159, 0.0996, 1, "3.1(1)"),
        (56789.0, 1234.0, 2, "5.68(12)e4"),
    ],
)
def test_uncertainty_to_string(x, err, precision, expected):
    assert uncertainty_to_string(x, err, precision) == expected


@pytest.mark.parametrize("err", [0.0, math.nan, math.inf])
def test_uncertainty_to_string_without_usable_error(err):
    assert uncertainty_to_string(1.25, err) == "1.25"


def test_format_best_fit_tags():
    assert format_best_fit(2.0, math.nan, fixed=True) == "2 (fixed)"
    assert format_best_fit(2.0, math.nan) == "2"
    assert (
        format_best_fit(1.5, 0.12, patched=0.3, precision=1)
        == "1.5(1)  -> 0.3 (patched)"
    )
    # an unchanged patched value is not repeated
    assert format_best_fit(1.5, 0.12, patched=1.5, precision=1) == "1.5(1)"


def test_summary_uses_best_fit_formatting():
    offset = CompParamID(1, "line", ParamID("offset"))
    x0 = CompParamID(1, "line", ParamID("x0"))
    res = BestFitResult(
        predictions=(),
        params={
            offset: BestFitParam(12.34567, 0.00123, False, 12.34567),
            x0: BestFitParam(0.0, math.nan, True, 0.0),
        },
        nobs=10,
        dof=9,
        cost=8.5,
        status=Status.OK,
        logprob=-0.4,
        elapsed=0.01,
        minimizer="scipy.least_squares",
        free_keys=(offset,),
    )
    text = res.summary()
    assert "[1].line.offset: 12.3457(12)" in text
    assert "[1].line.x0: 0 (fixed)" in text
    assert "nobs=10  dof=9" in text
    assert str(res[offset]) == "12.3457(12)"
    assert res[x0].format(precision=1) == "0 (fixed)"
