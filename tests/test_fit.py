import logging

import numpy as np
import pytest

from compfit import (
    ConfigurationError,
    Constant,
    Domain,
    Gaussian,
    Measures,
    MinimizerResult,
    Model,
    NumericError,
    OffsetSlope,
    Parameter,
    Status,
    fit,
)


class RecordingMinimizer:
    """Returns the seed unchanged and records every call."""

    name = "recording"

    def __init__(self, status=Status.OK):
        self.status = status
        self.calls = []

    def minimize(self, objective, p0, bounds, options):
        self.calls.append((p0.copy(), bounds, dict(options)))
        objective(p0)
        return MinimizerResult(
            values=p0,
            uncertainties=np.full(p0.shape, np.nan),
            status=self.status,
            message="recorded",
        )


class NanMinimizer:
    name = "nan"

    def minimize(self, objective, p0, bounds, options):
        objective(np.full(p0.shape, np.nan))
        raise AssertionError("unreachable")


class RaisingMinimizer:
    """Moves the model to a trial point, then fails."""

    name = "raising"

    def minimize(self, objective, p0, bounds, options):
        objective(p0 + 7.0)
        raise RuntimeError("minimizer blew up")


def _gaussian_data(seed: int = 0):
    rng = np.random.default_rng(seed)
    x = np.linspace(-3.0, 3.0, 121)
    sigma = 0.02
    truth = Model(Domain(x), peak=Gaussian(2.0, 0.4, 0.7), bg=OffsetSlope(0.5, 0.0, 0.1))
    y = truth() + rng.normal(0.0, sigma, size=x.shape)
    return x, Measures(y, sigma)


def test_out_of_bounds_parameter_fails_before_minimizing() -> None:
    model = Model(Domain(np.arange(5.0)), c=Constant(Parameter(5.0, low=0.0, high=1.0)))
    mz = RecordingMinimizer()

    with pytest.raises(ConfigurationError, match="out of bounds"):
        fit(model, (np.zeros(5), 1.0), minimizer=mz)
    assert mz.calls == []


def test_constant_model_recovers_constant_data() -> None:
    model = Model(Domain(np.arange(10.0)), c=5.0)
    res = fit(model, Measures(np.full(10, 5.0), 1.0))

    assert res.status == Status.OK
    assert res.success
    assert res.cost == pytest.approx(0.0, abs=1e-12)
    assert res.nobs == 10
    assert res.dof == 9
    assert res.logprob == pytest.approx(0.0, abs=1e-12)
    assert res["c"].value.value == pytest.approx(5.0)
    assert res["c"].value.uncertainty == pytest.approx(1.0 / np.sqrt(10.0), rel=1e-6)
    assert res.elapsed >= 0.0


def test_frozen_only_component_has_no_free_parameter() -> None:
    model = Model(Domain(np.arange(10.0)), c=4.0)
    data = Measures(np.full(10, 5.0), 1.0)

    model.freeze("c")
    with pytest.raises(ConfigurationError, match="No free parameter"):
        fit(model, data)

    model.thaw("c")
    res = fit(model, data)
    assert res["c"].value.value == pytest.approx(5.0)


def test_fit_writes_back_and_round_trips_bit_for_bit() -> None:
    x, data = _gaussian_data()
    model = Model(Domain(x), peak=Gaussian(1.0, 0.0, 1.0), bg=OffsetSlope(0.0, 0.0, 0.0))
    res = fit(model, data)

    assert res.status == Status.OK
    assert model["peak"].center.value == res["peak"].center.value
    assert res["peak"].center.value == pytest.approx(0.4, abs=0.01)
    assert res["peak"].sigma.value == pytest.approx(0.7, abs=0.01)
    assert res["peak"].norm.value == pytest.approx(2.0, abs=0.05)

    pred = model().copy()
    r = (pred - data.values) / data.uncertainties
    assert res.cost == float(np.sum(r * r))

    model.evaluate()
    np.testing.assert_array_equal(model(), pred)


def test_fixed_parameters_report_nan_uncertainty() -> None:
    x, data = _gaussian_data()
    model = Model(Domain(x), peak=Gaussian(1.0, 0.0, 1.0), bg=OffsetSlope(0.0, 0.0, 0.0))
    res = fit(model, data)

    x0 = res["bg"].x0
    assert x0.fixed
    assert np.isnan(x0.uncertainty)
    assert x0.value == 0.0
    assert not res["bg"].slope.fixed
    assert np.isfinite(res["bg"].slope.uncertainty)
    assert len(res.free_keys) == 5
    assert res.dof == 121 - 5


def test_only_free_parameters_reach_the_minimizer() -> None:
    model = Model(
        Domain(np.arange(4.0)),
        a=Constant(Parameter(1.0, low=0.0, high=2.0)),
        b=Constant(2.0, fixed=True),
    )
    mz = RecordingMinimizer()
    fit(model, (np.zeros(4), 1.0), minimizer=mz, minimizer_options={"tol": 1e-3})

    (p0, (lo, hi), options), = mz.calls
    np.testing.assert_array_equal(p0, [1.0])
    np.testing.assert_array_equal(lo, [0.0])
    np.testing.assert_array_equal(hi, [2.0])
    assert options == {"tol": 1e-3}


def test_non_ok_status_still_returns_a_result(caplog) -> None:
    model = Model(Domain(np.arange(4.0)), c=1.0)
    with caplog.at_level(logging.WARNING, logger="compfit.fit"):
        res = fit(model, (np.zeros(4), 1.0), minimizer=RecordingMinimizer(Status.ERROR))

    assert res.status == Status.ERROR
    assert not res.success
    assert res.message == "recorded"
    assert res.cost == pytest.approx(4.0)
    assert "recording" in caplog.text


def test_iteration_limit_is_reported_as_error() -> None:
    x, data = _gaussian_data()
    model = Model(Domain(x), peak=Gaussian(1.0, 0.0, 1.0), bg=OffsetSlope(0.0, 0.0, 0.0))
    res = fit(model, data, minimizer_options={"max_nfev": 1})

    assert res.status == Status.ERROR
    assert np.isfinite(res.cost)


def test_nan_from_minimizer_raises_numeric_error() -> None:
    model = Model(Domain(np.arange(4.0)), c=1.0)
    with pytest.raises(NumericError):
        fit(model, (np.zeros(4), 1.0), minimizer=NanMinimizer())
    assert model["c"].value.value == 1.0
    # the model is usable again and back at the stored values
    assert model.pvalues[0] == 1.0
    model.quick_evaluate()
    np.testing.assert_array_equal(model(), 1.0)


def test_failed_minimizer_restores_the_model() -> None:
    model = Model(Domain(np.arange(4.0)), c=1.0)
    with pytest.raises(RuntimeError, match="blew up"):
        fit(model, (np.zeros(4), 1.0), minimizer=RaisingMinimizer())

    assert model["c"].value.value == 1.0
    np.testing.assert_array_equal(model.pvalues, [1.0])
    np.testing.assert_array_equal(model(), 1.0)


def test_dataset_length_mismatch() -> None:
    model = Model(Domain(np.arange(4.0)), c=1.0)
    with pytest.raises(ConfigurationError, match="has 5 value"):
        fit(model, (np.zeros(5), 1.0))


def test_dataset_count_must_match_units() -> None:
    x = np.arange(4.0)
    model = Model(Domain(x), c=1.0)
    model.add_prediction(Domain(x), c=2.0)
    with pytest.raises(ConfigurationError, match="one per prediction unit"):
        fit(model, (np.zeros(4), 1.0))


def test_restricted_fit_holds_other_units() -> None:
    x = np.arange(6.0)
    model = Model(Domain(x), c=1.0)
    model.add_prediction(Domain(x), c=2.0)

    res = fit(model, Measures(np.full(6, 7.0), 0.5), unit=2)

    assert res[2]["c"].value.value == pytest.approx(7.0)
    assert res[1]["c"].value.value == 1.0
    assert res[1]["c"].value.fixed
    assert res.nobs == 6
    assert res.dof == 5
    # held units are released again
    assert not model.is_frozen("c", unit=1)
    assert model[1]["c"].value.value == 1.0


def test_joint_fit_with_patched_shared_center() -> None:
    rng = np.random.default_rng(1)
    x = np.linspace(-2.0, 2.0, 81)
    sigma = 0.01
    y1 = Model(Domain(x), g=Gaussian(1.0, 0.3, 0.4))() + rng.normal(0.0, sigma, x.size)
    y2 = Model(Domain(x), g=Gaussian(2.0, 0.3, 0.8))() + rng.normal(0.0, sigma, x.size)

    model = Model(Domain(x), g=Gaussian(1.0, 0.0, 0.5))
    model.add_prediction(Domain(x), g=Gaussian(1.0, 0.0, 0.5))
    model[2]["g"].center.fixed = True

    @model.patch
    def shared_center(p):
        p[2]["g"].center = p[1]["g"].center

    res = fit(model, [Measures(y1, sigma), Measures(y2, sigma)])

    assert res.status == Status.OK
    assert res.nobs == 162
    assert res[1]["g"].center.value == pytest.approx(0.3, abs=0.01)
    assert res[2]["g"].center.patched == pytest.approx(0.3, abs=0.01)
    assert res[2]["g"].sigma.value == pytest.approx(0.8, abs=0.01)
    assert res[2]["g"].center.fixed
    assert res[2]["g"].center.value == 0.0
