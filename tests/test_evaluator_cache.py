import numpy as np
import pytest

from compfit import Domain, Gaussian, NumericError
from compfit.components.gaussian import gaussian_func
from compfit.evaluator import CompEval


def _ceval():
    x = np.linspace(-3.0, 3.0, 61)
    return CompEval(Gaussian(norm=2.0, center=0.5, sigma=0.8), Domain(x)), x


def test_identical_values_do_not_reevaluate() -> None:
    ceval, _ = _ceval()
    vals = ceval.current_values()

    ceval.evaluate_cached(vals)
    assert ceval.counter == 1
    before = ceval.buffer.copy()

    ceval.evaluate_cached(vals.copy())
    assert ceval.counter == 1
    np.testing.assert_array_equal(ceval.buffer, before)


def test_single_changed_value_reevaluates_once() -> None:
    ceval, x = _ceval()
    vals = ceval.current_values()
    ceval.evaluate_cached(vals)

    moved = vals.copy()
    moved[1] = np.nextafter(moved[1], np.inf)
    buf = ceval.evaluate_cached(moved)

    assert ceval.counter == 2
    assert buf is ceval.buffer
    np.testing.assert_allclose(buf, gaussian_func(x, *moved))


def test_buffer_is_mutated_in_place() -> None:
    ceval, _ = _ceval()
    buf = ceval.buffer
    ceval.evaluate_cached(np.array([1.0, 0.0, 1.0]))
    ceval.evaluate_cached(np.array([3.0, 0.0, 1.0]))
    assert ceval.buffer is buf


def test_nan_value_raises_numeric_error() -> None:
    ceval, _ = _ceval()
    ceval.evaluate_cached(ceval.current_values())

    with pytest.raises(NumericError, match="NaN"):
        ceval.evaluate_cached(np.array([1.0, np.nan, 1.0]))
    # the cache still refers to the last good values
    assert ceval.counter == 1
    assert not np.any(np.isnan(ceval.lastvalues))


def test_wrong_length_is_rejected() -> None:
    ceval, _ = _ceval()
    with pytest.raises(ValueError):
        ceval.evaluate_cached(np.array([1.0, 2.0]))


def test_component_is_deep_copied() -> None:
    comp = Gaussian(norm=1.0, center=0.0, sigma=1.0)
    ceval = CompEval(comp, Domain(np.arange(5.0)))

    comp.center.value = 3.0
    assert ceval.comp.center.value == 0.0
    assert ceval.comp is not comp
