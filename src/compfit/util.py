from __future__ import annotations

import inspect
import math
from typing import Any, Callable, Optional, Tuple


def signature_params(func: Callable[..., Any]) -> Tuple[Tuple[str, Optional[float]], ...]:
    """Return ``(name, default)`` for every fit parameter of ``f(x, p1, p2, ...)``.

    The first argument is the domain coordinate and is skipped. ``default``
    is the numeric signature default, or None when there is none (or it is
    not a plain number). ``*args``/``**kwargs`` are rejected.
    """
    params = list(inspect.signature(func).parameters.values())
    if len(params) < 2:
        raise TypeError(
            f"{getattr(func, '__name__', 'func')} must take the domain coordinate "
            "plus at least one parameter."
        )

    out = []
    for p in params[1:]:
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise TypeError(f"Variadic parameter {p.name!r} cannot be a fit parameter.")
        d = p.default
        if isinstance(d, (int, float)) and not isinstance(d, bool):
            out.append((p.name, float(d)))
        else:
            out.append((p.name, None))
    return tuple(out)


def uncertainty_to_string(x: float, err: float, precision: int = 2) -> str:
    """Format ``x`` with uncertainty ``err`` in compact ``value(error)`` notation.

    ``precision`` significant digits are kept in the error, and ``x`` is
    rounded to the same last digit: ``12.3457(12)``. The exponent form
    ``1.23(1)e-5`` is used when it is shorter. Without a usable error (zero,
    NaN or inf) the value is printed on its own with 6 significant digits.
    """
    x = float(x)
    err = abs(float(err))
    if not (math.isfinite(x) and math.isfinite(err)) or err == 0.0:
        return f"{x:.6g}"
    precision = max(1, int(precision))

    # decimal exponent of the last digit kept
    last = math.floor(math.log10(err)) - precision + 1
    digits = round(err / 10.0**last)
    if digits >= 10**precision:
        last += 1
        digits = round(err / 10.0**last)
    mant = round(x / 10.0**last)

    fixed = f"{mant * 10.0**last:.{max(0, -last)}f}({digits * 10**max(0, last)})"

    if x != 0.0 and abs(x) >= err:
        lead = math.floor(math.log10(abs(x)))
    else:
        lead = last + precision - 1
    shift = max(0, lead - last)
    sci = f"{mant / 10.0**shift:.{shift}f}({digits})e{lead}"
    return fixed if len(fixed) <= len(sci) else sci


def format_best_fit(
    value: float,
    uncertainty: float,
    *,
    fixed: bool = False,
    patched: Optional[float] = None,
    precision: int = 2,
) -> str:
    """One summary cell for a best-fit parameter.

    Fixed parameters are tagged ``(fixed)``; a patched value that differs
    from the fitted one is appended as ``-> v (patched)``.
    """
    if fixed:
        txt = f"{value:.6g} (fixed)"
    else:
        txt = uncertainty_to_string(value, uncertainty, precision)
    if patched is not None and patched != value:
        txt += f"  -> {patched:.6g} (patched)"
    return txt
