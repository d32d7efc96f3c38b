from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
)
from warnings import warn

import numpy as np

from .components import Component, Constant
from .errors import ConfigurationError
from .evaluator import CompEval, ReducerEval
from .params import CompParamID, Parameter, ParamID
from .reducers import Reducer, SumReducer

log = logging.getLogger(__name__)

PatchFunction = Callable[["PatchState"], None]

DEFAULT_REDUCER = "default_sum"


# ---- patch views -------------------------------------------------------------


class PatchComponent:
    """Name-indexed read/write view of one component's slice of the patched vector.

    Scalar parameters read and write as floats; vector parameters are numpy
    views (0-based) into the same vector. Writing never changes the vector
    length. Reading an unknown name raises ConfigurationError; writing one
    logs a warning and is ignored.
    """

    def __init__(self, label: str, vector: np.ndarray, offset: int,
                 pids: Tuple[ParamID, ...]):
        index: Dict[str, Any] = {}
        for i, pid in enumerate(pids):
            pos = offset + i
            if pid.index == 0:
                index[pid.name] = pos
            else:
                start, _ = index.get(pid.name, (pos, pos))
                index[pid.name] = (start, pos + 1)
        object.__setattr__(self, "_label", label)
        object.__setattr__(self, "_vector", vector)
        object.__setattr__(self, "_index", index)

    def keys(self) -> Tuple[str, ...]:
        return tuple(self._index.keys())

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __setattr__(self, name: str, value: Any) -> None:
        self[name] = value

    def __getitem__(self, name: str) -> Any:
        try:
            pos = self._index[name]
        except KeyError:
            raise ConfigurationError(
                f"Component {self._label} has no parameter named {name!r}"
            ) from None
        if isinstance(pos, tuple):
            return self._vector[pos[0]:pos[1]]
        return float(self._vector[pos])

    def __setitem__(self, name: str, value: Any) -> None:
        pos = self._index.get(name)
        if pos is None:
            log.warning("patch: component %s has no parameter %r; ignored", self._label, name)
            return
        if isinstance(pos, tuple):
            self._vector[pos[0]:pos[1]] = value
        else:
            self._vector[pos] = value

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={self[k]!r}" for k in self._index)
        return f"PatchComponent({self._label}: {inner})"


class PatchUnit(Mapping[str, PatchComponent]):
    """Component-name -> PatchComponent mapping for one prediction unit."""

    def __init__(self, unit: int, items: Mapping[str, PatchComponent]):
        self.unit = unit
        self._items = dict(items)

    def __getitem__(self, cname: str) -> PatchComponent:
        try:
            return self._items[cname]
        except KeyError:
            raise ConfigurationError(
                f"Prediction {self.unit} has no component named {cname!r}"
            ) from None

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


class PatchState:
    """Argument handed to patch functions.

    ``p[2]["line"]`` addresses component ``line`` of unit 2. When the model
    has a single unit, ``p["line"]`` is a shortcut for ``p[1]["line"]``.
    """

    def __init__(self, units: List[PatchUnit]):
        self._units = units

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, str):
            if len(self._units) != 1:
                raise ConfigurationError(
                    f"Model has {len(self._units)} units; use p[unit][{key!r}]."
                )
            return self._units[0][key]
        if not 1 <= key <= len(self._units):
            raise ConfigurationError(f"No prediction unit {key!r}.")
        return self._units[key - 1]

    def __len__(self) -> int:
        return len(self._units)


# ---- prediction unit ---------------------------------------------------------


class Prediction:
    """Components and reducers evaluated on one domain.

    Created through :meth:`Model.add_prediction`. When the construction
    items hold no reducer, the output is an implicit ``default_sum`` of the
    components given there; like any slurping reducer it is wired once and
    ignores components added later. The first explicit reducer replaces it
    and becomes the selected output.
    """

    def __init__(self, model: "Model", domain: Any, index: int):
        self._model = model
        self.domain = domain
        self.index = index
        self.cevals: Dict[str, CompEval] = {}
        self.revals: Dict[str, ReducerEval] = {}
        self.rsel: Optional[str] = None
        self._implicit_default = False

    # ---- registration ----
    def __setitem__(self, name: str, item: Any) -> None:
        self.add(name, item)

    def add(self, name: str, item: Any) -> "Prediction":
        """Register a component, a reducer, or a number (wrapped into Constant)."""
        if not isinstance(name, str) or not name:
            raise TypeError("Component and reducer names must be non-empty strings.")
        if isinstance(item, (int, float, np.number)) and not isinstance(item, bool):
            item = Constant(float(item))
        if isinstance(item, Reducer):
            self._add_reducer(name, item)
        elif isinstance(item, Component):
            self._add_component(name, item)
        else:
            raise TypeError(
                f"Cannot register {type(item).__name__!r}: expected a Component, "
                "a Reducer or a number."
            )
        self._model.evaluate()
        return self

    def _add_component(self, name: str, comp: Component) -> None:
        if name in self.cevals or name in self.revals:
            raise ConfigurationError(
                f"Name {name!r} is already used in prediction {self.index}."
            )
        ceval = CompEval(comp, self.domain)
        # Bring the new buffer up to date before any reducer reads it.
        ceval.evaluate_cached(ceval.current_values())
        self.cevals[name] = ceval

    def _add_default_reducer(self) -> None:
        """Install ``default_sum`` over the current components if there is no reducer."""
        if self.revals or not self.cevals:
            return
        self.revals[DEFAULT_REDUCER] = self._make_reducer(SumReducer())
        self._implicit_default = True
        self.rsel = DEFAULT_REDUCER

    def _add_reducer(self, name: str, red: Reducer) -> None:
        if name in self.cevals:
            raise ConfigurationError(
                f"Name {name!r} is already used as a component in prediction {self.index}."
            )
        skip = {name}
        if self._implicit_default:
            skip.add(DEFAULT_REDUCER)
        reval = self._make_reducer(red, skip)
        if self._implicit_default:
            del self.revals[DEFAULT_REDUCER]
            self._implicit_default = False
            self.rsel = None
        if name in self.revals:
            warn(f"Replacing reducer {name!r} in prediction {self.index}.", UserWarning)
        self.revals[name] = reval
        if self.rsel is None:
            self.rsel = name

    def _make_reducer(self, red: Reducer, skip: Iterable[str] = ()) -> ReducerEval:
        """Resolve the source names of ``red`` (slurping happens here, once) and wire it."""
        if red.slurp:
            names = list(self.cevals)
            if red.slurp_reducers:
                skip = set(skip)
                names += [n for n in self.revals if n not in skip]
        else:
            names = list(red.names)
        reval = ReducerEval(red, self.domain, tuple(names), self.buffers())
        reval.update()
        return reval

    def select_reducer(self, name: str) -> None:
        if name not in self.revals:
            raise KeyError(f"{name!r} is not a reducer name")
        self.rsel = name

    # ---- accessors ----
    def buffers(self) -> Dict[str, np.ndarray]:
        out = {n: c.buffer for n, c in self.cevals.items()}
        out.update({n: r.buffer for n, r in self.revals.items()})
        return out

    def __getitem__(self, name: str) -> Any:
        if name in self.cevals:
            return self.cevals[name].comp
        if name in self.revals:
            return self.revals[name].reducer
        raise KeyError(f"Name {name!r} not defined in prediction {self.index}")

    def __contains__(self, name: object) -> bool:
        return name in self.cevals or name in self.revals

    @property
    def components(self) -> Tuple[str, ...]:
        return tuple(self.cevals)

    @property
    def reducers(self) -> Tuple[str, ...]:
        return tuple(self.revals)

    @property
    def selected(self) -> Optional[str]:
        return self.rsel

    def __call__(self, name: Optional[str] = None) -> np.ndarray:
        """Return the selected output buffer, or the buffer of ``name``."""
        if name is None:
            if self.rsel is None:
                raise ConfigurationError(f"Prediction {self.index} has no reducer.")
            return self.revals[self.rsel].buffer
        try:
            return self.buffers()[name]
        except KeyError:
            raise KeyError(f"Name {name!r} not defined in prediction {self.index}") from None

    # ---- freezing ----
    def _ceval(self, name: str) -> CompEval:
        try:
            return self.cevals[name]
        except KeyError:
            raise KeyError(f"Component {name!r} is not defined") from None

    def freeze(self, name: str) -> None:
        ceval = self._ceval(name)
        ceval.fixed = max(ceval.fixed, 1)
        self._model.evaluate()

    def thaw(self, name: str) -> None:
        self._ceval(name).fixed = 0
        self._model.evaluate()

    def is_frozen(self, name: str) -> bool:
        return self._ceval(name).frozen

    # ---- evaluation ----
    def rewire(self) -> None:
        bufs = self.buffers()
        for reval in self.revals.values():
            reval.rewire(bufs)

    def reduce(self) -> None:
        """Run every reducer in registration order; the selected one runs last."""
        for rname, reval in self.revals.items():
            if rname != self.rsel:
                reval.update()
        if self.rsel is not None:
            self.revals[self.rsel].update()

    def __repr__(self) -> str:
        return (
            f"Prediction({self.index}, domain={self.domain!r}, "
            f"components={list(self.cevals)}, reducers={list(self.revals)}, "
            f"selected={self.rsel!r})"
        )


# ---- aggregate model ---------------------------------------------------------


class Model:
    """One or more prediction units sharing a flattened parameter vector.

    ``Model(domain, a=Gaussian(...), b=2.0)`` builds a single-unit model;
    further units are added with :meth:`add_prediction`. Units are indexed
    from 1.

    Evaluation state
    ----------------
    pvalues : raw parameter values in flat order (unit, component, parameter)
    patched : ``pvalues`` after patch functions ran; what components observe
    """

    def __init__(self, domain: Any = None, items: Optional[Mapping[str, Any]] = None,
                 **kw_items: Any):
        self.predictions: List[Prediction] = []
        self._patchfuncs: List[PatchFunction] = []
        self.pvalues = np.empty(0)
        self.patched = np.empty(0)
        self._keys: List[CompParamID] = []
        self._flat_params: List[Parameter] = []
        self._slices: List[Tuple[CompEval, slice]] = []
        self._patch_state = PatchState([])
        if domain is not None:
            self.add_prediction(domain, items, **kw_items)

    # ---- structure ----
    def add_prediction(self, domain: Any, items: Optional[Mapping[str, Any]] = None,
                       **kw_items: Any) -> Prediction:
        pred = Prediction(self, domain, len(self.predictions) + 1)
        self.predictions.append(pred)
        merged = dict(items or {})
        for k, v in kw_items.items():
            if k in merged:
                raise ConfigurationError(f"Name {k!r} given twice.")
            merged[k] = v
        for name, item in merged.items():
            pred.add(name, item)
        pred._add_default_reducer()
        self.evaluate()
        return pred

    def patch(self, func: PatchFunction) -> PatchFunction:
        """Append a patch function; usable as a decorator.

        Patch functions run in registration order before every evaluation and
        see each other's writes.
        """
        self._patchfuncs.append(func)
        try:
            self.evaluate()
        except Exception:
            self._patchfuncs.pop()
            raise
        return func

    @property
    def patch_functions(self) -> Tuple[PatchFunction, ...]:
        return tuple(self._patchfuncs)

    def clear_patches(self) -> None:
        self._patchfuncs.clear()
        self.evaluate()

    # ---- accessors ----
    def __len__(self) -> int:
        return len(self.predictions)

    def _single(self) -> Prediction:
        if len(self.predictions) != 1:
            raise KeyError(
                f"Model has {len(self.predictions)} prediction units; index by unit first."
            )
        return self.predictions[0]

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, str):
            return self._single()[key]
        if not isinstance(key, (int, np.integer)) or not 1 <= key <= len(self.predictions):
            raise KeyError(f"No prediction unit {key!r}")
        return self.predictions[key - 1]

    def __setitem__(self, name: str, item: Any) -> None:
        self._single().add(name, item)

    def __call__(self, unit: int = 1, name: Optional[str] = None) -> np.ndarray:
        return self[unit](name)

    def parameters(self) -> Dict[CompParamID, Parameter]:
        """Ordered global parameter map, in flat-vector order."""
        out: Dict[CompParamID, Parameter] = {}
        for pred in self.predictions:
            for cname, ceval in pred.cevals.items():
                for pid, par in ceval.params.items():
                    out[CompParamID(pred.index, cname, pid)] = par
        return out

    @property
    def keys(self) -> Tuple[CompParamID, ...]:
        """Flat-vector order of the last rebuild."""
        return tuple(self._keys)

    def flat_parameters(self) -> Tuple[Parameter, ...]:
        """Parameters in flat-vector order of the last rebuild."""
        return tuple(self._flat_params)

    def free_mask(self) -> np.ndarray:
        """Boolean mask over the flat vector: not fixed and owning component not frozen."""
        mask = np.zeros(len(self._keys), dtype=bool)
        for ceval, sl in self._slices:
            if ceval.frozen:
                continue
            for i in range(sl.start, sl.stop):
                mask[i] = not self._flat_params[i].fixed
        return mask

    def comp_evals(self) -> Iterator[Tuple[int, str, CompEval]]:
        for pred in self.predictions:
            for cname, ceval in pred.cevals.items():
                yield pred.index, cname, ceval

    def freeze(self, name: str, unit: int = 1) -> None:
        self[unit].freeze(name)

    def thaw(self, name: str, unit: int = 1) -> None:
        self[unit].thaw(name)

    def is_frozen(self, name: str, unit: int = 1) -> bool:
        return self[unit].is_frozen(name)

    @contextmanager
    def hold_other_units(self, unit: int) -> Iterator[None]:
        """Temporarily freeze every component outside ``unit``.

        Nests with user freezes: a component frozen before entering stays
        frozen after leaving.
        """
        held = [c for u, _, c in self.comp_evals() if u != unit]
        for ceval in held:
            ceval.fixed += 1
        try:
            yield
        finally:
            for ceval in held:
                ceval.fixed = max(0, ceval.fixed - 1)

    # ---- evaluation ----
    def rebuild(self) -> None:
        """Re-derive the flat vectors, per-component slices and patch views."""
        keys: List[CompParamID] = []
        flat: List[Parameter] = []
        slices: List[Tuple[CompEval, slice]] = []
        for uid, cname, ceval in self.comp_evals():
            start = len(flat)
            for pid, par in ceval.params.items():
                keys.append(CompParamID(uid, cname, pid))
                flat.append(par)
            slices.append((ceval, slice(start, len(flat))))

        self._keys = keys
        self._flat_params = flat
        self._slices = slices
        self.pvalues = np.fromiter((p.value for p in flat), dtype=float, count=len(flat))
        self.patched = self.pvalues.copy()

        units: List[PatchUnit] = []
        i = 0
        for pred in self.predictions:
            comps: Dict[str, PatchComponent] = {}
            for cname, ceval in pred.cevals.items():
                pids = tuple(ceval.params.keys())
                comps[cname] = PatchComponent(f"[{pred.index}].{cname}", self.patched, i, pids)
                i += len(pids)
            units.append(PatchUnit(pred.index, comps))
            pred.rewire()
        self._patch_state = PatchState(units)
        assert len(self.pvalues) == len(self.patched) == len(self._keys)
        log.debug(
            "rebuilt model: %d parameter(s) across %d unit(s)",
            len(self._keys),
            len(self.predictions),
        )

    def patch_params(self) -> None:
        np.copyto(self.patched, self.pvalues)
        for func in self._patchfuncs:
            func(self._patch_state)

    def quick_evaluate(self) -> None:
        """Patch and re-evaluate using the current flat vector (no rebuild)."""
        self.patch_params()
        for ceval, sl in self._slices:
            ceval.evaluate_cached(self.patched[sl])
        for pred in self.predictions:
            pred.reduce()

    def evaluate(self) -> "Model":
        """Rebuild from the current Parameter values, then evaluate."""
        self.rebuild()
        self.quick_evaluate()
        return self

    def set_values(self, values: np.ndarray, index: Optional[np.ndarray] = None) -> None:
        """Write values into the flat vector and the owning Parameters."""
        values = np.asarray(values, dtype=float)
        if index is None:
            index = np.arange(len(self._flat_params))
        self.pvalues[index] = values
        for i, v in zip(np.asarray(index).tolist(), values.tolist()):
            self._flat_params[i].value = v

    def patched_values(self) -> Dict[CompParamID, float]:
        return dict(zip(self._keys, self.patched.tolist()))

    def __repr__(self) -> str:
        return f"Model(units={len(self.predictions)}, parameters={len(self._keys)})"
