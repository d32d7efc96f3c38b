import numpy as np
from compfit import Constant, Domain, ExprReducer, FuncWrap, Measures, Model, fit


def decay(x, amplitude=1.0, rate=0.5):
    return amplitude * np.exp(-rate * x)


rng = np.random.default_rng(4)
x = np.linspace(0, 5, 80)
sigma = 0.01
y = 0.9 * (2.0 * np.exp(-1.2 * x) + 0.3) + rng.normal(0, sigma, x.size)

model = Model(Domain(x))
pred = model[1]
pred["signal"] = FuncWrap.from_function(decay)
pred["floor"] = 0.1
pred["efficiency"] = Constant(0.9, fixed=True)
pred["detected"] = ExprReducer(
    lambda d: d["efficiency"] * (d["signal"] + d["floor"]),
    names=["signal", "floor", "efficiency"],
)

res = fit(model, Measures(y, sigma))
print(res.summary())
for key, u in res.correlated().items():
    print(key, u)
