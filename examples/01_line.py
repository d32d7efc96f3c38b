import numpy as np
from compfit import Domain, Measures, Model, OffsetSlope, fit


rng = np.random.default_rng(0)
x = np.linspace(0, 10, 20)
sigma = 1.2
y = 2.0 * x - 1.0 + rng.normal(0, sigma, size=x.size)

model = Model(Domain(x), line=OffsetSlope(offset=0.0, slope=1.0))
res = fit(model, Measures(y, sigma))

print(res["line"].slope.value, "±", res["line"].slope.uncertainty)
print(res["line"].offset.value, "±", res["line"].offset.uncertainty)
print(res.summary())
