import numpy as np
from compfit import Domain, Gaussian, Measures, Model, Polynomial, SumReducer, fit


rng = np.random.default_rng(1)
x = np.linspace(-5, 5, 200)
sigma = 0.05

truth = Model(Domain(x), peak=Gaussian(3.0, 0.8, 0.6), bg=Polynomial(0.4, 0.05, -0.01))
y = truth() + rng.normal(0, sigma, size=x.size)

model = Model(Domain(x), peak=Gaussian(2.0, 0.5, 0.8), bg=Polynomial(0.0, 0.0, 0.0))
model["total"] = SumReducer(["peak", "bg"])
data = Measures(y, sigma)

# Fit the background alone first, then release the peak.
model.freeze("peak")
res = fit(model, data)
print("background only: cost =", res.cost)

model.thaw("peak")
res = fit(model, data)
print(res.summary())

peak = res["peak"]
print(f"center = {peak.center.u:P}")
print("peak-only buffer max:", model(1, "peak").max())
