import numpy as np
from compfit import Domain, Gaussian, Measures, Model, fit


# Two spectra of the same line, observed with different widths.
rng = np.random.default_rng(3)
x = np.linspace(-2, 2, 120)
sigma = 0.02
y1 = Model(Domain(x), g=Gaussian(1.0, 0.25, 0.3))() + rng.normal(0, sigma, x.size)
y2 = Model(Domain(x), g=Gaussian(1.8, 0.25, 0.6))() + rng.normal(0, sigma, x.size)

model = Model(Domain(x), g=Gaussian(1.0, 0.0, 0.5))
model.add_prediction(Domain(x), g=Gaussian(1.0, 0.0, 0.5))
model[2]["g"].center.fixed = True


@model.patch
def same_center(p):
    p[2]["g"].center = p[1]["g"].center


res = fit(model, [Measures(y1, sigma), Measures(y2, sigma)])
print(res.summary())
print("patched center of unit 2:", res[2]["g"].center.patched)

# Refit only the second spectrum, holding the first one.
res2 = fit(model, Measures(y2, sigma), unit=2)
print("restricted fit dof:", res2.dof)
