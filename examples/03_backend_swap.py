import numpy as np
from compfit import AVAILABLE_MINIMIZERS, Domain, Lorentzian, Measures, Model, Parameter, fit


rng = np.random.default_rng(2)
x = np.linspace(-3, 3, 150)
sigma = 0.03
truth = Model(Domain(x), line=Lorentzian(1.5, -0.4, 0.7))
data = Measures(truth() + rng.normal(0, sigma, size=x.size), sigma)

for name in AVAILABLE_MINIMIZERS:
    model = Model(
        Domain(x),
        line=Lorentzian(
            Parameter(1.0, low=0.1, high=5.0),
            Parameter(0.0, low=-2.0, high=2.0),
            Parameter(1.0, low=0.05, high=3.0),
        ),
    )
    res = fit(model, data, minimizer=name, minimizer_options={"seed": 0} if "evolution" in name else None)
    c = res["line"].center
    print(f"{name:>30s}: status={res.status.value} center={c.value:.4f} ± {c.uncertainty:.4f} cost={res.cost:.2f}")
