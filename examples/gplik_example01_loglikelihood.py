"""
Evaluate and maximize the log marginal likelihood of a GP

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import numpy as np
from scipy.optimize import minimize

import gplik.num as gnp
import gplik as gl
from gplik.core import make_value_and_gradient


def generate_data():
    """
    Data generation.

    Returns
    -------
    tuple
        (xi, zi): input dataset, zi has two outputs
    """
    rng = np.random.default_rng(0)
    ni = 20
    xi = np.sort(rng.uniform(-1.0, 1.0, ni))
    z1 = np.sin(3.0 * xi) + 0.05 * rng.standard_normal(ni)
    z2 = np.cos(2.0 * xi) + 0.05 * rng.standard_normal(ni)
    return xi, np.stack((z1, z2), axis=1)


class SquaredExponentialGP:
    """GP with covariance sigma_f^2 exp(-0.5 h^2 / rho^2) + sigma^2 I.

    covparam = [log(sigma_f^2), log(rho)]
    """

    def __init__(self, xi, zi, covparam, sigma=0.05):
        self.xi = gnp.asarray(xi)
        self.zi = gnp.asarray(zi)
        self.covparam = gnp.asarray(covparam)
        self.sigma = sigma

    def snapshot_at(self, covparam):
        h2 = (self.xi[:, None] - self.xi[None, :]) ** 2
        rho2 = gnp.exp(2.0 * covparam[1])
        Kf = gnp.exp(covparam[0]) * gnp.exp(-0.5 * h2 / rho2)
        K = Kf + self.sigma**2 * gnp.eye(self.xi.shape[0])
        C, determinant = gnp.inverse_with_determinant(K)
        D = gnp.vstack((Kf, Kf * h2 / rho2))
        return gl.GaussianProcessSnapshot(self.zi, C, determinant, D, self.sigma)

    def snapshot(self):
        return self.snapshot_at(self.covparam)


def main():
    xi, zi = generate_data()
    model = SquaredExponentialGP(xi, zi, covparam=[0.0, np.log(0.5)])

    lik = gl.GaussianLogLikelihood()
    value, jacobian = lik.get_value_and_jacobian(model)
    print(f"{lik.describe()} at initial covparam: {value}")
    print(f"Jacobian (outputs x parameters):\n{jacobian}")

    f = make_value_and_gradient(lik, model.snapshot_at)
    bounds = [(-5.0, 5.0), (-4.0, 1.0)]
    r = minimize(f, model.covparam, jac=True, method="L-BFGS-B", bounds=bounds)
    r.initial_criterion = f(model.covparam)[0]
    model.covparam = gnp.asarray(r.x)

    print(f"Selected covparam: {model.covparam}")
    print(f"{lik.describe()} at selected covparam: {lik(model)}")
    print(f"Gradient of the criterion at selected covparam: {f(model.covparam)[1]}")

    p = gl.GaussianLikelihood().evaluate(model)
    print(f"GaussianLikelihood at selected covparam: {p}")
    return model, r


if __name__ == "__main__":
    main()
