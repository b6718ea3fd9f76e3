import pytest
import gplik.num as gnp
from gplik.core import GaussianProcessSnapshot


class ToyGP:
    """Squared-exponential GP on fixed 1D inputs.

    Hyperparameters are theta = [log(sigma_f^2), log(rho)]; the noise
    sigma is fixed.
    """

    def __init__(self, x, y, theta, sigma=0.1):
        self.x = gnp.asarray(x).reshape(-1)
        self.y = gnp.asarray(y)
        self.theta = gnp.asarray(theta)
        self.sigma = sigma

    def kernel_matrices(self, theta):
        d2 = (self.x[:, None] - self.x[None, :]) ** 2
        sigma_f2 = gnp.exp(theta[0])
        rho2 = gnp.exp(2.0 * theta[1])
        Kf = sigma_f2 * gnp.exp(-0.5 * d2 / rho2)
        K = Kf + self.sigma**2 * gnp.eye(self.x.shape[0])
        dK_dlogsigma_f2 = Kf
        dK_dlogrho = Kf * d2 / rho2
        return K, gnp.vstack((dK_dlogsigma_f2, dK_dlogrho))

    def snapshot_at(self, theta):
        K, D = self.kernel_matrices(gnp.asarray(theta))
        C, determinant = gnp.inverse_with_determinant(K)
        return GaussianProcessSnapshot(
            label_matrix=self.y,
            core_matrix=C,
            determinant=determinant,
            derivative_kernel_matrix=D,
            sigma=self.sigma,
        )

    def snapshot(self):
        return self.snapshot_at(self.theta)


@pytest.fixture
def toy_gp():
    x = gnp.asarray([0.0, 0.15, 0.3, 0.5, 0.65, 0.8, 1.0])
    y = gnp.asarray([0.1, 0.8, 0.9, 0.05, -0.7, -0.95, -0.1])
    return ToyGP(x, y, theta=[0.2, -1.3])


@pytest.fixture
def toy_gp_multi():
    x = gnp.asarray([0.0, 0.15, 0.3, 0.5, 0.65, 0.8, 1.0])
    y = gnp.asarray(
        [
            [0.1, 1.0],
            [0.8, 0.7],
            [0.9, 0.2],
            [0.05, -0.4],
            [-0.7, -0.6],
            [-0.95, -0.3],
            [-0.1, 0.5],
        ]
    )
    return ToyGP(x, y, theta=[-0.1, -1.0])
