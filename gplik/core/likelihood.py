# gplik/core/likelihood.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Gaussian marginal likelihoods of a GP and their hyperparameter gradients.

With C = (K + sigma^2 I)^{-1}, det = det(K + sigma^2 I), n training
points and labels y, the log marginal likelihood is

    log p(y) = -0.5 y' C y - 0.5 log(det) - n/2 log(2 pi),

and its derivative with respect to a kernel hyperparameter theta_p is

    d log p(y) / d theta_p = 0.5 tr((alpha alpha' - C) dK/dtheta_p),

with alpha = C y. The likelihood objects below turn the quantities held
by a `GaussianProcessSnapshot` into these values. The determinant is
handled in extended precision and clamped at the ends of its range, so
that an optimizer never receives log(0) or log(inf).
"""
import gplik.num as gnp
from gplik.config import get_logger
from .errors import (
    UnsupportedOperation,
    InvalidCovarianceState,
    ShapeMismatch,
    NonFiniteLikelihood,
)
from .snapshot import as_snapshot

_logger = get_logger()


# ---------------------------------------------------------------------
# Terms
# ---------------------------------------------------------------------
def data_fit_term(Y, C):
    """Return -0.5 * Y_i' C Y_i for every column Y_i of Y.

    Parameters
    ----------
    Y : ndarray, shape (n, m)
        Label matrix.
    C : ndarray, shape (n, n)
        Core matrix.

    Returns
    -------
    df : ndarray, shape (m,)
    """
    return -0.5 * gnp.einsum("ki,kl,li->i", Y, C, Y)


def gaussian_complexity_penalty(determinant, name="GaussianLikelihood"):
    """Return 1 / sqrt(det), in extended precision.

    Parameters
    ----------
    determinant : numpy.longdouble
        det(K + sigma^2 I).
    name : str
        Name used in the error message.

    Returns
    -------
    cp : numpy.longdouble

    Raises
    ------
    InvalidCovarianceState
        If the determinant is below -eps. Values in [-eps, 0] are
        round-off and saturate to 1 / sqrt(tiny).
    """
    determinant = gnp.as_high_precision(determinant)
    if determinant < -gnp.hp_eps:
        raise InvalidCovarianceState(name, determinant)
    if determinant <= 0:
        return 1.0 / gnp.sqrt(gnp.hp_tiny)
    return 1.0 / gnp.sqrt(determinant)


def gaussian_log_complexity_penalty(determinant):
    """Return -0.5 * log(det), with det clamped to [tiny, max].

    Parameters
    ----------
    determinant : numpy.longdouble
        det(K + sigma^2 I).

    Returns
    -------
    cp : numpy.longdouble
    """
    determinant = gnp.as_high_precision(determinant)
    if determinant <= gnp.hp_tiny:
        return -0.5 * gnp.log(gnp.hp_tiny)
    elif determinant > gnp.hp_max:
        return -0.5 * gnp.log(gnp.hp_max)
    return -0.5 * gnp.log(determinant)


def gaussian_constant_term(n):
    """Return 1 / (2 pi)^(n/2)."""
    return 1.0 / gnp.as_high_precision(2.0 * gnp.pi) ** (n / 2.0)


def gaussian_log_constant_term(n):
    """Return -(n/2) log(2 pi)."""
    return -n / 2.0 * gnp.log(2.0 * gnp.pi)


def split_derivative_blocks(D, n=None, name="GaussianLogLikelihood"):
    """View the stacked derivative kernel matrix as P square blocks.

    Parameters
    ----------
    D : ndarray, shape (P * n, n)
        Vertical stack of dK/dtheta_p.
    n : int, optional
        Expected block size, the number of training points.
    name : str
        Name used in the error message.

    Returns
    -------
    blocks : ndarray, shape (P, n, n)
        blocks[p] is dK/dtheta_p.

    Raises
    ------
    ShapeMismatch
        If the number of rows of D is not a multiple of its number of
        columns.
    ValueError
        If D is not 2D, or if its blocks are not n x n.
    """
    if D.ndim != 2:
        raise ValueError(
            "{}: derivative kernel matrix must be 2D, got shape {}".format(name, D.shape)
        )
    rows, cols = D.shape
    if cols == 0 or rows % cols != 0:
        raise ShapeMismatch(name, D.shape)
    if n is not None and cols != n:
        raise ValueError(
            "{}: derivative kernel matrix has {} columns, expected {}".format(name, cols, n)
        )
    return D.reshape(rows // cols, cols, cols)


# ---------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------
class Likelihood:
    """Likelihood of a GP given its data, as a function of the kernel
    hyperparameters.

    Every operation takes `gp`, which is either a
    `GaussianProcessSnapshot` or a GP object with a ``snapshot()``
    method. Likelihoods hold no state, so one instance can be shared by
    concurrent evaluations of independent snapshots.

    Subclasses implement `evaluate` and whichever of the gradient
    operations they support, and set the matching capability flags.
    Unsupported operations raise `UnsupportedOperation`.

    Public API (methods)
    --------------------
    evaluate
        Value, one entry per output.
    get_parameter_derivatives
        Gradient w.r.t. the hyperparameters, pooled over outputs.
    get_value_and_parameter_derivatives
        Both of the above from a single snapshot.
    get_value_and_jacobian
        Value and one gradient row per output.
    describe
        Human-readable name.
    """

    name = "Likelihood"
    supports_gradient = False
    supports_jacobian = False

    def __call__(self, gp):
        return self.evaluate(gp)

    def __repr__(self):
        output = str("<gplik.core." + type(self).__name__ + " object> " + hex(id(self)))
        return output

    def __str__(self):
        return self.describe()

    def describe(self):
        return self.name

    def evaluate(self, gp):
        raise UnsupportedOperation(self.name, "evaluate")

    def get_parameter_derivatives(self, gp):
        raise UnsupportedOperation(self.name, "get_parameter_derivatives")

    def get_value_and_parameter_derivatives(self, gp):
        raise UnsupportedOperation(self.name, "get_value_and_parameter_derivatives")

    def get_value_and_jacobian(self, gp):
        raise UnsupportedOperation(self.name, "get_value_and_jacobian")

    # ------------------------------------------------------------------
    # Access to the GP quantities. Pure pass-throughs to the snapshot.
    # ------------------------------------------------------------------
    def _get_label_matrix(self, gp):
        return as_snapshot(gp).label_matrix

    def _get_core_matrix(self, gp):
        """Return (C, determinant of K + sigma^2 I)."""
        s = as_snapshot(gp)
        return s.core_matrix, s.determinant

    def _get_derivative_kernel_matrix(self, gp):
        return as_snapshot(gp).require_derivative_kernel_matrix()

    def _get_sigma(self, gp):
        return as_snapshot(gp).sigma


# ---------------------------------------------------------------------
# Gaussian likelihood
# ---------------------------------------------------------------------
class GaussianLikelihood(Likelihood):
    """Marginal likelihood p(y) of a GP with Gaussian noise.

    No gradient is available; use `GaussianLogLikelihood` for
    hyperparameter optimization.
    """

    name = "GaussianLikelihood"

    def evaluate(self, gp):
        """Return p(Y_i) for every output i.

        Parameters
        ----------
        gp : GaussianProcessSnapshot or snapshot provider

        Returns
        -------
        value : ndarray, shape (m,)
            In float64. The product is formed in extended precision and
            then cast, so it underflows to 0 once p(Y_i) < float64 tiny,
            which (2 pi)^(-n/2) alone reaches near n = 800. Use
            `GaussianLogLikelihood` beyond that range.

        Raises
        ------
        InvalidCovarianceState
            If the determinant is negative beyond machine epsilon.
        """
        gp = as_snapshot(gp)
        Y = self._get_label_matrix(gp)
        C, determinant = self._get_core_matrix(gp)

        df = gnp.exp(data_fit_term(Y, C))
        cp = gaussian_complexity_penalty(determinant, self.name)
        ct = gaussian_constant_term(C.shape[0])

        # 1/sqrt(tiny) is beyond the float64 range
        return gnp.minimum(df * cp * ct, gnp.fmax).astype(gnp.float64)


# ---------------------------------------------------------------------
# Gaussian log-likelihood
# ---------------------------------------------------------------------
class GaussianLogLikelihood(Likelihood):
    """Log marginal likelihood log p(y) of a GP with Gaussian noise,
    with analytic derivatives w.r.t. the kernel hyperparameters.

    The gradient is pooled over outputs: alpha = C Y is formed with all
    the columns of Y at once, and C is subtracted once,

        grad_p = 0.5 tr((alpha alpha' - C) D_p).

    For one gradient per output, use `get_value_and_jacobian`.

    Examples
    --------
    >>> import gplik.num as gnp
    >>> from gplik.core import GaussianProcessSnapshot, GaussianLogLikelihood
    >>> gp = GaussianProcessSnapshot(
    ...     label_matrix=gnp.ones((2, 1)),
    ...     core_matrix=gnp.eye(2),
    ...     determinant=1.0,
    ...     derivative_kernel_matrix=gnp.eye(2),
    ... )
    >>> value, grad = GaussianLogLikelihood().get_value_and_parameter_derivatives(gp)
    """

    name = "GaussianLogLikelihood"
    supports_gradient = True
    supports_jacobian = True

    def _value(self, Y, C, determinant):
        df = data_fit_term(Y, C)
        cp = gaussian_log_complexity_penalty(determinant)
        ct = gaussian_log_constant_term(C.shape[0])

        value = (df + (cp + ct)).astype(gnp.float64)
        if not gnp.isfinite(gnp.sum(value)):
            _logger.debug(
                "df: %s, cp: %s, ct: %s, determinant: %s", df, cp, ct, determinant
            )
            raise NonFiniteLikelihood(self.name, df, cp, ct, determinant)
        return value

    def _derivatives(self, Y, C, D):
        blocks = split_derivative_blocks(D, C.shape[0], self.name)
        alpha = gnp.matmul(C, Y)
        # tr((alpha alpha' - C) D_p) = sum_i alpha_i' D_p alpha_i - tr(C D_p)
        trCD = gnp.einsum("kl,plk->p", C, blocks)
        aDa = gnp.einsum("ki,plk,li->p", alpha, blocks, alpha)
        return 0.5 * (aDa - trCD)

    def _jacobian(self, Y, C, D):
        blocks = split_derivative_blocks(D, C.shape[0], self.name)
        alpha = gnp.matmul(C, Y)
        trCD = gnp.einsum("kl,plk->p", C, blocks)
        aDa = gnp.einsum("ki,plk,li->ip", alpha, blocks, alpha)
        return 0.5 * (aDa - trCD[None, :])

    def evaluate(self, gp):
        """Return log p(Y_i) for every output i.

        Parameters
        ----------
        gp : GaussianProcessSnapshot or snapshot provider

        Returns
        -------
        value : ndarray, shape (m,)

        Raises
        ------
        NonFiniteLikelihood
            If the sum of the values is not finite.
        """
        gp = as_snapshot(gp)
        Y = self._get_label_matrix(gp)
        C, determinant = self._get_core_matrix(gp)
        return self._value(Y, C, determinant)

    def get_parameter_derivatives(self, gp):
        """Return the gradient of the log-likelihood, shape (P,).

        Raises
        ------
        ShapeMismatch
            If the derivative kernel matrix is not a stack of square
            blocks.
        """
        gp = as_snapshot(gp)
        Y = self._get_label_matrix(gp)
        C, _ = self._get_core_matrix(gp)
        D = self._get_derivative_kernel_matrix(gp)
        return self._derivatives(Y, C, D)

    def get_value_and_parameter_derivatives(self, gp):
        """Return (value, gradient) computed from one snapshot."""
        gp = as_snapshot(gp)
        Y = self._get_label_matrix(gp)
        C, determinant = self._get_core_matrix(gp)
        value = self._value(Y, C, determinant)
        D = self._get_derivative_kernel_matrix(gp)
        return value, self._derivatives(Y, C, D)

    def get_value_and_jacobian(self, gp):
        """Return (value, jacobian), jacobian of shape (m, P).

        Row i is the gradient of log p(Y_i) w.r.t. the hyperparameters.
        """
        gp = as_snapshot(gp)
        Y = self._get_label_matrix(gp)
        C, determinant = self._get_core_matrix(gp)
        value = self._value(Y, C, determinant)
        D = self._get_derivative_kernel_matrix(gp)
        return value, self._jacobian(Y, C, D)
