# gplik/core/criterion.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Selection criteria built from a likelihood, for use by a minimizer.
"""
import gplik.num as gnp
from .errors import UnsupportedOperation

_REDUCTIONS = ("sum", "mean")


def _check_reduction(reduction):
    if reduction not in _REDUCTIONS:
        raise ValueError("reduction must be 'sum' or 'mean'")


def _reduce(value, jacobian, reduction):
    if reduction == "mean":
        return -gnp.mean(value), -gnp.mean(jacobian, axis=0)
    return -gnp.sum(value), -gnp.sum(jacobian, axis=0)


def make_selection_criterion_with_gradient(likelihood, snapshot_fn, reduction="sum"):
    """
    Build the negative log-likelihood criterion and its gradient.

    Parameters
    ----------
    likelihood : gplik.core.Likelihood
        Likelihood with Jacobian support, typically
        `GaussianLogLikelihood`.
    snapshot_fn : callable
        ``snapshot_fn(theta)`` returns the `GaussianProcessSnapshot`
        (or a snapshot provider) of the GP at hyperparameters theta.
    reduction : {"sum", "mean"}, default="sum"
        How the per-output values are combined. "mean" averages value
        and gradient over the outputs.

    Returns
    -------
    criterion : callable
        ``criterion(theta) -> scalar``, the reduced negative value.
    gradient : callable
        ``gradient(theta) -> ndarray (P,)``, the gradient of
        `criterion`, i.e. the reduced negative Jacobian rows.

    Raises
    ------
    UnsupportedOperation
        If `likelihood` has no Jacobian.
    ValueError
        If `reduction` is unknown.

    Notes
    -----
    The gradient is built from `get_value_and_jacobian`, not from the
    pooled `get_parameter_derivatives`: with m > 1 outputs the pooled
    gradient differs from the sum of the Jacobian rows by
    0.5 (m - 1) tr(C D_p) and is not the derivative of the summed value.

    Likelihood errors raised during evaluation are not caught. A
    `NonFiniteLikelihood` means theta is infeasible and should be
    handled by the optimization driver.
    """
    _check_reduction(reduction)
    if not likelihood.supports_jacobian:
        raise UnsupportedOperation(likelihood.describe(), "get_value_and_jacobian")

    def criterion(theta):
        value = likelihood.evaluate(snapshot_fn(theta))
        if reduction == "mean":
            return -gnp.mean(value)
        return -gnp.sum(value)

    def gradient(theta):
        value, jacobian = likelihood.get_value_and_jacobian(snapshot_fn(theta))
        return _reduce(value, jacobian, reduction)[1]

    return criterion, gradient


def make_value_and_gradient(likelihood, snapshot_fn, reduction="sum"):
    """Build ``f(theta) -> (criterion, gradient)`` from one snapshot per call.

    Same conventions as `make_selection_criterion_with_gradient`, for
    minimizers that take value and gradient together (e.g.
    ``scipy.optimize.minimize(f, theta0, jac=True)``).
    """
    _check_reduction(reduction)
    if not likelihood.supports_jacobian:
        raise UnsupportedOperation(likelihood.describe(), "get_value_and_jacobian")

    def f(theta):
        value, jacobian = likelihood.get_value_and_jacobian(snapshot_fn(theta))
        return _reduce(value, jacobian, reduction)

    return f
