# gplik/core/errors.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Exceptions raised by likelihood evaluations.

None of these are caught inside gplik. Each one derives from the
builtin exception closest in meaning, so ``except ValueError`` style
handlers in calling code keep working.
"""


class LikelihoodError(Exception):
    """Base class of all likelihood evaluation errors."""


class UnsupportedOperation(LikelihoodError, NotImplementedError):
    def __init__(self, likelihood, operation):
        self.likelihood = likelihood
        self.operation = operation
        message = "{}: {} is not implemented.".format(likelihood, operation)
        super().__init__(message)


class InvalidCovarianceState(LikelihoodError, ValueError):
    """The determinant of K + sigma^2 I is negative beyond round-off."""

    def __init__(self, likelihood, determinant):
        self.determinant = determinant
        message = (
            "{}: determinant of K is smaller than zero: {} "
            "(core matrix is not positive semi-definite)".format(likelihood, determinant)
        )
        super().__init__(message)


class ShapeMismatch(LikelihoodError, ValueError):
    def __init__(self, likelihood, shape):
        self.shape = tuple(shape)
        message = (
            "{}: wrong dimension of derivative kernel matrix: {} rows is not "
            "a multiple of {} columns.".format(likelihood, self.shape[0], self.shape[1])
        )
        super().__init__(message)


class NonFiniteLikelihood(LikelihoodError, ArithmeticError):
    """The log-likelihood is not finite at the current hyperparameters.

    Attributes
    ----------
    df : ndarray
        Data-fit term, one entry per output.
    cp : numpy.longdouble
        Complexity penalty after clamping.
    ct : float
        Constant term.
    determinant : numpy.longdouble
        Determinant as received from the GP layer.
    """

    def __init__(self, likelihood, df, cp, ct, determinant):
        self.df = df
        self.cp = cp
        self.ct = ct
        self.determinant = determinant
        message = (
            "{}: likelihood is not finite (df: {}, cp: {}, ct: {}, "
            "determinant: {}).".format(likelihood, df, cp, ct, determinant)
        )
        super().__init__(message)
