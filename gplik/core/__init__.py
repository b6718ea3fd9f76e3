# gplik/core/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------

"""
Core components of the gplik package.

This subpackage turns the quantities computed by a GP/kernel layer
(label matrix, core matrix and determinant, derivative kernel matrix)
into marginal likelihood values and hyperparameter gradients.

Public API
----------
GaussianProcessSnapshot : class
    Read-only quantities of a GP at one hyperparameter point.
Likelihood : class
    Likelihood interface.
GaussianLikelihood, GaussianLogLikelihood : class
    Gaussian marginal likelihood and log marginal likelihood.
make_selection_criterion_with_gradient, make_value_and_gradient : function
    Minimizer-ready criteria built from a likelihood.
"""

from .errors import (
    LikelihoodError,
    UnsupportedOperation,
    InvalidCovarianceState,
    ShapeMismatch,
    NonFiniteLikelihood,
)
from .snapshot import GaussianProcessSnapshot, as_snapshot
from .likelihood import Likelihood, GaussianLikelihood, GaussianLogLikelihood
from .criterion import make_selection_criterion_with_gradient, make_value_and_gradient

__all__ = [
    "LikelihoodError",
    "UnsupportedOperation",
    "InvalidCovarianceState",
    "ShapeMismatch",
    "NonFiniteLikelihood",
    "GaussianProcessSnapshot",
    "as_snapshot",
    "Likelihood",
    "GaussianLikelihood",
    "GaussianLogLikelihood",
    "make_selection_criterion_with_gradient",
    "make_value_and_gradient",
]
