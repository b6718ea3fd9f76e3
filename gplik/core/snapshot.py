# gplik/core/snapshot.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Read-only view of the GP quantities a likelihood needs.

The GP/kernel layer computes, for its current hyperparameters, the
label matrix Y, the core matrix C = (K + sigma^2 I)^{-1} with the
determinant of K + sigma^2 I, and the stacked derivative kernel matrix
D. It hands them over as a `GaussianProcessSnapshot`; likelihoods
never reach into the GP object itself.
"""
from dataclasses import dataclass
from typing import Any, Optional

import gplik.num as gnp

ArrayLike = Any


@dataclass(frozen=True, eq=False)
class GaussianProcessSnapshot:
    """Quantities produced by the GP layer for one hyperparameter point.

    Attributes
    ----------
    label_matrix : ndarray, shape (n, m)
        Observed labels, one column per output. A 1-D array is taken
        as a single output.
    core_matrix : ndarray, shape (n, n)
        C = (K + sigma^2 I)^{-1}, symmetric.
    determinant : numpy.longdouble
        det(K + sigma^2 I). May be unreliable near the limits of the
        extended-precision range.
    derivative_kernel_matrix : ndarray, shape (P * n, n), optional
        Vertical stack of the P blocks dK/dtheta_p. Needed only for
        gradients, and only checked then.
    sigma : float, optional
        Observation noise standard deviation. Already folded into C
        and D; kept for reference.
    """

    label_matrix: ArrayLike
    core_matrix: ArrayLike
    determinant: Any
    derivative_kernel_matrix: Optional[ArrayLike] = None
    sigma: Optional[float] = None

    def __post_init__(self):
        C = gnp.readonly_copy(self.core_matrix)
        if C.ndim != 2 or C.shape[0] != C.shape[1] or C.shape[0] == 0:
            raise ValueError(
                "core_matrix must be a non-empty square 2D array, got shape {}".format(C.shape)
            )
        n = C.shape[0]

        Y = gnp.readonly_copy(self.label_matrix)
        if Y.ndim == 1:
            Y = Y.reshape(-1, 1)
        if Y.ndim != 2 or Y.shape[0] != n:
            raise ValueError(
                "label_matrix must have {} rows to match core_matrix, got shape {}".format(
                    n, Y.shape
                )
            )

        # D is checked by the likelihood, when a gradient is requested
        D = self.derivative_kernel_matrix
        if D is not None:
            D = gnp.readonly_copy(D)

        object.__setattr__(self, "core_matrix", C)
        object.__setattr__(self, "label_matrix", Y)
        object.__setattr__(self, "derivative_kernel_matrix", D)
        object.__setattr__(self, "determinant", gnp.as_high_precision(self.determinant))

    @property
    def n_samples(self):
        return self.core_matrix.shape[0]

    @property
    def n_outputs(self):
        return self.label_matrix.shape[1]

    @property
    def n_params(self):
        """Number of hyperparameters P, or None without derivatives.

        Not validated: a malformed derivative matrix is reported by the
        likelihood.
        """
        D = self.derivative_kernel_matrix
        if D is None or D.ndim != 2 or D.shape[1] == 0:
            return None
        return D.shape[0] // D.shape[1]

    def require_derivative_kernel_matrix(self):
        if self.derivative_kernel_matrix is None:
            raise ValueError("snapshot carries no derivative_kernel_matrix")
        return self.derivative_kernel_matrix


def as_snapshot(gp):
    """Return the snapshot for `gp`.

    Parameters
    ----------
    gp : GaussianProcessSnapshot or object
        Either a snapshot, or a GP object exposing a ``snapshot()``
        method that returns one.

    Returns
    -------
    GaussianProcessSnapshot
    """
    if isinstance(gp, GaussianProcessSnapshot):
        return gp
    snapshot = getattr(gp, "snapshot", None)
    if callable(snapshot):
        s = snapshot()
        if isinstance(s, GaussianProcessSnapshot):
            return s
        raise TypeError(
            "{}.snapshot() returned {}, expected a GaussianProcessSnapshot".format(
                type(gp).__name__, type(s).__name__
            )
        )
    raise TypeError(
        "expected a GaussianProcessSnapshot or an object with a snapshot() method, "
        "got {}".format(type(gp).__name__)
    )
