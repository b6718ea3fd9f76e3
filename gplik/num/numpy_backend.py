# gplik/num/numpy_backend.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""NumPy numerical backend for GPlik.

This module defines the NumPy implementation of the gplik.num API,
including the extended-precision type used for determinants.
"""

from typing import Any, Tuple
from gplik.config import get_config, init_backend, get_logger

ArrayLike = Any

_gplik_backend_: str = init_backend()
_config = get_config()
_logger = get_logger()
_logger.debug("Using backend: %s", _gplik_backend_)


# -----------------------------------------------------
#
#                      NUMPY
#
# -----------------------------------------------------

import numpy
from numpy.typing import NDArray

_np_dtype = numpy.float64
_config.dtype_resolved = _np_dtype

ndarray = NDArray[numpy.floating]
from numpy import (
    copy,
    isinf,
    isfinite,
    isclose,
    allclose,
    vstack,
    arange,
    sqrt,
    exp,
    log,
    sum,
    mean,
    einsum,
    matmul,
    trace,
    all,
    minimum,
)
from numpy.linalg import LinAlgError
from numpy import pi, inf, nan
from numpy import finfo, float64, longdouble
from scipy.linalg import cho_factor, cho_solve

# ..................................................

eps = finfo(_np_dtype).eps
fmax = finfo(_np_dtype).max

# Extended precision used for determinants. On x86-64 Linux this is the
# 80-bit x87 type; elsewhere numpy may alias it to float64.
hp_dtype = longdouble
hp_eps = finfo(longdouble).eps
hp_tiny = finfo(longdouble).tiny
hp_max = finfo(longdouble).max

# ..................................................

def array(x, dtype=None):
    if dtype is not None:
        return numpy.array(x, dtype=dtype)
    out = numpy.array(x)
    if numpy.issubdtype(out.dtype, numpy.floating) or numpy.issubdtype(
        out.dtype, numpy.integer
    ):
        return out.astype(_np_dtype, copy=False)
    return out

def asarray(x, dtype=None):
    if dtype is not None:
        return numpy.asarray(x, dtype=dtype)
    if isinstance(x, numpy.ndarray):
        if numpy.issubdtype(x.dtype, numpy.floating):
            return x.astype(_np_dtype, copy=False)
        return x
    elif isinstance(x, (int, float)):
        dt = _np_dtype if isinstance(x, float) else None
        return numpy.array([x], dtype=dt)
    else:
        out = numpy.asarray(x)
        if numpy.issubdtype(out.dtype, numpy.floating):
            return out.astype(_np_dtype, copy=False)
        return out

def zeros(shape, dtype=None):
    return numpy.zeros(shape, dtype=_np_dtype if dtype is None else dtype)

def ones(shape, dtype=None):
    return numpy.ones(shape, dtype=_np_dtype if dtype is None else dtype)

def eye(n, m=None, k=0, dtype=None):
    return numpy.eye(n, M=m, k=k, dtype=_np_dtype if dtype is None else dtype)

def as_high_precision(x):
    """Return x as a numpy.longdouble scalar."""
    return longdouble(x)

def to_scalar(x):
    return x.item()

def readonly_copy(x):
    """Copy x into a working-dtype array that cannot be written to."""
    out = array(x)
    out.setflags(write=False)
    return out

# ..................................................

def cholesky_solve(A, b):
    c_and_lower = cho_factor(A, lower=True)
    return cho_solve(c_and_lower, b), c_and_lower[0]

def inverse_with_determinant(A) -> Tuple[ArrayLike, Any]:
    """Inverse and determinant of a symmetric positive definite matrix.

    Parameters
    ----------
    A : ndarray, shape (n, n)
        Symmetric positive definite matrix.

    Returns
    -------
    Ainv : ndarray, shape (n, n)
        Inverse of A.
    determinant : numpy.longdouble
        det(A), accumulated in extended precision from the Cholesky
        diagonal so that it does not underflow as early as a float64
        product would.

    Raises
    ------
    numpy.linalg.LinAlgError
        If A is not positive definite.
    """
    n = A.shape[0]
    Ainv, L = cholesky_solve(A, eye(n))
    d = numpy.diag(L).astype(longdouble)
    determinant = numpy.prod(d) ** 2
    return Ainv, determinant
