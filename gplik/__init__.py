# gplik/__init__.py

from . import config
from . import num
from . import core
from .core import (
    GaussianProcessSnapshot,
    Likelihood,
    GaussianLikelihood,
    GaussianLogLikelihood,
)

__all__ = [
    "num",
    "core",
    "GaussianProcessSnapshot",
    "Likelihood",
    "GaussianLikelihood",
    "GaussianLogLikelihood",
    "__version__",
]

__version__ = config.__version__
