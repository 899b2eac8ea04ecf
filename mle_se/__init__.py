"""
mle_se -- maximum-likelihood estimation with three standard-error estimators.

Fits a likelihood model by numerical optimization and computes the
information-matrix, outer-product-of-gradients (BHHH) and sandwich
covariances of the estimate, using only numpy / scipy.
"""

from .utils import as_observations, stderrs
from .exceptions import (MLEError, InvalidDataError, OptimizationError,
                         SingularMatrixError, InvalidCovarianceError,
                         DerivativeWarning)
from . import derivatives
from . import models
from . import mle
from . import covariance
from . import summary
