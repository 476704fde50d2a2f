"""
ERRORS — what can go wrong when computing principal components.

Three things, and only three:

    InvalidInputError      the data itself is unusable
                           (too few rows, NaNs, constant column under scaling,
                            k out of range, total variance zero)
    DimensionMismatchError shapes don't line up between two steps
                           (X has p columns but the feature vector has q rows)
    NumericalError         the eigensolver ran out of iterations

Nothing is retried. Same input → same error, every time.
"""

import numpy as np


class PCAError(Exception):
    """Base class for every error raised by pca_intuition."""


class InvalidInputError(PCAError, ValueError):
    """Malformed or degenerate input."""


class DimensionMismatchError(PCAError, ValueError):
    """Incompatible matrix shapes passed between steps."""

    def __init__(self, message, expected=None, got=None):
        super().__init__(message)
        self.expected = expected
        self.got = got


class NumericalError(PCAError, np.linalg.LinAlgError):
    """Eigensolver failed to converge within its iteration budget."""

    def __init__(self, message, iterations=None, residual=None):
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual
