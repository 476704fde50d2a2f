"""
pca_intuition — Principal Component Analysis, from covariance to projection.

    from pca_intuition import compute_covariance, eigendecompose, project

    C = compute_covariance(X)
    pairs = eigendecompose(C)
    Z = project(X - X.mean(axis=0), feature_vector(pairs, k=2))
"""

from .engine import (
    Eigenpairs,
    components_for_variance,
    compute_covariance,
    correlation_matrix,
    cumulative_variance_ratio,
    eigendecompose,
    explained_variance_ratio,
    feature_vector,
    jacobi_eigh,
    project,
    reconstruct,
    reconstruct_covariance,
    run_pca,
    select_top_k,
    sort_eigenpairs,
    svd_eigenpairs,
)
from .errors import DimensionMismatchError, InvalidInputError, NumericalError, PCAError
from .pca import PCA

__version__ = '0.1.0'
