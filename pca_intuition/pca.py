"""
PRINCIPAL COMPONENT ANALYSIS (PCA) — Paradigm: LINEAR PROJECTION

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

Find the directions where data VARIES MOST. Project onto them.

THE ALGORITHM:
    1. Center data (subtract mean), optionally standardize
    2. Compute covariance matrix C = Xcᵀ Xc / (n - 1)
    3. Find eigenvectors of C (principal components)
    4. Project data onto top-k eigenvectors

The math lives in engine.py as pure functions. This class just
remembers what fit() learned so transform() can reuse it.

===============================================================
PREPROCESSING POLICY
===============================================================

    standardize=False   center only. Features with big numbers
                        (legs: 0..8) outweigh binary ones (hair: 0/1).
    standardize=True    center + divide by std. PCA of the
                        CORRELATION matrix. Every feature counts equally.

Whatever you pick, every solver ('eigh', 'jacobi', 'svd') sees the
SAME preprocessed data — so they agree.

===============================================================
"""

import numpy as np

from .engine import (
    DEFAULT_MAX_ITER,
    DEFAULT_TOL,
    compute_covariance,
    eigendecompose,
    explained_variance_ratio,
    project,
    reconstruct,
    select_top_k,
    svd_eigenpairs,
)
from .errors import DimensionMismatchError, InvalidInputError


SOLVERS = ('eigh', 'jacobi', 'svd')


class PCA:
    """
    Principal Component Analysis — LINEAR PROJECTION.

    Parameters:
    -----------
    n_components : int or None
        Number of principal components to keep. None keeps all.
    standardize : bool
        Scale each feature to unit variance before decomposing.
    solver : str
        'eigh', 'jacobi' or 'svd'.
    max_iter, tol :
        Jacobi sweep budget and convergence tolerance.
    """

    def __init__(self, n_components=2, standardize=False, solver='eigh',
                 max_iter=DEFAULT_MAX_ITER, tol=DEFAULT_TOL):
        if solver not in SOLVERS:
            raise ValueError(f"Unknown solver: {solver}")
        self.n_components = n_components
        self.standardize = standardize
        self.solver = solver
        self.max_iter = max_iter
        self.tol = tol

        # Fitted attributes (set after fit)
        self.mean_ = None              # (n_features,)
        self.scale_ = None             # (n_features,) — ones unless standardize
        self.covariance_ = None        # (n_features, n_features)
        self.eigenvalues_ = None       # (n_features,) — all eigenvalues, descending
        self.eigenvectors_ = None      # (n_features, n_features) — columns
        self.components_ = None        # (n_components, n_features)
        self.explained_variance_ = None
        self.explained_variance_ratio_ = None
        self.total_explained_variance_ratio_ = None
        self.n_features_ = None
        self.n_samples_ = None

    def fit(self, X):
        """
        Fit PCA on data X.

        Args:
            X: Data matrix, shape (n_samples, n_features)

        Returns:
            self (for chaining: pca.fit(X).transform(X))
        """
        self.covariance_ = compute_covariance(X, scale=self.standardize)

        X = np.asarray(X, dtype=float)
        self.n_samples_, self.n_features_ = X.shape
        self.mean_ = X.mean(axis=0)
        self.scale_ = X.std(axis=0, ddof=1) if self.standardize else np.ones(self.n_features_)

        if self.solver == 'svd':
            eigenpairs = svd_eigenpairs(X, scale=self.standardize)
        else:
            eigenpairs = eigendecompose(self.covariance_, method=self.solver,
                                        max_iter=self.max_iter, tol=self.tol)

        k = self.n_features_ if self.n_components is None else self.n_components
        top = select_top_k(eigenpairs, k)

        self.eigenvalues_, self.eigenvectors_ = eigenpairs
        self.components_ = top.eigenvectors.T
        self.total_explained_variance_ratio_ = explained_variance_ratio(self.eigenvalues_)
        self.explained_variance_ = top.eigenvalues
        self.explained_variance_ratio_ = self.total_explained_variance_ratio_[:k]
        return self

    def _check_fitted(self):
        if self.components_ is None:
            raise InvalidInputError("PCA not fitted. Call fit() first.")

    def transform(self, X):
        """
        Project data onto principal components.

        Z = ((X - mean) / scale) @ W_k
        """
        self._check_fitted()
        X = np.asarray(X, dtype=float)
        if X.ndim != 2 or X.shape[1] != self.n_features_:
            got = X.shape[1] if X.ndim == 2 else X.shape
            raise DimensionMismatchError(f"X has shape {X.shape} but PCA was fitted on "
                                         f"{self.n_features_} features",
                                         expected=self.n_features_, got=got)
        return project((X - self.mean_) / self.scale_, self.components_.T)

    def fit_transform(self, X):
        """Fit and transform in one step."""
        return self.fit(X).transform(X)

    def inverse_transform(self, Z):
        """
        Reconstruct data from reduced representation.

        X̂ = (Z @ W_kᵀ) * scale + mean
        This is LOSSY — information in dropped components is gone.
        """
        self._check_fitted()
        return reconstruct(Z, self.components_.T) * self.scale_ + self.mean_

    def reconstruction_error(self, X):
        """Mean squared reconstruction error, (1/n) Σ ||x_i - x̂_i||²."""
        X = np.asarray(X, dtype=float)
        X_hat = self.inverse_transform(self.transform(X))
        return np.mean(np.sum((X - X_hat) ** 2, axis=1))

    def loadings(self):
        """
        Component directions scaled by their standard deviation, √λ.

        Row i, column j = how strongly feature j moves along PC i.
        These are the arrows of a biplot.
        """
        self._check_fitted()
        return self.components_ * np.sqrt(self.explained_variance_)[:, None]
