"""
PCA ENGINE — covariance → eigenpairs → projection

===============================================================
THE PIPELINE
===============================================================

    X (n × p)                     observations, owned by the caller
      │  center (and optionally scale) each column
      ▼
    C (p × p)                     C = Xcᵀ Xc / (n - 1)
      │  eigendecomposition       C v = λ v
      ▼
    Eigenpairs (λ, V)             sorted by λ, descending
      │  keep the first k columns of V
      ▼
    F (p × k)                     the feature (loading) vector
      │  Z = X F
      ▼
    Z (n × k)                     coordinates in the reduced space

Every function here is PURE: same input, same output, no state.

===============================================================
THREE WAYS TO GET THE EIGENPAIRS
===============================================================

'eigh'   numpy.linalg.eigh — LAPACK's symmetric solver. The default.

'jacobi' Cyclic Jacobi rotations, written out by hand.
         Each rotation zeroes one off-diagonal entry:

             θ = (c_qq - c_pp) / (2 c_pq)
             t = sign(θ) / (|θ| + √(θ² + 1))      tan of rotation angle
             c = 1/√(t² + 1),  s = t c

         A sweep rotates every (p, q) pair once. Off-diagonal mass
         shrinks quadratically, so ~10 sweeps is typical.

'svd'    Skip C entirely: Xc = U Σ Vᵀ  →  λ_i = σ_i² / (n - 1),
         eigenvectors = columns of V. (see svd_eigenpairs)

All three agree up to sign. We fix the sign so the largest-magnitude
entry of each eigenvector is positive — then they agree exactly.

===============================================================
"""

from typing import NamedTuple, Tuple

import numpy as np

from .errors import DimensionMismatchError, InvalidInputError, NumericalError


DEFAULT_MAX_ITER = 1000   # Jacobi sweeps before giving up
DEFAULT_TOL = 1e-12       # relative off-diagonal norm that counts as diagonal
SYMMETRY_TOL = 1e-8       # relative asymmetry tolerated in an input matrix
ZERO_EIGENVALUE_TOL = 1e-10  # |λ| below this fraction of max|λ| is rounding noise


class Eigenpairs(NamedTuple):
    """
    Eigenvalues and eigenvectors of a covariance matrix.

    eigenvalues  : (p,) descending
    eigenvectors : (p, p) — column i pairs with eigenvalues[i]
    """
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray

    @property
    def n_components(self):
        return len(self.eigenvalues)


# ============================================================
# INPUT CHECKS
# ============================================================

def _as_matrix(X, name='X'):
    X = np.asarray(X, dtype=float)
    if X.ndim != 2:
        raise InvalidInputError(f"{name} must be 2D, got shape {X.shape}")
    if not np.all(np.isfinite(X)):
        bad = np.argwhere(~np.isfinite(X))
        raise InvalidInputError(f"{name} contains {len(bad)} non-finite values "
                                f"(first at row {bad[0][0]}, column {bad[0][1]})")
    return X


def _check_symmetric(C):
    if C.shape[0] != C.shape[1]:
        raise DimensionMismatchError(f"Covariance matrix must be square, got shape {C.shape}",
                                     expected=(C.shape[0], C.shape[0]), got=C.shape)
    if C.shape[0] < 1:
        raise InvalidInputError(f"Covariance matrix must be at least 1×1, got shape {C.shape}")
    asym = np.max(np.abs(C - C.T))
    if asym > SYMMETRY_TOL * max(np.max(np.abs(C)), 1.0):
        raise InvalidInputError(f"Covariance matrix must be symmetric "
                                f"(max |C - Cᵀ| = {asym:.3e})")


# ============================================================
# COVARIANCE
# ============================================================

def _prepare(X, scale=False):
    """Center columns, and divide by their sample std if scale=True."""
    X = _as_matrix(X)
    n, p = X.shape
    if n < 2:
        raise InvalidInputError(f"Covariance needs at least 2 samples, got n={n} "
                                f"(n-1 = 0 → division by zero)")
    if p < 1:
        raise InvalidInputError(f"X must have at least 1 feature, got shape {X.shape}")

    X_centered = X - X.mean(axis=0)
    if scale:
        constant = np.flatnonzero(np.ptp(X, axis=0) == 0)
        if len(constant):
            raise InvalidInputError(f"Cannot scale zero-variance column(s) "
                                    f"{constant.tolist()} (std = 0 → division by zero)")
        X_centered = X_centered / X_centered.std(axis=0, ddof=1)
    return X_centered


def compute_covariance(X, scale=False):
    """
    Sample covariance matrix of the columns of X.

        C[i, j] = Σ_k (X[k,i] - mean_i)(X[k,j] - mean_j) / (n - 1)

    With scale=True every column is divided by its sample standard
    deviation first, so C is the correlation matrix.

    Args:
        X: (n_samples, n_features), n >= 2, no NaN/inf
        scale: standardize columns to unit variance before covarying

    Returns:
        C: (n_features, n_features), exactly symmetric
    """
    X_centered = _prepare(X, scale=scale)
    n = X_centered.shape[0]
    C = (X_centered.T @ X_centered) / (n - 1)
    # Floating-point matmul can leave ~1e-17 asymmetry
    return (C + C.T) / 2


def correlation_matrix(X):
    """Pearson correlation between every pair of columns."""
    return compute_covariance(X, scale=True)


# ============================================================
# EIGENDECOMPOSITION
# ============================================================

def jacobi_eigh(C, max_iter=DEFAULT_MAX_ITER, tol=DEFAULT_TOL):
    """
    Eigenvalues and eigenvectors of a symmetric matrix by cyclic Jacobi.

    One iteration = one sweep over every upper-triangular (i, j) pair.
    Stops once ||offdiag(A)||_F <= tol * ||C||_F.

    Returns:
        (eigenvalues, eigenvectors) — unsorted, eigenvectors as columns

    Raises:
        NumericalError if still not diagonal after max_iter sweeps
    """
    A = np.array(C, dtype=float)
    p = A.shape[0]
    V = np.eye(p)
    target = tol * max(np.linalg.norm(A), np.finfo(float).tiny)

    for sweep in range(max_iter + 1):
        off = np.sqrt(2 * np.sum(np.triu(A, 1) ** 2))
        if off <= target:
            return np.diag(A).copy(), V
        if sweep == max_iter:
            break

        for i in range(p - 1):
            for j in range(i + 1, p):
                if A[i, j] == 0.0:
                    continue
                gap = A[j, j] - A[i, i]
                if abs(gap) + 100 * abs(A[i, j]) == abs(gap):
                    # θ would overflow; t ≈ 1/(2θ)
                    t = A[i, j] / gap
                else:
                    theta = gap / (2 * A[i, j])
                    if theta == 0.0:
                        t = 1.0
                    else:
                        t = np.sign(theta) / (abs(theta) + np.hypot(theta, 1.0))
                c = 1.0 / np.sqrt(t * t + 1.0)
                s = t * c

                # A ← Jᵀ A J, columns then rows
                col_i, col_j = A[:, i].copy(), A[:, j].copy()
                A[:, i] = c * col_i - s * col_j
                A[:, j] = s * col_i + c * col_j
                row_i, row_j = A[i, :].copy(), A[j, :].copy()
                A[i, :] = c * row_i - s * row_j
                A[j, :] = s * row_i + c * row_j
                A[i, j] = A[j, i] = 0.0

                # V ← V J
                v_i, v_j = V[:, i].copy(), V[:, j].copy()
                V[:, i] = c * v_i - s * v_j
                V[:, j] = s * v_i + c * v_j

    raise NumericalError(f"Jacobi eigensolver did not converge in {max_iter} sweeps "
                         f"(off-diagonal norm {off:.3e} > {target:.3e})",
                         iterations=max_iter, residual=off)


def sort_eigenpairs(eigenvalues, eigenvectors):
    """
    Order eigenpairs by descending eigenvalue and fix eigenvector signs.

    Eigenvalues within ZERO_EIGENVALUE_TOL · max|λ| of zero are rounding
    noise and are set to exactly 0. Ties keep their incoming order
    (stable sort). Each eigenvector is flipped so its largest-magnitude
    entry is positive.
    """
    eigenvalues = np.array(eigenvalues, dtype=float)
    eigenvectors = np.asarray(eigenvectors, dtype=float)

    if eigenvalues.size:
        eigenvalues[np.abs(eigenvalues) <= ZERO_EIGENVALUE_TOL * np.max(np.abs(eigenvalues))] = 0.0

    order = np.argsort(-eigenvalues, kind='stable')
    eigenvalues = eigenvalues[order]
    eigenvectors = eigenvectors[:, order]

    if eigenvectors.size:
        pivot = np.argmax(np.abs(eigenvectors), axis=0)
        signs = np.sign(eigenvectors[pivot, np.arange(eigenvectors.shape[1])])
        signs[signs == 0] = 1.0
        eigenvectors = eigenvectors * signs

    return Eigenpairs(eigenvalues, eigenvectors)


def eigendecompose(C, method='eigh', max_iter=DEFAULT_MAX_ITER, tol=DEFAULT_TOL):
    """
    Eigenpairs of a symmetric covariance matrix, largest variance first.

    Args:
        C: (p, p) symmetric real matrix
        method: 'eigh' (LAPACK) or 'jacobi' (hand-rolled rotations)
        max_iter: Jacobi sweep budget (ignored by 'eigh')
        tol: Jacobi convergence tolerance (ignored by 'eigh')

    Returns:
        Eigenpairs with p orthonormal eigenvectors as columns
    """
    C = _as_matrix(C, name='C')
    _check_symmetric(C)

    if method == 'eigh':
        try:
            eigenvalues, eigenvectors = np.linalg.eigh(C)
        except np.linalg.LinAlgError as e:
            raise NumericalError(f"eigh did not converge on {C.shape} matrix: {e}") from e
    elif method == 'jacobi':
        eigenvalues, eigenvectors = jacobi_eigh(C, max_iter=max_iter, tol=tol)
    else:
        raise ValueError(f"Unknown method: {method}")

    return sort_eigenpairs(eigenvalues, eigenvectors)


def svd_eigenpairs(X, scale=False):
    """
    Eigenpairs of the covariance of X without forming the covariance.

        Xc = U Σ Vᵀ   →   C = V (Σ² / (n-1)) Vᵀ

    When n < p there are only n singular values; the remaining
    eigenvalues are exactly zero and their eigenvectors complete V.
    """
    X_centered = _prepare(X, scale=scale)
    n, p = X_centered.shape
    try:
        _, S, Vt = np.linalg.svd(X_centered, full_matrices=True)
    except np.linalg.LinAlgError as e:
        raise NumericalError(f"SVD did not converge on {X_centered.shape} matrix: {e}") from e

    eigenvalues = np.zeros(p)
    eigenvalues[:len(S)] = S ** 2 / (n - 1)
    return sort_eigenpairs(eigenvalues, Vt.T)


def reconstruct_covariance(eigenpairs):
    """C = V diag(λ) Vᵀ. Exact (up to rounding) when all p pairs are kept."""
    values, vectors = eigenpairs
    return (vectors * values) @ vectors.T


# ============================================================
# VARIANCE ACCOUNTING
# ============================================================

def explained_variance_ratio(eigenvalues):
    """
    Fraction of total variance carried by each component.

        ratio_i = λ_i / Σ_j λ_j
    """
    eigenvalues = np.asarray(eigenvalues, dtype=float)
    total = np.sum(eigenvalues)
    if not total > 0:
        raise InvalidInputError(f"Total variance must be positive, got Σλ = {total:.3e} "
                                f"(all-constant data?)")
    return eigenvalues / total


def cumulative_variance_ratio(eigenvalues):
    return np.cumsum(explained_variance_ratio(eigenvalues))


def components_for_variance(eigenvalues, threshold=0.9):
    """Smallest k whose top-k components explain at least `threshold` of the variance."""
    if not 0 < threshold <= 1:
        raise InvalidInputError(f"threshold must be in (0, 1], got {threshold}")
    cumulative = cumulative_variance_ratio(eigenvalues)
    # Rounding can leave the last cumulative value a hair under 1.0
    k = int(np.searchsorted(cumulative, threshold - 1e-12)) + 1
    return min(k, len(cumulative))


# ============================================================
# SELECTION + PROJECTION
# ============================================================

def select_top_k(eigenpairs, k):
    """First k eigenpairs (eigenpairs are already sorted descending)."""
    values, vectors = eigenpairs
    p = len(values)
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise InvalidInputError(f"k must be an integer, got {k!r}")
    if k < 1 or k > p:
        raise InvalidInputError(f"k must be in [1, {p}], got k={k}")
    return Eigenpairs(values[:k], vectors[:, :k])


def feature_vector(eigenpairs, k):
    """(p, k) matrix whose columns are the top-k eigenvectors."""
    return select_top_k(eigenpairs, k).eigenvectors


def project(X, feature_vector):
    """
    Z = X F

    Args:
        X: (n, p) data, already centered/scaled however the caller wants
        feature_vector: (p, k) orthonormal columns

    Returns:
        Z: (n, k)
    """
    X = _as_matrix(X)
    F = _as_matrix(feature_vector, name='feature_vector')
    if X.shape[1] != F.shape[0]:
        raise DimensionMismatchError(f"X has {X.shape[1]} columns but feature_vector has "
                                     f"{F.shape[0]} rows",
                                     expected=F.shape[0], got=X.shape[1])
    return X @ F


def reconstruct(Z, feature_vector):
    """
    X̂ = Z Fᵀ — back to the original p-dimensional space.
    Lossy unless k = p.
    """
    Z = _as_matrix(Z, name='Z')
    F = _as_matrix(feature_vector, name='feature_vector')
    if Z.shape[1] != F.shape[1]:
        raise DimensionMismatchError(f"Z has {Z.shape[1]} columns but feature_vector has "
                                     f"{F.shape[1]} columns",
                                     expected=F.shape[1], got=Z.shape[1])
    return Z @ F.T


def run_pca(X, k=2, scale=False, method='eigh') -> Tuple[np.ndarray, Eigenpairs, np.ndarray]:
    """
    One-shot PCA: covariance → eigenpairs → projection of the centered data.

    Returns:
        Z: (n, k) projected data
        eigenpairs: all p eigenpairs, descending
        ratios: (p,) explained variance ratio of every component
    """
    X_prepared = _prepare(X, scale=scale)
    C = compute_covariance(X, scale=scale)
    eigenpairs = eigendecompose(C, method=method)
    ratios = explained_variance_ratio(eigenpairs.eigenvalues)
    Z = project(X_prepared, feature_vector(eigenpairs, k))
    return Z, eigenpairs, ratios
