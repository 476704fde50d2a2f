"""Tests for the pure PCA engine functions."""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal
from scipy.linalg import eigh as scipy_eigh

from pca_intuition import (
    DimensionMismatchError,
    Eigenpairs,
    InvalidInputError,
    NumericalError,
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
from pca_intuition.datasets import make_cross, make_zoo_like


def random_spd(p, seed=0):
    rng = np.random.RandomState(seed)
    A = rng.randn(p + 3, p)
    return A.T @ A / (p + 2)


# ============================================================
# COVARIANCE
# ============================================================

def test_covariance_cross():
    C = compute_covariance(make_cross())
    assert_allclose(C, [[8 / 3, 0.0], [0.0, 8 / 3]])


def test_covariance_matches_numpy():
    X = np.random.RandomState(1).randn(40, 6)
    assert_allclose(compute_covariance(X), np.cov(X, rowvar=False))


def test_covariance_is_symmetric():
    X = np.random.RandomState(2).randn(30, 5) * [1, 10, 100, 0.1, 3]
    C = compute_covariance(X)
    assert_array_equal(C, C.T)


def test_covariance_idempotent():
    X = np.random.RandomState(3).randn(25, 4)
    assert_array_equal(compute_covariance(X), compute_covariance(X))


def test_covariance_does_not_mutate_input():
    X = np.random.RandomState(4).randn(10, 3)
    before = X.copy()
    compute_covariance(X, scale=True)
    assert_array_equal(X, before)


def test_covariance_single_row_fails():
    with pytest.raises(InvalidInputError, match="at least 2 samples"):
        compute_covariance([[1.0, 2.0, 3.0]])


def test_covariance_rejects_1d_and_nan():
    with pytest.raises(InvalidInputError):
        compute_covariance([1.0, 2.0, 3.0])
    with pytest.raises(InvalidInputError, match="non-finite"):
        compute_covariance([[1.0, np.nan], [2.0, 3.0]])


def test_scaled_covariance_is_correlation():
    X = np.random.RandomState(5).randn(50, 4) * [1, 5, 20, 0.5]
    assert_allclose(correlation_matrix(X), np.corrcoef(X, rowvar=False), atol=1e-12)
    assert_allclose(np.diag(correlation_matrix(X)), np.ones(4))


def test_scaling_zero_variance_column_fails():
    X = np.column_stack([np.arange(5.0), np.full(5, 3.0), np.arange(5.0) ** 2])
    with pytest.raises(InvalidInputError, match=r"\[1\]"):
        compute_covariance(X, scale=True)
    # Unscaled covariance of a constant column is fine: it is zero
    assert compute_covariance(X)[1, 1] == 0.0


# ============================================================
# EIGENDECOMPOSITION
# ============================================================

@pytest.mark.parametrize("method", ["eigh", "jacobi"])
@pytest.mark.parametrize("p", [1, 2, 5, 16])
def test_eigenvectors_orthonormal(method, p):
    _, V = eigendecompose(random_spd(p, seed=p), method=method)
    assert_allclose(V.T @ V, np.eye(p), atol=1e-6)


@pytest.mark.parametrize("method", ["eigh", "jacobi"])
def test_eigenvalues_descending(method):
    values, _ = eigendecompose(random_spd(8), method=method)
    assert np.all(np.diff(values) <= 0)


@pytest.mark.parametrize("method", ["eigh", "jacobi"])
def test_reconstruction_law(method):
    C = random_spd(7, seed=11)
    pairs = eigendecompose(C, method=method)
    rel = np.linalg.norm(C - reconstruct_covariance(pairs)) / np.linalg.norm(C)
    assert rel < 1e-4


@pytest.mark.parametrize("method", ["eigh", "jacobi"])
def test_matches_reference_solver(method):
    C = random_spd(6, seed=21)
    values, V = eigendecompose(C, method=method)
    ref_values, ref_V = scipy_eigh(C)
    ref_values, ref_V = ref_values[::-1], ref_V[:, ::-1]

    assert_allclose(values, ref_values, rtol=1e-6)
    # Same directions up to sign
    assert_allclose(np.abs(np.sum(V * ref_V, axis=0)), np.ones(6), atol=1e-6)


def test_eigenpair_equation_holds():
    C = random_spd(5, seed=8)
    values, V = eigendecompose(C, method='jacobi')
    assert_allclose(C @ V, V * values, atol=1e-8)


def test_solvers_agree_after_sign_convention():
    C = compute_covariance(make_zoo_like()[0], scale=True)
    eig = eigendecompose(C, method='eigh')
    jac = eigendecompose(C, method='jacobi')
    assert_allclose(eig.eigenvalues, jac.eigenvalues, atol=1e-10)
    assert_allclose(eig.eigenvectors[:, :3], jac.eigenvectors[:, :3], atol=1e-6)


def test_cross_eigenpairs():
    pairs = eigendecompose(compute_covariance(make_cross()))
    assert_allclose(pairs.eigenvalues, [8 / 3, 8 / 3])
    assert_allclose(pairs.eigenvectors.T @ pairs.eigenvectors, np.eye(2), atol=1e-12)
    assert_allclose(explained_variance_ratio(pairs.eigenvalues), [0.5, 0.5])


def test_ties_keep_original_order():
    values = np.array([1.0, 3.0, 1.0, 3.0])
    pairs = sort_eigenpairs(values, np.eye(4))
    assert_array_equal(pairs.eigenvalues, [3.0, 3.0, 1.0, 1.0])
    assert_array_equal(pairs.eigenvectors, np.eye(4)[:, [1, 3, 0, 2]])


def test_sign_convention_largest_entry_positive():
    V = np.array([[0.6, -0.8], [-0.8, -0.6]])
    pairs = sort_eigenpairs([2.0, 1.0], V)
    pivot = np.argmax(np.abs(pairs.eigenvectors), axis=0)
    assert np.all(pairs.eigenvectors[pivot, [0, 1]] > 0)


def test_diagonal_matrix_needs_no_sweeps():
    values, V = jacobi_eigh(np.diag([3.0, 1.0, 2.0]), max_iter=0)
    assert_array_equal(values, [3.0, 1.0, 2.0])
    assert_array_equal(V, np.eye(3))


def test_jacobi_sweep_budget_exhausted():
    with pytest.raises(NumericalError, match="did not converge") as info:
        eigendecompose(random_spd(6, seed=3), method='jacobi', max_iter=1)
    assert info.value.iterations == 1
    assert info.value.residual > 0
    # Still a LinAlgError, so numpy-style handlers catch it too
    assert isinstance(info.value, np.linalg.LinAlgError)


def test_eigh_failure_becomes_numerical_error(monkeypatch):
    def boom(C):
        raise np.linalg.LinAlgError("Eigenvalues did not converge")

    monkeypatch.setattr(np.linalg, "eigh", boom)
    with pytest.raises(NumericalError):
        eigendecompose(np.eye(3))


def test_eigendecompose_rejects_bad_matrices():
    with pytest.raises(DimensionMismatchError):
        eigendecompose(np.ones((2, 3)))
    with pytest.raises(InvalidInputError, match="symmetric"):
        eigendecompose([[1.0, 2.0], [0.0, 1.0]])
    with pytest.raises(ValueError, match="Unknown method"):
        eigendecompose(np.eye(2), method='qr')


def test_svd_eigenpairs_match_covariance():
    X = np.random.RandomState(9).randn(60, 5) @ np.diag([5, 3, 2, 1, 0.5])
    via_svd = svd_eigenpairs(X)
    via_cov = eigendecompose(compute_covariance(X))
    assert_allclose(via_svd.eigenvalues, via_cov.eigenvalues, rtol=1e-10)
    assert_allclose(via_svd.eigenvectors, via_cov.eigenvectors, atol=1e-8)


def test_svd_eigenpairs_wide_data_padded():
    X = np.random.RandomState(10).randn(3, 6)
    pairs = svd_eigenpairs(X)
    assert pairs.eigenvalues.shape == (6,)
    assert pairs.eigenvectors.shape == (6, 6)
    # 3 centered rows span at most 2 dimensions
    assert_allclose(pairs.eigenvalues[2:], 0.0, atol=1e-12)
    assert_allclose(pairs.eigenvectors.T @ pairs.eigenvectors, np.eye(6), atol=1e-10)


# ============================================================
# VARIANCE ACCOUNTING
# ============================================================

def test_ratios_sum_to_one():
    values, _ = eigendecompose(random_spd(9, seed=4))
    assert_allclose(np.sum(explained_variance_ratio(values)), 1.0)
    assert_allclose(cumulative_variance_ratio(values)[-1], 1.0)


def test_ratio_of_zero_variance_fails():
    with pytest.raises(InvalidInputError, match="Total variance"):
        explained_variance_ratio([0.0, 0.0, 0.0])


def test_components_for_variance():
    values = [6.0, 3.0, 1.0]
    assert components_for_variance(values, 0.5) == 1
    assert components_for_variance(values, 0.6) == 1
    assert components_for_variance(values, 0.9) == 2
    assert components_for_variance(values, 1.0) == 3
    with pytest.raises(InvalidInputError):
        components_for_variance(values, 0.0)


# ============================================================
# SELECTION + PROJECTION
# ============================================================

def test_select_top_k_bounds():
    pairs = eigendecompose(random_spd(4))
    with pytest.raises(InvalidInputError):
        select_top_k(pairs, 5)
    with pytest.raises(InvalidInputError):
        select_top_k(pairs, 0)
    with pytest.raises(InvalidInputError):
        select_top_k(pairs, 2.0)


def test_select_top_k_all_is_unchanged():
    pairs = eigendecompose(random_spd(4))
    top = select_top_k(pairs, 4)
    assert isinstance(top, Eigenpairs)
    assert_array_equal(top.eigenvalues, pairs.eigenvalues)
    assert_array_equal(top.eigenvectors, pairs.eigenvectors)


def test_select_top_k_prefix():
    pairs = eigendecompose(random_spd(5))
    top = select_top_k(pairs, 2)
    assert top.n_components == 2
    assert_array_equal(top.eigenvectors, pairs.eigenvectors[:, :2])
    assert_array_equal(feature_vector(pairs, 2), top.eigenvectors)


def test_project_shape_and_mismatch():
    X = np.random.RandomState(6).randn(10, 4)
    F = feature_vector(eigendecompose(compute_covariance(X)), 2)
    assert project(X, F).shape == (10, 2)
    with pytest.raises(DimensionMismatchError) as info:
        project(X[:, :3], F)
    assert info.value.expected == 4
    assert info.value.got == 3


def test_project_is_linear():
    rng = np.random.RandomState(7)
    X1, X2 = rng.randn(12, 5), rng.randn(12, 5)
    F = feature_vector(eigendecompose(compute_covariance(X1)), 3)
    a, b = 2.5, -0.75
    assert_allclose(project(a * X1 + b * X2, F),
                    a * project(X1, F) + b * project(X2, F), atol=1e-12)


def test_full_projection_roundtrip_is_exact():
    X = np.random.RandomState(12).randn(8, 3)
    F = feature_vector(eigendecompose(compute_covariance(X)), 3)
    assert_allclose(reconstruct(project(X, F), F), X, atol=1e-12)


def test_reconstruct_mismatch():
    F = np.eye(4)[:, :2]
    with pytest.raises(DimensionMismatchError):
        reconstruct(np.ones((5, 3)), F)


def test_run_pca_on_cross():
    Z, pairs, ratios = run_pca(make_cross(), k=2)
    assert Z.shape == (4, 2)
    assert_allclose(ratios, [0.5, 0.5])
    # Orthonormal basis → distances from the origin are preserved
    assert_allclose(np.linalg.norm(Z, axis=1), np.full(4, 2.0))


# ============================================================
# JACOBI CONVERGENCE + EIGENVALUE HYGIENE
# ============================================================

@pytest.mark.parametrize("p", [16, 20])
@pytest.mark.parametrize("seed", [0, 1, 2])
def test_jacobi_default_budget_converges(p, seed):
    C = random_spd(p, seed=100 + seed)
    values, V = eigendecompose(C, method='jacobi')
    ref_values = scipy_eigh(C, eigvals_only=True)[::-1]
    assert_allclose(values, ref_values, rtol=1e-8, atol=1e-12)
    assert_allclose(V.T @ V, np.eye(p), atol=1e-10)
    assert_allclose(reconstruct_covariance((values, V)), C, atol=1e-10)


def test_jacobi_subnormal_offdiagonal_does_not_overflow():
    tiny = 1e-310
    C = np.array([[2.0, 1.0, tiny],
                  [1.0, 3.0, 0.0],
                  [tiny, 0.0, 5.0]])
    with np.errstate(over='raise', divide='raise', invalid='raise'):
        values, _ = eigendecompose(C, method='jacobi')
    assert_allclose(values, scipy_eigh(C, eigvals_only=True)[::-1], rtol=1e-12)


@pytest.mark.parametrize("method", ["eigh", "jacobi"])
def test_eigenvalues_non_negative_when_rank_deficient(method):
    rng = np.random.RandomState(13)
    for _ in range(50):
        C = compute_covariance(rng.randn(3, 8))
        values, _ = eigendecompose(C, method=method)
        assert np.all(values >= 0)
        # 3 centered rows span 2 dimensions; the other 6 eigenvalues are exactly 0
        assert np.sum(values == 0) == 6
        assert np.all(explained_variance_ratio(values) >= 0)


def test_sort_zeroes_rounding_noise_only():
    pairs = sort_eigenpairs([2.0, -1e-16, 1.0], np.eye(3))
    assert_array_equal(pairs.eigenvalues, [2.0, 1.0, 0.0])
    # A genuinely negative eigenvalue is not noise
    assert_array_equal(sort_eigenpairs([2.0, -0.5], np.eye(2)).eigenvalues, [2.0, -0.5])


def test_eigendecompose_rejects_empty_matrix():
    with pytest.raises(InvalidInputError, match="at least 1×1"):
        eigendecompose(np.zeros((0, 0)))
