"""
PCA ON THE ZOO — printed walkthrough + ablations

Run with:  python -m pca_intuition

Each experiment asks ONE question and prints the answer:

    1. Which traits move together?            (correlation matrix)
    2. How much does each PC explain?         (raw vs standardized)
    3. Do eigh, Jacobi and SVD agree?         (they should, exactly)
    4. How many PCs do we need?               (reconstruction error vs k)
    5. Do the classes separate in 2D?         (class centroids on PC1/PC2)
    6. Does PCA find planted structure?       (axis, rank, informative dims)
"""

import numpy as np

from .datasets import (
    ZOO_FEATURES,
    class_name,
    make_2d_rotated,
    make_correlated_features,
    make_high_dim_clusters,
    make_zoo_like,
)
from .engine import (
    compute_covariance,
    correlation_matrix,
    cumulative_variance_ratio,
    components_for_variance,
    eigendecompose,
    reconstruct_covariance,
)
from .pca import PCA, SOLVERS


def banner(title):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def top_correlations(X, names=ZOO_FEATURES, n_pairs=5):
    """The n_pairs most strongly (anti-)correlated feature pairs."""
    R = correlation_matrix(X)
    i, j = np.triu_indices_from(R, k=1)
    order = np.argsort(-np.abs(R[i, j]), kind='stable')[:n_pairs]
    return [(names[i[o]], names[j[o]], R[i[o], j[o]]) for o in order]


def class_centroids(Z, y):
    """Mean PC coordinates per class code, in ascending code order."""
    return {code: Z[y == code].mean(axis=0) for code in np.unique(y)}


def informative_features(pca, n_top):
    """
    Features carrying the most weight across the kept components.

    Score_j = Σ_i components_[i, j]², i.e. how much of feature j's axis
    lies inside the retained subspace. Returns the n_top best, best first.
    """
    scores = np.sum(pca.components_ ** 2, axis=0)
    return np.argsort(-scores, kind='stable')[:n_top]


def experiment_correlations(X):
    print("\n1. WHICH TRAITS MOVE TOGETHER?")
    print("-" * 40)
    for a, b, r in top_correlations(X):
        print(f"   {a:>9} ~ {b:<9} r = {r:+.3f}")
    print("→ Traits that move together load together on the leading PCs")


def experiment_variance(X):
    print("\n2. VARIANCE EXPLAINED: RAW vs STANDARDIZED")
    print("-" * 40)
    for standardize in (False, True):
        pca = PCA(n_components=None, standardize=standardize).fit(X)
        ratios = pca.total_explained_variance_ratio_
        cumulative = cumulative_variance_ratio(pca.eigenvalues_)
        label = 'standardized' if standardize else 'raw (centered only)'
        print(f"   {label}:")
        for i in range(4):
            bar = "█" * int(ratios[i] * 50)
            print(f"     PC{i+1}: {ratios[i]:.3f} (cumulative: {cumulative[i]:.3f}) {bar}")
        k90 = components_for_variance(pca.eigenvalues_, 0.9)
        print(f"     → {k90} components reach 90% of the variance")
    print("→ Raw: 'legs' dominates PC1 simply because its numbers are bigger")
    print("→ Standardized: variance is spread over more components")


def experiment_solvers(X):
    print("\n3. EIGH vs JACOBI vs SVD")
    print("-" * 40)
    fitted = {s: PCA(n_components=None, standardize=True, solver=s).fit(X) for s in SOLVERS}
    ref = fitted['eigh']
    for solver in SOLVERS[1:]:
        other = fitted[solver]
        dv = np.max(np.abs(ref.eigenvalues_ - other.eigenvalues_))
        dc = np.max(np.abs(ref.components_[:3] - other.components_[:3]))
        print(f"   {solver:>6}: max |Δλ| = {dv:.2e}   max |Δ PC1-3| = {dc:.2e}")

    C = compute_covariance(X, scale=True)
    err = np.max(np.abs(C - reconstruct_covariance(eigendecompose(C, method='jacobi'))))
    print(f"   Jacobi: max |C - V diag(λ) Vᵀ| = {err:.2e}")
    print("→ Same preprocessing, same answer (signs fixed by convention)")


def experiment_reconstruction(X):
    print("\n4. RECONSTRUCTION ERROR vs NUMBER OF COMPONENTS")
    print("-" * 40)
    for k in (1, 2, 3, 5, 8, 12, 16):
        err = PCA(n_components=k, standardize=True).fit(X).reconstruction_error(X)
        print(f"   k={k:<3} error={err:.4f}")
    print("→ k = 16 reconstructs perfectly: nothing is thrown away")


def experiment_projection(X, y):
    print("\n5. CLASSES IN THE PC1/PC2 PLANE")
    print("-" * 40)
    pca = PCA(n_components=2, standardize=True)
    Z = pca.fit_transform(X)
    for code, (pc1, pc2) in class_centroids(Z, y).items():
        count = int(np.sum(y == code))
        print(f"   {class_name(code):>12} (n={count:<2}) PC1={pc1:+.2f}  PC2={pc2:+.2f}")

    top = np.argsort(-np.abs(pca.loadings()[0]), kind='stable')[:3]
    print("   Strongest PC1 loadings: " +
          ", ".join(f"{ZOO_FEATURES[j]} ({pca.loadings()[0, j]:+.2f})" for j in top))
    print("→ Classes with distinct trait bundles land in distinct regions")


def experiment_planted_structure(random_state=42):
    print("\n6. DOES PCA FIND PLANTED STRUCTURE?")
    print("-" * 40)

    X_rot = make_2d_rotated(300, angle=30, random_state=random_state)
    pc1 = PCA(n_components=1).fit(X_rot).components_[0]
    angle = np.degrees(np.arctan2(pc1[1], pc1[0])) % 180
    print(f"   Rotated Gaussian: planted axis 30.0°, PC1 axis {angle:.1f}°")

    X_lat, _ = make_correlated_features(500, n_features=20, n_latent=3,
                                        random_state=random_state)
    k90 = components_for_variance(PCA(n_components=None).fit(X_lat).eigenvalues_, 0.9)
    print(f"   Low-rank data: true rank 3, {k90} components reach 90% of the variance")

    n_clusters = 3
    X_hd, _ = make_high_dim_clusters(500, n_features=50, n_informative=5,
                                     n_clusters=n_clusters, random_state=random_state)
    pca = PCA(n_components=n_clusters - 1).fit(X_hd)
    found = sorted(informative_features(pca, n_clusters).tolist())
    print(f"   50D clusters: signal planted in dims {list(range(n_clusters))}, "
          f"top PC loadings on dims {found}")
    print("→ k clusters span k-1 directions: PCA finds exactly the dims they live in")


def run_all(random_state=42):
    banner("PRINCIPAL COMPONENT ANALYSIS ON A ZOO")
    X, y = make_zoo_like(random_state=random_state)
    print(f"   {X.shape[0]} animals × {X.shape[1]} traits, "
          f"{len(np.unique(y))} classes")

    experiment_correlations(X)
    experiment_variance(X)
    experiment_solvers(X)
    experiment_reconstruction(X)
    experiment_projection(X, y)
    experiment_planted_structure(random_state=random_state)
