"""
DATASETS FOR PCA

The star is a ZOO-SHAPED table: 101 animals, 16 numeric traits,
7 classes. Fifteen traits are binary (hair? feathers? fins?), one
is a count (legs). That mix matters:

    Unscaled, 'legs' (variance ≈ 4) swamps every 0/1 trait
    (variance ≤ 0.25). Standardize and the binary traits get a vote.

The smaller generators exist to make one point each:

    make_cross              covariance is a multiple of I — no preferred direction
    make_2d_rotated         one long axis — PCA should find it
    make_correlated_features rank-k signal + noise — scree plot has an elbow
    make_high_dim_clusters  signal in a few dims, noise in the rest — can PCA find them?
"""

import numpy as np


# ============================================================
# ZOO-LIKE DATA
# ============================================================

ZOO_FEATURES = (
    'hair', 'feathers', 'eggs', 'milk', 'airborne', 'aquatic', 'predator',
    'toothed', 'backbone', 'breathes', 'venomous', 'fins', 'legs', 'tail',
    'domestic', 'catsize',
)

ZOO_CLASSES = ('mammal', 'bird', 'reptile', 'fish', 'amphibian', 'bug', 'invertebrate')

LEGS_COLUMN = ZOO_FEATURES.index('legs')

# class code → (rows, P(trait = 1) for each binary trait in ZOO_FEATURES order, legs choices, legs probs)
_ZOO_PROTOTYPES = {
    #    hair feat eggs milk air  aqua pred tooth bone brth venm fins tail dome cats
    1: (41, (.95, 0., .02, 1., .05, .15, .5, .98, 1., .95, 0., .1, .85, .15, .75),
        (4, 2, 0), (.8, .15, .05)),
    2: (20, (0., 1., 1., 0., .8, .3, .4, 0., 1., 1., 0., 0., 1., .1, .3),
        (2,), (1.,)),
    3: (5, (0., 0., .8, 0., 0., .4, .8, .8, 1., .8, .4, 0., 1., 0., .4),
        (0, 4), (.4, .6)),
    4: (13, (0., 0., 1., 0., 0., 1., .6, 1., 1., 0., .1, 1., 1., .1, .3),
        (0,), (1.,)),
    5: (4, (0., 0., 1., 0., 0., 1., .8, .8, 1., 1., .25, 0., .25, 0., 0.),
        (4,), (1.,)),
    6: (8, (.5, 0., 1., 0., .75, 0., .1, 0., 0., 1., .25, 0., 0., .1, 0.),
        (6,), (1.,)),
    7: (10, (0., 0., .9, 0., 0., .7, .8, .1, 0., .2, .2, 0., .1, 0., .1),
        (0, 4, 5, 6, 8), (.4, .1, .2, .1, .2)),
}


def class_name(code):
    """Animal class code (1–7) → readable name."""
    if not 1 <= code <= len(ZOO_CLASSES):
        raise ValueError(f"Unknown class code: {code}")
    return ZOO_CLASSES[code - 1]


def make_zoo_like(random_state=42):
    """
    101 animals × 16 traits, laid out like the UCI zoo table.

    Returns:
        X: (101, 16) float — columns in ZOO_FEATURES order
        y: (101,) int — class codes 1..7
    """
    np.random.seed(random_state)

    X_parts, y_parts = [], []
    for code, (n, trait_probs, legs, legs_probs) in _ZOO_PROTOTYPES.items():
        traits = (np.random.rand(n, len(trait_probs)) < np.array(trait_probs)).astype(float)
        n_legs = np.random.choice(legs, size=n, p=legs_probs).astype(float)
        X_parts.append(np.insert(traits, LEGS_COLUMN, n_legs, axis=1))
        y_parts.append(np.full(n, code))

    X = np.vstack(X_parts)
    y = np.concatenate(y_parts)

    idx = np.random.permutation(len(y))
    return X[idx], y[idx]


# ============================================================
# SMALL GEOMETRIC EXAMPLES
# ============================================================

def make_cross():
    """Four points on the axes. Covariance = (8/3) I."""
    return np.array([[2.0, 0.0], [0.0, 2.0], [-2.0, 0.0], [0.0, -2.0]])


def make_2d_rotated(n_samples=300, angle=30, random_state=42):
    """
    Elongated 2D Gaussian — PCA should find the axis of elongation.
    """
    np.random.seed(random_state)
    X = np.column_stack([
        np.random.randn(n_samples) * 3,   # high variance
        np.random.randn(n_samples) * 0.5  # low variance
    ])
    theta = np.radians(angle)
    R = np.array([[np.cos(theta), -np.sin(theta)],
                  [np.sin(theta),  np.cos(theta)]])
    return X @ R.T


def make_correlated_features(n_samples=500, n_features=10, n_latent=2, noise=0.3,
                             random_state=42):
    """
    Data generated from a low-rank model: X = Z @ W + noise
    PCA should recover the latent dimensions.

    Returns:
        X: (n_samples, n_features)
        Z: (n_samples, n_latent) — the true latent factors
    """
    np.random.seed(random_state)
    Z = np.random.randn(n_samples, n_latent)
    W = np.random.randn(n_latent, n_features)
    X = Z @ W + np.random.randn(n_samples, n_features) * noise
    return X, Z


def make_high_dim_clusters(n_samples=500, n_features=50, n_informative=5,
                           n_clusters=3, random_state=42):
    """
    High-dimensional data where only a few dimensions carry information.
    """
    np.random.seed(random_state)

    X = np.random.randn(n_samples, n_features) * 0.5
    # Contiguous blocks; sizes differ by at most one when n_clusters ∤ n_samples
    labels = np.arange(n_samples) * n_clusters // n_samples
    for i in range(n_clusters):
        X[labels == i, i % n_informative] += 3.0

    return X, labels
