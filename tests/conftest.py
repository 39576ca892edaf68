import numpy as np
import pytest

import nigfield_jax  # noqa: F401  (enables x64 before any test builds arrays)


def ring_adjacency(n):
    """Row-standardized adjacency of a ring of n locations."""
    W = np.zeros((n, n))
    for i in range(n):
        W[i, (i - 1) % n] = 0.5
        W[i, (i + 1) % n] = 0.5
    return W


@pytest.fixture
def rng():
    return np.random.default_rng(20240611)


@pytest.fixture
def ring_field(rng):
    n = 8
    W = ring_adjacency(n)
    h = rng.uniform(0.5, 2.0, size=n)
    x = rng.normal(size=n)
    return W, h, x
