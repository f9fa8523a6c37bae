"""Shared fixtures: small PCA models built with an SVD."""

import numpy as np
import pytest


def build_model(X, A, *, kind="pca"):
    mx = X.mean(axis=0)
    sx = X.std(axis=0, ddof=1)
    Xcs = (X - mx) / sx
    U, s, Vt = np.linalg.svd(Xcs, full_matrices=False)
    return {
        "T": U[:, :A] * s[:A],
        "P": Vt[:A].T,
        "mx": mx,
        "sx": sx,
        "var": float(np.sum(Xcs ** 2)),
        "lvs": list(range(1, A + 1)),
        "type": kind,
    }


@pytest.fixture
def data() -> np.ndarray:
    return np.random.default_rng(0).normal(size=(20, 6))


@pytest.fixture
def model(data) -> dict:
    """Three-component PCA model of 20 observations and 6 variables."""
    return build_model(data, 3)
