# nigfield_jax/core/data.py
"""
Data view layer.

Containers for the fixed inputs of a SAR field model and for stored posterior
draws. They validate shapes and positivity once, at construction, and provide
views (batch, prefix) over draws. No probabilistic decisions are made here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np

from .errors import ParameterError, ShapeError


def validate_scale(h) -> np.ndarray:
    """Return `h` as a 1-D float array, checking h_i > 0 and finiteness."""
    h = np.asarray(h, dtype=float)
    if h.ndim != 1:
        raise ShapeError("h must be a 1-D vector", {"h.shape": h.shape})
    if not np.all(np.isfinite(h)) or np.any(h <= 0.0):
        bad = np.flatnonzero(~np.isfinite(h) | (h <= 0.0))
        raise ParameterError(
            "all scale weights h_i must be strictly positive and finite",
            {"bad_indices": bad[:10].tolist()},
        )
    return h


def validate_adjacency(W, n: int) -> None:
    shape = tuple(W.shape)
    if shape != (n, n):
        raise ShapeError("W must be square and match the number of locations",
                         {"W.shape": shape, "N": n})


@dataclass(frozen=True)
class SARFieldData:
    """
    Fixed inputs of a SAR field model.

    - W: (N, N) adjacency matrix (row-standardized by the caller)
    - h: (N,) positive scale weights (distances/areas)
    """
    W: np.ndarray
    h: np.ndarray

    def __post_init__(self):
        h = validate_scale(self.h)
        validate_adjacency(self.W, h.shape[0])
        object.__setattr__(self, "h", h)

    def __len__(self) -> int:
        """Return number of locations."""
        return self.h.shape[0]


@dataclass(frozen=True)
class PosteriorDraws:
    """
    Stored posterior draws of a SAR field model.

    - x: (n_draws, N) latent field draws
    - rho: (n_draws,) correlation parameter
    - eta_star: (n_draws,) flexibility parameter
    - zeta_star: (n_draws,) skewness parameter
    """
    x: np.ndarray
    rho: np.ndarray
    eta_star: np.ndarray
    zeta_star: np.ndarray

    def __post_init__(self):
        x = np.atleast_2d(np.asarray(self.x, dtype=float))
        n_draws = x.shape[0]
        object.__setattr__(self, "x", x)
        for name in ("rho", "eta_star", "zeta_star"):
            arr = np.atleast_1d(np.asarray(getattr(self, name), dtype=float))
            if arr.shape != (n_draws,):
                raise ShapeError(
                    f"{name} must have one value per draw",
                    {f"{name}.shape": arr.shape, "n_draws": n_draws},
                )
            object.__setattr__(self, name, arr)
        if np.any(self.eta_star <= 0.0):
            raise ParameterError("eta_star draws must be strictly positive",
                                 {"min_eta_star": float(self.eta_star.min())})

    def batch(self, idx: Union[np.ndarray, slice]) -> PosteriorDraws:
        """
        Create a batched view over draws.

        Args:
            idx: Index array or slice

        Returns:
            New PosteriorDraws with selected draws
        """
        return PosteriorDraws(self.x[idx], self.rho[idx], self.eta_star[idx], self.zeta_star[idx])

    def prefix(self, t: int) -> PosteriorDraws:
        """First t draws (e.g. to drop a tail or inspect a short run)."""
        return self.batch(slice(0, t))

    @property
    def n_locations(self) -> int:
        return self.x.shape[1]

    def __len__(self) -> int:
        """Return number of draws."""
        return self.x.shape[0]


__all__ = [
    "SARFieldData",
    "PosteriorDraws",
    "validate_scale",
    "validate_adjacency",
]
