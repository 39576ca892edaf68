# nigfield_jax/posterior/summaries.py
"""Per-location summaries of posterior draw matrices (mixing variables, latent field)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..core.errors import ShapeError


@dataclass(frozen=True)
class LocationSummary:
    mean: np.ndarray       # (N,)
    sd: np.ndarray         # (N,)
    quantiles: np.ndarray  # (len(probs), N)
    probs: tuple
    exceedance: Optional[np.ndarray] = None  # (N,) P(draw > threshold)


def _as_draw_matrix(draws) -> np.ndarray:
    draws = np.asarray(draws, dtype=float)
    if draws.ndim != 2:
        raise ShapeError("draws must be an (n_draws, N) matrix", {"shape": draws.shape})
    return draws


def summarize_draws(draws, probs: Sequence[float] = (0.05, 0.5, 0.95)) -> LocationSummary:
    """
    Column-wise mean, standard deviation (ddof=1) and quantiles of an
    (n_draws, N) matrix.
    """
    draws = _as_draw_matrix(draws)
    ddof = 1 if draws.shape[0] > 1 else 0
    return LocationSummary(
        mean=draws.mean(axis=0),
        sd=draws.std(axis=0, ddof=ddof),
        quantiles=np.quantile(draws, probs, axis=0),
        probs=tuple(probs),
    )


def mixing_summary(V, probs: Sequence[float] = (0.05, 0.5, 0.95), threshold: float = 1.0) -> LocationSummary:
    """
    Summary of relative mixing variables V / h.

    `exceedance` is the posterior probability that V_i / h_i exceeds
    `threshold`; with the default of 1 it flags locations whose noise is
    heavier than its prior mean.
    """
    V = _as_draw_matrix(V)
    summary = summarize_draws(V, probs)
    exceedance = (V > threshold).mean(axis=0) if V.shape[0] else np.full(V.shape[1], np.nan)
    return LocationSummary(summary.mean, summary.sd, summary.quantiles, summary.probs, exceedance)


def latent_field_summary(X_draws, probs: Sequence[float] = (0.05, 0.5, 0.95)) -> LocationSummary:
    return summarize_draws(X_draws, probs)


__all__ = ["LocationSummary", "summarize_draws", "mixing_summary", "latent_field_summary"]
