# nigfield_jax/posterior/mixing.py
"""
Posterior reconstruction of NIG mixing variables.

In the variance-corrected model each whitened term is a normal variance-mean
mixture

    Lambda_i = sigma * (zeta (V_i - h_i) + sqrt(V_i) Z_i),   Z_i ~ N(0, 1)
    V_i ~ GIG(-1/2, chi = h_i^2 / eta, psi = 1 / eta)

Conditionally on Lambda = D x, the mixing variables are independent with

    V_i | Lambda_i ~ GIG(lambda = -1,
                         psi = 1/eta + zeta^2,
                         chi = h_i^2/eta + (Lambda_i / sigma + zeta h_i)^2)

Given stored posterior draws of (x, rho, eta_star, zeta_star), one V row is
drawn per posterior draw. The returned matrix is V diag(1/h), the per-location
mixing variable relative to its prior mean h_i.

chi variants:
  - "scaled":   Lambda_i / sigma, the exact conditional above (default)
  - "unscaled": Lambda_i without the division by sigma; equals "scaled" only
    when zeta_star = 0. Kept for comparison with results produced that way.

GIG draws are delegated to `scipy.stats.geninvgauss`:
    GIG(lambda, chi, psi) = sqrt(chi/psi) * geninvgauss(p=lambda, b=sqrt(chi psi))
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
from scipy.stats import geninvgauss

from ..core.data import PosteriorDraws, SARFieldData
from ..core.errors import ShapeError
from ..core.params import canonical_params, variance_correction
from ..ops.sar import densify
from ..parallel.reducer import ParallelReducer, get_reducer
from ..utils.logging import get_logger

logger = get_logger(__name__)

CHI_VARIANTS = ("scaled", "unscaled")

RNGLike = Union[None, int, np.random.SeedSequence, np.random.Generator]


@dataclass(frozen=True)
class MixingCFG:
    """Configuration for mixing-variable reconstruction."""
    chi_variant: str = "scaled"
    n_workers: Optional[int] = None  # None: os.cpu_count(); 1: sequential
    seed: Optional[int] = None       # used when no rng is passed to sample()


def whiten_draws(X, rho, W) -> np.ndarray:
    """Row-wise D_d x_d with D_d = I - rho_d W; X is (n_draws, N)."""
    X = np.asarray(X, dtype=float)
    rho = np.asarray(rho, dtype=float)
    W = np.asarray(W, dtype=float)
    return X - rho[:, None] * (X @ W.T)


def gig_parameters(DX, eta_star, zeta_star, h, chi_variant: str = "scaled") -> Tuple[np.ndarray, np.ndarray]:
    """
    Conditional GIG parameters of the mixing variables.

    Args:
        DX: (n_draws, N) whitened draws
        eta_star, zeta_star: (n_draws,) flexibility / skewness draws
        h: (N,) scale weights
        chi_variant: "scaled" or "unscaled"

    Returns:
        psi: (n_draws,)
        chi: (n_draws, N)
    """
    if chi_variant not in CHI_VARIANTS:
        raise ValueError(f"chi_variant must be one of {CHI_VARIANTS}, got {chi_variant!r}")
    DX = np.atleast_2d(np.asarray(DX, dtype=float))
    h = np.asarray(h, dtype=float)

    eta, zeta = (np.asarray(v, dtype=float) for v in canonical_params(eta_star, zeta_star))
    eta = np.atleast_1d(eta)
    zeta = np.atleast_1d(zeta)
    sigma = np.asarray(variance_correction(eta, zeta), dtype=float)

    psi = 1.0 / eta + zeta ** 2
    resid = DX / sigma[:, None] if chi_variant == "scaled" else DX
    chi = h[None, :] ** 2 / eta[:, None] + (resid + zeta[:, None] * h[None, :]) ** 2
    return psi, chi


def sample_gig(lam, chi, psi, rng: np.random.Generator, size=None) -> np.ndarray:
    """
    Draw GIG(lam, chi, psi) variates.

    `size` defaults to the broadcast shape of chi and psi.
    """
    chi, psi = np.broadcast_arrays(np.asarray(chi, dtype=float), np.asarray(psi, dtype=float))
    return geninvgauss.rvs(
        p=lam,
        b=np.sqrt(chi * psi),
        scale=np.sqrt(chi / psi),
        size=chi.shape if size is None else size,
        random_state=rng,
    )


def _seed_sequence(rng: RNGLike) -> np.random.SeedSequence:
    if isinstance(rng, np.random.SeedSequence):
        return rng
    if isinstance(rng, np.random.Generator):
        return np.random.SeedSequence(int(rng.integers(2 ** 63)))
    return np.random.SeedSequence(rng)


class MixingVariablePosteriorSampler:
    """
    Stateless sampler of mixing variables from stored posterior draws.

    Rows (posterior draws) are distributed over the reducer's slices. Each row
    gets its own generator spawned from one SeedSequence, so a given seed
    yields the same matrix whatever the number of workers.
    """

    def __init__(self, cfg: MixingCFG = MixingCFG(), reducer: Optional[ParallelReducer] = None):
        if cfg.chi_variant not in CHI_VARIANTS:
            raise ValueError(f"chi_variant must be one of {CHI_VARIANTS}, got {cfg.chi_variant!r}")
        self.cfg = cfg
        self.reducer = reducer if reducer is not None else get_reducer(cfg.n_workers)

    def sample(self, X_draws, rho_draws, W, eta_star_draws, zeta_star_draws, h,
               rng: RNGLike = None) -> np.ndarray:
        """
        Args:
            X_draws: (n_draws, N) latent field draws
            rho_draws: (n_draws,) correlation draws
            W: (N, N) adjacency matrix (dense or BCOO)
            eta_star_draws, zeta_star_draws: (n_draws,) flexibility / skewness draws
            h: (N,) scale weights
            rng: seed, SeedSequence or Generator (defaults to cfg.seed)

        Returns:
            (n_draws, N) matrix V diag(1/h).
        """
        draws = PosteriorDraws(X_draws, rho_draws, eta_star_draws, zeta_star_draws)
        data = SARFieldData(W=np.asarray(densify(W)), h=h)
        return self.sample_draws(draws, data, rng=rng)

    def sample_draws(self, draws: PosteriorDraws, data: SARFieldData, rng: RNGLike = None) -> np.ndarray:
        if draws.n_locations != len(data):
            raise ShapeError("draws and field data disagree on the number of locations",
                             {"draws.N": draws.n_locations, "data.N": len(data)})
        n_draws, n = len(draws), len(data)
        if n_draws == 0:
            return np.empty((0, n))

        DX = whiten_draws(draws.x, draws.rho, data.W)
        psi, chi = gig_parameters(DX, draws.eta_star, draws.zeta_star, data.h,
                                  chi_variant=self.cfg.chi_variant)
        children = _seed_sequence(rng if rng is not None else self.cfg.seed).spawn(n_draws)
        logger.info("Sampling mixing variables: %d draws x %d locations (chi_variant=%s)",
                    n_draws, n, self.cfg.chi_variant)

        def sample_rows(lo, hi):
            return np.stack([
                sample_gig(-1.0, chi[d], psi[d], np.random.default_rng(children[d]))
                for d in range(lo, hi)
            ])

        V = np.concatenate(self.reducer.map_slices(n_draws, sample_rows), axis=0)
        return V / data.h[None, :]

    def close(self) -> None:
        close = getattr(self.reducer, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


__all__ = [
    "CHI_VARIANTS",
    "MixingCFG",
    "MixingVariablePosteriorSampler",
    "gig_parameters",
    "sample_gig",
    "whiten_draws",
]
