# nigfield_jax/likelihoods/nig.py
"""
Variance-corrected Normal-Inverse-Gaussian (NIG) element density.

A whitened noise term Lambda_i with scale h_i > 0 is NIG distributed with
hyperbolic parameters derived from the canonical (eta, zeta):

    sigma = 1 / sqrt(1 + zeta^2 eta)
    alpha = sqrt(1/eta + zeta^2) / sigma
    beta  = zeta / sigma
    delta = sigma * sqrt(1/eta) * h
    mu    = -sigma * zeta * h

so that E[Lambda_i] = 0 and Var[Lambda_i] = h_i for every (eta_star, zeta_star).
The log-density is

    sqrt(alpha^2 - beta^2) delta + beta (x - mu) + log alpha + log delta - log pi
    - 1/2 log(delta^2 + (x - mu)^2) + log K_1(alpha sqrt(delta^2 + (x - mu)^2))

Two entry points share the same formula:
  - `nig_logpdf` is pure JAX and traceable; invalid inputs give NaN / -inf.
  - `NIGDensity.evaluate` / `evaluate_many` are checked and raise
    ParameterError / NumericalError instead of returning garbage.
"""
from __future__ import annotations

from typing import NamedTuple

import jax.numpy as jnp
import numpy as np

from ..core.errors import NumericalError, ParameterError, ShapeError
from ..core.params import canonical_params, variance_correction
from ..special.bessel import log_bessel_k1
from ..utils.logging import get_logger

logger = get_logger(__name__)

LOG_PI = float(np.log(np.pi))


class NIGHyperbolicParams(NamedTuple):
    alpha: jnp.ndarray
    beta: jnp.ndarray
    delta: jnp.ndarray
    mu: jnp.ndarray
    radicand: jnp.ndarray  # alpha^2 - beta^2


def nig_hyperbolic_params(eta_star, zeta_star, h) -> NIGHyperbolicParams:
    """Variance-corrected hyperbolic parameters for scale(s) `h`."""
    eta, zeta = canonical_params(eta_star, zeta_star)
    sigma = variance_correction(eta, zeta)
    h = jnp.asarray(h)
    alpha = jnp.sqrt(1.0 / eta + zeta ** 2) / sigma
    beta = zeta / sigma
    delta = sigma * jnp.sqrt(1.0 / eta) * h
    mu = -sigma * zeta * h
    return NIGHyperbolicParams(
        alpha=alpha,
        beta=beta,
        delta=delta,
        mu=mu,
        # alpha^2 - beta^2 in closed form; the difference cancels for large |zeta|
        radicand=1.0 / (eta * sigma ** 2),
    )


def _logpdf(x, p: NIGHyperbolicParams):
    dx = x - p.mu
    r2 = p.delta ** 2 + dx ** 2
    return (
        jnp.sqrt(p.radicand) * p.delta
        + p.beta * dx
        + jnp.log(p.alpha)
        + jnp.log(p.delta)
        - LOG_PI
        - 0.5 * jnp.log(r2)
        + log_bessel_k1(p.alpha * jnp.sqrt(r2))
    )


def nig_logpdf(x, eta_star, zeta_star, h):
    """
    Element-wise NIG log-density (traceable).

    Args:
        x: whitened value(s)
        eta_star: flexibility parameter (> 0)
        zeta_star: skewness parameter
        h: scale weight(s) (> 0), broadcastable against x

    Returns:
        Log-density with the broadcast shape of x and h.
    """
    p = nig_hyperbolic_params(eta_star, zeta_star, h)
    return _logpdf(jnp.asarray(x), p)


def check_flexibility(eta_star, zeta_star):
    """Raise ParameterError unless eta_star > 0 and both values are finite."""
    eta_star = float(eta_star)
    zeta_star = float(zeta_star)
    if not np.isfinite(eta_star) or eta_star <= 0.0:
        raise ParameterError("eta_star must be strictly positive and finite",
                             {"eta_star": eta_star})
    if not np.isfinite(zeta_star):
        raise ParameterError("zeta_star must be finite", {"zeta_star": zeta_star})
    return eta_star, zeta_star


class NIGDensity:
    """
    NIG log-density of whitened noise terms:
        log p(x | eta_star, zeta_star, h)

    max_condition:
        beta (x - mu) and log K_1(alpha sqrt(delta^2 + (x - mu)^2)) are both of
        order alpha |x - mu| and cancel to O(1). The absolute rounding error
        left over is of order eps * alpha^2 / (alpha^2 - beta^2), and that
        ratio equals 1 + zeta_star^2. Checked evaluation raises NumericalError
        once the ratio exceeds max_condition (default: errors stay below ~1e-6).
    """

    name = "nig"
    param_names = ("eta_star", "zeta_star")

    def __init__(self, max_condition: float = 1e9):
        self.max_condition = max_condition

    @staticmethod
    def logpdf(x, h, eta_star, zeta_star):
        return nig_logpdf(x, eta_star, zeta_star, h)

    def evaluate(self, x_i, eta_star, zeta_star, h_i) -> float:
        """Checked log-density of a single observation."""
        return float(self.evaluate_many(np.asarray([x_i], dtype=float),
                                        np.asarray([h_i], dtype=float),
                                        eta_star, zeta_star)[0])

    def evaluate_many(self, x, h, eta_star, zeta_star) -> np.ndarray:
        """
        Checked element-wise log-density.

        Raises:
            ShapeError: x and h differ in shape
            ParameterError: eta_star <= 0, non-finite parameters, or h_i <= 0
            NumericalError: delta <= 0, non-finite alpha, a non-positive
                radicand, skewness beyond max_condition, or a non-finite result
        """
        eta_star, zeta_star = check_flexibility(eta_star, zeta_star)
        x = np.asarray(x, dtype=float)
        h = np.asarray(h, dtype=float)
        if x.shape != h.shape:
            raise ShapeError("x and h must have the same shape",
                             {"x.shape": x.shape, "h.shape": h.shape})
        if np.any(~np.isfinite(h) | (h <= 0.0)):
            raise ParameterError("all scale weights h_i must be strictly positive",
                                 {"min_h": float(np.min(h))})

        p = nig_hyperbolic_params(eta_star, zeta_star, h)
        context = {"eta_star": eta_star, "zeta_star": zeta_star}

        alpha = float(p.alpha)
        if not np.isfinite(alpha) or alpha <= 0.0:
            raise NumericalError("alpha is not a positive finite number",
                                 {**context, "alpha": alpha})
        delta = np.asarray(p.delta)
        if np.any(~np.isfinite(delta) | (delta <= 0.0)):
            raise NumericalError("delta must be strictly positive and finite",
                                 {**context, "min_delta": float(np.min(delta))})

        radicand = float(p.radicand)
        if not np.isfinite(radicand) or radicand <= 0.0:
            raise NumericalError("radicand alpha^2 - beta^2 is not a positive finite number",
                                 {**context, "radicand": radicand})
        condition = alpha ** 2 / radicand
        if condition > self.max_condition:
            logger.debug("Rejecting zeta_star=%g: alpha^2 / (alpha^2 - beta^2) = %.3e > %.3e",
                         zeta_star, condition, self.max_condition)
            raise NumericalError("skewness too large for a stable NIG evaluation",
                                 {**context, "condition": condition,
                                  "max_condition": self.max_condition})

        values = np.asarray(_logpdf(x, p))
        if not np.all(np.isfinite(values)):
            bad = np.flatnonzero(~np.isfinite(values))
            raise NumericalError("non-finite NIG log-density",
                                 {**context, "bad_indices": bad[:10].tolist()})
        return values


nig = NIGDensity()
