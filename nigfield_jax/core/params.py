# nigfield_jax/core/params.py
"""
Flexibility/skewness parametrization of the NIG driving noise.

The estimable parameters (eta_star, zeta_star) control tail-heaviness and
asymmetry on a scale where the noise keeps unit variance per unit of h. They are
mapped to the canonical (eta, zeta) by

    eta  = eta_star * (1 + zeta_star^2 - |zeta_star| sqrt(1 + zeta_star^2))^2
    zeta = zeta_star / sqrt(eta)

The inner factor is evaluated as sqrt(1 + zeta_star^2) / (sqrt(1 + zeta_star^2) + |zeta_star|),
the same quantity without the cancellation for large |zeta_star|.

Every consumer (density evaluation, posterior sampling of mixing variables)
MUST go through `canonical_params` so both sides agree on the parametrization.
"""
from __future__ import annotations

from typing import NamedTuple

import jax.numpy as jnp


class CanonicalParams(NamedTuple):
    eta: jnp.ndarray
    zeta: jnp.ndarray


def canonical_params(eta_star, zeta_star) -> CanonicalParams:
    """
    Map (eta_star, zeta_star) to canonical (eta, zeta).

    Works element-wise on scalars or arrays and is traceable.
    """
    eta_star = jnp.asarray(eta_star)
    zeta_star = jnp.asarray(zeta_star)
    r = jnp.sqrt(1.0 + zeta_star ** 2)
    factor = r / (r + jnp.abs(zeta_star))
    eta = eta_star * factor ** 2
    zeta = zeta_star / jnp.sqrt(eta)
    return CanonicalParams(eta=eta, zeta=zeta)


def variance_correction(eta, zeta) -> jnp.ndarray:
    """sigma = 1 / sqrt(1 + zeta^2 eta), which equals 1 / sqrt(1 + zeta_star^2)."""
    return 1.0 / jnp.sqrt(1.0 + zeta ** 2 * eta)


__all__ = ["CanonicalParams", "canonical_params", "variance_correction"]
