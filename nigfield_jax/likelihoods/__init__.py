# nigfield_jax/likelihoods/__init__.py

from .base import available, get, register

from .nig import (
    NIGDensity,
    NIGHyperbolicParams,
    nig,
    nig_hyperbolic_params,
    nig_logpdf,
)
from .gaussian import GaussianDensity, gaussian

register(nig)
register(gaussian)

__all__ = [
    "get",
    "register",
    "available",
    "NIGDensity",
    "NIGHyperbolicParams",
    "nig_hyperbolic_params",
    "nig_logpdf",
    "GaussianDensity",
    "nig",
    "gaussian",
]
