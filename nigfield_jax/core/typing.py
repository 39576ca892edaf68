# nigfield_jax/core/typing.py
from __future__ import annotations
from typing import Protocol, Tuple, Union

import numpy as np
from jax import Array

ArrayLike = Union[Array, np.ndarray, float]


class ElementDensity(Protocol):
    """
    Per-element log-density of one whitened noise term.

    `logpdf` must be traceable (no exceptions, NaN on invalid inputs);
    `evaluate_many` is the checked counterpart used on the hot path.
    `param_names` lists the keyword parameters both methods take.
    """

    name: str
    param_names: Tuple[str, ...]

    def logpdf(self, x, h, **params) -> Array:
        ...

    def evaluate_many(self, x, h, **params) -> np.ndarray:
        ...


class LogDensity(Protocol):
    """
    Scalar log-density oracle handed to an outer inference engine.

    It must be pure so that it can be jitted and differentiated.
    """

    def __call__(self, x, rho, eta_star=None, zeta_star=None) -> Array:
        ...
