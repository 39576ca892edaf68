# nigfield_jax/core/__init__.py
from .data import SARFieldData, PosteriorDraws
from .errors import (
    NIGFieldError,
    ShapeError,
    ParameterError,
    NumericalError,
    DecompositionError,
    is_rejection,
)
from .params import CanonicalParams, canonical_params, variance_correction

__all__ = [
    "SARFieldData",
    "PosteriorDraws",
    "NIGFieldError",
    "ShapeError",
    "ParameterError",
    "NumericalError",
    "DecompositionError",
    "is_rejection",
    "CanonicalParams",
    "canonical_params",
    "variance_correction",
]
