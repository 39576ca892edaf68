"""Exceptions raised by the likelihood engine.

Exception Hierarchy:
    NIGFieldError (base)
    ├── ShapeError          (dimension mismatch among D, x, h, W)
    ├── ParameterError      (eta_star <= 0, h_i <= 0, non-finite inputs)
    ├── NumericalError      (domain violation inside the NIG density)
    └── DecompositionError  (D^T D not positive definite)

Shape and parameter errors are setup-time errors: an outer sampler should abort
the run with the reported cause. Numerical and decomposition errors belong to a
single proposal and are expected to be turned into a rejection (log-density
= -inf) by the caller:

>>> try:
...     ll = likelihood.log_likelihood(x, D, eta_star, zeta_star, h)
... except NIGFieldError as e:
...     if not is_rejection(e):
...         raise
...     ll = -float("inf")
"""
from __future__ import annotations


class NIGFieldError(Exception):
    """Base class for all likelihood-engine errors.

    Attributes
    ----------
    error_context : dict
        Extra information about the failing evaluation (shapes, parameter
        values, offending indices).
    """

    def __init__(self, message: str, error_context: dict | None = None):
        super().__init__(message)
        self.error_context = error_context or {}

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.error_context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.error_context.items())
            return f"{base_msg} (context: {context_str})"
        return base_msg


class ShapeError(NIGFieldError, ValueError):
    """Dimension mismatch among the operator, the field and the scale vector."""


class ParameterError(NIGFieldError, ValueError):
    """Parameter outside its admissible range (eta_star <= 0, h_i <= 0, ...)."""


class NumericalError(NIGFieldError, ArithmeticError):
    """Domain violation while evaluating the NIG density.

    Raised for a non-positive or non-finite delta, a non-finite alpha, a
    non-positive radicand alpha^2 - beta^2, or a skewness so large that the
    log-density would lose its accuracy to cancellation.
    """


class DecompositionError(NIGFieldError, ArithmeticError):
    """Cholesky factorization of D^T D failed (not positive definite)."""


def is_rejection(exc: BaseException) -> bool:
    """Whether ``exc`` should reject a single proposal rather than abort a run."""
    return isinstance(exc, (NumericalError, DecompositionError))


__all__ = [
    "NIGFieldError",
    "ShapeError",
    "ParameterError",
    "NumericalError",
    "DecompositionError",
    "is_rejection",
]
