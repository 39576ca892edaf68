# nigfield_jax/ops/sar.py
"""
Whitening operators of spatial autoregressive (SAR) fields.

A SAR field x satisfies D x = Lambda with D = I - rho W, where W is a
row-standardized adjacency matrix and Lambda has independent components.
D is rebuilt for every proposed rho; it may be dense or a
`jax.experimental.sparse.BCOO` matrix.

Log-determinant term:
    sum_i log diag(chol(D^T D))_i = 1/2 log det(D^T D) = log |det D|

This is only defined when D^T D is symmetric positive definite, i.e. D is
invertible (true for I - rho W with |rho| < 1 and W row-stochastic). Other
operators are a caller error; they surface as DecompositionError from the
checked path and NaN from the traceable one. No jitter is ever added.
"""
from __future__ import annotations

import jax.numpy as jnp
import numpy as np
from jax.experimental import sparse

from ..core.errors import DecompositionError, ShapeError


def _is_sparse(D) -> bool:
    return isinstance(D, sparse.BCOO)


def as_operator(D):
    """Dense operators become jax arrays; BCOO matrices pass through."""
    return D if _is_sparse(D) else jnp.asarray(D)


def densify(D) -> jnp.ndarray:
    return D.todense() if _is_sparse(D) else jnp.asarray(D)


def sar_operator(W, rho) -> jnp.ndarray:
    """D = I - rho W (dense)."""
    W = densify(W)
    return jnp.eye(W.shape[0], dtype=W.dtype) - rho * W


def apply_operator(D, x) -> jnp.ndarray:
    """Lambda = D x for dense or sparse D."""
    return as_operator(D) @ jnp.asarray(x)


def apply_sar(W, rho, x) -> jnp.ndarray:
    """(I - rho W) x without materializing D; works for dense and BCOO W."""
    x = jnp.asarray(x)
    return x - rho * (as_operator(W) @ x)


def check_operator_shapes(D, x, h) -> int:
    """Validate D (N, N), x (N,), h (N,); return N."""
    x_shape = tuple(np.shape(x))
    h_shape = tuple(np.shape(h))
    D_shape = tuple(D.shape) if _is_sparse(D) else tuple(np.shape(D))
    context = {"D.shape": D_shape, "x.shape": x_shape, "h.shape": h_shape}
    if len(x_shape) != 1:
        raise ShapeError("x must be a 1-D vector", context)
    n = x_shape[0]
    if D_shape != (n, n):
        raise ShapeError("D must be square with one row per element of x", context)
    if h_shape != (n,):
        raise ShapeError("h must have one weight per element of x", context)
    return n


def log_det_term_unchecked(D) -> jnp.ndarray:
    """Traceable sum(log(diag(chol(D^T D)))); NaN if the factorization fails."""
    D = densify(D)
    L = jnp.linalg.cholesky(D.T @ D)
    return jnp.sum(jnp.log(jnp.diag(L)))


def log_det_term(D) -> float:
    """
    Checked log-determinant term.

    Raises:
        DecompositionError: D^T D is not (numerically) positive definite.
    """
    D = densify(D)
    L = np.asarray(jnp.linalg.cholesky(D.T @ D))
    diag = np.diag(L)
    if not np.all(np.isfinite(L)) or np.any(diag <= 0.0):
        raise DecompositionError("Cholesky factorization of D^T D failed",
                                 {"N": D.shape[0]})
    return float(np.sum(np.log(diag)))


__all__ = [
    "as_operator",
    "densify",
    "sar_operator",
    "apply_operator",
    "apply_sar",
    "check_operator_shapes",
    "log_det_term",
    "log_det_term_unchecked",
]
