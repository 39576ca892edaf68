# nigfield_jax/special/bessel.py
"""
Logarithm of the modified Bessel function of the second kind, order 1.

    log K_1(z) = log(k1e(z)) - z,     k1e(z) = exp(z) K_1(z)

The exponentially scaled `scipy.special.k1e` stays O(z^{-1/2}) for large z, so
the log is taken of a well-scaled number and the -z term is added exactly. A
naive log(K_1(z)) underflows to -inf once z exceeds roughly 700.

The host evaluation is wrapped in `jax.pure_callback` so the function can be
used inside jit-compiled log-densities, and it carries a custom JVP

    d/dz log K_1(z) = -K_0(z) / K_1(z) - 1/z = -k0e(z) / k1e(z) - 1/z

so gradient-based samplers can differentiate through it.
"""
from __future__ import annotations

import jax
import jax.numpy as jnp
import numpy as np
from scipy import special


def _host(fn):
    def _eval(z):
        z = np.asarray(z)
        return np.asarray(fn(z), dtype=z.dtype)
    return _eval


_k0e_host = _host(special.k0e)
_k1e_host = _host(special.k1e)


def _callback(host_fn, z):
    z = jnp.asarray(z)
    out = jax.ShapeDtypeStruct(z.shape, z.dtype)
    return jax.pure_callback(host_fn, out, z, vmap_method="broadcast_all")


def k1e(z):
    """Exponentially scaled K_1, traceable."""
    return _callback(_k1e_host, z)


def k0e(z):
    """Exponentially scaled K_0, traceable."""
    return _callback(_k0e_host, z)


@jax.custom_jvp
def log_bessel_k1(z):
    """log K_1(z) for z > 0 (NaN for z < 0, +inf at z = 0)."""
    z = jnp.asarray(z)
    return jnp.log(k1e(z)) - z


@log_bessel_k1.defjvp
def _log_bessel_k1_jvp(primals, tangents):
    (z,), (dz,) = primals, tangents
    z = jnp.asarray(z)
    scaled_k1 = k1e(z)
    value = jnp.log(scaled_k1) - z
    dlog = -k0e(z) / scaled_k1 - 1.0 / z
    return value, dlog * dz


__all__ = ["log_bessel_k1", "k0e", "k1e"]
