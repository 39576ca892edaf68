from .bessel import log_bessel_k1, k0e, k1e

__all__ = ["log_bessel_k1", "k0e", "k1e"]
