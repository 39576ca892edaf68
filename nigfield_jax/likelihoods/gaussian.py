# nigfield_jax/likelihoods/gaussian.py
import jax.numpy as jnp
import numpy as np

from ..core.errors import NumericalError, ParameterError, ShapeError


class GaussianDensity:
    """
    Gaussian element density with variance h:
        p(x | h) = N(x; 0, h)

    This is the eta_star -> 0, zeta_star = 0 limit of the NIG density and the
    driving noise of a Gaussian SAR model.
    """

    name = "gaussian"
    param_names = ()

    @staticmethod
    def logpdf(x, h):
        return -0.5 * (jnp.log(2.0 * jnp.pi * h) + x ** 2 / h)

    def evaluate_many(self, x, h) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        h = np.asarray(h, dtype=float)
        if x.shape != h.shape:
            raise ShapeError("x and h must have the same shape",
                             {"x.shape": x.shape, "h.shape": h.shape})
        if np.any(~np.isfinite(h) | (h <= 0.0)):
            raise ParameterError("all scale weights h_i must be strictly positive",
                                 {"min_h": float(np.min(h))})
        values = np.asarray(self.logpdf(x, h))
        if not np.all(np.isfinite(values)):
            raise NumericalError("non-finite Gaussian log-density")
        return values


gaussian = GaussianDensity()
