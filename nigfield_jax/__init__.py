"""
nigfield_jax: likelihood engine for latent fields driven by
Normal-Inverse-Gaussian noise.

Layout:
  - core:        parametrization, errors, data containers
  - special:     log-Bessel evaluation
  - likelihoods: element densities (NIG, Gaussian limit)
  - ops:         whitening operators (SAR)
  - parallel:    slice reducers
  - energy:      field log-likelihoods / density oracles
  - posterior:   mixing-variable reconstruction and summaries
"""
import jax

# Densities and log-determinants are evaluated in double precision.
jax.config.update("jax_enable_x64", True)

from .core import (  # noqa: E402
    DecompositionError,
    NIGFieldError,
    NumericalError,
    ParameterError,
    PosteriorDraws,
    SARFieldData,
    ShapeError,
    canonical_params,
)
from .likelihoods import NIGDensity, nig_logpdf  # noqa: E402
from .energy import (  # noqa: E402
    LikelihoodCFG,
    NIGVectorLikelihood,
    make_sar_log_density,
    nig_log_likelihood,
)
from .parallel import SequentialReducer, ThreadPoolReducer, get_reducer  # noqa: E402
from .posterior import MixingCFG, MixingVariablePosteriorSampler, summarize_draws  # noqa: E402

__version__ = "0.1.0"

__all__ = [
    "DecompositionError",
    "NIGFieldError",
    "NumericalError",
    "ParameterError",
    "ShapeError",
    "PosteriorDraws",
    "SARFieldData",
    "canonical_params",
    "NIGDensity",
    "nig_logpdf",
    "LikelihoodCFG",
    "NIGVectorLikelihood",
    "make_sar_log_density",
    "nig_log_likelihood",
    "SequentialReducer",
    "ThreadPoolReducer",
    "get_reducer",
    "MixingCFG",
    "MixingVariablePosteriorSampler",
    "summarize_draws",
]
