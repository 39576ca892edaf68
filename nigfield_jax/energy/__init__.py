"""
Field log-likelihoods (density oracles for outer samplers).
"""
from .sar import (
    LikelihoodCFG,
    NIGVectorLikelihood,
    nig_log_likelihood,
    make_sar_log_density,
)

__all__ = [
    "LikelihoodCFG",
    "NIGVectorLikelihood",
    "nig_log_likelihood",
    "make_sar_log_density",
]
