"""
Post-hoc reconstruction from stored posterior draws.
"""
from .mixing import (
    CHI_VARIANTS,
    MixingCFG,
    MixingVariablePosteriorSampler,
    gig_parameters,
    sample_gig,
    whiten_draws,
)
from .summaries import LocationSummary, latent_field_summary, mixing_summary, summarize_draws

__all__ = [
    "CHI_VARIANTS",
    "MixingCFG",
    "MixingVariablePosteriorSampler",
    "gig_parameters",
    "sample_gig",
    "whiten_draws",
    "LocationSummary",
    "summarize_draws",
    "mixing_summary",
    "latent_field_summary",
]
