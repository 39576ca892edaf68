# nigfield_jax/likelihoods/base.py
from __future__ import annotations

from typing import Dict, List, Optional

from ..core.typing import ElementDensity

_DENSITY_REGISTRY: Dict[str, ElementDensity] = {}

_REQUIRED = ("param_names", "logpdf", "evaluate_many")


def register(density: ElementDensity, name: Optional[str] = None) -> None:
    """
    Register an element density under `name` (defaults to `density.name`).

    The object must expose `param_names`, a traceable `logpdf(x, h, **params)`
    and a checked `evaluate_many(x, h, **params)`.
    """
    name = name or getattr(density, "name", None)
    if not name:
        raise ValueError("An element density needs a name to be registered.")
    missing = [attr for attr in _REQUIRED if not hasattr(density, attr)]
    if missing:
        raise TypeError(f"Density '{name}' is missing {missing}.")
    if name in _DENSITY_REGISTRY:
        raise KeyError(f"Likelihood '{name}' already registered.")
    _DENSITY_REGISTRY[name] = density


def get(name: str) -> ElementDensity:
    """
    Retrieve an element density by name.
    """
    try:
        return _DENSITY_REGISTRY[name]
    except KeyError:
        raise KeyError(
            f"Unknown likelihood '{name}'. "
            f"Available: {available()}"
        )


def available() -> List[str]:
    return sorted(_DENSITY_REGISTRY)
