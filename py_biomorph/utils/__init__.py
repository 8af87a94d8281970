"""Utility helpers."""

from .alea_prng import AleaPRNG
from .random import SeedLike, new_seed, resolve_prng

__all__ = ["AleaPRNG", "SeedLike", "new_seed", "resolve_prng"]
