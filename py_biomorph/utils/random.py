"""
Random number generation utilities.

Every stochastic stage takes an explicit ``seed`` argument instead of reading
a shared global generator, so independent generations never interfere.
"""

import secrets
from typing import Union

from .alea_prng import AleaPRNG

SeedLike = Union[None, int, str, AleaPRNG]


def new_seed() -> str:
    """Draw a fresh seed string from OS entropy."""
    return secrets.token_hex(8)


def resolve_prng(seed: SeedLike = None) -> AleaPRNG:
    """
    Turn a seed argument into an Alea PRNG.

    Args:
        seed: ``None`` for a fresh entropy-derived seed, an int or string to
            reproduce a stream, or an existing ``AleaPRNG`` to keep drawing
            from it.

    Returns:
        AleaPRNG instance
    """
    if isinstance(seed, AleaPRNG):
        return seed
    if seed is None:
        seed = new_seed()
    return AleaPRNG(seed)
