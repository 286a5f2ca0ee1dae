from __future__ import annotations

from random import Random

from initracker.config import get_settings


def get_rng() -> Random:
    """Dice source for one request; seeded when INITRACKER_RNG_SEED is set."""
    seed = get_settings().rng_seed
    return Random(seed) if seed is not None else Random()
