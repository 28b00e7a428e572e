import logging
import random
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Source of independent uniform floats in [0, 1).

    ``random.Random`` and ``random.SystemRandom`` both satisfy it.
    """

    def random(self) -> float:
        ...


RNG_STRATEGIES = {
    "mersenne": "Mersenne Twister (private random.Random instance)",
    "system": "OS entropy via random.SystemRandom",
}


def get_random_source(strategy_name: str = "mersenne", seed: Optional[int] = None) -> RandomSource:
    strategy_name = strategy_name.lower()
    if strategy_name == "mersenne":
        logger.debug("Creating Mersenne Twister random source with seed: %s", seed)
        return random.Random(seed)
    if strategy_name == "system":
        if seed is not None:
            logger.warning("Seed ignored for system random source")
        return random.SystemRandom()
    raise ValueError(
        f"Unknown RNG strategy: {strategy_name} (expected one of {', '.join(RNG_STRATEGIES)})"
    )


def draw_index(rng: RandomSource, size: int) -> int:
    """Uniform integer in [0, size) from a single draw."""
    return min(int(rng.random() * size), size - 1)
