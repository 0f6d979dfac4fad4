# blackgold/infrastructure/rng/strategies/mersenne_rng.py
import random
from typing import List, Optional


class MersenneTwisterRNG:
    """
    Random number generator using the Mersenne Twister algorithm (Python's default).
    Used for reproducible tests and analysis runs.
    """
    def __init__(self, seed_value: Optional[int] = None):
        """
        Initialize the RNG with an optional seed.

        Args:
            seed_value: Optional seed value for reproducible random numbers
        """
        # Dedicated instance, the module-level generator is never touched
        self._random = random.Random()

        if seed_value is not None:
            self.seed(seed_value)

    def get_random_int(self, min_val: int, max_val: int) -> int:
        return self._random.randint(min_val, max_val)

    def get_batch_ints(self, min_val: int, max_val: int, count: int) -> List[int]:
        return [self._random.randint(min_val, max_val) for _ in range(count)]

    def seed(self, seed_value: int) -> None:
        self._random.seed(seed_value)
