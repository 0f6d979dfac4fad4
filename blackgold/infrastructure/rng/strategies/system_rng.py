# blackgold/infrastructure/rng/strategies/system_rng.py
import logging
import random
from typing import List, Optional


class SystemRNG:
    """
    Random number generator drawing from the operating system entropy source.
    This is the strategy used for live play; it cannot be seeded.
    """
    def __init__(self, seed_value: Optional[int] = None):
        self.logger = logging.getLogger(__name__)
        self._random = random.SystemRandom()

        if seed_value is not None:
            self.seed(seed_value)

    def get_random_int(self, min_val: int, max_val: int) -> int:
        return self._random.randint(min_val, max_val)

    def get_batch_ints(self, min_val: int, max_val: int, count: int) -> List[int]:
        return [self._random.randint(min_val, max_val) for _ in range(count)]

    def seed(self, seed_value: int) -> None:
        # SystemRandom ignores seeds
        self.logger.warning(f"Seed {seed_value} ignored by system RNG")
