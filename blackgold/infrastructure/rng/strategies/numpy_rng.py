# blackgold/infrastructure/rng/strategies/numpy_rng.py
import numpy as np
from typing import List, Optional


class NumpyRNG:
    """
    Random number generator backed by NumPy's PCG64 bit generator.
    Faster than the Mersenne strategy when drawing large batches.
    """
    def __init__(self, seed_value: Optional[int] = None):
        """
        Initialize the RNG with an optional seed.

        Args:
            seed_value: Optional seed value for reproducible random numbers
        """
        self.rng = np.random.default_rng(seed_value)

    def get_random_int(self, min_val: int, max_val: int) -> int:
        # integers() is [low, high) by default
        return int(self.rng.integers(min_val, max_val, endpoint=True))

    def get_batch_ints(self, min_val: int, max_val: int, count: int) -> List[int]:
        return self.rng.integers(min_val, max_val, size=count, endpoint=True).tolist()

    def seed(self, seed_value: int) -> None:
        self.rng = np.random.default_rng(seed_value)
