# blackgold/infrastructure/rng/strategies/rng_strategy.py
from typing import List, Protocol


class RNGStrategy(Protocol):
    """Port through which every random draw of the engine is made."""

    def get_random_int(self, min_val: int, max_val: int) -> int:
        """
        Get a random integer in the range [min_val, max_val].

        Args:
            min_val: Minimum value (inclusive)
            max_val: Maximum value (inclusive)

        Returns:
            Random integer in the specified range
        """
        ...

    def get_batch_ints(self, min_val: int, max_val: int, count: int) -> List[int]:
        """
        Get a batch of independent random integers in [min_val, max_val].

        Args:
            min_val: Minimum value (inclusive)
            max_val: Maximum value (inclusive)
            count: Number of random values to generate

        Returns:
            List of random integers
        """
        ...

    def seed(self, seed_value: int) -> None:
        """Reseed the generator."""
        ...
