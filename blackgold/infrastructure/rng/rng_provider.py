# blackgold/infrastructure/rng/rng_provider.py
import logging
from typing import Optional, Dict, Any

from blackgold.infrastructure.rng.strategies.mersenne_rng import MersenneTwisterRNG
from blackgold.infrastructure.rng.strategies.numpy_rng import NumpyRNG
from blackgold.infrastructure.rng.strategies.system_rng import SystemRNG
from blackgold.infrastructure.rng.strategies.rng_strategy import RNGStrategy


class RNGProvider:
    """
    Factory for creating and managing Random Number Generator strategies.
    """
    def __init__(self):
        """Initialize the RNG provider."""
        self.logger = logging.getLogger(__name__)
        self._strategies = {}  # Cache of unseeded, shared strategies

    def get_rng(self, strategy_name: str, seed: Optional[int] = None) -> RNGStrategy:
        """
        Get a RNG strategy instance by name.

        Args:
            strategy_name: Name of the RNG strategy ("mersenne", "numpy", "system")
            seed: Optional seed value for the RNG

        Returns:
            An instance of the requested RNG strategy

        Raises:
            ValueError: If the strategy name is unknown
        """
        cache_key = strategy_name.lower()
        if seed is None and cache_key in self._strategies:
            return self._strategies[cache_key]

        strategy = self._create_strategy(strategy_name, seed)

        if seed is None:
            self._strategies[cache_key] = strategy

        return strategy

    def _create_strategy(self, strategy_name: str, seed: Optional[int] = None) -> RNGStrategy:
        strategy_name = strategy_name.lower()

        if strategy_name == "mersenne":
            self.logger.debug(f"Creating MersenneTwister RNG with seed: {seed}")
            return MersenneTwisterRNG(seed)
        elif strategy_name == "numpy":
            self.logger.debug(f"Creating NumPy RNG with seed: {seed}")
            return NumpyRNG(seed)
        elif strategy_name == "system":
            if seed is not None:
                self.logger.warning("System RNG requested with a seed; draws will not be reproducible")
            return SystemRNG()
        else:
            self.logger.error(f"Unknown RNG strategy: {strategy_name}")
            raise ValueError(f"Unknown RNG strategy: {strategy_name}")

    def create_from_config(self, config: Dict[str, Any]) -> RNGStrategy:
        """
        Create an RNG strategy from a configuration dictionary.

        Example config:
            {"strategy": "numpy", "seed": 12345}
        """
        strategy_name = config.get('strategy', 'system')
        seed = config.get('seed', None)

        return self.get_rng(strategy_name, seed)

    @staticmethod
    def get_available_strategies() -> Dict[str, str]:
        return {
            "mersenne": "Mersenne Twister (Python's default random generator)",
            "numpy": "NumPy PCG64 generator (better performance for large batches)",
            "system": "Operating system entropy (live play, not seedable)"
        }
