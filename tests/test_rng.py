# tests/test_rng.py
import unittest
import sys
import os
import numpy as np

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from blackgold.infrastructure.rng.rng_provider import RNGProvider
from blackgold.infrastructure.rng.strategies.mersenne_rng import MersenneTwisterRNG
from blackgold.infrastructure.rng.strategies.numpy_rng import NumpyRNG
from blackgold.infrastructure.rng.strategies.system_rng import SystemRNG


class TestRNGStrategies(unittest.TestCase):
    """Test the RNG strategies behind the RNG port."""

    def setUp(self):
        self.strategies = [MersenneTwisterRNG(12345), NumpyRNG(12345), SystemRNG()]

    def test_random_int_is_inclusive(self):
        for rng in self.strategies:
            values = {rng.get_random_int(0, 2) for _ in range(500)}
            self.assertEqual(values, {0, 1, 2}, type(rng).__name__)

    def test_batch_ints_in_range(self):
        for rng in self.strategies:
            batch = rng.get_batch_ints(0, 71, 5000)
            self.assertEqual(len(batch), 5000)
            self.assertGreaterEqual(min(batch), 0)
            self.assertLessEqual(max(batch), 71)

    def test_seeded_strategies_are_reproducible(self):
        for cls in (MersenneTwisterRNG, NumpyRNG):
            first = cls(99).get_batch_ints(0, 1000, 100)
            second = cls(99).get_batch_ints(0, 1000, 100)
            self.assertEqual(first, second, cls.__name__)

    def test_reseed_restarts_sequence(self):
        rng = MersenneTwisterRNG(5)
        first = [rng.get_random_int(0, 100) for _ in range(10)]
        rng.seed(5)
        second = [rng.get_random_int(0, 100) for _ in range(10)]
        self.assertEqual(first, second)

    def test_uniformity_over_strip_positions(self):
        """Chi-square over 72 positions stays well below a generous bound."""
        rng = NumpyRNG(2024)
        samples = np.array(rng.get_batch_ints(0, 71, 720000))
        counts = np.bincount(samples, minlength=72)
        expected = len(samples) / 72
        chi2 = float(np.sum((counts - expected) ** 2 / expected))

        # 71 degrees of freedom; p < 1e-6 above ~135
        self.assertLess(chi2, 135)


class TestRNGProvider(unittest.TestCase):
    """Test RNGProvider strategy creation and caching."""

    def setUp(self):
        self.provider = RNGProvider()

    def test_creates_named_strategies(self):
        self.assertIsInstance(self.provider.get_rng("mersenne"), MersenneTwisterRNG)
        self.assertIsInstance(self.provider.get_rng("NUMPY"), NumpyRNG)
        self.assertIsInstance(self.provider.get_rng("system"), SystemRNG)

    def test_unseeded_instances_are_cached(self):
        self.assertIs(self.provider.get_rng("mersenne"), self.provider.get_rng("mersenne"))

    def test_seeded_instances_are_fresh(self):
        first = self.provider.get_rng("mersenne", 1)
        second = self.provider.get_rng("mersenne", 1)
        self.assertIsNot(first, second)
        self.assertEqual(first.get_random_int(0, 10 ** 6), second.get_random_int(0, 10 ** 6))

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            self.provider.get_rng("dice")

    def test_create_from_config(self):
        rng = self.provider.create_from_config({"strategy": "numpy", "seed": 3})
        self.assertIsInstance(rng, NumpyRNG)
        self.assertIsInstance(self.provider.create_from_config({}), SystemRNG)

    def test_available_strategies(self):
        self.assertEqual(set(RNGProvider.get_available_strategies()), {"mersenne", "numpy", "system"})


if __name__ == '__main__':
    unittest.main()
