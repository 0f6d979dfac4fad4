# tests/test_reel.py
import unittest
import sys
import os
from collections import Counter

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from blackgold.domain.errors import InvalidDefinition
from blackgold.domain.machine.entities.reel import ReelStrip, define_reel
from blackgold.domain.machine.services.strip_randomizer import materialize, canonical_strip
from blackgold.infrastructure.rng.strategies.mersenne_rng import MersenneTwisterRNG

REEL_1 = {"1C": 16, "2C": 13, "3C": 6, "BG": 1, "--": 36}


class TestReelDefinition(unittest.TestCase):
    """Test cases for define_reel()."""

    def test_valid_definition(self):
        definition = define_reel(0, REEL_1, 72)

        self.assertEqual(definition.length, 72)
        self.assertEqual(definition.count_of("BG"), 1)
        self.assertEqual(definition.count_of("XX"), 0)
        self.assertEqual(definition.as_dict(), REEL_1)
        self.assertEqual(len(definition.canonical_symbols()), 72)
        self.assertEqual(definition.canonical_symbols()[35], "BG")

    def test_counts_must_sum_to_length(self):
        with self.assertRaises(InvalidDefinition) as ctx:
            define_reel(1, REEL_1, 70)
        self.assertEqual(ctx.exception.reel_index, 1)
        self.assertIn("sum to 72", ctx.exception.message)

    def test_negative_count_rejected(self):
        with self.assertRaises(InvalidDefinition):
            define_reel(0, {"1C": 5, "--": -1}, 4)

    def test_non_integer_count_rejected(self):
        with self.assertRaises(InvalidDefinition):
            define_reel(0, {"1C": 2.5, "--": 1.5}, 4)

    def test_empty_or_zero_length_rejected(self):
        with self.assertRaises(InvalidDefinition):
            define_reel(0, {}, 0)
        with self.assertRaises(InvalidDefinition):
            define_reel(0, {}, 3)
        with self.assertRaises(InvalidDefinition):
            define_reel(0, {"1C": 0}, 0)

    def test_definition_is_immutable(self):
        definition = define_reel(0, REEL_1, 72)
        with self.assertRaises(Exception):
            definition.length = 10


class TestReelStrip(unittest.TestCase):
    """Test cases for ReelStrip windows."""

    def setUp(self):
        self.definition = define_reel(0, {"A": 1, "B": 1, "C": 1, "D": 1}, 4)
        self.strip = canonical_strip(self.definition)

    def test_window_without_wrap(self):
        self.assertEqual(self.strip.window(0, 3), ["A", "B", "C"])
        self.assertEqual(self.strip.window(1, 3), ["B", "C", "D"])

    def test_window_wraps_around(self):
        # Last position followed by the first
        self.assertEqual(self.strip.window(3, 3), ["D", "A", "B"])
        self.assertEqual(self.strip.window(2, 3), ["C", "D", "A"])

    def test_window_wraps_for_every_position(self):
        definition = define_reel(0, REEL_1, 72)
        strip = canonical_strip(definition)
        for position in range(72):
            window = strip.window(position, 3)
            for offset in range(3):
                self.assertEqual(window[offset], strip.symbols[(position + offset) % 72])

    def test_strip_must_match_multiset(self):
        with self.assertRaises(InvalidDefinition):
            ReelStrip(["A", "A", "C", "D"], self.definition)

    def test_symbol_at_and_len(self):
        self.assertEqual(len(self.strip), 4)
        self.assertEqual(self.strip.symbol_at(5), "B")
        self.assertEqual(list(self.strip), ["A", "B", "C", "D"])


class TestStripRandomizer(unittest.TestCase):
    """Test cases for strip materialization."""

    def setUp(self):
        self.definition = define_reel(0, REEL_1, 72)

    def test_canonical_order_without_rng(self):
        strip = materialize(self.definition)
        self.assertEqual(list(strip.symbols), self.definition.canonical_symbols())

    def test_shuffle_preserves_multiset(self):
        for seed in range(20):
            strip = materialize(self.definition, MersenneTwisterRNG(seed))
            self.assertEqual(Counter(strip.symbols), Counter(REEL_1))
            self.assertEqual(len(strip), 72)

    def test_shuffle_is_reproducible_with_seed(self):
        first = materialize(self.definition, MersenneTwisterRNG(42))
        second = materialize(self.definition, MersenneTwisterRNG(42))
        third = materialize(self.definition, MersenneTwisterRNG(43))

        self.assertEqual(first.symbols, second.symbols)
        self.assertNotEqual(first.symbols, third.symbols)

    def test_shuffle_changes_order(self):
        strip = materialize(self.definition, MersenneTwisterRNG(7))
        self.assertNotEqual(list(strip.symbols), self.definition.canonical_symbols())


if __name__ == '__main__':
    unittest.main()
