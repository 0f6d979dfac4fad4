# tests/test_win_eval.py
import copy
import unittest
import sys
import os

import yaml

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from blackgold.domain.errors import InvalidDefinition
from blackgold.domain.machine.entities.paytable import Paytable, SymbolSet, SCATTER_MODE_ANYWHERE
from blackgold.domain.machine.services.spin_sampler import SpinOutcome
from blackgold.domain.machine.services.win_evaluation import WinEvaluator, credit_cents
from blackgold.infrastructure.config.paths import DEFAULT_MACHINE_CONFIG


def load_config():
    with open(DEFAULT_MACHINE_CONFIG, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


class TestCreditRounding(unittest.TestCase):
    """Credited amounts are always rounded down to the cent."""

    def test_integer_multipliers(self):
        self.assertEqual(credit_cents(2500, 100), 250000)
        self.assertEqual(credit_cents(7, 5), 35)
        self.assertEqual(credit_cents(3, 1), 3)

    def test_fractional_multipliers_round_down(self):
        self.assertEqual(credit_cents(2.5, 1), 2)
        self.assertEqual(credit_cents(0.333, 100), 33)
        self.assertEqual(credit_cents(1.999, 1), 1)

    def test_no_binary_drift(self):
        # 0.29 * 100 is 28.999999999999996 in binary floating point
        self.assertEqual(credit_cents(0.29, 100), 29)
        self.assertEqual(credit_cents(0.57, 100), 57)

    def test_never_exceeds_exact_product(self):
        for multiplier in (0.1, 0.7, 1.15, 3, 9.99, 16):
            for wager in (1, 5, 10, 25, 50, 100, 7500):
                credited = credit_cents(multiplier, wager)
                self.assertLessEqual(credited, multiplier * wager + 1e-6)
                self.assertGreater(credited + 1, multiplier * wager - 1e-6)

    def test_zero_cases(self):
        self.assertEqual(credit_cents(0, 100), 0)
        self.assertEqual(credit_cents(5, 0), 0)


class TestWinEvaluator(unittest.TestCase):
    """Test cases for the paytable rules of the shipped machine."""

    def setUp(self):
        config = load_config()
        self.symbols = SymbolSet.from_config(config["symbols"])
        self.paytable_config = config["paytable"]
        self.evaluator = WinEvaluator(Paytable.from_config(self.paytable_config, self.symbols))

    def assertPays(self, line, multiplier, label):
        result = self.evaluator.evaluate(line)
        self.assertEqual(result.multiplier, multiplier, line)
        self.assertEqual(result.label, label, line)

    def test_exact_triples(self):
        self.assertPays(("BG", "BG", "BG"), 2500, "BLACK GOLD JACKPOT!")
        self.assertPays(("3C", "3C", "3C"), 159, "TRIPLE BARS")
        self.assertPays(("2C", "2C", "2C"), 14, "DOUBLE BARS")
        self.assertPays(("1C", "1C", "1C"), 28, "SINGLE BARS")

    def test_bar_with_wild_combos(self):
        self.assertPays(("3C", "BG", "BG"), 16, "BLACK GOLD COMBO")
        self.assertPays(("BG", "2C", "2C"), 14, "BLACK GOLD COMBO")
        self.assertPays(("1C", "BG", "1C"), 3, "BLACK GOLD COMBO")

    def test_wild_with_identical_bars_is_exact(self):
        # One wild with identical bars is an exact entry, not a mixed-bar class
        self.assertPays(("1C", "1C", "BG"), 3, "BLACK GOLD COMBO")
        self.assertEqual(self.evaluator.evaluate(("1C", "1C", "BG")).entry.kind, "exact")

    def test_exact_match_beats_mixed_bar_class(self):
        config = copy.deepcopy(self.paytable_config)
        config["exact"].append({"pattern": ["1C", "2C", "3C"], "pays": 50, "label": "RAINBOW"})
        config["exact"].append({"pattern": ["1C", "2C", "BG"], "pays": 40, "label": "RAINBOW WILD"})
        evaluator = WinEvaluator(Paytable.from_config(config, self.symbols))

        result = evaluator.evaluate(("1C", "2C", "3C"))
        self.assertEqual(result.multiplier, 50)
        self.assertEqual(result.label, "RAINBOW")
        self.assertEqual(result.entry.kind, "exact")

        result = evaluator.evaluate(("1C", "2C", "BG"))
        self.assertEqual(result.multiplier, 40)
        self.assertEqual(result.label, "RAINBOW WILD")

        # Other members of the class still fall through to the mixed-bar rules
        self.assertEqual(evaluator.evaluate(("3C", "2C", "1C")).label, "MIXED BARS")
        self.assertEqual(evaluator.evaluate(("2C", "1C", "BG")).label, "MIXED BARS + BLACK GOLD")

    def test_mixed_bars_without_wild(self):
        self.assertPays(("1C", "2C", "3C"), 7, "MIXED BARS")
        self.assertPays(("3C", "3C", "1C"), 7, "MIXED BARS")

    def test_mixed_bars_by_wild_position(self):
        self.assertPays(("1C", "2C", "BG"), 9, "MIXED BARS + BLACK GOLD")
        self.assertPays(("1C", "BG", "2C"), 10, "MIXED BARS + BLACK GOLD")
        self.assertPays(("BG", "3C", "1C"), 10, "MIXED BARS + BLACK GOLD")

    def test_wild_with_blanks(self):
        self.assertPays(("BG", "BG", "--"), 7, "BLACK GOLD COMBO")
        self.assertPays(("BG", "--", "BG"), 7, "BLACK GOLD COMBO")
        self.assertPays(("--", "BG", "--"), 3, "BLACK GOLD COMBO")
        self.assertPays(("--", "--", "BG"), 3, "BLACK GOLD COMBO")

    def test_losing_lines(self):
        for line in [("--", "--", "--"), ("1C", "--", "1C"), ("BG", "1C", "--"),
                     ("2C", "2C", "--"), ("3C", "--", "BG")]:
            result = self.evaluator.evaluate(line)
            self.assertEqual(result.multiplier, 0, line)
            self.assertIsNone(result.label)
            self.assertFalse(result.is_win)

    def test_line_length_checked(self):
        with self.assertRaises(ValueError):
            self.evaluator.evaluate(("BG", "BG"))

    def test_results_are_cached(self):
        first = self.evaluator.evaluate(("1C", "2C", "3C"))
        second = self.evaluator.evaluate(["1C", "2C", "3C"])
        self.assertIs(first, second)

    def test_line_mode_ignores_scatter_counts(self):
        outcome = SpinOutcome(
            positions=(0, 0, 0),
            windows=(("BG", "1C", "--"), ("--", "2C", "BG"), ("3C", "--", "--")),
            line_index=1
        )
        evaluation = self.evaluator.evaluate_outcome(outcome)
        self.assertEqual(evaluation.scatter.multiplier, 0)
        self.assertEqual(evaluation.total_multiplier, 0)


class TestScatterAnywhere(unittest.TestCase):
    """Scatter counted over the whole window pays on top of the line."""

    def setUp(self):
        config = copy.deepcopy(load_config())
        config["paytable"]["scatter_mode"] = SCATTER_MODE_ANYWHERE
        symbols = SymbolSet.from_config(config["symbols"])
        self.evaluator = WinEvaluator(Paytable.from_config(config["paytable"], symbols))

    def test_scatter_line_patterns_disabled(self):
        self.assertEqual(self.evaluator.evaluate(("BG", "BG", "--")).multiplier, 0)
        self.assertEqual(self.evaluator.evaluate(("BG", "BG", "BG")).multiplier, 2500)

    def test_scatter_is_additive(self):
        outcome = SpinOutcome(
            positions=(0, 0, 0),
            windows=(("1C", "BG", "2C"), ("3C", "BG", "--"), ("--", "BG", "1C")),
            line_index=1
        )
        evaluation = self.evaluator.evaluate_outcome(outcome)

        self.assertEqual(evaluation.line.multiplier, 2500)
        self.assertEqual(evaluation.scatter.count, 3)
        self.assertEqual(evaluation.scatter.multiplier, 10)
        self.assertEqual(evaluation.total_multiplier, 2510)
        self.assertEqual(evaluation.credit_cents(100), 251000)
        self.assertEqual(evaluation.label, "BLACK GOLD JACKPOT! + BLACK GOLD SCATTER")

    def test_scatter_off_line(self):
        outcome = SpinOutcome(
            positions=(0, 0, 0),
            windows=(("BG", "1C", "--"), ("--", "--", "BG"), ("3C", "--", "--")),
            line_index=1
        )
        evaluation = self.evaluator.evaluate_outcome(outcome)

        self.assertFalse(evaluation.line.is_win)
        self.assertEqual(evaluation.scatter.count, 2)
        self.assertEqual(evaluation.total_multiplier, 2)
        self.assertTrue(evaluation.is_win)

    def test_single_scatter_pays_nothing(self):
        self.assertFalse(self.evaluator.evaluate_scatter_count(1).is_win)
        self.assertEqual(self.evaluator.evaluate_scatter_count(5).multiplier, 10)


class TestPaytableValidation(unittest.TestCase):
    """Invalid paytables never build."""

    def setUp(self):
        self.symbols = SymbolSet.from_config({"bars": ["1C", "2C"], "wild": "BG", "blank": "--"})

    def test_unknown_symbol(self):
        with self.assertRaises(InvalidDefinition):
            Paytable.from_config({"exact": [{"pattern": ["7", "7", "7"], "pays": 10}]}, self.symbols)

    def test_duplicate_pattern(self):
        config = {"exact": [{"pattern": ["1C", "1C", "1C"], "pays": 10}],
                  "scatter": [{"pattern": ["1C", "1C", "1C"], "pays": 3}]}
        with self.assertRaises(InvalidDefinition):
            Paytable.from_config(config, self.symbols)

    def test_negative_payout(self):
        with self.assertRaises(InvalidDefinition):
            Paytable.from_config({"mixed_bars": [{"pays": -1}]}, self.symbols)

    def test_pattern_length(self):
        with self.assertRaises(InvalidDefinition):
            Paytable.from_config({"exact": [{"pattern": ["1C", "1C"], "pays": 1}]}, self.symbols)

    def test_unknown_scatter_mode(self):
        with self.assertRaises(InvalidDefinition):
            Paytable.from_config({"scatter_mode": "everywhere"}, self.symbols)

    def test_symbol_set_rules(self):
        with self.assertRaises(InvalidDefinition):
            SymbolSet.from_config({"bars": ["1C"], "wild": "1C", "blank": "--"})
        with self.assertRaises(InvalidDefinition):
            SymbolSet.from_config({"bars": ["1C"], "wild": "BG", "blank": "--", "scatter": "--"})
        self.assertEqual(self.symbols.scatter, "BG")


if __name__ == '__main__':
    unittest.main()
