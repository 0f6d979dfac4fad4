# tests/test_session.py
import unittest
import sys
import os

import yaml

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from blackgold.application.engine import SlotEngine
from blackgold.domain.errors import InsufficientFunds, InvalidDefinition, InvalidWager, RoundInProgress
from blackgold.domain.events.event_dispatcher import EventDispatcher
from blackgold.domain.events.round_events import RoundEventType
from blackgold.domain.machine.entities.slot_machine import SlotMachine
from blackgold.domain.session.entities.gaming_session import GamingSession, RoundState
from blackgold.domain.session.factories.session_factory import SessionFactory
from blackgold.infrastructure.config.paths import DEFAULT_MACHINE_CONFIG
from blackgold.infrastructure.rng.strategies.mersenne_rng import MersenneTwisterRNG

# Stop positions whose middle row is BG on the canonical strips
JACKPOT_POSITIONS = [34, 28, 26]
# Middle row 1C, 2C, 3C
MIXED_BARS_POSITIONS = [0, 18, 23]
# Middle row blank on every reel
LOSING_POSITIONS = [40, 40, 40]


def load_config():
    with open(DEFAULT_MACHINE_CONFIG, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f)
    config["shuffle_strips"] = False
    return config


class ScriptedRNG:
    """Replays stop positions, one per reel, in order."""
    def __init__(self, *rounds):
        self.values = [p for positions in rounds for p in positions]

    def get_random_int(self, min_val, max_val):
        return self.values.pop(0)

    def get_batch_ints(self, min_val, max_val, count):
        return [self.values.pop(0) for _ in range(count)]

    def seed(self, seed_value):
        pass


class FaultyRNG:
    def get_random_int(self, min_val, max_val):
        raise RuntimeError("entropy source unavailable")

    def get_batch_ints(self, min_val, max_val, count):
        raise RuntimeError("entropy source unavailable")

    def seed(self, seed_value):
        pass


class TestGamingSession(unittest.TestCase):
    """Test cases for round settlement."""

    def setUp(self):
        self.machine = SlotMachine("bg", load_config())
        self.dispatcher = EventDispatcher()
        self.events = []
        for event_type in RoundEventType:
            self.dispatcher.register(event_type, self.events.append)

    def _session(self, rng, **kwargs):
        return GamingSession("s1", self.machine, rng, self.dispatcher, **kwargs)

    def _event_types(self):
        return [event.type for event in self.events]

    def test_initial_state(self):
        state = self._session(ScriptedRNG()).get_account_state()
        self.assertEqual(state.balance_cents, 10000)
        self.assertEqual(state.current_wager_cents, 100)
        self.assertEqual(state.last_win_cents, 0)
        self.assertEqual(state.balance, 100.0)

    def test_jackpot_round(self):
        session = self._session(ScriptedRNG(JACKPOT_POSITIONS))
        record = session.spin()

        self.assertEqual(record.line, ("BG", "BG", "BG"))
        self.assertEqual(record.label, "BLACK GOLD JACKPOT!")
        self.assertEqual(record.multiplier, 2500)
        self.assertEqual(record.credited_cents, 250000)
        self.assertEqual(record.debited_cents, 100)
        self.assertEqual(record.balance_after_cents, 10000 - 100 + 250000)
        self.assertTrue(record.jackpot)
        self.assertTrue(record.big_win)
        self.assertEqual(session.get_account_state().last_win_cents, 250000)
        self.assertEqual(self._event_types(), [
            RoundEventType.ROUND_DEBITED,
            RoundEventType.ROUND_SETTLED,
            RoundEventType.BIG_WIN,
            RoundEventType.JACKPOT_WIN
        ])

    def test_credit_scales_with_wager(self):
        session = self._session(ScriptedRNG(MIXED_BARS_POSITIONS, MIXED_BARS_POSITIONS))

        record = session.spin(0.05)
        self.assertEqual(record.label, "MIXED BARS")
        self.assertEqual(record.credited_cents, 35)

        record = session.spin(25.00)
        self.assertEqual(record.credited_cents, 17500)
        # An explicit wager applies to that round only
        self.assertEqual(session.get_account_state().current_wager_cents, 100)

    def test_losing_round(self):
        session = self._session(ScriptedRNG(LOSING_POSITIONS))
        record = session.spin()

        self.assertFalse(record.is_win)
        self.assertIsNone(record.line_entry)
        self.assertIsNone(record.label)
        self.assertEqual(record.balance_after_cents, 9900)
        self.assertEqual(session.get_account_state().last_win_cents, 0)

    def test_settlement_invariant_over_many_rounds(self):
        session = self._session(MersenneTwisterRNG(2024))
        for _ in range(300):
            before = session.get_account_state().balance_cents
            record = session.spin(0.25)
            self.assertEqual(record.balance_before_cents, before)
            self.assertEqual(record.balance_after_cents, before - 25 + record.credited_cents)
            self.assertEqual(session.get_account_state().balance_cents, record.balance_after_cents)

        self.assertEqual(session.rounds_played, 300)
        self.assertEqual(session.total_wagered_cents, 7500)
        self.assertEqual(
            session.get_account_state().balance_cents,
            10000 - session.total_wagered_cents + session.total_credited_cents
        )

    def test_insufficient_funds(self):
        session = self._session(ScriptedRNG(JACKPOT_POSITIONS), initial_balance_cents=50)

        with self.assertRaises(InsufficientFunds) as ctx:
            session.spin()

        self.assertEqual(ctx.exception.balance_cents, 50)
        self.assertEqual(ctx.exception.wager_cents, 100)
        self.assertEqual(session.get_account_state().balance_cents, 50)
        self.assertEqual(session.state, RoundState.IDLE)
        self.assertEqual(self.events, [])

        # The lock was released: a smaller wager still plays
        session.set_wager(0.50)
        self.assertEqual(session.spin().balance_after_cents, 50 - 50 + 125000)

    def test_invalid_spin_wager(self):
        session = self._session(ScriptedRNG(JACKPOT_POSITIONS))
        with self.assertRaises(InvalidWager):
            session.spin(0.03)
        with self.assertRaises(InvalidWager):
            session.spin(0.001)
        self.assertEqual(session.get_account_state().balance_cents, 10000)

    def test_set_wager(self):
        session = self._session(ScriptedRNG())
        session.set_wager(5.00)
        self.assertEqual(session.get_account_state().current_wager_cents, 500)

        with self.assertRaises(InvalidWager):
            session.set_wager(3.00)
        with self.assertRaises(InvalidWager):
            session.set_wager("abc")
        self.assertEqual(session.get_account_state().current_wager_cents, 500)

    def test_set_wager_above_balance(self):
        session = self._session(ScriptedRNG(), initial_balance_cents=50)
        with self.assertRaises(InvalidWager):
            session.set_wager(1.00)
        session.set_wager(0.50)
        self.assertEqual(session.get_account_state().current_wager_cents, 50)

    def test_deposit(self):
        session = self._session(ScriptedRNG())
        state = session.deposit(25.50)
        self.assertEqual(state.balance_cents, 12550)

        with self.assertRaises(ValueError):
            session.deposit(0)
        with self.assertRaises(ValueError):
            session.deposit(-5)
        self.assertEqual(session.get_account_state().balance_cents, 12550)

    def test_reentrant_calls_rejected_while_debited(self):
        session = self._session(ScriptedRNG(JACKPOT_POSITIONS, JACKPOT_POSITIONS))
        observed = {}

        def during_round(event):
            observed["state"] = session.state
            observed["balance"] = session.get_account_state().balance_cents
            for name, call in (("spin", session.spin),
                               ("set_wager", lambda: session.set_wager(2.00)),
                               ("deposit", lambda: session.deposit(10))):
                try:
                    call()
                except RoundInProgress as e:
                    observed[name] = e

        self.dispatcher.register(RoundEventType.ROUND_DEBITED, during_round)
        record = session.spin()

        self.assertEqual(observed["state"], RoundState.DEBITED)
        self.assertEqual(observed["balance"], 9900)
        self.assertIsInstance(observed["spin"], RoundInProgress)
        self.assertIsInstance(observed["set_wager"], RoundInProgress)
        self.assertIsInstance(observed["deposit"], RoundInProgress)

        # Only the outer round touched the balance
        self.assertEqual(record.balance_after_cents, 10000 - 100 + 250000)
        self.assertEqual(session.get_account_state().current_wager_cents, 100)
        self.assertEqual(session.rounds_played, 1)

    def test_fault_after_debit_refunds(self):
        session = self._session(FaultyRNG())

        with self.assertRaises(RuntimeError):
            session.spin()

        self.assertEqual(session.get_account_state().balance_cents, 10000)
        self.assertEqual(session.state, RoundState.IDLE)
        self.assertEqual(session.refunds, 1)
        self.assertEqual(session.rounds_played, 0)
        self.assertEqual(self._event_types(), [RoundEventType.ROUND_DEBITED, RoundEventType.ROUND_REFUNDED])

        session.rng = ScriptedRNG(LOSING_POSITIONS)
        self.assertEqual(session.spin().balance_after_cents, 9900)

    def test_failing_handler_does_not_break_round(self):
        def broken(event):
            raise KeyError("listener bug")

        self.dispatcher.register(RoundEventType.ROUND_SETTLED, broken)
        session = self._session(ScriptedRNG(LOSING_POSITIONS))
        self.assertEqual(session.spin().balance_after_cents, 9900)

    def test_record_to_dict(self):
        record = self._session(ScriptedRNG(MIXED_BARS_POSITIONS)).spin()
        data = record.to_dict()
        self.assertEqual(data["line"], ["1C", "2C", "3C"])
        self.assertEqual(data["line_rule"], "MIXED_BARS")
        self.assertEqual(data["credited"], 7.0)
        self.assertEqual(data["balance_after"], 106.0)

    def test_statistics(self):
        session = self._session(ScriptedRNG(MIXED_BARS_POSITIONS, LOSING_POSITIONS))
        session.spin()
        session.spin()
        stats = session.get_statistics()
        self.assertEqual(stats["rounds_played"], 2)
        self.assertEqual(stats["total_wagered"], 2.0)
        self.assertEqual(stats["total_credited"], 7.0)
        self.assertAlmostEqual(stats["observed_rtp"], 3.5)


class TestSessionFactory(unittest.TestCase):

    def test_generated_id_and_overrides(self):
        machine = SlotMachine("bg", load_config())
        session = SessionFactory().create_session_from_config(
            machine, ScriptedRNG(), {"initial_balance": 20.00, "wager": 0.10}
        )
        self.assertTrue(session.id.startswith("bg_"))
        self.assertEqual(session.get_account_state().balance_cents, 2000)
        self.assertEqual(session.get_account_state().current_wager_cents, 10)

    def test_invalid_opening_wager(self):
        machine = SlotMachine("bg", load_config())
        with self.assertRaises(InvalidWager):
            SessionFactory().create_session(machine, ScriptedRNG(), wager_cents=3)

    def test_negative_opening_balance_rejected(self):
        machine = SlotMachine("bg", load_config())
        with self.assertRaises(InvalidDefinition):
            SessionFactory().create_session(machine, ScriptedRNG(), initial_balance_cents=-500)
        with self.assertRaises(InvalidDefinition):
            SessionFactory().create_session_from_config(machine, ScriptedRNG(), {"initial_balance": -5.00})

    def test_zero_opening_balance_allowed(self):
        machine = SlotMachine("bg", load_config())
        session = SessionFactory().create_session(machine, ScriptedRNG(), initial_balance_cents=0)
        self.assertEqual(session.get_account_state().balance_cents, 0)
        with self.assertRaises(InsufficientFunds):
            session.spin()


class TestSlotEngine(unittest.TestCase):
    """The facade wires machine, session and events together."""

    def test_engine_round_trip(self):
        engine = SlotEngine.from_config(load_config(), rng=ScriptedRNG(JACKPOT_POSITIONS, LOSING_POSITIONS))
        jackpots = []
        engine.event_dispatcher.register(RoundEventType.JACKPOT_WIN, jackpots.append)

        engine.set_wager(2.00)
        record = engine.spin()
        self.assertEqual(record.credited_cents, 500000)
        self.assertEqual(len(jackpots), 1)

        engine.deposit(1.00)
        engine.spin()
        state = engine.get_account_state()
        self.assertEqual(state.balance_cents, 10000 - 200 + 500000 + 100 - 200)
        self.assertEqual(state.current_wager, 2.0)
        self.assertEqual(state.last_win, 0.0)

    def test_engine_from_file(self):
        engine = SlotEngine.from_config_file(DEFAULT_MACHINE_CONFIG, rng=MersenneTwisterRNG(5))
        self.assertEqual(engine.get_machine_info()["id"], "black_gold_s62m3x")
        record = engine.spin()
        self.assertEqual(record.debited_cents, 100)


if __name__ == '__main__':
    unittest.main()
