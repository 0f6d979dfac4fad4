# blackgold/domain/session/entities/gaming_session.py
import logging
import threading
from enum import Enum, auto
from typing import Optional

from blackgold.domain.errors import InsufficientFunds, InvalidDefinition, InvalidWager, RoundInProgress
from blackgold.domain.money import to_cents, from_cents
from blackgold.domain.events.event_dispatcher import EventDispatcher
from blackgold.domain.events.round_events import RoundEventType, RoundEvent
from blackgold.domain.session.entities.account_state import AccountState
from blackgold.domain.session.entities.settlement_record import SettlementRecord


class RoundState(Enum):
    IDLE = auto()
    DEBITED = auto()
    RESOLVED = auto()


class GamingSession:
    """
    Owns one account on one machine and settles wager rounds against it.

    A round moves IDLE -> DEBITED -> RESOLVED -> IDLE inside a single
    critical section guarded by a non-reentrant lock. The wager is debited
    before any randomness is drawn; the credit is applied once the outcome
    is evaluated. Any attempt to spin, change the wager or deposit while a
    round holds the lock fails with RoundInProgress and changes nothing.
    """
    def __init__(self, session_id: str, machine, rng,
                 event_dispatcher: Optional[EventDispatcher] = None,
                 initial_balance_cents: Optional[int] = None,
                 wager_cents: Optional[int] = None):
        """
        Initialize a gaming session.

        Args:
            session_id: Unique identifier for this session
            machine: SlotMachine entity instance
            rng: RNG strategy used for the stop position draws
            event_dispatcher: Optional event dispatcher for round events
            initial_balance_cents: Opening balance (machine default if None)
            wager_cents: Opening wager (machine default if None)

        Raises:
            InvalidDefinition: If the opening balance is negative
            InvalidWager: If the opening wager is not a configured level
        """
        self.id = session_id
        self.machine = machine
        self.rng = rng
        self.event_dispatcher = event_dispatcher

        self.logger = logging.getLogger(f"domain.session.{session_id}")

        self._round_lock = threading.Lock()
        self.state = RoundState.IDLE

        self._balance_cents = (machine.initial_balance_cents
                               if initial_balance_cents is None else initial_balance_cents)
        self._wager_cents = machine.default_wager_cents if wager_cents is None else wager_cents
        self._last_win_cents = 0

        if self._balance_cents < 0:
            raise InvalidDefinition(f"opening balance must not be negative, got {self._balance_cents} cents")

        if self._wager_cents not in machine.wager_levels_cents:
            raise InvalidWager(from_cents(self._wager_cents), "not a configured wager level")

        self.rounds_played = 0
        self.total_wagered_cents = 0
        self.total_credited_cents = 0
        self.refunds = 0

        self.big_win_multiplier = machine.big_win_multiplier

        self.logger.info(
            f"Session {session_id} opened on machine {machine.id} with balance "
            f"{from_cents(self._balance_cents):.2f}, wager {from_cents(self._wager_cents):.2f}"
        )

    def get_account_state(self) -> AccountState:
        return AccountState(
            balance_cents=self._balance_cents,
            current_wager_cents=self._wager_cents,
            last_win_cents=self._last_win_cents
        )

    def _acquire_round(self, action: str):
        if not self._round_lock.acquire(blocking=False):
            self.logger.warning(f"Rejected {action}: a round is already in progress")
            raise RoundInProgress(f"Cannot {action} while a round is in progress")

    def _validate_wager(self, amount) -> int:
        """Convert a dollar amount to cents and check it against the wager levels."""
        try:
            wager_cents = to_cents(amount)
        except ValueError as e:
            raise InvalidWager(amount, str(e)) from e

        if wager_cents not in self.machine.wager_levels_cents:
            raise InvalidWager(amount, "not a configured wager level")
        return wager_cents

    def set_wager(self, amount):
        """
        Change the current wager.

        Raises:
            RoundInProgress: If a round is in flight
            InvalidWager: If the amount is not a configured level or exceeds the balance
        """
        self._acquire_round("change the wager")
        try:
            try:
                wager_cents = self._validate_wager(amount)
                if wager_cents > self._balance_cents:
                    raise InvalidWager(amount, f"exceeds balance {from_cents(self._balance_cents):.2f}")
            except InvalidWager as e:
                self.logger.warning(e.message)
                raise

            self._wager_cents = wager_cents
            self.logger.debug(f"Wager set to {from_cents(wager_cents):.2f}")
        finally:
            self._round_lock.release()

    def deposit(self, amount) -> AccountState:
        """
        Add funds to the balance.

        Raises:
            RoundInProgress: If a round is in flight
            ValueError: If the amount is not a positive whole number of cents
        """
        self._acquire_round("deposit")
        try:
            cents = to_cents(amount)
            if cents <= 0:
                raise ValueError(f"Deposit must be positive, got {amount}")

            self._balance_cents += cents
            self.logger.info(f"Deposited {from_cents(cents):.2f}, balance {from_cents(self._balance_cents):.2f}")
            return self.get_account_state()
        finally:
            self._round_lock.release()

    def spin(self, wager=None) -> SettlementRecord:
        """
        Settle one wager round.

        Args:
            wager: Optional wager for this round only; defaults to the current wager

        Returns:
            SettlementRecord of the round

        Raises:
            RoundInProgress: If another round holds the account
            InvalidWager: If the explicit wager is not a configured level
            InsufficientFunds: If the balance is below the wager
        """
        self._acquire_round("spin")
        try:
            wager_cents = self._wager_cents
            try:
                if wager is not None:
                    wager_cents = self._validate_wager(wager)
                if self._balance_cents < wager_cents:
                    raise InsufficientFunds(self._balance_cents, wager_cents)
            except (InvalidWager, InsufficientFunds) as e:
                self.logger.warning(f"Round rejected: {e.message}")
                raise

            return self._settle(wager_cents)
        finally:
            self.state = RoundState.IDLE
            self._round_lock.release()

    def _settle(self, wager_cents: int) -> SettlementRecord:
        round_number = self.rounds_played + 1
        balance_before = self._balance_cents

        self._balance_cents -= wager_cents
        self._last_win_cents = 0
        self.state = RoundState.DEBITED
        self._dispatch(RoundEventType.ROUND_DEBITED, round_number, {
            "wager": from_cents(wager_cents),
            "balance": from_cents(self._balance_cents)
        })

        try:
            outcome = self.machine.spin(self.rng)
            evaluation = self.machine.evaluate(outcome)
            credited = evaluation.credit_cents(wager_cents)
        except Exception:
            self._refund(wager_cents, round_number)
            raise

        self._balance_cents += credited
        self._last_win_cents = credited
        self.state = RoundState.RESOLVED

        self.rounds_played = round_number
        self.total_wagered_cents += wager_cents
        self.total_credited_cents += credited

        line_entry = evaluation.line.entry
        record = SettlementRecord(
            session_id=self.id,
            round_number=round_number,
            wager_cents=wager_cents,
            debited_cents=wager_cents,
            credited_cents=credited,
            balance_before_cents=balance_before,
            balance_after_cents=self._balance_cents,
            positions=outcome.positions,
            line=outcome.line,
            windows=outcome.windows,
            line_entry=line_entry,
            scatter_entry=evaluation.scatter.entry,
            scatter_count=evaluation.scatter.count,
            multiplier=evaluation.total_multiplier,
            label=evaluation.label,
            big_win=credited >= self.big_win_multiplier * wager_cents,
            jackpot=line_entry is not None and line_entry.jackpot
        )

        self.logger.debug(
            f"Round {round_number}: line={outcome.line}, wager={record.wager:.2f}, "
            f"credited={record.credited:.2f}, balance={record.balance_after:.2f}"
        )

        self._dispatch(RoundEventType.ROUND_SETTLED, round_number, record.to_dict())
        if record.big_win:
            self._dispatch(RoundEventType.BIG_WIN, round_number, {
                "credited": record.credited,
                "multiplier": record.multiplier
            })
        if record.jackpot:
            self.logger.info(f"Jackpot on round {round_number}: {record.credited:.2f}")
            self._dispatch(RoundEventType.JACKPOT_WIN, round_number, {
                "credited": record.credited,
                "label": record.label
            })

        return record

    def _refund(self, wager_cents: int, round_number: int):
        self._balance_cents += wager_cents
        self.refunds += 1
        self.logger.error(
            f"Round {round_number} failed after debit, refunded {from_cents(wager_cents):.2f}"
        )
        self._dispatch(RoundEventType.ROUND_REFUNDED, round_number, {
            "wager": from_cents(wager_cents),
            "balance": from_cents(self._balance_cents)
        })

    def _dispatch(self, event_type: RoundEventType, round_number: int, data):
        if not self.event_dispatcher:
            return
        self.event_dispatcher.dispatch(RoundEvent(
            type=event_type,
            session_id=self.id,
            machine_id=self.machine.id,
            round_number=round_number,
            data=dict(data)
        ))

    @property
    def observed_rtp(self) -> float:
        if self.total_wagered_cents == 0:
            return 0.0
        return self.total_credited_cents / self.total_wagered_cents

    def get_statistics(self):
        return {
            "session_id": self.id,
            "machine_id": self.machine.id,
            "rounds_played": self.rounds_played,
            "total_wagered": from_cents(self.total_wagered_cents),
            "total_credited": from_cents(self.total_credited_cents),
            "observed_rtp": self.observed_rtp,
            "refunds": self.refunds,
            "balance": from_cents(self._balance_cents)
        }
