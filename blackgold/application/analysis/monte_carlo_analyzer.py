# blackgold/application/analysis/monte_carlo_analyzer.py
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from tqdm import tqdm

from blackgold.application.analysis.incremental_stats import IncrementalStats

RISK_EXTREME = "EXTREME"
RISK_HIGH = "HIGH"
RISK_MEDIUM = "MEDIUM"
RISK_LOW = "LOW"


def classify_risk(window_rtp: float) -> str:
    """Risk level of a session by its RTP (1.0 == 100%)."""
    if window_rtp > 1.50:
        return RISK_EXTREME
    if window_rtp > 1.20:
        return RISK_HIGH
    if window_rtp > 1.05:
        return RISK_MEDIUM
    return RISK_LOW


def worst_window(payouts: np.ndarray, size: int, wager: float = 1.0) -> Optional[Dict[str, Any]]:
    """
    Worst house result over every run of `size` consecutive rounds.

    Args:
        payouts: Payout per round at a fixed wager
        size: Window length in rounds
        wager: Wager per round

    Returns:
        Dict with the window's loss, RTP, 1-based start/end round and risk
        level, or None when fewer than `size` rounds were played
    """
    if size < 1 or len(payouts) < size:
        return None

    cumulative = np.concatenate(([0.0], np.cumsum(payouts, dtype=np.float64)))
    window_payouts = cumulative[size:] - cumulative[:-size]
    start = int(np.argmax(window_payouts))

    payout = float(window_payouts[start])
    cost = size * wager
    rtp = payout / cost

    return {
        "session_size": size,
        "max_loss": payout - cost,
        "window_rtp": rtp,
        "start_round": start + 1,
        "end_round": start + size,
        "risk_level": classify_risk(rtp)
    }


def longest_run(mask: np.ndarray) -> int:
    """Length of the longest run of True values."""
    if len(mask) == 0:
        return 0
    padded = np.concatenate(([0], mask.astype(np.int8), [0]))
    edges = np.flatnonzero(np.diff(padded))
    if len(edges) == 0:
        return 0
    return int((edges[1::2] - edges[::2]).max())


@dataclass
class MonteCarloReport:
    machine_id: str
    rounds_requested: int
    rounds: int
    total_cost: float
    total_payout: float
    winning_rounds: int
    rtp: float
    hit_frequency: float
    payout_stats: Dict[str, Any]
    lowest_rtp: Optional[float] = None
    lowest_rtp_round: Optional[int] = None
    highest_rtp: Optional[float] = None
    highest_rtp_round: Optional[int] = None
    max_house_loss: float = 0.0
    max_house_loss_round: Optional[int] = None
    worst_drawdown_by_session_size: Dict[int, Optional[Dict[str, Any]]] = field(default_factory=dict)
    biggest_win: float = 0.0
    biggest_win_round: Optional[int] = None
    biggest_win_line: Optional[List[str]] = None
    longest_win_streak: int = 0
    longest_loss_streak: int = 0
    jackpot_hits: int = 0
    rtp_history: List[Dict[str, Any]] = field(default_factory=list)
    seed: Optional[int] = None
    cancelled: bool = False
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.__dict__)
        result["worst_drawdown_by_session_size"] = {
            str(k): v for k, v in self.worst_drawdown_by_session_size.items()
        }
        return result


class MonteCarloAnalyzer:
    """
    Plays independent rounds at a one-unit wager through the machine's
    sampler and evaluator and characterizes the observed return.

    Rounds are drawn in batches. The cancellation token is checked between
    batches; a batch still being drawn when it is set is discarded.
    """
    def __init__(self, machine, rng, session_sizes: Sequence[int] = (100, 1000, 10000),
                 history_interval: int = 10000, batch_size: int = 10000):
        self.machine = machine
        self.rng = rng
        self.session_sizes = tuple(sorted(set(session_sizes)))
        self.history_interval = history_interval
        self.batch_size = batch_size
        self.logger = logging.getLogger("application.analysis.monte_carlo")

    def _play_batch(self, count: int, payouts: np.ndarray, offset: int, state: Dict[str, Any],
                    cancel_token: Optional[threading.Event]) -> bool:
        """Fill payouts[offset:offset+count]. Returns False if cancelled mid-batch."""
        outcomes = self.machine.sampler.sample_batch(self.machine.strips, self.rng, count)
        evaluate = self.machine.evaluator.evaluate_outcome

        batch = np.zeros(count, dtype=np.float64)
        for i, outcome in enumerate(outcomes):
            evaluation = evaluate(outcome)
            multiplier = evaluation.total_multiplier
            batch[i] = multiplier

            if multiplier > state["biggest_win"]:
                state["biggest_win"] = float(multiplier)
                state["biggest_win_round"] = offset + i + 1
                state["biggest_win_line"] = list(outcome.line)

            entry = evaluation.line.entry
            if entry is not None and entry.jackpot:
                state["jackpot_hits"] += 1

        if cancel_token is not None and cancel_token.is_set():
            return False

        payouts[offset:offset + count] = batch
        return True

    def run(self, rounds: int, cancel_token: Optional[threading.Event] = None,
            show_progress: bool = False, seed: Optional[int] = None) -> MonteCarloReport:
        """
        Simulate `rounds` independent rounds.

        Args:
            rounds: Number of rounds to play
            cancel_token: Optional event checked between batches
            show_progress: Show a tqdm progress bar
            seed: Seed recorded in the report (the RNG must already be seeded with it)

        Returns:
            MonteCarloReport over the rounds actually completed
        """
        if rounds < 1:
            raise ValueError(f"rounds must be positive, got {rounds}")

        start_time = time.time()
        self.logger.info(f"Running {rounds} Monte Carlo rounds on {self.machine.id}")

        payouts = np.zeros(rounds, dtype=np.float64)
        state = {"biggest_win": 0.0, "biggest_win_round": None, "biggest_win_line": None, "jackpot_hits": 0}
        completed = 0
        cancelled = False

        progress = tqdm(total=rounds, desc="Monte Carlo", unit="spin", disable=not show_progress)
        try:
            while completed < rounds:
                if cancel_token is not None and cancel_token.is_set():
                    cancelled = True
                    break

                count = min(self.batch_size, rounds - completed)
                snapshot = dict(state)
                if not self._play_batch(count, payouts, completed, state, cancel_token):
                    state = snapshot
                    cancelled = True
                    break

                completed += count
                progress.update(count)
        finally:
            progress.close()

        if cancelled:
            self.logger.warning(f"Monte Carlo run cancelled after {completed} of {rounds} rounds")

        report = self._build_report(payouts[:completed], rounds, state, cancelled, seed)
        report.duration = time.time() - start_time

        self.logger.info(
            f"Monte Carlo on {self.machine.id}: {completed} rounds, RTP {report.rtp:.4%}, "
            f"hit frequency {report.hit_frequency:.4%}, biggest win x{report.biggest_win}"
        )
        return report

    def _build_report(self, payouts: np.ndarray, requested: int, state: Dict[str, Any],
                      cancelled: bool, seed: Optional[int]) -> MonteCarloReport:
        played = len(payouts)
        wins = payouts > 0

        stats = IncrementalStats()
        values, counts = np.unique(payouts, return_counts=True)
        for value, count in zip(values, counts):
            stats.update_weighted(float(value), int(count))

        report = MonteCarloReport(
            machine_id=self.machine.id,
            rounds_requested=requested,
            rounds=played,
            total_cost=float(played),
            total_payout=float(payouts.sum()),
            winning_rounds=int(wins.sum()),
            rtp=float(payouts.sum() / played) if played else 0.0,
            hit_frequency=float(wins.mean()) if played else 0.0,
            payout_stats=stats.to_dict(),
            biggest_win=state["biggest_win"],
            biggest_win_round=state["biggest_win_round"],
            biggest_win_line=state["biggest_win_line"],
            jackpot_hits=state["jackpot_hits"],
            seed=seed,
            cancelled=cancelled
        )

        if not played:
            return report

        cumulative = np.cumsum(payouts)
        spins = np.arange(1, played + 1, dtype=np.float64)
        running_rtp = cumulative / spins
        house_loss = cumulative - spins

        low = int(np.argmin(running_rtp))
        high = int(np.argmax(running_rtp))
        report.lowest_rtp = float(running_rtp[low])
        report.lowest_rtp_round = low + 1
        report.highest_rtp = float(running_rtp[high])
        report.highest_rtp_round = high + 1

        worst = int(np.argmax(house_loss))
        if house_loss[worst] > 0:
            report.max_house_loss = float(house_loss[worst])
            report.max_house_loss_round = worst + 1

        report.worst_drawdown_by_session_size = {
            size: worst_window(payouts, size) for size in self.session_sizes
        }

        report.longest_win_streak = longest_run(wins)
        report.longest_loss_streak = longest_run(~wins)

        if self.history_interval:
            for end in range(self.history_interval, played + 1, self.history_interval):
                report.rtp_history.append({
                    "round": end,
                    "rtp": float(running_rtp[end - 1]),
                    "winning_rounds": int(wins[:end].sum()),
                    "house_loss": float(house_loss[end - 1])
                })

        return report
