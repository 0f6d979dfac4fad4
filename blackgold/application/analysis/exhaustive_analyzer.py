# blackgold/application/analysis/exhaustive_analyzer.py
import asyncio
import functools
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from blackgold.domain.machine.entities.paytable import SCATTER_MODE_ANYWHERE
from blackgold.infrastructure.concurrency.task_executor import TaskExecutor, ExecutionMode
from blackgold.application.analysis.incremental_stats import IncrementalStats

TOP_COMBINATIONS = 10


@dataclass
class ExhaustiveTally:
    """
    Partial totals over a block of stop combinations. Tallies of disjoint
    blocks combine by plain summation, so the reduction order never matters.
    """
    combinations: int = 0
    total_payout: float = 0
    winning_combinations: int = 0
    payout_distribution: Dict[float, int] = field(default_factory=dict)
    label_counts: Dict[str, int] = field(default_factory=dict)
    rule_counts: Dict[str, int] = field(default_factory=dict)
    top_combinations: List[Tuple[float, Tuple[int, ...], Tuple[str, ...]]] = field(default_factory=list)

    def merge(self, other: 'ExhaustiveTally') -> 'ExhaustiveTally':
        self.combinations += other.combinations
        self.total_payout += other.total_payout
        self.winning_combinations += other.winning_combinations

        for key, count in other.payout_distribution.items():
            self.payout_distribution[key] = self.payout_distribution.get(key, 0) + count
        for key, count in other.label_counts.items():
            self.label_counts[key] = self.label_counts.get(key, 0) + count
        for key, count in other.rule_counts.items():
            self.rule_counts[key] = self.rule_counts.get(key, 0) + count

        self.top_combinations = _best(self.top_combinations + other.top_combinations)
        return self


def _best(combos):
    return sorted(combos, key=lambda c: (-c[0], c[1]))[:TOP_COMBINATIONS]


def _tally_chunk(evaluator, line_columns: Sequence[Sequence[str]],
                 scatter_columns: Optional[Sequence[Sequence[int]]],
                 start: int, stop: int) -> ExhaustiveTally:
    """
    Evaluate every combination whose first-reel position lies in [start, stop).

    Module level so that process pools can pickle it.
    """
    tally = ExhaustiveTally()
    first, second, third = line_columns
    distribution = tally.payout_distribution
    labels = tally.label_counts
    rules = tally.rule_counts
    candidates = []

    for p1 in range(start, stop):
        s1 = first[p1]
        for p2, s2 in enumerate(second):
            for p3, s3 in enumerate(third):
                line = evaluator.evaluate((s1, s2, s3))
                multiplier = line.multiplier
                label = line.label
                rule = line.entry.key if line.entry else None

                if scatter_columns is not None:
                    count = scatter_columns[0][p1] + scatter_columns[1][p2] + scatter_columns[2][p3]
                    scatter = evaluator.evaluate_scatter_count(count)
                    if scatter.is_win:
                        multiplier += scatter.multiplier
                        label = scatter.entry.label if label is None else f"{label} + {scatter.entry.label}"
                        rules[scatter.entry.key] = rules.get(scatter.entry.key, 0) + 1

                tally.combinations += 1
                distribution[multiplier] = distribution.get(multiplier, 0) + 1

                if multiplier > 0:
                    tally.total_payout += multiplier
                    tally.winning_combinations += 1
                    labels[label] = labels.get(label, 0) + 1
                    if rule is not None:
                        rules[rule] = rules.get(rule, 0) + 1
                    candidates.append((multiplier, (p1, p2, p3), (s1, s2, s3)))

        candidates = _best(candidates)

    tally.top_combinations = _best(candidates)
    return tally


@dataclass
class ExhaustiveReport:
    """Result of enumerating the full stop-position space of a machine."""
    machine_id: str
    paytable_version: str
    scatter_mode: str
    total_combinations: int
    combinations_evaluated: int
    total_cost: float
    total_payout: float
    winning_combinations: int
    rtp: float
    hit_frequency: float
    payout_std_dev: float
    payout_distribution: Dict[float, int]
    label_counts: Dict[str, int]
    rule_counts: Dict[str, int]
    top_combinations: List[Dict[str, Any]]
    target_rtp: Optional[float] = None
    rtp_tolerance: Optional[float] = None
    meets_target: Optional[bool] = None
    cancelled: bool = False
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "machine_id": self.machine_id,
            "paytable_version": self.paytable_version,
            "scatter_mode": self.scatter_mode,
            "total_combinations": self.total_combinations,
            "combinations_evaluated": self.combinations_evaluated,
            "total_cost": self.total_cost,
            "total_payout": self.total_payout,
            "winning_combinations": self.winning_combinations,
            "rtp": self.rtp,
            "hit_frequency": self.hit_frequency,
            "payout_std_dev": self.payout_std_dev,
            "payout_distribution": {str(k): v for k, v in sorted(self.payout_distribution.items())},
            "label_counts": dict(sorted(self.label_counts.items())),
            "rule_counts": dict(sorted(self.rule_counts.items())),
            "top_combinations": self.top_combinations,
            "target_rtp": self.target_rtp,
            "rtp_tolerance": self.rtp_tolerance,
            "meets_target": self.meets_target,
            "cancelled": self.cancelled,
            "duration": self.duration
        }


class ExhaustiveAnalyzer:
    """
    Enumerates every stop combination of a machine's canonical strips and
    computes the exact RTP and hit frequency at a one-unit wager.

    The first reel's positions are split into chunks that run through a
    TaskExecutor in waves. A cancellation token is checked between waves;
    a wave that finishes after cancellation was requested is discarded.
    """
    def __init__(self, machine, task_executor: Optional[TaskExecutor] = None, chunk_size: int = 8):
        """
        Args:
            machine: SlotMachine to analyze (read only)
            task_executor: Executor for the chunks (sequential if None)
            chunk_size: First-reel positions per chunk
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        self.machine = machine
        self.task_executor = task_executor or TaskExecutor(ExecutionMode.SEQUENTIAL)
        self.chunk_size = chunk_size
        self.logger = logging.getLogger("application.analysis.exhaustive")

        strips = machine.canonical_strips()
        window_size = machine.window_size
        line_index = machine.line_index

        self._line_columns = [
            tuple(strip.window(p, window_size)[line_index] for p in range(len(strip)))
            for strip in strips
        ]

        self._scatter_columns = None
        scatter = machine.paytable.symbols.scatter
        if machine.paytable.scatter_mode == SCATTER_MODE_ANYWHERE and scatter is not None:
            self._scatter_columns = [
                tuple(strip.window(p, window_size).count(scatter) for p in range(len(strip)))
                for strip in strips
            ]

    def _chunks(self) -> List[Tuple[int, int]]:
        length = len(self._line_columns[0])
        return [(start, min(start + self.chunk_size, length))
                for start in range(0, length, self.chunk_size)]

    def _wave_size(self) -> int:
        if self.task_executor.mode == ExecutionMode.SEQUENTIAL:
            return 1
        return self.task_executor.max_workers or os.cpu_count() or 1

    def _waves(self):
        chunks = self._chunks()
        size = self._wave_size()
        for i in range(0, len(chunks), size):
            yield [functools.partial(_tally_chunk, self.machine.evaluator, self._line_columns,
                                     self._scatter_columns, start, stop)
                   for start, stop in chunks[i:i + size]]

    def analyze(self, cancel_token: Optional[threading.Event] = None,
                progress_callback: Optional[Callable[[int, int], Any]] = None) -> ExhaustiveReport:
        """
        Run the full enumeration.

        Args:
            cancel_token: Optional event; when set, enumeration stops at the next wave boundary
            progress_callback: Optional callable(chunks_done, chunks_total), called after each wave

        Returns:
            ExhaustiveReport, marked cancelled if the token was set before completion
        """
        start_time = time.time()
        total_chunks = len(self._chunks())
        tally = ExhaustiveTally()
        done = 0
        cancelled = False

        self.logger.info(
            f"Enumerating {self.machine.total_combinations} combinations of {self.machine.id} "
            f"in {total_chunks} chunks ({self.task_executor.mode.name})"
        )

        for wave in self._waves():
            if cancel_token is not None and cancel_token.is_set():
                cancelled = True
                break

            results = self.task_executor.execute(wave)

            if cancel_token is not None and cancel_token.is_set():
                self.logger.info(f"Cancellation requested, discarding {len(wave)} in-flight chunks")
                cancelled = True
                break

            for partial in results:
                tally.merge(partial)
            done += len(wave)

            if progress_callback:
                progress_callback(done, total_chunks)

        return self._build_report(tally, cancelled, time.time() - start_time)

    async def analyze_async(self, cancel_token: Optional[threading.Event] = None,
                            progress_callback: Optional[Callable[[int, int], Any]] = None) -> ExhaustiveReport:
        """Same as analyze(), yielding to the event loop between waves."""
        start_time = time.time()
        total_chunks = len(self._chunks())
        tally = ExhaustiveTally()
        done = 0
        cancelled = False

        for wave in self._waves():
            if cancel_token is not None and cancel_token.is_set():
                cancelled = True
                break

            results = self.task_executor.execute(wave)
            await asyncio.sleep(0)

            if cancel_token is not None and cancel_token.is_set():
                cancelled = True
                break

            for partial in results:
                tally.merge(partial)
            done += len(wave)

            if progress_callback:
                progress_callback(done, total_chunks)

        return self._build_report(tally, cancelled, time.time() - start_time)

    def analyze_closed_form(self) -> ExhaustiveTally:
        """
        Line-only totals from the symbol counts alone: every distinct symbol
        triple weighted by the product of its per-reel counts. Must agree with
        the enumeration whenever no scatter-anywhere payout is active.
        """
        tally = ExhaustiveTally()
        evaluator = self.machine.evaluator
        first, second, third = [d.counts for d in self.machine.definitions]

        for s1, c1 in first:
            for s2, c2 in second:
                for s3, c3 in third:
                    weight = c1 * c2 * c3
                    if weight == 0:
                        continue
                    line = evaluator.evaluate((s1, s2, s3))
                    tally.combinations += weight
                    tally.payout_distribution[line.multiplier] = (
                        tally.payout_distribution.get(line.multiplier, 0) + weight
                    )
                    if line.is_win:
                        tally.total_payout += line.multiplier * weight
                        tally.winning_combinations += weight
                        tally.label_counts[line.label] = tally.label_counts.get(line.label, 0) + weight

        return tally

    def _build_report(self, tally: ExhaustiveTally, cancelled: bool, duration: float) -> ExhaustiveReport:
        evaluated = tally.combinations
        rtp = tally.total_payout / evaluated if evaluated else 0.0
        hit_frequency = tally.winning_combinations / evaluated if evaluated else 0.0

        stats = IncrementalStats()
        for multiplier, count in sorted(tally.payout_distribution.items()):
            stats.update_weighted(multiplier, count)

        target = self.machine.target_rtp
        tolerance = self.machine.rtp_tolerance
        meets_target = None
        if target is not None and not cancelled:
            meets_target = abs(rtp - target) <= tolerance

        report = ExhaustiveReport(
            machine_id=self.machine.id,
            paytable_version=self.machine.paytable.version,
            scatter_mode=self.machine.paytable.scatter_mode,
            total_combinations=self.machine.total_combinations,
            combinations_evaluated=evaluated,
            total_cost=float(evaluated),
            total_payout=tally.total_payout,
            winning_combinations=tally.winning_combinations,
            rtp=rtp,
            hit_frequency=hit_frequency,
            payout_std_dev=stats.get_std_dev(population=True),
            payout_distribution=dict(tally.payout_distribution),
            label_counts=dict(tally.label_counts),
            rule_counts=dict(tally.rule_counts),
            top_combinations=[
                {"multiplier": m, "positions": list(p), "line": list(s)}
                for m, p, s in tally.top_combinations
            ],
            target_rtp=target,
            rtp_tolerance=tolerance,
            meets_target=meets_target,
            cancelled=cancelled,
            duration=duration
        )

        if cancelled:
            self.logger.warning(
                f"Exhaustive analysis cancelled after {evaluated} of {report.total_combinations} combinations"
            )
        else:
            self.logger.info(
                f"Exhaustive analysis of {self.machine.id}: RTP {rtp:.6%}, hit frequency {hit_frequency:.4%}, "
                f"{tally.winning_combinations} winning of {evaluated} in {duration:.2f}s"
            )
            if meets_target is False:
                self.logger.warning(f"RTP {rtp:.6f} outside target {target} +/- {tolerance}")

        return report
