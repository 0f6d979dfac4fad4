# blackgold/domain/machine/services/win_evaluation.py
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Sequence, Tuple

from blackgold.domain.machine.entities.paytable import Paytable, PaytableEntry, SCATTER_MODE_ANYWHERE, SCATTER_MODE_LINE, LINE_LENGTH


def credit_cents(multiplier, wager_cents: int) -> int:
    """
    Credited amount in cents for a per-unit multiplier and a wager in cents.

    Equals floor(multiplier * wager * 100) / 100 expressed in cents. The result
    is always rounded down, never up. Decimal keeps multipliers such as 0.29
    from drifting below their written value.
    """
    if multiplier <= 0 or wager_cents <= 0:
        return 0
    return math.floor(Decimal(str(multiplier)) * wager_cents)


@dataclass(frozen=True)
class LineEvaluation:
    multiplier: float = 0
    label: Optional[str] = None
    entry: Optional[PaytableEntry] = None

    @property
    def is_win(self) -> bool:
        return self.multiplier > 0


@dataclass(frozen=True)
class ScatterEvaluation:
    count: int = 0
    multiplier: float = 0
    entry: Optional[PaytableEntry] = None

    @property
    def is_win(self) -> bool:
        return self.multiplier > 0


@dataclass(frozen=True)
class RoundEvaluation:
    """Line payout and scatter payout of one outcome, kept as separate sources."""
    line: LineEvaluation
    scatter: ScatterEvaluation

    @property
    def total_multiplier(self):
        return self.line.multiplier + self.scatter.multiplier

    @property
    def is_win(self) -> bool:
        return self.line.is_win or self.scatter.is_win

    @property
    def label(self) -> Optional[str]:
        labels = [e.label for e in (self.line.entry, self.scatter.entry) if e is not None]
        return " + ".join(labels) if labels else None

    def credit_cents(self, wager_cents: int) -> int:
        # Each source is rounded down on its own before summing
        return credit_cents(self.line.multiplier, wager_cents) + credit_cents(self.scatter.multiplier, wager_cents)


NO_LINE_WIN = LineEvaluation()
NO_SCATTER_WIN = ScatterEvaluation()


class WinEvaluator:
    """
    Applies the paytable to a spin outcome.

    Line rules are checked in strict priority and the first match is returned:
    exact triple, then mixed-bar classes by wild position, then the
    scatter-adjacent line patterns (line scatter mode only). Payouts from
    several matching rules are never blended.
    """

    def __init__(self, paytable: Paytable):
        self._paytable = paytable
        self._symbols = paytable.symbols
        self._cache: Dict[Tuple[str, ...], LineEvaluation] = {}

        self.logger = logging.getLogger("domain.machine.win_evaluator")

    @property
    def paytable(self) -> Paytable:
        return self._paytable

    @property
    def scatter_mode(self) -> str:
        return self._paytable.scatter_mode

    def _is_bar(self, symbol: str) -> bool:
        return self._symbols.is_bar(symbol)

    def _is_wild(self, symbol: str) -> bool:
        return self._symbols.is_wild(symbol)

    def evaluate(self, line: Sequence[str]) -> LineEvaluation:
        """
        Evaluate the payline.

        Args:
            line: One symbol per reel, left to right

        Returns:
            LineEvaluation; multiplier 0 and label None when nothing matches

        Raises:
            ValueError: If the line does not hold exactly three symbols
        """
        key = tuple(line)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        if len(key) != LINE_LENGTH:
            error_msg = f"Invalid line {key}: expected {LINE_LENGTH} symbols"
            self.logger.error(error_msg)
            raise ValueError(error_msg)

        result = self._evaluate_line(key)
        self._cache[key] = result
        return result

    def _evaluate_line(self, line: Tuple[str, ...]) -> LineEvaluation:
        entry = self._paytable.exact_entry(line)

        if entry is None:
            entry = self._match_mixed_bars(line)

        if entry is None and self.scatter_mode == SCATTER_MODE_LINE:
            entry = self._paytable.scatter_line_entry(line)

        if entry is None:
            return NO_LINE_WIN

        return LineEvaluation(multiplier=entry.pays, label=entry.label, entry=entry)

    def _match_mixed_bars(self, line: Tuple[str, ...]) -> Optional[PaytableEntry]:
        wild_positions = [i for i, symbol in enumerate(line) if self._is_wild(symbol)]

        if not wild_positions:
            if all(self._is_bar(s) for s in line) and len(set(line)) > 1:
                return self._paytable.mixed_bars_entry(None)
            return None

        if len(wild_positions) == 1:
            position = wild_positions[0]
            first, second = [s for i, s in enumerate(line) if i != position]
            if self._is_bar(first) and self._is_bar(second) and first != second:
                return self._paytable.mixed_bars_entry(position)

        return None

    def evaluate_scatter(self, windows: Sequence[Sequence[str]]) -> ScatterEvaluation:
        """
        Count the scatter symbol anywhere in the visible window.
        Only pays in anywhere scatter mode.
        """
        if self.scatter_mode != SCATTER_MODE_ANYWHERE or self._symbols.scatter is None:
            return NO_SCATTER_WIN

        count = sum(1 for window in windows for symbol in window if symbol == self._symbols.scatter)
        return self.evaluate_scatter_count(count)

    def evaluate_scatter_count(self, count: int) -> ScatterEvaluation:
        """Scatter payout for an already counted number of scatter symbols."""
        if self.scatter_mode != SCATTER_MODE_ANYWHERE:
            return NO_SCATTER_WIN

        entry = self._paytable.scatter_count_entry(count)

        if entry is None:
            return ScatterEvaluation(count=count)

        return ScatterEvaluation(count=count, multiplier=entry.pays, entry=entry)

    def evaluate_outcome(self, outcome) -> RoundEvaluation:
        """
        Evaluate a SpinOutcome: the evaluated line plus, in anywhere mode,
        the scatter count over all windows.
        """
        line_result = self.evaluate(outcome.line)
        scatter_result = self.evaluate_scatter(outcome.windows)

        if line_result.is_win or scatter_result.is_win:
            self.logger.debug(
                f"Outcome {outcome.line} pays line x{line_result.multiplier}, "
                f"scatter x{scatter_result.multiplier} ({scatter_result.count} scatters)"
            )

        return RoundEvaluation(line=line_result, scatter=scatter_result)
