# blackgold/domain/machine/services/spin_sampler.py
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from blackgold.domain.machine.entities.reel import ReelStrip
from blackgold.domain.errors import InvalidDefinition


@dataclass(frozen=True)
class SpinOutcome:
    """Stop positions and visible windows of one spin."""
    positions: Tuple[int, ...]
    windows: Tuple[Tuple[str, ...], ...]
    line_index: int

    @property
    def line(self) -> Tuple[str, ...]:
        """The evaluated row, one symbol per reel."""
        return tuple(window[self.line_index] for window in self.windows)

    def visible_symbols(self) -> List[str]:
        return [symbol for window in self.windows for symbol in window]


class SpinSampler:
    """
    Draws one uniform stop position per reel and extracts the visible window.
    """
    def __init__(self, window_size: int = 3, line_index: int = 1):
        """
        Args:
            window_size: Symbols visible per reel
            line_index: Row of the window that is evaluated against the paytable

        Raises:
            InvalidDefinition: If the evaluated row is outside the window
        """
        if window_size < 1:
            raise InvalidDefinition(f"window size must be at least 1, got {window_size}")
        if not 0 <= line_index < window_size:
            raise InvalidDefinition(
                f"line index {line_index} outside window of size {window_size}"
            )

        self.window_size = window_size
        self.line_index = line_index
        self.logger = logging.getLogger("domain.machine.spin_sampler")

    def sample(self, strips: Sequence[ReelStrip], rng) -> SpinOutcome:
        """
        Spin every reel independently.

        Args:
            strips: Materialized strips, left to right
            rng: RNG strategy

        Returns:
            Fresh SpinOutcome
        """
        positions = [rng.get_random_int(0, len(strip) - 1) for strip in strips]
        return self.outcome_at(strips, positions)

    def sample_batch(self, strips: Sequence[ReelStrip], rng, count: int) -> List[SpinOutcome]:
        """Draw `count` outcomes, each reel's positions drawn as its own batch."""
        columns = [rng.get_batch_ints(0, len(strip) - 1, count) for strip in strips]
        return [self.outcome_at(strips, positions) for positions in zip(*columns)]

    def outcome_at(self, strips: Sequence[ReelStrip], positions: Sequence[int]) -> SpinOutcome:
        """Build the outcome for fixed stop positions."""
        if len(positions) != len(strips):
            raise ValueError(f"Expected {len(strips)} positions, got {len(positions)}")

        windows = tuple(
            tuple(strip.window(position, self.window_size))
            for strip, position in zip(strips, positions)
        )
        return SpinOutcome(
            positions=tuple(p % len(s) for p, s in zip(positions, strips)),
            windows=windows,
            line_index=self.line_index
        )
