# blackgold/domain/machine/entities/reel.py
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple

from blackgold.domain.errors import InvalidDefinition


@dataclass(frozen=True)
class ReelDefinition:
    """
    Certified symbol distribution of a single reel.

    The (symbol, count) pairs encode the math model of the machine and are
    never edited after construction. Use define_reel() to build one.
    """
    index: int
    length: int
    counts: Tuple[Tuple[str, int], ...]

    def canonical_symbols(self) -> List[str]:
        """Expand the multiset in declaration order."""
        result = []
        for symbol, count in self.counts:
            result.extend([symbol] * count)
        return result

    def count_of(self, symbol: str) -> int:
        for candidate, count in self.counts:
            if candidate == symbol:
                return count
        return 0

    def as_dict(self) -> Dict[str, int]:
        return dict(self.counts)

    @property
    def symbols(self) -> Tuple[str, ...]:
        return tuple(symbol for symbol, _ in self.counts)


def define_reel(index: int, symbol_counts: Mapping[str, int], length: int) -> ReelDefinition:
    """
    Validate a symbol distribution and freeze it into a ReelDefinition.

    Args:
        index: 0-based reel index, left to right
        symbol_counts: Mapping of symbol to exact number of occurrences
        length: Required strip length for this reel

    Returns:
        Immutable reel definition

    Raises:
        InvalidDefinition: If a count is negative or not an integer, the
            mapping is empty, the length is not positive, or the counts do
            not sum to the length
    """
    if not isinstance(length, int) or isinstance(length, bool) or length <= 0:
        raise InvalidDefinition(f"strip length must be a positive integer, got {length!r}", index)

    if not symbol_counts:
        raise InvalidDefinition("no symbols defined", index)

    counts = []
    for symbol, count in symbol_counts.items():
        if not isinstance(count, int) or isinstance(count, bool):
            raise InvalidDefinition(f"count for {symbol!r} must be an integer, got {count!r}", index)
        if count < 0:
            raise InvalidDefinition(f"count for {symbol!r} is negative ({count})", index)
        counts.append((str(symbol), count))

    total = sum(count for _, count in counts)
    if total != length:
        raise InvalidDefinition(f"symbol counts sum to {total}, expected {length}", index)

    return ReelDefinition(index=index, length=length, counts=tuple(counts))


class ReelStrip:
    """
    A concrete ordering of a reel's symbols.
    Spinning repositions the window on the strip; the strip itself never changes.
    """
    def __init__(self, symbols: Sequence[str], definition: ReelDefinition):
        """
        Initialize a strip.

        Args:
            symbols: Ordered symbols realizing the definition's multiset
            definition: The definition this strip was built from
        """
        if Counter(symbols) != Counter(definition.canonical_symbols()):
            raise InvalidDefinition("strip symbols do not match the defined multiset", definition.index)

        self.definition = definition
        self.symbols = tuple(symbols)
        self.length = len(self.symbols)

    @property
    def index(self) -> int:
        return self.definition.index

    def window(self, position: int, window_size: int = 3) -> List[str]:
        """
        Get the symbols visible in the window starting at the given position.
        Handles wrapping around the strip.

        Args:
            position: Starting position on the strip
            window_size: Number of symbols to return (default: 3)

        Returns:
            List of visible symbols, top to bottom
        """
        return [self.symbols[(position + i) % self.length] for i in range(window_size)]

    def symbol_at(self, position: int) -> str:
        return self.symbols[position % self.length]

    def __len__(self) -> int:
        return self.length

    def __iter__(self):
        return iter(self.symbols)

    def __repr__(self) -> str:
        return f"ReelStrip(index={self.index}, length={self.length})"
