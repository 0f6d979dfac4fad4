# blackgold/domain/machine/entities/paytable.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from blackgold.domain.errors import InvalidDefinition

LINE_LENGTH = 3

SCATTER_MODE_LINE = "line"
SCATTER_MODE_ANYWHERE = "anywhere"
SCATTER_MODES = (SCATTER_MODE_LINE, SCATTER_MODE_ANYWHERE)

KIND_EXACT = "exact"
KIND_MIXED_BARS = "mixed_bars"
KIND_SCATTER = "scatter"
KIND_SCATTER_COUNT = "scatter_count"


@dataclass(frozen=True)
class SymbolSet:
    """Closed symbol vocabulary of a machine."""
    bars: Tuple[str, ...]
    wild: str
    blank: str
    scatter: Optional[str] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'SymbolSet':
        bars = tuple(config.get("bars", ()))
        wild = config.get("wild")
        blank = config.get("blank")
        if not bars or wild is None or blank is None:
            raise InvalidDefinition("symbols require 'bars', 'wild' and 'blank'")

        base = list(bars) + [wild, blank]
        if len(set(base)) != len(base):
            raise InvalidDefinition(f"symbol vocabulary contains duplicates: {base}")

        scatter = config.get("scatter", wild)
        if scatter in bars or scatter == blank:
            raise InvalidDefinition(f"scatter symbol {scatter!r} cannot be a bar or the blank")
        return cls(bars=bars, wild=wild, blank=blank, scatter=scatter)

    def all_symbols(self) -> List[str]:
        symbols = list(self.bars) + [self.wild, self.blank]
        if self.scatter is not None and self.scatter not in symbols:
            symbols.append(self.scatter)
        return symbols

    def is_bar(self, symbol: str) -> bool:
        return symbol in self.bars

    def is_wild(self, symbol: str) -> bool:
        return symbol == self.wild


@dataclass(frozen=True)
class PaytableEntry:
    """
    One payout rule. `pays` is the multiplier for a one-unit wager.

    kind == "exact":         literal triple in `pattern`
    kind == "mixed_bars":    bars not all identical, wild at `wild_position` (None = no wild)
    kind == "scatter":       literal wild/blank triple, only paid in line scatter mode
    kind == "scatter_count": at least `count` scatter symbols anywhere in the window
    """
    kind: str
    pays: float
    label: str
    pattern: Optional[Tuple[str, ...]] = None
    wild_position: Optional[int] = None
    count: Optional[int] = None
    jackpot: bool = False

    @property
    def key(self) -> str:
        if self.pattern is not None:
            return ",".join(self.pattern)
        if self.kind == KIND_MIXED_BARS:
            return "MIXED_BARS" if self.wild_position is None else f"MIXED_BARS_WILD{self.wild_position}"
        return f"SCATTER_{self.count}"


class Paytable:
    """
    Versioned, immutable set of payout rules loaded once at machine construction.
    """
    def __init__(self, version: str, symbols: SymbolSet, entries: List[PaytableEntry],
                 scatter_mode: str = SCATTER_MODE_LINE):
        self.logger = logging.getLogger("domain.machine.paytable")

        if scatter_mode not in SCATTER_MODES:
            raise InvalidDefinition(f"unknown scatter mode {scatter_mode!r}, expected one of {SCATTER_MODES}")

        self.version = version
        self.symbols = symbols
        self.scatter_mode = scatter_mode

        self._exact: Dict[Tuple[str, ...], PaytableEntry] = {}
        self._mixed_bars: Dict[Optional[int], PaytableEntry] = {}
        self._scatter_lines: Dict[Tuple[str, ...], PaytableEntry] = {}
        self._scatter_counts: Dict[int, PaytableEntry] = {}

        for entry in entries:
            self._add(entry)

        self.logger.debug(
            f"Paytable {version}: {len(self._exact)} exact, {len(self._mixed_bars)} mixed-bar, "
            f"{len(self._scatter_lines)} scatter-line, {len(self._scatter_counts)} scatter-count rules "
            f"(scatter mode: {scatter_mode})"
        )

    def _add(self, entry: PaytableEntry):
        if entry.pays < 0:
            raise InvalidDefinition(f"negative payout for {entry.key}: {entry.pays}")

        if entry.kind in (KIND_EXACT, KIND_SCATTER):
            pattern = entry.pattern or ()
            if len(pattern) != LINE_LENGTH:
                raise InvalidDefinition(f"pattern {pattern} must have {LINE_LENGTH} symbols")
            unknown = [s for s in pattern if s not in self.symbols.all_symbols()]
            if unknown:
                raise InvalidDefinition(f"pattern {pattern} uses unknown symbols {unknown}")
            target = self._exact if entry.kind == KIND_EXACT else self._scatter_lines
            if pattern in self._exact or pattern in self._scatter_lines:
                raise InvalidDefinition(f"duplicate pattern {entry.key}")
            target[pattern] = entry

        elif entry.kind == KIND_MIXED_BARS:
            if entry.wild_position is not None and not 0 <= entry.wild_position < LINE_LENGTH:
                raise InvalidDefinition(f"wild position {entry.wild_position} outside the line")
            if entry.wild_position in self._mixed_bars:
                raise InvalidDefinition(f"duplicate mixed-bar class {entry.key}")
            self._mixed_bars[entry.wild_position] = entry

        elif entry.kind == KIND_SCATTER_COUNT:
            if not entry.count or entry.count < 1:
                raise InvalidDefinition(f"scatter count must be positive, got {entry.count}")
            if entry.count in self._scatter_counts:
                raise InvalidDefinition(f"duplicate scatter count {entry.count}")
            self._scatter_counts[entry.count] = entry

        else:
            raise InvalidDefinition(f"unknown paytable entry kind {entry.kind!r}")

    @classmethod
    def from_config(cls, config: Dict[str, Any], symbols: SymbolSet) -> 'Paytable':
        """
        Build a paytable from the `paytable` section of a machine config.

        Args:
            config: Paytable configuration dictionary
            symbols: Machine symbol vocabulary

        Returns:
            Immutable Paytable
        """
        entries = []

        for item in config.get("exact", []):
            entries.append(PaytableEntry(
                kind=KIND_EXACT,
                pattern=tuple(item["pattern"]),
                pays=item["pays"],
                label=item.get("label", "WINNING COMBINATION"),
                jackpot=item.get("jackpot", False)
            ))

        for item in config.get("mixed_bars", []):
            entries.append(PaytableEntry(
                kind=KIND_MIXED_BARS,
                wild_position=item.get("wild_position"),
                pays=item["pays"],
                label=item.get("label", "MIXED BARS")
            ))

        for item in config.get("scatter", []):
            entries.append(PaytableEntry(
                kind=KIND_SCATTER,
                pattern=tuple(item["pattern"]),
                pays=item["pays"],
                label=item.get("label", "SCATTER")
            ))

        for item in config.get("scatter_anywhere", []):
            entries.append(PaytableEntry(
                kind=KIND_SCATTER_COUNT,
                count=item["count"],
                pays=item["pays"],
                label=item.get("label", "SCATTER")
            ))

        return cls(
            version=str(config.get("version", "unversioned")),
            symbols=symbols,
            entries=entries,
            scatter_mode=config.get("scatter_mode", SCATTER_MODE_LINE)
        )

    def exact_entry(self, line: Tuple[str, ...]) -> Optional[PaytableEntry]:
        return self._exact.get(tuple(line))

    def mixed_bars_entry(self, wild_position: Optional[int]) -> Optional[PaytableEntry]:
        return self._mixed_bars.get(wild_position)

    def scatter_line_entry(self, line: Tuple[str, ...]) -> Optional[PaytableEntry]:
        return self._scatter_lines.get(tuple(line))

    def scatter_count_entry(self, count: int) -> Optional[PaytableEntry]:
        """Highest scatter-count rule whose threshold is reached."""
        reached = [c for c in self._scatter_counts if c <= count]
        if not reached:
            return None
        return self._scatter_counts[max(reached)]

    def entries(self) -> List[PaytableEntry]:
        return (list(self._exact.values()) + list(self._mixed_bars.values()) +
                list(self._scatter_lines.values()) + list(self._scatter_counts.values()))

    def __repr__(self) -> str:
        return f"Paytable(version={self.version}, rules={len(self.entries())}, scatter_mode={self.scatter_mode})"
