# blackgold/domain/session/entities/settlement_record.py
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from blackgold.domain.machine.entities.paytable import PaytableEntry
from blackgold.domain.money import from_cents


@dataclass(frozen=True)
class SettlementRecord:
    """
    Result of one settled round: the outcome, what matched and how the
    balance moved. Money fields are integer cents.
    """
    session_id: str
    round_number: int
    wager_cents: int
    debited_cents: int
    credited_cents: int
    balance_before_cents: int
    balance_after_cents: int

    positions: Tuple[int, ...] = ()
    line: Tuple[str, ...] = ()
    windows: Tuple[Tuple[str, ...], ...] = ()

    line_entry: Optional[PaytableEntry] = None
    scatter_entry: Optional[PaytableEntry] = None
    scatter_count: int = 0
    multiplier: float = 0
    label: Optional[str] = None

    big_win: bool = False
    jackpot: bool = False
    timestamp: float = field(default_factory=time.time)

    @property
    def wager(self) -> float:
        return from_cents(self.wager_cents)

    @property
    def credited(self) -> float:
        return from_cents(self.credited_cents)

    @property
    def balance_after(self) -> float:
        return from_cents(self.balance_after_cents)

    @property
    def is_win(self) -> bool:
        return self.credited_cents > 0

    @property
    def net_cents(self) -> int:
        return self.credited_cents - self.debited_cents

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "round_number": self.round_number,
            "timestamp": self.timestamp,
            "wager": self.wager,
            "debited": from_cents(self.debited_cents),
            "credited": self.credited,
            "net": from_cents(self.net_cents),
            "balance_before": from_cents(self.balance_before_cents),
            "balance_after": self.balance_after,
            "positions": list(self.positions),
            "line": list(self.line),
            "windows": [list(w) for w in self.windows],
            "line_rule": self.line_entry.key if self.line_entry else None,
            "scatter_rule": self.scatter_entry.key if self.scatter_entry else None,
            "scatter_count": self.scatter_count,
            "multiplier": self.multiplier,
            "label": self.label,
            "big_win": self.big_win,
            "jackpot": self.jackpot
        }
