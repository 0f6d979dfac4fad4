# blackgold/domain/session/entities/account_state.py
from dataclasses import dataclass

from blackgold.domain.money import from_cents


@dataclass(frozen=True)
class AccountState:
    """Immutable snapshot of an account. Amounts are integer cents."""
    balance_cents: int
    current_wager_cents: int
    last_win_cents: int = 0

    @property
    def balance(self) -> float:
        return from_cents(self.balance_cents)

    @property
    def current_wager(self) -> float:
        return from_cents(self.current_wager_cents)

    @property
    def last_win(self) -> float:
        return from_cents(self.last_win_cents)

    def to_dict(self):
        return {
            "balance": self.balance,
            "current_wager": self.current_wager,
            "last_win": self.last_win
        }
