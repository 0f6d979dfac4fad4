# blackgold/domain/errors.py
from typing import Optional


class EngineError(Exception):
    """Base class for all errors raised by the reel engine."""
    pass


class InvalidDefinition(EngineError):
    """Reel, paytable or sampler configuration violates an engine invariant."""
    def __init__(self, message: str, reel_index: Optional[int] = None):
        self.reel_index = reel_index
        self.message = message if reel_index is None else f"Reel {reel_index}: {message}"
        super().__init__(self.message)


class InsufficientFunds(EngineError):
    """The requested wager exceeds the account balance."""
    def __init__(self, balance_cents: int, wager_cents: int):
        self.balance_cents = balance_cents
        self.wager_cents = wager_cents
        self.message = (
            f"Insufficient balance: {balance_cents / 100:.2f} < {wager_cents / 100:.2f}"
        )
        super().__init__(self.message)


class RoundInProgress(EngineError):
    """A round is already in flight for this account."""
    def __init__(self, message: str = "A round is already in progress"):
        self.message = message
        super().__init__(self.message)


class InvalidWager(EngineError):
    """The requested wager is not permitted."""
    def __init__(self, amount, reason: str):
        self.amount = amount
        self.reason = reason
        self.message = f"Invalid wager {amount}: {reason}"
        super().__init__(self.message)
