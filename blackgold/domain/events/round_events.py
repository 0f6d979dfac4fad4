# blackgold/domain/events/round_events.py
from enum import Enum, auto
from dataclasses import dataclass

from blackgold.domain.events.event_types import DomainEvent


class RoundEventType(Enum):
    """Event types emitted while a wager round is settled."""
    ROUND_DEBITED = auto()
    ROUND_SETTLED = auto()
    ROUND_REFUNDED = auto()
    BIG_WIN = auto()
    JACKPOT_WIN = auto()


@dataclass
class RoundEvent(DomainEvent):
    """Event representing a step of one settlement round."""
    session_id: str = ""
    machine_id: str = ""
    round_number: int = 0

    def __post_init__(self):
        super().__post_init__()

        self.data["session_id"] = self.session_id
        self.data["machine_id"] = self.machine_id
        self.data["round_number"] = self.round_number
