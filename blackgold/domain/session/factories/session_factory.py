# blackgold/domain/session/factories/session_factory.py
import logging
import uuid
from typing import Dict, Any, Optional

from blackgold.domain.session.entities.gaming_session import GamingSession
from blackgold.domain.money import to_cents


class SessionFactory:
    """
    Factory for creating GamingSession instances.
    """
    def __init__(self, event_dispatcher=None):
        """
        Initialize the session factory.

        Args:
            event_dispatcher: Optional event dispatcher for round events
        """
        self.logger = logging.getLogger("domain.session.factory")
        self.event_dispatcher = event_dispatcher

    def create_session(self, machine, rng, session_id: Optional[str] = None,
                       initial_balance_cents: Optional[int] = None,
                       wager_cents: Optional[int] = None) -> GamingSession:
        """
        Create a new gaming session.

        Args:
            machine: SlotMachine entity instance
            rng: RNG strategy for stop position draws
            session_id: Optional session ID (generated if not provided)
            initial_balance_cents: Optional opening balance override
            wager_cents: Optional opening wager override

        Returns:
            Initialized GamingSession instance
        """
        if not session_id:
            session_id = f"{machine.id}_{uuid.uuid4().hex[:8]}"

        self.logger.info(f"Creating session {session_id} on machine {machine.id}")

        return GamingSession(
            session_id=session_id,
            machine=machine,
            rng=rng,
            event_dispatcher=self.event_dispatcher,
            initial_balance_cents=initial_balance_cents,
            wager_cents=wager_cents
        )

    def create_session_from_config(self, machine, rng, config: Dict[str, Any]) -> GamingSession:
        """
        Create a session from a configuration dictionary with optional
        'session_id', 'initial_balance' and 'wager' keys (dollar amounts).
        """
        balance = config.get("initial_balance")
        wager = config.get("wager")

        return self.create_session(
            machine,
            rng,
            session_id=config.get("session_id"),
            initial_balance_cents=to_cents(balance) if balance is not None else None,
            wager_cents=to_cents(wager) if wager is not None else None
        )
