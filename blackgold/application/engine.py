# blackgold/application/engine.py
import logging
import threading
from typing import Any, Callable, Dict, Optional

from blackgold.domain.events.event_dispatcher import EventDispatcher
from blackgold.domain.machine.factories.machine_factory import MachineFactory
from blackgold.domain.session.entities.account_state import AccountState
from blackgold.domain.session.entities.settlement_record import SettlementRecord
from blackgold.domain.session.factories.session_factory import SessionFactory
from blackgold.infrastructure.concurrency.task_executor import TaskExecutor, ExecutionMode
from blackgold.infrastructure.config.loaders.yaml_loader import YamlConfigLoader
from blackgold.infrastructure.config.paths import DEFAULT_MACHINE_CONFIG, MACHINE_SCHEMA
from blackgold.infrastructure.config.validators.schema_validator import SchemaValidator
from blackgold.infrastructure.rng.rng_provider import RNGProvider
from blackgold.application.analysis.exhaustive_analyzer import ExhaustiveAnalyzer, ExhaustiveReport
from blackgold.application.analysis.monte_carlo_analyzer import MonteCarloAnalyzer, MonteCarloReport


class SlotEngine:
    """
    Single entry point for a presentation layer: one machine, one account,
    plus the two verification runs.
    """
    def __init__(self, machine, session, config: Optional[Dict[str, Any]] = None,
                 rng_provider: Optional[RNGProvider] = None,
                 event_dispatcher: Optional[EventDispatcher] = None):
        self.machine = machine
        self.session = session
        self.config = config or {}
        self.rng_provider = rng_provider or RNGProvider()
        self.event_dispatcher = event_dispatcher
        self.logger = logging.getLogger("application.engine")

    @classmethod
    def from_config(cls, config: Dict[str, Any], rng=None, shuffle_seed: Optional[int] = None,
                    event_dispatcher: Optional[EventDispatcher] = None,
                    machine_id: Optional[str] = None) -> 'SlotEngine':
        """
        Build an engine from a machine configuration dictionary.

        Args:
            config: Machine configuration
            rng: RNG strategy for live rounds (the config's 'rng' strategy if None)
            shuffle_seed: Optional seed for a reproducible strip order
            event_dispatcher: Dispatcher for round events (a new one if None)
            machine_id: Overrides the config's machine_id

        Raises:
            InvalidDefinition: If the machine configuration is invalid
        """
        rng_provider = RNGProvider()
        event_dispatcher = event_dispatcher or EventDispatcher()

        machine = MachineFactory(rng_provider).create_machine(
            machine_id or config.get("machine_id", "machine"),
            config,
            shuffle_seed=shuffle_seed
        )

        if rng is None:
            rng_config = config.get("rng", {})
            rng = rng_provider.get_rng(rng_config.get("strategy", "system"), rng_config.get("seed"))

        session = SessionFactory(event_dispatcher).create_session(machine, rng)
        return cls(machine, session, config, rng_provider, event_dispatcher)

    @classmethod
    def from_config_file(cls, path: str = DEFAULT_MACHINE_CONFIG,
                         schema_path: Optional[str] = MACHINE_SCHEMA, **kwargs) -> 'SlotEngine':
        """
        Build an engine from a YAML machine file validated against the machine schema.

        Raises:
            ConfigError: If the file is missing, unparsable or fails validation
            InvalidDefinition: If the machine configuration is invalid
        """
        loader = YamlConfigLoader(SchemaValidator())
        config = loader.load_file(path, schema_path)
        return cls.from_config(config, **kwargs)

    def spin(self, wager=None) -> SettlementRecord:
        return self.session.spin(wager)

    def get_account_state(self) -> AccountState:
        return self.session.get_account_state()

    def set_wager(self, amount) -> None:
        self.session.set_wager(amount)

    def deposit(self, amount) -> AccountState:
        return self.session.deposit(amount)

    def get_machine_info(self) -> Dict[str, Any]:
        return self.machine.get_info()

    def run_exhaustive_analysis(self, cancel_token: Optional[threading.Event] = None,
                                execution: Optional[str] = None,
                                max_workers: Optional[int] = None,
                                progress_callback: Optional[Callable[[int, int], Any]] = None) -> ExhaustiveReport:
        """
        Enumerate every stop combination and report the exact RTP.

        Args:
            cancel_token: Optional cancellation event
            execution: "sequential", "thread" or "process" (config default if None)
            max_workers: Worker count for pooled execution
            progress_callback: Optional callable(chunks_done, chunks_total)
        """
        analysis_config = self.config.get("analysis", {})
        mode = ExecutionMode.from_name(execution or analysis_config.get("execution", "sequential"))
        if max_workers is None:
            max_workers = analysis_config.get("max_workers")
        executor = TaskExecutor(mode, max_workers)

        analyzer = ExhaustiveAnalyzer(self.machine, executor, analysis_config.get("chunk_size", 8))
        return analyzer.analyze(cancel_token, progress_callback)

    def run_monte_carlo(self, rounds: Optional[int] = None, seed: Optional[int] = None,
                        cancel_token: Optional[threading.Event] = None,
                        show_progress: bool = False) -> MonteCarloReport:
        """
        Simulate independent rounds at a one-unit wager.

        Args:
            rounds: Number of rounds (config default if None)
            seed: Seed for a reproducible run (config seed if None)
            cancel_token: Optional cancellation event
            show_progress: Show a tqdm progress bar
        """
        mc_config = self.config.get("analysis", {}).get("monte_carlo", {})
        rng_config = mc_config.get("rng", {})

        if rounds is None:
            rounds = mc_config.get("rounds", 1000000)
        if seed is None:
            seed = rng_config.get("seed")
        rng = self.rng_provider.get_rng(rng_config.get("strategy", "numpy"), seed)

        analyzer = MonteCarloAnalyzer(
            self.machine,
            rng,
            session_sizes=mc_config.get("session_sizes", (100, 1000, 10000)),
            history_interval=mc_config.get("history_interval", 10000),
            batch_size=mc_config.get("batch_size", 10000)
        )
        return analyzer.run(rounds, cancel_token, show_progress, seed)
