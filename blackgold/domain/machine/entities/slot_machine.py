# blackgold/domain/machine/entities/slot_machine.py
import logging
from typing import Dict, List, Any, Tuple

from blackgold.domain.machine.entities.reel import ReelDefinition, ReelStrip, define_reel
from blackgold.domain.machine.entities.paytable import Paytable, SymbolSet
from blackgold.domain.machine.services.strip_randomizer import materialize
from blackgold.domain.machine.services.spin_sampler import SpinSampler, SpinOutcome
from blackgold.domain.machine.services.win_evaluation import WinEvaluator, RoundEvaluation
from blackgold.domain.errors import InvalidDefinition
from blackgold.domain.money import to_cents


class SlotMachine:
    """
    Represents a reel machine with its certified reel definitions, the strips
    materialized from them, its paytable and its wager levels.
    Core entity in the machine domain.
    """
    def __init__(self, machine_id: str, config: Dict[str, Any], rng_strategy=None):
        """
        Initialize the slot machine.

        Args:
            machine_id: Unique identifier for this machine
            config: Machine configuration dictionary
            rng_strategy: RNG used once to shuffle the strips (optional; without
                it, or with shuffle_strips disabled, canonical strips are used)

        Raises:
            InvalidDefinition: If any part of the configuration violates the
                machine invariants. A machine is never partially built.
        """
        self.id = machine_id
        self.logger = logging.getLogger(f"domain.machine.{machine_id}")
        self.logger.info(f"Initializing slot machine: {machine_id}")

        self.config = config

        self.symbols = SymbolSet.from_config(config.get("symbols", {}))
        self.strip_length = config.get("strip_length")
        self.shuffle_strips = config.get("shuffle_strips", True)
        self.sampler = SpinSampler(
            window_size=config.get("window_size", 3),
            line_index=config.get("line_index", 1)
        )
        self.target_rtp = config.get("target_rtp")
        self.rtp_tolerance = config.get("rtp_tolerance", 0.0001)
        self.big_win_multiplier = config.get("big_win_multiplier", 10)

        self._load_reels(config.get("reels", []))
        self._load_paytable(config.get("paytable", {}))
        self._load_wagers(config.get("wagers", {}))
        self._materialize_strips(rng_strategy)

        self.evaluator = WinEvaluator(self.paytable)

        self.logger.info(f"Slot machine {machine_id} initialized successfully")

    def _load_reels(self, reels_config: List[Dict[str, Any]]):
        """
        Build one ReelDefinition per configured reel.

        Args:
            reels_config: List of reel entries, each with 'counts' and an
                optional per-reel 'length'
        """
        if len(reels_config) != 3:
            raise InvalidDefinition(f"expected 3 reels, got {len(reels_config)}")

        vocabulary = set(self.symbols.all_symbols())
        self.definitions: List[ReelDefinition] = []

        for index, reel_config in enumerate(reels_config):
            counts = reel_config.get("counts", {})
            unknown = [s for s in counts if s not in vocabulary]
            if unknown:
                raise InvalidDefinition(f"unknown symbols {unknown}", index)

            length = reel_config.get("length", self.strip_length)
            definition = define_reel(index, counts, length)
            self.definitions.append(definition)
            self.logger.debug(f"Loaded reel {index} with {definition.length} stops: {definition.as_dict()}")

    def _load_paytable(self, paytable_config: Dict[str, Any]):
        if not paytable_config:
            raise InvalidDefinition("machine has no paytable")
        self.paytable = Paytable.from_config(paytable_config, self.symbols)

    def _load_wagers(self, wagers_config: Dict[str, Any]):
        """
        Load the discrete wager levels, the default wager and the opening balance.
        """
        try:
            levels = sorted({to_cents(level) for level in wagers_config.get("levels", [1.0])})
            self.default_wager_cents = to_cents(wagers_config.get("default", 1.0))
            self.initial_balance_cents = to_cents(self.config.get("initial_balance", 100.0))
        except ValueError as e:
            raise InvalidDefinition(f"invalid wager configuration: {e}") from e

        if not levels or levels[0] <= 0:
            raise InvalidDefinition(f"wager levels must be positive: {levels}")
        if self.default_wager_cents not in levels:
            raise InvalidDefinition(f"default wager {self.default_wager_cents / 100:.2f} is not a wager level")
        if self.initial_balance_cents < 0:
            raise InvalidDefinition("initial balance cannot be negative")

        self.wager_levels_cents: Tuple[int, ...] = tuple(levels)

    def _materialize_strips(self, rng_strategy):
        rng = rng_strategy if self.shuffle_strips else None
        if self.shuffle_strips and rng is None:
            self.logger.warning("No RNG strategy available, using canonical strip order")

        self.strips: List[ReelStrip] = [materialize(d, rng) for d in self.definitions]

    def canonical_strips(self) -> List[ReelStrip]:
        """Unshuffled strips, the fixed ordering used for exhaustive enumeration."""
        return [materialize(d, None) for d in self.definitions]

    def spin(self, rng) -> SpinOutcome:
        """
        Draw a stop position on each reel.

        Args:
            rng: RNG strategy for the position draws

        Returns:
            SpinOutcome holding positions, windows and the evaluated line
        """
        outcome = self.sampler.sample(self.strips, rng)
        self.logger.debug(f"Spin result: positions={outcome.positions}, line={outcome.line}")
        return outcome

    def evaluate(self, outcome: SpinOutcome) -> RoundEvaluation:
        return self.evaluator.evaluate_outcome(outcome)

    @property
    def window_size(self) -> int:
        return self.sampler.window_size

    @property
    def line_index(self) -> int:
        return self.sampler.line_index

    @property
    def total_combinations(self) -> int:
        total = 1
        for definition in self.definitions:
            total *= definition.length
        return total

    def get_info(self) -> Dict[str, Any]:
        """
        Get information about this machine.
        """
        return {
            'id': self.id,
            'paytable_version': self.paytable.version,
            'scatter_mode': self.paytable.scatter_mode,
            'reel_lengths': [d.length for d in self.definitions],
            'reel_counts': [d.as_dict() for d in self.definitions],
            'window_size': self.window_size,
            'line_index': self.line_index,
            'wager_levels': [c / 100 for c in self.wager_levels_cents],
            'target_rtp': self.target_rtp
        }
