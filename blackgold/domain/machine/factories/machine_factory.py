# blackgold/domain/machine/factories/machine_factory.py
import logging
import os
from typing import Dict, Any, Optional

from blackgold.domain.machine.entities.slot_machine import SlotMachine


class MachineFactory:
    """
    Factory for creating SlotMachine instances.
    """
    def __init__(self, rng_provider=None):
        """
        Initialize the machine factory.

        Args:
            rng_provider: Optional RNG provider used for the one-time strip shuffle
        """
        self.logger = logging.getLogger("domain.machine.factory")
        self.rng_provider = rng_provider

    def create_machine(self, machine_id: str, config: Dict[str, Any],
                       rng_strategy_name: Optional[str] = None,
                       shuffle_seed: Optional[int] = None) -> SlotMachine:
        """
        Create a new slot machine instance.

        Args:
            machine_id: Unique identifier for the machine
            config: Machine configuration dictionary
            rng_strategy_name: RNG strategy for the strip shuffle (defaults to
                the strategy named in the config's 'rng' section)
            shuffle_seed: Optional seed for a reproducible strip order

        Returns:
            Initialized SlotMachine instance
        """
        self.logger.info(f"Creating slot machine: {machine_id}")

        rng_strategy = None
        if self.rng_provider:
            rng_config = config.get("rng", {})
            strategy_name = rng_strategy_name or rng_config.get("strategy", "system")
            seed = shuffle_seed if shuffle_seed is not None else rng_config.get("shuffle_seed")

            rng_strategy = self.rng_provider.get_rng(strategy_name, seed)
            self.logger.debug(f"Shuffling strips with RNG strategy: {strategy_name}, seed: {seed}")
        else:
            self.logger.warning("No RNG provider available, strips keep canonical order")

        return SlotMachine(machine_id, config, rng_strategy)

    def create_machine_from_file(self, config_loader, file_path: str,
                                 machine_id: Optional[str] = None,
                                 schema_path: Optional[str] = None,
                                 **kwargs) -> SlotMachine:
        """
        Create a machine from a configuration file.

        Args:
            config_loader: Configuration loader instance
            file_path: Path to configuration file
            machine_id: Optional explicit machine ID (overrides ID in config)
            schema_path: Optional JSON schema to validate the file against

        Returns:
            Initialized SlotMachine instance
        """
        self.logger.info(f"Creating machine from file: {file_path}")

        config = config_loader.load_file(file_path, schema_path)

        if machine_id is None:
            machine_id = config.get("machine_id") or os.path.splitext(os.path.basename(file_path))[0]

        return self.create_machine(machine_id, config, **kwargs)
