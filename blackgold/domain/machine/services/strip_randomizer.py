# blackgold/domain/machine/services/strip_randomizer.py
import logging
from typing import Optional

from blackgold.domain.machine.entities.reel import ReelDefinition, ReelStrip

logger = logging.getLogger("domain.machine.strip_randomizer")


def materialize(definition: ReelDefinition, rng=None) -> ReelStrip:
    """
    Build a concrete strip from a reel definition.

    With an RNG the canonical multiset is permuted by a Fisher-Yates shuffle
    (for i from L-1 down to 1, swap i with a uniform j in [0, i]). Without one
    the canonical declaration order is kept, which is what exhaustive analysis
    uses.

    Args:
        definition: Reel definition to realize
        rng: Optional RNG strategy exposing get_random_int()

    Returns:
        ReelStrip holding exactly the defined multiset
    """
    symbols = definition.canonical_symbols()

    if rng is not None:
        for i in range(len(symbols) - 1, 0, -1):
            j = rng.get_random_int(0, i)
            symbols[i], symbols[j] = symbols[j], symbols[i]

    logger.debug(
        f"Materialized reel {definition.index} ({definition.length} stops, "
        f"{'shuffled' if rng is not None else 'canonical'})"
    )
    return ReelStrip(symbols, definition)


def canonical_strip(definition: ReelDefinition) -> ReelStrip:
    return materialize(definition, None)
