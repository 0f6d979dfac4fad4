# blackgold/application/analysis/incremental_stats.py
from dataclasses import dataclass
import math
from typing import Dict, Optional


@dataclass
class IncrementalStats:
    """
    Running mean and variance of a payout distribution, fed as
    (value, weight) pairs. Partial accumulators from independent workers
    are combined with merge() using the parallel form of Welford's update.
    """
    count: int = 0
    mean: float = 0.0
    M2: float = 0.0

    min_value: Optional[float] = None
    max_value: Optional[float] = None
    sum_values: float = 0.0

    def update_weighted(self, value: float, weight: int) -> None:
        """Add `weight` copies of the same value in one step."""
        if weight <= 0:
            return
        self.merge(IncrementalStats(
            count=weight,
            mean=value,
            M2=0.0,
            min_value=value,
            max_value=value,
            sum_values=value * weight
        ))

    def merge(self, other: 'IncrementalStats') -> 'IncrementalStats':
        """Fold another accumulator into this one (Chan et al. parallel update)."""
        if other.count == 0:
            return self
        if self.count == 0:
            self.count = other.count
            self.mean = other.mean
            self.M2 = other.M2
            self.min_value = other.min_value
            self.max_value = other.max_value
            self.sum_values = other.sum_values
            return self

        total = self.count + other.count
        delta = other.mean - self.mean

        self.M2 += other.M2 + delta * delta * self.count * other.count / total
        self.mean += delta * other.count / total
        self.count = total
        self.sum_values += other.sum_values
        self.min_value = min(self.min_value, other.min_value)
        self.max_value = max(self.max_value, other.max_value)
        return self

    def get_variance(self, population: bool = False) -> float:
        """
        population=True divides by n, otherwise by n-1.
        """
        if self.count < 2:
            return 0.0
        if population:
            return self.M2 / self.count
        return self.M2 / (self.count - 1)

    def get_std_dev(self, population: bool = False) -> float:
        return math.sqrt(self.get_variance(population))

    def to_dict(self) -> Dict[str, float]:
        return {
            "count": self.count,
            "mean": self.mean,
            "std_dev": self.get_std_dev(),
            "variance": self.get_variance(),
            "min": self.min_value,
            "max": self.max_value,
            "sum": self.sum_values
        }
