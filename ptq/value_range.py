import math
from dataclasses import dataclass

from .errors import InvalidRange


@dataclass(frozen=True)
class ValueRange:
    """Observed real-valued extent [min, max] of a tensor."""
    min: float
    max: float

    def __post_init__(self):
        object.__setattr__(self, 'min', float(self.min))
        object.__setattr__(self, 'max', float(self.max))
        # rejects NaN and overflowed (inf) extrema
        if not (math.isfinite(self.min) and math.isfinite(self.max)):
            raise InvalidRange(f"Non-finite value range: min={self.min}, max={self.max}")
        if not self.min <= self.max:
            raise InvalidRange(f"Invalid value range: min={self.min}, max={self.max}")

    @property
    def span(self) -> float:
        return self.max - self.min

    @property
    def contains_zero(self) -> bool:
        return self.min <= 0.0 <= self.max

    def union(self, other: 'ValueRange') -> 'ValueRange':
        return ValueRange(min(self.min, other.min), max(self.max, other.max))

    __or__ = union

    def clamped_to_zero(self) -> 'ValueRange':
        """Smallest range covering both this range and 0.0"""
        return ValueRange(min(self.min, 0.0), max(self.max, 0.0))

    def as_tuple(self):
        return (self.min, self.max)
