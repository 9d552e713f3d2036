from dataclasses import dataclass, fields
from typing import Optional


@dataclass(frozen=True)
class FitterConfig:
    # Multiplicative factors against the locally estimated module length
    value_ratio: float = 0.7
    count_ratio: float = 0.87
    perpendicular_ratio: float = 1.0
    move_limit_ratio: float = 0.5
    # Fraction of the outside band that may still match before a side counts as bound
    bound_ratio: float = 0.5

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not value > 0:
                raise ValueError(f"{f.name} must be positive, got {value}")
        if self.bound_ratio > 1:
            raise ValueError(f"bound_ratio must be <= 1, got {self.bound_ratio}")


@dataclass(frozen=True)
class GridConfig:
    extra_passes: int = 3
    neighborhood: int = 7
    seed_region_modules: int = 4
    correct_runs: bool = True
    tolerance: Optional[float] = None

    def __post_init__(self):
        if self.extra_passes < 0:
            raise ValueError(f"extra_passes must be >= 0, got {self.extra_passes}")
        if self.neighborhood < 1 or self.neighborhood % 2 == 0:
            raise ValueError(f"neighborhood must be a positive odd number, got {self.neighborhood}")
        if self.seed_region_modules < 2:
            raise ValueError(f"seed_region_modules must be >= 2, got {self.seed_region_modules}")
        if self.tolerance is not None and self.tolerance < 0:
            raise ValueError(f"tolerance must be >= 0, got {self.tolerance}")

    @property
    def radius(self) -> int:
        return self.neighborhood // 2
