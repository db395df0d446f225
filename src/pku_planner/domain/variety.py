"""Variety analysis results."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class VarietyAnalysis:
    """Summary of how varied a run of menu days is."""

    total_unique_items: int
    repeated_items: int
    variety_score: float
    item_frequencies: dict[str, int] = field(default_factory=dict)
    violations: list[str] = field(default_factory=list)
    emergency_mode: bool = False

    @property
    def has_violations(self) -> bool:
        return not self.emergency_mode and bool(self.violations)
