"""Results of checking a menu day against a prescription."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from pku_planner.domain.nutrition import DayTotals


class ValidationLevel(Enum):
    OK = "OK"
    WARN = "WARN"
    BREACH = "BREACH"


@dataclass(frozen=True)
class ValidationResult:
    """Verdict for one day.

    Deltas are actual minus limit, keyed by nutrient ("phe", "protein",
    "kcal", "fat"); a negative kcal delta is a deficit.
    """

    level: ValidationLevel
    deltas: dict[str, Decimal] = field(default_factory=dict)
    messages: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    planned: DayTotals | None = None
    consumed: DayTotals | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(level=ValidationLevel.OK)

    @property
    def is_breach(self) -> bool:
        return self.level is ValidationLevel.BREACH


@dataclass(frozen=True)
class DailyProgress:
    """Share of the daily PHE limit already used."""

    phe_percent_used: Decimal | None
    deltas: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
