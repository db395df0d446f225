"""Menu generation requests and results."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from pku_planner.domain.menus import MenuDay, SlotName
from pku_planner.domain.nutrition import ZERO
from pku_planner.domain.validation import ValidationResult
from pku_planner.domain.variety import VarietyAnalysis


class MenuGenerationRequest(BaseModel):
    """Parameters for generating a daily or weekly menu."""

    patient_id: UUID
    start_date: date
    generation_type: Literal["DAILY", "WEEKLY"] = "WEEKLY"
    preferred_categories: list[str] = Field(default_factory=list)
    foods_to_avoid: list[str] = Field(default_factory=list)
    max_phe_per_meal: Decimal | None = Field(default=None, gt=0)
    include_variety: bool = True
    generate_alternatives: bool = False
    emergency_mode: bool = False
    respect_pantry: bool = True
    daily_budget_limit: Decimal | None = Field(default=None, ge=0)
    budget_currency: str = "USD"
    notes: str | None = None

    @property
    def day_count(self) -> int:
        return 1 if self.generation_type == "DAILY" else 7


@dataclass(frozen=True)
class NutritionalSummary:
    phe_mg: Decimal | None
    protein_g: Decimal | None
    kcal: int | None
    fat_g: Decimal | None


@dataclass(frozen=True)
class MealAlternative:
    """A runner-up food for a slot, with the reason it was kept."""

    date: date
    slot_name: SlotName
    item_name: str
    category: str | None
    serving_grams: Decimal
    cost_per_serving: Decimal | None
    available_in_pantry: bool
    reason: str
    improvement_value: Decimal
    nutrition: NutritionalSummary


@dataclass(frozen=True)
class MenuGenerationResult:
    """Outcome of one planning run."""

    success: bool
    message: str
    days: list[MenuDay] = field(default_factory=list)
    validations: dict[date, ValidationResult] = field(default_factory=dict)
    alternatives: list[MealAlternative] = field(default_factory=list)
    variety: VarietyAnalysis | None = None
    warnings: list[str] = field(default_factory=list)
    error_details: str | None = None
    generated_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @classmethod
    def failure(cls, error_details: str) -> "MenuGenerationResult":
        return cls(
            success=False, message="Generation failed", error_details=error_details
        )


@dataclass(frozen=True)
class SnackSuggestion:
    item_name: str
    category: str | None
    serving_grams: Decimal
    cost_per_serving: Decimal
    available_in_pantry: bool
    reason: str
    safety_score: int
    nutrition: NutritionalSummary


@dataclass(frozen=True)
class SnackSuggestionsResponse:
    """Snacks that close a calorie gap without breaking PHE/protein limits."""

    calorie_deficit: int
    target_calories_to_add: int
    remaining_phe_budget: Decimal = ZERO
    remaining_protein_budget: Decimal | None = ZERO
    suggestions: list[SnackSuggestion] = field(default_factory=list)
    warning: str | None = None
