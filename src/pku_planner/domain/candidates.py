"""Scoring candidates for menu generation."""

from dataclasses import dataclass, field
from decimal import Decimal

from pku_planner.domain.foods import EntryType, FoodItem, FoodRef, ensure_food_item, ref_of
from pku_planner.domain.nutrition import ZERO, NutritionBreakdown
from pku_planner.domain.pantry import PantryItem


@dataclass
class FoodCandidate:
    """A food option for a meal slot together with its score components.

    The nutrition is produced by the nutrition scaler for the suggested
    serving and is never recomputed by the scorer.
    """

    item: FoodItem
    suggested_serving: Decimal
    nutrition: NutritionBreakdown
    unit: str = "G"
    cost_per_serving: Decimal | None = None
    available_in_pantry: bool = False
    pantry_quantity_available: Decimal = ZERO
    pantry_items: list[PantryItem] = field(default_factory=list)
    score: Decimal | None = None
    phe_over_penalty: Decimal = ZERO
    protein_over_penalty: Decimal = ZERO
    kcal_deficit_penalty: Decimal = ZERO
    cost_penalty: Decimal = ZERO
    repeat_penalty: Decimal = ZERO
    pantry_bonus: Decimal = ZERO
    alternative_reason: str | None = None

    def __post_init__(self) -> None:
        ensure_food_item(self.item)

    @property
    def entry_type(self) -> EntryType:
        return self.item.entry_type

    @property
    def ref(self) -> FoodRef:
        return ref_of(self.item)

    @property
    def item_name(self) -> str:
        return self.item.name

    @property
    def item_category(self) -> str | None:
        return self.item.category

    @property
    def calculated_phe_mg(self) -> Decimal | None:
        return self.nutrition.phe_mg

    @property
    def calculated_protein_g(self) -> Decimal | None:
        return self.nutrition.protein_g

    @property
    def calculated_kcal(self) -> int | None:
        return self.nutrition.kcal

    @property
    def calculated_fat_g(self) -> Decimal | None:
        return self.nutrition.fat_g

    def has_sufficient_pantry_quantity(self) -> bool:
        """Whether pantry stock covers the whole suggested serving."""
        return (
            self.available_in_pantry
            and self.pantry_quantity_available >= self.suggested_serving
        )
