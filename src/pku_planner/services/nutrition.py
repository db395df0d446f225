"""Scaling per-100 g nutrition to servings and summing menu totals."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from pku_planner.domain.foods import FoodItem, ensure_food_item
from pku_planner.domain.menus import MealSlot, MenuDay, MenuEntry
from pku_planner.domain.nutrition import (
    HUNDRED,
    ZERO,
    DayTotals,
    NutrientProfile,
    NutritionBreakdown,
    round_energy,
    round_mass,
)

UNIT_GRAMS = "G"
UNIT_MILLILITERS = "ML"
UNIT_PIECE = "PIECE"

_logger = logging.getLogger(__name__)


@dataclass
class NutritionScaler:
    """Stateless scaler from per-100 g profiles to serving nutrition."""

    def scale(
        self,
        profile: NutrientProfile | None,
        quantity: Decimal | None,
        unit: str = UNIT_GRAMS,
        grams_per_piece: Decimal | None = None,
    ) -> NutritionBreakdown:
        """Scale a profile to a quantity; absent input yields zeros."""
        if profile is None or quantity is None or quantity <= 0:
            return NutritionBreakdown.zero()

        grams = quantity
        if unit == UNIT_PIECE and grams_per_piece:
            grams = quantity * grams_per_piece

        return NutritionBreakdown(
            phe_mg=_scale_mass(profile.phe_mg, grams),
            protein_g=_scale_mass(profile.protein_g, grams),
            kcal=_scale_energy(profile.kcal, grams),
            fat_g=_scale_mass(profile.fat_g, grams),
            quantity=quantity,
            unit=unit,
        )

    def for_item(
        self, item: FoodItem, quantity: Decimal | None, unit: str = UNIT_GRAMS
    ) -> NutritionBreakdown:
        """Scale the profile of any food variant."""
        food = ensure_food_item(item)
        _logger.debug("Scaling %s to %s %s", food.name, quantity, unit)
        return self.scale(
            food.nutrient_profile(), quantity, unit, grams_per_piece=food.grams_per_piece()
        )


def _scale_mass(per_100: Decimal | None, grams: Decimal) -> Decimal:
    if per_100 is None:
        return ZERO
    return round_mass(per_100 * grams / HUNDRED)


def _scale_energy(per_100: Decimal | None, grams: Decimal) -> int:
    if per_100 is None:
        return 0
    return round_energy(per_100 * grams / HUNDRED)


@dataclass
class NutritionCalculator:
    """Recomputes entry, slot and day totals from the underlying profiles."""

    scaler: NutritionScaler

    def entry_nutrition(
        self, entry: MenuEntry, quantity: Decimal | None = None
    ) -> NutritionBreakdown:
        amount = entry.planned_serving if quantity is None else quantity
        return self.scaler.for_item(entry.item, amount, entry.unit)

    def refresh_entry(self, entry: MenuEntry) -> None:
        """Recompute the stored contribution after a serving change."""
        entry.nutrition = self.entry_nutrition(entry)

    def slot_totals(self, slot: MealSlot) -> DayTotals:
        return _total(
            self.entry_nutrition(entry)
            for entry in slot.entries
            if not entry.is_alternative
        )

    def planned_totals(self, day: MenuDay | None) -> DayTotals:
        """Sum planned servings of every committed entry in the day."""
        if day is None:
            return DayTotals.zero()
        return _total(
            self.entry_nutrition(entry)
            for slot in day.slots
            for entry in slot.entries
            if not entry.is_alternative
        )

    def consumed_totals(self, day: MenuDay | None) -> DayTotals:
        """Sum what the patient marked as eaten."""
        if day is None:
            return DayTotals.zero()
        return _total(
            self.entry_nutrition(entry, entry.effective_consumed_quantity)
            for slot in day.slots
            for entry in slot.entries
            if entry.is_consumed and not entry.is_alternative
        )


def _total(breakdowns: Iterable[NutritionBreakdown]) -> DayTotals:
    total = NutritionBreakdown.zero()
    for breakdown in breakdowns:
        total = total.add(breakdown)
    return DayTotals.from_breakdown(total)
