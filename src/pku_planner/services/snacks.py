"""Snack suggestions for days that fall short of the calorie minimum."""

import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from uuid import UUID

from pku_planner.domain.foods import Product
from pku_planner.domain.generation import (
    NutritionalSummary,
    SnackSuggestion,
    SnackSuggestionsResponse,
)
from pku_planner.domain.menus import MenuDay
from pku_planner.domain.norms import NormPrescription
from pku_planner.domain.nutrition import HUNDRED, ZERO, DayTotals, NutritionBreakdown
from pku_planner.services.menu_generation import CatalogRepository
from pku_planner.services.nutrition import NutritionCalculator, NutritionScaler
from pku_planner.services.pantry import PantryAwareService

SAFE_SNACK_CATEGORIES = ("fruits", "vegetables", "snacks-low-protein", "beverages")
MAX_SERVING_BY_CATEGORY = {
    "fruits": Decimal("150"),
    "vegetables": Decimal("200"),
    "snacks-low-protein": Decimal("50"),
    "beverages": Decimal("250"),
}
DEFAULT_MAX_SERVING = Decimal("100")
MIN_SNACK_SERVING = Decimal("10")
MIN_PHE_BUDGET_MG = Decimal("10")
MIN_PROTEIN_BUDGET_G = Decimal("1")
MAX_SNACK_KCAL = 200
MAX_SUGGESTIONS = 5
_UNBOUNDED = Decimal("10000")
_TWO_PLACES = Decimal("0.01")

_logger = logging.getLogger(__name__)


@dataclass
class SnackSuggestionService:
    """Finds low-PHE snacks that close a calorie gap safely."""

    catalog: CatalogRepository
    calculator: NutritionCalculator
    scaler: NutritionScaler
    pantry: PantryAwareService

    def suggest_snacks(
        self,
        day: MenuDay | None,
        norm: NormPrescription | None,
        patient_id: UUID,
    ) -> SnackSuggestionsResponse:
        if day is None:
            return _warning_response("Menu day not found")
        if norm is None:
            return _warning_response("No active nutritional norms found for patient")

        planned = self.calculator.planned_totals(day)
        deficit = _calorie_deficit(planned, norm)
        phe_budget = max(norm.phe_limit_mg_per_day - planned.phe_mg, ZERO)
        protein_budget = (
            max(norm.protein_limit_g_per_day - planned.protein_g, ZERO)
            if norm.protein_limit_g_per_day is not None
            else None
        )

        if deficit <= 0:
            return SnackSuggestionsResponse(
                calorie_deficit=0,
                target_calories_to_add=0,
                remaining_phe_budget=phe_budget,
                remaining_protein_budget=protein_budget,
                warning="No calorie deficit detected - snacks not needed",
            )

        if phe_budget < MIN_PHE_BUDGET_MG or (
            protein_budget is not None and protein_budget < MIN_PROTEIN_BUDGET_G
        ):
            _logger.warning(
                "Insufficient budget for snacking on %s: phe=%s protein=%s",
                day.date,
                phe_budget,
                protein_budget,
            )
            return SnackSuggestionsResponse(
                calorie_deficit=deficit,
                target_calories_to_add=deficit,
                remaining_phe_budget=phe_budget,
                remaining_protein_budget=protein_budget,
                warning="Insufficient PHE/protein budget remaining for safe snack additions",
            )

        suggestions = self._safe_snacks(deficit, phe_budget, protein_budget, patient_id)
        return SnackSuggestionsResponse(
            calorie_deficit=deficit,
            target_calories_to_add=min(deficit, MAX_SNACK_KCAL),
            remaining_phe_budget=phe_budget,
            remaining_protein_budget=protein_budget,
            suggestions=suggestions,
            warning=(
                None
                if suggestions
                else "No safe snack options found within PHE/protein limits"
            ),
        )

    def _safe_snacks(
        self,
        deficit: int,
        phe_budget: Decimal,
        protein_budget: Decimal | None,
        patient_id: UUID,
    ) -> list[SnackSuggestion]:
        suggestions = []
        for product in self.catalog.list_products():
            category = (product.category or "").casefold()
            if category not in SAFE_SNACK_CATEGORIES:
                continue
            profile = product.nutrient_profile()
            if profile.phe_mg is None or profile.kcal is None:
                continue
            serving = _serving_size(product, category, phe_budget, protein_budget, deficit)
            if serving < MIN_SNACK_SERVING:
                continue
            suggestions.append(self._suggestion(product, serving, patient_id))

        suggestions.sort(
            key=lambda suggestion: (-suggestion.safety_score, -(suggestion.nutrition.kcal or 0))
        )
        return suggestions[:MAX_SUGGESTIONS]

    def _suggestion(
        self, product: Product, serving: Decimal, patient_id: UUID
    ) -> SnackSuggestion:
        nutrition = self.scaler.for_item(product, serving)
        availability = self.pantry.check_pantry_availability(product, patient_id, serving)
        return SnackSuggestion(
            item_name=product.name,
            category=product.category,
            serving_grams=serving,
            cost_per_serving=self.pantry.get_current_cost(product, serving, patient_id),
            available_in_pantry=availability.is_available,
            reason=_reason(nutrition),
            safety_score=safety_score(nutrition),
            nutrition=NutritionalSummary(
                phe_mg=nutrition.phe_mg,
                protein_g=nutrition.protein_g,
                kcal=nutrition.kcal,
                fat_g=nutrition.fat_g,
            ),
        )


def safety_score(nutrition: NutritionBreakdown) -> int:
    """Score 0..100; high PHE or protein per serving lowers it."""
    score = 100
    if nutrition.phe_mg is not None and nutrition.phe_mg > 20:
        score -= min(30, int(nutrition.phe_mg) - 20)
    if nutrition.protein_g is not None and nutrition.protein_g > 2:
        score -= min(25, (int(nutrition.protein_g) - 2) * 5)
    if nutrition.kcal is not None and 50 <= nutrition.kcal <= 100:
        score += 10
    return max(0, min(100, score))


def _serving_size(
    product: Product,
    category: str,
    phe_budget: Decimal,
    protein_budget: Decimal | None,
    deficit: int,
) -> Decimal:
    profile = product.nutrient_profile()
    by_phe = _grams_for(phe_budget, profile.phe_mg)
    by_protein = (
        _grams_for(protein_budget, profile.protein_g)
        if protein_budget is not None
        else _UNBOUNDED
    )
    by_kcal = _grams_for(Decimal(deficit) / 3, profile.kcal)
    serving = min(by_phe, by_protein, by_kcal)
    serving = min(serving, MAX_SERVING_BY_CATEGORY.get(category, DEFAULT_MAX_SERVING))
    return max(serving, ZERO)


def _grams_for(budget: Decimal, per_100: Decimal | None) -> Decimal:
    if per_100 is None or per_100 <= 0:
        return _UNBOUNDED
    return (budget * HUNDRED / per_100).quantize(_TWO_PLACES, rounding=ROUND_DOWN)


def _calorie_deficit(planned: DayTotals, norm: NormPrescription) -> int:
    if norm.kcal_min_per_day is None:
        return 0
    return int(norm.kcal_min_per_day) - planned.kcal


def _reason(nutrition: NutritionBreakdown) -> str:
    if nutrition.kcal is not None:
        return f"Adds {nutrition.kcal} kcal with {nutrition.phe_mg or ZERO:.1f} mg PHE"
    return "Low-PHE snack option"


def _warning_response(warning: str) -> SnackSuggestionsResponse:
    return SnackSuggestionsResponse(
        calorie_deficit=0, target_calories_to_add=0, warning=warning
    )
