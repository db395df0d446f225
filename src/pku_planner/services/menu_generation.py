"""Greedy, score-driven assembly of daily and weekly menus."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol
from uuid import UUID

from pku_planner.domain.candidates import FoodCandidate
from pku_planner.domain.errors import PlanningError
from pku_planner.domain.foods import (
    CustomDish,
    CustomProduct,
    Dish,
    FoodItem,
    Product,
    ensure_food_item,
)
from pku_planner.domain.generation import (
    MealAlternative,
    MenuGenerationRequest,
    MenuGenerationResult,
    NutritionalSummary,
)
from pku_planner.domain.menus import MealSlot, MenuDay, MenuEntry, MenuStatus, SlotName
from pku_planner.domain.norms import NormPrescription
from pku_planner.domain.nutrition import HUNDRED, ZERO, round_mass
from pku_planner.domain.validation import ValidationLevel, ValidationResult
from pku_planner.services.nutrition import NutritionScaler
from pku_planner.services.pantry import PantryAwareService, ReservationLedger
from pku_planner.services.scoring import ScoringEngine
from pku_planner.services.validation import NormsValidator
from pku_planner.services.variety import VarietyEngine

CORE_MEALS = (
    SlotName.BREAKFAST,
    SlotName.LUNCH,
    SlotName.DINNER,
    SlotName.EVENING_SNACK,
)

SLOT_CATEGORIES: dict[SlotName, tuple[str, ...]] = {
    SlotName.BREAKFAST: ("breakfast", "cereals", "bread", "fruits", "dairy"),
    SlotName.LUNCH: ("vegetables", "grains", "protein", "bread", "dairy"),
    SlotName.DINNER: ("vegetables", "protein", "grains", "bread"),
    SlotName.EVENING_SNACK: ("vegetables", "protein", "grains"),
}

MIN_SERVING_GRAMS = Decimal("10")
MAX_SERVING_GRAMS = Decimal("500")
PHE_FREE_SERVING_GRAMS = Decimal("100")
FALLBACK_PHE_SHARE = Decimal("0.20")
FALLBACK_PHE_TARGET_MG = Decimal("50")
MIN_POOL_SIZE = 5
MAX_ALTERNATIVES_PER_SLOT = 2

_logger = logging.getLogger(__name__)


class CatalogRepository(Protocol):
    """Read access to the four food catalogs."""

    def list_products(self) -> list[Product]:
        """Return catalog products."""

    def list_custom_products(self, patient_id: UUID) -> list[CustomProduct]:
        """Return products the patient created."""

    def list_dishes(self) -> list[Dish]:
        """Return shared dishes."""

    def list_custom_dishes(self, patient_id: UUID) -> list[CustomDish]:
        """Return dishes the patient created."""


class NormRepository(Protocol):
    """Lookup of prescriptions."""

    def get_active_norm(self, patient_id: UUID) -> NormPrescription | None:
        """Return the patient's active prescription, if any."""


@dataclass
class _DayBudget:
    phe_mg: Decimal = ZERO
    protein_g: Decimal = ZERO


@dataclass
class MenuAssembler:
    """Builds menu days slot by slot from scored candidates."""

    catalog: CatalogRepository
    norms: NormRepository
    scaler: NutritionScaler
    scoring: ScoringEngine
    variety: VarietyEngine
    pantry: PantryAwareService
    validator: NormsValidator
    max_candidates_per_slot: int = 10
    selections_per_slot: int = 1

    def generate(self, request: MenuGenerationRequest) -> MenuGenerationResult:
        """Plan one or seven days starting at the request's start date."""
        _logger.debug(
            "Generating %s menu for patient %s starting %s",
            request.generation_type,
            request.patient_id,
            request.start_date,
        )
        norm = self.norms.get_active_norm(request.patient_id)
        if norm is None or not norm.is_effective_on(request.start_date):
            _logger.warning("No active prescription for patient %s", request.patient_id)
            return MenuGenerationResult.failure(
                "No active norm prescription found for patient"
            )

        ledger = ReservationLedger()
        days: list[MenuDay] = []
        alternatives: list[MealAlternative] = []
        validations: dict[date, ValidationResult] = {}
        try:
            pool = self.load_pool(request)
            for offset in range(request.day_count):
                day_date = request.start_date + timedelta(days=offset)
                day, day_alternatives = self.assemble_day(
                    request, norm, day_date, pool, ledger, days
                )
                days.append(day)
                alternatives.extend(day_alternatives)
                validations[day_date] = self.validator.validate(norm, day)
        except PlanningError as exc:
            _logger.warning("Menu generation failed for %s: %s", request.patient_id, exc)
            return MenuGenerationResult.failure(str(exc))
        finally:
            self.pantry.clear_pantry_reservations(ledger)

        warnings = _validation_warnings(validations)
        variety = self.variety.analyze_weekly_variety(days, request.emergency_mode)
        if request.include_variety and variety.has_violations:
            warnings.extend(variety.violations)

        kind = "Daily" if request.day_count == 1 else "Weekly"
        return MenuGenerationResult(
            success=True,
            message=f"{kind} menu generated successfully",
            days=days,
            validations=validations,
            alternatives=alternatives,
            variety=variety,
            warnings=warnings,
        )

    def load_pool(self, request: MenuGenerationRequest) -> list[FoodItem]:
        """All catalog items with usable nutrition that the patient accepts."""
        items = [
            ensure_food_item(item)
            for item in (
                *self.catalog.list_products(),
                *self.catalog.list_custom_products(request.patient_id),
                *self.catalog.list_dishes(),
                *self.catalog.list_custom_dishes(request.patient_id),
            )
        ]
        pool = [
            item
            for item in items
            if _has_valid_nutrition(item) and not _is_avoided(item, request.foods_to_avoid)
        ]
        _logger.debug("Candidate pool has %s of %s catalog items", len(pool), len(items))
        return pool

    def assemble_day(
        self,
        request: MenuGenerationRequest,
        norm: NormPrescription,
        day_date: date,
        pool: Sequence[FoodItem],
        ledger: ReservationLedger,
        pending_days: Sequence[MenuDay] = (),
    ) -> tuple[MenuDay, list[MealAlternative]]:
        """Create every slot of a day and fill the core meals."""
        day = MenuDay(
            patient_id=request.patient_id,
            date=day_date,
            status=MenuStatus.GENERATED,
            notes="Auto-generated daily menu",
        )
        budget = _DayBudget()
        alternatives: list[MealAlternative] = []

        for slot_name in SlotName:
            slot = MealSlot(
                slot_name=slot_name,
                target_phe_mg=round_mass(
                    norm.phe_limit_mg_per_day * slot_name.phe_share / HUNDRED
                ),
                target_kcal=(
                    round_mass(norm.kcal_min_per_day * slot_name.kcal_share / HUNDRED)
                    if norm.kcal_min_per_day is not None
                    else None
                ),
            )
            day.slots.append(slot)
            if slot_name not in CORE_MEALS:
                continue

            candidates = self.generate_candidates(
                slot, day_date, norm, request, pool, ledger, [*pending_days, day]
            )
            if not candidates:
                _logger.warning("No candidates for %s on %s", slot_name.label, day_date)
                continue

            chosen = self.select_for_slot(candidates, slot, norm, request, budget)
            for candidate in chosen:
                slot.entries.append(self._commit(candidate, request, ledger))
                budget.phe_mg += candidate.calculated_phe_mg or ZERO
                budget.protein_g += candidate.calculated_protein_g or ZERO

            if request.generate_alternatives:
                alternatives.extend(
                    self._alternatives(
                        day_date, slot_name, candidates, chosen, request.budget_currency
                    )
                )

        _logger.debug(
            "Assembled %s: phe=%s protein=%s", day_date, budget.phe_mg, budget.protein_g
        )
        return day, alternatives

    def generate_candidates(
        self,
        slot: MealSlot,
        day_date: date,
        norm: NormPrescription,
        request: MenuGenerationRequest,
        pool: Sequence[FoodItem],
        ledger: ReservationLedger | None = None,
        pending_days: Sequence[MenuDay] = (),
    ) -> list[FoodCandidate]:
        """Return the best-scoring candidates for a slot, best first."""
        suitable = _suitable_items(slot.slot_name, pool, request.preferred_categories)
        if request.include_variety:
            avoid = {
                name.casefold()
                for name in self.variety.get_items_to_avoid_for_variety(
                    request.patient_id,
                    day_date,
                    slot.slot_name,
                    request.emergency_mode,
                    pending_days,
                )
            }
            suitable = [item for item in suitable if item.name.casefold() not in avoid]

        candidates: list[FoodCandidate] = []
        for item in suitable:
            serving = self.optimal_serving(item, slot, norm, request.max_phe_per_meal)
            if serving <= 0:
                continue
            candidate = FoodCandidate(
                item=item,
                suggested_serving=serving,
                nutrition=self.scaler.for_item(item, serving),
            )
            if request.respect_pantry:
                self.pantry.enhance_candidate(candidate, request.patient_id, ledger)
            else:
                candidate.cost_per_serving = self.pantry.get_current_cost(
                    item, serving, request.patient_id
                )
            self.scoring.score(
                candidate,
                slot,
                norm,
                recent_use_count=self.variety.count_recent_uses(
                    item.name, request.patient_id, day_date, slot.slot_name, pending_days
                ),
                days_since_last_use=self.variety.get_days_since_last_use(
                    item.name, request.patient_id, day_date, slot.slot_name, pending_days
                ),
                budget=request.daily_budget_limit,
            )
            candidates.append(candidate)

        candidates.sort(key=lambda candidate: (candidate.score, candidate.item_name))
        return candidates[: self.max_candidates_per_slot]

    def optimal_serving(
        self,
        item: FoodItem,
        slot: MealSlot,
        norm: NormPrescription,
        max_phe_per_meal: Decimal | None = None,
    ) -> Decimal:
        """Size a serving so its PHE meets the slot target, within 10..500 g."""
        phe_per_100 = item.nutrient_profile().phe_mg
        if phe_per_100 is None or phe_per_100 < 0:
            return ZERO

        if phe_per_100 == 0:
            serving = PHE_FREE_SERVING_GRAMS
        else:
            target = slot.target_phe_mg or ZERO
            if target <= 0:
                target = (
                    norm.phe_limit_mg_per_day * FALLBACK_PHE_SHARE
                    if norm.phe_limit_mg_per_day
                    else FALLBACK_PHE_TARGET_MG
                )
            if max_phe_per_meal is not None:
                target = min(target, max_phe_per_meal)
            serving = round_mass(target * HUNDRED / phe_per_100)

        serving = min(max(serving, MIN_SERVING_GRAMS), MAX_SERVING_GRAMS)

        piece = item.grams_per_piece()
        if piece:
            pieces = max(
                (serving / piece).quantize(Decimal("1"), rounding=ROUND_HALF_UP),
                Decimal("1"),
            )
            serving = round_mass(pieces * piece)
            if serving > MAX_SERVING_GRAMS:
                return ZERO
        return serving

    def select_for_slot(
        self,
        candidates: Sequence[FoodCandidate],
        slot: MealSlot,
        norm: NormPrescription,
        request: MenuGenerationRequest,
        budget: _DayBudget | None = None,
    ) -> list[FoodCandidate]:
        """Take the best candidates that keep the day inside its limits."""
        if slot.slot_name not in CORE_MEALS:
            return []
        used = budget or _DayBudget()
        phe_used, protein_used = used.phe_mg, used.protein_g
        slot_phe = ZERO
        chosen: list[FoodCandidate] = []
        for candidate in candidates:
            if len(chosen) >= self.selections_per_slot:
                break
            phe = candidate.calculated_phe_mg or ZERO
            protein = candidate.calculated_protein_g or ZERO
            if phe_used + phe > norm.phe_limit_mg_per_day:
                continue
            if (
                norm.protein_limit_g_per_day is not None
                and protein_used + protein > norm.protein_limit_g_per_day
            ):
                continue
            meal_cap = request.max_phe_per_meal
            if meal_cap is not None and slot_phe + phe > meal_cap:
                continue
            chosen.append(candidate)
            phe_used += phe
            protein_used += protein
            slot_phe += phe
        return chosen

    def _commit(
        self,
        candidate: FoodCandidate,
        request: MenuGenerationRequest,
        ledger: ReservationLedger,
    ) -> MenuEntry:
        if request.respect_pantry and candidate.available_in_pantry:
            amount = min(candidate.suggested_serving, candidate.pantry_quantity_available)
            if amount > 0:
                self.pantry.reserve_pantry_quantity(ledger, candidate.pantry_items, amount)
        return MenuEntry(
            item=candidate.item,
            planned_serving=candidate.suggested_serving,
            nutrition=candidate.nutrition,
            unit=candidate.unit,
            notes="Auto-generated",
        )

    def _alternatives(
        self,
        day_date: date,
        slot_name: SlotName,
        candidates: Sequence[FoodCandidate],
        chosen: Sequence[FoodCandidate],
        currency: str = "USD",
    ) -> list[MealAlternative]:
        primary = chosen[0] if chosen else None
        runners_up = [
            candidate
            for candidate in candidates
            if all(candidate is not picked for picked in chosen)
        ]
        alternatives = []
        for candidate in runners_up[:MAX_ALTERNATIVES_PER_SLOT]:
            improvement = ZERO
            if primary is not None and primary.score is not None and candidate.score is not None:
                improvement = primary.score - candidate.score
            alternatives.append(
                MealAlternative(
                    date=day_date,
                    slot_name=slot_name,
                    item_name=candidate.item_name,
                    category=candidate.item_category,
                    serving_grams=candidate.suggested_serving,
                    cost_per_serving=candidate.cost_per_serving,
                    available_in_pantry=candidate.available_in_pantry,
                    reason=self.scoring.generate_alternative_reason(
                        candidate, primary, currency
                    ),
                    improvement_value=improvement,
                    nutrition=_summary(candidate),
                )
            )
        return alternatives


def _has_valid_nutrition(item: FoodItem) -> bool:
    profile = item.nutrient_profile()
    return (
        profile.phe_mg is not None
        and profile.kcal is not None
        and profile.phe_mg >= 0
        and profile.kcal > 0
    )


def _is_avoided(item: FoodItem, foods_to_avoid: Sequence[str]) -> bool:
    name = item.name.casefold()
    category = (item.category or "").casefold()
    for avoid in foods_to_avoid:
        needle = avoid.casefold()
        if needle and (needle in name or needle in category):
            return True
    return False


def _suitable_items(
    slot_name: SlotName, pool: Sequence[FoodItem], preferred: Sequence[str]
) -> list[FoodItem]:
    categories = [*SLOT_CATEGORIES.get(slot_name, ()), *preferred]
    wanted = [category.casefold() for category in categories if category]
    suitable = [
        item
        for item in pool
        if item.category
        and any(needle in item.category.casefold() for needle in wanted)
    ]
    if len(suitable) < MIN_POOL_SIZE:
        return list(pool)
    return suitable


def _summary(candidate: FoodCandidate) -> NutritionalSummary:
    return NutritionalSummary(
        phe_mg=candidate.calculated_phe_mg,
        protein_g=candidate.calculated_protein_g,
        kcal=candidate.calculated_kcal,
        fat_g=candidate.calculated_fat_g,
    )


def _validation_warnings(validations: dict[date, ValidationResult]) -> list[str]:
    warnings = []
    for day_date, result in validations.items():
        if result.level is ValidationLevel.OK:
            continue
        if result.is_breach:
            _logger.warning("Generated day %s breaches the prescription", day_date)
        warnings.append(f"{day_date} {result.level.value}: " + "; ".join(result.messages))
    return warnings
