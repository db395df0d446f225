"""Checks a planned day against the patient's prescription."""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from pku_planner.domain.menus import MenuDay
from pku_planner.domain.norms import NormPrescription
from pku_planner.domain.nutrition import HUNDRED, DayTotals
from pku_planner.domain.validation import DailyProgress, ValidationLevel, ValidationResult
from pku_planner.services.nutrition import NutritionCalculator

PHE_PROGRESS_WARNING_PERCENT = Decimal("80")
_ONE_PLACE = Decimal("0.1")

_logger = logging.getLogger(__name__)


@dataclass
class NormsValidator:
    """Classifies a day as OK, WARN or BREACH.

    PHE and protein over the limit, or energy under the minimum, are breaches.
    Fat over its limit only warns. Consumed totals are reported alongside but
    never affect the level.
    """

    calculator: NutritionCalculator

    def validate(
        self, norm: NormPrescription | None, day: MenuDay | None
    ) -> ValidationResult:
        if norm is None or day is None:
            return ValidationResult.ok()

        planned = self.calculator.planned_totals(day)
        consumed = self.calculator.consumed_totals(day)

        deltas: dict[str, Decimal] = {}
        messages: list[str] = []
        suggestions: list[str] = []
        breach = False
        warn = False

        if norm.phe_limit_mg_per_day is not None:
            limit = norm.phe_limit_mg_per_day
            deltas["phe"] = planned.phe_mg - limit
            if planned.phe_mg > limit:
                breach = True
                messages.append(
                    f"PHE exceeds daily limit by {deltas['phe']:.2f} mg "
                    f"({planned.phe_mg:.2f}/{limit:.2f} mg)"
                )
                suggestions.append(
                    "Reduce portions of high-PHE foods or swap them for lower-PHE options"
                )

        if norm.protein_limit_g_per_day is not None:
            limit = norm.protein_limit_g_per_day
            deltas["protein"] = planned.protein_g - limit
            if planned.protein_g > limit:
                breach = True
                messages.append(
                    f"Protein exceeds daily limit by {deltas['protein']:.2f} g "
                    f"({planned.protein_g:.2f}/{limit:.2f} g)"
                )
                suggestions.append("Replace protein-rich items with low-protein alternatives")

        if norm.kcal_min_per_day is not None:
            minimum = norm.kcal_min_per_day
            deltas["kcal"] = Decimal(planned.kcal) - minimum
            if planned.kcal < minimum:
                breach = True
                messages.append(
                    f"Calories below minimum requirement by {-deltas['kcal']:.0f} kcal "
                    f"({planned.kcal}/{minimum:.0f} kcal)"
                )
                suggestions.append(
                    "Add low-PHE, energy-dense snacks to reach the calorie minimum"
                )

        if norm.fat_limit_g_per_day is not None:
            limit = norm.fat_limit_g_per_day
            deltas["fat"] = planned.fat_g - limit
            if planned.fat_g > limit:
                warn = True
                messages.append(
                    f"Fat exceeds daily limit by {deltas['fat']:.2f} g "
                    f"({planned.fat_g:.2f}/{limit:.2f} g)"
                )
                suggestions.append("Choose lower-fat options")

        if breach:
            level = ValidationLevel.BREACH
        elif warn:
            level = ValidationLevel.WARN
        else:
            level = ValidationLevel.OK

        _logger.debug("Validated %s: level=%s deltas=%s", day.date, level.value, deltas)
        return ValidationResult(
            level=level,
            deltas=deltas,
            messages=messages,
            suggestions=suggestions,
            planned=planned,
            consumed=consumed,
        )

    def daily_progress(
        self, totals: DayTotals, norm: NormPrescription | None
    ) -> DailyProgress:
        """Report how much of the PHE limit the totals already use."""
        if norm is None or not norm.phe_limit_mg_per_day:
            return DailyProgress(phe_percent_used=None)

        limit = norm.phe_limit_mg_per_day
        percent = (totals.phe_mg / limit * HUNDRED).quantize(
            _ONE_PLACE, rounding=ROUND_HALF_UP
        )
        deltas = [
            f"PHE: {percent}% of daily limit used ({totals.phe_mg:.2f}/{limit:.2f} mg)"
        ]
        warnings = []
        if percent > PHE_PROGRESS_WARNING_PERCENT:
            warnings.append("PHE consumption is approaching daily limit (>80%)")
        return DailyProgress(phe_percent_used=percent, deltas=deltas, warnings=warnings)
