"""Multi-term scoring of food candidates for a meal slot.

Lower scores are better. Every component is stored back on the candidate so
callers can see why one option beat another.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from pku_planner.domain.candidates import FoodCandidate
from pku_planner.domain.menus import MealSlot
from pku_planner.domain.norms import NormPrescription
from pku_planner.domain.nutrition import HUNDRED, ZERO

_SCORE_PLACES = Decimal("0.0001")
_MIN_COST_SAVING = Decimal("0.10")
_MIN_KCAL_DIFFERENCE = 10
_REPEAT_HORIZON_DAYS = 3

_logger = logging.getLogger(__name__)


def quadratic_excess(excess_percent: Decimal) -> Decimal:
    """Default over-threshold curve: grows with the square of the excess."""
    return excess_percent * excess_percent / HUNDRED


@dataclass(frozen=True)
class ScoringPolicy:
    """Weights and thresholds for the scoring terms."""

    over_threshold_percent: Decimal = Decimal("25")
    phe_weight: Decimal = Decimal("100")
    protein_weight: Decimal = Decimal("80")
    kcal_weight: Decimal = Decimal("0.5")
    cost_weight: Decimal = Decimal("10")
    repeat_weight: Decimal = Decimal("50")
    pantry_bonus: Decimal = Decimal("5")
    reference_budget: Decimal = Decimal("25.00")
    excess_curve: Callable[[Decimal], Decimal] = field(default=quadratic_excess)


@dataclass
class ScoringEngine:
    """Scores candidates against a slot and the patient's prescription."""

    policy: ScoringPolicy = field(default_factory=ScoringPolicy)

    def score(
        self,
        candidate: FoodCandidate,
        slot: MealSlot,
        norm: NormPrescription,
        over_threshold_percent: Decimal | None = None,
        recent_use_count: int = 0,
        days_since_last_use: int | None = None,
        budget: Decimal | None = None,
    ) -> Decimal:
        """Score a candidate and record its penalty components on it.

        ``over_threshold_percent`` overrides the policy threshold for this
        call. ``days_since_last_use`` sharpens the repeat penalty when known.
        ``budget`` replaces the policy reference budget, for example with a
        request's daily budget limit.
        """
        threshold = (
            self.policy.over_threshold_percent
            if over_threshold_percent is None
            else Decimal(over_threshold_percent)
        )

        candidate.phe_over_penalty = self._over_penalty(
            candidate.calculated_phe_mg,
            norm.phe_limit_mg_per_day,
            threshold,
            self.policy.phe_weight,
        )
        candidate.protein_over_penalty = self._over_penalty(
            candidate.calculated_protein_g,
            norm.protein_limit_g_per_day,
            threshold,
            self.policy.protein_weight,
        )
        candidate.kcal_deficit_penalty = self._kcal_deficit_penalty(
            candidate, slot, norm, threshold
        )
        candidate.cost_penalty = self._cost_penalty(candidate, budget)
        candidate.repeat_penalty = self._repeat_penalty(
            recent_use_count, days_since_last_use
        )

        total = (
            candidate.phe_over_penalty
            + candidate.protein_over_penalty
            + candidate.kcal_deficit_penalty
            + candidate.cost_penalty
            + candidate.repeat_penalty
        )
        bonus = ZERO
        if candidate.has_sufficient_pantry_quantity():
            bonus = min(self.policy.pantry_bonus, total)
        candidate.pantry_bonus = bonus
        candidate.score = (total - bonus).quantize(_SCORE_PLACES, rounding=ROUND_HALF_UP)

        _logger.debug(
            "Scored %s: phe=%s protein=%s kcal=%s cost=%s repeat=%s bonus=%s total=%s",
            candidate.item_name,
            candidate.phe_over_penalty,
            candidate.protein_over_penalty,
            candidate.kcal_deficit_penalty,
            candidate.cost_penalty,
            candidate.repeat_penalty,
            bonus,
            candidate.score,
        )
        return candidate.score

    def _over_penalty(
        self,
        amount: Decimal | None,
        daily_limit: Decimal | None,
        threshold: Decimal,
        weight: Decimal,
    ) -> Decimal:
        if amount is None or not daily_limit:
            return ZERO
        contribution = amount / daily_limit * HUNDRED
        if contribution <= threshold:
            return ZERO
        return weight * self.policy.excess_curve(contribution - threshold)

    def _kcal_deficit_penalty(
        self,
        candidate: FoodCandidate,
        slot: MealSlot,
        norm: NormPrescription,
        threshold: Decimal,
    ) -> Decimal:
        target = slot.target_kcal
        if target is None and norm.kcal_min_per_day is not None:
            target = norm.kcal_min_per_day * threshold / HUNDRED
        if not target or candidate.calculated_kcal is None:
            return ZERO
        shortfall = target - Decimal(candidate.calculated_kcal)
        if shortfall <= 0:
            return ZERO
        # Shortfall as a percentage of the slot target.
        return self.policy.kcal_weight * shortfall / Decimal(target) * HUNDRED

    def _cost_penalty(self, candidate: FoodCandidate, budget: Decimal | None) -> Decimal:
        reference = self.policy.reference_budget if budget is None else budget
        if candidate.cost_per_serving is None or not reference:
            return ZERO
        return self.policy.cost_weight * candidate.cost_per_serving / reference * HUNDRED

    def _repeat_penalty(
        self, recent_use_count: int, days_since_last_use: int | None
    ) -> Decimal:
        if recent_use_count <= 0:
            return ZERO
        if days_since_last_use is None:
            return self.policy.repeat_weight
        factor = max(1, _REPEAT_HORIZON_DAYS - days_since_last_use)
        return self.policy.repeat_weight * factor

    def calculate_efficiency(self, candidate: FoodCandidate) -> Decimal:
        """Kilocalories per mg of PHE; higher is better."""
        phe = candidate.calculated_phe_mg
        kcal = candidate.calculated_kcal
        if phe is None or kcal is None or phe == ZERO:
            return ZERO
        return (Decimal(kcal) / phe).quantize(_SCORE_PLACES, rounding=ROUND_HALF_UP)

    def calculate_cost_efficiency(self, candidate: FoodCandidate) -> Decimal:
        """Kilocalories per unit of cost; higher is better."""
        cost = candidate.cost_per_serving
        kcal = candidate.calculated_kcal
        if cost is None or kcal is None or cost == ZERO:
            return ZERO
        return (Decimal(kcal) / cost).quantize(_SCORE_PLACES, rounding=ROUND_HALF_UP)

    def generate_alternative_reason(
        self,
        alternative: FoodCandidate,
        current: FoodCandidate | None,
        currency: str = "USD",
    ) -> str:
        """Explain why an alternative is worth showing next to the selection."""
        if current is None:
            return "Primary suggestion"

        if alternative.cost_per_serving is not None and current.cost_per_serving is not None:
            saving = current.cost_per_serving - alternative.cost_per_serving
            if saving > _MIN_COST_SAVING:
                return f"Cheaper by {saving:.2f} {currency}"

        if alternative.calculated_kcal is not None and current.calculated_kcal is not None:
            difference = alternative.calculated_kcal - current.calculated_kcal
            if abs(difference) > _MIN_KCAL_DIFFERENCE:
                return f"{difference:+d} kcal difference"

        if alternative.available_in_pantry and not current.available_in_pantry:
            return "Available in pantry"

        if alternative.repeat_penalty < current.repeat_penalty:
            return "Avoids recent repeat"

        return "Alternative option"
