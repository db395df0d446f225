"""Tests for checking menu days against a prescription."""

from decimal import Decimal
from uuid import UUID

from pku_planner.domain.menus import MenuDay, SlotName
from pku_planner.domain.nutrition import DayTotals
from pku_planner.domain.validation import ValidationLevel
from pku_planner.services.nutrition import NutritionCalculator, NutritionScaler
from pku_planner.services.validation import NormsValidator
from tests.conftest import TODAY, make_day, make_entry, make_norm, make_product


def _validator() -> NormsValidator:
    return NormsValidator(NutritionCalculator(NutritionScaler()))


def _day_with(
    patient_id: UUID,
    phe_mg: object,
    protein_g: object = 1,
    kcal: object = 100,
    fat_g: object = 1,
) -> MenuDay:
    food = make_product("Food", phe_mg=phe_mg, protein_g=protein_g, kcal=kcal, fat_g=fat_g)
    return make_day(patient_id, TODAY, {SlotName.LUNCH: [make_entry(food, 100)]})


def test_missing_norm_or_day_is_ok(patient_id: UUID) -> None:
    validator = _validator()

    assert validator.validate(None, _day_with(patient_id, 10)).level is ValidationLevel.OK
    assert validator.validate(make_norm(patient_id), None).level is ValidationLevel.OK


def test_day_within_limits_is_ok(patient_id: UUID) -> None:
    result = _validator().validate(make_norm(patient_id, phe=300), _day_with(patient_id, 250))

    assert result.level is ValidationLevel.OK
    assert result.deltas == {"phe": Decimal("-50.00")}
    assert result.messages == []


def test_phe_over_limit_is_a_breach(patient_id: UUID) -> None:
    result = _validator().validate(make_norm(patient_id, phe=300), _day_with(patient_id, 350))

    assert result.level is ValidationLevel.BREACH
    assert result.is_breach
    assert result.deltas["phe"] == Decimal("50.00")
    assert result.messages == ["PHE exceeds daily limit by 50.00 mg (350.00/300.00 mg)"]
    assert result.suggestions


def test_protein_over_limit_is_a_breach(patient_id: UUID) -> None:
    norm = make_norm(patient_id, phe=300, protein=10)

    result = _validator().validate(norm, _day_with(patient_id, 100, protein_g=12))

    assert result.level is ValidationLevel.BREACH
    assert result.deltas["protein"] == Decimal("2.00")


def test_kcal_below_minimum_is_a_breach(patient_id: UUID) -> None:
    norm = make_norm(patient_id, phe=300, kcal_min=1500)

    result = _validator().validate(norm, _day_with(patient_id, 100, kcal=1200))

    assert result.level is ValidationLevel.BREACH
    assert result.deltas["kcal"] == Decimal("-300")
    assert result.messages == [
        "Calories below minimum requirement by 300 kcal (1200/1500 kcal)"
    ]


def test_fat_over_limit_only_warns(patient_id: UUID) -> None:
    norm = make_norm(patient_id, phe=300, fat=60)

    result = _validator().validate(norm, _day_with(patient_id, 100, fat_g=70))

    assert result.level is ValidationLevel.WARN
    assert not result.is_breach
    assert result.deltas["fat"] == Decimal("10.00")


def test_consumed_totals_do_not_change_level(patient_id: UUID) -> None:
    food = make_product("Food", phe_mg=200)
    day = make_day(
        patient_id,
        TODAY,
        {
            SlotName.LUNCH: [
                make_entry(food, 100, is_consumed=True, actual_serving=Decimal("200"))
            ]
        },
    )

    result = _validator().validate(make_norm(patient_id, phe=300), day)

    assert result.level is ValidationLevel.OK
    assert result.planned is not None and result.planned.phe_mg == Decimal("200.00")
    assert result.consumed is not None and result.consumed.phe_mg == Decimal("400.00")


def test_daily_progress_warns_above_eighty_percent(patient_id: UUID) -> None:
    validator = _validator()
    norm = make_norm(patient_id, phe=300)
    totals = DayTotals(
        phe_mg=Decimal("255"), protein_g=Decimal("0"), kcal=0, fat_g=Decimal("0")
    )

    progress = validator.daily_progress(totals, norm)

    assert progress.phe_percent_used == Decimal("85.0")
    assert progress.warnings == ["PHE consumption is approaching daily limit (>80%)"]
    assert progress.deltas == ["PHE: 85.0% of daily limit used (255.00/300.00 mg)"]


def test_daily_progress_without_norm(patient_id: UUID) -> None:
    progress = _validator().daily_progress(DayTotals.zero(), None)

    assert progress.phe_percent_used is None
    assert progress.warnings == []
