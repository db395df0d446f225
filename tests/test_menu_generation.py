"""Tests for daily and weekly menu assembly."""

from dataclasses import replace
from datetime import timedelta
from decimal import Decimal
from uuid import UUID

from pku_planner.domain.candidates import FoodCandidate
from pku_planner.domain.generation import MenuGenerationRequest
from pku_planner.domain.menus import MealSlot, SlotName
from pku_planner.domain.norms import NormPrescription
from pku_planner.domain.nutrition import NutrientProfile
from pku_planner.services.menu_generation import CORE_MEALS
from tests.conftest import (
    TODAY,
    Planner,
    make_custom_product,
    make_norm,
    make_pantry_row,
    make_product,
)

VEGETABLES = (
    "Carrot",
    "Cucumber",
    "Lettuce",
    "Pumpkin",
    "Radish",
    "Tomato",
    "Turnip",
    "Zucchini",
)


def _stock(planner: Planner, names: tuple[str, ...] = VEGETABLES) -> None:
    planner.catalog.products.extend(make_product(name, phe_mg=20) for name in names)


def _prescribe(planner: Planner, patient_id: UUID, **kwargs: object) -> NormPrescription:
    norm = make_norm(patient_id, **kwargs)
    planner.norms.norms[patient_id] = norm
    return norm


def _daily(patient_id: UUID, **kwargs: object) -> MenuGenerationRequest:
    return MenuGenerationRequest(
        patient_id=patient_id, start_date=TODAY, generation_type="DAILY", **kwargs
    )


def test_missing_prescription_fails(planner: Planner, patient_id: UUID) -> None:
    _stock(planner)

    result = planner.assembler.generate(_daily(patient_id))

    assert not result.success
    assert result.message == "Generation failed"
    assert result.error_details == "No active norm prescription found for patient"
    assert result.days == []


def test_prescription_starting_later_fails(planner: Planner, patient_id: UUID) -> None:
    _stock(planner)
    norm = _prescribe(planner, patient_id)
    planner.norms.norms[patient_id] = replace(
        norm, prescribed_date=TODAY + timedelta(days=1)
    )

    assert not planner.assembler.generate(_daily(patient_id)).success


def test_daily_menu_fills_core_meals_within_limits(planner: Planner, patient_id: UUID) -> None:
    _stock(planner)
    _prescribe(planner, patient_id, phe=300)

    result = planner.assembler.generate(_daily(patient_id))

    assert result.success
    assert result.message == "Daily menu generated successfully"
    assert len(result.days) == 1
    day = result.days[0]
    assert [slot.slot_name for slot in day.slots] == list(SlotName)
    for slot in day.slots:
        if slot.slot_name in CORE_MEALS:
            assert len(slot.entries) == 1
        else:
            assert slot.entries == []
    breakfast = day.slot(SlotName.BREAKFAST)
    assert breakfast is not None
    assert breakfast.target_phe_mg == Decimal("75.00")
    assert breakfast.entries[0].planned_serving == Decimal("375.00")
    planned = result.validations[TODAY].planned
    assert planned is not None and planned.phe_mg <= Decimal("300")


def test_weekly_menu_does_not_repeat_slot_items_on_consecutive_days(
    planner: Planner, patient_id: UUID
) -> None:
    _stock(planner)
    _prescribe(planner, patient_id, phe=300)

    result = planner.assembler.generate(
        MenuGenerationRequest(patient_id=patient_id, start_date=TODAY)
    )

    assert result.success
    assert result.message == "Weekly menu generated successfully"
    assert [day.date for day in result.days] == [
        TODAY + timedelta(days=offset) for offset in range(7)
    ]
    for slot_name in CORE_MEALS:
        names = []
        for day in result.days:
            slot = day.slot(slot_name)
            assert slot is not None
            names.append(slot.item_names())
        for previous, current in zip(names, names[1:], strict=False):
            assert not set(previous) & set(current)
    assert result.variety is not None


def test_emergency_mode_allows_repeats(planner: Planner, patient_id: UUID) -> None:
    _stock(planner, ("Carrot",))
    _prescribe(planner, patient_id, phe=300)

    result = planner.assembler.generate(
        MenuGenerationRequest(
            patient_id=patient_id, start_date=TODAY, emergency_mode=True
        )
    )

    assert result.success
    assert all(
        day.slot(SlotName.LUNCH).item_names() == ["Carrot"]  # type: ignore[union-attr]
        for day in result.days
    )
    assert result.variety is not None and not result.variety.has_violations


def test_foods_to_avoid_are_never_planned(planner: Planner, patient_id: UUID) -> None:
    _stock(planner)
    _prescribe(planner, patient_id, phe=300)

    result = planner.assembler.generate(
        MenuGenerationRequest(
            patient_id=patient_id, start_date=TODAY, foods_to_avoid=["carrot", "TOMATO"]
        )
    )

    planned_names = {
        name for day in result.days for slot in day.slots for name in slot.item_names()
    }
    assert planned_names
    assert "Carrot" not in planned_names
    assert "Tomato" not in planned_names


def test_max_phe_per_meal_caps_every_slot(planner: Planner, patient_id: UUID) -> None:
    _stock(planner)
    _prescribe(planner, patient_id, phe=300)

    result = planner.assembler.generate(_daily(patient_id, max_phe_per_meal=Decimal("30")))

    for slot in result.days[0].slots:
        for entry in slot.entries:
            assert entry.nutrition.phe_mg is not None
            assert entry.nutrition.phe_mg <= Decimal("30")


def test_alternatives_are_runners_up(planner: Planner, patient_id: UUID) -> None:
    _stock(planner)
    _prescribe(planner, patient_id, phe=300)

    result = planner.assembler.generate(_daily(patient_id, generate_alternatives=True))

    assert len(result.alternatives) == 2 * len(CORE_MEALS)
    for alternative in result.alternatives:
        slot = result.days[0].slot(alternative.slot_name)
        assert slot is not None
        assert alternative.item_name not in slot.item_names()
        assert alternative.improvement_value <= 0
        assert alternative.reason


def test_pantry_stock_is_preferred(planner: Planner, patient_id: UUID) -> None:
    _stock(planner)
    stocked = make_product("Stocked rice", phe_mg=20, category="grains")
    planner.catalog.products.append(stocked)
    planner.pantry_repository.rows.append(
        make_pantry_row(patient_id, stocked, 2000, cost="1.00")
    )
    _prescribe(planner, patient_id, phe=300)

    result = planner.assembler.generate(_daily(patient_id))

    breakfast = result.days[0].slot(SlotName.BREAKFAST)
    assert breakfast is not None
    assert breakfast.item_names() == ["Stocked rice"]


def test_breaching_day_is_reported_in_warnings(planner: Planner, patient_id: UUID) -> None:
    _stock(planner)
    _prescribe(planner, patient_id, phe=300, kcal_min=5000)

    result = planner.assembler.generate(_daily(patient_id))

    assert result.success
    assert result.validations[TODAY].is_breach
    assert any(warning.startswith(f"{TODAY} BREACH:") for warning in result.warnings)


def test_malformed_catalog_item_fails_generation(planner: Planner, patient_id: UUID) -> None:
    _stock(planner)
    planner.catalog.products.append(object())  # type: ignore[arg-type]
    _prescribe(planner, patient_id, phe=300)

    result = planner.assembler.generate(_daily(patient_id))

    assert not result.success
    assert result.error_details is not None
    assert "got object" in result.error_details


def test_items_without_usable_nutrition_are_skipped(
    planner: Planner, patient_id: UUID
) -> None:
    _stock(planner)
    planner.catalog.products.append(make_product("Water", phe_mg=0, kcal=0))
    _prescribe(planner, patient_id, phe=300)

    pool = planner.assembler.load_pool(_daily(patient_id))

    assert "Water" not in {item.name for item in pool}
    assert len(pool) == len(VEGETABLES)


def test_optimal_serving_targets_slot_phe(planner: Planner, patient_id: UUID) -> None:
    norm = make_norm(patient_id, phe=300)
    slot = MealSlot(slot_name=SlotName.LUNCH, target_phe_mg=Decimal("75"))
    serving = planner.assembler.optimal_serving

    assert serving(make_product("Carrot", phe_mg=20), slot, norm) == Decimal("375.00")
    assert serving(make_product("Sugar", phe_mg=0), slot, norm) == Decimal("100")
    assert serving(make_product("Oil", phe_mg="0.5"), slot, norm) == Decimal("500")
    assert serving(make_product("Cheese", phe_mg=1000), slot, norm) == Decimal("10")
    assert serving(make_product("Carrot", phe_mg=20), slot, norm, Decimal("30")) == Decimal(
        "150.00"
    )


def test_optimal_serving_rounds_to_whole_pieces(planner: Planner, patient_id: UUID) -> None:
    norm = make_norm(patient_id, phe=300)
    slot = MealSlot(slot_name=SlotName.LUNCH, target_phe_mg=Decimal("75"))
    serving = planner.assembler.optimal_serving

    cookie = make_custom_product("Cookie", phe_mg=20, standard_serving_grams=30)
    loaf = make_custom_product("Loaf", phe_mg=20, standard_serving_grams=600)

    assert serving(cookie, slot, norm) == Decimal("390.00")
    assert serving(loaf, slot, norm) == Decimal("0")


def test_optimal_serving_without_phe_value(planner: Planner, patient_id: UUID) -> None:
    item = replace(make_product("Unknown"), profile=NutrientProfile.of(None, 1, 100, 1))
    slot = MealSlot(slot_name=SlotName.LUNCH, target_phe_mg=Decimal("75"))

    assert planner.assembler.optimal_serving(item, slot, make_norm(patient_id)) == Decimal("0")


def test_select_for_slot_respects_daily_limit(planner: Planner, patient_id: UUID) -> None:
    norm = make_norm(patient_id, phe=300)
    request = _daily(patient_id)
    heavy = make_product("Heavy", phe_mg=350)
    light = make_product("Light", phe_mg=50)
    candidates = [
        FoodCandidate(
            item=item,
            suggested_serving=Decimal("100"),
            nutrition=planner.scaler.for_item(item, Decimal("100")),
        )
        for item in (heavy, light)
    ]
    lunch = MealSlot(slot_name=SlotName.LUNCH)
    snack = MealSlot(slot_name=SlotName.MORNING_SNACK)

    chosen = planner.assembler.select_for_slot(candidates, lunch, norm, request)

    assert [candidate.item_name for candidate in chosen] == ["Light"]
    assert planner.assembler.select_for_slot(candidates, snack, norm, request) == []
