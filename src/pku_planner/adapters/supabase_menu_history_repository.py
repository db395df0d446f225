"""Supabase repository for previously planned menu days."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from pku_planner.adapters.supabase_rows import (
    CATALOG_TABLES,
    Row,
    date_of,
    decimal_of,
    parse_food_item,
    uuid_of,
)
from pku_planner.domain.foods import EntryType
from pku_planner.domain.menus import MealSlot, MenuDay, MenuEntry, MenuStatus, SlotName
from pku_planner.domain.nutrition import NutritionBreakdown, round_energy
from pku_planner.services.variety import MenuHistoryRepository

_MENU_DAY_COLUMNS = (
    "*, meal_slots(*, menu_entries(*, products(*), custom_products(*), "
    "dishes(*), custom_dishes(*)))"
)


@dataclass
class SupabaseMenuHistoryRepository(MenuHistoryRepository):
    """Reads menu days with their slots and entries embedded."""

    client: Client

    def list_menu_days(self, patient_id: UUID, start: date, end: date) -> list[MenuDay]:
        """Return days within [start, end], newest first."""
        response = (
            self.client.table("menu_days")
            .select(_MENU_DAY_COLUMNS)
            .eq("patient_id", str(patient_id))
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("date", desc=True)
            .execute()
        )
        return [_parse_day(row) for row in response.data or []]


def _parse_day(row: Row) -> MenuDay:
    day_date = date_of(row, "date")
    if day_date is None:
        raise RuntimeError("Menu day row is missing date")
    slots = [_parse_slot(slot_row) for slot_row in _children(row, "meal_slots")]
    slots.sort(key=lambda slot: slot.slot_order)
    return MenuDay(
        id=uuid_of(row, "id"),
        patient_id=uuid_of(row, "patient_id"),
        date=day_date,
        slots=slots,
        status=MenuStatus(str(row.get("status") or MenuStatus.DRAFT.value)),
        notes=row.get("notes"),
    )


def _parse_slot(row: Row) -> MealSlot:
    try:
        slot_name = SlotName.parse(str(row.get("slot_name", "")))
    except KeyError as exc:
        raise RuntimeError(f"Unknown slot name: {row.get('slot_name')!r}") from exc
    return MealSlot(
        id=uuid_of(row, "id"),
        slot_name=slot_name,
        entries=[_parse_entry(entry_row) for entry_row in _children(row, "menu_entries")],
        target_phe_mg=decimal_of(row, "target_phe_mg"),
        target_kcal=decimal_of(row, "target_kcal"),
        is_consumed=bool(row.get("is_consumed", False)),
        notes=row.get("notes"),
    )


def _parse_entry(row: Row) -> MenuEntry:
    entry_type = EntryType.parse(row.get("entry_type"))
    item_row = row.get(CATALOG_TABLES[entry_type])
    if not isinstance(item_row, dict):
        raise RuntimeError(f"Menu entry {row.get('id')} has no {entry_type.value} item")
    planned = decimal_of(row, "planned_serving_grams")
    if planned is None:
        raise RuntimeError(f"Menu entry {row.get('id')} has no planned serving")
    kcal = decimal_of(row, "calculated_kcal")
    unit = str(row.get("unit") or "G")
    return MenuEntry(
        id=uuid_of(row, "id"),
        item=parse_food_item(entry_type, item_row),
        planned_serving=planned,
        nutrition=NutritionBreakdown(
            phe_mg=decimal_of(row, "calculated_phe_mg"),
            protein_g=decimal_of(row, "calculated_protein_g"),
            kcal=round_energy(kcal) if kcal is not None else None,
            fat_g=decimal_of(row, "calculated_fat_g"),
            quantity=planned,
            unit=unit,
        ),
        unit=unit,
        is_consumed=bool(row.get("is_consumed", False)),
        actual_serving=decimal_of(row, "actual_serving_grams"),
        is_alternative=bool(row.get("is_alternative", False)),
        notes=row.get("notes"),
    )


def _children(row: Row, key: str) -> list[Row]:
    children = row.get(key) or []
    if not isinstance(children, list):
        raise RuntimeError(f"Expected a list of {key}")
    return children
