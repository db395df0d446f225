"""Supabase repositories for pantry stock and market prices."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from pku_planner.adapters.supabase_rows import (
    ITEM_COLUMNS,
    Row,
    date_of,
    decimal_of,
    required_decimal,
    stock_ref,
    uuid_of,
)
from pku_planner.domain.foods import FoodRef
from pku_planner.domain.nutrition import ZERO
from pku_planner.domain.pantry import PantryItem, PriceEntry
from pku_planner.services.pantry import PantryRepository, PriceRepository


@dataclass
class SupabasePantryRepository(PantryRepository):
    """Supabase-backed pantry rows."""

    client: Client

    def list_available_items(self, patient_id: UUID, item: FoodRef) -> list[PantryItem]:
        """Return available rows for one item, earliest expiry first."""
        response = (
            self.client.table("pantry_items")
            .select("*")
            .eq("patient_id", str(patient_id))
            .eq(ITEM_COLUMNS[item.entry_type], str(item.item_id))
            .eq("is_available", True)
            .order("expiry_date", desc=False)
            .execute()
        )
        return [_parse_pantry_row(row) for row in response.data or []]

    def list_items_expiring_between(
        self, patient_id: UUID, start: date, end: date
    ) -> list[PantryItem]:
        response = (
            self.client.table("pantry_items")
            .select("*")
            .eq("patient_id", str(patient_id))
            .eq("is_available", True)
            .gte("expiry_date", start.isoformat())
            .lte("expiry_date", end.isoformat())
            .order("expiry_date", desc=False)
            .execute()
        )
        return [_parse_pantry_row(row) for row in response.data or []]

    def list_items_expired_before(self, patient_id: UUID, day: date) -> list[PantryItem]:
        response = (
            self.client.table("pantry_items")
            .select("*")
            .eq("patient_id", str(patient_id))
            .lt("expiry_date", day.isoformat())
            .order("expiry_date", desc=False)
            .execute()
        )
        return [_parse_pantry_row(row) for row in response.data or []]


@dataclass
class SupabasePriceRepository(PriceRepository):
    """Supabase-backed price rows."""

    client: Client

    def list_current_prices(self, item: FoodRef) -> list[PriceEntry]:
        """Return current prices for an item, cheapest first."""
        response = (
            self.client.table("price_entries")
            .select("*")
            .eq(ITEM_COLUMNS[item.entry_type], str(item.item_id))
            .eq("is_current", True)
            .order("price_per_unit", desc=False)
            .execute()
        )
        return [_parse_price_row(row) for row in response.data or []]


def _parse_pantry_row(row: Row) -> PantryItem:
    return PantryItem(
        id=uuid_of(row, "id"),
        patient_id=uuid_of(row, "patient_id"),
        item=stock_ref(row),
        quantity_grams=decimal_of(row, "quantity_grams") or ZERO,
        expiry_date=date_of(row, "expiry_date"),
        location=row.get("location"),
        cost_per_unit=decimal_of(row, "cost_per_unit"),
        currency=str(row.get("currency") or "USD"),
        is_available=bool(row.get("is_available", True)),
        purchase_date=date_of(row, "purchase_date"),
    )


def _parse_price_row(row: Row) -> PriceEntry:
    return PriceEntry(
        id=uuid_of(row, "id"),
        item=stock_ref(row),
        price_per_unit=required_decimal(row, "price_per_unit"),
        unit_size_grams=required_decimal(row, "unit_size_grams"),
        store_name=row.get("store_name"),
        region=row.get("region"),
        currency=str(row.get("currency") or "USD"),
        recorded_date=date_of(row, "recorded_date"),
        is_current=bool(row.get("is_current", True)),
    )
