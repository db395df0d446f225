"""Supabase repository for the four food catalogs."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from pku_planner.adapters.supabase_rows import (
    parse_custom_dish,
    parse_custom_product,
    parse_dish,
    parse_product,
)
from pku_planner.domain.foods import CustomDish, CustomProduct, Dish, Product
from pku_planner.services.menu_generation import CatalogRepository


@dataclass
class SupabaseCatalogRepository(CatalogRepository):
    """Supabase-backed catalog lookups."""

    client: Client

    def list_products(self) -> list[Product]:
        response = (
            self.client.table("products")
            .select("*")
            .order("product_name", desc=False)
            .execute()
        )
        return [parse_product(row) for row in response.data or []]

    def list_custom_products(self, patient_id: UUID) -> list[CustomProduct]:
        """Return custom products owned by the patient."""
        response = (
            self.client.table("custom_products")
            .select("*")
            .eq("patient_id", str(patient_id))
            .order("product_name", desc=False)
            .execute()
        )
        return [parse_custom_product(row) for row in response.data or []]

    def list_dishes(self) -> list[Dish]:
        response = (
            self.client.table("dishes").select("*").order("name", desc=False).execute()
        )
        return [parse_dish(row) for row in response.data or []]

    def list_custom_dishes(self, patient_id: UUID) -> list[CustomDish]:
        """Return custom dishes owned by the patient."""
        response = (
            self.client.table("custom_dishes")
            .select("*")
            .eq("patient_id", str(patient_id))
            .order("name", desc=False)
            .execute()
        )
        return [parse_custom_dish(row) for row in response.data or []]
