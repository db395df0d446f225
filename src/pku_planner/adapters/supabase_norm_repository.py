"""Supabase repository for norm prescriptions."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from pku_planner.adapters.supabase_rows import (
    Row,
    date_of,
    decimal_of,
    required_decimal,
    uuid_of,
)
from pku_planner.domain.norms import NormPrescription
from pku_planner.services.menu_generation import NormRepository


@dataclass
class SupabaseNormRepository(NormRepository):
    """Reads the active prescription for a patient."""

    client: Client

    def get_active_norm(self, patient_id: UUID) -> NormPrescription | None:
        """Return the most recent active prescription, if present."""
        response = (
            self.client.table("norm_prescriptions")
            .select("*")
            .eq("patient_id", str(patient_id))
            .eq("is_active", True)
            .order("prescribed_date", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_norm(response.data[0])


def _parse_norm(row: Row) -> NormPrescription:
    return NormPrescription(
        id=uuid_of(row, "id"),
        patient_id=uuid_of(row, "patient_id"),
        phe_limit_mg_per_day=required_decimal(row, "phe_limit_mg_per_day"),
        protein_limit_g_per_day=decimal_of(row, "protein_limit_g_per_day"),
        kcal_min_per_day=decimal_of(row, "kcal_min_per_day"),
        kcal_max_per_day=decimal_of(row, "kcal_max_per_day"),
        fat_limit_g_per_day=decimal_of(row, "fat_limit_g_per_day"),
        prescribed_date=date_of(row, "prescribed_date"),
        end_date=date_of(row, "end_date"),
        is_active=bool(row.get("is_active", True)),
        notes=row.get("notes"),
    )
