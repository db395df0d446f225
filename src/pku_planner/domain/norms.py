"""Daily nutrient prescriptions."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class NormPrescription:
    """Clinician-issued daily limits for one patient.

    Only one prescription per patient is active at a time; the owning service
    enforces that.
    """

    id: UUID
    patient_id: UUID
    phe_limit_mg_per_day: Decimal
    protein_limit_g_per_day: Decimal | None = None
    kcal_min_per_day: Decimal | None = None
    kcal_max_per_day: Decimal | None = None
    fat_limit_g_per_day: Decimal | None = None
    prescribed_date: date | None = None
    end_date: date | None = None
    is_active: bool = True
    notes: str | None = None

    def is_effective_on(self, day: date) -> bool:
        """Return True if the prescription is active and covers the day."""
        if not self.is_active:
            return False
        if self.prescribed_date is not None and day < self.prescribed_date:
            return False
        return self.end_date is None or day <= self.end_date
