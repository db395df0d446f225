"""Nutrition value types."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeVar

_N = TypeVar("_N", Decimal, int)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
_TWO_PLACES = Decimal("0.01")
_WHOLE = Decimal("1")


def round_mass(value: Decimal) -> Decimal:
    """Round a mass, PHE or protein value to two decimal places."""
    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def round_energy(value: Decimal) -> int:
    """Round an energy value to whole kilocalories, half up."""
    return int(value.quantize(_WHOLE, rounding=ROUND_HALF_UP))


def to_decimal(value: object) -> Decimal | None:
    """Coerce a numeric value to Decimal, keeping None."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a nutrient amount")
    if isinstance(value, int | float | str):
        return Decimal(str(value))
    raise TypeError(f"Unsupported numeric value: {value!r}")


@dataclass(frozen=True)
class NutrientProfile:
    """Nutrients per 100 mass units (g or ml) of a food item."""

    phe_mg: Decimal | None
    protein_g: Decimal | None
    kcal: Decimal | None
    fat_g: Decimal | None

    @classmethod
    def of(
        cls,
        phe_mg: object,
        protein_g: object = None,
        kcal: object = None,
        fat_g: object = None,
    ) -> "NutrientProfile":
        """Build a profile from plain numbers."""
        return cls(
            phe_mg=to_decimal(phe_mg),
            protein_g=to_decimal(protein_g),
            kcal=to_decimal(kcal),
            fat_g=to_decimal(fat_g),
        )


def _merge(left: _N | None, right: _N | None) -> _N | None:
    if left is not None and right is not None:
        return left + right
    return left if left is not None else right


@dataclass(frozen=True)
class NutritionBreakdown:
    """Nutrient amounts for a concrete quantity of a food."""

    phe_mg: Decimal | None
    protein_g: Decimal | None
    kcal: int | None
    fat_g: Decimal | None
    quantity: Decimal | None
    unit: str | None = "G"

    @classmethod
    def zero(cls) -> "NutritionBreakdown":
        return cls(
            phe_mg=ZERO, protein_g=ZERO, kcal=0, fat_g=ZERO, quantity=ZERO, unit="G"
        )

    def add(self, other: "NutritionBreakdown") -> "NutritionBreakdown":
        """Combine two breakdowns field by field.

        A field missing on one side takes the other side's value instead of
        being treated as zero.
        """
        return NutritionBreakdown(
            phe_mg=_merge(self.phe_mg, other.phe_mg),
            protein_g=_merge(self.protein_g, other.protein_g),
            kcal=_merge(self.kcal, other.kcal),
            fat_g=_merge(self.fat_g, other.fat_g),
            quantity=_merge(self.quantity, other.quantity),
            unit=self.unit if self.unit is not None else other.unit,
        )

    def __add__(self, other: "NutritionBreakdown") -> "NutritionBreakdown":
        return self.add(other)


@dataclass(frozen=True)
class DayTotals:
    """Rounded nutrient totals for a day or a slot."""

    phe_mg: Decimal
    protein_g: Decimal
    kcal: int
    fat_g: Decimal

    @classmethod
    def zero(cls) -> "DayTotals":
        return cls(phe_mg=ZERO, protein_g=ZERO, kcal=0, fat_g=ZERO)

    @classmethod
    def from_breakdown(cls, breakdown: NutritionBreakdown) -> "DayTotals":
        return cls(
            phe_mg=round_mass(breakdown.phe_mg or ZERO),
            protein_g=round_mass(breakdown.protein_g or ZERO),
            kcal=breakdown.kcal or 0,
            fat_g=round_mass(breakdown.fat_g or ZERO),
        )
