"""Pantry stock and market price records."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from pku_planner.domain.foods import FoodRef
from pku_planner.domain.nutrition import ZERO

_FOUR_PLACES = Decimal("0.0001")
EXPIRING_SOON_DAYS = 3
RECENT_PRICE_DAYS = 30


@dataclass
class PantryItem:
    """Stock of one product or custom product held by a patient."""

    id: UUID
    patient_id: UUID
    item: FoodRef
    quantity_grams: Decimal
    expiry_date: date | None = None
    location: str | None = None
    cost_per_unit: Decimal | None = None
    currency: str = "USD"
    is_available: bool = True
    purchase_date: date | None = None
    item_name: str | None = None
    item_category: str | None = None

    def is_expired(self, today: date) -> bool:
        return self.expiry_date is not None and self.expiry_date < today

    def is_expiring_soon(self, today: date, days: int = EXPIRING_SOON_DAYS) -> bool:
        return (
            self.expiry_date is not None
            and not self.is_expired(today)
            and self.expiry_date <= today + timedelta(days=days)
        )

    @property
    def cost_per_gram(self) -> Decimal:
        """Cost of the row spread over its remaining grams."""
        if self.cost_per_unit is None or not self.quantity_grams:
            return ZERO
        return (self.cost_per_unit / self.quantity_grams).quantize(
            _FOUR_PLACES, rounding=ROUND_HALF_UP
        )

    def consume(self, grams: Decimal) -> None:
        """Take grams out of the row; an emptied row becomes unavailable."""
        self.quantity_grams = max(self.quantity_grams - grams, ZERO)
        if self.quantity_grams == ZERO:
            self.is_available = False


@dataclass(frozen=True)
class PriceEntry:
    """A recorded shelf price for an item at one store."""

    id: UUID
    item: FoodRef
    price_per_unit: Decimal
    unit_size_grams: Decimal
    store_name: str | None = None
    region: str | None = None
    currency: str = "USD"
    recorded_date: date | None = None
    is_current: bool = True

    @property
    def price_per_gram(self) -> Decimal:
        if not self.unit_size_grams:
            return ZERO
        return (self.price_per_unit / self.unit_size_grams).quantize(
            _FOUR_PLACES, rounding=ROUND_HALF_UP
        )

    def is_recent(self, today: date) -> bool:
        return self.recorded_date is not None and self.recorded_date > today - timedelta(
            days=RECENT_PRICE_DAYS
        )


@dataclass(frozen=True)
class PantryAvailability:
    """How much of an item the pantry can cover."""

    is_available: bool
    is_sufficient: bool
    total_quantity_available: Decimal
    estimated_cost: Decimal = ZERO
    pantry_items: tuple[PantryItem, ...] = field(default_factory=tuple)
    expiring_soon: bool = False

    @classmethod
    def not_available(cls) -> "PantryAvailability":
        return cls(is_available=False, is_sufficient=False, total_quantity_available=ZERO)
