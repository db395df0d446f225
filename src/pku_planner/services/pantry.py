"""Pantry availability, reservations and serving cost resolution."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol
from uuid import UUID

from pku_planner.domain.candidates import FoodCandidate
from pku_planner.domain.errors import InvalidReservationError
from pku_planner.domain.foods import FoodItem, FoodRef, ref_of
from pku_planner.domain.nutrition import ZERO
from pku_planner.domain.pantry import (
    EXPIRING_SOON_DAYS,
    PantryAvailability,
    PantryItem,
    PriceEntry,
)

DEFAULT_COST_PER_GRAM = Decimal("0.05")
_CENTS = Decimal("0.01")

_logger = logging.getLogger(__name__)


class PantryRepository(Protocol):
    """Read access to a patient's pantry rows."""

    def list_available_items(self, patient_id: UUID, item: FoodRef) -> list[PantryItem]:
        """Return available rows for one item, earliest expiry first."""

    def list_items_expiring_between(
        self, patient_id: UUID, start: date, end: date
    ) -> list[PantryItem]:
        """Return available rows whose expiry date is within [start, end]."""

    def list_items_expired_before(self, patient_id: UUID, day: date) -> list[PantryItem]:
        """Return rows whose expiry date is before the given day."""


class PriceRepository(Protocol):
    """Read access to recorded market prices."""

    def list_current_prices(self, item: FoodRef) -> list[PriceEntry]:
        """Return current price rows for an item, cheapest first."""


@dataclass
class ReservationLedger:
    """Grams set aside per pantry row during one planning run.

    A ledger belongs to a single run; create a new one (or clear it) before
    planning again.
    """

    reservations: dict[UUID, Decimal] = field(default_factory=dict)

    def reserved_for(self, row_id: UUID) -> Decimal:
        return self.reservations.get(row_id, ZERO)

    def remaining(self, row: PantryItem) -> Decimal:
        """Grams of the row not yet reserved."""
        return row.quantity_grams - self.reserved_for(row.id)

    def reserve(self, rows: Sequence[PantryItem], amount: Decimal) -> bool:
        """Reserve grams across rows in order; all or nothing."""
        if amount <= 0:
            raise InvalidReservationError(amount)

        pending: dict[UUID, Decimal] = {}
        left = amount
        for row in rows:
            if left <= 0:
                break
            free = self.remaining(row)
            if free <= 0:
                continue
            taken = min(left, free)
            pending[row.id] = self.reserved_for(row.id) + taken
            left -= taken

        if left > 0:
            return False
        self.reservations.update(pending)
        return True

    def clear(self) -> None:
        self.reservations.clear()

    def __len__(self) -> int:
        return len(self.reservations)


@dataclass
class PantryAwareService:
    """Answers pantry questions and prices servings for candidates."""

    pantry_repository: PantryRepository
    price_repository: PriceRepository
    default_cost_per_gram: Decimal = DEFAULT_COST_PER_GRAM
    expiring_soon_days: int = EXPIRING_SOON_DAYS
    today: Callable[[], date] = date.today

    def check_pantry_availability(
        self,
        item: FoodItem | FoodRef,
        patient_id: UUID,
        needed_quantity: Decimal | None,
        ledger: ReservationLedger | None = None,
    ) -> PantryAvailability:
        """Sum unexpired, unreserved stock of exactly this item."""
        ref = item if isinstance(item, FoodRef) else ref_of(item)
        if not ref.entry_type.stockable:
            return PantryAvailability.not_available()
        wanted = ZERO if needed_quantity is None else needed_quantity

        usable: list[PantryItem] = []
        total = ZERO
        covered = ZERO
        cost = ZERO
        for row in self._usable_rows(patient_id, ref):
            free = ledger.remaining(row) if ledger is not None else row.quantity_grams
            if free <= 0:
                continue
            usable.append(row)
            total += free
            taken = min(free, max(wanted - covered, ZERO))
            if taken > 0 and row.cost_per_unit is not None:
                cost += row.cost_per_gram * taken
            covered += taken

        if total <= 0:
            return PantryAvailability.not_available()

        today = self.today()
        return PantryAvailability(
            is_available=True,
            is_sufficient=needed_quantity is not None and total >= needed_quantity,
            total_quantity_available=total,
            estimated_cost=cost.quantize(_CENTS, rounding=ROUND_HALF_UP),
            pantry_items=tuple(usable),
            expiring_soon=any(
                row.is_expiring_soon(today, self.expiring_soon_days) for row in usable
            ),
        )

    def reserve_pantry_quantity(
        self, ledger: ReservationLedger, rows: Sequence[PantryItem], amount: Decimal
    ) -> bool:
        """Reserve stock in the run's ledger; False leaves the ledger unchanged."""
        reserved = ledger.reserve(rows, amount)
        if reserved:
            _logger.debug("Reserved %s g across %s pantry rows", amount, len(rows))
        else:
            _logger.warning("Could not reserve %s g from %s pantry rows", amount, len(rows))
        return reserved

    def clear_pantry_reservations(self, ledger: ReservationLedger) -> None:
        _logger.debug("Clearing %s pantry reservations", len(ledger))
        ledger.clear()

    def get_current_cost(
        self,
        item: FoodItem | FoodRef,
        quantity: Decimal | None,
        patient_id: UUID,
        ledger: ReservationLedger | None = None,
    ) -> Decimal:
        """Price a quantity from pantry cost, else market price, else default.

        Only the first tier that has data is used.
        """
        if quantity is None or quantity <= 0:
            return ZERO
        ref = item if isinstance(item, FoodRef) else ref_of(item)
        if not ref.entry_type.stockable:
            return self._default_cost(quantity)

        for row in self._usable_rows(patient_id, ref):
            if ledger is not None and ledger.remaining(row) <= 0:
                continue
            if row.cost_per_unit is not None and row.quantity_grams > 0:
                return _to_cents(row.cost_per_gram * quantity)

        best = self._best_price(ref)
        if best is not None:
            return _to_cents(best.price_per_gram * quantity)

        return self._default_cost(quantity)

    def enhance_candidate(
        self,
        candidate: FoodCandidate,
        patient_id: UUID,
        ledger: ReservationLedger | None = None,
    ) -> None:
        """Fill a candidate's pantry fields and serving cost."""
        availability = self.check_pantry_availability(
            candidate.item, patient_id, candidate.suggested_serving, ledger
        )
        candidate.available_in_pantry = availability.is_available
        candidate.pantry_quantity_available = availability.total_quantity_available
        candidate.pantry_items = list(availability.pantry_items)
        candidate.cost_per_serving = self.get_current_cost(
            candidate.item, candidate.suggested_serving, patient_id, ledger
        )
        _logger.debug(
            "Enhanced candidate %s: pantry=%s cost=%s",
            candidate.item_name,
            availability.is_available,
            candidate.cost_per_serving,
        )

    def get_expiring_soon_items(
        self, patient_id: UUID, within_days: int | None = None
    ) -> list[PantryItem]:
        """Unexpired rows expiring within [today, today + within_days]."""
        days = self.expiring_soon_days if within_days is None else within_days
        today = self.today()
        rows = self.pantry_repository.list_items_expiring_between(
            patient_id, today, today + timedelta(days=days)
        )
        return [row for row in rows if row.is_expiring_soon(today, days)]

    def get_expired_items(self, patient_id: UUID) -> list[PantryItem]:
        today = self.today()
        rows = self.pantry_repository.list_items_expired_before(patient_id, today)
        return [row for row in rows if row.is_expired(today)]

    def _usable_rows(self, patient_id: UUID, ref: FoodRef) -> list[PantryItem]:
        today = self.today()
        return [
            row
            for row in self.pantry_repository.list_available_items(patient_id, ref)
            if row.item == ref and row.is_available and not row.is_expired(today)
        ]

    def _best_price(self, ref: FoodRef) -> PriceEntry | None:
        prices = [
            price
            for price in self.price_repository.list_current_prices(ref)
            if price.is_current and price.unit_size_grams > 0
        ]
        if not prices:
            return None
        return min(prices, key=lambda price: price.price_per_gram)

    def _default_cost(self, quantity: Decimal) -> Decimal:
        return _to_cents(self.default_cost_per_gram * quantity)


def _to_cents(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)
