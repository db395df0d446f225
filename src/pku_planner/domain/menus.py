"""Menu plan structures: days, meal slots and entries."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pku_planner.domain.foods import FoodItem, FoodRef, ensure_food_item, ref_of
from pku_planner.domain.nutrition import NutritionBreakdown

_WEEKDAY_NAMES = (
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
)


def weekday_name(ordinal: int) -> str:
    """Return the weekday name for an ISO ordinal (1 = Monday)."""
    if not 1 <= ordinal <= len(_WEEKDAY_NAMES):
        raise ValueError(f"Day of week must be 1..7, got {ordinal}")
    return _WEEKDAY_NAMES[ordinal - 1]


def parse_weekday(name: str) -> int:
    """Return the ISO ordinal for a weekday name."""
    try:
        return _WEEKDAY_NAMES.index(name.strip().upper()) + 1
    except ValueError:
        raise ValueError(f"Unknown weekday: {name!r}") from None


class SlotName(Enum):
    """Meal occasions of a day, in serving order.

    Each member carries its default order and its share (percent) of the
    daily PHE limit and of the daily kcal minimum.
    """

    BREAKFAST = ("BREAKFAST", 1, 25, 25)
    MORNING_SNACK = ("MORNING_SNACK", 2, 10, 10)
    LUNCH = ("LUNCH", 3, 30, 35)
    AFTERNOON_SNACK = ("AFTERNOON_SNACK", 4, 10, 10)
    DINNER = ("DINNER", 5, 20, 15)
    EVENING_SNACK = ("EVENING_SNACK", 6, 5, 5)

    def __init__(
        self, label: str, default_order: int, phe_share: int, kcal_share: int
    ) -> None:
        self.label = label
        self.default_order = default_order
        self.phe_share = Decimal(phe_share)
        self.kcal_share = Decimal(kcal_share)

    @classmethod
    def parse(cls, raw: "str | SlotName") -> "SlotName":
        if isinstance(raw, SlotName):
            return raw
        return cls[raw.strip().upper()]


class MenuStatus(Enum):
    DRAFT = "DRAFT"
    GENERATED = "GENERATED"
    APPROVED = "APPROVED"


@dataclass
class MenuEntry:
    """One food placed in a meal slot."""

    item: FoodItem
    planned_serving: Decimal
    nutrition: NutritionBreakdown
    unit: str = "G"
    is_consumed: bool = False
    actual_serving: Decimal | None = None
    is_alternative: bool = False
    notes: str | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        ensure_food_item(self.item)

    @property
    def ref(self) -> FoodRef:
        return ref_of(self.item)

    @property
    def item_name(self) -> str:
        return self.item.name

    @property
    def item_category(self) -> str | None:
        return self.item.category

    @property
    def effective_consumed_quantity(self) -> Decimal | None:
        if self.actual_serving is not None:
            return self.actual_serving
        return self.planned_serving


@dataclass
class MealSlot:
    """A meal occasion holding ordered entries."""

    slot_name: SlotName
    entries: list[MenuEntry] = field(default_factory=list)
    target_phe_mg: Decimal | None = None
    target_kcal: Decimal | None = None
    is_consumed: bool = False
    notes: str | None = None
    id: UUID = field(default_factory=uuid4)

    @property
    def slot_order(self) -> int:
        return self.slot_name.default_order

    def item_names(self) -> list[str]:
        return [entry.item_name for entry in self.entries if not entry.is_alternative]


@dataclass
class MenuDay:
    """A patient's plan for one date."""

    patient_id: UUID
    date: date
    slots: list[MealSlot] = field(default_factory=list)
    status: MenuStatus = MenuStatus.DRAFT
    notes: str | None = None
    id: UUID = field(default_factory=uuid4)

    @property
    def day_of_week(self) -> int:
        """ISO ordinal of the date, 1 = Monday."""
        return self.date.isoweekday()

    def slot(self, slot_name: SlotName) -> MealSlot | None:
        for slot in self.slots:
            if slot.slot_name is slot_name:
                return slot
        return None
