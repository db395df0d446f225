"""Food catalog variants that can appear on a menu."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import ClassVar
from uuid import UUID

from pku_planner.domain.errors import MalformedCandidateError, UnknownEntryTypeError
from pku_planner.domain.nutrition import NutrientProfile


class EntryType(Enum):
    """Discriminant for the four kinds of food a menu entry can hold."""

    PRODUCT = "PRODUCT"
    CUSTOM_PRODUCT = "CUSTOM_PRODUCT"
    DISH = "DISH"
    CUSTOM_DISH = "CUSTOM_DISH"

    @classmethod
    def parse(cls, raw: object) -> "EntryType":
        """Parse a stored discriminant, case-insensitively."""
        if isinstance(raw, EntryType):
            return raw
        if isinstance(raw, str):
            try:
                return cls[raw.strip().upper()]
            except KeyError:
                pass
        raise UnknownEntryTypeError(raw)

    @property
    def stockable(self) -> bool:
        """Whether a pantry can hold this kind of item."""
        return self in (EntryType.PRODUCT, EntryType.CUSTOM_PRODUCT)


@dataclass(frozen=True)
class FoodRef:
    """Identity of a food item across the four catalogs."""

    entry_type: EntryType
    item_id: UUID


@dataclass(frozen=True)
class Product:
    """Catalog product with label nutrition."""

    entry_type: ClassVar[EntryType] = EntryType.PRODUCT

    id: UUID
    name: str
    category: str | None
    profile: NutrientProfile

    def nutrient_profile(self) -> NutrientProfile:
        return self.profile

    def grams_per_piece(self) -> Decimal | None:
        return None


@dataclass(frozen=True)
class CustomProduct:
    """Product a patient entered themselves."""

    entry_type: ClassVar[EntryType] = EntryType.CUSTOM_PRODUCT

    id: UUID
    name: str
    category: str | None
    profile: NutrientProfile
    patient_id: UUID | None = None
    standard_serving_grams: Decimal | None = None

    def nutrient_profile(self) -> NutrientProfile:
        return self.profile

    def grams_per_piece(self) -> Decimal | None:
        return self.standard_serving_grams


@dataclass(frozen=True)
class Dish:
    """Shared recipe with nutrition computed per 100 g of the cooked dish."""

    entry_type: ClassVar[EntryType] = EntryType.DISH

    id: UUID
    name: str
    category: str | None
    profile: NutrientProfile
    nominal_serving_grams: Decimal | None = None

    def nutrient_profile(self) -> NutrientProfile:
        return self.profile

    def grams_per_piece(self) -> Decimal | None:
        return self.nominal_serving_grams


@dataclass(frozen=True)
class CustomDish:
    """Recipe owned by one patient."""

    entry_type: ClassVar[EntryType] = EntryType.CUSTOM_DISH

    id: UUID
    name: str
    category: str | None
    profile: NutrientProfile
    patient_id: UUID | None = None
    nominal_serving_grams: Decimal | None = None

    def nutrient_profile(self) -> NutrientProfile:
        return self.profile

    def grams_per_piece(self) -> Decimal | None:
        return self.nominal_serving_grams


FoodItem = Product | CustomProduct | Dish | CustomDish

FOOD_ITEM_TYPES = (Product, CustomProduct, Dish, CustomDish)


def ensure_food_item(item: object) -> FoodItem:
    """Return the item unchanged if it is one of the food variants."""
    if not isinstance(item, FOOD_ITEM_TYPES):
        raise MalformedCandidateError(item)
    return item


def ref_of(item: FoodItem) -> FoodRef:
    """Return the catalog identity of a food item."""
    food = ensure_food_item(item)
    return FoodRef(entry_type=food.entry_type, item_id=food.id)
