"""Row parsers shared by the Supabase repositories."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pku_planner.domain.foods import (
    CustomDish,
    CustomProduct,
    Dish,
    EntryType,
    FoodItem,
    FoodRef,
    Product,
)
from pku_planner.domain.nutrition import NutrientProfile, to_decimal

Row = dict[str, object]

CATALOG_TABLES = {
    EntryType.PRODUCT: "products",
    EntryType.CUSTOM_PRODUCT: "custom_products",
    EntryType.DISH: "dishes",
    EntryType.CUSTOM_DISH: "custom_dishes",
}

ITEM_COLUMNS = {
    EntryType.PRODUCT: "product_id",
    EntryType.CUSTOM_PRODUCT: "custom_product_id",
    EntryType.DISH: "dish_id",
    EntryType.CUSTOM_DISH: "custom_dish_id",
}


def uuid_of(row: Row, key: str) -> UUID:
    raw = row.get(key)
    if not raw:
        raise RuntimeError(f"Row is missing {key}")
    return UUID(str(raw))


def optional_uuid(row: Row, key: str) -> UUID | None:
    raw = row.get(key)
    return UUID(str(raw)) if raw else None


def decimal_of(row: Row, key: str) -> Decimal | None:
    return to_decimal(row.get(key))


def required_decimal(row: Row, key: str) -> Decimal:
    value = decimal_of(row, key)
    if value is None:
        raise RuntimeError(f"Row is missing {key}")
    return value


def date_of(row: Row, key: str) -> date | None:
    raw = row.get(key)
    if isinstance(raw, str) and raw:
        return date.fromisoformat(raw[:10])
    return None


def parse_product(row: Row) -> Product:
    return Product(
        id=uuid_of(row, "id"),
        name=str(row.get("product_name", "")),
        category=row.get("category"),
        profile=_product_profile(row),
    )


def parse_custom_product(row: Row) -> CustomProduct:
    return CustomProduct(
        id=uuid_of(row, "id"),
        name=str(row.get("product_name", "")),
        category=row.get("category"),
        profile=_product_profile(row),
        patient_id=optional_uuid(row, "patient_id"),
        standard_serving_grams=decimal_of(row, "standard_serving_grams"),
    )


def parse_dish(row: Row) -> Dish:
    return Dish(
        id=uuid_of(row, "id"),
        name=str(row.get("name", "")),
        category=row.get("category"),
        profile=_dish_profile(row),
        nominal_serving_grams=decimal_of(row, "nominal_serving_grams"),
    )


def parse_custom_dish(row: Row) -> CustomDish:
    return CustomDish(
        id=uuid_of(row, "id"),
        name=str(row.get("name", "")),
        category=row.get("category"),
        profile=_dish_profile(row),
        patient_id=optional_uuid(row, "patient_id"),
        nominal_serving_grams=decimal_of(row, "nominal_serving_grams"),
    )


_ITEM_PARSERS = {
    EntryType.PRODUCT: parse_product,
    EntryType.CUSTOM_PRODUCT: parse_custom_product,
    EntryType.DISH: parse_dish,
    EntryType.CUSTOM_DISH: parse_custom_dish,
}


def parse_food_item(entry_type: EntryType, row: Row) -> FoodItem:
    return _ITEM_PARSERS[entry_type](row)


def stock_ref(row: Row) -> FoodRef:
    """Identify the product or custom product a pantry or price row is for."""
    for entry_type in (EntryType.PRODUCT, EntryType.CUSTOM_PRODUCT):
        item_id = optional_uuid(row, ITEM_COLUMNS[entry_type])
        if item_id is not None:
            return FoodRef(entry_type=entry_type, item_id=item_id)
    raise RuntimeError("Row references neither a product nor a custom product")


def _product_profile(row: Row) -> NutrientProfile:
    return NutrientProfile.of(
        row.get("phenylalanine"),
        row.get("protein"),
        row.get("kilocalories"),
        row.get("fats"),
    )


def _dish_profile(row: Row) -> NutrientProfile:
    return NutrientProfile.of(
        row.get("per100_phenylalanine"),
        row.get("per100_protein"),
        row.get("per100_kilocalories"),
        row.get("per100_fats"),
    )
