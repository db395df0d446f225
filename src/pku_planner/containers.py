"""Dependency container wiring for the planner."""

from dataclasses import dataclass

from supabase import create_client

from pku_planner.adapters.supabase_catalog_repository import SupabaseCatalogRepository
from pku_planner.adapters.supabase_menu_history_repository import (
    SupabaseMenuHistoryRepository,
)
from pku_planner.adapters.supabase_norm_repository import SupabaseNormRepository
from pku_planner.adapters.supabase_pantry_repository import (
    SupabasePantryRepository,
    SupabasePriceRepository,
)
from pku_planner.app_logging import configure_logging
from pku_planner.config import Settings
from pku_planner.services.menu_generation import MenuAssembler
from pku_planner.services.nutrition import NutritionCalculator, NutritionScaler
from pku_planner.services.pantry import PantryAwareService
from pku_planner.services.scoring import ScoringEngine, ScoringPolicy
from pku_planner.services.snacks import SnackSuggestionService
from pku_planner.services.validation import NormsValidator
from pku_planner.services.variety import VarietyEngine


@dataclass
class AppContainer:
    """Holds planner-wide dependencies."""

    settings: Settings
    scaler: NutritionScaler
    calculator: NutritionCalculator
    scoring_engine: ScoringEngine
    variety_engine: VarietyEngine
    pantry_service: PantryAwareService
    norms_validator: NormsValidator
    menu_assembler: MenuAssembler
    snack_service: SnackSuggestionService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    configure_logging(debug=resolved_settings.debug)
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog_repository = SupabaseCatalogRepository(supabase_client)
    norm_repository = SupabaseNormRepository(supabase_client)
    pantry_repository = SupabasePantryRepository(supabase_client)
    price_repository = SupabasePriceRepository(supabase_client)
    history_repository = SupabaseMenuHistoryRepository(supabase_client)

    scaler = NutritionScaler()
    calculator = NutritionCalculator(scaler)
    scoring_engine = ScoringEngine(
        ScoringPolicy(
            over_threshold_percent=resolved_settings.phe_over_threshold_percent,
            pantry_bonus=resolved_settings.pantry_bonus,
            reference_budget=resolved_settings.reference_daily_budget,
        )
    )
    variety_engine = VarietyEngine(
        history_repository,
        min_days_between_repeats=resolved_settings.min_days_between_repeats,
        lookback_days=resolved_settings.variety_lookback_days,
    )
    pantry_service = PantryAwareService(
        pantry_repository,
        price_repository,
        default_cost_per_gram=resolved_settings.default_cost_per_gram,
        expiring_soon_days=resolved_settings.expiring_soon_days,
    )
    norms_validator = NormsValidator(calculator)
    menu_assembler = MenuAssembler(
        catalog=catalog_repository,
        norms=norm_repository,
        scaler=scaler,
        scoring=scoring_engine,
        variety=variety_engine,
        pantry=pantry_service,
        validator=norms_validator,
        max_candidates_per_slot=resolved_settings.max_candidates_per_slot,
        selections_per_slot=resolved_settings.selections_per_slot,
    )
    snack_service = SnackSuggestionService(
        catalog=catalog_repository,
        calculator=calculator,
        scaler=scaler,
        pantry=pantry_service,
    )

    return AppContainer(
        settings=resolved_settings,
        scaler=scaler,
        calculator=calculator,
        scoring_engine=scoring_engine,
        variety_engine=variety_engine,
        pantry_service=pantry_service,
        norms_validator=norms_validator,
        menu_assembler=menu_assembler,
        snack_service=snack_service,
    )
