"""Variety rules: how soon a food may come back on a patient's menu."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from pku_planner.domain.menus import MenuDay, SlotName
from pku_planner.domain.variety import VarietyAnalysis

MIN_DAYS_BETWEEN_REPEATS = 2
VARIETY_LOOKBACK_DAYS = 7
MAX_VARIETY_SUGGESTIONS = 3

_logger = logging.getLogger(__name__)


class MenuHistoryRepository(Protocol):
    """Read access to previously planned menu days."""

    def list_menu_days(self, patient_id: UUID, start: date, end: date) -> list[MenuDay]:
        """Return a patient's days within [start, end], newest first."""


@dataclass
class VarietyEngine:
    """Detects repeats against recent history and the run in progress.

    Every query accepts ``pending_days``: days assembled earlier in the same
    planning run that are not yet in the history repository.
    """

    repository: MenuHistoryRepository
    min_days_between_repeats: int = MIN_DAYS_BETWEEN_REPEATS
    lookback_days: int = VARIETY_LOOKBACK_DAYS

    def get_days_since_last_use(
        self,
        item_name: str,
        patient_id: UUID,
        target_date: date,
        slot_name: SlotName | None = None,
        pending_days: Iterable[MenuDay] = (),
    ) -> int | None:
        """Return days since the item was last planned, or None if never."""
        if not item_name:
            return None
        wanted = item_name.casefold()
        for day in self._recent_days(patient_id, target_date, self.lookback_days, pending_days):
            if wanted in _names_in_day(day, slot_name):
                days_ago = (target_date - day.date).days
                _logger.debug(
                    "Found recent use of %s in %s %s days ago",
                    item_name,
                    slot_name.label if slot_name else "any slot",
                    days_ago,
                )
                return days_ago
        return None

    def count_recent_uses(
        self,
        item_name: str,
        patient_id: UUID,
        target_date: date,
        slot_name: SlotName | None = None,
        pending_days: Iterable[MenuDay] = (),
    ) -> int:
        """Count days in the look-back window that planned the item."""
        if not item_name:
            return 0
        wanted = item_name.casefold()
        return sum(
            1
            for day in self._recent_days(
                patient_id, target_date, self.lookback_days, pending_days
            )
            if wanted in _names_in_day(day, slot_name)
        )

    def violates_variety_rules(
        self,
        item_name: str,
        patient_id: UUID,
        target_date: date,
        slot_name: SlotName | None = None,
        emergency_mode: bool = False,
        pending_days: Iterable[MenuDay] = (),
    ) -> bool:
        """Return True if planning the item now would repeat it too soon."""
        if emergency_mode:
            _logger.debug("Emergency mode allows repeats for %s", item_name)
            return False
        days_since = self.get_days_since_last_use(
            item_name, patient_id, target_date, slot_name, pending_days
        )
        violates = days_since is not None and days_since < self.min_days_between_repeats
        if violates:
            _logger.debug(
                "Variety violation: %s used %s days ago (minimum %s)",
                item_name,
                days_since,
                self.min_days_between_repeats,
            )
        return violates

    def get_recent_item_usage(
        self,
        patient_id: UUID,
        target_date: date,
        days_back: int,
        slot_name: SlotName | None = None,
        pending_days: Iterable[MenuDay] = (),
    ) -> dict[str, int]:
        """Map each recently planned item name to days since its latest use."""
        usage: dict[str, int] = {}
        for day in self._recent_days(patient_id, target_date, days_back, pending_days):
            days_ago = (target_date - day.date).days
            for slot in day.slots:
                if slot_name is not None and slot.slot_name is not slot_name:
                    continue
                for name in slot.item_names():
                    usage[name] = min(usage.get(name, days_ago), days_ago)
        _logger.debug("Found %s unique items used in last %s days", len(usage), days_back)
        return usage

    def get_items_to_avoid_for_variety(
        self,
        patient_id: UUID,
        target_date: date,
        slot_name: SlotName | None = None,
        emergency_mode: bool = False,
        pending_days: Iterable[MenuDay] = (),
    ) -> set[str]:
        """Return names used inside the minimum gap, for pool filtering."""
        if emergency_mode:
            return set()
        usage = self.get_recent_item_usage(
            patient_id,
            target_date,
            self.min_days_between_repeats,
            slot_name,
            pending_days,
        )
        avoid = {
            name
            for name, days_ago in usage.items()
            if days_ago < self.min_days_between_repeats
        }
        _logger.debug("Avoiding %s items for variety: %s", len(avoid), sorted(avoid))
        return avoid

    def analyze_weekly_variety(
        self, days: Sequence[MenuDay], emergency_mode: bool = False
    ) -> VarietyAnalysis:
        """Summarize distinct items and close repeats across a run of days."""
        frequencies: dict[str, int] = {}
        dates_by_item: dict[str, list[date]] = {}
        for day in days:
            for slot in day.slots:
                for name in slot.item_names():
                    frequencies[name] = frequencies.get(name, 0) + 1
                    dates_by_item.setdefault(name, []).append(day.date)

        violations: list[str] = []
        if not emergency_mode:
            for name, used_on in dates_by_item.items():
                used_on.sort()
                for previous, current in zip(used_on, used_on[1:], strict=False):
                    gap = (current - previous).days
                    if gap < self.min_days_between_repeats:
                        violations.append(
                            f"{name} repeated after {gap} days ({previous} to {current})"
                        )

        unique = len(frequencies)
        repeated = sum(1 for count in frequencies.values() if count > 1)
        score = (unique - repeated) / unique * 100 if unique else 100.0
        return VarietyAnalysis(
            total_unique_items=unique,
            repeated_items=repeated,
            variety_score=score,
            item_frequencies=frequencies,
            violations=violations,
            emergency_mode=emergency_mode,
        )

    def suggest_alternatives_for_variety(
        self,
        original_item: str,
        category: str | None,
        items_to_avoid: Iterable[str],
        pool: Iterable[tuple[str, str | None]],
    ) -> list[str]:
        """Pick up to three same-category names from (name, category) pairs."""
        if category is None:
            return []
        blocked = {name.casefold() for name in items_to_avoid}
        blocked.add(original_item.casefold())
        wanted = category.casefold()
        suggestions: list[str] = []
        for name, item_category in pool:
            if item_category is None or item_category.casefold() != wanted:
                continue
            if name.casefold() in blocked or name in suggestions:
                continue
            suggestions.append(name)
            if len(suggestions) == MAX_VARIETY_SUGGESTIONS:
                break
        return suggestions

    def _recent_days(
        self,
        patient_id: UUID,
        target_date: date,
        days_back: int,
        pending_days: Iterable[MenuDay],
    ) -> list[MenuDay]:
        start = target_date - timedelta(days=days_back)
        # Stored history stops the day before; pending days may include the target day.
        days = list(
            self.repository.list_menu_days(
                patient_id, start, target_date - timedelta(days=1)
            )
        )
        days.extend(
            day
            for day in pending_days
            if day.patient_id == patient_id and start <= day.date <= target_date
        )
        days.sort(key=lambda day: day.date, reverse=True)
        return days


def _names_in_day(day: MenuDay, slot_name: SlotName | None) -> set[str]:
    return {
        name.casefold()
        for slot in day.slots
        if slot_name is None or slot.slot_name is slot_name
        for name in slot.item_names()
    }
