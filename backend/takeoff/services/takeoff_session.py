"""
TakeoffSession — consumer entry points over one upstream takeoff payload.

Holds the view state the user edits (search term, category filter, unit
prices) and derives grouped data, the rebar summary, the grand total and the
workbook from it. Derived data is never cached: every read recomputes from a
snapshot taken under the session lock.
"""
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from takeoff.config import ALL_CATEGORIES
from takeoff.models.takeoff_schema import RebarItem, TakeoffItem, TakeoffResult
from takeoff.models.workbook import Workbook
from takeoff.services import boq_calculator
from takeoff.services.boq_calculator import BoqLine, UnitPriceBook
from takeoff.services.grouping_engine import GroupedItem, category_breakdown, group_items
from takeoff.services.rebar_aggregator import RebarSummary, filter_rebar, summarize_rebar
from takeoff.services.workbook_emitter import synthesize_workbook


@dataclass(frozen=True)
class TakeoffSnapshot:
    project_name: str
    items: Tuple[TakeoffItem, ...]
    rebar_items: Tuple[RebarItem, ...]
    search_term: str
    category_filter: str
    prices: Mapping[str, float]


class TakeoffSession:

    def __init__(
        self,
        takeoff: TakeoffResult,
        search_term: str = "",
        category_filter: str = ALL_CATEGORIES,
        unit_prices: Optional[Mapping[str, Any]] = None,
    ):
        self._lock = threading.Lock()
        self._project_name = takeoff.project_name
        self._items: Tuple[TakeoffItem, ...] = tuple(takeoff.items)
        self._rebar_items: Tuple[RebarItem, ...] = tuple(takeoff.rebar_items)
        self._search_term = search_term or ""
        self._category_filter = category_filter or ALL_CATEGORIES
        self._prices = UnitPriceBook(unit_prices)

    # ── View state ───────────────────────────────────────────────────────────

    def set_search_term(self, text: str) -> None:
        with self._lock:
            self._search_term = text or ""

    def set_category_filter(self, category: str) -> None:
        with self._lock:
            self._category_filter = category or ALL_CATEGORIES

    def set_unit_price(self, display_name: str, raw_input: Any) -> float:
        """Store a rate for a group / rebar summary name; returns the coerced value."""
        with self._lock:
            return self._prices.set_price(display_name, raw_input)

    def snapshot(self) -> TakeoffSnapshot:
        with self._lock:
            return TakeoffSnapshot(
                project_name=self._project_name,
                items=self._items,
                rebar_items=self._rebar_items,
                search_term=self._search_term,
                category_filter=self._category_filter,
                prices=MappingProxyType(self._prices.snapshot()),
            )

    # ── Derived data ─────────────────────────────────────────────────────────

    def grouped_items(self) -> List[GroupedItem]:
        snap = self.snapshot()
        return group_items(snap.items, snap.search_term, snap.category_filter)

    def rebar_summary(self) -> List[RebarSummary]:
        return summarize_rebar(self.snapshot().rebar_items)

    def filtered_rebar(self) -> List[RebarItem]:
        snap = self.snapshot()
        return filter_rebar(snap.rebar_items, snap.search_term)

    def category_breakdown(self) -> List[Dict]:
        return category_breakdown(self.snapshot().items)

    def boq_lines(self) -> List[BoqLine]:
        snap = self.snapshot()
        groups = group_items(snap.items, snap.search_term, snap.category_filter)
        return boq_calculator.build_boq_lines(groups, summarize_rebar(snap.rebar_items), snap.prices)

    def grand_total(self) -> float:
        snap = self.snapshot()
        groups = group_items(snap.items, snap.search_term, snap.category_filter)
        return boq_calculator.grand_total(groups, summarize_rebar(snap.rebar_items), snap.prices)

    def synthesize_workbook(self) -> Workbook:
        snap = self.snapshot()
        return synthesize_workbook(
            snap.items,
            snap.rebar_items,
            snap.prices,
            search_term=snap.search_term,
            category_filter=snap.category_filter,
            project_name=snap.project_name,
        )
