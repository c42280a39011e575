"""
Workbook Emitter — serialises grouped takeoff data, the rebar schedule and
the priced BOQ into an abstract three-sheet workbook.

Sheets, in order:
  1. Dim Sheet          — per group: [category header], group header,
                          logic/value row pair per item, SUBTOTAL, spacer
  2. Rebar Schedule     — one row per rebar record, input order
  3. Bill of Quantities — Quantity linked to Dim Sheet subtotals or SUMIF over
                          the Rebar Schedule, Amount = Quantity × Rate,
                          GRAND TOTAL = SUM of the Amount column

Emission is two-phase. emit_dim_sheet() returns the sheet together with a
frozen map of each group's subtotal address; emit_boq_sheet() only reads it.
"""
import logging
import time
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Sequence

from takeoff.config import (
    ALL_CATEGORIES,
    BOQ_AMOUNT_COL,
    BOQ_COLUMN_WIDTHS,
    BOQ_HEADERS,
    BOQ_QUANTITY_COL,
    BOQ_RATE_COL,
    BOQ_SHEET_NAME,
    DIM_COLUMN_WIDTHS,
    DIM_HEADERS,
    DIM_QUANTITY_COL,
    DIM_SHEET_NAME,
    GRAND_TOTAL_LABEL,
    REBAR_BAR_TYPE_COL,
    REBAR_COLUMN_WIDTHS,
    REBAR_HEADERS,
    REBAR_SECTION_LABEL,
    REBAR_SHEET_NAME,
    REBAR_WEIGHT_COL,
    SUBTOTAL_LABEL,
)
from takeoff.models.takeoff_schema import RebarItem, TakeoffItem
from takeoff.models.workbook import (
    CellAddress,
    ConditionalSum,
    CrossSheetRef,
    Literal,
    ProductFormula,
    SameRowProduct,
    Sheet,
    SumRange,
    Workbook,
)
from takeoff.services.boq_calculator import grand_total
from takeoff.services.dimension_formula import effective_multiplier, synthesize_dimension
from takeoff.services.grouping_engine import GroupedItem, GroupKey, group_items
from takeoff.services.perf_monitor import timed, tracker
from takeoff.services.rebar_aggregator import RebarSummary, summarize_rebar

logger = logging.getLogger("takeoff-emitter")


@dataclass(frozen=True)
class DimSheetResult:
    sheet: Sheet
    subtotal_addresses: Mapping[GroupKey, CellAddress]
    formula_count: int = 0
    fallback_count: int = 0
    divergent_count: int = 0


def _header(labels: Sequence[str]) -> list:
    return [Literal(label) for label in labels]


# SUMIF reads these as wildcards or comparison operators
_CRITERIA_CHARS = frozenset("*?~<>=")


def _needs_exact_match(bar_type: str, folded_counts: Counter) -> bool:
    """SUMIF is case-insensitive and pattern-based; fall back to EXACT when that would mis-sum."""
    return folded_counts[bar_type.casefold()] > 1 or any(ch in _CRITERIA_CHARS for ch in bar_type)


# ── Phase 1: Dim Sheet ────────────────────────────────────────────────────────

@timed
def emit_dim_sheet(groups: Sequence[GroupedItem]) -> DimSheetResult:
    sheet = Sheet(DIM_SHEET_NAME, column_widths=list(DIM_COLUMN_WIDTHS))
    sheet.append(_header(DIM_HEADERS))
    header_rows = [0]

    addresses: Dict[GroupKey, CellAddress] = {}
    formulas = fallbacks = divergent = 0
    last_category = None

    for group in groups:
        if group.category != last_category:
            header_rows.append(sheet.append([None, Literal(group.category.upper()), None, None]))
            last_category = group.category

        header_rows.append(sheet.append([None, Literal(group.name), None, None]))

        for located in group.items:
            item = located.item
            # Logic row: timesing, location, dimension text; quantity left empty
            sheet.append([
                Literal(effective_multiplier(item.multiplier)),
                Literal(located.location),
                Literal(item.dimension),
                None,
            ])

            # Value row: quantity only
            dim = synthesize_dimension(item.dimension, item.multiplier, item.quantity, item_ref=item.id)
            if dim.is_formula:
                formulas += 1
                divergent += int(dim.diverges)
                quantity_cell = ProductFormula(tokens=dim.tokens, cached_value=dim.cached_value)
            else:
                fallbacks += 1
                quantity_cell = Literal(item.quantity)
            sheet.append([None, None, None, quantity_cell])

        subtotal_row = sheet.append([None, Literal(SUBTOTAL_LABEL), None, Literal(group.total_quantity)])
        addresses[group.key] = CellAddress(DIM_SHEET_NAME, subtotal_row, DIM_QUANTITY_COL)

        sheet.append([])

    sheet.header_rows = tuple(header_rows)
    return DimSheetResult(
        sheet=sheet,
        subtotal_addresses=MappingProxyType(addresses),
        formula_count=formulas,
        fallback_count=fallbacks,
        divergent_count=divergent,
    )


# ── Rebar Schedule ────────────────────────────────────────────────────────────

@timed
def emit_rebar_schedule(rebar_items: Iterable[RebarItem]) -> Sheet:
    sheet = Sheet(REBAR_SHEET_NAME, column_widths=list(REBAR_COLUMN_WIDTHS))
    sheet.append(_header(REBAR_HEADERS))
    for bar in rebar_items:
        sheet.append([
            Literal(bar.member),
            Literal(bar.id),
            Literal(bar.bar_type),
            Literal(bar.shape_code),
            Literal(bar.no_of_members),
            Literal(bar.bars_per_member),
            Literal(bar.total_bars),
            Literal(bar.length_per_bar),
            Literal(bar.total_length),
            Literal(bar.total_weight),
        ])
    return sheet


# ── Phase 2: Bill of Quantities ───────────────────────────────────────────────

def _boq_row(name: str, unit: str, quantity_cell, quantity: float, rate: float) -> list:
    return [
        Literal(name),
        Literal(unit),
        quantity_cell,
        Literal(rate),
        SameRowProduct(left_col=BOQ_QUANTITY_COL, right_col=BOQ_RATE_COL, cached_value=quantity * rate),
    ]


@timed
def emit_boq_sheet(
    groups: Sequence[GroupedItem],
    summaries: Sequence[RebarSummary],
    prices: Mapping[str, float],
    subtotal_addresses: Mapping[GroupKey, CellAddress],
) -> Sheet:
    sheet = Sheet(BOQ_SHEET_NAME, column_widths=list(BOQ_COLUMN_WIDTHS))
    sheet.append(_header(BOQ_HEADERS))
    header_rows = [0]
    amount_rows = 0

    for group in groups:
        total = group.total_quantity
        address = subtotal_addresses.get(group.key)
        if address is None:
            logger.warning(f"No Dim Sheet subtotal recorded for group {group.name!r}; writing static quantity")
            quantity_cell = Literal(total)
        else:
            quantity_cell = CrossSheetRef(target=address, cached_value=total)
        sheet.append(_boq_row(group.name, group.unit, quantity_cell, total, prices.get(group.name, 0.0)))
        amount_rows += 1

    if summaries:
        sheet.append([])
        header_rows.append(sheet.append([Literal(REBAR_SECTION_LABEL), None, None, None, None]))
        folded_counts = Counter(s.bar_type.casefold() for s in summaries)
        for summary in summaries:
            quantity_cell = ConditionalSum(
                sheet=REBAR_SHEET_NAME,
                match_col=REBAR_BAR_TYPE_COL,
                match_text=summary.bar_type,
                sum_col=REBAR_WEIGHT_COL,
                cached_value=summary.total_quantity,
                exact_match=_needs_exact_match(summary.bar_type, folded_counts),
            )
            sheet.append(_boq_row(
                summary.name, summary.unit, quantity_cell,
                summary.total_quantity, prices.get(summary.name, 0.0),
            ))
            amount_rows += 1

    last_row = len(sheet.rows) - 1
    sheet.append([])

    total = grand_total(groups, summaries, prices)
    if amount_rows:
        total_cell = SumRange(col=BOQ_AMOUNT_COL, first_row=1, last_row=last_row, cached_value=total)
    else:
        total_cell = Literal(0.0)
    header_rows.append(sheet.append([Literal(GRAND_TOTAL_LABEL), None, None, None, total_cell]))

    sheet.header_rows = tuple(header_rows)
    return sheet


# ── Full pass ─────────────────────────────────────────────────────────────────

def synthesize_workbook(
    items: Sequence[TakeoffItem],
    rebar_items: Sequence[RebarItem],
    prices: Mapping[str, float],
    search_term: str = "",
    category_filter: str = ALL_CATEGORIES,
    project_name: str = "",
) -> Workbook:
    """
    Run one synthesis pass over an immutable snapshot of inputs.

    Everything (groups, rebar summary, addresses, sheets) is rebuilt from
    scratch; nothing is carried over between calls.
    """
    start = time.perf_counter()

    groups = group_items(items, search_term, category_filter)
    dim = emit_dim_sheet(groups)

    summaries = summarize_rebar(rebar_items)
    rebar_sheet = emit_rebar_schedule(rebar_items)

    boq_sheet = emit_boq_sheet(groups, summaries, prices, dim.subtotal_addresses)

    workbook = Workbook(sheets=[dim.sheet, rebar_sheet, boq_sheet], project_name=project_name)

    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    tracker.record_pass(
        duration_ms,
        formulas=dim.formula_count,
        fallbacks=dim.fallback_count,
        divergences=dim.divergent_count,
    )
    logger.info(
        f"Workbook synthesized: {len(groups)} groups, {len(summaries)} bar types, "
        f"{dim.formula_count} formulas, {dim.fallback_count} plain quantities, "
        f"{dim.divergent_count} divergent",
        extra={"project_name": project_name, "duration_ms": duration_ms},
    )
    return workbook
