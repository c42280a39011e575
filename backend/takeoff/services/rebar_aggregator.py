"""Rebar Aggregator — total reinforcement weight per bar type."""
import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List

from takeoff.config import REBAR_NAME_TEMPLATE, REBAR_UNIT
from takeoff.models.takeoff_schema import RebarItem
from takeoff.services.grouping_engine import collation_key

logger = logging.getLogger("takeoff-rebar")


@dataclass(frozen=True)
class RebarSummary:
    name: str
    bar_type: str
    total_quantity: float
    unit: str = REBAR_UNIT


def rebar_display_name(bar_type: str) -> str:
    return REBAR_NAME_TEMPLATE.format(bar_type=bar_type)


def summarize_rebar(rebar_items: Iterable[RebarItem]) -> List[RebarSummary]:
    """
    One summary per distinct bar type, weights summed regardless of member
    or shape, sorted by display name. No scope filtering happens here.
    """
    weights: Dict[str, List[float]] = {}
    for bar in rebar_items:
        weights.setdefault(bar.bar_type, []).append(bar.total_weight)

    summaries = [
        RebarSummary(
            name=rebar_display_name(bar_type),
            bar_type=bar_type,
            total_quantity=math.fsum(values),
        )
        for bar_type, values in weights.items()
    ]
    summaries.sort(key=lambda s: collation_key(s.name))
    logger.debug(f"Rebar summary: {len(summaries)} bar types from {sum(len(v) for v in weights.values())} records")
    return summaries


def filter_rebar(rebar_items: Iterable[RebarItem], search_term: str = "") -> List[RebarItem]:
    """Rebar records whose member, bar mark, or bar type contains the search term (case-insensitive)."""
    term = (search_term or "").lower()
    return [
        bar for bar in rebar_items
        if term in bar.member.lower() or term in bar.id.lower() or term in bar.bar_type.lower()
    ]
