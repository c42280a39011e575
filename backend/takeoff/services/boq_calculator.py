"""
Cost / BOQ Calculator — unit prices, extended amounts and the grand total.

Rates are keyed by display name: a Dim Sheet group name or a rebar summary
name ("Reinforcement Bars (Type Y16)"). Price input is coerced, never
rejected: anything that does not start with a number becomes 0.
"""
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from takeoff.services.grouping_engine import GroupedItem
from takeoff.services.rebar_aggregator import RebarSummary

logger = logging.getLogger("takeoff-boq")

INVALID_PRICE_INPUT = "INVALID_PRICE_INPUT"

# Leading decimal, the way a browser's parseFloat reads "12.5 AED" as 12.5
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def coerce_unit_price(raw: Any) -> float:
    """
    Coerce user price input to a non-negative float.

    12 -> 12.0 | "12.50" -> 12.5 | "80/m3" -> 80.0 | "" -> 0.0 | "abc" -> 0.0 | "-5" -> 0.0
    """
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        match = _LEADING_NUMBER.match(raw)
        value = float(match.group(0)) if match else None
    else:
        value = None

    if value is None or not math.isfinite(value) or value < 0:
        if raw not in (None, ""):
            logger.debug(f"{INVALID_PRICE_INPUT}: {raw!r} coerced to 0")
        return 0.0
    return value


class UnitPriceBook:
    """Mutable display-name -> rate map; unknown names rate at 0."""

    def __init__(self, prices: Optional[Mapping[str, Any]] = None):
        self._prices: Dict[str, float] = {}
        for name, raw in (prices or {}).items():
            self.set_price(name, raw)

    def set_price(self, name: str, raw: Any) -> float:
        value = coerce_unit_price(raw)
        self._prices[name] = value
        return value

    def rate_for(self, name: str) -> float:
        return self._prices.get(name, 0.0)

    def snapshot(self) -> Dict[str, float]:
        return dict(self._prices)

    def __len__(self) -> int:
        return len(self._prices)


@dataclass(frozen=True)
class BoqLine:
    name: str
    unit: str
    quantity: float
    rate: float
    source: str        # DIM_SHEET | REBAR

    @property
    def amount(self) -> float:
        return self.quantity * self.rate


def _rate(prices: Mapping[str, float], name: str) -> float:
    return prices.get(name, 0.0) if prices else 0.0


def build_boq_lines(
    groups: Iterable[GroupedItem],
    summaries: Iterable[RebarSummary],
    prices: Mapping[str, float],
) -> List[BoqLine]:
    lines = [
        BoqLine(g.name, g.unit, g.total_quantity, _rate(prices, g.name), "DIM_SHEET")
        for g in groups
    ]
    lines.extend(
        BoqLine(s.name, s.unit, s.total_quantity, _rate(prices, s.name), "REBAR")
        for s in summaries
    )
    return lines


def grand_total(
    groups: Iterable[GroupedItem],
    summaries: Iterable[RebarSummary],
    prices: Mapping[str, float],
) -> float:
    """Σ group total × rate + Σ rebar total × rate, recomputed from scratch."""
    return math.fsum(line.amount for line in build_boq_lines(groups, summaries, prices))
