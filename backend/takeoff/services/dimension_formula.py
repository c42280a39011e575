"""
Dimension Formula Synthesizer — turns a free-text dimension expression into
a sanitized product formula for the Dim Sheet quantity cell.

  "15.00 x 0.60 x 1.20", multiplier 1  ->  15.00*0.60*1.20
  "4.00m X 5.00m",       multiplier 2  ->  2*4.00*5.00
  "-"                                  ->  no formula, plain quantity

Only the first number in each x/X/* segment is kept; unit suffixes and
stray text are dropped. The cached value is always the quantity supplied
upstream. The token product is checked against it and any divergence is
logged, never silently corrected.
"""
import logging
import math
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from takeoff.config import DIVERGENCE_ABS_TOL, DIVERGENCE_REL_TOL

logger = logging.getLogger("takeoff-dimension")

FORMULA = "FORMULA"
MALFORMED_DIMENSION = "MALFORMED_DIMENSION"

_SEPARATORS = re.compile(r"[xX*]")
_NUMBER = re.compile(r"[+-]?([0-9]*[.])?[0-9]+")


@dataclass(frozen=True)
class DimensionFormula:
    tokens: Tuple[str, ...]
    cached_value: float
    status: str = FORMULA         # FORMULA | MALFORMED_DIMENSION
    product: Optional[float] = None

    @property
    def is_formula(self) -> bool:
        return self.status == FORMULA

    @property
    def diverges(self) -> bool:
        if self.product is None:
            return False
        return not math.isclose(
            self.product, self.cached_value,
            rel_tol=DIVERGENCE_REL_TOL, abs_tol=DIVERGENCE_ABS_TOL,
        )


def effective_multiplier(multiplier: Optional[float]) -> float:
    """Missing or zero timesing means 1."""
    return multiplier or 1.0


def format_number(value: float) -> str:
    """2.0 -> '2', 2.5 -> '2.5'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def extract_tokens(dimension: str) -> Tuple[str, ...]:
    """First signed decimal of every x/X/* segment, in order."""
    tokens = []
    for segment in _SEPARATORS.split(dimension or ""):
        match = _NUMBER.search(segment)
        if match:
            tokens.append(match.group(0))
    return tuple(tokens)


def synthesize_dimension(
    dimension: str,
    multiplier: Optional[float] = 1.0,
    quantity: float = 0.0,
    item_ref: str = "",
) -> DimensionFormula:
    """
    Build the quantity formula for one item.

    Falls back (status MALFORMED_DIMENSION, no tokens) when no number can be
    extracted; the caller then writes `quantity` as a plain value.
    """
    numbers = extract_tokens(dimension)
    if not numbers:
        logger.debug(f"MALFORMED_DIMENSION for item {item_ref or '?'}: {dimension!r}; writing plain quantity")
        return DimensionFormula(tokens=(), cached_value=quantity, status=MALFORMED_DIMENSION)

    factor = effective_multiplier(multiplier)
    tokens = numbers if factor == 1 else (format_number(factor),) + numbers

    product = math.prod(float(t) for t in tokens)
    result = DimensionFormula(tokens=tokens, cached_value=quantity, product=product)
    if result.diverges:
        logger.warning(
            f"Dimension formula diverges for item {item_ref or '?'}: "
            f"{'*'.join(tokens)} = {product:.4f} but quantity is {quantity:.4f}"
        )
    return result
