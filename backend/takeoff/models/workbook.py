"""
Abstract workbook description emitted by the synthesis engine.

Cells are format-neutral: formula kinds carry structured references plus a
cached value, and the xlsx encoder decides the concrete formula syntax.
All row / column indices are 0-based.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class CellAddress:
    sheet: str
    row: int
    col: int


@dataclass(frozen=True)
class Literal:
    """Plain value (text or number)."""
    value: Union[str, float, int]


@dataclass(frozen=True)
class ProductFormula:
    """Product of numeric tokens, e.g. 2*15.00*0.60."""
    tokens: Tuple[str, ...]
    cached_value: float


@dataclass(frozen=True)
class SameRowProduct:
    """Product of two cells on the row the formula lives on (Quantity × Rate)."""
    left_col: int
    right_col: int
    cached_value: float


@dataclass(frozen=True)
class CrossSheetRef:
    """Direct reference to a single cell, usually on another sheet."""
    target: CellAddress
    cached_value: float


@dataclass(frozen=True)
class ConditionalSum:
    """Sum of `sum_col` over rows of `sheet` whose `match_col` equals `match_text`."""
    sheet: str
    match_col: int
    match_text: str
    sum_col: int
    cached_value: float
    # Case-sensitive, literal comparison instead of spreadsheet criteria matching
    exact_match: bool = False


@dataclass(frozen=True)
class SumRange:
    """Sum of one column between two rows (inclusive) of the same sheet."""
    col: int
    first_row: int
    last_row: int
    cached_value: float


Cell = Union[Literal, ProductFormula, SameRowProduct, CrossSheetRef, ConditionalSum, SumRange]

# A row is a list of cells; None marks an empty cell, [] an empty row.
Row = List[Optional[Cell]]


@dataclass
class Sheet:
    name: str
    rows: List[Row] = field(default_factory=list)
    column_widths: List[int] = field(default_factory=list)
    header_rows: Tuple[int, ...] = (0,)

    def append(self, row: Row) -> int:
        """Append a row and return its 0-based index."""
        self.rows.append(row)
        return len(self.rows) - 1

    def cell(self, row: int, col: int) -> Optional[Cell]:
        cells = self.rows[row]
        return cells[col] if col < len(cells) else None


@dataclass
class Workbook:
    sheets: List[Sheet] = field(default_factory=list)
    project_name: str = ""

    def sheet(self, name: str) -> Sheet:
        for s in self.sheets:
            if s.name == name:
                return s
        raise KeyError(name)

    @property
    def sheet_names(self) -> List[str]:
        return [s.name for s in self.sheets]
