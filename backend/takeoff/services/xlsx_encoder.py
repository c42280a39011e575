"""
XLSX Encoder — writes an abstract Workbook to a real .xlsx file.

Formula cells are rendered to A1 syntax and written with their cached value,
so viewers that never recalculate still show numbers:

  ProductFormula   ->  =2*15.00*0.60
  CrossSheetRef    ->  ='Dim Sheet'!D15
  ConditionalSum   ->  =SUMIF('Rebar Schedule'!C:C,"Y16",'Rebar Schedule'!J:J)
                       =SUMPRODUCT(--EXACT('Rebar Schedule'!C:C,"y16"),'Rebar Schedule'!J:J)
                       when the bar type needs an exact, case-sensitive match
  SameRowProduct   ->  =C5*D5
  SumRange         ->  =SUM(E2:E12)
"""
import io
import os
import re
import uuid
import logging
from typing import Optional

import xlsxwriter
from xlsxwriter.utility import quote_sheetname, xl_col_to_name, xl_rowcol_to_cell

from takeoff.config import DEFAULT_PROJECT_NAME, DOWNLOAD_DIR, EXPORT_SUFFIX
from takeoff.models.workbook import (
    ConditionalSum,
    CrossSheetRef,
    Literal,
    ProductFormula,
    SameRowProduct,
    Sheet,
    SumRange,
    Workbook,
)

logger = logging.getLogger("takeoff-xlsx")

_UNSAFE_NAME_CHARS = re.compile(r"[^\w.-]+")


def export_filename(project_name: Optional[str]) -> str:
    """
    Download name for a project: 'Villa 12 Phase 2' -> 'Villa_12_Phase_2_Complete_Takeoff.xlsx'.

    Whitespace and path characters collapse to a single '_'; dots and
    underscores at either end are dropped. Never used as an on-disk path.
    """
    clean = _UNSAFE_NAME_CHARS.sub("_", project_name or "").strip("._")
    return f"{clean or DEFAULT_PROJECT_NAME}{EXPORT_SUFFIX}"


def _ensure_dir(directory: str):
    os.makedirs(directory, exist_ok=True)


# ── Formula rendering ─────────────────────────────────────────────────────────

def _column_ref(sheet: str, col: int) -> str:
    name = xl_col_to_name(col)
    return f"{quote_sheetname(sheet)}!{name}:{name}"


def render_formula(cell, row: int) -> str:
    """A1 formula text (with leading '=') for a formula cell on 0-based `row`."""
    if isinstance(cell, ProductFormula):
        return "=" + "*".join(cell.tokens)
    if isinstance(cell, CrossSheetRef):
        target = cell.target
        return f"={quote_sheetname(target.sheet)}!{xl_rowcol_to_cell(target.row, target.col)}"
    if isinstance(cell, ConditionalSum):
        criteria = cell.match_text.replace('"', '""')
        if cell.exact_match:
            return (
                f"=SUMPRODUCT(--EXACT({_column_ref(cell.sheet, cell.match_col)},\"{criteria}\"),"
                f"{_column_ref(cell.sheet, cell.sum_col)})"
            )
        return (
            f"=SUMIF({_column_ref(cell.sheet, cell.match_col)},"
            f"\"{criteria}\",{_column_ref(cell.sheet, cell.sum_col)})"
        )
    if isinstance(cell, SameRowProduct):
        return f"={xl_rowcol_to_cell(row, cell.left_col)}*{xl_rowcol_to_cell(row, cell.right_col)}"
    if isinstance(cell, SumRange):
        first = xl_rowcol_to_cell(cell.first_row, cell.col)
        last = xl_rowcol_to_cell(cell.last_row, cell.col)
        return f"=SUM({first}:{last})"
    raise TypeError(f"Not a formula cell: {cell!r}")


# ── Sheet writing ─────────────────────────────────────────────────────────────

def _write_sheet(wb, sheet: Sheet, formats: dict):
    ws = wb.add_worksheet(sheet.name)
    for col, width in enumerate(sheet.column_widths):
        ws.set_column(col, col, width)

    header_rows = set(sheet.header_rows)
    for r, row in enumerate(sheet.rows):
        text_fmt = formats["header"] if r in header_rows else None
        for c, cell in enumerate(row):
            if cell is None:
                continue
            if isinstance(cell, Literal):
                if isinstance(cell.value, str):
                    ws.write_string(r, c, cell.value, text_fmt)
                else:
                    ws.write_number(r, c, cell.value, formats["number"])
            else:
                ws.write_formula(r, c, render_formula(cell, r), formats["number"], cell.cached_value)


def _encode(target, workbook: Workbook, options: Optional[dict] = None):
    wb = xlsxwriter.Workbook(target, options or {})
    try:
        formats = {
            "header": wb.add_format({"bold": True}),
            "number": wb.add_format({"num_format": "#,##0.00"}),
        }
        for sheet in workbook.sheets:
            _write_sheet(wb, sheet, formats)
    finally:
        wb.close()


def encode_workbook_bytes(workbook: Workbook) -> bytes:
    """Encode to an in-memory .xlsx and return its bytes."""
    buffer = io.BytesIO()
    _encode(buffer, workbook, {"in_memory": True})
    data = buffer.getvalue()
    logger.info(f"Workbook encoded in memory: {len(data)} bytes, sheets={workbook.sheet_names}")
    return data


def write_workbook_file(workbook: Workbook, directory: Optional[str] = None) -> str:
    """
    Write the workbook under `directory` (default DOWNLOAD_DIR) and return the path.

    The file name is server-generated so concurrent exports never share a path;
    use export_filename() for the name shown to the user.
    """
    directory = directory or DOWNLOAD_DIR
    _ensure_dir(directory)
    path = os.path.join(directory, f"Takeoff_{uuid.uuid4().hex[:12]}.xlsx")
    _encode(path, workbook)
    logger.info(f"Workbook written: {path}")
    return path
