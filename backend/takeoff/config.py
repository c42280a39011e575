"""
Takeoff engine configuration — single source of truth for category ordering,
parsing conventions, sheet layout, and reconciliation tolerances.

Import from here in all services rather than hardcoding values.
"""
from __future__ import annotations

import os

# ── Category vocabulary ────────────────────────────────────────────────────────
# Logical construction order. Categories not listed here sort after all of them.
CATEGORY_ORDER: list[str] = [
    "Sub Structure",
    "Super Structure",
    "Openings",
    "Finishing Works",
    "Painting",
    "Electrical",
    "Mechanical",
    "Sanitary",
]

# Category filter sentinel meaning "no category restriction"
ALL_CATEGORIES: str = "All"

# Rank assigned to categories absent from CATEGORY_ORDER
UNKNOWN_CATEGORY_RANK: int = 999


# ── Description convention ─────────────────────────────────────────────────────
# "[Element] - [Material/Spec] - [Axis/Grid]"
DESCRIPTION_DELIMITER: str = " - "
DEFAULT_LOCATION: str = "General"


# ── Rebar ─────────────────────────────────────────────────────────────────────
REBAR_UNIT: str = "kg"
REBAR_NAME_TEMPLATE: str = "Reinforcement Bars (Type {bar_type})"


# ── Workbook layout ───────────────────────────────────────────────────────────
DIM_SHEET_NAME: str = "Dim Sheet"
REBAR_SHEET_NAME: str = "Rebar Schedule"
BOQ_SHEET_NAME: str = "Bill of Quantities"

DIM_HEADERS: list[str] = ["Timesing", "Description", "Dimension", "Quantity"]
DIM_QUANTITY_COL: int = 3
DIM_COLUMN_WIDTHS: list[int] = [10, 40, 20, 15]

REBAR_HEADERS: list[str] = [
    "Member", "Bar Mark", "Type/Size", "Shape Code", "No. Members",
    "Bars/Member", "Total Bars", "Length (m)", "Total Length (m)", "Total Weight (kg)",
]
REBAR_BAR_TYPE_COL: int = 2
REBAR_WEIGHT_COL: int = 9
REBAR_COLUMN_WIDTHS: list[int] = [25, 10, 10, 12, 12, 12, 12, 12, 16, 18]

BOQ_HEADERS: list[str] = ["Item Description", "Unit", "Total Quantity", "Unit Rate", "Total Amount"]
BOQ_QUANTITY_COL: int = 2
BOQ_RATE_COL: int = 3
BOQ_AMOUNT_COL: int = 4
BOQ_COLUMN_WIDTHS: list[int] = [50, 10, 15, 15, 15]

SUBTOTAL_LABEL: str = "SUBTOTAL"
REBAR_SECTION_LABEL: str = "REBAR SUMMARY"
GRAND_TOTAL_LABEL: str = "GRAND TOTAL"


# ── Formula reconciliation ────────────────────────────────────────────────────
# Token product vs. upstream quantity; beyond both tolerances the pair is
# reported as divergent (the upstream quantity stays authoritative).
DIVERGENCE_ABS_TOL: float = float(os.getenv("TAKEOFF_DIVERGENCE_ABS_TOL", "0.01"))
DIVERGENCE_REL_TOL: float = float(os.getenv("TAKEOFF_DIVERGENCE_REL_TOL", "0.001"))


# ── Export ────────────────────────────────────────────────────────────────────
DOWNLOAD_DIR: str = os.getenv("DOWNLOAD_DIR", "/tmp/downloads")
EXPORT_SUFFIX: str = "_Complete_Takeoff.xlsx"
DEFAULT_PROJECT_NAME: str = "Takeoff"
