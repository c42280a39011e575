"""
conftest.py — Shared pytest fixtures for the takeoff engine test suite.

All tests are pure unit tests over in-memory takeoff payloads; the encoder
tests write .xlsx files into pytest's tmp_path only.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``takeoff.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any takeoff imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Raw upstream payload (camelCase, as the extraction service returns it)
# ---------------------------------------------------------------------------

@pytest.fixture
def raw_items():
    """
    Axis-by-axis takeoff following the "[Element] - [Spec] - [Grid]" convention.

    Groups this produces (after grouping, before filtering):
      Sub Structure   Excavation - Strip Foundation   m3  3 × 10.8 = 32.4
      Sub Structure   Grade Beam (GB1) - Concrete C30 m3  2 × 3.6  = 7.2
      Super Structure Column (C1) - Concrete C35      m3  2 × 0.27 = 0.54
      Super Structure Ext. Wall - 200mm Hollow Block  m2  45.0
      Finishing Works Flooring - Ceramic Tiles        m2  20.0 + 20.0 = 40.0
      Painting        Emulsion Paint                  m2  12.5 (no delimiter)
      Openings        Door (D1) - Timber              nr  2 (dimension '-')
    """
    return [
        {"id": "1.01", "description": "Excavation - Strip Foundation - Grid A", "timesing": 1,
         "dimension": "15.00 x 0.60 x 1.20", "quantity": 10.8, "unit": "m3",
         "category": "Sub Structure", "confidence": "High"},
        {"id": "1.02", "description": "Grade Beam (GB1) - Concrete C30 - Grid A", "timesing": 1,
         "dimension": "15.00 x 0.60 x 0.40", "quantity": 3.6, "unit": "m3",
         "category": "Sub Structure", "confidence": "High"},
        {"id": "2.01", "description": "Ext. Wall - 200mm Hollow Block - Grid A", "timesing": 1,
         "dimension": "15.00 x 3.00", "quantity": 45.0, "unit": "m2",
         "category": "Super Structure", "confidence": "High"},
        {"id": "1.04", "description": "Excavation - Strip Foundation - Grid B", "timesing": 1,
         "dimension": "15.00 x 0.60 x 1.20", "quantity": 10.8, "unit": "m3",
         "category": "Sub Structure", "confidence": "High"},
        {"id": "1.05", "description": "Grade Beam (GB1) - Concrete C30 - Grid B", "timesing": 1,
         "dimension": "15.00 x 0.60 x 0.40", "quantity": 3.6, "unit": "m3",
         "category": "Sub Structure", "confidence": "High"},
        {"id": "1.07", "description": "Excavation - Strip Foundation - Grid C", "timesing": 1,
         "dimension": "15.00 x 0.60 x 1.20", "quantity": 10.8, "unit": "m3",
         "category": "Sub Structure", "confidence": "High"},
        {"id": "2.04", "description": "Column (C1) - Concrete C35 - Grid A1", "timesing": 1,
         "dimension": "0.30 x 0.30 x 3.00", "quantity": 0.27, "unit": "m3",
         "category": "Super Structure", "confidence": "High"},
        {"id": "2.05", "description": "Column (C1) - Concrete C35 - Grid A2", "timesing": 1,
         "dimension": "0.30 x 0.30 x 3.00", "quantity": 0.27, "unit": "m3",
         "category": "Super Structure", "confidence": "Medium"},
        {"id": "3.01", "description": "Flooring - Ceramic Tiles - Room 101 (Grid A-B)", "timesing": 1,
         "dimension": "4.00 x 5.00", "quantity": 20.0, "unit": "m2",
         "category": "Finishing Works", "confidence": "High"},
        {"id": "3.02", "description": "Flooring - Ceramic Tiles - Room 102 (Grid B-C)", "timesing": 1,
         "dimension": "4.00 x 5.00", "quantity": 20.0, "unit": "m2",
         "category": "Finishing Works", "confidence": "High"},
        {"id": "5.01", "description": "Emulsion Paint", "timesing": 1,
         "dimension": "2.50m x 5.00m", "quantity": 12.5, "unit": "m2",
         "category": "Painting", "confidence": "Low"},
        {"id": "4.01", "description": "Door (D1) - Timber - Ground Floor", "timesing": 2,
         "dimension": "-", "quantity": 2, "unit": "nr",
         "category": "Openings", "confidence": "High"},
    ]


@pytest.fixture
def raw_rebar():
    """
    Bar bending schedule. Weight per bar type:
      Y16: 150.0 + 94.7 = 244.7 kg
      Y12: 60.0 kg
      T10: 12.3 kg
    """
    def bar(mark, member, bar_type, weight):
        return {
            "id": mark, "member": member, "barType": bar_type, "shapeCode": "21",
            "noOfMembers": 2, "barsPerMember": 4, "totalBars": 8,
            "lengthPerBar": 6.0, "totalLength": 48.0, "totalWeight": weight,
        }
    return [
        bar("01", "Beam Grid A", "Y16", 150.0),
        bar("02", "Column C1", "Y12", 60.0),
        bar("03", "Beam Grid B", "Y16", 94.7),
        bar("04", "Slab S1", "T10", 12.3),
    ]


@pytest.fixture
def takeoff_payload(raw_items, raw_rebar):
    return {
        "projectName": "Villa 12 Phase 2",
        "items": raw_items,
        "rebarItems": raw_rebar,
        "summary": "Strip foundations, RC frame, block walls and finishes.",
    }


# ---------------------------------------------------------------------------
# Parsed models
# ---------------------------------------------------------------------------

@pytest.fixture
def takeoff_result(takeoff_payload):
    from takeoff.models.takeoff_schema import TakeoffResult
    return TakeoffResult.model_validate(takeoff_payload)


@pytest.fixture
def items(takeoff_result):
    return takeoff_result.items


@pytest.fixture
def rebar_items(takeoff_result):
    return takeoff_result.rebar_items


@pytest.fixture
def session(takeoff_result):
    """Fresh TakeoffSession with no filters and no prices."""
    from takeoff.services.takeoff_session import TakeoffSession
    return TakeoffSession(takeoff_result)


@pytest.fixture
def make_item():
    """Factory for single TakeoffItems with sensible defaults."""
    from takeoff.models.takeoff_schema import TakeoffItem

    def _make(description, quantity=1.0, unit="m2", category="Sub Structure",
              dimension="1.00 x 1.00", multiplier=1.0, id="X"):
        return TakeoffItem(
            id=id, description=description, multiplier=multiplier, dimension=dimension,
            quantity=quantity, unit=unit, category=category, confidence="High",
        )
    return _make


@pytest.fixture(autouse=True)
def _reset_tracker():
    """Synthesis counters are module-level; start every test from zero."""
    from takeoff.services.perf_monitor import tracker
    tracker.reset()
    yield
    tracker.reset()
