"""
test_takeoff_session.py — view state and derived data on a TakeoffSession.
"""

import pytest

from takeoff.services.takeoff_session import TakeoffSession


class TestViewState:

    def test_defaults(self, session):
        snap = session.snapshot()
        assert snap.project_name == "Villa 12 Phase 2"
        assert snap.search_term == ""
        assert snap.category_filter == "All"
        assert dict(snap.prices) == {}

    def test_search_term_narrows_groups(self, session):
        session.set_search_term("grid a")
        names = [g.name for g in session.grouped_items()]
        assert "Excavation - Strip Foundation" in names
        assert "Emulsion Paint" not in names

    def test_category_filter(self, session):
        session.set_category_filter("Openings")
        assert [g.name for g in session.grouped_items()] == ["Door (D1) - Timber"]

    def test_empty_filter_resets_to_all(self, session):
        session.set_category_filter("Painting")
        session.set_category_filter("")
        assert len(session.grouped_items()) == 7

    def test_no_match_is_empty_not_error(self, session):
        session.set_search_term("curtain wall")
        assert session.grouped_items() == []
        assert session.grand_total() == 0.0


class TestUnitPrices:

    def test_set_unit_price_returns_coerced_value(self, session):
        assert session.set_unit_price("Emulsion Paint", "4.00") == 4.0
        assert session.set_unit_price("Door (D1) - Timber", "TBC") == 0.0

    def test_all_prices_unset_total_zero(self, session):
        assert session.grand_total() == 0.0

    def test_grand_total_tracks_prices(self, session):
        """Emulsion Paint 12.5 m2 × 4 = 50.0; Y12 rebar 60 kg × 2.5 = 150.0."""
        session.set_unit_price("Emulsion Paint", 4)
        session.set_unit_price("Reinforcement Bars (Type Y12)", "2.5")
        assert session.grand_total() == pytest.approx(200.0)

    def test_filter_excludes_group_amount_but_not_rebar(self, session):
        session.set_unit_price("Emulsion Paint", 4)
        session.set_unit_price("Reinforcement Bars (Type Y12)", 2.5)
        session.set_category_filter("Openings")
        assert session.grand_total() == pytest.approx(150.0)

    def test_snapshot_isolated_from_later_edits(self, session):
        session.set_unit_price("Emulsion Paint", 4)
        snap = session.snapshot()
        session.set_unit_price("Emulsion Paint", 9)
        assert snap.prices["Emulsion Paint"] == 4.0
        with pytest.raises(TypeError):
            snap.prices["Emulsion Paint"] = 1.0

    def test_initial_prices_accepted(self, takeoff_result):
        session = TakeoffSession(takeoff_result, unit_prices={"Emulsion Paint": "2"})
        assert session.grand_total() == pytest.approx(25.0)


class TestDerivedData:

    def test_rebar_summary_ignores_filters(self, session):
        session.set_category_filter("Painting")
        assert [s.bar_type for s in session.rebar_summary()] == ["T10", "Y12", "Y16"]

    def test_filtered_rebar_follows_search(self, session):
        session.set_search_term("column")
        assert [bar.id for bar in session.filtered_rebar()] == ["02"]

    def test_category_breakdown_uses_all_items(self, session):
        session.set_category_filter("Painting")
        breakdown = {row["name"]: row for row in session.category_breakdown()}
        assert breakdown["Sub Structure"]["count"] == 5
        assert breakdown["Openings"]["value"] == 2.0

    def test_boq_lines_match_grouping(self, session):
        lines = session.boq_lines()
        assert [line.name for line in lines[:7]] == [g.name for g in session.grouped_items()]
        assert len(lines) == 10

    def test_workbook_deterministic(self, session):
        session.set_unit_price("Flooring - Ceramic Tiles", 35)
        assert session.synthesize_workbook() == session.synthesize_workbook()

    def test_workbook_carries_project_name(self, session):
        assert session.synthesize_workbook().project_name == "Villa 12 Phase 2"
