"""Tests for the timing template library and the calendar synthesizer."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from calendar_extractor import templates
from calendar_extractor.activities import ActivePeriod, Activity
from calendar_extractor.classifier import supported_commodities
from calendar_extractor.colors import SOURCE_STYLE, SOURCE_TEMPLATE, ResolvedColor
from calendar_extractor.config import DEFAULTS
from calendar_extractor.synthesizer import merge_or_replace
from calendar_extractor.timeline import synthetic_timeline


@pytest.fixture
def timeline():
    return synthetic_timeline()


# ---------------------------------------------------------------------------
# Template data
# ---------------------------------------------------------------------------

class TestTemplateData:

    def test_parse_weeks(self):
        assert templates.parse_weeks([0, 1, "4-6", "5"]) == (0, 1, 4, 5, 6)
        assert templates.parse_weeks(None) == ()

    def test_every_commodity_has_a_template(self):
        for commodity in supported_commodities():
            activities = templates.template_for(commodity)
            assert activities, commodity
            for activity in activities:
                assert activity.weeks, activity.name
                assert max(activity.weeks) < 37

    def test_maize_template(self):
        maize = templates.template_for("maize")
        assert len(maize) == 9
        assert maize[0].name == "Site Selection"
        assert maize[0].weeks == (0, 1, 2, 3, 4)
        assert maize[-1].weeks == tuple(range(25, 33))

    def test_unknown_commodity_uses_default(self):
        assert templates.template_for("cassava") == templates.template_for("maize")

    def test_canonical_name(self):
        assert templates.canonical_name("First  Weeding") == "1st weed"
        assert templates.canonical_name("Second Fertiliser application") == "2nd fertilizer application"


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

class TestMatching:

    def test_exact(self):
        assert templates.match_template_activity("maize", "harvesting").name == "Harvesting"

    def test_alias(self):
        match = templates.match_template_activity("maize", "Sowing")
        assert match.name == "Planting/sowing"

    def test_name_variations(self):
        match = templates.match_template_activity("rice", "Second Fertiliser Application")
        assert match.name == "2nd fertilizer application"
        match = templates.match_template_activity("rice", "first weed management")
        assert match.name == "First weed management"

    def test_partial_prefers_longest(self):
        match = templates.match_template_activity("maize", "Post harvest handling and storage")
        assert match.name == "Post harvest handling"
        match = templates.match_template_activity("rice", "Roguing of off-types")
        assert match.name == "Roguing"

    def test_fuzzy_group(self):
        match = templates.match_template_activity("maize", "Soil prep")
        assert match.name == "Land preparation"
        match = templates.match_template_activity("maize", "Reaping")
        assert match.name == "Harvesting"

    def test_pattern_generic_fallback(self):
        # broiler has no land preparation activity
        assert templates.match_template_activity("broiler", "Land preparation") is None
        assert templates.pattern_for("broiler", "Land preparation") == tuple(range(0, 9))
        assert templates.pattern_for("maize", "Field monitoring") is None

    def test_cycle_pattern(self):
        assert templates.pattern_for("broiler", "2nd Newcastle vaccine") == (5,)
        assert templates.pattern_for("layer", "Debeaking") == (6, 7)


# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------

class TestSynthesize:

    def test_deterministic(self, timeline):
        first = templates.synthesize("maize", timeline)
        second = templates.synthesize("maize", timeline)
        assert [a.to_dict() for a in first] == [a.to_dict() for a in second]

    def test_maize_defaults(self, timeline):
        activities = templates.synthesize("maize", timeline)
        assert [a.name for a in activities][:3] == [
            "Site Selection", "Land preparation", "Planting/sowing"]
        planting = activities[2]
        assert planting.column_indices == list(range(9, 17))
        assert planting.primary_color.hex == "#000000"
        assert planting.active_periods[0].color.source == SOURCE_TEMPLATE
        assert all(a.inferred for a in activities)

    def test_clipped_to_timeline(self, timeline):
        short = synthetic_timeline()
        short.columns = short.columns[:10]
        activities = templates.synthesize("maize", short)
        for activity in activities:
            assert all(i < 10 for i in activity.column_indices)


# ---------------------------------------------------------------------------
# Merge / replace
# ---------------------------------------------------------------------------

def _extracted(name, indices, color="#BF9000"):
    periods = [ActivePeriod(i, ResolvedColor(color), 190) for i in indices]
    activity = Activity(name, 5, periods)
    activity.refresh_primary_color()
    return activity


class TestMergeOrReplace:

    def test_nothing_extracted_replaces(self, timeline):
        synthesized = templates.synthesize("rice", timeline)
        calendar = merge_or_replace([], synthesized, timeline, "rice")
        assert calendar.synthesized
        assert calendar.calendar_type == "seasonal"
        assert [a.name for a in calendar.activities] == [a.name for a in synthesized]

    def test_missing_activities_are_added(self, timeline):
        extracted = [_extracted("Land preparation", [0, 1])]
        calendar = merge_or_replace(
            extracted, templates.synthesize("maize", timeline), timeline, "maize")
        names = [a.name for a in calendar.activities]
        assert not calendar.synthesized
        assert len(names) == 9
        assert names[0] == "Land preparation"
        assert names.count("Land preparation") == 1
        assert calendar.activities[0].column_indices == [0, 1]
        assert calendar.activities[1].inferred

    def test_complete_extraction_is_untouched(self, timeline):
        extracted = [_extracted(t.name, [i]) for i, t in enumerate(templates.template_for("maize"))]
        calendar = merge_or_replace(
            extracted, templates.synthesize("maize", timeline), timeline, "maize")
        assert calendar.activities == extracted

    def test_empty_activity_filled_from_template(self, timeline):
        extracted = [_extracted("Harvesting", [23]), Activity("Bird scaring", 6)]
        calendar = merge_or_replace(
            extracted, templates.synthesize("rice", timeline), timeline, "rice")
        bird = next(a for a in calendar.activities if a.name == "Bird scaring")
        assert bird.column_indices == [20, 21, 22, 23]
        assert bird.active_periods[0].color.source == SOURCE_TEMPLATE
        assert bird.primary_color.hex == "#FFA500"

    def test_unmatched_empty_activity_dropped(self, timeline):
        extracted = [_extracted("Harvesting", [23]), Activity("Field monitoring", 6)]
        calendar = merge_or_replace(
            extracted, templates.synthesize("maize", timeline), timeline, "maize")
        assert "Field monitoring" not in [a.name for a in calendar.activities]

    def test_all_dropped_means_replacement(self, timeline):
        extracted = [Activity("Field monitoring", 6)]
        calendar = merge_or_replace(
            extracted, templates.synthesize("maize", timeline), timeline, "maize")
        assert calendar.synthesized
        assert len(calendar.activities) == 9

    def test_cycle_calendar(self, timeline):
        calendar = merge_or_replace(
            [], templates.synthesize("layer", timeline), timeline, "layer")
        assert calendar.calendar_type == "cycle"
        assert calendar.commodity == "layer"

    def test_grid_rows_and_summary(self, timeline):
        extracted = [_extracted(t.name, [i]) for i, t in enumerate(templates.template_for("maize"))]
        calendar = merge_or_replace(
            extracted, templates.synthesize("maize", timeline), timeline, "maize", DEFAULTS)
        rows = calendar.grid_rows()
        assert len(rows) == 9
        assert all(len(row) == 37 for row in rows)
        assert rows[2][2] == "#BF9000"
        assert rows[2][3] is None
        summary = calendar.summary()
        assert summary == {
            "totalActivities": 9,
            "timeSpan": 37,
            "activePeriodsCount": 9,
            "styleColorCount": 9,
            "fallbackColorCount": 0,
        }
        assert calendar.activities[0].primary_color.source == SOURCE_STYLE
