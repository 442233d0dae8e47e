"""Tests for the agricultural-type classifier."""

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from calendar_extractor.classifier import (
    calendar_type_for,
    classify,
    content_scores,
    from_content,
    from_filename,
    normalize_commodity,
    supported_commodities,
)
from calendar_extractor.config import DEFAULTS
from calendar_extractor.grid import Grid


class TestCommodityTable(unittest.TestCase):

    def test_supported(self):
        self.assertEqual(
            supported_commodities(),
            ["maize", "rice", "soybean", "sorghum", "tomato", "groundnut", "broiler", "layer"])

    def test_calendar_types(self):
        self.assertEqual(calendar_type_for("maize"), "seasonal")
        self.assertEqual(calendar_type_for("broiler"), "cycle")
        self.assertEqual(calendar_type_for("layer"), "cycle")
        self.assertEqual(calendar_type_for("unknown"), "seasonal")

    def test_normalize(self):
        self.assertEqual(normalize_commodity(" Maize "), "maize")
        self.assertEqual(normalize_commodity("Soya"), "soybean")
        self.assertEqual(normalize_commodity("PEANUT"), "groundnut")
        self.assertIsNone(normalize_commodity("cassava"))
        self.assertIsNone(normalize_commodity(None))


class TestClassify(unittest.TestCase):

    def test_metadata_wins(self):
        grid = Grid.from_rows([["Inoculation"], ["Nodulation"]])
        self.assertEqual(classify({"commodity": "rice"}, grid, "layer_calendar.xlsx"), "rice")
        self.assertEqual(classify({"crop": "Tomato"}, grid), "tomato")

    def test_unknown_metadata_falls_through(self):
        self.assertEqual(classify({"commodity": "cassava"}, None, "broiler_2024.xlsx"), "broiler")

    def test_filename(self):
        self.assertEqual(from_filename("/uploads/Layer_Calendar_Final.xlsx"), "layer")
        self.assertEqual(from_filename("groundnut-cal.xlsx"), "groundnut")
        self.assertIsNone(from_filename("calendar.xlsx"))
        self.assertEqual(classify({"filename": "SORGHUM.xlsx"}), "sorghum")

    def test_filename_prefers_longest_alias(self):
        # "corn" (maize) is contained in "guinea corn" (sorghum)
        self.assertEqual(classify(None, None, "guinea_corn_calendar_2024.xlsx"), "sorghum")
        self.assertEqual(from_filename("Guinea-Corn.xlsx"), "sorghum")
        self.assertEqual(from_filename("corn_calendar.xlsx"), "maize")
        self.assertEqual(from_filename("soy_bean_2024.xlsx"), "soybean")

    def test_content_scoring(self):
        grid = Grid.from_rows([
            ["SOYBEAN PRODUCTION"],
            ["Rhizobium inoculation"],
            ["Nodulation check"],
            ["Pod filling"],
            ["Harvesting"],
        ])
        self.assertEqual(from_content(grid), "soybean")
        self.assertEqual(classify({}, grid, "upload.xlsx"), "soybean")

    def test_legume_vocabulary_without_crop_name(self):
        grid = Grid.from_rows([["Inoculation"], ["Nodulation"], ["Flowering"]])
        self.assertEqual(classify(None, grid, None), "soybean")

    def test_livestock_vocabulary(self):
        grid = Grid.from_rows([["1st Gumboro vaccine"], ["Newcastle vaccine"], ["Brooder management"]])
        self.assertEqual(classify(None, grid), "broiler")
        grid = Grid.from_rows([["Debeaking"], ["Feed layer diet"], ["Egg collection"]])
        self.assertEqual(classify(None, grid), "layer")

    def test_ties_go_to_first_declared(self):
        # one maize keyword, one rice keyword
        grid = Grid.from_rows([["Sowing"], ["Roguing"]])
        scores = content_scores("sowing roguing")
        self.assertEqual(scores["maize"], scores["rice"])
        self.assertEqual(from_content(grid), "maize")

    def test_only_top_rows_are_scored(self):
        rows = [["Stage"]] * 15 + [["Debeaking"]]
        self.assertIsNone(from_content(Grid.from_rows(rows), rows=15))

    def test_default(self):
        self.assertEqual(classify(None, Grid.from_rows([]), None), "maize")
        self.assertEqual(classify(), "maize")
        config = dict(DEFAULTS, default_commodity="rice")
        self.assertEqual(classify(None, None, None, config), "rice")

    def test_total(self):
        for metadata in (None, {}, {"commodity": ""}, {"commodity": "???"}):
            for filename in (None, "", "x.xlsx"):
                self.assertIn(classify(metadata, Grid.from_rows([["?"]]), filename),
                              supported_commodities())


if __name__ == "__main__":
    unittest.main()
