"""
Tests for coordinate extraction from pasted text and links.
"""

from __future__ import annotations

import unittest

from pinboard.core.errors import InvalidFormatError
from pinboard.utils.coordinates import PATTERNS, extract, extract_lines


class TestExtractDirectPair(unittest.TestCase):

    def test_pair_with_space(self):
        coord = extract("13.7500, 100.4913")
        self.assertEqual((coord.lat, coord.lng), (13.75, 100.4913))

    def test_pair_without_space_and_padding(self):
        coord = extract("  13.7563,100.5018  ")
        self.assertEqual((coord.lat, coord.lng), (13.7563, 100.5018))

    def test_negative_values(self):
        coord = extract("-33.8688, 151.2093")
        self.assertEqual((coord.lat, coord.lng), (-33.8688, 151.2093))

    def test_out_of_range_pair_fails(self):
        with self.assertRaises(InvalidFormatError):
            extract("200, 100")

    def test_out_of_range_longitude_fails(self):
        with self.assertRaises(InvalidFormatError):
            extract("13.75, 181.0")


class TestExtractLinks(unittest.TestCase):

    def test_place_link_with_at_notation(self):
        coord = extract("https://www.google.com/maps/place/X/@13.75,100.49,17z")
        self.assertEqual((coord.lat, coord.lng), (13.75, 100.49))

    def test_query_parameter(self):
        coord = extract("https://www.google.com/maps?q=13.7563,100.5018")
        self.assertEqual((coord.lat, coord.lng), (13.7563, 100.5018))

    def test_url_encoded_query_parameter(self):
        coord = extract("https://www.google.com/maps/search/?api=1&q=13.7563%2C100.5018")
        self.assertEqual((coord.lat, coord.lng), (13.7563, 100.5018))

    def test_maps_path_segment(self):
        coord = extract("https://www.google.com/maps/@12.9236,100.8825,15z")
        self.assertEqual((coord.lat, coord.lng), (12.9236, 100.8825))

    def test_at_notation_wins_over_query(self):
        coord = extract("https://www.google.com/maps/place/Y/@1.5,2.5?q=3.5,4.5")
        self.assertEqual((coord.lat, coord.lng), (1.5, 2.5))

    def test_matched_link_with_impossible_latitude_fails(self):
        with self.assertRaises(InvalidFormatError):
            extract("https://www.google.com/maps/place/Z/@200.5,100.0,17z")


class TestExtractFailures(unittest.TestCase):

    def test_plain_text(self):
        with self.assertRaises(InvalidFormatError):
            extract("not a coordinate")

    def test_short_link(self):
        with self.assertRaises(InvalidFormatError):
            extract("https://goo.gl/maps/AbCdEf123")

    def test_empty_and_none(self):
        for text in ("", "   ", None):
            with self.assertRaises(InvalidFormatError, msg=repr(text)):
                extract(text)

    def test_error_keeps_the_offending_input(self):
        with self.assertRaises(InvalidFormatError) as ctx:
            extract("  hello  ")
        self.assertEqual(ctx.exception.source, "hello")
        self.assertEqual(ctx.exception.code, "INVALID_FORMAT")

    def test_pattern_order(self):
        self.assertEqual([p.name for p in PATTERNS], ["direct", "at", "query", "maps_path"])


class TestExtractLines(unittest.TestCase):

    def test_each_line_succeeds_or_fails_on_its_own(self):
        text = "13.75, 100.49\n\n  bad line \n https://www.google.com/maps/@1.0,2.0,3z \n"
        results = extract_lines(text)

        self.assertEqual([r.line_number for r in results], [1, 2, 3])
        self.assertEqual([r.ok for r in results], [True, False, True])
        self.assertEqual(results[1].text, "bad line")
        self.assertIsInstance(results[1].error, InvalidFormatError)
        self.assertIsNone(results[1].coordinate)
        self.assertEqual((results[2].coordinate.lat, results[2].coordinate.lng), (1.0, 2.0))

    def test_blank_input_yields_nothing(self):
        self.assertEqual(extract_lines(" \n\n"), [])
        self.assertEqual(extract_lines(None), [])

    def test_windows_line_endings(self):
        results = extract_lines("1.5, 2.5\r\n3.5, 4.5")
        self.assertEqual(len(results), 2)
        self.assertTrue(all(r.ok for r in results))
