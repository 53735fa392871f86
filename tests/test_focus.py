"""
Tests for focus toggling, share links and the visible-pin selection.
"""

from __future__ import annotations

import unittest

from pinboard.models.dto import FocusSet
from pinboard.services.focus import (
    build_share_link,
    discard,
    focus_only,
    most_recent,
    parse_share_target,
    select_visible,
    toggle,
)

from tests.factories import make_pin

BASE = "https://map.example.com/"


class TestFocusSet(unittest.TestCase):

    def test_toggle_twice_is_empty(self):
        self.assertEqual(toggle(toggle(FocusSet(), "a"), "a"), FocusSet())

    def test_most_recent_is_last_inserted(self):
        self.assertEqual(most_recent(toggle(toggle(FocusSet(), "a"), "b")), "b")
        self.assertIsNone(most_recent(FocusSet()))

    def test_toggle_off_keeps_remaining_order(self):
        focus = FocusSet(ids=("a", "b", "c"))
        self.assertEqual(toggle(focus, "b").ids, ("a", "c"))
        # Original is untouched (frozen)
        self.assertEqual(focus.ids, ("a", "b", "c"))

    def test_focus_only_replaces_the_set(self):
        self.assertEqual(focus_only("c").ids, ("c",))
        self.assertEqual(most_recent(focus_only("c")), "c")

    def test_discard(self):
        focus = FocusSet(ids=("a", "b"))
        self.assertEqual(discard(focus, "a").ids, ("b",))
        self.assertIs(discard(focus, "zzz"), focus)

    def test_membership(self):
        focus = FocusSet(ids=("a",))
        self.assertIn("a", focus)
        self.assertEqual(len(focus), 1)


class TestShareLinks(unittest.TestCase):

    def test_round_trip(self):
        self.assertEqual(parse_share_target(build_share_link(BASE, "p1", "pin"), "pin"), "p1")

    def test_link_shape(self):
        self.assertEqual(build_share_link(BASE, "p1", "pin"), "https://map.example.com/?pin=p1")

    def test_id_is_url_encoded(self):
        link = build_share_link(BASE, "calendar-12 A/B&c", "pin")
        self.assertNotIn(" ", link)
        self.assertEqual(parse_share_target(link, "pin"), "calendar-12 A/B&c")

    def test_existing_query_is_kept_and_old_target_replaced(self):
        link = build_share_link("https://map.example.com/?lang=th&pin=old", "new", "pin")
        self.assertEqual(parse_share_target(link, "pin"), "new")
        self.assertIn("lang=th", link)
        self.assertEqual(link.count("pin="), 1)

    def test_absent_parameter_means_normal_mode(self):
        self.assertIsNone(parse_share_target(BASE, "pin"))
        self.assertIsNone(parse_share_target(BASE + "?pin=", "pin"))
        self.assertIsNone(parse_share_target(None, "pin"))


class TestSelectVisible(unittest.TestCase):

    def setUp(self):
        self.pins = [
            make_pin("a", zone="Pattaya"),
            make_pin("b", zone=" pattaya "),
            make_pin("c", zone="Jomtien"),
            make_pin("d"),
        ]

    def test_no_filters(self):
        visible = select_visible(self.pins)
        self.assertEqual([p.id for p in visible.pins], ["a", "b", "c", "d"])
        self.assertIsNone(visible.share_found)
        self.assertIsNone(visible.share_target)

    def test_zone_filter_is_normalized(self):
        visible = select_visible(self.pins, zone="PATTAYA")
        self.assertEqual([p.id for p in visible.pins], ["a", "b"])

    def test_share_mode_bypasses_zone(self):
        visible = select_visible(self.pins, zone="Pattaya", share_target="c")
        self.assertEqual([p.id for p in visible.pins], ["c"])
        self.assertTrue(visible.share_found)

    def test_share_target_missing(self):
        visible = select_visible(self.pins, share_target="nope")
        self.assertEqual(visible.pins, [])
        self.assertIs(visible.share_found, False)
        self.assertEqual(visible.share_target, "nope")
