"""
Tests for spreading overlapping pins into a readable layout.
"""

from __future__ import annotations

import math
import unittest

from pinboard.models.dto import LabelDirection
from pinboard.services.declutter import displacement, spread
from pinboard.utils.distance import degree_distance

from tests.factories import make_pin

THRESHOLD = 0.0005
OFFSET = 0.0008


def _spread(pins):
    return spread(pins, threshold=THRESHOLD, base_offset=OFFSET)


class TestSpread(unittest.TestCase):

    def test_single_pin_is_untouched(self):
        pin = make_pin("a", 13.75, 100.49, display_name="Villa A")
        [placed] = _spread([pin])
        self.assertEqual((placed.adjusted_lat, placed.adjusted_lng), (13.75, 100.49))
        self.assertEqual(placed.label_direction, LabelDirection.N)
        self.assertEqual(placed.display_name, "Villa A")
        self.assertEqual(placed.coordinate, pin.coordinate)

    def test_second_identical_pin_is_pushed_out(self):
        first, second = _spread([make_pin("a"), make_pin("b")])
        gap = degree_distance(first.adjusted_lat, first.adjusted_lng, second.adjusted_lat, second.adjusted_lng)
        self.assertGreaterEqual(gap, OFFSET - 1e-12)
        self.assertNotEqual(first.label_direction, second.label_direction)
        # Original coordinate stays on the record.
        self.assertEqual(second.coordinate, make_pin("b").coordinate)

    def test_isolated_pins_cycle_label_directions(self):
        pins = [make_pin(str(i), lat=10.0 + i, lng=100.0) for i in range(5)]
        placed = _spread(pins)
        self.assertEqual(
            [p.label_direction.value for p in placed],
            ["N", "E", "S", "W", "N"],
        )
        self.assertTrue(all((p.adjusted_lat, p.adjusted_lng) == (p.lat, p.lng) for p in placed))

    def test_near_but_not_identical_pins_collide(self):
        first, second = _spread([make_pin("a", 13.75, 100.49), make_pin("b", 13.7501, 100.49)])
        self.assertEqual((first.adjusted_lat, first.adjusted_lng), (13.75, 100.49))
        self.assertNotEqual((second.adjusted_lat, second.adjusted_lng), (13.7501, 100.49))

    def test_rings_grow_every_four_collisions(self):
        pins = [make_pin(str(i)) for i in range(6)]
        placed = _spread(pins)
        radii = [degree_distance(p.lat, p.lng, p.adjusted_lat, p.adjusted_lng) for p in placed]
        expected = [0, OFFSET, OFFSET, OFFSET, OFFSET, 2 * OFFSET]
        for got, want in zip(radii, expected):
            self.assertAlmostEqual(got, want, places=12)
        self.assertEqual(
            [p.label_direction.value for p in placed],
            ["N", "E", "S", "W", "N", "E"],
        )

    def test_first_collision_goes_north_west(self):
        _, second = _spread([make_pin("a", 0.0, 0.0), make_pin("b", 0.0, 0.0)])
        # 135 degrees: positive latitude, negative longitude.
        self.assertGreater(second.adjusted_lat, 0)
        self.assertLess(second.adjusted_lng, 0)
        self.assertAlmostEqual(second.adjusted_lat, OFFSET * math.sin(math.radians(135)))

    def test_only_original_positions_are_checked(self):
        a, b = _spread([make_pin("a", 0.0, 0.0), make_pin("b", 0.0, 0.0)])
        # A third pin sitting exactly where "b" was moved to is far enough from
        # the ORIGINAL positions of a and b, so it stays put and overlaps b.
        c = make_pin("c", round(b.adjusted_lat, 10), round(b.adjusted_lng, 10))
        placed = _spread([make_pin("a", 0.0, 0.0), make_pin("b", 0.0, 0.0), c])
        self.assertEqual((placed[2].adjusted_lat, placed[2].adjusted_lng), (c.lat, c.lng))
        self.assertLess(
            degree_distance(placed[1].adjusted_lat, placed[1].adjusted_lng, placed[2].adjusted_lat, placed[2].adjusted_lng),
            THRESHOLD,
        )

    def test_order_preserved_and_deterministic(self):
        pins = [make_pin("x"), make_pin("y", 14.0, 101.0), make_pin("z"), make_pin("w")]
        first = _spread(pins)
        second = _spread(pins)
        self.assertEqual([p.id for p in first], ["x", "y", "z", "w"])
        self.assertEqual(first, second)

    def test_layout_pins_can_be_spread_again(self):
        placed = _spread([make_pin("a"), make_pin("b")])
        self.assertEqual(_spread(placed), placed)

    def test_empty(self):
        self.assertEqual(_spread([]), [])


class TestDisplacement(unittest.TestCase):

    def test_radius_and_angle(self):
        self.assertEqual(displacement(1, 1.0), (1.0, 135))
        self.assertEqual(displacement(4, 1.0), (1.0, 405))
        self.assertEqual(displacement(5, 1.0), (2.0, 495))
