"""
Tests for scheduling/overlap.py

Tests overlap detection, employee scoping and capacity management.
"""

import unittest
from datetime import datetime, timedelta
import pytz

from service_scheduling.service_scheduling.scheduling.models import Booking, ScheduleValidationError
from service_scheduling.service_scheduling.scheduling.overlap import (
	check_overlap,
	intervals_overlap,
	mark_conflicts,
	relevant_bookings,
	validate_capacity,
)


def utc(hour, minute=0, day=24):
	return datetime(2025, 1, day, hour, minute, tzinfo=pytz.utc)


class TestOverlap(unittest.TestCase):
	"""Tests for overlap detection functions."""

	def setUp(self):
		"""Two bookings of different employees, 14:00-15:00 and 14:30-15:30 UTC."""
		self.bookings = [
			Booking(start=utc(14), end=utc(15), employee_id="EMP-1", name="BK-1"),
			Booking(start=utc(14, 30), end=utc(15, 30), employee_id="EMP-2", name="BK-2"),
		]

	def test_intervals_overlap_half_open(self):
		"""Touching intervals do not overlap."""
		self.assertTrue(intervals_overlap(0, 60, 30, 90))
		self.assertTrue(intervals_overlap(30, 40, 0, 90))
		self.assertFalse(intervals_overlap(0, 60, 60, 120))
		self.assertFalse(intervals_overlap(60, 120, 0, 60))

	def test_no_overlap(self):
		result = check_overlap(utc(16), utc(17), self.bookings)

		self.assertFalse(result["has_overlap"])
		self.assertFalse(result["capacity_exceeded"])
		self.assertEqual(result["capacity_used"], 0)
		self.assertEqual(result["capacity_available"], 1)
		self.assertEqual(result["overlapping_bookings"], [])

	def test_with_overlap(self):
		result = check_overlap(utc(14, 45), utc(15, 15), self.bookings)

		self.assertTrue(result["has_overlap"])
		self.assertTrue(result["capacity_exceeded"])
		self.assertEqual(result["overlapping_bookings"], ["BK-1", "BK-2"])

	def test_adjacent_booking_is_not_a_conflict(self):
		result = check_overlap(utc(13), utc(14), self.bookings)

		self.assertFalse(result["has_overlap"])

	def test_capacity(self):
		"""With capacity 2, one overlap leaves room and two fill the slot."""
		one = check_overlap(utc(14), utc(14, 30), self.bookings, capacity=2)
		two = check_overlap(utc(14, 30), utc(15), self.bookings, capacity=2)

		self.assertFalse(one["capacity_exceeded"])
		self.assertEqual(one["capacity_available"], 1)
		self.assertTrue(two["capacity_exceeded"])
		self.assertEqual(two["capacity_available"], 0)

	def test_capacity_reached_counts_as_exceeded(self):
		"""With capacity 1 a single overlapping booking already fills the slot."""
		result = check_overlap(utc(14), utc(15), self.bookings[:1], capacity=1)

		self.assertEqual(result["capacity_used"], 1)
		self.assertTrue(result["capacity_exceeded"])
		self.assertEqual(result["capacity_available"], 0)

	def test_unnamed_bookings_reported_by_index(self):
		bookings = [Booking(start=utc(9), end=utc(10)), Booking(start=utc(14), end=utc(15))]

		result = check_overlap(utc(14), utc(15), bookings)

		self.assertEqual(result["overlapping_bookings"], [1])

	def test_invalid_capacity(self):
		for capacity in (0, -1, True, "2"):
			with self.assertRaises(ScheduleValidationError):
				validate_capacity(capacity)

	def test_relevant_bookings_by_employee(self):
		day_start, day_end = utc(5), utc(5, day=25)

		self.assertEqual(
			[b.name for b in relevant_bookings(self.bookings, day_start, day_end, "EMP-2")],
			["BK-2"]
		)
		self.assertEqual(len(relevant_bookings(self.bookings, day_start, day_end)), 2)

	def test_relevant_bookings_by_day(self):
		"""Bookings starting outside [day_start, day_end) are ignored."""
		other_day = Booking(start=utc(14, day=25), end=utc(15, day=25), name="BK-3")
		day_start, day_end = utc(5), utc(5, day=25)

		result = relevant_bookings(self.bookings + [other_day], day_start, day_end)

		self.assertNotIn("BK-3", [b.name for b in result])

	def test_naive_booking_is_rejected(self):
		naive = Booking(start=datetime(2025, 1, 24, 14), end=datetime(2025, 1, 24, 15))

		with self.assertRaises(ScheduleValidationError):
			relevant_bookings([naive], utc(5), utc(5, day=25))

	def test_mark_conflicts_keeps_order(self):
		candidates = [
			("08:00", utc(13), utc(14)),
			("09:00", utc(14), utc(15)),
			("10:00", utc(15), utc(16)),
			("11:00", utc(16), utc(17)),
		]

		slots = mark_conflicts(candidates, self.bookings)

		self.assertEqual([s.local_time for s in slots], ["08:00", "09:00", "10:00", "11:00"])
		self.assertEqual([s.available for s in slots], [True, False, False, True])
		self.assertEqual(slots[1].end - slots[1].start, timedelta(hours=1))


def run_tests():
	"""Run all tests in this module."""
	unittest.main()
