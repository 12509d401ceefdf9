"""
Tests for scheduling/availability.py

Tests the full day pipeline: closed days, employee overrides, bookings,
capacity and past-slot filtering.
"""

import unittest
from datetime import datetime, timedelta
import pytz

from service_scheduling.service_scheduling.scheduling.availability import (
	check_days_availability,
	get_day_availability,
	get_range_availability,
	list_available_times,
)
from service_scheduling.service_scheduling.scheduling.models import (
	Booking,
	EmployeeOverride,
	OrganizationSnapshot,
	ScheduleValidationError,
	build_weekly_schedule,
)
from service_scheduling.service_scheduling.scheduling.overlap import intervals_overlap
from service_scheduling.service_scheduling.scheduling.timezone import format_local_time

TIMEZONE = "America/Bogota"
FRIDAY = "2025-01-24"
SATURDAY = "2025-01-25"
SUNDAY = "2025-01-26"


def bogota(day, hour, minute=0):
	"""Instante UTC de una hora local de Bogota (UTC-5)."""
	local = pytz.timezone(TIMEZONE).localize(datetime(2025, 1, day, hour, minute))
	return local.astimezone(pytz.utc)


def make_organization(**kwargs):
	"""Friday 13:00-19:30 with a 15:00-15:30 break; Saturday 09:00-12:00."""
	schedule = build_weekly_schedule([
		{"day": 5, "start": "13:00", "end": "19:30", "breaks": [{"start": "15:00", "end": "15:30"}]},
		{"day": 6, "start": "09:00", "end": "12:00"},
	])
	defaults = {
		"organization_id": "Test Organization",
		"timezone": TIMEZONE,
		"schedule": schedule,
		"step_minutes": 60,
	}
	defaults.update(kwargs)
	return OrganizationSnapshot(**defaults)


class TestAvailability(unittest.TestCase):
	"""Tests for availability calculation functions."""

	def setUp(self):
		self.organization = make_organization()

	def test_afternoon_with_break(self):
		"""Six slots, none inside the break, with UTC instants."""
		availability = get_day_availability(self.organization, FRIDAY, 60)

		self.assertFalse(availability.closed)
		self.assertEqual(availability.day_of_week, 5)
		self.assertEqual(
			list_available_times(availability),
			["13:00", "14:00", "15:30", "16:30", "17:30", "18:30"]
		)
		self.assertEqual(availability.slots[0].start.isoformat(), "2025-01-24T18:00:00+00:00")
		self.assertEqual(availability.slots[-1].end, bogota(24, 19, 30))
		self.assertEqual(len(availability.segments), 2)

	def test_slot_structure(self):
		"""Each slot serializes with time/start/end/available/capacity_remaining."""
		data = get_day_availability(self.organization, FRIDAY, 60).to_dict()

		self.assertEqual(data["total_slots"], 6)
		self.assertEqual(data["timezone"], TIMEZONE)
		slot = data["slots"][0]
		self.assertEqual(slot["time"], "13:00")
		self.assertEqual(slot["start"], "2025-01-24T18:00:00+00:00")
		self.assertEqual(slot["end"], "2025-01-24T19:00:00+00:00")
		self.assertTrue(slot["available"])
		self.assertEqual(slot["capacity_remaining"], 1)

	def test_closed_day(self):
		"""A day with no schedule entry is closed, not an error."""
		availability = get_day_availability(self.organization, SUNDAY, 30)

		self.assertTrue(availability.closed)
		self.assertEqual(availability.day_of_week, 0)
		self.assertEqual(availability.slots, ())
		self.assertEqual(availability.segments, ())
		self.assertIsNotNone(availability.reason)

	def test_breaks_covering_whole_window(self):
		organization = make_organization(schedule=build_weekly_schedule(
			[{"day": 5, "start": "13:00", "end": "14:00"}],
			breaks=[{"start": "12:00", "end": "15:00"}]
		))

		availability = get_day_availability(organization, FRIDAY, 30)

		self.assertTrue(availability.closed)
		self.assertEqual(availability.slots, ())

	def test_day_tagged_breaks(self):
		"""A break tagged for another day does not remove slots."""
		organization = make_organization(schedule=build_weekly_schedule(
			[{"day": 6, "start": "09:00", "end": "12:00"}],
			breaks=[{"start": "10:00", "end": "11:00", "day": 5}]
		))

		availability = get_day_availability(organization, SATURDAY, 60)

		self.assertEqual(list_available_times(availability), ["09:00", "10:00", "11:00"])

	def test_employee_window_is_subset(self):
		"""Every employee slot also appears in the organization result."""
		employee_schedule = {5: EmployeeOverride(start=14 * 60, end=18 * 60)}

		org_times = list_available_times(get_day_availability(self.organization, FRIDAY, 60))
		employee_times = list_available_times(get_day_availability(
			self.organization, FRIDAY, 60, employee_id="EMP-1", employee_schedule=employee_schedule
		))

		self.assertEqual(employee_times, ["14:00", "15:30", "16:30"])
		self.assertTrue(set(employee_times) <= set(org_times))

	def test_employee_not_available(self):
		employee_schedule = {5: EmployeeOverride(is_available=False)}

		availability = get_day_availability(
			self.organization, FRIDAY, 60, employee_schedule=employee_schedule
		)

		self.assertTrue(availability.closed)
		self.assertEqual(availability.reason, "El empleado no esta disponible en este dia")

	def test_idempotent(self):
		bookings = [Booking(start=bogota(24, 14), end=bogota(24, 15), employee_id="EMP-1")]

		first = get_day_availability(self.organization, FRIDAY, 60, bookings=bookings)
		second = get_day_availability(self.organization, FRIDAY, 60, bookings=bookings)

		self.assertEqual(first, second)

	def test_monotonic_conflict(self):
		"""A new booking flips only the slots it overlaps."""
		before = get_day_availability(self.organization, FRIDAY, 60)
		booking = Booking(start=bogota(24, 16), end=bogota(24, 17), employee_id="EMP-1")
		after = get_day_availability(self.organization, FRIDAY, 60, bookings=[booking])

		changed = [
			a.local_time for a, b in zip(before.slots, after.slots)
			if a.available != b.available
		]
		self.assertEqual(changed, ["15:30", "16:30"])
		self.assertEqual(len(before.slots), len(after.slots))

	def test_employee_scope(self):
		"""With an employee only their bookings count; without one all do."""
		booking = Booking(start=bogota(24, 13), end=bogota(24, 14), employee_id="EMP-2")

		org_wide = get_day_availability(self.organization, FRIDAY, 60, bookings=[booking])
		employee = get_day_availability(
			self.organization, FRIDAY, 60, bookings=[booking], employee_id="EMP-1"
		)

		self.assertFalse(org_wide.slots[0].available)
		self.assertTrue(employee.slots[0].available)

	def test_bookings_of_other_days_are_ignored(self):
		booking = Booking(start=bogota(25, 13), end=bogota(25, 14))

		availability = get_day_availability(self.organization, FRIDAY, 60, bookings=[booking])

		self.assertTrue(all(slot.available for slot in availability.slots))

	def test_capacity(self):
		"""With two concurrent appointments allowed, one booking leaves room."""
		organization = make_organization(max_concurrent_appointments=2)
		bookings = [Booking(start=bogota(24, 13), end=bogota(24, 14), employee_id="EMP-1")]

		availability = get_day_availability(organization, FRIDAY, 60, bookings=bookings)
		self.assertTrue(availability.slots[0].available)
		self.assertEqual(availability.slots[0].capacity_remaining, 1)

		bookings.append(Booking(start=bogota(24, 13, 30), end=bogota(24, 14), employee_id="EMP-2"))
		availability = get_day_availability(organization, FRIDAY, 60, bookings=bookings)
		self.assertFalse(availability.slots[0].available)
		self.assertEqual(availability.slots[0].capacity_remaining, 0)

	def test_step_override(self):
		availability = get_day_availability(self.organization, SATURDAY, 60, step_minutes=30)

		self.assertEqual(
			list_available_times(availability),
			["09:00", "09:30", "10:00", "10:30", "11:00"]
		)

	def test_past_slots_are_dropped_today(self):
		now = bogota(24, 15, 45)

		availability = get_day_availability(self.organization, FRIDAY, 60, now=now)

		self.assertEqual(list_available_times(availability), ["16:30", "17:30", "18:30"])

	def test_past_filter_keeps_unavailable_slots(self):
		booking = Booking(start=bogota(24, 13), end=bogota(24, 14))
		now = bogota(24, 15, 45)

		availability = get_day_availability(self.organization, FRIDAY, 60, bookings=[booking], now=now)

		self.assertEqual(availability.slots[0].local_time, "13:00")
		self.assertFalse(availability.slots[0].available)

	def test_past_filter_other_day(self):
		"""now on another local date leaves the day untouched."""
		now = bogota(23, 23, 0)

		availability = get_day_availability(self.organization, FRIDAY, 60, now=now)

		self.assertEqual(len(availability.available_slots), 6)

	def test_invalid_parameters(self):
		for kwargs in ({"duration_minutes": 0}, {"duration_minutes": 30, "step_minutes": -5},
				{"duration_minutes": 30, "capacity": 0}):
			with self.assertRaises(ScheduleValidationError):
				get_day_availability(self.organization, FRIDAY, **kwargs)

	def test_invalid_date_and_timezone(self):
		with self.assertRaises(ScheduleValidationError):
			get_day_availability(self.organization, "2025-13-01", 30)

		with self.assertRaises(ScheduleValidationError):
			get_day_availability(make_organization(timezone="Nowhere/City"), FRIDAY, 30)

	def test_range_availability(self):
		result = get_range_availability(self.organization, FRIDAY, SUNDAY, 60)

		self.assertEqual(list(result.keys()), [FRIDAY, SATURDAY, SUNDAY])
		self.assertTrue(result[SUNDAY].closed)
		self.assertEqual(len(result[SATURDAY].slots), 3)

	def test_range_availability_invalid_range(self):
		with self.assertRaises(ScheduleValidationError):
			get_range_availability(self.organization, SUNDAY, FRIDAY, 60)

	def test_check_days_availability(self):
		"""A fully booked Saturday reports False like a closed Sunday."""
		bookings = [Booking(start=bogota(25, 9), end=bogota(25, 12))]

		result = check_days_availability(
			self.organization, [FRIDAY, SATURDAY, SUNDAY], 60, bookings=bookings
		)

		self.assertEqual(result, {FRIDAY: True, SATURDAY: False, SUNDAY: False})


class TestDaylightSavingAvailability(unittest.TestCase):
	"""Slots on the days New York changes its clocks."""

	def setUp(self):
		self.organization = make_organization(
			timezone="America/New_York",
			schedule=build_weekly_schedule([{"day": 0, "start": "00:00", "end": "06:00"}]),
		)

	def test_spring_forward_drops_the_skipped_hour(self):
		"""02:00 does not exist on 2025-03-09, so there is no 02:00 slot."""
		availability = get_day_availability(self.organization, "2025-03-09", 60)

		self.assertEqual(
			[slot.local_time for slot in availability.slots],
			["00:00", "01:00", "03:00", "04:00", "05:00"]
		)
		for slot in availability.slots:
			self.assertLess(slot.start, slot.end)
			self.assertEqual(slot.end - slot.start, timedelta(minutes=60))
			self.assertEqual(format_local_time(slot.start, "America/New_York"), slot.local_time)

	def test_spring_forward_booking_blocks_the_real_hour(self):
		"""A booking 07:00-08:00Z (03:00 EDT) leaves no available slot over it."""
		booking = Booking(
			start=datetime(2025, 3, 9, 7, 0, tzinfo=pytz.utc),
			end=datetime(2025, 3, 9, 8, 0, tzinfo=pytz.utc),
		)

		availability = get_day_availability(self.organization, "2025-03-09", 60, bookings=[booking])

		self.assertEqual(
			[slot.local_time for slot in availability.slots if not slot.available],
			["03:00"]
		)
		for slot in availability.available_slots:
			self.assertLess(slot.start, slot.end)
			self.assertFalse(intervals_overlap(slot.start, slot.end, booking.start, booking.end))

	def test_fall_back_uses_first_occurrence(self):
		"""On 2025-11-02 the 01:00 slot is the EDT one and still lasts 60 minutes."""
		availability = get_day_availability(self.organization, "2025-11-02", 60)
		slot = availability.slots[1]

		self.assertEqual(slot.local_time, "01:00")
		self.assertEqual(slot.start, datetime(2025, 11, 2, 5, 0, tzinfo=pytz.utc))
		self.assertEqual(slot.end, datetime(2025, 11, 2, 6, 0, tzinfo=pytz.utc))
		self.assertEqual(len(availability.slots), 6)


def run_tests():
	"""Run all tests in this module."""
	unittest.main()
