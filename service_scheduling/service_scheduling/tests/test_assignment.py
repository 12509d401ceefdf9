"""
Tests for scheduling/assignment.py

Tests datetime validation and automatic employee assignment.
"""

import unittest
from datetime import datetime
import pytz

from service_scheduling.service_scheduling.scheduling.assignment import (
	assign_best_employee_for_slot,
	get_available_times_for_any_employee,
	validate_datetime,
)
from service_scheduling.service_scheduling.scheduling.models import (
	BreakPeriod,
	Booking,
	EmployeeOverride,
	OrganizationSnapshot,
	ScheduleValidationError,
	build_weekly_schedule,
)

TIMEZONE = "America/Bogota"
FRIDAY = "2025-01-24"


def bogota(hour, minute=0, day=24):
	local = pytz.timezone(TIMEZONE).localize(datetime(2025, 1, day, hour, minute))
	return local.astimezone(pytz.utc)


class TestValidateDatetime(unittest.TestCase):
	"""Tests for validate_datetime."""

	def setUp(self):
		self.organization = OrganizationSnapshot(
			organization_id="Test Organization",
			timezone=TIMEZONE,
			schedule=build_weekly_schedule(
				[{"day": 5, "start": "08:00", "end": "18:00"}],
				breaks=[{"start": "12:00", "end": "13:00"}]
			),
		)

	def test_valid(self):
		self.assertEqual(
			validate_datetime(self.organization, bogota(9)),
			{"valid": True, "reason": None}
		)

	def test_closed_day(self):
		result = validate_datetime(self.organization, bogota(9, day=26))

		self.assertFalse(result["valid"])
		self.assertEqual(result["reason"], "La organizacion esta cerrada en este dia")

	def test_outside_hours(self):
		result = validate_datetime(self.organization, bogota(7, 30))

		self.assertFalse(result["valid"])
		self.assertEqual(result["reason"], "La organizacion opera de 08:00 a 18:00")

	def test_closing_time_is_not_bookable(self):
		self.assertFalse(validate_datetime(self.organization, bogota(18))["valid"])

	def test_duration_must_fit(self):
		self.assertTrue(validate_datetime(self.organization, bogota(17), duration_minutes=60)["valid"])
		self.assertFalse(validate_datetime(self.organization, bogota(17, 30), duration_minutes=60)["valid"])

	def test_in_break(self):
		result = validate_datetime(self.organization, bogota(12, 15))

		self.assertFalse(result["valid"])
		self.assertIn("descanso", result["reason"])

	def test_block_ending_at_break_is_valid(self):
		self.assertTrue(validate_datetime(self.organization, bogota(11), duration_minutes=60)["valid"])

	def test_employee_checks(self):
		unavailable = {5: EmployeeOverride(is_available=False)}
		shift = {5: EmployeeOverride(start=600, end=960, breaks=(BreakPeriod(840, 870),))}

		self.assertEqual(
			validate_datetime(self.organization, bogota(9), employee_schedule=unavailable)["reason"],
			"El empleado no esta disponible en este dia"
		)
		self.assertEqual(
			validate_datetime(self.organization, bogota(9), employee_schedule=shift)["reason"],
			"El empleado trabaja de 10:00 a 16:00"
		)
		self.assertIn(
			"descanso del empleado",
			validate_datetime(self.organization, bogota(14, 10), employee_schedule=shift)["reason"]
		)
		self.assertTrue(validate_datetime(self.organization, bogota(10), employee_schedule=shift)["valid"])

	def test_naive_instant(self):
		with self.assertRaises(ScheduleValidationError):
			validate_datetime(self.organization, datetime(2025, 1, 24, 9))


class TestAssignment(unittest.TestCase):
	"""Tests for employee assignment."""

	def setUp(self):
		self.organization = OrganizationSnapshot(
			organization_id="Test Organization",
			timezone=TIMEZONE,
			schedule=build_weekly_schedule([{"day": 5, "start": "08:00", "end": "12:00"}]),
			step_minutes=60,
		)
		self.candidates = [
			("EMP-1", None),
			("EMP-2", None),
			("EMP-3", {5: EmployeeOverride(start=600, end=720)}),
		]

	def test_least_loaded_employee(self):
		bookings = [
			Booking(start=bogota(8), end=bogota(9), employee_id="EMP-1"),
			Booking(start=bogota(11), end=bogota(12), employee_id="EMP-1"),
			Booking(start=bogota(8), end=bogota(9), employee_id="EMP-2"),
		]

		self.assertEqual(
			assign_best_employee_for_slot(self.organization, FRIDAY, "09:00", 60, self.candidates[:2], bookings),
			"EMP-2"
		)

	def test_tie_keeps_candidate_order(self):
		self.assertEqual(
			assign_best_employee_for_slot(self.organization, FRIDAY, "10:00", 60, self.candidates),
			"EMP-1"
		)

	def test_busy_or_off_shift_employees_are_skipped(self):
		bookings = [
			Booking(start=bogota(8), end=bogota(9), employee_id="EMP-1"),
			Booking(start=bogota(8, 30), end=bogota(9), employee_id="EMP-2"),
		]

		# EMP-3 starts at 10:00
		self.assertIsNone(
			assign_best_employee_for_slot(self.organization, FRIDAY, "08:00", 60, self.candidates, bookings)
		)

	def test_outside_hours(self):
		self.assertIsNone(
			assign_best_employee_for_slot(self.organization, FRIDAY, "11:30", 60, self.candidates)
		)
		self.assertIsNone(
			assign_best_employee_for_slot(self.organization, "2025-01-26", "09:00", 60, self.candidates)
		)

	def test_skip_organization_breaks(self):
		"""Organization breaks can be skipped; the employee's own breaks still count."""
		organization = OrganizationSnapshot(
			organization_id="Test Organization",
			timezone=TIMEZONE,
			schedule=build_weekly_schedule(
				[{"day": 5, "start": "08:00", "end": "12:00"}],
				breaks=[{"start": "10:00", "end": "11:00"}]
			),
		)
		candidates = [("EMP-4", {5: EmployeeOverride(start=480, end=720, breaks=(BreakPeriod(540, 570),))})]

		self.assertIsNone(assign_best_employee_for_slot(organization, FRIDAY, "10:00", 60, candidates))
		self.assertEqual(
			assign_best_employee_for_slot(
				organization, FRIDAY, "10:00", 60, candidates, skip_organization_breaks=True
			),
			"EMP-4"
		)
		self.assertIsNone(
			assign_best_employee_for_slot(
				organization, FRIDAY, "09:00", 60, candidates, skip_organization_breaks=True
			)
		)

	def test_skipped_local_time(self):
		"""02:00 does not exist in New York on 2025-03-09."""
		organization = OrganizationSnapshot(
			organization_id="Test Organization",
			timezone="America/New_York",
			schedule=build_weekly_schedule([{"day": 0, "start": "00:00", "end": "06:00"}]),
		)

		with self.assertRaises(ScheduleValidationError):
			assign_best_employee_for_slot(organization, "2025-03-09", "02:00", 60, [("EMP-1", None)])

		self.assertEqual(
			assign_best_employee_for_slot(organization, "2025-03-09", "03:00", 60, [("EMP-1", None)]),
			"EMP-1"
		)

	def test_times_for_any_employee(self):
		bookings = [
			Booking(start=bogota(8), end=bogota(9), employee_id="EMP-1"),
			Booking(start=bogota(10), end=bogota(11), employee_id="EMP-1"),
			Booking(start=bogota(10), end=bogota(11), employee_id="EMP-3"),
		]
		candidates = [self.candidates[0], self.candidates[2]]

		self.assertEqual(
			get_available_times_for_any_employee(self.organization, FRIDAY, 60, candidates, bookings),
			["09:00", "11:00"]
		)

	def test_times_for_any_employee_without_candidates(self):
		self.assertEqual(get_available_times_for_any_employee(self.organization, FRIDAY, 60, []), [])


def run_tests():
	"""Run all tests in this module."""
	unittest.main()
