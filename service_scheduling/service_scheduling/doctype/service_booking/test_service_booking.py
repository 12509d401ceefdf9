# Copyright (c) 2026, Sebastian Ortiz Valencia and Contributors
# See license.txt

"""
Tests for Service Booking DocType

Tests datetime consistency and the employee/organization check.
"""

import unittest
from unittest.mock import patch

try:
	import frappe
	from frappe.tests.utils import FrappeTestCase
except ImportError:
	raise unittest.SkipTest("frappe is not installed; run under bench")


def make_booking(**kwargs):
	data = {
		"doctype": "Service Booking",
		"organization": "Test Organization",
		"employee": "EMP-0001",
		"status": "Scheduled",
		"start_datetime": "2025-01-24 15:00:00",
		"end_datetime": "2025-01-24 16:00:00",
	}
	data.update(kwargs)
	return frappe.get_doc(data)


class TestServiceBooking(FrappeTestCase):
	"""Tests for Service Booking validation."""

	def setUp(self):
		patcher = patch.object(frappe.db, "get_value", return_value="Test Organization")
		self.get_value = patcher.start()
		self.addCleanup(patcher.stop)

	def test_valid_booking(self):
		make_booking().validate()

		self.get_value.assert_called_once_with("Service Employee", "EMP-0001", "organization")

	def test_start_must_precede_end(self):
		for end in ("2025-01-24 15:00:00", "2025-01-24 14:00:00"):
			with self.assertRaises(frappe.ValidationError):
				make_booking(end_datetime=end).validate()

	def test_missing_datetimes(self):
		with self.assertRaises(frappe.ValidationError):
			make_booking(start_datetime=None).validate()

		with self.assertRaises(frappe.ValidationError):
			make_booking(end_datetime="").validate()

	def test_employee_of_another_organization(self):
		self.get_value.return_value = "Other Organization"

		with self.assertRaises(frappe.ValidationError):
			make_booking().validate()

	def test_booking_without_employee(self):
		make_booking(employee=None).validate()

		self.get_value.assert_not_called()
