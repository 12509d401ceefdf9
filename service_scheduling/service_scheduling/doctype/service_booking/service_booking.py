# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Service Booking DocType

Cita ya registrada. El motor de disponibilidad solo la lee; las fechas se
guardan sin offset, en la zona horaria del sistema.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import get_datetime


class ServiceBooking(Document):
	def validate(self) -> None:
		self._validate_datetime_consistency()
		self._validate_employee_organization()

	def _validate_datetime_consistency(self) -> None:
		"""Valida que start_datetime < end_datetime."""
		if not self.start_datetime or not self.end_datetime:
			frappe.throw(_("Start Datetime y End Datetime son requeridos"))

		if get_datetime(self.start_datetime) >= get_datetime(self.end_datetime):
			frappe.throw(_("Start Datetime debe ser menor que End Datetime"))

	def _validate_employee_organization(self) -> None:
		if not self.employee:
			return

		organization = frappe.db.get_value("Service Employee", self.employee, "organization")
		if organization != self.organization:
			frappe.throw(_(f"El empleado {self.employee} no pertenece a {self.organization}"))
