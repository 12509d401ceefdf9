# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Service Employee DocType

Empleado de una Service Organization. Si use_weekly_schedule esta activo,
cada fila del horario puede:
- usar el horario de la organizacion (use_organization_schedule)
- marcar el dia como no disponible (is_available = 0)
- definir un turno propio, que se intersecta con el de la organizacion
"""

import frappe
from frappe import _
from frappe.model.document import Document

from service_scheduling.service_scheduling.scheduling.models import (
	ScheduleValidationError,
	build_employee_schedule,
)


class ServiceEmployee(Document):
	"""
	Service Employee with weekly override validation.

	Validations:
	- organization required
	- With use_weekly_schedule: rows valid (weekday 0-6, one row per day,
	  start_time < end_time for own shifts, breaks start < end)
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.
		"""
		if not self.organization:
			frappe.throw(_("Organization es requerido"))

		if self.use_weekly_schedule:
			self._validate_weekly_schedule()

	def _validate_weekly_schedule(self) -> None:
		"""Reutiliza el builder del motor para validar las filas."""
		try:
			build_employee_schedule(self.schedule or [], self.breaks or [])
		except ScheduleValidationError as e:
			frappe.throw(_(str(e)))
