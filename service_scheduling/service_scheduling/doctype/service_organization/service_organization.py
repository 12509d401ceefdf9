# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Service Organization DocType

Negocio que recibe citas: zona horaria, horario semanal (0=Domingo ... 6=Sabado),
descansos y parametros de generacion de slots.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from typing import Dict, Optional, Tuple

from service_scheduling.service_scheduling.scheduling.models import (
	ScheduleValidationError,
	WEEKDAYS,
)
from service_scheduling.service_scheduling.scheduling.timezone import (
	get_timezone,
	minutes_to_time,
	time_to_minutes,
)


def _weekday(value) -> Optional[int]:
	"""Weekday es un Select ("0".."6"); vacío significa todos los días."""
	if value is None or value == "":
		return None
	try:
		return int(value)
	except (TypeError, ValueError):
		return -1


def _is_blank(value) -> bool:
	"""Un campo Time vacío; 00:00 llega como timedelta(0) y sí es un valor."""
	return value is None or value == ""


class ServiceOrganization(Document):
	"""
	Service Organization with schedule validation.

	Validations:
	- timezone required and known (no default timezone)
	- step_minutes > 0, max_concurrent_appointments >= 1
	- One schedule row per weekday, weekday in 0-6
	- Open rows: start_time < end_time
	- Breaks: start_time < end_time and inside the window of their day(s)
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.
		"""
		self._validate_timezone()
		self._validate_slot_settings()
		windows = self._validate_schedule_rows()
		self._validate_breaks(windows)

	def _validate_timezone(self) -> None:
		"""Valida que la zona horaria exista."""
		try:
			get_timezone(self.timezone)
		except ScheduleValidationError as e:
			frappe.throw(_(str(e)))

	def _validate_slot_settings(self) -> None:
		"""Valida step_minutes y max_concurrent_appointments."""
		if self.step_minutes is not None and self.step_minutes <= 0:
			frappe.throw(_("Step Minutes debe ser mayor que 0"))

		if self.max_concurrent_appointments is not None and self.max_concurrent_appointments < 1:
			frappe.throw(_("Max Concurrent Appointments debe ser al menos 1"))

	def _validate_schedule_rows(self) -> Dict[int, Tuple[int, int]]:
		"""
		Valida cada fila del horario semanal.

		Returns:
			dict: {weekday: (inicio, fin)} de los dias abiertos
		"""
		windows: Dict[int, Tuple[int, int]] = {}
		seen = set()

		for idx, row in enumerate(self.schedule or [], 1):
			weekday = _weekday(row.weekday)
			if weekday is None or weekday not in WEEKDAYS:
				frappe.throw(_(f"Fila {idx}: Weekday debe estar entre 0 (Domingo) y 6 (Sábado)"))

			if weekday in seen:
				frappe.throw(_(f"Fila {idx}: el día {weekday} está configurado más de una vez"))
			seen.add(weekday)

			if not row.is_open:
				continue

			if _is_blank(row.start_time) or _is_blank(row.end_time):
				frappe.throw(_(f"Fila {idx}: el día {weekday} está abierto pero falta horario"))

			start, end = self._to_minutes(row.start_time, idx), self._to_minutes(row.end_time, idx)
			if start >= end:
				frappe.throw(
					_(f"Fila {idx}: Start Time ({minutes_to_time(start)}) debe ser menor que End Time ({minutes_to_time(end)})")
				)

			windows[weekday] = (start, end)

		return windows

	def _validate_breaks(self, windows: Dict[int, Tuple[int, int]]) -> None:
		"""
		Valida los descansos.

		Un break con weekday debe caber en el horario de ese día. Un break sin
		weekday aplica a todos los días abiertos y el motor lo recorta a cada
		ventana.
		"""
		for idx, row in enumerate(self.breaks or [], 1):
			start, end = self._to_minutes(row.start_time, idx), self._to_minutes(row.end_time, idx)
			if start >= end:
				frappe.throw(_(f"Descanso {idx}: Start Time debe ser menor que End Time"))

			weekday = _weekday(row.weekday)
			if weekday is None:
				continue

			if weekday not in WEEKDAYS:
				frappe.throw(_(f"Descanso {idx}: Weekday inválido"))

			if weekday in windows:
				day_start, day_end = windows[weekday]
				if start < day_start or end > day_end:
					frappe.throw(
						_(f"Descanso {idx} ({minutes_to_time(start)}-{minutes_to_time(end)}) "
						  f"está fuera del horario del día {weekday} ({minutes_to_time(day_start)}-{minutes_to_time(day_end)})")
					)

	def _to_minutes(self, time_value, idx: int) -> int:
		"""Convierte time/timedelta/string a minutos desde medianoche."""
		try:
			return time_to_minutes(time_value)
		except ScheduleValidationError as e:
			frappe.throw(_(f"Fila {idx}: {e}"))
