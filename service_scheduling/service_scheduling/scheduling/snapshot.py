"""
Snapshot Loader

Gathers a consistent, read-only snapshot from Frappe documents and hands it
to the pure availability engine:
- Service Organization -> OrganizationSnapshot
- Service Employee -> EmployeeSchedule
- Service Booking rows of the day -> Booking list
"""

import frappe
from frappe.utils import get_datetime, get_system_timezone, now_datetime
from datetime import date, datetime
from typing import List, Optional, Tuple, Union
import pytz

from .availability import get_day_availability
from .blocks import find_available_multi_service_blocks
from .models import (
	Booking,
	DayAvailability,
	DEFAULT_CAPACITY,
	DEFAULT_SERVICE_DURATION_MINUTES,
	DEFAULT_STEP_MINUTES,
	EmployeeSchedule,
	OrganizationSnapshot,
	ScheduleValidationError,
	ServiceBlock,
	ServiceRequest,
	build_employee_schedule,
	build_weekly_schedule,
)
from .timezone import get_day_bounds, get_timezone

ORGANIZATION_DOCTYPE = "Service Organization"
EMPLOYEE_DOCTYPE = "Service Employee"
BOOKING_DOCTYPE = "Service Booking"


def _logger():
	return frappe.logger("service_scheduling")


def _system_timezone() -> pytz.tzinfo.BaseTzInfo:
	# Los Datetime de Frappe se guardan sin offset, en la zona horaria del sistema
	return get_timezone(get_system_timezone())


def _to_system_naive(instant: datetime) -> datetime:
	return instant.astimezone(_system_timezone()).replace(tzinfo=None)


def _from_system_naive(value) -> datetime:
	value = get_datetime(value)
	if value.tzinfo is not None:
		return value.astimezone(pytz.utc)
	return _system_timezone().localize(value).astimezone(pytz.utc)


def _now_utc() -> datetime:
	return _system_timezone().localize(now_datetime()).astimezone(pytz.utc)


def load_organization(organization: str) -> OrganizationSnapshot:
	"""
	Construye el snapshot de una Service Organization.

	Raises:
		frappe.DoesNotExistError: si la organizacion no existe
		ScheduleValidationError: si el horario o la timezone son invalidos
	"""
	doc = frappe.get_doc(ORGANIZATION_DOCTYPE, organization)

	# Sin fallback: get_timezone falla si la organizacion no tiene timezone
	get_timezone(doc.timezone)

	schedule = build_weekly_schedule(doc.schedule or [], doc.breaks or [])

	return OrganizationSnapshot(
		organization_id=doc.name,
		timezone=doc.timezone,
		schedule=schedule,
		step_minutes=doc.step_minutes or DEFAULT_STEP_MINUTES,
		max_concurrent_appointments=doc.max_concurrent_appointments or DEFAULT_CAPACITY,
	)


def load_employee_schedule(
	employee: str,
	organization: Optional[str] = None
) -> Tuple[str, Optional[EmployeeSchedule]]:
	"""
	Obtiene los overrides de un Service Employee.

	Returns:
		tuple: (employee_id, EmployeeSchedule o None si no usa horario semanal)

	Raises:
		frappe.DoesNotExistError: si el empleado no existe
		ScheduleValidationError: si el empleado es de otra organizacion
	"""
	doc = frappe.get_doc(EMPLOYEE_DOCTYPE, employee)

	if organization and doc.organization != organization:
		raise ScheduleValidationError(
			f"El empleado {doc.name} no pertenece a la organizacion {organization}"
		)

	if not doc.use_weekly_schedule:
		return doc.name, None

	return doc.name, build_employee_schedule(doc.schedule or [], doc.breaks or [])


def load_bookings(
	organization: str,
	start: datetime,
	end: datetime,
	employee: Optional[str] = None
) -> List[Booking]:
	"""
	Citas activas cuyo inicio cae en [start, end).

	Args:
		organization: nombre de la Service Organization
		start: instante UTC inicial (inclusivo)
		end: instante UTC final (exclusivo)
		employee: si se indica, solo las citas de ese empleado
	"""
	filters = [
		["organization", "=", organization],
		["status", "!=", "Cancelled"],
		["start_datetime", ">=", _to_system_naive(start)],
		["start_datetime", "<", _to_system_naive(end)],
	]
	if employee:
		filters.append(["employee", "=", employee])

	rows = frappe.get_all(
		BOOKING_DOCTYPE,
		filters=filters,
		fields=["name", "organization", "employee", "start_datetime", "end_datetime"],
		order_by="start_datetime asc"
	)

	return [
		Booking(
			start=_from_system_naive(row.start_datetime),
			end=_from_system_naive(row.end_datetime),
			employee_id=row.employee or None,
			organization_id=row.organization,
			name=row.name,
		)
		for row in rows
	]


def get_day_slots(
	organization: str,
	date_str: Union[str, date],
	employee: Optional[str] = None,
	service_duration: Optional[int] = None,
	step_minutes: Optional[int] = None,
	filter_past: bool = True
) -> DayAvailability:
	"""
	Reune el snapshot del dia y ejecuta el motor de disponibilidad.

	Args:
		organization: nombre de la Service Organization
		date_str: fecha local YYYY-MM-DD
		employee: Service Employee (opcional)
		service_duration: duracion en minutos (default 30)
		step_minutes: intervalo entre slots (default: el de la organizacion)
		filter_past: si es hoy, descartar slots disponibles que ya pasaron

	Returns:
		DayAvailability
	"""
	org = load_organization(organization)

	employee_id, employee_schedule = None, None
	if employee:
		employee_id, employee_schedule = load_employee_schedule(employee, org.organization_id)

	day_start, day_end = get_day_bounds(date_str, org.timezone)
	bookings = load_bookings(org.organization_id, day_start, day_end, employee_id)

	now = None
	if filter_past:
		now = _now_utc()

	availability = get_day_availability(
		org,
		date_str,
		service_duration or DEFAULT_SERVICE_DURATION_MINUTES,
		bookings=bookings,
		employee_id=employee_id,
		employee_schedule=employee_schedule,
		step_minutes=step_minutes,
		now=now,
	)

	_logger().debug(
		f"get_day_slots: {org.organization_id} {availability.date} "
		f"(empleado: {employee_id or '-'}, citas: {len(bookings)}, "
		f"slots: {len(availability.slots)}, cerrado: {availability.closed})"
	)

	return availability


def get_service_blocks(
	organization: str,
	date_str: Union[str, date],
	services: List[ServiceRequest],
	filter_past: bool = True
) -> List[ServiceBlock]:
	"""
	Reune el snapshot del dia y busca bloques de servicios encadenados.

	Los candidatos son los empleados nombrados en los servicios, asignados o
	elegibles; las citas son las de toda la organizacion ese dia.
	"""
	org = load_organization(organization)

	names = []
	for service in services:
		for name in (service.employee_id, *service.eligible_employees):
			if name and name not in names:
				names.append(name)
	candidates = [load_employee_schedule(name, org.organization_id) for name in names]

	day_start, day_end = get_day_bounds(date_str, org.timezone)
	bookings = load_bookings(org.organization_id, day_start, day_end)

	blocks = find_available_multi_service_blocks(
		org,
		date_str,
		services,
		candidates,
		bookings=bookings,
		now=_now_utc() if filter_past else None,
	)

	_logger().debug(
		f"get_service_blocks: {org.organization_id} {date_str} "
		f"(servicios: {len(services)}, empleados: {len(candidates)}, "
		f"citas: {len(bookings)}, bloques: {len(blocks)})"
	)

	return blocks
