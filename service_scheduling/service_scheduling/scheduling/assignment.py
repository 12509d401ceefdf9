"""
Employee Assignment

Point-in-time checks built on the same resolver as the slot engine:
- validate_datetime: is a given instant bookable under the schedules?
- assign_best_employee_for_slot: least-loaded free employee for a slot
- get_available_times_for_any_employee: union of times across candidates
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .availability import get_day_availability, list_available_times
from .models import (
	Booking,
	BreakPeriod,
	EmployeeSchedule,
	OrganizationSnapshot,
)
from .overlap import intervals_overlap, relevant_bookings
from .schedule import get_employee_day_override, get_organization_day_schedule, resolve
from .slots import validate_slot_parameters
from .timezone import (
	get_day_bounds,
	get_day_of_week,
	local_to_utc,
	minutes_to_time,
	parse_date,
	time_to_minutes,
	utc_to_local,
)

Candidate = Tuple[str, Optional[EmployeeSchedule]]


def _in_break(start: int, end: int, breaks: Iterable[BreakPeriod], day_of_week: int) -> bool:
	return any(
		period.applies_to(day_of_week) and intervals_overlap(start, end, period.start, period.end)
		for period in breaks
	)


def validate_datetime(
	organization: OrganizationSnapshot,
	instant: datetime,
	duration_minutes: Optional[int] = None,
	employee_schedule: Optional[EmployeeSchedule] = None
) -> Dict[str, Any]:
	"""
	Valida si un instante cae dentro del horario de la organizacion y del empleado.

	Args:
		organization: snapshot de la organizacion
		instant: instante con timezone
		duration_minutes: si se indica, el bloque completo debe caber en la
			ventana y no tocar ningun break
		employee_schedule: overrides del empleado (opcional)

	Returns:
		dict: {"valid": bool, "reason": str | None}
	"""
	if duration_minutes is not None:
		validate_slot_parameters(1, duration_minutes)

	tz_name = organization.timezone
	local = utc_to_local(instant, tz_name)
	day_of_week = get_day_of_week(local.date(), tz_name)
	start = local.hour * 60 + local.minute
	end = start + (duration_minutes or 1)
	time_str = minutes_to_time(start)

	# 1. Horario de la organizacion
	org_day = get_organization_day_schedule(organization.schedule, day_of_week)
	if org_day is None:
		return {"valid": False, "reason": "La organizacion esta cerrada en este dia"}

	if not (org_day.start <= start and end <= org_day.end):
		return {
			"valid": False,
			"reason": f"La organizacion opera de {minutes_to_time(org_day.start)} a {minutes_to_time(org_day.end)}",
		}

	if _in_break(start, end, org_day.breaks, day_of_week):
		return {"valid": False, "reason": f"{time_str} esta en un periodo de descanso de la organizacion"}

	# 2. Horario del empleado
	override = get_employee_day_override(employee_schedule, day_of_week)
	if override is not None and not override.use_organization_schedule:
		if not override.is_available:
			return {"valid": False, "reason": "El empleado no esta disponible en este dia"}

		if not (override.start <= start and end <= override.end):
			return {
				"valid": False,
				"reason": f"El empleado trabaja de {minutes_to_time(override.start)} a {minutes_to_time(override.end)}",
			}

		if _in_break(start, end, override.breaks, day_of_week):
			return {"valid": False, "reason": f"{time_str} esta en un periodo de descanso del empleado"}

	return {"valid": True, "reason": None}


def employee_fits(
	organization: OrganizationSnapshot,
	employee_schedule: Optional[EmployeeSchedule],
	day_of_week: int,
	start: int,
	end: int,
	skip_organization_breaks: bool = False
) -> bool:
	"""
	El bloque [start, end) cabe en la ventana efectiva y no toca breaks.

	Con skip_organization_breaks solo cuentan los breaks propios del empleado
	(los de la organizacion ya se restaron al construir los segmentos).
	"""
	effective = resolve(organization.schedule, day_of_week, employee_schedule)
	if effective is None:
		return False

	# El inicio debe estar dentro de la ventana; el fin puede coincidir con el cierre
	if not (effective.start <= start < effective.end and end <= effective.end):
		return False

	breaks = effective.breaks
	if skip_organization_breaks:
		override = get_employee_day_override(employee_schedule, day_of_week)
		if override is None or override.use_organization_schedule:
			breaks = ()
		else:
			breaks = override.breaks

	return not _in_break(start, end, breaks, day_of_week)


def assign_best_employee_for_slot(
	organization: OrganizationSnapshot,
	date_str: Union[str, date],
	start_time: Any,
	duration_minutes: int,
	candidates: Sequence[Candidate],
	bookings: Iterable[Booking] = (),
	skip_organization_breaks: bool = False
) -> Optional[str]:
	"""
	Asigna el empleado disponible con menos citas ese dia.

	Args:
		organization: snapshot de la organizacion
		date_str: fecha local YYYY-MM-DD
		start_time: hora local de inicio ("HH:MM")
		duration_minutes: duracion del servicio
		candidates: [(employee_id, employee_schedule), ...]
		bookings: citas del dia (de todos los empleados)
		skip_organization_breaks: ignorar los breaks de la organizacion (ya
			restados por quien llama)

	Returns:
		employee_id elegido, o None si ninguno esta libre. Empates se resuelven
		por el orden de candidates.

	Raises:
		ScheduleValidationError: duracion invalida, o start_time no existe ese
			dia en la timezone de la organizacion (salto de DST)
	"""
	validate_slot_parameters(1, duration_minutes)

	tz_name = organization.timezone
	target_date = parse_date(date_str)
	day_of_week = get_day_of_week(target_date, tz_name)
	day_start, day_end = get_day_bounds(target_date, tz_name)
	day_bookings = relevant_bookings(bookings, day_start, day_end)

	start = time_to_minutes(start_time)
	end = start + duration_minutes
	slot_start = local_to_utc(target_date, start, tz_name)
	slot_end = slot_start + timedelta(minutes=duration_minutes)

	best_id = None
	best_load = None

	for employee_id, employee_schedule in candidates:
		if not employee_fits(
			organization, employee_schedule, day_of_week, start, end, skip_organization_breaks
		):
			continue

		own_bookings = [b for b in day_bookings if b.employee_id == employee_id]
		if any(intervals_overlap(slot_start, slot_end, b.start, b.end) for b in own_bookings):
			continue

		load = len(own_bookings)
		if best_load is None or load < best_load:
			best_id, best_load = employee_id, load

	return best_id


def get_available_times_for_any_employee(
	organization: OrganizationSnapshot,
	date_str: Union[str, date],
	duration_minutes: int,
	candidates: Sequence[Candidate],
	bookings: Iterable[Booking] = (),
	step_minutes: Optional[int] = None
) -> List[str]:
	"""
	Horas ("HH:MM") disponibles para al menos uno de los empleados candidatos.

	Returns:
		list[str]: horas unicas ordenadas
	"""
	bookings = list(bookings)
	times = set()

	for employee_id, employee_schedule in candidates:
		availability = get_day_availability(
			organization,
			date_str,
			duration_minutes,
			bookings=bookings,
			employee_id=employee_id,
			employee_schedule=employee_schedule,
			step_minutes=step_minutes,
		)
		times.update(list_available_times(availability))

	return sorted(times)
