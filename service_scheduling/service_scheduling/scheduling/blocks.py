"""
Multi-Service Blocks

Finds start times where several services can be booked back to back on the
same organization-local day, each one with its own employee:
- Combined window of the organization and every explicitly assigned employee
- Union of the breaks of the organization and of those employees
- Per-service checks; services without an employee are auto-assigned to the
  least-loaded eligible candidate
"""

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .assignment import Candidate, assign_best_employee_for_slot, employee_fits
from .models import (
	Booking,
	EmployeeSchedule,
	OrganizationSnapshot,
	ScheduleValidationError,
	ServiceBlock,
	ServiceInterval,
	ServiceRequest,
)
from .overlap import intervals_overlap, relevant_bookings
from .schedule import resolve
from .segments import build_segments
from .slots import generate_slot_starts, validate_slot_parameters
from .timezone import (
	NonExistentLocalTimeError,
	get_day_bounds,
	get_day_of_week,
	get_timezone,
	local_to_utc,
	minutes_to_time,
	parse_date,
	utc_to_local,
)


def _validate_services(
	services: List[ServiceRequest],
	schedules: Dict[str, Optional[EmployeeSchedule]]
) -> None:
	if not services:
		raise ScheduleValidationError("Debe indicar al menos un servicio")

	for service in services:
		validate_slot_parameters(1, service.duration)
		if service.employee_id is not None and service.employee_id not in schedules:
			raise ScheduleValidationError(
				f"El empleado {service.employee_id} del servicio {service.service_id} no esta entre los candidatos"
			)


def _combined_window(
	organization: OrganizationSnapshot,
	day_of_week: int,
	services: List[ServiceRequest],
	schedules: Dict[str, Optional[EmployeeSchedule]]
) -> Optional[Tuple[int, int, List[Tuple[int, int]]]]:
	"""
	Ventana comun a la organizacion y a los empleados asignados, con la union
	de sus breaks.

	Returns:
		(inicio, fin, breaks) o None si el dia queda cerrado para el bloque
	"""
	org_day = resolve(organization.schedule, day_of_week)
	if org_day is None:
		return None

	start, end = org_day.start, org_day.end
	breaks = {(period.start, period.end) for period in org_day.breaks}

	for service in services:
		if service.employee_id is None:
			continue

		effective = resolve(organization.schedule, day_of_week, schedules[service.employee_id])
		if effective is None:
			return None

		start = max(start, effective.start)
		end = min(end, effective.end)
		breaks.update((period.start, period.end) for period in effective.breaks)

	if start >= end:
		return None

	return start, end, sorted(breaks)


def _eligible(service: ServiceRequest, candidates: Sequence[Candidate]) -> List[Candidate]:
	if not service.eligible_employees:
		return list(candidates)

	allowed = set(service.eligible_employees)
	return [candidate for candidate in candidates if candidate[0] in allowed]


def _chain_services(
	organization: OrganizationSnapshot,
	target_date: date,
	day_of_week: int,
	block_start: int,
	services: List[ServiceRequest],
	candidates: Sequence[Candidate],
	schedules: Dict[str, Optional[EmployeeSchedule]],
	day_bookings: List[Booking]
) -> Optional[List[ServiceInterval]]:
	"""Intervalos consecutivos desde block_start, o None si alguno no cabe."""
	tz_name = organization.timezone
	intervals = []
	current = block_start

	for service in services:
		end = current + service.duration
		try:
			start_utc = local_to_utc(target_date, current, tz_name)
		except NonExistentLocalTimeError:
			return None
		end_utc = start_utc + timedelta(minutes=service.duration)

		employee_id = service.employee_id
		if employee_id is not None:
			if not employee_fits(
				organization, schedules[employee_id], day_of_week, current, end,
				skip_organization_breaks=True,
			):
				return None

			if any(
				booking.employee_id == employee_id
				and intervals_overlap(start_utc, end_utc, booking.start, booking.end)
				for booking in day_bookings
			):
				return None
		else:
			employee_id = assign_best_employee_for_slot(
				organization,
				target_date,
				current,
				service.duration,
				_eligible(service, candidates),
				bookings=day_bookings,
				skip_organization_breaks=True,
			)
			if employee_id is None:
				return None

		intervals.append(ServiceInterval(
			service_id=service.service_id,
			employee_id=employee_id,
			local_start=minutes_to_time(current),
			local_end=minutes_to_time(end),
			start=start_utc,
			end=end_utc,
		))
		current = end

	return intervals


def find_available_multi_service_blocks(
	organization: OrganizationSnapshot,
	date_str: Union[str, date],
	services: Iterable[ServiceRequest],
	candidates: Sequence[Candidate],
	bookings: Iterable[Booking] = (),
	now: Optional[datetime] = None,
	step_minutes: Optional[int] = None
) -> List[ServiceBlock]:
	"""
	Bloques donde todos los servicios caben uno tras otro, sin huecos.

	Args:
		organization: snapshot de la organizacion
		date_str: fecha local YYYY-MM-DD
		services: servicios en el orden en que se prestan
		candidates: [(employee_id, employee_schedule), ...] con todos los
			empleados que pueden atender (asignados y elegibles)
		bookings: citas existentes de la organizacion
		now: instante actual; si la fecha es hoy se descartan los bloques que
			ya empezaron
		step_minutes: intervalo entre inicios (default: el de la organizacion)

	Returns:
		list[ServiceBlock] en orden cronologico

	Raises:
		ScheduleValidationError: sin servicios, duracion o step invalidos, o un
			empleado asignado que no esta en candidates

	Algoritmo:
		1. Ventana = organizacion intersectada con cada empleado asignado
		2. Segmentos restando la union de breaks
		3. Por cada inicio (paso step, bloque de duracion total) encadenar los
		   servicios: el empleado asignado debe estar libre; sin empleado se
		   auto-asigna el elegible con menos citas
	"""
	tz_name = organization.timezone
	get_timezone(tz_name)
	target_date = parse_date(date_str)
	services = list(services)
	candidates = list(candidates)
	schedules = dict(candidates)

	if step_minutes is None:
		step_minutes = organization.step_minutes

	_validate_services(services, schedules)
	total_duration = sum(service.duration for service in services)
	validate_slot_parameters(step_minutes, total_duration)

	day_of_week = get_day_of_week(target_date, tz_name)
	day_start, day_end = get_day_bounds(target_date, tz_name)
	day_bookings = relevant_bookings(bookings, day_start, day_end)

	window = _combined_window(organization, day_of_week, services, schedules)
	if window is None:
		return []
	start, end, breaks = window

	blocks = []
	for segment in build_segments(start, end, breaks):
		for block_start in generate_slot_starts(segment, step_minutes, total_duration):
			intervals = _chain_services(
				organization,
				target_date,
				day_of_week,
				block_start,
				services,
				candidates,
				schedules,
				day_bookings,
			)
			if intervals is None:
				continue

			blocks.append(ServiceBlock(
				local_time=minutes_to_time(block_start),
				start=intervals[0].start,
				end=intervals[-1].end,
				intervals=tuple(intervals),
			))

	if now is not None and utc_to_local(now, tz_name).date() == target_date:
		blocks = [block for block in blocks if block.start > now]

	return blocks


def check_days_multi_service_availability(
	organization: OrganizationSnapshot,
	dates: Iterable[Union[str, date]],
	services: Iterable[ServiceRequest],
	candidates: Sequence[Candidate],
	bookings: Iterable[Booking] = (),
	now: Optional[datetime] = None,
	step_minutes: Optional[int] = None
) -> Dict[str, bool]:
	"""
	Indica por fecha si existe al menos un bloque para los servicios.

	Returns:
		dict: {"YYYY-MM-DD": bool, ...}
	"""
	services = list(services)
	candidates = list(candidates)
	bookings = list(bookings)
	result = {}

	for day in dates:
		target_date = parse_date(day)
		blocks = find_available_multi_service_blocks(
			organization,
			target_date,
			services,
			candidates,
			bookings=bookings,
			now=now,
			step_minutes=step_minutes,
		)
		result[target_date.isoformat()] = bool(blocks)

	return result
