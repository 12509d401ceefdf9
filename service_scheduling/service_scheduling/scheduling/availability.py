"""
Availability Service

Computes the bookable slots of an organization-local day from a read-only
snapshot, considering:
- Weekly schedule and breaks of the organization
- Employee override (optional)
- Existing bookings and concurrent capacity
- Timezones

Pipeline: Timezone Normalizer -> Schedule Resolver -> Segment Builder
-> Slot Generator -> Conflict Detector. Every call is a pure function of
its arguments.
"""

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Union

from .models import (
	Booking,
	DayAvailability,
	EmployeeSchedule,
	OrganizationSnapshot,
	ScheduleValidationError,
)
from .overlap import mark_conflicts, relevant_bookings, validate_capacity
from .schedule import resolve
from .segments import build_segments
from .slots import generate_candidate_slots, validate_slot_parameters
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


def get_day_availability(
	organization: OrganizationSnapshot,
	date_str: Union[str, date],
	duration_minutes: int,
	bookings: Iterable[Booking] = (),
	employee_id: Optional[str] = None,
	employee_schedule: Optional[EmployeeSchedule] = None,
	step_minutes: Optional[int] = None,
	capacity: Optional[int] = None,
	now: Optional[datetime] = None
) -> DayAvailability:
	"""
	Obtiene los slots de un dia para una organizacion (y opcionalmente un empleado).

	Args:
		organization: snapshot de la organizacion (timezone + horario semanal)
		date_str: fecha local YYYY-MM-DD
		duration_minutes: duracion del servicio
		bookings: citas existentes (se filtran por dia y empleado)
		employee_id: empleado consultado; sin empleado se consideran todas las
			citas de la organizacion
		employee_schedule: overrides del empleado
		step_minutes: intervalo entre slots (default: el de la organizacion)
		capacity: citas simultaneas permitidas (default: el de la organizacion)
		now: instante actual; si se indica y la fecha es hoy, se descartan los
			slots disponibles que ya pasaron

	Returns:
		DayAvailability con slots ordenados por hora local

	Raises:
		ScheduleValidationError: fecha, timezone, step, duracion o capacidad invalidos

	Algoritmo:
		1. Validar parametros (antes de procesar cualquier segmento)
		2. Dia de la semana y limites UTC del dia en la timezone de la organizacion
		3. Resolver ventana efectiva (cerrado -> resultado vacio con closed=True)
		4. Construir segmentos restando los breaks
		5. Generar slots candidatos por segmento; una hora local que no existe
		   (salto de DST) se descarta y el fin es inicio + duracion real
		6. Marcar conflictos contra las citas del dia
	"""
	tz_name = organization.timezone
	get_timezone(tz_name)
	target_date = parse_date(date_str)
	date_key = target_date.isoformat()

	if step_minutes is None:
		step_minutes = organization.step_minutes
	if capacity is None:
		capacity = organization.max_concurrent_appointments

	# 1. Validar parametros
	validate_slot_parameters(step_minutes, duration_minutes)
	validate_capacity(capacity)

	# 2. Normalizar fecha
	day_of_week = get_day_of_week(target_date, tz_name)
	day_start, day_end = get_day_bounds(target_date, tz_name)

	# 3. Horario efectivo
	effective = resolve(organization.schedule, day_of_week, employee_schedule)
	if effective is None:
		if day_of_week not in organization.schedule:
			reason = "La organizacion esta cerrada en este dia"
		else:
			reason = "El empleado no esta disponible en este dia"
		return DayAvailability(
			date=date_key,
			timezone=tz_name,
			day_of_week=day_of_week,
			closed=True,
			reason=reason,
		)

	# 4. Segmentos
	segments = build_segments(effective.start, effective.end, effective.breaks)

	# 5. Candidatos con instantes UTC
	candidates = []
	for start_min, _end_min in generate_candidate_slots(segments, step_minutes, duration_minutes):
		try:
			start_utc = local_to_utc(target_date, start_min, tz_name)
		except NonExistentLocalTimeError:
			# La hora se salta al iniciar el horario de verano
			continue
		candidates.append((
			minutes_to_time(start_min),
			start_utc,
			start_utc + timedelta(minutes=duration_minutes),
		))

	# 6. Conflictos
	day_bookings = relevant_bookings(bookings, day_start, day_end, employee_id)
	slots = mark_conflicts(candidates, day_bookings, capacity)

	if now is not None:
		slots = _drop_past_slots(slots, target_date, tz_name, now)

	return DayAvailability(
		date=date_key,
		timezone=tz_name,
		day_of_week=day_of_week,
		closed=not segments,
		reason=None if segments else "Los descansos cubren todo el horario",
		segments=tuple(segments),
		slots=tuple(slots),
	)


def _drop_past_slots(slots, target_date: date, tz_name: str, now: datetime):
	"""
	Si la fecha es hoy, descarta los slots disponibles que ya empezaron.

	Los slots no disponibles se mantienen para no alterar la UI.
	"""
	now_local = utc_to_local(now, tz_name)
	if now_local.date() != target_date:
		return slots

	return [slot for slot in slots if not slot.available or slot.start > now]


def get_range_availability(
	organization: OrganizationSnapshot,
	start_date: Union[str, date],
	end_date: Union[str, date],
	duration_minutes: int,
	bookings: Iterable[Booking] = (),
	employee_id: Optional[str] = None,
	employee_schedule: Optional[EmployeeSchedule] = None,
	step_minutes: Optional[int] = None,
	capacity: Optional[int] = None,
	now: Optional[datetime] = None
) -> Dict[str, DayAvailability]:
	"""
	Obtiene disponibilidad para un rango de fechas (ambos extremos incluidos).

	Returns:
		dict: {"2026-01-15": DayAvailability, ...}
	"""
	start_date = parse_date(start_date)
	end_date = parse_date(end_date)
	if start_date > end_date:
		raise ScheduleValidationError("start_date debe ser menor o igual que end_date")

	bookings = list(bookings)
	result = {}
	current_date = start_date

	while current_date <= end_date:
		result[current_date.isoformat()] = get_day_availability(
			organization,
			current_date,
			duration_minutes,
			bookings=bookings,
			employee_id=employee_id,
			employee_schedule=employee_schedule,
			step_minutes=step_minutes,
			capacity=capacity,
			now=now,
		)
		current_date += timedelta(days=1)

	return result


def check_days_availability(
	organization: OrganizationSnapshot,
	dates: Iterable[Union[str, date]],
	duration_minutes: int,
	bookings: Iterable[Booking] = (),
	employee_id: Optional[str] = None,
	employee_schedule: Optional[EmployeeSchedule] = None,
	step_minutes: Optional[int] = None
) -> Dict[str, bool]:
	"""
	Indica por fecha si existe al menos un slot disponible.

	Returns:
		dict: {"YYYY-MM-DD": bool, ...}
	"""
	bookings = list(bookings)
	result = {}

	for day in dates:
		availability = get_day_availability(
			organization,
			day,
			duration_minutes,
			bookings=bookings,
			employee_id=employee_id,
			employee_schedule=employee_schedule,
			step_minutes=step_minutes,
		)
		result[availability.date] = bool(availability.available_slots)

	return result


def list_available_times(availability: DayAvailability) -> List[str]:
	return [slot.local_time for slot in availability.available_slots]
