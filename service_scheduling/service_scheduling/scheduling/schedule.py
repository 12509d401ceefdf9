"""
Schedule Resolver

Resolves the effective operating window and breaks for a day of week:
- Organization weekly schedule
- Optional employee override (intersection of windows, union of breaks)
- Open-day helpers for calendars and pickers
"""

from typing import List, Optional, Tuple

from .models import (
	BreakPeriod,
	DaySchedule,
	EmployeeOverride,
	EmployeeSchedule,
	ResolvedSchedule,
	WeeklySchedule,
)


def get_organization_day_schedule(
	schedule: WeeklySchedule,
	day_of_week: int
) -> Optional[DaySchedule]:
	"""Horario de la organizacion para el dia, o None si esta cerrada."""
	return schedule.get(day_of_week)


def get_employee_day_override(
	employee_schedule: Optional[EmployeeSchedule],
	day_of_week: int
) -> Optional[EmployeeOverride]:
	"""Override del empleado para el dia, o None si aplica el de la organizacion."""
	if not employee_schedule:
		return None
	return employee_schedule.get(day_of_week)


def _clip_breaks(
	breaks: Tuple[BreakPeriod, ...],
	day_of_week: int,
	start: int,
	end: int
) -> Tuple[BreakPeriod, ...]:
	"""
	Filtra breaks de otros dias y los recorta a la ventana [start, end).

	Breaks totalmente fuera de la ventana se descartan.
	"""
	clipped = []
	for period in breaks:
		if not period.applies_to(day_of_week):
			continue

		clipped_start = max(period.start, start)
		clipped_end = min(period.end, end)
		if clipped_start >= clipped_end:
			continue

		clipped.append(BreakPeriod(
			start=clipped_start,
			end=clipped_end,
			note=period.note,
			day=period.day,
		))
	return tuple(clipped)


def resolve(
	schedule: WeeklySchedule,
	day_of_week: int,
	employee_schedule: Optional[EmployeeSchedule] = None
) -> Optional[ResolvedSchedule]:
	"""
	Calcula la ventana efectiva de un dia.

	Args:
		schedule: horario semanal de la organizacion
		day_of_week: 0=Domingo ... 6=Sabado
		employee_schedule: overrides del empleado (opcional)

	Returns:
		ResolvedSchedule, o None si el dia esta cerrado (para la organizacion
		o para el empleado)

	Algoritmo:
		1. Sin horario de organizacion para el dia -> cerrado
		2. Sin override o con use_organization_schedule -> horario de la organizacion
		3. Override con is_available=False -> cerrado
		4. Si no: ventana = interseccion, breaks = union
		5. Interseccion vacia -> cerrado
	"""
	org_day = get_organization_day_schedule(schedule, day_of_week)
	if org_day is None:
		return None

	start = org_day.start
	end = org_day.end
	breaks = tuple(org_day.breaks)

	override = get_employee_day_override(employee_schedule, day_of_week)
	if override is not None and not override.use_organization_schedule:
		if not override.is_available:
			return None

		start = max(start, override.start)
		end = min(end, override.end)

		# El turno del empleado no coincide con el horario de la organizacion
		if start >= end:
			return None

		breaks = breaks + tuple(override.breaks)

	return ResolvedSchedule(
		day_of_week=day_of_week,
		start=start,
		end=end,
		breaks=_clip_breaks(breaks, day_of_week, start, end),
	)


def get_open_days(schedule: WeeklySchedule) -> List[int]:
	"""Dias (0-6) en que la organizacion abre."""
	return sorted(schedule.keys())


def get_employee_available_days(
	employee_schedule: Optional[EmployeeSchedule],
	schedule: WeeklySchedule
) -> List[int]:
	"""
	Dias en que el empleado puede atender.

	Un dia cuenta solo si la organizacion abre y la ventana efectiva no es vacia.
	"""
	return [
		day for day in get_open_days(schedule)
		if resolve(schedule, day, employee_schedule) is not None
	]


def is_employee_available_on_day(
	employee_schedule: Optional[EmployeeSchedule],
	schedule: WeeklySchedule,
	day_of_week: int
) -> bool:
	return resolve(schedule, day_of_week, employee_schedule) is not None
