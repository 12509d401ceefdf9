"""
Scheduling Models

Immutable structures shared by every stage of the availability engine:
- Weekly schedule of the organization (DaySchedule + BreakPeriod)
- Per-employee overrides (EmployeeOverride)
- Engine outputs (Segment, Slot, DayAvailability)
- Read-only bookings consumed by the conflict detector (Booking)

Wall-clock times are stored as minute offsets from midnight,
organization-local.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Any

# Dias de la semana: 0=Domingo ... 6=Sabado
SUNDAY = 0
SATURDAY = 6
WEEKDAYS = range(SUNDAY, SATURDAY + 1)

DEFAULT_STEP_MINUTES = 30
DEFAULT_SERVICE_DURATION_MINUTES = 30
DEFAULT_CAPACITY = 1


class ScheduleValidationError(Exception):
	"""Entrada invalida para el motor de disponibilidad."""
	pass


@dataclass(frozen=True)
class BreakPeriod:
	"""Periodo de descanso [start, end) en minutos desde medianoche."""

	start: int
	end: int
	note: Optional[str] = None
	# Solo presente cuando el break vive en una lista plana por organizacion
	day: Optional[int] = None

	def applies_to(self, day_of_week: int) -> bool:
		return self.day is None or self.day == day_of_week


@dataclass(frozen=True)
class DaySchedule:
	start: int
	end: int
	breaks: Tuple[BreakPeriod, ...] = ()


@dataclass(frozen=True)
class EmployeeOverride:
	"""
	Horario propio de un empleado para un dia.

	Si use_organization_schedule es True, aplica el horario de la organizacion
	sin cambios. Si is_available es False, el empleado no trabaja ese dia.
	En cualquier otro caso start y end son obligatorios.
	"""

	start: Optional[int] = None
	end: Optional[int] = None
	breaks: Tuple[BreakPeriod, ...] = ()
	use_organization_schedule: bool = False
	is_available: bool = True

	def __post_init__(self):
		if self.use_organization_schedule or not self.is_available:
			return
		if self.start is None or self.end is None:
			raise ScheduleValidationError("Un horario propio del empleado necesita inicio y fin")
		if self.start >= self.end:
			raise ScheduleValidationError("El inicio del horario del empleado debe ser anterior al fin")


WeeklySchedule = Dict[int, DaySchedule]
EmployeeSchedule = Dict[int, EmployeeOverride]


@dataclass(frozen=True)
class ResolvedSchedule:
	"""Ventana efectiva de un dia (organizacion intersectada con empleado)."""

	day_of_week: int
	start: int
	end: int
	breaks: Tuple[BreakPeriod, ...] = ()


@dataclass(frozen=True)
class Segment:
	start: int
	end: int


@dataclass(frozen=True)
class Booking:
	"""Cita existente. start/end deben tener timezone."""

	start: datetime
	end: datetime
	employee_id: Optional[str] = None
	organization_id: Optional[str] = None
	name: Optional[str] = None


@dataclass(frozen=True)
class Slot:
	local_time: str
	start: datetime
	end: datetime
	available: bool
	capacity_remaining: int = 1

	def to_dict(self) -> Dict[str, Any]:
		return {
			"time": self.local_time,
			"start": self.start.isoformat(),
			"end": self.end.isoformat(),
			"available": self.available,
			"capacity_remaining": self.capacity_remaining,
		}


@dataclass(frozen=True)
class OrganizationSnapshot:
	"""Vista de solo lectura de la configuracion de una organizacion."""

	organization_id: str
	timezone: str
	schedule: WeeklySchedule
	step_minutes: int = DEFAULT_STEP_MINUTES
	max_concurrent_appointments: int = DEFAULT_CAPACITY


@dataclass(frozen=True)
class DayAvailability:
	"""
	Resultado del motor para un dia.

	closed=True distingue "cerrado" de "abierto pero sin cupos".
	"""

	date: str
	timezone: str
	day_of_week: int
	closed: bool
	reason: Optional[str] = None
	segments: Tuple[Segment, ...] = ()
	slots: Tuple[Slot, ...] = ()

	@property
	def available_slots(self) -> List[Slot]:
		return [slot for slot in self.slots if slot.available]

	def to_dict(self) -> Dict[str, Any]:
		return {
			"date": self.date,
			"timezone": self.timezone,
			"day_of_week": self.day_of_week,
			"closed": self.closed,
			"reason": self.reason,
			"slots": [slot.to_dict() for slot in self.slots],
			"total_slots": len(self.slots),
		}


@dataclass(frozen=True)
class ServiceRequest:
	"""
	Un servicio dentro de un bloque encadenado.

	Con employee_id el servicio lo atiende ese empleado. Sin el, se
	auto-asigna entre eligible_employees (vacio: cualquier candidato).
	"""

	service_id: str
	duration: int
	employee_id: Optional[str] = None
	eligible_employees: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ServiceInterval:
	service_id: str
	employee_id: str
	local_start: str
	local_end: str
	start: datetime
	end: datetime

	def to_dict(self) -> Dict[str, Any]:
		return {
			"service": self.service_id,
			"employee": self.employee_id,
			"start_time": self.local_start,
			"end_time": self.local_end,
			"start": self.start.isoformat(),
			"end": self.end.isoformat(),
		}


@dataclass(frozen=True)
class ServiceBlock:
	"""Servicios consecutivos sin huecos, cada uno con su empleado."""

	local_time: str
	start: datetime
	end: datetime
	intervals: Tuple[ServiceInterval, ...] = ()

	def to_dict(self) -> Dict[str, Any]:
		return {
			"time": self.local_time,
			"start": self.start.isoformat(),
			"end": self.end.isoformat(),
			"intervals": [interval.to_dict() for interval in self.intervals],
		}


def _row_value(row: Any, *keys: str, default: Any = None) -> Any:
	"""Lee un campo de un dict o de un child row de Frappe."""
	for key in keys:
		if isinstance(row, dict):
			if key in row and row[key] is not None:
				return row[key]
		else:
			value = getattr(row, key, None)
			if value is not None:
				return value
	return default


def build_break(row: Any) -> BreakPeriod:
	"""
	Convierte un break ({start, end, note?, day?}) a BreakPeriod.

	Raises:
		ScheduleValidationError: si start >= end
	"""
	from .timezone import time_to_minutes

	start = time_to_minutes(_row_value(row, "start", "start_time"))
	end = time_to_minutes(_row_value(row, "end", "end_time"))
	if start >= end:
		raise ScheduleValidationError(
			f"Break invalido: el inicio ({start}) debe ser menor que el fin ({end})"
		)

	day = _row_value(row, "day", "weekday")
	if day is not None and day != "":
		day = _validate_day(day)
	else:
		day = None

	return BreakPeriod(start=start, end=end, note=_row_value(row, "note"), day=day)


def _validate_day(value: Any) -> int:
	try:
		day = int(value)
	except (TypeError, ValueError):
		raise ScheduleValidationError(f"Dia invalido: {value!r}")
	if day not in WEEKDAYS:
		raise ScheduleValidationError(
			f"Dia invalido: {day}. Debe estar entre 0 (Domingo) y 6 (Sabado)"
		)
	return day


def _build_window(row: Any, label: str) -> Tuple[int, int]:
	from .timezone import time_to_minutes

	start_value = _row_value(row, "start", "start_time")
	end_value = _row_value(row, "end", "end_time")
	if start_value is None or end_value is None:
		raise ScheduleValidationError(f"{label}: falta horario de inicio o fin")

	start = time_to_minutes(start_value)
	end = time_to_minutes(end_value)
	if start >= end:
		raise ScheduleValidationError(
			f"{label}: el horario de inicio debe ser antes del fin"
		)
	return start, end


def build_weekly_schedule(
	days: List[Any],
	breaks: Optional[List[Any]] = None
) -> WeeklySchedule:
	"""
	Construye un WeeklySchedule a partir de filas por dia.

	Args:
		days: filas {"day"|"weekday", "is_open", "start", "end", "breaks"?}
		breaks: lista plana de breaks de la organizacion; cada break puede
			traer "day" para aplicar solo ese dia

	Returns:
		dict: {day_of_week: DaySchedule} solo con los dias abiertos
	"""
	flat_breaks = [build_break(b) for b in (breaks or [])]
	schedule: WeeklySchedule = {}

	for row in days:
		day = _validate_day(_row_value(row, "day", "weekday"))

		if not _row_value(row, "is_open", "isOpen", default=True):
			continue

		if day in schedule:
			raise ScheduleValidationError(f"Dia {day} configurado mas de una vez")

		start, end = _build_window(row, f"Dia {day}")
		day_breaks = [build_break(b) for b in (_row_value(row, "breaks") or [])]
		day_breaks.extend(b for b in flat_breaks if b.applies_to(day))

		schedule[day] = DaySchedule(start=start, end=end, breaks=tuple(day_breaks))

	return schedule


def build_employee_schedule(
	days: List[Any],
	breaks: Optional[List[Any]] = None
) -> EmployeeSchedule:
	"""
	Construye los overrides por dia de un empleado.

	Filas con use_organization_schedule no necesitan horario; filas con
	is_available en False marcan el dia como no laborable.
	"""
	flat_breaks = [build_break(b) for b in (breaks or [])]
	overrides: EmployeeSchedule = {}

	for row in days:
		day = _validate_day(_row_value(row, "day", "weekday"))
		if day in overrides:
			raise ScheduleValidationError(f"Dia {day} configurado mas de una vez")

		if not _row_value(row, "is_available", "isAvailable", default=True):
			overrides[day] = EmployeeOverride(is_available=False)
			continue

		if _row_value(row, "use_organization_schedule", "useOrganizationSchedule", default=False):
			overrides[day] = EmployeeOverride(use_organization_schedule=True)
			continue

		start, end = _build_window(row, f"Empleado, dia {day}")
		day_breaks = [build_break(b) for b in (_row_value(row, "breaks") or [])]
		day_breaks.extend(b for b in flat_breaks if b.applies_to(day))

		overrides[day] = EmployeeOverride(
			start=start,
			end=end,
			breaks=tuple(day_breaks),
		)

	return overrides


def weekly_schedule_from_opening_hours(
	start: Any,
	end: Any,
	business_days: Optional[List[int]] = None,
	breaks: Optional[List[Any]] = None
) -> WeeklySchedule:
	"""
	Convierte el formato antiguo (una sola franja + dias habiles) a WeeklySchedule.

	Sin business_days se asume lunes a viernes.
	"""
	if business_days is None:
		business_days = [1, 2, 3, 4, 5]

	rows = [
		{"day": day, "is_open": True, "start": start, "end": end}
		for day in business_days
	]
	return build_weekly_schedule(rows, breaks)
