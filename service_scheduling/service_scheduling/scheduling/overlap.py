"""
Overlap Detection Service

Detects scheduling conflicts between candidate slots and existing bookings,
considering:
- Half-open interval overlap
- Employee scope (one employee, or the whole organization)
- Concurrent capacity
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import Booking, DEFAULT_CAPACITY, ScheduleValidationError, Slot


def intervals_overlap(
	a_start: Any,
	a_end: Any,
	b_start: Any,
	b_end: Any
) -> bool:
	"""[a_start, a_end) y [b_start, b_end) se solapan sii a_start < b_end y b_start < a_end."""
	return a_start < b_end and b_start < a_end


def _ensure_aware(value: datetime, label: str) -> None:
	if value.tzinfo is None or value.utcoffset() is None:
		raise ScheduleValidationError(f"{label} no tiene zona horaria: {value.isoformat()}")


def validate_capacity(capacity: int) -> int:
	if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
		raise ScheduleValidationError("La capacidad debe ser un entero mayor o igual a 1")
	return capacity


def relevant_bookings(
	bookings: Iterable[Booking],
	day_start: datetime,
	day_end: datetime,
	employee_id: Optional[str] = None
) -> List[Booking]:
	"""
	Filtra las citas que aplican al dia consultado.

	Args:
		bookings: citas del snapshot
		day_start: inicio UTC del dia local (inclusivo)
		day_end: fin UTC del dia local (exclusivo)
		employee_id: si se indica, solo las citas de ese empleado; si no,
			todas las citas de la organizacion

	Raises:
		ScheduleValidationError: si alguna cita tiene fechas sin timezone
	"""
	relevant = []
	for booking in bookings:
		_ensure_aware(booking.start, "Inicio de la cita")
		_ensure_aware(booking.end, "Fin de la cita")

		if not (day_start <= booking.start < day_end):
			continue

		if employee_id is not None and booking.employee_id != employee_id:
			continue

		relevant.append(booking)

	return relevant


def check_overlap(
	start: datetime,
	end: datetime,
	bookings: Iterable[Booking],
	capacity: int = DEFAULT_CAPACITY
) -> Dict[str, Any]:
	"""
	Detecta overlaps de [start, end) con citas existentes.

	capacity_exceeded es True cuando el cupo se alcanza (capacity_used >=
	capacity), no solo cuando se supera: con capacity=1 una sola cita ya
	lo marca y el slot deja de estar disponible.

	Returns:
		dict: {
			"has_overlap": bool,
			"overlapping_bookings": [nombres o indices de las citas],
			"capacity_exceeded": bool,
			"capacity_used": int,
			"capacity_available": int
		}
	"""
	validate_capacity(capacity)

	overlapping = []
	for index, booking in enumerate(bookings):
		if intervals_overlap(start, end, booking.start, booking.end):
			overlapping.append(booking.name if booking.name is not None else index)

	capacity_used = len(overlapping)

	return {
		"has_overlap": capacity_used > 0,
		"overlapping_bookings": overlapping,
		"capacity_exceeded": capacity_used >= capacity,
		"capacity_used": capacity_used,
		"capacity_available": max(0, capacity - capacity_used),
	}


def mark_conflicts(
	candidates: Iterable[Tuple[str, datetime, datetime]],
	bookings: Iterable[Booking],
	capacity: int = DEFAULT_CAPACITY
) -> List[Slot]:
	"""
	Marca cada slot candidato como disponible o no.

	Args:
		candidates: (hora local "HH:MM", inicio UTC, fin UTC) en orden
		bookings: citas ya filtradas por dia y empleado
		capacity: citas simultaneas permitidas (1 = cualquier overlap bloquea)

	Returns:
		list[Slot]: mismos candidatos, en el mismo orden
	"""
	validate_capacity(capacity)
	bookings = list(bookings)

	slots = []
	for local_time, start, end in candidates:
		result = check_overlap(start, end, bookings, capacity)
		slots.append(Slot(
			local_time=local_time,
			start=start,
			end=end,
			available=not result["capacity_exceeded"],
			capacity_remaining=result["capacity_available"],
		))

	return slots
