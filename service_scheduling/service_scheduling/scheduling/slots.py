"""
Slot Generation Service

Walks each workable segment at a fixed step, emitting every start offset
where a full service-duration block fits inside the segment.
"""

from typing import Iterable, List, Tuple

from .models import ScheduleValidationError, Segment


def _validate_positive_minutes(value, field_name: str) -> int:
	if isinstance(value, bool) or not isinstance(value, int):
		raise ScheduleValidationError(f"{field_name} debe ser un entero positivo")
	if value <= 0:
		raise ScheduleValidationError(f"{field_name} debe ser mayor que 0")
	return value


def validate_slot_parameters(step_minutes: int, duration_minutes: int) -> None:
	"""
	Valida step y duracion antes de procesar cualquier segmento.

	Raises:
		ScheduleValidationError: si alguno no es un entero positivo
	"""
	_validate_positive_minutes(step_minutes, "step_minutes")
	_validate_positive_minutes(duration_minutes, "duration_minutes")


def generate_slot_starts(
	segment: Segment,
	step_minutes: int,
	duration_minutes: int
) -> List[int]:
	"""
	Genera los inicios de slot dentro de un segmento.

	Args:
		segment: segmento [start, end)
		step_minutes: intervalo entre inicios
		duration_minutes: duracion del servicio

	Returns:
		list[int]: inicios t = segment.start + k * step con
		t + duration <= segment.end

	Nota:
		El limite es inclusivo: un slot puede terminar exactamente en el fin
		del segmento. Si duration > step los slots candidatos se solapan.
	"""
	validate_slot_parameters(step_minutes, duration_minutes)

	starts = []
	last_start = segment.end - duration_minutes
	current = segment.start

	while current <= last_start:
		starts.append(current)
		current += step_minutes

	return starts


def generate_candidate_slots(
	segments: Iterable[Segment],
	step_minutes: int,
	duration_minutes: int
) -> List[Tuple[int, int]]:
	"""
	Genera slots candidatos (inicio, fin) para todos los segmentos.

	Cada segmento reinicia la generacion desde su propio inicio; la salida
	queda en orden cronologico porque los segmentos ya lo estan.
	"""
	validate_slot_parameters(step_minutes, duration_minutes)

	candidates = []
	for segment in segments:
		for start in generate_slot_starts(segment, step_minutes, duration_minutes):
			candidates.append((start, start + duration_minutes))

	return candidates
