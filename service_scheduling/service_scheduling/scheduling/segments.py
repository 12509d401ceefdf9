"""
Segment Builder

Subtracts break periods from an operating window, producing the disjoint,
chronologically ordered sub-intervals where slots can be generated.
"""

from typing import Iterable, List, Tuple, Union

from .models import BreakPeriod, ScheduleValidationError, Segment


def _as_pair(period: Union[BreakPeriod, Tuple[int, int]]) -> Tuple[int, int]:
	if isinstance(period, BreakPeriod):
		return period.start, period.end
	start, end = period
	return start, end


def build_segments(
	start: int,
	end: int,
	breaks: Iterable[Union[BreakPeriod, Tuple[int, int]]] = ()
) -> List[Segment]:
	"""
	Divide la ventana [start, end) en segmentos sin descansos.

	Args:
		start: inicio de la ventana (minutos desde medianoche)
		end: fin de la ventana
		breaks: breaks sin ordenar, pueden solaparse

	Returns:
		list[Segment]: segmentos disjuntos en orden cronologico; vacia si los
		breaks cubren toda la ventana

	Algoritmo:
		1. Ordenar breaks por inicio
		2. cursor = start
		3. Por cada break: si cursor < break.start, emitir [cursor, break.start);
		   cursor = max(cursor, break.end)
		4. Si cursor < end, emitir [cursor, end)
	"""
	if start >= end:
		raise ScheduleValidationError(
			f"Ventana invalida: el inicio ({start}) debe ser menor que el fin ({end})"
		)

	sorted_breaks = sorted(_as_pair(b) for b in breaks)

	segments = []
	cursor = start

	for break_start, break_end in sorted_breaks:
		# Tiempo libre antes del break (limitado al fin de la ventana)
		segment_end = min(break_start, end)
		if cursor < segment_end:
			segments.append(Segment(start=cursor, end=segment_end))

		# max() fusiona breaks solapados
		cursor = max(cursor, break_end)

	if cursor < end:
		segments.append(Segment(start=cursor, end=end))

	return segments
