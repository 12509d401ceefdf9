"""
Timezone Normalizer

Anchors organization-local calendar dates and wall-clock times to an
explicit IANA timezone (pytz):
- Day of week of a YYYY-MM-DD date
- UTC bounds of the organization-local day
- Wall-clock <-> UTC conversions
- "HH:MM" <-> minutes since midnight
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Tuple, Union

import pytz

from .models import ScheduleValidationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

MINUTES_PER_DAY = 24 * 60


class NonExistentLocalTimeError(ScheduleValidationError):
	"""Hora local que el reloj salta al iniciar el horario de verano."""
	pass


def get_timezone(tz_name: str) -> pytz.tzinfo.BaseTzInfo:
	"""
	Obtiene la zona horaria IANA.

	No hay zona horaria por defecto: una organizacion sin timezone es un
	error de configuracion.

	Raises:
		ScheduleValidationError: si tz_name esta vacio o no existe
	"""
	if not tz_name:
		raise ScheduleValidationError("La organizacion no tiene zona horaria configurada")

	try:
		return pytz.timezone(str(tz_name).strip())
	except pytz.UnknownTimeZoneError:
		raise ScheduleValidationError(f"Zona horaria desconocida: {tz_name}")


def parse_date(date_str: Union[str, date]) -> date:
	"""
	Valida y convierte una fecha "YYYY-MM-DD" (sin hora ni offset).

	Raises:
		ScheduleValidationError: si el formato o la fecha son invalidos
	"""
	if isinstance(date_str, datetime):
		raise ScheduleValidationError("Se esperaba una fecha sin hora (YYYY-MM-DD)")
	if isinstance(date_str, date):
		return date_str

	value = str(date_str or "").strip()
	if not DATE_PATTERN.match(value):
		raise ScheduleValidationError(f"Formato de fecha invalido: {date_str!r}. Use YYYY-MM-DD")

	try:
		return date.fromisoformat(value)
	except ValueError:
		raise ScheduleValidationError(f"Fecha invalida: {value}")


def get_day_of_week(date_str: Union[str, date], tz_name: str) -> int:
	"""
	Dia de la semana de la fecha en la zona horaria de la organizacion.

	Returns:
		int: 0=Domingo ... 6=Sabado
	"""
	get_timezone(tz_name)
	target_date = parse_date(date_str)
	# isoweekday: Lunes=1 ... Domingo=7
	return target_date.isoweekday() % 7


def localize(target_date: date, minutes: int, tz: pytz.tzinfo.BaseTzInfo) -> datetime:
	"""
	Ancla "fecha + minutos" a la zona horaria dada.

	Una hora repetida (fin del horario de verano) se toma en su primera
	ocurrencia.

	Raises:
		NonExistentLocalTimeError: la hora cae en el salto del inicio del
			horario de verano
	"""
	naive = datetime.combine(target_date, time.min) + timedelta(minutes=minutes)
	try:
		return tz.localize(naive, is_dst=None)
	except pytz.AmbiguousTimeError:
		return tz.localize(naive, is_dst=True)
	except pytz.NonExistentTimeError:
		raise NonExistentLocalTimeError(
			f"La hora {naive.strftime('%Y-%m-%d %H:%M')} no existe en {tz.zone}"
		)


def _localize_midnight(target_date: date, tz: pytz.tzinfo.BaseTzInfo) -> datetime:
	"""Primer instante del dia local, aunque la medianoche caiga en un salto."""
	try:
		return localize(target_date, 0, tz)
	except NonExistentLocalTimeError:
		naive = datetime.combine(target_date, time.min)
		return tz.normalize(tz.localize(naive, is_dst=False))


def get_day_bounds(date_str: Union[str, date], tz_name: str) -> Tuple[datetime, datetime]:
	"""
	Limites UTC del dia local: [00:00, 24:00).

	Returns:
		tuple: (inicio_utc, fin_utc) con fin exclusivo
	"""
	tz = get_timezone(tz_name)
	target_date = parse_date(date_str)

	start = _localize_midnight(target_date, tz)
	end = _localize_midnight(target_date + timedelta(days=1), tz)

	return start.astimezone(pytz.utc), end.astimezone(pytz.utc)


def local_to_utc(date_str: Union[str, date], minutes: int, tz_name: str) -> datetime:
	"""
	Convierte "fecha + HH:MM" local de la organizacion a un instante UTC.

	Args:
		date_str: fecha local YYYY-MM-DD
		minutes: minutos desde medianoche local
		tz_name: zona horaria IANA

	Returns:
		datetime con tzinfo UTC

	Raises:
		NonExistentLocalTimeError: si la hora local no existe ese dia (DST)
	"""
	tz = get_timezone(tz_name)
	target_date = parse_date(date_str)
	return localize(target_date, minutes, tz).astimezone(pytz.utc)


def utc_to_local(instant: datetime, tz_name: str) -> datetime:
	"""
	Reinterpreta un instante en la zona horaria de la organizacion.

	Raises:
		ScheduleValidationError: si el instante no tiene timezone
	"""
	if instant.tzinfo is None or instant.utcoffset() is None:
		raise ScheduleValidationError(
			f"El instante {instant.isoformat()} no tiene zona horaria"
		)
	return instant.astimezone(get_timezone(tz_name))


def format_local_time(instant: datetime, tz_name: str) -> str:
	return utc_to_local(instant, tz_name).strftime("%H:%M")


def time_to_minutes(time_value: Union[str, time, timedelta, int]) -> int:
	"""
	Convierte una hora a minutos desde medianoche.

	Args:
		time_value: "HH:MM[:SS]", time, timedelta desde medianoche (campos
			Time de Frappe) o minutos ya calculados

	Raises:
		ScheduleValidationError: si el formato no es valido
	"""
	if isinstance(time_value, bool):
		raise ScheduleValidationError(f"Hora invalida: {time_value!r}")

	if isinstance(time_value, int):
		minutes = time_value
	elif isinstance(time_value, time):
		minutes = time_value.hour * 60 + time_value.minute
	elif isinstance(time_value, timedelta):
		minutes = int(time_value.total_seconds()) // 60
	elif isinstance(time_value, str):
		match = TIME_PATTERN.match(time_value.strip())
		if not match:
			raise ScheduleValidationError(f"Formato de hora invalido: {time_value!r}. Use HH:MM")
		hours, mins = int(match.group(1)), int(match.group(2))
		if hours > 24 or mins > 59 or (hours == 24 and mins != 0):
			raise ScheduleValidationError(f"Hora fuera de rango: {time_value}")
		minutes = hours * 60 + mins
	else:
		raise ScheduleValidationError(f"No se puede convertir {type(time_value)} a hora")

	if minutes < 0 or minutes > MINUTES_PER_DAY:
		raise ScheduleValidationError(f"Hora fuera de rango: {time_value!r}")

	return minutes


def minutes_to_time(minutes: int) -> str:
	"""Convierte minutos desde medianoche a "HH:MM"."""
	hours, mins = divmod(minutes, 60)
	return f"{hours:02d}:{mins:02d}"
