"""
Schedule API Endpoints

Whitelisted functions for frontend/external use.
All endpoints allow guest access with security protections:
- Rate limiting by IP address (api/security.py)
- Input validation
"""

import frappe
from frappe import _
from typing import Any, Dict, List, Optional

from service_scheduling.service_scheduling.scheduling.assignment import (
	get_available_times_for_any_employee,
	validate_datetime as validate_schedule_datetime,
)
from service_scheduling.service_scheduling.scheduling.availability import (
	get_day_availability,
	list_available_times,
)
from service_scheduling.service_scheduling.scheduling.models import (
	DEFAULT_SERVICE_DURATION_MINUTES,
	ScheduleValidationError,
	ServiceRequest,
)
from service_scheduling.service_scheduling.scheduling.schedule import (
	get_employee_available_days,
	get_open_days as get_organization_open_days,
)
from service_scheduling.service_scheduling.scheduling.snapshot import (
	EMPLOYEE_DOCTYPE,
	ORGANIZATION_DOCTYPE,
	get_day_slots,
	get_service_blocks,
	load_bookings,
	load_employee_schedule,
	load_organization,
)
from service_scheduling.service_scheduling.scheduling.timezone import get_day_bounds

from service_scheduling.api.security import check_rate_limit
from service_scheduling.api.shared import (
	validate_batch_requests,
	validate_date_string,
	validate_datetime_string,
	validate_docname,
	validate_minutes,
	validate_service_requests,
)


def _ensure_exists(doctype: str, name: str) -> None:
	if not frappe.db.exists(doctype, name):
		frappe.throw(_(f"{doctype} '{name}' no existe"), frappe.DoesNotExistError)


@frappe.whitelist(allow_guest=True, methods=["GET", "POST"])
def get_available_slots(
	organization: str,
	date: str,
	employee: Optional[str] = None,
	service_duration: Optional[int] = None,
	step_minutes: Optional[int] = None
) -> Dict[str, Any]:
	"""
	Obtiene los slots de un dia para una organizacion (y opcionalmente un empleado).

	Rate limited: 30 requests per minute per IP.

	Args:
		organization: nombre de la Service Organization
		date: fecha local de la organizacion (YYYY-MM-DD)
		employee: Service Employee (opcional). Sin empleado se consideran las
			citas de toda la organizacion
		service_duration: duracion del servicio en minutos (default 30)
		step_minutes: intervalo entre slots (default: el de la organizacion)

	Returns:
		dict: {
			"date": "2025-01-24",
			"timezone": "America/Bogota",
			"day_of_week": 5,
			"closed": False,
			"reason": None,
			"slots": [
				{"time": "08:00", "start": "2025-01-24T13:00:00+00:00",
				 "end": "2025-01-24T13:30:00+00:00", "available": True,
				 "capacity_remaining": 1},
				...
			],
			"total_slots": 24
		}

	Example:
		```javascript
		frappe.call({
			method: "service_scheduling.api.schedule.get_available_slots",
			args: {organization: "Bastidas Barber Studio", date: "2025-01-24", service_duration: 60},
			callback: (r) => console.log(r.message.slots)
		});
		```
	"""
	check_rate_limit("get_available_slots", limit=30, seconds=60)

	organization = validate_docname(organization, "organization")
	date = validate_date_string(date, "date")
	employee = validate_docname(employee, "employee") if employee else None
	service_duration = validate_minutes(service_duration, "service_duration")
	step_minutes = validate_minutes(step_minutes, "step_minutes")

	_ensure_exists(ORGANIZATION_DOCTYPE, organization)
	if employee:
		_ensure_exists(EMPLOYEE_DOCTYPE, employee)

	try:
		availability = get_day_slots(
			organization,
			date,
			employee=employee,
			service_duration=service_duration,
			step_minutes=step_minutes,
		)
	except ScheduleValidationError as e:
		frappe.throw(str(e), frappe.ValidationError)

	return availability.to_dict()


@frappe.whitelist(allow_guest=True, methods=["GET", "POST"])
def validate_datetime(
	organization: str,
	datetime_str: str,
	employee: Optional[str] = None,
	service_duration: Optional[int] = None
) -> Dict[str, Any]:
	"""
	Valida si un instante cae dentro del horario (sin revisar citas).

	Rate limited: 20 requests per minute per IP.

	Args:
		organization: nombre de la Service Organization
		datetime_str: instante ISO-8601 con offset (ej: 2025-01-24T13:00:00Z)
		employee: Service Employee (opcional)
		service_duration: si se indica, el bloque completo debe caber

	Returns:
		dict: {"valid": bool, "reason": str | None}
	"""
	check_rate_limit("validate_datetime", limit=20, seconds=60)

	organization = validate_docname(organization, "organization")
	instant = validate_datetime_string(datetime_str, "datetime_str")
	employee = validate_docname(employee, "employee") if employee else None
	service_duration = validate_minutes(service_duration, "service_duration")

	_ensure_exists(ORGANIZATION_DOCTYPE, organization)
	if employee:
		_ensure_exists(EMPLOYEE_DOCTYPE, employee)

	try:
		org = load_organization(organization)
		employee_schedule = None
		if employee:
			employee, employee_schedule = load_employee_schedule(employee, org.organization_id)

		return validate_schedule_datetime(
			org,
			instant,
			duration_minutes=service_duration,
			employee_schedule=employee_schedule,
		)
	except ScheduleValidationError as e:
		frappe.throw(str(e), frappe.ValidationError)


@frappe.whitelist(allow_guest=True, methods=["POST"])
def get_available_slots_batch(organization: str, requests: Any) -> Dict[str, List[Dict[str, Any]]]:
	"""
	Obtiene las horas disponibles para varias fechas/empleados en una sola llamada.

	Rate limited: 10 requests per minute per IP.

	Args:
		organization: nombre de la Service Organization
		requests: lista (o JSON) de {
			"date": "YYYY-MM-DD",
			"employee": "EMP-0001" | null,
			"duration": 30,
			"candidates": ["EMP-0001", "EMP-0002"]   # auto-asignacion
		}

	Returns:
		dict: {"results": [{"date", "employee", "slots": ["08:00", ...]}, ...]}

	Nota:
		Con employee: horas libres de ese empleado. Sin employee y con
		candidates: horas libres para al menos un candidato. Sin ninguno: vista
		de toda la organizacion.
	"""
	check_rate_limit("get_available_slots_batch", limit=10, seconds=60)

	organization = validate_docname(organization, "organization")
	requests = validate_batch_requests(requests)

	_ensure_exists(ORGANIZATION_DOCTYPE, organization)

	try:
		org = load_organization(organization)
		schedules = {}
		bookings_by_date = {}
		results = []

		for request in requests:
			day = request["date"]
			duration = request["duration"] or DEFAULT_SERVICE_DURATION_MINUTES

			# Una sola consulta de citas por fecha (todas las del dia)
			if day not in bookings_by_date:
				day_start, day_end = get_day_bounds(day, org.timezone)
				bookings_by_date[day] = load_bookings(org.organization_id, day_start, day_end)
			bookings = bookings_by_date[day]

			names = [request["employee"]] if request["employee"] else request["candidates"]
			for name in names:
				if name not in schedules:
					schedules[name] = load_employee_schedule(name, org.organization_id)

			if request["employee"]:
				employee_id, employee_schedule = schedules[request["employee"]]
				availability = get_day_availability(
					org,
					day,
					duration,
					bookings=bookings,
					employee_id=employee_id,
					employee_schedule=employee_schedule,
				)
				slots = list_available_times(availability)
			elif request["candidates"]:
				slots = get_available_times_for_any_employee(
					org,
					day,
					duration,
					[schedules[name] for name in request["candidates"]],
					bookings=bookings,
				)
			else:
				slots = list_available_times(get_day_availability(org, day, duration, bookings=bookings))

			results.append({
				"date": day,
				"employee": request["employee"],
				"slots": slots,
			})

		return {"results": results}

	except ScheduleValidationError as e:
		frappe.throw(str(e), frappe.ValidationError)
	except frappe.DoesNotExistError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in get_available_slots_batch: {str(e)}", "Schedule API Error")
		frappe.throw(_("Error al obtener slots disponibles"))


@frappe.whitelist(allow_guest=True, methods=["GET"])
def get_open_days(organization: str, employee: Optional[str] = None) -> Dict[str, List[int]]:
	"""
	Dias de la semana (0=Domingo ... 6=Sabado) con atencion.

	Con employee, solo los dias en que su horario efectivo no es vacio.

	Rate limited: 30 requests per minute per IP.
	"""
	check_rate_limit("get_open_days", limit=30, seconds=60)

	organization = validate_docname(organization, "organization")
	employee = validate_docname(employee, "employee") if employee else None

	_ensure_exists(ORGANIZATION_DOCTYPE, organization)
	if employee:
		_ensure_exists(EMPLOYEE_DOCTYPE, employee)

	try:
		org = load_organization(organization)
		if not employee:
			return {"days": get_organization_open_days(org.schedule)}

		_, employee_schedule = load_employee_schedule(employee, org.organization_id)
		return {"days": get_employee_available_days(employee_schedule, org.schedule)}
	except ScheduleValidationError as e:
		frappe.throw(str(e), frappe.ValidationError)


@frappe.whitelist(allow_guest=True, methods=["POST"])
def get_available_service_blocks(organization: str, date: str, services: Any) -> Dict[str, Any]:
	"""
	Obtiene los bloques donde varios servicios caben uno tras otro el mismo dia.

	Rate limited: 20 requests per minute per IP.

	Args:
		organization: nombre de la Service Organization
		date: fecha local de la organizacion (YYYY-MM-DD)
		services: lista (o JSON) en orden de atencion de {
			"service": "Corte",
			"duration": 30,
			"employee": "EMP-0001" | null,
			"candidates": ["EMP-0002", "EMP-0003"]   # sin employee: auto-asignacion
		}

	Returns:
		dict: {
			"date": "2025-01-24",
			"blocks": [
				{"time": "10:00", "start": "...", "end": "...",
				 "intervals": [{"service", "employee", "start_time", "end_time", "start", "end"}, ...]},
				...
			]
		}

	Example:
		```javascript
		frappe.call({
			method: "service_scheduling.api.schedule.get_available_service_blocks",
			args: {
				organization: "Bastidas Barber Studio",
				date: "2025-01-24",
				services: [
					{service: "Corte", duration: 30, employee: "EMP-0001"},
					{service: "Barba", duration: 30, candidates: ["EMP-0002", "EMP-0003"]}
				]
			},
			callback: (r) => console.log(r.message.blocks)
		});
		```
	"""
	check_rate_limit("get_available_service_blocks", limit=20, seconds=60)

	organization = validate_docname(organization, "organization")
	date = validate_date_string(date, "date")
	services = validate_service_requests(services)

	_ensure_exists(ORGANIZATION_DOCTYPE, organization)
	for service in services:
		for name in ([service["employee"]] if service["employee"] else []) + service["candidates"]:
			_ensure_exists(EMPLOYEE_DOCTYPE, name)

	requests = [
		ServiceRequest(
			service_id=service["service"],
			duration=service["duration"],
			employee_id=service["employee"],
			eligible_employees=tuple(service["candidates"]),
		)
		for service in services
	]

	try:
		blocks = get_service_blocks(organization, date, requests)
	except ScheduleValidationError as e:
		frappe.throw(str(e), frappe.ValidationError)

	return {"date": date, "blocks": [block.to_dict() for block in blocks]}
