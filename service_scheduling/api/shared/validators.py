"""
Schedule API Validators

Input validation for the whitelisted schedule endpoints. Every failure is
raised as frappe.ValidationError so callers get a 4xx-style response.
"""

import json
import re
import frappe
from frappe import _
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz

from service_scheduling.service_scheduling.scheduling.models import ScheduleValidationError
from service_scheduling.service_scheduling.scheduling.timezone import parse_date

MAX_BATCH_REQUESTS = 31
MAX_CHAINED_SERVICES = 10


def validate_date_string(date_str: str, field_name: str = "date") -> str:
    """
    Validate a calendar date string (YYYY-MM-DD).

    Args:
        date_str: Date string to validate
        field_name: Name of field for error messages

    Returns:
        str: Validated date string

    Raises:
        frappe.ValidationError: If date is missing, malformed or not a real date
    """
    if not date_str:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    date_str = str(date_str).strip()

    try:
        parse_date(date_str)
    except ScheduleValidationError:
        frappe.throw(
            _(f"Invalid {field_name}. Use YYYY-MM-DD"), frappe.ValidationError
        )

    return date_str


def validate_datetime_string(datetime_str: str, field_name: str = "datetime") -> datetime:
    """
    Parse an ISO-8601 instant with an explicit offset (e.g. 2025-01-24T13:00:00Z).

    Naive datetimes are rejected: the schedule engine never guesses a timezone.

    Returns:
        datetime: timezone-aware instant in UTC

    Raises:
        frappe.ValidationError: If missing, malformed or without offset
    """
    if not datetime_str:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    value = str(datetime_str).strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        frappe.throw(
            _(f"Invalid {field_name} format. Use ISO-8601 with offset"),
            frappe.ValidationError,
        )

    if parsed.tzinfo is None:
        frappe.throw(
            _(f"{field_name} must include a timezone offset"), frappe.ValidationError
        )

    return parsed.astimezone(pytz.utc)


def validate_minutes(value: Any, field_name: str, required: bool = False) -> Optional[int]:
    """
    Validate an optional positive number of minutes coming from a request.

    Returns:
        int or None (when not required and empty)

    Raises:
        frappe.ValidationError: If not a positive integer
    """
    if value in (None, ""):
        if required:
            frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)
        return None

    try:
        minutes = int(value)
    except (TypeError, ValueError):
        frappe.throw(_(f"{field_name} must be an integer"), frappe.ValidationError)

    if minutes <= 0:
        frappe.throw(_(f"{field_name} must be greater than 0"), frappe.ValidationError)

    return minutes


def validate_docname(name: str, field_name: str = "name") -> str:
    """
    Validate a document name (ID).

    Raises:
        frappe.ValidationError: If empty, too long or carrying markup/SQL
    """
    if not name:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    name = str(name).strip()

    if len(name) > 140:
        frappe.throw(_(f"{field_name} is too long"), frappe.ValidationError)

    if re.search(r"<script|javascript:|--|;|\b(select|insert|update|delete|drop|union)\s+", name, re.IGNORECASE):
        frappe.throw(_(f"Invalid {field_name}"), frappe.ValidationError)

    return name


def validate_batch_requests(requests: Any) -> List[Dict[str, Any]]:
    """
    Validate the batch payload of get_available_slots_batch.

    Accepts a JSON string or a list of dicts with keys:
    date (required), employee, duration, candidates (list of employee names).

    Returns:
        list[dict]: normalized requests
    """
    if isinstance(requests, str):
        try:
            requests = json.loads(requests)
        except ValueError:
            frappe.throw(_("requests must be valid JSON"), frappe.ValidationError)

    if not isinstance(requests, list) or not requests:
        frappe.throw(_("requests must be a non-empty list"), frappe.ValidationError)

    if len(requests) > MAX_BATCH_REQUESTS:
        frappe.throw(
            _(f"At most {MAX_BATCH_REQUESTS} requests are allowed"), frappe.ValidationError
        )

    normalized = []
    for idx, request in enumerate(requests, 1):
        if not isinstance(request, dict):
            frappe.throw(_(f"Request {idx} must be an object"), frappe.ValidationError)

        employee = request.get("employee")
        candidates = request.get("candidates") or []
        if not isinstance(candidates, list):
            frappe.throw(_(f"Request {idx}: candidates must be a list"), frappe.ValidationError)

        normalized.append({
            "date": validate_date_string(request.get("date"), f"requests[{idx}].date"),
            "employee": validate_docname(employee, f"requests[{idx}].employee") if employee else None,
            "duration": validate_minutes(request.get("duration"), f"requests[{idx}].duration"),
            "candidates": [validate_docname(c, f"requests[{idx}].candidates") for c in candidates],
        })

    return normalized


def validate_service_requests(services: Any) -> List[Dict[str, Any]]:
    """
    Validate the services of a chained booking (get_available_service_blocks).

    Accepts a JSON string or a list of dicts with keys:
    service (required), duration (required), employee, candidates.
    A service without employee needs candidates to auto-assign from.

    Returns:
        list[dict]: normalized services, in the order they are provided
    """
    if isinstance(services, str):
        try:
            services = json.loads(services)
        except ValueError:
            frappe.throw(_("services must be valid JSON"), frappe.ValidationError)

    if not isinstance(services, list) or not services:
        frappe.throw(_("services must be a non-empty list"), frappe.ValidationError)

    if len(services) > MAX_CHAINED_SERVICES:
        frappe.throw(
            _(f"At most {MAX_CHAINED_SERVICES} services are allowed"), frappe.ValidationError
        )

    normalized = []
    for idx, service in enumerate(services, 1):
        if not isinstance(service, dict):
            frappe.throw(_(f"Service {idx} must be an object"), frappe.ValidationError)

        employee = service.get("employee")
        candidates = service.get("candidates") or []
        if not isinstance(candidates, list):
            frappe.throw(_(f"Service {idx}: candidates must be a list"), frappe.ValidationError)

        if not employee and not candidates:
            frappe.throw(
                _(f"Service {idx}: employee or candidates is required"), frappe.ValidationError
            )

        normalized.append({
            "service": validate_docname(service.get("service"), f"services[{idx}].service"),
            "duration": validate_minutes(service.get("duration"), f"services[{idx}].duration", required=True),
            "employee": validate_docname(employee, f"services[{idx}].employee") if employee else None,
            "candidates": [validate_docname(c, f"services[{idx}].candidates") for c in candidates],
        })

    return normalized
