"""
Shared utilities for the Service Scheduling API.

Input validators used by every whitelisted endpoint.
"""

from .validators import (
    validate_batch_requests,
    validate_date_string,
    validate_datetime_string,
    validate_docname,
    validate_minutes,
    validate_service_requests,
)

__all__ = [
    "validate_batch_requests",
    "validate_date_string",
    "validate_datetime_string",
    "validate_docname",
    "validate_minutes",
    "validate_service_requests",
]
