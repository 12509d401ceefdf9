"""
Service Scheduling API

Structure:
    api/
    ├── __init__.py              # This file
    ├── security.py              # Rate limiting by client IP
    ├── schedule/                # Availability domain
    │   ├── __init__.py          # Re-exports endpoints
    │   └── endpoints.py         # Whitelisted endpoints
    └── shared/                  # Shared utilities
        ├── __init__.py
        └── validators.py        # Request validators

Usage:
    frappe.call("service_scheduling.api.schedule.get_available_slots", ...)
"""

from . import schedule
from . import shared

__all__ = [
    "schedule",
    "shared",
]
