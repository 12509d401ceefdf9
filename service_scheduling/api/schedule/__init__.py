"""
Schedule API Domain

Handles slot availability, chained service blocks, datetime validation
and open-day lookups.
"""

from .endpoints import (
    get_available_slots,
    get_available_service_blocks,
    get_available_slots_batch,
    get_open_days,
    validate_datetime,
)

__all__ = [
    "get_available_slots",
    "get_available_service_blocks",
    "get_available_slots_batch",
    "get_open_days",
    "validate_datetime",
]
