"""
Scheduling Services Module

This module provides core business logic for availability scheduling:
- Data structures (models.py)
- Timezone normalization (timezone.py)
- Schedule resolution (schedule.py)
- Segment building (segments.py)
- Slot generation (slots.py)
- Overlap detection (overlap.py)
- Day availability pipeline (availability.py)
- Employee assignment and datetime validation (assignment.py)
- Chained multi-service blocks (blocks.py)
- Frappe snapshot loader (snapshot.py)
"""
