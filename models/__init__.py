"""
Data models for PrintVend.

- Job: a print request with its status, priority, cost and payment state
- Machine: a physical print station
"""

from .job import (
    Job,
    JobStatus,
    PaymentStatus,
    Priority,
    ACTIVE_STATUSES,
    ALLOWED_TRANSITIONS,
    can_transition,
)
from .machine import Machine, MachineStatus

__all__ = [
    # Job models
    "Job",
    "JobStatus",
    "PaymentStatus",
    "Priority",
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    # Machine models
    "Machine",
    "MachineStatus",
]
