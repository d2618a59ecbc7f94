"""
Services layer for PrintVend.

- JobService: job creation, queue queries, status state machine
- MachineService: registration, user connection, realtime sessions
- PaymentService: gateway orders and signature verification
- Notifier / SessionRegistry: in-process realtime fan-out
- JobStore / MachineStore: persistence seam (in-memory or SQLAlchemy)
"""

from .store import JobStore, MachineStore, InMemoryJobStore, InMemoryMachineStore
from .notifier import Notifier, SessionRegistry, Subscription, Event
from .machine_service import MachineService
from .job_service import JobService
from .payment_service import PaymentService

__all__ = [
    "JobStore",
    "MachineStore",
    "InMemoryJobStore",
    "InMemoryMachineStore",
    "Notifier",
    "SessionRegistry",
    "Subscription",
    "Event",
    "MachineService",
    "JobService",
    "PaymentService",
]
