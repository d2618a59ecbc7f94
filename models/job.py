"""
Print job data models.

A job is one user's request to print a page range of an uploaded file on a
specific machine. Status and payment status are separate axes: status tracks
the printer, payment status tracks the money.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Dict, Any, FrozenSet, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(Enum):
    """
    Status of a print job on its machine.

    Lifecycle:
        QUEUED -> PRINTING -> (COMPLETED | FAILED)
        QUEUED -> FAILED
    """

    QUEUED = "queued"
    """Waiting in the machine's queue."""

    PRINTING = "printing"
    """The machine is printing this job."""

    COMPLETED = "completed"
    """Printed successfully."""

    FAILED = "failed"
    """Abandoned, with an error message."""

    @property
    def is_active(self) -> bool:
        """Active jobs occupy a place in the machine queue."""
        return self in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"


class Priority(IntEnum):
    """Priority tier. Lower value sorts first."""

    URGENT = 1
    NORMAL = 2


ACTIVE_STATUSES: FrozenSet[JobStatus] = frozenset({JobStatus.QUEUED, JobStatus.PRINTING})

# Every legal status change. Anything not listed is rejected, including
# queued -> completed and same-status writes.
ALLOWED_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.PRINTING, JobStatus.FAILED}),
    JobStatus.PRINTING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


@dataclass
class Job:
    """
    A print job.

    ``cost`` is computed once when the job is created and is never
    recalculated, even if the machine's rate changes later.
    """

    id: str
    """Unique job identifier (UUID)."""

    machine_id: str
    """Key of the owning machine."""

    user_name: str
    """Name the requester gave when connecting."""

    file_url: str
    """Retrieval URL of the uploaded PDF."""

    file_name: str
    """Original file name for display."""

    page_count: int
    """Total pages in the uploaded PDF."""

    pages_to_print: str
    """Requested page ranges, e.g. "1-3,5"."""

    pages_requested: int
    """Page count derived from pages_to_print."""

    cost: float
    """Price fixed at creation."""

    priority: Priority = Priority.NORMAL
    status: JobStatus = JobStatus.QUEUED
    payment_status: PaymentStatus = PaymentStatus.PENDING

    storage_id: str = ""
    """Public id of the file in object storage (for later cleanup)."""

    payment_id: Optional[str] = None
    """Gateway payment id, set on verified payment."""

    gateway_order_id: Optional[str] = None
    """Gateway order id, set when a payment order is created."""

    paid_at: Optional[datetime] = None
    error: Optional[str] = None

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_paid(self) -> bool:
        return self.payment_status is PaymentStatus.PAID

    def touch(self) -> None:
        self.updated_at = utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Full projection used by the job endpoints."""
        return {
            "id": self.id,
            "machineId": self.machine_id,
            "userName": self.user_name,
            "fileUrl": self.file_url,
            "fileName": self.file_name,
            "storageId": self.storage_id,
            "pageCount": self.page_count,
            "pagesToPrint": self.pages_to_print,
            "pagesRequested": self.pages_requested,
            "priority": int(self.priority),
            "status": self.status.value,
            "cost": self.cost,
            "paymentStatus": self.payment_status.value,
            "paymentId": self.payment_id,
            "gatewayOrderId": self.gateway_order_id,
            "paidAt": self.paid_at.isoformat() if self.paid_at else None,
            "error": self.error,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    def to_summary(self) -> Dict[str, Any]:
        """Short projection used in queue listings and realtime events."""
        return {
            "id": self.id,
            "userName": self.user_name,
            "fileName": self.file_name,
            "pagesRequested": self.pages_requested,
            "status": self.status.value,
            "priority": int(self.priority),
            "paymentStatus": self.payment_status.value,
            "error": self.error,
            "createdAt": self.created_at.isoformat(),
        }
