"""
Print job service: creation, queue queries and the status state machine.

Flow:
    1. User creates a job -> priced once, stored as queued
    2. Queue position is computed from the machine's active jobs
    3. Machine asks for its queue head and prints it
    4. Machine reports printing / completed / failed through update_status()
    5. The owning machine's status mirrors the job (second, separate write)
    6. Every change is published to the machine's realtime channel

Transition rules live in models.job.ALLOWED_TRANSITIONS. A rejected
transition raises before anything is written.

Usage:
    job_service = JobService(job_store, machine_service, pricer, notifier)

    job, position, length = job_service.create_job(
        machine_id="M1", user_name="Asha", file_url=url, file_name="notes.pdf",
        page_count=12, pages_to_print="1-3,5", priority=2,
    )
    job_service.update_status(job.id, "printing")
    job_service.update_status(job.id, "completed")
"""

from __future__ import annotations

import uuid
from typing import Any, List, Optional, Tuple

from core.exceptions import (
    InvalidTransitionError,
    JobNotFoundError,
    MachineOfflineError,
    PreconditionError,
    ValidationError,
)
from models.job import Job, JobStatus, Priority, can_transition, utcnow
from models.machine import MachineStatus
from modules.pricing import JobPricer
from modules.queue_policy import order_queue, queue_head, queue_position
from .machine_service import MachineService
from .notifier import Notifier
from .store import JobStore
from logging_config import get_logger, get_job_logger


# Module logger
logger = get_logger(__name__)

# Machine status to mirror when a job enters a status
MACHINE_STATUS_FOR_JOB = {
    JobStatus.PRINTING: MachineStatus.PRINTING,
    JobStatus.COMPLETED: MachineStatus.ONLINE,
    JobStatus.FAILED: MachineStatus.ONLINE,
}


def parse_priority(value: Any) -> Priority:
    """Accept 1/2 as int, whole float or numeric string; None means normal."""
    if value is None or value == "":
        return Priority.NORMAL
    # Booleans and fractional numbers are not priorities
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError("Priority must be 1 (urgent) or 2 (normal)")
    try:
        return Priority(int(value))
    except (TypeError, ValueError):
        raise ValidationError("Priority must be 1 (urgent) or 2 (normal)")


def parse_status(value: Any) -> JobStatus:
    if not value:
        raise ValidationError("Status is required")
    try:
        return JobStatus(str(value).lower())
    except ValueError:
        allowed = ", ".join(status.value for status in JobStatus)
        raise ValidationError(f"Unknown status '{value}'. Expected one of: {allowed}")


def _positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number


class JobService:
    """
    Creates jobs, answers queue questions and applies status transitions.

    Attributes:
        require_payment_before_print: When True, a job must be paid before it
            may enter ``printing`` and unpaid jobs are skipped as queue head
    """

    def __init__(
        self,
        job_store: JobStore,
        machine_service: MachineService,
        pricer: JobPricer,
        notifier: Notifier,
        require_payment_before_print: bool = True,
    ):
        self._jobs = job_store
        self._machines = machine_service
        self._pricer = pricer
        self._notifier = notifier
        self.require_payment_before_print = require_payment_before_print

        logger.info(
            f"JobService initialized (payment required before print: {require_payment_before_print})"
        )

    def get(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def save(self, job: Job) -> None:
        """Persist a job changed outside this service (payment fields)."""
        job.touch()
        self._jobs.save(job)

    # =========================================================================
    # CREATION
    # =========================================================================

    def create_job(
        self,
        machine_id: str,
        user_name: str,
        file_url: str,
        file_name: str,
        page_count: Any,
        pages_to_print: str,
        priority: Any = Priority.NORMAL,
        storage_id: str = "",
    ) -> Tuple[Job, int, int]:
        """
        Create a queued job on an online machine.

        The cost is fixed here from the machine's current rate.

        Returns:
            (job, queue_position, queue_length)

        Raises:
            ValidationError: Missing fields, bad numbers, or no valid pages
            MachineNotFoundError: Unknown machine
            MachineOfflineError: Machine is not online
        """
        if not all([machine_id, user_name, file_url, file_name, pages_to_print]):
            raise ValidationError("Missing required fields")

        total_pages = _positive_int(page_count, "pageCount")
        tier = parse_priority(priority)

        machine = self._machines.get(machine_id)
        if not machine.is_online:
            raise MachineOfflineError(machine_id, machine.status.value)

        quote = self._pricer.quote(pages_to_print, tier, machine.rate_per_page)
        if quote["pagesRequested"] == 0:
            raise ValidationError(f"No valid pages in '{pages_to_print}'")

        now = utcnow()
        job = Job(
            id=str(uuid.uuid4()),
            machine_id=machine_id,
            user_name=user_name,
            file_url=file_url,
            file_name=file_name,
            storage_id=storage_id or "",
            page_count=total_pages,
            pages_to_print=pages_to_print,
            pages_requested=quote["pagesRequested"],
            priority=tier,
            cost=quote["cost"],
            created_at=now,
            updated_at=now,
        )
        self._jobs.add(job)

        ordered = self.get_queue(machine_id)
        position = queue_position(ordered, job.id)

        get_job_logger(job.id).info(
            f"Created on {machine_id}: {job.pages_requested} pages, priority {int(tier)}, "
            f"cost {job.cost:.2f}, position {position}/{len(ordered)}"
        )
        self._notifier.publish(machine_id, "job:queued", {
            "job": job.to_summary(),
            "queueLength": len(ordered),
        })

        return job, position, len(ordered)

    # =========================================================================
    # QUEUE
    # =========================================================================

    def get_queue(self, machine_id: str) -> List[Job]:
        """Active jobs of a machine in print order, recomputed on every call."""
        return order_queue(self._jobs.list_active(machine_id))

    def get_position(self, job: Job) -> Tuple[int, int]:
        """(position, length) of a job in its machine's queue; (0, n) if inactive."""
        ordered = self.get_queue(job.machine_id)
        return queue_position(ordered, job.id), len(ordered)

    def next_job(self, machine_id: str) -> Optional[Job]:
        """The job the machine should print now, or None."""
        self._machines.get(machine_id)
        return queue_head(self.get_queue(machine_id), require_paid=self.require_payment_before_print)

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    def update_status(self, job_id: str, status: Any, error: Optional[str] = None) -> Job:
        """
        Move a job to a new status and mirror it onto the machine.

        Raises:
            ValidationError: Unknown status value
            JobNotFoundError: Unknown job
            InvalidTransitionError: Transition not in the table
            PreconditionError: Unpaid job, or machine busy with another job
        """
        target = parse_status(status)
        job = self.get(job_id)
        job_logger = get_job_logger(job.id)

        if not can_transition(job.status, target):
            job_logger.warning(f"Rejected transition {job.status.value} -> {target.value}")
            raise InvalidTransitionError(job.id, job.status.value, target.value)

        if target is JobStatus.PRINTING:
            self._check_can_start(job)

        previous = job.status
        job.status = target
        if error:
            job.error = error
        job.touch()
        self._jobs.save(job)

        job_logger.info(f"{previous.value} -> {target.value}" + (f" ({error})" if error else ""))

        self._notifier.publish(job.machine_id, f"job:{target.value}", {"job": job.to_summary()})
        self._machines.set_status(job.machine_id, MACHINE_STATUS_FOR_JOB[target])

        return job

    def _check_can_start(self, job: Job) -> None:
        if self.require_payment_before_print and not job.is_paid:
            raise PreconditionError("Job has not been paid", {"job_id": job.id})

        for other in self._jobs.list_active(job.machine_id):
            if other.id != job.id and other.status is JobStatus.PRINTING:
                raise PreconditionError(
                    "Machine is already printing another job",
                    {"job_id": job.id, "printing_job_id": other.id},
                )
